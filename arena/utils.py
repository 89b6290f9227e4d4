"""
Utility functions
"""
import math
from typing import Any, Optional


def normalize_email(email: Optional[str]) -> str:
    """
    Normalize an email for allow-list comparison

    Example:
        >>> normalize_email("  Player@Example.COM ")
        'player@example.com'
    """
    return (email or "").strip().lower()


def coerce_score(value: Any) -> Optional[float]:
    """
    Parse an admin-entered score

    Accepts ints, floats and numeric strings. Returns None for anything
    that is not a finite number (booleans included).

    Example:
        >>> coerce_score("12.5")
        12.5
        >>> coerce_score("abc") is None
        True
    """
    if isinstance(value, bool) or value is None:
        return None

    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        try:
            number = float(text)
        except ValueError:
            return None
    else:
        return None

    if not math.isfinite(number):
        return None
    return number
