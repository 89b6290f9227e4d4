"""
Configuration loader
"""
import logging
import os
from pathlib import Path

import yaml

from arena.models import EventConfig


logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = "config/event.yaml"
CONFIG_PATH_ENV = "ARENA_CONFIG"
PASSWORD_ENV = "ARENA_EVENT_PASSWORD"


def get_config_path() -> str:
    return os.environ.get(CONFIG_PATH_ENV, DEFAULT_CONFIG_PATH)


def load_config(config_path: str = None) -> EventConfig:
    """
    Load the static event configuration from a YAML file

    The event password may come from the file or from ARENA_EVENT_PASSWORD
    (the environment wins). `allowed_emails` is accepted as a legacy name
    for `participant_emails`.

    Args:
        config_path: Path to config file (defaults to ARENA_CONFIG or config/event.yaml)

    Returns:
        EventConfig object

    Raises:
        FileNotFoundError: config file missing
        ValueError: no event password configured
    """
    path = Path(config_path or get_config_path())

    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    with open(path, 'r', encoding='utf-8') as f:
        data = yaml.safe_load(f) or {}

    if "participant_emails" not in data and "allowed_emails" in data:
        data["participant_emails"] = data.pop("allowed_emails")
    data.pop("allowed_emails", None)

    env_password = os.environ.get(PASSWORD_ENV)
    if env_password:
        data["event_password"] = env_password

    if not data.get("event_password"):
        raise ValueError(f"No event password: set event_password in {path} or {PASSWORD_ENV}")

    config = EventConfig(**data)
    logger.info(
        f"✅ Loaded config for '{config.event_name}': "
        f"{len(config.admin_emails)} admins, {len(config.participant_emails)} participants, "
        f"bridge at stage {config.bridge_stage}"
    )
    return config
