"""
Global application state
Shared resources accessible across all modules
"""
from typing import Dict, Optional

from arena.core.identity import IdentityProvider
from arena.core.store import DocumentStore
from arena.models import EventConfig

# Static event configuration, loaded at startup
CONFIG: Optional[EventConfig] = None

# Document store holding EventState and every ParticipantRecord
STORE: Optional[DocumentStore] = None

# Identity provider used by the access gate
IDENTITY: Optional[IdentityProvider] = None

# Session tokens: token -> participant id
SESSIONS: Dict[str, str] = {}
