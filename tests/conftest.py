"""
Shared fixtures: static config, record builder, store-backed services
"""
import pytest

from arena.core.identity import IdentityProvider
from arena.core.store import DocumentStore
from arena.models import BridgeChoice, EventConfig, GlassChoice, ParticipantRecord
from arena.services.access_gate import AccessGate
from arena.services.actions import ParticipantActions
from arena.services.admin import AdminCommands
from arena.services.event_state import EventStateStore
from arena.services.participants import ParticipantStore


EVENT_PASSWORD = "venue-secret"


def _config_data(**overrides):
    data = {
        "event_name": "Test Games",
        "event_password": EVENT_PASSWORD,
        "admin_emails": ["admin@example.com"],
        "participant_emails": ["p1@example.com", "p2@example.com", "p3@example.com"],
        "round1_forms": [f"https://forms.test/{i}" for i in range(1, 5)],
        "round2_shapes": {
            "circle": "https://shapes.test/circle",
            "triangle": "https://shapes.test/triangle",
            "star": "https://shapes.test/star",
            "umbrella": "https://shapes.test/umbrella",
        },
        "bridge_links": {
            "safe": [f"https://bridge.test/safe-{i}" for i in range(1, 6)],
            "risky": [f"https://bridge.test/risky-{i}" for i in range(1, 6)],
        },
        "bridge_stage": 3,
    }
    data.update(overrides)
    return data


@pytest.fixture
def config_data():
    return _config_data


@pytest.fixture
def make_config():
    def build(**overrides) -> EventConfig:
        return EventConfig(**_config_data(**overrides))
    return build


@pytest.fixture
def config(make_config) -> EventConfig:
    return make_config()


@pytest.fixture
def make_record():
    """Build a valid ParticipantRecord; glass_choices follow glass_step"""
    def build(**fields) -> ParticipantRecord:
        step = fields.get("glass_step", 0)
        fields.setdefault("id", "p1")
        fields.setdefault("email", "p1@example.com")
        fields.setdefault(
            "glass_choices",
            [GlassChoice(step=i, choice=BridgeChoice.SAFE, link=f"https://bridge.test/safe-{i}") for i in range(1, step + 1)],
        )
        return ParticipantRecord(**fields)
    return build


class Services:
    """Everything wired over one in-process store"""

    def __init__(self, config: EventConfig):
        self.config = config
        self.store = DocumentStore()
        self.identity = IdentityProvider()
        self.event_states = EventStateStore(self.store)
        self.participants = ParticipantStore(self.store)
        self.gate = AccessGate(config, self.identity, self.participants)
        self.actions = ParticipantActions(config, self.event_states, self.participants)
        self.admin = AdminCommands(config, self.event_states, self.participants)

    async def seed(self, *participant_ids: str, **event_fields):
        """Initialize event state and create participant records"""
        await self.event_states.ensure_initialized()
        if event_fields:
            await self.event_states.update(**event_fields)
        for pid in participant_ids:
            await self.participants.create_if_absent(pid, f"{pid}@example.com", is_admin=False)


@pytest.fixture
def services(config) -> Services:
    return Services(config)


@pytest.fixture
def make_services():
    return Services


@pytest.fixture
def event_password() -> str:
    return EVENT_PASSWORD
