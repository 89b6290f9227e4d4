"""
Data models for the event server
"""
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from arena.utils import normalize_email


FORM_COUNT = 4           # Round 1 external forms
BRIDGE_STEPS = 5         # Bridge round steps
STAGES = (1, 2, 3, 4)
SHAPE_STAGE = 2


class Role(str, Enum):
    ADMIN = "admin"
    PARTICIPANT = "participant"


class Shape(str, Enum):
    CIRCLE = "circle"
    TRIANGLE = "triangle"
    STAR = "star"
    UMBRELLA = "umbrella"


class BridgeChoice(str, Enum):
    SAFE = "safe"
    RISKY = "risky"


class Screen(str, Enum):
    """Which round's UI a participant may see"""
    ROUND1 = "round1"
    ROUND2 = "round2"
    BRIDGE = "bridge"
    UNDEFINED = "undefined"


class RoundStatus(str, Enum):
    CLOSED = "closed"
    OPEN = "open"
    DISABLED = "disabled"
    LOCKED_CHOICE = "locked_choice"
    CHOOSING = "choosing"
    INELIGIBLE = "ineligible"
    COMPLETE = "complete"
    AWAITING_CHOICE = "awaiting_choice"
    UNKNOWN_STAGE = "unknown_stage"


ACTIONABLE_STATUSES = {RoundStatus.OPEN, RoundStatus.CHOOSING, RoundStatus.AWAITING_CHOICE}


# ==================== STATIC CONFIGURATION ====================

class BridgeLinks(BaseModel):
    """Per-step links for both bridge tails"""
    model_config = ConfigDict(frozen=True)

    safe: List[str]
    risky: List[str]

    @field_validator("safe", "risky")
    @classmethod
    def _five_links(cls, links: List[str]) -> List[str]:
        if len(links) != BRIDGE_STEPS:
            raise ValueError(f"expected {BRIDGE_STEPS} bridge links, got {len(links)}")
        return links


class EventConfig(BaseModel):
    """
    Static event configuration

    Loaded once at startup, never mutated.
    """
    model_config = ConfigDict(frozen=True)

    event_name: str
    event_password: Optional[str] = None
    admin_emails: List[str] = []
    participant_emails: List[str] = []
    round1_forms: List[str]
    round2_shapes: Dict[Shape, str]
    bridge_links: BridgeLinks
    bridge_stage: int = 3        # 3 or 4, depending on the event layout

    @field_validator("admin_emails", "participant_emails")
    @classmethod
    def _normalize_emails(cls, emails: List[str]) -> List[str]:
        return [normalize_email(e) for e in emails if normalize_email(e)]

    @field_validator("round1_forms")
    @classmethod
    def _four_forms(cls, forms: List[str]) -> List[str]:
        if len(forms) != FORM_COUNT:
            raise ValueError(f"expected {FORM_COUNT} round 1 forms, got {len(forms)}")
        return forms

    @field_validator("round2_shapes")
    @classmethod
    def _every_shape(cls, shapes: Dict[Shape, str]) -> Dict[Shape, str]:
        missing = [s.value for s in Shape if s not in shapes]
        if missing:
            raise ValueError(f"missing shape links: {', '.join(missing)}")
        return shapes

    @field_validator("bridge_stage")
    @classmethod
    def _bridge_stage(cls, stage: int) -> int:
        if stage not in (3, 4):
            raise ValueError("bridge_stage must be 3 or 4")
        return stage

    def form_link(self, form_index: int) -> str:
        """Link for a 1-based form index"""
        return self.round1_forms[form_index - 1]

    def bridge_link(self, choice: BridgeChoice, step_index: int) -> str:
        """Link for a 0-based bridge step on the chosen tail"""
        links = self.bridge_links.safe if choice == BridgeChoice.SAFE else self.bridge_links.risky
        return links[step_index]


# ==================== PERSISTED DOCUMENTS ====================

class EventState(BaseModel):
    """Global event state (singleton document keyed "current")"""
    model_config = ConfigDict(frozen=True)

    stage: int = 1
    active_form: int = 0          # 0 = closed, 1-4 = open form
    round2_enabled: bool = False
    bridge_enabled: bool = False


class GlassChoice(BaseModel):
    model_config = ConfigDict(frozen=True)

    step: int = Field(ge=1, le=BRIDGE_STEPS)
    choice: BridgeChoice
    link: str


class ParticipantRecord(BaseModel):
    """One participant's document"""
    model_config = ConfigDict(frozen=True)

    id: str
    email: str
    is_admin: bool = False
    created_at: Optional[float] = None

    total_score: float = 0

    # round gating
    round2_completed: bool = False

    # round 2
    selected_shape: Optional[Shape] = None
    shape_locked: bool = False

    # bridge round
    glass_step: int = Field(default=0, ge=0, le=BRIDGE_STEPS)
    glass_choices: List[GlassChoice] = []

    @model_validator(mode="after")
    def _choices_match_step(self) -> "ParticipantRecord":
        steps = [c.step for c in self.glass_choices]
        if steps != list(range(1, self.glass_step + 1)):
            raise ValueError(
                f"glass_choices steps {steps} inconsistent with glass_step {self.glass_step}"
            )
        return self


# ==================== DERIVED VIEWS ====================

class RoundView(BaseModel):
    """What a participant currently sees and may do"""
    model_config = ConfigDict(frozen=True)

    stage: int
    screen: Screen
    status: RoundStatus
    form_index: Optional[int] = None
    link: Optional[str] = None
    glass_step: Optional[int] = None
    round2_completed: Optional[bool] = None

    @property
    def actionable(self) -> bool:
        return self.status in ACTIONABLE_STATUSES


class SessionView(BaseModel):
    """Latest snapshot pair plus the projected view"""
    model_config = ConfigDict(frozen=True)

    event_state: EventState
    participant: ParticipantRecord
    view: RoundView


class WritePlan(BaseModel):
    """
    A single conditional participant write

    `fields` are merged into the document; the write commits only if every
    key in `expected` still holds the given value.
    """
    model_config = ConfigDict(frozen=True)

    fields: Dict[str, Any]
    expected: Dict[str, Any] = {}
    link: Optional[str] = None


class AccessGrant(BaseModel):
    authorized: bool = True
    role: Role
    participant_id: str
    email: str
    created: bool = False


class LeaderboardEntry(BaseModel):
    rank: int
    participant_id: str
    email: str
    total_score: float
    is_admin: bool
    round2_completed: bool
    selected_shape: Optional[Shape] = None
    bridge_progress: str
