"""
Tests for the progression engine: visibility projection and action gating
"""
import pytest

from arena.core.exceptions import GatingViolation, StaleWriteConflict, ValidationError
from arena.core.progression import plan_advance_bridge, plan_lock_shape, visible_round
from arena.models import EventState, RoundStatus, Screen, Shape


# ==================== VISIBILITY ====================

def test_stage1_closed(config, make_record):
    """Stage 1 with no active form is red light"""
    view = visible_round(config, EventState(stage=1, active_form=0), make_record())
    assert view.screen == Screen.ROUND1
    assert view.status == RoundStatus.CLOSED
    assert view.link is None
    assert not view.actionable


def test_stage1_open_form(config, make_record):
    """Green light exposes the selected form link"""
    view = visible_round(config, EventState(stage=1, active_form=3), make_record())
    assert view.status == RoundStatus.OPEN
    assert view.form_index == 3
    assert view.link == "https://forms.test/3"
    assert view.actionable


def test_stage2_disabled_even_when_locked(config, make_record):
    """Pause switch wins over the participant's own state"""
    record = make_record(selected_shape=Shape.STAR, shape_locked=True)
    view = visible_round(config, EventState(stage=2, round2_enabled=False), record)
    assert view.screen == Screen.ROUND2
    assert view.status == RoundStatus.DISABLED


def test_stage2_choosing(config, make_record):
    view = visible_round(config, EventState(stage=2, round2_enabled=True), make_record())
    assert view.status == RoundStatus.CHOOSING
    assert view.actionable


def test_stage2_locked_choice_links_to_shape(config, make_record):
    record = make_record(selected_shape=Shape.TRIANGLE, shape_locked=True)
    view = visible_round(config, EventState(stage=2, round2_enabled=True), record)
    assert view.status == RoundStatus.LOCKED_CHOICE
    assert view.link == "https://shapes.test/triangle"
    assert not view.actionable


def test_bridge_ineligible_before_disabled(config, make_record):
    """Ineligibility is reported even while the bridge is paused"""
    view = visible_round(config, EventState(stage=3, bridge_enabled=False), make_record())
    assert view.screen == Screen.BRIDGE
    assert view.status == RoundStatus.INELIGIBLE


def test_bridge_disabled(config, make_record):
    record = make_record(round2_completed=True)
    view = visible_round(config, EventState(stage=3, bridge_enabled=False), record)
    assert view.status == RoundStatus.DISABLED


def test_bridge_awaiting_choice(config, make_record):
    record = make_record(round2_completed=True, glass_step=2)
    view = visible_round(config, EventState(stage=3, bridge_enabled=True), record)
    assert view.status == RoundStatus.AWAITING_CHOICE
    assert view.glass_step == 2
    assert view.actionable


def test_bridge_complete(config, make_record):
    record = make_record(round2_completed=True, glass_step=5)
    view = visible_round(config, EventState(stage=3, bridge_enabled=True), record)
    assert view.status == RoundStatus.COMPLETE
    assert not view.actionable


@pytest.mark.parametrize("stage", [0, 4, 5, 99, -1])
def test_unknown_stage_never_defaults(config, make_record, stage):
    """Stages outside the layout report UNKNOWN_STAGE, not a round"""
    record = make_record(round2_completed=True)
    view = visible_round(config, EventState(stage=stage, active_form=2, round2_enabled=True, bridge_enabled=True), record)
    assert view.screen == Screen.UNDEFINED
    assert view.status == RoundStatus.UNKNOWN_STAGE
    assert not view.actionable


def test_bridge_at_stage4_layout(make_config, make_record):
    """With the bridge at stage 4, stage 3 is undefined"""
    config = make_config(bridge_stage=4)
    record = make_record(round2_completed=True)

    assert visible_round(config, EventState(stage=4, bridge_enabled=True), record).screen == Screen.BRIDGE
    assert visible_round(config, EventState(stage=3, bridge_enabled=True), record).screen == Screen.UNDEFINED


# ==================== SHAPE LOCK ====================

def test_lock_shape_plan(config, make_record):
    """Single write of shape + lock, guarded on the lock being open"""
    plan = plan_lock_shape(config, EventState(stage=2, round2_enabled=True), make_record(), "Circle")
    assert plan.fields == {"selected_shape": "circle", "shape_locked": True}
    assert plan.expected == {"shape_locked": False}
    assert plan.link == "https://shapes.test/circle"


def test_lock_shape_wrong_stage(config, make_record):
    with pytest.raises(ValidationError):
        plan_lock_shape(config, EventState(stage=1, round2_enabled=True), make_record(), "circle")


def test_lock_shape_unknown_key(config, make_record):
    with pytest.raises(ValidationError):
        plan_lock_shape(config, EventState(stage=2, round2_enabled=True), make_record(), "hexagon")


def test_lock_shape_disabled(config, make_record):
    with pytest.raises(GatingViolation):
        plan_lock_shape(config, EventState(stage=2, round2_enabled=False), make_record(), "circle")


def test_lock_shape_already_locked(config, make_record):
    record = make_record(selected_shape=Shape.CIRCLE, shape_locked=True)
    with pytest.raises(GatingViolation):
        plan_lock_shape(config, EventState(stage=2, round2_enabled=True), record, "triangle")


# ==================== BRIDGE ====================

BRIDGE_OPEN = EventState(stage=3, bridge_enabled=True)


@pytest.mark.parametrize("event_state", [
    EventState(stage=1),
    EventState(stage=3, bridge_enabled=False),
    BRIDGE_OPEN,
])
def test_bridge_requires_round2_completion(config, make_record, event_state):
    """Not verified -> gating, regardless of stage or flags"""
    with pytest.raises(GatingViolation):
        plan_advance_bridge(config, event_state, make_record(round2_completed=False), "safe", 0)


def test_bridge_wrong_stage(config, make_record):
    with pytest.raises(ValidationError):
        plan_advance_bridge(config, EventState(stage=2, bridge_enabled=True), make_record(round2_completed=True), "safe", 0)


def test_bridge_unknown_choice(config, make_record):
    with pytest.raises(ValidationError):
        plan_advance_bridge(config, BRIDGE_OPEN, make_record(round2_completed=True), "sideways", 0)


def test_bridge_disabled(config, make_record):
    with pytest.raises(GatingViolation):
        plan_advance_bridge(config, EventState(stage=3), make_record(round2_completed=True), "safe", 0)


def test_bridge_all_steps_taken(config, make_record):
    with pytest.raises(GatingViolation):
        plan_advance_bridge(config, BRIDGE_OPEN, make_record(round2_completed=True, glass_step=5), "risky", 5)


def test_bridge_plan_appends_next_step(config, make_record):
    """Append target and link come from the record's current step"""
    record = make_record(round2_completed=True, glass_step=2)
    plan = plan_advance_bridge(config, BRIDGE_OPEN, record, "RISKY", 2)

    assert plan.expected == {"glass_step": 2}
    assert plan.fields["glass_step"] == 3
    assert [c["step"] for c in plan.fields["glass_choices"]] == [1, 2, 3]
    assert plan.fields["glass_choices"][-1] == {
        "step": 3,
        "choice": "risky",
        "link": "https://bridge.test/risky-3",
    }
    assert plan.link == "https://bridge.test/risky-3"


def test_bridge_plan_leaves_history_untouched(config, make_record):
    record = make_record(round2_completed=True, glass_step=1)
    plan = plan_advance_bridge(config, BRIDGE_OPEN, record, "risky", 1)
    assert plan.fields["glass_choices"][0] == record.glass_choices[0].model_dump(mode="json")
    assert len(record.glass_choices) == 1


def test_bridge_stale_expected_step(config, make_record):
    """Record moved past what the client saw -> stale, not a replay at the new step"""
    record = make_record(round2_completed=True, glass_step=3)
    with pytest.raises(StaleWriteConflict) as exc:
        plan_advance_bridge(config, BRIDGE_OPEN, record, "safe", expected_step=2)
    assert exc.value.expected == 2
    assert exc.value.actual == 3


def test_bridge_stale_beats_complete(config, make_record):
    """A duplicate submit at step 4 is stale, even though the bridge is now complete"""
    record = make_record(round2_completed=True, glass_step=5)
    with pytest.raises(StaleWriteConflict):
        plan_advance_bridge(config, BRIDGE_OPEN, record, "safe", expected_step=4)


def test_bridge_matching_expected_step(config, make_record):
    record = make_record(round2_completed=True, glass_step=3)
    plan = plan_advance_bridge(config, BRIDGE_OPEN, record, "safe", expected_step=3)
    assert plan.fields["glass_step"] == 4
