"""
Progression Engine - visibility and action gating

Pure functions over (EventConfig, EventState, ParticipantRecord). Nothing
here touches the store; callers pass in the latest snapshots.

Visibility (evaluated in order):
  - stage 1: Round 1 only. CLOSED if active_form == 0, else OPEN(form)
  - stage 2: Round 2 only. DISABLED / LOCKED_CHOICE / CHOOSING
  - bridge stage (3 or 4 per config): bridge only.
    INELIGIBLE / DISABLED / COMPLETE / AWAITING_CHOICE
  - anything else: UNDEFINED screen, UNKNOWN_STAGE status, nothing actionable

Actions:
  - lock_shape(shape): one atomic write of selected_shape + shape_locked,
    guarded on shape_locked still being False
  - advance_bridge(choice, expected_step): append the next step and bump
    glass_step, only from the step the client observed, guarded on glass_step
    still holding that value at commit
"""

from arena.core.exceptions import GatingViolation, StaleWriteConflict, ValidationError
from arena.models import (
    BRIDGE_STEPS,
    SHAPE_STAGE,
    BridgeChoice,
    EventConfig,
    EventState,
    ParticipantRecord,
    RoundStatus,
    RoundView,
    Screen,
    Shape,
    WritePlan,
)


# ==================== VISIBILITY ====================

def visible_round(config: EventConfig, event_state: EventState, participant: ParticipantRecord) -> RoundView:
    """
    Project what a participant may currently see and do

    Args:
        config: Static event configuration (links, bridge stage)
        event_state: Latest EventState snapshot
        participant: Latest snapshot of the participant's own record

    Returns:
        RoundView. An unrecognised stage never falls back to a round:
        it yields Screen.UNDEFINED with RoundStatus.UNKNOWN_STAGE.
    """
    stage = event_state.stage

    if stage == 1:
        if event_state.active_form == 0:
            return RoundView(stage=stage, screen=Screen.ROUND1, status=RoundStatus.CLOSED)
        return RoundView(
            stage=stage,
            screen=Screen.ROUND1,
            status=RoundStatus.OPEN,
            form_index=event_state.active_form,
            link=config.form_link(event_state.active_form),
        )

    if stage == SHAPE_STAGE:
        if not event_state.round2_enabled:
            status, link = RoundStatus.DISABLED, None
        elif participant.shape_locked:
            status = RoundStatus.LOCKED_CHOICE
            link = config.round2_shapes.get(participant.selected_shape)
        else:
            status, link = RoundStatus.CHOOSING, None
        return RoundView(
            stage=stage,
            screen=Screen.ROUND2,
            status=status,
            link=link,
            round2_completed=participant.round2_completed,
        )

    if stage == config.bridge_stage:
        if not participant.round2_completed:
            status = RoundStatus.INELIGIBLE
        elif not event_state.bridge_enabled:
            status = RoundStatus.DISABLED
        elif participant.glass_step >= BRIDGE_STEPS:
            status = RoundStatus.COMPLETE
        else:
            status = RoundStatus.AWAITING_CHOICE
        return RoundView(
            stage=stage,
            screen=Screen.BRIDGE,
            status=status,
            glass_step=participant.glass_step,
            round2_completed=participant.round2_completed,
        )

    return RoundView(stage=stage, screen=Screen.UNDEFINED, status=RoundStatus.UNKNOWN_STAGE)


# ==================== ACTION VALIDATION ====================

def parse_shape(shape_key) -> Shape:
    """Map a raw shape key onto the fixed shape set (case-insensitive)"""
    try:
        return Shape(str(shape_key).strip().lower())
    except ValueError:
        raise ValidationError(f"Unknown shape: {shape_key!r}")


def parse_bridge_choice(choice) -> BridgeChoice:
    try:
        return BridgeChoice(str(choice).strip().lower())
    except ValueError:
        raise ValidationError(f"Unknown bridge choice: {choice!r}")


def plan_lock_shape(
    config: EventConfig,
    event_state: EventState,
    participant: ParticipantRecord,
    shape_key,
) -> WritePlan:
    """
    Validate lockShape and build its write

    Rejections:
        ValidationError: not the shape stage, unknown shape key
        GatingViolation: round 2 disabled, shape already locked
    """
    if event_state.stage != SHAPE_STAGE:
        raise ValidationError(f"Shape lock is not available in stage {event_state.stage}")

    shape = parse_shape(shape_key)

    if not event_state.round2_enabled:
        raise GatingViolation("Round 2 is not enabled")

    if participant.shape_locked:
        raise GatingViolation(
            f"Shape already locked as {participant.selected_shape.value if participant.selected_shape else None}"
        )

    return WritePlan(
        fields={"selected_shape": shape.value, "shape_locked": True},
        expected={"shape_locked": False},
        link=config.round2_shapes[shape],
    )


def plan_advance_bridge(
    config: EventConfig,
    event_state: EventState,
    participant: ParticipantRecord,
    choice,
    expected_step: int,
) -> WritePlan:
    """
    Validate advanceBridge and build its write

    The append target is always derived from `participant` (the snapshot
    read right before the write), never from a value the client carried.
    `expected_step` is the glass_step the client observed when it
    initiated the action; if the record has moved past it, the action is
    stale and must not be replayed at the new step.

    Rejections (in this order):
        GatingViolation: round 2 not verified (regardless of stage or flags)
        ValidationError: not the bridge stage, unknown choice
        GatingViolation: bridge round disabled
        StaleWriteConflict: record advanced past expected_step
        GatingViolation: all steps already taken
    """
    if not participant.round2_completed:
        raise GatingViolation("Not eligible: round 2 completion has not been verified")

    if event_state.stage != config.bridge_stage:
        raise ValidationError(f"Bridge choices are not available in stage {event_state.stage}")

    bridge_choice = parse_bridge_choice(choice)

    if not event_state.bridge_enabled:
        raise GatingViolation("Bridge round is not enabled")

    current = participant.glass_step
    if expected_step != current:
        raise StaleWriteConflict(
            f"Bridge step moved from {expected_step} to {current}; retry the action",
            field="glass_step",
            expected=expected_step,
            actual=current,
        )

    if current >= BRIDGE_STEPS:
        raise GatingViolation(f"All {BRIDGE_STEPS} bridge steps already taken")

    link = config.bridge_link(bridge_choice, current)
    choices = [c.model_dump(mode="json") for c in participant.glass_choices]
    choices.append({"step": current + 1, "choice": bridge_choice.value, "link": link})

    return WritePlan(
        fields={"glass_step": current + 1, "glass_choices": choices},
        expected={"glass_step": current},
        link=link,
    )
