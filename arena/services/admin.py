"""
Admin command surface

Each command is one field-level write to EventState or to one
ParticipantRecord. Stage ordering is not enforced: the operator may move
backward or skip stages.
"""
import logging

from arena.core.exceptions import ValidationError
from arena.models import FORM_COUNT, SHAPE_STAGE, STAGES, EventConfig, EventState, ParticipantRecord
from arena.services.event_state import EventStateStore
from arena.services.participants import ParticipantStore
from arena.utils import coerce_score


logger = logging.getLogger(__name__)


def _require_int(value, name: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError(f"{name} must be an integer, got {value!r}")
    return value


class AdminCommands:
    def __init__(self, config: EventConfig, event_states: EventStateStore, participants: ParticipantStore):
        self.config = config
        self.event_states = event_states
        self.participants = participants

    # ==================== EVENT STATE ====================

    async def set_active_form(self, form) -> EventState:
        """Open form 1-4 in round 1, or 0 to close (red light)"""
        form = _require_int(form, "form")
        if not 0 <= form <= FORM_COUNT:
            raise ValidationError(f"form must be between 0 and {FORM_COUNT}, got {form}")

        state = await self.event_states.update(active_form=form)
        if form:
            logger.info(f"🟢 Green light: form {form} open")
        else:
            logger.info("🔴 Red light: forms closed")
        return state

    async def set_stage(self, stage) -> EventState:
        stage = _require_int(stage, "stage")
        if stage not in STAGES:
            raise ValidationError(f"stage must be one of {list(STAGES)}, got {stage}")

        previous = await self.event_states.get()
        state = await self.event_states.update(stage=stage)
        if stage < previous.stage:
            logger.warning(f"Stage moved backward: {previous.stage} -> {stage}")
        else:
            logger.info(f"Stage set: {previous.stage} -> {stage}")
        return state

    async def set_round_enabled(self, round_id, enabled) -> EventState:
        """
        Pause or resume a round without changing what is visible

        round_id 2 controls the shape round; the configured bridge stage
        controls the bridge round.
        """
        round_id = _require_int(round_id, "round_id")
        if not isinstance(enabled, bool):
            raise ValidationError(f"enabled must be a boolean, got {enabled!r}")

        if round_id == SHAPE_STAGE:
            state = await self.event_states.update(round2_enabled=enabled)
        elif round_id == self.config.bridge_stage:
            state = await self.event_states.update(bridge_enabled=enabled)
        else:
            raise ValidationError(f"Round {round_id} has no pause switch")

        logger.info(f"Round {round_id} {'enabled' if enabled else 'paused'}")
        return state

    # ==================== PARTICIPANTS ====================

    async def set_participant_score(self, participant_id: str, value) -> ParticipantRecord:
        score = coerce_score(value)
        if score is None:
            raise ValidationError("Score must be a number")

        record = await self.participants.update(participant_id, {"total_score": score})
        logger.info(f"Score for {participant_id} set to {score}")
        return record

    async def toggle_round2_completed(self, participant_id: str) -> ParticipantRecord:
        """
        Flip round 2 verification (a flip, not a set)

        This is the only way a participant becomes eligible for the bridge.
        """
        current = await self.participants.get(participant_id)
        record = await self.participants.update(
            participant_id,
            {"round2_completed": not current.round2_completed},
            expected={"round2_completed": current.round2_completed},
        )
        logger.info(f"Round 2 completion for {participant_id}: {current.round2_completed} -> {record.round2_completed}")
        return record

    async def promote_admin(self, participant_id: str) -> ParticipantRecord:
        """Grant admin to an existing record whose email is now on the admin list"""
        current = await self.participants.get(participant_id)
        if current.is_admin:
            return current
        if current.email not in self.config.admin_emails:
            raise ValidationError(f"{current.email} is not on the admin list")

        record = await self.participants.update(participant_id, {"is_admin": True})
        logger.info(f"Promoted {current.email} ({participant_id}) to admin")
        return record
