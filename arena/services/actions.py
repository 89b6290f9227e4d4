"""
Participant actions - shape lock and bridge steps

Each action reads the freshest EventState and ParticipantRecord, asks the
progression engine for a write plan, then commits it as one conditional
update. A conditional write that loses a race is reported as
StaleWriteConflict and is not retried here: a retry could spend a
one-time choice twice.
"""
import logging
from typing import Tuple

from arena.core.exceptions import StaleWriteConflict
from arena.core.progression import plan_advance_bridge, plan_lock_shape
from arena.models import EventConfig, ParticipantRecord
from arena.services.event_state import EventStateStore
from arena.services.participants import ParticipantStore


logger = logging.getLogger(__name__)


class ParticipantActions:
    def __init__(self, config: EventConfig, event_states: EventStateStore, participants: ParticipantStore):
        self.config = config
        self.event_states = event_states
        self.participants = participants

    async def lock_shape(self, participant_id: str, shape_key) -> Tuple[ParticipantRecord, str]:
        """
        Lock a round 2 shape for good

        Returns:
            (updated record, challenge link for the shape)
        """
        event_state = await self.event_states.get()
        participant = await self.participants.get(participant_id)

        plan = plan_lock_shape(self.config, event_state, participant, shape_key)

        try:
            record = await self.participants.apply(participant_id, plan)
        except StaleWriteConflict:
            logger.warning(f"⚠️ Stale shape lock for {participant_id}: already locked concurrently")
            raise

        logger.info(f"🔒 Participant {participant_id} locked shape {record.selected_shape.value}")
        return record, plan.link

    async def advance_bridge(
        self,
        participant_id: str,
        choice,
        expected_step: int,
    ) -> Tuple[ParticipantRecord, str]:
        """
        Take the next bridge step

        Args:
            participant_id: Owner of the record
            choice: "safe" or "risky"
            expected_step: glass_step the client saw when it initiated the action

        Returns:
            (updated record, link for the step just taken)
        """
        event_state = await self.event_states.get()
        # Re-read right before planning: the append target comes from here
        participant = await self.participants.get(participant_id)

        try:
            plan = plan_advance_bridge(self.config, event_state, participant, choice, expected_step)
            record = await self.participants.apply(participant_id, plan)
        except StaleWriteConflict as e:
            logger.warning(f"⚠️ Stale bridge step for {participant_id}: {e}")
            raise

        logger.info(
            f"🌉 Participant {participant_id} took bridge step {record.glass_step} "
            f"({record.glass_choices[-1].choice.value})"
        )
        return record, plan.link
