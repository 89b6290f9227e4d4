"""
Synchronization layer - live session views

A participant session subscribes to two documents (EventState and the
caller's own record) and emits a fresh SessionView whenever either one
changes. The view is recomputed from the latest snapshot pair each time;
nothing is accumulated between updates.
"""
import asyncio
import logging
from typing import AsyncIterator, Optional

from arena.core.progression import visible_round
from arena.models import EventConfig, EventState, ParticipantRecord, SessionView
from arena.services.event_state import EventStateStore
from arena.services.participants import ParticipantStore


logger = logging.getLogger(__name__)

_EVENT = "event"
_PARTICIPANT = "participant"
_FAILED = "failed"


def project(config: EventConfig, event_state: EventState, participant: ParticipantRecord) -> SessionView:
    return SessionView(
        event_state=event_state,
        participant=participant,
        view=visible_round(config, event_state, participant),
    )


class ParticipantSession:
    def __init__(
        self,
        config: EventConfig,
        event_states: EventStateStore,
        participants: ParticipantStore,
        participant_id: str,
    ):
        self.config = config
        self.event_states = event_states
        self.participants = participants
        self.participant_id = participant_id

    async def current(self) -> SessionView:
        """One-off view from point reads"""
        event_state = await self.event_states.get()
        participant = await self.participants.get(self.participant_id)
        return project(self.config, event_state, participant)

    async def views(self) -> AsyncIterator[SessionView]:
        """
        Stream session views until the consumer stops iterating

        Per-document commit order is kept (each source feeds one FIFO
        queue); there is no ordering between the two documents. Nothing is
        emitted until both documents have been seen. A store failure in
        either subscription is re-raised to the consumer.
        """
        inbox: asyncio.Queue = asyncio.Queue()

        async def pump(kind, source):
            try:
                async for item in source:
                    await inbox.put((kind, item))
            except Exception as e:
                await inbox.put((_FAILED, e))

        tasks = [
            asyncio.create_task(pump(_EVENT, self.event_states.subscribe())),
            asyncio.create_task(pump(_PARTICIPANT, self.participants.subscribe(self.participant_id))),
        ]
        logger.info(f"Session stream opened for {self.participant_id}")

        event_state: Optional[EventState] = None
        participant: Optional[ParticipantRecord] = None
        try:
            while True:
                kind, item = await inbox.get()
                if kind == _FAILED:
                    raise item
                if kind == _EVENT:
                    event_state = item
                else:
                    participant = item

                if event_state is None or participant is None:
                    continue
                yield project(self.config, event_state, participant)
        finally:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            logger.info(f"Session stream closed for {self.participant_id}")
