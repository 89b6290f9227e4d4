"""
EventState adapter - typed surface over the "eventState/current" document
"""
import logging
from typing import AsyncIterator

from arena.core.store import CURRENT, EVENT_STATE, DocumentStore
from arena.models import EventState


logger = logging.getLogger(__name__)


class EventStateStore:
    def __init__(self, store: DocumentStore):
        self.store = store

    async def ensure_initialized(self) -> EventState:
        """Create the singleton with stage=1, active_form=0 if it does not exist yet"""
        created = await self.store.create(EVENT_STATE, CURRENT, EventState().model_dump(mode="json"))
        if created:
            logger.info("✅ Event state initialized (stage 1, forms closed)")
        return await self.get()

    async def get(self) -> EventState:
        snapshot = await self.store.get(EVENT_STATE, CURRENT)
        if not snapshot.exists:
            # Not seeded yet: readers see the initial state
            return EventState()
        return EventState.model_validate(snapshot.data)

    async def update(self, **fields) -> EventState:
        """Field-level write to the singleton"""
        snapshot = await self.store.update(EVENT_STATE, CURRENT, fields)
        return EventState.model_validate(snapshot.data)

    async def subscribe(self) -> AsyncIterator[EventState]:
        async for snapshot in self.store.subscribe(EVENT_STATE, CURRENT):
            yield EventState.model_validate(snapshot.data) if snapshot.exists else EventState()
