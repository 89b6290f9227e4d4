"""
ParticipantRecord adapter - typed surface over the "participants" collection
"""
import logging
import time
from typing import AsyncIterator, Dict, List, Optional, Tuple

from arena.core.exceptions import ParticipantNotFound
from arena.core.store import PARTICIPANTS, DocumentStore
from arena.models import ParticipantRecord, WritePlan


logger = logging.getLogger(__name__)


class ParticipantStore:
    def __init__(self, store: DocumentStore):
        self.store = store

    async def create_if_absent(self, participant_id: str, email: str, is_admin: bool) -> Tuple[ParticipantRecord, bool]:
        """
        Create a record with every gating field at its initial value

        is_admin is fixed here; an existing record is returned untouched.

        Returns:
            (record, created)
        """
        record = ParticipantRecord(
            id=participant_id,
            email=email,
            is_admin=is_admin,
            created_at=time.time(),
        )
        created = await self.store.create(PARTICIPANTS, participant_id, record.model_dump(mode="json"))
        if created:
            logger.info(f"Created participant {participant_id} ({email}, admin={is_admin})")
        return await self.get(participant_id), created

    async def get(self, participant_id: str) -> ParticipantRecord:
        snapshot = await self.store.get(PARTICIPANTS, participant_id)
        if not snapshot.exists:
            raise ParticipantNotFound(participant_id)
        return ParticipantRecord.model_validate(snapshot.data)

    async def list_all(self) -> List[ParticipantRecord]:
        snapshots = await self.store.list_documents(PARTICIPANTS)
        return [ParticipantRecord.model_validate(s.data) for s in snapshots if s.exists]

    async def update(
        self,
        participant_id: str,
        fields: Dict,
        expected: Optional[Dict] = None,
    ) -> ParticipantRecord:
        """
        Field-level write, optionally conditional on expected values

        Raises:
            ParticipantNotFound: no such record
            StaleWriteConflict: an expected value changed before commit
        """
        try:
            snapshot = await self.store.update(PARTICIPANTS, participant_id, fields, expected)
        except KeyError:
            raise ParticipantNotFound(participant_id)
        return ParticipantRecord.model_validate(snapshot.data)

    async def apply(self, participant_id: str, plan: WritePlan) -> ParticipantRecord:
        return await self.update(participant_id, plan.fields, plan.expected)

    async def subscribe(self, participant_id: str) -> AsyncIterator[Optional[ParticipantRecord]]:
        """Yields None while the record does not exist"""
        async for snapshot in self.store.subscribe(PARTICIPANTS, participant_id):
            yield ParticipantRecord.model_validate(snapshot.data) if snapshot.exists else None

    async def subscribe_all(self) -> AsyncIterator[List[ParticipantRecord]]:
        """Initial batch of every record, then one batch per changed record"""
        async for batch in self.store.subscribe_collection(PARTICIPANTS):
            yield [ParticipantRecord.model_validate(s.data) for s in batch if s.exists]
