"""
In-process document store

Two logical collections hold plain dict documents:
- "eventState": singleton keyed "current"
- "participants": keyed by participant id

Operations:
- get: point read (deep copy)
- create: write a new document only if the key is absent
- update: field-level merge, optionally guarded by expected field values
- subscribe / subscribe_collection: snapshot + delta streams

Every committed write bumps the document version and is pushed to each
subscriber queue in commit order. Writes to one document are serialized
by a per-document asyncio.Lock; there is no cross-document transaction.
"""
import asyncio
import copy
import logging
from dataclasses import dataclass
from typing import Any, AsyncIterator, Dict, List, Optional, Set, Tuple

from arena.core.exceptions import StaleWriteConflict, TransportError


logger = logging.getLogger(__name__)

EVENT_STATE = "eventState"
PARTICIPANTS = "participants"
CURRENT = "current"

_CLOSED = object()


@dataclass(frozen=True)
class Snapshot:
    """Immutable view of one document at one version (data is None if absent)"""
    collection: str
    key: str
    version: int
    data: Optional[Dict[str, Any]]

    @property
    def exists(self) -> bool:
        return self.data is not None


class DocumentStore:
    """Async document store with live subscriptions"""

    def __init__(self):
        self._docs: Dict[str, Dict[str, Dict[str, Any]]] = {EVENT_STATE: {}, PARTICIPANTS: {}}
        self._versions: Dict[Tuple[str, str], int] = {}
        self._locks: Dict[Tuple[str, str], asyncio.Lock] = {}
        self._doc_subscribers: Dict[Tuple[str, str], Set[asyncio.Queue]] = {}
        self._collection_subscribers: Dict[str, Set[asyncio.Queue]] = {}
        self._closed = False

    # ==================== INTERNALS ====================

    def _check_open(self) -> None:
        if self._closed:
            raise TransportError("Document store is unavailable")

    def _collection(self, collection: str) -> Dict[str, Dict[str, Any]]:
        if collection not in self._docs:
            raise KeyError(f"Unknown collection: {collection}")
        return self._docs[collection]

    def _lock(self, collection: str, key: str) -> asyncio.Lock:
        return self._locks.setdefault((collection, key), asyncio.Lock())

    def _snapshot(self, collection: str, key: str) -> Snapshot:
        data = self._collection(collection).get(key)
        return Snapshot(
            collection=collection,
            key=key,
            version=self._versions.get((collection, key), 0),
            data=copy.deepcopy(data) if data is not None else None,
        )

    def _publish(self, collection: str, key: str) -> None:
        snapshot = self._snapshot(collection, key)
        queues = list(self._doc_subscribers.get((collection, key), ()))
        queues += list(self._collection_subscribers.get(collection, ()))
        for queue in queues:
            queue.put_nowait(snapshot)

    # ==================== READ / WRITE ====================

    async def get(self, collection: str, key: str) -> Snapshot:
        """Point read of the latest committed version"""
        self._check_open()
        async with self._lock(collection, key):
            return self._snapshot(collection, key)

    async def list_documents(self, collection: str) -> List[Snapshot]:
        """Snapshots of every document in a collection"""
        self._check_open()
        return [self._snapshot(collection, key) for key in list(self._collection(collection))]

    async def create(self, collection: str, key: str, data: Dict[str, Any]) -> bool:
        """
        Create a document if absent

        Returns:
            True if the document was created, False if it already existed
        """
        self._check_open()
        async with self._lock(collection, key):
            docs = self._collection(collection)
            if key in docs:
                return False
            docs[key] = copy.deepcopy(data)
            self._versions[(collection, key)] = self._versions.get((collection, key), 0) + 1
            self._publish(collection, key)
            return True

    async def update(
        self,
        collection: str,
        key: str,
        fields: Dict[str, Any],
        expected: Optional[Dict[str, Any]] = None,
    ) -> Snapshot:
        """
        Merge fields into an existing document

        Args:
            collection: Collection name
            key: Document key
            fields: Fields to overwrite (others untouched)
            expected: Field values that must still hold at commit time

        Returns:
            Snapshot after the write

        Raises:
            KeyError: document does not exist
            StaleWriteConflict: an expected value no longer matches
        """
        self._check_open()
        async with self._lock(collection, key):
            docs = self._collection(collection)
            if key not in docs:
                raise KeyError(f"{collection}/{key} does not exist")
            doc = docs[key]

            for field, value in (expected or {}).items():
                actual = doc.get(field)
                if actual != value:
                    raise StaleWriteConflict(
                        f"{collection}/{key}: {field} is {actual!r}, expected {value!r}",
                        field=field,
                        expected=value,
                        actual=actual,
                    )

            doc.update(copy.deepcopy(fields))
            self._versions[(collection, key)] += 1
            self._publish(collection, key)
            return self._snapshot(collection, key)

    # ==================== SUBSCRIPTIONS ====================

    async def subscribe(self, collection: str, key: str) -> AsyncIterator[Snapshot]:
        """
        Stream a document: the current snapshot first, then one per commit

        Raises TransportError when the store is closed under the subscriber.
        """
        self._check_open()
        queue: asyncio.Queue = asyncio.Queue()
        subscribers = self._doc_subscribers.setdefault((collection, key), set())
        subscribers.add(queue)
        logger.debug(f"Subscribed to {collection}/{key}")
        try:
            yield self._snapshot(collection, key)
            while True:
                item = await queue.get()
                if item is _CLOSED:
                    raise TransportError("Document store closed")
                yield item
        finally:
            subscribers.discard(queue)
            logger.debug(f"Unsubscribed from {collection}/{key}")

    async def subscribe_collection(self, collection: str) -> AsyncIterator[List[Snapshot]]:
        """
        Stream a collection as batches

        The first batch holds every existing document; each later batch
        holds the single document a commit changed. Order is preserved per
        document; documents interleave arbitrarily.
        """
        self._check_open()
        initial = [self._snapshot(collection, key) for key in list(self._collection(collection))]
        queue: asyncio.Queue = asyncio.Queue()
        subscribers = self._collection_subscribers.setdefault(collection, set())
        subscribers.add(queue)
        try:
            yield initial
            while True:
                item = await queue.get()
                if item is _CLOSED:
                    raise TransportError("Document store closed")
                yield [item]
        finally:
            subscribers.discard(queue)

    def close(self) -> None:
        """Mark the store unavailable and wake every subscriber"""
        self._closed = True
        for queues in list(self._doc_subscribers.values()) + list(self._collection_subscribers.values()):
            for queue in list(queues):
                queue.put_nowait(_CLOSED)
        logger.info("🛑 Document store closed")
