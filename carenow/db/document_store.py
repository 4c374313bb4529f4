"""
Document store over SQLAlchemy.

Collections of JSON documents with get / set (optionally merging) /
update, filtered and ordered queries, version-checked transactions and
live snapshot subscriptions. Snapshot subscribers are woken in-process
after each committed write to their collection.
"""

import asyncio
import logging
import operator
from contextlib import asynccontextmanager
from dataclasses import dataclass, field, replace
from datetime import date, datetime, timezone
from enum import Enum
from typing import Any, AsyncIterator, Awaitable, Callable, Dict, List, Optional, Set, Tuple, TypeVar

from sqlalchemy import func, insert, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from carenow.core.exceptions import ConcurrentModificationError, NotFoundFailure
from carenow.db.models.document import Document

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Fixed width so that stored timestamps sort and compare correctly as strings
TIMESTAMP_FORMAT = "%Y-%m-%dT%H:%M:%S.%fZ"

_COMPARISONS = {
    "==": operator.eq,
    ">=": operator.ge,
    "<=": operator.le,
    ">": operator.gt,
    "<": operator.lt,
}


def encode_value(value: Any) -> Any:
    """Convert a Python value into its stored JSON form"""
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc).strftime(TIMESTAMP_FORMAT)
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, dict):
        return {str(key): encode_value(item) for key, item in value.items()}
    if isinstance(value, (set, frozenset)):
        return [encode_value(item) for item in sorted(value)]
    if isinstance(value, (list, tuple)):
        return [encode_value(item) for item in value]
    return value


def _json_accessor(field_name: str, sample: Any):
    """Pick the typed JSON accessor matching the compared value"""
    element = Document.data[field_name]
    if isinstance(sample, bool):
        return element.as_boolean()
    if isinstance(sample, (int, float)):
        return element.as_float()
    return element.as_string()


@dataclass(frozen=True)
class DocumentSnapshot:
    """A document as read from the store"""
    collection: str
    id: str
    data: Dict[str, Any]
    version: int


@dataclass(frozen=True)
class Query:
    """
    Immutable query over one collection.

    Example:
        Query("partner_jobs").where("partnerId", "==", "p1").order_by("createdAt", descending=True).limit(10)
    """
    collection: str
    filters: Tuple[Tuple[str, str, Any], ...] = field(default_factory=tuple)
    ordering: Tuple[Tuple[str, bool], ...] = field(default_factory=tuple)
    max_results: Optional[int] = None

    def where(self, field_name: str, op: str, value: Any) -> "Query":
        if op != "in" and op not in _COMPARISONS:
            raise ValueError(f"Unsupported query operator: {op}")
        if op == "in":
            value = tuple(value)
        return replace(self, filters=self.filters + ((field_name, op, value),))

    def order_by(self, field_name: str, descending: bool = False) -> "Query":
        return replace(self, ordering=self.ordering + ((field_name, descending),))

    def limit(self, count: int) -> "Query":
        return replace(self, max_results=count)

    def to_statement(self, *columns):
        statement = select(*columns).where(Document.collection == self.collection)

        for field_name, op, value in self.filters:
            if op == "in":
                values = [encode_value(item) for item in value]
                accessor = _json_accessor(field_name, values[0] if values else "")
                statement = statement.where(accessor.in_(values))
            else:
                encoded = encode_value(value)
                statement = statement.where(_COMPARISONS[op](_json_accessor(field_name, encoded), encoded))

        return statement

    def to_select(self):
        statement = self.to_statement(Document.doc_id, Document.data, Document.version)

        for field_name, descending in self.ordering:
            accessor = Document.data[field_name].as_string()
            statement = statement.order_by(accessor.desc() if descending else accessor.asc())
        # Stable ordering between equal keys
        statement = statement.order_by(Document.doc_id.asc())

        if self.max_results is not None:
            statement = statement.limit(self.max_results)
        return statement


class StoreTransaction:
    """
    Reads and writes inside one database transaction.

    Every write is checked against the version read in this transaction,
    so a concurrent writer makes the commit fail with
    ConcurrentModificationError instead of silently losing an update.
    """

    def __init__(self, session: AsyncSession):
        self.session = session
        self.touched: Set[str] = set()
        self._versions: Dict[Tuple[str, str], int] = {}

    async def get(self, collection: str, doc_id: str) -> Optional[DocumentSnapshot]:
        result = await self.session.execute(
            select(Document.data, Document.version).where(
                Document.collection == collection,
                Document.doc_id == doc_id
            )
        )
        row = result.first()
        if row is None:
            self._versions[(collection, doc_id)] = 0
            return None
        self._versions[(collection, doc_id)] = row.version
        return DocumentSnapshot(collection=collection, id=doc_id, data=dict(row.data), version=row.version)

    async def query(self, query: Query) -> List[DocumentSnapshot]:
        result = await self.session.execute(query.to_select())
        return [
            DocumentSnapshot(collection=query.collection, id=row.doc_id, data=dict(row.data), version=row.version)
            for row in result
        ]

    async def count(self, query: Query) -> int:
        result = await self.session.execute(query.to_statement(func.count()))
        return int(result.scalar_one())

    async def set(self, collection: str, doc_id: str, data: Dict[str, Any], merge: bool = False) -> DocumentSnapshot:
        """Create or overwrite a document; with merge, keep fields not present in data"""
        key = (collection, doc_id)
        current = None
        if merge or key not in self._versions:
            current = await self.get(collection, doc_id)
        expected = self._versions[key]

        body = encode_value(data)
        if merge and current is not None:
            body = {**current.data, **body}

        return await self.compare_and_set(collection, doc_id, body, expected)

    async def update(self, collection: str, doc_id: str, fields: Dict[str, Any]) -> DocumentSnapshot:
        """Overwrite the given fields of an existing document"""
        current = await self.get(collection, doc_id)
        if current is None:
            raise NotFoundFailure(f"Document {collection}/{doc_id} not found")
        body = {**current.data, **encode_value(fields)}
        return await self.compare_and_set(collection, doc_id, body, current.version)

    async def compare_and_set(
        self,
        collection: str,
        doc_id: str,
        data: Dict[str, Any],
        expected_version: int
    ) -> DocumentSnapshot:
        """
        Write a document only if its stored version still matches.

        Args:
            expected_version: Version read earlier, 0 when the document must not exist yet

        Raises:
            ConcurrentModificationError: If another writer got there first
        """
        body = encode_value(data)

        if expected_version == 0:
            try:
                await self.session.execute(
                    insert(Document).values(collection=collection, doc_id=doc_id, data=body, version=1)
                )
            except IntegrityError as e:
                raise ConcurrentModificationError(collection, doc_id, expected_version) from e
            new_version = 1
        else:
            result = await self.session.execute(
                update(Document)
                .where(
                    Document.collection == collection,
                    Document.doc_id == doc_id,
                    Document.version == expected_version
                )
                .values(data=body, version=expected_version + 1)
            )
            if result.rowcount != 1:
                raise ConcurrentModificationError(collection, doc_id, expected_version)
            new_version = expected_version + 1

        self._versions[(collection, doc_id)] = new_version
        self.touched.add(collection)
        return DocumentSnapshot(collection=collection, id=doc_id, data=body, version=new_version)


class DocumentStore:
    """Collections of JSON documents persisted through an async session factory"""

    def __init__(self, session_factory: async_sessionmaker, max_attempts: int = 5):
        self._session_factory = session_factory
        self.max_attempts = max_attempts
        self._watchers: Dict[str, Set[asyncio.Queue]] = {}

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[StoreTransaction]:
        """Run reads and writes atomically; subscribers are notified after commit"""
        async with self._session_factory() as session:
            tx = StoreTransaction(session)
            try:
                yield tx
                await session.commit()
            except BaseException:
                await session.rollback()
                raise
        self._notify(tx.touched)

    async def run_transaction(
        self,
        operation: Callable[[StoreTransaction], Awaitable[T]],
        max_attempts: Optional[int] = None
    ) -> T:
        """
        Run an operation in a transaction, retrying it from scratch when a
        version-checked write loses against a concurrent writer.
        """
        attempts = max_attempts or self.max_attempts
        for attempt in range(1, attempts + 1):
            try:
                async with self.transaction() as tx:
                    return await operation(tx)
            except ConcurrentModificationError as e:
                if attempt == attempts:
                    logger.error(f"Giving up after {attempts} attempts: {e}")
                    raise
                logger.warning(f"Retrying transaction (attempt {attempt + 1}/{attempts}): {e}")
                await asyncio.sleep(0)
        raise RuntimeError("unreachable")

    async def get(self, collection: str, doc_id: str) -> Optional[DocumentSnapshot]:
        async with self.transaction() as tx:
            return await tx.get(collection, doc_id)

    async def set(self, collection: str, doc_id: str, data: Dict[str, Any], merge: bool = False) -> DocumentSnapshot:
        return await self.run_transaction(lambda tx: tx.set(collection, doc_id, data, merge=merge))

    async def update(self, collection: str, doc_id: str, fields: Dict[str, Any]) -> DocumentSnapshot:
        return await self.run_transaction(lambda tx: tx.update(collection, doc_id, fields))

    async def query(self, query: Query) -> List[DocumentSnapshot]:
        async with self.transaction() as tx:
            return await tx.query(query)

    async def count(self, query: Query) -> int:
        async with self.transaction() as tx:
            return await tx.count(query)

    async def snapshots(self, query: Query) -> AsyncIterator[List[DocumentSnapshot]]:
        """
        Live query results: the current result set first, then a fresh one
        after every committed write to the collection. Bursts of writes are
        coalesced into one re-read. Close the generator to unsubscribe.
        """
        queue = self._watch(query.collection)
        try:
            yield await self.query(query)
            while True:
                await queue.get()
                yield await self.query(query)
        finally:
            self._unwatch(query.collection, queue)

    async def document_snapshots(self, collection: str, doc_id: str) -> AsyncIterator[Optional[DocumentSnapshot]]:
        """Live view of a single document (None while it does not exist)"""
        queue = self._watch(collection)
        try:
            yield await self.get(collection, doc_id)
            while True:
                await queue.get()
                yield await self.get(collection, doc_id)
        finally:
            self._unwatch(collection, queue)

    def subscriber_count(self, collection: str) -> int:
        return len(self._watchers.get(collection, ()))

    def _watch(self, collection: str) -> asyncio.Queue:
        queue: asyncio.Queue = asyncio.Queue(maxsize=1)
        self._watchers.setdefault(collection, set()).add(queue)
        return queue

    def _unwatch(self, collection: str, queue: asyncio.Queue) -> None:
        watchers = self._watchers.get(collection)
        if watchers is not None:
            watchers.discard(queue)

    def _notify(self, collections: Set[str]) -> None:
        for collection in collections:
            for queue in list(self._watchers.get(collection, ())):
                if queue.empty():
                    queue.put_nowait(None)
