from __future__ import annotations

import copy
import itertools
import logging
import secrets
import string
import threading
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Mapping, TypeVar

from ..errors import InvalidArgument, NotFound, TransactionFailed
from .config import DEFAULT_STORE_CONFIG, StoreConfig
from .query import Query

logger = logging.getLogger(__name__)

T = TypeVar("T")

_ID_ALPHABET = string.ascii_letters + string.digits

Unsubscribe = Callable[[], None]


class _ServerTimestamp:
    def __repr__(self) -> str:
        return "SERVER_TIMESTAMP"


SERVER_TIMESTAMP = _ServerTimestamp()
"""Placeholder replaced by the commit time when a write is applied."""


class _Conflict(Exception):
    pass


@dataclass(frozen=True)
class DocumentRef:
    collection: str
    id: str

    @property
    def path(self) -> str:
        return f"{self.collection}/{self.id}"

    def subcollection(self, name: str) -> str:
        """Return the path of a collection nested under this document."""
        return f"{self.path}/{name}"


@dataclass(frozen=True)
class DocumentSnapshot:
    ref: DocumentRef
    data: dict[str, Any] | None
    version: int = 0

    @property
    def id(self) -> str:
        return self.ref.id

    @property
    def exists(self) -> bool:
        return self.data is not None

    def get(self, field_name: str, default: Any = None) -> Any:
        if self.data is None:
            return default
        return self.data.get(field_name, default)

    def to_dict(self) -> dict[str, Any] | None:
        """Return the document fields plus its ``id``, or None if it does not exist."""
        if self.data is None:
            return None
        return {"id": self.id, **copy.deepcopy(self.data)}


@dataclass
class _Stored:
    data: dict[str, Any]
    version: int


class _Listener:
    """
    A registered callback plus the commit sequence of the last state it saw.

    Payloads are computed under the store lock but delivered after it is
    released, so deliveries from different threads can arrive out of order.
    A payload older than the last one delivered is dropped.
    """

    def __init__(self, target: Any, callback: Callable[[Any], None]) -> None:
        self.target = target
        self.callback = callback
        self.active = True
        self._delivered = -1
        self._lock = threading.RLock()

    def deliver(self, sequence: int, payload: Any) -> None:
        with self._lock:
            if not self.active or sequence <= self._delivered:
                return
            self._delivered = sequence
            self.callback(payload)

    def cancel(self) -> None:
        with self._lock:
            self.active = False


def _resolve(data: Mapping[str, Any], now: datetime) -> dict[str, Any]:
    resolved: dict[str, Any] = {}
    for key, value in data.items():
        if value is SERVER_TIMESTAMP:
            resolved[key] = now
        elif isinstance(value, Mapping):
            resolved[key] = _resolve(value, now)
        else:
            resolved[key] = copy.deepcopy(value)
    return resolved


class Transaction:
    """
    One attempt of a transaction body.

    Reads go straight to the store and remember the version they saw.
    Writes are buffered and only applied if every document read is still at
    that version when the attempt commits.
    """

    def __init__(self, store: DocumentStore) -> None:
        self._store = store
        self._reads: dict[DocumentRef, int] = {}
        self._writes: list[tuple[str, DocumentRef, dict[str, Any]]] = []

    def get(self, ref: DocumentRef) -> DocumentSnapshot:
        if self._writes:
            raise InvalidArgument("all reads must happen before any writes in a transaction")
        snapshot = self._store.get(ref)
        # The first read of a document is the one validated at commit.
        self._reads.setdefault(ref, snapshot.version)
        return snapshot

    def set(self, ref: DocumentRef, data: Mapping[str, Any]) -> None:
        self._writes.append(("set", ref, dict(data)))

    def update(self, ref: DocumentRef, fields: Mapping[str, Any]) -> None:
        self._writes.append(("update", ref, dict(fields)))


class DocumentStore:
    """Thread-safe in-memory document database."""

    def __init__(self, config: StoreConfig = DEFAULT_STORE_CONFIG) -> None:
        self.config = config
        self._lock = threading.RLock()
        self._collections: dict[str, dict[str, _Stored]] = {}
        self._query_listeners: dict[int, _Listener] = {}
        self._document_listeners: dict[int, _Listener] = {}
        self._listener_ids = itertools.count(1)
        self._sequence = 0
        self._last_commit_at = datetime.min.replace(tzinfo=timezone.utc)

    # ── Addressing ───────────────────────────────────────────────────────

    def document(self, collection: str, doc_id: str | None = None) -> DocumentRef:
        """Return a reference into ``collection``, generating an id if none is given."""
        if doc_id is None:
            doc_id = "".join(secrets.choice(_ID_ALPHABET) for _ in range(self.config.id_length))
        return DocumentRef(collection, doc_id)

    # ── Reads ────────────────────────────────────────────────────────────

    def get(self, ref: DocumentRef) -> DocumentSnapshot:
        with self._lock:
            return self._snapshot(ref)

    def run_query(self, query: Query) -> list[DocumentSnapshot]:
        with self._lock:
            return self._run_query(query)

    # ── Writes ───────────────────────────────────────────────────────────

    def add(self, collection: str, data: Mapping[str, Any]) -> DocumentRef:
        ref = self.document(collection)
        self.set(ref, data)
        return ref

    def set(self, ref: DocumentRef, data: Mapping[str, Any]) -> None:
        self._commit({}, [("set", ref, dict(data))])

    def update(self, ref: DocumentRef, fields: Mapping[str, Any]) -> None:
        self._commit({}, [("update", ref, dict(fields))])

    def run_transaction(
        self,
        fn: Callable[[Transaction], T],
        max_attempts: int | None = None,
    ) -> T:
        """
        Run ``fn`` inside a transaction and commit its writes atomically.

        If another writer changed a document ``fn`` read before the commit,
        the whole body is run again with a fresh transaction. ``fn`` must
        therefore have no side effects outside the transaction it is given.
        Exceptions raised by ``fn`` abort the attempt and propagate as is.
        """
        attempts = max_attempts or self.config.max_attempts
        for attempt in range(1, attempts + 1):
            transaction = Transaction(self)
            result = fn(transaction)
            try:
                self._commit(transaction._reads, transaction._writes)
            except _Conflict as exc:
                logger.debug(
                    "Transaction conflict on %s (attempt %d/%d)", exc, attempt, attempts
                )
                continue
            return result
        raise TransactionFailed(f"transaction did not commit after {attempts} attempts")

    # ── Realtime listeners ───────────────────────────────────────────────

    def on_snapshot(
        self,
        query: Query,
        callback: Callable[[list[DocumentSnapshot]], None],
    ) -> Unsubscribe:
        """Call ``callback`` with the query results now and after every write to its collection."""
        listener = _Listener(query, callback)
        with self._lock:
            listener_id = next(self._listener_ids)
            self._query_listeners[listener_id] = listener
            sequence, initial = self._sequence, self._run_query(query)
        listener.deliver(sequence, initial)

        def unsubscribe() -> None:
            with self._lock:
                self._query_listeners.pop(listener_id, None)
            listener.cancel()

        return unsubscribe

    def on_document_snapshot(
        self,
        ref: DocumentRef,
        callback: Callable[[DocumentSnapshot], None],
    ) -> Unsubscribe:
        """Call ``callback`` with the document now and after every write to it."""
        listener = _Listener(ref, callback)
        with self._lock:
            listener_id = next(self._listener_ids)
            self._document_listeners[listener_id] = listener
            sequence, initial = self._sequence, self._snapshot(ref)
        listener.deliver(sequence, initial)

        def unsubscribe() -> None:
            with self._lock:
                self._document_listeners.pop(listener_id, None)
            listener.cancel()

        return unsubscribe

    # ── Internals ────────────────────────────────────────────────────────

    def _snapshot(self, ref: DocumentRef) -> DocumentSnapshot:
        stored = self._collections.get(ref.collection, {}).get(ref.id)
        if stored is None:
            return DocumentSnapshot(ref, None, 0)
        return DocumentSnapshot(ref, copy.deepcopy(stored.data), stored.version)

    def _run_query(self, query: Query) -> list[DocumentSnapshot]:
        docs = self._collections.get(query.collection, {})
        rows = query.apply((doc_id, stored.data) for doc_id, stored in docs.items())
        return [
            DocumentSnapshot(
                DocumentRef(query.collection, doc_id),
                copy.deepcopy(data),
                docs[doc_id].version,
            )
            for doc_id, data in rows
        ]

    def _commit(
        self,
        reads: Mapping[DocumentRef, int],
        writes: list[tuple[str, DocumentRef, dict[str, Any]]],
    ) -> None:
        with self._lock:
            for ref, version in reads.items():
                stored = self._collections.get(ref.collection, {}).get(ref.id)
                if (stored.version if stored else 0) != version:
                    raise _Conflict(ref.path)

            # Commit times strictly increase so server timestamps order like commits.
            now = max(datetime.now(timezone.utc), self._last_commit_at + timedelta(microseconds=1))
            self._last_commit_at = now
            staged: dict[DocumentRef, dict[str, Any]] = {}
            for op, ref, data in writes:
                if ref in staged:
                    current = staged[ref]
                else:
                    stored = self._collections.get(ref.collection, {}).get(ref.id)
                    current = stored.data if stored else None
                resolved = _resolve(data, now)
                if op == "update":
                    if current is None:
                        raise NotFound(f"no document to update at {ref.path}")
                    staged[ref] = {**current, **resolved}
                else:
                    staged[ref] = resolved

            for ref, data in staged.items():
                docs = self._collections.setdefault(ref.collection, {})
                previous = docs.get(ref.id)
                docs[ref.id] = _Stored(data, (previous.version if previous else 0) + 1)

            self._sequence += 1
            sequence = self._sequence
            notifications = self._collect_notifications(staged)

        for listener, payload in notifications:
            try:
                listener.deliver(sequence, payload)
            except Exception:
                logger.exception("Snapshot listener raised; keeping the committed write")

    def _collect_notifications(
        self, staged: Mapping[DocumentRef, Any]
    ) -> list[tuple[_Listener, Any]]:
        touched = {ref.collection for ref in staged}
        notifications: list[tuple[_Listener, Any]] = []
        for listener in self._query_listeners.values():
            if listener.target.collection in touched:
                notifications.append((listener, self._run_query(listener.target)))
        for listener in self._document_listeners.values():
            if listener.target in staged:
                notifications.append((listener, self._snapshot(listener.target)))
        return notifications
