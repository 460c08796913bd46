"""Durable storage for interview sessions with a read-through cache.

Sessions live in MongoDB when it is enabled and in ``storage.sessions``
otherwise. Reads go through ``session_cache``; every write overwrites the
cache entry alongside the durable write. Read-modify-write updates are
serialized per session id, and each mutating call appends one audit entry.
"""

from __future__ import annotations

import copy
import logging
import threading
from contextlib import contextmanager
from typing import Any, Callable, Dict, Iterator, List, Optional, Union

from pymongo.errors import PyMongoError

from interview_api import database, storage
from interview_api.errors import StoreFailure
from interview_api.services import audit_service
from interview_api.services.cache import session_cache
from interview_api.utils.auth import now_millis

_LOGGER = logging.getLogger(__name__)

Session = Dict[str, Any]
Mutator = Callable[[Session], Session]
AuditMetadata = Union[Dict[str, Any], Callable[[Session], Dict[str, Any]], None]

# session id -> [mutex, number of threads holding or waiting on it]
_locks: Dict[str, List[Any]] = {}
_locks_guard = threading.Lock()


@contextmanager
def _session_lock(session_id: str) -> Iterator[None]:
    """Hold the mutex serializing reads and writes of one session id.

    Entries are dropped as soon as no thread holds or waits on them, so the
    registry only grows with the number of ids in flight.
    """
    with _locks_guard:
        entry = _locks.get(session_id)
        if entry is None:
            entry = [threading.Lock(), 0]
            _locks[session_id] = entry
        entry[1] += 1

    try:
        with entry[0]:
            yield
    finally:
        with _locks_guard:
            entry[1] -= 1
            if entry[1] == 0:
                del _locks[session_id]


def _collection():
    return database.get_database().sessions


def _load(session_id: str) -> Optional[Session]:
    """Read a session straight from the durable store, bypassing the cache."""
    if not database.mongodb_enabled():
        record = storage.sessions.get(session_id)
        return copy.deepcopy(record) if record is not None else None

    try:
        return _collection().find_one({"id": session_id}, {"_id": 0})
    except PyMongoError as exc:
        _LOGGER.error("Failed to load session %s", session_id, exc_info=True)
        raise StoreFailure(f"Could not load session {session_id}") from exc


def _save(session: Session, *, insert: bool = False) -> None:
    if not database.mongodb_enabled():
        storage.sessions[session["id"]] = copy.deepcopy(session)
        return

    try:
        if insert:
            # insert_one adds an _id to the document it is given
            _collection().insert_one(copy.deepcopy(session))
        else:
            _collection().replace_one({"id": session["id"]}, copy.deepcopy(session))
    except PyMongoError as exc:
        _LOGGER.error("Failed to write session %s", session["id"], exc_info=True)
        raise StoreFailure(f"Could not save session {session['id']}") from exc


def create(session: Session) -> Session:
    """
    Persist a new session record.

    Args:
        session: Complete session record including its ``id``

    Returns:
        A copy of the stored record
    """
    record = copy.deepcopy(session)
    now = now_millis()
    record.setdefault("created_at", now)
    record["updated_at"] = now

    _save(record, insert=True)
    session_cache.set(record["id"], copy.deepcopy(record))

    audit_service.record(
        "session_created",
        "session",
        record["id"],
        {"mode": record.get("mode"), "status": record.get("status")},
    )
    return copy.deepcopy(record)


def get(session_id: str) -> Optional[Session]:
    """Return a session by id, serving recent reads from the cache."""
    cached = session_cache.get(session_id)
    if cached is not None:
        return copy.deepcopy(cached)

    # Filling the cache under the session lock keeps a slow read from
    # overwriting the entry of an update that committed after it loaded.
    with _session_lock(session_id):
        cached = session_cache.get(session_id)
        if cached is not None:
            return copy.deepcopy(cached)

        record = _load(session_id)
        if record is None:
            return None

        session_cache.set(session_id, copy.deepcopy(record))
    return record


def update(
    session_id: str,
    mutator: Mutator,
    action: str = "session_updated",
    metadata: AuditMetadata = None,
) -> Optional[Session]:
    """
    Atomically apply ``mutator`` to the stored session.

    The mutator receives a private copy of the full current record and must
    return the next record. Updates to the same id are serialized; updates
    to different ids never share a lock. If the mutator raises, nothing is
    written and no audit entry is appended.

    Args:
        session_id: Session to update
        mutator: Function from the current record to the next record
        action: Audit action recorded once the write succeeds
        metadata: Audit details, or a function building them from the
            updated record

    Returns:
        The updated record, or None if the session does not exist
    """
    with _session_lock(session_id):
        current = _load(session_id)
        if current is None:
            session_cache.invalidate(session_id)
            return None

        updated = mutator(copy.deepcopy(current))
        updated["id"] = session_id
        updated["updated_at"] = now_millis()

        session_cache.invalidate(session_id)
        _save(updated)
        session_cache.set(session_id, copy.deepcopy(updated))

        if callable(metadata):
            audit_service.record(action, "session", session_id, lambda: metadata(updated))
        else:
            audit_service.record(action, "session", session_id, metadata)

    return copy.deepcopy(updated)


def find_by_share_token(token: str) -> Optional[Session]:
    """Return the session holding ``token`` as its share token, if any."""
    if not token:
        return None

    if not database.mongodb_enabled():
        # Snapshot first; request threads may insert while we scan
        for record in list(storage.sessions.values()):
            if record.get("share_token") == token:
                return copy.deepcopy(record)
        return None

    try:
        return _collection().find_one({"share_token": token}, {"_id": 0})
    except PyMongoError as exc:
        _LOGGER.error("Failed to look up share token", exc_info=True)
        raise StoreFailure("Could not look up shared report") from exc


def count_by_status() -> Dict[str, int]:
    if not database.mongodb_enabled():
        counts: Dict[str, int] = {}
        for record in list(storage.sessions.values()):
            status = record.get("status", "unknown")
            counts[status] = counts.get(status, 0) + 1
        return counts

    pipeline = [{"$group": {"_id": "$status", "count": {"$sum": 1}}}]
    try:
        return {row["_id"]: row["count"] for row in _collection().aggregate(pipeline)}
    except PyMongoError as exc:
        raise StoreFailure("Could not count sessions") from exc


def create_indexes():
    """Create indexes used by session lookups."""
    collection = _collection()
    collection.create_index("id", unique=True)
    collection.create_index("share_token", sparse=True)
