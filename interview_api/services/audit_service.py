"""Append-only audit trail of state-changing actions.

Recording is best-effort: a failed write is logged and dropped, never
raised into the operation it documents. Entries are never used to rebuild
session state.
"""

from __future__ import annotations

import copy
import itertools
import logging
import threading
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Union

from interview_api import database, storage

_LOGGER = logging.getLogger(__name__)

Metadata = Union[Dict[str, Any], Callable[[], Dict[str, Any]], None]

# Tie-breaker for entries written within the same clock tick.
_sequence = itertools.count(1)
_sequence_lock = threading.Lock()


def _next_sequence() -> int:
    with _sequence_lock:
        return next(_sequence)


def record(
    action: str,
    entity_type: str,
    entity_id: Optional[str],
    metadata: Metadata = None,
) -> bool:
    """
    Append one audit entry.

    Args:
        action: What happened, e.g. ``question_advanced``
        entity_type: Kind of entity acted on (``session``, ``template``)
        entity_id: Identifier of the entity
        metadata: Optional action-specific details, or a zero-argument
            function building them

    Returns:
        True if the entry was written, False if building or writing it failed
    """
    try:
        details = metadata() if callable(metadata) else metadata
        entry = {
            "action": action,
            "entity_type": entity_type,
            "entity_id": entity_id or "",
            "metadata": copy.deepcopy(details) if details else {},
            "timestamp": datetime.now(timezone.utc),
            "seq": _next_sequence(),
        }

        if database.mongodb_enabled():
            database.get_database().audit_log.insert_one(entry)
        else:
            storage.audit_log.append(entry)
    except Exception:
        _LOGGER.warning(
            "Failed to record audit entry %s for %s %s",
            action,
            entity_type,
            entity_id,
            exc_info=True,
        )
        return False

    return True


def list_entries(
    entity_id: Optional[str] = None,
    entity_type: Optional[str] = None,
    limit: int = 100,
) -> List[Dict[str, Any]]:
    """Return audit entries oldest first, optionally filtered by entity."""
    query: Dict[str, Any] = {}
    if entity_id is not None:
        query["entity_id"] = entity_id
    if entity_type is not None:
        query["entity_type"] = entity_type

    if database.mongodb_enabled():
        collection = database.get_database().audit_log
        entries = list(
            collection.find(query, {"_id": 0})
            .sort([("timestamp", 1), ("seq", 1)])
            .limit(limit)
        )
    else:
        entries = [
            copy.deepcopy(entry)
            for entry in list(storage.audit_log)
            if all(entry.get(key) == value for key, value in query.items())
        ][:limit]

    for entry in entries:
        if isinstance(entry.get("timestamp"), datetime):
            entry["timestamp"] = entry["timestamp"].isoformat()

    return entries


def count_entries() -> int:
    if database.mongodb_enabled():
        return database.get_database().audit_log.count_documents({})
    return len(storage.audit_log)


def create_indexes():
    """Create indexes used by audit trail queries."""
    collection = database.get_database().audit_log
    collection.create_index([("entity_id", 1), ("timestamp", 1), ("seq", 1)])
    collection.create_index("action")
