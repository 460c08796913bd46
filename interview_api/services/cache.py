"""Short-lived read-through cache for session records.

The cache is process-wide and advisory: the durable store is always the
source of truth, so clearing it only costs extra store reads. In a
multi-instance deployment each process keeps its own best-effort copy.
"""

from __future__ import annotations

import logging
import os
import time
from typing import Any, Callable, Dict, Optional, Tuple

_LOGGER = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 5.0
DEFAULT_MAX_ENTRIES = 100


class SessionCache:
    """Map of session id to ``(data, inserted_at)`` with a fixed TTL."""

    def __init__(
        self,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        max_entries: int = DEFAULT_MAX_ENTRIES,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.ttl_seconds = ttl_seconds
        self.max_entries = max_entries
        self._clock = clock
        self._entries: Dict[str, Tuple[Any, float]] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def get(self, session_id: str) -> Optional[Any]:
        """Return the cached value, or None once the entry is older than the TTL."""
        cached = self._entries.get(session_id)
        if cached is None:
            return None

        data, inserted_at = cached
        if self._clock() - inserted_at > self.ttl_seconds:
            self._entries.pop(session_id, None)
            return None
        return data

    def set(self, session_id: str, data: Any) -> None:
        """Overwrite the entry and sweep stale ones when the map grows too large."""
        self._entries[session_id] = (data, self._clock())

        if len(self._entries) > self.max_entries:
            self._sweep()

    def invalidate(self, session_id: str) -> None:
        self._entries.pop(session_id, None)

    def clear(self) -> None:
        self._entries.clear()

    def _sweep(self) -> None:
        now = self._clock()
        cutoff = self.ttl_seconds * 2
        removed = 0
        for key, (_, inserted_at) in list(self._entries.items()):
            if now - inserted_at > cutoff:
                self._entries.pop(key, None)
                removed += 1
        _LOGGER.debug("Session cache sweep removed %d entries", removed)


def _build_default_cache() -> SessionCache:
    ttl = float(os.getenv("SESSION_CACHE_TTL_SECONDS", DEFAULT_TTL_SECONDS))
    max_entries = int(os.getenv("SESSION_CACHE_MAX_ENTRIES", DEFAULT_MAX_ENTRIES))
    return SessionCache(ttl_seconds=ttl, max_entries=max_entries)


# Initialized once per process; cleared only by admin action or TTL eviction.
session_cache = _build_default_cache()
