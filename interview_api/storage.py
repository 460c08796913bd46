"""In-memory data stores used when MongoDB is disabled."""

from typing import Any, Dict, List

# Interview sessions keyed by session id.
sessions: Dict[str, Dict[str, Any]] = {}

# College job templates keyed by template id.
templates: Dict[str, Dict[str, Any]] = {}

# Append-only audit trail, oldest first.
audit_log: List[Dict[str, Any]] = []


def reset() -> None:
    """Drop every in-memory record (administrative use and tests)."""
    sessions.clear()
    templates.clear()
    audit_log.clear()
