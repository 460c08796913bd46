"""Admin utilities for inspecting sessions, the cache and the audit trail."""

from __future__ import annotations

from flask import Blueprint, current_app, request

from interview_api.errors import Forbidden
from interview_api.services import audit_service, session_store, template_service
from interview_api.services.cache import session_cache
from interview_api.utils.auth import require_operator
from interview_api.utils.responses import api_success

bp = Blueprint("admin", __name__, url_prefix="/api/admin")


def _require_admin():
    operator = require_operator()
    if operator.get("role") != "admin":
        raise Forbidden("Admin role required")
    return operator


@bp.get("/stats")
def get_stats():
    """Get overall system statistics."""
    _require_admin()

    sessions_by_status = session_store.count_by_status()
    stats = {
        "total_sessions": sum(sessions_by_status.values()),
        "sessions_by_status": sessions_by_status,
        "total_templates": template_service.count_templates(),
        "total_audit_entries": audit_service.count_entries(),
        "cached_sessions": len(session_cache),
    }
    return api_success(stats)


@bp.post("/cache/clear")
def clear_cache():
    """Drop every cached session; the next reads go to the durable store."""
    operator = _require_admin()
    cleared = len(session_cache)
    session_cache.clear()
    current_app.logger.info("Session cache cleared by %s (%d entries)", operator["user_email"], cleared)
    return api_success({"cleared": cleared}, "Session cache cleared")


@bp.get("/audit/<entity_id>")
def get_audit_trail(entity_id: str):
    """Return the audit trail of one session or template, oldest first."""
    _require_admin()
    limit = request.args.get("limit", default=100, type=int)
    entries = audit_service.list_entries(entity_id=entity_id, limit=max(1, min(limit, 500)))
    return api_success({"entries": entries}, meta={"count": len(entries)})
