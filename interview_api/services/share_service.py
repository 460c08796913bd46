"""Read-only report access through an opaque share token.

The token is the capability: no operator login is needed. An unknown token
and a known token whose session has no report yet are indistinguishable to
the caller. Tokens never expire and cannot be revoked.
"""

from __future__ import annotations

from typing import Any, Dict

from interview_api.errors import NotFound
from interview_api.services import audit_service, session_store


def resolve_share_token(token: str) -> Dict[str, Any]:
    """Return the shared report view for ``token`` or raise ``NotFound``."""
    session = session_store.find_by_share_token(token)
    if session is None or not session.get("report"):
        raise NotFound("The requested report does not exist", error="Report not found")

    audit_service.record("report_viewed", "session", session["id"], {"via": "share_link"})

    return {
        "report": session["report"],
        "scoreSummary": session.get("score_summary"),
        "context": {
            "mode": session.get("mode"),
            "role": session.get("role"),
            "level": session.get("level"),
        },
        "shareToken": session["share_token"],
    }
