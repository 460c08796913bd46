"""/api/share routes exposing reports to share-link holders."""

from __future__ import annotations

from flask import Blueprint

from interview_api.services import share_service
from interview_api.utils.responses import api_success

bp = Blueprint("share", __name__, url_prefix="/api/share")


@bp.get("/<token>")
def get_shared_report(token: str):
    """Return the read-only report view; no login required."""
    return api_success(share_service.resolve_share_token(token))
