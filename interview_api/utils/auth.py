"""Operator identity, token and clock helpers."""

from __future__ import annotations

import secrets
import time
import uuid
from typing import Any, Dict, Optional

from flask import session as cookie_session

from interview_api.errors import Unauthorized

# Key of the operator identity inside the signed Flask session cookie.
OPERATOR_SESSION_KEY = "college_session"


def now_millis() -> int:
    """Return the current UNIX timestamp in milliseconds."""
    return int(time.time() * 1000)


def generate_id() -> str:
    """Return a fresh opaque identifier for sessions and templates."""
    return str(uuid.uuid4())


def generate_share_token() -> str:
    """Return an unguessable URL-safe capability token for report sharing."""
    return secrets.token_urlsafe(24)


def current_operator() -> Optional[Dict[str, Any]]:
    """Return the operator identity stored by the login flow, if any."""
    identity = cookie_session.get(OPERATOR_SESSION_KEY)
    if not isinstance(identity, dict):
        return None
    if not identity.get("college_id") or not identity.get("user_email"):
        return None
    return identity


def require_operator() -> Dict[str, Any]:
    """Return the operator identity or raise ``Unauthorized``."""
    operator = current_operator()
    if operator is None:
        raise Unauthorized()
    return operator
