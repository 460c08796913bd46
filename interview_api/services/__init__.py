"""Service layer modules for the interview session API."""

from . import (
    audit_service,
    cache,
    navigation,
    presence_service,
    session_service,
    session_store,
    share_service,
    template_service,
)

__all__ = [
    "audit_service",
    "cache",
    "navigation",
    "presence_service",
    "session_service",
    "session_store",
    "share_service",
    "template_service",
]
