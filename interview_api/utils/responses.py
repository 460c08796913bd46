"""Standard JSON envelopes returned by every API route."""

from __future__ import annotations

from typing import Any, Dict, Optional

from flask import jsonify


def api_success(
    data: Any,
    message: Optional[str] = None,
    status: int = 200,
    meta: Optional[Dict[str, Any]] = None,
):
    """Return ``{"success": true, "data": ...}`` with the given status."""
    body: Dict[str, Any] = {"success": True, "data": data}
    if message:
        body["message"] = message
    if meta:
        body["meta"] = meta
    return jsonify(body), status


def api_error(
    error: str,
    message: Optional[str] = None,
    status: int = 500,
    details: Optional[Any] = None,
):
    """Return ``{"success": false, "error": ...}`` with the given status."""
    body: Dict[str, Any] = {"success": False, "error": error}
    if message:
        body["message"] = message
    if details:
        body["details"] = details
    return jsonify(body), status
