"""/api/sessions routes driving one candidate's interview."""

from __future__ import annotations

from typing import Any, Dict

from flask import Blueprint, request

from interview_api.errors import InvalidInput
from interview_api.services import navigation, presence_service, session_service
from interview_api.utils.auth import current_operator
from interview_api.utils.responses import api_success

bp = Blueprint("sessions", __name__, url_prefix="/api/sessions")


def _json_body() -> Any:
    """Return the parsed JSON body, or None when it is missing or malformed."""
    return request.get_json(silent=True)


def _json_object() -> Dict[str, Any]:
    """Return the JSON body as a dict; a missing body reads as empty."""
    payload = _json_body()
    if payload is None:
        return {}
    if not isinstance(payload, dict):
        raise InvalidInput("Request body must be a JSON object", error="Invalid JSON")
    return payload


@bp.post("")
def create_session():
    """Create a draft session from the setup form."""
    session = session_service.create_session(_json_body(), operator=current_operator())
    return api_success({"sessionId": session["id"]}, "Session created", 201)


@bp.get("/<session_id>")
def get_session(session_id: str):
    session = session_service.get_session(session_id)
    return api_success(session_service.serialize_session(session))


@bp.post("/<session_id>/start")
def start_interview(session_id: str):
    """Store the generated questions and open the interview."""
    payload = _json_object()
    session, already_started = session_service.start_interview(session_id, payload.get("questions"))

    if already_started:
        return api_success(
            {"alreadyStarted": True, "total": len(session["questions"])},
            "Interview already started",
        )
    return api_success({"alreadyStarted": False, "total": len(session["questions"])}, "Interview started")


@bp.post("/<session_id>/next")
def next_question(session_id: str):
    index = navigation.advance(session_id)
    return api_success({"currentQuestionIndex": index}, "Moved to next question")


@bp.post("/<session_id>/previous")
def previous_question(session_id: str):
    index = navigation.retreat(session_id)
    return api_success({"currentQuestionIndex": index}, "Moved to previous question")


@bp.get("/<session_id>/presence")
def get_presence(session_id: str):
    return api_success({"presence": presence_service.get_presence(session_id)})


@bp.post("/<session_id>/presence")
def record_presence(session_id: str):
    """Merge a photo and/or spoken phrase into the session's presence check."""
    presence = presence_service.record_presence(session_id, _json_body())
    return api_success({"presence": presence}, "Presence recorded")


@bp.post("/<session_id>/activity")
def record_activity(session_id: str):
    """Heartbeat used by the idle-timeout policy."""
    result = session_service.record_activity(session_id)
    if result.get("ignored"):
        return api_success(result, "Activity update ignored (session not active)")
    return api_success(result, "Activity updated")


@bp.post("/<session_id>/tab-switch")
def record_tab_switch(session_id: str):
    payload = _json_object()
    result = session_service.record_tab_switch(session_id, payload.get("type"), payload.get("timestamp"))
    if result.get("ignored"):
        return api_success(result, "Tab switch event ignored (interview not active)")
    return api_success(result, "Tab switch event logged")


@bp.post("/<session_id>/security-event")
def record_security_event(session_id: str):
    payload = _json_object()
    result = session_service.record_security_event(
        session_id,
        payload.get("event"),
        payload.get("timestamp"),
        payload.get("details"),
    )
    if result.get("ignored"):
        return api_success(result, "Security event ignored (interview completed)")
    return api_success(result, "Security event logged")


@bp.post("/<session_id>/report")
def complete_interview(session_id: str):
    """Attach the generated report and return the share token."""
    payload = _json_object()
    session = session_service.complete_interview(
        session_id, payload.get("report"), payload.get("scoreSummary")
    )
    return api_success(
        {
            "status": session["status"],
            "shareToken": session["share_token"],
            "scoreSummary": session.get("score_summary"),
        },
        "Report saved",
    )
