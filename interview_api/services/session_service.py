"""Interview session lifecycle: draft -> in_progress -> completed.

Questions and reports come from external generators and are handed in as
plain data. Every change goes through ``session_store.update`` so it is
serialized per session and leaves one audit entry.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Tuple

from interview_api.errors import InvalidInput, InvalidTransition, NotFound
from interview_api.services import session_store, template_service
from interview_api.services.presence_service import DEFAULT_PHRASE_PROMPT, serialize_presence
from interview_api.utils.auth import generate_id, generate_share_token, now_millis
from interview_api.utils.text import sanitize_text

MODES = ("individual", "company", "college")
LEVELS = ("junior", "mid", "senior")

STATUS_DRAFT = "draft"
STATUS_IN_PROGRESS = "in_progress"
STATUS_COMPLETED = "completed"

MIN_RESUME_LENGTH = 50
MIN_JD_LENGTH = 50
MAX_QUESTIONS = 25
MAX_SECURITY_EVENTS = 100

TAB_EVENT_TYPES = ("blur", "focus")
CRITICAL_SECURITY_EVENTS = (
    "devtools_detected",
    "screenshot_attempt",
    "clipboard_write_attempt",
    "keyboard_shortcut_blocked",
)


class _Unchanged(Exception):
    """Raised inside a mutator to abort the write and keep the stored record."""

    def __init__(self, session: Dict[str, Any]):
        super().__init__("unchanged")
        self.session = session


def _not_found() -> NotFound:
    return NotFound("The requested session does not exist", error="Session not found")


def empty_score_summary() -> Dict[str, Any]:
    return {
        "countEvaluated": 0,
        "avg": {"technical": 0, "communication": 0, "problemSolving": 0, "overall": 0},
    }


def _require_text(payload: Dict[str, Any], key: str, minimum: int, label: str) -> str:
    value = str(payload.get(key) or "").strip()
    if len(value) < minimum:
        raise InvalidInput(f"{label} is required (min {minimum} chars)", error="Validation failed")
    return sanitize_text(value)


def create_session(payload: Any, operator: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """
    Validate a setup request and store a new draft session.

    Args:
        payload: Parsed request body
        operator: Authenticated operator creating the session, if any

    Returns:
        The stored session record
    """
    if not isinstance(payload, dict):
        raise InvalidInput("Request body must be valid JSON", error="Invalid JSON")

    mode = payload.get("mode")
    if mode not in MODES:
        raise InvalidInput("Mode must be one of: " + ", ".join(MODES), error="Invalid mode")

    resume_text = _require_text(payload, "resumeText", MIN_RESUME_LENGTH, "Resume text")

    role = sanitize_text(str(payload.get("role") or "").strip()) or None
    level = payload.get("level") or None
    if level is not None and level not in LEVELS:
        raise InvalidInput("Level must be one of: " + ", ".join(LEVELS), error="Validation failed")

    job_setup: Optional[Dict[str, Any]] = None
    jd_text: Optional[str] = None
    college_id = operator.get("college_id") if operator else None
    template_id = None

    if mode == "individual":
        if not role:
            raise InvalidInput("Role is required for individual mode", error="Validation failed")
        if not level:
            raise InvalidInput("Level is required for individual mode", error="Validation failed")

    elif mode == "company":
        setup = payload.get("jobSetup") if isinstance(payload.get("jobSetup"), dict) else {}
        source = setup if setup.get("jdText") else payload
        jd_text = _require_text(source, "jdText", MIN_JD_LENGTH, "Job description")
        top_skills = template_service.normalize_skills(setup.get("topSkills"))
        if not top_skills:
            raise InvalidInput("At least one skill is required for company mode", error="Validation failed")
        job_setup = {"jdText": jd_text, "topSkills": top_skills}
        if setup.get("config") is not None:
            job_setup["config"] = template_service.validate_config(setup["config"])

    else:
        template_id = payload.get("collegeJobTemplateId")
        if not template_id:
            raise InvalidInput("collegeJobTemplateId is required for college mode", error="Validation failed")
        template = template_service.load_template(str(template_id))
        if template is None:
            raise NotFound("The requested template does not exist", error="Template not found")
        jd_text = template["jd_text"]
        college_id = template.get("college_id") or college_id
        job_setup = {
            "jdText": jd_text,
            "topSkills": list(template.get("top_skills") or []),
            "config": dict(template.get("config") or {}),
        }

    session = {
        "id": generate_id(),
        "mode": mode,
        "role": role,
        "level": level,
        "status": STATUS_DRAFT,
        "resume_text": resume_text,
        "jd_text": jd_text,
        "job_setup": job_setup,
        "college_job_template_id": template_id,
        "college_id": college_id,
        "created_by": operator.get("user_email") if operator else None,
        "candidate_email": sanitize_text(str(payload.get("candidateEmail") or "")) or None,
        "candidate_name": sanitize_text(str(payload.get("candidateName") or "")) or None,
        "questions": [],
        "current_question_index": 0,
        "answers": [],
        "score_summary": empty_score_summary(),
        "report": None,
        "share_token": None,
        "presence": {"phrase_prompt": DEFAULT_PHRASE_PROMPT},
        "tab_switch_count": 0,
        "tab_switch_events": [],
        "security_events": [],
        "last_activity_at": None,
        "started_at": None,
        "completed_at": None,
    }
    return session_store.create(session)


def get_session(session_id: str) -> Dict[str, Any]:
    session = session_store.get(session_id)
    if session is None:
        raise _not_found()
    return session


def serialize_session(session: Dict[str, Any]) -> Dict[str, Any]:
    """Public projection returned to the interview client."""
    questions = session.get("questions") or []
    index = session.get("current_question_index", 0)
    current_question = questions[index] if 0 <= index < len(questions) else None

    return {
        "session": {
            "id": session["id"],
            "mode": session.get("mode"),
            "role": session.get("role"),
            "level": session.get("level"),
            "status": session.get("status"),
            "currentQuestionIndex": index,
            "totalQuestions": len(questions),
        },
        "currentQuestion": current_question,
        "scoreSummary": session.get("score_summary"),
        "presence": serialize_presence(session.get("presence")),
    }


def normalize_questions(raw_questions: Any) -> List[Dict[str, Any]]:
    """Validate generator output and assign default ids ``q1..qn``."""
    if not isinstance(raw_questions, list) or not raw_questions:
        raise InvalidInput("questions must be a non-empty list", error="Validation failed")
    if len(raw_questions) > MAX_QUESTIONS:
        raise InvalidInput(f"At most {MAX_QUESTIONS} questions are allowed", error="Validation failed")

    questions = []
    for position, raw in enumerate(raw_questions, start=1):
        if not isinstance(raw, dict) or not str(raw.get("text") or "").strip():
            raise InvalidInput(f"Question {position} has no text", error="Validation failed")
        question = dict(raw)
        question["id"] = str(raw.get("id") or f"q{position}")
        question["text"] = sanitize_text(str(raw["text"]))
        questions.append(question)
    return questions


def start_interview(session_id: str, raw_questions: Any) -> Tuple[Dict[str, Any], bool]:
    """
    Move a draft session to ``in_progress`` with the generated questions.

    Returns:
        ``(session, already_started)``; starting twice is a no-op
    """
    questions = normalize_questions(raw_questions)
    now = now_millis()

    def mutator(session):
        if session.get("questions"):
            raise _Unchanged(session)
        if session.get("status") == STATUS_COMPLETED:
            raise InvalidTransition("Interview is already completed", session.get("status"))

        session["questions"] = questions
        session["current_question_index"] = 0
        session["status"] = STATUS_IN_PROGRESS
        session["started_at"] = now
        session["last_activity_at"] = now
        return session

    try:
        updated = session_store.update(
            session_id,
            mutator,
            action="interview_started",
            metadata={"question_count": len(questions)},
        )
    except _Unchanged as unchanged:
        return unchanged.session, True

    if updated is None:
        raise _not_found()
    return updated, False


def complete_interview(session_id: str, report: Any, score_summary: Any = None) -> Dict[str, Any]:
    """Attach the generated report, mark the session completed and mint a share token."""
    if not isinstance(report, dict) or not report:
        raise InvalidInput("report must be a non-empty object", error="Validation failed")
    if score_summary is not None and not isinstance(score_summary, dict):
        raise InvalidInput("scoreSummary must be an object", error="Validation failed")

    now = now_millis()

    def mutator(session):
        status = session.get("status")
        if status == STATUS_DRAFT or not session.get("questions"):
            raise InvalidTransition("Interview has not been started", status)

        session["report"] = report
        if score_summary is not None:
            session["score_summary"] = score_summary
        session["status"] = STATUS_COMPLETED
        session["completed_at"] = session.get("completed_at") or now
        if not session.get("share_token"):
            session["share_token"] = generate_share_token()
        return session

    updated = session_store.update(
        session_id,
        mutator,
        action="report_generated",
        metadata=lambda s: {"recommendation": s["report"].get("recommendation")},
    )
    if updated is None:
        raise _not_found()
    return updated


def record_activity(session_id: str) -> Dict[str, Any]:
    """Refresh ``last_activity_at`` for an active session; other statuses are ignored."""
    now = now_millis()

    def mutator(session):
        if session.get("status") != STATUS_IN_PROGRESS:
            raise _Unchanged(session)
        session["last_activity_at"] = now
        return session

    try:
        updated = session_store.update(session_id, mutator, action="activity_recorded")
    except _Unchanged:
        return {"ignored": True}

    if updated is None:
        raise _not_found()
    return {"lastActivityAt": updated["last_activity_at"]}


def tab_switch_warning(blur_count: int) -> Optional[str]:
    if blur_count > 5:
        return "Excessive tab switching detected. Interview may be flagged."
    if blur_count > 3:
        return "Multiple tab switches detected. Please stay focused."
    return None


def record_tab_switch(session_id: str, event_type: Any, timestamp: Any = None) -> Dict[str, Any]:
    """Log a focus change during an active interview and return the blur count."""
    if event_type not in TAB_EVENT_TYPES:
        raise InvalidInput("Event type must be 'blur' or 'focus'", error="Invalid event type")
    event = {"timestamp": timestamp or now_millis(), "type": event_type}

    def mutator(session):
        if session.get("status") != STATUS_IN_PROGRESS:
            raise _Unchanged(session)
        events = list(session.get("tab_switch_events") or [])
        events.append(event)
        session["tab_switch_events"] = events
        session["tab_switch_count"] = sum(1 for e in events if e["type"] == "blur")
        return session

    try:
        updated = session_store.update(
            session_id,
            mutator,
            action="tab_switch",
            metadata=lambda s: {
                "event_type": event_type,
                "total_blur_count": s["tab_switch_count"],
                "timestamp": event["timestamp"],
            },
        )
    except _Unchanged:
        return {"ignored": True}

    if updated is None:
        raise _not_found()

    blur_count = updated["tab_switch_count"]
    return {"tabSwitchCount": blur_count, "warning": tab_switch_warning(blur_count)}


def record_security_event(
    session_id: str,
    event_name: Any,
    timestamp: Any = None,
    details: Any = None,
) -> Dict[str, Any]:
    """Keep the last security events raised by the client monitor."""
    if not event_name or not isinstance(event_name, str):
        raise InvalidInput("Event type is required and must be a string")
    event = {
        "event": event_name,
        "timestamp": timestamp or now_millis(),
        "details": details if isinstance(details, dict) else {},
    }

    def mutator(session):
        if session.get("status") == STATUS_COMPLETED:
            raise _Unchanged(session)
        events = list(session.get("security_events") or [])
        events.append(event)
        session["security_events"] = events[-MAX_SECURITY_EVENTS:]
        return session

    try:
        updated = session_store.update(
            session_id,
            mutator,
            action="security_event",
            metadata={
                "event_type": event_name,
                "critical": event_name in CRITICAL_SECURITY_EVENTS,
                "timestamp": event["timestamp"],
                "details": event["details"],
            },
        )
    except _Unchanged:
        return {"ignored": True}

    if updated is None:
        raise _not_found()
    return {"eventLogged": True, "totalEvents": len(updated["security_events"])}
