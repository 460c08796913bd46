"""Bounded forward/backward movement through a session's question list."""

from __future__ import annotations

from interview_api.errors import NotFound, NotStarted
from interview_api.services import session_store


def _step(session_id: str, delta: int, action: str) -> int:
    def mutator(session):
        questions = session.get("questions") or []
        if not questions:
            raise NotStarted()

        index = int(session.get("current_question_index") or 0) + delta
        session["current_question_index"] = max(0, min(index, len(questions) - 1))
        return session

    updated = session_store.update(
        session_id,
        mutator,
        action=action,
        metadata=lambda s: {"new_index": s["current_question_index"]},
    )
    if updated is None:
        raise NotFound("The requested session does not exist", error="Session not found")

    return updated["current_question_index"]


def advance(session_id: str) -> int:
    """Move to the next question, saturating at the last one.

    Raises ``NotFound`` for an unknown session and ``NotStarted`` when the
    interview has no questions yet; neither case writes anything.
    """
    return _step(session_id, 1, "question_advanced")


def retreat(session_id: str) -> int:
    """Move to the previous question, saturating at the first one."""
    return _step(session_id, -1, "question_navigated_back")
