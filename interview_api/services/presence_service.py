"""Liveness evidence (photo and spoken phrase) collected during a session.

Evidence accumulates field by field: a call that omits a field keeps the
stored value, so a photo and a phrase captured in separate calls converge
to one complete record in either order.
"""

from __future__ import annotations

from typing import Any, Dict, Optional, Tuple

from interview_api.errors import InvalidInput, NotFound
from interview_api.services import session_store
from interview_api.utils.auth import now_millis
from interview_api.utils.text import clamp_text, sanitize_text

PHOTO_MAX_LENGTH = 1_600_000  # ~1.5 MB of encoded data URL
TRANSCRIPT_MAX_LENGTH = 200
DEFAULT_PHRASE_PROMPT = "I confirm this interview response is my own."


def parse_presence_payload(payload: Any) -> Tuple[Optional[str], Optional[str]]:
    """Validate a presence request body and return ``(photo, transcript)``.

    Empty or missing fields come back as None, meaning "keep what is stored".
    """
    if not isinstance(payload, dict):
        raise InvalidInput("Request body must be a JSON object", error="Invalid JSON")

    photo = payload.get("photoDataUrl")
    if photo is not None and not isinstance(photo, str):
        raise InvalidInput("photoDataUrl must be a string")
    if photo and len(photo) > PHOTO_MAX_LENGTH:
        raise InvalidInput(
            "Photo is too large",
            details={"maxLength": PHOTO_MAX_LENGTH},
        )

    transcript = payload.get("phraseTranscript")
    if transcript is not None:
        transcript = sanitize_text(clamp_text(transcript, TRANSCRIPT_MAX_LENGTH))

    return photo or None, transcript or None


def merge_presence(
    existing: Optional[Dict[str, Any]],
    photo: Optional[str],
    transcript: Optional[str],
    now: int,
) -> Dict[str, Any]:
    """Return the presence record after folding in newly supplied evidence."""
    presence = dict(existing or {})

    if photo:
        presence["photo_data_url"] = photo
    if transcript:
        presence["phrase_transcript"] = transcript
    if not presence.get("phrase_prompt"):
        presence["phrase_prompt"] = DEFAULT_PHRASE_PROMPT

    has_evidence = presence.get("photo_data_url") or presence.get("phrase_transcript")
    if has_evidence and not presence.get("completed_at"):
        presence["completed_at"] = now

    return presence


def record_presence(session_id: str, payload: Any) -> Dict[str, Any]:
    """
    Merge liveness evidence into a session.

    Args:
        session_id: Session receiving the evidence
        payload: Parsed request body with optional ``photoDataUrl`` and
            ``phraseTranscript``

    Returns:
        The merged presence record in its public shape
    """
    if session_store.get(session_id) is None:
        raise NotFound("The requested session does not exist", error="Session not found")

    photo, transcript = parse_presence_payload(payload)
    now = now_millis()

    def mutator(session):
        session["presence"] = merge_presence(session.get("presence"), photo, transcript, now)
        return session

    updated = session_store.update(
        session_id,
        mutator,
        action="presence_recorded",
        metadata={"photo": bool(photo), "phrase": bool(transcript)},
    )
    if updated is None:
        raise NotFound("The requested session does not exist", error="Session not found")

    return serialize_presence(updated["presence"])


def get_presence(session_id: str) -> Optional[Dict[str, Any]]:
    session = session_store.get(session_id)
    if session is None:
        raise NotFound("The requested session does not exist", error="Session not found")
    return serialize_presence(session.get("presence"))


def serialize_presence(presence: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    if not presence:
        return None
    return {
        "photoDataUrl": presence.get("photo_data_url"),
        "phrasePrompt": presence.get("phrase_prompt"),
        "phraseTranscript": presence.get("phrase_transcript"),
        "completedAt": presence.get("completed_at"),
    }
