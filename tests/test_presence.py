"""Tests for merging liveness evidence into a session."""

from __future__ import annotations

import pytest

from conftest import make_session
from interview_api.errors import InvalidInput, NotFound
from interview_api.services import presence_service, session_store


@pytest.fixture
def clock(monkeypatch):
    now = [1_700_000_000_000]
    monkeypatch.setattr(presence_service, "now_millis", lambda: now[0])
    return now


def test_photo_then_phrase_converges_with_first_timestamp(clock):
    session_store.create(make_session())

    presence_service.record_presence("session-1", {"photoDataUrl": "data:image/png;base64,AAA"})
    clock[0] += 30_000
    merged = presence_service.record_presence("session-1", {"phraseTranscript": "I confirm"})

    assert merged["photoDataUrl"] == "data:image/png;base64,AAA"
    assert merged["phraseTranscript"] == "I confirm"
    assert merged["completedAt"] == 1_700_000_000_000


def test_phrase_then_photo_converges_in_either_order(clock):
    session_store.create(make_session())

    presence_service.record_presence("session-1", {"phraseTranscript": "hello"})
    clock[0] += 5
    merged = presence_service.record_presence("session-1", {"photoDataUrl": "data:image/jpeg;base64,B"})

    assert merged["phraseTranscript"] == "hello"
    assert merged["photoDataUrl"] == "data:image/jpeg;base64,B"
    assert merged["completedAt"] == 1_700_000_000_000


def test_omitted_or_empty_fields_keep_stored_values(clock):
    session_store.create(make_session())
    presence_service.record_presence("session-1", {"photoDataUrl": "data:a", "phraseTranscript": "first"})

    merged = presence_service.record_presence("session-1", {"photoDataUrl": "", "phraseTranscript": None})

    assert merged["photoDataUrl"] == "data:a"
    assert merged["phraseTranscript"] == "first"


def test_new_values_overwrite_but_completed_at_never_moves(clock):
    session_store.create(make_session())
    presence_service.record_presence("session-1", {"phraseTranscript": "first"})
    clock[0] += 1000

    merged = presence_service.record_presence("session-1", {"phraseTranscript": "second"})

    assert merged["phraseTranscript"] == "second"
    assert merged["completedAt"] == 1_700_000_000_000


def test_empty_payload_sets_prompt_but_not_completed_at():
    session_store.create(make_session(presence=None))

    merged = presence_service.record_presence("session-1", {})

    assert merged["phrasePrompt"] == presence_service.DEFAULT_PHRASE_PROMPT
    assert merged["completedAt"] is None


def test_existing_phrase_prompt_is_preserved():
    session_store.create(make_session(presence={"phrase_prompt": "Say the magic words."}))

    merged = presence_service.record_presence("session-1", {"phraseTranscript": "magic words"})

    assert merged["phrasePrompt"] == "Say the magic words."


def test_transcript_is_truncated_and_sanitized():
    session_store.create(make_session())

    merged = presence_service.record_presence(
        "session-1", {"phraseTranscript": "<b>hi</b> " + "x" * 400}
    )

    assert merged["phraseTranscript"].startswith("hi ")
    assert "<" not in merged["phraseTranscript"]
    assert len(merged["phraseTranscript"]) <= presence_service.TRANSCRIPT_MAX_LENGTH


def test_oversized_photo_is_rejected_without_writing():
    session_store.create(make_session())
    too_big = "data:image/png;base64," + "A" * presence_service.PHOTO_MAX_LENGTH

    with pytest.raises(InvalidInput):
        presence_service.record_presence("session-1", {"photoDataUrl": too_big})

    assert session_store.get("session-1")["presence"].get("photo_data_url") is None


@pytest.mark.parametrize("payload", [None, "text", ["photo"], {"photoDataUrl": 42}])
def test_unparseable_payload_is_invalid_input(payload):
    session_store.create(make_session())

    with pytest.raises(InvalidInput):
        presence_service.record_presence("session-1", payload)


def test_unknown_session_is_not_found_even_with_bad_body():
    with pytest.raises(NotFound):
        presence_service.record_presence("missing", None)


def test_get_presence():
    session_store.create(make_session(presence=None))
    assert presence_service.get_presence("session-1") is None

    with pytest.raises(NotFound):
        presence_service.get_presence("missing")
