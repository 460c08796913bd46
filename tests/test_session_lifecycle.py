"""Tests for session creation and status transitions."""

from __future__ import annotations

import pytest

from conftest import make_questions
from interview_api.errors import InvalidInput, InvalidTransition, NotFound
from interview_api.services import audit_service, session_service, session_store, template_service

RESUME = "Senior engineer with eight years of Python, Flask and MongoDB experience."
JD = "We are hiring a backend engineer to design and operate our interview platform APIs."


def _individual(**overrides):
    payload = {"mode": "individual", "resumeText": RESUME, "role": "Backend Engineer", "level": "senior"}
    payload.update(overrides)
    return payload


def _started(count=3):
    session = session_service.create_session(_individual())
    session_service.start_interview(session["id"], make_questions(count))
    return session["id"]


def test_create_individual_session_defaults():
    session = session_service.create_session(_individual(role="<i>Backend</i> Engineer"))

    assert session["status"] == "draft"
    assert session["questions"] == []
    assert session["current_question_index"] == 0
    assert session["role"] == "Backend Engineer"
    assert session["presence"]["phrase_prompt"]
    assert session["score_summary"]["countEvaluated"] == 0
    actions = [e["action"] for e in audit_service.list_entries(entity_id=session["id"])]
    assert actions == ["session_created"]


@pytest.mark.parametrize(
    "payload",
    [
        None,
        {"mode": "open", "resumeText": RESUME},
        _individual(resumeText="too short"),
        _individual(role=""),
        _individual(level="principal"),
        {"mode": "company", "resumeText": RESUME, "jobSetup": {"jdText": "short", "topSkills": ["Python"]}},
        {"mode": "company", "resumeText": RESUME, "jobSetup": {"jdText": JD, "topSkills": []}},
        {"mode": "college", "resumeText": RESUME},
    ],
)
def test_create_rejects_invalid_setup(payload):
    with pytest.raises(InvalidInput):
        session_service.create_session(payload)


def test_create_company_session_keeps_job_setup():
    session = session_service.create_session(
        {
            "mode": "company",
            "resumeText": RESUME,
            "jobSetup": {
                "jdText": JD,
                "topSkills": ["Python", " ", "Flask", "MongoDB", "Docker", "AWS", "Redis"],
                "config": {"questionCount": 10, "difficultyCurve": "balanced"},
            },
        }
    )

    assert session["jd_text"] == JD
    assert session["job_setup"]["topSkills"] == ["Python", "Flask", "MongoDB", "Docker", "AWS"]
    assert session["job_setup"]["config"] == {"questionCount": 10, "difficultyCurve": "balanced"}


def test_create_college_session_copies_template(operator):
    template = template_service.create_template(
        operator,
        {"jdText": JD, "topSkills": ["SQL"], "config": {"questionCount": 5, "difficultyCurve": "easy_to_hard"}},
    )

    session = session_service.create_session(
        {"mode": "college", "resumeText": RESUME, "collegeJobTemplateId": template["id"], "candidateEmail": "s@x.edu"},
        operator=operator,
    )

    assert session["college_id"] == "college-1"
    assert session["created_by"] == "admin@college.test"
    assert session["job_setup"]["topSkills"] == ["SQL"]
    assert session["candidate_email"] == "s@x.edu"


def test_create_college_session_with_unknown_template():
    with pytest.raises(NotFound):
        session_service.create_session({"mode": "college", "resumeText": RESUME, "collegeJobTemplateId": "nope"})


def test_start_moves_draft_to_in_progress():
    session = session_service.create_session(_individual())

    started, already = session_service.start_interview(
        session["id"], [{"text": "Tell me about a migration."}, {"id": "custom", "text": "Why Flask?"}]
    )

    assert already is False
    assert started["status"] == "in_progress"
    assert [q["id"] for q in started["questions"]] == ["q1", "custom"]
    assert started["started_at"] == started["last_activity_at"]


def test_start_twice_is_a_no_op():
    session_id = _started(3)

    session, already = session_service.start_interview(session_id, make_questions(5))

    assert already is True
    assert len(session["questions"]) == 3
    actions = [e["action"] for e in audit_service.list_entries(entity_id=session_id)]
    assert actions.count("interview_started") == 1


@pytest.mark.parametrize("questions", [None, [], [{"text": ""}], "q1", make_questions(26)])
def test_start_rejects_bad_question_lists(questions):
    session = session_service.create_session(_individual())

    with pytest.raises(InvalidInput):
        session_service.start_interview(session["id"], questions)


def test_start_unknown_session():
    with pytest.raises(NotFound):
        session_service.start_interview("missing", make_questions(2))


def test_complete_requires_started_interview():
    session = session_service.create_session(_individual())

    with pytest.raises(InvalidTransition):
        session_service.complete_interview(session["id"], {"recommendation": "hire"})

    assert session_store.get(session["id"])["status"] == "draft"


def test_complete_mints_share_token_once():
    session_id = _started()

    first = session_service.complete_interview(
        session_id, {"recommendation": "hire"}, {"countEvaluated": 3, "avg": {"overall": 7.5}}
    )
    second = session_service.complete_interview(session_id, {"recommendation": "strong_hire"})

    assert first["status"] == "completed"
    assert first["share_token"]
    assert second["share_token"] == first["share_token"]
    assert second["report"] == {"recommendation": "strong_hire"}
    assert second["score_summary"]["avg"]["overall"] == 7.5
    assert second["completed_at"] == first["completed_at"]


def test_complete_rejects_empty_report():
    session_id = _started()

    with pytest.raises(InvalidInput):
        session_service.complete_interview(session_id, {})


def test_start_after_completion_stays_completed():
    session_id = _started()
    session_service.complete_interview(session_id, {"recommendation": "hire"})

    session, already = session_service.start_interview(session_id, make_questions(2))

    assert already is True
    assert session["status"] == "completed"


def test_activity_only_tracked_while_in_progress():
    draft = session_service.create_session(_individual())
    assert session_service.record_activity(draft["id"]) == {"ignored": True}

    session_id = _started()
    result = session_service.record_activity(session_id)
    assert result["lastActivityAt"] == session_store.get(session_id)["last_activity_at"]

    with pytest.raises(NotFound):
        session_service.record_activity("missing")


def test_tab_switch_counts_blurs_and_warns():
    session_id = _started()

    results = [session_service.record_tab_switch(session_id, "blur") for _ in range(4)]
    session_service.record_tab_switch(session_id, "focus")
    results.append(session_service.record_tab_switch(session_id, "blur"))
    results.append(session_service.record_tab_switch(session_id, "blur"))

    assert [r["tabSwitchCount"] for r in results] == [1, 2, 3, 4, 5, 6]
    assert results[2]["warning"] is None
    assert results[3]["warning"].startswith("Multiple tab switches")
    assert results[5]["warning"].startswith("Excessive tab switching")
    assert len(session_store.get(session_id)["tab_switch_events"]) == 7


def test_tab_switch_validation_and_inactive_sessions():
    draft = session_service.create_session(_individual())

    with pytest.raises(InvalidInput):
        session_service.record_tab_switch(draft["id"], "minimize")
    assert session_service.record_tab_switch(draft["id"], "blur") == {"ignored": True}


def test_security_events_are_capped_and_flag_critical_ones():
    session_id = _started()

    for n in range(105):
        session_service.record_security_event(session_id, "copy_attempt", timestamp=n)
    result = session_service.record_security_event(session_id, "devtools_detected", details={"x": 1})

    assert result == {"eventLogged": True, "totalEvents": 100}
    events = session_store.get(session_id)["security_events"]
    assert events[-1]["event"] == "devtools_detected"
    assert events[0]["timestamp"] == 6
    last_entry = audit_service.list_entries(entity_id=session_id, limit=500)[-1]
    assert last_entry["metadata"]["critical"] is True


def test_security_events_ignored_after_completion():
    session_id = _started()
    session_service.complete_interview(session_id, {"recommendation": "hire"})

    assert session_service.record_security_event(session_id, "devtools_detected") == {"ignored": True}
    with pytest.raises(InvalidInput):
        session_service.record_security_event(session_id, "")


def test_serialize_session_projection():
    session_id = _started(2)

    view = session_service.serialize_session(session_store.get(session_id))

    assert view["session"]["totalQuestions"] == 2
    assert view["session"]["status"] == "in_progress"
    assert view["currentQuestion"]["id"] == "q1"
    assert "resume_text" not in view["session"]
