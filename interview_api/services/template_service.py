"""College job templates: reusable job description and interview config bundles."""

from __future__ import annotations

import copy
import logging
from typing import Any, Dict, List, Optional

from pymongo.errors import PyMongoError

from interview_api import database, storage
from interview_api.errors import Forbidden, InvalidInput, NotFound, StoreFailure
from interview_api.services import audit_service
from interview_api.utils.auth import generate_id, now_millis
from interview_api.utils.text import make_text_excerpt, sanitize_text

_LOGGER = logging.getLogger(__name__)

QUESTION_COUNTS = (5, 10, 15, 20, 25)
DIFFICULTY_CURVES = ("easy_to_hard", "balanced", "custom")
DIFFICULTIES = ("easy", "medium", "hard")
MIN_JD_LENGTH = 50
MAX_SKILLS = 5


def _collection():
    return database.get_database().college_job_templates


def validate_config(config: Any) -> Dict[str, Any]:
    """Return a normalized interview configuration or raise ``InvalidInput``."""
    if not isinstance(config, dict):
        raise InvalidInput("Interview configuration is required", error="Validation failed")

    question_count = config.get("questionCount")
    if question_count not in QUESTION_COUNTS:
        raise InvalidInput(
            "questionCount must be one of: " + ", ".join(str(n) for n in QUESTION_COUNTS),
            error="Validation failed",
        )

    curve = config.get("difficultyCurve")
    if curve not in DIFFICULTY_CURVES:
        raise InvalidInput(
            "difficultyCurve must be one of: " + ", ".join(DIFFICULTY_CURVES),
            error="Validation failed",
        )

    normalized: Dict[str, Any] = {"questionCount": question_count, "difficultyCurve": curve}

    custom = config.get("customDifficulty")
    if custom is not None:
        if not isinstance(custom, list) or any(level not in DIFFICULTIES for level in custom):
            raise InvalidInput(
                "customDifficulty must be a list of: " + ", ".join(DIFFICULTIES),
                error="Validation failed",
            )
        normalized["customDifficulty"] = list(custom)

    return normalized


def normalize_skills(raw_skills: Any) -> List[str]:
    if not isinstance(raw_skills, list):
        return []
    skills = [sanitize_text(str(skill).strip()) for skill in raw_skills]
    return [skill for skill in skills if skill][:MAX_SKILLS]


def _insert(template: Dict[str, Any]) -> None:
    if not database.mongodb_enabled():
        storage.templates[template["id"]] = copy.deepcopy(template)
        return

    try:
        _collection().insert_one(copy.deepcopy(template))
    except PyMongoError as exc:
        _LOGGER.error("Failed to save template %s", template["id"], exc_info=True)
        raise StoreFailure("Could not save template") from exc


def load_template(template_id: str) -> Optional[Dict[str, Any]]:
    """Return a template by id without any ownership check."""
    if not database.mongodb_enabled():
        template = storage.templates.get(template_id)
        return copy.deepcopy(template) if template is not None else None

    try:
        return _collection().find_one({"id": template_id}, {"_id": 0})
    except PyMongoError as exc:
        _LOGGER.error("Failed to load template %s", template_id, exc_info=True)
        raise StoreFailure("Could not load template") from exc


def _check_access(template: Dict[str, Any], operator: Dict[str, Any]) -> None:
    owner = template.get("college_id")
    if owner and owner != operator["college_id"]:
        raise Forbidden("You don't have access to this template")


def create_template(operator: Dict[str, Any], payload: Any) -> Dict[str, Any]:
    """
    Validate and store a new template owned by the operator's college.

    Args:
        operator: Authenticated operator identity
        payload: Request body with ``jdText``, ``topSkills`` and ``config``

    Returns:
        The stored template record
    """
    if not isinstance(payload, dict):
        raise InvalidInput("Request body must be valid JSON", error="Invalid JSON")

    raw_jd = str(payload.get("jdText") or "").strip()
    if len(raw_jd) < MIN_JD_LENGTH:
        raise InvalidInput(
            f"Job description is required (min {MIN_JD_LENGTH} chars)",
            error="Validation failed",
        )

    top_skills = normalize_skills(payload.get("topSkills"))
    if not top_skills:
        raise InvalidInput("At least one skill is required", error="Validation failed")

    template = {
        "id": generate_id(),
        "college_id": operator["college_id"],
        "jd_text": sanitize_text(raw_jd),
        "top_skills": top_skills,
        "config": validate_config(payload.get("config")),
        "created_at": now_millis(),
        "created_by": operator.get("user_email"),
    }
    _insert(template)

    audit_service.record(
        "template_created", "template", template["id"], {"college_id": template["college_id"]}
    )
    return template


def get_template(operator: Dict[str, Any], template_id: str) -> Dict[str, Any]:
    template = load_template(template_id)
    if template is None:
        raise NotFound("The requested template does not exist", error="Template not found")
    _check_access(template, operator)
    return template


def list_templates(operator: Dict[str, Any]) -> List[Dict[str, Any]]:
    """Return the operator's college templates, newest first."""
    college_id = operator["college_id"]

    if not database.mongodb_enabled():
        templates = [
            copy.deepcopy(template)
            for template in list(storage.templates.values())
            if template.get("college_id") == college_id
        ]
        templates.sort(key=lambda t: t.get("created_at", 0), reverse=True)
        return templates

    try:
        return list(
            _collection().find({"college_id": college_id}, {"_id": 0}).sort("created_at", -1)
        )
    except PyMongoError as exc:
        _LOGGER.error("Failed to list templates for %s", college_id, exc_info=True)
        raise StoreFailure("Could not list templates") from exc


def duplicate_template(operator: Dict[str, Any], template_id: str) -> Dict[str, Any]:
    """Copy a template's job description and configuration under a new id."""
    source = get_template(operator, template_id)

    duplicate = {
        "id": generate_id(),
        "college_id": operator["college_id"],
        "jd_text": source["jd_text"],
        "top_skills": list(source.get("top_skills") or []),
        "config": dict(source.get("config") or {}),
        "created_at": now_millis(),
        "created_by": operator.get("user_email"),
    }
    _insert(duplicate)

    audit_service.record(
        "template_duplicated", "template", duplicate["id"], {"source_template_id": template_id}
    )
    return duplicate


def count_templates() -> int:
    if not database.mongodb_enabled():
        return len(storage.templates)
    return _collection().count_documents({})


def serialize_template(template: Dict[str, Any], *, preview: bool = False) -> Dict[str, Any]:
    data = {
        "id": template["id"],
        "collegeId": template.get("college_id"),
        "topSkills": template.get("top_skills", []),
        "config": template.get("config", {}),
        "createdAt": template.get("created_at"),
        "createdBy": template.get("created_by"),
    }
    if preview:
        data["jdPreview"] = make_text_excerpt(template.get("jd_text", ""))
    else:
        data["jdText"] = template.get("jd_text")
    return data


def create_indexes():
    """Create indexes used by template lookups."""
    collection = _collection()
    collection.create_index("id", unique=True)
    collection.create_index([("college_id", 1), ("created_at", -1)])
