"""/api/college routes for operator-managed job templates."""

from __future__ import annotations

from flask import Blueprint, request

from interview_api.services import template_service
from interview_api.utils.auth import require_operator
from interview_api.utils.responses import api_success

bp = Blueprint("college", __name__, url_prefix="/api/college")


@bp.post("/templates")
def create_template():
    operator = require_operator()
    template = template_service.create_template(operator, request.get_json(silent=True))
    return api_success({"templateId": template["id"]}, "Template created successfully", 201)


@bp.get("/templates")
def list_templates():
    """Return all templates owned by the operator's college."""
    operator = require_operator()
    templates = template_service.list_templates(operator)
    return api_success(
        {"templates": [template_service.serialize_template(t, preview=True) for t in templates]}
    )


@bp.get("/templates/<template_id>")
def get_template(template_id: str):
    operator = require_operator()
    template = template_service.get_template(operator, template_id)
    return api_success({"template": template_service.serialize_template(template)})


@bp.post("/templates/<template_id>/duplicate")
def duplicate_template(template_id: str):
    operator = require_operator()
    duplicate = template_service.duplicate_template(operator, template_id)
    return api_success({"templateId": duplicate["id"]}, "Template duplicated successfully", 201)
