"""REST API endpoints for workflow templates and their task patterns."""

from __future__ import annotations

from http import HTTPStatus
from typing import Any

from flask import Blueprint, current_app, jsonify, request

from ..extensions import db
from ..models.base import isoformat
from ..models.enums import StepType, TaskPriority
from ..models.template import TaskPattern, WorkflowStep, WorkflowTemplate
from ..repositories import templates as template_catalog
from ..utils.validation import (
    normalize_enum,
    normalize_positive_int,
    normalize_text,
)

bp = Blueprint("templates", __name__)

TEMPLATE_NOT_FOUND = "template not found"


def _template_to_dict(template: WorkflowTemplate) -> dict[str, Any]:
    return {
        "id": template.id,
        "name": template.name,
        "description": template.description,
        "steps": [step.to_dict() for step in template.steps],
        "createdAt": isoformat(template.created_at),
        "updatedAt": isoformat(template.updated_at),
    }


def _pattern_to_dict(pattern: TaskPattern) -> dict[str, Any]:
    return {
        "id": pattern.id,
        "templateId": pattern.template_id,
        "name": pattern.name,
        "description": pattern.description,
        "stepOrder": pattern.step_order,
        "defaultAssigneeRole": pattern.default_assignee_role,
        "priority": pattern.priority,
    }


def _normalize_step(item: Any, index: int) -> tuple[WorkflowStep | None, list[str]]:
    if not isinstance(item, dict):
        return None, [f"steps[{index}] must be an object"]

    errors: list[str] = []
    order, order_errors = normalize_positive_int(item, "order")
    name, name_errors = normalize_text(item, "name", max_length=100, required=True)
    step_type, type_errors = normalize_enum(item, "type", StepType, required=True)
    errors.extend(f"steps[{index}].{message}" for message in order_errors + name_errors + type_errors)

    roles = item.get("approverRoles") or []
    if not isinstance(roles, list) or not all(isinstance(role, str) for role in roles):
        errors.append(f"steps[{index}].approverRoles must be a list of strings")
        roles = []

    if errors:
        return None, errors
    return WorkflowStep(
        order=order,
        name=name,
        type=step_type,
        approver_roles=tuple(role.strip() for role in roles if role.strip()),
    ), []


def _normalize_steps(value: Any) -> tuple[list[WorkflowStep], list[str]]:
    """Validate a step list: non-empty, with orders 1..n each used exactly once."""

    if not isinstance(value, list) or not value:
        return [], ["steps must be a non-empty list"]

    steps: list[WorkflowStep] = []
    errors: list[str] = []
    for index, item in enumerate(value):
        step, step_errors = _normalize_step(item, index)
        errors.extend(step_errors)
        if step is not None:
            steps.append(step)

    if errors:
        return [], errors

    orders = sorted(step.order for step in steps)
    if orders != list(range(1, len(steps) + 1)):
        return [], ["step orders must be unique and contiguous starting at 1"]
    return steps, []


def _validate_template_payload(
    payload: dict[str, Any], *, partial: bool = False
) -> tuple[dict[str, Any], list[str]]:
    errors: list[str] = []
    name, name_errors = normalize_text(payload, "name", max_length=200, required=not partial)
    description, description_errors = normalize_text(
        payload, "description", max_length=1000, allow_empty=True, default=None if partial else ""
    )
    errors.extend(name_errors + description_errors)

    steps: list[WorkflowStep] | None = None
    if not partial or "steps" in payload:
        steps, step_errors = _normalize_steps(payload.get("steps"))
        errors.extend(step_errors)

    return {"name": name, "description": description, "steps": steps}, errors


def _validate_pattern_payload(
    payload: dict[str, Any], template: WorkflowTemplate
) -> tuple[dict[str, Any], list[str]]:
    errors: list[str] = []
    name, name_errors = normalize_text(payload, "name", max_length=200, required=True)
    description, description_errors = normalize_text(
        payload, "description", max_length=1000, allow_empty=True, default=""
    )
    step_order, order_errors = normalize_positive_int(payload, "stepOrder")
    assignee_role, role_errors = normalize_text(payload, "defaultAssigneeRole", max_length=100)
    priority, priority_errors = normalize_enum(
        payload, "priority", TaskPriority, default=TaskPriority.MEDIUM
    )
    errors.extend(name_errors + description_errors + order_errors + role_errors + priority_errors)

    if step_order is not None and template.step_at(step_order) is None:
        errors.append("stepOrder must reference a step of the template")

    return {
        "name": name,
        "description": description,
        "step_order": step_order,
        "default_assignee_role": assignee_role,
        "priority": priority,
    }, errors


@bp.get("/templates")
def list_templates() -> tuple[object, int]:
    templates = template_catalog.list_templates()
    return jsonify([_template_to_dict(template) for template in templates]), HTTPStatus.OK


@bp.post("/templates")
def create_template() -> tuple[object, int]:
    payload = request.get_json(force=True, silent=True) or {}
    data, errors = _validate_template_payload(payload)
    if errors:
        return jsonify({"errors": errors}), HTTPStatus.BAD_REQUEST

    template = template_catalog.create_template(data["name"], data["description"], data["steps"])
    db.session.commit()
    current_app.logger.info("Created template %s (%s steps)", template.id, len(data["steps"]))

    return jsonify(_template_to_dict(template)), HTTPStatus.CREATED


@bp.get("/templates/<int:template_id>")
def get_template(template_id: int) -> tuple[object, int]:
    template = template_catalog.get_template(template_id)
    if template is None:
        return jsonify({"error": TEMPLATE_NOT_FOUND}), HTTPStatus.NOT_FOUND
    return jsonify(_template_to_dict(template)), HTTPStatus.OK


@bp.put("/templates/<int:template_id>")
def update_template(template_id: int) -> tuple[object, int]:
    template = template_catalog.get_template(template_id)
    if template is None:
        return jsonify({"error": TEMPLATE_NOT_FOUND}), HTTPStatus.NOT_FOUND

    payload = request.get_json(force=True, silent=True) or {}
    data, errors = _validate_template_payload(payload, partial=True)
    if errors:
        return jsonify({"errors": errors}), HTTPStatus.BAD_REQUEST

    template_catalog.update_template(
        template, name=data["name"], description=data["description"], steps=data["steps"]
    )
    db.session.commit()

    return jsonify(_template_to_dict(template)), HTTPStatus.OK


@bp.delete("/templates/<int:template_id>")
def delete_template(template_id: int) -> tuple[object, int]:
    template = template_catalog.get_template(template_id)
    if template is None:
        return jsonify({"error": TEMPLATE_NOT_FOUND}), HTTPStatus.NOT_FOUND

    template_catalog.delete_template(template)
    db.session.commit()
    current_app.logger.info("Deleted template %s", template_id)
    return "", HTTPStatus.NO_CONTENT


@bp.get("/templates/<int:template_id>/patterns")
def list_patterns(template_id: int) -> tuple[object, int]:
    if template_catalog.get_template(template_id) is None:
        return jsonify({"error": TEMPLATE_NOT_FOUND}), HTTPStatus.NOT_FOUND

    patterns = template_catalog.get_task_patterns(template_id)
    return jsonify([_pattern_to_dict(pattern) for pattern in patterns]), HTTPStatus.OK


@bp.post("/templates/<int:template_id>/patterns")
def create_pattern(template_id: int) -> tuple[object, int]:
    template = template_catalog.get_template(template_id)
    if template is None:
        return jsonify({"error": TEMPLATE_NOT_FOUND}), HTTPStatus.NOT_FOUND

    payload = request.get_json(force=True, silent=True) or {}
    data, errors = _validate_pattern_payload(payload, template)
    if errors:
        return jsonify({"errors": errors}), HTTPStatus.BAD_REQUEST

    pattern = template_catalog.create_task_pattern(template, **data)
    db.session.commit()

    return jsonify(_pattern_to_dict(pattern)), HTTPStatus.CREATED


@bp.delete("/templates/<int:template_id>/patterns/<int:pattern_id>")
def delete_pattern(template_id: int, pattern_id: int) -> tuple[object, int]:
    if not template_catalog.delete_task_pattern(template_id, pattern_id):
        return jsonify({"error": "task pattern not found"}), HTTPStatus.NOT_FOUND
    db.session.commit()
    return "", HTTPStatus.NO_CONTENT
