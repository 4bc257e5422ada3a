"""REST API endpoints for workflow instances."""

from __future__ import annotations

from http import HTTPStatus
from typing import Any

from flask import Blueprint, current_app, jsonify, request

from ..extensions import db, limiter
from ..models.base import isoformat
from ..models.enums import ActivitySource, TaskPriority, WorkflowStatus
from ..models.workflow import WorkflowInstance
from ..repositories import approvals as approval_ledger
from ..repositories import tasks as task_ledger
from ..repositories import workflows as workflow_ledger
from ..repositories.activity import record_activity
from ..utils.identity import current_user
from ..utils.validation import (
    normalize_datetime,
    normalize_enum,
    normalize_positive_int,
    normalize_text,
    parse_id,
)
from ..workflow import engine
from ..workflow.state_machine import InvalidTransitionError
from .approvals import _approval_to_dict
from .tasks import _task_to_dict

bp = Blueprint("workflows", __name__)

WORKFLOW_NOT_FOUND = "workflow not found"


def _serialize_workflow(workflow: WorkflowInstance) -> dict[str, Any]:
    """Return a JSON serialisable representation of a workflow instance."""

    return {
        "id": workflow.id,
        "templateId": workflow.template_id,
        "templateName": workflow.template_name,
        "name": workflow.name,
        "status": workflow.status,
        "currentStepOrder": workflow.current_step_order,
        "createdBy": workflow.created_by,
        "dueDate": isoformat(workflow.due_date),
        "version": workflow.version,
        "createdAt": isoformat(workflow.created_at),
        "updatedAt": isoformat(workflow.updated_at),
    }


def _create_rate_limit() -> str:
    return current_app.config.get("WORKFLOW_CREATE_RATE_LIMIT", "30 per minute")


def _validate_create_payload(payload: dict[str, Any]) -> tuple[dict[str, Any], list[str]]:
    errors: list[str] = []

    template_id = parse_id(payload.get("templateId"))
    if template_id is None:
        errors.append("templateId is required")

    name, name_errors = normalize_text(payload, "name", max_length=200, required=True)
    created_by, created_by_errors = normalize_text(payload, "createdBy", max_length=100)
    due_date, due_date_errors = normalize_datetime(payload, "dueDate")
    errors.extend(name_errors + created_by_errors + due_date_errors)

    return {
        "template_id": template_id,
        "name": name,
        "created_by": created_by,
        "due_date": due_date,
    }, errors


@bp.post("/workflows")
@limiter.limit(_create_rate_limit)
def create_workflow() -> tuple[object, int]:
    payload = request.get_json(silent=True, force=True) or {}
    data, errors = _validate_create_payload(payload)
    if errors:
        return jsonify({"errors": errors}), HTTPStatus.BAD_REQUEST

    try:
        result = engine.create_from_template(
            data["template_id"],
            data["name"],
            data["created_by"] or current_user().id,
            data["due_date"],
        )
    except engine.TemplateNotFoundError as exc:
        return jsonify({"error": str(exc)}), HTTPStatus.BAD_REQUEST

    return (
        jsonify(
            {
                "workflow": _serialize_workflow(result.workflow),
                "tasks": [_task_to_dict(task) for task in result.tasks],
                "approvals": [_approval_to_dict(approval) for approval in result.approvals],
            }
        ),
        HTTPStatus.CREATED,
    )


@bp.get("/workflows")
def list_workflows() -> tuple[object, int]:
    status = None
    status_param = request.args.get("status")
    if status_param:
        status = WorkflowStatus.parse(status_param)
        if status is None:
            return jsonify({"error": "invalid status"}), HTTPStatus.BAD_REQUEST

    workflows = workflow_ledger.list_workflows(status)
    return jsonify([_serialize_workflow(workflow) for workflow in workflows]), HTTPStatus.OK


@bp.get("/workflows/<int:workflow_id>")
def get_workflow(workflow_id: int) -> tuple[object, int]:
    workflow = workflow_ledger.get_workflow(workflow_id)
    if workflow is None:
        return jsonify({"error": WORKFLOW_NOT_FOUND}), HTTPStatus.NOT_FOUND

    payload = _serialize_workflow(workflow)
    payload["tasks"] = [
        _task_to_dict(task) for task in task_ledger.list_tasks_for_workflow(workflow_id)
    ]
    payload["approvals"] = [
        _approval_to_dict(approval)
        for approval in approval_ledger.list_approvals_for_workflow(workflow_id)
    ]
    return jsonify(payload), HTTPStatus.OK


@bp.delete("/workflows/<int:workflow_id>")
def delete_workflow(workflow_id: int) -> tuple[object, int]:
    workflow = workflow_ledger.get_workflow(workflow_id)
    if workflow is None:
        return jsonify({"error": WORKFLOW_NOT_FOUND}), HTTPStatus.NOT_FOUND

    workflow_ledger.delete_workflow(workflow)
    record_activity(
        ActivitySource.WORKFLOW,
        f"workflow {workflow_id} deleted",
        workflow_id=workflow_id,
        actor=current_user().id,
    )
    db.session.commit()
    return "", HTTPStatus.NO_CONTENT


@bp.patch("/workflows/<int:workflow_id>/status")
def update_workflow_status(workflow_id: int) -> tuple[object, int]:
    payload = request.get_json(silent=True, force=True) or {}
    status, errors = normalize_enum(payload, "status", WorkflowStatus, required=True)
    if errors:
        return jsonify({"errors": errors}), HTTPStatus.BAD_REQUEST

    try:
        workflow = engine.override_status(workflow_id, status, actor=current_user().id)
    except InvalidTransitionError as exc:
        return jsonify({"error": str(exc)}), HTTPStatus.CONFLICT

    if workflow is None:
        return jsonify({"error": WORKFLOW_NOT_FOUND}), HTTPStatus.NOT_FOUND
    return jsonify(_serialize_workflow(workflow)), HTTPStatus.OK


@bp.post("/workflows/<int:workflow_id>/advance")
def advance_workflow(workflow_id: int) -> tuple[object, int]:
    result = engine.advance_workflow(workflow_id)
    if result.outcome is engine.AdvanceOutcome.NOT_FOUND:
        return jsonify({"error": WORKFLOW_NOT_FOUND}), HTTPStatus.NOT_FOUND
    return (
        jsonify({"outcome": result.outcome.value, "workflow": _serialize_workflow(result.workflow)}),
        HTTPStatus.OK,
    )


@bp.post("/workflows/<int:workflow_id>/tasks")
def create_task(workflow_id: int) -> tuple[object, int]:
    payload = request.get_json(silent=True, force=True) or {}
    errors: list[str] = []
    title, title_errors = normalize_text(payload, "title", max_length=200, required=True)
    description, description_errors = normalize_text(
        payload, "description", max_length=1000, allow_empty=True, default=""
    )
    priority, priority_errors = normalize_enum(
        payload, "priority", TaskPriority, default=TaskPriority.MEDIUM
    )
    assignee, assignee_errors = normalize_text(payload, "assignee", max_length=100)
    step_order, step_errors = normalize_positive_int(payload, "stepOrder")
    errors.extend(title_errors + description_errors + priority_errors + assignee_errors + step_errors)
    if errors:
        return jsonify({"errors": errors}), HTTPStatus.BAD_REQUEST

    blueprint = task_ledger.TaskBlueprint(
        workflow_id=workflow_id,
        title=title,
        description=description,
        priority=priority,
        assignee=assignee,
        step_order=step_order,
    )
    task = engine.add_task(blueprint, actor=current_user().id)
    if task is None:
        return jsonify({"error": WORKFLOW_NOT_FOUND}), HTTPStatus.NOT_FOUND
    return jsonify(_task_to_dict(task)), HTTPStatus.CREATED
