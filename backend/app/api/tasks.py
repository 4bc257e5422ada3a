"""REST API endpoints for tasks on the kanban board."""

from __future__ import annotations

from http import HTTPStatus
from typing import Any

from flask import Blueprint, jsonify, request

from ..models.base import isoformat
from ..models.enums import TaskPriority, TaskStatus
from ..models.task import Task
from ..repositories import tasks as task_ledger
from ..utils.identity import current_user
from ..utils.validation import normalize_enum, normalize_text, parse_id
from ..workflow import engine

bp = Blueprint("tasks", __name__)

TASK_NOT_FOUND = "task not found"


def _task_to_dict(task: Task) -> dict[str, Any]:
    return {
        "id": task.id,
        "workflowId": task.workflow_id,
        "patternId": task.pattern_id,
        "title": task.title,
        "description": task.description,
        "status": task.status,
        "priority": task.priority,
        "assignee": task.assignee,
        "stepOrder": task.step_order,
        "createdAt": isoformat(task.created_at),
        "updatedAt": isoformat(task.updated_at),
    }


def _validate_task_update(payload: dict[str, Any]) -> tuple[dict[str, Any], list[str]]:
    """Collect only the fields present in the payload; ``assignee: null`` clears it."""

    changes: dict[str, Any] = {}
    errors: list[str] = []

    if "title" in payload:
        title, title_errors = normalize_text(payload, "title", max_length=200, required=True)
        errors.extend(title_errors)
        changes["title"] = title
    if "description" in payload:
        description, description_errors = normalize_text(
            payload, "description", max_length=1000, allow_empty=True, default=""
        )
        errors.extend(description_errors)
        changes["description"] = description
    if "priority" in payload:
        priority, priority_errors = normalize_enum(payload, "priority", TaskPriority, required=True)
        errors.extend(priority_errors)
        changes["priority"] = priority
    if "status" in payload:
        status, status_errors = normalize_enum(payload, "status", TaskStatus, required=True)
        errors.extend(status_errors)
        changes["status"] = status
    if "assignee" in payload:
        assignee, assignee_errors = normalize_text(payload, "assignee", max_length=100)
        errors.extend(assignee_errors)
        changes["assignee"] = assignee

    return changes, errors


@bp.get("/tasks")
def list_tasks() -> tuple[object, int]:
    workflow_param = request.args.get("workflowId")
    if workflow_param:
        workflow_id = parse_id(workflow_param)
        if workflow_id is None:
            return jsonify({"error": "invalid workflowId"}), HTTPStatus.BAD_REQUEST
        tasks = task_ledger.list_tasks_for_workflow(workflow_id)
        return jsonify([_task_to_dict(task) for task in tasks]), HTTPStatus.OK

    status = None
    status_param = request.args.get("status")
    if status_param:
        status = TaskStatus.parse(status_param)
        if status is None:
            return jsonify({"error": "invalid status"}), HTTPStatus.BAD_REQUEST

    tasks = task_ledger.list_tasks(status=status, assignee=request.args.get("assignee") or None)
    return jsonify([_task_to_dict(task) for task in tasks]), HTTPStatus.OK


@bp.patch("/tasks/<int:task_id>")
def update_task(task_id: int) -> tuple[object, int]:
    payload = request.get_json(force=True, silent=True) or {}
    changes, errors = _validate_task_update(payload)
    if errors:
        return jsonify({"errors": errors}), HTTPStatus.BAD_REQUEST

    result = engine.change_task(task_id, changes, actor=current_user().id)
    if result is None:
        return jsonify({"error": TASK_NOT_FOUND}), HTTPStatus.NOT_FOUND
    return jsonify(_task_to_dict(result.task)), HTTPStatus.OK


@bp.patch("/tasks/<int:task_id>/status")
def update_task_status(task_id: int) -> tuple[object, int]:
    payload = request.get_json(force=True, silent=True) or {}
    status, errors = normalize_enum(payload, "status", TaskStatus, required=True)
    if errors:
        return jsonify({"errors": errors}), HTTPStatus.BAD_REQUEST

    result = engine.change_task_status(task_id, status, actor=current_user().id)
    if result is None:
        return jsonify({"error": TASK_NOT_FOUND}), HTTPStatus.NOT_FOUND
    return jsonify(_task_to_dict(result.task)), HTTPStatus.OK
