"""Task ledger."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from ..extensions import db
from ..models.enums import TaskPriority, TaskStatus
from ..models.task import Task

UPDATABLE_FIELDS = ("title", "description", "priority", "assignee", "status")


@dataclass(frozen=True)
class TaskBlueprint:
    """Everything needed to create a task on a workflow instance."""

    workflow_id: int
    title: str
    step_order: int
    description: str = ""
    priority: TaskPriority = TaskPriority.MEDIUM
    assignee: str | None = None
    pattern_id: int | None = None


def create_task(blueprint: TaskBlueprint) -> Task:
    task = Task(
        workflow_id=blueprint.workflow_id,
        pattern_id=blueprint.pattern_id,
        title=blueprint.title,
        description=blueprint.description,
        status=TaskStatus.TODO.value,
        priority=blueprint.priority.value,
        assignee=blueprint.assignee,
        step_order=blueprint.step_order,
    )
    db.session.add(task)
    db.session.flush()
    return task


def find_task(task_id: int) -> Task | None:
    return db.session.get(Task, task_id)


def get_task(workflow_id: int, task_id: int) -> Task | None:
    task = find_task(task_id)
    if task is None or task.workflow_id != workflow_id:
        return None
    return task


def list_tasks_for_workflow(workflow_id: int) -> list[Task]:
    return (
        Task.query.filter_by(workflow_id=workflow_id)
        .order_by(Task.step_order.asc(), Task.id.asc())
        .all()
    )


def list_tasks(*, status: TaskStatus | None = None, assignee: str | None = None) -> list[Task]:
    query = Task.query
    if status is not None:
        query = query.filter(Task.status == status.value)
    if assignee is not None:
        query = query.filter(Task.assignee == assignee)
    return query.order_by(Task.updated_at.desc(), Task.id.desc()).all()


def update_task(workflow_id: int, task_id: int, changes: dict[str, Any]) -> Task | None:
    """Apply a partial update.

    Keys missing from ``changes`` are left alone; ``assignee: None`` clears the
    assignee.
    """

    task = get_task(workflow_id, task_id)
    if task is None:
        return None

    for field_name in UPDATABLE_FIELDS:
        if field_name not in changes:
            continue
        value = changes[field_name]
        if isinstance(value, (TaskStatus, TaskPriority)):
            value = value.value
        setattr(task, field_name, value)

    db.session.flush()
    return task


def update_task_status(workflow_id: int, task_id: int, status: TaskStatus) -> Task | None:
    return update_task(workflow_id, task_id, {"status": status})
