"""Template catalog: workflow templates and their task patterns."""

from __future__ import annotations

from ..extensions import db
from ..models.enums import TaskPriority
from ..models.template import TaskPattern, WorkflowStep, WorkflowTemplate


def get_template(template_id: int) -> WorkflowTemplate | None:
    return db.session.get(WorkflowTemplate, template_id)


def list_templates() -> list[WorkflowTemplate]:
    return WorkflowTemplate.query.order_by(
        WorkflowTemplate.created_at.desc(), WorkflowTemplate.id.desc()
    ).all()


def get_task_patterns(template_id: int) -> list[TaskPattern]:
    return TaskPattern.query.filter_by(template_id=template_id).order_by(TaskPattern.id).all()


def create_template(name: str, description: str, steps: list[WorkflowStep]) -> WorkflowTemplate:
    template = WorkflowTemplate(name=name, description=description)
    template.steps = steps
    db.session.add(template)
    db.session.flush()
    return template


def update_template(
    template: WorkflowTemplate,
    *,
    name: str | None = None,
    description: str | None = None,
    steps: list[WorkflowStep] | None = None,
) -> WorkflowTemplate:
    """Apply a partial update; ``None`` leaves the field unchanged."""

    if name is not None:
        template.name = name
    if description is not None:
        template.description = description
    if steps is not None:
        template.steps = steps
    db.session.flush()
    return template


def delete_template(template: WorkflowTemplate) -> None:
    """Delete a template together with its task patterns.

    Workflow instances created from it keep running on their name snapshot.
    """

    db.session.delete(template)
    db.session.flush()


def create_task_pattern(
    template: WorkflowTemplate,
    *,
    name: str,
    step_order: int,
    description: str = "",
    default_assignee_role: str | None = None,
    priority: TaskPriority = TaskPriority.MEDIUM,
) -> TaskPattern:
    pattern = TaskPattern(
        template_id=template.id,
        name=name,
        description=description,
        step_order=step_order,
        default_assignee_role=default_assignee_role,
        priority=priority.value,
    )
    db.session.add(pattern)
    db.session.flush()
    return pattern


def delete_task_pattern(template_id: int, pattern_id: int) -> bool:
    pattern = TaskPattern.query.filter_by(id=pattern_id, template_id=template_id).first()
    if pattern is None:
        return False
    db.session.delete(pattern)
    db.session.flush()
    return True
