"""Workflow instance ledger."""

from __future__ import annotations

from datetime import datetime

from ..extensions import db
from ..models.enums import WorkflowStatus
from ..models.template import WorkflowTemplate
from ..models.workflow import WorkflowInstance


def get_workflow(workflow_id: int) -> WorkflowInstance | None:
    return db.session.get(WorkflowInstance, workflow_id)


def list_workflows(status: WorkflowStatus | None = None) -> list[WorkflowInstance]:
    query = WorkflowInstance.query
    if status is not None:
        query = query.filter(WorkflowInstance.status == status.value)
    return query.order_by(WorkflowInstance.created_at.desc(), WorkflowInstance.id.desc()).all()


def create_workflow(
    template: WorkflowTemplate,
    name: str,
    created_by: str,
    due_date: datetime | None = None,
) -> WorkflowInstance:
    workflow = WorkflowInstance(
        template_id=template.id,
        template_name=template.name,
        name=name,
        status=WorkflowStatus.IN_PROGRESS.value,
        current_step_order=1,
        created_by=created_by,
        due_date=due_date,
    )
    db.session.add(workflow)
    db.session.flush()
    return workflow


def set_progress(
    workflow: WorkflowInstance,
    status: WorkflowStatus,
    step_order: int | None = None,
) -> WorkflowInstance:
    workflow.status = status.value
    if step_order is not None:
        workflow.current_step_order = step_order
    db.session.flush()
    return workflow


def delete_workflow(workflow: WorkflowInstance) -> None:
    """Delete the instance row only; its tasks and approvals are left in place."""

    db.session.delete(workflow)
    db.session.flush()
