"""Workflow progression engine.

Creates workflow instances from templates and re-evaluates whether an instance
may move past its current step after a task or approval changes.
"""
from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum
from typing import Any, Protocol

from flask import current_app
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm.exc import StaleDataError

from ..extensions import db
from ..models.approval import ApprovalStep
from ..models.enums import (
    ActivitySource,
    ApprovalStatus,
    StepType,
    TaskPriority,
    TaskStatus,
    WorkflowStatus,
)
from ..models.task import Task
from ..models.template import WorkflowStep
from ..models.workflow import WorkflowInstance
from ..repositories import approvals as approval_ledger
from ..repositories import tasks as task_ledger
from ..repositories import templates as template_catalog
from ..repositories import workflows as workflow_ledger
from ..repositories.activity import record_activity
from . import state_machine


class TemplateNotFoundError(Exception):
    """Raised when a workflow is created from a template that does not exist."""

    def __init__(self, template_id: object):
        self.template_id = template_id
        super().__init__(f"template {template_id} not found")


class WorkflowConflictError(Exception):
    """Raised when a workflow write keeps losing the race against concurrent writers."""

    def __init__(self, workflow_id: int, attempts: int):
        self.workflow_id = workflow_id
        self.attempts = attempts
        super().__init__(
            f"workflow {workflow_id} changed concurrently; gave up after {attempts} attempt(s)"
        )


class AdvanceOutcome(StrEnum):
    NOT_FOUND = "not_found"
    INACTIVE = "inactive"
    BLOCKED = "blocked"
    ADVANCED = "advanced"
    COMPLETED = "completed"


@dataclass(frozen=True)
class AdvanceResult:
    outcome: AdvanceOutcome
    workflow: WorkflowInstance | None = None

    @property
    def changed(self) -> bool:
        return self.outcome in (AdvanceOutcome.ADVANCED, AdvanceOutcome.COMPLETED)


@dataclass(frozen=True)
class ProgressDecision:
    """What advancement would do to an instance sitting at ``step_order``."""

    outcome: AdvanceOutcome
    step_order: int
    status: WorkflowStatus | None = None


@dataclass
class CreationResult:
    workflow: WorkflowInstance
    tasks: list[Task] = field(default_factory=list)
    approvals: list[ApprovalStep] = field(default_factory=list)


@dataclass
class DecisionResult:
    approval: ApprovalStep
    advance: AdvanceResult | None = None


@dataclass
class TaskChangeResult:
    task: Task
    advance: AdvanceResult | None = None


class _HasStepStatus(Protocol):
    step_order: int
    status: str


def _step_satisfied(items: Iterable[_HasStepStatus], step_order: int, done: str) -> bool:
    return all(item.status == done for item in items if item.step_order == step_order)


def evaluate_progress(
    steps: Sequence[WorkflowStep],
    current_step_order: int,
    tasks: Iterable[_HasStepStatus],
    approvals: Iterable[_HasStepStatus],
) -> ProgressDecision:
    """Decide whether the current step is satisfied and where the instance goes next.

    A step is satisfied when every task at that step is ``done`` and every
    approval at that step is ``approved``; an empty set satisfies trivially.
    A ``rejected`` approval therefore blocks the step.
    """

    tasks_satisfied = _step_satisfied(tasks, current_step_order, TaskStatus.DONE)
    approvals_satisfied = _step_satisfied(approvals, current_step_order, ApprovalStatus.APPROVED)
    if not (tasks_satisfied and approvals_satisfied):
        return ProgressDecision(AdvanceOutcome.BLOCKED, current_step_order)

    max_step_order = max((step.order for step in steps), default=0)
    if current_step_order >= max_step_order:
        return ProgressDecision(
            AdvanceOutcome.COMPLETED, current_step_order, WorkflowStatus.COMPLETED
        )

    next_step_order = current_step_order + 1
    next_step = next((step for step in steps if step.order == next_step_order), None)
    if next_step is not None and next_step.type is StepType.APPROVAL:
        next_status = WorkflowStatus.PENDING_APPROVAL
    else:
        next_status = WorkflowStatus.IN_PROGRESS
    return ProgressDecision(AdvanceOutcome.ADVANCED, next_step_order, next_status)


def create_from_template(
    template_id: int,
    name: str,
    created_by: str,
    due_date: datetime | None = None,
) -> CreationResult:
    """Instantiate a template with its tasks and approval gates in one transaction."""

    template = template_catalog.get_template(template_id)
    if template is None:
        raise TemplateNotFoundError(template_id)

    try:
        workflow = workflow_ledger.create_workflow(template, name, created_by, due_date)

        tasks = [
            task_ledger.create_task(
                task_ledger.TaskBlueprint(
                    workflow_id=workflow.id,
                    pattern_id=pattern.id,
                    title=pattern.name,
                    description=pattern.description or "",
                    priority=TaskPriority(pattern.priority),
                    assignee=pattern.default_assignee_role,
                    step_order=pattern.step_order,
                )
            )
            for pattern in template_catalog.get_task_patterns(template.id)
        ]

        approvals = [
            approval_ledger.create_approval(
                approval_ledger.ApprovalRequest(
                    workflow_id=workflow.id,
                    step_order=step.order,
                    step_name=step.name,
                    requested_by=created_by,
                )
            )
            for step in template.steps
            if step.type is StepType.APPROVAL
        ]

        record_activity(
            ActivitySource.WORKFLOW,
            f"workflow {workflow.name!r} created from template {template.name!r} "
            f"with {len(tasks)} tasks and {len(approvals)} approvals",
            workflow_id=workflow.id,
            actor=created_by,
        )
        db.session.commit()
    except SQLAlchemyError:
        db.session.rollback()
        raise

    current_app.logger.info(
        "Created workflow %s from template %s (%s tasks, %s approvals)",
        workflow.id,
        template.id,
        len(tasks),
        len(approvals),
    )
    return CreationResult(workflow=workflow, tasks=tasks, approvals=approvals)


def advance_workflow(workflow_id: int) -> AdvanceResult:
    """Re-evaluate the current step of a workflow and move it forward if satisfied.

    Moves at most one step per call. Calling it again without new task or
    approval progress changes nothing. A missing instance or template is
    reported as ``NOT_FOUND`` rather than raised.
    """

    max_attempts = max(1, int(current_app.config.get("ADVANCE_MAX_ATTEMPTS", 3)))

    for attempt in range(1, max_attempts + 1):
        workflow = workflow_ledger.get_workflow(workflow_id)
        if workflow is None:
            return AdvanceResult(AdvanceOutcome.NOT_FOUND)

        template = template_catalog.get_template(workflow.template_id)
        if template is None:
            current_app.logger.warning(
                "Workflow %s references missing template %s; not advancing",
                workflow_id,
                workflow.template_id,
            )
            return AdvanceResult(AdvanceOutcome.NOT_FOUND)

        if not state_machine.can_advance(workflow.status):
            return AdvanceResult(AdvanceOutcome.INACTIVE, workflow)

        previous_status = workflow.status
        previous_step = workflow.current_step_order
        decision = evaluate_progress(
            template.steps,
            previous_step,
            task_ledger.list_tasks_for_workflow(workflow_id),
            approval_ledger.list_approvals_for_workflow(workflow_id),
        )
        if decision.outcome is AdvanceOutcome.BLOCKED:
            return AdvanceResult(AdvanceOutcome.BLOCKED, workflow)

        state_machine.validate_advancement(previous_status, decision.status, workflow_id)

        try:
            workflow_ledger.set_progress(workflow, decision.status, decision.step_order)
            record_activity(
                ActivitySource.WORKFLOW,
                _describe_progress(workflow, previous_step, decision),
                workflow_id=workflow_id,
            )
            db.session.commit()
        except StaleDataError:
            db.session.rollback()
            current_app.logger.warning(
                "Workflow %s was modified concurrently (attempt %s/%s); re-evaluating",
                workflow_id,
                attempt,
                max_attempts,
            )
            continue

        current_app.logger.info(
            "Workflow %s %s: step %s -> %s, status %s -> %s",
            workflow_id,
            decision.outcome.value,
            previous_step,
            decision.step_order,
            previous_status,
            decision.status.value,
        )
        return AdvanceResult(decision.outcome, workflow)

    raise WorkflowConflictError(workflow_id, max_attempts)


def _describe_progress(
    workflow: WorkflowInstance, previous_step: int, decision: ProgressDecision
) -> str:
    if decision.outcome is AdvanceOutcome.COMPLETED:
        return f"workflow {workflow.name!r} completed at step {previous_step}"
    return (
        f"workflow {workflow.name!r} advanced from step {previous_step} "
        f"to step {decision.step_order} ({decision.status.value})"
    )


def approve_approval(
    approval_id: int, approver: str, comment: str | None = None
) -> DecisionResult | None:
    """Approve a pending approval and advance its workflow once."""

    return _decide(approval_id, ApprovalStatus.APPROVED, approver, comment)


def reject_approval(
    approval_id: int, approver: str, comment: str | None = None
) -> DecisionResult | None:
    """Reject a pending approval. The workflow stays blocked at that step."""

    return _decide(approval_id, ApprovalStatus.REJECTED, approver, comment)


def _decide(
    approval_id: int, decision: ApprovalStatus, decider: str, comment: str | None
) -> DecisionResult | None:
    found = approval_ledger.find_approval(approval_id)
    if found is None:
        return None

    workflow_id = found.workflow_id
    try:
        approval = approval_ledger.decide_approval(
            workflow_id, approval_id, decision, decider, comment
        )
        if approval is None:
            return None

        record_activity(
            ActivitySource.APPROVAL,
            f"approval {approval.step_name!r} (step {approval.step_order}) {decision.value}",
            workflow_id=workflow_id,
            actor=decider,
        )
        db.session.commit()
    except StaleDataError:
        db.session.rollback()
        current_app.logger.warning(
            "Approval %s was decided concurrently; dropping the %s decision by %s",
            approval_id,
            decision.value,
            decider,
        )
        raise approval_ledger.ApprovalAlreadyDecidedError(
            approval_ledger.find_approval(approval_id)
        ) from None

    current_app.logger.info(
        "Approval %s on workflow %s %s by %s", approval_id, workflow_id, decision.value, decider
    )

    result = DecisionResult(approval=approval)
    if decision is ApprovalStatus.APPROVED:
        result.advance = advance_workflow(workflow_id)
    return result


def add_task(blueprint: task_ledger.TaskBlueprint, actor: str | None = None) -> Task | None:
    """Create an ad hoc task on an existing workflow instance."""

    if workflow_ledger.get_workflow(blueprint.workflow_id) is None:
        return None

    task = task_ledger.create_task(blueprint)
    record_activity(
        ActivitySource.TASK,
        f"task {task.title!r} added at step {task.step_order}",
        workflow_id=task.workflow_id,
        actor=actor,
    )
    db.session.commit()
    return task


def change_task(
    task_id: int, changes: dict[str, Any], actor: str | None = None
) -> TaskChangeResult | None:
    """Update a task and, when it has just become ``done``, advance its workflow."""

    task = task_ledger.find_task(task_id)
    if task is None:
        return None

    previous_status = task.status
    updated = task_ledger.update_task(task.workflow_id, task_id, changes)
    if updated is None:
        return None

    if updated.status != previous_status:
        record_activity(
            ActivitySource.TASK,
            f"task {updated.title!r} moved from {previous_status} to {updated.status}",
            workflow_id=updated.workflow_id,
            actor=actor,
        )
    db.session.commit()

    result = TaskChangeResult(task=updated)
    if "status" in changes and updated.status == TaskStatus.DONE:
        result.advance = advance_workflow(updated.workflow_id)
    return result


def change_task_status(
    task_id: int, status: TaskStatus, actor: str | None = None
) -> TaskChangeResult | None:
    return change_task(task_id, {"status": status}, actor)


def override_status(
    workflow_id: int, status: WorkflowStatus, actor: str | None = None
) -> WorkflowInstance | None:
    """Set a workflow status directly, outside of step advancement.

    Used for manual cancellation. Task and approval state is not checked. A
    concurrent write to the instance raises ``WorkflowConflictError`` and the
    override is not retried.
    """

    workflow = workflow_ledger.get_workflow(workflow_id)
    if workflow is None:
        return None

    previous_status = workflow.status
    state_machine.validate_override(previous_status, status, workflow_id)
    if previous_status == status:
        return workflow

    try:
        workflow_ledger.set_progress(workflow, status)
        record_activity(
            ActivitySource.WORKFLOW,
            f"workflow {workflow.name!r} status set from {previous_status} to {status.value}",
            workflow_id=workflow_id,
            actor=actor,
        )
        db.session.commit()
    except StaleDataError:
        db.session.rollback()
        current_app.logger.warning(
            "Status override of workflow %s lost against a concurrent write", workflow_id
        )
        raise WorkflowConflictError(workflow_id, 1) from None
    current_app.logger.info(
        "Workflow %s status overridden %s -> %s by %s",
        workflow_id,
        previous_status,
        status.value,
        actor,
    )
    return workflow
