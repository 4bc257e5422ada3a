"""Approval ledger."""

from __future__ import annotations

from dataclasses import dataclass

from ..extensions import db
from ..models.approval import ApprovalStep
from ..models.enums import ApprovalStatus


class ApprovalAlreadyDecidedError(Exception):
    """Raised when a decision is recorded on an approval that is no longer pending."""

    def __init__(self, approval: ApprovalStep):
        self.approval_id = approval.id
        self.status = approval.status
        super().__init__(f"approval {approval.id} is already {approval.status}")


@dataclass(frozen=True)
class ApprovalRequest:
    workflow_id: int
    step_order: int
    step_name: str
    requested_by: str


def create_approval(request: ApprovalRequest) -> ApprovalStep:
    approval = ApprovalStep(
        workflow_id=request.workflow_id,
        step_order=request.step_order,
        step_name=request.step_name,
        status=ApprovalStatus.PENDING.value,
        requested_by=request.requested_by,
    )
    db.session.add(approval)
    db.session.flush()
    return approval


def find_approval(approval_id: int) -> ApprovalStep | None:
    return db.session.get(ApprovalStep, approval_id)


def list_approvals_for_workflow(workflow_id: int) -> list[ApprovalStep]:
    return (
        ApprovalStep.query.filter_by(workflow_id=workflow_id)
        .order_by(ApprovalStep.step_order.asc(), ApprovalStep.id.asc())
        .all()
    )


def list_approvals(
    *,
    status: ApprovalStatus | None = ApprovalStatus.PENDING,
    workflow_id: int | None = None,
) -> list[ApprovalStep]:
    query = ApprovalStep.query
    if status is not None:
        query = query.filter(ApprovalStep.status == status.value)
    if workflow_id is not None:
        query = query.filter(ApprovalStep.workflow_id == workflow_id)
    return query.order_by(ApprovalStep.created_at.desc(), ApprovalStep.id.desc()).all()


def decide_approval(
    workflow_id: int,
    approval_id: int,
    decision: ApprovalStatus,
    decider: str,
    comment: str | None = None,
) -> ApprovalStep | None:
    """Record an approve or reject decision on a pending approval.

    The flush raises ``StaleDataError`` when another writer decided the same
    approval after it was read.
    """

    if decision is ApprovalStatus.PENDING:
        raise ValueError("decision must be approved or rejected")

    approval = find_approval(approval_id)
    if approval is None or approval.workflow_id != workflow_id:
        return None
    if not approval.is_pending:
        raise ApprovalAlreadyDecidedError(approval)

    approval.status = decision.value
    approval.approver = decider
    approval.comment = comment
    db.session.flush()
    return approval
