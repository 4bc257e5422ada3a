"""REST API endpoints for approval decisions."""

from __future__ import annotations

from http import HTTPStatus
from typing import Any

from flask import Blueprint, jsonify, request

from ..models.approval import ApprovalStep
from ..models.base import isoformat
from ..models.enums import ApprovalStatus
from ..repositories import approvals as approval_ledger
from ..repositories.approvals import ApprovalAlreadyDecidedError
from ..utils.identity import current_user
from ..utils.validation import normalize_text, parse_id
from ..workflow import engine

bp = Blueprint("approvals", __name__)


def _approval_to_dict(approval: ApprovalStep) -> dict[str, Any]:
    return {
        "id": approval.id,
        "workflowId": approval.workflow_id,
        "stepOrder": approval.step_order,
        "stepName": approval.step_name,
        "status": approval.status,
        "requestedBy": approval.requested_by,
        "approver": approval.approver,
        "comment": approval.comment,
        "createdAt": isoformat(approval.created_at),
        "updatedAt": isoformat(approval.updated_at),
    }


@bp.get("/approvals")
def list_approvals() -> tuple[object, int]:
    status: ApprovalStatus | None = ApprovalStatus.PENDING
    status_param = request.args.get("status")
    if status_param:
        if status_param == "all":
            status = None
        else:
            status = ApprovalStatus.parse(status_param)
            if status is None:
                return jsonify({"error": "invalid status"}), HTTPStatus.BAD_REQUEST

    workflow_id = None
    workflow_param = request.args.get("workflowId")
    if workflow_param:
        workflow_id = parse_id(workflow_param)
        if workflow_id is None:
            return jsonify({"error": "invalid workflowId"}), HTTPStatus.BAD_REQUEST

    approvals = approval_ledger.list_approvals(status=status, workflow_id=workflow_id)
    return jsonify([_approval_to_dict(approval) for approval in approvals]), HTTPStatus.OK


def _decide(approval_id: int, decision: ApprovalStatus) -> tuple[object, int]:
    payload = request.get_json(force=True, silent=True) or {}
    comment, errors = normalize_text(payload, "comment", max_length=1000, allow_empty=True)
    if errors:
        return jsonify({"errors": errors}), HTTPStatus.BAD_REQUEST

    decide = engine.approve_approval if decision is ApprovalStatus.APPROVED else engine.reject_approval
    try:
        result = decide(approval_id, current_user().id, comment or None)
    except ApprovalAlreadyDecidedError as exc:
        return jsonify({"error": str(exc)}), HTTPStatus.CONFLICT

    if result is None:
        return jsonify({"error": "approval not found"}), HTTPStatus.NOT_FOUND
    return jsonify(_approval_to_dict(result.approval)), HTTPStatus.OK


@bp.post("/approvals/<int:approval_id>/approve")
def approve(approval_id: int) -> tuple[object, int]:
    return _decide(approval_id, ApprovalStatus.APPROVED)


@bp.post("/approvals/<int:approval_id>/reject")
def reject(approval_id: int) -> tuple[object, int]:
    return _decide(approval_id, ApprovalStatus.REJECTED)
