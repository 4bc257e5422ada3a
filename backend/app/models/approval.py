"""Approval step model definition."""

from __future__ import annotations

from ..extensions import db
from .base import TimestampMixin
from .enums import ApprovalStatus


class ApprovalStep(TimestampMixin, db.Model):
    """A single approval gate under one workflow instance and one step.

    Decided once. ``version`` makes a second concurrent decision fail on flush
    instead of overwriting the first.
    """

    __tablename__ = "approval_steps"
    __table_args__ = (db.Index("ix_approval_steps_workflow_step", "workflow_id", "step_order"),)

    id = db.Column(db.Integer, primary_key=True)
    workflow_id = db.Column(db.Integer, nullable=False, index=True)
    step_order = db.Column(db.Integer, nullable=False)
    step_name = db.Column(db.String(100), nullable=False)
    status = db.Column(
        db.Enum(*ApprovalStatus.values(), name="approval_status"),
        nullable=False,
        default=ApprovalStatus.PENDING.value,
        index=True,
    )
    requested_by = db.Column(db.String(100), nullable=False)
    approver = db.Column(db.String(100), nullable=True)
    comment = db.Column(db.String(1000), nullable=True)
    version = db.Column(db.Integer, nullable=False)

    __mapper_args__ = {"version_id_col": version}

    @property
    def is_pending(self) -> bool:
        return self.status == ApprovalStatus.PENDING

    def __repr__(self) -> str:  # pragma: no cover - repr not critical for tests
        return f"<ApprovalStep {self.step_name!r} {self.status}>"
