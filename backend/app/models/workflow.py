"""Workflow instance model definition."""

from __future__ import annotations

from ..extensions import db
from .base import TimestampMixin
from .enums import WorkflowStatus


class WorkflowInstance(TimestampMixin, db.Model):
    """A running execution of a workflow template.

    ``template_name`` is a snapshot taken at creation time; later edits to the
    template do not change it. ``version`` guards concurrent writers: every ORM
    update is issued against the version that was read and fails with
    ``StaleDataError`` when another writer got there first.
    """

    __tablename__ = "workflow_instances"

    id = db.Column(db.Integer, primary_key=True)
    template_id = db.Column(db.Integer, nullable=False, index=True)
    template_name = db.Column(db.String(200), nullable=False)
    name = db.Column(db.String(200), nullable=False)
    status = db.Column(
        db.Enum(*WorkflowStatus.values(), name="workflow_status"),
        nullable=False,
        default=WorkflowStatus.IN_PROGRESS.value,
        index=True,
    )
    current_step_order = db.Column(db.Integer, nullable=False, default=1)
    created_by = db.Column(db.String(100), nullable=False)
    due_date = db.Column(db.DateTime, nullable=True)
    version = db.Column(db.Integer, nullable=False)

    __mapper_args__ = {"version_id_col": version}

    def __repr__(self) -> str:  # pragma: no cover - repr not critical for tests
        return f"<WorkflowInstance {self.id} {self.status} step={self.current_step_order}>"
