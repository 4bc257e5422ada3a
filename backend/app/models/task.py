"""Task model definition."""

from __future__ import annotations

from ..extensions import db
from .base import TimestampMixin
from .enums import TaskPriority, TaskStatus


class Task(TimestampMixin, db.Model):
    """Unit of work scoped to one workflow instance and one step."""

    __tablename__ = "tasks"
    __table_args__ = (db.Index("ix_tasks_workflow_step", "workflow_id", "step_order"),)

    id = db.Column(db.Integer, primary_key=True)
    workflow_id = db.Column(db.Integer, nullable=False, index=True)
    pattern_id = db.Column(db.Integer, nullable=True)
    title = db.Column(db.String(200), nullable=False)
    description = db.Column(db.String(1000), nullable=False, default="")
    status = db.Column(
        db.Enum(*TaskStatus.values(), name="task_status"),
        nullable=False,
        default=TaskStatus.TODO.value,
        index=True,
    )
    priority = db.Column(
        db.Enum(*TaskPriority.values(), name="task_priority"),
        nullable=False,
        default=TaskPriority.MEDIUM.value,
    )
    assignee = db.Column(db.String(100), nullable=True, index=True)
    step_order = db.Column(db.Integer, nullable=False)

    def __repr__(self) -> str:  # pragma: no cover - repr not critical for tests
        return f"<Task {self.title!r} {self.status}>"
