"""Workflow template and task pattern models."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any

from ..extensions import db
from .base import TimestampMixin
from .enums import StepType, TaskPriority


@dataclass(frozen=True)
class WorkflowStep:
    """One position in a template's ordered step list."""

    order: int
    name: str
    type: StepType
    approver_roles: tuple[str, ...] = field(default_factory=tuple)

    def to_dict(self) -> dict[str, Any]:
        return {
            "order": self.order,
            "name": self.name,
            "type": self.type.value,
            "approverRoles": list(self.approver_roles),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> WorkflowStep:
        return cls(
            order=int(data["order"]),
            name=str(data["name"]),
            type=StepType(data["type"]),
            approver_roles=tuple(data.get("approverRoles") or ()),
        )


class WorkflowTemplate(TimestampMixin, db.Model):
    """Reusable definition of an ordered step sequence."""

    __tablename__ = "workflow_templates"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(200), nullable=False)
    description = db.Column(db.String(1000), nullable=False, default="")
    steps_json = db.Column(db.Text, nullable=False, default="[]")

    patterns = db.relationship(
        "TaskPattern",
        back_populates="template",
        cascade="all, delete-orphan",
        order_by="TaskPattern.id",
    )

    @property
    def steps(self) -> list[WorkflowStep]:
        try:
            raw = json.loads(self.steps_json or "[]")
        except (TypeError, ValueError):
            return []
        steps = [WorkflowStep.from_dict(item) for item in raw]
        return sorted(steps, key=lambda step: step.order)

    @steps.setter
    def steps(self, value: list[WorkflowStep]) -> None:
        ordered = sorted(value, key=lambda step: step.order)
        self.steps_json = json.dumps([step.to_dict() for step in ordered])

    def step_at(self, order: int) -> WorkflowStep | None:
        for step in self.steps:
            if step.order == order:
                return step
        return None

    def __repr__(self) -> str:  # pragma: no cover - repr not critical for tests
        return f"<WorkflowTemplate {self.name!r}>"


class TaskPattern(db.Model):
    """Blueprint used to seed a task when a workflow is created from a template."""

    __tablename__ = "task_patterns"

    id = db.Column(db.Integer, primary_key=True)
    template_id = db.Column(
        db.Integer, db.ForeignKey("workflow_templates.id"), nullable=False, index=True
    )
    name = db.Column(db.String(200), nullable=False)
    description = db.Column(db.String(1000), nullable=False, default="")
    step_order = db.Column(db.Integer, nullable=False)
    default_assignee_role = db.Column(db.String(100), nullable=True)
    priority = db.Column(
        db.Enum(*TaskPriority.values(), name="pattern_priority"),
        nullable=False,
        default=TaskPriority.MEDIUM.value,
    )

    template = db.relationship("WorkflowTemplate", back_populates="patterns")

    def __repr__(self) -> str:  # pragma: no cover - repr not critical for tests
        return f"<TaskPattern {self.name!r} step={self.step_order}>"
