"""Closed value sets for status and type columns."""

from __future__ import annotations

from enum import StrEnum


class ValueEnum(StrEnum):
    @classmethod
    def values(cls) -> tuple[str, ...]:
        return tuple(member.value for member in cls)

    @classmethod
    def parse(cls, value: object):
        """Return the member for ``value`` or ``None`` when it is not a valid value."""

        if isinstance(value, cls):
            return value
        if not isinstance(value, str):
            return None
        try:
            return cls(value.strip())
        except ValueError:
            return None


class StepType(ValueEnum):
    TASK = "task"
    APPROVAL = "approval"
    AUTO = "auto"


class WorkflowStatus(ValueEnum):
    DRAFT = "draft"
    IN_PROGRESS = "in_progress"
    PENDING_APPROVAL = "pending_approval"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class TaskStatus(ValueEnum):
    TODO = "todo"
    IN_PROGRESS = "in_progress"
    REVIEW = "review"
    DONE = "done"


class TaskPriority(ValueEnum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


class ApprovalStatus(ValueEnum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class MemberStatus(ValueEnum):
    ACTIVE = "active"
    INACTIVE = "inactive"


class ActivitySource(ValueEnum):
    WORKFLOW = "workflow"
    TASK = "task"
    APPROVAL = "approval"
