"""Database models for the Flowboard backend."""

from .activity import ActivityLog
from .approval import ApprovalStep
from .member import Member, Role
from .task import Task
from .template import TaskPattern, WorkflowStep, WorkflowTemplate
from .workflow import WorkflowInstance

__all__ = [
    "ActivityLog",
    "ApprovalStep",
    "Member",
    "Role",
    "Task",
    "TaskPattern",
    "WorkflowInstance",
    "WorkflowStep",
    "WorkflowTemplate",
]
