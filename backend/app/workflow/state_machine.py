"""Workflow instance status transitions.

Advancement moves an active instance forward::

    in_progress      -> in_progress       (next step is a task or auto step)
    in_progress      -> pending_approval  (next step is an approval step)
    pending_approval -> in_progress
    pending_approval -> pending_approval  (two approval steps in a row)
    in_progress      -> completed         (last step satisfied)
    pending_approval -> completed

``draft`` is never produced by advancement and is never advanced from.
``completed`` and ``cancelled`` are terminal. Manual overrides may set any
status on a non-terminal instance.
"""

from __future__ import annotations

from ..models.enums import WorkflowStatus

TERMINAL_STATUSES: frozenset[WorkflowStatus] = frozenset(
    [WorkflowStatus.COMPLETED, WorkflowStatus.CANCELLED]
)

ACTIVE_STATUSES: frozenset[WorkflowStatus] = frozenset(
    [WorkflowStatus.IN_PROGRESS, WorkflowStatus.PENDING_APPROVAL]
)

ADVANCEMENT_TRANSITIONS: dict[WorkflowStatus, frozenset[WorkflowStatus]] = {
    WorkflowStatus.DRAFT: frozenset(),
    WorkflowStatus.IN_PROGRESS: frozenset([
        WorkflowStatus.IN_PROGRESS,
        WorkflowStatus.PENDING_APPROVAL,
        WorkflowStatus.COMPLETED,
    ]),
    WorkflowStatus.PENDING_APPROVAL: frozenset([
        WorkflowStatus.IN_PROGRESS,
        WorkflowStatus.PENDING_APPROVAL,
        WorkflowStatus.COMPLETED,
    ]),
    WorkflowStatus.COMPLETED: frozenset(),
    WorkflowStatus.CANCELLED: frozenset(),
}


class UnknownStatusError(ValueError):
    """Raised when a value is not a workflow status."""

    def __init__(self, status: object):
        self.status = status
        super().__init__(
            f"Unknown workflow status: {status!r}. "
            f"Valid statuses: {sorted(WorkflowStatus.values())}"
        )


class InvalidTransitionError(ValueError):
    """Raised when a workflow status change is not allowed."""

    def __init__(self, from_status: str, to_status: str, workflow_id: int | None = None):
        self.from_status = from_status
        self.to_status = to_status
        self.workflow_id = workflow_id
        workflow_info = f" (workflow_id={workflow_id})" if workflow_id is not None else ""
        super().__init__(
            f"Invalid workflow transition{workflow_info}: '{from_status}' -> '{to_status}'"
        )


def _coerce(status: object) -> WorkflowStatus:
    parsed = WorkflowStatus.parse(status)
    if parsed is None:
        raise UnknownStatusError(status)
    return parsed


def is_terminal(status: object) -> bool:
    return WorkflowStatus.parse(status) in TERMINAL_STATUSES


def can_advance(status: object) -> bool:
    """Return True if advancement may re-evaluate an instance in this status."""

    return WorkflowStatus.parse(status) in ACTIVE_STATUSES


def validate_advancement(
    from_status: object, to_status: object, workflow_id: int | None = None
) -> None:
    source = _coerce(from_status)
    target = _coerce(to_status)
    if target not in ADVANCEMENT_TRANSITIONS[source]:
        raise InvalidTransitionError(source.value, target.value, workflow_id)


def validate_override(
    from_status: object, to_status: object, workflow_id: int | None = None
) -> None:
    """Validate a manual status override.

    Any status may be set on a non-terminal instance. A terminal instance only
    accepts its own status again.
    """

    source = _coerce(from_status)
    target = _coerce(to_status)
    if is_terminal(source) and target is not source:
        raise InvalidTransitionError(source.value, target.value, workflow_id)
