"""Activity log writer."""

from __future__ import annotations

from ..extensions import db
from ..models.activity import ActivityLog
from ..models.enums import ActivitySource


def record_activity(
    source: ActivitySource,
    message: str,
    *,
    workflow_id: int | None = None,
    actor: str | None = None,
) -> ActivityLog | None:
    """Stage an activity entry in the current transaction.

    Nothing is committed here; the entry is written together with the state
    change it describes.
    """

    if not message:
        return None
    entry = ActivityLog(
        source=source.value, workflow_id=workflow_id, actor=actor, message=message
    )
    db.session.add(entry)
    return entry
