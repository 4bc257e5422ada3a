"""Activity log model definition."""

from __future__ import annotations

from ..extensions import db
from .base import utcnow
from .enums import ActivitySource


class ActivityLog(db.Model):
    """Append-only record of workflow, task and approval state changes."""

    __tablename__ = "activity_logs"

    id = db.Column(db.Integer, primary_key=True)
    source = db.Column(db.Enum(*ActivitySource.values(), name="activity_source"), nullable=False)
    workflow_id = db.Column(db.Integer, nullable=True, index=True)
    actor = db.Column(db.String(100), nullable=True)
    message = db.Column(db.Text, nullable=False)
    created_at = db.Column(db.DateTime, default=utcnow, nullable=False)

    def __repr__(self) -> str:  # pragma: no cover - repr not critical for tests
        return f"<ActivityLog {self.id} from {self.source}>"
