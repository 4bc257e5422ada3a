"""Member and role models."""

from __future__ import annotations

import json

from ..extensions import db
from .base import TimestampMixin
from .enums import MemberStatus

PERMISSION_KEYS = ("member", "lead", "requester", "approver", "admin")


class Member(TimestampMixin, db.Model):
    """A person who can be assigned tasks or asked for approvals."""

    __tablename__ = "members"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(100), nullable=False)
    email = db.Column(db.String(255), nullable=False, default="")
    role = db.Column(db.String(100), nullable=False)
    status = db.Column(
        db.Enum(*MemberStatus.values(), name="member_status"),
        nullable=False,
        default=MemberStatus.ACTIVE.value,
    )

    def __repr__(self) -> str:  # pragma: no cover - repr not critical for tests
        return f"<Member {self.name!r}>"


class Role(TimestampMixin, db.Model):
    """Named role with a fixed set of permission flags."""

    __tablename__ = "roles"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(100), nullable=False)
    permissions_json = db.Column(db.Text, nullable=False, default="{}")

    @property
    def permissions(self) -> dict[str, bool]:
        try:
            raw = json.loads(self.permissions_json or "{}")
        except (TypeError, ValueError):
            raw = {}
        return {key: bool(raw.get(key, False)) for key in PERMISSION_KEYS}

    @permissions.setter
    def permissions(self, value: dict[str, bool]) -> None:
        self.permissions_json = json.dumps(
            {key: bool(value.get(key, False)) for key in PERMISSION_KEYS}
        )

    def __repr__(self) -> str:  # pragma: no cover - repr not critical for tests
        return f"<Role {self.name!r}>"
