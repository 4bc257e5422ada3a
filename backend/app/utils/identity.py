"""Mock request identity taken from the ``X-User-Id`` header.

This is not an authentication layer: any caller can claim any identity. It only
provides a name for ``createdBy``, approvers and activity records.
"""
from __future__ import annotations

from dataclasses import dataclass

from flask import current_app, request


@dataclass(frozen=True)
class CurrentUser:
    id: str


def current_user() -> CurrentUser:
    """Return the identity of the current request.

    Read from the request headers on every call. ``g`` lives on the app
    context, which can outlive a single request.
    """

    user_id = request.headers.get("X-User-Id", "").strip()
    return CurrentUser(id=user_id or current_app.config.get("DEFAULT_USER_ID", "user-001"))
