"""Helpers for normalising JSON request payloads.

Each helper returns ``(value, errors)`` so endpoints can collect every problem
in a payload before answering with a single 400 response.
"""
from __future__ import annotations

from datetime import UTC, datetime
from typing import Any, TypeVar

from ..models.enums import ValueEnum

TEnum = TypeVar("TEnum", bound=ValueEnum)

_MISSING = object()


def normalize_text(
    payload: dict[str, Any],
    key: str,
    *,
    max_length: int,
    required: bool = False,
    allow_empty: bool = False,
    default: str | None = None,
) -> tuple[str | None, list[str]]:
    value = payload.get(key, _MISSING)
    if value is _MISSING or value is None:
        if required:
            return None, [f"{key} is required"]
        return default, []

    if not isinstance(value, str):
        return None, [f"{key} must be a string"]

    candidate = value.strip()
    if not candidate and not allow_empty:
        if required:
            return None, [f"{key} is required"]
        return None, [f"{key} must not be empty"]
    if len(candidate) > max_length:
        return None, [f"{key} must be at most {max_length} characters"]
    return candidate, []


def normalize_enum(
    payload: dict[str, Any],
    key: str,
    enum_cls: type[TEnum],
    *,
    required: bool = False,
    default: TEnum | None = None,
) -> tuple[TEnum | None, list[str]]:
    value = payload.get(key, _MISSING)
    if value is _MISSING or value is None:
        if required:
            return None, [f"{key} is required"]
        return default, []

    parsed = enum_cls.parse(value)
    if parsed is None:
        allowed = ", ".join(enum_cls.values())
        return None, [f"{key} must be one of: {allowed}"]
    return parsed, []


def normalize_positive_int(
    payload: dict[str, Any], key: str, *, required: bool = True
) -> tuple[int | None, list[str]]:
    value = payload.get(key, _MISSING)
    if value is _MISSING or value is None:
        return None, [f"{key} is required"] if required else []

    if isinstance(value, bool) or not isinstance(value, int):
        return None, [f"{key} must be an integer"]
    if value < 1:
        return None, [f"{key} must be at least 1"]
    return value, []


def normalize_datetime(payload: dict[str, Any], key: str) -> tuple[datetime | None, list[str]]:
    """Parse an optional ISO-8601 timestamp into a naive UTC datetime."""

    value = payload.get(key)
    if value is None or value == "":
        return None, []
    if not isinstance(value, str):
        return None, [f"{key} must be an ISO-8601 datetime string"]

    try:
        parsed = datetime.fromisoformat(value.strip())
    except ValueError:
        return None, [f"{key} must be an ISO-8601 datetime string"]

    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(UTC).replace(tzinfo=None)
    return parsed, []


def parse_id(value: Any) -> int | None:
    """Return ``value`` as a positive integer identifier, or ``None``."""

    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value if value > 0 else None
    if isinstance(value, str) and value.strip().isdigit():
        parsed = int(value.strip())
        return parsed if parsed > 0 else None
    return None
