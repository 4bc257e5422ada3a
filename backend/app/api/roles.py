"""REST API endpoints for roles and their permission flags."""

from __future__ import annotations

from http import HTTPStatus
from typing import Any

from flask import Blueprint, jsonify, request

from ..extensions import db
from ..models.base import isoformat
from ..models.member import PERMISSION_KEYS, Role
from ..utils.validation import normalize_text

bp = Blueprint("roles", __name__)

ROLE_NOT_FOUND = "role not found"


def _role_to_dict(role: Role) -> dict[str, Any]:
    return {
        "id": role.id,
        "name": role.name,
        "permissions": role.permissions,
        "createdAt": isoformat(role.created_at),
        "updatedAt": isoformat(role.updated_at),
    }


def _normalize_permissions(value: Any, *, required: bool) -> tuple[dict[str, bool] | None, list[str]]:
    if value is None:
        return None, ["permissions is required"] if required else []
    if not isinstance(value, dict):
        return None, ["permissions must be an object"]

    unknown = sorted(set(value) - set(PERMISSION_KEYS))
    if unknown:
        return None, [f"unknown permissions: {', '.join(unknown)}"]
    if not all(isinstance(flag, bool) for flag in value.values()):
        return None, ["permission flags must be booleans"]
    return dict(value), []


@bp.get("/roles")
def list_roles() -> tuple[object, int]:
    roles = Role.query.order_by(Role.created_at.desc(), Role.id.desc()).all()
    return jsonify([_role_to_dict(role) for role in roles]), HTTPStatus.OK


@bp.get("/roles/<int:role_id>")
def get_role(role_id: int) -> tuple[object, int]:
    role = db.session.get(Role, role_id)
    if role is None:
        return jsonify({"error": ROLE_NOT_FOUND}), HTTPStatus.NOT_FOUND
    return jsonify(_role_to_dict(role)), HTTPStatus.OK


@bp.post("/roles")
def create_role() -> tuple[object, int]:
    payload = request.get_json(force=True, silent=True) or {}
    name, errors = normalize_text(payload, "name", max_length=100, required=True)
    permissions, permission_errors = _normalize_permissions(
        payload.get("permissions"), required=True
    )
    errors.extend(permission_errors)
    if errors:
        return jsonify({"errors": errors}), HTTPStatus.BAD_REQUEST

    role = Role(name=name)
    role.permissions = permissions
    db.session.add(role)
    db.session.commit()

    return jsonify(_role_to_dict(role)), HTTPStatus.CREATED


@bp.patch("/roles/<int:role_id>")
def update_role(role_id: int) -> tuple[object, int]:
    role = db.session.get(Role, role_id)
    if role is None:
        return jsonify({"error": ROLE_NOT_FOUND}), HTTPStatus.NOT_FOUND

    payload = request.get_json(force=True, silent=True) or {}
    name, errors = normalize_text(payload, "name", max_length=100)
    permissions, permission_errors = _normalize_permissions(
        payload.get("permissions"), required=False
    )
    errors.extend(permission_errors)
    if errors:
        return jsonify({"errors": errors}), HTTPStatus.BAD_REQUEST

    if name is not None:
        role.name = name
    if permissions is not None:
        role.permissions = {**role.permissions, **permissions}
    db.session.commit()

    return jsonify(_role_to_dict(role)), HTTPStatus.OK


@bp.delete("/roles/<int:role_id>")
def delete_role(role_id: int) -> tuple[object, int]:
    role = db.session.get(Role, role_id)
    if role is None:
        return jsonify({"error": ROLE_NOT_FOUND}), HTTPStatus.NOT_FOUND
    db.session.delete(role)
    db.session.commit()
    return "", HTTPStatus.NO_CONTENT
