"""REST API endpoints for team members."""

from __future__ import annotations

import re
from http import HTTPStatus
from typing import Any

from flask import Blueprint, jsonify, request

from ..extensions import db
from ..models.base import isoformat
from ..models.enums import MemberStatus
from ..models.member import Member
from ..utils.validation import normalize_enum, normalize_text

bp = Blueprint("members", __name__)

MEMBER_NOT_FOUND = "member not found"
_EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def _member_to_dict(member: Member) -> dict[str, Any]:
    return {
        "id": member.id,
        "name": member.name,
        "email": member.email,
        "role": member.role,
        "status": member.status,
        "createdAt": isoformat(member.created_at),
        "updatedAt": isoformat(member.updated_at),
    }


def _validate_member_payload(
    payload: dict[str, Any], *, partial: bool = False
) -> tuple[dict[str, Any], list[str]]:
    errors: list[str] = []
    name, name_errors = normalize_text(payload, "name", max_length=100, required=not partial)
    role, role_errors = normalize_text(payload, "role", max_length=100, required=not partial)
    email, email_errors = normalize_text(
        payload, "email", max_length=255, allow_empty=True, default=None if partial else ""
    )
    status, status_errors = normalize_enum(
        payload, "status", MemberStatus, default=None if partial else MemberStatus.ACTIVE
    )
    errors.extend(name_errors + role_errors + email_errors + status_errors)

    if email and not _EMAIL_PATTERN.match(email):
        errors.append("email is not a valid address")

    data = {"name": name, "role": role, "email": email, "status": status}
    return {key: value for key, value in data.items() if value is not None}, errors


def _apply(member: Member, data: dict[str, Any]) -> None:
    for key, value in data.items():
        setattr(member, key, value.value if isinstance(value, MemberStatus) else value)


@bp.get("/members")
def list_members() -> tuple[object, int]:
    members = Member.query.order_by(Member.created_at.desc(), Member.id.desc()).all()
    return jsonify([_member_to_dict(member) for member in members]), HTTPStatus.OK


@bp.get("/members/<int:member_id>")
def get_member(member_id: int) -> tuple[object, int]:
    member = db.session.get(Member, member_id)
    if member is None:
        return jsonify({"error": MEMBER_NOT_FOUND}), HTTPStatus.NOT_FOUND
    return jsonify(_member_to_dict(member)), HTTPStatus.OK


@bp.post("/members")
def create_member() -> tuple[object, int]:
    payload = request.get_json(force=True, silent=True) or {}
    data, errors = _validate_member_payload(payload)
    if errors:
        return jsonify({"errors": errors}), HTTPStatus.BAD_REQUEST

    member = Member()
    _apply(member, data)
    db.session.add(member)
    db.session.commit()

    return jsonify(_member_to_dict(member)), HTTPStatus.CREATED


@bp.patch("/members/<int:member_id>")
def update_member(member_id: int) -> tuple[object, int]:
    member = db.session.get(Member, member_id)
    if member is None:
        return jsonify({"error": MEMBER_NOT_FOUND}), HTTPStatus.NOT_FOUND

    payload = request.get_json(force=True, silent=True) or {}
    data, errors = _validate_member_payload(payload, partial=True)
    if errors:
        return jsonify({"errors": errors}), HTTPStatus.BAD_REQUEST

    _apply(member, data)
    db.session.commit()
    return jsonify(_member_to_dict(member)), HTTPStatus.OK


@bp.delete("/members/<int:member_id>")
def delete_member(member_id: int) -> tuple[object, int]:
    member = db.session.get(Member, member_id)
    if member is None:
        return jsonify({"error": MEMBER_NOT_FOUND}), HTTPStatus.NOT_FOUND
    db.session.delete(member)
    db.session.commit()
    return "", HTTPStatus.NO_CONTENT
