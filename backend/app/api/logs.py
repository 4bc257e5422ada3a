"""API endpoints exposing activity log entries."""

from __future__ import annotations

import json
from http import HTTPStatus

from flask import Blueprint, Response, jsonify, request

from ..models.activity import ActivityLog
from ..models.base import isoformat
from ..models.enums import ActivitySource
from ..utils.validation import parse_id

bp = Blueprint("logs", __name__)


def _serialize_entry(entry: ActivityLog) -> dict[str, object]:
    return {
        "id": entry.id,
        "source": entry.source,
        "workflowId": entry.workflow_id,
        "actor": entry.actor,
        "message": entry.message,
        "createdAt": isoformat(entry.created_at),
    }


def _filtered_query():
    """Apply the ``source`` and ``workflowId`` filters, or return ``None`` if invalid."""

    query = ActivityLog.query

    source = request.args.get("source")
    if source:
        if ActivitySource.parse(source) is None:
            return None
        query = query.filter_by(source=source)

    workflow_param = request.args.get("workflowId")
    if workflow_param:
        workflow_id = parse_id(workflow_param)
        if workflow_id is None:
            return None
        query = query.filter_by(workflow_id=workflow_id)

    return query


@bp.get("/logs")
def get_logs() -> tuple[object, int]:
    limit = request.args.get("limit", type=int) or 200
    limit = max(1, min(limit, 200))

    query = _filtered_query()
    if query is None:
        return jsonify({"error": "invalid filter"}), HTTPStatus.BAD_REQUEST

    entries = query.order_by(ActivityLog.id.desc()).limit(limit).all()
    data = [_serialize_entry(entry) for entry in entries]
    return jsonify(data), HTTPStatus.OK


@bp.get("/logs/download")
def download_logs() -> Response | tuple[object, int]:
    limit = request.args.get("limit", type=int) or 200
    limit = max(1, min(limit, 1000))

    query = _filtered_query()
    if query is None:
        return jsonify({"error": "invalid filter"}), HTTPStatus.BAD_REQUEST

    entries = query.order_by(ActivityLog.id.desc()).limit(limit).all()
    lines = [
        json.dumps(_serialize_entry(entry))
        for entry in reversed(entries)
    ]
    payload = "\n".join(lines)
    response = Response(payload, mimetype="application/x-ndjson")
    response.headers["Content-Disposition"] = "attachment; filename=activity-logs.ndjson"
    return response
