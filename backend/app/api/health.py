"""Health check endpoint."""

from http import HTTPStatus

from flask import Blueprint, current_app, jsonify
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from ..extensions import db

bp = Blueprint("health", __name__)


@bp.get("/health")
def health() -> tuple[object, int]:
    """Return the service health status, including database reachability."""
    try:
        db.session.execute(text("SELECT 1"))
    except SQLAlchemyError:
        current_app.logger.exception("Health check could not reach the database")
        db.session.rollback()
        return jsonify({"status": "degraded", "database": "unreachable"}), HTTPStatus.SERVICE_UNAVAILABLE
    return jsonify({"status": "ok"}), HTTPStatus.OK
