"""Application factory for the Flowboard backend."""
from __future__ import annotations

import time
from http import HTTPStatus

from flask import Flask, jsonify
from sqlalchemy.exc import OperationalError

from .config import Config
from .extensions import cors, db, limiter


def create_app(config_class: type[Config] = Config) -> Flask:
    """Create and configure the Flask application instance."""
    app = Flask(__name__)
    app.config.from_object(config_class)
    app.logger.setLevel(app.config.get("LOG_LEVEL", "INFO"))

    db.init_app(app)

    if cors is not None:
        allowed_origins = [
            origin.strip()
            for origin in (app.config.get("CORS_ALLOWED_ORIGINS") or "").split(",")
            if origin.strip()
        ]
        cors.init_app(
            app,
            resources={r"/api/*": {"origins": allowed_origins}},
            allow_headers=["Content-Type", "X-User-Id"],
        )

    limiter.init_app(app)

    from .api.approvals import bp as approvals_bp
    from .api.health import bp as health_bp
    from .api.logs import bp as logs_bp
    from .api.members import bp as members_bp
    from .api.roles import bp as roles_bp
    from .api.tasks import bp as tasks_bp
    from .api.templates import bp as templates_bp
    from .api.workflow import bp as workflow_bp

    app.register_blueprint(health_bp, url_prefix="/api")
    app.register_blueprint(logs_bp, url_prefix="/api")
    app.register_blueprint(templates_bp, url_prefix="/api")
    app.register_blueprint(workflow_bp, url_prefix="/api")
    app.register_blueprint(tasks_bp, url_prefix="/api")
    app.register_blueprint(approvals_bp, url_prefix="/api")
    app.register_blueprint(members_bp, url_prefix="/api")
    app.register_blueprint(roles_bp, url_prefix="/api")

    _register_error_handlers(app)

    with app.app_context():
        # Import models to ensure they are registered with SQLAlchemy before creating tables.
        from .models import activity, approval, member, task, template, workflow  # noqa: F401

        _initialize_database(app)

    return app


def _register_error_handlers(app: Flask) -> None:
    from .workflow.engine import WorkflowConflictError

    @app.errorhandler(WorkflowConflictError)
    def _workflow_conflict(exc: WorkflowConflictError):
        app.logger.warning("Giving up on workflow %s: %s", exc.workflow_id, exc)
        return jsonify({"error": str(exc)}), HTTPStatus.CONFLICT


def _initialize_database(app: Flask) -> None:
    """Initialize the database with retry logic to handle delayed availability."""

    max_retries = int(app.config.get("DB_INIT_MAX_RETRIES", 30))
    retry_delay = float(app.config.get("DB_INIT_RETRY_DELAY", 2))

    for attempt in range(1, max_retries + 1):
        try:
            db.create_all()
            return
        except OperationalError as exc:
            if attempt >= max_retries:
                app.logger.exception("Database initialization failed after %s attempts.", attempt)
                raise

            app.logger.warning(
                "Database initialization attempt %s/%s failed: %s", attempt, max_retries, exc
            )
            time.sleep(retry_delay)
