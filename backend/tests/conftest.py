from __future__ import annotations

import pathlib
import sys
from collections.abc import Callable
from typing import Any

import pytest
from sqlalchemy.pool import StaticPool

ROOT = pathlib.Path(__file__).resolve().parents[2]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))


def _load_dependencies():
    from flowboard import Config, create_app
    from backend.app.extensions import db

    return Config, create_app, db


ConfigBase, create_app, db = _load_dependencies()


class TestConfig(ConfigBase):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = "sqlite+pysqlite:///:memory:"
    SQLALCHEMY_ENGINE_OPTIONS = {
        "poolclass": StaticPool,
        "connect_args": {"check_same_thread": False},
    }
    CORS_ALLOWED_ORIGINS = "http://localhost"
    RATELIMIT_ENABLED = False
    ADVANCE_MAX_ATTEMPTS = 3


@pytest.fixture(scope="module")
def app():
    app = create_app(TestConfig)
    ctx = app.app_context()
    ctx.push()
    yield app
    db.session.remove()
    ctx.pop()


@pytest.fixture()
def client(app):
    return app.test_client()


@pytest.fixture(autouse=True)
def cleanup_tables(app):
    yield

    db.session.rollback()
    for table in reversed(db.metadata.sorted_tables):
        db.session.execute(table.delete())
    db.session.commit()


THREE_STEP_TEMPLATE = {
    "name": "Expense Claim",
    "description": "Submit, approve, pay out",
    "steps": [
        {"order": 1, "name": "A", "type": "task"},
        {"order": 2, "name": "B", "type": "approval", "approverRoles": ["manager"]},
        {"order": 3, "name": "C", "type": "auto"},
    ],
}


@pytest.fixture()
def template_factory(client) -> Callable[..., dict[str, Any]]:
    """Create a template over the API, optionally with task patterns."""

    def factory(
        steps: list[dict[str, Any]] | None = None,
        patterns: list[dict[str, Any]] | None = None,
        name: str = "Expense Claim",
    ) -> dict[str, Any]:
        payload = dict(THREE_STEP_TEMPLATE, name=name)
        if steps is not None:
            payload["steps"] = steps
        response = client.post("/api/templates", json=payload)
        assert response.status_code == 201, response.get_json()
        template = response.get_json()

        for pattern in patterns if patterns is not None else [{"name": "Do A", "stepOrder": 1}]:
            created = client.post(f"/api/templates/{template['id']}/patterns", json=pattern)
            assert created.status_code == 201, created.get_json()
        return template

    return factory


@pytest.fixture()
def workflow_factory(client, template_factory) -> Callable[..., dict[str, Any]]:
    """Instantiate a workflow and return the ``{workflow, tasks, approvals}`` payload."""

    def factory(template: dict[str, Any] | None = None, **template_kwargs: Any) -> dict[str, Any]:
        template = template or template_factory(**template_kwargs)
        response = client.post(
            "/api/workflows",
            json={"templateId": template["id"], "name": "Trip to Berlin"},
            headers={"X-User-Id": "alice"},
        )
        assert response.status_code == 201, response.get_json()
        return response.get_json()

    return factory
