"""Tests for the healthcheck endpoint."""

from __future__ import annotations

from flowboard import Config, create_app


class HealthTestConfig(Config):
    """Configuration used during testing."""

    TESTING = True
    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
    RATELIMIT_ENABLED = False


def create_test_app():
    """Create an application instance configured for tests."""

    return create_app(HealthTestConfig)


def test_health_endpoint_returns_ok():
    """The healthcheck endpoint should report ok when the database answers."""

    app = create_test_app()
    client = app.test_client()

    response = client.get("/api/health")

    assert response.status_code == 200
    assert response.get_json() == {"status": "ok"}
