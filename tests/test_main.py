"""
Tests for app/main.py and app/core/errors.py - app wiring and the error envelope.
"""
from fastapi.testclient import TestClient

from core.auth import DemoFallbackResolver, HeaderIdentityResolver
from core.errors import ErrorCode, http_error
from main import create_app
from conftest import _settings


class TestCreateApp:

    def test_header_resolver_by_default(self, db_engine):
        app = create_app(_settings())
        assert isinstance(app.state.identity_resolver, HeaderIdentityResolver)

    def test_demo_resolver_only_when_enabled(self, db_engine):
        app = create_app(_settings(DEMO_AUTH=True))

        assert isinstance(app.state.identity_resolver, DemoFallbackResolver)
        assert app.state.identity_resolver.demo_user.is_demo is True

    def test_health(self, client):
        assert client.get("/health").json() == {"success": True, "data": {"status": "ok"}}


class TestErrorEnvelope:

    def test_http_error_detail(self):
        exc = http_error(status_code=409, code=ErrorCode.CONFLICT, message="Taken")

        assert exc.status_code == 409
        assert exc.detail == {"code": "conflict", "message": "Taken"}

    def test_unknown_route(self, client):
        response = client.get("/api/v1/nowhere")

        assert response.status_code == 404
        assert response.json()["success"] is False

    def test_unhandled_exception_is_generic_500(self, db_engine):
        app = create_app(_settings())

        @app.get("/boom")
        def boom():
            raise RuntimeError("database password is hunter2")

        with TestClient(app, raise_server_exceptions=False) as test_client:
            response = test_client.get("/boom")

        assert response.status_code == 500
        assert response.json() == {
            "success": False,
            "error": "Internal server error",
            "code": "internal_error",
        }
