"""
Tests for app/core/auth.py - header identity resolution and the demo fallback.
"""
import logging

import pytest

from core.auth import LOOKUP_BY_CODE, LOOKUP_BY_ID, extract_identifier, lookup_key
from core.logger import logger
from conftest import ADMIN_A, ALICE, INACTIVE_A, MANAGER_A, ROGUE_B, TENANT_A, bearer


class _Collector(logging.Handler):
    def __init__(self):
        super().__init__(level=logging.DEBUG)
        self.records = []

    def emit(self, record):
        self.records.append(record)


@pytest.fixture
def security_log():
    """Records emitted on the rotaclock logger (it does not propagate to root)."""
    collector = _Collector()
    logger.addHandler(collector)
    yield collector.records
    logger.removeHandler(collector)


class TestExtractIdentifier:

    def test_bearer_value(self):
        assert extract_identifier({"authorization": "Bearer abc"}) == "abc"

    def test_bearer_wins_over_employee_header(self):
        headers = {"authorization": "Bearer from-bearer", "x-employee-id": "from-header"}
        assert extract_identifier(headers) == "from-bearer"

    def test_employee_header_used_without_bearer(self):
        assert extract_identifier({"x-employee-id": " EMP002 "}) == "EMP002"

    def test_empty_bearer_yields_nothing(self):
        assert extract_identifier({"authorization": "Bearer   "}) is None

    def test_non_bearer_scheme_is_ignored(self):
        assert extract_identifier({"authorization": "Basic dXNlcjpwYXNz"}) is None

    def test_no_headers(self):
        assert extract_identifier({}) is None


class TestLookupKey:

    def test_canonical_uuid_matches_id_column(self):
        assert lookup_key(ALICE) == LOOKUP_BY_ID

    def test_anything_else_is_an_employee_code(self):
        assert lookup_key("EMP002") == LOOKUP_BY_CODE
        assert lookup_key(ALICE.replace("-", "")) == LOOKUP_BY_CODE


class TestHeaderResolution:

    def test_uuid_bearer_resolves(self, client):
        response = client.get("/api/v1/auth/me", headers=bearer(ALICE))

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["data"]["id"] == ALICE
        assert body["data"]["role"] == "employee"
        assert body["data"]["tenant_id"] == TENANT_A
        assert body["data"]["is_demo"] is False

    def test_unique_employee_code_resolves(self, client):
        response = client.get("/api/v1/auth/me", headers={"x-employee-id": "MGR001"})

        assert response.status_code == 200
        assert response.json()["data"]["id"] == MANAGER_A

    def test_bearer_takes_precedence(self, client):
        headers = {**bearer(ADMIN_A), "x-employee-id": ALICE}
        response = client.get("/api/v1/auth/me", headers=headers)

        assert response.json()["data"]["id"] == ADMIN_A

    def test_missing_credentials_is_401(self, client):
        response = client.get("/api/v1/auth/me")

        assert response.status_code == 401
        assert response.json() == {"success": False, "error": "Unauthorized", "code": "unauthorized"}

    def test_unknown_identifier_is_401(self, client):
        response = client.get("/api/v1/auth/me", headers=bearer("2e000000-0000-4000-8000-00000000ffff"))
        assert response.status_code == 401

    def test_inactive_employee_is_401(self, client):
        response = client.get("/api/v1/auth/me", headers=bearer(INACTIVE_A))
        assert response.status_code == 401

    def test_code_shared_across_tenants_is_ambiguous(self, client, security_log):
        response = client.get("/api/v1/auth/me", headers={"x-employee-id": "EMP001"})

        assert response.status_code == 401
        reasons = [getattr(r, "meta", {}).get("reason") for r in security_log]
        assert "ambiguous_employee_code" in reasons

    def test_unknown_stored_role_does_not_authenticate(self, client):
        response = client.get("/api/v1/auth/me", headers=bearer(ROGUE_B))
        assert response.status_code == 401


class TestDemoFallback:

    def test_disabled_fallback_leaves_request_anonymous(self, client):
        assert client.get("/api/v1/locations").status_code == 401

    def test_enabled_fallback_substitutes_demo_admin(self, demo_client, security_log):
        response = demo_client.get("/api/v1/auth/me")

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["id"] == ADMIN_A
        assert data["role"] == "admin"
        assert data["is_demo"] is True

        demo_events = [r for r in security_log if getattr(r, "result", None) == "demo_fallback"]
        assert demo_events
        assert demo_events[0].meta["demo_identity"] is True

    def test_enabled_fallback_keeps_real_identities(self, demo_client):
        response = demo_client.get("/api/v1/auth/me", headers=bearer(ALICE))

        data = response.json()["data"]
        assert data["id"] == ALICE
        assert data["is_demo"] is False

    def test_demo_actions_are_marked_in_security_log(self, demo_client, security_log):
        response = demo_client.put(
            "/api/v1/admin/settings/approvals",
            json={"allow_manager_approvals": True},
        )

        assert response.status_code == 200
        update = [r for r in security_log if getattr(r, "action", None) == "approval_settings_update"]
        assert update and update[0].meta["demo_identity"] is True
