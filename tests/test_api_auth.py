"""
Tests for app/api/v1/auth.py and app/api/v1/organizations.py - login and
organization signup.
"""
import pytest

from services.organization_service import make_slug, make_tenant_id
from conftest import ALICE, ALICE_PASSWORD, TENANT_A, bearer

SIGNUP = {
    "organizationName": "Initech Labs",
    "organizationEmail": "hello@initech.test",
    "organizationPhone": "555-0100",
    "organizationIndustry": "Software",
    "organizationSize": "11-50",
    "adminFirstName": "Bill",
    "adminLastName": "Lumbergh",
    "adminEmail": "bill@initech.test",
    "adminPhone": "555-0101",
    "adminPassword": "tps-reports-2024",
    "selectedPlan": "starter",
}


class TestLogin:

    def test_valid_credentials_return_identity(self, client):
        response = client.post(
            "/api/v1/auth/login", json={"email": "Alice@acme.test", "password": ALICE_PASSWORD},
        )

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["id"] == ALICE
        assert data["role"] == "employee"
        assert data["role_label"] == "Employee"
        assert data["tenant_id"] == TENANT_A

    @pytest.mark.parametrize("email, password", [
        ("alice@acme.test", "wrong-password"),
        ("nobody@acme.test", ALICE_PASSWORD),
        ("bob@acme.test", "no-hash-stored"),
    ])
    def test_every_failure_looks_the_same(self, client, email, password):
        response = client.post("/api/v1/auth/login", json={"email": email, "password": password})

        assert response.status_code == 401
        assert response.json()["error"] == "Invalid credentials"

    def test_returned_id_works_as_bearer(self, client):
        login = client.post("/api/v1/auth/login", json={"email": "alice@acme.test", "password": ALICE_PASSWORD})

        me = client.get("/api/v1/auth/me", headers=bearer(login.json()["data"]["id"]))
        assert me.json()["data"]["employee_code"] == "EMP002"


class TestSignup:

    def test_creates_tenant_with_first_admin(self, client):
        response = client.post("/api/v1/organizations/signup", json=SIGNUP)

        assert response.status_code == 201
        data = response.json()["data"]
        assert data["organization"]["slug"] == "initech-labs"
        assert data["organization"]["tenant_id"].startswith("initechlabs-")
        assert data["admin"]["employee_code"] == "EMP0001"
        assert data["admin"]["role"] == "admin"
        assert data["location"]["name"] == "Initech Labs Headquarters"

        login = client.post(
            "/api/v1/auth/login", json={"email": SIGNUP["adminEmail"], "password": SIGNUP["adminPassword"]},
        )
        admin_id = login.json()["data"]["id"]
        assert admin_id == data["admin"]["id"]

        headers = bearer(admin_id)
        assert len(client.get("/api/v1/locations", headers=headers).json()["data"]) == 1
        assert len(client.get("/api/v1/admin/pay-periods", headers=headers).json()["data"]) == 1
        employees = client.get("/api/v1/employees", headers=headers).json()["data"]
        assert [e["id"] for e in employees] == [admin_id]

    def test_duplicate_organization_email_conflicts(self, client):
        client.post("/api/v1/organizations/signup", json=SIGNUP)

        response = client.post(
            "/api/v1/organizations/signup", json={**SIGNUP, "adminEmail": "other@initech.test"},
        )

        assert response.status_code == 409
        assert response.json()["error"] == "Organization with this email already exists"

    def test_existing_employee_email_conflicts(self, client):
        response = client.post("/api/v1/organizations/signup", json={**SIGNUP, "adminEmail": "alice@acme.test"})
        assert response.status_code == 409

    def test_short_password_is_rejected(self, client):
        response = client.post("/api/v1/organizations/signup", json={**SIGNUP, "adminPassword": "short"})
        assert response.status_code == 400


class TestIdentifiers:

    def test_slug(self):
        assert make_slug("  Acme & Sons, Ltd.  ") == "acme-sons-ltd"
        assert make_slug("!!!") == "org"

    def test_tenant_id_prefix(self):
        tenant_id = make_tenant_id("Acme & Sons")
        prefix, suffix = tenant_id.split("-")

        assert prefix == "acmesons"
        assert suffix.isalnum()
