"""
Tests for app/api/v1/admin.py - role changes, deactivation, attendance export,
managers, teams and approval settings.
"""
from sqlalchemy import select

from domain.tables import employees, manager_locations, role_assignments, teams
from services.export_service import ATTENDANCE_HEADERS
from conftest import ADMIN_A, ALICE, BOB, DANA, LOC_L1, MANAGER_A, TEAM_A, TENANT_A, bearer


class TestRoleChange:

    def test_demoting_manager_records_history_and_clears_locations(self, client, as_admin, db_engine):
        response = client.put(
            f"/api/v1/admin/employees/{MANAGER_A}/role",
            json={"role": "employee", "reason": "Restructure"},
            headers=as_admin,
        )

        assert response.status_code == 200
        assert response.json()["data"]["role"] == "employee"

        with db_engine.connect() as conn:
            history = conn.execute(
                select(role_assignments).where(role_assignments.c.employee_id == MANAGER_A)
            ).mappings().all()
            assignments = conn.execute(
                select(manager_locations).where(manager_locations.c.manager_id == MANAGER_A)
            ).all()

        assert len(history) == 1
        assert history[0]["old_role"] == "manager"
        assert history[0]["new_role"] == "employee"
        assert history[0]["assigned_by"] == ADMIN_A
        assert history[0]["tenant_id"] == TENANT_A
        assert assignments == []

    def test_demoted_manager_loses_manager_routes(self, client, as_admin, as_manager):
        client.put(f"/api/v1/admin/employees/{MANAGER_A}/role", json={"role": "employee"}, headers=as_admin)

        assert client.get("/api/v1/manager/timesheets", headers=as_manager).status_code == 403

    def test_promotion_keeps_history_newest_first(self, client, as_admin):
        client.put(f"/api/v1/admin/employees/{ALICE}/role", json={"role": "team_lead"}, headers=as_admin)
        client.put(f"/api/v1/admin/employees/{ALICE}/role", json={"role": "manager"}, headers=as_admin)

        response = client.get(f"/api/v1/admin/employees/{ALICE}/role-history", headers=as_admin)
        history = response.json()["data"]["history"]

        assert [h["new_role"] for h in history] == ["manager", "team_lead"]

    def test_history_by_email(self, client, as_admin):
        client.put(f"/api/v1/admin/employees/{BOB}/role", json={"role": "team_lead"}, headers=as_admin)

        response = client.get("/api/v1/admin/employees/bob@acme.test/role-history", headers=as_admin)

        assert response.status_code == 200
        assert response.json()["data"]["employee"]["id"] == BOB
        assert len(response.json()["data"]["history"]) == 1

    def test_same_role_is_rejected(self, client, as_admin):
        response = client.put(f"/api/v1/admin/employees/{ALICE}/role", json={"role": "employee"}, headers=as_admin)

        assert response.status_code == 400
        assert response.json()["error"] == "Employee already has this role"

    def test_unknown_role_is_rejected(self, client, as_admin):
        response = client.put(f"/api/v1/admin/employees/{ALICE}/role", json={"role": "owner"}, headers=as_admin)
        assert response.status_code == 400

    def test_manager_cannot_change_roles(self, client, as_manager):
        response = client.put(f"/api/v1/admin/employees/{ALICE}/role", json={"role": "admin"}, headers=as_manager)
        assert response.status_code == 403

    def test_cross_tenant_role_change_is_404(self, client, as_admin_b):
        response = client.put(f"/api/v1/admin/employees/{ALICE}/role", json={"role": "admin"}, headers=as_admin_b)
        assert response.status_code == 404


class TestDeactivate:

    def test_deactivated_employee_can_no_longer_authenticate(self, client, as_admin):
        response = client.post(f"/api/v1/admin/employees/{BOB}/deactivate", headers=as_admin)

        assert response.status_code == 200
        assert response.json()["data"]["is_active"] is False
        assert client.get("/api/v1/auth/me", headers=bearer(BOB)).status_code == 401

    def test_admin_cannot_deactivate_self(self, client, as_admin):
        response = client.post(f"/api/v1/admin/employees/{ADMIN_A}/deactivate", headers=as_admin)
        assert response.status_code == 400


class TestAttendanceExport:

    def test_csv_download(self, client, as_admin):
        response = client.get(f"/api/v1/admin/employees/{ALICE}/export-attendance", headers=as_admin)

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/csv")
        assert response.headers["content-disposition"] == 'attachment; filename="EMP002_attendance.csv"'

        lines = response.text.strip().split("\n")
        assert lines[0] == ",".join(ATTENDANCE_HEADERS)
        assert lines[1].startswith("2024-03-04,09:20:00,17:00:00,7.67,0.00,completed,pending")

    def test_manager_export_outside_scope_is_404(self, client, as_manager):
        assert client.get(f"/api/v1/admin/employees/{ALICE}/export-attendance", headers=as_manager).status_code == 200
        assert client.get(f"/api/v1/admin/employees/{BOB}/export-attendance", headers=as_manager).status_code == 404


class TestManagersAndTeams:

    def test_managers_with_locations(self, client, as_admin):
        response = client.get("/api/v1/admin/managers", headers=as_admin)

        managers = response.json()["data"]
        assert [m["id"] for m in managers] == [MANAGER_A]
        assert [loc["id"] for loc in managers[0]["assigned_locations"]] == [LOC_L1]

    def test_team_members(self, client):
        response = client.get(f"/api/v1/teams/{TEAM_A}/members", headers=bearer(ALICE))

        assert response.status_code == 200
        assert {m["id"] for m in response.json()["data"]} == {ALICE, DANA}

    def test_remove_team_member(self, client, as_admin):
        response = client.delete(f"/api/v1/admin/teams/{TEAM_A}/members/{ALICE}", headers=as_admin)

        assert response.status_code == 200
        again = client.delete(f"/api/v1/admin/teams/{TEAM_A}/members/{ALICE}", headers=as_admin)
        assert again.status_code == 404

    def test_deactivate_team_lead(self, client, as_admin, db_engine):
        response = client.post(f"/api/v1/admin/team-leads/{DANA}/deactivate", headers=as_admin)

        assert response.status_code == 200
        assert response.json()["data"]["role"] == "employee"
        with db_engine.connect() as conn:
            lead = conn.execute(select(teams.c.team_lead_id).where(teams.c.id == TEAM_A)).scalar()
            role = conn.execute(select(employees.c.role).where(employees.c.id == DANA)).scalar()
        assert lead is None
        assert role == "employee"

    def test_deactivate_non_lead_is_404(self, client, as_admin):
        assert client.post(f"/api/v1/admin/team-leads/{ALICE}/deactivate", headers=as_admin).status_code == 404


class TestApprovalSettings:

    def test_defaults_until_first_write(self, client):
        response = client.get("/api/v1/admin/settings/approvals", headers=bearer(ALICE))

        assert response.status_code == 200
        assert response.json()["data"]["allow_manager_approvals"] is False
        assert response.json()["data"]["pay_period_type"] == "weekly"

    def test_admin_updates_settings(self, client, as_admin):
        response = client.put(
            "/api/v1/admin/settings/approvals",
            json={"allow_manager_approvals": True, "pay_period_type": "custom", "custom_period_days": 10},
            headers=as_admin,
        )

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["allow_manager_approvals"] is True
        assert data["custom_period_days"] == 10

    def test_custom_period_requires_days(self, client, as_admin):
        response = client.put(
            "/api/v1/admin/settings/approvals", json={"pay_period_type": "custom"}, headers=as_admin,
        )
        assert response.status_code == 400

    def test_manager_cannot_update_settings(self, client, as_manager):
        response = client.put(
            "/api/v1/admin/settings/approvals", json={"allow_manager_approvals": True}, headers=as_manager,
        )
        assert response.status_code == 403
