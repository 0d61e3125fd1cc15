"""
Tests for app/api/v1/locations.py - locations and manager-location assignments.
"""
from conftest import ALICE, LOC_B1, LOC_L1, LOC_L2, MANAGER_A, bearer


class TestLocations:

    def test_members_list_their_tenant_locations(self, client):
        response = client.get("/api/v1/locations", headers=bearer(ALICE))

        names = [loc["name"] for loc in response.json()["data"]]
        assert names == ["Downtown", "Harbour"]

    def test_employee_counts_skip_inactive(self, client, as_admin):
        response = client.get("/api/v1/locations", headers=as_admin)

        counts = {loc["id"]: loc["employee_count"] for loc in response.json()["data"]}
        assert counts == {LOC_L1: 4, LOC_L2: 1}

    def test_create_and_rename(self, client, as_admin):
        created = client.post("/api/v1/locations", json={"name": "Airport"}, headers=as_admin)
        assert created.status_code == 201

        location_id = created.json()["data"]["id"]
        renamed = client.put(f"/api/v1/locations/{location_id}", json={"name": "Airport T2"}, headers=as_admin)
        assert renamed.json()["data"]["name"] == "Airport T2"

    def test_duplicate_name_conflicts(self, client, as_admin):
        response = client.post("/api/v1/locations", json={"name": "downtown"}, headers=as_admin)
        assert response.status_code == 409

    def test_foreign_location_update_is_404(self, client, as_admin):
        response = client.put(f"/api/v1/locations/{LOC_B1}", json={"name": "Mine now"}, headers=as_admin)
        assert response.status_code == 404


class TestManagerLocations:

    def test_assign_widens_manager_scope(self, client, as_admin, as_manager):
        response = client.post(
            "/api/v1/manager-locations",
            json={"manager_id": MANAGER_A, "location_id": LOC_L2},
            headers=as_admin,
        )
        assert response.status_code == 201

        listed = client.get("/api/v1/manager-locations", params={"manager_id": MANAGER_A}, headers=as_admin)
        assert {a["location_id"] for a in listed.json()["data"]} == {LOC_L1, LOC_L2}

        employees = client.get("/api/v1/employees", headers=as_manager).json()["data"]
        assert {e["location_id"] for e in employees} == {LOC_L1, LOC_L2}

    def test_duplicate_assignment_conflicts(self, client, as_admin):
        response = client.post(
            "/api/v1/manager-locations",
            json={"manager_id": MANAGER_A, "location_id": LOC_L1},
            headers=as_admin,
        )
        assert response.status_code == 409

    def test_target_must_be_a_manager(self, client, as_admin):
        response = client.post(
            "/api/v1/manager-locations",
            json={"manager_id": ALICE, "location_id": LOC_L2},
            headers=as_admin,
        )
        assert response.status_code == 400

    def test_location_must_belong_to_tenant(self, client, as_admin):
        response = client.post(
            "/api/v1/manager-locations",
            json={"manager_id": MANAGER_A, "location_id": LOC_B1},
            headers=as_admin,
        )
        assert response.status_code == 400

    def test_unassign(self, client, as_admin, as_manager):
        response = client.delete(
            "/api/v1/manager-locations",
            params={"manager_id": MANAGER_A, "location_id": LOC_L1},
            headers=as_admin,
        )
        assert response.status_code == 200

        # No assigned locations left
        assert client.get("/api/v1/manager/timesheets", headers=as_manager).status_code == 403
