"""
Tests for app/api/v1/time_clock.py - clock-in/out and breaks.
"""
from datetime import date, datetime, timezone

import pytest
from sqlalchemy import insert, select
from sqlalchemy.exc import IntegrityError

from domain.tables import time_entries
from repositories import time_entry_repo
from conftest import ALICE, BOB, CAROL, TENANT_A, bearer


class TestClockInOut:

    def test_full_shift_with_break(self, client):
        me = bearer(ALICE)

        clock_in = client.post("/api/v1/time/clock-in", json={"notes": "Opening"}, headers=me)
        assert clock_in.status_code == 201
        assert clock_in.json()["data"]["status"] == "in-progress"

        started = client.post("/api/v1/time/break-start", json={"break_type": "rest"}, headers=me)
        assert started.status_code == 200
        assert started.json()["data"]["status"] == "active"
        assert started.json()["data"]["legacy_status"] == "break"

        status = client.get("/api/v1/time/break-status", headers=me).json()
        assert status["data"]["break_type"] == "rest"

        ended = client.post("/api/v1/time/break-end", json={}, headers=me)
        assert ended.status_code == 200
        assert ended.json()["data"]["status"] == "completed"
        assert ended.json()["data"]["legacy_status"] == "in-progress"

        status = client.get("/api/v1/time/break-status", headers=me).json()
        assert status["success"] is True
        assert status["data"] is None

        clock_out = client.post(
            "/api/v1/time/clock-out",
            json={"total_calls_taken": 12, "performance_rating": 4},
            headers=me,
        )
        body = clock_out.json()
        assert clock_out.status_code == 200
        assert body["data"]["status"] == "completed"
        assert body["data"]["approval_status"] == "pending"
        assert body["data"]["total_calls_taken"] == 12
        assert body["approvalStatus"] == "pending"
        assert body["totalWorkHours"] <= body["totalShiftDuration"]

    def test_second_clock_in_conflicts(self, client):
        me = bearer(ALICE)
        client.post("/api/v1/time/clock-in", json={}, headers=me)

        response = client.post("/api/v1/time/clock-in", json={}, headers=me)

        assert response.status_code == 409
        assert response.json()["error"] == "Already clocked in"

    def test_clock_out_without_shift_is_404(self, client):
        assert client.post("/api/v1/time/clock-out", json={}, headers=bearer(BOB)).status_code == 404

    def test_clock_out_mid_break_closes_break(self, client):
        me = bearer(ALICE)
        client.post("/api/v1/time/clock-in", json={}, headers=me)
        client.post("/api/v1/time/break-start", json={}, headers=me)

        response = client.post("/api/v1/time/clock-out", json={}, headers=me)

        assert response.status_code == 200
        assert client.get("/api/v1/time/break-status", headers=me).json()["data"] is None


class TestBreaks:

    def test_break_requires_open_shift(self, client):
        assert client.post("/api/v1/time/break-start", json={}, headers=bearer(ALICE)).status_code == 404

    def test_double_break_conflicts(self, client):
        me = bearer(ALICE)
        client.post("/api/v1/time/clock-in", json={}, headers=me)
        client.post("/api/v1/time/break-start", json={}, headers=me)

        response = client.post("/api/v1/time/break-start", json={}, headers=me)
        assert response.status_code == 409

    def test_break_end_without_break_is_404(self, client):
        assert client.post("/api/v1/time/break-end", json={}, headers=bearer(ALICE)).status_code == 404


class TestActingForOthers:

    def test_manager_clocks_in_employee_in_scope(self, client, as_manager):
        response = client.post("/api/v1/time/clock-in", json={"employee_id": ALICE}, headers=as_manager)

        assert response.status_code == 201
        assert response.json()["data"]["employee_id"] == ALICE

    def test_manager_cannot_act_outside_scope(self, client, as_manager):
        response = client.post("/api/v1/time/clock-in", json={"employee_id": BOB}, headers=as_manager)
        assert response.status_code == 404

    def test_employee_cannot_act_for_colleague(self, client):
        response = client.post("/api/v1/time/clock-in", json={"employee_id": BOB}, headers=bearer(ALICE))
        assert response.status_code == 404

    def test_admin_cannot_act_across_tenants(self, client, as_admin):
        response = client.get("/api/v1/time/break-status", params={"employee_id": CAROL}, headers=as_admin)
        assert response.status_code == 404


def _open_entry(entry_id, employee_id=ALICE, status="in-progress"):
    started = datetime(2024, 3, 5, 9, 0, tzinfo=timezone.utc)
    return {
        "id": entry_id,
        "tenant_id": TENANT_A,
        "employee_id": employee_id,
        "date": date(2024, 3, 5),
        "clock_in": started,
        "status": status,
    }


class TestOneOpenShift:

    def test_store_rejects_second_open_entry(self, db_engine):
        with db_engine.begin() as conn:
            conn.execute(insert(time_entries).values(_open_entry("open-1")))

        with pytest.raises(IntegrityError):
            with db_engine.begin() as conn:
                conn.execute(insert(time_entries).values(_open_entry("open-2", status="break")))

    def test_completed_entries_do_not_count(self, db_engine):
        with db_engine.begin() as conn:
            conn.execute(insert(time_entries).values(_open_entry("open-1")))
            conn.execute(insert(time_entries).values({**_open_entry("done-1"), "status": "completed"}))

        with db_engine.connect() as conn:
            stored = conn.execute(
                select(time_entries.c.id).where(time_entries.c.id.in_(["open-1", "done-1"]))
            ).scalars().all()
        assert sorted(stored) == ["done-1", "open-1"]

    def test_lost_race_reports_conflict(self, client, db_engine, monkeypatch):
        me = bearer(ALICE)
        assert client.post("/api/v1/time/clock-in", json={}, headers=me).status_code == 201
        # The competing transaction has not seen the first entry yet
        monkeypatch.setattr(time_entry_repo, "get_open_entry", lambda *args, **kwargs: None)

        response = client.post("/api/v1/time/clock-in", json={}, headers=me)

        assert response.status_code == 409
        assert response.json()["error"] == "Already clocked in"
        with db_engine.connect() as conn:
            open_entries = conn.execute(
                select(time_entries.c.id)
                .where(time_entries.c.employee_id == ALICE, time_entries.c.status == "in-progress")
            ).scalars().all()
        assert len(open_entries) == 1
