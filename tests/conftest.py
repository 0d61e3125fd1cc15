"""
Shared test fixtures for the RotaClock API tests.

The app runs against an in-memory SQLite engine built from the same table
metadata; core.db.engine is swapped for it per test, so every test starts
from the seed below.

Tenant A: admin, manager assigned to location L1, employees in L1 and L2,
a team lead, an inactive employee, completed pending shifts, an open and a
locked pay period. Tenant B: admin sharing the EMP001 code, one employee,
one completed pending shift.
"""
import os
from datetime import date, datetime, time, timezone
from decimal import Decimal

# Set test environment before importing app modules
os.environ.setdefault("PG_HOST", "localhost")
os.environ.setdefault("PG_DB", "rotaclock_test")
os.environ.setdefault("PG_USER", "rotaclock")
os.environ.setdefault("PG_PASSWORD", "testpassword")
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["DEMO_AUTH"] = "false"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, insert
from sqlalchemy.pool import StaticPool

import core.db as core_db
from core.config import Settings
from core.security import hash_password
from domain.tables import (
    employees, locations, manager_locations, metadata, organizations, pay_periods,
    payroll_records, shift_assignments, teams, time_entries,
)
from main import create_app

TENANT_A = "acme-lx1"
TENANT_B = "globex-lx2"
ORG_A = "0b7c1a52-0000-4000-8000-00000000000a"
ORG_B = "0b7c1a52-0000-4000-8000-00000000000b"

LOC_L1 = "1c000000-0000-4000-8000-000000000001"
LOC_L2 = "1c000000-0000-4000-8000-000000000002"
LOC_B1 = "1c000000-0000-4000-8000-0000000000b1"

ADMIN_A = "2e000000-0000-4000-8000-0000000000a1"
MANAGER_A = "2e000000-0000-4000-8000-0000000000a2"
ALICE = "2e000000-0000-4000-8000-0000000000a3"
BOB = "2e000000-0000-4000-8000-0000000000a4"
DANA = "2e000000-0000-4000-8000-0000000000a5"
INACTIVE_A = "2e000000-0000-4000-8000-0000000000a6"
ADMIN_B = "2e000000-0000-4000-8000-0000000000b1"
CAROL = "2e000000-0000-4000-8000-0000000000b2"
ROGUE_B = "2e000000-0000-4000-8000-0000000000b3"

TEAM_A = "3a000000-0000-4000-8000-000000000001"

ENTRY_ALICE = "4e000000-0000-4000-8000-0000000000a3"
ENTRY_BOB = "4e000000-0000-4000-8000-0000000000a4"
ENTRY_CAROL = "4e000000-0000-4000-8000-0000000000b2"

PERIOD_OPEN = "5f000000-0000-4000-8000-000000000001"
PERIOD_LOCKED = "5f000000-0000-4000-8000-000000000002"

ALICE_PASSWORD = "correct-horse-battery"
SHIFT_DAY = date(2024, 3, 4)


def _at(hour: int, minute: int = 0) -> datetime:
    return datetime.combine(SHIFT_DAY, time(hour, minute), tzinfo=timezone.utc)


def _employee(id, tenant_id, org_id, code, first, last, email, role, location_id, **extra):
    return {
        "id": id,
        "tenant_id": tenant_id,
        "organization_id": org_id,
        "employee_code": code,
        "first_name": first,
        "last_name": last,
        "email": email,
        "role": role,
        "location_id": location_id,
        "is_active": True,
        **extra,
    }


def _completed_entry(id, tenant_id, employee_id, clock_in, clock_out, hours):
    return {
        "id": id,
        "tenant_id": tenant_id,
        "employee_id": employee_id,
        "date": SHIFT_DAY,
        "clock_in": clock_in,
        "clock_out": clock_out,
        "break_hours": 0.0,
        "total_hours": hours,
        "status": "completed",
        "approval_status": "pending",
    }


def seed(conn) -> None:
    conn.execute(insert(organizations), [
        {"id": ORG_A, "tenant_id": TENANT_A, "name": "Acme", "slug": "acme", "email": "ops@acme.test"},
        {"id": ORG_B, "tenant_id": TENANT_B, "name": "Globex", "slug": "globex", "email": "ops@globex.test"},
    ])
    conn.execute(insert(locations), [
        {"id": LOC_L1, "tenant_id": TENANT_A, "organization_id": ORG_A, "name": "Downtown"},
        {"id": LOC_L2, "tenant_id": TENANT_A, "organization_id": ORG_A, "name": "Harbour"},
        {"id": LOC_B1, "tenant_id": TENANT_B, "organization_id": ORG_B, "name": "Globex HQ"},
    ])
    for row in [
        _employee(ADMIN_A, TENANT_A, ORG_A, "EMP001", "Ada", "Admin", "admin@acme.test", "admin", LOC_L1),
        _employee(MANAGER_A, TENANT_A, ORG_A, "MGR001", "Max", "Manager", "max@acme.test", "manager", LOC_L1),
        _employee(ALICE, TENANT_A, ORG_A, "EMP002", "Alice", "Archer", "alice@acme.test", "employee", LOC_L1,
                  hourly_rate=Decimal("20.00"), team_id=TEAM_A,
                  password_hash=hash_password(ALICE_PASSWORD)),
        _employee(BOB, TENANT_A, ORG_A, "EMP003", "Bob", "Baker", "bob@acme.test", "employee", LOC_L2,
                  hourly_rate=Decimal("18.50")),
        _employee(DANA, TENANT_A, ORG_A, "EMP005", "Dana", "Lead", "dana@acme.test", "team_lead", LOC_L1,
                  team_id=TEAM_A),
        _employee(INACTIVE_A, TENANT_A, ORG_A, "EMP009", "Ivan", "Gone", "ivan@acme.test", "employee", LOC_L2,
                  is_active=False),
        _employee(ADMIN_B, TENANT_B, ORG_B, "EMP001", "Greta", "Globex", "admin@globex.test", "admin", LOC_B1),
        _employee(CAROL, TENANT_B, ORG_B, "EMP002", "Carol", "Clark", "carol@globex.test", "employee", LOC_B1),
        _employee(ROGUE_B, TENANT_B, ORG_B, "ROOT01", "Rory", "Root", "rory@globex.test", "superuser", LOC_B1),
    ]:
        conn.execute(insert(employees).values(**row))
    conn.execute(insert(manager_locations).values(
        id="6d000000-0000-4000-8000-000000000001",
        tenant_id=TENANT_A, manager_id=MANAGER_A, location_id=LOC_L1,
    ))
    conn.execute(insert(teams).values(id=TEAM_A, tenant_id=TENANT_A, name="Phones", team_lead_id=DANA))
    conn.execute(insert(shift_assignments).values(
        id="7a000000-0000-4000-8000-000000000001",
        tenant_id=TENANT_A, employee_id=ALICE, date=SHIFT_DAY,
        start_time=time(9, 0), end_time=time(17, 0), status="assigned",
    ))
    conn.execute(insert(time_entries), [
        _completed_entry(ENTRY_ALICE, TENANT_A, ALICE, _at(9, 20), _at(17), 7.67),
        _completed_entry(ENTRY_BOB, TENANT_A, BOB, _at(8), _at(16), 8.0),
        _completed_entry(ENTRY_CAROL, TENANT_B, CAROL, _at(10), _at(18), 8.0),
    ])
    conn.execute(insert(pay_periods), [
        {"id": PERIOD_OPEN, "tenant_id": TENANT_A, "organization_id": ORG_A, "period_name": "March 2024",
         "start_date": date(2024, 3, 1), "end_date": date(2024, 3, 31), "status": "open"},
        {"id": PERIOD_LOCKED, "tenant_id": TENANT_A, "organization_id": ORG_A, "period_name": "February 2024",
         "start_date": date(2024, 2, 1), "end_date": date(2024, 2, 29), "status": "locked"},
    ])
    conn.execute(insert(payroll_records), [
        {"id": "8b000000-0000-4000-8000-000000000001", "tenant_id": TENANT_A, "employee_id": ALICE,
         "employee_email": "alice@acme.test", "pay_period_id": PERIOD_OPEN,
         "base_salary": Decimal("1000.00"), "gross_pay": Decimal("1000.00"), "net_pay": Decimal("1000.00")},
        {"id": "8b000000-0000-4000-8000-000000000002", "tenant_id": TENANT_A, "employee_id": ALICE,
         "employee_email": "alice@acme.test", "pay_period_id": PERIOD_LOCKED,
         "base_salary": Decimal("1000.00"), "gross_pay": Decimal("1000.00"), "net_pay": Decimal("1000.00")},
    ])


@pytest.fixture
def db_engine(monkeypatch):
    """Fresh seeded in-memory database, installed as core.db.engine."""
    engine = core_db.instrument(create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    ))
    metadata.create_all(engine)
    with engine.begin() as conn:
        seed(conn)
    monkeypatch.setattr(core_db, "engine", engine)
    yield engine
    engine.dispose()


def _settings(**overrides) -> Settings:
    return Settings(**{"DEMO_AUTH": False, **overrides})


@pytest.fixture
def client(db_engine):
    with TestClient(create_app(_settings())) as test_client:
        yield test_client


@pytest.fixture
def demo_client(db_engine):
    """App with the demo identity fallback on, demo user = tenant A admin."""
    cfg = _settings(DEMO_AUTH=True, DEMO_USER_ID=ADMIN_A, DEMO_USER_EMAIL="admin@acme.test")
    with TestClient(create_app(cfg)) as test_client:
        yield test_client


def bearer(employee_id: str) -> dict:
    return {"Authorization": f"Bearer {employee_id}"}


@pytest.fixture
def as_admin():
    return bearer(ADMIN_A)


@pytest.fixture
def as_manager():
    return bearer(MANAGER_A)


@pytest.fixture
def as_admin_b():
    return bearer(ADMIN_B)
