"""
Repository for locations and manager-location assignments.

Rules:
- All statements filter by the resolved tenant id
- Assignments only link an active manager to an active location of the same tenant
"""
from __future__ import annotations
from typing import Optional

from sqlalchemy import delete, func, insert, select, update
from sqlalchemy.engine import Connection

from core.roles import Role
from domain.models import Scope
from domain.tables import employees, locations, manager_locations
from utils.ids import new_id
from utils.time import utcnow

LOCATION_COLUMNS = (
    locations.c.id,
    locations.c.name,
    locations.c.description,
    locations.c.is_active,
    locations.c.tenant_id,
    locations.c.created_at,
    locations.c.updated_at,
)


def list_locations(conn: Connection, scope: Scope, *, active_only: bool = False) -> list[dict]:
    employee_count = (
        select(func.count())
        .where(
            employees.c.location_id == locations.c.id,
            employees.c.tenant_id == scope.tenant_id,
            employees.c.is_active.is_(True),
        )
        .scalar_subquery()
        .label("employee_count")
    )
    stmt = select(*LOCATION_COLUMNS, employee_count).where(locations.c.tenant_id == scope.tenant_id)
    if active_only:
        stmt = stmt.where(locations.c.is_active.is_(True))
    rows = conn.execute(stmt.order_by(locations.c.name)).mappings()
    return [dict(r) for r in rows]


def active_location_ids(conn: Connection, tenant_id: str) -> list[str]:
    return list(conn.execute(
        select(locations.c.id)
        .where(locations.c.tenant_id == tenant_id, locations.c.is_active.is_(True))
    ).scalars())


def get_location(conn: Connection, scope: Scope, location_id: str) -> Optional[dict]:
    row = conn.execute(
        select(*LOCATION_COLUMNS)
        .where(locations.c.id == location_id, locations.c.tenant_id == scope.tenant_id)
    ).mappings().first()
    return dict(row) if row else None


def name_taken(conn: Connection, scope: Scope, name: str, *, exclude_id: Optional[str] = None) -> bool:
    stmt = select(locations.c.id).where(
        locations.c.tenant_id == scope.tenant_id,
        func.lower(locations.c.name) == name.lower(),
    )
    if exclude_id:
        stmt = stmt.where(locations.c.id != exclude_id)
    return conn.execute(stmt).first() is not None


def create_location(
    conn: Connection,
    *,
    tenant_id: str,
    organization_id: Optional[str],
    name: str,
    description: Optional[str],
    created_by: Optional[str],
) -> dict:
    location_id = new_id()
    now = utcnow()
    conn.execute(insert(locations).values(
        id=location_id,
        tenant_id=tenant_id,
        organization_id=organization_id,
        name=name,
        description=description,
        is_active=True,
        created_by=created_by,
        created_at=now,
        updated_at=now,
    ))
    row = conn.execute(select(*LOCATION_COLUMNS).where(locations.c.id == location_id)).mappings().one()
    return dict(row)


def update_location(conn: Connection, scope: Scope, location_id: str, fields: dict) -> Optional[dict]:
    values = {k: v for k, v in fields.items() if k in ("name", "description", "is_active")}
    values["updated_at"] = utcnow()
    result = conn.execute(
        update(locations)
        .where(locations.c.id == location_id, locations.c.tenant_id == scope.tenant_id)
        .values(**values)
    )
    if result.rowcount == 0:
        return None
    return get_location(conn, scope, location_id)


# =========================
# Manager assignments
# =========================

def list_assignments(conn: Connection, scope: Scope, manager_id: Optional[str] = None) -> list[dict]:
    stmt = (
        select(
            manager_locations.c.id,
            manager_locations.c.manager_id,
            manager_locations.c.location_id,
            manager_locations.c.created_at,
            locations.c.name.label("location_name"),
            employees.c.first_name,
            employees.c.last_name,
            employees.c.email,
        )
        .select_from(
            manager_locations
            .join(locations, locations.c.id == manager_locations.c.location_id)
            .join(employees, employees.c.id == manager_locations.c.manager_id)
        )
        .where(
            manager_locations.c.tenant_id == scope.tenant_id,
            locations.c.tenant_id == scope.tenant_id,
            employees.c.tenant_id == scope.tenant_id,
        )
    )
    if manager_id:
        stmt = stmt.where(manager_locations.c.manager_id == manager_id)
    rows = conn.execute(stmt.order_by(employees.c.first_name, locations.c.name)).mappings()
    return [dict(r) for r in rows]


def assigned_location_ids(conn: Connection, scope: Scope) -> list[str]:
    """Locations assigned to the calling manager."""
    return list(conn.execute(
        select(manager_locations.c.location_id).where(
            manager_locations.c.tenant_id == scope.tenant_id,
            manager_locations.c.manager_id == scope.user_id,
        )
    ).scalars())


def is_active_manager(conn: Connection, scope: Scope, manager_id: str) -> bool:
    return conn.execute(
        select(employees.c.id).where(
            employees.c.id == manager_id,
            employees.c.tenant_id == scope.tenant_id,
            employees.c.role == Role.MANAGER.value,
            employees.c.is_active.is_(True),
        )
    ).first() is not None


def is_active_location(conn: Connection, scope: Scope, location_id: str) -> bool:
    return conn.execute(
        select(locations.c.id).where(
            locations.c.id == location_id,
            locations.c.tenant_id == scope.tenant_id,
            locations.c.is_active.is_(True),
        )
    ).first() is not None


def assignment_exists(conn: Connection, scope: Scope, manager_id: str, location_id: str) -> bool:
    return conn.execute(
        select(manager_locations.c.id).where(
            manager_locations.c.tenant_id == scope.tenant_id,
            manager_locations.c.manager_id == manager_id,
            manager_locations.c.location_id == location_id,
        )
    ).first() is not None


def assign(conn: Connection, scope: Scope, manager_id: str, location_id: str) -> dict:
    assignment_id = new_id()
    conn.execute(insert(manager_locations).values(
        id=assignment_id,
        tenant_id=scope.tenant_id,
        manager_id=manager_id,
        location_id=location_id,
        created_at=utcnow(),
    ))
    return {"id": assignment_id, "manager_id": manager_id, "location_id": location_id}


def unassign(conn: Connection, scope: Scope, manager_id: str, location_id: str) -> int:
    result = conn.execute(
        delete(manager_locations).where(
            manager_locations.c.tenant_id == scope.tenant_id,
            manager_locations.c.manager_id == manager_id,
            manager_locations.c.location_id == location_id,
        )
    )
    return result.rowcount


def list_managers(conn: Connection, scope: Scope) -> list[dict]:
    """Active managers of the tenant, each with its assigned locations."""
    managers = [dict(r) for r in conn.execute(
        select(
            employees.c.id,
            employees.c.employee_code,
            employees.c.first_name,
            employees.c.last_name,
            employees.c.email,
            employees.c.location_id,
        )
        .where(
            employees.c.tenant_id == scope.tenant_id,
            employees.c.role == Role.MANAGER.value,
            employees.c.is_active.is_(True),
        )
        .order_by(employees.c.first_name, employees.c.last_name)
    ).mappings()]

    by_manager: dict[str, list[dict]] = {m["id"]: [] for m in managers}
    for row in list_assignments(conn, scope):
        if row["manager_id"] in by_manager:
            by_manager[row["manager_id"]].append(
                {"id": row["location_id"], "name": row["location_name"]}
            )
    for m in managers:
        m["assigned_locations"] = by_manager[m["id"]]
    return managers
