"""
Repository for employees and their role-assignment history.

Rules:
- Identity lookups (find_active_by_*) run before a tenant is known and are the
  only unscoped reads in this module
- Everything else takes a Scope and filters through core.scoping
- Employees are never hard-deleted; deactivation flips is_active
- role_assignments is append-only
"""
from __future__ import annotations
from datetime import date
from typing import Optional

from sqlalchemy import delete, func, insert, or_, select, update
from sqlalchemy.engine import Connection, RowMapping

from core.roles import Role
from core.scoping import employee_access, employee_scope
from domain.models import Scope
from domain.tables import employees, locations, manager_locations, role_assignments, teams
from utils.ids import new_id
from utils.time import utcnow

_IDENTITY_COLUMNS = (
    employees.c.id,
    employees.c.employee_code,
    employees.c.email,
    employees.c.role,
)

PUBLIC_COLUMNS = (
    employees.c.id,
    employees.c.employee_code,
    employees.c.first_name,
    employees.c.last_name,
    employees.c.email,
    employees.c.department,
    employees.c.job_position,
    employees.c.role,
    employees.c.hire_date,
    employees.c.manager_id,
    employees.c.team_id,
    employees.c.location_id,
    employees.c.hourly_rate,
    employees.c.max_hours_per_week,
    employees.c.is_active,
    employees.c.is_online,
    employees.c.last_online,
    employees.c.phone,
    employees.c.address,
    employees.c.emergency_contact,
    employees.c.emergency_phone,
    employees.c.notes,
    employees.c.tenant_id,
    employees.c.organization_id,
    employees.c.created_at,
    employees.c.updated_at,
)

# Profile fields editable through the generic update; role, tenant,
# organization and deactivation have dedicated flows.
UPDATABLE_FIELDS = {
    "first_name", "last_name", "email", "department", "job_position",
    "hourly_rate", "max_hours_per_week", "phone", "address",
    "emergency_contact", "emergency_phone", "notes", "team_id", "manager_id",
    "location_id", "hire_date",
}


def escape_like(value: str) -> str:
    """Make % and _ in user input match literally under LIKE ... ESCAPE '\\'."""
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


# =========================
# Identity lookups
# =========================

def find_active_by_id(conn: Connection, employee_id: str) -> list[RowMapping]:
    return list(conn.execute(
        select(*_IDENTITY_COLUMNS)
        .where(employees.c.id == employee_id, employees.c.is_active.is_(True))
    ).mappings())


def find_active_by_code(conn: Connection, employee_code: str) -> list[RowMapping]:
    return list(conn.execute(
        select(*_IDENTITY_COLUMNS)
        .where(employees.c.employee_code == employee_code, employees.c.is_active.is_(True))
        .limit(2)
    ).mappings())


def find_login_candidate(conn: Connection, email: str) -> list[RowMapping]:
    return list(conn.execute(
        select(
            employees.c.id, employees.c.employee_code, employees.c.email,
            employees.c.role, employees.c.password_hash, employees.c.is_active,
            employees.c.tenant_id, employees.c.organization_id,
        )
        .where(func.lower(employees.c.email) == email.lower())
        .limit(2)
    ).mappings())


# =========================
# Scoped reads
# =========================

def _detail_select():
    return (
        select(
            *PUBLIC_COLUMNS,
            locations.c.name.label("location_name"),
            teams.c.name.label("team_name"),
        )
        .select_from(
            employees
            .outerjoin(locations, (locations.c.id == employees.c.location_id)
                       & (locations.c.tenant_id == employees.c.tenant_id))
            .outerjoin(teams, (teams.c.id == employees.c.team_id)
                       & (teams.c.tenant_id == employees.c.tenant_id))
        )
    )


def list_employees(
    conn: Connection,
    scope: Scope,
    *,
    department: Optional[str] = None,
    role: Optional[Role] = None,
    is_active: Optional[bool] = None,
    search: Optional[str] = None,
    page: int = 1,
    limit: int = 50,
) -> tuple[list[dict], int]:
    filters = [employee_scope(scope)]
    if department:
        filters.append(employees.c.department == department)
    if role is not None:
        filters.append(employees.c.role == role.value)
    if is_active is not None:
        filters.append(employees.c.is_active.is_(is_active))
    if search:
        pattern = f"%{escape_like(search.lower())}%"
        filters.append(or_(
            func.lower(employees.c.first_name).like(pattern, escape="\\"),
            func.lower(employees.c.last_name).like(pattern, escape="\\"),
            func.lower(employees.c.employee_code).like(pattern, escape="\\"),
            func.lower(employees.c.email).like(pattern, escape="\\"),
        ))

    total = conn.execute(
        select(func.count()).select_from(employees).where(*filters)
    ).scalar_one()

    rows = conn.execute(
        _detail_select()
        .where(*filters)
        .order_by(employees.c.first_name, employees.c.last_name)
        .limit(limit)
        .offset((page - 1) * limit)
    ).mappings()
    return [dict(r) for r in rows], total


def get_employee(conn: Connection, scope: Scope, employee_id: str) -> Optional[dict]:
    """Self-or-manager visibility; None covers both absent and out of scope."""
    row = conn.execute(
        _detail_select().where(employees.c.id == employee_id, employee_access(scope))
    ).mappings().first()
    return dict(row) if row else None


def get_managed_employee(conn: Connection, scope: Scope, employee_id: str) -> Optional[dict]:
    """Employee the caller may act on (tenant scope plus manager-location scope)."""
    row = conn.execute(
        select(*PUBLIC_COLUMNS).where(employees.c.id == employee_id, employee_scope(scope))
    ).mappings().first()
    return dict(row) if row else None


def find_by_email(conn: Connection, scope: Scope, email: str) -> Optional[dict]:
    row = conn.execute(
        select(*PUBLIC_COLUMNS)
        .where(func.lower(employees.c.email) == email.lower(), employee_scope(scope))
    ).mappings().first()
    return dict(row) if row else None


def code_or_email_taken(conn: Connection, tenant_id: str, *, employee_code: str | None = None,
                        email: str | None = None) -> Optional[str]:
    if employee_code:
        hit = conn.execute(select(employees.c.id).where(
            employees.c.tenant_id == tenant_id, employees.c.employee_code == employee_code,
        )).first()
        if hit:
            return "Employee code already exists"
    if email:
        hit = conn.execute(select(employees.c.id).where(
            employees.c.tenant_id == tenant_id, func.lower(employees.c.email) == email.lower(),
        )).first()
        if hit:
            return "Email already exists"
    return None


def next_employee_code(conn: Connection, tenant_id: str) -> str:
    """EMP + next numeric sequence among the tenant's EMP#### codes."""
    codes = conn.execute(
        select(employees.c.employee_code)
        .where(employees.c.tenant_id == tenant_id, employees.c.employee_code.like("EMP%"))
    ).scalars()
    highest = 0
    for code in codes:
        suffix = code[3:]
        if suffix.isdigit():
            highest = max(highest, int(suffix))
    return f"EMP{highest + 1:04d}"


# =========================
# Writes
# =========================

def create_employee(conn: Connection, scope: Scope, data: dict) -> dict:
    return insert_employee(
        conn,
        tenant_id=scope.tenant_id,
        organization_id=scope.tenant.organization_id,
        data=data,
    )


def insert_employee(
    conn: Connection,
    *,
    tenant_id: str,
    organization_id: Optional[str],
    data: dict,
    employee_id: Optional[str] = None,
) -> dict:
    """Raw insert; callers have already validated uniqueness and location."""
    employee_id = employee_id or new_id()
    now = utcnow()
    conn.execute(insert(employees).values(
        id=employee_id,
        tenant_id=tenant_id,
        organization_id=organization_id,
        created_at=now,
        updated_at=now,
        **data,
    ))
    row = conn.execute(
        select(*PUBLIC_COLUMNS).where(employees.c.id == employee_id)
    ).mappings().one()
    return dict(row)


def update_employee(conn: Connection, scope: Scope, employee_id: str, fields: dict) -> Optional[dict]:
    values = {k: v for k, v in fields.items() if k in UPDATABLE_FIELDS}
    values["updated_at"] = utcnow()
    result = conn.execute(
        update(employees)
        .where(employees.c.id == employee_id, employee_scope(scope))
        .values(**values)
    )
    if result.rowcount == 0:
        return None
    return get_managed_employee(conn, scope, employee_id)


def deactivate_employee(conn: Connection, scope: Scope, employee_id: str) -> Optional[dict]:
    result = conn.execute(
        update(employees)
        .where(employees.c.id == employee_id, employee_scope(scope))
        .values(is_active=False, is_online=False, updated_at=utcnow())
    )
    if result.rowcount == 0:
        return None
    return get_managed_employee(conn, scope, employee_id)


def change_role(
    conn: Connection,
    scope: Scope,
    employee: dict,
    new_role: Role,
    reason: Optional[str],
    effective_date: Optional[date] = None,
) -> dict:
    """
    Record a role transition and apply it. Caller supplies the open
    transaction; both statements commit or roll back together.
    """
    now = utcnow()
    conn.execute(insert(role_assignments).values(
        id=new_id(),
        tenant_id=scope.tenant_id,
        employee_id=employee["id"],
        employee_email=employee["email"],
        old_role=employee["role"],
        new_role=new_role.value,
        assigned_by=scope.user_id,
        reason=reason,
        effective_date=effective_date or now.date(),
        created_at=now,
    ))
    conn.execute(
        update(employees)
        .where(employees.c.id == employee["id"], employees.c.tenant_id == scope.tenant_id)
        .values(role=new_role.value, updated_at=now)
    )
    if new_role is not Role.MANAGER:
        conn.execute(
            delete(manager_locations).where(
                manager_locations.c.tenant_id == scope.tenant_id,
                manager_locations.c.manager_id == employee["id"],
            )
        )
    return get_managed_employee(conn, scope, employee["id"])


def role_history(conn: Connection, scope: Scope, email: str) -> list[dict]:
    rows = conn.execute(
        select(
            role_assignments.c.id,
            role_assignments.c.employee_id,
            role_assignments.c.employee_email,
            role_assignments.c.old_role,
            role_assignments.c.new_role,
            role_assignments.c.assigned_by,
            role_assignments.c.reason,
            role_assignments.c.effective_date,
            role_assignments.c.created_at,
        )
        .where(
            role_assignments.c.tenant_id == scope.tenant_id,
            func.lower(role_assignments.c.employee_email) == email.lower(),
        )
        .order_by(role_assignments.c.created_at.desc())
    ).mappings()
    return [dict(r) for r in rows]
