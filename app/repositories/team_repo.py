"""Repository for teams and team membership. Every statement is tenant-filtered."""
from __future__ import annotations
from typing import Optional

from sqlalchemy import select, update
from sqlalchemy.engine import Connection

from domain.models import Scope
from domain.tables import employees, teams
from utils.time import utcnow


def get_active_team(conn: Connection, scope: Scope, team_id: str) -> Optional[dict]:
    row = conn.execute(
        select(teams.c.id, teams.c.name, teams.c.team_lead_id)
        .where(
            teams.c.id == team_id,
            teams.c.tenant_id == scope.tenant_id,
            teams.c.is_active.is_(True),
        )
    ).mappings().first()
    return dict(row) if row else None


def list_members(conn: Connection, scope: Scope, team_id: str) -> list[dict]:
    rows = conn.execute(
        select(
            employees.c.id,
            employees.c.employee_code,
            employees.c.first_name,
            employees.c.last_name,
            employees.c.email,
            employees.c.role,
            employees.c.is_active,
            employees.c.is_online,
        )
        .where(
            employees.c.tenant_id == scope.tenant_id,
            employees.c.team_id == team_id,
            employees.c.is_active.is_(True),
        )
        .order_by(employees.c.first_name, employees.c.last_name)
    ).mappings()
    return [dict(r) for r in rows]


def remove_member(conn: Connection, scope: Scope, team_id: str, member_id: str) -> int:
    result = conn.execute(
        update(employees)
        .where(
            employees.c.id == member_id,
            employees.c.team_id == team_id,
            employees.c.tenant_id == scope.tenant_id,
            employees.c.is_active.is_(True),
        )
        .values(team_id=None, updated_at=utcnow())
    )
    return result.rowcount


def clear_team_lead(conn: Connection, scope: Scope, lead_id: str) -> int:
    result = conn.execute(
        update(teams)
        .where(teams.c.tenant_id == scope.tenant_id, teams.c.team_lead_id == lead_id)
        .values(team_lead_id=None, updated_at=utcnow())
    )
    return result.rowcount
