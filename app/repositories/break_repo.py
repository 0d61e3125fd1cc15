"""Repository for break logs. Every statement is tenant-filtered."""
from __future__ import annotations
from datetime import datetime
from typing import Optional

from sqlalchemy import insert, select, update
from sqlalchemy.engine import Connection

from domain.tables import break_logs
from utils.ids import new_id
from utils.time import hours_between

BREAK_COLUMNS = (
    break_logs.c.id,
    break_logs.c.time_entry_id,
    break_logs.c.employee_id,
    break_logs.c.break_start,
    break_logs.c.break_end,
    break_logs.c.break_duration,
    break_logs.c.break_type,
    break_logs.c.status,
    break_logs.c.created_at,
    break_logs.c.updated_at,
)


def get_active_break(conn: Connection, tenant_id: str, employee_id: str) -> Optional[dict]:
    row = conn.execute(
        select(*BREAK_COLUMNS)
        .where(
            break_logs.c.tenant_id == tenant_id,
            break_logs.c.employee_id == employee_id,
            break_logs.c.status == "active",
        )
        .order_by(break_logs.c.break_start.desc())
        .limit(1)
    ).mappings().first()
    return dict(row) if row else None


def start_break(
    conn: Connection,
    *,
    tenant_id: str,
    employee_id: str,
    time_entry_id: str,
    started_at: datetime,
    break_type: str,
) -> dict:
    break_id = new_id()
    conn.execute(insert(break_logs).values(
        id=break_id,
        tenant_id=tenant_id,
        employee_id=employee_id,
        time_entry_id=time_entry_id,
        break_start=started_at,
        break_type=break_type,
        status="active",
        created_at=started_at,
        updated_at=started_at,
    ))
    return _get(conn, tenant_id, break_id)


def close_break(conn: Connection, tenant_id: str, break_id: str, ended_at: datetime, duration: float) -> dict:
    conn.execute(
        update(break_logs)
        .where(break_logs.c.id == break_id, break_logs.c.tenant_id == tenant_id)
        .values(break_end=ended_at, break_duration=duration, status="completed", updated_at=ended_at)
    )
    return _get(conn, tenant_id, break_id)


def close_open_breaks(conn: Connection, tenant_id: str, time_entry_id: str, ended_at: datetime) -> float:
    """Close breaks still active when the shift ends; returns the hours they add."""
    open_rows = conn.execute(
        select(break_logs.c.id, break_logs.c.break_start).where(
            break_logs.c.tenant_id == tenant_id,
            break_logs.c.time_entry_id == time_entry_id,
            break_logs.c.status == "active",
        )
    ).mappings().all()
    added = 0.0
    for row in open_rows:
        duration = max(hours_between(row["break_start"], ended_at), 0.0)
        close_break(conn, tenant_id, row["id"], ended_at, duration)
        added += duration
    return added


def _get(conn: Connection, tenant_id: str, break_id: str) -> dict:
    row = conn.execute(
        select(*BREAK_COLUMNS)
        .where(break_logs.c.id == break_id, break_logs.c.tenant_id == tenant_id)
    ).mappings().one()
    return dict(row)
