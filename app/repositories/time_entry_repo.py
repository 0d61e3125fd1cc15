"""
Repository for time entries, their approvals and the timesheet views.

Rules:
- Every statement is filtered by the resolved tenant id; manager callers are
  further restricted to employees of their assigned locations
  (core.scoping.time_entry_scope)
- Bulk approvals are single set-based UPDATE statements, never row loops
- time_entry_approvals is append-only
"""
from __future__ import annotations
from datetime import date, datetime
from typing import Iterable, Optional

from sqlalchemy import and_, case, func, insert, or_, select, update
from sqlalchemy.engine import Connection

from core.scoping import time_entry_scope
from domain.models import Scope
from domain.tables import (
    break_logs, employees, locations, shift_assignments, time_entries, time_entry_approvals,
)
from utils.ids import new_id
from utils.time import utcnow

OPEN_STATUSES = ("in-progress", "break")
SCHEDULED_STATUSES = ("scheduled", "assigned")
APPROVAL_STATUSES = ("pending", "approved", "rejected")

ENTRY_COLUMNS = (
    time_entries.c.id,
    time_entries.c.employee_id,
    time_entries.c.assignment_id,
    time_entries.c.date,
    time_entries.c.clock_in,
    time_entries.c.clock_out,
    time_entries.c.break_hours,
    time_entries.c.total_hours,
    time_entries.c.status,
    time_entries.c.approval_status,
    time_entries.c.approved_by,
    time_entries.c.approved_at,
    time_entries.c.approved_hours,
    time_entries.c.approved_rate,
    time_entries.c.total_pay,
    time_entries.c.admin_notes,
    time_entries.c.rejection_reason,
    time_entries.c.notes,
    time_entries.c.total_calls_taken,
    time_entries.c.leads_generated,
    time_entries.c.shift_remarks,
    time_entries.c.performance_rating,
    time_entries.c.created_at,
    time_entries.c.updated_at,
)

_entry_employee = time_entries.join(
    employees,
    and_(employees.c.id == time_entries.c.employee_id,
         employees.c.tenant_id == time_entries.c.tenant_id),
)


def _employee_name():
    return (employees.c.first_name + " " + employees.c.last_name).label("employee_name")


# =========================
# Clock
# =========================

def get_open_entry(conn: Connection, tenant_id: str, employee_id: str) -> Optional[dict]:
    row = conn.execute(
        select(*ENTRY_COLUMNS)
        .where(
            time_entries.c.tenant_id == tenant_id,
            time_entries.c.employee_id == employee_id,
            time_entries.c.status.in_(OPEN_STATUSES),
        )
        .order_by(time_entries.c.clock_in.desc())
        .limit(1)
    ).mappings().first()
    return dict(row) if row else None


def scheduled_assignment_id(conn: Connection, tenant_id: str, employee_id: str, day: date) -> Optional[str]:
    return conn.execute(
        select(shift_assignments.c.id)
        .where(
            shift_assignments.c.tenant_id == tenant_id,
            shift_assignments.c.employee_id == employee_id,
            shift_assignments.c.date == day,
            shift_assignments.c.status.in_(SCHEDULED_STATUSES),
        )
        .order_by(shift_assignments.c.start_time)
        .limit(1)
    ).scalar()


def create_entry(
    conn: Connection,
    *,
    tenant_id: str,
    employee_id: str,
    clock_in: datetime,
    assignment_id: Optional[str] = None,
    notes: Optional[str] = None,
) -> dict:
    entry_id = new_id()
    conn.execute(insert(time_entries).values(
        id=entry_id,
        tenant_id=tenant_id,
        employee_id=employee_id,
        assignment_id=assignment_id,
        date=clock_in.date(),
        clock_in=clock_in,
        break_hours=0.0,
        status="in-progress",
        notes=notes,
        created_at=clock_in,
        updated_at=clock_in,
    ))
    return get_entry(conn, tenant_id, entry_id)


def get_entry(conn: Connection, tenant_id: str, entry_id: str) -> Optional[dict]:
    row = conn.execute(
        select(*ENTRY_COLUMNS)
        .where(time_entries.c.id == entry_id, time_entries.c.tenant_id == tenant_id)
    ).mappings().first()
    return dict(row) if row else None


def complete_entry(
    conn: Connection,
    tenant_id: str,
    entry_id: str,
    *,
    clock_out: datetime,
    total_hours: float,
    extra: dict,
) -> dict:
    conn.execute(
        update(time_entries)
        .where(time_entries.c.id == entry_id, time_entries.c.tenant_id == tenant_id)
        .values(
            clock_out=clock_out,
            total_hours=total_hours,
            status="completed",
            approval_status="pending",
            approved_by=None,
            approved_at=None,
            updated_at=clock_out,
            **extra,
        )
    )
    return get_entry(conn, tenant_id, entry_id)


def set_status(conn: Connection, tenant_id: str, entry_id: str, status: str) -> None:
    conn.execute(
        update(time_entries)
        .where(time_entries.c.id == entry_id, time_entries.c.tenant_id == tenant_id)
        .values(status=status, updated_at=utcnow())
    )


def end_break(conn: Connection, tenant_id: str, entry_id: str, hours: float) -> None:
    """Add a closed break's duration and return the entry to in-progress."""
    conn.execute(
        update(time_entries)
        .where(time_entries.c.id == entry_id, time_entries.c.tenant_id == tenant_id)
        .values(
            break_hours=func.coalesce(time_entries.c.break_hours, 0.0) + hours,
            status="in-progress",
            updated_at=utcnow(),
        )
    )


def set_online(conn: Connection, tenant_id: str, employee_id: str, online: bool) -> None:
    conn.execute(
        update(employees)
        .where(employees.c.id == employee_id, employees.c.tenant_id == tenant_id)
        .values(is_online=online, last_online=utcnow())
    )


# =========================
# Scoped reads
# =========================

def get_scoped_entry(conn: Connection, scope: Scope, entry_id: str) -> Optional[dict]:
    """Entry plus the owner's hourly rate, when inside the caller's scope."""
    row = conn.execute(
        select(*ENTRY_COLUMNS, employees.c.hourly_rate, employees.c.email.label("employee_email"))
        .select_from(_entry_employee)
        .where(time_entries.c.id == entry_id, time_entry_scope(scope))
    ).mappings().first()
    return dict(row) if row else None


def timesheet_rows(conn: Connection, scope: Scope, start: date, end: date) -> list[dict]:
    stmt = (
        select(
            *ENTRY_COLUMNS,
            _employee_name(),
            employees.c.employee_code,
            employees.c.department,
            locations.c.name.label("location_name"),
            shift_assignments.c.start_time.label("scheduled_start"),
            shift_assignments.c.end_time.label("scheduled_end"),
        )
        .select_from(
            _entry_employee
            .outerjoin(locations, and_(locations.c.id == employees.c.location_id,
                                       locations.c.tenant_id == scope.tenant_id))
            .outerjoin(shift_assignments, and_(
                shift_assignments.c.employee_id == time_entries.c.employee_id,
                shift_assignments.c.date == time_entries.c.date,
                shift_assignments.c.tenant_id == scope.tenant_id,
                shift_assignments.c.status.in_(SCHEDULED_STATUSES),
            ))
        )
        .where(time_entry_scope(scope), time_entries.c.date.between(start, end))
        .order_by(time_entries.c.date.desc(), employees.c.first_name, employees.c.last_name)
    )
    return [dict(r) for r in conn.execute(stmt).mappings()]


def breaks_by_entry(conn: Connection, tenant_id: str, entry_ids: Iterable[str]) -> dict[str, list[dict]]:
    ids = list(entry_ids)
    grouped: dict[str, list[dict]] = {i: [] for i in ids}
    if not ids:
        return grouped
    rows = conn.execute(
        select(
            break_logs.c.id,
            break_logs.c.time_entry_id,
            break_logs.c.break_start,
            break_logs.c.break_end,
            break_logs.c.break_duration,
            break_logs.c.break_type,
            break_logs.c.status,
        )
        .where(break_logs.c.tenant_id == tenant_id, break_logs.c.time_entry_id.in_(ids))
        .order_by(break_logs.c.break_start)
    ).mappings()
    for r in rows:
        grouped[r["time_entry_id"]].append(dict(r))
    return grouped


def _approval_filters(scope: Scope, status: str) -> list:
    filters = [time_entry_scope(scope), time_entries.c.status == "completed"]
    if status == "all":
        filters.append(time_entries.c.approval_status.in_(APPROVAL_STATUSES))
    else:
        filters.append(time_entries.c.approval_status == status)
    return filters


def list_for_approval(
    conn: Connection, scope: Scope, *, status: str, page: int, limit: int,
) -> tuple[list[dict], int]:
    approver = employees.alias("approver")
    filters = _approval_filters(scope, status)

    total = conn.execute(
        select(func.count()).select_from(time_entries).where(*filters)
    ).scalar_one()

    rows = conn.execute(
        select(
            *ENTRY_COLUMNS,
            employees.c.first_name,
            employees.c.last_name,
            employees.c.employee_code,
            employees.c.department,
            employees.c.job_position,
            employees.c.hourly_rate,
            shift_assignments.c.date.label("shift_date"),
            shift_assignments.c.start_time.label("scheduled_start_time"),
            shift_assignments.c.end_time.label("scheduled_end_time"),
            approver.c.first_name.label("approver_first_name"),
            approver.c.last_name.label("approver_last_name"),
        )
        .select_from(
            _entry_employee
            .outerjoin(shift_assignments, and_(
                shift_assignments.c.id == time_entries.c.assignment_id,
                shift_assignments.c.tenant_id == time_entries.c.tenant_id,
            ))
            .outerjoin(approver, and_(
                approver.c.id == time_entries.c.approved_by,
                approver.c.tenant_id == time_entries.c.tenant_id,
            ))
        )
        .where(*filters)
        .order_by(time_entries.c.created_at.desc())
        .limit(limit)
        .offset((page - 1) * limit)
    ).mappings()
    return [dict(r) for r in rows], total


def approval_stats(conn: Connection, scope: Scope) -> dict:
    status = time_entries.c.approval_status
    row = conn.execute(
        select(
            func.count(case((status == "pending", 1))).label("pending"),
            func.count(case((status == "approved", 1))).label("approved"),
            func.count(case((status == "rejected", 1))).label("rejected"),
            func.coalesce(func.sum(case((status == "pending", time_entries.c.total_hours))), 0.0)
            .label("pending_hours"),
            func.coalesce(func.sum(case((status == "approved", time_entries.c.total_hours))), 0.0)
            .label("approved_hours"),
        ).where(*_approval_filters(scope, "all"))
    ).mappings().one()
    return {
        "pending": int(row["pending"]),
        "approved": int(row["approved"]),
        "rejected": int(row["rejected"]),
        "pendingHours": float(row["pending_hours"]),
        "approvedHours": float(row["approved_hours"]),
    }


def manager_timesheets(
    conn: Connection,
    scope: Scope,
    *,
    location_ids: list[str],
    start: Optional[date],
    end: Optional[date],
    status: Optional[str],
) -> tuple[list[dict], dict]:
    """
    Entries of employees in `location_ids`, which the caller has already
    intersected with the manager's assignment set.
    """
    filters = [time_entry_scope(scope), employees.c.location_id.in_(location_ids)]
    if start:
        filters.append(time_entries.c.date >= start)
    if end:
        filters.append(time_entries.c.date <= end)

    entry_filters = list(filters)
    if status and status != "all":
        entry_filters.append(time_entries.c.approval_status == status)

    rows = conn.execute(
        select(
            *ENTRY_COLUMNS,
            _employee_name(),
            employees.c.employee_code,
            locations.c.name.label("location_name"),
        )
        .select_from(
            _entry_employee.outerjoin(locations, and_(
                locations.c.id == employees.c.location_id,
                locations.c.tenant_id == scope.tenant_id,
            ))
        )
        .where(*entry_filters)
        .order_by(time_entries.c.clock_in.desc())
    ).mappings()

    approval = time_entries.c.approval_status
    summary = conn.execute(
        select(
            func.count().label("total_entries"),
            func.count(case((approval == "pending", 1))).label("pending_approvals"),
            func.count(case((approval == "approved", 1))).label("approved_entries"),
            func.count(case((approval == "rejected", 1))).label("rejected_entries"),
            func.coalesce(func.sum(time_entries.c.total_hours), 0.0).label("total_hours"),
            func.coalesce(func.sum(time_entries.c.total_pay), 0).label("total_pay"),
            func.count(time_entries.c.employee_id.distinct()).label("unique_employees"),
        )
        .select_from(_entry_employee)
        .where(*filters)
    ).mappings().one()
    return [dict(r) for r in rows], dict(summary)


def export_rows(conn: Connection, scope: Scope, employee_id: str) -> list[dict]:
    rows = conn.execute(
        select(*ENTRY_COLUMNS)
        .where(time_entry_scope(scope), time_entries.c.employee_id == employee_id)
        .order_by(time_entries.c.clock_in.desc())
    ).mappings()
    return [dict(r) for r in rows]


# =========================
# Approvals
# =========================

def count_in_scope(conn: Connection, scope: Scope, entry_ids: list[str]) -> int:
    return conn.execute(
        select(func.count())
        .select_from(time_entries)
        .where(time_entries.c.id.in_(entry_ids), time_entry_scope(scope))
    ).scalar_one()


def approve_by_ids(conn: Connection, scope: Scope, entry_ids: list[str], notes: str) -> int:
    """
    Approve the given entries in one statement.

    Only completed, pending entries change; open shifts and entries that
    already carry a decision are left alone.
    """
    now = utcnow()
    result = conn.execute(
        update(time_entries)
        .where(
            time_entries.c.id.in_(entry_ids),
            time_entry_scope(scope),
            time_entries.c.status == "completed",
            time_entries.c.approval_status == "pending",
        )
        .values(
            approval_status="approved",
            approved_by=scope.user_id,
            approved_at=now,
            notes=case(
                (or_(time_entries.c.notes.is_(None), time_entries.c.notes == ""), notes),
                else_=time_entries.c.notes + "\n\nBulk approval: " + notes,
            ),
            updated_at=now,
        )
    )
    return result.rowcount


def approve_date_range(conn: Connection, scope: Scope, start: date, end: date) -> int:
    """
    Approve every completed, pending entry dated within [start, end].

    Re-running over the same range affects zero rows: the predicate only
    matches approval_status = 'pending'.
    """
    now = utcnow()
    result = conn.execute(
        update(time_entries)
        .where(
            time_entry_scope(scope),
            time_entries.c.status == "completed",
            time_entries.c.approval_status == "pending",
            time_entries.c.clock_in.is_not(None),
            time_entries.c.clock_out.is_not(None),
            time_entries.c.date.between(start, end),
        )
        .values(
            approval_status="approved",
            approved_by=scope.user_id,
            approved_at=now,
            updated_at=now,
        )
    )
    return result.rowcount


def apply_decision(conn: Connection, scope: Scope, entry: dict, values: dict, notes: Optional[str]) -> dict:
    """Update one entry with an approval decision and append its history row."""
    now = utcnow()
    conn.execute(
        update(time_entries)
        .where(time_entries.c.id == entry["id"], time_entry_scope(scope))
        .values(approved_by=scope.user_id, approved_at=now, updated_at=now, **values)
    )
    conn.execute(insert(time_entry_approvals).values(
        id=new_id(),
        tenant_id=scope.tenant_id,
        time_entry_id=entry["id"],
        employee_id=entry["employee_id"],
        approver_id=scope.user_id,
        status=values["approval_status"],
        decision_notes=notes,
        approved_at=now,
    ))
    return get_entry(conn, scope.tenant_id, entry["id"])


def update_entry(conn: Connection, scope: Scope, entry_id: str, values: dict) -> Optional[dict]:
    result = conn.execute(
        update(time_entries)
        .where(time_entries.c.id == entry_id, time_entry_scope(scope))
        .values(updated_at=utcnow(), **values)
    )
    if result.rowcount == 0:
        return None
    return get_entry(conn, scope.tenant_id, entry_id)
