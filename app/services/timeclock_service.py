"""
Time clock: clock-in/out and breaks.

Rules:
- The target employee defaults to the caller. Another employee_id is honoured
  only for an admin (tenant scope) or a manager whose locations include that
  employee; anyone else gets 404 as if the employee did not exist
- At most one open (in-progress or on-break) time entry per employee
- Break rows are returned in the UI shape: status active/completed with the
  legacy_status alias break/in-progress
"""
from __future__ import annotations
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.engine import Connection

from core.db import get_conn
from core.errors import http_error, ErrorCode
from domain.models import Scope
from repositories import break_repo, employee_repo, time_entry_repo
from schemas.time import BreakEndIn, BreakStartIn, ClockInIn, ClockOutIn
from utils.time import hours_between, utcnow

_LEGACY_STATUS = {"active": "break", "completed": "in-progress"}


def normalize_break(row: Optional[dict]) -> Optional[dict]:
    if row is None:
        return None
    status = "active" if row["status"] == "active" else "completed"
    return {
        "id": row["id"],
        "time_entry_id": row["time_entry_id"],
        "employee_id": row["employee_id"],
        "break_start": row["break_start"],
        "break_end": row["break_end"],
        "break_duration": row["break_duration"],
        "break_type": row["break_type"],
        "status": status,
        "legacy_status": _LEGACY_STATUS[status],
        "created_at": row["created_at"],
        "updated_at": row["updated_at"],
    }


def resolve_target(conn: Connection, scope: Scope, employee_id: Optional[str]) -> str:
    """Apply the self-or-manager rule to a requested employee id."""
    if not employee_id or employee_id == scope.user_id:
        return scope.user_id
    if scope.is_admin or scope.is_manager:
        if employee_repo.get_managed_employee(conn, scope, employee_id):
            return employee_id
    raise http_error(status_code=404, code=ErrorCode.NOT_FOUND, message="Employee not found")


def _no_active_shift():
    return http_error(status_code=404, code=ErrorCode.NOT_FOUND, message="No active shift found")


def _already_clocked_in():
    return http_error(status_code=409, code=ErrorCode.CONFLICT, message="Already clocked in")


def clock_in(scope: Scope, body: ClockInIn) -> dict:
    now = utcnow()
    try:
        with get_conn() as conn:
            target = resolve_target(conn, scope, body.employee_id)
            if time_entry_repo.get_open_entry(conn, scope.tenant_id, target):
                raise _already_clocked_in()
            assignment_id = time_entry_repo.scheduled_assignment_id(conn, scope.tenant_id, target, now.date())
            entry = time_entry_repo.create_entry(
                conn,
                tenant_id=scope.tenant_id,
                employee_id=target,
                clock_in=now,
                assignment_id=assignment_id,
                notes=body.notes,
            )
            time_entry_repo.set_online(conn, scope.tenant_id, target, True)
    except IntegrityError:
        # A concurrent clock-in committed first; the open-entry index rejected this one
        raise _already_clocked_in()
    return entry


def clock_out(scope: Scope, body: ClockOutIn) -> dict:
    now = utcnow()
    with get_conn() as conn:
        target = resolve_target(conn, scope, body.employee_id)
        entry = time_entry_repo.get_open_entry(conn, scope.tenant_id, target)
        if not entry:
            raise _no_active_shift()

        # A shift ended mid-break closes the break first
        break_hours = float(entry["break_hours"] or 0.0)
        break_hours += break_repo.close_open_breaks(conn, scope.tenant_id, entry["id"], now)

        shift_hours = hours_between(entry["clock_in"], now)
        total_hours = max(shift_hours - break_hours, 0.0)

        extra = {
            "break_hours": break_hours,
            "total_calls_taken": body.total_calls_taken or 0,
            "leads_generated": body.leads_generated or 0,
            "shift_remarks": body.shift_remarks,
            "performance_rating": body.performance_rating,
        }
        if body.notes is not None:
            extra["notes"] = body.notes
        updated = time_entry_repo.complete_entry(
            conn, scope.tenant_id, entry["id"],
            clock_out=now, total_hours=total_hours, extra=extra,
        )
        time_entry_repo.set_online(conn, scope.tenant_id, target, False)

    return {
        "entry": updated,
        "totalShiftDuration": round(shift_hours, 2),
        "totalWorkHours": round(total_hours, 2),
        "breakTimeUsed": round(break_hours, 2),
        "approvalStatus": "pending",
    }


def break_start(scope: Scope, body: BreakStartIn) -> dict:
    now = utcnow()
    with get_conn() as conn:
        target = resolve_target(conn, scope, body.employee_id)
        entry = time_entry_repo.get_open_entry(conn, scope.tenant_id, target)
        if not entry:
            raise _no_active_shift()
        if entry["status"] == "break" or break_repo.get_active_break(conn, scope.tenant_id, target):
            raise http_error(status_code=409, code=ErrorCode.CONFLICT, message="Already on break")

        row = break_repo.start_break(
            conn,
            tenant_id=scope.tenant_id,
            employee_id=target,
            time_entry_id=entry["id"],
            started_at=now,
            break_type=body.break_type,
        )
        time_entry_repo.set_status(conn, scope.tenant_id, entry["id"], "break")
    return normalize_break(row)


def break_end(scope: Scope, body: BreakEndIn) -> dict:
    now = utcnow()
    with get_conn() as conn:
        target = resolve_target(conn, scope, body.employee_id)
        current = break_repo.get_active_break(conn, scope.tenant_id, target)
        if not current:
            raise http_error(status_code=404, code=ErrorCode.NOT_FOUND, message="No active break found")

        duration = max(hours_between(current["break_start"], now), 0.0)
        row = break_repo.close_break(conn, scope.tenant_id, current["id"], now, duration)
        time_entry_repo.end_break(conn, scope.tenant_id, current["time_entry_id"], duration)
        time_entry_repo.set_online(conn, scope.tenant_id, target, True)
        entry = time_entry_repo.get_entry(conn, scope.tenant_id, current["time_entry_id"])

    return {
        "break": normalize_break(row),
        "breakDuration": round(duration, 2),
        "totalBreakTimeUsed": round(float(entry["break_hours"] or 0.0), 2),
    }


def break_status(scope: Scope, employee_id: Optional[str]) -> Optional[dict]:
    with get_conn() as conn:
        target = resolve_target(conn, scope, employee_id)
        current = break_repo.get_active_break(conn, scope.tenant_id, target)
    return normalize_break(current)
