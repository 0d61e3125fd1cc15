"""
Timesheets, discrepancy detection and approval workflows.

Rules:
- All reads and writes go through time_entry_repo, which applies the tenant
  and manager-location scope
- Managers may use the shift-approval endpoints only when the tenant setting
  allow_manager_approvals is true
- Scheduled times are wall-clock times on the entry date, interpreted as UTC
"""
from __future__ import annotations
import math
from datetime import date, datetime, timedelta, timezone
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional

from sqlalchemy.engine import Connection

from core.db import get_conn
from core.errors import http_error, ErrorCode
from core.logger import log_security_event
from domain.models import Scope
from repositories import location_repo, tenant_repo, time_entry_repo
from schemas.approvals import (
    BulkApproveIn, BulkRangeApproveIn, ShiftDecisionIn, TimesheetDecisionIn, TimesheetEditIn,
)
from schemas.common import pagination
from utils.time import as_utc, hours_between

# Grace periods and error thresholds, in minutes.
LATE_GRACE, LATE_ERROR = 5, 15
EARLY_GRACE, EARLY_ERROR = 5, 30
OVERTIME_GRACE, OVERTIME_ERROR = 15, 60

CENT = Decimal("0.01")


def _entry_not_found():
    return http_error(status_code=404, code=ErrorCode.NOT_FOUND, message="Time entry not found")


def _scheduled_window(day: date, start, end) -> tuple[datetime, datetime]:
    begin = datetime.combine(day, start, tzinfo=timezone.utc)
    finish = datetime.combine(day, end, tzinfo=timezone.utc)
    if finish <= begin:
        # Overnight shift
        finish += timedelta(days=1)
    return begin, finish


def detect_discrepancies(entry: dict) -> list[dict]:
    """
    Compare an entry against its scheduled shift.

    A missing clock-out is reported alone; the other checks need both ends of
    the shift.
    """
    if not entry.get("clock_out"):
        return [{"type": "missing_clock_out", "severity": "error", "message": "Missing clock-out time"}]

    start, end = entry.get("scheduled_start"), entry.get("scheduled_end")
    clock_in, clock_out = as_utc(entry.get("clock_in")), as_utc(entry["clock_out"])
    found: list[dict] = []
    if start is None or end is None or clock_in is None:
        return found

    scheduled_start, scheduled_end = _scheduled_window(entry["date"], start, end)

    late = math.floor((clock_in - scheduled_start).total_seconds() / 60)
    if late > LATE_GRACE:
        found.append({
            "type": "late_clock_in",
            "severity": "error" if late > LATE_ERROR else "warning",
            "message": f"Clock-in was {late} minutes late",
            "minutes": late,
        })

    early = math.floor((scheduled_end - clock_out).total_seconds() / 60)
    if early > EARLY_GRACE:
        found.append({
            "type": "early_clock_out",
            "severity": "error" if early > EARLY_ERROR else "warning",
            "message": f"Clock-out was {early} minutes early",
            "minutes": early,
        })

    scheduled_minutes = (scheduled_end - scheduled_start).total_seconds() / 60
    actual_minutes = (clock_out - clock_in).total_seconds() / 60
    overtime = math.floor(actual_minutes - scheduled_minutes)
    if overtime > OVERTIME_GRACE:
        found.append({
            "type": "overtime",
            "severity": "error" if overtime > OVERTIME_ERROR else "warning",
            "message": f"Worked {overtime} minutes overtime",
            "minutes": overtime,
        })
    return found


def _scheduled_hours(entry: dict) -> Optional[float]:
    if entry.get("scheduled_start") is None or entry.get("scheduled_end") is None:
        return None
    begin, finish = _scheduled_window(entry["date"], entry["scheduled_start"], entry["scheduled_end"])
    return round((finish - begin).total_seconds() / 3600, 2)


def admin_timesheet(scope: Scope, start: date, end: date) -> list[dict]:
    with get_conn() as conn:
        rows = time_entry_repo.timesheet_rows(conn, scope, start, end)
        breaks = time_entry_repo.breaks_by_entry(conn, scope.tenant_id, {r["id"] for r in rows})

    result = []
    for row in rows:
        total = row["total_hours"]
        result.append({
            "id": row["id"],
            "employee_id": row["employee_id"],
            "employee_name": row["employee_name"],
            "employee_code": row["employee_code"],
            "department": row["department"],
            "location_name": row["location_name"],
            "date": row["date"],
            "scheduled_start": row["scheduled_start"],
            "scheduled_end": row["scheduled_end"],
            "scheduled_hours": _scheduled_hours(row),
            "actual_clock_in": row["clock_in"],
            "actual_clock_out": row["clock_out"],
            "actual_hours": total,
            "break_hours": row["break_hours"],
            "total_approved_hours": row["approved_hours"] if row["approved_hours"] is not None else total,
            "discrepancies": detect_discrepancies(row),
            "approval_status": row["approval_status"],
            "is_approved": row["approval_status"] == "approved",
            "approved_by": row["approved_by"],
            "approved_at": row["approved_at"],
            "notes": row["notes"],
            "breaks": breaks.get(row["id"], []),
        })
    return result


def bulk_approve_entries(scope: Scope, body: BulkApproveIn) -> dict:
    entry_ids = list(dict.fromkeys(body.entry_ids))
    with get_conn() as conn:
        # All-or-nothing: one unknown or out-of-scope id rejects the request
        if time_entry_repo.count_in_scope(conn, scope, entry_ids) != len(entry_ids):
            raise http_error(
                status_code=404,
                code=ErrorCode.NOT_FOUND,
                message="Some entries not found or access denied",
            )
        approved = time_entry_repo.approve_by_ids(conn, scope, entry_ids, body.notes or "Bulk approved")

    log_security_event(
        action="timesheet_bulk_approve",
        result="success",
        user_id=scope.user_id,
        tenant_id=scope.tenant_id,
        meta={"requested": len(entry_ids), "approved": approved},
        demo=scope.user.is_demo,
    )
    return {"approved_count": approved, "total_requested": len(entry_ids)}


def set_break_hours(scope: Scope, entry_id: str, break_hours: float) -> dict:
    with get_conn() as conn:
        entry = time_entry_repo.get_scoped_entry(conn, scope, entry_id)
        if not entry:
            raise _entry_not_found()
        values: dict = {"break_hours": break_hours}
        if entry["clock_in"] and entry["clock_out"]:
            values["total_hours"] = max(hours_between(entry["clock_in"], entry["clock_out"]) - break_hours, 0.0)
        updated = time_entry_repo.update_entry(conn, scope, entry_id, values)
    if not updated:
        raise _entry_not_found()
    return updated


# A corrected entry goes back to the approval queue
_APPROVAL_RESET = {
    "approval_status": "pending",
    "approved_by": None,
    "approved_at": None,
    "approved_hours": None,
    "approved_rate": None,
    "total_pay": None,
}


def edit_timesheet(scope: Scope, entry_id: str, body: TimesheetEditIn) -> dict:
    """Correct clock times, break hours or notes and recompute total hours."""
    fields = {k: v for k, v in body.model_dump(exclude_unset=True).items() if v is not None}
    if not fields:
        raise http_error(status_code=400, code=ErrorCode.BAD_REQUEST, message="No fields to update")

    with get_conn() as conn:
        entry = time_entry_repo.get_scoped_entry(conn, scope, entry_id)
        if not entry:
            raise _entry_not_found()
        if "clock_out" in fields and entry["status"] != "completed":
            raise http_error(
                status_code=409,
                code=ErrorCode.CONFLICT,
                message="Clock out the open shift before editing its clock-out time",
            )

        clock_in = as_utc(fields.get("clock_in") or entry["clock_in"])
        clock_out = as_utc(fields.get("clock_out") or entry["clock_out"])
        break_hours = fields.get("break_hours", float(entry["break_hours"] or 0.0))

        values: dict = {}
        if "clock_in" in fields:
            values["clock_in"] = clock_in
        if "clock_out" in fields:
            values["clock_out"] = clock_out
        if "break_hours" in fields:
            values["break_hours"] = break_hours
        if "notes" in fields:
            values["notes"] = fields["notes"]
        if clock_in and clock_out:
            _check_order(clock_in, clock_out)
            values["total_hours"] = max(hours_between(clock_in, clock_out) - break_hours, 0.0)

        times_changed = fields.keys() & {"clock_in", "clock_out", "break_hours"}
        if times_changed and entry["status"] == "completed":
            values.update(_APPROVAL_RESET)

        updated = time_entry_repo.update_entry(conn, scope, entry_id, values)
    if not updated:
        raise _entry_not_found()

    log_security_event(
        action="timesheet_edit",
        result="success",
        user_id=scope.user_id,
        tenant_id=scope.tenant_id,
        meta={"time_entry_id": entry_id, "fields": sorted(fields)},
        demo=scope.user.is_demo,
    )
    return updated


# =========================
# Shift approvals
# =========================

def _require_approval_rights(conn: Connection, scope: Scope) -> None:
    if scope.is_manager and not tenant_repo.manager_approvals_allowed(conn, scope.tenant_id):
        raise http_error(
            status_code=403,
            code=ErrorCode.FORBIDDEN,
            message="Manager approvals disabled by settings",
        )


def list_shift_approvals(scope: Scope, *, status: str, page: int, limit: int) -> dict:
    with get_conn() as conn:
        _require_approval_rights(conn, scope)
        rows, total = time_entry_repo.list_for_approval(conn, scope, status=status, page=page, limit=limit)
        stats = time_entry_repo.approval_stats(conn, scope)

    for row in rows:
        flags = {d["type"] for d in detect_discrepancies({
            **row,
            "scheduled_start": row["scheduled_start_time"],
            "scheduled_end": row["scheduled_end_time"],
        })}
        row["missing_events"] = "missing_clock_out" in flags or row["clock_in"] is None
        row["is_late"] = "late_clock_in" in flags
        row["early_leave"] = "early_clock_out" in flags
        row["overtime"] = "overtime" in flags

    return {"approvals": rows, "pagination": pagination(page, limit, total), "stats": stats}


def _pay(hours: float, rate: Decimal) -> Decimal:
    return (Decimal(str(hours)) * rate).quantize(CENT, rounding=ROUND_HALF_UP)


def _decision_values(entry: dict, body: TimesheetDecisionIn) -> dict:
    """Column values for an approve / reject / edit decision on one entry."""
    if body.action in ("approve", "reject") and entry["status"] != "completed":
        raise http_error(
            status_code=409,
            code=ErrorCode.CONFLICT,
            message="Only completed entries can be approved or rejected",
        )

    default_rate = Decimal(entry["hourly_rate"] or 0)
    values: dict = {
        "admin_notes": body.admin_notes,
        "rejection_reason": None,
    }

    if body.action == "approve":
        hours = body.approved_hours if body.approved_hours else float(entry["total_hours"] or 0.0)
        rate = body.approved_rate if body.approved_rate else default_rate
        values.update(approval_status="approved", approved_hours=hours,
                      approved_rate=rate, total_pay=_pay(hours, rate))

    elif body.action == "reject":
        if not body.rejection_reason:
            raise http_error(
                status_code=400,
                code=ErrorCode.BAD_REQUEST,
                message="Rejection reason is required",
            )
        values.update(approval_status="rejected", approved_hours=0.0,
                      approved_rate=Decimal(0), total_pay=Decimal(0),
                      rejection_reason=body.rejection_reason)

    else:
        clock_in = as_utc(body.clock_in) if body.clock_in else as_utc(entry["clock_in"])
        clock_out = as_utc(body.clock_out) if body.clock_out else as_utc(entry["clock_out"])
        break_hours = body.break_hours if body.break_hours is not None else float(entry["break_hours"] or 0.0)
        total = entry["total_hours"]
        if clock_in and clock_out:
            _check_order(clock_in, clock_out)
            total = max(hours_between(clock_in, clock_out) - break_hours, 0.0)
        hours = body.approved_hours if body.approved_hours else float(total or 0.0)
        rate = body.approved_rate if body.approved_rate else default_rate
        values.update(approval_status="edited", clock_in=clock_in, clock_out=clock_out,
                      break_hours=break_hours, total_hours=total, approved_hours=hours,
                      approved_rate=rate, total_pay=_pay(hours, rate))
    return values


def _check_order(clock_in: datetime, clock_out: datetime) -> None:
    if clock_out <= clock_in:
        raise http_error(
            status_code=400,
            code=ErrorCode.BAD_REQUEST,
            message="clock_out must be after clock_in",
        )


def _log_decision(action: str, scope: Scope, entry: dict, status: str) -> None:
    log_security_event(
        action=action,
        result=status,
        user_id=scope.user_id,
        tenant_id=scope.tenant_id,
        meta={"time_entry_id": entry["id"], "employee_id": entry["employee_id"]},
        demo=scope.user.is_demo,
    )


def decide_shift(scope: Scope, entry_id: str, body: ShiftDecisionIn) -> dict:
    with get_conn() as conn:
        _require_approval_rights(conn, scope)
        entry = time_entry_repo.get_scoped_entry(conn, scope, entry_id)
        if not entry:
            raise http_error(status_code=404, code=ErrorCode.NOT_FOUND, message="Shift not found")
        values = _decision_values(entry, body)
        notes = body.admin_notes or body.rejection_reason
        updated = time_entry_repo.apply_decision(conn, scope, entry, values, notes)

    _log_decision("shift_approval", scope, entry, values["approval_status"])
    return updated


def decide_timesheet(scope: Scope, entry_id: str, body: TimesheetDecisionIn) -> dict:
    """
    Manager approve/reject of one entry. Not gated by allow_manager_approvals;
    the location scope alone decides which entries are reachable.
    """
    with get_conn() as conn:
        entry = time_entry_repo.get_scoped_entry(conn, scope, entry_id)
        if not entry:
            raise http_error(status_code=404, code=ErrorCode.NOT_FOUND, message="Timesheet not found")
        values = _decision_values(entry, body)
        notes = body.admin_notes or body.rejection_reason
        updated = time_entry_repo.apply_decision(conn, scope, entry, values, notes)

    _log_decision("timesheet_approval", scope, entry, values["approval_status"])
    return updated


def bulk_approve_range(scope: Scope, body: BulkRangeApproveIn) -> int:
    with get_conn() as conn:
        _require_approval_rights(conn, scope)
        approved = time_entry_repo.approve_date_range(conn, scope, body.start_date, body.end_date)

    log_security_event(
        action="shift_bulk_approve",
        result="success",
        user_id=scope.user_id,
        tenant_id=scope.tenant_id,
        meta={"start_date": body.start_date.isoformat(), "end_date": body.end_date.isoformat(),
              "approved": approved},
        demo=scope.user.is_demo,
    )
    return approved


# =========================
# Manager view
# =========================

def manager_timesheets(
    scope: Scope,
    *,
    location_id: Optional[str],
    start: Optional[date],
    end: Optional[date],
    status: Optional[str],
) -> dict:
    with get_conn() as conn:
        assigned = location_repo.assigned_location_ids(conn, scope)
        if not assigned:
            raise http_error(
                status_code=403,
                code=ErrorCode.FORBIDDEN,
                message="No locations assigned to this manager",
            )
        # A location outside the assignment set narrows to nothing
        locations = [location_id] if location_id else assigned
        locations = [loc for loc in locations if loc in assigned]
        if locations:
            rows, summary = time_entry_repo.manager_timesheets(
                conn, scope, location_ids=locations, start=start, end=end, status=status,
            )
        else:
            rows, summary = [], {}

    employees_count = int(summary.get("unique_employees") or 0)
    total_hours = float(summary.get("total_hours") or 0.0)
    return {
        "timesheets": rows,
        "summary": {
            "total_entries": int(summary.get("total_entries") or 0),
            "pending_approvals": int(summary.get("pending_approvals") or 0),
            "approved_entries": int(summary.get("approved_entries") or 0),
            "rejected_entries": int(summary.get("rejected_entries") or 0),
            "total_hours": round(total_hours, 2),
            "total_pay": float(summary.get("total_pay") or 0),
            "average_hours_per_employee": round(total_hours / employees_count, 2) if employees_count else 0.0,
        },
    }
