"""CSV export of an employee's attendance (time entries)."""
from __future__ import annotations
import csv
import io
import re

from core.db import get_conn
from core.errors import http_error, ErrorCode
from domain.models import Scope
from repositories import employee_repo, time_entry_repo
from utils.time import as_utc

ATTENDANCE_HEADERS = [
    "Date",
    "Clock In Time",
    "Clock Out Time",
    "Total Hours",
    "Break Hours",
    "Status",
    "Approval Status",
    "Total Calls",
    "Leads Generated",
    "Performance Rating",
    "Shift Remarks",
]

_UNSAFE_FILENAME = re.compile(r"[^A-Za-z0-9_.-]")


def _clock(value) -> str:
    value = as_utc(value)
    return value.strftime("%H:%M:%S") if value else ""


def _num(value) -> str:
    return "" if value is None else f"{float(value):.2f}"


def attendance_csv(scope: Scope, employee_id: str) -> tuple[str, str]:
    """
    Build the attendance CSV for one employee inside the caller's scope.

    Returns:
        (filename, csv text); entries newest first
    """
    with get_conn() as conn:
        employee = employee_repo.get_managed_employee(conn, scope, employee_id)
        if not employee:
            raise http_error(status_code=404, code=ErrorCode.NOT_FOUND, message="Employee not found")
        rows = time_entry_repo.export_rows(conn, scope, employee_id)

    buf = io.StringIO()
    writer = csv.writer(buf, lineterminator="\n")
    writer.writerow(ATTENDANCE_HEADERS)
    for r in rows:
        writer.writerow([
            r["date"].isoformat() if r["date"] else "",
            _clock(r["clock_in"]),
            _clock(r["clock_out"]),
            _num(r["total_hours"]),
            _num(r["break_hours"]),
            r["status"] or "",
            r["approval_status"] or "",
            r["total_calls_taken"] if r["total_calls_taken"] is not None else "",
            r["leads_generated"] if r["leads_generated"] is not None else "",
            r["performance_rating"] if r["performance_rating"] is not None else "",
            r["shift_remarks"] or "",
        ])

    filename = f"{_UNSAFE_FILENAME.sub('_', employee['employee_code'])}_attendance.csv"
    return filename, buf.getvalue()
