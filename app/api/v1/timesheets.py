"""
Timesheet and shift-approval endpoints.

- Admin timesheet / entry edit / bulk approve / break hours → admin or manager
- Shift approvals → admin; managers only when the tenant allows manager approvals
- Manager timesheets and single-entry decisions → manager, restricted to
  assigned locations
"""
from __future__ import annotations
from datetime import date
from typing import Literal, Optional

from fastapi import APIRouter, Depends, Query

from core.errors import http_error, ErrorCode
from core.roles import Role
from core.tenant import scope_required
from domain.models import Scope
from schemas.approvals import (
    BreakHoursIn, BulkApproveIn, BulkRangeApproveIn, ShiftDecisionIn, TimesheetDecisionIn, TimesheetEditIn,
)
from schemas.common import ok
from services import timesheet_service

router = APIRouter(prefix="/api/v1", tags=["timesheets"])

operator_scope = scope_required(Role.ADMIN, Role.MANAGER)


@router.get("/admin/timesheet")
def admin_timesheet(
    start_date: date,
    end_date: date,
    scope: Scope = Depends(operator_scope),
) -> dict:
    if end_date < start_date:
        raise http_error(
            status_code=400,
            code=ErrorCode.VALIDATION_ERROR,
            message="end_date must not be before start_date",
        )
    return ok(timesheet_service.admin_timesheet(scope, start_date, end_date))


@router.patch("/admin/timesheet/{entry_id}")
def edit_timesheet(entry_id: str, body: TimesheetEditIn, scope: Scope = Depends(operator_scope)) -> dict:
    return ok(timesheet_service.edit_timesheet(scope, entry_id, body), message="Timesheet entry updated successfully")


@router.post("/admin/timesheet/bulk-approve")
def bulk_approve(body: BulkApproveIn, scope: Scope = Depends(operator_scope)) -> dict:
    result = timesheet_service.bulk_approve_entries(scope, body)
    return ok(result, message=f"{result['approved_count']} timesheet entries approved successfully")


@router.put("/admin/time-entries/{entry_id}/break-hours")
def set_break_hours(entry_id: str, body: BreakHoursIn, scope: Scope = Depends(operator_scope)) -> dict:
    return ok(timesheet_service.set_break_hours(scope, entry_id, body.break_hours))


@router.get("/admin/shift-approvals")
def list_shift_approvals(
    status: Literal["pending", "approved", "rejected", "edited", "all"] = "pending",
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=200),
    scope: Scope = Depends(operator_scope),
) -> dict:
    return ok(timesheet_service.list_shift_approvals(scope, status=status, page=page, limit=limit))


@router.patch("/admin/shift-approvals/{entry_id}")
def decide_shift(entry_id: str, body: ShiftDecisionIn, scope: Scope = Depends(operator_scope)) -> dict:
    updated = timesheet_service.decide_shift(scope, entry_id, body)
    return ok(updated, message=f"Shift {updated['approval_status']} successfully")


@router.post("/admin/shift-approvals/bulk")
def bulk_approve_range(body: BulkRangeApproveIn, scope: Scope = Depends(operator_scope)) -> dict:
    approved = timesheet_service.bulk_approve_range(scope, body)
    return ok({"approved": approved})


@router.get("/manager/timesheets")
def manager_timesheets(
    location_id: Optional[str] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    status: Optional[str] = None,
    scope: Scope = Depends(scope_required(Role.MANAGER)),
) -> dict:
    return ok(timesheet_service.manager_timesheets(
        scope, location_id=location_id, start=start_date, end=end_date, status=status,
    ))


@router.patch("/manager/approvals/timesheet/{entry_id}")
def manager_decide_timesheet(
    entry_id: str,
    body: TimesheetDecisionIn,
    scope: Scope = Depends(scope_required(Role.MANAGER)),
) -> dict:
    updated = timesheet_service.decide_timesheet(scope, entry_id, body)
    return ok(updated, message=f"Timesheet {updated['approval_status']} successfully")
