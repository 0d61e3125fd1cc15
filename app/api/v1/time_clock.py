"""
Time-clock endpoints (clock-in/out, breaks).

Any tenant member may use these for themselves; acting for another employee
follows the self-or-manager rule in services.timeclock_service.
"""
from __future__ import annotations
from typing import Optional

from fastapi import APIRouter, Depends

from core.tenant import scope_required
from domain.models import Scope
from schemas.common import ok
from schemas.time import BreakEndIn, BreakStartIn, ClockInIn, ClockOutIn
from services import timeclock_service

router = APIRouter(prefix="/api/v1/time", tags=["time"])

member_scope = scope_required()


@router.post("/clock-in", status_code=201)
def clock_in(body: ClockInIn, scope: Scope = Depends(member_scope)) -> dict:
    return ok(timeclock_service.clock_in(scope, body), message="Clocked in")


@router.post("/clock-out")
def clock_out(body: ClockOutIn, scope: Scope = Depends(member_scope)) -> dict:
    result = timeclock_service.clock_out(scope, body)
    entry = result.pop("entry")
    return ok(entry, message="Successfully clocked out. Shift submitted for approval.", **result)


@router.post("/break-start")
def break_start(body: BreakStartIn, scope: Scope = Depends(member_scope)) -> dict:
    return ok(timeclock_service.break_start(scope, body), message="Break started")


@router.post("/break-end")
def break_end(body: BreakEndIn, scope: Scope = Depends(member_scope)) -> dict:
    result = timeclock_service.break_end(scope, body)
    return ok(result.pop("break"), message="Break ended successfully", **result)


@router.get("/break-status")
def break_status(employee_id: Optional[str] = None, scope: Scope = Depends(member_scope)) -> dict:
    current = timeclock_service.break_status(scope, employee_id)
    # data is explicitly null when there is no active break
    return {
        "success": True,
        "data": current,
        "message": "Active break found" if current else "No active break",
    }
