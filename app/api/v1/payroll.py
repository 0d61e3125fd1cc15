"""
Pay period and payroll endpoints.

- Pay period reads → any tenant member; writes → admin
- Payroll records and adjustments → admin
"""
from __future__ import annotations
from typing import Literal, Optional

from fastapi import APIRouter, Depends, Query

from core.roles import Role
from core.tenant import scope_required
from domain.models import Scope
from schemas.common import ok
from schemas.payroll import BonusIn, DeductionIn, PayPeriodCreate, PayPeriodUpdate
from services import payroll_service

router = APIRouter(prefix="/api/v1/admin", tags=["payroll"])

admin_scope = scope_required(Role.ADMIN)


@router.get("/pay-periods")
def list_pay_periods(
    status: Optional[Literal["open", "locked"]] = None,
    scope: Scope = Depends(scope_required()),
) -> dict:
    return ok(payroll_service.list_periods(scope, status))


@router.post("/pay-periods")
def create_pay_period(body: PayPeriodCreate, scope: Scope = Depends(admin_scope)) -> dict:
    return ok(payroll_service.create_period(scope, body))


@router.put("/pay-periods")
def update_pay_period(body: PayPeriodUpdate, scope: Scope = Depends(admin_scope)) -> dict:
    return ok(payroll_service.update_period(scope, body))


@router.get("/payroll/records")
def list_payroll_records(
    pay_period_id: str = Query(..., min_length=1),
    scope: Scope = Depends(admin_scope),
) -> dict:
    return ok(payroll_service.list_records(scope, pay_period_id))


@router.post("/payroll/bonuses", status_code=201)
def add_bonus(body: BonusIn, scope: Scope = Depends(admin_scope)) -> dict:
    """Record a bonus; bonus total, gross and net pay are recomputed from the bonus rows."""
    return ok(payroll_service.add_bonus(scope, body))


@router.post("/payroll/deductions", status_code=201)
def add_deduction(body: DeductionIn, scope: Scope = Depends(admin_scope)) -> dict:
    return ok(payroll_service.add_deduction(scope, body))
