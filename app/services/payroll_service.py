"""
Service layer for pay periods and payroll adjustments.

Rules:
- Locked pay periods reject adjustments (409)
- The adjustment insert and the totals recompute run in one transaction
- Every adjustment is logged as a security event
"""
from __future__ import annotations
from typing import Optional

from sqlalchemy.engine import Connection

from core.db import get_conn
from core.errors import http_error, ErrorCode
from core.logger import log_security_event
from domain.models import Scope
from repositories import employee_repo, payroll_repo
from schemas.payroll import BonusIn, DeductionIn, PayPeriodCreate, PayPeriodUpdate


def list_periods(scope: Scope, status: Optional[str]) -> list[dict]:
    with get_conn() as conn:
        return payroll_repo.list_periods(conn, scope, status)


def create_period(scope: Scope, body: PayPeriodCreate) -> dict:
    """Idempotent per (start_date, end_date): an existing period is returned as-is."""
    with get_conn() as conn:
        existing = payroll_repo.find_period_by_range(conn, scope.tenant_id, body.start_date, body.end_date)
        if existing:
            return existing
        return payroll_repo.create_period(
            conn,
            tenant_id=scope.tenant_id,
            organization_id=scope.tenant.organization_id,
            start=body.start_date,
            end=body.end_date,
            period_name=body.period_name,
        )


def update_period(scope: Scope, body: PayPeriodUpdate) -> dict:
    with get_conn() as conn:
        updated = payroll_repo.set_period_status(conn, scope, body.id, body.status)
    if not updated:
        raise http_error(status_code=404, code=ErrorCode.NOT_FOUND, message="Pay period not found")
    log_security_event(
        action="pay_period_status",
        result=body.status,
        user_id=scope.user_id,
        tenant_id=scope.tenant_id,
        meta={"pay_period_id": body.id},
        demo=scope.user.is_demo,
    )
    return updated


def list_records(scope: Scope, pay_period_id: str) -> list[dict]:
    with get_conn() as conn:
        if not payroll_repo.get_period(conn, scope.tenant_id, pay_period_id):
            raise http_error(status_code=404, code=ErrorCode.NOT_FOUND, message="Pay period not found")
        return payroll_repo.list_records(conn, scope, pay_period_id)


def _adjustment_target(conn: Connection, scope: Scope, email: str, period_id: str) -> dict:
    """Employee, open period and existing payroll record, or the matching HTTP error."""
    employee = employee_repo.find_by_email(conn, scope, email)
    if not employee:
        raise http_error(status_code=404, code=ErrorCode.NOT_FOUND, message="Employee not found")

    period = payroll_repo.get_period(conn, scope.tenant_id, period_id)
    if not period:
        raise http_error(status_code=404, code=ErrorCode.NOT_FOUND, message="Pay period not found")
    if period["status"] == "locked":
        raise http_error(status_code=409, code=ErrorCode.CONFLICT, message="Pay period is locked")

    if not payroll_repo.get_record(conn, scope.tenant_id, employee["id"], period_id):
        raise http_error(status_code=404, code=ErrorCode.NOT_FOUND, message="Payroll record not found")
    return employee


def add_bonus(scope: Scope, body: BonusIn) -> dict:
    with get_conn() as conn:
        employee = _adjustment_target(conn, scope, str(body.employee_email), body.pay_period_id)
        result = payroll_repo.add_bonus(
            conn, scope, employee, body.pay_period_id,
            amount=body.amount, reason=body.reason, bonus_type=body.bonus_type,
        )

    log_security_event(
        action="payroll_bonus",
        result="success",
        user_id=scope.user_id,
        tenant_id=scope.tenant_id,
        meta={"employee_id": employee["id"], "pay_period_id": body.pay_period_id, "amount": str(body.amount)},
        demo=scope.user.is_demo,
    )
    return result


def add_deduction(scope: Scope, body: DeductionIn) -> dict:
    with get_conn() as conn:
        employee = _adjustment_target(conn, scope, str(body.employee_email), body.pay_period_id)
        result = payroll_repo.add_deduction(
            conn, scope, employee, body.pay_period_id,
            amount=body.amount, reason=body.reason, deduction_type=body.deduction_type,
        )

    log_security_event(
        action="payroll_deduction",
        result="success",
        user_id=scope.user_id,
        tenant_id=scope.tenant_id,
        meta={"employee_id": employee["id"], "pay_period_id": body.pay_period_id, "amount": str(body.amount)},
        demo=scope.user.is_demo,
    )
    return result
