"""
Repository for pay periods, payroll records and payroll adjustments.

Rules:
- Every statement filters by the resolved tenant id
- Bonus and deduction totals are re-summed from their detail tables inside the
  UPDATE that writes them; stored totals are never incremented
- The detail insert and the recompute share the caller's transaction
"""
from __future__ import annotations
from datetime import date
from decimal import Decimal
from typing import Optional

from sqlalchemy import and_, func, insert, select, update
from sqlalchemy.engine import Connection

from domain.models import Scope
from domain.tables import employees, pay_periods, payroll_bonuses, payroll_deductions, payroll_records
from utils.ids import new_id
from utils.time import utcnow

PERIOD_COLUMNS = (
    pay_periods.c.id,
    pay_periods.c.period_name,
    pay_periods.c.start_date,
    pay_periods.c.end_date,
    pay_periods.c.status,
    pay_periods.c.created_at,
)

RECORD_COLUMNS = (
    payroll_records.c.id,
    payroll_records.c.employee_id,
    payroll_records.c.employee_email,
    payroll_records.c.pay_period_id,
    payroll_records.c.base_salary,
    payroll_records.c.hourly_pay,
    payroll_records.c.overtime_pay,
    payroll_records.c.bonus_amount,
    payroll_records.c.deductions_amount,
    payroll_records.c.gross_pay,
    payroll_records.c.net_pay,
    payroll_records.c.updated_at,
)


# =========================
# Pay periods
# =========================

def list_periods(conn: Connection, scope: Scope, status: Optional[str] = None) -> list[dict]:
    stmt = select(*PERIOD_COLUMNS).where(pay_periods.c.tenant_id == scope.tenant_id)
    if status:
        stmt = stmt.where(pay_periods.c.status == status)
    rows = conn.execute(stmt.order_by(pay_periods.c.start_date.desc())).mappings()
    return [dict(r) for r in rows]


def get_period(conn: Connection, tenant_id: str, period_id: str) -> Optional[dict]:
    row = conn.execute(
        select(*PERIOD_COLUMNS)
        .where(pay_periods.c.id == period_id, pay_periods.c.tenant_id == tenant_id)
    ).mappings().first()
    return dict(row) if row else None


def find_period_by_range(conn: Connection, tenant_id: str, start: date, end: date) -> Optional[dict]:
    row = conn.execute(
        select(*PERIOD_COLUMNS).where(
            pay_periods.c.tenant_id == tenant_id,
            pay_periods.c.start_date == start,
            pay_periods.c.end_date == end,
        )
    ).mappings().first()
    return dict(row) if row else None


def create_period(
    conn: Connection,
    *,
    tenant_id: str,
    organization_id: Optional[str],
    start: date,
    end: date,
    period_name: Optional[str] = None,
) -> dict:
    period_id = new_id()
    conn.execute(insert(pay_periods).values(
        id=period_id,
        tenant_id=tenant_id,
        organization_id=organization_id,
        period_name=period_name,
        start_date=start,
        end_date=end,
        status="open",
        created_at=utcnow(),
    ))
    return get_period(conn, tenant_id, period_id)


def set_period_status(conn: Connection, scope: Scope, period_id: str, status: str) -> Optional[dict]:
    result = conn.execute(
        update(pay_periods)
        .where(pay_periods.c.id == period_id, pay_periods.c.tenant_id == scope.tenant_id)
        .values(status=status)
    )
    if result.rowcount == 0:
        return None
    return get_period(conn, scope.tenant_id, period_id)


# =========================
# Records
# =========================

def list_records(conn: Connection, scope: Scope, period_id: str) -> list[dict]:
    rows = conn.execute(
        select(
            *RECORD_COLUMNS,
            employees.c.employee_code,
            employees.c.first_name,
            employees.c.last_name,
        )
        .select_from(payroll_records.join(employees, and_(
            employees.c.id == payroll_records.c.employee_id,
            employees.c.tenant_id == payroll_records.c.tenant_id,
        )))
        .where(
            payroll_records.c.tenant_id == scope.tenant_id,
            payroll_records.c.pay_period_id == period_id,
        )
        .order_by(employees.c.first_name, employees.c.last_name)
    ).mappings()
    return [dict(r) for r in rows]


def get_record(conn: Connection, tenant_id: str, employee_id: str, period_id: str) -> Optional[dict]:
    row = conn.execute(
        select(*RECORD_COLUMNS).where(
            payroll_records.c.tenant_id == tenant_id,
            payroll_records.c.employee_id == employee_id,
            payroll_records.c.pay_period_id == period_id,
        )
    ).mappings().first()
    return dict(row) if row else None


def _record_match(tenant_id: str, employee_id: str, period_id: str):
    return and_(
        payroll_records.c.tenant_id == tenant_id,
        payroll_records.c.employee_id == employee_id,
        payroll_records.c.pay_period_id == period_id,
    )


def _detail_sum(detail, tenant_id: str, employee_id: str, period_id: str):
    return (
        select(func.coalesce(func.sum(detail.c.amount), 0))
        .where(
            detail.c.tenant_id == tenant_id,
            detail.c.employee_id == employee_id,
            detail.c.pay_period_id == period_id,
        )
        .scalar_subquery()
    )


# =========================
# Adjustments
# =========================

def add_bonus(
    conn: Connection,
    scope: Scope,
    employee: dict,
    period_id: str,
    *,
    amount: Decimal,
    reason: str,
    bonus_type: str,
) -> dict:
    """
    Insert a bonus row, then recompute bonus_amount, gross_pay and net_pay
    from payroll_bonuses in one UPDATE.
    """
    bonus_id = new_id()
    conn.execute(insert(payroll_bonuses).values(
        id=bonus_id,
        tenant_id=scope.tenant_id,
        employee_id=employee["id"],
        employee_email=employee["email"],
        pay_period_id=period_id,
        amount=amount,
        reason=reason,
        bonus_type=bonus_type,
        applied_by=scope.user_id,
        applied_date=utcnow(),
    ))

    bonus_total = _detail_sum(payroll_bonuses, scope.tenant_id, employee["id"], period_id)
    gross = (
        payroll_records.c.base_salary
        + payroll_records.c.hourly_pay
        + payroll_records.c.overtime_pay
        + bonus_total
    )
    conn.execute(
        update(payroll_records)
        .where(_record_match(scope.tenant_id, employee["id"], period_id))
        .values(
            bonus_amount=bonus_total,
            gross_pay=gross,
            net_pay=gross - payroll_records.c.deductions_amount,
            updated_at=utcnow(),
        )
    )
    return {
        "bonus": _detail_row(conn, payroll_bonuses, bonus_id),
        "record": get_record(conn, scope.tenant_id, employee["id"], period_id),
    }


def add_deduction(
    conn: Connection,
    scope: Scope,
    employee: dict,
    period_id: str,
    *,
    amount: Decimal,
    reason: str,
    deduction_type: str,
) -> dict:
    """Insert a deduction row, then recompute deductions_amount and net_pay in one UPDATE."""
    deduction_id = new_id()
    conn.execute(insert(payroll_deductions).values(
        id=deduction_id,
        tenant_id=scope.tenant_id,
        employee_id=employee["id"],
        employee_email=employee["email"],
        pay_period_id=period_id,
        amount=amount,
        reason=reason,
        deduction_type=deduction_type,
        applied_by=scope.user_id,
        applied_date=utcnow(),
    ))

    deduction_total = _detail_sum(payroll_deductions, scope.tenant_id, employee["id"], period_id)
    conn.execute(
        update(payroll_records)
        .where(_record_match(scope.tenant_id, employee["id"], period_id))
        .values(
            deductions_amount=deduction_total,
            net_pay=payroll_records.c.gross_pay - deduction_total,
            updated_at=utcnow(),
        )
    )
    return {
        "deduction": _detail_row(conn, payroll_deductions, deduction_id),
        "record": get_record(conn, scope.tenant_id, employee["id"], period_id),
    }


def _detail_row(conn: Connection, detail, row_id: str) -> dict:
    row = conn.execute(select(detail).where(detail.c.id == row_id)).mappings().one()
    return dict(row)
