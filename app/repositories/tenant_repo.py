"""
Repository for tenant context and tenant-level settings.

Rules:
- Tenant context is derived from the caller's own employee row, never from
  headers or request bodies
- Settings reads/writes are keyed by the resolved tenant id only
"""
from __future__ import annotations
from typing import Optional

from sqlalchemy import insert, select, update
from sqlalchemy.engine import Connection

from domain.models import TenantContext
from domain.tables import employees, tenant_settings
from utils.time import utcnow

DEFAULT_APPROVAL_SETTINGS = {
    "allow_manager_approvals": False,
    "pay_period_type": "weekly",
    "custom_period_days": None,
    "week_start_day": 1,
}


def get_tenant_context(conn: Connection, user_id: str) -> Optional[TenantContext]:
    """
    Load the tenant/organization a user belongs to.

    Args:
        conn: Open connection
        user_id: Employee id of the resolved caller

    Returns:
        TenantContext, or None when the user is inactive or has no tenant
    """
    row = conn.execute(
        select(employees.c.tenant_id, employees.c.organization_id)
        .where(employees.c.id == user_id, employees.c.is_active.is_(True))
    ).mappings().first()
    if not row or not row["tenant_id"]:
        return None
    return TenantContext(
        tenant_id=row["tenant_id"],
        organization_id=row["organization_id"],
    )


def get_approval_settings(conn: Connection, tenant_id: str) -> dict:
    row = conn.execute(
        select(
            tenant_settings.c.allow_manager_approvals,
            tenant_settings.c.pay_period_type,
            tenant_settings.c.custom_period_days,
            tenant_settings.c.week_start_day,
        ).where(tenant_settings.c.tenant_id == tenant_id)
    ).mappings().first()
    return dict(row) if row else dict(DEFAULT_APPROVAL_SETTINGS)


def manager_approvals_allowed(conn: Connection, tenant_id: str) -> bool:
    return get_approval_settings(conn, tenant_id)["allow_manager_approvals"] is True


def upsert_approval_settings(conn: Connection, tenant_id: str, data: dict) -> dict:
    exists = conn.execute(
        select(tenant_settings.c.tenant_id).where(tenant_settings.c.tenant_id == tenant_id)
    ).first() is not None

    values = {**DEFAULT_APPROVAL_SETTINGS, **data, "updated_at": utcnow()}
    if exists:
        conn.execute(
            update(tenant_settings)
            .where(tenant_settings.c.tenant_id == tenant_id)
            .values(**values)
        )
    else:
        conn.execute(insert(tenant_settings).values(tenant_id=tenant_id, **values))
    return get_approval_settings(conn, tenant_id)
