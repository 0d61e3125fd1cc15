"""Repository for organizations (tenants). Used by the unauthenticated signup flow."""
from __future__ import annotations
from datetime import datetime

from sqlalchemy import func, insert, select
from sqlalchemy.engine import Connection

from domain.tables import employees, organizations
from utils.ids import new_id


def org_email_taken(conn: Connection, email: str) -> bool:
    return conn.execute(
        select(organizations.c.id).where(func.lower(organizations.c.email) == email.lower())
    ).first() is not None


def employee_email_taken(conn: Connection, email: str) -> bool:
    # Login is by e-mail across tenants, so admin e-mails are kept globally unique.
    return conn.execute(
        select(employees.c.id).where(func.lower(employees.c.email) == email.lower())
    ).first() is not None


def tenant_id_taken(conn: Connection, tenant_id: str) -> bool:
    return conn.execute(
        select(organizations.c.id).where(organizations.c.tenant_id == tenant_id)
    ).first() is not None


def create_organization(
    conn: Connection,
    *,
    tenant_id: str,
    slug: str,
    data: dict,
    trial_start: datetime,
    trial_end: datetime,
) -> dict:
    org_id = new_id()
    conn.execute(insert(organizations).values(
        id=org_id,
        tenant_id=tenant_id,
        slug=slug,
        subscription_status="trial",
        trial_start_date=trial_start,
        trial_end_date=trial_end,
        is_verified=False,
        is_active=True,
        created_at=trial_start,
        updated_at=trial_start,
        **data,
    ))
    row = conn.execute(
        select(
            organizations.c.id,
            organizations.c.tenant_id,
            organizations.c.name,
            organizations.c.slug,
            organizations.c.email,
            organizations.c.subscription_status,
            organizations.c.subscription_plan,
            organizations.c.trial_end_date,
        ).where(organizations.c.id == org_id)
    ).mappings().one()
    return dict(row)
