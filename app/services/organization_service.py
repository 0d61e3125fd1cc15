"""
Organization signup: creates a new tenant with its first admin.

Rules:
- Unauthenticated; the only route that writes without a resolved Scope
- Organization, admin employee, default location and first pay period are
  created in one transaction
- The admin password is stored as a bcrypt hash only
"""
from __future__ import annotations
import calendar
import re
import time
from datetime import date, timedelta

from core.db import get_conn
from core.errors import http_error, ErrorCode
from core.logger import log_security_event
from core.roles import Role
from core.security import hash_password
from repositories import employee_repo, location_repo, organization_repo, payroll_repo
from schemas.organizations import SignupIn
from utils.ids import new_id
from utils.time import utcnow

TRIAL_DAYS = 30
_BASE36 = "0123456789abcdefghijklmnopqrstuvwxyz"


def _base36(n: int) -> str:
    out = ""
    while True:
        n, r = divmod(n, 36)
        out = _BASE36[r] + out
        if n == 0:
            return out


def make_slug(name: str) -> str:
    slug = re.sub(r"[^a-z0-9\s-]", "", name.lower())
    slug = re.sub(r"\s+", "-", slug)
    slug = re.sub(r"-+", "-", slug).strip("-")
    return slug[:50] or "org"


def make_tenant_id(name: str) -> str:
    """Lower-case alphanumeric prefix of the name plus a base36 millisecond timestamp."""
    base = re.sub(r"[^a-z0-9]", "", name.lower())[:20] or "org"
    return f"{base}-{_base36(int(time.time() * 1000))}"


def _month_bounds(today: date) -> tuple[date, date]:
    last_day = calendar.monthrange(today.year, today.month)[1]
    return today.replace(day=1), today.replace(day=last_day)


def signup(body: SignupIn) -> dict:
    org_email = str(body.organizationEmail)
    admin_email = str(body.adminEmail)
    now = utcnow()

    with get_conn() as conn:
        if organization_repo.org_email_taken(conn, org_email):
            raise http_error(
                status_code=409,
                code=ErrorCode.CONFLICT,
                message="Organization with this email already exists",
            )
        if organization_repo.employee_email_taken(conn, admin_email):
            raise http_error(
                status_code=409,
                code=ErrorCode.CONFLICT,
                message="Admin user with this email already exists",
            )

        tenant_id = make_tenant_id(body.organizationName)
        while organization_repo.tenant_id_taken(conn, tenant_id):
            tenant_id = make_tenant_id(body.organizationName + new_id()[:4])

        organization = organization_repo.create_organization(
            conn,
            tenant_id=tenant_id,
            slug=make_slug(body.organizationName),
            data={
                "name": body.organizationName,
                "email": org_email,
                "phone": body.organizationPhone,
                "address": body.organizationAddress,
                "city": body.organizationCity,
                "state": body.organizationState,
                "country": body.organizationCountry,
                "industry": body.organizationIndustry,
                "company_size": body.organizationSize,
                "subscription_plan": body.selectedPlan,
            },
            trial_start=now,
            trial_end=now + timedelta(days=TRIAL_DAYS),
        )

        admin_id = new_id()
        location = location_repo.create_location(
            conn,
            tenant_id=tenant_id,
            organization_id=organization["id"],
            name=f"{body.organizationName} Headquarters",
            description="Default location created during organization setup",
            created_by=admin_id,
        )

        admin = employee_repo.insert_employee(
            conn,
            tenant_id=tenant_id,
            organization_id=organization["id"],
            employee_id=admin_id,
            data={
                "employee_code": employee_repo.next_employee_code(conn, tenant_id),
                "first_name": body.adminFirstName,
                "last_name": body.adminLastName,
                "email": admin_email,
                "phone": body.adminPhone,
                "password_hash": hash_password(body.adminPassword),
                "role": Role.ADMIN.value,
                "is_active": True,
                "department": "Administration",
                "job_position": "Owner",
                "hire_date": now.date(),
                "location_id": location["id"],
            },
        )

        start, end = _month_bounds(now.date())
        payroll_repo.create_period(
            conn,
            tenant_id=tenant_id,
            organization_id=organization["id"],
            start=start,
            end=end,
            period_name=f"{calendar.month_name[start.month]} {start.year}",
        )

    log_security_event(
        action="organization_signup",
        result="success",
        user_id=admin["id"],
        tenant_id=tenant_id,
    )
    return {
        "organization": organization,
        "admin": {
            "id": admin["id"],
            "employee_code": admin["employee_code"],
            "first_name": admin["first_name"],
            "last_name": admin["last_name"],
            "email": admin["email"],
            "role": admin["role"],
        },
        "location": {"id": location["id"], "name": location["name"]},
    }
