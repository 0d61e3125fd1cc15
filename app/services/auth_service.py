"""
Authentication service for e-mail/password login.

Rules:
- Validates credentials with bcrypt
- Returns minimal information on failure (no "user not found vs wrong password" distinction)
- Logs security events (login attempts)
- NEVER logs plaintext passwords or hashes
"""
from __future__ import annotations
from core.db import get_conn
from core.errors import http_error, ErrorCode
from core.logger import log_security_event
from core.roles import ROLE_LABELS, parse_role
from core.security import verify_password
from domain.models import ApiUser, Scope
from repositories import employee_repo


def _invalid_credentials():
    return http_error(
        status_code=401,
        code=ErrorCode.UNAUTHORIZED,
        message="Invalid credentials",
    )


def login(email: str, password: str) -> dict:
    """
    Verify an employee's e-mail and password.

    The returned id is what clients send afterwards as
    `Authorization: Bearer <id>` (or `x-employee-id`).

    Args:
        email: Employee e-mail (case-insensitive)
        password: Plaintext password

    Returns:
        Dict with the employee id, code, role, tenant and organization

    Raises:
        HTTPException: 401 "Invalid credentials" for every failure reason
    """
    with get_conn() as conn:
        rows = employee_repo.find_login_candidate(conn, email)

    if len(rows) != 1:
        verify_password(password, None)
        log_security_event(
            action="login",
            result="failure",
            meta={"reason": "no_unique_account" if rows else "user_not_found"},
        )
        raise _invalid_credentials()

    row = rows[0]
    if not verify_password(password, row["password_hash"]):
        log_security_event(
            action="login",
            result="failure",
            user_id=str(row["id"]),
            tenant_id=row["tenant_id"],
            meta={"reason": "invalid_password"},
        )
        raise _invalid_credentials()

    if not row["is_active"]:
        log_security_event(
            action="login",
            result="failure",
            user_id=str(row["id"]),
            tenant_id=row["tenant_id"],
            meta={"reason": "user_disabled"},
        )
        raise _invalid_credentials()

    try:
        role = parse_role(row["role"])
    except ValueError:
        log_security_event(
            action="login",
            result="failure",
            user_id=str(row["id"]),
            tenant_id=row["tenant_id"],
            meta={"reason": "unknown_role"},
            level="warning",
        )
        raise _invalid_credentials()

    log_security_event(
        action="login",
        result="success",
        user_id=str(row["id"]),
        tenant_id=row["tenant_id"],
        meta={"role": role.value},
    )
    return {
        "id": str(row["id"]),
        "employee_code": row["employee_code"],
        "email": row["email"],
        "role": role.value,
        "role_label": ROLE_LABELS[role],
        "tenant_id": row["tenant_id"],
        "organization_id": row["organization_id"],
    }


def describe(scope: Scope) -> dict:
    user: ApiUser = scope.user
    return {
        "id": user.id,
        "email": user.email,
        "employee_code": user.employee_code,
        "role": user.role.value,
        "role_label": ROLE_LABELS[user.role],
        "is_demo": user.is_demo,
        "tenant_id": scope.tenant_id,
        "organization_id": scope.tenant.organization_id,
    }
