"""
Header-based identity resolution.

Rules:
- Credentials arrive as `Authorization: Bearer <id>` or `x-employee-id: <id>`;
  the bearer header wins when present
- <id> is an employee UUID or an employee code; the lookup path is chosen by
  the identifier's shape
- Only active employees resolve
- The demo identity is a separate provider selected once at startup from
  configuration; it is never a branch inside the header resolver
"""
from __future__ import annotations
from typing import Mapping, Optional, Protocol

from fastapi import Depends, Request

from core.config import Settings
from core.db import get_conn
from core.errors import http_error, ErrorCode
from core.logger import log_security_event
from core.roles import Role, parse_role
from domain.models import ApiUser, AuthResult
from repositories import employee_repo
from utils.ids import is_uuid

ANONYMOUS = AuthResult(user=None)

LOOKUP_BY_ID = "id"
LOOKUP_BY_CODE = "employee_code"


def extract_identifier(headers: Mapping[str, str]) -> Optional[str]:
    """
    Pull the raw credential out of request headers.

    Args:
        headers: Case-insensitive request header mapping

    Returns:
        The stripped identifier, or None when no usable credential is present
    """
    auth = headers.get("authorization")
    if auth is not None and auth.lower().startswith("bearer "):
        return auth.split(" ", 1)[1].strip() or None
    employee_header = headers.get("x-employee-id")
    if employee_header:
        return employee_header.strip() or None
    return None


def lookup_key(identifier: str) -> str:
    """Which employee column an identifier is matched against."""
    return LOOKUP_BY_ID if is_uuid(identifier) else LOOKUP_BY_CODE


class IdentityResolver(Protocol):
    def resolve(self, headers: Mapping[str, str]) -> AuthResult: ...


class HeaderIdentityResolver:
    """Resolves callers against the employees table. Read-only."""

    def resolve(self, headers: Mapping[str, str]) -> AuthResult:
        identifier = extract_identifier(headers)
        if not identifier:
            return ANONYMOUS

        key = lookup_key(identifier)
        with get_conn() as conn:
            if key == LOOKUP_BY_ID:
                rows = employee_repo.find_active_by_id(conn, identifier)
            else:
                rows = employee_repo.find_active_by_code(conn, identifier)

        if len(rows) != 1:
            if len(rows) > 1:
                # Codes are unique per tenant only; never guess which one
                log_security_event(
                    action="identity_resolve",
                    result="failure",
                    meta={"reason": "ambiguous_employee_code", "matches": len(rows)},
                    level="warning",
                )
            return ANONYMOUS

        row = rows[0]
        try:
            role = parse_role(row["role"])
        except ValueError:
            log_security_event(
                action="identity_resolve",
                result="failure",
                user_id=str(row["id"]),
                meta={"reason": "unknown_role"},
                level="warning",
            )
            return ANONYMOUS

        return AuthResult(user=ApiUser(
            id=str(row["id"]),
            email=row["email"],
            role=role,
            employee_code=row["employee_code"],
        ))


class DemoFallbackResolver:
    """
    Wraps a real resolver; substitutes a fixed admin identity when nothing
    resolves. Non-production only. Every substitution is logged and the
    resulting user carries is_demo=True.
    """

    def __init__(self, inner: IdentityResolver, demo_user: ApiUser):
        self.inner = inner
        self.demo_user = demo_user

    def resolve(self, headers: Mapping[str, str]) -> AuthResult:
        result = self.inner.resolve(headers)
        if result.is_authenticated:
            return result
        log_security_event(
            action="identity_resolve",
            result="demo_fallback",
            user_id=self.demo_user.id,
            level="warning",
            demo=True,
        )
        return AuthResult(user=self.demo_user)


def build_identity_resolver(cfg: Settings) -> IdentityResolver:
    resolver: IdentityResolver = HeaderIdentityResolver()
    if cfg.DEMO_AUTH:
        resolver = DemoFallbackResolver(resolver, ApiUser(
            id=cfg.DEMO_USER_ID,
            email=cfg.DEMO_USER_EMAIL,
            role=Role.ADMIN,
            employee_code=cfg.DEMO_EMPLOYEE_CODE,
            is_demo=True,
        ))
    return resolver


def get_auth(request: Request) -> AuthResult:
    resolver: IdentityResolver = request.app.state.identity_resolver
    return resolver.resolve(request.headers)


def auth_required(auth: AuthResult = Depends(get_auth)) -> ApiUser:
    """
    FastAPI dependency: the resolved caller, or 401.

    Raises:
        HTTPException: 401 {"error": "Unauthorized"} when no identity resolves
    """
    if not auth.is_authenticated:
        raise http_error(
            status_code=401,
            code=ErrorCode.UNAUTHORIZED,
            message="Unauthorized",
        )
    return auth.user
