"""
Tenant resolution and the per-request Scope dependency.

Order of checks for every protected route: identity (401) → role gate (403)
→ tenant context (403). A caller with no tenant context has no authorized
scope; there is no default tenant.
"""
from __future__ import annotations
from typing import Callable, Optional

from fastapi import Depends

from core.auth import auth_required
from core.db import get_conn
from core.errors import http_error, ErrorCode
from core.roles import Role, require_roles
from domain.models import ApiUser, Scope, TenantContext
from repositories import tenant_repo


def resolve_tenant(user_id: str) -> Optional[TenantContext]:
    with get_conn() as conn:
        return tenant_repo.get_tenant_context(conn, user_id)


def scope_required(*allowed: Role) -> Callable[..., Scope]:
    """
    Build a dependency that authenticates, applies the role gate (when roles
    are given) and resolves the tenant.

    Example:
        @router.get("/timesheet")
        def timesheet(scope: Scope = Depends(scope_required(Role.ADMIN, Role.MANAGER))):
            ...
    """
    def _inner(user: ApiUser = Depends(auth_required)) -> Scope:
        if allowed:
            require_roles(user, allowed)
        tenant = resolve_tenant(user.id)
        if tenant is None:
            raise http_error(
                status_code=403,
                code=ErrorCode.FORBIDDEN,
                message="No tenant context found",
            )
        return Scope(user=user, tenant=tenant)
    return _inner
