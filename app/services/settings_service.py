"""
Service layer for tenant approval settings.

Rules:
- Settings are keyed by the resolved tenant only
- Reads return defaults until the first write (lazy creation)
"""
from __future__ import annotations
from core.db import get_conn
from core.logger import log_security_event
from domain.models import Scope
from repositories import tenant_repo
from schemas.approvals import ApprovalSettingsIn


def get_approval_settings(scope: Scope) -> dict:
    with get_conn() as conn:
        return tenant_repo.get_approval_settings(conn, scope.tenant_id)


def update_approval_settings(scope: Scope, body: ApprovalSettingsIn) -> dict:
    data = body.model_dump()
    if data["pay_period_type"] != "custom":
        data["custom_period_days"] = None
    with get_conn() as conn:
        result = tenant_repo.upsert_approval_settings(conn, scope.tenant_id, data)

    log_security_event(
        action="approval_settings_update",
        result="success",
        user_id=scope.user_id,
        tenant_id=scope.tenant_id,
        meta={"allow_manager_approvals": result["allow_manager_approvals"]},
        demo=scope.user.is_demo,
    )
    return result
