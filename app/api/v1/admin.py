"""
Admin endpoints: employee management, managers, teams and tenant settings.

- Management writes → admin
- All queries are tenant-scoped through the request Scope
- Never allow cross-tenant access
"""
from __future__ import annotations
from fastapi import APIRouter, Depends, Response

from core.roles import Role
from core.tenant import scope_required
from domain.models import Scope
from schemas.approvals import ApprovalSettingsIn
from schemas.common import ok
from schemas.employees import RoleChangeIn
from services import employee_service, export_service, location_service, settings_service, team_service

router = APIRouter(prefix="/api/v1/admin", tags=["admin"])

admin_scope = scope_required(Role.ADMIN)

# =========================
# Employees
# =========================

@router.put("/employees/{employee_id}/role")
def change_role(employee_id: str, body: RoleChangeIn, scope: Scope = Depends(admin_scope)) -> dict:
    """
    Change an employee's role and append a role-history row (one transaction).

    Leaving the manager role clears the employee's location assignments.
    """
    updated = employee_service.change_role(scope, employee_id, body)
    return ok(updated, message=f"Role changed to {body.role.value}")


@router.post("/employees/{employee_id}/deactivate")
def deactivate_employee(employee_id: str, scope: Scope = Depends(admin_scope)) -> dict:
    return ok(employee_service.deactivate(scope, employee_id), message="Employee deactivated")


@router.get("/employees/{employee_id}/role-history")
def role_history(employee_id: str, scope: Scope = Depends(admin_scope)) -> dict:
    """`employee_id` may be the employee UUID or an e-mail address."""
    return ok(employee_service.role_history(scope, employee_id))


@router.get("/employees/{employee_id}/export-attendance")
def export_attendance(
    employee_id: str,
    scope: Scope = Depends(scope_required(Role.ADMIN, Role.MANAGER)),
) -> Response:
    filename, content = export_service.attendance_csv(scope, employee_id)
    return Response(
        content=content,
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.get("/managers")
def list_managers(scope: Scope = Depends(admin_scope)) -> dict:
    return ok(location_service.list_managers(scope))


# =========================
# Teams
# =========================

@router.delete("/teams/{team_id}/members/{member_id}")
def remove_team_member(team_id: str, member_id: str, scope: Scope = Depends(admin_scope)) -> dict:
    team_service.remove_member(scope, team_id, member_id)
    return ok(message="Team member removed successfully")


@router.post("/team-leads/{lead_id}/deactivate")
def deactivate_team_lead(lead_id: str, scope: Scope = Depends(admin_scope)) -> dict:
    return ok(team_service.deactivate_team_lead(scope, lead_id), message="Team lead deactivated")


# =========================
# Settings
# =========================

@router.get("/settings/approvals")
def get_approval_settings(scope: Scope = Depends(scope_required())) -> dict:
    return ok(settings_service.get_approval_settings(scope))


@router.put("/settings/approvals")
def update_approval_settings(body: ApprovalSettingsIn, scope: Scope = Depends(admin_scope)) -> dict:
    return ok(settings_service.update_approval_settings(scope, body))
