"""
Service layer for team membership and team-lead deactivation.
"""
from __future__ import annotations
from core.db import get_conn
from core.errors import http_error, ErrorCode
from core.logger import log_security_event
from core.roles import Role
from domain.models import Scope
from repositories import employee_repo, team_repo


def _team_not_found():
    return http_error(status_code=404, code=ErrorCode.NOT_FOUND, message="Team not found")


def list_members(scope: Scope, team_id: str) -> list[dict]:
    with get_conn() as conn:
        if not team_repo.get_active_team(conn, scope, team_id):
            raise _team_not_found()
        return team_repo.list_members(conn, scope, team_id)


def remove_member(scope: Scope, team_id: str, member_id: str) -> None:
    with get_conn() as conn:
        if not team_repo.get_active_team(conn, scope, team_id):
            raise _team_not_found()
        if not team_repo.remove_member(conn, scope, team_id, member_id):
            raise http_error(status_code=404, code=ErrorCode.NOT_FOUND, message="Employee not found in this team")


def deactivate_team_lead(scope: Scope, lead_id: str) -> dict:
    """
    Clear every team led by `lead_id` and demote the lead to employee, with a
    role-history row, in one transaction.
    """
    with get_conn() as conn:
        lead = employee_repo.get_managed_employee(conn, scope, lead_id)
        if not lead or lead["role"] != Role.TEAM_LEAD.value:
            raise http_error(status_code=404, code=ErrorCode.NOT_FOUND, message="Team lead not found")
        cleared = team_repo.clear_team_lead(conn, scope, lead_id)
        updated = employee_repo.change_role(
            conn, scope, lead, Role.EMPLOYEE, "Team lead deactivated",
        )

    log_security_event(
        action="team_lead_deactivate",
        result="success",
        user_id=scope.user_id,
        tenant_id=scope.tenant_id,
        meta={"employee_id": lead_id, "teams_cleared": cleared},
        demo=scope.user.is_demo,
    )
    return updated
