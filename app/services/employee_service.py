"""
Service layer for employee records and admin employee management.

Rules:
- API → service → repository → DB
- Out-of-scope and absent employees are both reported as 404 "Employee not found"
- Multi-statement changes (role change + history, create + validation) run in
  one get_conn() transaction
"""
from __future__ import annotations
from typing import Optional

from core.db import get_conn
from core.errors import http_error, ErrorCode
from core.logger import log_security_event
from core.roles import Role
from core.security import hash_password
from domain.models import Scope
from repositories import employee_repo, location_repo
from schemas.common import pagination
from schemas.employees import EmployeeCreate, EmployeeUpdate, RoleChangeIn
from utils.ids import is_uuid


def _not_found():
    return http_error(status_code=404, code=ErrorCode.NOT_FOUND, message="Employee not found")


def _conflict(message: str):
    return http_error(status_code=409, code=ErrorCode.CONFLICT, message=message)


def _bad_request(message: str):
    return http_error(status_code=400, code=ErrorCode.BAD_REQUEST, message=message)


def list_employees(
    scope: Scope,
    *,
    department: Optional[str],
    role: Optional[Role],
    is_active: Optional[bool],
    search: Optional[str],
    page: int,
    limit: int,
) -> dict:
    with get_conn() as conn:
        rows, total = employee_repo.list_employees(
            conn, scope,
            department=department, role=role, is_active=is_active,
            search=search, page=page, limit=limit,
        )
    return {"employees": rows, "pagination": pagination(page, limit, total)}


def get_employee(scope: Scope, employee_id: str) -> dict:
    with get_conn() as conn:
        row = employee_repo.get_employee(conn, scope, employee_id)
    if not row:
        raise _not_found()
    return row


def _resolve_location(conn, scope: Scope, requested: Optional[str]) -> Optional[str]:
    """
    New employees land in a location of the tenant: the only active one when
    there is exactly one, otherwise the caller must pick one.
    """
    active = location_repo.active_location_ids(conn, scope.tenant_id)
    if requested:
        if requested not in active:
            raise _bad_request("Invalid location for this organization")
        return requested
    if len(active) == 1:
        return active[0]
    if len(active) > 1:
        raise _bad_request("location_id is required when the organization has multiple locations")
    return None


def create_employee(scope: Scope, body: EmployeeCreate) -> dict:
    data = body.model_dump(exclude={"password"})
    data["role"] = body.role.value
    data["email"] = str(body.email)

    with get_conn() as conn:
        if not data.get("employee_code"):
            data["employee_code"] = employee_repo.next_employee_code(conn, scope.tenant_id)

        conflict = employee_repo.code_or_email_taken(
            conn, scope.tenant_id, employee_code=data["employee_code"], email=data["email"],
        )
        if conflict:
            raise _conflict(conflict)

        data["location_id"] = _resolve_location(conn, scope, body.location_id)
        if body.password:
            data["password_hash"] = hash_password(body.password)
        data["is_active"] = True

        created = employee_repo.create_employee(conn, scope, data)

    log_security_event(
        action="employee_create",
        result="success",
        user_id=scope.user_id,
        tenant_id=scope.tenant_id,
        meta={"employee_id": created["id"], "role": created["role"]},
        demo=scope.user.is_demo,
    )
    return created


def update_employee(scope: Scope, employee_id: str, body: EmployeeUpdate) -> dict:
    fields = body.model_dump(exclude_unset=True)
    if not fields:
        raise _bad_request("No fields to update")
    if "email" in fields and fields["email"] is not None:
        fields["email"] = str(fields["email"])

    with get_conn() as conn:
        current = employee_repo.get_managed_employee(conn, scope, employee_id)
        if not current:
            raise _not_found()

        if fields.get("email") and fields["email"].lower() != current["email"].lower():
            conflict = employee_repo.code_or_email_taken(conn, scope.tenant_id, email=fields["email"])
            if conflict:
                raise _conflict(conflict)

        if fields.get("location_id"):
            if scope.is_manager:
                allowed = location_repo.assigned_location_ids(conn, scope)
            else:
                allowed = location_repo.active_location_ids(conn, scope.tenant_id)
            if fields["location_id"] not in allowed:
                raise _bad_request("Invalid location for this organization")

        updated = employee_repo.update_employee(conn, scope, employee_id, fields)
    if not updated:
        raise _not_found()
    return updated


def change_role(scope: Scope, employee_id: str, body: RoleChangeIn) -> dict:
    with get_conn() as conn:
        employee = employee_repo.get_managed_employee(conn, scope, employee_id)
        if not employee:
            raise _not_found()
        if employee["role"] == body.role.value:
            raise _bad_request("Employee already has this role")
        updated = employee_repo.change_role(
            conn, scope, employee, body.role, body.reason, body.effective_date,
        )

    log_security_event(
        action="role_change",
        result="success",
        user_id=scope.user_id,
        tenant_id=scope.tenant_id,
        meta={"employee_id": employee_id, "old_role": employee["role"], "new_role": body.role.value},
        demo=scope.user.is_demo,
    )
    return updated


def deactivate(scope: Scope, employee_id: str) -> dict:
    if employee_id == scope.user_id:
        raise _bad_request("You cannot deactivate your own account")
    with get_conn() as conn:
        updated = employee_repo.deactivate_employee(conn, scope, employee_id)
    if not updated:
        raise _not_found()

    log_security_event(
        action="employee_deactivate",
        result="success",
        user_id=scope.user_id,
        tenant_id=scope.tenant_id,
        meta={"employee_id": employee_id},
        demo=scope.user.is_demo,
    )
    return updated


def role_history(scope: Scope, id_or_email: str) -> dict:
    """History for an employee given by id, or directly by e-mail."""
    with get_conn() as conn:
        if is_uuid(id_or_email):
            employee = employee_repo.get_managed_employee(conn, scope, id_or_email)
            if not employee:
                raise _not_found()
            email = employee["email"]
        else:
            employee = employee_repo.find_by_email(conn, scope, id_or_email)
            email = id_or_email
        history = employee_repo.role_history(conn, scope, email)
    return {
        "employee": employee,
        "history": history,
    }
