"""
Employee endpoints.

- List: tenant scope, narrowed to assigned locations for managers
- Read one: self, admin, or manager within scope; otherwise 404
- Create: admin only
- Update: admin, or manager within scope
"""
from __future__ import annotations
from typing import Optional

from fastapi import APIRouter, Depends, Query

from core.roles import Role
from core.tenant import scope_required
from domain.models import Scope
from schemas.common import ok
from schemas.employees import EmployeeCreate, EmployeeUpdate
from services import employee_service

router = APIRouter(prefix="/api/v1/employees", tags=["employees"])


@router.get("")
def list_employees(
    department: Optional[str] = None,
    role: Optional[Role] = None,
    is_active: Optional[bool] = None,
    search: Optional[str] = Query(default=None, max_length=100),
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=200),
    scope: Scope = Depends(scope_required(Role.ADMIN, Role.MANAGER)),
) -> dict:
    data = employee_service.list_employees(
        scope,
        department=department, role=role, is_active=is_active,
        search=search, page=page, limit=limit,
    )
    return ok(data["employees"], pagination=data["pagination"])


@router.get("/{employee_id}")
def get_employee(employee_id: str, scope: Scope = Depends(scope_required())) -> dict:
    return ok(employee_service.get_employee(scope, employee_id))


@router.post("", status_code=201)
def create_employee(body: EmployeeCreate, scope: Scope = Depends(scope_required(Role.ADMIN))) -> dict:
    return ok(employee_service.create_employee(scope, body), message="Employee created successfully")


@router.put("/{employee_id}")
def update_employee(
    employee_id: str,
    body: EmployeeUpdate,
    scope: Scope = Depends(scope_required(Role.ADMIN, Role.MANAGER)),
) -> dict:
    return ok(employee_service.update_employee(scope, employee_id, body))
