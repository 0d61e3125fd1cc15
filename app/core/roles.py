"""
RBAC (Role-Based Access Control) module for the RotaClock backend.

Rules:
- Roles are a closed set: admin, manager, employee, team_lead, project_manager
- There is no hierarchy: admin is not implicitly a manager, a manager is not
  implicitly an employee. Gates list every role they admit.
- RBAC logic lives in this module, not scattered across routes
- Never trust role or tenant information from the client; roles come from the
  persisted employee record
"""
from __future__ import annotations
from enum import Enum
from typing import Iterable, Optional, TYPE_CHECKING

from core.errors import http_error, ErrorCode

if TYPE_CHECKING:
    from domain.models import ApiUser


class Role(str, Enum):
    ADMIN = "admin"
    MANAGER = "manager"
    EMPLOYEE = "employee"
    TEAM_LEAD = "team_lead"
    PROJECT_MANAGER = "project_manager"


ROLE_LABELS = {
    Role.ADMIN: "Administrator",
    Role.MANAGER: "Location Manager",
    Role.EMPLOYEE: "Employee",
    Role.TEAM_LEAD: "Team Lead",
    Role.PROJECT_MANAGER: "Project Manager",
}

# Adding a Role member without a label fails at import.
if set(ROLE_LABELS) != set(Role):
    raise RuntimeError("ROLE_LABELS must cover every Role")


def parse_role(value: Optional[str]) -> Role:
    """
    Map a stored role value onto the closed Role set.

    A missing value defaults to the least-privileged role. Any other
    unrecognized value is rejected rather than guessed.

    Raises:
        ValueError: if value is not empty and not a known role
    """
    if value is None or not str(value).strip():
        return Role.EMPLOYEE
    return Role(str(value).strip().lower())


def _has_role(user: Optional["ApiUser"], role: Role) -> bool:
    return user is not None and user.role is role


def is_admin(user: Optional["ApiUser"]) -> bool:
    return _has_role(user, Role.ADMIN)


def is_manager(user: Optional["ApiUser"]) -> bool:
    return _has_role(user, Role.MANAGER)


def is_team_lead(user: Optional["ApiUser"]) -> bool:
    return _has_role(user, Role.TEAM_LEAD)


def is_employee(user: Optional["ApiUser"]) -> bool:
    return _has_role(user, Role.EMPLOYEE)


def is_project_manager(user: Optional["ApiUser"]) -> bool:
    return _has_role(user, Role.PROJECT_MANAGER)


def require_roles(user: "ApiUser", allowed: Iterable[Role]) -> "ApiUser":
    """
    Guard that ensures the caller's role is in `allowed`.

    Args:
        user: Resolved caller
        allowed: Roles admitted by the endpoint

    Returns:
        The same user when admitted

    Raises:
        HTTPException: 403 when the role is not admitted
    """
    allowed = tuple(allowed)
    if user.role not in allowed:
        raise http_error(
            status_code=403,
            code=ErrorCode.FORBIDDEN,
            message="Access denied. Required role: " + " or ".join(r.value for r in allowed),
        )
    return user
