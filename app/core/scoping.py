"""
Scoped-query predicates.

Every tenant-data statement is filtered through one of these builders, which
take the request Scope (never caller input) and return SQLAlchemy expressions
with bound parameters:

- tenant predicate: always present
- manager predicate: added when the caller is a manager; restricts rows to
  employees whose location is in the manager's assigned-location set
"""
from __future__ import annotations
from sqlalchemy import and_, or_, select
from sqlalchemy.sql.elements import ColumnElement
from sqlalchemy.sql.selectable import Select

from domain.models import Scope
from domain.tables import employees, manager_locations, time_entries


def managed_location_ids(scope: Scope) -> Select:
    """Subquery: location ids assigned to the calling manager inside the tenant."""
    return select(manager_locations.c.location_id).where(
        manager_locations.c.tenant_id == scope.tenant_id,
        manager_locations.c.manager_id == scope.user_id,
    )


def employee_scope(scope: Scope, table=employees) -> ColumnElement[bool]:
    """Rows of `table` (employees or an alias of it) the caller may manage."""
    clauses = [table.c.tenant_id == scope.tenant_id]
    if scope.is_manager:
        clauses.append(table.c.location_id.in_(managed_location_ids(scope)))
    return and_(*clauses)


def employee_access(scope: Scope, table=employees) -> ColumnElement[bool]:
    """
    Self-or-manager rule for individual records: admins see the tenant,
    managers see their locations plus themselves, everyone else only themselves.
    """
    if scope.is_admin:
        return employee_scope(scope, table)
    if scope.is_manager:
        return and_(
            table.c.tenant_id == scope.tenant_id,
            or_(
                table.c.id == scope.user_id,
                table.c.location_id.in_(managed_location_ids(scope)),
            ),
        )
    return and_(table.c.tenant_id == scope.tenant_id, table.c.id == scope.user_id)


def scoped_employee_ids(scope: Scope) -> Select:
    return select(employees.c.id).where(employee_scope(scope))


def owned_by_scope(scope: Scope, table) -> ColumnElement[bool]:
    """
    Predicate for any table carrying tenant_id + employee_id: tenant filter on
    the row itself, plus the owning employee must be inside the caller's scope.
    """
    return and_(
        table.c.tenant_id == scope.tenant_id,
        table.c.employee_id.in_(scoped_employee_ids(scope)),
    )


def time_entry_scope(scope: Scope) -> ColumnElement[bool]:
    return owned_by_scope(scope, time_entries)
