"""
Service layer for locations and manager-location assignments.

Rules:
- Location names are unique per tenant (case-insensitive)
- An assignment links an active manager and an active location of the
  caller's tenant; anything else is 400
"""
from __future__ import annotations
from core.db import get_conn
from core.errors import http_error, ErrorCode
from core.logger import log_security_event
from domain.models import Scope
from repositories import location_repo
from schemas.locations import LocationCreate, LocationUpdate, ManagerLocationIn


def list_locations(scope: Scope) -> list[dict]:
    with get_conn() as conn:
        return location_repo.list_locations(conn, scope)


def create_location(scope: Scope, body: LocationCreate) -> dict:
    with get_conn() as conn:
        if location_repo.name_taken(conn, scope, body.name):
            raise http_error(status_code=409, code=ErrorCode.CONFLICT, message="Location name already exists")
        return location_repo.create_location(
            conn,
            tenant_id=scope.tenant_id,
            organization_id=scope.tenant.organization_id,
            name=body.name,
            description=body.description,
            created_by=scope.user_id,
        )


def update_location(scope: Scope, location_id: str, body: LocationUpdate) -> dict:
    fields = body.model_dump(exclude_unset=True)
    with get_conn() as conn:
        if fields.get("name") and location_repo.name_taken(conn, scope, fields["name"], exclude_id=location_id):
            raise http_error(status_code=409, code=ErrorCode.CONFLICT, message="Location name already exists")
        updated = location_repo.update_location(conn, scope, location_id, fields)
    if not updated:
        raise http_error(status_code=404, code=ErrorCode.NOT_FOUND, message="Location not found")
    return updated


def list_assignments(scope: Scope, manager_id: str | None) -> list[dict]:
    with get_conn() as conn:
        return location_repo.list_assignments(conn, scope, manager_id)


def assign(scope: Scope, body: ManagerLocationIn) -> dict:
    with get_conn() as conn:
        if not location_repo.is_active_manager(conn, scope, body.manager_id):
            raise http_error(status_code=400, code=ErrorCode.BAD_REQUEST, message="Target is not an active manager")
        if not location_repo.is_active_location(conn, scope, body.location_id):
            raise http_error(status_code=400, code=ErrorCode.BAD_REQUEST, message="Invalid location for this organization")
        if location_repo.assignment_exists(conn, scope, body.manager_id, body.location_id):
            raise http_error(status_code=409, code=ErrorCode.CONFLICT, message="Manager already assigned to this location")
        created = location_repo.assign(conn, scope, body.manager_id, body.location_id)

    log_security_event(
        action="manager_location_assign",
        result="success",
        user_id=scope.user_id,
        tenant_id=scope.tenant_id,
        meta={"manager_id": body.manager_id, "location_id": body.location_id},
        demo=scope.user.is_demo,
    )
    return created


def unassign(scope: Scope, manager_id: str, location_id: str) -> None:
    with get_conn() as conn:
        removed = location_repo.unassign(conn, scope, manager_id, location_id)
    if not removed:
        raise http_error(status_code=404, code=ErrorCode.NOT_FOUND, message="Assignment not found")

    log_security_event(
        action="manager_location_unassign",
        result="success",
        user_id=scope.user_id,
        tenant_id=scope.tenant_id,
        meta={"manager_id": manager_id, "location_id": location_id},
        demo=scope.user.is_demo,
    )


def list_managers(scope: Scope) -> list[dict]:
    with get_conn() as conn:
        return location_repo.list_managers(conn, scope)
