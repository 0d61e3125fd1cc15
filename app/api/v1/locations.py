"""
Location and manager-location endpoints.

- Reads → any tenant member
- Writes and assignments → admin
"""
from __future__ import annotations
from typing import Optional

from fastapi import APIRouter, Depends, Query

from core.roles import Role
from core.tenant import scope_required
from domain.models import Scope
from schemas.common import ok
from schemas.locations import LocationCreate, LocationUpdate, ManagerLocationIn
from services import location_service

router = APIRouter(prefix="/api/v1", tags=["locations"])

admin_scope = scope_required(Role.ADMIN)


@router.get("/locations")
def list_locations(scope: Scope = Depends(scope_required())) -> dict:
    return ok(location_service.list_locations(scope))


@router.post("/locations", status_code=201)
def create_location(body: LocationCreate, scope: Scope = Depends(admin_scope)) -> dict:
    return ok(location_service.create_location(scope, body))


@router.put("/locations/{location_id}")
def update_location(location_id: str, body: LocationUpdate, scope: Scope = Depends(admin_scope)) -> dict:
    return ok(location_service.update_location(scope, location_id, body))


@router.get("/manager-locations")
def list_manager_locations(
    manager_id: Optional[str] = None,
    scope: Scope = Depends(admin_scope),
) -> dict:
    return ok(location_service.list_assignments(scope, manager_id))


@router.post("/manager-locations", status_code=201)
def assign_manager(body: ManagerLocationIn, scope: Scope = Depends(admin_scope)) -> dict:
    return ok(location_service.assign(scope, body))


@router.delete("/manager-locations")
def unassign_manager(
    manager_id: str = Query(..., min_length=1),
    location_id: str = Query(..., min_length=1),
    scope: Scope = Depends(admin_scope),
) -> dict:
    location_service.unassign(scope, manager_id, location_id)
    return ok(message="Assignment removed")
