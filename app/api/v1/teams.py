from __future__ import annotations
from fastapi import APIRouter, Depends

from core.tenant import scope_required
from domain.models import Scope
from schemas.common import ok
from services import team_service

router = APIRouter(prefix="/api/v1/teams", tags=["teams"])


@router.get("/{team_id}/members")
def list_team_members(team_id: str, scope: Scope = Depends(scope_required())) -> dict:
    return ok(team_service.list_members(scope, team_id))
