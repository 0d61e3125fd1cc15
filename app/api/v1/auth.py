"""
Authentication endpoints.

- Validate input with Pydantic schemas
- Return minimal information on failure
"""
from __future__ import annotations
from fastapi import APIRouter, Depends

from core.tenant import scope_required
from domain.models import Scope
from schemas.auth import LoginIn
from schemas.common import ok
from services import auth_service

router = APIRouter(prefix="/api/v1/auth", tags=["auth"])


@router.post("/login")
def login(body: LoginIn) -> dict:
    """
    Verify e-mail and password and return the caller's employee identity.

    Clients send the returned `id` afterwards as `Authorization: Bearer <id>`.
    """
    return ok(auth_service.login(str(body.email), body.password))


@router.get("/me")
def me(scope: Scope = Depends(scope_required())) -> dict:
    return ok(auth_service.describe(scope))
