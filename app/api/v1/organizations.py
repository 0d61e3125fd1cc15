"""
Organization signup. Unauthenticated: it creates the tenant and its first admin.
"""
from __future__ import annotations
from fastapi import APIRouter

from schemas.common import ok
from schemas.organizations import SignupIn
from services import organization_service

router = APIRouter(prefix="/api/v1/organizations", tags=["organizations"])


@router.post("/signup", status_code=201)
def signup(body: SignupIn) -> dict:
    return ok(organization_service.signup(body), message="Organization created successfully")
