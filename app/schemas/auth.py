from __future__ import annotations
from pydantic import BaseModel, EmailStr, Field


class LoginIn(BaseModel):
    """Request schema for user login."""
    email: EmailStr = Field(..., description="Employee email address")
    password: str = Field(..., min_length=1, description="Employee password")
