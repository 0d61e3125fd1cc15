"""
Pydantic schemas for organization signup.

Field names follow the signup form's camelCase payload.
"""
from __future__ import annotations
from typing import Optional

from pydantic import BaseModel, EmailStr, Field


class SignupIn(BaseModel):
    organizationName: str = Field(..., min_length=1, max_length=255)
    organizationEmail: EmailStr
    organizationPhone: str = Field(..., min_length=1)
    organizationAddress: Optional[str] = None
    organizationCity: Optional[str] = None
    organizationState: Optional[str] = None
    organizationCountry: Optional[str] = None
    organizationIndustry: str = Field(..., min_length=1)
    organizationSize: str = Field(..., min_length=1)
    adminFirstName: str = Field(..., min_length=1)
    adminLastName: str = Field(..., min_length=1)
    adminEmail: EmailStr
    adminPhone: str = Field(..., min_length=1)
    adminPassword: str = Field(..., min_length=8, description="At least 8 characters")
    selectedPlan: str = Field(..., min_length=1)
