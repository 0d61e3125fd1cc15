"""
Pydantic schemas for employee endpoints.

- tenant_id / organization_id are never accepted from clients
- role changes go through RoleChangeIn only
"""
from __future__ import annotations
from datetime import date
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from core.roles import Role


class EmployeeCreate(BaseModel):
    """Request schema for creating an employee (admin)."""
    employee_code: Optional[str] = Field(default=None, max_length=40, description="Generated as EMP#### when omitted")
    first_name: str = Field(..., min_length=1, max_length=120)
    last_name: str = Field(..., min_length=1, max_length=120)
    email: EmailStr
    department: Optional[str] = None
    job_position: Optional[str] = None
    role: Role = Role.EMPLOYEE
    hire_date: Optional[date] = None
    manager_id: Optional[str] = None
    team_id: Optional[str] = None
    location_id: Optional[str] = None
    hourly_rate: Optional[Decimal] = Field(default=None, ge=0)
    max_hours_per_week: Optional[int] = Field(default=40, ge=0, le=168)
    phone: Optional[str] = None
    address: Optional[str] = None
    emergency_contact: Optional[str] = None
    emergency_phone: Optional[str] = None
    notes: Optional[str] = None
    password: Optional[str] = Field(default=None, min_length=8)


class EmployeeUpdate(BaseModel):
    """
    Partial profile update. Unknown fields (role, tenant_id, is_active, ...)
    are dropped; deactivation goes through the admin endpoint.
    """
    model_config = ConfigDict(extra="ignore")

    first_name: Optional[str] = Field(default=None, min_length=1, max_length=120)
    last_name: Optional[str] = Field(default=None, min_length=1, max_length=120)
    email: Optional[EmailStr] = None
    department: Optional[str] = None
    job_position: Optional[str] = None
    hire_date: Optional[date] = None
    manager_id: Optional[str] = None
    team_id: Optional[str] = None
    location_id: Optional[str] = None
    hourly_rate: Optional[Decimal] = Field(default=None, ge=0)
    max_hours_per_week: Optional[int] = Field(default=None, ge=0, le=168)
    phone: Optional[str] = None
    address: Optional[str] = None
    emergency_contact: Optional[str] = None
    emergency_phone: Optional[str] = None
    notes: Optional[str] = None

    @field_validator("first_name", "last_name", "email", mode="before")
    @classmethod
    def _not_null(cls, value):
        # These columns are NOT NULL; omit the key to leave them unchanged
        if value is None:
            raise ValueError("must not be null")
        return value


class RoleChangeIn(BaseModel):
    role: Role
    reason: Optional[str] = Field(default=None, max_length=500)
    effective_date: Optional[date] = None
