from __future__ import annotations
from typing import Optional

from pydantic import BaseModel, Field


class LocationCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None


class LocationUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = None
    is_active: Optional[bool] = None


class ManagerLocationIn(BaseModel):
    manager_id: str = Field(..., min_length=1)
    location_id: str = Field(..., min_length=1)
