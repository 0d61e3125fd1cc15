"""
Pydantic schemas for time-clock endpoints.

employee_id is optional everywhere: it defaults to the caller and is only
honoured for callers allowed to act on that employee.
"""
from __future__ import annotations
from typing import Literal, Optional

from pydantic import BaseModel, Field


class ClockInIn(BaseModel):
    employee_id: Optional[str] = None
    notes: Optional[str] = Field(default=None, max_length=2000)


class ClockOutIn(BaseModel):
    employee_id: Optional[str] = None
    notes: Optional[str] = Field(default=None, max_length=2000)
    total_calls_taken: Optional[int] = Field(default=None, ge=0)
    leads_generated: Optional[int] = Field(default=None, ge=0)
    shift_remarks: Optional[str] = None
    performance_rating: Optional[int] = Field(default=None, ge=1, le=5)


class BreakStartIn(BaseModel):
    employee_id: Optional[str] = None
    break_type: Literal["lunch", "rest", "other"] = "lunch"


class BreakEndIn(BaseModel):
    employee_id: Optional[str] = None
