"""Pydantic schemas for timesheet approval endpoints and tenant approval settings."""
from __future__ import annotations
from datetime import date, datetime
from decimal import Decimal
from typing import Literal, Optional

from pydantic import BaseModel, Field, model_validator


class BulkApproveIn(BaseModel):
    """Explicit entry ids; every id must be inside the caller's scope."""
    entry_ids: list[str] = Field(..., min_length=1, max_length=500)
    notes: Optional[str] = Field(default=None, max_length=2000)


class BulkRangeApproveIn(BaseModel):
    start_date: date
    end_date: date

    @model_validator(mode="after")
    def _ordered(self):
        if self.end_date < self.start_date:
            raise ValueError("end_date must not be before start_date")
        return self


class TimesheetDecisionIn(BaseModel):
    """Approve or reject one completed entry."""
    action: Literal["approve", "reject"]
    approved_hours: Optional[float] = Field(default=None, ge=0)
    approved_rate: Optional[Decimal] = Field(default=None, ge=0)
    admin_notes: Optional[str] = None
    rejection_reason: Optional[str] = None


class ShiftDecisionIn(TimesheetDecisionIn):
    action: Literal["approve", "reject", "edit"]
    clock_in: Optional[datetime] = None
    clock_out: Optional[datetime] = None
    break_hours: Optional[float] = Field(default=None, ge=0)


class TimesheetEditIn(BaseModel):
    """Correct an entry's times; any time change sends it back for approval."""
    clock_in: Optional[datetime] = None
    clock_out: Optional[datetime] = None
    break_hours: Optional[float] = Field(default=None, ge=0, le=24)
    notes: Optional[str] = Field(default=None, max_length=2000)


class BreakHoursIn(BaseModel):
    break_hours: float = Field(..., ge=0, le=24)


class ApprovalSettingsIn(BaseModel):
    allow_manager_approvals: bool = False
    pay_period_type: Literal["weekly", "biweekly", "monthly", "custom"] = "weekly"
    custom_period_days: Optional[int] = Field(default=None, ge=1, le=366)
    week_start_day: int = Field(default=1, ge=0, le=6)

    @model_validator(mode="after")
    def _custom_days(self):
        if self.pay_period_type == "custom" and not self.custom_period_days:
            raise ValueError("custom_period_days is required for custom pay periods")
        return self
