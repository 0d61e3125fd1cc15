from __future__ import annotations
from datetime import date
from decimal import Decimal
from typing import Literal, Optional

from pydantic import BaseModel, EmailStr, Field, model_validator


class PayPeriodCreate(BaseModel):
    start_date: date
    end_date: date
    period_name: Optional[str] = Field(default=None, max_length=120)

    @model_validator(mode="after")
    def _ordered(self):
        if self.end_date < self.start_date:
            raise ValueError("end_date must not be before start_date")
        return self


class PayPeriodUpdate(BaseModel):
    id: str
    status: Literal["open", "locked"]


class BonusIn(BaseModel):
    employee_email: EmailStr
    pay_period_id: str
    amount: Decimal = Field(..., gt=0, max_digits=12, decimal_places=2)
    reason: str = Field(..., min_length=1)
    bonus_type: str = Field(default="performance", max_length=40)


class DeductionIn(BaseModel):
    employee_email: EmailStr
    pay_period_id: str
    amount: Decimal = Field(..., gt=0, max_digits=12, decimal_places=2)
    reason: str = Field(..., min_length=1)
    deduction_type: str = Field(default="other", max_length=40)
