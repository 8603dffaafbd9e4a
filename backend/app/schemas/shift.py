from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field


class ShiftOpen(BaseModel):
    opening_cash: Decimal = Field(..., ge=0)
    notes: Optional[str] = None


class ShiftClose(BaseModel):
    closing_cash: Decimal = Field(..., ge=0)
    notes: Optional[str] = None


class ShiftResponse(BaseModel):
    id: int
    shift_number: str
    user_id: int
    status: str
    opening_cash: Decimal
    closing_cash: Optional[Decimal] = None
    expected_cash: Optional[Decimal] = None
    cash_variance: Optional[Decimal] = None
    total_sales: Decimal
    total_cash_sales: Decimal
    transaction_count: int
    notes: Optional[str] = None
    opened_at: Optional[datetime] = None
    closed_at: Optional[datetime] = None

    class Config:
        from_attributes = True
