from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, Field


class QuotationItemCreate(BaseModel):
    product_id: int
    quantity: int = Field(..., gt=0)
    discount: Decimal = Field(Decimal("0"), ge=0)


class QuotationCreate(BaseModel):
    patient_id: int
    items: List[QuotationItemCreate] = []
    notes: Optional[str] = None
    valid_days: Optional[int] = Field(None, gt=0)


class QuotationConvert(BaseModel):
    payment_method: str
    amount_paid: Optional[Decimal] = None


class QuotationItemResponse(BaseModel):
    id: int
    product_id: int
    quantity: int
    unit_price: Decimal
    discount: Decimal
    vat_amount: Decimal
    total_price: Decimal

    class Config:
        from_attributes = True


class QuotationResponse(BaseModel):
    id: int
    quotation_number: str
    patient_id: int
    created_by: int
    subtotal: Decimal
    vat_amount: Decimal
    discount: Decimal
    total_amount: Decimal
    valid_until: datetime
    status: str
    notes: Optional[str] = None
    sale_id: Optional[int] = None
    created_at: Optional[datetime] = None
    items: List[QuotationItemResponse] = []

    class Config:
        from_attributes = True
