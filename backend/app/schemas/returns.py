from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, Field


class ReturnItemCreate(BaseModel):
    sale_item_id: int
    quantity: int = Field(..., gt=0)
    reason: Optional[str] = None


class ReturnCreate(BaseModel):
    sale_id: int
    items: List[ReturnItemCreate] = []
    reason: Optional[str] = None
    refund_method: str


class ReturnItemResponse(BaseModel):
    id: int
    sale_item_id: int
    product_id: int
    quantity_returned: int
    unit_price: Decimal
    total_price: Decimal
    reason: Optional[str] = None

    class Config:
        from_attributes = True


class ReturnResponse(BaseModel):
    id: int
    return_number: str
    sale_id: int
    returned_by: int
    status: str
    reason: Optional[str] = None
    total_amount: Decimal
    refund_amount: Decimal
    refund_method: str
    created_at: Optional[datetime] = None
    items: List[ReturnItemResponse] = []

    class Config:
        from_attributes = True
