from datetime import date, datetime
from typing import Literal, Optional

from pydantic import BaseModel

MovementType = Literal["grn", "grv", "ibt", "dispensing", "breakage", "expired", "adjustment"]


class StockMovementCreate(BaseModel):
    product_id: int
    movement_type: MovementType
    quantity: int
    batch_number: Optional[str] = None
    expiry_date: Optional[date] = None
    reference_number: Optional[str] = None
    notes: Optional[str] = None


class StockMovementResponse(BaseModel):
    id: int
    product_id: int
    movement_type: str
    quantity: int
    delta: int
    batch_number: Optional[str] = None
    expiry_date: Optional[date] = None
    reference_number: Optional[str] = None
    notes: Optional[str] = None
    user_id: Optional[int] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class InventoryItem(BaseModel):
    id: int
    product_id: int
    product_name: str
    batch_number: Optional[str] = None
    quantity: int
    expiry_date: Optional[date] = None
    location: Optional[str] = None
    reorder_level: int


class LowStockItem(BaseModel):
    product_id: int
    product_name: str
    quantity: int
    reorder_level: int
    status: str


class ExpiringItem(BaseModel):
    id: int
    product_id: int
    product_name: str
    batch_number: Optional[str] = None
    expiry_date: date
    days_until_expiry: int
    quantity: int
