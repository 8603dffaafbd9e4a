from datetime import date, datetime
from decimal import Decimal
from typing import List, Literal, Optional

from pydantic import BaseModel, Field


class SaleItemCreate(BaseModel):
    product_id: int
    quantity: int = Field(..., gt=0)
    discount: Decimal = Field(Decimal("0"), ge=0)
    batch_number: Optional[str] = None
    instructions: Optional[str] = None


class SaleCreate(BaseModel):
    sale_type: Literal["prescription", "otc"] = "otc"
    patient_id: Optional[int] = None
    prescription_id: Optional[int] = None
    items: List[SaleItemCreate] = []
    payment_method: str
    amount_paid: Optional[Decimal] = None
    payment_reference: Optional[str] = None
    customer_name: Optional[str] = None
    customer_phone: Optional[str] = None
    notes: Optional[str] = None


class SaleItemResponse(BaseModel):
    id: int
    product_id: int
    quantity: int
    unit_price: Decimal
    discount: Decimal
    vat_amount: Decimal
    total_price: Decimal
    batch_number: Optional[str] = None
    expiry_date: Optional[date] = None
    instructions: Optional[str] = None

    class Config:
        from_attributes = True


class PaymentResponse(BaseModel):
    id: int
    payment_method: str
    amount: Decimal
    reference: Optional[str] = None

    class Config:
        from_attributes = True


class SaleResponse(BaseModel):
    id: int
    sale_number: str
    sale_type: str
    status: str
    patient_id: Optional[int] = None
    prescription_id: Optional[int] = None
    cashier_id: int
    shift_id: Optional[int] = None
    subtotal: Decimal
    vat_amount: Decimal
    discount: Decimal
    total_amount: Decimal
    payment_method: Optional[str] = None
    amount_paid: Optional[Decimal] = None
    change: Optional[Decimal] = None
    customer_name: Optional[str] = None
    customer_phone: Optional[str] = None
    created_at: Optional[datetime] = None
    items: List[SaleItemResponse] = []
    payments: List[PaymentResponse] = []

    class Config:
        from_attributes = True


class SaleSummary(BaseModel):
    id: int
    sale_number: str
    sale_type: str
    status: str
    customer_name: Optional[str] = None
    total_amount: Decimal
    payment_method: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class Receipt(BaseModel):
    sale_number: str
    total_amount: Decimal
    amount_paid: Decimal
    change: Decimal


class SaleCreateResponse(BaseModel):
    sale: SaleResponse
    receipt: Receipt
