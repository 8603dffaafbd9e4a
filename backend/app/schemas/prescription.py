from datetime import datetime
from decimal import Decimal
from typing import List, Literal, Optional

from pydantic import BaseModel, Field


class PrescriptionItemCreate(BaseModel):
    product_id: int
    quantity: int = Field(..., gt=0)
    dosage: Optional[str] = None
    frequency: Optional[str] = None
    duration: Optional[str] = None
    instructions: Optional[str] = None


class PrescriptionCreate(BaseModel):
    patient_id: int
    prescriber_name: Optional[str] = None
    prescriber_id: Optional[str] = None
    notes: Optional[str] = None
    # Empty list is rejected by the workflow with a VALIDATION error
    items: List[PrescriptionItemCreate] = []


class PrescriptionItemResponse(BaseModel):
    id: int
    product_id: int
    quantity: int
    dosage: Optional[str] = None
    frequency: Optional[str] = None
    duration: Optional[str] = None
    instructions: Optional[str] = None
    unit_price: Decimal
    total_price: Decimal

    class Config:
        from_attributes = True


class PrescriptionResponse(BaseModel):
    id: int
    prescription_number: str
    patient_id: int
    prescriber_name: Optional[str] = None
    prescriber_id: Optional[str] = None
    status: str
    total_amount: Decimal
    notes: Optional[str] = None
    ai_warnings: List[str] = []
    created_by: Optional[int] = None
    dispensed_by: Optional[int] = None
    dispensed_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    items: List[PrescriptionItemResponse] = []

    class Config:
        from_attributes = True


class PrescriptionCreateResponse(BaseModel):
    prescription: PrescriptionResponse
    warnings: Optional[List[str]] = None


class InteractionCheckRequest(BaseModel):
    patient_id: Optional[int] = None
    product_ids: List[int] = []


class InteractionCheckResponse(BaseModel):
    warnings: List[str]


class PrescriptionStatusUpdate(BaseModel):
    status: Literal["verified", "dispensed", "cancelled"]
