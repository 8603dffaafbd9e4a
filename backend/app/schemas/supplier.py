from datetime import datetime
from typing import Optional

from pydantic import BaseModel, EmailStr, Field


class SupplierCreate(BaseModel):
    name: str = Field(..., min_length=1)
    contact_person: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[EmailStr] = None
    address: Optional[str] = None


class SupplierResponse(BaseModel):
    id: int
    name: str
    contact_person: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    address: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ManufacturerCreate(BaseModel):
    name: str = Field(..., min_length=1)
    country: Optional[str] = None


class ManufacturerResponse(BaseModel):
    id: int
    name: str
    country: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
