from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field

from app.core.config import settings


class ProductBase(BaseModel):
    barcode: Optional[str] = None
    name: str = Field(..., min_length=1)
    generic_name: Optional[str] = None
    category: Optional[str] = None
    drug_form: Optional[str] = None
    strength: Optional[str] = None
    pack_size: Optional[int] = None
    supplier_id: Optional[int] = None
    manufacturer_id: Optional[int] = None
    unit_price: Decimal = Field(..., ge=0)
    selling_price: Decimal = Field(..., ge=0)
    vat_percentage: Decimal = Field(default_factory=lambda: settings.DEFAULT_VAT_PERCENTAGE, ge=0, le=100)
    reorder_level: int = Field(10, ge=0)
    requires_prescription: bool = True
    is_controlled_substance: bool = False
    storage_instructions: Optional[str] = None


class ProductCreate(ProductBase):
    pass


class ProductUpdate(BaseModel):
    barcode: Optional[str] = None
    name: Optional[str] = Field(None, min_length=1)
    generic_name: Optional[str] = None
    category: Optional[str] = None
    drug_form: Optional[str] = None
    strength: Optional[str] = None
    pack_size: Optional[int] = None
    supplier_id: Optional[int] = None
    manufacturer_id: Optional[int] = None
    unit_price: Optional[Decimal] = Field(None, ge=0)
    selling_price: Optional[Decimal] = Field(None, ge=0)
    vat_percentage: Optional[Decimal] = Field(None, ge=0, le=100)
    reorder_level: Optional[int] = Field(None, ge=0)
    requires_prescription: Optional[bool] = None
    is_controlled_substance: Optional[bool] = None
    storage_instructions: Optional[str] = None


class ProductResponse(ProductBase):
    id: int
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
