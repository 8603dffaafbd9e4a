from sqlalchemy import Column, Integer, String, Numeric, Boolean, DateTime, Text, CheckConstraint, ForeignKey
from sqlalchemy.sql import func

from app.db.base import Base


class Product(Base):
    """
    Catalog product (drug or OTC item).

    COMPLIANCE FLAGS:
    - requires_prescription: prescriber name is mandatory on the prescription
    - is_controlled_substance: every prescription containing it writes a
      DISPENSE_CONTROLLED audit entry
    """
    __tablename__ = "products"
    __table_args__ = (
        CheckConstraint("selling_price >= 0", name="ck_products_selling_price_non_negative"),
        CheckConstraint(
            "vat_percentage >= 0 AND vat_percentage <= 100", name="ck_products_vat_percentage_range"
        ),
    )

    id = Column(Integer, primary_key=True, index=True)
    barcode = Column(String(64), unique=True, nullable=True)
    name = Column(String(255), nullable=False, index=True)
    generic_name = Column(String(255), nullable=True)
    category = Column(String(128), nullable=True)
    drug_form = Column(String(64), nullable=True)  # tablet, capsule, syrup...
    strength = Column(String(64), nullable=True)  # e.g. "500mg"
    pack_size = Column(Integer, nullable=True)
    supplier_id = Column(Integer, ForeignKey("suppliers.id"), nullable=True, index=True)
    manufacturer_id = Column(Integer, ForeignKey("manufacturers.id"), nullable=True, index=True)
    unit_price = Column(Numeric(12, 2), nullable=False)  # cost
    selling_price = Column(Numeric(12, 2), nullable=False)
    vat_percentage = Column(Numeric(5, 2), nullable=False, default=15)
    reorder_level = Column(Integer, nullable=False, default=10)
    requires_prescription = Column(Boolean, nullable=False, default=True)
    is_controlled_substance = Column(Boolean, nullable=False, default=False)
    storage_instructions = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
