from sqlalchemy import Column, Integer, String, ForeignKey, Numeric, DateTime, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from sqlalchemy.types import JSON

from app.db.base import Base


class Prescription(Base):
    """
    Prescription. Status flow: pending -> verified -> dispensed, or cancelled.

    ai_warnings is captured once at creation and never recomputed.
    """
    __tablename__ = "prescriptions"

    id = Column(Integer, primary_key=True, index=True)
    prescription_number = Column(String(32), unique=True, nullable=False, index=True)
    patient_id = Column(Integer, ForeignKey("patients.id"), nullable=False, index=True)
    prescriber_id = Column(String(64), nullable=True)
    prescriber_name = Column(String(255), nullable=True)
    status = Column(String(32), nullable=False, default="pending")
    total_amount = Column(Numeric(12, 2), nullable=False, default=0)
    notes = Column(Text, nullable=True)
    ai_warnings = Column(JSON, nullable=False, default=list)
    created_by = Column(Integer, ForeignKey("users.id"), nullable=True)
    dispensed_by = Column(Integer, ForeignKey("users.id"), nullable=True)
    dispensed_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    patient = relationship("Patient", backref="prescriptions")
    items = relationship(
        "PrescriptionItem",
        back_populates="prescription",
        cascade="all, delete-orphan",
        order_by="PrescriptionItem.id",
    )


class PrescriptionItem(Base):
    __tablename__ = "prescription_items"

    id = Column(Integer, primary_key=True, index=True)
    prescription_id = Column(Integer, ForeignKey("prescriptions.id", ondelete="CASCADE"), nullable=False)
    product_id = Column(Integer, nullable=False)  # not a FK: unresolved ids are kept as requested
    quantity = Column(Integer, nullable=False)
    dosage = Column(String(128), nullable=True)  # e.g. "1 tablet"
    frequency = Column(String(128), nullable=True)  # e.g. "twice daily"
    duration = Column(String(128), nullable=True)  # e.g. "7 days"
    instructions = Column(Text, nullable=True)
    unit_price = Column(Numeric(12, 2), nullable=False)
    total_price = Column(Numeric(12, 2), nullable=False)

    prescription = relationship("Prescription", back_populates="items")
