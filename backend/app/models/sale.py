from sqlalchemy import Column, Integer, String, ForeignKey, Numeric, Date, DateTime, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from app.db.base import Base


class Sale(Base):
    """
    Point-of-sale transaction.

    sale_type: prescription | otc | quotation
    status: pending | completed | refunded | partially_refunded | cancelled
    """
    __tablename__ = "sales"

    id = Column(Integer, primary_key=True, index=True)
    sale_number = Column(String(32), unique=True, nullable=False, index=True)
    sale_type = Column(String(32), nullable=False)
    patient_id = Column(Integer, ForeignKey("patients.id"), nullable=True)
    prescription_id = Column(Integer, ForeignKey("prescriptions.id"), nullable=True)
    cashier_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    status = Column(String(32), nullable=False, default="pending")
    subtotal = Column(Numeric(12, 2), nullable=False)
    vat_amount = Column(Numeric(12, 2), nullable=False, default=0)
    discount = Column(Numeric(12, 2), nullable=False, default=0)
    total_amount = Column(Numeric(12, 2), nullable=False)
    payment_method = Column(String(32), nullable=True)
    amount_paid = Column(Numeric(12, 2), nullable=True)
    change = Column(Numeric(12, 2), nullable=True)
    customer_name = Column(String(255), nullable=True)
    customer_phone = Column(String(64), nullable=True)
    notes = Column(Text, nullable=True)
    shift_id = Column(Integer, ForeignKey("shifts.id"), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    patient = relationship("Patient")
    items = relationship("SaleItem", back_populates="sale", cascade="all, delete-orphan", order_by="SaleItem.id")
    payments = relationship("Payment", back_populates="sale", cascade="all, delete-orphan")


class SaleItem(Base):
    __tablename__ = "sale_items"

    id = Column(Integer, primary_key=True, index=True)
    sale_id = Column(Integer, ForeignKey("sales.id", ondelete="CASCADE"), nullable=False)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False)
    quantity = Column(Integer, nullable=False)
    unit_price = Column(Numeric(12, 2), nullable=False)
    discount = Column(Numeric(12, 2), nullable=False, default=0)
    vat_amount = Column(Numeric(12, 2), nullable=False, default=0)
    total_price = Column(Numeric(12, 2), nullable=False)
    batch_number = Column(String(64), nullable=True)
    expiry_date = Column(Date, nullable=True)
    instructions = Column(Text, nullable=True)

    sale = relationship("Sale", back_populates="items")
    product = relationship("Product")


class Payment(Base):
    __tablename__ = "payments"

    id = Column(Integer, primary_key=True, index=True)
    sale_id = Column(Integer, ForeignKey("sales.id", ondelete="CASCADE"), nullable=False)
    payment_method = Column(String(32), nullable=False)  # cash | card | ecocash | onemoney | bank_transfer | insurance
    amount = Column(Numeric(12, 2), nullable=False)
    reference = Column(String(128), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    sale = relationship("Sale", back_populates="payments")
