from sqlalchemy import Column, Integer, String, ForeignKey, Numeric, DateTime, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from app.db.base import Base


class SaleReturn(Base):
    """Partial or full reversal of a completed sale."""
    __tablename__ = "returns"

    id = Column(Integer, primary_key=True, index=True)
    return_number = Column(String(32), unique=True, nullable=False)
    sale_id = Column(Integer, ForeignKey("sales.id"), nullable=False, index=True)
    returned_by = Column(Integer, ForeignKey("users.id"), nullable=False)
    status = Column(String(32), nullable=False, default="completed")
    reason = Column(Text, nullable=True)
    total_amount = Column(Numeric(12, 2), nullable=False)
    refund_amount = Column(Numeric(12, 2), nullable=False)
    refund_method = Column(String(32), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    sale = relationship("Sale", backref="returns")
    items = relationship("ReturnItem", back_populates="sale_return", cascade="all, delete-orphan")


class ReturnItem(Base):
    __tablename__ = "return_items"

    id = Column(Integer, primary_key=True, index=True)
    return_id = Column(Integer, ForeignKey("returns.id", ondelete="CASCADE"), nullable=False)
    sale_item_id = Column(Integer, ForeignKey("sale_items.id"), nullable=False, index=True)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False)
    quantity_returned = Column(Integer, nullable=False)
    unit_price = Column(Numeric(12, 2), nullable=False)
    total_price = Column(Numeric(12, 2), nullable=False)
    reason = Column(Text, nullable=True)

    sale_return = relationship("SaleReturn", back_populates="items")
