from sqlalchemy import Column, Integer, String, ForeignKey, Date, DateTime, Text, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from app.db.base import Base


class InventoryRecord(Base):
    """
    On-hand quantity for one (product, batch) pair. batch_number NULL is the
    unbatched bucket.

    Sum of quantity over a product's records is its total stock. Records are
    created lazily by the first movement and never deleted; quantity can go
    negative when bookkeeping lags reality.
    """
    __tablename__ = "inventory"
    __table_args__ = (
        UniqueConstraint("product_id", "batch_number", name="uq_inventory_product_batch"),
    )

    id = Column(Integer, primary_key=True, index=True)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False, index=True)
    batch_number = Column(String(64), nullable=True)
    quantity = Column(Integer, nullable=False, default=0)
    expiry_date = Column(Date, nullable=True)
    location = Column(String(128), nullable=True)  # branch
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    product = relationship("Product", backref="inventory_records")


class StockMovement(Base):
    """Write-once record of a stock change. `delta` is the signed amount applied to the ledger."""
    __tablename__ = "stock_movements"

    id = Column(Integer, primary_key=True, index=True)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False, index=True)
    movement_type = Column(String(32), nullable=False)  # grn | grv | ibt | dispensing | breakage | expired | adjustment
    quantity = Column(Integer, nullable=False)
    delta = Column(Integer, nullable=False)
    batch_number = Column(String(64), nullable=True)
    expiry_date = Column(Date, nullable=True)
    reference_number = Column(String(128), nullable=True)  # GRN/GRV/IBT/sale reference
    notes = Column(Text, nullable=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    product = relationship("Product")
