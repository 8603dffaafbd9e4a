from sqlalchemy import Column, Integer, String, ForeignKey, Numeric, DateTime, Text, Index, text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from app.db.base import Base


class Shift(Base):
    """
    Cashier cash-drawer session. Status flow: open -> closed.

    cash_variance = closing_cash - (opening_cash + total_sales); negative means short.
    """
    __tablename__ = "shifts"
    __table_args__ = (
        # at most one open shift per cashier
        Index(
            "uq_shifts_open_per_user",
            "user_id",
            unique=True,
            sqlite_where=text("status = 'open'"),
            postgresql_where=text("status = 'open'"),
        ),
    )

    id = Column(Integer, primary_key=True, index=True)
    shift_number = Column(String(32), unique=True, nullable=False)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    status = Column(String(16), nullable=False, default="open")
    opening_cash = Column(Numeric(12, 2), nullable=False)
    closing_cash = Column(Numeric(12, 2), nullable=True)
    expected_cash = Column(Numeric(12, 2), nullable=True)
    cash_variance = Column(Numeric(12, 2), nullable=True)
    total_sales = Column(Numeric(12, 2), nullable=False, default=0)
    total_cash_sales = Column(Numeric(12, 2), nullable=False, default=0)
    transaction_count = Column(Integer, nullable=False, default=0)
    notes = Column(Text, nullable=True)
    opened_at = Column(DateTime(timezone=True), server_default=func.now())
    closed_at = Column(DateTime(timezone=True), nullable=True)

    user = relationship("User")
