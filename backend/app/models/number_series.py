from sqlalchemy import Column, Integer, String, UniqueConstraint

from app.db.base import Base


class NumberSeries(Base):
    """Per-day counter backing RX/SALE/SH/RET/QUO document numbers."""
    __tablename__ = "number_series"
    __table_args__ = (UniqueConstraint("key", "date_key", name="uq_number_series_key_date"),)

    id = Column(Integer, primary_key=True)
    key = Column(String(16), nullable=False)
    date_key = Column(Integer, nullable=False)  # yyyymmdd
    next_seq = Column(Integer, nullable=False, default=1)
