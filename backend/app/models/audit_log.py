from sqlalchemy import Column, Integer, String, DateTime
from sqlalchemy.sql import func
from sqlalchemy.types import JSON

from app.db.base import Base


class AuditLogEntry(Base):
    """
    Compliance trail. Insert-only: nothing in the codebase updates or deletes rows.

    entity_id is a string so pre-commit events (e.g. controlled-substance
    dispensing before the prescription exists) can use "pending".
    """
    __tablename__ = "audit_logs"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, nullable=True)  # system events may be null
    action = Column(String(64), nullable=False, index=True)  # CREATE | DISPENSE_CONTROLLED | STOCK_MOVEMENT ...
    entity_type = Column(String(64), nullable=False, index=True)
    entity_id = Column(String(64), nullable=True)
    details = Column(JSON, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)
