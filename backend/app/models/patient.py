from sqlalchemy import Column, Integer, String, Boolean, Date, DateTime, Text
from sqlalchemy.sql import func
from sqlalchemy.types import JSON

from app.db.base import Base


class Patient(Base):
    """
    Patient record used by the safety screener.

    allergies / chronic_conditions are free-text tokens matched by substring,
    so "Penicillin" will not match "Amoxicillin".
    Patients are never hard-deleted; is_active=False deactivates them.
    """
    __tablename__ = "patients"

    id = Column(Integer, primary_key=True, index=True)
    national_id = Column(String(64), unique=True, nullable=True)
    first_name = Column(String(128), nullable=False)
    last_name = Column(String(128), nullable=False)
    date_of_birth = Column(Date, nullable=True)
    gender = Column(String(20), nullable=True)
    phone = Column(String(64), nullable=True)
    email = Column(String(255), nullable=True)
    address = Column(Text, nullable=True)
    city = Column(String(128), nullable=True)
    allergies = Column(JSON, nullable=False, default=list)
    chronic_conditions = Column(JSON, nullable=False, default=list)
    medical_history = Column(Text, nullable=True)
    insurance_provider = Column(String(128), nullable=True)
    insurance_number = Column(String(128), nullable=True)
    emergency_contact = Column(String(128), nullable=True)
    emergency_phone = Column(String(64), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"
