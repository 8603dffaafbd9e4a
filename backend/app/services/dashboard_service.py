"""Counts for the dashboard landing page."""
from datetime import date, datetime, time, timedelta, timezone
from typing import Optional

from sqlalchemy.orm import Session

from app.core.config import settings
from app.models.patient import Patient
from app.models.prescription import Prescription
from app.services.inventory_service import expiring, low_stock


def dashboard_stats(db: Session, today: Optional[date] = None) -> dict:
    """
    Active patients, prescriptions written today (UTC), products at or below
    their reorder level and stocked batches expiring within EXPIRY_ALERT_DAYS.
    """
    today = today or datetime.now(timezone.utc).date()
    start = datetime.combine(today, time.min)
    end = start + timedelta(days=1)

    prescriptions_today = (
        db.query(Prescription)
        .filter(Prescription.created_at >= start, Prescription.created_at < end)
        .count()
    )
    return {
        "total_patients": db.query(Patient).filter(Patient.is_active.is_(True)).count(),
        "prescriptions_today": prescriptions_today,
        "low_stock_items": len(low_stock(db)),
        "expiring_items": len(expiring(db, settings.EXPIRY_ALERT_DAYS, today=today)),
    }
