"""Quotations: priced estimates that can later be checked out as a sale."""
import logging
from datetime import datetime, timedelta, timezone
from typing import List, Optional, Sequence

from sqlalchemy.orm import Session, selectinload

from app.core.audit import AuditLog
from app.core.config import settings
from app.core.exceptions import NotFoundError, ValidationError
from app.models.patient import Patient
from app.models.quotation import Quotation, QuotationItem
from app.models.sale import Sale
from app.models.user import User
from app.services.number_series import next_document_number
from app.services.sales_service import build_cart, checkout

logger = logging.getLogger(__name__)


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


def create_quotation(
    db: Session,
    patient_id: int,
    items: Sequence,
    acting_user: User,
    audit: AuditLog,
    notes: Optional[str] = None,
    valid_days: Optional[int] = None,
) -> Quotation:
    if not patient_id:
        raise ValidationError("Patient is required")
    if not items:
        raise ValidationError("Quotation must have at least one item")
    valid_days = valid_days or settings.QUOTATION_VALID_DAYS
    if valid_days <= 0:
        raise ValidationError("Validity must be at least one day")

    try:
        if not db.query(Patient.id).filter(Patient.id == patient_id).first():
            raise NotFoundError("Patient not found")

        cart = build_cart(db, items)
        totals = cart.totals()

        quotation = Quotation(
            quotation_number=next_document_number(db, "QUO"),
            patient_id=patient_id,
            created_by=acting_user.id,
            subtotal=totals.subtotal,
            vat_amount=totals.total_vat,
            discount=totals.total_discount,
            total_amount=totals.total,
            valid_until=datetime.now(timezone.utc) + timedelta(days=valid_days),
            status="pending",
            notes=notes,
        )
        for line in cart.lines:
            quotation.items.append(
                QuotationItem(
                    product_id=line.product_id,
                    quantity=line.quantity,
                    unit_price=line.selling_price,
                    discount=line.discount,
                    vat_amount=line.vat_amount,
                    total_price=line.total,
                )
            )
        db.add(quotation)
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(quotation)
    logger.info(f"Quotation {quotation.quotation_number} created for patient {patient_id}: {quotation.total_amount}")
    audit.record(
        acting_user.id,
        "CREATE",
        "quotation",
        quotation.id,
        {"quotationNumber": quotation.quotation_number, "totalAmount": str(quotation.total_amount)},
    )
    return quotation


def get_quotation(db: Session, quotation_id: int) -> Quotation:
    quotation = (
        db.query(Quotation)
        .options(selectinload(Quotation.items))
        .filter(Quotation.id == quotation_id)
        .first()
    )
    if not quotation:
        raise NotFoundError("Quotation not found")
    return quotation


def list_quotations(
    db: Session,
    status: Optional[str] = None,
    patient_id: Optional[int] = None,
    limit: int = 50,
) -> List[Quotation]:
    q = db.query(Quotation).options(selectinload(Quotation.items))
    if status:
        q = q.filter(Quotation.status == status)
    if patient_id:
        q = q.filter(Quotation.patient_id == patient_id)
    return q.order_by(Quotation.id.desc()).limit(limit).all()


def convert_quotation(
    db: Session,
    quotation_id: int,
    payment_method: str,
    amount_paid,
    acting_user: User,
    audit: AuditLog,
) -> Sale:
    """Check out a pending quotation at current catalog prices."""
    quotation = db.query(Quotation).filter(Quotation.id == quotation_id).with_for_update().first()
    if not quotation:
        raise NotFoundError("Quotation not found")
    if quotation.status != "pending":
        raise ValidationError(f"Quotation is {quotation.status} and cannot be converted")

    if _as_utc(quotation.valid_until) < datetime.now(timezone.utc):
        quotation.status = "expired"
        db.commit()
        logger.info(f"Quotation {quotation.quotation_number} expired on conversion attempt")
        raise ValidationError("Quotation has expired")

    cart = build_cart(db, quotation.items)
    try:
        sale = checkout(
            db,
            cart,
            payment_method,
            amount_paid,
            acting_user,
            audit,
            sale_type="quotation",
            patient_id=quotation.patient_id,
            notes=f"Converted from quotation {quotation.quotation_number}",
            commit=False,
        )
        quotation.status = "converted"
        quotation.sale_id = sale.id
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(sale)
    logger.info(f"Quotation {quotation.quotation_number} converted to sale {sale.sale_number}")
    audit.record(
        acting_user.id,
        "CONVERT",
        "quotation",
        quotation.id,
        {"saleNumber": sale.sale_number, "totalAmount": str(sale.total_amount)},
    )
    return sale
