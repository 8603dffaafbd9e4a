"""Cashier shifts: open, close and cash reconciliation."""
import logging
from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.audit import AuditLog
from app.core.exceptions import ConflictError, NotFoundError, ValidationError
from app.models.shift import Shift
from app.models.user import User
from app.services.cart import to_money
from app.services.number_series import next_document_number

logger = logging.getLogger(__name__)


def cash_variance(opening_cash, total_sales, closing_cash) -> Decimal:
    """closing - (opening + sales). Negative means the drawer is short."""
    return to_money(closing_cash) - (to_money(opening_cash) + to_money(total_sales))


def current_shift(db: Session, user: User) -> Optional[Shift]:
    return (
        db.query(Shift)
        .filter(Shift.user_id == user.id, Shift.status == "open")
        .order_by(Shift.id.desc())
        .first()
    )


def open_shift(db: Session, user: User, opening_cash, audit: AuditLog, notes: Optional[str] = None) -> Shift:
    if opening_cash is None or to_money(opening_cash) < 0:
        raise ValidationError("Valid opening cash amount is required")

    try:
        existing = current_shift(db, user)
        if existing:
            raise ConflictError(f"Shift {existing.shift_number} is already open")

        shift = Shift(
            shift_number=next_document_number(db, "SH"),
            user_id=user.id,
            status="open",
            opening_cash=to_money(opening_cash),
            total_sales=Decimal("0.00"),
            total_cash_sales=Decimal("0.00"),
            transaction_count=0,
            notes=notes,
        )
        db.add(shift)
        db.commit()
    except IntegrityError:
        # a concurrent open won the partial unique index
        db.rollback()
        existing = current_shift(db, user)
        if existing is None:
            raise
        raise ConflictError(f"Shift {existing.shift_number} is already open")
    except Exception:
        db.rollback()
        raise

    db.refresh(shift)
    logger.info(f"Shift {shift.shift_number} opened by user {user.id} with {shift.opening_cash}")
    audit.record(user.id, "OPEN", "shift", shift.id, {"openingCash": str(shift.opening_cash)})
    return shift


def close_shift(db: Session, user: User, closing_cash, audit: AuditLog, notes: Optional[str] = None) -> Shift:
    if closing_cash is None or to_money(closing_cash) < 0:
        raise ValidationError("Valid closing cash amount is required")

    try:
        shift = (
            db.query(Shift)
            .filter(Shift.user_id == user.id, Shift.status == "open")
            .with_for_update()
            .first()
        )
        if not shift:
            raise NotFoundError("No open shift")

        closing = to_money(closing_cash)
        shift.closing_cash = closing
        shift.expected_cash = to_money(shift.opening_cash) + to_money(shift.total_sales)
        shift.cash_variance = cash_variance(shift.opening_cash, shift.total_sales, closing)
        shift.status = "closed"
        shift.closed_at = datetime.now(timezone.utc)
        if notes:
            shift.notes = f"{shift.notes}\n{notes}" if shift.notes else notes
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(shift)
    if shift.cash_variance != 0:
        logger.warning(f"Shift {shift.shift_number} closed with variance {shift.cash_variance}")
    else:
        logger.info(f"Shift {shift.shift_number} closed and balanced")
    audit.record(
        user.id,
        "CLOSE",
        "shift",
        shift.id,
        {
            "closingCash": str(shift.closing_cash),
            "expectedCash": str(shift.expected_cash),
            "variance": str(shift.cash_variance),
        },
    )
    return shift
