"""
Inventory ledger: per-(product, batch) on-hand quantities.

Every stock change (receipt, return to supplier, transfer, dispensing, sale,
disposal, customer return) goes through apply_movement so prescription
dispensing and point-of-sale checkout share one locking discipline:

- the (product, batch) row is selected FOR UPDATE
- the quantity is changed with an atomic `quantity = quantity + delta`
- a missing row is inserted inside a savepoint; a concurrent insert loses on
  the unique constraint and falls back to the update path

No zero floor is applied. A negative result is logged as a stock alert.
Nothing here commits; the calling workflow owns the transaction.
"""
import logging
from datetime import date, timedelta
from typing import List, Optional

from sqlalchemy import func, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.audit import AuditLog
from app.core.exceptions import NotFoundError, ValidationError
from app.models.inventory import InventoryRecord, StockMovement
from app.models.product import Product
from app.models.user import User

logger = logging.getLogger(__name__)

# Sign applied to the entered quantity. adjustment keeps the sign it was entered with.
MOVEMENT_SIGNS = {
    "grn": 1,
    "ibt": 1,
    "grv": -1,
    "dispensing": -1,
    "breakage": -1,
    "expired": -1,
    "adjustment": 1,
}


def signed_delta(movement_type: str, quantity: int) -> int:
    """Translate an entered quantity into the ledger delta for `movement_type`."""
    if movement_type not in MOVEMENT_SIGNS:
        raise ValidationError(f"Unknown movement type: {movement_type}")
    if movement_type == "adjustment":
        return int(quantity)
    return MOVEMENT_SIGNS[movement_type] * abs(int(quantity))


def _batch_filter(q, batch_number: Optional[str]):
    if batch_number:
        return q.filter(InventoryRecord.batch_number == batch_number)
    return q.filter(InventoryRecord.batch_number.is_(None))


def _locked_record(db: Session, product_id: int, batch_number: Optional[str]) -> Optional[InventoryRecord]:
    q = db.query(InventoryRecord).filter(InventoryRecord.product_id == product_id)
    return _batch_filter(q, batch_number).with_for_update().first()


def apply_movement(
    db: Session,
    product_id: int,
    batch_number: Optional[str],
    delta: int,
    expiry_date: Optional[date] = None,
) -> InventoryRecord:
    """Add `delta` to the (product, batch) record, creating it on first movement."""
    batch_number = batch_number or None
    record = _locked_record(db, product_id, batch_number)

    if record is None:
        try:
            with db.begin_nested():
                record = InventoryRecord(
                    product_id=product_id,
                    batch_number=batch_number,
                    quantity=delta,
                    expiry_date=expiry_date,
                )
                db.add(record)
        except IntegrityError:
            # Lost the insert race; the row exists now
            record = _locked_record(db, product_id, batch_number)
            if record is None:
                raise
        else:
            _warn_if_negative(record, delta)
            return record

    db.execute(
        update(InventoryRecord)
        .where(InventoryRecord.id == record.id)
        .values(quantity=InventoryRecord.quantity + delta)
    )
    if expiry_date and record.expiry_date is None:
        record.expiry_date = expiry_date
    db.flush()
    db.refresh(record)
    _warn_if_negative(record, delta)
    return record


def _warn_if_negative(record: InventoryRecord, delta: int) -> None:
    if record.quantity < 0:
        logger.warning(
            f"[StockAlert] product_id={record.product_id} batch={record.batch_number or '-'} "
            f"went negative ({record.quantity}) after delta {delta}: stock bookkeeping is behind reality"
        )


def post_movement(
    db: Session,
    product_id: int,
    movement_type: str,
    quantity: int,
    user_id: Optional[int],
    batch_number: Optional[str] = None,
    expiry_date: Optional[date] = None,
    reference_number: Optional[str] = None,
    notes: Optional[str] = None,
) -> StockMovement:
    """Add a StockMovement and apply its signed delta. The caller commits."""
    delta = signed_delta(movement_type, quantity)
    movement = StockMovement(
        product_id=product_id,
        movement_type=movement_type,
        quantity=quantity,
        delta=delta,
        batch_number=batch_number or None,
        expiry_date=expiry_date,
        reference_number=reference_number,
        notes=notes,
        user_id=user_id,
    )
    db.add(movement)
    apply_movement(db, product_id, batch_number, delta, expiry_date=expiry_date)
    return movement


def record_stock_movement(
    db: Session,
    acting_user: User,
    audit: AuditLog,
    product_id: int,
    movement_type: str,
    quantity: int,
    batch_number: Optional[str] = None,
    expiry_date: Optional[date] = None,
    reference_number: Optional[str] = None,
    notes: Optional[str] = None,
) -> StockMovement:
    """Store a StockMovement, update the ledger and audit it. Commits."""
    if quantity == 0:
        raise ValidationError("Quantity must not be zero")
    if movement_type != "adjustment" and quantity < 0:
        raise ValidationError("Quantity must be positive; the movement type decides the sign")
    signed_delta(movement_type, quantity)

    product = db.query(Product).filter(Product.id == product_id).first()
    if not product:
        raise NotFoundError("Product not found")

    try:
        movement = post_movement(
            db,
            product_id,
            movement_type,
            quantity,
            acting_user.id,
            batch_number=batch_number,
            expiry_date=expiry_date,
            reference_number=reference_number,
            notes=notes,
        )
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(movement)

    logger.info(
        f"Stock movement {movement.id}: {movement_type} {quantity} of product {product_id} "
        f"(batch={batch_number or '-'}) by user {acting_user.id}"
    )
    audit.record(
        acting_user.id,
        "STOCK_MOVEMENT",
        "inventory",
        product_id,
        {"movementType": movement_type, "quantity": quantity, "batchNumber": batch_number},
    )
    return movement


def stock_on_hand(db: Session, product_id: int) -> int:
    """Total quantity over all batches of a product."""
    total = (
        db.query(func.coalesce(func.sum(InventoryRecord.quantity), 0))
        .filter(InventoryRecord.product_id == product_id)
        .scalar()
    )
    return int(total or 0)


def list_inventory(db: Session, search: Optional[str] = None) -> List[dict]:
    q = db.query(InventoryRecord, Product).join(Product, InventoryRecord.product_id == Product.id)
    if search:
        q = q.filter(Product.name.ilike(f"%{search}%"))
    rows = q.order_by(Product.name, InventoryRecord.batch_number).all()
    return [
        {
            "id": rec.id,
            "product_id": p.id,
            "product_name": p.name,
            "batch_number": rec.batch_number,
            "quantity": rec.quantity,
            "expiry_date": rec.expiry_date,
            "location": rec.location,
            "reorder_level": p.reorder_level,
        }
        for rec, p in rows
    ]


def low_stock(db: Session) -> List[dict]:
    """Products whose total on-hand stock is at or below their reorder level."""
    on_hand = func.coalesce(func.sum(InventoryRecord.quantity), 0)
    rows = (
        db.query(Product, on_hand.label("on_hand"))
        .outerjoin(InventoryRecord, InventoryRecord.product_id == Product.id)
        .group_by(Product.id)
        .having(on_hand <= Product.reorder_level)
        .order_by(on_hand.asc())
        .all()
    )
    return [
        {
            "product_id": p.id,
            "product_name": p.name,
            "quantity": int(qty),
            "reorder_level": p.reorder_level,
            "status": "Out of Stock" if int(qty) <= 0 else "Low Stock",
        }
        for p, qty in rows
    ]


def expiring(db: Session, days: int = 30, today: Optional[date] = None) -> List[dict]:
    """Batches with stock that expire within `days` (already expired ones included)."""
    today = today or date.today()
    alert_date = today + timedelta(days=days)
    rows = (
        db.query(InventoryRecord, Product)
        .join(Product, InventoryRecord.product_id == Product.id)
        .filter(
            InventoryRecord.expiry_date.isnot(None),
            InventoryRecord.expiry_date <= alert_date,
            InventoryRecord.quantity > 0,
        )
        .order_by(InventoryRecord.expiry_date.asc())
        .all()
    )
    return [
        {
            "id": rec.id,
            "product_id": p.id,
            "product_name": p.name,
            "batch_number": rec.batch_number,
            "expiry_date": rec.expiry_date,
            "days_until_expiry": (rec.expiry_date - today).days,
            "quantity": rec.quantity,
        }
        for rec, p in rows
    ]
