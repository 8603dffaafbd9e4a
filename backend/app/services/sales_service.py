"""
Point-of-sale checkout.

Prices always come from the catalog at checkout time. The client only sends
product ids, quantities and discounts.

CHECKOUT (one transaction):
- cart non-empty, prescription sales need a patient
- a linked prescription needs a prescription sale for the same patient
- cash: amount tendered >= total, otherwise INSUFFICIENT_PAYMENT before any write
- Sale (completed) + SaleItems + Payment
- one `dispensing` ledger movement per line
- linked prescription marked dispensed
- cashier's open shift totals updated
Audit is written after commit.
"""
import logging
from datetime import date, datetime, time, timedelta, timezone
from decimal import Decimal
from typing import Dict, List, Optional, Sequence

from sqlalchemy import or_
from sqlalchemy.orm import Session, selectinload

from app.core.audit import AuditLog
from app.core.exceptions import InsufficientPaymentError, NotFoundError, ValidationError
from app.models.patient import Patient
from app.models.prescription import Prescription
from app.models.product import Product
from app.models.sale import Payment, Sale, SaleItem
from app.models.shift import Shift
from app.models.user import User
from app.services.cart import Cart, to_money
from app.services.inventory_service import post_movement
from app.services.number_series import next_document_number

logger = logging.getLogger(__name__)

SALE_TYPES = ("prescription", "otc", "quotation")
PAYMENT_METHODS = ("cash", "card", "ecocash", "onemoney", "bank_transfer", "insurance")


def build_cart(db: Session, items: Sequence) -> Cart:
    """
    Build a cart from request lines (product_id, quantity, discount, batch_number,
    instructions) using current catalog prices.
    """
    product_ids = {item.product_id for item in items}
    products: Dict[int, Product] = {
        p.id: p for p in db.query(Product).filter(Product.id.in_(product_ids)).all()
    } if product_ids else {}

    cart = Cart()
    for item in items:
        product = products.get(item.product_id)
        if product is None:
            raise NotFoundError(f"Product {item.product_id} not found")
        if item.quantity <= 0:
            raise ValidationError("Quantity must be greater than zero")
        cart.add_item(
            product,
            quantity=item.quantity,
            discount=getattr(item, "discount", None),
            batch_number=getattr(item, "batch_number", None),
            instructions=getattr(item, "instructions", None),
        )
    return cart


def _open_shift_for(db: Session, user_id: int) -> Optional[Shift]:
    return (
        db.query(Shift)
        .filter(Shift.user_id == user_id, Shift.status == "open")
        .with_for_update()
        .first()
    )


def checkout(
    db: Session,
    cart: Cart,
    payment_method: str,
    amount_tendered,
    acting_user: User,
    audit: AuditLog,
    sale_type: str = "otc",
    patient_id: Optional[int] = None,
    prescription_id: Optional[int] = None,
    customer_name: Optional[str] = None,
    customer_phone: Optional[str] = None,
    notes: Optional[str] = None,
    payment_reference: Optional[str] = None,
    commit: bool = True,
) -> Sale:
    """
    Persist the cart as a completed sale and return it.

    With commit=False the caller owns the transaction (quotation conversion)
    and writes its own audit entry.
    """
    if cart.is_empty():
        raise ValidationError("Sale must have at least one item")
    if not payment_method:
        raise ValidationError("Payment method is required")
    if payment_method not in PAYMENT_METHODS:
        raise ValidationError(f"Unknown payment method: {payment_method}")
    if sale_type not in SALE_TYPES:
        raise ValidationError(f"Unknown sale type: {sale_type}")
    if sale_type == "prescription" and not patient_id:
        raise ValidationError("A patient must be selected for prescription sales")
    if prescription_id and sale_type != "prescription":
        raise ValidationError("Only prescription sales can dispense a prescription")

    totals = cart.totals()
    tendered = to_money(amount_tendered) if amount_tendered is not None else None
    if payment_method == "cash":
        if tendered is None or tendered < totals.total:
            raise InsufficientPaymentError(
                f"Insufficient payment: {tendered or Decimal('0.00')} tendered, {totals.total} due"
            )
        change = tendered - totals.total
        amount_paid = tendered
    else:
        change = Decimal("0.00")
        amount_paid = tendered if tendered is not None else totals.total

    try:
        if patient_id and not db.query(Patient.id).filter(Patient.id == patient_id).first():
            raise NotFoundError("Patient not found")

        prescription = None
        if prescription_id:
            prescription = (
                db.query(Prescription)
                .filter(Prescription.id == prescription_id)
                .with_for_update()
                .first()
            )
            if not prescription:
                raise NotFoundError("Prescription not found")
            if prescription.status in ("dispensed", "cancelled"):
                raise ValidationError(f"Prescription is already {prescription.status}")
            if prescription.patient_id != patient_id:
                raise ValidationError("Prescription belongs to a different patient")

        shift = _open_shift_for(db, acting_user.id)
        sale_number = next_document_number(db, "SALE")

        sale = Sale(
            sale_number=sale_number,
            sale_type=sale_type,
            patient_id=patient_id,
            prescription_id=prescription_id,
            cashier_id=acting_user.id,
            status="completed",
            subtotal=totals.subtotal,
            vat_amount=totals.total_vat,
            discount=totals.total_discount,
            total_amount=totals.total,
            payment_method=payment_method,
            amount_paid=amount_paid,
            change=change,
            customer_name=customer_name,
            customer_phone=customer_phone,
            notes=notes,
            shift_id=shift.id if shift else None,
        )
        for line in cart.lines:
            sale.items.append(
                SaleItem(
                    product_id=line.product_id,
                    quantity=line.quantity,
                    unit_price=line.selling_price,
                    discount=line.discount,
                    vat_amount=line.vat_amount,
                    total_price=line.total,
                    batch_number=line.batch_number,
                    instructions=line.instructions,
                )
            )
        sale.payments.append(
            Payment(payment_method=payment_method, amount=amount_paid, reference=payment_reference)
        )
        db.add(sale)
        db.flush()

        for line in cart.lines:
            post_movement(
                db,
                line.product_id,
                "dispensing",
                line.quantity,
                acting_user.id,
                batch_number=line.batch_number,
                reference_number=sale_number,
            )

        if prescription is not None:
            prescription.status = "dispensed"
            prescription.dispensed_by = acting_user.id
            prescription.dispensed_at = datetime.now(timezone.utc)

        if shift is not None:
            shift.total_sales = to_money(shift.total_sales) + totals.total
            if payment_method == "cash":
                shift.total_cash_sales = to_money(shift.total_cash_sales) + totals.total
            shift.transaction_count = (shift.transaction_count or 0) + 1

        db.flush()
        if commit:
            db.commit()
    except Exception:
        db.rollback()
        raise

    if commit:
        db.refresh(sale)
        logger.info(
            f"Sale {sale.sale_number} completed by user {acting_user.id}: "
            f"{len(sale.items)} lines, total {sale.total_amount} via {payment_method}"
        )
        audit.record(
            acting_user.id,
            "CREATE",
            "sale",
            sale.id,
            {
                "saleNumber": sale.sale_number,
                "saleType": sale_type,
                "totalAmount": str(sale.total_amount),
                "paymentMethod": payment_method,
                "prescriptionId": prescription_id,
            },
        )
    return sale


def receipt(sale: Sale) -> dict:
    return {
        "sale_number": sale.sale_number,
        "total_amount": to_money(sale.total_amount),
        "amount_paid": to_money(sale.amount_paid),
        "change": to_money(sale.change),
    }


def get_sale(db: Session, sale_id: int) -> Sale:
    sale = (
        db.query(Sale)
        .options(selectinload(Sale.items), selectinload(Sale.payments))
        .filter(Sale.id == sale_id)
        .first()
    )
    if not sale:
        raise NotFoundError("Sale not found")
    return sale


def search_sales(db: Session, query: str, limit: int = 20) -> List[Sale]:
    """Match by sale number, customer name or patient name."""
    if not query or not query.strip():
        raise ValidationError("Search query is required")
    term = f"%{query.strip()}%"
    return (
        db.query(Sale)
        .outerjoin(Patient, Sale.patient_id == Patient.id)
        .filter(
            or_(
                Sale.sale_number.ilike(term),
                Sale.customer_name.ilike(term),
                Patient.first_name.ilike(term),
                Patient.last_name.ilike(term),
            )
        )
        .order_by(Sale.id.desc())
        .limit(limit)
        .all()
    )


def sales_history(
    db: Session,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    patient_id: Optional[int] = None,
    status: Optional[str] = None,
    limit: int = 50,
    offset: int = 0,
) -> List[Sale]:
    q = db.query(Sale)
    if start_date:
        q = q.filter(Sale.created_at >= datetime.combine(start_date, time.min))
    if end_date:
        q = q.filter(Sale.created_at < datetime.combine(end_date + timedelta(days=1), time.min))
    if patient_id:
        q = q.filter(Sale.patient_id == patient_id)
    if status:
        q = q.filter(Sale.status == status)
    return q.order_by(Sale.id.desc()).offset(offset).limit(limit).all()
