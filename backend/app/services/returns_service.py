"""
Customer returns against a completed sale.

Each line may return at most (sold - already returned). Refunds are the
line's paid price per unit (VAT included, discount netted) times the quantity
returned. Returned stock goes back to the batch it was sold from.
Cash refunds come out of the refunding cashier's open shift.
"""
import logging
from decimal import Decimal
from typing import Dict, List, Optional, Sequence

from sqlalchemy import func
from sqlalchemy.orm import Session

from app.core.audit import AuditLog
from app.core.exceptions import NotFoundError, ValidationError
from app.models.sale import Sale, SaleItem
from app.models.sale_return import ReturnItem, SaleReturn
from app.models.shift import Shift
from app.models.user import User
from app.services.cart import to_money
from app.services.inventory_service import post_movement
from app.services.number_series import next_document_number

logger = logging.getLogger(__name__)

RETURNABLE_STATUSES = ("completed", "partially_refunded")


def returned_quantities(db: Session, sale_item_ids: Sequence[int]) -> Dict[int, int]:
    """sale_item_id -> quantity already returned."""
    if not sale_item_ids:
        return {}
    rows = (
        db.query(ReturnItem.sale_item_id, func.coalesce(func.sum(ReturnItem.quantity_returned), 0))
        .filter(ReturnItem.sale_item_id.in_(list(sale_item_ids)))
        .group_by(ReturnItem.sale_item_id)
        .all()
    )
    return {sale_item_id: int(qty) for sale_item_id, qty in rows}


def process_return(
    db: Session,
    sale_id: int,
    items: Sequence,
    refund_method: str,
    acting_user: User,
    audit: AuditLog,
    reason: Optional[str] = None,
) -> SaleReturn:
    """
    items: objects with sale_item_id, quantity and optional reason.
    """
    if not items:
        raise ValidationError("Sale ID and items are required")
    if not refund_method:
        raise ValidationError("Refund method is required")

    try:
        sale = db.query(Sale).filter(Sale.id == sale_id).with_for_update().first()
        if not sale:
            raise NotFoundError("Sale not found")
        if sale.status not in RETURNABLE_STATUSES:
            raise ValidationError(f"Sale {sale.sale_number} is {sale.status} and cannot be returned")

        sale_items: Dict[int, SaleItem] = {si.id: si for si in sale.items}
        already = returned_quantities(db, list(sale_items))

        requested: Dict[int, int] = {}
        for item in items:
            if item.sale_item_id not in sale_items:
                raise ValidationError(f"Item {item.sale_item_id} is not part of sale {sale.sale_number}")
            if item.quantity <= 0:
                raise ValidationError("Return quantity must be greater than zero")
            requested[item.sale_item_id] = requested.get(item.sale_item_id, 0) + item.quantity

        for sale_item_id, qty in requested.items():
            sold = sale_items[sale_item_id].quantity
            remaining = sold - already.get(sale_item_id, 0)
            if qty > remaining:
                raise ValidationError(
                    f"Cannot return {qty} of item {sale_item_id}: only {remaining} of {sold} left to return"
                )

        sale_return = SaleReturn(
            return_number=next_document_number(db, "RET"),
            sale_id=sale.id,
            returned_by=acting_user.id,
            status="completed",
            reason=reason,
            refund_method=refund_method,
            total_amount=Decimal("0.00"),
            refund_amount=Decimal("0.00"),
        )

        refund_total = Decimal("0.00")
        for item in items:
            sale_item = sale_items[item.sale_item_id]
            unit_refund = Decimal(sale_item.total_price) / sale_item.quantity
            line_total = to_money(unit_refund * item.quantity)
            refund_total += line_total
            sale_return.items.append(
                ReturnItem(
                    sale_item_id=sale_item.id,
                    product_id=sale_item.product_id,
                    quantity_returned=item.quantity,
                    unit_price=to_money(unit_refund),
                    total_price=line_total,
                    reason=getattr(item, "reason", None),
                )
            )
            post_movement(
                db,
                sale_item.product_id,
                "adjustment",
                item.quantity,
                acting_user.id,
                batch_number=sale_item.batch_number,
                reference_number=sale.sale_number,
                notes="Customer return",
            )

        sale_return.total_amount = refund_total
        sale_return.refund_amount = refund_total
        db.add(sale_return)

        fully_returned = all(
            already.get(si_id, 0) + requested.get(si_id, 0) >= si.quantity for si_id, si in sale_items.items()
        )
        sale.status = "refunded" if fully_returned else "partially_refunded"

        if refund_method == "cash":
            shift = (
                db.query(Shift)
                .filter(Shift.user_id == acting_user.id, Shift.status == "open")
                .with_for_update()
                .first()
            )
            if shift is not None:
                shift.total_sales = to_money(shift.total_sales) - refund_total
                shift.total_cash_sales = to_money(shift.total_cash_sales) - refund_total

        db.flush()
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(sale_return)
    logger.info(
        f"Return {sale_return.return_number} on sale {sale.sale_number}: refund {sale_return.refund_amount} "
        f"via {refund_method}, sale now {sale.status}"
    )
    audit.record(
        acting_user.id,
        "RETURN",
        "sale",
        sale.id,
        {
            "returnNumber": sale_return.return_number,
            "refundAmount": str(sale_return.refund_amount),
            "refundMethod": refund_method,
            "itemCount": len(sale_return.items),
        },
    )
    return sale_return


def list_returns(db: Session, sale_id: Optional[int] = None, limit: int = 50) -> List[SaleReturn]:
    q = db.query(SaleReturn)
    if sale_id:
        q = q.filter(SaleReturn.sale_id == sale_id)
    return q.order_by(SaleReturn.id.desc()).limit(limit).all()
