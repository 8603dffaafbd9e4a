"""Point of sale: checkout, lookup, search and history."""
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.api.deps import get_db, require
from app.core.audit import AuditLog, get_audit_log
from app.core.permissions import Operation
from app.models.user import User
from app.schemas.sale import SaleCreate, SaleCreateResponse, SaleResponse, SaleSummary
from app.services import sales_service

router = APIRouter()


@router.post("", response_model=SaleCreateResponse)
def create_sale(
    data: SaleCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require(Operation.POINT_OF_SALE)),
    audit: AuditLog = Depends(get_audit_log),
):
    cart = sales_service.build_cart(db, data.items)
    sale = sales_service.checkout(
        db,
        cart,
        data.payment_method,
        data.amount_paid,
        current_user,
        audit,
        sale_type=data.sale_type,
        patient_id=data.patient_id,
        prescription_id=data.prescription_id,
        customer_name=data.customer_name,
        customer_phone=data.customer_phone,
        notes=data.notes,
        payment_reference=data.payment_reference,
    )
    return {"sale": sale, "receipt": sales_service.receipt(sale)}


@router.get("", response_model=list[SaleSummary])
def sales_history(
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    patient_id: Optional[int] = Query(None),
    status: Optional[str] = Query(None),
    limit: int = Query(50, ge=1, le=500),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db),
    current_user: User = Depends(require(Operation.POINT_OF_SALE)),
):
    return sales_service.sales_history(
        db,
        start_date=start_date,
        end_date=end_date,
        patient_id=patient_id,
        status=status,
        limit=limit,
        offset=offset,
    )


@router.get("/search", response_model=list[SaleSummary])
def search_sales(
    query: str = Query(""),
    db: Session = Depends(get_db),
    current_user: User = Depends(require(Operation.POINT_OF_SALE)),
):
    """Find a sale to return by sale number, customer or patient name."""
    return sales_service.search_sales(db, query)


@router.get("/{sale_id}", response_model=SaleResponse)
def get_sale(
    sale_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require(Operation.POINT_OF_SALE)),
):
    return sales_service.get_sale(db, sale_id)
