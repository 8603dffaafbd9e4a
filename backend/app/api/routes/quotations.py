"""Quotations and their conversion to sales."""
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.api.deps import get_db, require
from app.core.audit import AuditLog, get_audit_log
from app.core.permissions import Operation
from app.models.user import User
from app.schemas.quotation import QuotationConvert, QuotationCreate, QuotationResponse
from app.schemas.sale import SaleCreateResponse
from app.services import quotation_service, sales_service

router = APIRouter()


@router.get("", response_model=list[QuotationResponse])
def list_quotations(
    status: Optional[str] = Query(None),
    patient_id: Optional[int] = Query(None),
    db: Session = Depends(get_db),
    current_user: User = Depends(require(Operation.POINT_OF_SALE)),
):
    return quotation_service.list_quotations(db, status=status, patient_id=patient_id)


@router.post("", response_model=QuotationResponse)
def create_quotation(
    data: QuotationCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require(Operation.POINT_OF_SALE)),
    audit: AuditLog = Depends(get_audit_log),
):
    return quotation_service.create_quotation(
        db,
        data.patient_id,
        data.items,
        current_user,
        audit,
        notes=data.notes,
        valid_days=data.valid_days,
    )


@router.get("/{quotation_id}", response_model=QuotationResponse)
def get_quotation(
    quotation_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require(Operation.POINT_OF_SALE)),
):
    return quotation_service.get_quotation(db, quotation_id)


@router.post("/{quotation_id}/convert", response_model=SaleCreateResponse)
def convert_quotation(
    quotation_id: int,
    data: QuotationConvert,
    db: Session = Depends(get_db),
    current_user: User = Depends(require(Operation.POINT_OF_SALE)),
    audit: AuditLog = Depends(get_audit_log),
):
    sale = quotation_service.convert_quotation(
        db, quotation_id, data.payment_method, data.amount_paid, current_user, audit
    )
    return {"sale": sale, "receipt": sales_service.receipt(sale)}
