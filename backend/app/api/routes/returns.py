"""Customer returns and refunds."""
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.api.deps import get_db, require
from app.core.audit import AuditLog, get_audit_log
from app.core.permissions import Operation
from app.models.user import User
from app.schemas.returns import ReturnCreate, ReturnResponse
from app.services import returns_service

router = APIRouter()


@router.post("", response_model=ReturnResponse)
def create_return(
    data: ReturnCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require(Operation.POINT_OF_SALE)),
    audit: AuditLog = Depends(get_audit_log),
):
    return returns_service.process_return(
        db,
        data.sale_id,
        data.items,
        data.refund_method,
        current_user,
        audit,
        reason=data.reason,
    )


@router.get("", response_model=list[ReturnResponse])
def list_returns(
    sale_id: Optional[int] = Query(None),
    db: Session = Depends(get_db),
    current_user: User = Depends(require(Operation.POINT_OF_SALE)),
):
    return returns_service.list_returns(db, sale_id=sale_id)
