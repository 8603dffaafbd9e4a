"""Cashier shifts."""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.api.deps import get_db, require
from app.core.audit import AuditLog, get_audit_log
from app.core.exceptions import BusinessError
from app.core.permissions import Operation
from app.models.user import User
from app.schemas.shift import ShiftClose, ShiftOpen, ShiftResponse
from app.services import shift_service

router = APIRouter()


@router.get("/current", response_model=ShiftResponse)
def current_shift(
    db: Session = Depends(get_db),
    current_user: User = Depends(require(Operation.POINT_OF_SALE)),
):
    shift = shift_service.current_shift(db, current_user)
    if not shift:
        raise BusinessError.not_found("Open shift", f"user={current_user.id}")
    return shift


@router.post("/open", response_model=ShiftResponse)
def open_shift(
    data: ShiftOpen,
    db: Session = Depends(get_db),
    current_user: User = Depends(require(Operation.POINT_OF_SALE)),
    audit: AuditLog = Depends(get_audit_log),
):
    return shift_service.open_shift(db, current_user, data.opening_cash, audit, notes=data.notes)


@router.post("/close", response_model=ShiftResponse)
def close_shift(
    data: ShiftClose,
    db: Session = Depends(get_db),
    current_user: User = Depends(require(Operation.POINT_OF_SALE)),
    audit: AuditLog = Depends(get_audit_log),
):
    return shift_service.close_shift(db, current_user, data.closing_cash, audit, notes=data.notes)
