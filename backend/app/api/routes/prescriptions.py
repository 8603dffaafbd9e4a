"""Prescriptions: create with safety screening, interaction pre-check, status changes."""
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.api.deps import get_db, get_current_user, require
from app.core.audit import AuditLog, get_audit_log
from app.core.permissions import Operation
from app.models.user import User
from app.schemas.prescription import (
    InteractionCheckRequest,
    InteractionCheckResponse,
    PrescriptionCreate,
    PrescriptionCreateResponse,
    PrescriptionResponse,
    PrescriptionStatusUpdate,
)
from app.services import prescription_service
from app.services.safety_screener import SafetyScreener, get_safety_screener

router = APIRouter()


@router.get("", response_model=list[PrescriptionResponse])
def list_prescriptions(
    status: Optional[str] = Query(None),
    patient_id: Optional[int] = Query(None),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return prescription_service.list_prescriptions(db, status=status, patient_id=patient_id)


@router.post("", response_model=PrescriptionCreateResponse, response_model_exclude_none=True)
def create_prescription(
    data: PrescriptionCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require(Operation.WRITE_PRESCRIPTIONS)),
    audit: AuditLog = Depends(get_audit_log),
    screener: SafetyScreener = Depends(get_safety_screener),
):
    """
    Create a pending prescription.

    `warnings` is present only when the screener flagged something; the same
    text is kept on the prescription (ai_warnings and notes).
    """
    prescription, warnings = prescription_service.create_prescription(db, data, current_user, audit, screener)
    return {"prescription": prescription, "warnings": warnings or None}


@router.post("/check-interactions", response_model=InteractionCheckResponse)
def check_interactions(
    data: InteractionCheckRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    screener: SafetyScreener = Depends(get_safety_screener),
):
    """UI pre-check while items are added. Always 200; empty input gives no warnings."""
    warnings = prescription_service.check_interactions(db, data.patient_id, data.product_ids, screener)
    return {"warnings": warnings}


@router.get("/{prescription_id}", response_model=PrescriptionResponse)
def get_prescription(
    prescription_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return prescription_service.get_prescription(db, prescription_id)


@router.post("/{prescription_id}/status", response_model=PrescriptionResponse)
def update_status(
    prescription_id: int,
    data: PrescriptionStatusUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require(Operation.WRITE_PRESCRIPTIONS)),
    audit: AuditLog = Depends(get_audit_log),
):
    return prescription_service.update_status(db, prescription_id, data.status, current_user, audit)
