"""Patients: registration, lookup and soft deactivation."""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy import or_
from sqlalchemy.orm import Session

from app.api.deps import get_db, get_current_user, require
from app.core.audit import AuditLog, get_audit_log
from app.core.exceptions import BusinessError
from app.core.permissions import Operation
from app.models.patient import Patient
from app.models.user import User
from app.schemas.patient import PatientCreate, PatientResponse, PatientUpdate

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("", response_model=list[PatientResponse])
def list_patients(
    search: Optional[str] = Query(None),
    include_inactive: bool = Query(False),
    db: Session = Depends(get_db),
    current_user: User = Depends(require(Operation.LIST_PATIENTS)),
):
    q = db.query(Patient)
    if not include_inactive:
        q = q.filter(Patient.is_active.is_(True))
    if search:
        term = f"%{search}%"
        q = q.filter(
            or_(
                Patient.first_name.ilike(term),
                Patient.last_name.ilike(term),
                Patient.national_id.ilike(term),
                Patient.phone.ilike(term),
            )
        )
    return q.order_by(Patient.last_name, Patient.first_name).limit(200).all()


@router.post("", response_model=PatientResponse, status_code=201)
def create_patient(
    data: PatientCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require(Operation.WRITE_PATIENTS)),
    audit: AuditLog = Depends(get_audit_log),
):
    if data.national_id and db.query(Patient).filter(Patient.national_id == data.national_id).first():
        raise BusinessError.bad_request("A patient with this national ID already exists")

    patient = Patient(**data.model_dump())
    db.add(patient)
    db.commit()
    db.refresh(patient)
    logger.info(f"Patient {patient.id} registered by user {current_user.id}")
    audit.record(current_user.id, "CREATE", "patient", patient.id, {"name": patient.full_name})
    return patient


@router.get("/{patient_id}", response_model=PatientResponse)
def get_patient(
    patient_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    patient = db.query(Patient).filter(Patient.id == patient_id).first()
    if not patient:
        raise BusinessError.not_found("Patient", f"id={patient_id}")
    return patient


@router.patch("/{patient_id}", response_model=PatientResponse)
def update_patient(
    patient_id: int,
    data: PatientUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require(Operation.WRITE_PATIENTS)),
    audit: AuditLog = Depends(get_audit_log),
):
    """Partial update. Setting is_active=false deactivates; patients are never deleted."""
    patient = db.query(Patient).filter(Patient.id == patient_id).first()
    if not patient:
        raise BusinessError.not_found("Patient", f"id={patient_id}")

    changes = data.model_dump(exclude_unset=True)
    for field, value in changes.items():
        setattr(patient, field, value)
    db.commit()
    db.refresh(patient)
    audit.record(current_user.id, "UPDATE", "patient", patient.id, {"fields": sorted(changes)})
    return patient
