"""
Prescription workflow: screening, compliance gating, pricing and persistence.

CREATE FLOW (order matters, tests assert on audit side effects):
1. items non-empty
2. patient exists
3. resolve distinct product ids (unknown ids are left out of screening and totals)
4. split into controlled / prescription-only
5. controlled -> DISPENSE_CONTROLLED audit, committed on its own session
6. prescription-only without prescriber -> rejected
7. safety screen
8. RX number from the number series
9. price lines from the catalog
10. persist prescription + items, commit once
11. CREATE audit

Steps 2-10 share one transaction: any failure rolls back every business row.
Only the step 5 audit entry survives, because it was never part of it.
"""
import logging
from datetime import datetime, timezone
from decimal import Decimal
from typing import Dict, List, Optional, Sequence, Tuple

from sqlalchemy.orm import Session, selectinload

from app.core.audit import AuditLog
from app.core.exceptions import NotFoundError, ValidationError
from app.models.patient import Patient
from app.models.prescription import Prescription, PrescriptionItem
from app.models.product import Product
from app.models.user import User
from app.services.cart import to_money
from app.services.inventory_service import post_movement
from app.services.number_series import next_document_number
from app.services.safety_screener import SafetyScreener

logger = logging.getLogger(__name__)

WARNINGS_PREFIX = "AI WARNINGS: "

# current status -> statuses it may move to
ALLOWED_TRANSITIONS = {
    "pending": {"verified", "dispensed", "cancelled"},
    "verified": {"dispensed", "cancelled"},
    "dispensed": set(),
    "cancelled": set(),
}


def _resolve_products(db: Session, product_ids: Sequence[int]) -> Dict[int, Product]:
    distinct_ids = sorted(set(product_ids))
    if not distinct_ids:
        return {}
    rows = db.query(Product).filter(Product.id.in_(distinct_ids)).all()
    return {p.id: p for p in rows}


def _notes_with_warnings(notes: Optional[str], warnings: List[str]) -> Optional[str]:
    if not warnings:
        return notes
    block = WARNINGS_PREFIX + "; ".join(warnings)
    return f"{notes}\n\n{block}" if notes else block


def create_prescription(
    db: Session,
    data,
    acting_user: User,
    audit: AuditLog,
    screener: SafetyScreener,
) -> Tuple[Prescription, List[str]]:
    """
    Create a pending prescription.

    `data` carries patient_id, prescriber_name, prescriber_id, notes and items
    (product_id, quantity, dosage, frequency, duration, instructions).

    Returns (prescription, warnings). Raises ValidationError / NotFoundError.
    """
    items = list(data.items or [])
    if not items:
        raise ValidationError("At least one item is required")

    try:
        patient = db.query(Patient).filter(Patient.id == data.patient_id).first()
        if not patient:
            # Referenced entity in the request body, reported as a bad request
            raise NotFoundError("Patient not found", status_code=400)

        by_id = _resolve_products(db, [item.product_id for item in items])
        unresolved = sorted({item.product_id for item in items} - set(by_id))
        if unresolved:
            logger.warning(
                f"Prescription for patient {patient.id} references unknown product ids {unresolved}: "
                "excluded from safety checks and totals"
            )

        selected = list(by_id.values())
        controlled = [p for p in selected if p.is_controlled_substance]
        prescription_only = [p for p in selected if p.requires_prescription]

        if controlled:
            audit.record(
                acting_user.id,
                "DISPENSE_CONTROLLED",
                "prescription",
                "pending",
                {
                    "patientId": patient.id,
                    "products": [{"id": p.id, "name": p.name} for p in controlled],
                },
            )

        prescriber_name = (data.prescriber_name or "").strip()
        if prescription_only and not prescriber_name:
            raise ValidationError("Prescriber information required for prescription-only medications")

        warnings = screener.screen(patient, selected)

        prescription_number = next_document_number(db, "RX")

        prescription = Prescription(
            prescription_number=prescription_number,
            patient_id=patient.id,
            prescriber_name=prescriber_name or None,
            prescriber_id=data.prescriber_id,
            status="pending",
            notes=_notes_with_warnings(data.notes, warnings),
            ai_warnings=list(warnings),
            created_by=acting_user.id,
        )

        total_amount = Decimal("0.00")
        for item in items:
            product = by_id.get(item.product_id)
            unit_price = to_money(product.selling_price) if product else Decimal("0.00")
            total_price = to_money(unit_price * item.quantity)
            total_amount += total_price
            prescription.items.append(
                PrescriptionItem(
                    product_id=item.product_id,
                    quantity=item.quantity,
                    dosage=item.dosage,
                    frequency=item.frequency,
                    duration=item.duration,
                    instructions=item.instructions,
                    unit_price=unit_price,
                    total_price=total_price,
                )
            )
        prescription.total_amount = total_amount

        db.add(prescription)
        db.flush()
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(prescription)
    logger.info(
        f"Prescription {prescription.prescription_number} created for patient {patient.id} "
        f"by user {acting_user.id} ({len(items)} items, {len(warnings)} warnings)"
    )

    details = {
        "prescriptionNumber": prescription.prescription_number,
        "patientId": patient.id,
        "itemCount": len(items),
        "hasWarnings": bool(warnings),
    }
    if unresolved:
        details["unresolvedProductIds"] = unresolved
    audit.record(acting_user.id, "CREATE", "prescription", prescription.id, details)

    return prescription, warnings


def check_interactions(
    db: Session,
    patient_id: Optional[int],
    product_ids: Optional[Sequence[int]],
    screener: SafetyScreener,
) -> List[str]:
    """Read-only pre-check. Missing input or unknown patient gives []."""
    if not patient_id or not product_ids:
        return []
    patient = db.query(Patient).filter(Patient.id == patient_id).first()
    if not patient:
        return []
    products = list(_resolve_products(db, product_ids).values())
    return screener.screen(patient, products)


def get_prescription(db: Session, prescription_id: int) -> Prescription:
    prescription = (
        db.query(Prescription)
        .options(selectinload(Prescription.items))
        .filter(Prescription.id == prescription_id)
        .first()
    )
    if not prescription:
        raise NotFoundError("Prescription not found")
    return prescription


def list_prescriptions(
    db: Session,
    status: Optional[str] = None,
    patient_id: Optional[int] = None,
    limit: int = 100,
) -> List[Prescription]:
    q = db.query(Prescription).options(selectinload(Prescription.items))
    if status:
        q = q.filter(Prescription.status == status)
    if patient_id:
        q = q.filter(Prescription.patient_id == patient_id)
    return q.order_by(Prescription.id.desc()).limit(limit).all()


def update_status(
    db: Session,
    prescription_id: int,
    new_status: str,
    acting_user: User,
    audit: AuditLog,
) -> Prescription:
    """
    Move a prescription along pending -> verified -> dispensed (or cancelled).

    Dispensing decrements the unbatched stock of every catalog product on the
    prescription through the inventory ledger.
    """
    prescription = (
        db.query(Prescription)
        .filter(Prescription.id == prescription_id)
        .with_for_update()
        .first()
    )
    if not prescription:
        raise NotFoundError("Prescription not found")

    old_status = prescription.status
    if new_status not in ALLOWED_TRANSITIONS.get(old_status, set()):
        raise ValidationError(f"Cannot change prescription status from {old_status} to {new_status}")

    try:
        if new_status == "dispensed":
            catalog_ids = set(_resolve_products(db, [i.product_id for i in prescription.items]))
            for item in prescription.items:
                if item.product_id not in catalog_ids:
                    logger.warning(
                        f"Prescription {prescription.prescription_number}: product {item.product_id} "
                        "not in catalog, nothing dispensed for it"
                    )
                    continue
                post_movement(
                    db,
                    item.product_id,
                    "dispensing",
                    item.quantity,
                    acting_user.id,
                    reference_number=prescription.prescription_number,
                )
            prescription.dispensed_by = acting_user.id
            prescription.dispensed_at = datetime.now(timezone.utc)
        prescription.status = new_status
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(prescription)
    logger.info(
        f"Prescription {prescription.prescription_number}: {old_status} -> {new_status} by user {acting_user.id}"
    )
    action = "DISPENSE" if new_status == "dispensed" else "UPDATE_STATUS"
    audit.record(
        acting_user.id,
        action,
        "prescription",
        prescription.id,
        {"from": old_status, "to": new_status},
    )
    return prescription
