"""Dashboard counters."""
from datetime import date, datetime, timedelta
from decimal import Decimal

from app.models.prescription import Prescription
from app.services import inventory_service
from app.services.dashboard_service import dashboard_stats


def test_dashboard_counts(db, make_patient, make_product):
    today = date(2025, 10, 19)
    patient = make_patient()
    make_patient("Farai", "Ndlovu", is_active=False)

    for number, created in (
        ("RX20251019001", datetime(2025, 10, 19, 8, 30)),
        ("RX20251019002", datetime(2025, 10, 19, 17, 45)),
        ("RX20251018001", datetime(2025, 10, 18, 23, 59)),
    ):
        db.add(Prescription(prescription_number=number, patient_id=patient.id, status="pending",
                            total_amount=Decimal("0.00"), ai_warnings=[], created_at=created))

    plenty = make_product("Panadol 500mg", reorder_level=10)
    short = make_product("ORS Sachet", reorder_level=10)
    make_product("Zinc Tablets", reorder_level=5)  # never stocked
    inventory_service.apply_movement(db, plenty.id, "P1", 100, expiry_date=today + timedelta(days=365))
    inventory_service.apply_movement(db, short.id, "O1", 4, expiry_date=today + timedelta(days=12))
    db.commit()

    assert dashboard_stats(db, today=today) == {
        "total_patients": 1,
        "prescriptions_today": 2,
        "low_stock_items": 2,
        "expiring_items": 1,
    }


def test_dashboard_endpoint(client, receptionist, headers_for, make_patient):
    make_patient()
    assert client.get("/dashboard/stats").status_code == 401
    resp = client.get("/dashboard/stats", headers=headers_for(receptionist))
    assert resp.status_code == 200
    assert resp.json()["total_patients"] == 1
    assert resp.json()["low_stock_items"] == 0
