"""Inventory ledger, stock movements and number series."""
import threading
from datetime import date, timedelta

import pytest

from app.core.exceptions import NotFoundError, ValidationError
from app.core.permissions import Role
from app.models.audit_log import AuditLogEntry
from app.models.inventory import InventoryRecord, StockMovement
from app.services import inventory_service
from app.services.number_series import next_document_number


@pytest.fixture
def technician(make_user):
    return make_user(Role.TECHNICIAN)


def test_first_movement_creates_record_then_increments(db, make_product):
    product = make_product("Paracetamol 500mg")

    rec = inventory_service.apply_movement(db, product.id, "B1", 50)
    db.commit()
    assert rec.quantity == 50

    rec = inventory_service.apply_movement(db, product.id, "B1", -20)
    db.commit()
    assert rec.quantity == 30
    assert db.query(InventoryRecord).filter_by(product_id=product.id).count() == 1


def test_unbatched_and_batched_records_are_separate(db, make_product):
    product = make_product("Metformin 500mg")
    inventory_service.apply_movement(db, product.id, None, 10)
    inventory_service.apply_movement(db, product.id, "", 5)  # blank batch is the unbatched bucket
    inventory_service.apply_movement(db, product.id, "LOT-7", 8)
    db.commit()

    assert db.query(InventoryRecord).filter_by(product_id=product.id).count() == 2
    assert inventory_service.stock_on_hand(db, product.id) == 23


def test_quantity_may_go_negative_and_is_logged(db, make_product, caplog):
    product = make_product("Amlodipine 5mg")
    inventory_service.apply_movement(db, product.id, None, 2)
    with caplog.at_level("WARNING"):
        rec = inventory_service.apply_movement(db, product.id, None, -5)
    db.commit()
    assert rec.quantity == -3
    assert "went negative" in caplog.text


@pytest.mark.parametrize(
    "movement_type,quantity,expected",
    [
        ("grn", 10, 10),
        ("ibt", 4, 4),
        ("grv", 3, -3),
        ("dispensing", 2, -2),
        ("breakage", 1, -1),
        ("expired", 6, -6),
        ("adjustment", -7, -7),
        ("adjustment", 7, 7),
    ],
)
def test_movement_sign_convention(movement_type, quantity, expected):
    assert inventory_service.signed_delta(movement_type, quantity) == expected


def test_unknown_movement_type_rejected():
    with pytest.raises(ValidationError):
        inventory_service.signed_delta("teleport", 1)


def test_record_stock_movement_updates_ledger_and_audits(db, make_product, technician, audit, session_factory):
    product = make_product("Losartan 50mg")
    expiry = date.today() + timedelta(days=200)

    movement = inventory_service.record_stock_movement(
        db, technician, audit, product.id, "grn", 100,
        batch_number="GRN-1", expiry_date=expiry, reference_number="GRN0001",
    )
    assert movement.delta == 100
    assert movement.user_id == technician.id

    inventory_service.record_stock_movement(db, technician, audit, product.id, "grv", 15, batch_number="GRN-1")
    assert inventory_service.stock_on_hand(db, product.id) == 85
    assert db.query(StockMovement).count() == 2

    with session_factory() as check:
        entries = check.query(AuditLogEntry).filter_by(action="STOCK_MOVEMENT").order_by(AuditLogEntry.id).all()
        assert len(entries) == 2
        assert entries[0].entity_type == "inventory"
        assert entries[0].entity_id == str(product.id)
        assert entries[0].details["movementType"] == "grn"


def test_record_stock_movement_validation(db, make_product, technician, audit):
    product = make_product("Omeprazole 20mg")
    with pytest.raises(ValidationError):
        inventory_service.record_stock_movement(db, technician, audit, product.id, "grn", 0)
    with pytest.raises(ValidationError):
        inventory_service.record_stock_movement(db, technician, audit, product.id, "grn", -4)
    with pytest.raises(NotFoundError):
        inventory_service.record_stock_movement(db, technician, audit, 9999, "grn", 4)
    assert db.query(StockMovement).count() == 0


def test_low_stock_uses_total_over_batches(db, make_product):
    low = make_product("Salbutamol Inhaler", reorder_level=10)
    ok = make_product("Cetirizine 10mg", reorder_level=10)
    empty = make_product("Insulin Glargine", reorder_level=5)
    inventory_service.apply_movement(db, low.id, "A", 4)
    inventory_service.apply_movement(db, low.id, "B", 6)
    inventory_service.apply_movement(db, ok.id, None, 11)
    db.commit()

    rows = {r["product_id"]: r for r in inventory_service.low_stock(db)}
    assert rows[low.id]["quantity"] == 10
    assert rows[low.id]["status"] == "Low Stock"
    assert rows[empty.id]["status"] == "Out of Stock"
    assert ok.id not in rows


def test_expiring_lists_batches_within_window(db, make_product):
    product = make_product("Amoxicillin 250mg")
    today = date(2025, 10, 19)
    inventory_service.apply_movement(db, product.id, "SOON", 5, expiry_date=today + timedelta(days=10))
    inventory_service.apply_movement(db, product.id, "LATER", 5, expiry_date=today + timedelta(days=90))
    inventory_service.apply_movement(db, product.id, "GONE", 0, expiry_date=today + timedelta(days=3))
    db.commit()

    rows = inventory_service.expiring(db, days=30, today=today)
    assert [r["batch_number"] for r in rows] == ["SOON"]
    assert rows[0]["days_until_expiry"] == 10


def test_document_numbers_are_sequential_per_prefix_and_day(db):
    day = date(2025, 10, 19)
    assert next_document_number(db, "RX", day) == "RX20251019001"
    assert next_document_number(db, "RX", day) == "RX20251019002"
    assert next_document_number(db, "SALE", day) == "SALE20251019001"
    assert next_document_number(db, "RX", day + timedelta(days=1)) == "RX20251020001"
    db.commit()


@pytest.mark.parametrize("existing_series", [True, False])
def test_concurrent_document_numbers_never_collide(session_factory, existing_series):
    day = date(2025, 10, 19)
    expected = [f"SALE20251019{n:03d}" for n in range(1, 5)]
    if existing_series:
        first = session_factory()
        assert next_document_number(first, "SALE", day) == expected.pop(0)
        first.commit()
        first.close()

    barrier = threading.Barrier(len(expected))
    numbers, errors = [], []

    def reserve():
        session = session_factory()
        try:
            barrier.wait()
            numbers.append(next_document_number(session, "SALE", day))
            session.commit()
        except Exception as exc:
            errors.append(exc)
        finally:
            session.close()

    threads = [threading.Thread(target=reserve) for _ in expected]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert errors == []
    assert sorted(numbers) == expected
