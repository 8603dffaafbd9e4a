"""Cash shifts and reconciliation."""
import threading
from decimal import Decimal

import pytest
from sqlalchemy.exc import IntegrityError

from app.core.exceptions import ConflictError, NotFoundError, ValidationError
from app.models.shift import Shift
from app.services import shift_service


def test_cash_variance_short():
    assert shift_service.cash_variance(Decimal("500.00"), Decimal("150.00"), Decimal("640.00")) == Decimal("-10.00")


def test_open_close_cycle(db, receptionist, audit):
    shift = shift_service.open_shift(db, receptionist, Decimal("500.00"), audit)
    assert shift.status == "open"
    assert shift.shift_number.startswith("SH")
    assert shift_service.current_shift(db, receptionist).id == shift.id

    shift.total_sales = Decimal("150.00")
    db.commit()

    closed = shift_service.close_shift(db, receptionist, Decimal("640.00"), audit, notes="Till counted twice")
    assert closed.status == "closed"
    assert closed.expected_cash == Decimal("650.00")
    assert closed.cash_variance == Decimal("-10.00")
    assert closed.closed_at is not None
    assert shift_service.current_shift(db, receptionist) is None


def test_only_one_open_shift_per_user(db, receptionist, make_user, audit):
    shift_service.open_shift(db, receptionist, Decimal("100"), audit)
    with pytest.raises(ConflictError):
        shift_service.open_shift(db, receptionist, Decimal("100"), audit)

    other = make_user()
    assert shift_service.open_shift(db, other, Decimal("0"), audit).status == "open"


def test_close_without_open_shift(db, receptionist, audit):
    with pytest.raises(NotFoundError):
        shift_service.close_shift(db, receptionist, Decimal("10"), audit)


def test_negative_cash_rejected(db, receptionist, audit):
    with pytest.raises(ValidationError):
        shift_service.open_shift(db, receptionist, Decimal("-1"), audit)


def test_concurrent_opens_leave_one_open_shift(session_factory, receptionist, audit):
    barrier = threading.Barrier(2)
    opened, errors = [], []

    def open_till():
        session = session_factory()
        try:
            barrier.wait()
            opened.append(shift_service.open_shift(session, receptionist, Decimal("100"), audit).id)
        except Exception as exc:
            errors.append(exc)
        finally:
            session.close()

    threads = [threading.Thread(target=open_till) for _ in range(2)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert len(opened) == 1
    assert [type(e) for e in errors] == [ConflictError]

    db = session_factory()
    try:
        assert db.query(Shift).filter(Shift.user_id == receptionist.id, Shift.status == "open").count() == 1
    finally:
        db.close()


def test_open_shift_index_rejects_a_second_open_row(db, receptionist, audit):
    first = shift_service.open_shift(db, receptionist, Decimal("50"), audit)
    db.add(Shift(shift_number="SH-MANUAL", user_id=receptionist.id, status="open", opening_cash=Decimal("0")))
    with pytest.raises(IntegrityError):
        db.commit()
    db.rollback()

    shift_service.close_shift(db, receptionist, Decimal("50"), audit)
    again = shift_service.open_shift(db, receptionist, Decimal("60"), audit)
    assert again.id != first.id
