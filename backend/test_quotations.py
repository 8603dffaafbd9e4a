"""Quotations and conversion to sales."""
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from types import SimpleNamespace

import pytest

from app.core.exceptions import NotFoundError, ValidationError
from app.services import inventory_service, quotation_service


def _item(product_id, quantity, discount=None):
    return SimpleNamespace(product_id=product_id, quantity=quantity, discount=discount)


def test_create_and_convert(db, make_patient, make_product, receptionist, audit):
    patient = make_patient()
    product = make_product("Multivitamin 30s", selling_price=Decimal("20.00"), vat_percentage=Decimal("15"))
    inventory_service.apply_movement(db, product.id, None, 10)
    db.commit()

    quotation = quotation_service.create_quotation(db, patient.id, [_item(product.id, 2)], receptionist, audit)
    assert quotation.quotation_number.startswith("QUO")
    assert quotation.total_amount == Decimal("46.00")
    assert quotation.status == "pending"

    sale = quotation_service.convert_quotation(db, quotation.id, "cash", Decimal("50.00"), receptionist, audit)
    assert sale.sale_type == "quotation"
    assert sale.change == Decimal("4.00")
    db.refresh(quotation)
    assert quotation.status == "converted"
    assert quotation.sale_id == sale.id

    with pytest.raises(ValidationError):
        quotation_service.convert_quotation(db, quotation.id, "cash", Decimal("50.00"), receptionist, audit)


def test_expired_quotation_cannot_be_converted(db, make_patient, make_product, receptionist, audit):
    patient = make_patient()
    product = make_product("Sunscreen SPF50")
    quotation = quotation_service.create_quotation(db, patient.id, [_item(product.id, 1)], receptionist, audit)
    quotation.valid_until = datetime.now(timezone.utc) - timedelta(days=1)
    db.commit()

    with pytest.raises(ValidationError, match="expired"):
        quotation_service.convert_quotation(db, quotation.id, "card", None, receptionist, audit)
    db.refresh(quotation)
    assert quotation.status == "expired"


def test_quotation_validation(db, make_product, receptionist, audit):
    product = make_product("Plasters")
    with pytest.raises(ValidationError):
        quotation_service.create_quotation(db, None, [_item(product.id, 1)], receptionist, audit)
    with pytest.raises(NotFoundError):
        quotation_service.create_quotation(db, 5555, [_item(product.id, 1)], receptionist, audit)
    with pytest.raises(NotFoundError):
        quotation_service.get_quotation(db, 5555)
