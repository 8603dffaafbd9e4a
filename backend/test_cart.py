"""Point-of-sale cart arithmetic."""
from decimal import Decimal

import pytest

from app.core.exceptions import ValidationError
from app.models.product import Product
from app.services.cart import Cart


def _product(pid, price, vat="15", name=None):
    return Product(id=pid, name=name or f"Product {pid}",
                   selling_price=Decimal(price), vat_percentage=Decimal(vat))


def test_single_line_totals():
    cart = Cart()
    cart.add_item(_product(1, "10.00"), quantity=2)
    totals = cart.totals()
    assert totals.subtotal == Decimal("20.00")
    assert totals.total_vat == Decimal("3.00")
    assert totals.total_discount == Decimal("0.00")
    assert totals.total == Decimal("23.00")


def test_adding_same_product_merges_lines():
    cart = Cart()
    cart.add_item(_product(1, "4.99"))
    cart.add_item(_product(1, "4.99"), quantity=2)
    assert len(cart.lines) == 1
    line = cart.get(1)
    assert line.quantity == 3
    assert line.subtotal == Decimal("14.97")
    assert line.vat_amount == Decimal("2.25")  # 2.2455 rounds half up


def test_discount_reduces_line_total():
    cart = Cart()
    cart.add_item(_product(1, "10.00"), quantity=1, discount="1.50")
    assert cart.get(1).total == Decimal("10.00")  # 10.00 + 1.50 - 1.50
    assert cart.totals().total_discount == Decimal("1.50")


def test_update_quantity_zero_or_negative_removes_line():
    cart = Cart()
    cart.add_item(_product(1, "10.00"))
    cart.add_item(_product(2, "3.00"))

    assert cart.update_quantity(1, 0) is None
    assert cart.get(1) is None
    # Removing again is a no-op
    assert cart.update_quantity(1, 0) is None
    assert cart.update_quantity(2, -3) is None
    assert cart.is_empty()


def test_cart_total_equals_sum_of_line_components():
    cart = Cart()
    cart.add_item(_product(1, "0.33", vat="15"), quantity=7, discount="0.10")
    cart.add_item(_product(2, "12.49", vat="0"), quantity=3)
    cart.add_item(_product(3, "1.05", vat="14.5"), quantity=11, discount="0.99")
    totals = cart.totals()
    expected = sum((l.subtotal + l.vat_amount - l.discount for l in cart.lines), Decimal("0"))
    assert totals.total == expected
    assert totals.subtotal == sum((l.subtotal for l in cart.lines), Decimal("0"))


def test_clear():
    cart = Cart()
    cart.add_item(_product(1, "1.00"))
    cart.clear()
    assert cart.is_empty()
    assert cart.totals().total == Decimal("0.00")


def test_discount_cannot_exceed_line_amount():
    cart = Cart()
    with pytest.raises(ValidationError):
        cart.add_item(_product(1, "10.00"), quantity=1, discount="100")
    assert cart.is_empty()

    cart.add_item(_product(1, "10.00"), quantity=2, discount="20.00")
    with pytest.raises(ValidationError):
        cart.update_quantity(1, 1)  # 11.50 left, 20.00 discount
    line = cart.get(1)
    assert line.quantity == 2
    assert line.total == Decimal("3.00")
