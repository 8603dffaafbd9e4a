"""
Point-of-sale cart. Pure in-memory arithmetic, no database access.

All money is Decimal quantized to cents (ROUND_HALF_UP):
    subtotal   = selling_price * quantity
    vat_amount = subtotal * vat_percentage / 100
    total      = subtotal + vat_amount - discount
A discount may not exceed subtotal + vat_amount, so a line total is never negative.
Cart totals are plain sums of the already-rounded line values, so
totals().total == sum(line.total) exactly.
"""
from dataclasses import dataclass, field
from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, List, Optional

from app.core.exceptions import ValidationError

CENTS = Decimal("0.01")


def to_money(value) -> Decimal:
    """Coerce int/str/Decimal (or float via str) to a cent-quantized Decimal."""
    if value is None:
        return Decimal("0.00")
    if isinstance(value, float):
        value = str(value)
    return Decimal(value).quantize(CENTS, rounding=ROUND_HALF_UP)


@dataclass
class CartLine:
    product_id: int
    product_name: str
    quantity: int
    selling_price: Decimal  # snapshot at add time
    vat_percentage: Decimal  # snapshot at add time
    discount: Decimal = Decimal("0.00")
    subtotal: Decimal = Decimal("0.00")
    vat_amount: Decimal = Decimal("0.00")
    total: Decimal = Decimal("0.00")
    batch_number: Optional[str] = None
    instructions: Optional[str] = None

    def recompute(self, quantity: Optional[int] = None, discount=None) -> None:
        """Reprice, optionally with a new quantity or discount. The line is untouched on error."""
        quantity = self.quantity if quantity is None else quantity
        discount = self.discount if discount is None else to_money(discount)
        subtotal = to_money(self.selling_price * quantity)
        vat_amount = to_money(subtotal * self.vat_percentage / Decimal(100))
        if discount < 0:
            raise ValidationError("Discount cannot be negative")
        if discount > subtotal + vat_amount:
            raise ValidationError(
                f"Discount {discount} on {self.product_name} exceeds the line amount {subtotal + vat_amount}"
            )
        self.quantity = quantity
        self.discount = discount
        self.subtotal = subtotal
        self.vat_amount = vat_amount
        self.total = subtotal + vat_amount - discount


@dataclass(frozen=True)
class CartTotals:
    subtotal: Decimal
    total_discount: Decimal
    total_vat: Decimal
    total: Decimal


@dataclass
class Cart:
    """Ordered collection of lines, one per product."""
    _lines: Dict[int, CartLine] = field(default_factory=dict)

    @property
    def lines(self) -> List[CartLine]:
        return list(self._lines.values())

    def is_empty(self) -> bool:
        return not self._lines

    def get(self, product_id: int) -> Optional[CartLine]:
        return self._lines.get(product_id)

    def add_item(self, product, quantity: int = 1, discount=None, batch_number=None, instructions=None) -> Optional[CartLine]:
        """
        Add `quantity` of `product`. An existing line for the same product is
        grown through update_quantity instead of being duplicated.
        """
        existing = self._lines.get(product.id)
        if existing is not None:
            return self.update_quantity(product.id, existing.quantity + quantity, discount=discount)

        if quantity <= 0:
            return None
        line = CartLine(
            product_id=product.id,
            product_name=product.name,
            quantity=quantity,
            selling_price=to_money(product.selling_price),
            vat_percentage=Decimal(str(product.vat_percentage if product.vat_percentage is not None else 0)),
            discount=to_money(discount),
            batch_number=batch_number,
            instructions=instructions,
        )
        line.recompute()
        self._lines[product.id] = line
        return line

    def update_quantity(self, product_id: int, new_quantity: int, discount=None) -> Optional[CartLine]:
        """Set a line's quantity (and discount). Zero or negative removes the line (idempotent)."""
        if new_quantity <= 0:
            self.remove_item(product_id)
            return None
        line = self._lines.get(product_id)
        if line is None:
            return None
        line.recompute(quantity=new_quantity, discount=discount)
        return line

    def remove_item(self, product_id: int) -> None:
        self._lines.pop(product_id, None)

    def clear(self) -> None:
        self._lines.clear()

    def totals(self) -> CartTotals:
        subtotal = sum((l.subtotal for l in self._lines.values()), Decimal("0.00"))
        discount = sum((l.discount for l in self._lines.values()), Decimal("0.00"))
        vat = sum((l.vat_amount for l in self._lines.values()), Decimal("0.00"))
        total = sum((l.total for l in self._lines.values()), Decimal("0.00"))
        return CartTotals(subtotal=subtotal, total_discount=discount, total_vat=vat, total=total)
