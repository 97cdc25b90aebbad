"""Invoice arithmetic: line items to subtotal, tax, discount and total.

Everything here is pure. Amounts are floats in storage but every derived
value is passed through ``round2`` so the stored totals never carry binary
floating point noise (``0.1 * 3`` is stored as ``0.3``).
"""

import math
from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Context, Decimal
from typing import Iterable, Optional, Sequence

from app.core.exceptions import InvalidDiscountError, ValidationError
from app.schemas.common import MAX_AMOUNT


_CENT = Decimal("0.01")
# Wide enough to quantize any finite float
_CONTEXT = Context(prec=400)


def round2(value: float | int | None) -> float:
    """Round half-up to two decimal places."""
    return float(Decimal(str(value or 0)).quantize(_CENT, rounding=ROUND_HALF_UP, context=_CONTEXT))


@dataclass(frozen=True)
class LineItemInput:
    description: str
    quantity: float
    rate: float
    time_log_id: Optional[int] = None


@dataclass(frozen=True)
class ComposedLine:
    description: str
    quantity: float
    rate: float
    amount: float
    time_log_id: Optional[int] = None


@dataclass(frozen=True)
class ComposedInvoice:
    items: list[ComposedLine] = field(default_factory=list)
    subtotal: float = 0.0
    tax_rate: float = 0.0
    tax_amount: float = 0.0
    discount_amount: float = 0.0
    total: float = 0.0

    @property
    def time_log_ids(self) -> list[int]:
        return [item.time_log_id for item in self.items if item.time_log_id is not None]


def _finite(value) -> bool:
    return value is not None and math.isfinite(value)


def _validate(items: Sequence[LineItemInput], tax_rate_pct: float, discount_amount: float) -> None:
    errors = []

    if not items:
        errors.append("items must contain at least one line item")

    for index, item in enumerate(items):
        if not (item.description or "").strip():
            errors.append(f"items[{index}].description is required")
        if not _finite(item.quantity) or item.quantity <= 0:
            errors.append(f"items[{index}].quantity must be greater than 0")
        elif item.quantity > MAX_AMOUNT:
            errors.append(f"items[{index}].quantity must not exceed {MAX_AMOUNT}")
        if not _finite(item.rate) or item.rate < 0:
            errors.append(f"items[{index}].rate must be greater than or equal to 0")
        elif item.rate > MAX_AMOUNT:
            errors.append(f"items[{index}].rate must not exceed {MAX_AMOUNT}")

    if not _finite(tax_rate_pct) or tax_rate_pct < 0 or tax_rate_pct > 100:
        errors.append("taxRate must be between 0 and 100")

    if not _finite(discount_amount) or discount_amount < 0:
        errors.append("discountAmount must be greater than or equal to 0")
    elif discount_amount > MAX_AMOUNT:
        errors.append(f"discountAmount must not exceed {MAX_AMOUNT}")

    if errors:
        raise ValidationError(", ".join(errors))


def compose(
    items: Iterable[LineItemInput],
    tax_rate_pct: float | None = 0,
    discount_amount: float | None = 0,
) -> ComposedInvoice:
    """Derive the financial breakdown of an invoice.

    Raises ``ValidationError`` for out-of-range input and
    ``InvalidDiscountError`` when the discount would push the total below zero.
    """
    items = list(items)
    tax_rate_pct = float(tax_rate_pct or 0)
    discount_amount = float(discount_amount or 0)

    _validate(items, tax_rate_pct, discount_amount)

    lines = [
        ComposedLine(
            description=item.description.strip(),
            quantity=float(item.quantity),
            rate=float(item.rate),
            amount=round2(item.quantity * item.rate),
            time_log_id=item.time_log_id,
        )
        for item in items
    ]

    subtotal = round2(sum(line.amount for line in lines))
    tax_amount = round2(subtotal * tax_rate_pct / 100)
    discount_amount = round2(discount_amount)

    if discount_amount > round2(subtotal + tax_amount):
        raise InvalidDiscountError(
            f"Discount ({discount_amount}) exceeds subtotal plus tax ({round2(subtotal + tax_amount)})"
        )

    total = round2(subtotal + tax_amount - discount_amount)

    return ComposedInvoice(
        items=lines,
        subtotal=subtotal,
        tax_rate=tax_rate_pct,
        tax_amount=tax_amount,
        discount_amount=discount_amount,
        total=total,
    )
