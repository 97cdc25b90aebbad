from datetime import date, datetime

import pytest

from app.models.invoice import Invoice
from app.services.invoice_status_service import (
    accrued_fee,
    amount_due,
    amount_settled,
    days_late,
    effective_status,
)


def _invoice(**overrides) -> Invoice:
    fields = dict(
        status="unpaid",
        due_date=date(2025, 1, 1),
        total_amount=2360.0,
        amount_paid=0.0,
        late_fee_rate=1.0,
        late_fee_type="percentage",
    )
    fields.update(overrides)
    return Invoice(**fields)


def test_percentage_late_fee_after_five_days():
    invoice = _invoice()

    assert days_late(invoice, date(2025, 1, 6)) == 5
    assert accrued_fee(invoice, date(2025, 1, 6)) == 118.0


def test_fixed_late_fee_is_rate_per_day():
    invoice = _invoice(late_fee_type="fixed", late_fee_rate=25)

    assert accrued_fee(invoice, date(2025, 1, 4)) == 75.0


def test_no_fee_on_or_before_due_date():
    invoice = _invoice()

    assert accrued_fee(invoice, date(2025, 1, 1)) == 0.0
    assert accrued_fee(invoice, date(2024, 12, 15)) == 0.0


def test_no_fee_for_paid_invoice():
    invoice = _invoice(status="paid")

    assert accrued_fee(invoice, date(2025, 3, 1)) == 0.0


def test_no_fee_when_rate_is_zero():
    invoice = _invoice(late_fee_rate=0)

    assert accrued_fee(invoice, date(2025, 3, 1)) == 0.0


def test_fee_is_idempotent_for_fixed_date():
    invoice = _invoice()
    as_of = date(2025, 2, 10)

    assert accrued_fee(invoice, as_of) == accrued_fee(invoice, as_of)


@pytest.mark.parametrize("fee_type, rate", [("percentage", 1.5), ("fixed", 10)])
def test_fee_strictly_increases_past_due_date(fee_type, rate):
    invoice = _invoice(late_fee_type=fee_type, late_fee_rate=rate)

    fees = [accrued_fee(invoice, date(2025, 1, day)) for day in range(2, 31)]

    assert all(later > earlier for earlier, later in zip(fees, fees[1:]))


def test_partial_days_are_floored():
    invoice = _invoice()

    assert accrued_fee(invoice, datetime(2025, 1, 3, 23, 59)) == accrued_fee(invoice, date(2025, 1, 3))


def test_effective_status_paid_wins_regardless_of_date():
    invoice = _invoice(status="paid")

    assert effective_status(invoice, date(2030, 1, 1)) == "paid"
    assert effective_status(invoice, date(2020, 1, 1)) == "paid"


def test_effective_status_overdue_only_after_due_date():
    invoice = _invoice()

    assert effective_status(invoice, date(2024, 12, 31)) == "unpaid"
    assert effective_status(invoice, date(2025, 1, 1)) == "unpaid"
    assert effective_status(invoice, date(2025, 1, 2)) == "overdue"
    assert effective_status(invoice, datetime(2025, 1, 2, 0, 1)) == "overdue"


def test_effective_status_does_not_touch_stored_status():
    invoice = _invoice()

    effective_status(invoice, date(2026, 1, 1))

    assert invoice.status == "unpaid"


def test_amount_due_never_negative():
    assert amount_due(_invoice(amount_paid=1000)) == 1360.0
    assert amount_due(_invoice(amount_paid=5000)) == 0.0


def test_invoice_marked_paid_by_hand_has_nothing_due():
    invoice = _invoice(status="paid", amount_paid=0)

    assert amount_due(invoice) == 0.0
    assert amount_settled(invoice) == 2360.0


def test_amount_settled_tracks_payments_while_unpaid():
    assert amount_settled(_invoice(amount_paid=1000)) == 1000.0
