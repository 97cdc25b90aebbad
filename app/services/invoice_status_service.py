from datetime import date, datetime

from app.models.invoice import Invoice
from app.services.invoice_calculator import round2


PAID = "paid"
UNPAID = "unpaid"
OVERDUE = "overdue"

LATE_FEE_PERCENTAGE = "percentage"
LATE_FEE_FIXED = "fixed"


def _as_date(value: date | datetime) -> date:
    if isinstance(value, datetime):
        return value.date()
    return value


def effective_status(invoice: Invoice, now: date | datetime | None = None) -> str:
    """Status as shown to the user. Overdue is never persisted."""
    if invoice.status == PAID:
        return PAID

    today = _as_date(now or date.today())
    if invoice.due_date and today > _as_date(invoice.due_date):
        return OVERDUE

    return UNPAID


def days_late(invoice: Invoice, as_of: date | datetime) -> int:
    if not invoice.due_date:
        return 0
    return max((_as_date(as_of) - _as_date(invoice.due_date)).days, 0)


def accrued_fee(invoice: Invoice, as_of: date | datetime | None = None) -> float:
    as_of = _as_date(as_of or date.today())

    if invoice.status == PAID or not invoice.due_date or as_of <= _as_date(invoice.due_date):
        return 0.0

    rate = float(invoice.late_fee_rate or 0)
    if rate <= 0:
        return 0.0

    late = days_late(invoice, as_of)

    if invoice.late_fee_type == LATE_FEE_FIXED:
        return round2(rate * late)

    return round2(float(invoice.total_amount or 0) * rate / 100 * late)


def amount_due(invoice: Invoice) -> float:
    if invoice.status == PAID:
        return 0.0
    return round2(max(float(invoice.total_amount or 0) - float(invoice.amount_paid or 0), 0))


def amount_settled(invoice: Invoice) -> float:
    """What the client has covered. A paid invoice counts in full even when marked paid by hand."""
    if invoice.status == PAID:
        return round2(invoice.total_amount)
    return round2(invoice.amount_paid)
