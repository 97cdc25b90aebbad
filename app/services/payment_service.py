from datetime import date, datetime, time
from typing import Optional

from sqlalchemy.orm import Session

from app.core.exceptions import NotFoundError, ValidationError
from app.core.logging import get_logger
from app.models.invoice import Invoice
from app.models.payment import Payment
from app.schemas.payment import PaymentCreate
from app.services.invoice_calculator import round2
from app.services.invoice_status_service import PAID, UNPAID


logger = get_logger(__name__)


def _refresh_paid_state(invoice: Invoice, paid_on: Optional[date] = None) -> None:
    if round2(invoice.amount_paid) >= round2(invoice.total_amount):
        invoice.status = PAID
        if invoice.paid_at is None:
            invoice.paid_at = datetime.combine(paid_on, time.min) if paid_on else datetime.utcnow()
    else:
        invoice.status = UNPAID
        invoice.paid_at = None


def record_payment(db: Session, user_id: int, payload: PaymentCreate) -> tuple[Payment, Invoice]:
    invoice = (
        db.query(Invoice)
        .filter(Invoice.id == payload.invoice_id, Invoice.user_id == user_id)
        .first()
    )

    if not invoice:
        raise NotFoundError("Invoice not found")

    if invoice.status == PAID:
        raise ValidationError("Invoice already paid")

    remaining = round2(invoice.total_amount - invoice.amount_paid)
    amount = round2(payload.amount)

    if amount <= 0:
        raise ValidationError("Payment amount must be greater than 0")

    if amount > remaining:
        raise ValidationError(f"Payment amount ({amount}) exceeds amount due ({remaining})")

    payment_date = payload.payment_date or date.today()

    try:
        payment = Payment(
            user_id=user_id,
            invoice_id=invoice.id,
            amount=amount,
            payment_date=payment_date,
            payment_method=payload.payment_method,
            reference_number=payload.reference_number,
            notes=payload.notes,
        )
        db.add(payment)

        invoice.amount_paid = round2(invoice.amount_paid + amount)
        _refresh_paid_state(invoice, paid_on=payment_date)

        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(payment)
    db.refresh(invoice)

    logger.info(
        "Payment %.2f recorded on invoice %s, status now %s",
        amount,
        invoice.invoice_number,
        invoice.status,
    )

    return payment, invoice


def get_payment(db: Session, user_id: int, payment_id: int) -> Payment:
    payment = (
        db.query(Payment)
        .filter(Payment.id == payment_id, Payment.user_id == user_id)
        .first()
    )
    if not payment:
        raise NotFoundError("Payment not found")
    return payment


def list_payments(
    db: Session,
    user_id: int,
    invoice_id: Optional[int] = None,
    payment_method: Optional[str] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
) -> list[Payment]:
    query = db.query(Payment).filter(Payment.user_id == user_id)

    if invoice_id is not None:
        query = query.filter(Payment.invoice_id == invoice_id)

    if payment_method:
        query = query.filter(Payment.payment_method == payment_method)

    if start_date:
        query = query.filter(Payment.payment_date >= start_date)

    if end_date:
        query = query.filter(Payment.payment_date <= end_date)

    return query.order_by(Payment.payment_date.desc(), Payment.id.desc()).all()


def delete_payment(db: Session, user_id: int, payment_id: int) -> Invoice:
    """Remove a payment and reopen its invoice if it no longer covers the total."""
    payment = get_payment(db, user_id, payment_id)
    invoice = payment.invoice

    try:
        invoice.amount_paid = round2(max(invoice.amount_paid - payment.amount, 0))
        _refresh_paid_state(invoice)
        db.delete(payment)
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(invoice)
    return invoice
