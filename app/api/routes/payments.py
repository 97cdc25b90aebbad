from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from app.core.dependencies import RequestContext, get_db, get_request_context
from app.schemas.payment import PaymentCreate, PaymentRecorded, PaymentResponse
from app.services import payment_service
from app.services.audit_service import log_action
from app.services.billing_service import get_invoice
from app.services.invoice_status_service import amount_due


router = APIRouter(prefix="/payments", tags=["Payments"])


@router.post("", status_code=status.HTTP_201_CREATED, response_model=PaymentRecorded)
def add_payment(
    payload: PaymentCreate,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
):
    payment, invoice = payment_service.record_payment(db, ctx.user_id, payload)

    log_action(
        db=db,
        user_id=ctx.user_id,
        action="ADD_PAYMENT",
        entity_type="Invoice",
        entity_id=invoice.id,
        details=(
            f"Payment added: {payment.amount} | Method: {payment.payment_method} | "
            f"Reference: {payment.reference_number or 'N/A'}"
        ),
    )

    return PaymentRecorded(
        payment=PaymentResponse.model_validate(payment),
        invoice_status=invoice.status,
        amount_paid=invoice.amount_paid,
        amount_due=amount_due(invoice),
    )


@router.get("", response_model=List[PaymentResponse])
def get_payments(
    invoice_id: Optional[int] = Query(default=None, alias="invoiceId"),
    payment_method: Optional[str] = Query(default=None, alias="paymentMethod"),
    start_date: Optional[date] = Query(default=None, alias="startDate"),
    end_date: Optional[date] = Query(default=None, alias="endDate"),
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
):
    return payment_service.list_payments(
        db,
        ctx.user_id,
        invoice_id=invoice_id,
        payment_method=payment_method,
        start_date=start_date,
        end_date=end_date,
    )


@router.get("/invoice/{invoice_id}", response_model=List[PaymentResponse])
def get_invoice_payments(
    invoice_id: int,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
):
    get_invoice(db, ctx.user_id, invoice_id)
    return payment_service.list_payments(db, ctx.user_id, invoice_id=invoice_id)


@router.get("/{payment_id}", response_model=PaymentResponse)
def get_payment(
    payment_id: int,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
):
    return payment_service.get_payment(db, ctx.user_id, payment_id)


@router.delete("/{payment_id}")
def delete_payment(
    payment_id: int,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
):
    invoice = payment_service.delete_payment(db, ctx.user_id, payment_id)

    log_action(
        db=db,
        user_id=ctx.user_id,
        action="DELETE_PAYMENT",
        entity_type="Invoice",
        entity_id=invoice.id,
        details=f"Payment {payment_id} removed",
    )

    return {"message": "Payment deleted", "invoiceStatus": invoice.status}
