from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from app.core.dependencies import RequestContext, get_db, get_request_context
from app.models.invoice import Invoice
from app.schemas.invoice import (
    InvoiceCreate,
    InvoiceItemResponse,
    InvoiceResponse,
    InvoiceStats,
    InvoiceStatus,
    InvoiceUpdate,
    LateFeeResponse,
)
from app.services import billing_service
from app.services.audit_service import log_action
from app.services.invoice_calculator import round2
from app.services.invoice_status_service import (
    accrued_fee,
    amount_due,
    amount_settled,
    days_late,
    effective_status,
)


router = APIRouter(prefix="/invoice", tags=["Invoices"])


def invoice_to_response(invoice: Invoice, today: Optional[date] = None) -> InvoiceResponse:
    today = today or date.today()

    return InvoiceResponse(
        id=invoice.id,
        invoice_number=invoice.invoice_number,
        client_id=invoice.client_id,
        project_id=invoice.project_id,
        issue_date=invoice.issue_date,
        due_date=invoice.due_date,
        items=[InvoiceItemResponse.model_validate(item) for item in invoice.items],
        subtotal=invoice.subtotal,
        tax_rate=invoice.tax_rate,
        tax_amount=invoice.tax_amount,
        discount_amount=invoice.discount_amount,
        late_fee_rate=invoice.late_fee_rate,
        late_fee_type=invoice.late_fee_type,
        total_amount=invoice.total_amount,
        amount_paid=invoice.amount_paid,
        amount_due=amount_due(invoice),
        currency=invoice.currency,
        status=invoice.status,
        effective_status=effective_status(invoice, today),
        late_fee=accrued_fee(invoice, today),
        paid_at=invoice.paid_at,
        notes=invoice.notes,
        created_at=invoice.created_at,
    )


# =========================
# CREATE INVOICE
# =========================
@router.post("", status_code=status.HTTP_201_CREATED, response_model=InvoiceResponse)
def create_invoice(
    payload: InvoiceCreate,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
):
    invoice = billing_service.create_invoice(db, ctx.user, payload)

    log_action(
        db=db,
        user_id=ctx.user_id,
        action="CREATE_INVOICE",
        entity_type="Invoice",
        entity_id=invoice.id,
        details=(
            f"Invoice {invoice.invoice_number} for client {invoice.client_id} "
            f"| Total: {invoice.total_amount} | Time logs: "
            f"{[item.time_log_id for item in invoice.items if item.time_log_id]}"
        ),
    )

    return invoice_to_response(invoice)


# =========================
# LIST + STATS
# =========================
@router.get("", response_model=List[InvoiceResponse])
def get_invoices(
    status_filter: Optional[InvoiceStatus] = Query(default=None, alias="status"),
    client_id: Optional[int] = Query(default=None, alias="clientId"),
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
):
    today = date.today()
    invoices = billing_service.list_invoices(db, ctx.user_id, client_id=client_id)

    result = [invoice_to_response(invoice, today) for invoice in invoices]

    if status_filter:
        result = [inv for inv in result if inv.effective_status == status_filter]

    return result


@router.get("/stats", response_model=InvoiceStats)
def get_invoice_stats(
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
):
    today = date.today()
    stats = InvoiceStats()

    for invoice in billing_service.list_invoices(db, ctx.user_id):
        current = effective_status(invoice, today)
        setattr(stats, current, getattr(stats, current) + 1)
        stats.total += 1
        stats.total_billed = round2(stats.total_billed + invoice.total_amount)
        stats.total_paid = round2(stats.total_paid + amount_settled(invoice))
        stats.total_outstanding = round2(stats.total_outstanding + amount_due(invoice))

    return stats


# =========================
# SINGLE INVOICE
# =========================
@router.get("/{invoice_id}", response_model=InvoiceResponse)
def get_invoice(
    invoice_id: int,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
):
    return invoice_to_response(billing_service.get_invoice(db, ctx.user_id, invoice_id))


@router.get("/{invoice_id}/late-fee", response_model=LateFeeResponse)
def get_late_fee(
    invoice_id: int,
    as_of: Optional[date] = Query(default=None, alias="asOf"),
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
):
    invoice = billing_service.get_invoice(db, ctx.user_id, invoice_id)
    as_of = as_of or date.today()
    fee = accrued_fee(invoice, as_of)

    return LateFeeResponse(
        invoice_id=invoice.id,
        as_of=as_of,
        due_date=invoice.due_date,
        days_late=days_late(invoice, as_of),
        late_fee_type=invoice.late_fee_type,
        late_fee_rate=invoice.late_fee_rate,
        late_fee=fee,
        total_with_late_fee=round2(invoice.total_amount + fee),
    )


@router.put("/{invoice_id}", response_model=InvoiceResponse)
def update_invoice(
    invoice_id: int,
    payload: InvoiceUpdate,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
):
    invoice = billing_service.update_invoice(db, ctx.user, invoice_id, payload)

    log_action(
        db=db,
        user_id=ctx.user_id,
        action="UPDATE_INVOICE",
        entity_type="Invoice",
        entity_id=invoice.id,
        details=f"Total now {invoice.total_amount}",
    )

    return invoice_to_response(invoice)


# =========================
# MARK AS PAID
# =========================
@router.put("/{invoice_id}/paid", response_model=InvoiceResponse)
def mark_invoice_paid(
    invoice_id: int,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
):
    invoice = billing_service.mark_paid(db, ctx.user, invoice_id)

    log_action(
        db=db,
        user_id=ctx.user_id,
        action="MARK_INVOICE_PAID",
        entity_type="Invoice",
        entity_id=invoice.id,
        details=f"Invoice {invoice.invoice_number} marked as paid",
    )

    return invoice_to_response(invoice)


@router.delete("/{invoice_id}")
def delete_invoice(
    invoice_id: int,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
):
    billing_service.delete_invoice(db, ctx.user, invoice_id)

    log_action(
        db=db,
        user_id=ctx.user_id,
        action="DELETE_INVOICE",
        entity_type="Invoice",
        entity_id=invoice_id,
    )

    return {"message": "Invoice deleted"}
