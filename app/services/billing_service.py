from datetime import date, datetime, timedelta
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload

from app.core.config import settings
from app.core.exceptions import ConflictError, NoUnbilledEntriesError, NotFoundError, ValidationError
from app.core.logging import get_logger
from app.models.client import Client
from app.models.invoice import Invoice
from app.models.invoice_item import InvoiceItem
from app.models.project import Project
from app.models.time_log import TimeLog
from app.models.user import User
from app.schemas.invoice import InvoiceCreate, InvoiceItemIn, InvoiceUpdate
from app.services import time_log_service
from app.services.invoice_calculator import ComposedInvoice, LineItemInput, compose
from app.services.invoice_status_service import LATE_FEE_PERCENTAGE, PAID, UNPAID


logger = get_logger(__name__)


# =========================
# LOOKUPS
# =========================

def get_client(db: Session, user_id: int, client_id: int) -> Client:
    client = (
        db.query(Client)
        .filter(Client.id == client_id, Client.user_id == user_id)
        .first()
    )
    if not client:
        raise NotFoundError("Client not found")
    return client


def get_project(db: Session, user_id: int, project_id: int) -> Project:
    project = (
        db.query(Project)
        .filter(Project.id == project_id, Project.user_id == user_id)
        .first()
    )
    if not project:
        raise NotFoundError("Project not found")
    return project


def get_invoice(db: Session, user_id: int, invoice_id: int) -> Invoice:
    invoice = (
        db.query(Invoice)
        .options(selectinload(Invoice.items))
        .filter(Invoice.id == invoice_id, Invoice.user_id == user_id)
        .first()
    )
    if not invoice:
        raise NotFoundError("Invoice not found")
    return invoice


# =========================
# INVOICE NUMBERS
# =========================

def user_initials(full_name: Optional[str]) -> str:
    """First letter or digit of each word, so the number splits cleanly on '-'."""
    initials = []
    for word in (full_name or "").split():
        first = next((ch for ch in word if ch.isascii() and ch.isalnum()), None)
        if first:
            initials.append(first.upper())

    return "".join(initials) or "USR"


def next_invoice_number(db: Session, user: User, issue_date: date) -> str:
    """INV-<year>-<initials>-<seq>, sequence restarting each year."""
    year = issue_date.year
    prefix = f"INV-{year}-{user_initials(user.full_name)}-"

    numbers = (
        db.query(Invoice.invoice_number)
        .filter(
            Invoice.user_id == user.id,
            Invoice.invoice_number.like(f"INV-{year}-%"),
        )
        .all()
    )

    last_sequence = 0
    for (number,) in numbers:
        sequence = number.rsplit("-", 1)[-1]
        if sequence.isdigit():
            last_sequence = max(last_sequence, int(sequence))

    return f"{prefix}{last_sequence + 1:04d}"


# =========================
# LINE ITEMS
# =========================

def from_unbilled_time_logs(
    db: Session,
    project_id: int,
    hourly_rate: float,
    user_id: Optional[int] = None,
) -> list[LineItemInput]:
    """Line items for every billable, not yet invoiced log of a project.

    Read only: the logs are marked invoiced when the invoice is saved.
    """
    logs = time_log_service.find_unbilled(db, project_id, user_id=user_id)

    if not logs:
        raise NoUnbilledEntriesError(f"No unbilled time logs found for project {project_id}")

    return [
        LineItemInput(
            description=log.description,
            quantity=log.hours,
            rate=hourly_rate,
            time_log_id=log.id,
        )
        for log in logs
    ]


def _to_line_inputs(items: list[InvoiceItemIn]) -> list[LineItemInput]:
    return [
        LineItemInput(
            description=item.description,
            quantity=item.quantity,
            rate=item.rate,
            time_log_id=item.time_log_id,
        )
        for item in items
    ]


def _check_time_log_refs(
    db: Session,
    user_id: int,
    time_log_ids: list[int],
    client_id: int,
    project_id: Optional[int] = None,
) -> None:
    """Referenced logs must be the caller's billable hours for this client (and project)."""
    if not time_log_ids:
        return

    if len(set(time_log_ids)) != len(time_log_ids):
        raise ValidationError("A time log can only appear once on an invoice")

    rows = (
        db.query(TimeLog, Project.client_id)
        .join(Project, Project.id == TimeLog.project_id)
        .filter(TimeLog.id.in_(time_log_ids), TimeLog.user_id == user_id)
        .all()
    )
    found = {log.id: (log, log_client_id) for log, log_client_id in rows}

    missing = sorted(set(time_log_ids) - set(found))
    if missing:
        raise ValidationError(f"Unknown time log IDs: {missing}")

    errors = []

    not_billable = sorted(log_id for log_id, (log, _) in found.items() if not log.billable)
    if not_billable:
        errors.append(f"Time logs are not billable: {not_billable}")

    other_client = sorted(log_id for log_id, (_, owner) in found.items() if owner != client_id)
    if other_client:
        errors.append(f"Time logs belong to another client: {other_client}")

    if project_id is not None:
        other_project = sorted(
            log_id for log_id, (log, _) in found.items() if log.project_id != project_id
        )
        if other_project:
            errors.append(f"Time logs belong to another project: {other_project}")

    if errors:
        raise ValidationError(", ".join(errors))


def _hourly_rate(project: Project, client: Client, user: User) -> float:
    for rate in (project.hourly_rate, client.default_hourly_rate, user.default_hourly_rate):
        if rate is not None:
            return float(rate)
    return 0.0


# =========================
# PERSISTENCE
# =========================

def _apply_composition(invoice: Invoice, composed: ComposedInvoice) -> None:
    invoice.items = [
        InvoiceItem(
            position=position,
            description=line.description,
            quantity=line.quantity,
            rate=line.rate,
            amount=line.amount,
            time_log_id=line.time_log_id,
        )
        for position, line in enumerate(composed.items)
    ]
    invoice.subtotal = composed.subtotal
    invoice.tax_rate = composed.tax_rate
    invoice.tax_amount = composed.tax_amount
    invoice.discount_amount = composed.discount_amount
    invoice.total_amount = composed.total


def save_invoice(
    db: Session,
    user: User,
    client: Client,
    composed: ComposedInvoice,
    project: Optional[Project] = None,
    issue_date: Optional[date] = None,
    due_date: Optional[date] = None,
    late_fee_rate: Optional[float] = None,
    late_fee_type: Optional[str] = None,
    notes: Optional[str] = None,
    invoice_number: Optional[str] = None,
) -> Invoice:
    """Persist an invoice and bill its time logs in one transaction.

    Either the invoice is committed with every referenced log marked
    invoiced, or nothing is written and ``ConflictError`` is raised.
    """
    issue_date = issue_date or date.today()
    due_date = due_date or issue_date + timedelta(days=settings.DEFAULT_DUE_DAYS)

    if due_date < issue_date:
        raise ValidationError("dueDate must not be before issueDate")

    _check_time_log_refs(
        db,
        user.id,
        composed.time_log_ids,
        client.id,
        project_id=project.id if project else None,
    )

    try:
        number = (invoice_number or "").strip() or next_invoice_number(db, user, issue_date)

        invoice = Invoice(
            user_id=user.id,
            client_id=client.id,
            project_id=project.id if project else None,
            invoice_number=number,
            issue_date=issue_date,
            due_date=due_date,
            late_fee_rate=late_fee_rate or 0,
            late_fee_type=late_fee_type or LATE_FEE_PERCENTAGE,
            amount_paid=0,
            currency=client.currency or settings.DEFAULT_CURRENCY,
            status=UNPAID,
            notes=notes,
        )
        _apply_composition(invoice, composed)

        db.add(invoice)
        db.flush()

        time_log_service.mark_invoiced(db, composed.time_log_ids, invoice.id)

        db.commit()
    except IntegrityError:
        db.rollback()
        raise ConflictError("Invoice number already exists")
    except Exception:
        db.rollback()
        raise

    db.refresh(invoice)

    logger.info(
        "Invoice %s created for client %s: total %.2f, %d time logs billed",
        invoice.invoice_number,
        client.id,
        invoice.total_amount,
        len(composed.time_log_ids),
    )

    return invoice


def create_invoice(db: Session, user: User, payload: InvoiceCreate) -> Invoice:
    client = get_client(db, user.id, payload.client_id)

    project = None
    if payload.project_id is not None:
        project = get_project(db, user.id, payload.project_id)
        if project.client_id != client.id:
            raise ValidationError("Project does not belong to the selected client")

    if payload.items:
        line_inputs = _to_line_inputs(payload.items)
    elif project is not None:
        line_inputs = from_unbilled_time_logs(
            db,
            project.id,
            _hourly_rate(project, client, user),
            user_id=user.id,
        )
    else:
        raise ValidationError("Either items or projectId with unbilled hours must be provided")

    composed = compose(line_inputs, payload.tax_rate, payload.discount_amount)

    return save_invoice(
        db,
        user,
        client,
        composed,
        project=project,
        issue_date=payload.issue_date,
        due_date=payload.due_date,
        late_fee_rate=payload.late_fee_rate,
        late_fee_type=payload.late_fee_type,
        notes=payload.notes,
        invoice_number=payload.invoice_number,
    )


def update_invoice(db: Session, user: User, invoice_id: int, payload: InvoiceUpdate) -> Invoice:
    invoice = get_invoice(db, user.id, invoice_id)

    if invoice.status == PAID:
        raise ConflictError("Paid invoices cannot be modified")

    changes = payload.model_dump(exclude_unset=True)

    if "items" in changes and invoice.amount_paid:
        raise ConflictError("Line items cannot change after payments were recorded")

    issue_date = changes.get("issue_date") or invoice.issue_date
    due_date = changes.get("due_date") or invoice.due_date
    if due_date < issue_date:
        raise ValidationError("dueDate must not be before issueDate")

    if payload.items is not None:
        line_inputs = _to_line_inputs(payload.items)
    else:
        line_inputs = [
            LineItemInput(
                description=item.description,
                quantity=item.quantity,
                rate=item.rate,
                time_log_id=item.time_log_id,
            )
            for item in invoice.items
        ]

    composed = compose(
        line_inputs,
        changes.get("tax_rate", invoice.tax_rate),
        changes.get("discount_amount", invoice.discount_amount),
    )

    if composed.total < float(invoice.amount_paid or 0):
        raise ValidationError("Total cannot drop below the amount already paid")

    previous_logs = {item.time_log_id for item in invoice.items if item.time_log_id}
    new_logs = set(composed.time_log_ids)
    added_logs = sorted(new_logs - previous_logs)

    if added_logs:
        _check_time_log_refs(
            db,
            user.id,
            added_logs,
            invoice.client_id,
            project_id=invoice.project_id,
        )

    try:
        invoice.issue_date = issue_date
        invoice.due_date = due_date
        for field in ("late_fee_rate", "late_fee_type", "notes"):
            if field in changes and changes[field] is not None:
                setattr(invoice, field, changes[field])

        if payload.items is not None:
            _apply_composition(invoice, composed)
        else:
            invoice.subtotal = composed.subtotal
            invoice.tax_rate = composed.tax_rate
            invoice.tax_amount = composed.tax_amount
            invoice.discount_amount = composed.discount_amount
            invoice.total_amount = composed.total

        db.flush()

        removed_logs = sorted(previous_logs - new_logs)
        if removed_logs:
            db.query(TimeLog).filter(
                TimeLog.id.in_(removed_logs),
                TimeLog.invoice_id == invoice.id,
            ).update({"invoiced": False, "invoice_id": None}, synchronize_session=False)

        time_log_service.mark_invoiced(db, added_logs, invoice.id)

        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(invoice)
    return invoice


def mark_paid(db: Session, user: User, invoice_id: int) -> Invoice:
    invoice = get_invoice(db, user.id, invoice_id)

    if invoice.status != PAID:
        invoice.status = PAID
        invoice.paid_at = datetime.utcnow()
        db.commit()
        db.refresh(invoice)

    return invoice


def delete_invoice(db: Session, user: User, invoice_id: int) -> None:
    invoice = get_invoice(db, user.id, invoice_id)

    if invoice.status == PAID or invoice.amount_paid:
        raise ConflictError("Invoices with recorded payments cannot be deleted")

    try:
        released = time_log_service.release(db, invoice.id)
        db.delete(invoice)
        db.commit()
    except Exception:
        db.rollback()
        raise

    logger.info("Invoice %s deleted, %d time logs released", invoice_id, released)


def list_invoices(
    db: Session,
    user_id: int,
    client_id: Optional[int] = None,
) -> list[Invoice]:
    query = (
        db.query(Invoice)
        .options(selectinload(Invoice.items))
        .filter(Invoice.user_id == user_id)
    )

    if client_id is not None:
        query = query.filter(Invoice.client_id == client_id)

    return query.order_by(Invoice.created_at.desc(), Invoice.id.desc()).all()
