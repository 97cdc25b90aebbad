"""Time log persistence used by invoice generation.

``mark_invoiced`` is a conditional update: it only flips rows that are still
unbilled, so two requests racing to bill the same hours cannot both win.
"""

from sqlalchemy import delete, update
from sqlalchemy.orm import Session

from app.core.exceptions import ConflictError
from app.models.time_log import TimeLog


def find_unbilled(db: Session, project_id: int, user_id: int | None = None) -> list[TimeLog]:
    query = db.query(TimeLog).filter(
        TimeLog.project_id == project_id,
        TimeLog.billable.is_(True),
        TimeLog.invoiced.is_(False),
    )

    if user_id is not None:
        query = query.filter(TimeLog.user_id == user_id)

    return query.order_by(TimeLog.date.asc(), TimeLog.id.asc()).all()


def mark_invoiced(db: Session, time_log_ids: list[int], invoice_id: int) -> int:
    """Attach logs to an invoice inside the caller's transaction.

    Raises ``ConflictError`` if any of the logs was already invoiced; the
    caller is expected to roll back.
    """
    ids = sorted(set(time_log_ids))
    if not ids:
        return 0

    result = db.execute(
        update(TimeLog)
        .where(
            TimeLog.id.in_(ids),
            TimeLog.invoiced.is_(False),
        )
        .values(invoiced=True, invoice_id=invoice_id)
        .execution_options(synchronize_session=False)
    )

    if result.rowcount != len(ids):
        raise ConflictError(
            "Some time logs were already invoiced. Refresh the unbilled entries and retry."
        )

    return result.rowcount


def release(db: Session, invoice_id: int) -> int:
    """Return an invoice's time logs to the unbilled pool."""
    result = db.execute(
        update(TimeLog)
        .where(TimeLog.invoice_id == invoice_id)
        .values(invoiced=False, invoice_id=None)
        .execution_options(synchronize_session=False)
    )
    return result.rowcount


def update_unbilled(db: Session, time_log_id: int, changes: dict) -> None:
    """Apply ``changes`` only while the log is still unbilled."""
    if not changes:
        return

    result = db.execute(
        update(TimeLog)
        .where(
            TimeLog.id == time_log_id,
            TimeLog.invoiced.is_(False),
        )
        .values(**changes)
        .execution_options(synchronize_session=False)
    )

    if result.rowcount != 1:
        raise ConflictError("Invoiced time logs cannot be modified")


def delete_unbilled(db: Session, time_log_id: int) -> None:
    result = db.execute(
        delete(TimeLog)
        .where(
            TimeLog.id == time_log_id,
            TimeLog.invoiced.is_(False),
        )
        .execution_options(synchronize_session=False)
    )

    if result.rowcount != 1:
        raise ConflictError("Invoiced time logs cannot be deleted")
