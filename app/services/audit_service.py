from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.logging import get_logger
from app.models.audit_log import AuditLog


logger = get_logger(__name__)


def log_action(
    db: Session,
    user_id: Optional[int],
    action: str,
    entity_type: str,
    entity_id: Optional[int] = None,
    details: Optional[str] = None,
) -> None:
    logger.info("%s %s#%s by user %s", action, entity_type, entity_id, user_id)

    try:
        db.add(
            AuditLog(
                user_id=user_id,
                action=action,
                entity_type=entity_type,
                entity_id=entity_id,
                details=details,
            )
        )
        db.commit()
    except SQLAlchemyError:
        # Audit trail must never block the billing flow itself.
        logger.exception("Failed to write audit log for %s", action)
        db.rollback()


def log_auth_event(
    db: Session,
    action: str,
    email: str,
    user_id: Optional[int] = None,
    details: Optional[str] = None,
) -> None:
    message = f"Email: {email}"
    if details:
        message = f"{message} | {details}"

    log_action(
        db=db,
        user_id=user_id,
        action=action,
        entity_type="Auth",
        entity_id=user_id,
        details=message,
    )
