from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from app.core.dependencies import RequestContext, get_db, get_request_context
from app.core.exceptions import ConflictError, NotFoundError
from app.models.time_log import TimeLog
from app.schemas.time_log import TimeLogCreate, TimeLogResponse, TimeLogUpdate
from app.services import time_log_service
from app.services.billing_service import get_project


router = APIRouter(prefix="/timelog", tags=["Time Logs"])


def _get_time_log(db: Session, user_id: int, time_log_id: int) -> TimeLog:
    log = (
        db.query(TimeLog)
        .filter(TimeLog.id == time_log_id, TimeLog.user_id == user_id)
        .first()
    )
    if not log:
        raise NotFoundError("Time log not found")
    return log


@router.post("", status_code=status.HTTP_201_CREATED, response_model=TimeLogResponse)
def create_time_log(
    payload: TimeLogCreate,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
):
    get_project(db, ctx.user_id, payload.project_id)

    log = TimeLog(
        user_id=ctx.user_id,
        project_id=payload.project_id,
        date=payload.date,
        hours=payload.hours,
        description=payload.description.strip(),
        notes=payload.notes,
        billable=payload.billable,
        invoiced=False,
    )
    db.add(log)
    db.commit()
    db.refresh(log)

    return log


@router.get("", response_model=List[TimeLogResponse])
def get_time_logs(
    project_id: Optional[int] = Query(default=None, alias="projectId"),
    billable: Optional[bool] = Query(default=None),
    invoiced: Optional[bool] = Query(default=None),
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
):
    query = db.query(TimeLog).filter(TimeLog.user_id == ctx.user_id)

    if project_id is not None:
        query = query.filter(TimeLog.project_id == project_id)

    if billable is not None:
        query = query.filter(TimeLog.billable.is_(billable))

    if invoiced is not None:
        query = query.filter(TimeLog.invoiced.is_(invoiced))

    return query.order_by(TimeLog.date.desc(), TimeLog.id.desc()).all()


# =========================
# UNBILLED ENTRIES
# =========================
@router.get("/unbilled", response_model=List[TimeLogResponse])
def get_unbilled_time_logs(
    project_id: int = Query(..., alias="projectId"),
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
):
    get_project(db, ctx.user_id, project_id)
    return time_log_service.find_unbilled(db, project_id, user_id=ctx.user_id)


@router.get("/{time_log_id}", response_model=TimeLogResponse)
def get_time_log(
    time_log_id: int,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
):
    return _get_time_log(db, ctx.user_id, time_log_id)


@router.put("/{time_log_id}", response_model=TimeLogResponse)
def update_time_log(
    time_log_id: int,
    payload: TimeLogUpdate,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
):
    log = _get_time_log(db, ctx.user_id, time_log_id)

    if log.invoiced:
        raise ConflictError("Invoiced time logs cannot be modified")

    changes = {
        field: value
        for field, value in payload.model_dump(exclude_unset=True).items()
        if value is not None
    }

    if changes.get("project_id") is not None:
        get_project(db, ctx.user_id, changes["project_id"])

    # Re-checked in the UPDATE itself: an invoice may bill the log meanwhile
    try:
        time_log_service.update_unbilled(db, log.id, changes)
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(log)
    return log


@router.delete("/{time_log_id}")
def delete_time_log(
    time_log_id: int,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
):
    log = _get_time_log(db, ctx.user_id, time_log_id)

    # Invoiced hours stay on record for audit
    if log.invoiced:
        raise ConflictError("Invoiced time logs cannot be deleted")

    try:
        time_log_service.delete_unbilled(db, log.id)
        db.commit()
    except Exception:
        db.rollback()
        raise

    return {"message": "Time log deleted"}
