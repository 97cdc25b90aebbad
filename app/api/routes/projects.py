from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from app.core.dependencies import RequestContext, get_db, get_request_context
from app.core.exceptions import ConflictError, ValidationError
from app.models.invoice import Invoice
from app.models.project import Project
from app.models.time_log import TimeLog
from app.schemas.project import ProjectCreate, ProjectResponse, ProjectSummary, ProjectUpdate
from app.services.audit_service import log_action
from app.services.billing_service import get_client, get_project
from app.services.invoice_calculator import round2
from app.services.report_service import project_stats


router = APIRouter(prefix="/projects", tags=["Projects"])


@router.post("", status_code=status.HTTP_201_CREATED, response_model=ProjectResponse)
def create_project(
    payload: ProjectCreate,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
):
    get_client(db, ctx.user_id, payload.client_id)

    project = Project(user_id=ctx.user_id, **payload.model_dump())
    db.add(project)
    db.commit()
    db.refresh(project)

    log_action(
        db=db,
        user_id=ctx.user_id,
        action="CREATE_PROJECT",
        entity_type="Project",
        entity_id=project.id,
        details=f"Project '{project.title}' created for client {project.client_id}",
    )

    return project


@router.get("", response_model=List[ProjectResponse])
def get_projects(
    client_id: Optional[int] = Query(default=None, alias="clientId"),
    status_filter: Optional[str] = Query(default=None, alias="status"),
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
):
    query = db.query(Project).filter(Project.user_id == ctx.user_id)

    if client_id is not None:
        query = query.filter(Project.client_id == client_id)

    if status_filter:
        query = query.filter(Project.status == status_filter)

    return query.order_by(Project.created_at.desc(), Project.id.desc()).all()


@router.get("/stats")
def get_projects_stats(
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
):
    return project_stats(db, ctx.user_id)


@router.get("/{project_id}", response_model=ProjectResponse)
def get_project_detail(
    project_id: int,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
):
    return get_project(db, ctx.user_id, project_id)


@router.get("/{project_id}/summary", response_model=ProjectSummary)
def get_project_summary(
    project_id: int,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
):
    project = get_project(db, ctx.user_id, project_id)
    logs = db.query(TimeLog).filter(TimeLog.project_id == project.id).all()

    total_hours = sum(log.hours for log in logs)
    billable_hours = sum(log.hours for log in logs if log.billable)
    unbilled_hours = sum(log.hours for log in logs if log.billable and not log.invoiced)
    invoiced_hours = sum(log.hours for log in logs if log.invoiced)
    rate = project.hourly_rate or 0

    return ProjectSummary(
        project_id=project.id,
        total_hours=round2(total_hours),
        billable_hours=round2(billable_hours),
        unbilled_hours=round2(unbilled_hours),
        unbilled_amount=round2(sum(
            round2(log.hours * rate) for log in logs if log.billable and not log.invoiced
        )),
        invoiced_hours=round2(invoiced_hours),
    )


@router.put("/{project_id}", response_model=ProjectResponse)
def update_project(
    project_id: int,
    payload: ProjectUpdate,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
):
    project = get_project(db, ctx.user_id, project_id)
    changes = payload.model_dump(exclude_unset=True)

    if changes.get("client_id") is not None:
        get_client(db, ctx.user_id, changes["client_id"])

    for field, value in changes.items():
        setattr(project, field, value)

    if project.billing_type == "hourly" and project.hourly_rate is None:
        raise ValidationError("hourlyRate is required for hourly billing")
    if project.billing_type == "fixed" and project.fixed_price is None:
        raise ValidationError("fixedPrice is required for fixed billing")

    db.commit()
    db.refresh(project)

    return project


@router.delete("/{project_id}")
def delete_project(
    project_id: int,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
):
    project = get_project(db, ctx.user_id, project_id)

    if db.query(Invoice.id).filter(Invoice.project_id == project.id).first():
        raise ConflictError("Project has invoices and cannot be deleted")

    if db.query(TimeLog.id).filter(TimeLog.project_id == project.id).first():
        raise ConflictError("Project has time logs and cannot be deleted")

    db.delete(project)
    db.commit()

    log_action(
        db=db,
        user_id=ctx.user_id,
        action="DELETE_PROJECT",
        entity_type="Project",
        entity_id=project_id,
    )

    return {"message": "Project deleted"}
