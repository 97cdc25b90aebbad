from typing import List, Literal, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from app.core.dependencies import RequestContext, get_db, get_request_context
from app.core.exceptions import ConflictError
from app.models.client import Client
from app.models.invoice import Invoice
from app.models.project import Project
from app.schemas.client import ClientCreate, ClientResponse, ClientUpdate
from app.services.audit_service import log_action
from app.services.billing_service import get_client
from app.services.report_service import client_stats, clients_overview


router = APIRouter(prefix="/clients", tags=["Clients"])


@router.post("", status_code=status.HTTP_201_CREATED, response_model=ClientResponse)
def create_client(
    payload: ClientCreate,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
):
    data = payload.model_dump()
    data["currency"] = (data.get("currency") or ctx.currency).upper()

    new_client = Client(user_id=ctx.user_id, **data)
    db.add(new_client)
    db.commit()
    db.refresh(new_client)

    log_action(
        db=db,
        user_id=ctx.user_id,
        action="CREATE_CLIENT",
        entity_type="Client",
        entity_id=new_client.id,
        details=f"Client '{new_client.name}' created",
    )

    return new_client


@router.get("", response_model=List[ClientResponse])
def get_clients(
    status_filter: Optional[Literal["active", "archived"]] = Query(default=None, alias="status"),
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
):
    query = db.query(Client).filter(Client.user_id == ctx.user_id)

    if status_filter:
        query = query.filter(Client.status == status_filter)

    return query.order_by(Client.name.asc()).all()


@router.get("/stats")
def get_clients_stats(
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
):
    return clients_overview(db, ctx.user_id)


@router.get("/{client_id}/stats")
def get_client_stats(
    client_id: int,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
):
    get_client(db, ctx.user_id, client_id)
    return client_stats(db, ctx.user_id, client_id)


@router.get("/{client_id}", response_model=ClientResponse)
def get_client_detail(
    client_id: int,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
):
    return get_client(db, ctx.user_id, client_id)


@router.put("/{client_id}", response_model=ClientResponse)
def update_client(
    client_id: int,
    payload: ClientUpdate,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
):
    client = get_client(db, ctx.user_id, client_id)

    for field, value in payload.model_dump(exclude_unset=True).items():
        if field == "currency" and value:
            value = value.upper()
        setattr(client, field, value)

    db.commit()
    db.refresh(client)

    return client


@router.delete("/{client_id}")
def delete_client(
    client_id: int,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
):
    client = get_client(db, ctx.user_id, client_id)

    has_invoices = db.query(Invoice.id).filter(Invoice.client_id == client.id).first()
    if has_invoices:
        raise ConflictError("Client has invoices; archive it instead")

    has_projects = db.query(Project.id).filter(Project.client_id == client.id).first()
    if has_projects:
        raise ConflictError("Client has projects; delete or reassign them first")

    db.delete(client)
    db.commit()

    log_action(
        db=db,
        user_id=ctx.user_id,
        action="DELETE_CLIENT",
        entity_type="Client",
        entity_id=client_id,
    )

    return {"message": "Client deleted"}
