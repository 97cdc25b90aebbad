from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from app.core.dependencies import RequestContext, get_db, get_request_context
from app.core.exceptions import NotFoundError
from app.models.expense import Expense
from app.schemas.expense import ExpenseCreate, ExpenseResponse, ExpenseUpdate
from app.services.billing_service import get_client, get_project
from app.services.report_service import expenses_by_category


router = APIRouter(prefix="/expenses", tags=["Expenses"])


def _get_expense(db: Session, user_id: int, expense_id: int) -> Expense:
    expense = (
        db.query(Expense)
        .filter(Expense.id == expense_id, Expense.user_id == user_id)
        .first()
    )
    if not expense:
        raise NotFoundError("Expense not found")
    return expense


def _check_links(db: Session, user_id: int, client_id: Optional[int], project_id: Optional[int]) -> None:
    if client_id is not None:
        get_client(db, user_id, client_id)
    if project_id is not None:
        get_project(db, user_id, project_id)


@router.post("", status_code=status.HTTP_201_CREATED, response_model=ExpenseResponse)
def create_expense(
    payload: ExpenseCreate,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
):
    _check_links(db, ctx.user_id, payload.client_id, payload.project_id)

    expense = Expense(user_id=ctx.user_id, **payload.model_dump())
    db.add(expense)
    db.commit()
    db.refresh(expense)

    return expense


@router.get("", response_model=List[ExpenseResponse])
def get_expenses(
    category: Optional[str] = Query(default=None),
    project_id: Optional[int] = Query(default=None, alias="projectId"),
    client_id: Optional[int] = Query(default=None, alias="clientId"),
    start_date: Optional[date] = Query(default=None, alias="startDate"),
    end_date: Optional[date] = Query(default=None, alias="endDate"),
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
):
    query = db.query(Expense).filter(Expense.user_id == ctx.user_id)

    if category:
        query = query.filter(Expense.category == category)
    if project_id is not None:
        query = query.filter(Expense.project_id == project_id)
    if client_id is not None:
        query = query.filter(Expense.client_id == client_id)
    if start_date:
        query = query.filter(Expense.date >= start_date)
    if end_date:
        query = query.filter(Expense.date <= end_date)

    return query.order_by(Expense.date.desc(), Expense.id.desc()).all()


@router.get("/summary")
def get_expense_summary(
    start_date: Optional[date] = Query(default=None, alias="startDate"),
    end_date: Optional[date] = Query(default=None, alias="endDate"),
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
):
    return expenses_by_category(db, ctx.user_id, start_date, end_date)


@router.get("/{expense_id}", response_model=ExpenseResponse)
def get_expense(
    expense_id: int,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
):
    return _get_expense(db, ctx.user_id, expense_id)


@router.put("/{expense_id}", response_model=ExpenseResponse)
def update_expense(
    expense_id: int,
    payload: ExpenseUpdate,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
):
    expense = _get_expense(db, ctx.user_id, expense_id)
    changes = payload.model_dump(exclude_unset=True)

    _check_links(db, ctx.user_id, changes.get("client_id"), changes.get("project_id"))

    for field, value in changes.items():
        setattr(expense, field, value)

    db.commit()
    db.refresh(expense)

    return expense


@router.delete("/{expense_id}")
def delete_expense(
    expense_id: int,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
):
    expense = _get_expense(db, ctx.user_id, expense_id)
    db.delete(expense)
    db.commit()

    return {"message": "Expense deleted"}
