from datetime import date
from typing import Literal, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.core.dependencies import RequestContext, get_db, get_request_context
from app.services.report_service import (
    outstanding_summary,
    profit_loss,
    project_report,
    revenue_by_client,
    revenue_over_time,
    tax_report,
    time_report,
)


router = APIRouter(prefix="/reports", tags=["Reports"])


@router.get("/revenue-by-client")
def get_revenue_by_client(
    from_date: Optional[date] = Query(default=None, alias="fromDate"),
    to_date: Optional[date] = Query(default=None, alias="toDate"),
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
):
    return revenue_by_client(db, ctx.user_id, from_date, to_date)


@router.get("/outstanding")
def get_outstanding(
    client_id: Optional[int] = Query(default=None, alias="clientId"),
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
):
    summary = outstanding_summary(db, ctx.user_id, client_id=client_id)
    summary["currency"] = ctx.currency
    return summary


@router.get("/revenue")
def get_revenue(
    period: Literal["daily", "weekly", "monthly", "yearly"] = Query("monthly"),
    from_date: Optional[date] = Query(default=None, alias="fromDate"),
    to_date: Optional[date] = Query(default=None, alias="toDate"),
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
):
    return revenue_over_time(db, ctx.user_id, period, from_date, to_date)


@router.get("/profit-loss")
def get_profit_loss(
    from_date: Optional[date] = Query(default=None, alias="fromDate"),
    to_date: Optional[date] = Query(default=None, alias="toDate"),
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
):
    report = profit_loss(db, ctx.user_id, from_date, to_date)
    report["currency"] = ctx.currency
    return report


@router.get("/time")
def get_time_report(
    from_date: Optional[date] = Query(default=None, alias="fromDate"),
    to_date: Optional[date] = Query(default=None, alias="toDate"),
    project_id: Optional[int] = Query(default=None, alias="projectId"),
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
):
    return time_report(db, ctx.user_id, from_date, to_date, project_id)


@router.get("/projects")
def get_project_report(
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
):
    report = project_report(db, ctx.user_id)
    report["currency"] = ctx.currency
    return report


@router.get("/tax")
def get_tax_report(
    year: Optional[int] = Query(default=None, ge=2000, le=9998),
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
):
    report = tax_report(db, ctx.user_id, year or date.today().year)
    report["currency"] = ctx.currency
    return report
