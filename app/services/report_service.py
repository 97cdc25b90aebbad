from collections import OrderedDict
from datetime import date, datetime, timedelta
from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from app.core.exceptions import ValidationError
from app.models.client import Client
from app.models.expense import Expense
from app.models.invoice import Invoice
from app.models.payment import Payment
from app.models.project import Project
from app.models.time_log import TimeLog
from app.services.invoice_calculator import round2
from app.services.invoice_status_service import OVERDUE, PAID, amount_due, amount_settled, effective_status


PERIODS = ("daily", "weekly", "monthly", "yearly")


def _bucket_label(day: date, period: str) -> str:
    if period == "daily":
        return day.isoformat()
    if period == "weekly":
        monday = day - timedelta(days=day.weekday())
        return monday.isoformat()
    if period == "yearly":
        return str(day.year)
    return f"{day.year}-{day.month:02d}"


# =====================================================
# REVENUE PER CLIENT
# =====================================================

def revenue_by_client(
    db: Session,
    user_id: int,
    from_date: Optional[date] = None,
    to_date: Optional[date] = None,
) -> list[dict]:
    query = (
        db.query(
            Client.id.label("client_id"),
            Client.name.label("client_name"),
            func.sum(Payment.amount).label("total_revenue"),
            func.count(Payment.id).label("payments_count"),
        )
        .join(Invoice, Invoice.id == Payment.invoice_id)
        .join(Client, Client.id == Invoice.client_id)
        .filter(Payment.user_id == user_id)
    )

    if from_date:
        query = query.filter(Payment.payment_date >= from_date)

    if to_date:
        query = query.filter(Payment.payment_date <= to_date)

    results = query.group_by(Client.id, Client.name).all()

    rows = [
        {
            "clientId": r.client_id,
            "clientName": r.client_name,
            "totalRevenue": round2(r.total_revenue),
            "paymentsCount": r.payments_count,
        }
        for r in results
    ]

    return sorted(rows, key=lambda row: (-row["totalRevenue"], row["clientName"].lower()))


# =====================================================
# OUTSTANDING + COLLECTION KPIs
# =====================================================

def outstanding_summary(
    db: Session,
    user_id: int,
    today: Optional[date] = None,
    client_id: Optional[int] = None,
) -> dict:
    today = today or date.today()

    query = db.query(Invoice).filter(Invoice.user_id == user_id)
    if client_id is not None:
        query = query.filter(Invoice.client_id == client_id)

    total_billed = 0.0
    total_paid = 0.0
    total_outstanding = 0.0
    overdue_amount = 0.0
    overdue_count = 0

    for invoice in query.all():
        due = amount_due(invoice)

        total_billed = round2(total_billed + invoice.total_amount)
        total_paid = round2(total_paid + amount_settled(invoice))
        total_outstanding = round2(total_outstanding + due)

        if effective_status(invoice, today) == OVERDUE:
            overdue_count += 1
            overdue_amount = round2(overdue_amount + due)

    collection_rate = (
        (total_paid / total_billed) * 100
        if total_billed > 0 else 0
    )

    return {
        "totalBilled": total_billed,
        "totalPaid": total_paid,
        "totalOutstanding": total_outstanding,
        "overdueAmount": overdue_amount,
        "overdueCount": overdue_count,
        "collectionRate": round2(collection_rate),
    }


# =====================================================
# REVENUE OVER TIME (daily / weekly / monthly / yearly)
# =====================================================

def revenue_over_time(
    db: Session,
    user_id: int,
    period: str = "monthly",
    from_date: Optional[date] = None,
    to_date: Optional[date] = None,
) -> list[dict]:
    if period not in PERIODS:
        raise ValidationError(f"period must be one of {', '.join(PERIODS)}")

    query = db.query(Payment.payment_date, Payment.amount).filter(Payment.user_id == user_id)

    if from_date:
        query = query.filter(Payment.payment_date >= from_date)

    if to_date:
        query = query.filter(Payment.payment_date <= to_date)

    buckets: "OrderedDict[str, float]" = OrderedDict()

    for payment_date, amount in query.order_by(Payment.payment_date.asc()).all():
        label = _bucket_label(payment_date, period)
        buckets[label] = round2(buckets.get(label, 0) + amount)

    return [
        {"label": label, "revenue": revenue}
        for label, revenue in buckets.items()
    ]


# =====================================================
# EXPENSES
# =====================================================

def expenses_by_category(
    db: Session,
    user_id: int,
    from_date: Optional[date] = None,
    to_date: Optional[date] = None,
) -> dict:
    query = (
        db.query(
            Expense.category,
            func.sum(Expense.amount).label("total"),
            func.count(Expense.id).label("count"),
        )
        .filter(Expense.user_id == user_id)
    )

    if from_date:
        query = query.filter(Expense.date >= from_date)

    if to_date:
        query = query.filter(Expense.date <= to_date)

    results = query.group_by(Expense.category).all()

    categories = sorted(
        (
            {"category": r.category, "total": round2(r.total), "count": r.count}
            for r in results
        ),
        key=lambda row: -row["total"],
    )

    return {
        "totalExpenses": round2(sum(row["total"] for row in categories)),
        "categories": categories,
    }


# =====================================================
# PROFIT & LOSS
# =====================================================

def profit_loss(
    db: Session,
    user_id: int,
    from_date: Optional[date] = None,
    to_date: Optional[date] = None,
) -> dict:
    revenue_query = db.query(func.sum(Payment.amount)).filter(Payment.user_id == user_id)
    expense_query = db.query(func.sum(Expense.amount)).filter(Expense.user_id == user_id)
    deductible_query = db.query(func.sum(Expense.amount)).filter(
        Expense.user_id == user_id,
        Expense.tax_deductible.is_(True),
    )

    if from_date:
        revenue_query = revenue_query.filter(Payment.payment_date >= from_date)
        expense_query = expense_query.filter(Expense.date >= from_date)
        deductible_query = deductible_query.filter(Expense.date >= from_date)

    if to_date:
        revenue_query = revenue_query.filter(Payment.payment_date <= to_date)
        expense_query = expense_query.filter(Expense.date <= to_date)
        deductible_query = deductible_query.filter(Expense.date <= to_date)

    revenue = round2(revenue_query.scalar())
    expenses = round2(expense_query.scalar())

    return {
        "fromDate": from_date,
        "toDate": to_date,
        "revenue": revenue,
        "expenses": expenses,
        "taxDeductibleExpenses": round2(deductible_query.scalar()),
        "netProfit": round2(revenue - expenses),
        "profitMargin": round2((revenue - expenses) / revenue * 100) if revenue > 0 else 0,
    }


# =====================================================
# TIME
# =====================================================

def _ranked(buckets: dict, limit: int = 10) -> list[dict]:
    rows = sorted(buckets.values(), key=lambda row: (-row["hours"], row["name"].lower()))
    return rows[:limit]


def time_report(
    db: Session,
    user_id: int,
    from_date: Optional[date] = None,
    to_date: Optional[date] = None,
    project_id: Optional[int] = None,
) -> dict:
    query = (
        db.query(TimeLog, Project.title, Client.id, Client.name)
        .join(Project, Project.id == TimeLog.project_id)
        .join(Client, Client.id == Project.client_id)
        .filter(TimeLog.user_id == user_id)
    )

    if from_date:
        query = query.filter(TimeLog.date >= from_date)

    if to_date:
        query = query.filter(TimeLog.date <= to_date)

    if project_id is not None:
        query = query.filter(TimeLog.project_id == project_id)

    total = billable = invoiced = unbilled = 0.0
    entries = 0
    by_project: dict = {}
    by_client: dict = {}
    daily: "OrderedDict[str, float]" = OrderedDict()

    for log, project_title, client_id, client_name in query.order_by(TimeLog.date.asc(), TimeLog.id.asc()).all():
        entries += 1
        total = round2(total + log.hours)

        if log.billable:
            billable = round2(billable + log.hours)
            if not log.invoiced:
                unbilled = round2(unbilled + log.hours)
        if log.invoiced:
            invoiced = round2(invoiced + log.hours)

        project_row = by_project.setdefault(
            log.project_id,
            {"projectId": log.project_id, "name": project_title, "hours": 0.0, "entries": 0},
        )
        project_row["hours"] = round2(project_row["hours"] + log.hours)
        project_row["entries"] += 1

        client_row = by_client.setdefault(
            client_id,
            {"clientId": client_id, "name": client_name, "hours": 0.0, "entries": 0},
        )
        client_row["hours"] = round2(client_row["hours"] + log.hours)
        client_row["entries"] += 1

        label = log.date.isoformat()
        daily[label] = round2(daily.get(label, 0) + log.hours)

    return {
        "summary": {
            "totalHours": total,
            "totalEntries": entries,
            "billableHours": billable,
            "invoicedHours": invoiced,
            "unbilledHours": unbilled,
            "billablePercentage": round2(billable / total * 100) if total > 0 else 0,
        },
        "hoursByProject": [
            {"projectId": row["projectId"], "projectName": row["name"], "hours": row["hours"], "entries": row["entries"]}
            for row in _ranked(by_project)
        ],
        "hoursByClient": [
            {"clientId": row["clientId"], "clientName": row["name"], "hours": row["hours"], "entries": row["entries"]}
            for row in _ranked(by_client)
        ],
        "dailyTrend": [{"date": label, "hours": hours} for label, hours in daily.items()],
    }


# =====================================================
# PROJECT PROFITABILITY
# =====================================================

def project_report(db: Session, user_id: int) -> dict:
    projects = (
        db.query(Project, Client.name)
        .join(Client, Client.id == Project.client_id)
        .filter(Project.user_id == user_id)
        .all()
    )

    hours = dict(
        db.query(TimeLog.project_id, func.sum(TimeLog.hours))
        .filter(TimeLog.user_id == user_id)
        .group_by(TimeLog.project_id)
        .all()
    )
    expenses = dict(
        db.query(Expense.project_id, func.sum(Expense.amount))
        .filter(Expense.user_id == user_id, Expense.project_id.isnot(None))
        .group_by(Expense.project_id)
        .all()
    )

    revenue: dict = {}
    invoices = (
        db.query(Invoice)
        .filter(Invoice.user_id == user_id, Invoice.project_id.isnot(None))
        .all()
    )
    for invoice in invoices:
        revenue[invoice.project_id] = round2(revenue.get(invoice.project_id, 0) + amount_settled(invoice))

    rows = []
    for project, client_name in projects:
        project_hours = round2(hours.get(project.id))
        project_revenue = round2(revenue.get(project.id))
        project_expenses = round2(expenses.get(project.id))
        profit = round2(project_revenue - project_expenses)

        rows.append({
            "projectId": project.id,
            "projectName": project.title,
            "clientName": client_name,
            "status": project.status,
            "hours": project_hours,
            "revenue": project_revenue,
            "expenses": project_expenses,
            "profit": profit,
            "profitMargin": round2(profit / project_revenue * 100) if project_revenue > 0 else 0,
            "effectiveHourlyRate": round2(project_revenue / project_hours) if project_hours > 0 else 0,
        })

    rows.sort(key=lambda row: (-row["profit"], row["projectName"].lower()))

    return {
        "projects": rows,
        "summary": {
            "totalProjects": len(rows),
            "profitableProjects": sum(1 for row in rows if row["profit"] > 0),
            "totalRevenue": round2(sum(row["revenue"] for row in rows)),
            "totalExpenses": round2(sum(row["expenses"] for row in rows)),
            "totalProfit": round2(sum(row["profit"] for row in rows)),
        },
    }


# =====================================================
# TAX SUMMARY
# =====================================================

MONTH_NAMES = ("Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")


def tax_report(db: Session, user_id: int, year: int) -> dict:
    """Income from invoices settled during ``year`` against deductible expenses."""
    start = datetime(year, 1, 1)
    end = datetime(year + 1, 1, 1)

    paid_invoices = (
        db.query(Invoice)
        .filter(
            Invoice.user_id == user_id,
            Invoice.status == PAID,
            Invoice.paid_at >= start,
            Invoice.paid_at < end,
        )
        .order_by(Invoice.paid_at.asc())
        .all()
    )

    gross_income = 0.0
    tax_collected = 0.0
    monthly: "OrderedDict[int, float]" = OrderedDict()

    for invoice in paid_invoices:
        settled = amount_settled(invoice)
        gross_income = round2(gross_income + settled)
        tax_collected = round2(tax_collected + invoice.tax_amount)
        month = invoice.paid_at.month
        monthly[month] = round2(monthly.get(month, 0) + settled)

    deductible = (
        db.query(
            Expense.category,
            func.sum(Expense.amount).label("total"),
            func.count(Expense.id).label("count"),
        )
        .filter(
            Expense.user_id == user_id,
            Expense.tax_deductible.is_(True),
            Expense.date >= start.date(),
            Expense.date < end.date(),
        )
        .group_by(Expense.category)
        .all()
    )

    categories = sorted(
        (
            {"category": r.category, "total": round2(r.total), "count": r.count}
            for r in deductible
        ),
        key=lambda row: (-row["total"], row["category"]),
    )
    total_deductions = round2(sum(row["total"] for row in categories))

    return {
        "year": year,
        "summary": {
            "grossIncome": gross_income,
            "totalDeductions": total_deductions,
            "taxableIncome": round2(gross_income - total_deductions),
            "taxCollected": tax_collected,
        },
        "deductibleExpenses": categories,
        "monthlyIncome": [
            {"month": MONTH_NAMES[month - 1], "income": income}
            for month, income in monthly.items()
        ],
    }


# =====================================================
# CLIENT + PROJECT STATS
# =====================================================

def clients_overview(db: Session, user_id: int) -> dict:
    invoices = db.query(Invoice).filter(Invoice.user_id == user_id).all()
    return {"outstandingAmount": round2(sum(amount_due(invoice) for invoice in invoices))}


def client_stats(db: Session, user_id: int, client_id: int) -> dict:
    projects = (
        db.query(Project)
        .filter(Project.user_id == user_id, Project.client_id == client_id)
        .all()
    )
    invoices = (
        db.query(Invoice)
        .filter(Invoice.user_id == user_id, Invoice.client_id == client_id)
        .all()
    )
    logs = (
        db.query(TimeLog)
        .join(Project, Project.id == TimeLog.project_id)
        .filter(TimeLog.user_id == user_id, Project.client_id == client_id)
        .all()
    )

    return {
        "clientId": client_id,
        "totalProjects": len(projects),
        "activeProjects": sum(1 for project in projects if project.status == "active"),
        "totalInvoices": len(invoices),
        "totalBilled": round2(sum(invoice.total_amount for invoice in invoices)),
        "totalPaid": round2(sum(amount_settled(invoice) for invoice in invoices)),
        "outstanding": round2(sum(amount_due(invoice) for invoice in invoices)),
        "totalHours": round2(sum(log.hours for log in logs)),
        "unbilledHours": round2(sum(log.hours for log in logs if log.billable and not log.invoiced)),
    }


def project_stats(db: Session, user_id: int, today: Optional[date] = None) -> dict:
    today = today or date.today()
    month_start = today.replace(day=1)

    statuses = [
        status
        for (status,) in db.query(Project.status).filter(Project.user_id == user_id).all()
    ]
    hours_this_month = (
        db.query(func.sum(TimeLog.hours))
        .filter(TimeLog.user_id == user_id, TimeLog.date >= month_start)
        .scalar()
    )

    return {
        "total": len(statuses),
        "active": sum(1 for status in statuses if status == "active"),
        "hoursThisMonth": round2(hours_this_month),
    }
