from datetime import date

from conftest import create_client_record, create_project_record, log_time


def _expense(client, headers, **overrides):
    payload = {
        "category": "Software & Tools",
        "description": "Design suite licence",
        "amount": 120,
        "date": "2025-03-02",
        "paymentMethod": "credit_card",
    }
    payload.update(overrides)
    response = client.post("/expenses", json=payload, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()


def _paid_invoice(client, headers, client_id, amount, payment_date, issue_date="2025-01-01", **extra):
    invoice = client.post(
        "/invoice",
        json={
            "clientId": client_id,
            "items": [{"description": "Work", "quantity": 1, "rate": amount}],
            "issueDate": issue_date,
            **extra,
            "dueDate": "2099-12-31",
        },
        headers=headers,
    ).json()
    response = client.post(
        "/payments",
        json={"invoiceId": invoice["id"], "amount": invoice["totalAmount"], "paymentDate": payment_date},
        headers=headers,
    )
    assert response.status_code == 201, response.text
    return invoice


def test_expense_crud(client, auth_headers):
    expense = _expense(client, auth_headers)
    assert expense["taxDeductible"] is True

    response = client.put(f"/expenses/{expense['id']}", json={"amount": 150.5}, headers=auth_headers)
    assert response.status_code == 200
    assert response.json()["amount"] == 150.5

    assert client.delete(f"/expenses/{expense['id']}", headers=auth_headers).status_code == 200
    assert client.get(f"/expenses/{expense['id']}", headers=auth_headers).status_code == 404


def test_unknown_category_is_400(client, auth_headers):
    response = client.post(
        "/expenses",
        json={"category": "Yachts", "description": "x", "amount": 1, "date": "2025-03-02"},
        headers=auth_headers,
    )

    assert response.status_code == 400
    assert "category" in response.json()["detail"]


def test_expense_linked_to_unknown_client_is_404(client, auth_headers):
    response = client.post(
        "/expenses",
        json={
            "category": "Other",
            "description": "x",
            "amount": 1,
            "date": "2025-03-02",
            "clientId": 77,
        },
        headers=auth_headers,
    )

    assert response.status_code == 404


def test_expense_summary_groups_by_category(client, auth_headers):
    _expense(client, auth_headers, amount=100)
    _expense(client, auth_headers, amount=20.25)
    _expense(client, auth_headers, category="Travel & Transportation", amount=300)

    summary = client.get("/expenses/summary", headers=auth_headers).json()

    assert summary["totalExpenses"] == 420.25
    assert summary["categories"] == [
        {"category": "Travel & Transportation", "total": 300.0, "count": 1},
        {"category": "Software & Tools", "total": 120.25, "count": 2},
    ]


def test_revenue_by_client(client, auth_headers):
    acme = create_client_record(client, auth_headers)
    globex = create_client_record(client, auth_headers, name="Globex")
    _paid_invoice(client, auth_headers, acme["id"], 300, "2025-02-10")
    _paid_invoice(client, auth_headers, globex["id"], 800, "2025-02-11")
    _paid_invoice(client, auth_headers, acme["id"], 100, "2025-03-01")

    rows = client.get("/reports/revenue-by-client", headers=auth_headers).json()

    assert rows == [
        {"clientId": globex["id"], "clientName": "Globex", "totalRevenue": 800.0, "paymentsCount": 1},
        {"clientId": acme["id"], "clientName": "Acme Corp", "totalRevenue": 400.0, "paymentsCount": 2},
    ]

    february = client.get(
        "/reports/revenue-by-client",
        params={"fromDate": "2025-02-01", "toDate": "2025-02-28"},
        headers=auth_headers,
    ).json()
    assert {row["clientName"]: row["totalRevenue"] for row in february} == {"Globex": 800.0, "Acme Corp": 300.0}


def test_revenue_by_period(client, auth_headers):
    acme = create_client_record(client, auth_headers)
    _paid_invoice(client, auth_headers, acme["id"], 300, "2025-02-10")
    _paid_invoice(client, auth_headers, acme["id"], 200, "2025-02-20")
    _paid_invoice(client, auth_headers, acme["id"], 100, "2025-03-01")

    monthly = client.get("/reports/revenue", params={"period": "monthly"}, headers=auth_headers).json()
    yearly = client.get("/reports/revenue", params={"period": "yearly"}, headers=auth_headers).json()

    assert monthly == [
        {"label": "2025-02", "revenue": 500.0},
        {"label": "2025-03", "revenue": 100.0},
    ]
    assert yearly == [{"label": "2025", "revenue": 600.0}]

    assert client.get("/reports/revenue", params={"period": "hourly"}, headers=auth_headers).status_code == 400


def test_outstanding_and_profit_loss(client, auth_headers):
    acme = create_client_record(client, auth_headers)
    _paid_invoice(client, auth_headers, acme["id"], 1000, "2025-02-10")
    client.post(
        "/invoice",
        json={
            "clientId": acme["id"],
            "items": [{"description": "Phase 2", "quantity": 1, "rate": 500}],
            "issueDate": "2025-01-01",
            "dueDate": "2025-01-31",
        },
        headers=auth_headers,
    )
    _expense(client, auth_headers, amount=250)
    _expense(client, auth_headers, category="Meals & Entertainment", amount=50, taxDeductible=False)

    outstanding = client.get("/reports/outstanding", headers=auth_headers).json()
    assert outstanding["totalBilled"] == 1500.0
    assert outstanding["totalPaid"] == 1000.0
    assert outstanding["totalOutstanding"] == 500.0
    assert outstanding["overdueCount"] == 1
    assert outstanding["overdueAmount"] == 500.0
    assert outstanding["collectionRate"] == 66.67
    assert outstanding["currency"] == "INR"

    report = client.get("/reports/profit-loss", headers=auth_headers).json()
    assert report["revenue"] == 1000.0
    assert report["expenses"] == 300.0
    assert report["taxDeductibleExpenses"] == 250.0
    assert report["netProfit"] == 700.0
    assert report["profitMargin"] == 70.0


def test_invoice_marked_paid_counts_as_collected(client, auth_headers):
    acme = create_client_record(client, auth_headers)
    invoice = client.post(
        "/invoice",
        json={
            "clientId": acme["id"],
            "items": [{"description": "Audit", "quantity": 1, "rate": 500}],
            "issueDate": "2025-01-01",
            "dueDate": "2025-01-31",
        },
        headers=auth_headers,
    ).json()

    client.put(f"/invoice/{invoice['id']}/paid", headers=auth_headers)

    outstanding = client.get("/reports/outstanding", headers=auth_headers).json()
    assert outstanding["totalBilled"] == 500.0
    assert outstanding["totalPaid"] == 500.0
    assert outstanding["totalOutstanding"] == 0.0
    assert outstanding["overdueCount"] == 0
    assert outstanding["collectionRate"] == 100.0


def test_time_report(client, auth_headers):
    acme = create_client_record(client, auth_headers)
    globex = create_client_record(client, auth_headers, name="Globex")
    website = create_project_record(client, auth_headers, acme["id"])
    mobile = create_project_record(client, auth_headers, globex["id"], title="Mobile app")
    log_time(client, auth_headers, website["id"], 2, date="2025-01-10")
    log_time(client, auth_headers, website["id"], 1.5, date="2025-01-11")
    log_time(client, auth_headers, website["id"], 3, date="2025-01-10", billable=False)
    client.post("/invoice", json={"clientId": acme["id"], "projectId": website["id"]}, headers=auth_headers)
    log_time(client, auth_headers, website["id"], 1, date="2025-01-12")
    log_time(client, auth_headers, mobile["id"], 0.5, date="2025-01-12")

    report = client.get("/reports/time", headers=auth_headers).json()

    assert report["summary"] == {
        "totalHours": 8.0,
        "totalEntries": 5,
        "billableHours": 5.0,
        "invoicedHours": 3.5,
        "unbilledHours": 1.5,
        "billablePercentage": 62.5,
    }
    assert report["hoursByProject"] == [
        {"projectId": website["id"], "projectName": "Website redesign", "hours": 7.5, "entries": 4},
        {"projectId": mobile["id"], "projectName": "Mobile app", "hours": 0.5, "entries": 1},
    ]
    assert [row["clientName"] for row in report["hoursByClient"]] == ["Acme Corp", "Globex"]
    assert report["dailyTrend"] == [
        {"date": "2025-01-10", "hours": 5.0},
        {"date": "2025-01-11", "hours": 1.5},
        {"date": "2025-01-12", "hours": 1.5},
    ]

    filtered = client.get("/reports/time", params={"projectId": mobile["id"]}, headers=auth_headers).json()
    assert filtered["summary"]["totalHours"] == 0.5


def test_project_report(client, auth_headers):
    acme = create_client_record(client, auth_headers)
    website = create_project_record(client, auth_headers, acme["id"])
    idle = create_project_record(client, auth_headers, acme["id"], title="Idle project")
    log_time(client, auth_headers, website["id"], 10)
    _paid_invoice(client, auth_headers, acme["id"], 1000, "2025-02-10", projectId=website["id"])
    _expense(client, auth_headers, amount=250, projectId=website["id"])

    report = client.get("/reports/projects", headers=auth_headers).json()

    assert report["projects"][0] == {
        "projectId": website["id"],
        "projectName": "Website redesign",
        "clientName": "Acme Corp",
        "status": "active",
        "hours": 10.0,
        "revenue": 1000.0,
        "expenses": 250.0,
        "profit": 750.0,
        "profitMargin": 75.0,
        "effectiveHourlyRate": 100.0,
    }
    assert report["projects"][1]["projectId"] == idle["id"]
    assert report["projects"][1]["profit"] == 0.0
    assert report["summary"] == {
        "totalProjects": 2,
        "profitableProjects": 1,
        "totalRevenue": 1000.0,
        "totalExpenses": 250.0,
        "totalProfit": 750.0,
    }


def test_tax_report_for_a_year(client, auth_headers):
    acme = create_client_record(client, auth_headers)
    _paid_invoice(client, auth_headers, acme["id"], 1000, "2025-03-10", taxRate=10)
    _paid_invoice(client, auth_headers, acme["id"], 500, "2024-12-20", issue_date="2024-12-01")
    _expense(client, auth_headers, amount=200, date="2025-04-01")
    _expense(client, auth_headers, category="Meals & Entertainment", amount=50, taxDeductible=False)
    _expense(client, auth_headers, amount=70, date="2024-06-01")

    report = client.get("/reports/tax", params={"year": 2025}, headers=auth_headers).json()

    assert report["year"] == 2025
    assert report["summary"] == {
        "grossIncome": 1100.0,
        "totalDeductions": 200.0,
        "taxableIncome": 900.0,
        "taxCollected": 100.0,
    }
    assert report["deductibleExpenses"] == [{"category": "Software & Tools", "total": 200.0, "count": 1}]
    assert report["monthlyIncome"] == [{"month": "Mar", "income": 1100.0}]


def test_client_stats(client, auth_headers):
    acme = create_client_record(client, auth_headers)
    website = create_project_record(client, auth_headers, acme["id"])
    create_project_record(client, auth_headers, acme["id"], title="Old site", status="completed")
    log_time(client, auth_headers, website["id"], 2)
    log_time(client, auth_headers, website["id"], 1, billable=False)
    client.post("/invoice", json={"clientId": acme["id"], "projectId": website["id"]}, headers=auth_headers)
    log_time(client, auth_headers, website["id"], 3)
    retainer = client.post(
        "/invoice",
        json={"clientId": acme["id"], "items": [{"description": "Retainer", "quantity": 1, "rate": 500}]},
        headers=auth_headers,
    ).json()
    client.put(f"/invoice/{retainer['id']}/paid", headers=auth_headers)

    stats = client.get(f"/clients/{acme['id']}/stats", headers=auth_headers).json()

    assert stats == {
        "clientId": acme["id"],
        "totalProjects": 2,
        "activeProjects": 1,
        "totalInvoices": 2,
        "totalBilled": 600.0,
        "totalPaid": 500.0,
        "outstanding": 100.0,
        "totalHours": 6.0,
        "unbilledHours": 3.0,
    }
    assert client.get("/clients/stats", headers=auth_headers).json() == {"outstandingAmount": 100.0}
    assert client.get("/clients/999/stats", headers=auth_headers).status_code == 404


def test_project_stats(client, auth_headers):
    acme = create_client_record(client, auth_headers)
    website = create_project_record(client, auth_headers, acme["id"])
    create_project_record(client, auth_headers, acme["id"], title="Old site", status="completed")
    log_time(client, auth_headers, website["id"], 2.5, date=date.today().isoformat())
    log_time(client, auth_headers, website["id"], 3, date="2020-01-10")

    stats = client.get("/projects/stats", headers=auth_headers).json()

    assert stats == {"total": 2, "active": 1, "hoursThisMonth": 2.5}
