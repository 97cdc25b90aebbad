import pytest

from conftest import create_client_record


@pytest.fixture()
def invoice(client, auth_headers):
    owner = create_client_record(client, auth_headers)
    response = client.post(
        "/invoice",
        json={
            "clientId": owner["id"],
            "items": [{"description": "Retainer", "quantity": 1, "rate": 1000}],
            "taxRate": 18,
            "issueDate": "2025-03-01",
            "dueDate": "2099-12-31",
        },
        headers=auth_headers,
    )
    assert response.status_code == 201, response.text
    return response.json()


def _pay(client, headers, invoice_id, amount, **overrides):
    payload = {
        "invoiceId": invoice_id,
        "amount": amount,
        "paymentDate": "2025-03-10",
        "paymentMethod": "bank_transfer",
    }
    payload.update(overrides)
    return client.post("/payments", json=payload, headers=headers)


def test_partial_then_full_payment_settles_invoice(client, auth_headers, invoice):
    first = _pay(client, auth_headers, invoice["id"], 500)

    assert first.status_code == 201, first.text
    assert first.json()["invoiceStatus"] == "unpaid"
    assert first.json()["amountPaid"] == 500.0
    assert first.json()["amountDue"] == 680.0

    second = _pay(client, auth_headers, invoice["id"], 680, referenceNumber="UTR-42")

    assert second.status_code == 201
    assert second.json()["invoiceStatus"] == "paid"
    assert second.json()["amountDue"] == 0.0
    assert second.json()["payment"]["referenceNumber"] == "UTR-42"

    stored = client.get(f"/invoice/{invoice['id']}", headers=auth_headers).json()
    assert stored["status"] == "paid"
    assert stored["paidAt"] is not None


def test_overpayment_is_rejected(client, auth_headers, invoice):
    response = _pay(client, auth_headers, invoice["id"], 1180.01)

    assert response.status_code == 400
    assert "exceeds amount due (1180.0)" in response.json()["detail"]


def test_non_positive_amount_is_rejected(client, auth_headers, invoice):
    response = _pay(client, auth_headers, invoice["id"], 0)

    assert response.status_code == 400
    assert "amount" in response.json()["detail"]


def test_paid_invoice_takes_no_payment(client, auth_headers, invoice):
    _pay(client, auth_headers, invoice["id"], 1180)

    response = _pay(client, auth_headers, invoice["id"], 1)

    assert response.status_code == 400
    assert response.json()["detail"] == "Invoice already paid"


def test_payment_for_unknown_invoice_is_404(client, auth_headers):
    response = _pay(client, auth_headers, 404, 10)

    assert response.status_code == 404


def test_deleting_payment_reopens_invoice(client, auth_headers, invoice):
    payment = _pay(client, auth_headers, invoice["id"], 1180).json()["payment"]

    response = client.delete(f"/payments/{payment['id']}", headers=auth_headers)

    assert response.status_code == 200
    assert response.json()["invoiceStatus"] == "unpaid"

    stored = client.get(f"/invoice/{invoice['id']}", headers=auth_headers).json()
    assert stored["amountPaid"] == 0.0
    assert stored["paidAt"] is None


def test_invoice_with_payments_cannot_be_deleted(client, auth_headers, invoice):
    _pay(client, auth_headers, invoice["id"], 100)

    response = client.delete(f"/invoice/{invoice['id']}", headers=auth_headers)

    assert response.status_code == 409


def test_list_filters(client, auth_headers, invoice):
    _pay(client, auth_headers, invoice["id"], 100, paymentDate="2025-03-05", paymentMethod="upi")
    _pay(client, auth_headers, invoice["id"], 200, paymentDate="2025-04-05")

    by_method = client.get("/payments", params={"paymentMethod": "upi"}, headers=auth_headers).json()
    by_range = client.get(
        "/payments",
        params={"startDate": "2025-04-01", "endDate": "2025-04-30"},
        headers=auth_headers,
    ).json()
    by_invoice = client.get(f"/payments/invoice/{invoice['id']}", headers=auth_headers).json()

    assert [p["amount"] for p in by_method] == [100.0]
    assert [p["amount"] for p in by_range] == [200.0]
    assert [p["amount"] for p in by_invoice] == [200.0, 100.0]
