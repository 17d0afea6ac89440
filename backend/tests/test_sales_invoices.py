from datetime import date
from decimal import Decimal

from conftest import create_customer, create_sales_invoice
from tasks.eod_tasks import run_eod_tasks


def _pay(client, headers, customer_id, invoice_id, amount):
    response = client.post("/payments-in/", json={
        "customer_id": customer_id,
        "payment_date": "2024-03-05",
        "items": [{"invoice_id": invoice_id, "amount": amount}],
    }, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()


def test_totals_are_computed_server_side(client, auth_headers):
    customer = create_customer(client, auth_headers)
    invoice = create_sales_invoice(client, auth_headers, customer["id"], items=[
        {"description": "Design", "quantity": "2", "unit_price": "30.00"},
        {"description": "Hosting", "quantity": "1", "unit_price": "40.00"},
    ], tax="7.50")

    assert Decimal(invoice["subtotal"]) == Decimal("100.00")
    assert Decimal(invoice["tax"]) == Decimal("7.50")
    assert Decimal(invoice["total"]) == Decimal(invoice["subtotal"]) + Decimal(invoice["tax"])
    assert [Decimal(i["line_total"]) for i in invoice["items"]] == [Decimal("60.00"), Decimal("40.00")]
    assert invoice["invoice_number"] == "SI-0001"
    assert invoice["status"] == "unpaid"


def test_tax_defaults_to_configured_rate(client, auth_headers):
    customer = create_customer(client, auth_headers)
    invoice = create_sales_invoice(client, auth_headers, customer["id"], tax=None)
    assert Decimal(invoice["tax"]) == Decimal("10.00")

    client.patch("/settings/", json={"default_tax_rate": "0.05"}, headers=auth_headers)
    invoice = create_sales_invoice(client, auth_headers, customer["id"], tax=None)
    assert Decimal(invoice["tax"]) == Decimal("5.00")
    assert Decimal(invoice["total"]) == Decimal("105.00")


def test_duplicate_invoice_number_conflicts(client, auth_headers):
    customer = create_customer(client, auth_headers)
    create_sales_invoice(client, auth_headers, customer["id"], invoice_number="INV-7")
    response = client.post("/sales-invoices/", json={
        "customer_id": customer["id"],
        "invoice_number": "INV-7",
        "invoice_date": "2024-03-02",
        "items": [{"description": "Work", "quantity": "1", "unit_price": "5"}],
    }, headers=auth_headers)
    assert response.status_code == 409


def test_list_filters_and_amount_sort(client, auth_headers):
    acme = create_customer(client, auth_headers, name="Acme Corp")
    globex = create_customer(client, auth_headers, name="Globex")
    small = create_sales_invoice(client, auth_headers, acme["id"], items=[{"description": "a", "quantity": "1", "unit_price": "10"}], tax="0")
    large = create_sales_invoice(client, auth_headers, globex["id"], items=[{"description": "b", "quantity": "1", "unit_price": "500"}], tax="0")
    cancelled = create_sales_invoice(client, auth_headers, acme["id"], status="cancelled")

    by_amount = client.get("/sales-invoices/", params={"sort": "amount_desc"}, headers=auth_headers).json()
    assert [i["id"] for i in by_amount][:2] == [large["id"], cancelled["id"]]
    assert by_amount[-1]["id"] == small["id"]

    only_cancelled = client.get("/sales-invoices/", params={"status": "cancelled"}, headers=auth_headers).json()
    assert [i["id"] for i in only_cancelled] == [cancelled["id"]]

    by_customer_name = client.get("/sales-invoices/", params={"search": "gLoBeX"}, headers=auth_headers).json()
    assert [i["id"] for i in by_customer_name] == [large["id"]]

    bad_sort = client.get("/sales-invoices/", params={"sort": "sideways"}, headers=auth_headers)
    assert bad_sort.status_code == 400


def test_delete_hides_invoice_and_restore_brings_it_back(client, auth_headers):
    customer = create_customer(client, auth_headers)
    invoice = create_sales_invoice(client, auth_headers, customer["id"])

    assert client.delete(f"/sales-invoices/{invoice['id']}", headers=auth_headers).status_code == 204
    assert client.get("/sales-invoices/", headers=auth_headers).json() == []
    assert client.get(f"/sales-invoices/{invoice['id']}", headers=auth_headers).status_code == 404
    assert Decimal(client.get(f"/customers/{customer['id']}", headers=auth_headers).json()["outstanding_balance"]) == 0

    restored = client.post(f"/sales-invoices/{invoice['id']}/restore", headers=auth_headers)
    assert restored.status_code == 200
    assert [i["id"] for i in client.get("/sales-invoices/", headers=auth_headers).json()] == [invoice["id"]]
    assert Decimal(client.get(f"/customers/{customer['id']}", headers=auth_headers).json()["outstanding_balance"]) == Decimal("110.00")

    # A live invoice cannot be restored
    assert client.post(f"/sales-invoices/{invoice['id']}/restore", headers=auth_headers).status_code == 404


def test_deleted_number_is_not_reused(client, auth_headers):
    customer = create_customer(client, auth_headers)
    first = create_sales_invoice(client, auth_headers, customer["id"])
    client.delete(f"/sales-invoices/{first['id']}", headers=auth_headers)
    second = create_sales_invoice(client, auth_headers, customer["id"])
    assert second["invoice_number"] == "SI-0002"


def test_status_follows_payments(client, auth_headers):
    customer = create_customer(client, auth_headers)
    invoice = create_sales_invoice(client, auth_headers, customer["id"])

    first = _pay(client, auth_headers, customer["id"], invoice["id"], "50.00")
    stored = client.get(f"/sales-invoices/{invoice['id']}", headers=auth_headers).json()
    assert stored["status"] == "partially_paid"
    assert Decimal(stored["balance_due"]) == Decimal("60.00")

    _pay(client, auth_headers, customer["id"], invoice["id"], "60.00")
    stored = client.get(f"/sales-invoices/{invoice['id']}", headers=auth_headers).json()
    assert stored["status"] == "paid"
    assert Decimal(stored["amount_paid"]) == Decimal("110.00")

    client.delete(f"/payments-in/{first['id']}", headers=auth_headers)
    stored = client.get(f"/sales-invoices/{invoice['id']}", headers=auth_headers).json()
    assert stored["status"] == "partially_paid"

    payments = client.get(f"/sales-invoices/{invoice['id']}/payments", headers=auth_headers).json()
    assert len(payments) == 1


def test_invoice_with_payments_cannot_be_deleted_or_cancelled(client, auth_headers):
    customer = create_customer(client, auth_headers)
    invoice = create_sales_invoice(client, auth_headers, customer["id"])
    _pay(client, auth_headers, customer["id"], invoice["id"], "10.00")

    assert client.delete(f"/sales-invoices/{invoice['id']}", headers=auth_headers).status_code == 409
    response = client.patch(f"/sales-invoices/{invoice['id']}", json={"status": "cancelled"}, headers=auth_headers)
    assert response.status_code == 400


def test_update_replaces_items_and_recomputes(client, auth_headers):
    customer = create_customer(client, auth_headers)
    invoice = create_sales_invoice(client, auth_headers, customer["id"])

    response = client.patch(f"/sales-invoices/{invoice['id']}", json={
        "items": [{"description": "Rework", "quantity": "3", "unit_price": "20.00"}],
        "tax": "6.00",
    }, headers=auth_headers)
    assert response.status_code == 200
    updated = response.json()
    assert len(updated["items"]) == 1
    assert Decimal(updated["subtotal"]) == Decimal("60.00")
    assert Decimal(updated["total"]) == Decimal("66.00")


def test_past_due_invoice_is_overdue(client, auth_headers):
    customer = create_customer(client, auth_headers)
    invoice = create_sales_invoice(client, auth_headers, customer["id"], due_date="2024-03-15")
    assert invoice["status"] == "overdue"


def test_overdue_uses_business_date(client, auth_headers, monkeypatch):
    monkeypatch.setattr("crud.balances.business_today", lambda: date(2024, 3, 10))
    customer = create_customer(client, auth_headers)

    not_yet_due = create_sales_invoice(client, auth_headers, customer["id"], due_date="2024-03-15")
    due_today = create_sales_invoice(client, auth_headers, customer["id"], due_date="2024-03-10")
    past_due = create_sales_invoice(client, auth_headers, customer["id"], due_date="2024-03-09")
    assert [not_yet_due["status"], due_today["status"], past_due["status"]] == ["unpaid", "unpaid", "overdue"]


def test_end_of_day_task_marks_overdue(client, auth_headers, db_session):
    customer = create_customer(client, auth_headers)
    invoice = create_sales_invoice(client, auth_headers, customer["id"], due_date="2099-01-01")
    paid = create_sales_invoice(client, auth_headers, customer["id"], due_date="2099-01-01")
    _pay(client, auth_headers, customer["id"], paid["id"], "110.00")
    assert invoice["status"] == "unpaid"

    result = run_eod_tasks(db=db_session, today=date(2100, 1, 1))
    assert result == {"sales_invoices": 1, "purchase_invoices": 0}

    assert client.get(f"/sales-invoices/{invoice['id']}", headers=auth_headers).json()["status"] == "overdue"
    assert client.get(f"/sales-invoices/{paid['id']}", headers=auth_headers).json()["status"] == "paid"


def test_sales_order_lifecycle(client, auth_headers):
    customer = create_customer(client, auth_headers)
    response = client.post("/sales-orders/", json={
        "customer_id": customer["id"],
        "order_date": "2024-02-01",
        "tax": "1.00",
        "items": [{"description": "Quote line", "quantity": "4", "unit_price": "2.50"}],
    }, headers=auth_headers)
    assert response.status_code == 201
    order = response.json()
    assert order["status"] == "draft"
    assert Decimal(order["total"]) == Decimal("11.00")

    confirmed = client.patch(f"/sales-orders/{order['id']}", json={"status": "confirmed"}, headers=auth_headers)
    assert confirmed.json()["status"] == "confirmed"

    # Orders never touch the customer balance
    assert Decimal(client.get(f"/customers/{customer['id']}", headers=auth_headers).json()["outstanding_balance"]) == 0
