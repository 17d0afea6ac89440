from decimal import Decimal

from conftest import create_customer, create_purchase_invoice, create_sales_invoice, create_vendor


def _payment(customer_id, allocations=None, **overrides):
    payload = {
        "customer_id": customer_id,
        "payment_date": "2024-03-10",
        "payment_method": "bank_transfer",
        "items": [{"invoice_id": invoice_id, "amount": amount} for invoice_id, amount in (allocations or [])],
    }
    payload.update(overrides)
    return payload


def test_amount_is_sum_of_allocations(client, auth_headers):
    customer = create_customer(client, auth_headers)
    first = create_sales_invoice(client, auth_headers, customer["id"])
    second = create_sales_invoice(client, auth_headers, customer["id"])

    response = client.post("/payments-in/", json=_payment(customer["id"], [(first["id"], "110.00"), (second["id"], "40.00")]), headers=auth_headers)
    assert response.status_code == 201
    payment = response.json()
    assert Decimal(payment["amount"]) == Decimal("150.00")
    assert payment["payment_number"] == "PAY-IN-0001"
    assert {item["invoice_number"] for item in payment["items"]} == {first["invoice_number"], second["invoice_number"]}

    customer_after = client.get(f"/customers/{customer['id']}", headers=auth_headers).json()
    assert Decimal(customer_after["outstanding_balance"]) == Decimal("70.00")
    assert Decimal(customer_after["total_purchases"]) == Decimal("220.00")


def test_amount_mismatch_is_rejected(client, auth_headers):
    customer = create_customer(client, auth_headers)
    invoice = create_sales_invoice(client, auth_headers, customer["id"])
    response = client.post("/payments-in/", json=_payment(customer["id"], [(invoice["id"], "50.00")], amount="60.00"), headers=auth_headers)
    assert response.status_code == 400


def test_overpaying_an_invoice_is_rejected(client, auth_headers):
    customer = create_customer(client, auth_headers)
    invoice = create_sales_invoice(client, auth_headers, customer["id"])
    client.post("/payments-in/", json=_payment(customer["id"], [(invoice["id"], "100.00")]), headers=auth_headers)

    response = client.post("/payments-in/", json=_payment(customer["id"], [(invoice["id"], "20.00")]), headers=auth_headers)
    assert response.status_code == 400


def test_invoice_of_another_customer_is_rejected(client, auth_headers):
    acme = create_customer(client, auth_headers, name="Acme")
    globex = create_customer(client, auth_headers, name="Globex")
    invoice = create_sales_invoice(client, auth_headers, acme["id"])

    response = client.post("/payments-in/", json=_payment(globex["id"], [(invoice["id"], "10.00")]), headers=auth_headers)
    assert response.status_code == 400


def test_on_account_payment_needs_an_amount(client, auth_headers):
    customer = create_customer(client, auth_headers)
    create_sales_invoice(client, auth_headers, customer["id"])

    assert client.post("/payments-in/", json=_payment(customer["id"]), headers=auth_headers).status_code == 400

    response = client.post("/payments-in/", json=_payment(customer["id"], amount="25.00"), headers=auth_headers)
    assert response.status_code == 201
    balance = client.get(f"/customers/{customer['id']}", headers=auth_headers).json()["outstanding_balance"]
    assert Decimal(balance) == Decimal("85.00")


def test_total_paid_for_invoice(client, auth_headers):
    customer = create_customer(client, auth_headers)
    invoice = create_sales_invoice(client, auth_headers, customer["id"])
    client.post("/payments-in/", json=_payment(customer["id"], [(invoice["id"], "30.00")]), headers=auth_headers)
    client.post("/payments-in/", json=_payment(customer["id"], [(invoice["id"], "12.50")]), headers=auth_headers)

    response = client.get(f"/payments-in/invoices/{invoice['id']}/total-paid", headers=auth_headers)
    assert response.status_code == 200
    assert Decimal(response.json()["total_paid"]) == Decimal("42.50")

    assert client.get("/payments-in/invoices/9999/total-paid", headers=auth_headers).status_code == 404


def test_update_moves_allocation_between_invoices(client, auth_headers):
    customer = create_customer(client, auth_headers)
    first = create_sales_invoice(client, auth_headers, customer["id"])
    second = create_sales_invoice(client, auth_headers, customer["id"])
    payment = client.post("/payments-in/", json=_payment(customer["id"], [(first["id"], "110.00")]), headers=auth_headers).json()

    response = client.patch(f"/payments-in/{payment['id']}", json={
        "items": [{"invoice_id": second["id"], "amount": "55.00"}]
    }, headers=auth_headers)
    assert response.status_code == 200
    assert Decimal(response.json()["amount"]) == Decimal("55.00")

    assert client.get(f"/sales-invoices/{first['id']}", headers=auth_headers).json()["status"] == "unpaid"
    assert client.get(f"/sales-invoices/{second['id']}", headers=auth_headers).json()["status"] == "partially_paid"


def test_cancelled_payment_releases_invoice(client, auth_headers):
    customer = create_customer(client, auth_headers)
    invoice = create_sales_invoice(client, auth_headers, customer["id"])
    payment = client.post("/payments-in/", json=_payment(customer["id"], [(invoice["id"], "110.00")]), headers=auth_headers).json()

    client.patch(f"/payments-in/{payment['id']}", json={"status": "cancelled"}, headers=auth_headers)
    stored = client.get(f"/sales-invoices/{invoice['id']}", headers=auth_headers).json()
    assert stored["status"] == "unpaid"
    assert Decimal(stored["amount_paid"]) == 0


def test_restore_revalidates_allocations(client, auth_headers):
    customer = create_customer(client, auth_headers)
    invoice = create_sales_invoice(client, auth_headers, customer["id"])
    first = client.post("/payments-in/", json=_payment(customer["id"], [(invoice["id"], "110.00")]), headers=auth_headers).json()

    assert client.delete(f"/payments-in/{first['id']}", headers=auth_headers).status_code == 204
    client.post("/payments-in/", json=_payment(customer["id"], [(invoice["id"], "110.00")]), headers=auth_headers)

    response = client.post(f"/payments-in/{first['id']}/restore", headers=auth_headers)
    assert response.status_code == 400


def test_payment_search_and_status_filter(client, auth_headers):
    customer = create_customer(client, auth_headers, name="Northwind")
    client.post("/payments-in/", json=_payment(customer["id"], amount="10", reference_number="CHQ-778"), headers=auth_headers)
    client.post("/payments-in/", json=_payment(customer["id"], amount="20", status="pending"), headers=auth_headers)

    assert len(client.get("/payments-in/", params={"search": "chq-778"}, headers=auth_headers).json()) == 1
    assert len(client.get("/payments-in/", params={"search": "NORTHWIND"}, headers=auth_headers).json()) == 2
    pending = client.get("/payments-in/", params={"status": "pending"}, headers=auth_headers).json()
    assert [Decimal(p["amount"]) for p in pending] == [Decimal("20.00")]


def test_payment_out_settles_purchase_invoice(client, auth_headers):
    vendor = create_vendor(client, auth_headers)
    invoice = create_purchase_invoice(client, auth_headers, vendor["id"])

    response = client.post("/payments-out/", json={
        "vendor_id": vendor["id"],
        "payment_date": "2024-03-12",
        "items": [{"invoice_id": invoice["id"], "amount": "50.00"}],
    }, headers=auth_headers)
    assert response.status_code == 201
    assert response.json()["payment_number"] == "PAY-OUT-0001"

    stored = client.get(f"/purchase-invoices/{invoice['id']}", headers=auth_headers).json()
    assert stored["status"] == "paid"
    vendor_after = client.get(f"/vendors/{vendor['id']}", headers=auth_headers).json()
    assert Decimal(vendor_after["outstanding_balance"]) == 0
    assert vendor_after["last_purchase_date"] == "2024-03-01"

    paid = client.get(f"/payments-out/invoices/{invoice['id']}/total-paid", headers=auth_headers).json()
    assert Decimal(paid["total_paid"]) == Decimal("50.00")
