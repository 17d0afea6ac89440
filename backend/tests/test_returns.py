from decimal import Decimal

from conftest import create_customer, create_product, create_purchase_invoice, create_sales_invoice, create_vendor


def _sales_return(customer_id, product_id=None, quantity="2", unit_price="10.00", **overrides):
    item = {"quantity": quantity, "unit_price": unit_price, "reason": "Damaged in transit"}
    if product_id is None:
        item["description"] = "Returned goods"
    else:
        item["product_id"] = product_id
    payload = {"customer_id": customer_id, "return_date": "2024-03-20", "tax": "0", "items": [item]}
    payload.update(overrides)
    return payload


def test_draft_return_has_no_effect(client, auth_headers):
    customer = create_customer(client, auth_headers)
    product = create_product(client, auth_headers, stock_quantity="10")
    create_sales_invoice(client, auth_headers, customer["id"])

    response = client.post("/sales-returns/", json=_sales_return(customer["id"], product["id"]), headers=auth_headers)
    assert response.status_code == 201
    sales_return = response.json()
    assert sales_return["status"] == "draft"
    assert sales_return["return_number"] == "SR-0001"
    assert sales_return["items"][0]["reason"] == "Damaged in transit"

    assert Decimal(client.get(f"/products/{product['id']}", headers=auth_headers).json()["stock_quantity"]) == Decimal("10")
    balance = client.get(f"/customers/{customer['id']}", headers=auth_headers).json()["outstanding_balance"]
    assert Decimal(balance) == Decimal("110.00")


def test_approved_return_restocks_and_credits_customer(client, auth_headers):
    customer = create_customer(client, auth_headers)
    product = create_product(client, auth_headers, stock_quantity="10")
    invoice = create_sales_invoice(client, auth_headers, customer["id"])

    sales_return = client.post(
        "/sales-returns/", json=_sales_return(customer["id"], product["id"], original_invoice_id=invoice["id"]),
        headers=auth_headers
    ).json()
    assert sales_return["original_invoice_number"] == invoice["invoice_number"]

    approved = client.patch(f"/sales-returns/{sales_return['id']}", json={"status": "approved"}, headers=auth_headers)
    assert approved.status_code == 200

    assert Decimal(client.get(f"/products/{product['id']}", headers=auth_headers).json()["stock_quantity"]) == Decimal("12")
    balance = client.get(f"/customers/{customer['id']}", headers=auth_headers).json()["outstanding_balance"]
    assert Decimal(balance) == Decimal("90.00")

    by_invoice = client.get("/sales-returns/", params={"original_invoice_id": invoice["id"]}, headers=auth_headers).json()
    assert [r["id"] for r in by_invoice] == [sales_return["id"]]

    # Rejecting takes the goods back out and removes the credit
    client.patch(f"/sales-returns/{sales_return['id']}", json={"status": "rejected"}, headers=auth_headers)
    assert Decimal(client.get(f"/products/{product['id']}", headers=auth_headers).json()["stock_quantity"]) == Decimal("10")
    balance = client.get(f"/customers/{customer['id']}", headers=auth_headers).json()["outstanding_balance"]
    assert Decimal(balance) == Decimal("110.00")


def test_returns_cannot_exceed_invoice_total(client, auth_headers):
    customer = create_customer(client, auth_headers)
    invoice = create_sales_invoice(client, auth_headers, customer["id"])

    first = client.post("/sales-returns/", json=_sales_return(
        customer["id"], quantity="1", unit_price="100.00", original_invoice_id=invoice["id"], status="approved"
    ), headers=auth_headers)
    assert first.status_code == 201

    second = client.post("/sales-returns/", json=_sales_return(
        customer["id"], quantity="1", unit_price="20.00", original_invoice_id=invoice["id"], status="approved"
    ), headers=auth_headers)
    assert second.status_code == 400


def test_return_against_other_customers_invoice_is_rejected(client, auth_headers):
    acme = create_customer(client, auth_headers, name="Acme")
    globex = create_customer(client, auth_headers, name="Globex")
    invoice = create_sales_invoice(client, auth_headers, acme["id"])

    response = client.post("/sales-returns/", json=_sales_return(globex["id"], original_invoice_id=invoice["id"]), headers=auth_headers)
    assert response.status_code == 400


def test_delete_and_restore_return(client, auth_headers):
    customer = create_customer(client, auth_headers)
    create_sales_invoice(client, auth_headers, customer["id"])
    sales_return = client.post("/sales-returns/", json=_sales_return(customer["id"], status="completed"), headers=auth_headers).json()

    assert client.delete(f"/sales-returns/{sales_return['id']}", headers=auth_headers).status_code == 204
    assert client.get("/sales-returns/", headers=auth_headers).json() == []
    balance = client.get(f"/customers/{customer['id']}", headers=auth_headers).json()["outstanding_balance"]
    assert Decimal(balance) == Decimal("110.00")

    assert client.post(f"/sales-returns/{sales_return['id']}/restore", headers=auth_headers).status_code == 200
    balance = client.get(f"/customers/{customer['id']}", headers=auth_headers).json()["outstanding_balance"]
    assert Decimal(balance) == Decimal("90.00")


def test_purchase_return_reduces_stock_and_vendor_balance(client, auth_headers):
    vendor = create_vendor(client, auth_headers)
    product = create_product(client, auth_headers, stock_quantity="0")
    invoice = create_purchase_invoice(client, auth_headers, vendor["id"], items=[
        {"product_id": product["id"], "quantity": "10", "unit_price": "5.00"}
    ])

    response = client.post("/purchase-returns/", json={
        "vendor_id": vendor["id"],
        "return_date": "2024-03-21",
        "original_invoice_id": invoice["id"],
        "status": "approved",
        "tax": "0",
        "items": [{"product_id": product["id"], "quantity": "3", "unit_price": "5.00", "reason": "Wrong size"}],
    }, headers=auth_headers)
    assert response.status_code == 201
    assert response.json()["return_number"] == "PR-0001"

    assert Decimal(client.get(f"/products/{product['id']}", headers=auth_headers).json()["stock_quantity"]) == Decimal("7")
    vendor_after = client.get(f"/vendors/{vendor['id']}", headers=auth_headers).json()
    assert Decimal(vendor_after["outstanding_balance"]) == Decimal("35.00")
