from decimal import Decimal

from conftest import create_customer, create_product, create_sales_invoice, create_vendor


def test_customer_search_is_case_insensitive(client, auth_headers):
    create_customer(client, auth_headers, name="Acme Corp")
    create_customer(client, auth_headers, name="Globex", email="ap@globex.example.com")

    results = client.get("/customers/", params={"search": "aCmE"}, headers=auth_headers).json()
    assert [c["name"] for c in results] == ["Acme Corp"]

    by_email = client.get("/customers/", params={"search": "GLOBEX.EXAMPLE"}, headers=auth_headers).json()
    assert [c["name"] for c in by_email] == ["Globex"]


def test_customer_search_treats_wildcards_literally(client, auth_headers):
    create_customer(client, auth_headers, name="Acme Corp")
    create_customer(client, auth_headers, name="100% Organic", email=None)
    create_customer(client, auth_headers, name="Blue_Sky", email=None)

    def names(term):
        return [c["name"] for c in client.get("/customers/", params={"search": term}, headers=auth_headers).json()]

    assert names("%") == ["100% Organic"]
    assert names("_") == ["Blue_Sky"]
    assert names("e_s") == ["Blue_Sky"]


def test_customer_status_filter_and_tags(client, auth_headers):
    create_customer(client, auth_headers, name="Active One", tags=["wholesale", "north"])
    create_customer(client, auth_headers, name="Dormant", status="inactive")

    active = client.get("/customers/", params={"status": "active"}, headers=auth_headers).json()
    assert [c["name"] for c in active] == ["Active One"]
    assert active[0]["tags"] == ["wholesale", "north"]


def test_delete_customer_without_documents(client, auth_headers):
    customer = create_customer(client, auth_headers)
    response = client.delete(f"/customers/{customer['id']}", headers=auth_headers)
    assert response.status_code == 204
    assert client.get(f"/customers/{customer['id']}", headers=auth_headers).status_code == 404


def test_delete_customer_with_documents_marks_inactive(client, auth_headers):
    customer = create_customer(client, auth_headers)
    create_sales_invoice(client, auth_headers, customer["id"])

    response = client.delete(f"/customers/{customer['id']}", headers=auth_headers)
    assert response.status_code == 409

    stored = client.get(f"/customers/{customer['id']}", headers=auth_headers).json()
    assert stored["status"] == "inactive"


def test_inactive_customer_cannot_take_new_invoices(client, auth_headers):
    customer = create_customer(client, auth_headers, status="inactive")
    response = client.post("/sales-invoices/", json={
        "customer_id": customer["id"],
        "invoice_date": "2024-03-01",
        "items": [{"description": "Work", "quantity": "1", "unit_price": "5"}],
    }, headers=auth_headers)
    assert response.status_code == 400


def test_vendor_crud(client, auth_headers):
    vendor = create_vendor(client, auth_headers, name="Parts Inc")
    updated = client.patch(f"/vendors/{vendor['id']}", json={"phone": "555-0100"}, headers=auth_headers)
    assert updated.status_code == 200
    assert updated.json()["phone"] == "555-0100"
    assert client.delete(f"/vendors/{vendor['id']}", headers=auth_headers).status_code == 204


def test_duplicate_sku_conflicts(client, auth_headers):
    create_product(client, auth_headers, sku="SKU-1")
    response = client.post("/products/", json={"product_name": "Copy", "sku": "SKU-1"}, headers=auth_headers)
    assert response.status_code == 409


def test_sales_invoice_moves_stock(client, auth_headers):
    customer = create_customer(client, auth_headers)
    product = create_product(client, auth_headers, stock_quantity="20")

    invoice = create_sales_invoice(client, auth_headers, customer["id"], items=[
        {"product_id": product["id"], "quantity": "5", "unit_price": "10.00"}
    ])
    assert invoice["items"][0]["description"] == "Widget"
    stock = client.get(f"/products/{product['id']}", headers=auth_headers).json()["stock_quantity"]
    assert Decimal(stock) == Decimal("15")

    client.delete(f"/sales-invoices/{invoice['id']}", headers=auth_headers)
    stock = client.get(f"/products/{product['id']}", headers=auth_headers).json()["stock_quantity"]
    assert Decimal(stock) == Decimal("20")


def test_purchase_invoice_adds_stock_and_low_stock_filter(client, auth_headers):
    vendor = create_vendor(client, auth_headers)
    product = create_product(client, auth_headers, stock_quantity="2", reorder_level="5")

    low = client.get("/products/", params={"low_stock": True}, headers=auth_headers).json()
    assert [p["id"] for p in low] == [product["id"]]

    client.post("/purchase-invoices/", json={
        "vendor_id": vendor["id"],
        "invoice_date": "2024-03-01",
        "tax": "0",
        "items": [{"product_id": product["id"], "quantity": "10", "unit_price": "4.00"}],
    }, headers=auth_headers)

    stock = client.get(f"/products/{product['id']}", headers=auth_headers).json()["stock_quantity"]
    assert Decimal(stock) == Decimal("12")
    assert client.get("/products/", params={"low_stock": True}, headers=auth_headers).json() == []


def test_product_in_use_is_deactivated_on_delete(client, auth_headers):
    customer = create_customer(client, auth_headers)
    product = create_product(client, auth_headers)
    create_sales_invoice(client, auth_headers, customer["id"], items=[
        {"product_id": product["id"], "quantity": "1", "unit_price": "10.00"}
    ])

    assert client.delete(f"/products/{product['id']}", headers=auth_headers).status_code == 409
    assert client.get(f"/products/{product['id']}", headers=auth_headers).json()["is_active"] is False


def test_customer_history_records_updates(client, auth_headers, other_headers):
    customer = create_customer(client, auth_headers, name="Acme Corp")
    client.patch(f"/customers/{customer['id']}", json={"name": "Acme Holdings"}, headers=auth_headers)
    client.patch(f"/customers/{customer['id']}", json={"phone": "555-0100"}, headers=auth_headers)

    history = client.get(f"/customers/{customer['id']}/history", headers=auth_headers).json()
    assert [h["action"] for h in history] == ["UPDATE", "UPDATE"]
    assert history[0]["new_values"]["phone"] == "555-0100"
    assert history[1]["old_values"]["name"] == "Acme Corp"
    assert history[1]["new_values"]["name"] == "Acme Holdings"

    assert client.get(f"/customers/{customer['id']}/history", headers=other_headers).status_code == 404
