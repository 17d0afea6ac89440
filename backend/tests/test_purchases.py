from decimal import Decimal

from conftest import create_product, create_purchase_invoice, create_vendor


def _feed(client, headers, reference_type, reference_id):
    return client.get(f"/transactions/reference/{reference_type}/{reference_id}", headers=headers).json()


def test_purchase_order_lifecycle(client, auth_headers):
    vendor = create_vendor(client, auth_headers)
    product = create_product(client, auth_headers)
    response = client.post("/purchase-orders/", json={
        "vendor_id": vendor["id"],
        "order_date": "2024-02-10",
        "tax": "0",
        "items": [{"product_id": product["id"], "description": "Restock", "quantity": "3", "unit_price": "20.00"}],
    }, headers=auth_headers)
    assert response.status_code == 201
    order = response.json()
    assert order["order_number"] == "PO-0001"
    assert order["status"] == "draft"
    assert order["vendor_name"] == "Widget Supply"
    assert Decimal(order["total"]) == Decimal("60.00")

    # Outflow in the feed, nothing in the ledger, no stock or balance change
    feed = _feed(client, auth_headers, "purchase_order", order["id"])
    assert [Decimal(t["amount"]) for t in feed] == [Decimal("-60.00")]
    assert client.get(f"/ledger/reference/purchase_order/{order['id']}", headers=auth_headers).json() == []
    assert Decimal(client.get(f"/products/{product['id']}", headers=auth_headers).json()["stock_quantity"]) == Decimal("100")
    assert Decimal(client.get(f"/vendors/{vendor['id']}", headers=auth_headers).json()["outstanding_balance"]) == 0

    updated = client.patch(f"/purchase-orders/{order['id']}", json={
        "status": "pending",
        "items": [{"description": "Restock", "quantity": "5", "unit_price": "20.00"}],
    }, headers=auth_headers).json()
    assert updated["status"] == "pending"
    assert Decimal(updated["total"]) == Decimal("100.00")
    assert [Decimal(t["amount"]) for t in _feed(client, auth_headers, "purchase_order", order["id"])] == [Decimal("-100.00")]

    pending = client.get("/purchase-orders/", params={"status": "pending"}, headers=auth_headers).json()
    assert [o["id"] for o in pending] == [order["id"]]

    assert client.delete(f"/purchase-orders/{order['id']}", headers=auth_headers).status_code == 204
    assert client.get("/purchase-orders/", headers=auth_headers).json() == []
    assert _feed(client, auth_headers, "purchase_order", order["id"]) == []

    restored = client.post(f"/purchase-orders/{order['id']}/restore", headers=auth_headers)
    assert restored.status_code == 200
    assert [o["id"] for o in client.get("/purchase-orders/", headers=auth_headers).json()] == [order["id"]]
    assert len(_feed(client, auth_headers, "purchase_order", order["id"])) == 1


def test_purchase_order_rejects_inactive_vendor(client, auth_headers):
    vendor = create_vendor(client, auth_headers, status="inactive")
    response = client.post("/purchase-orders/", json={
        "vendor_id": vendor["id"],
        "order_date": "2024-02-10",
        "items": [{"description": "Anything", "quantity": "1", "unit_price": "1"}],
    }, headers=auth_headers)
    assert response.status_code == 400


def test_purchase_invoice_search_and_sort(client, auth_headers):
    supply = create_vendor(client, auth_headers, name="Widget Supply")
    metals = create_vendor(client, auth_headers, name="Northern Metals")
    small = create_purchase_invoice(client, auth_headers, supply["id"])
    large = create_purchase_invoice(
        client, auth_headers, metals["id"],
        items=[{"description": "Steel", "quantity": "10", "unit_price": "30.00"}],
    )
    oldest = create_purchase_invoice(client, auth_headers, supply["id"], invoice_date="2024-01-15", invoice_number="VEND-77")

    by_amount = client.get("/purchase-invoices/", params={"sort": "amount_asc"}, headers=auth_headers).json()
    totals = [Decimal(i["total"]) for i in by_amount]
    assert totals == sorted(totals)
    assert by_amount[-1]["id"] == large["id"]

    by_date = client.get("/purchase-invoices/", params={"sort": "oldest"}, headers=auth_headers).json()
    assert [i["id"] for i in by_date] == [oldest["id"], small["id"], large["id"]]

    by_vendor = client.get("/purchase-invoices/", params={"search": "northern"}, headers=auth_headers).json()
    assert [i["id"] for i in by_vendor] == [large["id"]]

    by_number = client.get("/purchase-invoices/", params={"search": "vend-7"}, headers=auth_headers).json()
    assert [i["id"] for i in by_number] == [oldest["id"]]
