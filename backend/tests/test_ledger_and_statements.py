from decimal import Decimal

from conftest import create_customer, create_purchase_invoice, create_sales_invoice, create_vendor


def _expense_category(client, headers):
    return next(c["id"] for c in client.get("/expense-categories/", headers=headers).json() if c["name"] == "Operating Expenses")


def _seed_books(client, headers):
    customer = create_customer(client, headers)
    invoice = create_sales_invoice(client, headers, customer["id"])  # 110.00
    client.post("/payments-in/", json={
        "customer_id": customer["id"], "payment_date": "2024-03-05",
        "items": [{"invoice_id": invoice["id"], "amount": "50.00"}],
    }, headers=headers)
    client.post("/expenses/", json={
        "category_id": _expense_category(client, headers), "amount": "30.00", "date": "2024-03-06",
    }, headers=headers)
    return customer, invoice


def test_each_document_posts_balanced_entries(client, auth_headers):
    _, invoice = _seed_books(client, auth_headers)

    entries = client.get(f"/ledger/reference/sales_invoice/{invoice['id']}", headers=auth_headers).json()
    assert sorted(e["entry_type"] for e in entries) == ["credit", "debit"]
    assert {Decimal(e["amount"]) for e in entries} == {Decimal("110.00")}

    report = client.get("/ledger/", headers=auth_headers).json()
    assert Decimal(report["total_debit"]) == Decimal(report["total_credit"]) == Decimal("190.00")
    assert Decimal(report["closing_balance"]) == 0


def test_ledger_for_one_account_keeps_running_balance(client, auth_headers):
    _seed_books(client, auth_headers)
    groups = client.get("/account-groups/", params={"type": "asset"}, headers=auth_headers).json()
    receivable = next(g for g in groups if g["name"] == "Accounts Receivable")

    report = client.get("/ledger/", params={"account_id": receivable["id"]}, headers=auth_headers).json()
    assert [Decimal(e["balance"]) for e in report["entries"]] == [Decimal("110.00"), Decimal("60.00")]
    assert Decimal(report["closing_balance"]) == Decimal("60.00")

    later = client.get("/ledger/", params={"account_id": receivable["id"], "start_date": "2024-03-05"}, headers=auth_headers).json()
    assert Decimal(later["opening_balance"]) == Decimal("110.00")
    assert len(later["entries"]) == 1

    assert client.get("/ledger/", params={"account_id": 9999}, headers=auth_headers).status_code == 404


def test_balance_sheet_balances(client, auth_headers):
    _seed_books(client, auth_headers)
    vendor = create_vendor(client, auth_headers)
    create_purchase_invoice(client, auth_headers, vendor["id"])  # 50.00 on credit

    sheet = client.get("/financial-reports/balance-sheet", params={"as_of_date": "2024-12-31"}, headers=auth_headers).json()
    assert sheet["balanced"] is True
    assert Decimal(sheet["total_assets"]) == Decimal("130.00")
    assert Decimal(sheet["liabilities"]["total"]) == Decimal("50.00")
    assert Decimal(sheet["retained_earnings"]) == Decimal("80.00")
    assert Decimal(sheet["total_liabilities_and_equity"]) == Decimal(sheet["total_assets"])

    before = client.get("/financial-reports/balance-sheet", params={"as_of_date": "2024-01-01"}, headers=auth_headers).json()
    assert Decimal(before["total_assets"]) == 0


def test_profit_and_loss(client, auth_headers):
    _seed_books(client, auth_headers)
    pnl = client.get("/financial-reports/profit-and-loss", params={
        "start_date": "2024-03-01", "end_date": "2024-03-31"
    }, headers=auth_headers).json()
    assert Decimal(pnl["revenue"]["total"]) == Decimal("110.00")
    assert Decimal(pnl["expenses"]["total"]) == Decimal("30.00")
    assert Decimal(pnl["net_income"]) == Decimal("80.00")

    bad = client.get("/financial-reports/profit-and-loss", params={
        "start_date": "2024-04-01", "end_date": "2024-03-01"
    }, headers=auth_headers)
    assert bad.status_code == 400


def test_cancelled_and_deleted_documents_leave_the_ledger(client, auth_headers):
    customer = create_customer(client, auth_headers)
    invoice = create_sales_invoice(client, auth_headers, customer["id"])
    client.patch(f"/sales-invoices/{invoice['id']}", json={"status": "cancelled"}, headers=auth_headers)
    assert client.get(f"/ledger/reference/sales_invoice/{invoice['id']}", headers=auth_headers).json() == []

    other = create_sales_invoice(client, auth_headers, customer["id"])
    client.delete(f"/sales-invoices/{other['id']}", headers=auth_headers)
    assert client.get(f"/ledger/reference/sales_invoice/{other['id']}", headers=auth_headers).json() == []


def test_account_group_rules(client, auth_headers):
    created = client.post("/account-groups/", json={"name": "Petty Cash", "type": "asset"}, headers=auth_headers)
    assert created.status_code == 201
    assert client.post("/account-groups/", json={"name": "Petty Cash", "type": "asset"}, headers=auth_headers).status_code == 409

    by_type = client.get("/account-groups/by-type/asset", headers=auth_headers).json()
    assert "Petty Cash" in [g["name"] for g in by_type]

    default_group = next(g for g in client.get("/account-groups/", headers=auth_headers).json() if g["name"] == "Bank/Cash")
    assert client.delete(f"/account-groups/{default_group['id']}", headers=auth_headers).status_code == 400
    assert client.patch(f"/account-groups/{default_group['id']}", json={"name": "Cash"}, headers=auth_headers).status_code == 400
    assert client.delete(f"/account-groups/{created.json()['id']}", headers=auth_headers).status_code == 204


def test_transaction_feed_signs_amounts(client, auth_headers):
    _seed_books(client, auth_headers)

    feed = client.get("/transactions/", headers=auth_headers).json()
    amounts = {row["transaction_type"]: Decimal(row["amount"]) for row in feed}
    assert amounts["sales_invoice"] == Decimal("110.00")
    assert amounts["payment_in"] == Decimal("50.00")
    assert amounts["expense"] == Decimal("-30.00")

    summary = client.get("/transactions/summary", headers=auth_headers).json()
    assert {row["transaction_type"]: row["count"] for row in summary} == {"sales_invoice": 1, "payment_in": 1, "expense": 1}

    expenses_only = client.get("/transactions/", params={"transaction_type": "expense"}, headers=auth_headers).json()
    assert len(expenses_only) == 1
