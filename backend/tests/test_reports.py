from decimal import Decimal
from io import BytesIO

import pandas as pd

from conftest import create_customer, create_product, create_sales_invoice


def test_sales_report_summary_and_groupings(client, auth_headers):
    acme = create_customer(client, auth_headers, name="Acme")
    globex = create_customer(client, auth_headers, name="Globex")
    product = create_product(client, auth_headers, cost_price="4.00")
    create_sales_invoice(client, auth_headers, acme["id"], items=[
        {"product_id": product["id"], "quantity": "3", "unit_price": "10.00"}
    ], tax="3.00")
    create_sales_invoice(client, auth_headers, globex["id"], invoice_date="2024-03-02", tax="0", items=[
        {"description": "Support", "quantity": "1", "unit_price": "70.00"}
    ])
    create_sales_invoice(client, auth_headers, acme["id"], status="cancelled")

    report = client.get("/reports/sales", headers=auth_headers).json()
    assert len(report["rows"]) == 3
    assert report["summary"]["count"] == 2
    assert Decimal(report["summary"]["total"]) == Decimal("103.00")
    assert Decimal(report["summary"]["average"]) == Decimal("51.50")

    assert [c["counterparty_name"] for c in report["by_counterparty"]] == ["Globex", "Acme"]
    widget = next(p for p in report["by_product"] if p["product_id"] == product["id"])
    assert Decimal(widget["cost_of_goods"]) == Decimal("12.00")
    assert {s["status"] for s in report["by_status"]} == {"unpaid", "cancelled"}


def test_report_date_range(client, auth_headers):
    customer = create_customer(client, auth_headers)
    create_sales_invoice(client, auth_headers, customer["id"], invoice_date="2024-01-15")
    create_sales_invoice(client, auth_headers, customer["id"], invoice_date="2024-02-15")

    report = client.get("/reports/sales", params={"start_date": "2024-02-01", "end_date": "2024-02-28"}, headers=auth_headers).json()
    assert [r["date"] for r in report["rows"]] == ["2024-02-15"]

    assert client.get("/reports/sales", params={"start_date": "2024-03-01", "end_date": "2024-02-01"}, headers=auth_headers).status_code == 400


def test_expense_report_by_category(client, auth_headers):
    categories = {c["name"]: c["id"] for c in client.get("/expense-categories/", headers=auth_headers).json()}
    for category, amount in (("Payroll", "300"), ("Payroll", "100"), ("Marketing", "100")):
        client.post("/expenses/", json={"category_id": categories[category], "amount": amount, "date": "2024-05-01"}, headers=auth_headers)
    client.post("/expenses/", json={
        "category_id": categories["Marketing"], "amount": "999", "date": "2024-05-02", "status": "cancelled"
    }, headers=auth_headers)

    report = client.get("/reports/expenses", headers=auth_headers).json()
    assert report["summary"]["count"] == 3
    assert Decimal(report["summary"]["total"]) == Decimal("500.00")
    assert Decimal(report["summary"]["max"]) == Decimal("300.00")
    payroll = report["by_category"][0]
    assert payroll["category_name"] == "Payroll"
    assert Decimal(payroll["percentage"]) == Decimal("80.00")


def test_export_returns_a_workbook(client, auth_headers):
    customer = create_customer(client, auth_headers)
    create_sales_invoice(client, auth_headers, customer["id"])

    response = client.get("/reports/sales/export", headers=auth_headers)
    assert response.status_code == 200
    assert response.headers["content-type"].startswith("application/vnd.openxmlformats-officedocument.spreadsheetml.sheet")
    assert "sales_report_all.xlsx" in response.headers["content-disposition"]

    sheets = pd.read_excel(BytesIO(response.content), sheet_name=None)
    assert {"Invoices", "Summary", "By Customer"} <= set(sheets)
    assert sheets["Invoices"]["number"].tolist() == ["SI-0001"]


def test_transaction_report(client, auth_headers):
    customer = create_customer(client, auth_headers)
    create_sales_invoice(client, auth_headers, customer["id"])

    report = client.get("/reports/transactions", headers=auth_headers).json()
    assert Decimal(report["net_total"]) == Decimal("110.00")
    assert len(report["transactions"]) == 1


def test_income_report_by_payment_method(client, auth_headers):
    category_id = client.get("/income-categories/", headers=auth_headers).json()[0]["id"]
    for method, amount in (("cash", "40"), ("bank_transfer", "150"), ("cash", "20"), ("upi", "5")):
        client.post("/income/", json={
            "category_id": category_id, "amount": amount, "date": "2024-06-01", "payment_method": method
        }, headers=auth_headers)

    report = client.get("/reports/income", headers=auth_headers).json()
    methods = [(m["payment_method"], m["count"], Decimal(m["total"])) for m in report["by_payment_method"]]
    assert methods == [
        ("bank_transfer", 1, Decimal("150.00")),
        ("cash", 2, Decimal("60.00")),
        ("upi", 1, Decimal("5.00")),
    ]

    export = client.get("/reports/income/export", headers=auth_headers)
    sheets = pd.read_excel(BytesIO(export.content), sheet_name=None)
    assert sorted(sheets["By Payment Method"]["payment_method"]) == ["bank_transfer", "cash", "upi"]
