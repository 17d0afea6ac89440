from decimal import Decimal


def _category_id(client, headers, path, name):
    categories = client.get(path, headers=headers).json()
    return next(c["id"] for c in categories if c["name"] == name)


def test_income_crud_and_filters(client, auth_headers):
    interest = _category_id(client, auth_headers, "/income-categories/", "Interest Income")
    service = _category_id(client, auth_headers, "/income-categories/", "Service Income")

    created = client.post("/income/", json={
        "category_id": interest, "amount": "12.34", "date": "2024-04-01",
        "description": "Savings interest", "status": "completed",
    }, headers=auth_headers)
    assert created.status_code == 201
    assert created.json()["category_name"] == "Interest Income"
    client.post("/income/", json={
        "category_id": service, "amount": "250", "date": "2024-04-03", "description": "Setup fee",
    }, headers=auth_headers)

    by_category = client.get("/income/", params={"category_id": service}, headers=auth_headers).json()
    assert [i["description"] for i in by_category] == ["Setup fee"]
    assert by_category[0]["status"] == "pending"

    by_search = client.get("/income/", params={"search": "INTEREST"}, headers=auth_headers).json()
    assert len(by_search) == 1

    by_amount = client.get("/income/", params={"sort": "amount_asc"}, headers=auth_headers).json()
    assert [Decimal(i["amount"]) for i in by_amount] == [Decimal("12.34"), Decimal("250.00")]

    in_range = client.get("/income/", params={"start_date": "2024-04-02", "end_date": "2024-04-30"}, headers=auth_headers).json()
    assert [i["description"] for i in in_range] == ["Setup fee"]


def test_income_requires_own_category(client, auth_headers, other_headers):
    foreign = client.get("/income-categories/", headers=other_headers).json()[0]["id"]
    response = client.post("/income/", json={"category_id": foreign, "amount": "5", "date": "2024-04-01"}, headers=auth_headers)
    assert response.status_code == 400


def test_expense_delete_and_restore(client, auth_headers):
    payroll = _category_id(client, auth_headers, "/expense-categories/", "Payroll")
    expense = client.post("/expenses/", json={
        "category_id": payroll, "amount": "900", "date": "2024-04-30",
        "vendor_name": "Staff", "tax_deductible": True,
    }, headers=auth_headers).json()
    assert expense["tax_deductible"] is True

    assert client.delete(f"/expenses/{expense['id']}", headers=auth_headers).status_code == 204
    assert client.get("/expenses/", headers=auth_headers).json() == []
    assert client.get(f"/expenses/{expense['id']}", headers=auth_headers).status_code == 404

    assert client.post(f"/expenses/{expense['id']}/restore", headers=auth_headers).status_code == 200
    assert len(client.get("/expenses/", params={"search": "staff"}, headers=auth_headers).json()) == 1


def test_category_in_use_cannot_be_deleted(client, auth_headers):
    marketing = _category_id(client, auth_headers, "/expense-categories/", "Marketing")
    expense = client.post("/expenses/", json={"category_id": marketing, "amount": "40", "date": "2024-04-02"}, headers=auth_headers).json()
    # Soft-deleted expenses still hold on to their category
    client.delete(f"/expenses/{expense['id']}", headers=auth_headers)

    assert client.delete(f"/expense-categories/{marketing}", headers=auth_headers).status_code == 409

    unused = _category_id(client, auth_headers, "/expense-categories/", "Other Expenses")
    assert client.delete(f"/expense-categories/{unused}", headers=auth_headers).status_code == 204


def test_category_names_are_unique_per_user(client, auth_headers):
    response = client.post("/income-categories/", json={"name": "Royalties", "color": "#123456"}, headers=auth_headers)
    assert response.status_code == 201
    assert response.json()["is_default"] is False

    duplicate = client.post("/income-categories/", json={"name": "Royalties"}, headers=auth_headers)
    assert duplicate.status_code == 409

    renamed = client.patch(f"/income-categories/{response.json()['id']}", json={"name": "Licensing"}, headers=auth_headers)
    assert renamed.json()["name"] == "Licensing"
