from conftest import register


def test_register_returns_token_and_seeds_books(client, auth_headers):
    groups = client.get("/account-groups/", headers=auth_headers).json()
    names = {group["name"] for group in groups}
    assert {"Bank/Cash", "Accounts Receivable", "Accounts Payable", "Sales Revenue", "Expenses"} <= names
    assert all(group["is_default"] for group in groups)

    income_categories = client.get("/income-categories/", headers=auth_headers).json()
    expense_categories = client.get("/expense-categories/", headers=auth_headers).json()
    assert len(income_categories) == 4
    assert len(expense_categories) == 6

    settings = client.get("/settings/", headers=auth_headers).json()
    assert settings["currency"] == "USD"


def test_register_duplicate_email_conflicts(client, auth_headers):
    response = client.post("/auth/register", json={"email": "OWNER@example.com", "password": "secret123", "name": "Again"})
    assert response.status_code == 409


def test_login(client, auth_headers):
    response = client.post("/auth/login", json={"email": "owner@example.com", "password": "secret123"})
    assert response.status_code == 200
    token = response.json()["access_token"]

    me = client.get("/users/me", headers={"Authorization": f"Bearer {token}"})
    assert me.status_code == 200
    assert me.json()["email"] == "owner@example.com"


def test_login_wrong_password(client, auth_headers):
    response = client.post("/auth/login", json={"email": "owner@example.com", "password": "wrong-password"})
    assert response.status_code == 401


def test_protected_routes_need_a_token(client, db_session):
    assert client.get("/customers/").status_code == 401
    assert client.get("/customers/", headers={"Authorization": "Bearer not-a-token"}).status_code == 401
    assert client.get("/customers/", headers={"Authorization": "Token abc"}).status_code == 401


def test_update_profile_and_password(client, auth_headers):
    response = client.patch("/users/me", json={"name": "Renamed", "theme": "dark"}, headers=auth_headers)
    assert response.status_code == 200
    assert response.json()["name"] == "Renamed"
    assert response.json()["theme"] == "dark"

    bad = client.post("/users/me/password", json={"current_password": "nope", "new_password": "another1"}, headers=auth_headers)
    assert bad.status_code == 400

    ok = client.post("/users/me/password", json={"current_password": "secret123", "new_password": "another1"}, headers=auth_headers)
    assert ok.status_code == 200
    login = client.post("/auth/login", json={"email": "owner@example.com", "password": "another1"})
    assert login.status_code == 200


def test_company_profile_upsert(client, auth_headers):
    assert client.get("/company", headers=auth_headers).status_code == 404

    created = client.put("/company", json={"name": "Owner Trading", "city": "Pune"}, headers=auth_headers)
    assert created.status_code == 200
    updated = client.put("/company", json={"name": "Owner Trading LLP", "city": "Pune"}, headers=auth_headers)
    assert updated.json()["id"] == created.json()["id"]
    assert client.get("/company", headers=auth_headers).json()["name"] == "Owner Trading LLP"


def test_users_only_see_their_own_data(client, auth_headers):
    other = register(client, email="second@example.com", name="Second")
    client.post("/customers/", json={"name": "Private Customer"}, headers=auth_headers)

    assert client.get("/customers/", headers=other).json() == []
    assert len(client.get("/customers/", headers=auth_headers).json()) == 1
