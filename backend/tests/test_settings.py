from decimal import Decimal

import config
from conftest import create_customer, create_sales_invoice
from models.app_config import AppConfig


def test_app_settings_roundtrip(client, auth_headers):
    response = client.patch("/settings/", json={"currency": "EUR", "default_tax_rate": "0.2"}, headers=auth_headers)
    assert response.status_code == 200
    assert response.json()["currency"] == "EUR"
    assert Decimal(response.json()["default_tax_rate"]) == Decimal("0.2")

    assert client.patch("/settings/", json={"default_tax_rate": "1.5"}, headers=auth_headers).status_code == 422


def test_configuration_entries(client, auth_headers):
    created = client.post("/settings/configurations/", json={"name": "invoice_footer", "value": "Thanks!"}, headers=auth_headers)
    assert created.status_code == 201
    assert client.post("/settings/configurations/", json={"name": "invoice_footer", "value": "x"}, headers=auth_headers).status_code == 409

    updated = client.patch("/settings/configurations/invoice_footer/", json={"value": "Thank you"}, headers=auth_headers)
    assert updated.json()["value"] == "Thank you"

    listed = client.get("/settings/configurations/", params={"name": "invoice_footer"}, headers=auth_headers).json()
    assert [c["value"] for c in listed] == ["Thank you"]

    assert client.delete("/settings/configurations/invoice_footer/", headers=auth_headers).status_code == 204
    assert client.get("/settings/configurations/", params={"name": "invoice_footer"}, headers=auth_headers).json() == []


def test_reset_database_is_hidden_by_default(client, auth_headers):
    response = client.post("/settings/reset-database", headers=auth_headers)
    assert response.status_code == 404
    assert client.get("/users/me", headers=auth_headers).status_code == 200


def test_reset_database_when_enabled(client, auth_headers, monkeypatch):
    monkeypatch.setattr(config, "ENABLE_DEBUG_ROUTES", True)
    client.post("/customers/", json={"name": "Doomed"}, headers=auth_headers)

    response = client.post("/settings/reset-database", headers=auth_headers)
    assert response.status_code == 200

    # Every user is gone, so the old token no longer resolves
    assert client.get("/users/me", headers=auth_headers).status_code == 401
    fresh = client.post("/auth/register", json={"email": "owner@example.com", "password": "secret123", "name": "Owner"})
    assert fresh.status_code == 201


def test_typed_configuration_values_are_validated(client, auth_headers):
    for value in ("5", "-0.1", "NaN", "abc"):
        response = client.patch("/settings/configurations/default_tax_rate/", json={"value": value}, headers=auth_headers)
        assert response.status_code == 400, value
    bad_currency = client.patch("/settings/configurations/currency/", json={"value": "EURO"}, headers=auth_headers)
    assert bad_currency.status_code == 400

    ok = client.patch("/settings/configurations/default_tax_rate/", json={"value": "0.15"}, headers=auth_headers)
    assert ok.status_code == 200
    assert Decimal(client.get("/settings/", headers=auth_headers).json()["default_tax_rate"]) == Decimal("0.15")


def test_stored_invalid_tax_rate_falls_back_to_default(client, auth_headers, db_session):
    user_id = client.get("/users/me", headers=auth_headers).json()["id"]
    customer = create_customer(client, auth_headers)

    for stored in ("5", "NaN"):
        row = db_session.query(AppConfig).filter(AppConfig.user_id == user_id, AppConfig.name == "default_tax_rate").one()
        row.value = stored
        db_session.commit()

        response = client.get("/settings/", headers=auth_headers)
        assert response.status_code == 200
        assert Decimal(response.json()["default_tax_rate"]) == Decimal("0.10")

        invoice = create_sales_invoice(client, auth_headers, customer["id"], tax=None)
        assert Decimal(invoice["tax"]) == Decimal("10.00")
