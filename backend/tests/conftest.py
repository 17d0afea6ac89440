"""
Pytest fixtures for the BizHub Books API tests.

Every test gets a fresh in-memory SQLite schema shared by the test client and
the ``db_session`` fixture.
"""

import os
import tempfile

# Settings are read at import time, so the environment is prepared first
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["ENABLE_SCHEDULER"] = "false"
os.environ["ENABLE_DEBUG_ROUTES"] = "false"
os.environ["DEFAULT_TAX_RATE"] = "0.10"
os.environ["LOG_DIR"] = os.path.join(tempfile.gettempdir(), "bizhub-test-logs")

from datetime import date

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import models  # noqa: F401
from database import Base, get_db
from main import app

engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture(scope='function')
def db_session():
    """Create a fresh schema for each test."""
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    yield session
    session.close()
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope='function')
def client(db_session):
    def override_get_db():
        db = TestingSessionLocal()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def register(client, email="owner@example.com", password="secret123", name="Owner"):
    response = client.post("/auth/register", json={"email": email, "password": password, "name": name})
    assert response.status_code == 201, response.text
    return {"Authorization": f"Bearer {response.json()['access_token']}"}


@pytest.fixture(scope='function')
def auth_headers(client):
    """Headers of a freshly registered user."""
    return register(client)


@pytest.fixture(scope='function')
def other_headers(client):
    """A second user, for isolation checks."""
    return register(client, email="other@example.com", name="Other")


def create_customer(client, headers, **overrides):
    payload = {"name": "Acme Corp", "email": "billing@acme.example.com"}
    payload.update(overrides)
    response = client.post("/customers/", json=payload, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()


def create_vendor(client, headers, **overrides):
    payload = {"name": "Widget Supply"}
    payload.update(overrides)
    response = client.post("/vendors/", json=payload, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()


def create_product(client, headers, **overrides):
    payload = {"product_name": "Widget", "sku": "WID-1", "cost_price": "4.00", "selling_price": "10.00", "stock_quantity": "100"}
    payload.update(overrides)
    response = client.post("/products/", json=payload, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()


def create_sales_invoice(client, headers, customer_id, items=None, **overrides):
    payload = {
        "customer_id": customer_id,
        "invoice_date": date(2024, 3, 1).isoformat(),
        "items": items or [{"description": "Consulting", "quantity": "1", "unit_price": "100.00"}],
        "tax": "10.00",
    }
    payload.update(overrides)
    response = client.post("/sales-invoices/", json=payload, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()


def create_purchase_invoice(client, headers, vendor_id, items=None, **overrides):
    payload = {
        "vendor_id": vendor_id,
        "invoice_date": date(2024, 3, 1).isoformat(),
        "items": items or [{"description": "Raw material", "quantity": "2", "unit_price": "25.00"}],
        "tax": "0",
    }
    payload.update(overrides)
    response = client.post("/purchase-invoices/", json=payload, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()
