"""Pytest fixtures: in-memory MongoDB (mongomock), API client and an admin token."""

import os

os.environ["JWT_ADMIN_SECRET"] = "test-secret"
os.environ["DISABLE_CLOUDINARY"] = "true"
os.environ["ENVIRONMENT"] = "test"
os.environ.pop("DATABASE_URL", None)

import mongomock
import pytest
from fastapi.testclient import TestClient

import database
from main import app
from setup_admin import create_admin

ADMIN_EMAIL = "admin@example.com"
ADMIN_PASSWORD = "secret123"


@pytest.fixture
def db(monkeypatch):
    mock_db = mongomock.MongoClient()["storefront_test"]
    monkeypatch.setattr(database, "db", mock_db)
    return mock_db


@pytest.fixture
def client(db):
    with TestClient(app) as c:
        yield c


@pytest.fixture
def admin(db):
    return create_admin("ADMIN001", ADMIN_EMAIL, ADMIN_PASSWORD, "Admin User")


@pytest.fixture
def auth_headers(client, admin):
    res = client.post("/api/v1/auth/login", json={"email": ADMIN_EMAIL, "password": ADMIN_PASSWORD})
    assert res.status_code == 200
    return {"Authorization": f"Bearer {res.json()['data']['token']}"}


@pytest.fixture
def make_product(client, auth_headers):
    def _make(**overrides):
        payload = {
            "name": "Wireless Headphones",
            "description": "Noise-cancelling over-ear headphones",
            "price": 129.99,
            "before_price": 179.99,
            "after_price": 129.99,
            "discount_price": 50.0,
            "has_offer": False,
            "stock": 25,
            "category_id": "cat_1",
            "section_id": "featured",
        }
        payload.update(overrides)
        res = client.post("/api/v1/products", json=payload, headers=auth_headers)
        assert res.status_code == 201, res.text
        return res.json()["data"]
    return _make
