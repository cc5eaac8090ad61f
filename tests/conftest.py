"""Shared fixtures: a fresh in-memory database per test."""

import pytest

from listing_service.app import create_app
from listing_service.config import TestConfig
from listing_service.model import db, Product


@pytest.fixture
def app():
    app = create_app(TestConfig)
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def register(client):
    def _register(user_name="alice", password="s3cret"):
        return client.post("/register", json={"user_name": user_name, "password": password})
    return _register


@pytest.fixture
def auth_headers(client, register):
    register()
    resp = client.post("/login", json={"user_name": "alice", "password": "s3cret"})
    return {"Authorization": f"Bearer {resp.get_json()['token']}"}


@pytest.fixture
def make_product(app):
    def _make(name, price=10.0):
        product = Product(name=name, price=price)
        db.session.add(product)
        db.session.commit()
        return product.id
    return _make
