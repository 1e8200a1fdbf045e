"""Shared fixtures: an app on in-memory SQLite and helpers to get a bearer token."""

from __future__ import annotations

import pytest

from aesvault import create_app

TEST_KEY = "0123456789abcdef0123456789abcdef"
OTHER_KEY = "fedcba9876543210fedcba9876543210"
TEST_JWT_SECRET = "test-jwt-secret-that-is-long-enough-for-hs256"


def make_test_config(**overrides) -> dict:
    config = {
        "TESTING": True,
        "SQLALCHEMY_DATABASE_URI": "sqlite://",
        "ENCRYPTION_KEY": TEST_KEY,
        "JWT_SECRET_KEY": TEST_JWT_SECRET,
        "HISTORY_LIMIT": 10,
    }
    config.update(overrides)
    return config


@pytest.fixture
def app():
    return create_app(make_test_config())


@pytest.fixture
def client(app):
    return app.test_client()


def register(client, name="A", email="a@x.com", password="pw"):
    return client.post(
        "/api/users/register",
        json={"name": name, "email": email, "password": password},
    )


def login(client, email="a@x.com", password="pw"):
    return client.post("/api/users/login", json={"email": email, "password": password})


def auth_header(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def make_user(client):
    """Register a user and return (user_id, auth headers)."""

    def _make(name="A", email="a@x.com", password="pw"):
        assert register(client, name, email, password).status_code == 201
        r = login(client, email, password)
        assert r.status_code == 200
        return r.get_json()["user"]["id"], auth_header(r.get_json()["token"])

    return _make
