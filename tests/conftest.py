"""Shared fixtures: in-memory database and API client."""

import os

# Must be set before sincut.settings is imported
os.environ["ENV"] = "test"
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["LOG_LEVEL"] = "WARNING"

import pytest
from fastapi.testclient import TestClient

from sincut.api.main import app
from sincut.storage.db import db

PASSWORD = "S3cure!Passw0rd"


@pytest.fixture(autouse=True)
def clean_db():
    """Fresh schema for every test."""
    db.drop_tables()
    db.create_tables()
    yield


@pytest.fixture
def client():
    with TestClient(app) as test_client:
        yield test_client


def register(client, email, referral_code=None, name=None, password=PASSWORD):
    payload = {
        "email": email,
        "password": password,
        "agreedToPrivacyPolicy": True,
    }
    if name:
        payload["name"] = name
    if referral_code:
        payload["referralCode"] = referral_code
    return client.post("/api/auth/register", json=payload)


def auth_headers(token):
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def registered(client):
    """Register a user and return (response json, headers)."""
    response = register(client, "alice@example.com", name="Alice")
    assert response.status_code == 201
    data = response.json()
    return data, auth_headers(data["accessToken"])
