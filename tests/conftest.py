"""Shared fixtures: a fake transaction and an authenticated test client."""

import os
import tempfile
from contextlib import asynccontextmanager
from unittest.mock import MagicMock

import pytest

# Must be set before ecommerce_api.main is imported (it mounts the image dir).
os.environ.setdefault("IMG_DIR", tempfile.mkdtemp(prefix="ecommerce-img-"))

from fastapi.testclient import TestClient  # noqa: E402

from ecommerce_api.auth import dependencies as auth_dependencies  # noqa: E402
from ecommerce_api.core import db  # noqa: E402
from ecommerce_api.main import app  # noqa: E402

ADMIN = {"email": "admin@shop.test", "role": "Admin", "cart_id": None, "created_at": None}
CUSTOMER = {"email": "ana@shop.test", "role": "User", "cart_id": 7, "created_at": None}


@pytest.fixture
def fake_conn(monkeypatch):
    """Replace db.transaction() with one that yields a mock connection."""
    conn = MagicMock(name="conn")

    @asynccontextmanager
    async def _transaction():
        yield conn

    monkeypatch.setattr(db, "transaction", _transaction)
    return conn


@pytest.fixture
def client_as():
    """Build a TestClient whose requests run as the given user."""

    def _make(user):
        app.dependency_overrides[auth_dependencies.get_current_user] = lambda: user
        return TestClient(app)

    yield _make
    app.dependency_overrides.clear()


@pytest.fixture
def anonymous_client():
    app.dependency_overrides.clear()
    return TestClient(app)
