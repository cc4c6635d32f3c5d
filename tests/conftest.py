"""Pytest configuration and shared fixtures."""

import os

# Must be set before `models` is imported: DBStorage reads it at import time
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["APP_ENV"] = "test"

import pytest

from api import create_app
from models import storage
from models.user import User, Role
from utils.security import hash_password
from utils.token_service import TokenConfig, TokenService

TEST_TOKEN_CONFIG = TokenConfig(
    signing_key="test-jwt-signing-key-0123456789abcdef",
    issuer="botanic-garden-api",
    audience="botanic-garden-clients",
    refresh_token_secret="test-refresh-secret",
)


@pytest.fixture
def db():
    """Fresh schema for every test."""
    storage.drop_all()
    storage.reload()
    yield storage
    storage.close()


@pytest.fixture
def token_service(db):
    return TokenService(TEST_TOKEN_CONFIG, db)


@pytest.fixture
def make_user(db):
    def _make_user(email="a@x.com", password="pw1", role=Role.USER):
        user = User(email=email, password_hash=hash_password(password), role=role)
        db.new(user)
        db.save()
        return user

    return _make_user


@pytest.fixture
def app(db, tmp_path):
    app = create_app("testing")
    app.config["UPLOAD_FOLDER"] = str(tmp_path / "uploads")
    return app


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def register(client):
    def _register(email="a@x.com", password="pw1"):
        return client.post("/api/v1/auth/register", json={"email": email, "password": password})

    return _register


@pytest.fixture
def auth_headers(register):
    """Bearer headers for a freshly registered user."""
    resp = register("gardener@x.com", "secret-pw")
    assert resp.status_code == 200
    return {"Authorization": f"Bearer {resp.get_json()['access_token']}"}


@pytest.fixture
def admin_headers(client, make_user):
    make_user("admin@x.com", "admin-pw", role=Role.ADMIN)
    resp = client.post("/api/v1/auth/login", json={"email": "admin@x.com", "password": "admin-pw"})
    assert resp.status_code == 200
    return {"Authorization": f"Bearer {resp.get_json()['access_token']}"}
