"""Special pytest fixture configuration file.

This file automatically provides all fixtures defined in it to all
pytest tests in this directory and sub directories.

Every test gets its own in-memory SQLite database with the storefront tables
and three registered users. Nobody is an admin until a test adds them.
"""
from unittest import mock

import pytest

from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool

from storefront_admin import passwords
from storefront_admin.db import create_tables, make_session_factory
from storefront_admin.factory import create_app
from storefront_admin.mail import MailSession
from storefront_admin.roster import AdminRoster
from storefront_admin.services.identity import SQLIdentityProvider
from storefront_admin.services.rowstore import SQLRowStore

SQLALCHEMY_DATABASE_URL = "sqlite://"

PASSWORD = "correct horse battery"


@pytest.fixture(autouse=True)
def fast_password_hashing(monkeypatch):
    monkeypatch.setattr(passwords, "_ROUNDS", 1_000)


@pytest.fixture
def engine():
    engine = create_engine(SQLALCHEMY_DATABASE_URL,
                           connect_args={"check_same_thread": False},
                           poolclass=StaticPool)
    create_tables(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def SessionLocal(engine):
    return make_session_factory(engine)


@pytest.fixture
def store(SessionLocal):
    return SQLRowStore(SessionLocal)


@pytest.fixture
def secret():
    return "testing_secret"


@pytest.fixture
def mailer():
    """Records outgoing email instead of talking to an SMTP service."""
    return mock.MagicMock(spec=MailSession)


@pytest.fixture
def identity(store, secret, mailer):
    return SQLIdentityProvider(store, secret, session_duration=120, mailer=mailer)


@pytest.fixture
def users(identity):
    """Registered users by first name."""
    return {
        "alice": identity.create_user("alice@shop.test", PASSWORD),
        "bob": identity.create_user("bob@shop.test", PASSWORD),
        "carol": identity.create_user("carol@shop.test", PASSWORD),
    }


@pytest.fixture
def roster(store, identity):
    return AdminRoster(store, identity)


@pytest.fixture
def app(store, identity):
    return create_app(store=store, identity=identity, testing=True)


@pytest.fixture
def client(app):
    return TestClient(app)


@pytest.fixture
def login(client):
    """Signs in through the API and returns the bearer header."""
    def _login(email, password=PASSWORD):
        res = client.post("/login", json={"email": email, "password": password})
        assert res.status_code == 200, res.text
        client.cookies.clear()
        return {"Authorization": f"Bearer {res.json()['token']}"}
    return _login
