import os

# Cheap hashes for tests; must be set before the settings module is imported
os.environ.setdefault("BCRYPT_ROUNDS", "4")

import pytest
from fastapi.testclient import TestClient

from partner_portal.core.config import Settings
from partner_portal.core.database import Database
from partner_portal.core.security import hash_password
from partner_portal.main import create_app
from partner_portal.models import User

PASSWORDS = {
    "alice": "alice-pass",
    "bob": "bob-pass",
    "admin": "admin-pass",
}


@pytest.fixture
def settings(tmp_path):
    return Settings(
        DATABASE_URL=f"sqlite:///{tmp_path / 'portal.db'}",
        SESSION_LIFETIME_HOURS=24,
        ENVIRONMENT="test",
    )


@pytest.fixture
def database(settings):
    database = Database(settings.DATABASE_URL)
    database.init_db()
    yield database
    database.dispose()


@pytest.fixture
def user_ids(database):
    """alice and bob are partners, admin is an administrator"""
    db = database.SessionLocal()
    try:
        users = [
            User(username="alice", password_hash=hash_password(PASSWORDS["alice"]), is_partner=True, is_admin=False),
            User(username="bob", password_hash=hash_password(PASSWORDS["bob"]), is_partner=True, is_admin=False),
            User(username="admin", password_hash=hash_password(PASSWORDS["admin"]), is_partner=False, is_admin=True),
        ]
        db.add_all(users)
        db.commit()
        return {user.username: user.id for user in users}
    finally:
        db.close()


@pytest.fixture
def app(settings, database, user_ids):
    return create_app(settings, database)


@pytest.fixture
def client(app):
    return TestClient(app)


@pytest.fixture
def login(app):
    """Returns a logged in TestClient for the given username"""
    def _login(username):
        client = TestClient(app)
        response = client.post("/auth/login", json={"username": username, "password": PASSWORDS[username]})
        assert response.status_code == 200, response.text
        return client
    return _login


@pytest.fixture
def alice(login):
    return login("alice")


@pytest.fixture
def bob(login):
    return login("bob")


@pytest.fixture
def admin(login):
    return login("admin")


@pytest.fixture
def make_dealer():
    """POSTs a new dealer as the given client and returns the dealer JSON"""
    def _make_dealer(client, **fields):
        payload = {"companyName": "Acme", "phoneNumber": "555-0100"}
        payload.update(fields)
        response = client.post("/api/dealers", json=payload)
        assert response.status_code == 200, response.text
        return response.json()["dealer"]
    return _make_dealer
