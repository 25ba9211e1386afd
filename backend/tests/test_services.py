from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.exc import OperationalError

from partner_portal.api.dealers_api import DealerSchema, DealerUpsertRequest
from partner_portal.core.database import Database, get_db
from partner_portal.core.errors import (
    BadRequest,
    Forbidden,
    InvalidCredentials,
    NotAuthenticated,
    NotFound,
    ServerError,
    ValidationError,
)
from partner_portal.models import Dealer, User, Session as UserSession
from partner_portal.services.auth_service import AuthService, SessionContext
from partner_portal.services.dealer_service import DealerService


def broken_db():
    db = MagicMock()
    db.query.side_effect = OperationalError("SELECT 1", {}, Exception("connection refused on 10.0.0.5"))
    return db


@pytest.fixture
def db(database):
    session = database.SessionLocal()
    yield session
    session.close()


@pytest.fixture
def alice_ctx(user_ids):
    return SessionContext(user_id=user_ids["alice"], username="alice", is_partner=True)


@pytest.fixture
def bob_ctx(user_ids):
    return SessionContext(user_id=user_ids["bob"], username="bob", is_partner=True)


@pytest.fixture
def admin_ctx(user_ids):
    return SessionContext(user_id=user_ids["admin"], username="admin", is_admin=True)


# ============================================================================
# AuthService
# ============================================================================

def test_login_returns_committed_session(database, db, user_ids):
    session = AuthService(db, 24).login("alice", "alice-pass")

    other = database.SessionLocal()
    try:
        found = other.query(UserSession).filter(UserSession.session_id == session.session_id).one()
        assert found.user_id == user_ids["alice"]
    finally:
        other.close()


@pytest.mark.parametrize("username, password", [("", "x"), ("alice", ""), (None, None)])
def test_login_with_missing_fields_does_no_lookup(username, password):
    db = MagicMock()

    with pytest.raises(BadRequest):
        AuthService(db, 24).login(username, password)

    db.query.assert_not_called()


def test_login_failures_share_one_error(db, user_ids):
    service = AuthService(db, 24)

    with pytest.raises(InvalidCredentials) as unknown:
        service.login("nobody", "secret")
    with pytest.raises(InvalidCredentials) as wrong:
        service.login("alice", "secret")

    assert unknown.value.message == wrong.value.message


def test_resolve_without_cookie_is_anonymous():
    ctx = AuthService(MagicMock(), 24).resolve(None)

    assert ctx == SessionContext.anonymous()
    assert not ctx.is_authenticated


def test_resolve_copies_role_flags(db, user_ids):
    service = AuthService(db, 24)
    session = service.login("admin", "admin-pass")

    ctx = service.resolve(session.session_id)

    assert ctx.user_id == user_ids["admin"]
    assert ctx.is_admin is True
    assert ctx.is_partner is False


def test_login_database_error_is_generic():
    db = broken_db()

    with pytest.raises(ServerError) as exc:
        AuthService(db, 24).login("alice", "alice-pass")

    assert "10.0.0.5" not in exc.value.message
    db.rollback.assert_called_once()


# ============================================================================
# DealerService
# ============================================================================

def test_create_is_owned_by_caller(db, alice_ctx):
    dealer, created = DealerService(db).save_dealer(alice_ctx, {"company_name": "Acme", "phone_number": "1"})

    assert created is True
    assert dealer.partner_user_id == alice_ctx.user_id


def test_owner_cannot_be_changed_through_data(db, alice_ctx, bob_ctx):
    service = DealerService(db)
    dealer, _ = service.save_dealer(alice_ctx, {
        "company_name": "Acme",
        "phone_number": "1",
        "partner_user_id": bob_ctx.user_id,
        "id": 999,
    })

    assert dealer.partner_user_id == alice_ctx.user_id
    assert dealer.id != 999


def test_update_by_non_owner_is_forbidden_and_writes_nothing(db, alice_ctx, bob_ctx):
    service = DealerService(db)
    dealer, _ = service.save_dealer(alice_ctx, {"company_name": "Acme", "phone_number": "1"})

    with pytest.raises(Forbidden):
        service.save_dealer(bob_ctx, {"company_name": "Hacked", "phone_number": "2"}, dealer_id=dealer.id)

    db.expire_all()
    assert db.query(Dealer).filter(Dealer.id == dealer.id).one().company_name == "Acme"


def test_admin_create_is_forbidden_and_writes_nothing(db, admin_ctx):
    with pytest.raises(Forbidden):
        DealerService(db).save_dealer(admin_ctx, {"company_name": "Acme", "phone_number": "1"})

    assert db.query(Dealer).count() == 0


def test_admin_update_of_missing_dealer(db, admin_ctx):
    with pytest.raises(NotFound):
        DealerService(db).save_dealer(admin_ctx, {"company_name": "X", "phone_number": "1"}, dealer_id=77)


def test_validation_error_is_a_bad_request(db, alice_ctx):
    with pytest.raises(ValidationError) as exc:
        DealerService(db).save_dealer(alice_ctx, {"company_name": "Acme"})

    assert isinstance(exc.value, BadRequest)
    assert exc.value.status_code == 400


def test_delete_by_non_owner_is_not_found(db, alice_ctx, bob_ctx):
    service = DealerService(db)
    dealer, _ = service.save_dealer(alice_ctx, {"company_name": "Acme", "phone_number": "1"})

    with pytest.raises(NotFound):
        service.delete_dealer(bob_ctx, dealer.id)

    assert db.query(Dealer).count() == 1


def test_anonymous_context_is_rejected():
    db = MagicMock()

    with pytest.raises(NotAuthenticated):
        DealerService(db).list_dealers(SessionContext.anonymous())

    db.query.assert_not_called()


@pytest.mark.parametrize("operation", [
    lambda service, ctx: service.list_dealers(ctx),
    lambda service, ctx: service.get_dealer(ctx, 1),
    lambda service, ctx: service.delete_dealer(ctx, 1),
    lambda service, ctx: service.save_dealer(ctx, {"company_name": "A", "phone_number": "1"}, dealer_id=1),
])
def test_dealer_database_errors_become_server_errors(operation, alice_ctx):
    db = broken_db()

    with pytest.raises(ServerError) as exc:
        operation(DealerService(db), alice_ctx)

    assert "10.0.0.5" not in exc.value.message
    db.rollback.assert_called_once()


def test_database_failure_returns_generic_500(app):
    app.dependency_overrides[get_db] = broken_db
    client = TestClient(app)
    client.cookies.set("session_id", "anything")

    response = client.get("/api/dealers")

    assert response.status_code == 500
    assert response.json() == {"success": False, "message": "A server error occurred."}


# ============================================================================
# Database
# ============================================================================

def test_in_memory_database_is_shared_between_sessions():
    database = Database("sqlite://")
    database.init_db()

    first = database.SessionLocal()
    first.add(User(username="carol", password_hash="x", is_partner=True, is_admin=False))
    first.commit()
    first.close()

    second = database.SessionLocal()
    try:
        assert second.query(User).filter(User.username == "carol").count() == 1
    finally:
        second.close()
        database.dispose()


# ============================================================================
# Schemas
# ============================================================================

def test_dealer_schema_reads_orm_rows(db, alice_ctx):
    dealer, _ = DealerService(db).save_dealer(alice_ctx, {"company_name": "Acme", "phone_number": "1"})

    schema = DealerSchema.model_validate(dealer)

    assert schema.id == dealer.id
    assert schema.partner_username == "alice"


def test_upsert_request_takes_field_names_or_aliases():
    by_alias = DealerUpsertRequest.model_validate({"companyName": "Acme", "phoneNumber": "1", "id": ""})
    by_name = DealerUpsertRequest(company_name="Acme", phone_number="1")

    assert by_alias.id is None
    assert by_alias.model_dump(exclude={"id"}) == by_name.model_dump(exclude={"id"})
