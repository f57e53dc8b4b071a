from datetime import timedelta

import pytest

from aura.extensions import db
from aura.models import SessionToken
from aura.services import session_service
from aura.time_utils import utcnow

from conftest import auth_headers


def test_token_is_stored_hashed(db_session, customer):
    session, token = session_service.create_session(customer.id, user_agent="pytest", ip_address="127.0.0.1")

    assert len(token) == 64
    assert session.token_hash == session_service.hash_token(token)
    assert session.token_hash != token
    assert db.session.query(SessionToken).filter_by(token_hash=token).count() == 0


def test_validate_session_returns_user(db_session, customer):
    _, token = session_service.create_session(customer.id)
    context = session_service.validate_session(token)
    assert context is not None
    assert context.user.id == customer.id


def test_create_session_for_inactive_user_fails(db_session, customer):
    customer.is_active = False
    db_session.commit()
    with pytest.raises(ValueError):
        session_service.create_session(customer.id)


def test_absolute_expiry(db_session, customer):
    session, token = session_service.create_session(customer.id)
    session.expires_at = utcnow() - timedelta(seconds=1)
    db_session.commit()
    assert session_service.validate_session(token) is None


def test_idle_timeout_revokes(db_session, customer):
    session, token = session_service.create_session(customer.id)
    session.last_used_at = utcnow() - session_service.SESSION_IDLE_TIMEOUT - timedelta(minutes=1)
    db_session.commit()

    assert session_service.validate_session(token) is None
    db.session.refresh(session)
    assert session.is_revoked
    assert session.revoked_reason == "Idle timeout"


def test_deactivated_user_session_is_rejected(db_session, customer):
    _, token = session_service.create_session(customer.id)
    customer.is_active = False
    db_session.commit()
    assert session_service.validate_session(token) is None


def test_revoke_session(db_session, customer):
    _, token = session_service.create_session(customer.id)
    assert session_service.revoke_session(token) is True
    assert session_service.revoke_session(token) is False
    assert session_service.validate_session(token) is None


def test_cleanup_removes_old_dead_sessions(db_session, customer):
    old, _ = session_service.create_session(customer.id)
    old.created_at = utcnow() - timedelta(days=40)
    old.expires_at = utcnow() - timedelta(days=33)
    live, live_token = session_service.create_session(customer.id)
    db_session.commit()

    assert session_service.cleanup_expired_sessions() == 1
    assert session_service.validate_session(live_token) is not None


def test_expired_token_rejected_by_api(client, db_session, customer):
    session, token = session_service.create_session(customer.id)
    session.expires_at = utcnow() - timedelta(seconds=1)
    db_session.commit()

    assert client.get("/api/orders", headers=auth_headers(token)).status_code == 401
