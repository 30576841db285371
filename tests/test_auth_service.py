from datetime import datetime, timedelta, timezone

from lfap.models.user import UserSession
from lfap.services import auth as auth_service


def test_password_hashing():
    """Test that password hashing and verification works correctly."""
    password = "MySecurePassword123!"
    hashed = auth_service.get_password_hash(password)
    assert hashed != password
    assert auth_service.verify_password(password, hashed)
    assert not auth_service.verify_password("WrongPassword", hashed)


def test_authenticate(db_session, employee):
    assert auth_service.authenticate(db_session, employee.email, "Password123!").id == employee.id
    assert auth_service.authenticate(db_session, employee.email, "nope") is None
    assert auth_service.authenticate(db_session, "ghost@example.com", "Password123!") is None


def test_session_token_is_stored_hashed(db_session, employee):
    token = auth_service.create_session(db_session, employee, user_agent="pytest")
    stored = db_session.query(UserSession).filter(UserSession.user_id == employee.id).one()
    assert stored.token_hash != token
    assert stored.token_hash == auth_service.hash_session_token(token)
    assert auth_service.resolve_session(db_session, token).user_id == employee.id


def test_resolve_session_rejects_unknown_expired_and_revoked(db_session, employee):
    assert auth_service.resolve_session(db_session, None) is None
    assert auth_service.resolve_session(db_session, "not-a-token") is None

    token = auth_service.create_session(db_session, employee)
    stored = db_session.query(UserSession).one()
    stored.expires_at = datetime.now(timezone.utc) - timedelta(minutes=1)
    db_session.commit()
    assert auth_service.resolve_session(db_session, token) is None

    token = auth_service.create_session(db_session, employee)
    assert auth_service.revoke_session(db_session, token) is True
    assert auth_service.resolve_session(db_session, token) is None
    assert auth_service.revoke_session(db_session, token) is False
