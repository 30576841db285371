"""
Password hashing and server-side session management.

The browser only ever holds an opaque random token; the database stores an
HMAC of it, so a leaked sessions table cannot be replayed as cookies.
"""
import hashlib
import hmac
import logging
import secrets
from datetime import datetime, timedelta, timezone
from typing import Optional

from passlib.context import CryptContext
from sqlalchemy.orm import Session

from lfap.core.config import settings
from lfap.models.user import User, UserSession

logger = logging.getLogger(__name__)

pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")


def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


def hash_session_token(token: str) -> str:
    return hmac.new(
        settings.session_secret.encode(), token.encode(), hashlib.sha256
    ).hexdigest()


def _as_aware(value: datetime) -> datetime:
    # SQLite hands back naive datetimes even for timezone-aware columns
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


def authenticate(db: Session, email: str, password: str) -> Optional[User]:
    user = db.query(User).filter(User.email == email).first()
    if user is None or not verify_password(password, user.hashed_password):
        return None
    return user


def create_session(
    db: Session,
    user: User,
    user_agent: Optional[str] = None,
    ip_address: Optional[str] = None,
) -> str:
    """Persist a new session for ``user`` and return the raw cookie token."""
    token = secrets.token_urlsafe(32)
    session = UserSession(
        user_id=user.id,
        token_hash=hash_session_token(token),
        expires_at=datetime.now(timezone.utc) + timedelta(minutes=settings.session_expire_minutes),
        user_agent=user_agent,
        ip_address=ip_address,
    )
    db.add(session)
    db.commit()
    logger.info("Session created", extra={"user_id": user.id})
    return token


def resolve_session(db: Session, token: Optional[str]) -> Optional[UserSession]:
    """Return the live session for a cookie token, or None."""
    if not token:
        return None
    session = db.query(UserSession).filter(
        UserSession.token_hash == hash_session_token(token)
    ).first()
    if session is None or session.is_revoked:
        return None
    if _as_aware(session.expires_at) <= datetime.now(timezone.utc):
        return None
    return session


def revoke_session(db: Session, token: Optional[str]) -> bool:
    if not token:
        return False
    session = db.query(UserSession).filter(
        UserSession.token_hash == hash_session_token(token)
    ).first()
    if session is None or session.is_revoked:
        return False
    session.is_revoked = True
    db.commit()
    logger.info("Session revoked", extra={"user_id": session.user_id})
    return True
