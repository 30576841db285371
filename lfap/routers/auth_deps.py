"""
Session dependencies.

Handlers never read the cookie themselves: they receive a SessionContext
built here, or a 401 is raised before the handler runs.
"""
import logging
from dataclasses import dataclass
from typing import Callable, Optional

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from lfap.core.config import settings
from lfap.core.exceptions import AuthenticationError
from lfap.database import get_db
from lfap.models.user import Capability, User, UserSession
from lfap.services import auth as auth_service
from lfap.services.access import require_capability

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SessionContext:
    token: str
    session: UserSession
    user: User


def optional_session(request: Request, db: Session = Depends(get_db)) -> Optional[SessionContext]:
    token = request.cookies.get(settings.session_cookie_name)
    session = auth_service.resolve_session(db, token)
    if session is None or session.user is None:
        return None
    return SessionContext(token=token, session=session, user=session.user)


def get_session_context(context: Optional[SessionContext] = Depends(optional_session)) -> SessionContext:
    if context is None:
        logger.info("Authentication failed: missing, expired or revoked session")
        raise AuthenticationError("Not authenticated")
    return context


def get_current_user(context: SessionContext = Depends(get_session_context)) -> User:
    return context.user


def require(*capabilities: Capability) -> Callable:
    """
    Dependency factory: the current user must hold any of ``capabilities``.

    Usage:
        @router.get("/reports")
        def report(user: User = Depends(require(Capability.VIEW_REPORTS))):
            ...
    """
    def capability_checker(current_user: User = Depends(get_current_user)) -> User:
        return require_capability(current_user, *capabilities)
    return capability_checker
