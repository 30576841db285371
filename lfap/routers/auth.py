from fastapi import APIRouter, Depends, Request, Response, status
from sqlalchemy.orm import Session
from typing import Optional
import logging

from lfap.core.config import settings
from lfap.core.exceptions import AuthenticationError, ConflictError
from lfap.core.limiter import limiter
from lfap.database import get_db
from lfap.models.user import User
from lfap.routers.auth_deps import SessionContext, get_session_context, optional_session
from lfap.schemas.auth import LoginRequest, RegisterRequest, SessionResponse, UserResponse
from lfap.services import auth as auth_service
from lfap.services.audit import AuditService

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/auth",
    tags=["auth"]
)


@router.post("/register", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
def register(payload: RegisterRequest, db: Session = Depends(get_db)):
    email = payload.email.lower()
    if db.query(User).filter(User.email == email).first():
        raise ConflictError("Email already registered", field="email")

    user = User(
        first_name=payload.first_name.strip(),
        last_name=payload.last_name.strip(),
        email=email,
        hashed_password=auth_service.get_password_hash(payload.password),
        role=payload.role,
        sex=payload.sex,
        department=payload.department.strip(),
    )
    db.add(user)
    db.flush()
    AuditService.log(
        db,
        action="register",
        entity_type="user",
        entity_id=user.id,
        user_id=user.id,
        user_role=user.role,
        details={"email": email, "department": user.department},
    )
    db.commit()
    db.refresh(user)
    logger.info("User registered", extra={"user_id": user.id, "role": user.role.value})
    return user


@router.post("/login", response_model=SessionResponse)
@limiter.limit(settings.login_rate_limit)
def login(request: Request, response: Response, login_data: LoginRequest, db: Session = Depends(get_db)):
    user = auth_service.authenticate(db, login_data.email.lower(), login_data.password)
    if user is None:
        AuditService.log(
            db,
            action="failed_login",
            entity_type="user",
            entity_id=None,
            user_id=None,
            user_role=None,
            details={"email": login_data.email, "reason": "invalid_credentials"}
        )
        db.commit()
        raise AuthenticationError("Incorrect email or password")

    client_ip = request.client.host if request.client else None
    token = auth_service.create_session(
        db,
        user,
        user_agent=request.headers.get("user-agent"),
        ip_address=client_ip,
    )
    response.set_cookie(
        key=settings.session_cookie_name,
        value=token,
        max_age=settings.session_expire_minutes * 60,
        httponly=True,
        samesite="lax",
        secure=settings.secure_cookies,
    )
    session = auth_service.resolve_session(db, token)
    return SessionResponse(
        is_logged_in=True,
        user=UserResponse.model_validate(user),
        expires_at=session.expires_at if session else None,
    )


@router.post("/logout")
def logout(response: Response, context: SessionContext = Depends(get_session_context), db: Session = Depends(get_db)):
    auth_service.revoke_session(db, context.token)
    response.delete_cookie(settings.session_cookie_name)
    return {"message": "Successfully logged out"}


@router.get("/session", response_model=SessionResponse)
def session_info(context: Optional[SessionContext] = Depends(optional_session)):
    if context is None:
        return SessionResponse(is_logged_in=False)
    return SessionResponse(
        is_logged_in=True,
        user=UserResponse.model_validate(context.user),
        expires_at=context.session.expires_at,
    )
