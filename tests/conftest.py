import pytest
import os
import tempfile
from datetime import date
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

# Set env before importing app components
os.environ["APP_ENV"] = "testing"
os.environ["DATABASE_URL"] = "sqlite:///:memory:"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ.setdefault("UPLOAD_DIR", tempfile.mkdtemp(prefix="lfap-uploads-"))
os.environ.pop("SMTP_HOST", None)

from lfap.database import Base, build_engine, get_db, init_db
from lfap.main import app
from lfap.models.leave_request import LeaveRequest, LeaveStatus
from lfap.models.user import Sex, User, UserRole
from lfap.services import auth as auth_service
from lfap.services.notification import (
    InAppChannel,
    NotificationDispatcher,
    get_notification_dispatcher,
)
from fastapi.testclient import TestClient

PASSWORD = "Password123!"


@pytest.fixture(scope="function")
def engine():
    """A fresh in-memory database per test; StaticPool keeps one shared connection."""
    engine = build_engine("sqlite:///:memory:", poolclass=StaticPool)
    init_db(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture(scope="function")
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture(scope="function")
def db_session(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture(scope="function")
def dispatcher(session_factory):
    return NotificationDispatcher([InAppChannel(session_factory)])


@pytest.fixture(scope="function")
def client(db_session, dispatcher):
    """TestClient bound to the test database and an in-app-only dispatcher."""
    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_notification_dispatcher] = lambda: dispatcher
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture(scope="function")
def make_user(db_session):
    """Factory for users with a full ledger; entitlements default to 15 days."""
    counter = {"n": 0}

    def _make_user(role=UserRole.EMPLOYEE, department="IT", sex=Sex.FEMALE,
                   first_name=None, last_name="Tester", email=None, **ledger):
        counter["n"] += 1
        n = counter["n"]
        values = {
            "vacation_leave": 15,
            "mandatory_leave": 5,
            "sick_leave": 15,
            "maternity_leave": 105 if sex == Sex.FEMALE else 0,
            "paternity_leave": 7 if sex == Sex.MALE else 0,
            "special_privilege_leave": 3,
        }
        values.update(ledger)
        user = User(
            first_name=first_name or f"User{n}",
            last_name=last_name,
            email=email or f"user{n}@example.com",
            hashed_password=auth_service.get_password_hash(PASSWORD),
            role=role,
            sex=sex,
            department=department,
            **values,
        )
        db_session.add(user)
        db_session.commit()
        db_session.refresh(user)
        return user
    return _make_user


@pytest.fixture
def employee(make_user):
    return make_user(UserRole.EMPLOYEE, department="IT", first_name="Maria", last_name="Santos")


@pytest.fixture
def manager(make_user):
    return make_user(UserRole.MANAGER, department="IT", sex=Sex.MALE, first_name="Mark", last_name="Reyes")


@pytest.fixture
def other_manager(make_user):
    return make_user(UserRole.MANAGER, department="Finance", first_name="Fiona", last_name="Lopez")


@pytest.fixture
def executive(make_user):
    return make_user(UserRole.TOP_MANAGEMENT, department="Executive", sex=Sex.MALE, first_name="Tomas", last_name="Garcia")


@pytest.fixture
def super_admin(make_user):
    return make_user(UserRole.SUPER_ADMIN, department="Executive", first_name="Sofia", last_name="Cruz")


@pytest.fixture
def hr_admin(make_user):
    return make_user(UserRole.HR_ADMIN, department="HR", first_name="Helen", last_name="Ramos")


@pytest.fixture
def make_leave(db_session):
    """Insert a leave request directly, in any status."""
    def _make_leave(owner, status=LeaveStatus.PENDING, leave_type="Vacation Leave",
                    start_date=date(2024, 3, 20), end_date=date(2024, 3, 25),
                    reason="Family trip to the province", **fields):
        leave = LeaveRequest(
            user_id=owner.id,
            leave_type=leave_type,
            start_date=start_date,
            end_date=end_date,
            reason=reason,
            status=status,
            department=owner.department,
            **fields,
        )
        db_session.add(leave)
        db_session.commit()
        db_session.refresh(leave)
        return leave
    return _make_leave


@pytest.fixture
def login(client):
    """Log ``user`` in on the shared client; the session cookie is kept by the client."""
    def _login(user, password=PASSWORD):
        client.cookies.clear()
        response = client.post("/api/auth/login", json={"email": user.email, "password": password})
        assert response.status_code == 200, response.text
        return client
    return _login
