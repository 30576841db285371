from contextlib import contextmanager

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, declarative_base
from lfap.core.config import settings


def build_engine(url: str, **kwargs) -> Engine:
    """
    PostgreSQL in deployment, SQLite for local development and tests.

    SQLite connections get foreign keys switched on so leave requests,
    sessions and notifications cannot point at missing users.
    """
    if url.startswith("postgresql"):
        return create_engine(url, pool_pre_ping=True, **kwargs)

    sqlite_engine = create_engine(url, connect_args={"check_same_thread": False}, **kwargs)

    @event.listens_for(sqlite_engine, "connect")
    def _enable_foreign_keys(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    return sqlite_engine


engine = build_engine(settings.database_url)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def get_db():
    """
    Request-scoped session. Services decide when to commit; the workflow
    commits once per transition.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def session_scope(factory=SessionLocal):
    """Session for work outside a request (background tasks, scripts)."""
    db = factory()
    try:
        yield db
    finally:
        db.close()


def init_db(bind=None):
    """Create the schema. Called once from the application lifespan."""
    # Models must be imported so their tables are registered on Base.metadata
    from lfap.models import user, leave_request, notification, audit_log  # noqa: F401
    Base.metadata.create_all(bind=bind or engine)
