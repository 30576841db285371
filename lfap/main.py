"""
Leave Filing and Approval Platform: FastAPI application.

Docs live at the root (/docs, /openapi.json); every API router is mounted
under ``settings.api_prefix``. Middleware order, outermost first:
CORS, CorrelationId, Logging.
"""
import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Union

from fastapi import Depends, FastAPI, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from starlette.exceptions import HTTPException as StarletteHTTPException

from slowapi.errors import RateLimitExceeded

import lfap.models  # noqa: F401  registers models with SQLAlchemy
from lfap.core.config import settings
from lfap.core.exceptions import AppException
from lfap.core.limiter import limiter
from lfap.core.logging import setup_logging
from lfap.core.middleware import CorrelationIdMiddleware, LoggingMiddleware
from lfap.database import get_db, init_db
from lfap.routers.api_router import api_router

# ============================================================================
# LOGGING SETUP
# ============================================================================
setup_logging()
logger = logging.getLogger(__name__)


# ============================================================================
# LIFESPAN MANAGEMENT
# ============================================================================
@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(f"Starting {settings.app_name} v{settings.version} ({settings.environment})")
    try:
        init_db()
        logger.info("Database initialized")
    except SQLAlchemyError as e:
        logger.error(f"Database initialization failed: {e}")
        raise

    yield

    logger.info("Shutting down")


# ============================================================================
# FASTAPI INSTANCE
# ============================================================================
app = FastAPI(
    title=settings.app_name,
    version=settings.version,
    description="Leave filing with manager endorsement and top-management approval",
    docs_url="/docs",
    openapi_url="/openapi.json",
    lifespan=lifespan,
)

Path(settings.upload_dir).mkdir(parents=True, exist_ok=True)
app.mount(
    settings.upload_url_prefix,
    StaticFiles(directory=settings.upload_dir, check_dir=False),
    name="supporting-docs",
)

# ============================================================================
# RATE LIMITER
# ============================================================================
app.state.limiter = limiter

# ============================================================================
# MIDDLEWARE STACK (last added runs first)
# ============================================================================
app.add_middleware(LoggingMiddleware)
app.add_middleware(CorrelationIdMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=[settings.request_id_header, "X-Process-Time"],
)


# ============================================================================
# EXCEPTION HANDLERS
# ============================================================================
@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Request validation errors, reported with a dotted field path."""
    errors = []
    for error in exc.errors():
        # loc is usually ('body', 'field', ...); drop the source segment
        loc = [str(part) for part in error["loc"]]
        if len(loc) > 1 and loc[0] in ("body", "query", "path", "header", "cookie"):
            loc = loc[1:]
        errors.append({
            "code": "VALIDATION_ERROR",
            "field": ".".join(loc) if loc else "unknown",
            "msg": error["msg"],
        })

    logger.warning("Validation error", extra={"errors": errors, "path": request.url.path})
    return JSONResponse(
        status_code=422,
        content={"success": False, "errors": errors}
    )


@app.exception_handler(AppException)
async def app_exception_handler(request: Request, exc: AppException):
    """Domain exceptions carry their own status code and machine code."""
    log = logger.error if exc.status_code >= 500 else logger.warning
    log(f"AppException: {exc.message}", extra={"code": exc.error_code, "path": request.url.path})
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "errors": [exc.to_error()]}
    )


@app.exception_handler(StarletteHTTPException)
@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: Union[HTTPException, StarletteHTTPException]):
    """Routing errors (404, 405) and explicit HTTPExceptions, coded as ``HTTP_<status>``."""
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "success": False,
            "errors": [{
                "code": f"HTTP_{exc.status_code}",
                "msg": exc.detail if isinstance(exc.detail, str) else "Request failed",
            }]
        },
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RateLimitExceeded)
async def rate_limit_exception_handler(request: Request, exc: RateLimitExceeded):
    """slowapi rejections in the common error shape, keeping its rate-limit headers."""
    logger.warning("Rate limit exceeded", extra={"limit": exc.detail, "path": request.url.path})
    response = JSONResponse(
        status_code=429,
        content={
            "success": False,
            "errors": [{"code": "RATE_LIMITED", "msg": f"Rate limit exceeded: {exc.detail}"}]
        }
    )
    return request.app.state.limiter._inject_headers(response, getattr(request.state, "view_rate_limit", None))


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    """Fallback handler for unhandled server errors."""
    logger.exception("Unhandled server error", extra={"path": request.url.path})
    return JSONResponse(
        status_code=500,
        content={
            "success": False,
            "errors": [{"code": "INTERNAL_ERROR", "msg": "An unexpected server error occurred."}]
        }
    )


# ============================================================================
# ROUTERS
# ============================================================================
app.include_router(api_router, prefix=settings.api_prefix)


# ============================================================================
# OPERATIONAL ENDPOINTS (at root level)
# ============================================================================
@app.get("/", tags=["Health"])
def root():
    return {
        "message": f"{settings.app_name} API",
        "version": settings.version,
        "docs": "/docs",
    }


@app.get("/health", tags=["Health"])
def health_check():
    """Liveness probe."""
    return {
        "status": "up",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "version": settings.version,
        "environment": settings.environment,
    }


@app.get("/readiness", tags=["Health"])
def readiness_check(db: Session = Depends(get_db)):
    """Readiness probe: verifies database connectivity."""
    try:
        db.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        logger.error(f"Readiness check failed: {e}")
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Service not ready")
    return {
        "status": "ready",
        "components": {"database": "connected"},
    }
