import os
import logging
from pydantic import BaseModel, Field
from typing import List, Optional
from dotenv import load_dotenv

load_dotenv()


def _env_flag(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() == "true"


class SMTPSettings(BaseModel):
    host: Optional[str] = Field(default=os.getenv("SMTP_HOST"))
    port: int = Field(default=int(os.getenv("SMTP_PORT", "587")))
    user: Optional[str] = Field(default=os.getenv("SMTP_USER"))
    password: Optional[str] = Field(default=os.getenv("SMTP_PASSWORD"))
    from_email: str = Field(default=os.getenv("SMTP_FROM_EMAIL", "leave-notifications@example.com"))
    use_tls: bool = Field(default=_env_flag("SMTP_USE_TLS", "true"))

    @property
    def is_configured(self) -> bool:
        return bool(self.host)


class Config(BaseModel):
    app_name: str = "Leave Filing and Approval Platform"
    environment: str = os.getenv("APP_ENV", "development")
    log_level: str = os.getenv("LOG_LEVEL", "INFO").upper()
    api_prefix: str = "/api"

    # Database
    database_url: str = os.getenv("DATABASE_URL", "sqlite:///./lfap.db")

    # Sessions
    session_secret: str = os.getenv("SESSION_SECRET", "dev-only-insecure-session-secret")
    session_cookie_name: str = os.getenv("SESSION_COOKIE_NAME", "lfap_session")
    session_expire_minutes: int = int(os.getenv("SESSION_EXPIRE_MINUTES", str(60 * 8)))

    # Supporting documents
    upload_dir: str = os.getenv("UPLOAD_DIR", "./uploads/supporting-docs")
    upload_url_prefix: str = "/uploads/supporting-docs"
    max_upload_bytes: int = int(os.getenv("MAX_UPLOAD_MB", "10")) * 1024 * 1024

    # Notifications
    smtp: SMTPSettings = SMTPSettings()

    version: str = "1.0.0"
    request_id_header: str = "X-Request-ID"

    cors_origins: List[str] = Field(
        default_factory=lambda: [
            o.strip()
            for o in os.getenv(
                "CORS_ORIGINS",
                "http://localhost:3000,http://127.0.0.1:3000",
            ).split(",")
            if o.strip()
        ]
    )

    # Rate limiting
    rate_limit_enabled: bool = _env_flag("RATE_LIMIT_ENABLED", "true")
    login_rate_limit: str = os.getenv("LOGIN_RATE_LIMIT", "10/minute")

    @property
    def secure_cookies(self) -> bool:
        return self.environment not in ("development", "testing")


settings = Config()

# --- Startup Validation for Production ---
_logger = logging.getLogger(__name__)
if settings.environment not in ("development", "testing"):
    if "dev-only" in settings.session_secret:
        raise RuntimeError(
            "FATAL: SESSION_SECRET must be set for non-development environments. "
            "Set it as an environment variable."
        )
elif "dev-only" in settings.session_secret:
    _logger.warning("Using insecure default SESSION_SECRET, only acceptable in development.")
