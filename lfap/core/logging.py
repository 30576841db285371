import logging
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Union

from pythonjsonlogger import jsonlogger

from lfap.core.config import settings

# Correlation id of the HTTP request being served, set by CorrelationIdMiddleware
request_id_var: ContextVar[str] = ContextVar("request_id", default="")

_QUIET_LOGGERS = {
    "uvicorn.access": logging.WARNING,
    "sqlalchemy.engine": logging.WARNING,
    "passlib": logging.ERROR,
    "multipart": logging.WARNING,
}


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """One JSON object per record, tagged with service, environment and request id."""

    def __init__(self, *args, service: str = "", environment: str = "", **kwargs):
        super().__init__(*args, **kwargs)
        self.service = service
        self.environment = environment

    def add_fields(self, log_record: Dict[str, Any], record: logging.LogRecord, message_dict: Dict[str, Any]) -> None:
        super().add_fields(log_record, record, message_dict)

        req_id = request_id_var.get()
        if req_id:
            log_record["request_id"] = req_id

        if not log_record.get("timestamp"):
            log_record["timestamp"] = datetime.fromtimestamp(record.created, timezone.utc).isoformat()
        log_record["level"] = (log_record.get("level") or record.levelname).upper()
        if self.service:
            log_record["service"] = self.service
        if self.environment:
            log_record["environment"] = self.environment


def setup_logging(level: Optional[Union[int, str]] = None) -> None:
    root = logging.getLogger()
    # uvicorn --reload and repeated TestClient startups must not stack handlers
    if any(isinstance(h.formatter, CustomJsonFormatter) for h in root.handlers):
        return

    handler = logging.StreamHandler()
    handler.setFormatter(CustomJsonFormatter(
        "%(timestamp) %(level) %(name) %(message)",
        service=settings.app_name,
        environment=settings.environment,
    ))
    root.addHandler(handler)
    root.setLevel(level or settings.log_level)

    for name, quiet_level in _QUIET_LOGGERS.items():
        logging.getLogger(name).setLevel(quiet_level)
