from datetime import date, datetime
from enum import Enum
from typing import List, Optional

from lfap.services.base import BaseService
from lfap.models.audit_log import AuditLog


def _jsonable(obj):
    """Make nested details JSON-column safe (enums, dates, pydantic models)."""
    if hasattr(obj, "model_dump"):
        return _jsonable(obj.model_dump())
    if isinstance(obj, dict):
        return {k: _jsonable(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [_jsonable(i) for i in obj]
    if isinstance(obj, Enum):
        return obj.value
    if isinstance(obj, (date, datetime)):
        return obj.isoformat()
    return obj


class AuditService(BaseService):
    def log_action(
        self,
        action: str,
        entity_type: str,
        entity_id: Optional[int],
        user_id: Optional[int],
        user_role: Optional[str],
        details: dict,
        before_state: Optional[dict] = None,
        after_state: Optional[dict] = None
    ) -> AuditLog:
        """
        Create an audit log entry in the caller's transaction.

        Not committed here: the entry lands together with the mutation it
        describes, or not at all.
        """
        db_log = AuditLog(
            action=action,
            entity_type=entity_type,
            entity_id=entity_id,
            user_id=user_id,
            user_role=_jsonable(user_role),
            details=_jsonable(details),
            before_state=_jsonable(before_state),
            after_state=_jsonable(after_state)
        )
        self.db.add(db_log)
        self.db.flush()
        return db_log

    # Static wrapper for call sites that only hold a session
    @staticmethod
    def log(db, *args, **kwargs):
        service = AuditService(db)
        return service.log_action(*args, **kwargs)

    def list_entries(
        self,
        entity_type: Optional[str] = None,
        action: Optional[str] = None,
        user_id: Optional[int] = None,
        skip: int = 0,
        limit: int = 50,
    ) -> List[AuditLog]:
        query = self.db.query(AuditLog)
        if entity_type:
            query = query.filter(AuditLog.entity_type == entity_type)
        if action:
            query = query.filter(AuditLog.action == action)
        if user_id is not None:
            query = query.filter(AuditLog.user_id == user_id)
        return query.order_by(AuditLog.timestamp.desc(), AuditLog.id.desc()).offset(skip).limit(limit).all()
