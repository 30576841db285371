# Models package
# Importing modules here ensures they are registered with SQLAlchemy Base
from . import user, leave_request, notification, audit_log

# Explicit class exports for cleaner imports
from .user import User, UserRole, UserSession, Capability, Sex
from .leave_request import LeaveRequest, LeaveStatus
from .notification import Notification
from .audit_log import AuditLog
from .leave_type import LeaveType, LedgerFields, LEDGER_FIELDS

__all__ = [
    "User",
    "UserRole",
    "UserSession",
    "Capability",
    "Sex",
    "LeaveRequest",
    "LeaveStatus",
    "Notification",
    "AuditLog",
    "LeaveType",
    "LedgerFields",
    "LEDGER_FIELDS",
]
