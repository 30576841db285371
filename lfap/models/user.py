"""
User Model with role, department and the per-type leave ledger.
"""
from sqlalchemy import Column, Integer, String, Enum, DateTime, Boolean, ForeignKey
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
import enum
from lfap.database import Base


class UserRole(str, enum.Enum):
    """
    Closed set of roles. Labels match what users pick at registration.

    - EMPLOYEE: files and tracks their own leave
    - MANAGER: endorses, rejects or returns requests from their department
    - HR_ADMIN: balance administration, reports and audit trail
    - TOP_MANAGEMENT: final approval stage
    - SUPER_ADMIN: every capability, unscoped by department
    """
    EMPLOYEE = "Employee"
    MANAGER = "Manager"
    HR_ADMIN = "HR Admin"
    TOP_MANAGEMENT = "Top Management"
    SUPER_ADMIN = "Super Admin"


class Capability(str, enum.Enum):
    FILE_LEAVE = "file_leave"
    ENDORSE = "endorse"
    FINAL_APPROVE = "final_approve"
    LIST_SUBORDINATES = "list_subordinates"
    MANAGE_BALANCES = "manage_balances"
    VIEW_REPORTS = "view_reports"
    VIEW_AUDIT_TRAIL = "view_audit_trail"
    # Not limited to the caller's own department
    ALL_DEPARTMENTS = "all_departments"


ROLE_CAPABILITIES = {
    UserRole.EMPLOYEE: frozenset({Capability.FILE_LEAVE}),
    UserRole.MANAGER: frozenset({
        Capability.FILE_LEAVE,
        Capability.ENDORSE,
        Capability.LIST_SUBORDINATES,
    }),
    UserRole.HR_ADMIN: frozenset({
        Capability.FILE_LEAVE,
        Capability.MANAGE_BALANCES,
        Capability.VIEW_REPORTS,
        Capability.VIEW_AUDIT_TRAIL,
    }),
    UserRole.TOP_MANAGEMENT: frozenset({
        Capability.FILE_LEAVE,
        Capability.FINAL_APPROVE,
        Capability.VIEW_REPORTS,
        Capability.ALL_DEPARTMENTS,
    }),
    UserRole.SUPER_ADMIN: frozenset(Capability),
}


class Sex(str, enum.Enum):
    MALE = "Male"
    FEMALE = "Female"


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    first_name = Column(String, nullable=False)
    last_name = Column(String, nullable=False)
    email = Column(String, unique=True, index=True, nullable=False)
    hashed_password = Column(String, nullable=False)

    role = Column(Enum(UserRole), default=UserRole.EMPLOYEE, nullable=False)
    sex = Column(Enum(Sex), nullable=False)
    department = Column(String, nullable=True, index=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    # Ledger: entitlements
    vacation_leave = Column(Integer, default=0, nullable=False)
    mandatory_leave = Column(Integer, default=0, nullable=False)
    sick_leave = Column(Integer, default=0, nullable=False)
    maternity_leave = Column(Integer, default=0, nullable=False)
    paternity_leave = Column(Integer, default=0, nullable=False)
    special_privilege_leave = Column(Integer, default=0, nullable=False)

    # Ledger: consumption, only written by final approval
    used_vacation_leave = Column(Integer, default=0, nullable=False)
    used_mandatory_leave = Column(Integer, default=0, nullable=False)
    used_sick_leave = Column(Integer, default=0, nullable=False)
    used_maternity_leave = Column(Integer, default=0, nullable=False)
    used_paternity_leave = Column(Integer, default=0, nullable=False)
    used_special_privilege_leave = Column(Integer, default=0, nullable=False)

    # Relationships
    sessions = relationship("UserSession", back_populates="user", cascade="all, delete-orphan")
    notifications = relationship("Notification", back_populates="user", cascade="all, delete-orphan")
    leave_requests = relationship(
        "LeaveRequest",
        foreign_keys="[LeaveRequest.user_id]",
        back_populates="employee",
    )

    def __repr__(self):
        return f"<User {self.email} ({self.role.value})>"

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"

    @property
    def capabilities(self) -> frozenset:
        return ROLE_CAPABILITIES.get(self.role, frozenset())

    def can(self, capability: Capability) -> bool:
        return capability in self.capabilities


class UserSession(Base):
    """Server-side login session; the cookie carries only an opaque token."""
    __tablename__ = "user_sessions"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    token_hash = Column(String, unique=True, index=True, nullable=False)
    expires_at = Column(DateTime(timezone=True), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    is_revoked = Column(Boolean, default=False, nullable=False)

    # Session metadata
    user_agent = Column(String, nullable=True)
    ip_address = Column(String, nullable=True)

    user = relationship("User", back_populates="sessions")
