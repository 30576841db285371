from sqlalchemy import Column, Integer, String, Date, Text, Enum, ForeignKey, DateTime
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from lfap.database import Base
import enum


class LeaveStatus(str, enum.Enum):
    PENDING = "pending"
    ENDORSED = "endorsed"
    REJECTED = "rejected"
    RETURNED = "returned"
    TM_APPROVED = "tm_approved"
    TM_REJECTED = "tm_rejected"
    TM_RETURNED = "tm_returned"

    @property
    def label(self) -> str:
        return STATUS_LABELS[self]


STATUS_LABELS = {
    LeaveStatus.PENDING: "Pending",
    LeaveStatus.ENDORSED: "Endorsed by Manager",
    LeaveStatus.REJECTED: "Rejected by Manager",
    LeaveStatus.RETURNED: "Returned by Manager",
    LeaveStatus.TM_APPROVED: "Approved by the Top Management",
    LeaveStatus.TM_REJECTED: "Rejected by the Top Management",
    LeaveStatus.TM_RETURNED: "Returned by the Top Management",
}


class LeaveRequest(Base):
    __tablename__ = "leave_requests"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    leave_type = Column(String(50), nullable=False)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)
    reason = Column(Text, nullable=False)
    status = Column(Enum(LeaveStatus), default=LeaveStatus.PENDING, nullable=False, index=True)
    supporting_doc = Column(String(255), nullable=True)
    manager_comments = Column(Text, nullable=True)
    manager_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    # Owner's department when the request was filed
    department = Column(String, nullable=True, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    employee = relationship("User", foreign_keys=[user_id], back_populates="leave_requests")
    manager = relationship("User", foreign_keys=[manager_id])

    def __repr__(self):
        return f"<LeaveRequest {self.id} {self.leave_type} {self.status.value}>"
