"""
Status-change notifications.

Dispatch is best-effort and runs only after the workflow transaction has
committed: every channel is attempted, failures are logged and reported in a
DeliveryReport, and nothing here can undo the transition that triggered it.
"""
import logging
import smtplib
from dataclasses import dataclass, field
from email.message import EmailMessage
from typing import Callable, Dict, List, Optional, Protocol

from sqlalchemy.orm import Session

from lfap.core.config import SMTPSettings, settings
from lfap.database import SessionLocal, session_scope
from lfap.models.leave_request import LeaveRequest, LeaveStatus
from lfap.models.notification import Notification

logger = logging.getLogger(__name__)

_NOTIFICATION_TYPES = {
    LeaveStatus.PENDING: "info",
    LeaveStatus.ENDORSED: "info",
    LeaveStatus.TM_APPROVED: "success",
    LeaveStatus.REJECTED: "error",
    LeaveStatus.TM_REJECTED: "error",
    LeaveStatus.RETURNED: "warning",
    LeaveStatus.TM_RETURNED: "warning",
}


class NotificationService:
    @staticmethod
    def create_notification(
        db: Session,
        user_id: int,
        title: str,
        message: str,
        type: str = "info",
        link: Optional[str] = None,
        leave_request_id: Optional[int] = None,
    ) -> Notification:
        notification = Notification(
            user_id=user_id,
            leave_request_id=leave_request_id,
            title=title,
            message=message,
            type=type,
            link=link
        )
        db.add(notification)
        db.commit()
        db.refresh(notification)
        return notification

    @staticmethod
    def list_for_user(db: Session, user_id: int, unread_only: bool = False, limit: int = 50) -> List[Notification]:
        query = db.query(Notification).filter(Notification.user_id == user_id)
        if unread_only:
            query = query.filter(Notification.is_read.is_(False))
        return query.order_by(Notification.created_at.desc(), Notification.id.desc()).limit(limit).all()

    @staticmethod
    def mark_read(db: Session, user_id: int, notification_id: int) -> Optional[Notification]:
        notification = db.query(Notification).filter(
            Notification.id == notification_id,
            Notification.user_id == user_id
        ).first()
        if notification is None:
            return None
        notification.is_read = True
        db.commit()
        db.refresh(notification)
        return notification

    @staticmethod
    def mark_all_read(db: Session, user_id: int) -> int:
        updated = db.query(Notification).filter(
            Notification.user_id == user_id,
            Notification.is_read.is_(False)
        ).update({Notification.is_read: True}, synchronize_session=False)
        db.commit()
        return updated


@dataclass(frozen=True)
class StatusNotification:
    """Snapshot of a transition, taken while the request session is still open."""
    user_id: int
    email: str
    full_name: str
    leave_request_id: int
    leave_type: str
    status: LeaveStatus
    comments: Optional[str] = None

    @property
    def title(self) -> str:
        return f"Leave request {self.status.label.lower()}"

    @property
    def body(self) -> str:
        text = f"Your {self.leave_type} request #{self.leave_request_id} is now: {self.status.label}."
        if self.comments:
            text += f" Comments: {self.comments}"
        return text

    @property
    def kind(self) -> str:
        return _NOTIFICATION_TYPES.get(self.status, "info")

    @classmethod
    def from_request(cls, leave: LeaveRequest) -> "StatusNotification":
        owner = leave.employee
        return cls(
            user_id=owner.id,
            email=owner.email,
            full_name=owner.full_name,
            leave_request_id=leave.id,
            leave_type=leave.leave_type,
            status=leave.status,
            comments=leave.manager_comments,
        )


class NotificationChannel(Protocol):
    name: str

    def send(self, notice: StatusNotification) -> None:
        ...


class InAppChannel:
    name = "in_app"

    def __init__(self, session_factory: Callable[[], Session]):
        self._session_factory = session_factory

    def send(self, notice: StatusNotification) -> None:
        with session_scope(self._session_factory) as db:
            NotificationService.create_notification(
                db,
                user_id=notice.user_id,
                title=notice.title,
                message=notice.body,
                type=notice.kind,
                link=f"/leave-request/track-status?id={notice.leave_request_id}",
                leave_request_id=notice.leave_request_id,
            )


class EmailChannel:
    name = "email"

    def __init__(self, smtp: SMTPSettings):
        self._smtp = smtp

    def send(self, notice: StatusNotification) -> None:
        message = EmailMessage()
        message["Subject"] = notice.title
        message["From"] = self._smtp.from_email
        message["To"] = notice.email
        message.set_content(f"Hello {notice.full_name},\n\n{notice.body}\n")

        with smtplib.SMTP(self._smtp.host, self._smtp.port, timeout=30) as server:
            if self._smtp.use_tls:
                server.starttls()
            if self._smtp.user and self._smtp.password:
                server.login(self._smtp.user, self._smtp.password)
            server.send_message(message)


@dataclass
class DeliveryReport:
    leave_request_id: int
    delivered: List[str] = field(default_factory=list)
    failed: Dict[str, str] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return not self.failed


class NotificationDispatcher:
    def __init__(self, channels: List[NotificationChannel]):
        self.channels = list(channels)

    def dispatch_status_change(self, notice: StatusNotification) -> DeliveryReport:
        """
        Fire-and-forget delivery. Never raises: a channel failure is logged and
        recorded in the returned report.
        """
        report = DeliveryReport(leave_request_id=notice.leave_request_id)
        for channel in self.channels:
            try:
                channel.send(notice)
            except Exception as exc:
                logger.warning(
                    f"Notification via {channel.name} failed: {exc}",
                    exc_info=True,
                    extra={"leave_request_id": notice.leave_request_id, "channel": channel.name},
                )
                report.failed[channel.name] = str(exc)
            else:
                report.delivered.append(channel.name)
        return report


def get_notification_dispatcher() -> NotificationDispatcher:
    """FastAPI dependency; tests override it to bind their own session factory."""
    channels: List[NotificationChannel] = [InAppChannel(SessionLocal)]
    if settings.smtp.is_configured:
        channels.append(EmailChannel(settings.smtp))
    return NotificationDispatcher(channels)
