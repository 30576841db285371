import pytest

from lfap.models.leave_request import LeaveStatus
from lfap.models.notification import Notification
from lfap.services.notification import (
    EmailChannel,
    InAppChannel,
    NotificationDispatcher,
    NotificationService,
    StatusNotification,
    get_notification_dispatcher,
)
from lfap.core.config import SMTPSettings


class BrokenChannel:
    name = "broken"

    def send(self, notice):
        raise ConnectionError("smtp unreachable")


class RecordingChannel:
    name = "recording"

    def __init__(self):
        self.sent = []

    def send(self, notice):
        self.sent.append(notice)


def _notice(**overrides):
    values = dict(
        user_id=1,
        email="maria@example.com",
        full_name="Maria Santos",
        leave_request_id=7,
        leave_type="Sick Leave",
        status=LeaveStatus.TM_REJECTED,
        comments="Coverage is not available",
    )
    values.update(overrides)
    return StatusNotification(**values)


def test_status_notification_text():
    notice = _notice()
    assert notice.title == "Leave request rejected by the top management"
    assert "Rejected by the Top Management" in notice.body
    assert "Coverage is not available" in notice.body
    assert notice.kind == "error"
    assert _notice(status=LeaveStatus.TM_APPROVED, comments=None).kind == "success"


def test_dispatcher_reports_failures_without_raising():
    recorder = RecordingChannel()
    report = NotificationDispatcher([BrokenChannel(), recorder]).dispatch_status_change(_notice())

    assert report.ok is False
    assert report.delivered == ["recording"]
    assert "smtp unreachable" in report.failed["broken"]
    assert len(recorder.sent) == 1


def test_in_app_channel_writes_notification(db_session, session_factory, employee):
    report = NotificationDispatcher([InAppChannel(session_factory)]).dispatch_status_change(
        _notice(user_id=employee.id, leave_request_id=None)
    )
    assert report.ok
    stored = db_session.query(Notification).filter(Notification.user_id == employee.id).one()
    assert stored.type == "error"
    assert stored.is_read is False


def test_failing_channel_does_not_fail_approval(client, login, db_session, employee, executive, make_leave):
    leave = make_leave(employee, status=LeaveStatus.ENDORSED)
    from lfap.main import app

    app.dependency_overrides[get_notification_dispatcher] = lambda: NotificationDispatcher([BrokenChannel()])
    login(executive)
    response = client.patch(f"/api/leave-requests/{leave.id}/action", json={"action": "tm_approved"})

    assert response.status_code == 200
    db_session.expire_all()
    assert db_session.get(type(employee), employee.id).used_vacation_leave == 6


def test_email_channel_sends_via_smtp(monkeypatch):
    sent = []

    class FakeSMTP:
        def __init__(self, host, port, timeout=None):
            sent.append(("connect", host, port))

        def __enter__(self):
            return self

        def __exit__(self, *exc):
            return False

        def starttls(self):
            sent.append(("starttls",))

        def login(self, user, password):
            sent.append(("login", user))

        def send_message(self, message):
            sent.append(("send", message["To"], message["Subject"]))

    monkeypatch.setattr("lfap.services.notification.smtplib.SMTP", FakeSMTP)
    smtp = SMTPSettings(host="mail.local", port=2525, user="bot", password="secret", use_tls=True)
    EmailChannel(smtp).send(_notice())

    assert sent[0] == ("connect", "mail.local", 2525)
    assert ("starttls",) in sent
    assert ("login", "bot") in sent
    assert sent[-1] == ("send", "maria@example.com", "Leave request rejected by the top management")


def test_mark_all_read(db_session, employee):
    for i in range(3):
        NotificationService.create_notification(db_session, employee.id, f"T{i}", "body")
    assert NotificationService.mark_all_read(db_session, employee.id) == 3
    assert NotificationService.list_for_user(db_session, employee.id, unread_only=True) == []


@pytest.mark.parametrize("configured", [False, True])
def test_default_dispatcher_channels(monkeypatch, configured):
    from lfap.core import config

    monkeypatch.setattr(config.settings.smtp, "host", "mail.local" if configured else None)
    names = [c.name for c in get_notification_dispatcher().channels]
    assert names == (["in_app", "email"] if configured else ["in_app"])
