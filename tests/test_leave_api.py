from fastapi import status

from lfap.models.leave_request import LeaveRequest, LeaveStatus
from lfap.models.notification import Notification

LEAVE = {
    "leave_type": "Vacation Leave",
    "start_date": "2024-03-20",
    "end_date": "2024-03-25",
    "reason": "Family trip to the province",
}


def _file_leave(client, **overrides):
    response = client.post("/api/leave-requests", json={**LEAVE, **overrides})
    assert response.status_code == status.HTTP_201_CREATED, response.text
    return response.json()["data"]


def test_end_to_end_approval_consumes_vacation(client, login, db_session, employee, manager, executive):
    login(employee)
    created = _file_leave(client)
    assert created["status"] == "pending"

    login(manager)
    response = client.patch(f"/api/leave-requests/{created['id']}/action", json={"action": "endorsed"})
    assert response.status_code == 200
    assert response.json()["data"]["status"] == "endorsed"
    assert response.json()["data"]["manager_id"] == manager.id

    login(executive)
    response = client.patch(f"/api/leave-requests/{created['id']}/action", json={"action": "tm_approved"})
    assert response.status_code == 200
    assert response.json()["data"]["status"] == "tm_approved"

    db_session.expire_all()
    assert db_session.get(type(employee), employee.id).used_vacation_leave == 6

    login(employee)
    balances = {b["type"]: b for b in client.get("/api/leave-requests/balances").json()["leave_balances"]}
    assert balances["Vacation Leave"]["used"] == 6
    assert balances["Vacation Leave"]["remaining"] == 9


def test_create_validation_errors(client, login, employee):
    login(employee)

    response = client.post("/api/leave-requests", json={**LEAVE, "reason": "short"})
    assert response.status_code == 422
    assert response.json()["errors"][0]["field"] == "reason"

    response = client.post("/api/leave-requests", json={**LEAVE, "end_date": "2024-03-19"})
    assert response.status_code == 422

    response = client.post("/api/leave-requests", json={**LEAVE, "leave_type": "Holiday"})
    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.json()["errors"][0]["code"] == "UNKNOWN_LEAVE_TYPE"


def test_reject_without_comments_is_422(client, login, employee, manager):
    login(employee)
    created = _file_leave(client)

    login(manager)
    response = client.patch(
        f"/api/leave-requests/{created['id']}/action",
        json={"action": "rejected", "manager_comments": "nope"},
    )
    assert response.status_code == 422
    error = response.json()["errors"][0]
    assert error["code"] == "VALIDATION_ERROR"
    assert error["field"] == "manager_comments"


def test_illegal_transition_is_409(client, login, employee, executive):
    login(employee)
    created = _file_leave(client)

    login(executive)
    response = client.patch(f"/api/leave-requests/{created['id']}/action", json={"action": "tm_approved"})
    assert response.status_code == status.HTTP_409_CONFLICT
    assert response.json()["errors"][0]["code"] == "INVALID_TRANSITION"


def test_unknown_manager_id_is_422(client, login, db_session, employee, manager, make_leave):
    leave = make_leave(employee)

    login(manager)
    response = client.patch(
        f"/api/leave-requests/{leave.id}/action",
        json={"action": "endorsed", "manager_id": 99999},
    )
    assert response.status_code == 422
    error = response.json()["errors"][0]
    assert error["code"] == "VALIDATION_ERROR"
    assert error["field"] == "manager_id"

    db_session.expire_all()
    assert db_session.get(LeaveRequest, leave.id).status == LeaveStatus.PENDING


def test_insufficient_balance_is_409_and_keeps_status(client, login, db_session, make_user, executive, make_leave):
    owner = make_user(vacation_leave=2)
    leave = make_leave(owner, status=LeaveStatus.ENDORSED)

    login(executive)
    response = client.patch(f"/api/leave-requests/{leave.id}/action", json={"action": "tm_approved"})
    assert response.status_code == status.HTTP_409_CONFLICT
    error = response.json()["errors"][0]
    assert error["code"] == "INSUFFICIENT_BALANCE"
    assert error["details"] == {"leave_type": "Vacation Leave", "remaining": 2, "requested": 6}

    db_session.expire_all()
    assert db_session.get(LeaveRequest, leave.id).status == LeaveStatus.ENDORSED


def test_employee_cannot_act(client, login, employee, make_leave):
    leave = make_leave(employee)
    login(employee)
    response = client.patch(f"/api/leave-requests/{leave.id}/action", json={"action": "endorsed"})
    assert response.status_code == status.HTTP_403_FORBIDDEN


def test_action_notifies_owner_in_app(client, login, db_session, employee, manager, make_leave):
    leave = make_leave(employee)
    login(manager)
    client.patch(
        f"/api/leave-requests/{leave.id}/action",
        json={"action": "returned", "manager_comments": "Please attach a medical certificate"},
    )

    notification = db_session.query(Notification).filter(Notification.user_id == employee.id).one()
    assert notification.leave_request_id == leave.id
    assert notification.type == "warning"
    assert "Returned by Manager" in notification.message

    login(employee)
    inbox = client.get("/api/notifications").json()
    assert [n["id"] for n in inbox] == [notification.id]
    assert client.patch(f"/api/notifications/{notification.id}/read").json()["is_read"] is True
    assert client.get("/api/notifications", params={"unread_only": True}).json() == []


def test_owner_views_and_edits_returned_request(client, login, employee, manager, make_leave):
    leave = make_leave(employee, status=LeaveStatus.RETURNED, manager_comments="Dates overlap a release")

    login(manager)
    assert client.get(f"/api/leave-requests/{leave.id}").status_code == status.HTTP_403_FORBIDDEN

    login(employee)
    response = client.get(f"/api/leave-requests/{leave.id}")
    assert response.status_code == 200
    assert response.json()["manager_comments"] == "Dates overlap a release"

    response = client.put(
        f"/api/leave-requests/{leave.id}",
        json={**LEAVE, "start_date": "2024-04-01", "end_date": "2024-04-03"},
    )
    assert response.status_code == 200
    assert response.json()["data"]["status"] == "pending"

    # A second edit is no longer allowed: the request is pending again
    response = client.put(f"/api/leave-requests/{leave.id}", json=LEAVE)
    assert response.status_code == status.HTTP_403_FORBIDDEN

    assert client.get("/api/leave-requests/9999").status_code == status.HTTP_404_NOT_FOUND


def test_my_requests_and_buckets(client, login, employee, manager, executive, make_leave):
    pending = make_leave(employee)
    endorsed = make_leave(employee, status=LeaveStatus.ENDORSED)
    tm_returned = make_leave(employee, status=LeaveStatus.TM_RETURNED, manager_id=manager.id)

    login(employee)
    assert len(client.get("/api/leave-requests/mine").json()) == 3
    assert client.get("/api/leave-requests/pending-endorsement").status_code == status.HTTP_403_FORBIDDEN

    login(manager)
    items = client.get("/api/leave-requests/pending-endorsement").json()
    assert [i["id"] for i in items] == [pending.id]
    assert items[0]["employee"]["first_name"] == "Maria"

    login(executive)
    assert [i["id"] for i in client.get("/api/leave-requests/endorsed").json()] == [endorsed.id]
    items = client.get("/api/leave-requests/tm-returned").json()
    assert [i["id"] for i in items] == [tm_returned.id]
    assert items[0]["manager"]["id"] == manager.id
    assert [i["id"] for i in client.get("/api/leave-requests", params={"status": "endorsed", "search": "mar"}).json()] == [endorsed.id]
    assert client.get("/api/leave-requests", params={"status": "endorsed", "search": "zzz"}).json() == []
