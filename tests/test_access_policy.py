import pytest
from fastapi import status

from lfap.core.exceptions import AccessDeniedError
from lfap.models.user import ROLE_CAPABILITIES, Capability, UserRole
from lfap.services.access import list_subordinates, require_capability


def test_capability_table():
    assert all(Capability.FILE_LEAVE in caps for caps in ROLE_CAPABILITIES.values())
    assert set(ROLE_CAPABILITIES[UserRole.SUPER_ADMIN]) == set(Capability)
    assert Capability.ENDORSE not in ROLE_CAPABILITIES[UserRole.TOP_MANAGEMENT]
    assert Capability.FINAL_APPROVE not in ROLE_CAPABILITIES[UserRole.MANAGER]
    assert Capability.ALL_DEPARTMENTS not in ROLE_CAPABILITIES[UserRole.MANAGER]
    assert set(ROLE_CAPABILITIES) == set(UserRole)


def test_require_capability_passes_on_any_match(employee, manager):
    assert require_capability(manager, Capability.ENDORSE, Capability.FINAL_APPROVE) is manager
    with pytest.raises(AccessDeniedError):
        require_capability(employee, Capability.ENDORSE, Capability.FINAL_APPROVE)


@pytest.fixture
def staff(make_user):
    return {
        "it": [make_user(department="IT", first_name="Ivan"), make_user(department="IT", first_name="Irene")],
        "finance": [make_user(department="Finance", first_name="Ivy"), make_user(department="Finance", first_name="Felix")],
    }


@pytest.mark.parametrize("search", [None, "", "I", "Ivy", "Felix", "Tester", "%", "' OR 1=1 --"])
def test_it_manager_never_sees_other_departments(db_session, manager, staff, search):
    results = list_subordinates(db_session, manager, search=search)
    assert all(user.department == "IT" for user in results)
    assert manager.id not in {user.id for user in results}


def test_manager_department_filter_cannot_widen_scope(db_session, manager, staff):
    results = list_subordinates(db_session, manager, department="Finance")
    assert {u.first_name for u in results} == {"Ivan", "Irene"}


def test_manager_search_narrows(db_session, manager, staff):
    assert [u.first_name for u in list_subordinates(db_session, manager, search="ire")] == ["Irene"]
    assert list_subordinates(db_session, manager, search="felix") == []


def test_manager_without_department_sees_nobody(db_session, make_user, staff):
    orphan = make_user(UserRole.MANAGER, department=None)
    assert list_subordinates(db_session, orphan) == []


def test_super_admin_sees_all_but_self(db_session, super_admin, manager, staff):
    results = list_subordinates(db_session, super_admin)
    ids = {u.id for u in results}
    assert super_admin.id not in ids
    assert manager.id in ids
    assert len(ids) == 5

    finance = list_subordinates(db_session, super_admin, department="Finance")
    assert {u.first_name for u in finance} == {"Ivy", "Felix"}


def test_results_ordered_by_name(db_session, super_admin, staff):
    names = [u.first_name for u in list_subordinates(db_session, super_admin, department="IT")]
    assert names == sorted(names)


@pytest.mark.parametrize("role", [UserRole.EMPLOYEE, UserRole.HR_ADMIN, UserRole.TOP_MANAGEMENT])
def test_other_roles_cannot_list_subordinates(db_session, make_user, role):
    with pytest.raises(AccessDeniedError):
        list_subordinates(db_session, make_user(role))


def test_subordinates_endpoint(client, login, manager, staff, employee):
    login(manager)
    response = client.get("/api/subordinates", params={"search": "i"})
    assert response.status_code == 200
    departments = {row["department"] for row in response.json()}
    assert departments == {"IT"}
    assert "used_vacation_leave" in response.json()[0]

    login(employee)
    assert client.get("/api/subordinates").status_code == status.HTTP_403_FORBIDDEN
