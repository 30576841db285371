"""
Access policy: capability checks and department scoping.

Every protected operation goes through ``require_capability``; department
scoping is applied to the base query before any caller-supplied filter, so a
search term can narrow a result set but never widen it.
"""
import logging
from typing import List, Optional

from sqlalchemy import or_
from sqlalchemy.orm import Query, Session

from lfap.core.exceptions import AccessDeniedError
from lfap.models.leave_request import LeaveRequest
from lfap.models.user import Capability, User

logger = logging.getLogger(__name__)


def require_capability(user: User, *capabilities: Capability) -> User:
    """Pass if ``user`` holds any of ``capabilities``; raise Forbidden otherwise."""
    if not any(user.can(capability) for capability in capabilities):
        logger.info(
            "Capability check failed",
            extra={"user_id": user.id, "role": user.role.value, "required": [c.value for c in capabilities]},
        )
        raise AccessDeniedError(
            f"Role '{user.role.value}' is not allowed to perform this operation"
        )
    return user


def ensure_owner(leave: LeaveRequest, user: User, verb: str = "view") -> LeaveRequest:
    if leave.user_id != user.id:
        raise AccessDeniedError(f"Not authorized to {verb} this leave request")
    return leave


def ensure_same_department(actor: User, leave: LeaveRequest) -> None:
    """Department-scoped roles may only act on requests from their department."""
    if actor.can(Capability.ALL_DEPARTMENTS):
        return
    owner_department = leave.employee.department if leave.employee else leave.department
    if not actor.department or owner_department != actor.department:
        raise AccessDeniedError("You can only act on leave requests from your department")


def _name_search(query: Query, search: Optional[str]) -> Query:
    if search and search.strip():
        pattern = f"%{search.strip()}%"
        query = query.filter(or_(User.first_name.ilike(pattern), User.last_name.ilike(pattern)))
    return query


def list_subordinates(
    db: Session,
    caller: User,
    search: Optional[str] = None,
    department: Optional[str] = None,
) -> List[User]:
    """
    Users the caller may oversee, excluding the caller.

    - unscoped callers see every department, optionally narrowed by ``department``
    - department-scoped callers see their own department only; without a
      department they see nobody
    """
    require_capability(caller, Capability.LIST_SUBORDINATES)

    query = db.query(User).filter(User.id != caller.id)
    if caller.can(Capability.ALL_DEPARTMENTS):
        if department and department.strip():
            query = query.filter(User.department == department.strip())
    else:
        if not caller.department:
            logger.info("Manager without department, returning no subordinates", extra={"user_id": caller.id})
            return []
        query = query.filter(User.department == caller.department)

    query = _name_search(query, search)
    subordinates = query.order_by(User.first_name, User.last_name).all()

    if not caller.can(Capability.ALL_DEPARTMENTS):
        # The department filter is mandatory; never leak another department
        subordinates = [u for u in subordinates if u.department == caller.department]
    return subordinates


def scope_leave_requests(query: Query, caller: User) -> Optional[Query]:
    """
    Restrict a LeaveRequest query to what ``caller`` may review.

    Returns None when the caller is department-scoped but has no department.
    The query must already be joined to the owning User.
    """
    if caller.can(Capability.ALL_DEPARTMENTS):
        return query
    if not caller.department:
        return None
    return query.filter(User.department == caller.department)


def search_leave_requests(query: Query, search: Optional[str]) -> Query:
    return _name_search(query, search)
