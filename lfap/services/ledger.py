"""
Balance ledger: per-user, per-leave-type entitlement and consumption.

The only guarded write is ``deduct``, which the approval workflow calls inside
its own transaction. ``override_entitlement`` is the administrative edit and
is deliberately not coupled to any leave request.
"""
import math
from dataclasses import dataclass
from datetime import date, datetime
from typing import Dict, List, Optional, Union

from sqlalchemy import or_

from lfap.core.exceptions import (
    InsufficientBalanceError,
    NotFoundError,
    UnknownLeaveTypeError,
    ValidationError,
)
from lfap.models.leave_type import ENTITLEMENT_FIELDS, LEDGER_FIELDS, LeaveType, LedgerFields
from lfap.models.user import Sex, User
from lfap.services.audit import AuditService
from lfap.services.base import BaseService

DateLike = Union[date, datetime]

SECONDS_PER_DAY = 24 * 60 * 60


def leave_duration(start: DateLike, end: DateLike) -> int:
    """
    Inclusive day count: ``ceil(|end - start| in days) + 1``.

    Both endpoints count, so a single-day leave is 1 and 20th..25th is 6.
    """
    if isinstance(start, datetime) != isinstance(end, datetime):
        start = _as_datetime(start)
        end = _as_datetime(end)
    delta = abs(end - start)
    return math.ceil(delta.total_seconds() / SECONDS_PER_DAY) + 1


def _as_datetime(value: DateLike) -> datetime:
    if isinstance(value, datetime):
        return value
    return datetime(value.year, value.month, value.day)


def resolve_leave_type(label: str) -> LeaveType:
    leave_type = LeaveType.from_label(label)
    if leave_type is None:
        raise UnknownLeaveTypeError(label)
    return leave_type


def ledger_fields(label: str) -> LedgerFields:
    return LEDGER_FIELDS[resolve_leave_type(label)]


@dataclass(frozen=True)
class LedgerEntry:
    user_id: int
    leave_type: str
    days: int
    total: int
    used_before: int
    used_after: int

    @property
    def remaining(self) -> int:
        return self.total - self.used_after


class BalanceLedger(BaseService):

    def remaining(self, user: User, label: str) -> int:
        fields = ledger_fields(label)
        return getattr(user, fields.total) - getattr(user, fields.used)

    def deduct(self, user_id: int, label: str, days: int) -> LedgerEntry:
        """
        Consume ``days`` of ``label`` for ``user_id`` in the caller's transaction.

        The counters are re-read under a row lock so two approvals for the
        same user cannot both pass the balance check on stale values. Nothing
        is committed here.
        """
        fields = ledger_fields(label)
        if not isinstance(days, int) or isinstance(days, bool) or days <= 0:
            raise ValidationError("days", "Days must be a positive integer")

        user = (
            self.db.query(User)
            .filter(User.id == user_id)
            .with_for_update()
            .populate_existing()
            .first()
        )
        if user is None:
            raise NotFoundError(f"User {user_id} not found")

        total = getattr(user, fields.total)
        used = getattr(user, fields.used)
        remaining = total - used
        if remaining < days:
            raise InsufficientBalanceError(label, remaining=remaining, requested=days)

        setattr(user, fields.used, used + days)
        self.db.flush()
        return LedgerEntry(
            user_id=user_id,
            leave_type=label,
            days=days,
            total=total,
            used_before=used,
            used_after=used + days,
        )

    def balances_for(self, user: User) -> List[Dict[str, Union[str, int]]]:
        """Balances shown to an employee; parental leave depends on sex."""
        shown = [
            LeaveType.VACATION,
            LeaveType.MANDATORY,
            LeaveType.SICK,
            LeaveType.SPECIAL_PRIVILEGE,
        ]
        if user.sex == Sex.MALE and user.paternity_leave > 0:
            shown.append(LeaveType.PATERNITY)
        if user.sex == Sex.FEMALE:
            shown.append(LeaveType.MATERNITY)

        balances = []
        for leave_type in shown:
            fields = LEDGER_FIELDS[leave_type]
            total = getattr(user, fields.total)
            used = getattr(user, fields.used)
            balances.append({
                "type": leave_type.value,
                "total": total,
                "used": used,
                "remaining": total - used,
            })
        return balances

    def search_employees(
        self,
        employee_id: Optional[str] = None,
        first_name: Optional[str] = None,
        last_name: Optional[str] = None,
    ) -> List[User]:
        filters = []
        if employee_id and employee_id.strip().isdigit():
            filters.append(User.id == int(employee_id.strip()))
        if first_name and first_name.strip():
            filters.append(User.first_name.ilike(f"%{first_name.strip()}%"))
        if last_name and last_name.strip():
            filters.append(User.last_name.ilike(f"%{last_name.strip()}%"))

        if not filters:
            return []
        return self.db.query(User).filter(or_(*filters)).order_by(User.first_name, User.last_name).all()

    def override_entitlement(self, user_id: int, field: str, new_value: int, actor: User) -> User:
        """
        UNGUARDED administrative write of one entitlement counter.

        Not linked to any leave request and not checked against requests that
        are in flight; a value below the ``used`` counter is accepted as-is.
        """
        if field not in ENTITLEMENT_FIELDS:
            raise ValidationError("leave_type", f"Unknown entitlement field: {field!r}")
        if new_value < 0:
            raise ValidationError("new_value", "Leave balance cannot be negative.")

        user = self.db.get(User, user_id)
        if user is None:
            raise NotFoundError("Employee not found")

        previous = getattr(user, field)
        setattr(user, field, new_value)
        AuditService.log(
            self.db,
            action="override_entitlement",
            entity_type="user",
            entity_id=user.id,
            user_id=actor.id,
            user_role=actor.role,
            details={"field": field, "unguarded": True},
            before_state={field: previous},
            after_state={field: new_value},
        )
        self.db.commit()
        self.db.refresh(user)
        self.log_warning(
            "Unguarded entitlement override applied",
            employee_id=user.id,
            field=field,
            previous=previous,
            new_value=new_value,
        )
        return user
