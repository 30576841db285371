"""
Leave-type vocabulary and its mapping onto the User ledger columns.
"""
import enum
from typing import NamedTuple, Optional


class LeaveType(str, enum.Enum):
    VACATION = "Vacation Leave"
    MANDATORY = "Mandatory/Force Leave"
    SICK = "Sick Leave"
    MATERNITY = "Maternity Leave"
    PATERNITY = "Paternity Leave"
    SPECIAL_PRIVILEGE = "Special Privilege Leave"

    @classmethod
    def from_label(cls, label: str) -> Optional["LeaveType"]:
        try:
            return cls(label)
        except ValueError:
            return None


class LedgerFields(NamedTuple):
    total: str
    used: str


LEDGER_FIELDS = {
    LeaveType.VACATION: LedgerFields("vacation_leave", "used_vacation_leave"),
    LeaveType.MANDATORY: LedgerFields("mandatory_leave", "used_mandatory_leave"),
    LeaveType.SICK: LedgerFields("sick_leave", "used_sick_leave"),
    LeaveType.MATERNITY: LedgerFields("maternity_leave", "used_maternity_leave"),
    LeaveType.PATERNITY: LedgerFields("paternity_leave", "used_paternity_leave"),
    LeaveType.SPECIAL_PRIVILEGE: LedgerFields("special_privilege_leave", "used_special_privilege_leave"),
}

# Entitlement columns an administrator may override directly
ENTITLEMENT_FIELDS = tuple(fields.total for fields in LEDGER_FIELDS.values())
