from pydantic import BaseModel, ConfigDict, Field
from typing import Literal, Optional

from lfap.models.user import Sex, UserRole

EntitlementField = Literal[
    "vacation_leave",
    "mandatory_leave",
    "sick_leave",
    "maternity_leave",
    "paternity_leave",
    "special_privilege_leave",
]


class EmployeeLedger(BaseModel):
    """An employee with their full entitlement/consumption ledger."""
    model_config = ConfigDict(from_attributes=True)

    id: int
    first_name: str
    last_name: str
    email: str
    role: UserRole
    sex: Sex
    department: Optional[str] = None

    vacation_leave: int
    mandatory_leave: int
    sick_leave: int
    maternity_leave: int
    paternity_leave: int
    special_privilege_leave: int

    used_vacation_leave: int
    used_mandatory_leave: int
    used_sick_leave: int
    used_maternity_leave: int
    used_paternity_leave: int
    used_special_privilege_leave: int


class EntitlementOverride(BaseModel):
    leave_type: EntitlementField
    new_value: int = Field(ge=0)
