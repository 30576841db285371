from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import List, Optional

from lfap.core.schemas import ApiResponse
from lfap.database import get_db
from lfap.models.user import Capability, User
from lfap.routers.auth_deps import require
from lfap.schemas.employee import EmployeeLedger, EntitlementOverride
from lfap.services.ledger import BalanceLedger

router = APIRouter(prefix="/leave-balances", tags=["leave-balances"])


@router.get("/employees", response_model=List[EmployeeLedger])
def search_employees(
    employee_id: Optional[str] = None,
    first_name: Optional[str] = None,
    last_name: Optional[str] = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(require(Capability.MANAGE_BALANCES))
):
    return BalanceLedger(db).search_employees(employee_id, first_name, last_name)


@router.put("/employees/{employee_id}", response_model=ApiResponse[EmployeeLedger])
def override_entitlement(
    employee_id: int,
    payload: EntitlementOverride,
    db: Session = Depends(get_db),
    current_user: User = Depends(require(Capability.MANAGE_BALANCES))
):
    """
    Set one entitlement counter directly.

    This write is not tied to any leave request and is not checked against
    requests awaiting approval.
    """
    user = BalanceLedger(db).override_entitlement(
        employee_id, payload.leave_type, payload.new_value, actor=current_user
    )
    return ApiResponse.ok(EmployeeLedger.model_validate(user), message="Leave balance updated")
