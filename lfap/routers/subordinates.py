from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import List, Optional

from lfap.database import get_db
from lfap.models.user import User
from lfap.routers.auth_deps import get_current_user
from lfap.schemas.employee import EmployeeLedger
from lfap.services.access import list_subordinates

router = APIRouter(prefix="/subordinates", tags=["subordinates"])


@router.get("", response_model=List[EmployeeLedger])
def get_subordinates(
    search: Optional[str] = None,
    department: Optional[str] = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Users the caller oversees, with their leave ledgers."""
    return list_subordinates(db, current_user, search=search, department=department)
