from datetime import date

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import List, Optional

from lfap.database import get_db
from lfap.models.user import Capability, User
from lfap.routers.auth_deps import require
from lfap.schemas.reports import AuditLogResponse, MonthlyUtilizationReport, YearlyUtilizationReport
from lfap.services.audit import AuditService
from lfap.services.reports import UtilizationReportService

router = APIRouter(tags=["reports"])


@router.get("/reports/monthly-leave-utilization", response_model=MonthlyUtilizationReport)
def monthly_leave_utilization(
    year: Optional[int] = Query(None, ge=1900, le=9999),
    month: Optional[int] = Query(None, ge=1, le=12),
    db: Session = Depends(get_db),
    current_user: User = Depends(require(Capability.VIEW_REPORTS))
):
    """Defaults to the current month."""
    today = date.today()
    return UtilizationReportService(db).monthly(year or today.year, month or today.month)


@router.get("/reports/leave-utilization-yearly", response_model=YearlyUtilizationReport)
def yearly_leave_utilization(
    year: Optional[int] = Query(None, ge=1900, le=9999),
    db: Session = Depends(get_db),
    current_user: User = Depends(require(Capability.VIEW_REPORTS))
):
    return UtilizationReportService(db).yearly(year or date.today().year)


@router.get("/audit-logs", response_model=List[AuditLogResponse])
def list_audit_logs(
    entity_type: Optional[str] = None,
    action: Optional[str] = None,
    user_id: Optional[int] = None,
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=200),
    db: Session = Depends(get_db),
    current_user: User = Depends(require(Capability.VIEW_AUDIT_TRAIL))
):
    """Approval logs, newest first."""
    return AuditService(db).list_entries(
        entity_type=entity_type, action=action, user_id=user_id, skip=skip, limit=limit
    )
