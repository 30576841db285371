from fastapi import APIRouter, BackgroundTasks, Depends
from sqlalchemy.orm import Session
from typing import List, Optional

from lfap.core.schemas import ApiResponse
from lfap.database import get_db
from lfap.models.leave_request import LeaveStatus
from lfap.models.user import User
from lfap.routers.auth_deps import get_current_user
from lfap.schemas.leave import (
    LeaveActionRequest,
    LeaveBalancesResponse,
    LeaveRequestCreate,
    LeaveRequestEdit,
    LeaveRequestListItem,
    LeaveRequestResponse,
)
from lfap.services.leave_workflow import LeaveWorkflowService, MANAGER_ACTIONS
from lfap.services.notification import (
    NotificationDispatcher,
    StatusNotification,
    get_notification_dispatcher,
)

router = APIRouter(prefix="/leave-requests", tags=["leave-requests"])

_MANAGER_ACTION_VALUES = {action.value for action in MANAGER_ACTIONS}


@router.post("", response_model=ApiResponse[LeaveRequestResponse], status_code=201)
def create_leave_request(
    payload: LeaveRequestCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    leave = LeaveWorkflowService(db).create_request(
        current_user,
        leave_type=payload.leave_type,
        start_date=payload.start_date,
        end_date=payload.end_date,
        reason=payload.reason,
        supporting_doc=payload.supporting_doc,
    )
    return ApiResponse.ok(LeaveRequestResponse.model_validate(leave), message="Leave request submitted")


@router.get("/mine", response_model=List[LeaveRequestResponse])
def my_leave_requests(
    status: Optional[LeaveStatus] = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return LeaveWorkflowService(db).list_my_requests(current_user, status)


@router.get("/balances", response_model=LeaveBalancesResponse)
def my_leave_balances(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    service = LeaveWorkflowService(db)
    return {
        "leave_balances": service.ledger.balances_for(current_user),
        "user_sex": current_user.sex.value if current_user.sex else None,
    }


@router.get("", response_model=List[LeaveRequestListItem])
def list_leave_requests(
    status: LeaveStatus = LeaveStatus.PENDING,
    search: Optional[str] = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return LeaveWorkflowService(db).list_by_status(current_user, status, search)


@router.get("/pending-endorsement", response_model=List[LeaveRequestListItem])
def pending_endorsement(
    search: Optional[str] = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return LeaveWorkflowService(db).list_by_status(current_user, LeaveStatus.PENDING, search)


@router.get("/endorsed", response_model=List[LeaveRequestListItem])
def endorsed_requests(
    search: Optional[str] = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return LeaveWorkflowService(db).list_by_status(current_user, LeaveStatus.ENDORSED, search)


@router.get("/tm-returned", response_model=List[LeaveRequestListItem])
def tm_returned_requests(
    search: Optional[str] = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return LeaveWorkflowService(db).list_by_status(current_user, LeaveStatus.TM_RETURNED, search)


@router.get("/{request_id}", response_model=LeaveRequestResponse)
def get_leave_request(
    request_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return LeaveWorkflowService(db).get_owned_request(request_id, current_user)


@router.patch("/{request_id}/action", response_model=ApiResponse[LeaveRequestResponse])
def act_on_leave_request(
    request_id: int,
    payload: LeaveActionRequest,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    dispatcher: NotificationDispatcher = Depends(get_notification_dispatcher),
):
    """Endorse, reject, return or give final approval to a request."""
    approver_id = payload.manager_id
    if approver_id is None and payload.action in _MANAGER_ACTION_VALUES:
        approver_id = current_user.id

    leave = LeaveWorkflowService(db).apply_action(
        request_id,
        payload.action,
        current_user,
        comments=payload.manager_comments,
        approver_id=approver_id,
    )

    # Snapshot now; the request session is closed by the time the task runs
    notice = StatusNotification.from_request(leave)
    background_tasks.add_task(dispatcher.dispatch_status_change, notice)

    return ApiResponse.ok(
        LeaveRequestResponse.model_validate(leave),
        message=f"Leave request {leave.status.label.lower()}",
    )


@router.put("/{request_id}", response_model=ApiResponse[LeaveRequestResponse])
def edit_leave_request(
    request_id: int,
    payload: LeaveRequestEdit,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    leave = LeaveWorkflowService(db).edit_request(
        request_id,
        current_user,
        leave_type=payload.leave_type,
        start_date=payload.start_date,
        end_date=payload.end_date,
        reason=payload.reason,
        supporting_doc=payload.supporting_doc,
    )
    return ApiResponse.ok(LeaveRequestResponse.model_validate(leave), message="Leave request resubmitted")
