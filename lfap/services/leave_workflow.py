"""
Leave request lifecycle.

    pending  --(manager)-->   endorsed | rejected | returned
    endorsed --(executive)--> tm_approved | tm_rejected | tm_returned

``returned`` and ``tm_returned`` go back to ``pending`` when the owner edits
the request. ``tm_approved`` consumes the owner's balance in the same
transaction as the status change.
"""
from datetime import date, datetime, timezone
from typing import Any, Dict, List, Optional

from sqlalchemy.exc import SQLAlchemyError

from lfap.core.exceptions import (
    AccessDeniedError,
    AppException,
    InvalidTransitionError,
    NotFoundError,
    TransactionFailureError,
    ValidationError,
)
from lfap.models.leave_request import LeaveRequest, LeaveStatus
from lfap.models.user import Capability, User
from lfap.services.access import (
    ensure_owner,
    ensure_same_department,
    require_capability,
    scope_leave_requests,
    search_leave_requests,
)
from lfap.services.audit import AuditService
from lfap.services.base import BaseService
from lfap.services.ledger import BalanceLedger, leave_duration, resolve_leave_type

MIN_COMMENT_LENGTH = 10
REASON_MIN_LENGTH = 10
REASON_MAX_LENGTH = 500

MANAGER_ACTIONS = frozenset({LeaveStatus.ENDORSED, LeaveStatus.REJECTED, LeaveStatus.RETURNED})
EXECUTIVE_ACTIONS = frozenset({LeaveStatus.TM_APPROVED, LeaveStatus.TM_REJECTED, LeaveStatus.TM_RETURNED})
ACTIONS = MANAGER_ACTIONS | EXECUTIVE_ACTIONS

COMMENT_REQUIRED_ACTIONS = frozenset({
    LeaveStatus.REJECTED,
    LeaveStatus.RETURNED,
    LeaveStatus.TM_REJECTED,
    LeaveStatus.TM_RETURNED,
})

TRANSITIONS = {
    LeaveStatus.PENDING: MANAGER_ACTIONS,
    LeaveStatus.ENDORSED: EXECUTIVE_ACTIONS,
}

EDITABLE_STATUSES = frozenset({LeaveStatus.RETURNED, LeaveStatus.TM_RETURNED})
TERMINAL_STATUSES = frozenset({LeaveStatus.TM_APPROVED, LeaveStatus.REJECTED, LeaveStatus.TM_REJECTED})


def parse_action(value: Any) -> LeaveStatus:
    try:
        action = LeaveStatus(value)
    except ValueError:
        action = None
    if action not in ACTIONS:
        raise ValidationError(
            "action",
            f"Action must be one of: {', '.join(sorted(a.value for a in ACTIONS))}",
        )
    return action


def validate_comments(action: LeaveStatus, comments: Optional[str]) -> Optional[str]:
    """Return trimmed comments; rejecting and returning actions must explain themselves."""
    trimmed = comments.strip() if comments else ""
    if action in COMMENT_REQUIRED_ACTIONS and len(trimmed) < MIN_COMMENT_LENGTH:
        raise ValidationError(
            "manager_comments",
            f"Manager comments of at least {MIN_COMMENT_LENGTH} characters are required for this action",
        )
    return trimmed or None


def validate_content(start_date: date, end_date: date, reason: str) -> None:
    if end_date < start_date:
        raise ValidationError("end_date", "End date must be on or after start date")
    if not REASON_MIN_LENGTH <= len(reason) <= REASON_MAX_LENGTH:
        raise ValidationError(
            "reason",
            f"Reason must be between {REASON_MIN_LENGTH} and {REASON_MAX_LENGTH} characters",
        )


def _snapshot(leave: LeaveRequest) -> Dict[str, Any]:
    return {
        "status": leave.status,
        "manager_comments": leave.manager_comments,
        "manager_id": leave.manager_id,
    }


class LeaveWorkflowService(BaseService):

    def __init__(self, db, ledger: Optional[BalanceLedger] = None):
        super().__init__(db)
        self.ledger = ledger or BalanceLedger(db)

    # ------------------------------------------------------------------
    # Employee operations
    # ------------------------------------------------------------------

    def create_request(
        self,
        owner: User,
        leave_type: str,
        start_date: date,
        end_date: date,
        reason: str,
        supporting_doc: Optional[str] = None,
    ) -> LeaveRequest:
        """File a new request. Balance is not checked until final approval."""
        require_capability(owner, Capability.FILE_LEAVE)
        resolve_leave_type(leave_type)
        validate_content(start_date, end_date, reason)

        leave = LeaveRequest(
            user_id=owner.id,
            leave_type=leave_type,
            start_date=start_date,
            end_date=end_date,
            reason=reason,
            supporting_doc=supporting_doc,
            status=LeaveStatus.PENDING,
            department=owner.department,
        )
        self.db.add(leave)
        self.db.flush()
        AuditService.log(
            self.db,
            action="file_leave",
            entity_type="leave_request",
            entity_id=leave.id,
            user_id=owner.id,
            user_role=owner.role,
            details={
                "leave_type": leave_type,
                "start_date": start_date,
                "end_date": end_date,
                "days": leave_duration(start_date, end_date),
            },
            after_state={"status": LeaveStatus.PENDING},
        )
        self.db.commit()
        self.db.refresh(leave)
        self.log_info("Leave request filed", leave_request_id=leave.id, employee_id=owner.id)
        return leave

    def get_request(self, request_id: int) -> LeaveRequest:
        leave = self.db.get(LeaveRequest, request_id)
        if leave is None:
            raise NotFoundError("Leave request not found")
        return leave

    def get_request_for_update(self, request_id: int) -> LeaveRequest:
        """Re-read the request under a row lock; the status check must not run on a stale copy."""
        leave = (
            self.db.query(LeaveRequest)
            .filter(LeaveRequest.id == request_id)
            .with_for_update()
            .populate_existing()
            .first()
        )
        if leave is None:
            raise NotFoundError("Leave request not found")
        return leave

    def get_owned_request(self, request_id: int, caller: User) -> LeaveRequest:
        return ensure_owner(self.get_request(request_id), caller, verb="view")

    def list_my_requests(self, owner: User, status: Optional[LeaveStatus] = None) -> List[LeaveRequest]:
        query = self.db.query(LeaveRequest).filter(LeaveRequest.user_id == owner.id)
        if status is not None:
            query = query.filter(LeaveRequest.status == status)
        return query.order_by(LeaveRequest.created_at.desc(), LeaveRequest.id.desc()).all()

    def edit_request(
        self,
        request_id: int,
        owner: User,
        leave_type: str,
        start_date: date,
        end_date: date,
        reason: str,
        supporting_doc: Optional[str] = None,
    ) -> LeaveRequest:
        """Revise a returned request and resubmit it as pending."""
        leave = ensure_owner(self.get_request(request_id), owner, verb="edit")
        if leave.status not in EDITABLE_STATUSES:
            raise AccessDeniedError("Only returned leave requests can be edited")

        resolve_leave_type(leave_type)
        validate_content(start_date, end_date, reason)

        before = _snapshot(leave)
        leave.leave_type = leave_type
        leave.start_date = start_date
        leave.end_date = end_date
        leave.reason = reason
        if supporting_doc:
            leave.supporting_doc = supporting_doc
        leave.status = LeaveStatus.PENDING
        leave.updated_at = datetime.now(timezone.utc)

        AuditService.log(
            self.db,
            action="resubmit_leave",
            entity_type="leave_request",
            entity_id=leave.id,
            user_id=owner.id,
            user_role=owner.role,
            details={"leave_type": leave_type, "start_date": start_date, "end_date": end_date},
            before_state=before,
            after_state=_snapshot(leave),
        )
        self.db.commit()
        self.db.refresh(leave)
        self.log_info("Leave request resubmitted", leave_request_id=leave.id)
        return leave

    # ------------------------------------------------------------------
    # Reviewer operations
    # ------------------------------------------------------------------

    def list_by_status(
        self,
        caller: User,
        status: LeaveStatus,
        search: Optional[str] = None,
    ) -> List[LeaveRequest]:
        require_capability(caller, Capability.ENDORSE, Capability.FINAL_APPROVE)

        query = (
            self.db.query(LeaveRequest)
            .join(User, LeaveRequest.user_id == User.id)
            .filter(LeaveRequest.status == status)
        )
        query = scope_leave_requests(query, caller)
        if query is None:
            return []
        query = search_leave_requests(query, search)

        order = LeaveRequest.updated_at if status == LeaveStatus.ENDORSED else LeaveRequest.created_at
        return query.order_by(order, LeaveRequest.id).all()

    def apply_action(
        self,
        request_id: int,
        action: Any,
        actor: User,
        comments: Optional[str] = None,
        approver_id: Optional[int] = None,
    ) -> LeaveRequest:
        """
        Move a request to ``action``.

        Input and permission checks happen before anything is written. The
        request row is locked before its status is checked, so two concurrent
        final approvals cannot both pass the transition check. For
        ``tm_approved`` the ledger deduction and the status change commit
        together; on any failure both are rolled back and the request keeps
        its previous status.
        """
        action = parse_action(action)
        stage_capability = Capability.ENDORSE if action in MANAGER_ACTIONS else Capability.FINAL_APPROVE
        require_capability(actor, stage_capability)
        trimmed = validate_comments(action, comments)

        if approver_id is not None and self.db.get(User, approver_id) is None:
            raise ValidationError("manager_id", f"No user with id {approver_id}")

        leave = self.get_request_for_update(request_id)
        ledger_entry = None
        try:
            ensure_same_department(actor, leave)
            if action not in TRANSITIONS.get(leave.status, frozenset()):
                raise InvalidTransitionError(leave.status.value, action.value)

            before = _snapshot(leave)
            if action == LeaveStatus.TM_APPROVED:
                days = leave_duration(leave.start_date, leave.end_date)
                ledger_entry = self.ledger.deduct(leave.user_id, leave.leave_type, days)

            leave.status = action
            leave.manager_comments = trimmed or leave.manager_comments
            leave.updated_at = datetime.now(timezone.utc)
            if approver_id is not None:
                leave.manager_id = approver_id

            details: Dict[str, Any] = {"employee_id": leave.user_id, "leave_type": leave.leave_type}
            if ledger_entry is not None:
                details["days"] = ledger_entry.days
                details["used_before"] = ledger_entry.used_before
                details["used_after"] = ledger_entry.used_after
            AuditService.log(
                self.db,
                action=f"leave_{action.value}",
                entity_type="leave_request",
                entity_id=leave.id,
                user_id=actor.id,
                user_role=actor.role,
                details=details,
                before_state=before,
                after_state=_snapshot(leave),
            )
            self.db.commit()
        except AppException as exc:
            self.db.rollback()
            self.log_warning(
                f"Leave action {action.value} rolled back: {exc.message}",
                leave_request_id=request_id,
                error_code=exc.error_code,
            )
            raise
        except SQLAlchemyError as exc:
            self.db.rollback()
            self._logger.error(
                f"Leave action {action.value} failed and was rolled back",
                exc_info=True,
                extra={"leave_request_id": request_id},
            )
            raise TransactionFailureError() from exc

        self.db.refresh(leave)
        self.log_info(
            f"Leave request {action.value}",
            leave_request_id=leave.id,
            actor_id=actor.id,
        )
        return leave
