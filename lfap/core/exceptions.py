from typing import Any, Dict, Optional


class AppException(Exception):
    def __init__(
        self,
        message: str,
        status_code: int = 400,
        error_code: str = "BUSINESS_ERROR",
        details: Optional[Dict[str, Any]] = None,
        field: Optional[str] = None,
    ):
        self.message = message
        self.status_code = status_code
        self.error_code = error_code
        self.details = details
        self.field = field
        super().__init__(self.message)

    def to_error(self) -> Dict[str, Any]:
        error: Dict[str, Any] = {"code": self.error_code, "msg": self.message}
        if self.field:
            error["field"] = self.field
        if self.details:
            error["details"] = self.details
        return error


class ValidationError(AppException):
    """Malformed or missing input. ``field`` is the machine-checkable path."""
    def __init__(self, field: str, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(
            message=message,
            status_code=422,
            error_code="VALIDATION_ERROR",
            details=details,
            field=field,
        )


class AuthenticationError(AppException):
    def __init__(self, message: str = "Not authenticated"):
        super().__init__(
            message=message,
            status_code=401,
            error_code="UNAUTHORIZED"
        )


class AccessDeniedError(AppException):
    """Custom permission error. Named AccessDeniedError to avoid shadowing Python's built-in PermissionError."""
    def __init__(self, message: str = "Insufficient permissions"):
        super().__init__(
            message=message,
            status_code=403,
            error_code="FORBIDDEN"
        )


class NotFoundError(AppException):
    def __init__(self, message: str = "Resource not found"):
        super().__init__(
            message=message,
            status_code=404,
            error_code="NOT_FOUND"
        )


class ConflictError(AppException):
    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(
            message=message,
            status_code=409,
            error_code="CONFLICT",
            field=field,
        )


class InvalidTransitionError(AppException):
    def __init__(self, current: str, action: str):
        super().__init__(
            message=f"Cannot apply '{action}' to a request that is '{current}'",
            status_code=409,
            error_code="INVALID_TRANSITION",
            details={"current_status": current, "action": action},
        )


class InsufficientBalanceError(AppException):
    def __init__(self, leave_type: str, remaining: int, requested: int):
        self.leave_type = leave_type
        self.remaining = remaining
        self.requested = requested
        super().__init__(
            message=(
                f"Insufficient {leave_type} balance: {remaining} day(s) remaining, "
                f"{requested} requested"
            ),
            status_code=409,
            error_code="INSUFFICIENT_BALANCE",
            details={"leave_type": leave_type, "remaining": remaining, "requested": requested},
        )


class UnknownLeaveTypeError(AppException):
    def __init__(self, label: str):
        self.label = label
        super().__init__(
            message=f"Unknown leave type: {label!r}",
            status_code=400,
            error_code="UNKNOWN_LEAVE_TYPE",
            details={"leave_type": label},
        )


class TransactionFailureError(AppException):
    def __init__(self, message: str = "The operation could not be completed and was rolled back"):
        super().__init__(
            message=message,
            status_code=500,
            error_code="TRANSACTION_FAILED"
        )
