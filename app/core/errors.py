"""
Error kinds surfaced by the API.

Every error carries a stable code (e.g. APP_002) plus a user-facing message.
Route handlers just raise; the handler registered in main.py turns them into
    {"success": false, "detail": "...", "code": "...", ...extra}
"""

from typing import Optional


class PlacifyError(Exception):
    """Base class for all API-level errors."""

    status_code = 500
    code = "SYS_001"
    message = "Internal server error occurred"

    def __init__(self, message: Optional[str] = None, code: Optional[str] = None, **extra):
        self.message = message or self.message
        self.code = code or self.code
        self.extra = extra
        super().__init__(self.message)

    def to_dict(self) -> dict:
        return {"success": False, "detail": self.message, "code": self.code, **self.extra}


class NotFoundError(PlacifyError):
    status_code = 404
    code = "APP_001"
    message = "Resource not found"


class ForbiddenError(PlacifyError):
    status_code = 403
    code = "AUTH_005"
    message = "You do not have permission to perform this action"


class DuplicateError(PlacifyError):
    status_code = 409
    code = "APP_002"
    message = "You have already applied to this job"


class ExpiredError(PlacifyError):
    status_code = 400
    code = "JOB_005"
    message = "This job is no longer accepting applications"


class InvalidStatusError(PlacifyError):
    status_code = 400
    code = "APP_003"
    message = "Invalid application status"


class InvalidTransitionError(PlacifyError):
    status_code = 400
    code = "APP_007"
    message = "Cannot change application status at this stage"


class ValidationFailureError(PlacifyError):
    status_code = 400
    code = "VAL_002"
    message = "Invalid input format"


class SystemFailureError(PlacifyError):
    status_code = 500
    code = "SYS_001"
    message = "Internal server error occurred"
