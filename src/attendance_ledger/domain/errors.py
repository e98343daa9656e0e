"""Error taxonomy for the attendance core.

Every error carries a stable ``code`` and the HTTP status the API maps it to.
``StoreUnavailable`` is the only retryable kind; the rest are definitive
outcomes for the request that raised them.
"""


class AttendanceError(Exception):
    """Base class for errors returned to callers as typed results."""

    code = "error"
    status_code = 500
    retryable = False
    default_message = "Request failed."

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class InvalidInput(AttendanceError):
    code = "invalid_input"
    status_code = 400
    default_message = "Invalid request."


class SessionNotFound(AttendanceError):
    code = "session_not_found"
    status_code = 404
    default_message = "Session not found."


class SessionExpired(AttendanceError):
    code = "session_expired"
    status_code = 410
    default_message = "Session has ended. Submissions are closed."


class DuplicateSubmission(AttendanceError):
    code = "duplicate_submission"
    status_code = 409
    default_message = "Attendance already recorded for this session."


class DeviceMismatch(AttendanceError):
    code = "device_mismatch"
    status_code = 403
    default_message = "This account is registered to a different device."


class IdentifierNotFound(AttendanceError):
    code = "identifier_not_found"
    status_code = 404
    default_message = "No secondary identifier for this identity."


class StoreUnavailable(AttendanceError):
    code = "store_unavailable"
    status_code = 503
    retryable = True
    default_message = "Storage is temporarily unavailable. Please retry."


class StoreConflict(Exception):
    """Raised by repositories when a unique constraint rejects a write."""
