"""
Domain errors raised by the scheduling and reservation services.

Every error carries an HTTP status and a stable code. Routes translate them
with to_http_exception(); services never build HTTPException themselves.
"""

from fastapi import HTTPException


class CourtsideError(Exception):
    """Base exception for all expected domain failures"""

    status_code = 500
    code = "INTERNAL_ERROR"
    default_message = "Internal error"

    def __init__(self, message: str = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(CourtsideError):
    status_code = 422
    code = "VALIDATION_ERROR"
    default_message = "Invalid request"


class AuthError(CourtsideError):
    status_code = 401
    code = "UNAUTHORIZED"
    default_message = "Unauthorized"


class ForbiddenError(CourtsideError):
    status_code = 403
    code = "FORBIDDEN"
    default_message = "Not allowed"


class NotFoundError(CourtsideError):
    status_code = 404
    code = "NOT_FOUND"
    default_message = "Not found"


class ConflictError(CourtsideError):
    status_code = 409
    code = "CONFLICT"
    default_message = "Conflict"


class InternalError(CourtsideError):
    pass


# ============================================================================
# Specific reasons
# ============================================================================


class SessionNotFoundError(NotFoundError):
    code = "SESSION_NOT_FOUND"
    default_message = "Session not found"


class RoundNotFoundError(NotFoundError):
    code = "ROUND_NOT_FOUND"
    default_message = "Round not found"


class SessionCancelledError(ConflictError):
    code = "SESSION_CANCELLED"
    default_message = "This session has been cancelled"


class SessionFullError(ConflictError):
    code = "SESSION_FULL"
    default_message = "This session is full"


class AlreadyAdmittedError(ConflictError):
    code = "ALREADY_ADMITTED"
    default_message = "This player is already in the session"


class SessionNotWaitingError(ConflictError):
    code = "SESSION_NOT_WAITING"
    default_message = "Session has already started"


class EventAlreadyStartedError(ConflictError):
    code = "EVENT_ALREADY_STARTED"
    default_message = "Round robin has already been started for this session"


class EventNotStartedError(ConflictError):
    code = "EVENT_NOT_STARTED"
    default_message = "Round robin has not been started for this session"


class AdmissionInProgressError(ConflictError):
    code = "ADMISSION_IN_PROGRESS"
    default_message = "A player is still being admitted; try starting the event again"


class OwnerCannotLeaveError(ConflictError):
    code = "OWNER_CANNOT_LEAVE"
    default_message = "The session owner cannot leave; cancel the session instead"


class NotParticipantError(ConflictError):
    code = "NOT_A_PARTICIPANT"
    default_message = "You are not in this session"


class FriendsOnlyError(ForbiddenError):
    code = "FRIENDS_ONLY"
    default_message = "This session is for friends only"


class InviterNotParticipantError(ForbiddenError):
    code = "INVITER_NOT_PARTICIPANT"
    default_message = "You must be in this session to invite others"


class NotSessionOwnerError(ForbiddenError):
    code = "NOT_SESSION_OWNER"
    default_message = "Only the session owner can do this"


class CapacityLeakError(InternalError):
    """Compensating decrement failed after a partial admission"""

    code = "CAPACITY_LEAK"
    default_message = "Admission failed and the reserved spot could not be released"


def to_http_exception(exc: CourtsideError) -> HTTPException:
    """Translate a domain error to the HTTPException returned by routes."""
    headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, AuthError) else None
    return HTTPException(status_code=exc.status_code, detail=f"{exc.code}: {exc.message}", headers=headers)
