"""Application errors, each mapped to one HTTP status.

Handlers render the class name as the ``error`` field, so clients can tell a
taken slot from an exhausted quota even though both are 409.
"""


class AppException(Exception):
    """Base application exception."""

    status_code = 500
    default_message = "Internal error"

    def __init__(self, message: str | None = None):
        """Use ``default_message`` when no message is given."""
        self.message = message or self.default_message
        super().__init__(self.message)


class NotFoundException(AppException):
    """The requested product, appointment or override does not exist."""

    status_code = 404
    default_message = "Resource not found"


class ForbiddenException(AppException):
    """The caller does not own the resource."""

    status_code = 403
    default_message = "Forbidden"


class ConflictException(AppException):
    """Concurrent writes collided; retrying may succeed."""

    status_code = 409
    default_message = "Conflict"


class SlotUnavailableException(ConflictException):
    """Another live appointment already holds the date and time slot."""

    default_message = "Time slot is no longer available"


class QuotaExhaustedException(ConflictException):
    """The service has no capacity left on the requested day."""

    default_message = "Daily quota for this service is fully booked"


class InvalidStateException(AppException):
    """Requested transition is not allowed from the appointment's status."""

    status_code = 409
    default_message = "Invalid state"


class PreconditionFailedException(AppException):
    """A record the operation depends on, such as the patient profile, is missing."""

    status_code = 412
    default_message = "Precondition failed"


class ValidationException(AppException):
    """Input is well-formed but breaks a booking rule."""

    status_code = 422
    default_message = "Validation error"
