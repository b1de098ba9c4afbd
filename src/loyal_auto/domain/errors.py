"""Error taxonomy shared by services and routes.

Services raise these; ``loyal_auto.app.main`` maps each class to its HTTP
status once, so route handlers do not repeat the same try/except shape.
"""


class DealershipError(Exception):
    """Base class for errors that map onto an HTTP status."""

    status_code = 500

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class ValidationError(DealershipError):
    """Missing or invalid input."""

    status_code = 400


class NotAuthenticatedError(DealershipError):
    status_code = 401


class PermissionDeniedError(DealershipError):
    """Authenticated, but wrong role or not the record's owner."""

    status_code = 403


class NotFoundError(DealershipError):
    status_code = 404


class ConflictError(DealershipError):
    """The write would violate a uniqueness or reference rule."""

    status_code = 409


class PersistenceError(DealershipError):
    """Database failure. The message returned to clients is always generic."""

    status_code = 500


class InvalidTransitionError(ValidationError):
    """Raised when a status transition is not allowed."""

    def __init__(self, current_status, target_status, reason: str):
        self.current_status = current_status
        self.target_status = target_status
        self.reason = reason
        super().__init__(
            f"Invalid transition from {current_status.value} to {target_status.value}: {reason}"
        )
