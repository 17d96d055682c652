"""Error taxonomy shared by services and the HTTP layer.

Services raise these; ``securevet.main`` turns them into JSON responses
with the matching status code. None of them imply a partial write.
"""


class ClinicError(Exception):
    status_code = 500
    code = "error"

    def __init__(self, message: str = ""):
        super().__init__(message)
        self.message = message or self.__class__.__name__


class ValidationError(ClinicError):
    """Malformed or missing input, or a failed booking precondition."""

    status_code = 400
    code = "validation_error"


class AuthenticationError(ClinicError):
    """Bad credentials, bad second factor, or an invalid session token."""

    status_code = 401
    code = "authentication_failed"


class AuthorizationError(ClinicError):
    """The actor lacks the capability or does not own the resource."""

    status_code = 403
    code = "forbidden"


class NotFoundError(ClinicError):
    status_code = 404
    code = "not_found"


class ConflictError(ClinicError):
    """Claim refused because another staff member already holds the appointment."""

    status_code = 409
    code = "already_assigned"


class InvalidTransitionError(ConflictError):
    """The appointment is not in a state that allows the requested transition."""

    code = "invalid_transition"


class DownstreamError(ClinicError):
    """Firestore or the identity provider could not be reached."""

    status_code = 500
    code = "downstream_failure"
