class DomainError(Exception):
    """Base exception for business rule violations.

    ``code`` is the machine-checkable reason reported to API callers.
    """

    code = "DOMAIN_ERROR"


class ValidationError(DomainError):
    """Raised when input data is missing or malformed."""

    code = "VALIDATION_ERROR"


class PolicyViolation(DomainError):
    """Raised when the caller is outside the geofence or on the wrong network."""

    code = "POLICY_VIOLATION"


class LocationRejected(PolicyViolation):
    code = "LOCATION_REJECTED"

    def __init__(self, message: str, *, location_compliant: bool, network_compliant: bool, distance_meters: float):
        super().__init__(message)
        self.location_compliant = location_compliant
        self.network_compliant = network_compliant
        self.distance_meters = distance_meters


class StateConflict(DomainError):
    """Raised when the attendance state does not allow the operation."""

    code = "STATE_CONFLICT"


class AlreadyPunchedIn(StateConflict):
    code = "ALREADY_PUNCHED_IN"


class AlreadyPunchedOut(StateConflict):
    code = "ALREADY_PUNCHED_OUT"


class NotPunchedIn(StateConflict):
    code = "NOT_PUNCHED_IN"


class NoActiveSession(StateConflict):
    code = "NO_ACTIVE_SESSION"


class OnApprovedLeave(StateConflict):
    code = "ON_APPROVED_LEAVE"


class NotFound(DomainError):
    code = "NOT_FOUND"
