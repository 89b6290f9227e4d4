"""
Domain exceptions

All failures are scoped to one request; routers translate them to HTTP errors.
"""


class ArenaError(Exception):
    """Base class for every event-server error"""
    pass


class AuthorizationDenied(ArenaError):
    """Bad event secret, unregistered email or credential mismatch"""
    pass


class ValidationError(ArenaError):
    """Malformed input: non-numeric score, unknown shape, wrong stage for the action"""
    pass


class GatingViolation(ArenaError):
    """Action attempted while disabled, ineligible, already locked or already complete"""
    pass


class StaleWriteConflict(ArenaError):
    """
    The persisted document advanced past the value the request assumed

    Never retried by the server; the caller decides whether to retry.
    """
    def __init__(self, message: str, field: str = None, expected=None, actual=None):
        self.field = field
        self.expected = expected
        self.actual = actual
        super().__init__(message)


class TransportError(ArenaError):
    """Store or identity provider unreachable"""
    pass


class ParticipantNotFound(ArenaError):
    def __init__(self, participant_id):
        self.participant_id = participant_id
        super().__init__(f"Participant {participant_id} not found")
