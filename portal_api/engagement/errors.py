"""Error taxonomy of the engagement engine.

Every error carries the HTTP status the API renders it with. Write operations
raise before touching the store whenever the problem is detectable up front,
so a raised error always means the entity is unchanged.
"""

from http import HTTPStatus


class EngagementError(Exception):
    """Base class for engine errors."""

    status_code: int = HTTPStatus.INTERNAL_SERVER_ERROR

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class Unauthorized(EngagementError):
    """No authenticated actor."""

    status_code = HTTPStatus.UNAUTHORIZED


class Forbidden(EngagementError):
    """The actor lacks the role or ownership for the mutation."""

    status_code = HTTPStatus.FORBIDDEN


class InvalidInput(EngagementError):
    """Malformed or out-of-range argument."""

    status_code = HTTPStatus.BAD_REQUEST


class InvalidState(EngagementError):
    """The operation is not valid from the entity's current state."""

    status_code = HTTPStatus.CONFLICT


class NotFound(EngagementError):
    status_code = HTTPStatus.NOT_FOUND


class CancellationFailed(EngagementError):
    """Every cancellation strategy was rejected by the deployed schema."""

    status_code = HTTPStatus.BAD_REQUEST


class PersistenceUnavailable(EngagementError):
    """The store is unreachable or lacks a table/column the operation needs."""

    status_code = HTTPStatus.SERVICE_UNAVAILABLE
