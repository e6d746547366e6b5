"""Exception hierarchy for pushcal.

Every error raised on purpose inside pushcal derives from ``PushcalError``
and carries a stable machine-readable ``error_id``, a human message and the
HTTP status the API boundary should answer with. The translation to HTTP
responses happens in one place, ``pushcal.api.middleware.errors``.
"""

from __future__ import annotations

from typing import Optional


class PushcalError(Exception):
    """Base exception for all pushcal errors.

    Attributes:
        error_id: Stable identifier returned to clients as ``error.id``
        message: Human readable message returned as ``error.message``
        status: HTTP status code used by the API error middleware
    """

    status = 500
    default_error_id = "internal-error"

    def __init__(
        self,
        message: str,
        error_id: Optional[str] = None,
        status: Optional[int] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.error_id = error_id or self.default_error_id
        if status is not None:
            self.status = status

    def to_payload(self) -> dict[str, dict[str, str]]:
        """Return the JSON error envelope for this error."""
        return {"error": {"id": self.error_id, "message": self.message}}


class ValidationError(PushcalError):
    """Request validation failed.

    Raised when:
    - A required field is missing (e.g. a subscription without ``endpoint``)
    - A query parameter cannot be coerced (e.g. non-numeric ``user_id``)
    - The request body is not valid JSON or form data

    Should result in HTTP 400 Bad Request response.
    """

    status = 400
    default_error_id = "invalid-request"


class MalformedTimestamp(ValidationError, ValueError):
    """A stored start/end date string does not fit ``YYYY-MM-DDThh:mm:ss+oo``."""

    default_error_id = "malformed-timestamp"

    def __init__(self, raw: object, reason: str) -> None:
        super().__init__(f"Malformed timestamp {raw!r}: {reason}")
        self.raw = raw
        self.reason = reason


class NotFound(PushcalError):
    """A lookup returned no record (distinct from a failing store)."""

    status = 404
    default_error_id = "not-found"


class UpstreamFailure(PushcalError):
    """The document store or the push provider failed."""

    status = 500
    default_error_id = "upstream-failure"


class AuthTokenInvalid(PushcalError):
    """A calendar subscription token is missing, malformed or not verifiable.

    Calendar clients only distinguish success from failure, so the subscribe
    endpoint answers these with HTTP 500.
    """

    status = 500
    default_error_id = "unable-to-build-calendar"
