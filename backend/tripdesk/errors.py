"""Service error taxonomy.

Every outcome of a service operation is either a result or one of these
errors. The HTTP layer maps ``status_code`` onto the response and renders the
envelope ``{success: false, message, error?}``.
"""

from typing import Any


class ServiceError(Exception):
    """Base class for classified service failures."""

    status_code: int = 500
    code: str = "internal"
    default_message: str = "Server error"

    def __init__(self, message: str | None = None, *, error: str | None = None) -> None:
        self.message = message or self.default_message
        self.error = error
        super().__init__(self.message)

    def to_envelope(self) -> dict[str, Any]:
        """Render the failure envelope."""
        body: dict[str, Any] = {"success": False, "message": self.message}
        if self.error is not None:
            body["error"] = self.error
        return body


class BadRequestError(ServiceError):
    """Malformed input: missing field, wrong shape, invalid activity list."""

    status_code = 400
    code = "bad_request"
    default_message = "Invalid request"


class NotFoundError(ServiceError):
    """Referenced day, activity, budget item or itinerary does not exist."""

    status_code = 404
    code = "not_found"
    default_message = "Not found"


class ConflictError(ServiceError):
    """Version mismatch on a document that a concurrent writer updated first."""

    status_code = 409
    code = "conflict"
    default_message = "Data was modified by another session, please reload and retry"

    def to_envelope(self) -> dict[str, Any]:
        body = super().to_envelope()
        body["shouldRetry"] = True
        return body


class InternalError(ServiceError):
    """Unexpected failure from the storage layer or elsewhere."""

    status_code = 500
    code = "internal"
    default_message = "Server error"
