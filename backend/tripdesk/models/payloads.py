"""Request payload parsing shared by the services."""

from typing import Any, TypeVar

from pydantic import BaseModel, ValidationError

from backend.tripdesk.errors import BadRequestError

ModelT = TypeVar("ModelT", bound=BaseModel)


def describe_validation_error(exc: ValidationError) -> str:
    """First validation problem as ``field: message``."""
    err = exc.errors()[0]
    field = ".".join(str(part) for part in err["loc"]) or "payload"
    return f"{field}: {err['msg']}"


def parse_payload(model: type[ModelT], payload: Any) -> ModelT:
    """Validate a raw request body against a typed model.

    Raises:
        BadRequestError: If the payload is not an object or fails validation
    """
    if not isinstance(payload, dict):
        raise BadRequestError("Request body must be an object")
    try:
        return model.model_validate(payload)
    except ValidationError as e:
        raise BadRequestError(describe_validation_error(e)) from e
