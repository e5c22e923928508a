"""Response envelope and exception-to-envelope mapping.

Every response body is ``{success, message?, data?, error?}``. Service errors
carry their own status code; request-shape failures become 400 and anything
unexpected becomes a 500 with the original message kept in ``error``.
"""

import logging
from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from backend.tripdesk.errors import BadRequestError, InternalError, ServiceError

logger = logging.getLogger(__name__)


def envelope(data: Any = None, message: str | None = None) -> dict[str, Any]:
    """Build a success envelope.

    Pydantic models are dumped in JSON mode; camelCase result models keep
    their aliases.
    """
    body: dict[str, Any] = {"success": True}
    if message is not None:
        body["message"] = message
    if isinstance(data, BaseModel):
        data = data.model_dump(mode="json", by_alias=True)
    elif isinstance(data, list):
        data = [
            item.model_dump(mode="json", by_alias=True) if isinstance(item, BaseModel) else item
            for item in data
        ]
    if data is not None:
        body["data"] = data
    return body


def _error_response(exc: ServiceError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=exc.to_envelope())


async def service_error_handler(request: Request, exc: ServiceError) -> JSONResponse:
    """Render a classified service failure."""
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    return _error_response(exc)


async def request_validation_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Render request-shape failures (missing body, wrong path param type) as 400."""
    errors = exc.errors()
    if errors:
        err = errors[0]
        field = ".".join(str(part) for part in err.get("loc", ()) if part != "body")
        message = f"{field}: {err.get('msg')}" if field else str(err.get("msg"))
    else:
        message = None
    return _error_response(BadRequestError(message))


async def unexpected_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Render any unclassified exception as a 500."""
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    return _error_response(InternalError(error=str(exc)))


def register_exception_handlers(app: FastAPI) -> None:
    """Attach the envelope handlers to an application."""
    app.add_exception_handler(ServiceError, service_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(Exception, unexpected_error_handler)
