"""Translate failures into the ``{"success": false, "error": ...}`` envelope.

No stack traces or internal state cross the boundary: unexpected exceptions
are logged and answered with a generic message.
"""

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from protean.exceptions import InvalidOperationError, ObjectNotFoundError, ValidationError

from wholesale.errors import OrderServiceError, RevisionConflictError

logger = structlog.get_logger(__name__)


def error_message(exc: Exception) -> str:
    """First human-readable message carried by ``exc``."""
    messages = getattr(exc, "messages", None)
    if isinstance(messages, dict):
        for value in messages.values():
            if isinstance(value, (list, tuple)):
                if value:
                    return str(value[0])
            elif value:
                return str(value)
    elif messages:
        return str(messages)
    return str(exc) or exc.__class__.__name__


def error_response(status_code: int, message: str, **extra) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "error": message, **extra})


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(ValidationError)
    async def validation_error(request: Request, exc: ValidationError):
        field = next(iter(exc.messages), None) if isinstance(exc.messages, dict) else None
        logger.warning("Rejected request", path=request.url.path, field=field, error=error_message(exc))
        return error_response(400, error_message(exc), field=field)

    @app.exception_handler(ObjectNotFoundError)
    async def not_found(request: Request, exc: ObjectNotFoundError):
        return error_response(404, error_message(exc))

    @app.exception_handler(RevisionConflictError)
    async def revision_conflict(request: Request, exc: RevisionConflictError):
        logger.warning("Revision conflict", path=request.url.path, expected=exc.expected, actual=exc.actual)
        return error_response(409, exc.message, revision=exc.actual)

    @app.exception_handler(InvalidOperationError)
    async def invalid_operation(request: Request, exc: InvalidOperationError):
        return error_response(409, error_message(exc))

    @app.exception_handler(OrderServiceError)
    async def order_service_failure(request: Request, exc: OrderServiceError):
        logger.error("Order service failure", path=request.url.path, error=str(exc))
        return error_response(502, "Order service is unavailable, please try again")

    @app.exception_handler(RequestValidationError)
    async def malformed_request(request: Request, exc: RequestValidationError):
        errors = exc.errors()
        if errors:
            location = ".".join(str(part) for part in errors[0].get("loc", ()) if part != "body")
            message = f"{location}: {errors[0].get('msg')}" if location else errors[0].get("msg")
        else:
            message = "Malformed request"
        return error_response(422, message)

    @app.exception_handler(Exception)
    async def unexpected(request: Request, exc: Exception):
        logger.exception("Unhandled error", path=request.url.path)
        return error_response(500, "Internal server error")
