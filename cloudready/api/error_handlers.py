"""Map raised failures to the error envelope and fixed status codes."""

import logging
from typing import Any, Dict, List

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from cloudready.errors import AppError, ValidationFailedError
from cloudready.models.error import ErrorResponse, FieldError

logger = logging.getLogger(__name__)

HTTP_STATUS_CODES = {
    400: "BAD_REQUEST",
    401: "UNAUTHORIZED",
    403: "ACCESS_DENIED",
    404: "NOT_FOUND",
    405: "METHOD_NOT_ALLOWED",
    409: "CONFLICT",
}


def _json(request: Request, status: int, code: str, message: str, field_errors=None, headers=None) -> JSONResponse:
    body = ErrorResponse.for_request(request, status, code, message, field_errors)
    return JSONResponse(body.to_body(), status_code=status, headers=headers)


def field_errors_from_validation(errors: List[Dict[str, Any]]) -> List[FieldError]:
    """Convert pydantic/FastAPI error dicts to field errors.

    The field is the last location element (the wire name); the message drops
    pydantic's "Value error, " prefix.
    """
    field_errors = []
    for err in errors:
        loc = [str(part) for part in err.get("loc", ())]
        field = loc[-1] if loc else "request"
        message = err.get("msg", "Invalid value")
        if message.startswith("Value error, "):
            message = message[len("Value error, "):]
        field_errors.append(FieldError(field=field, rejected_value=err.get("input"), message=message))
    return field_errors


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    field_errors = None
    if isinstance(exc, ValidationFailedError) and exc.field_errors:
        field_errors = [
            FieldError(field=fe.field, rejected_value=fe.rejected_value, message=fe.message)
            for fe in exc.field_errors
        ]
    headers = {"WWW-Authenticate": "Bearer"} if exc.status_code == 401 else None
    return _json(request, exc.status_code, exc.code, exc.message, field_errors, headers)


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return _json(
        request,
        400,
        ValidationFailedError.code,
        "Validation failed",
        field_errors_from_validation(exc.errors()),
    )


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    code = HTTP_STATUS_CODES.get(exc.status_code, "HTTP_ERROR")
    return _json(request, exc.status_code, code, str(exc.detail), headers=getattr(exc, "headers", None))


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    correlation_id = getattr(request.state, "correlation_id", None)
    logger.exception(f"Unhandled error on {request.method} {request.url.path} [{correlation_id}]", exc_info=exc)
    return _json(request, 500, "INTERNAL_ERROR", "An unexpected error occurred")


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
