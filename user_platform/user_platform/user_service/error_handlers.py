"""
Exception handlers rendering every error in one envelope:

    {"error": {"code": ..., "message": ..., "timestamp": ..., "details": [...]}}

Internal failures are logged with their detail and answered with a generic
message.
"""
from datetime import datetime
from typing import List, Optional
import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .exceptions import UserServiceError
from .schemas import ErrorDetail, ErrorResponse, FieldError

logger = logging.getLogger(__name__)

GENERIC_ERROR_MESSAGE = "An unexpected error occurred. Please try again later."

HTTP_ERROR_CODES = {
    400: "BAD_REQUEST",
    401: "UNAUTHORIZED",
    403: "FORBIDDEN",
    404: "NOT_FOUND",
    405: "METHOD_NOT_ALLOWED",
    409: "CONFLICT",
    503: "SERVICE_UNAVAILABLE",
}


def error_response(
    status_code: int,
    code: str,
    message: str,
    details: Optional[List[FieldError]] = None,
) -> JSONResponse:
    body = ErrorResponse(
        error=ErrorDetail(
            code=code,
            message=message,
            timestamp=datetime.utcnow(),
            details=details,
        )
    )
    return JSONResponse(
        status_code=status_code,
        content=body.model_dump(mode="json", exclude_none=True),
    )


async def user_service_error_handler(request: Request, exc: UserServiceError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(
            "%s on %s %s: %s", type(exc).__name__, request.method, request.url.path, exc.message,
            exc_info=exc
        )
        return error_response(exc.status_code, "INTERNAL_ERROR", GENERIC_ERROR_MESSAGE)

    logger.warning("%s: %s", type(exc).__name__, exc.message)
    return error_response(exc.status_code, exc.code, exc.message)


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    details = []
    for error in exc.errors():
        # loc looks like ("body", "firstName"); a whole-body error has no field
        field = ".".join(str(part) for part in error.get("loc", ())[1:]) or "body"
        message = error.get("msg", "Invalid value")
        if message.startswith("Value error, "):
            message = message[len("Value error, "):]
        details.append(FieldError(field=field, message=message))

    logger.warning("Validation error on %s: %s", request.url.path, details)
    return error_response(
        status.HTTP_400_BAD_REQUEST, "VALIDATION_ERROR", "Invalid request data", details
    )


async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    code = HTTP_ERROR_CODES.get(exc.status_code, "INTERNAL_ERROR" if exc.status_code >= 500 else "ERROR")
    message = exc.detail if isinstance(exc.detail, str) else code
    response = error_response(exc.status_code, code, message)
    if exc.headers:
        response.headers.update(exc.headers)
    return response


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error("Unexpected error on %s %s: %s", request.method, request.url.path, exc, exc_info=exc)
    return error_response(
        status.HTTP_500_INTERNAL_SERVER_ERROR, "INTERNAL_ERROR", GENERIC_ERROR_MESSAGE
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(UserServiceError, user_service_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
