from __future__ import annotations

import logging
from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException

logger = logging.getLogger(__name__)


class LookPriceError(Exception):
    """Base error; rendered as ``{"error": message, **extra}``."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str, **extra: Any):
        super().__init__(message)
        self.message = message
        self.extra = extra


class ValidationError(LookPriceError):
    status_code = status.HTTP_400_BAD_REQUEST


class AuthError(LookPriceError):
    status_code = status.HTTP_401_UNAUTHORIZED


class InvalidCredentials(AuthError):
    def __init__(self, message: str = "Invalid credentials", **extra: Any):
        super().__init__(message, **extra)


class InvalidToken(AuthError):
    def __init__(self, message: str = "Invalid token", **extra: Any):
        super().__init__(message, **extra)


class Forbidden(LookPriceError):
    status_code = status.HTTP_403_FORBIDDEN


class NotFound(LookPriceError):
    status_code = status.HTTP_404_NOT_FOUND


class ConflictError(LookPriceError):
    status_code = status.HTTP_400_BAD_REQUEST


class InternalError(LookPriceError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR


def error_response(status_code: int, message: str, **extra: Any) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message, **extra})


async def _lookprice_error_handler(request: Request, exc: LookPriceError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("Request failed: %s endpoint=%s %s", exc.message, request.method, request.url.path)
    headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, AuthError) else None
    response = error_response(exc.status_code, exc.message, **exc.extra)
    if headers:
        response.headers.update(headers)
    return response


async def _http_exception_handler(_: Request, exc: HTTPException) -> JSONResponse:
    message = exc.detail if isinstance(exc.detail, str) else "Request failed"
    response = error_response(exc.status_code, message)
    if exc.headers:
        response.headers.update(exc.headers)
    return response


def _describe_validation_error(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "Invalid request"
    first = errors[0]
    location = [str(part) for part in first.get("loc", ()) if part not in {"body", "query", "path", "form"}]
    message = first.get("msg", "Invalid value")
    if location:
        return f"{'.'.join(location)}: {message}"
    return message


async def _request_validation_handler(_: Request, exc: RequestValidationError) -> JSONResponse:
    return error_response(status.HTTP_400_BAD_REQUEST, _describe_validation_error(exc))


async def _unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(
        "Unhandled exception while handling request endpoint=%s %s",
        request.method,
        request.url.path,
        exc_info=exc,
    )
    return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal server error")


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(LookPriceError, _lookprice_error_handler)
    app.add_exception_handler(HTTPException, _http_exception_handler)
    app.add_exception_handler(RequestValidationError, _request_validation_handler)
    app.add_exception_handler(Exception, _unhandled_exception_handler)
