"""Error taxonomy and the uniform ``{success: false, message}`` envelope."""

import logging

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

LOGGER = logging.getLogger(__name__)


class ApiError(HTTPException):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    message = "Server error"

    def __init__(self, message: str | None = None, headers: dict | None = None) -> None:
        super().__init__(
            status_code=type(self).status_code,
            detail=message or type(self).message,
            headers=headers,
        )


class ValidationError(ApiError):
    status_code = status.HTTP_400_BAD_REQUEST
    message = "Validation error"


class InvalidCredentials(ApiError):
    status_code = status.HTTP_401_UNAUTHORIZED
    message = "Invalid credentials"


class Unauthorized(ApiError):
    status_code = status.HTTP_401_UNAUTHORIZED
    message = "Not authorized"


class AccountDeactivated(ApiError):
    status_code = status.HTTP_403_FORBIDDEN
    message = "Account is deactivated"


class Forbidden(ApiError):
    status_code = status.HTTP_403_FORBIDDEN
    message = "Admin access required"


class AccessDenied(ApiError):
    status_code = status.HTTP_403_FORBIDDEN
    message = "Access denied"


class NotFound(ApiError):
    status_code = status.HTTP_404_NOT_FOUND
    message = "Not found"


class RateLimited(ApiError):
    status_code = status.HTTP_429_TOO_MANY_REQUESTS
    message = "Too many requests from this IP, please try again later."


class ServerError(ApiError):
    pass


def error_response(status_code: int, message: str, headers: dict | None = None, **extra) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "message": message, **extra},
        headers=headers,
    )


async def _http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    return error_response(exc.status_code, str(exc.detail), headers=exc.headers)


async def _validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    details = [error.get("msg", "") for error in jsonable_encoder(exc.errors())]
    return error_response(
        status.HTTP_400_BAD_REQUEST, ValidationError.message, details=details
    )


async def _unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    LOGGER.exception("Unhandled error on %s %s", request.method, request.url.path)
    return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, ServerError.message)


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(StarletteHTTPException, _http_exception_handler)
    app.add_exception_handler(RequestValidationError, _validation_exception_handler)
    app.add_exception_handler(Exception, _unhandled_exception_handler)
