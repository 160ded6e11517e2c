"""Application error taxonomy and FastAPI exception handlers."""
import logging
from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from vig.config import get_settings

logger = logging.getLogger(__name__)


class AppError(Exception):
    """Base class for errors rendered as structured JSON responses."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    error_type = "server_error"
    headers: dict[str, str] | None = None

    def __init__(
        self,
        message: str = "Server error",
        details: Any = None,
        extra: dict[str, Any] | None = None,
    ):
        self.message = message
        self.details = details
        self.extra = extra or {}
        super().__init__(message)


class ValidationError(AppError):
    """Bad, missing or oversized input."""
    status_code = status.HTTP_400_BAD_REQUEST
    error_type = "validation_error"


class AuthenticationError(AppError):
    status_code = status.HTTP_401_UNAUTHORIZED
    error_type = "authentication_error"
    headers = {"WWW-Authenticate": "Bearer"}


class PaymentRequired(AppError):
    """The account has no credits left for a metered operation."""
    status_code = status.HTTP_402_PAYMENT_REQUIRED
    error_type = "payment_required"

    def __init__(self, message: str = "Insufficient points. Please purchase more credits.", **kwargs):
        super().__init__(message, **kwargs)


class Forbidden(AppError):
    status_code = status.HTTP_403_FORBIDDEN
    error_type = "forbidden"


class NotFound(AppError):
    status_code = status.HTTP_404_NOT_FOUND
    error_type = "not_found"


class Conflict(AppError):
    status_code = status.HTTP_409_CONFLICT
    error_type = "conflict"


class ConfigurationError(AppError):
    """A provider credential or setting is missing (operator fault)."""
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    error_type = "configuration_error"

    def __init__(self, config_key: str, message: str | None = None, **kwargs):
        self.config_key = config_key
        super().__init__(message or f"Missing or invalid configuration: {config_key}", **kwargs)


class ServiceUnavailable(AppError):
    """An upstream provider failed; the user is never charged for it."""
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    error_type = "service_unavailable"


def error_response(
    message: str,
    status_code: int,
    error_type: str,
    details: Any = None,
    extra: dict[str, Any] | None = None,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    content: dict[str, Any] = {"message": message, "errorType": error_type, **(extra or {})}
    if details is not None and get_settings().debug:
        content["details"] = details
    return JSONResponse(status_code=status_code, content=content, headers=headers)


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError):
        if exc.status_code >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
        return error_response(exc.message, exc.status_code, exc.error_type, exc.details, exc.extra, exc.headers)

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        logger.warning("Validation error on %s: %s", request.url.path, exc.errors())
        return error_response(
            "Validation failed",
            status.HTTP_400_BAD_REQUEST,
            ValidationError.error_type,
            details=jsonable_errors(exc),
        )

    @app.exception_handler(Exception)
    async def generic_exception_handler(request: Request, exc: Exception):
        logger.exception("Unexpected error on %s %s", request.method, request.url.path)
        return error_response(
            "Internal server error",
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            AppError.error_type,
            details=str(exc),
        )


def jsonable_errors(exc: RequestValidationError) -> list[dict[str, Any]]:
    return [
        {"loc": list(err.get("loc", ())), "msg": err.get("msg"), "type": err.get("type")}
        for err in exc.errors()
    ]
