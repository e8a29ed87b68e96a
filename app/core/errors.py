"""Error taxonomy shared by the domain services and the HTTP layer."""
from __future__ import annotations

import logging
from datetime import datetime, timezone

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class AccountServiceError(Exception):
    """Base class for every error the service reports to its callers."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    title: str = "Internal Server Error"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(AccountServiceError):
    """Malformed request or one that fails an eligibility rule."""

    status_code = status.HTTP_400_BAD_REQUEST
    title = "Bad Request"


class BusinessRuleError(AccountServiceError):
    """Well-formed request that violates a domain invariant."""

    status_code = status.HTTP_400_BAD_REQUEST
    title = "Business Rule Violation"


class NotFoundError(AccountServiceError):
    status_code = status.HTTP_404_NOT_FOUND
    title = "Resource Not Found"


class AccountNotFoundError(NotFoundError):
    pass


class CustomerNotFoundError(NotFoundError):
    def __init__(self, customer_id: str) -> None:
        super().__init__(f"Customer '{customer_id}' was not found.")
        self.customer_id = customer_id


class ServiceUnavailableError(AccountServiceError):
    """Raised only by fault-boundary fallbacks."""

    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    title = "Service Unavailable"


class DataAccessError(AccountServiceError):
    """Persistence failure not otherwise classified."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    title = "Database Error"


def _error_body(request: Request, status_code: int, title: str, message: str) -> dict[str, object]:
    return {
        "detail": message,
        "error": title,
        "status": status_code,
        "path": request.url.path,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


async def account_service_error_handler(request: Request, exc: AccountServiceError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(
            "%s on %s %s: %s",
            type(exc).__name__,
            request.method,
            request.url.path,
            exc.message,
            exc_info=exc.__cause__ is not None,
        )
    else:
        logger.info("%s on %s %s: %s", type(exc).__name__, request.method, request.url.path, exc.message)

    return JSONResponse(
        status_code=exc.status_code,
        content=_error_body(request, exc.status_code, exc.title, exc.message),
    )


async def request_validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Report malformed bodies and query strings as 400 rather than FastAPI's 422."""
    problems = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ()) if part != "body")
        problems.append(f"{location}: {error.get('msg')}" if location else str(error.get("msg")))

    message = "; ".join(problems) or "Invalid request"
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=_error_body(request, status.HTTP_400_BAD_REQUEST, ValidationError.title, message),
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AccountServiceError, account_service_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_error_handler)


__all__ = [
    "AccountNotFoundError",
    "AccountServiceError",
    "BusinessRuleError",
    "CustomerNotFoundError",
    "DataAccessError",
    "NotFoundError",
    "ServiceUnavailableError",
    "ValidationError",
    "register_exception_handlers",
]
