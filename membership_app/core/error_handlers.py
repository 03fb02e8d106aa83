from fastapi import FastAPI, Request
from fastapi.exceptions import (
    HTTPException as StarletteHTTPException,
    RequestValidationError,
)

from membership_app.core.exceptions import MembershipError
from membership_app.core.logging_config import get_logger
from membership_app.core.response import (
    error_response,
    membership_error_response,
    validation_error_response,
)


logger = get_logger("error_handlers")


def register_exception_handlers(app: FastAPI) -> None:
    """Render every error through the standard envelope."""

    @app.exception_handler(MembershipError)
    async def membership_exception_handler(request: Request, exc: MembershipError):
        """Domain errors: the transaction is already rolled back"""
        logger.warning(
            f"{exc.error_code}: {exc.message}",
            extra={
                "status_code": exc.status_code,
                "path": request.url.path,
                "method": request.method,
            },
        )
        return membership_error_response(exc)

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        """Handle HTTP exceptions with logging"""
        # exc.detail might be a dict or str
        msg = exc.detail if isinstance(exc.detail, str) else str(exc.detail)

        logger.warning(
            f"HTTP Exception: {exc.status_code} - {msg}",
            extra={
                "status_code": exc.status_code,
                "path": request.url.path,
                "method": request.method,
                "client_ip": request.client.host if request.client else None
            }
        )

        return error_response(msg, status_code=exc.status_code)

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        """Structured validation error details"""
        error_count = len(exc.errors())
        logger.warning(
            f"Validation Error: {error_count} field(s) failed validation",
            extra={
                "path": request.url.path,
                "method": request.method,
                "error_count": error_count,
            }
        )

        return validation_error_response(exc.errors(), status_code=422)
