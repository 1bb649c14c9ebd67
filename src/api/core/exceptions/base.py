"""Global exception handlers for the FastAPI application."""

import traceback

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from ..messages import MessageCode, get_default_message
from src.modules.billing.exceptions import (
    BillingError,
    NotFoundError,
    ProviderError,
    StorageError,
    TransportError,
    UpstreamError,
    ValidationError,
)
from src.utils.logger import get_logger

logger = get_logger(__name__)


# Most specific classes first
BILLING_ERROR_MAPPING: list[tuple[type[BillingError], MessageCode, int]] = [
    (ValidationError, MessageCode.INVALID_INPUT, status.HTTP_400_BAD_REQUEST),
    (NotFoundError, MessageCode.PAYMENT_NOT_FOUND, status.HTTP_404_NOT_FOUND),
    (
        StorageError,
        MessageCode.LEDGER_WRITE_FAILED,
        status.HTTP_500_INTERNAL_SERVER_ERROR,
    ),
    (
        TransportError,
        MessageCode.EXTERNAL_SERVICE_UNAVAILABLE,
        status.HTTP_500_INTERNAL_SERVER_ERROR,
    ),
    (
        ProviderError,
        MessageCode.EXTERNAL_SERVICE_ERROR,
        status.HTTP_500_INTERNAL_SERVER_ERROR,
    ),
    (
        UpstreamError,
        MessageCode.EXTERNAL_SERVICE_ERROR,
        status.HTTP_500_INTERNAL_SERVER_ERROR,
    ),
]


class BillingAPIException(Exception):
    """Base exception for the billing API with unified message codes."""

    def __init__(
        self,
        message_code: MessageCode,
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
        details: dict | None = None,
        headers: dict | None = None,
        message: str | None = None,
    ):
        self.message_code = message_code
        self.status_code = status_code
        self.message: str = message or get_default_message(message_code)
        self.details = details or {}
        self.headers = headers or {}
        super().__init__(self.message)

    @classmethod
    def from_billing_error(cls, error: BillingError) -> "BillingAPIException":
        for error_type, message_code, status_code in BILLING_ERROR_MAPPING:
            if isinstance(error, error_type):
                break
        else:
            message_code, status_code = (
                MessageCode.INTERNAL_ERROR,
                status.HTTP_500_INTERNAL_SERVER_ERROR,
            )

        # Upstream and storage internals stay in the logs
        details = {"description": error.message}
        if status_code == status.HTTP_500_INTERNAL_SERVER_ERROR:
            details = {"error_type": type(error).__name__}
        return cls(message_code, status_code, details=details)

    def to_response_dict(self) -> dict:
        """Convert exception to API response format."""
        return {
            "success": False,
            "message_code": self.message_code,
            "message": self.message,
            "details": self.details,
        }


def register_exception_handlers(app: FastAPI) -> None:
    """Register all exception handlers with the FastAPI app."""

    @app.exception_handler(BillingAPIException)
    async def billing_api_exception_handler(
        request: Request, exc: BillingAPIException
    ) -> JSONResponse:
        """Handle custom billing API exceptions."""
        log = logger.warning if exc.status_code < 500 else logger.error
        log(
            f"Billing API exception: {exc.message_code.value}",
            path=request.url.path,
            method=request.method,
            message_code=exc.message_code.value,
            details=exc.details,
        )

        return JSONResponse(
            status_code=exc.status_code,
            content=exc.to_response_dict(),
            headers=exc.headers,
        )

    @app.exception_handler(BillingError)
    async def billing_error_handler(
        request: Request, exc: BillingError
    ) -> JSONResponse:
        """Map domain errors raised by billing workflows onto HTTP responses."""
        return await billing_api_exception_handler(
            request, BillingAPIException.from_billing_error(exc)
        )

    @app.exception_handler(HTTPException)
    async def http_exception_handler(
        request: Request, exc: HTTPException
    ) -> JSONResponse:
        """Handle FastAPI HTTP exceptions."""
        logger.warning(
            f"HTTP exception {exc.status_code}: {exc.detail}",
            path=request.url.path,
            method=request.method,
        )

        return JSONResponse(
            status_code=exc.status_code,
            content={
                "success": False,
                "message_code": MessageCode.INTERNAL_ERROR,
                "message": str(exc.detail),
                "details": {"description": "HTTP exception occurred"},
            },
        )

    @app.exception_handler(StarletteHTTPException)
    async def starlette_http_exception_handler(
        request: Request, exc: StarletteHTTPException
    ) -> JSONResponse:
        """Handle Starlette HTTP exceptions."""
        logger.warning(
            f"Starlette HTTP exception {exc.status_code}: {exc.detail}",
            path=request.url.path,
            method=request.method,
        )

        message_code = (
            MessageCode.NOT_FOUND
            if exc.status_code == status.HTTP_404_NOT_FOUND
            else MessageCode.BAD_REQUEST
        )
        return JSONResponse(
            status_code=exc.status_code,
            content={
                "success": False,
                "message_code": message_code,
                "message": str(exc.detail),
                "details": {"description": "HTTP exception occurred"},
            },
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        """Handle request validation errors."""
        serializable_errors = [
            {"loc": list(error.get("loc", [])), "msg": error.get("msg", "")}
            for error in exc.errors()
        ]

        logger.warning(
            "Validation error occurred",
            path=request.url.path,
            method=request.method,
        )

        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={
                "success": False,
                "message_code": MessageCode.VALIDATION_ERROR,
                "message": get_default_message(MessageCode.VALIDATION_ERROR),
                "details": {
                    "description": "Request validation failed",
                    "validation_errors": serializable_errors,
                },
            },
        )

    @app.exception_handler(SQLAlchemyError)
    async def sqlalchemy_exception_handler(
        request: Request, exc: SQLAlchemyError
    ) -> JSONResponse:
        """Handle SQLAlchemy database errors."""
        logger.error(
            f"Database error: {str(exc)}",
            path=request.url.path,
            method=request.method,
            exception_type=type(exc).__name__,
        )

        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "success": False,
                "message_code": MessageCode.INTERNAL_ERROR,
                "message": "Database error occurred",
                "details": {"database_error": "Internal database error"},
            },
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(
        request: Request, exc: Exception
    ) -> JSONResponse:
        """Handle all other unhandled exceptions."""
        logger.error(
            f"Unhandled exception: {str(exc)}",
            path=request.url.path,
            method=request.method,
            exception_type=type(exc).__name__,
            traceback=traceback.format_exc(),
        )

        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "success": False,
                "message_code": MessageCode.INTERNAL_ERROR,
                "message": "Internal server error",
                "details": {"error_type": type(exc).__name__},
            },
        )
