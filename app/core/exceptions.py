from typing import Any

from fastapi import Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import ORJSONResponse


class AppError(Exception):
    """Base application error with consistent schema."""

    def __init__(
        self,
        message: str,
        code: str = "ERROR",
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
        details: Any = None,
        extra: dict[str, Any] | None = None,
    ):
        self.message = message
        self.code = code
        self.status_code = status_code
        self.details = details
        self.extra = extra or {}
        super().__init__(message)


class BadRequestError(AppError):
    def __init__(self, message: str = "Bad request", details: Any = None):
        super().__init__(message, code="BAD_REQUEST", status_code=status.HTTP_400_BAD_REQUEST, details=details)


class UnauthorizedError(AppError):
    def __init__(self, message: str = "Unauthorized"):
        super().__init__(message, code="UNAUTHORIZED", status_code=status.HTTP_401_UNAUTHORIZED)


class ForbiddenError(AppError):
    def __init__(self, message: str = "Forbidden"):
        super().__init__(message, code="FORBIDDEN", status_code=status.HTTP_403_FORBIDDEN)


class BalanceExhaustedError(AppError):
    """Caller has no tokens left; carries the support contact."""

    def __init__(self, support_email: str):
        super().__init__(
            "Balansınız bitib. Xidmət üçün müştəri xidməti ilə əlaqə saxlayın: " + support_email,
            code="BALANCE_EXHAUSTED",
            status_code=status.HTTP_403_FORBIDDEN,
            extra={"balance": 0, "supportEmail": support_email},
        )


class NotFoundError(AppError):
    def __init__(self, message: str = "Not found"):
        super().__init__(message, code="NOT_FOUND", status_code=status.HTTP_404_NOT_FOUND)


class ConflictError(AppError):
    """Duplicate identity field at registration. Reported as 400 to match the client contract."""

    def __init__(self, message: str = "Conflict", details: Any = None):
        super().__init__(message, code="CONFLICT", status_code=status.HTTP_400_BAD_REQUEST, details=details)


class ContentBlockedError(AppError):
    def __init__(self):
        super().__init__(
            "Cavab yaradıla bilmədi. Xahiş edirik sualınızı başqa sözlərlə ifadə edin.",
            code="CONTENT_BLOCKED",
            details="Model response was blocked. Please rephrase your question.",
        )


class NoContentError(AppError):
    def __init__(self):
        super().__init__(
            "Cavab alına bilmədi. Xahiş edirik sualınızı başqa cür ifadə edin.",
            code="NO_CONTENT",
            details="No response text received from model. Please rephrase your question.",
        )


class UpstreamError(AppError):
    def __init__(self, message: str = "Failed to call generation service", details: Any = None):
        super().__init__(message, code="UPSTREAM_FAILURE", details=details)


class LedgerConflictError(AppError):
    def __init__(self, message: str = "Balance update conflicted too many times"):
        super().__init__(message, code="LEDGER_CONFLICT")


def summarize_exception(exc: BaseException, limit: int = 200) -> str:
    """Short, caller-safe description of an upstream failure."""
    text = str(exc).strip().splitlines()[0] if str(exc).strip() else ""
    if len(text) > limit:
        text = text[:limit] + "..."
    return f"{type(exc).__name__}: {text}" if text else type(exc).__name__


def error_response(request: Request, exc: AppError) -> ORJSONResponse:
    body: dict[str, Any] = {"error": exc.message, "code": exc.code}
    if exc.details is not None:
        body["details"] = exc.details
    body.update(exc.extra)
    if hasattr(request.state, "request_id"):
        body["request_id"] = request.state.request_id
    return ORJSONResponse(status_code=exc.status_code, content=body)


async def app_exception_handler(request: Request, exc: AppError) -> ORJSONResponse:
    return error_response(request, exc)


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> ORJSONResponse:
    body = {
        "error": "Validation error",
        "code": "VALIDATION_ERROR",
        "details": {"errors": jsonable_encoder(exc.errors())},
    }
    if hasattr(request.state, "request_id"):
        body["request_id"] = request.state.request_id
    return ORJSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=body,
    )


async def generic_exception_handler(request: Request, exc: Exception) -> ORJSONResponse:
    from app.core.logging import get_logger
    get_logger(__name__).exception("unhandled_exception", exc_info=exc)
    body = {
        "error": "Internal server error",
        "code": "INTERNAL_ERROR",
        "details": summarize_exception(exc),
    }
    if hasattr(request.state, "request_id"):
        body["request_id"] = request.state.request_id
    return ORJSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=body,
    )
