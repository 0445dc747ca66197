"""
Custom exceptions and global exception handlers.
"""
import logging
from enum import Enum
from typing import Optional

from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class ErrorKind(str, Enum):
    """Machine-readable error tags shared by the API and turn outcomes."""

    INVALID_ANCHOR = "invalid_anchor"
    SESSION_NOT_FOUND = "session_not_found"
    DOCUMENT_NOT_FOUND = "document_not_found"
    EMPTY_ANCHOR = "empty_anchor"
    TRANSCRIPT_ORDER = "transcript_order"
    NOT_CONFIGURED = "not_configured"
    PROVIDER_ERROR = "provider_error"
    EMPTY_GENERATION = "empty_generation"
    TRANSPORT_ERROR = "transport_error"
    INTERNAL = "internal"


class AppException(Exception):
    """Base application exception."""

    kind: ErrorKind = ErrorKind.INTERNAL

    def __init__(
        self,
        message: str,
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail: str = None,
    ):
        self.message = message
        self.status_code = status_code
        self.detail = detail or message
        super().__init__(self.message)


class NotFoundError(AppException):
    """Resource not found."""

    def __init__(self, message: str = "리소스를 찾을 수 없습니다."):
        super().__init__(message, status.HTTP_404_NOT_FOUND)


class BadRequestError(AppException):
    """Invalid request."""

    def __init__(self, message: str = "잘못된 요청입니다."):
        super().__init__(message, status.HTTP_400_BAD_REQUEST)


# =============================================================================
# Session / transcript errors
# =============================================================================

class InvalidAnchorError(BadRequestError):
    """Selected text is empty or whitespace-only."""

    kind = ErrorKind.INVALID_ANCHOR

    def __init__(self, message: str = "선택된 텍스트가 없습니다. 텍스트를 선택한 후 다시 시도해주세요."):
        super().__init__(message)


class SessionNotFoundError(NotFoundError):
    kind = ErrorKind.SESSION_NOT_FOUND

    def __init__(self, message: str = "세션을 찾을 수 없습니다."):
        super().__init__(message)


class DocumentNotFoundError(NotFoundError):
    kind = ErrorKind.DOCUMENT_NOT_FOUND

    def __init__(self, message: str = "문서를 찾을 수 없습니다."):
        super().__init__(message)


class EmptyAnchorError(AppException):
    """Session reached prompt assembly without anchor text."""

    kind = ErrorKind.EMPTY_ANCHOR

    def __init__(self, message: str = "선택된 텍스트가 없습니다."):
        super().__init__(message, status.HTTP_500_INTERNAL_SERVER_ERROR)


class TranscriptOrderError(AppException):
    """Append would break the user-first ordering of a transcript."""

    kind = ErrorKind.TRANSCRIPT_ORDER

    def __init__(self, message: str = "대화 순서가 올바르지 않습니다."):
        super().__init__(message, status.HTTP_409_CONFLICT)


# =============================================================================
# Model gateway errors
# =============================================================================

class GatewayError(AppException):
    """Base class for failures of a single provider call."""

    def __init__(
        self,
        message: str,
        status_code: int = status.HTTP_503_SERVICE_UNAVAILABLE,
    ):
        super().__init__(message, status_code)


class NotConfiguredError(GatewayError):
    kind = ErrorKind.NOT_CONFIGURED

    def __init__(
        self,
        message: str = "Gemini API 키가 설정되지 않았습니다. 설정에서 API 키를 입력해주세요.",
    ):
        super().__init__(message, status.HTTP_503_SERVICE_UNAVAILABLE)


class ProviderError(GatewayError):
    """The provider answered with a non-success response."""

    kind = ErrorKind.PROVIDER_ERROR

    def __init__(
        self,
        message: str = "API 요청에 실패했습니다.",
        provider_status: Optional[int] = None,
    ):
        self.provider_status = provider_status
        super().__init__(message, status.HTTP_502_BAD_GATEWAY)


class EmptyGenerationError(GatewayError):
    kind = ErrorKind.EMPTY_GENERATION

    def __init__(self, message: str = "응답을 생성할 수 없습니다."):
        super().__init__(message, status.HTTP_502_BAD_GATEWAY)


class TransportError(GatewayError):
    """Network-level failure talking to the provider."""

    kind = ErrorKind.TRANSPORT_ERROR

    def __init__(self, message: str = "Gemini API 호출 중 오류가 발생했습니다."):
        super().__init__(message, status.HTTP_503_SERVICE_UNAVAILABLE)


async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
    """Handle custom application exceptions."""
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail, "message": exc.message, "kind": exc.kind.value},
    )


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Handle validation errors with user-friendly messages."""
    errors = []
    for error in exc.errors():
        field = ".".join(str(loc) for loc in error["loc"])
        msg = error["msg"]
        errors.append(f"{field}: {msg}")

    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={
            "detail": "입력 내용에 문제가 있습니다.",
            "errors": errors,
        },
    )


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle unexpected exceptions."""
    logger.exception(f"Unexpected error: {exc}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "detail": "서버 오류가 발생했습니다. 잠시 후 다시 시도해주세요.",
        },
    )
