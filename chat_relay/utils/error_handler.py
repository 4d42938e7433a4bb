"""Error handling utilities and custom exceptions.

Every failure a route can produce is expressed as a :class:`ChatError`
subclass carrying its HTTP status and a short machine-readable ``error``
code.  A single exception handler registered on the application turns
them into JSON bodies, so routes only have to raise.
"""

from __future__ import annotations

from typing import Any, Optional

from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from loguru import logger
from starlette.exceptions import HTTPException as StarletteHTTPException

UNKNOWN_UPSTREAM_ERROR = "Unknown error"
INVALID_MESSAGE = "Message is required and must be a string"


class ChatError(Exception):
    """Exception raised when a chat operation fails."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    error: str = "Internal server error"

    def __init__(self, message: str, details: Optional[str] = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details

    def to_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"error": self.error, "message": self.message}
        if self.details is not None:
            payload["details"] = self.details
        return payload


class ValidationError(ChatError):
    """The inbound request is malformed; the client is at fault."""

    status_code = status.HTTP_400_BAD_REQUEST
    error = INVALID_MESSAGE


class ConfigurationError(ChatError):
    """Required server configuration is missing."""

    error = "Server configuration error"


class UpstreamError(ChatError):
    """The upstream API failed or answered with an unexpected shape.

    ``upstream_status`` is the HTTP status reported by upstream when one
    was received.  ``details`` holds the upstream-provided error message,
    falling back to :data:`UNKNOWN_UPSTREAM_ERROR`.
    """

    error = "Error from OpenAI API"

    def __init__(
        self,
        message: str,
        details: Optional[str] = None,
        upstream_status: Optional[int] = None,
    ) -> None:
        super().__init__(message, details or UNKNOWN_UPSTREAM_ERROR)
        self.upstream_status = upstream_status

    def to_payload(self) -> dict[str, Any]:
        payload = super().to_payload()
        if self.upstream_status is not None:
            payload["status"] = self.upstream_status
        return payload


class RunTimeoutError(ChatError, TimeoutError):
    """An assistant run did not reach a terminal state in time."""

    error = "Assistant run timed out"


async def chat_error_handler(request: Request, exc: ChatError) -> JSONResponse:
    """Convert a ChatError into its JSON response."""
    if exc.status_code >= 500:
        logger.error("{} on {} {}: {}", type(exc).__name__, request.method, request.url.path, exc)
    else:
        logger.warning("{} on {} {}: {}", type(exc).__name__, request.method, request.url.path, exc)
    return JSONResponse(status_code=exc.status_code, content=exc.to_payload())


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Reject malformed request bodies with a 400 instead of FastAPI's 422."""
    errors = exc.errors()
    fields = [".".join(str(part) for part in err.get("loc", ()) if part != "body") for err in errors]
    if any(field == "message" or field.startswith("message.") for field in fields) or not fields:
        error = ValidationError(INVALID_MESSAGE)
    else:
        first = errors[0]
        error = ValidationError(f"{fields[0] or 'body'}: {first.get('msg', 'invalid value')}")
        error.error = "Invalid request body"
    return await chat_error_handler(request, error)


async def not_found_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Answer unmatched routes (and methods) with a JSON 404."""
    if exc.status_code in (status.HTTP_404_NOT_FOUND, status.HTTP_405_METHOD_NOT_ALLOWED):
        logger.debug("No route for {} {}", request.method, request.url.path)
        return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content={"error": "Route not found"})
    return JSONResponse(status_code=exc.status_code, content={"error": str(exc.detail)})
