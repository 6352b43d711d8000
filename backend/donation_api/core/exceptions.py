"""Domain error taxonomy and the JSON error envelope handlers.

Every failure leaves the API as ``{"success": false, "message": ...}`` with
an HTTP status taken from the error class. Internal details (stack traces,
driver messages) are logged, never returned.
"""

import logging

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


class DonationServiceError(Exception):
    """Base class for errors reported to API callers."""

    status: int = 500
    default_message: str = "Internal server error"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(DonationServiceError):
    """Bad or missing input. Raised before anything is written."""

    status = 400
    default_message = "Invalid request"

    def __init__(self, field: str, message: str | None = None):
        self.field = field
        super().__init__(message or f"Invalid value for '{field}'")


class InvalidStatusTransition(ValidationError):
    def __init__(self, current: str, requested: str, allowed: list[str]):
        self.current = current
        self.requested = requested
        self.allowed = allowed
        super().__init__(
            "status",
            f"Cannot transition donation from '{current}' to '{requested}'",
        )


class NotFound(DonationServiceError):
    status = 404
    default_message = "Donation not found"


class RenderError(DonationServiceError):
    """QR or PDF generation failed."""

    default_message = "Error generating document"


class StorageError(DonationServiceError):
    default_message = "Error saving donation"


class PaymentNotCompleted(DonationServiceError):
    status = 400
    default_message = "Payment was not successful or was canceled."


class UpstreamError(DonationServiceError):
    """The payment processor failed or could not be reached."""

    default_message = "There was an error verifying your payment. Please try again later."


def _envelope(status: int, message: str, **extra) -> JSONResponse:
    return JSONResponse(
        status_code=status,
        content={"success": False, "message": message, **extra},
    )


async def donation_error_handler(request: Request, exc: DonationServiceError) -> JSONResponse:
    if isinstance(exc, ValidationError):
        extra = {"field": exc.field}
        if isinstance(exc, InvalidStatusTransition):
            extra["allowed"] = exc.allowed
        return _envelope(exc.status, exc.message, **extra)
    if exc.status >= 500:
        logger.error("%s on %s: %s", type(exc).__name__, request.url.path, exc.message)
    return _envelope(exc.status, exc.message)


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    message = exc.detail if isinstance(exc.detail, str) else "Error"
    return _envelope(exc.status_code, message)


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    errors = exc.errors()
    field = "body"
    message = "Invalid request"
    if errors:
        first = errors[0]
        # loc is ("body", "<field>", ...) or ("query", "<param>")
        loc = [str(part) for part in first.get("loc", ()) if part not in ("body", "query", "path")]
        if loc:
            field = ".".join(loc)
        message = f"{field}: {first.get('msg', 'invalid value')}"
    return _envelope(400, message, field=field)


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return _envelope(500, DonationServiceError.default_message)
