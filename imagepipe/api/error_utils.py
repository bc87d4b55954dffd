"""
Error types and JSON error handling for the ImagePipe API.
Ensures all responses are valid JSON with consistent structure.
"""
import uuid
import logging
from typing import Any, Dict
from fastapi import Request
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class ImagePipelineError(Exception):
    """Base class for failures local to one image."""


class DecodeError(ImagePipelineError):
    """Input bytes cannot be interpreted as an image."""


class EncodingError(ImagePipelineError):
    """The encoder rejected the requested format/quality."""


class ApiError(Exception):
    """
    Structured API error with consistent fields.
    Always results in JSON response, never HTML.
    """
    def __init__(
        self,
        status: int,
        message: str,
        code: str = "api_error",
        detail: Any = None,
        hint: str = None,
        extra: Dict[str, Any] = None
    ):
        self.status = status
        self.message = message
        self.code = code
        self.detail = detail
        self.hint = hint
        self.extra = extra or {}
        super().__init__(message)


class InvalidInputError(ApiError):
    """Structurally invalid batch request; fatal for the whole request."""
    def __init__(self, message: str, detail: Any = None):
        super().__init__(400, message, "invalid_request", detail=detail)


def json_error(
    status: int,
    message: str,
    code: str,
    req_id: str = None,
    elapsed_ms: int = None,
    detail: Any = None,
    hint: str = None,
    **extra
) -> JSONResponse:
    """
    Return a properly formatted JSON error response.

    Args:
        status: HTTP status code
        message: Human-readable error message
        code: Machine-readable error code
        req_id: Request ID for tracking
        elapsed_ms: Request duration
        detail: Additional error details
        hint: Actionable hint for user
        **extra: Additional fields

    Returns:
        JSONResponse with standardized error structure
    """
    if not req_id:
        req_id = generate_request_id()

    payload = {
        "ok": False,
        "error": message,
        "code": code,
        "request_id": req_id
    }

    if detail is not None:
        payload["detail"] = detail
    if hint:
        payload["hint"] = hint
    if elapsed_ms is not None:
        payload["elapsed_ms"] = elapsed_ms

    payload.update(extra)

    return JSONResponse(
        payload,
        status_code=status,
        media_type="application/json",
        headers={"X-Request-Id": req_id}
    )


def json_success(
    data: Dict[str, Any],
    req_id: str = None,
    elapsed_ms: int = None,
    **extra
) -> JSONResponse:
    """
    Return a properly formatted JSON success response.

    Args:
        data: Response fields, merged into the top level
        req_id: Request ID for tracking
        elapsed_ms: Request duration
        **extra: Additional fields

    Returns:
        JSONResponse with standardized success structure
    """
    payload = {
        "ok": True,
        **data
    }

    if req_id:
        payload["request_id"] = req_id
    if elapsed_ms is not None:
        payload["elapsed_ms"] = elapsed_ms

    payload.update(extra)

    return JSONResponse(payload, status_code=200, media_type="application/json")


def validate_upload_size(size_bytes: int, max_mb: float) -> None:
    """
    Reject uploads above the configured limit.

    Raises:
        ApiError: 413 if size exceeds max_mb
    """
    size_mb = size_bytes / (1024 * 1024)

    if size_mb > max_mb:
        raise ApiError(
            413,
            f"File too large ({size_mb:.2f}MB). Maximum is {max_mb}MB.",
            "payload_too_large",
            hint="Resize the photo on the device before uploading"
        )


def install_exception_handlers(app):
    """
    Install global exception handlers to ensure all responses are JSON.
    Prevents any HTML error pages from leaking through.

    Args:
        app: FastAPI application instance
    """
    from fastapi.exceptions import RequestValidationError

    @app.exception_handler(ApiError)
    async def api_error_handler(request: Request, exc: ApiError):
        """Handle structured ApiError exceptions."""
        req_id = getattr(request.state, "request_id", None) or generate_request_id()
        logger.error(f"[{req_id}] ApiError: {exc.status} {exc.code} - {exc.message}")

        return json_error(
            exc.status,
            exc.message,
            exc.code,
            req_id=req_id,
            detail=exc.detail,
            hint=exc.hint,
            **exc.extra
        )

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        """Handle Pydantic validation errors."""
        req_id = getattr(request.state, "request_id", None) or generate_request_id()
        logger.warning(f"[{req_id}] Validation error: {exc}")

        return json_error(
            422,
            "Request validation failed",
            "validation_error",
            req_id=req_id,
            detail=jsonable_errors(exc.errors()),
            hint="Check request body format"
        )


def jsonable_errors(errors) -> list:
    """Trim pydantic error dicts to JSON-safe fields (first 3 only)."""
    return [
        {"loc": list(e.get("loc", ())), "msg": e.get("msg"), "type": e.get("type")}
        for e in errors[:3]
    ]


def generate_request_id() -> str:
    """Generate a short, unique request ID."""
    return str(uuid.uuid4())[:12]
