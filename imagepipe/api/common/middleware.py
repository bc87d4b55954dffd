"""
Global middleware for the ImagePipe API.
Ensures ALL responses are JSON, even on unhandled exceptions.
"""
import logging
import time
from fastapi import Request
from ..error_utils import generate_request_id, json_error

logger = logging.getLogger(__name__)


def install_error_middleware(app):
    """
    Install global error handling middleware and the liveness endpoint.

    Usage:
        from imagepipe.api.common.middleware import install_error_middleware
        app = FastAPI()
        install_error_middleware(app)
    """

    @app.middleware("http")
    async def error_wrapper_middleware(request: Request, call_next):
        """
        Wraps all requests with:
        1. Request ID generation
        2. Exception catching
        3. JSON-only error responses
        """
        request_id = generate_request_id()
        request.state.request_id = request_id
        t0 = time.perf_counter()

        try:
            response = await call_next(request)
            response.headers["X-Request-Id"] = request_id
            return response

        except Exception as e:
            logger.exception(f"[{request_id}] Unhandled exception in {request.method} {request.url.path}")

            return json_error(
                500,
                "Internal server error",
                "internal",
                req_id=request_id,
                elapsed_ms=int((time.perf_counter() - t0) * 1000),
                detail=str(e)[:200]  # Truncate for safety
            )

    @app.get("/api/health")
    async def health_check():
        """Health check - always returns JSON."""
        return {"ok": True, "status": "healthy", "service": "ImagePipe"}
