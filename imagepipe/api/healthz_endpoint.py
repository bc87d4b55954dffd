"""
Health check endpoint with pipeline configuration information.
"""
from fastapi import APIRouter
from fastapi.responses import JSONResponse
from PIL import features

from .config import settings

router = APIRouter()

@router.get("/api/healthz")
def healthz():
    """
    Rich health endpoint showing environment, codecs and limits. No secrets.
    """
    return JSONResponse({
        "ok": True,
        "env": settings.ENV or "unknown",
        "debug": settings.DEBUG,
        "codecs": {
            "webp": bool(features.check("webp")),
            "jpeg": bool(features.check("jpg")),
        },
        "fetch": {
            "max_retries": settings.FETCH_MAX_RETRIES,
            "timeout_ms": settings.FETCH_TIMEOUT_MS,
            "backoff_ms": settings.FETCH_BACKOFF_MS,
        },
        "compress": {
            "skip_below_bytes": settings.COMPRESS_SKIP_BELOW_BYTES,
            "max_input_mb": settings.COMPRESS_MAX_INPUT_MB,
        },
    })
