"""
Image pipeline HTTP endpoints.

POST /api/image-to-base64  stored URLs -> data URIs for document generation
POST /api/compress         one uploaded image -> compressed image
"""
import logging
import time
from typing import Optional

import httpx
from fastapi import APIRouter, Depends, File, Form, Request, UploadFile
from pydantic import ValidationError

from .config import settings
from .compression import compress_image
from .conversion import convert_batch
from .error_utils import (
    ApiError,
    DecodeError,
    EncodingError,
    generate_request_id,
    json_error,
    json_success,
    jsonable_errors,
    validate_upload_size,
)
from .common.images import image_to_data_url
from .common.retry import open_client
from .common.types import ImageFile, resolve_options

log = logging.getLogger(__name__)

router = APIRouter()


async def get_http_client():
    """One outbound client per request, shared by every URL in a batch."""
    async with open_client() as client:
        yield client


def _request_id(request: Request) -> str:
    return getattr(request.state, "request_id", None) or generate_request_id()


@router.post("/api/image-to-base64")
async def image_to_base64(request: Request, client: httpx.AsyncClient = Depends(get_http_client)):
    """
    Convert stored image URLs to data URIs.

    Body: {"urls": [...]}
    Returns `images` (successful payloads only) and `items` (one entry per
    input URL, null where conversion failed) plus aggregate counts.
    """
    req_id = _request_id(request)
    t0 = time.perf_counter()

    try:
        payload = await request.json()
    except Exception:
        raise ApiError(400, "Request body must be JSON", "invalid_request")

    urls = payload.get("urls") if isinstance(payload, dict) else None

    try:
        result = await convert_batch(urls, client=client)
    except ApiError:
        raise
    except Exception as e:
        log.exception(f"[{req_id}] image-to-base64 critical error")
        return json_error(
            500,
            "Failed to convert images",
            "internal",
            req_id=req_id,
            elapsed_ms=int((time.perf_counter() - t0) * 1000),
            detail=str(e)[:200]
        )

    return json_success(
        {
            "images": result.images,
            "items": result.items,
            "total": result.total,
            "converted": result.converted,
            "failed": result.failed,
        },
        req_id=req_id,
        elapsed_ms=int((time.perf_counter() - t0) * 1000),
    )


@router.post("/api/compress")
async def compress_endpoint(
    request: Request,
    file: UploadFile = File(...),
    max_width: Optional[int] = Form(None),
    max_height: Optional[int] = Form(None),
    target_size_kb: Optional[float] = Form(None),
    min_quality: Optional[float] = Form(None),
    max_quality: Optional[float] = Form(None),
    output_format: Optional[str] = Form(None),
):
    """
    Compress one uploaded image toward the target size.
    Accepts multipart/form-data with `file` and optional option fields.
    """
    req_id = _request_id(request)
    t0 = time.perf_counter()

    data = await file.read()
    if not data:
        raise ApiError(400, "Uploaded file is empty", "empty_file")
    validate_upload_size(len(data), settings.COMPRESS_MAX_INPUT_MB)

    try:
        opts = resolve_options(
            max_width=max_width,
            max_height=max_height,
            target_size_kb=target_size_kb,
            min_quality=min_quality,
            max_quality=max_quality,
            output_format=output_format,
        )
    except ValidationError as e:
        raise ApiError(400, "Invalid compression options", "invalid_options", detail=jsonable_errors(e.errors()))

    image = ImageFile(name=file.filename or "image", data=data, content_type=file.content_type)

    try:
        result = await compress_image(image, opts)
    except DecodeError as e:
        raise ApiError(422, str(e), "decode_error", hint="Upload a JPEG, PNG, WebP or GIF image")
    except EncodingError as e:
        raise ApiError(500, str(e), "encoding_error")

    return json_success(
        {
            **result.summary(),
            "data_url": image_to_data_url(result.output_bytes, result.content_type or "application/octet-stream"),
        },
        req_id=req_id,
        elapsed_ms=int((time.perf_counter() - t0) * 1000),
    )
