"""
Compress-then-upload flow against an external storage collaborator.

The storage backend itself (bucket, auth) lives outside this service;
anything implementing AssetStore can be plugged in.
"""
import logging
from typing import Protocol

from .compression import compress_image
from .error_utils import ApiError
from .common.images import format_file_size
from .common.types import ImageFile, StoredAsset

log = logging.getLogger(__name__)

DEFAULT_FOLDER = "device-conditions"
ALLOWED_UPLOAD_TYPES = ("image/jpeg", "image/png", "image/webp", "image/gif")
MAX_UPLOAD_BYTES = 10 * 1024 * 1024


class AssetStore(Protocol):
    async def upload(self, file: ImageFile, folder: str) -> StoredAsset: ...

    async def delete(self, path: str) -> None: ...


def validate_upload(file: ImageFile) -> None:
    """
    Apply the storage upload rules.

    Raises:
        ApiError: 400 for a disallowed type or an oversized file
    """
    if file.content_type not in ALLOWED_UPLOAD_TYPES:
        raise ApiError(
            400,
            "Invalid file type. Only JPEG, PNG, WebP, and GIF are allowed.",
            "invalid_file_type",
            detail={"content_type": file.content_type},
        )
    if file.size > MAX_UPLOAD_BYTES:
        raise ApiError(400, "File too large. Maximum size is 10MB.", "file_too_large")


async def compress_and_upload(
    file: ImageFile,
    store: AssetStore,
    folder: str = DEFAULT_FOLDER,
    options=None,
) -> StoredAsset:
    """
    Compress an image, then hand it to the storage collaborator.

    Raises:
        DecodeError / EncodingError: From compression
        ApiError: If the compressed file breaks the upload rules
    """
    result = await compress_image(file, options)
    compressed = ImageFile(name=result.file_name, data=result.output_bytes, content_type=result.content_type)
    validate_upload(compressed)

    asset = await store.upload(compressed, folder)
    log.info(
        f"[upload] {file.name}: {format_file_size(result.original_size_bytes)} -> "
        f"{format_file_size(result.compressed_size_bytes)} stored at {asset.path}"
    )
    return asset


async def remove_asset(store: AssetStore, path: str) -> bool:
    """
    Delete a stored asset. Failures are logged and reported as False so the
    caller can still drop the image from its own records.
    """
    try:
        await store.delete(path)
    except Exception as e:
        log.error(f"[upload] Failed to delete {path}: {e}")
        return False
    log.info(f"[upload] Deleted {path}")
    return True
