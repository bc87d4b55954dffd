"""
Tests for the compress-then-upload flow with an in-memory store.
"""
import asyncio

import pytest

from imagepipe.api.error_utils import ApiError
from imagepipe.api.uploads import compress_and_upload, remove_asset, validate_upload
from imagepipe.api.common.types import ImageFile, StoredAsset


class MemoryStore:
    def __init__(self, fail_delete=False):
        self.files = {}
        self.fail_delete = fail_delete

    async def upload(self, file, folder):
        path = f"{folder}/{file.name}"
        self.files[path] = file
        return StoredAsset(url=f"https://storage.example/{path}", path=path, name=file.name, size=file.size)

    async def delete(self, path):
        if self.fail_delete:
            raise RuntimeError("storage unavailable")
        del self.files[path]


def test_upload_stores_compressed_webp(noise_image_bytes):
    store = MemoryStore()
    original = ImageFile(name="front.png", data=noise_image_bytes(600, 400), content_type="image/png")

    asset = asyncio.run(compress_and_upload(original, store))

    assert asset.path == "device-conditions/front.webp"
    stored = store.files[asset.path]
    assert stored.content_type == "image/webp"
    assert stored.size < original.size


def test_small_file_uploaded_as_is(small_png):
    store = MemoryStore()
    f = ImageFile(name="icon.png", data=small_png, content_type="image/png")

    asset = asyncio.run(compress_and_upload(f, store, folder="logos"))

    assert asset.path == "logos/icon.png"
    assert store.files[asset.path].data == small_png


def test_disallowed_type_is_rejected():
    with pytest.raises(ApiError) as exc:
        validate_upload(ImageFile(name="a.bmp", data=b"BM", content_type="image/bmp"))
    assert exc.value.status == 400


def test_oversized_upload_is_rejected():
    big = ImageFile(name="a.png", data=b"\0" * (10 * 1024 * 1024 + 1), content_type="image/png")
    with pytest.raises(ApiError) as exc:
        validate_upload(big)
    assert exc.value.status == 400
    assert exc.value.code == "file_too_large"


def test_remove_asset_reports_failure_without_raising():
    store = MemoryStore(fail_delete=True)
    assert asyncio.run(remove_asset(store, "device-conditions/x.webp")) is False


def test_remove_asset_success():
    store = MemoryStore()
    store.files["a/b.webp"] = object()
    assert asyncio.run(remove_asset(store, "a/b.webp")) is True
    assert store.files == {}
