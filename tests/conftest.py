"""
Shared fixtures: in-memory test images.
"""
import io
import random

import pytest
from PIL import Image


def _noise_image(width: int, height: int, mode: str = "RGB", seed: int = 7) -> Image.Image:
    channels = len(mode)
    rnd = random.Random(seed)
    return Image.frombytes(mode, (width, height), rnd.randbytes(width * height * channels))


def _photo_like(width: int, height: int) -> Image.Image:
    """Gradient with grain: compresses roughly like a phone photo."""
    gradient = Image.linear_gradient("L").resize((width, height))
    grain = Image.effect_noise((width, height), 12)
    return Image.merge("RGB", (gradient, grain, gradient.transpose(Image.Transpose.FLIP_LEFT_RIGHT)))


def _encode(img: Image.Image, fmt: str, **kwargs) -> bytes:
    buf = io.BytesIO()
    img.save(buf, format=fmt, **kwargs)
    return buf.getvalue()


@pytest.fixture
def noise_image_bytes():
    """Factory: noise image of the given size encoded as fmt."""
    def make(width=300, height=300, fmt="PNG", mode="RGB", **kwargs):
        return _encode(_noise_image(width, height, mode), fmt, **kwargs)
    return make


@pytest.fixture
def photo_bytes():
    """Factory: photo-like image of the given size encoded as fmt."""
    def make(width=3000, height=2000, fmt="JPEG", **kwargs):
        if fmt == "JPEG":
            kwargs.setdefault("quality", 95)
        return _encode(_photo_like(width, height), fmt, **kwargs)
    return make


@pytest.fixture
def small_png():
    return _encode(Image.new("RGB", (16, 16), (200, 30, 30)), "PNG")


@pytest.fixture
def small_webp():
    return _encode(Image.new("RGBA", (24, 12), (10, 120, 200, 255)), "WEBP", quality=80)
