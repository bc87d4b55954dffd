"""
Tests for the binary quality search.
A fake encoder maps quality to output size so the search path is exact.
"""
import io

import pytest

from PIL import Image

from imagepipe.api.compression import search_quality


class FakeEncoder:
    """Returns bytes of len size_fn(q), prefixed with the quality used."""

    def __init__(self, size_fn):
        self.size_fn = size_fn
        self.qualities = []

    def __call__(self, surface, fmt, quality):
        self.qualities.append(quality)
        return f"{quality:.6f}".encode().ljust(self.size_fn(quality), b"\0")


def test_accepts_first_result_within_tolerance():
    encoder = FakeEncoder(lambda q: round(q * 200_000))
    data = search_quality(None, "webp", 100_000, 0.3, 0.9, encoder=encoder)

    # 0.6 -> 120000 (too big), 0.45 -> 90000 (fits, not close), 0.525 -> 105000 (accept)
    assert encoder.qualities == pytest.approx([0.6, 0.45, 0.525])
    assert len(data) == 105_000


def test_overshoot_everywhere_falls_back_to_min_quality():
    encoder = FakeEncoder(lambda q: 1_000_000)
    data = search_quality(None, "webp", 100_000, 0.3, 0.9, encoder=encoder)

    assert len(encoder.qualities) == 10 + 1
    assert encoder.qualities[-1] == 0.3
    assert data.startswith(b"0.300000")


def test_undershoot_everywhere_returns_highest_quality_seen():
    encoder = FakeEncoder(lambda q: 100)
    data = search_quality(None, "webp", 100_000, 0.3, 0.9, encoder=encoder)

    assert len(encoder.qualities) == 10
    assert encoder.qualities == sorted(encoder.qualities)
    assert data.startswith(f"{encoder.qualities[-1]:.6f}".encode())


def test_overshoot_does_not_replace_best_candidate():
    # Fits at low quality, far too big above 0.5
    encoder = FakeEncoder(lambda q: 10_000 if q < 0.5 else 500_000)
    data = search_quality(None, "jpeg", 100_000, 0.3, 0.9, encoder=encoder)

    best_fit = max(q for q in encoder.qualities if q < 0.5)
    assert data.startswith(f"{best_fit:.6f}".encode())


def test_probe_count_bounded_by_max_iterations():
    for max_iterations in (1, 3, 7):
        encoder = FakeEncoder(lambda q: 50)
        search_quality(None, "webp", 100_000, 0.3, 0.9, max_iterations=max_iterations, encoder=encoder)
        assert len(encoder.qualities) == max_iterations


def test_real_encoder_returns_decodable_image():
    surface = Image.new("RGB", (120, 80), (90, 60, 30))
    data = search_quality(surface, "webp", 2_000, 0.3, 0.9)
    assert Image.open(io.BytesIO(data)).size == (120, 80)
