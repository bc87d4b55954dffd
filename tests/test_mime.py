"""
Tests for MIME resolution: header, then URL extension, then image/jpeg.
"""
import pytest

from imagepipe.api.mime import detect_mime_type, resolve_mime_type


def test_specific_header_wins_over_extension():
    assert resolve_mime_type("https://cdn.example/a.jpg", "image/png") == "image/png"


def test_generic_header_falls_back_to_extension():
    assert resolve_mime_type("https://cdn.example/a.webp", "application/octet-stream") == "image/webp"


def test_non_image_header_falls_back_to_extension():
    assert resolve_mime_type("https://cdn.example/a.gif", "text/html") == "image/gif"


@pytest.mark.parametrize("path,expected", [
    ("photo.jpg", "image/jpeg"),
    ("photo.JPEG", "image/jpeg"),
    ("photo.png", "image/png"),
    ("photo.webp", "image/webp"),
    ("photo.gif", "image/gif"),
    ("logo.svg", "image/svg+xml"),
    ("scan.bmp", "image/bmp"),
    ("scan.tif", "image/tiff"),
    ("scan.tiff", "image/tiff"),
])
def test_extension_table(path, expected):
    resolution = detect_mime_type(f"https://cdn.example/uploads/{path}", None)
    assert resolution.mime_type == expected
    assert resolution.source == "extension"


def test_query_string_is_ignored():
    url = "https://storage.example/v0/b/bucket/o/device-conditions%2Fabc.webp?alt=media&token=x.png"
    assert resolve_mime_type(url, None) == "image/webp"


def test_unparseable_url_scans_raw_string():
    assert resolve_mime_type("http://[::1/broken.png?x=1", None) == "image/png"


def test_unknown_extension_defaults_to_jpeg():
    resolution = detect_mime_type("https://cdn.example/download", "")
    assert resolution.mime_type == "image/jpeg"
    assert resolution.source == "default"


def test_transport_source_is_reported():
    assert detect_mime_type("https://x/a.png", "image/avif").source == "transport"


@pytest.mark.parametrize("url,header", [
    (None, None),
    ("", None),
    (42, b"image/png"),
    ("not a url at all", "application/octet-stream"),
    ("https://cdn.example/a.", "image"),
    ({"url": "x"}, ["image/png"]),
])
def test_resolver_is_total(url, header):
    mime_type = resolve_mime_type(url, header)
    assert mime_type.startswith("image/")
