#  Copyright (c) 2025 Tom Villani, Ph.D.
"""Unit tests for text wrapping, image sniffing and SVG size helpers."""

import pytest
from utils import MINIMAL_PNG_BYTES, MINIMAL_PNG_DATA_URI, SIMPLE_SVG

from markpage.utils.images import decode_data_uri, detect_image_format_from_bytes, is_data_uri, read_raster_info
from markpage.utils.svg import parse_svg_dimensions, parse_svg_length
from markpage.utils.text import wrap_text


@pytest.mark.unit
class TestWrapText:
    """Greedy width-aware wrapping."""

    def test_greedy(self) -> None:
        assert wrap_text("aaa bbb ccc", 7, len) == ["aaa bbb", "ccc"]

    def test_hard_breaks_kept(self) -> None:
        assert wrap_text("one\ntwo", 100, len) == ["one", "two"]

    def test_long_word_split(self) -> None:
        assert wrap_text("abcdefghij", 4, len) == ["abcd", "efgh", "ij"]

    def test_long_word_after_text(self) -> None:
        assert wrap_text("xy abcdefgh", 4, len) == ["xy", "abcd", "efgh"]

    def test_empty(self) -> None:
        assert wrap_text("", 10, len) == [""]

    def test_whitespace_collapsed(self) -> None:
        assert wrap_text("a    b", 10, len) == ["a b"]


@pytest.mark.unit
class TestImageSniffing:
    """Magic byte detection and data URIs."""

    @pytest.mark.parametrize(
        "data,expected",
        [
            (MINIMAL_PNG_BYTES, "png"),
            (b"\xff\xd8\xff\xe0rest", "jpg"),
            (b"GIF89a....", "gif"),
            (b"RIFF\x00\x00\x00\x00WEBPVP8 ", "webp"),
            (SIMPLE_SVG, "svg"),
            (b'  <?xml version="1.0"?><svg/>', "svg"),
            (b"plain text", None),
            (b"", None),
        ],
    )
    def test_detect(self, data: bytes, expected) -> None:
        assert detect_image_format_from_bytes(data) == expected

    def test_is_data_uri(self) -> None:
        assert is_data_uri(MINIMAL_PNG_DATA_URI)
        assert not is_data_uri("https://example.com/a.png")

    def test_decode_base64(self) -> None:
        data, mime = decode_data_uri(MINIMAL_PNG_DATA_URI)
        assert data == MINIMAL_PNG_BYTES
        assert mime == "image/png"

    def test_decode_url_encoded(self) -> None:
        data, mime = decode_data_uri("data:image/svg+xml,%3Csvg%2F%3E")
        assert data == b"<svg/>"
        assert mime == "image/svg+xml"

    @pytest.mark.parametrize("uri", ["data:image/png;base64", "data:image/png;base64,@@@", "https://x"])
    def test_decode_malformed(self, uri: str) -> None:
        with pytest.raises(ValueError):
            decode_data_uri(uri)

    def test_read_raster_info(self) -> None:
        assert read_raster_info(MINIMAL_PNG_BYTES) == (1, 1, "png")

    @pytest.mark.parametrize("data", [SIMPLE_SVG, b"not an image at all"])
    def test_read_raster_info_rejects(self, data: bytes) -> None:
        with pytest.raises(ValueError):
            read_raster_info(data)


@pytest.mark.unit
class TestSvgSize:
    """Intrinsic SVG dimensions."""

    @pytest.mark.parametrize(
        "value,expected",
        [("120", 120.0), ("120px", 120.0), ("1in", 96.0), ("72pt", 96.0), ("50%", None), (None, None), ("0", None)],
    )
    def test_parse_length(self, value, expected) -> None:
        assert parse_svg_length(value) == (pytest.approx(expected) if expected is not None else None)

    def test_explicit_size(self) -> None:
        assert parse_svg_dimensions(SIMPLE_SVG) == (200.0, 100.0)

    def test_view_box(self) -> None:
        svg = b'<svg xmlns="http://www.w3.org/2000/svg" viewBox="0 0 300 150"/>'
        assert parse_svg_dimensions(svg) == (300.0, 150.0)

    def test_width_with_view_box_ratio(self) -> None:
        svg = b'<svg xmlns="http://www.w3.org/2000/svg" width="100" viewBox="0 0 300 150"/>'
        assert parse_svg_dimensions(svg) == (100.0, 50.0)

    def test_default_size(self) -> None:
        assert parse_svg_dimensions(b"<svg/>") == (100.0, 100.0)

    @pytest.mark.parametrize("data", [b"<svg", b"<html></html>"])
    def test_invalid(self, data: bytes) -> None:
        with pytest.raises(ValueError):
            parse_svg_dimensions(data)
