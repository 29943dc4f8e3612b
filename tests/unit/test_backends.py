#  Copyright (c) 2025 Tom Villani, Ph.D.
"""Unit tests for the backend interface, the recording backend and the factory."""

import fitz
import pytest

from markpage.backends import LinkTarget, RecordingBackend, create_backend
from markpage.backends.pymupdf import PyMuPdfBackend
from markpage.constants import FOOTER_OFFSET
from markpage.exceptions import AssetLoadError, BackendWriteError


@pytest.mark.unit
class TestLinkTarget:
    """Exactly one destination per link."""

    def test_page(self) -> None:
        assert LinkTarget(page=3).page == 3

    def test_url(self) -> None:
        assert LinkTarget(url="https://example.com").url == "https://example.com"

    @pytest.mark.parametrize("kwargs", [{}, {"page": 1, "url": "https://example.com"}, {"page": 0}])
    def test_invalid(self, kwargs) -> None:
        with pytest.raises(ValueError):
            LinkTarget(**kwargs)


@pytest.mark.unit
class TestRecordingBackend:
    """Recorded operations and page bookkeeping."""

    def test_pages(self) -> None:
        backend = RecordingBackend(595, 842)
        assert backend.page_count() == 0
        assert backend.current_page() == 0
        assert backend.add_page() == 1
        assert backend.add_page() == 2
        backend.set_page(1)
        assert backend.current_page() == 1
        with pytest.raises(ValueError):
            backend.set_page(3)

    def test_calls_carry_page(self) -> None:
        backend = RecordingBackend(595, 842)
        backend.add_page()
        backend.draw_line(0, 0, 10, 10)
        backend.add_page()
        backend.draw_rect(0, 0, 5, 5, fill=(1, 0, 0))
        assert [(call.name, call.page) for call in backend.calls] == [
            ("add_page", 1),
            ("draw_line", 1),
            ("add_page", 2),
            ("draw_rect", 2),
        ]

    def test_record_disabled(self) -> None:
        backend = RecordingBackend(595, 842, record=False)
        backend.add_page()
        backend.draw_text("hello", 10, 10)
        assert backend.calls == []
        assert backend.page_count() == 1

    def test_fallback_measurement(self) -> None:
        assert RecordingBackend(595, 842).measure_text("abcd", size=10) == 20.0

    def test_measure_through_delegate(self) -> None:
        real = PyMuPdfBackend(595, 842)
        recording = RecordingBackend(595, 842, measure_with=real)
        assert recording.measure_text("Hello", "bold", 12) == real.measure_text("Hello", "bold", 12)

    def test_unconvertible_svg_fails_when_measuring(self, monkeypatch) -> None:
        def fail(*args):
            raise ValueError("unsupported SVG")

        monkeypatch.setattr("markpage.backends.recording.svg_to_pdf", fail)
        monkeypatch.setattr("markpage.backends.recording.rasterize_svg", fail)
        recording = RecordingBackend(595, 842, measure_with=PyMuPdfBackend(595, 842), record=False)
        recording.add_page()
        with pytest.raises(AssetLoadError):
            recording.draw_svg(b"<svg/>", 10, 10, 50, 50)

    def test_svg_rasterised_when_embedding_fails(self, monkeypatch) -> None:
        def fail(*args):
            raise ValueError("unsupported SVG")

        monkeypatch.setattr("markpage.backends.recording.svg_to_pdf", fail)
        monkeypatch.setattr("markpage.backends.recording.rasterize_svg", lambda data, scale: b"png")
        recording = RecordingBackend(595, 842, measure_with=PyMuPdfBackend(595, 842))
        recording.add_page()
        recording.draw_svg(b"<svg/>", 10, 10, 50, 50)
        assert len(recording.calls_named("draw_svg")) == 1

    def test_svg_not_converted_without_delegate(self, monkeypatch) -> None:
        def fail(*args):
            raise ValueError("unsupported SVG")

        monkeypatch.setattr("markpage.backends.recording.svg_to_pdf", fail)
        monkeypatch.setattr("markpage.backends.recording.rasterize_svg", fail)
        backend = RecordingBackend(595, 842)
        backend.add_page()
        backend.draw_svg(b"<svg/>", 10, 10, 50, 50)
        assert len(backend.calls_named("draw_svg")) == 1

    def test_draw_text_alignment(self) -> None:
        backend = RecordingBackend(595, 842)
        backend.add_page()
        backend.draw_text("abcd", 100, 50, size=10, align="center")
        backend.draw_text("abcd", 100, 50, size=10, align="right")
        backend.draw_text("abcd", 100, 50, size=10, align="left")
        assert [call.args["x"] for call in backend.calls_named("draw_text")] == [90.0, 80.0, 100.0]

    def test_empty_text_not_drawn(self) -> None:
        backend = RecordingBackend(595, 842)
        backend.add_page()
        backend.draw_text("", 10, 10)
        assert backend.calls_named("draw_text") == []

    def test_stamp_page_numbers(self) -> None:
        backend = RecordingBackend(595, 842)
        for _ in range(3):
            backend.add_page()
        backend.set_page(2)

        backend.stamp_page_numbers("Page {page} of {total}")

        footers = backend.calls_named("draw_text")
        assert [(call.page, call.args["text"]) for call in footers] == [
            (1, "Page 1 of 3"),
            (2, "Page 2 of 3"),
            (3, "Page 3 of 3"),
        ]
        assert all(call.args["y"] == 842 - FOOTER_OFFSET for call in footers)
        assert backend.current_page() == 2

    def test_outline_handles(self) -> None:
        backend = RecordingBackend(595, 842)
        root = backend.add_outline_entry(None, "Root", 1)
        child = backend.add_outline_entry(root, "Child", 2)
        assert (root, child) == (0, 1)
        assert backend.outline == [(None, "Root", 1), (0, "Child", 2)]

    def test_wrap_uses_measurement(self) -> None:
        backend = RecordingBackend(595, 842)
        assert backend.wrap_text("aa bb cc", 20, size=10) == ["aa", "bb", "cc"]

    def test_save_writes_nothing(self) -> None:
        assert RecordingBackend(595, 842).save() == b""


@pytest.mark.unit
class TestPyMuPdfBackend:
    """Behaviour of the default backend that needs no PDF inspection."""

    def test_draw_before_page(self) -> None:
        with pytest.raises(BackendWriteError):
            PyMuPdfBackend(595, 842).draw_text("x", 10, 10)

    def test_set_missing_page(self) -> None:
        backend = PyMuPdfBackend(595, 842)
        backend.add_page()
        with pytest.raises(BackendWriteError):
            backend.set_page(2)

    def test_bold_is_wider_than_normal(self) -> None:
        backend = PyMuPdfBackend(595, 842)
        assert backend.measure_text("Heading", "bold", 12) > backend.measure_text("Heading", "normal", 12)

    def test_save_empty_document_has_one_page(self) -> None:
        data = PyMuPdfBackend(595, 842).save()
        with fitz.open(stream=data, filetype="pdf") as doc:
            assert doc.page_count == 1


@pytest.mark.unit
class TestCreateBackend:
    """Backend factory."""

    def test_pymupdf(self) -> None:
        backend = create_backend("pymupdf", 595, 842)
        assert isinstance(backend, PyMuPdfBackend)
        assert (backend.page_width, backend.page_height) == (595, 842)

    def test_reportlab(self) -> None:
        pytest.importorskip("reportlab")
        from markpage.backends.reportlab import ReportLabBackend

        assert isinstance(create_backend("reportlab", 595, 842), ReportLabBackend)

    def test_unknown(self) -> None:
        with pytest.raises(ValueError, match="Unknown backend"):
            create_backend("cairo", 595, 842)
