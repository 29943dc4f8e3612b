#  Copyright (c) 2025 Tom Villani, Ph.D.
"""Unit tests for the two-pass conversion pipeline."""

import asyncio

import pytest
from utils import SAMPLE_DOCUMENT, drawn_text

from markpage.backends import LinkTarget, RecordingBackend
from markpage.converter import LayoutSummary, MarkdownPdfConverter
from markpage.exceptions import ValidationError
from markpage.options import PdfLayoutOptions

TOC_DOCUMENT = "# Contents\n\n- [Later](#later-section)\n\n<!-- \\newpage -->\n\n## Later Section\n\nText.\n"


class RecordingFactory:
    """Backend factory that keeps the backends it creates."""

    def __init__(self) -> None:
        self.created: list[RecordingBackend] = []

    def __call__(self, width: float, height: float) -> RecordingBackend:
        backend = RecordingBackend(width, height)
        self.created.append(backend)
        return backend

    @property
    def last(self) -> RecordingBackend:
        return self.created[-1]


@pytest.fixture
def factory() -> RecordingFactory:
    return RecordingFactory()


def _convert(text: str, factory: RecordingFactory, options=None, callback=None) -> MarkdownPdfConverter:
    converter = MarkdownPdfConverter(options, progress_callback=callback, backend_factory=factory)
    converter.convert(text)
    return converter


@pytest.mark.unit
class TestTwoPassLayout:
    """Link resolution across both passes."""

    def test_sample_document(self, factory: RecordingFactory) -> None:
        converter = _convert(SAMPLE_DOCUMENT, factory)
        assert converter.link_index.resolve("#title") == 1
        (region,) = factory.last.calls_named("add_link_region")
        assert region.args["target"] == LinkTarget(page=1)

    def test_forward_link_resolves(self, factory: RecordingFactory) -> None:
        converter = _convert(TOC_DOCUMENT, factory)
        assert converter.summary == LayoutSummary(page_count=2, link_index_size=len(converter.link_index))
        (region,) = factory.last.calls_named("add_link_region")
        assert region.args["target"] == LinkTarget(page=2)
        assert region.page == 1

    def test_index_frozen_after_first_pass(self, factory: RecordingFactory) -> None:
        converter = _convert(TOC_DOCUMENT, factory)
        assert converter.link_index.frozen

    def test_duplicate_heading_resolves_to_last(self, factory: RecordingFactory) -> None:
        text = "- [Notes](#notes)\n\n## Notes\n\n<!-- \\newpage -->\n\n## Notes\n"
        _convert(text, factory)
        (region,) = factory.last.calls_named("add_link_region")
        assert region.args["target"] == LinkTarget(page=2)

    def test_unresolved_link_has_no_region(self, factory: RecordingFactory) -> None:
        _convert("- [Nowhere](#nowhere)\n", factory)
        assert factory.last.calls_named("add_link_region") == []

    def test_only_real_backend_created(self, factory: RecordingFactory) -> None:
        _convert(SAMPLE_DOCUMENT, factory)
        assert len(factory.created) == 1

    def test_relayout_starts_fresh(self, factory: RecordingFactory) -> None:
        converter = MarkdownPdfConverter(backend_factory=factory)
        asyncio.run(converter.layout(converter.parse("# First")))
        asyncio.run(converter.layout(converter.parse("# Second")))
        assert converter.link_index.resolve("#first") is None
        assert converter.link_index.resolve("#second") == 1
        assert len(converter.outline) == 1


@pytest.mark.unit
class TestFinalize:
    """Outline, footers and metadata."""

    def test_finalize_before_layout(self) -> None:
        with pytest.raises(ValidationError):
            MarkdownPdfConverter().finalize()

    def test_outline_written(self, factory: RecordingFactory) -> None:
        _convert(TOC_DOCUMENT, factory)
        assert factory.last.outline == [(None, "Contents", 1), (0, "Later Section", 2)]

    def test_page_numbers_stamped(self, factory: RecordingFactory) -> None:
        _convert(TOC_DOCUMENT, factory)
        footers = [call for call in factory.last.calls_named("draw_text") if call.args["text"].startswith("Page ")]
        assert [(call.page, call.args["text"]) for call in footers] == [(1, "Page 1 of 2"), (2, "Page 2 of 2")]

    def test_page_numbers_disabled(self, factory: RecordingFactory) -> None:
        _convert(TOC_DOCUMENT, factory, PdfLayoutOptions(include_page_numbers=False))
        assert not any(text.startswith("Page ") for text in drawn_text(factory.last))

    def test_custom_page_number_template(self, factory: RecordingFactory) -> None:
        _convert("Hello", factory, PdfLayoutOptions(page_number_template="{page}/{total}"))
        assert "1/1" in drawn_text(factory.last)

    def test_title_defaults_to_first_h1(self, factory: RecordingFactory) -> None:
        _convert("## Intro\n\n# Real Title\n\n# Another", factory)
        assert factory.last.metadata["title"] == "Real Title"
        assert factory.last.metadata["creator"] == "markpage"

    def test_explicit_metadata(self, factory: RecordingFactory) -> None:
        options = PdfLayoutOptions(title="Override", author="Ada", subject="Notes", keywords="a, b")
        _convert("# Heading", factory, options)
        assert factory.last.metadata == {
            "title": "Override",
            "author": "Ada",
            "subject": "Notes",
            "keywords": "a, b",
            "creator": "markpage",
        }

    def test_finalize_only_once(self, factory: RecordingFactory) -> None:
        converter = _convert("Hello", factory)
        with pytest.raises(ValidationError):
            converter.finalize()


@pytest.mark.unit
class TestProgress:
    """Progress events across the stages."""

    def test_events(self, factory: RecordingFactory) -> None:
        events: list[tuple[float, str, str]] = []
        _convert(TOC_DOCUMENT, factory, callback=lambda *args: events.append(args))

        percents = [event[0] for event in events]
        statuses = [event[1] for event in events]
        assert percents[0] == 10
        assert percents[-1] == 100
        assert percents == sorted(percents)
        expected = ("Markdown parsed", "Locating headings", "Rendering pages", "Finalizing document", "PDF generated")
        for status in expected:
            assert status in statuses

    def test_per_element_events_in_both_passes(self, factory: RecordingFactory) -> None:
        events: list[tuple[float, str, str]] = []
        _convert("# A\n\nText", factory, callback=lambda *args: events.append(args))
        details = [detail for _percent, status, detail in events if "element" in status]
        assert details == ["Header - A", "Paragraph", "Header - A", "Paragraph"]

    def test_failing_callback_does_not_abort(self, factory: RecordingFactory) -> None:
        def broken(percent, status, detail):
            raise RuntimeError("boom")

        converter = _convert(SAMPLE_DOCUMENT, factory, callback=broken)
        assert converter.summary.page_count == 1
        assert converter.progress.last_event.percent == 100
