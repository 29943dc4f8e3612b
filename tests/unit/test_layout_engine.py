#  Copyright (c) 2025 Tom Villani, Ph.D.
"""Unit tests for the layout fold, driven through the recording backend."""

import asyncio
from pathlib import Path

import pytest
from utils import drawn_text, run_layout

from markpage.backends import LinkTarget, RecordingBackend
from markpage.constants import CODE_BACKGROUND, LINK_COLOR, LIST_INDENT, MM_TO_PT, TITLE_FONT_SIZE
from markpage.exceptions import BackendWriteError
from markpage.layout import LayoutContext, LayoutEngine, describe_element
from markpage.model import Header, Image, InlineSpan, ListBlock, Paragraph, Rule, VerticalSpace
from markpage.options import PdfLayoutOptions
from markpage.parser import parse_markdown


class FailingBackend(RecordingBackend):
    """Backend that rejects every line drawing operation."""

    def draw_line(self, x1, y1, x2, y2, color=(0, 0, 0), width=0.5) -> None:
        raise BackendWriteError("disk full", operation="draw_line")


def _texts_with(backend: RecordingBackend, text: str):
    return [call for call in backend.calls_named("draw_text") if call.args["text"] == text]


@pytest.mark.unit
class TestLayoutContext:
    """The immutable cursor value threaded through the fold."""

    def test_from_options(self) -> None:
        ctx = LayoutContext.from_options(PdfLayoutOptions(paper_size="letter", margins=10))
        assert (ctx.page_width, ctx.page_height) == (612.0, 792.0)
        assert ctx.margin == pytest.approx(10 * MM_TO_PT)
        assert ctx.content_width == pytest.approx(612.0 - 20 * MM_TO_PT)
        assert ctx.cursor_y == ctx.margin
        assert ctx.page_number == 1
        assert ctx.alignment == "left"

    def test_landscape_swaps_dimensions(self) -> None:
        ctx = LayoutContext.from_options(PdfLayoutOptions(orientation="landscape"))
        assert (ctx.page_width, ctx.page_height) == (842.0, 595.0)

    def test_advance_returns_new_value(self) -> None:
        ctx = LayoutContext.from_options(PdfLayoutOptions())
        moved = ctx.advance(30)
        assert moved.cursor_y == ctx.cursor_y + 30
        assert ctx.cursor_y == ctx.margin

    def test_next_page(self) -> None:
        ctx = LayoutContext.from_options(PdfLayoutOptions()).advance(300).with_alignment("right")
        nxt = ctx.next_page()
        assert nxt.page_number == 2
        assert nxt.cursor_y == ctx.margin
        assert nxt.alignment == "right"

    def test_break_threshold(self) -> None:
        ctx = LayoutContext.from_options(PdfLayoutOptions())
        threshold = ctx.page_height - 2 * ctx.margin
        assert not ctx.at(threshold).needs_break()
        assert ctx.at(threshold + 0.1).needs_break()

    def test_fits_and_remaining(self) -> None:
        ctx = LayoutContext.from_options(PdfLayoutOptions())
        assert ctx.remaining() == pytest.approx(ctx.usable_height)
        assert ctx.fits(ctx.usable_height)
        assert not ctx.fits(ctx.usable_height + 1)
        assert ctx.at(ctx.page_height).remaining() == 0.0

    def test_at_page_top(self) -> None:
        ctx = LayoutContext.from_options(PdfLayoutOptions())
        assert ctx.at_page_top
        assert not ctx.advance(1).at_page_top


@pytest.mark.unit
class TestFold:
    """Pagination of the element stream."""

    def test_empty_document_has_one_page(self) -> None:
        _engine, backend = run_layout("")
        assert backend.page_count() == 1

    def test_rule_only_document(self) -> None:
        _engine, backend = run_layout("---\n")
        assert backend.page_count() == 1
        assert len(backend.calls_named("draw_line")) == 1

    def test_page_numbers_never_decrease(self, options: PdfLayoutOptions, backend: RecordingBackend) -> None:
        text = "\n\n".join(f"Paragraph {i} " + "word " * 60 for i in range(60))
        engine = LayoutEngine(backend, options)
        pages: list[int] = []

        final = asyncio.run(
            engine.layout(parse_markdown(text), on_element=lambda i, n, e: pages.append(engine.context.page_number))
        )

        assert len(pages) == 60
        assert pages == sorted(pages)
        assert final.page_number == backend.page_count() > 1

    def test_content_below_threshold_starts_new_page(self, options: PdfLayoutOptions, backend) -> None:
        engine = LayoutEngine(backend, options)
        start = engine.initial_context()
        low = start.at(start.page_height - 2 * start.margin + 1)

        final = asyncio.run(engine.layout([Paragraph((InlineSpan("late"),))], context=low))

        assert final.page_number == 2
        assert _texts_with(backend, "late")[0].page == 2

    def test_directive_below_threshold_does_not_break(self, options: PdfLayoutOptions, backend) -> None:
        engine = LayoutEngine(backend, options)
        start = engine.initial_context()
        low = start.at(start.page_height - 2 * start.margin + 1)

        final = asyncio.run(engine.layout([VerticalSpace(1)], context=low))

        assert final.page_number == 1

    def test_vertical_space_past_bottom_moves_to_next_page(self) -> None:
        engine, backend = run_layout("<!-- \\vspace{400} -->\nAfter")
        assert backend.page_count() == 2
        assert _texts_with(backend, "After")[0].page == 2

    def test_vertical_space_advances_in_millimetres(self, options: PdfLayoutOptions, backend: RecordingBackend) -> None:
        engine = LayoutEngine(backend, options)
        final = asyncio.run(engine.layout([VerticalSpace(10)]))
        assert final.cursor_y == pytest.approx(engine.initial_context().cursor_y + 10 * MM_TO_PT)

    def test_page_break_directive(self) -> None:
        _engine, backend = run_layout("One\n<!-- \\newpage -->\nTwo")
        assert backend.page_count() == 2
        assert _texts_with(backend, "Two")[0].page == 2

    def test_page_break_ignored_when_disabled(self) -> None:
        _engine, backend = run_layout("One\n<!-- \\newpage -->\nTwo", PdfLayoutOptions(respect_page_breaks=False))
        assert backend.page_count() == 1

    def test_context_property_before_layout(self, backend: RecordingBackend) -> None:
        with pytest.raises(RuntimeError):
            _ = LayoutEngine(backend).context


@pytest.mark.unit
class TestAlignment:
    """Alignment directives and per-line offsets."""

    def test_alignment_persists(self) -> None:
        engine, _backend = run_layout("<!-- \\centering -->\nHi")
        assert engine.context.alignment == "center"

    def test_centered_line_offset_uses_line_width(self) -> None:
        engine, backend = run_layout("<!-- \\centering -->\nHi")
        ctx = engine.initial_context()
        width = backend.measure_text("Hi")
        (call,) = _texts_with(backend, "Hi")
        assert call.args["x"] == pytest.approx(ctx.margin + (ctx.content_width - width) / 2)

    def test_right_aligned_line(self) -> None:
        engine, backend = run_layout("<!-- \\raggedleft -->\nHi")
        ctx = engine.initial_context()
        (call,) = _texts_with(backend, "Hi")
        assert call.args["x"] == pytest.approx(ctx.margin + ctx.content_width - backend.measure_text("Hi"))

    def test_justify_spreads_all_but_last_line(self) -> None:
        words = " ".join(["alpha"] * 80)
        engine, backend = run_layout(f"<!-- \\justify -->\n{words}")
        ctx = engine.initial_context()
        calls = _texts_with(backend, "alpha")
        first_line_y = calls[0].args["y"]
        first_line = [c for c in calls if c.args["y"] == first_line_y]
        last_y = calls[-1].args["y"]
        last_line = [c for c in calls if c.args["y"] == last_y]

        end_of_first = first_line[-1].args["x"] + backend.measure_text("alpha")
        assert end_of_first == pytest.approx(ctx.margin + ctx.content_width)
        assert last_line[0].args["x"] == pytest.approx(ctx.margin)
        end_of_last = last_line[-1].args["x"] + backend.measure_text("alpha")
        assert end_of_last < ctx.margin + ctx.content_width - 1


@pytest.mark.unit
class TestHeaders:
    """Heading placement."""

    def test_font_size_by_level(self) -> None:
        _engine, backend = run_layout("# One\n### Three")
        assert _texts_with(backend, "One")[0].args["size"] == 22
        assert _texts_with(backend, "Three")[0].args["size"] == 18

    def test_cursor_advance(self, options: PdfLayoutOptions, backend: RecordingBackend) -> None:
        engine = LayoutEngine(backend, options)
        final = asyncio.run(engine.layout([Header(2, "Two", "two")]))
        assert final.cursor_y == pytest.approx(engine.initial_context().cursor_y + 20 + 5)

    def test_registers_page_and_outline(self) -> None:
        engine, _backend = run_layout("# A\n<!-- \\newpage -->\n## B")
        assert engine.link_index.resolve("#a") == 1
        assert engine.link_index.resolve("#b") == 2
        assert [(n.title, n.target_page, d) for n, d in engine.outline.walk()] == [("A", 1, 1), ("B", 2, 2)]


@pytest.mark.unit
class TestInlineText:
    """Paragraph text, emphasis and links."""

    def test_paragraph_wraps(self) -> None:
        engine, backend = run_layout(" ".join(["word"] * 200))
        ys = {call.args["y"] for call in _texts_with(backend, "word")}
        assert len(ys) > 1

    def test_inline_code_background(self) -> None:
        _engine, backend = run_layout("Run `make test` now")
        (code,) = _texts_with(backend, "make")
        assert code.args["font"] == "mono"
        assert any(call.args["fill"] == CODE_BACKGROUND for call in backend.calls_named("draw_rect"))

    def test_strikethrough_line(self) -> None:
        _engine, backend = run_layout("~~gone~~")
        assert len(backend.calls_named("draw_line")) == 1

    def test_external_link_region(self) -> None:
        _engine, backend = run_layout("Visit [site](https://example.com) today")
        (region,) = backend.calls_named("add_link_region")
        assert region.args["target"] == LinkTarget(url="https://example.com")
        assert _texts_with(backend, "site")[0].args["color"] == LINK_COLOR

    def test_link_region_covers_text_with_padding(self) -> None:
        engine, backend = run_layout("[site](https://example.com)")
        ctx = engine.initial_context()
        (region,) = backend.calls_named("add_link_region")
        assert region.args["x"] == pytest.approx(ctx.margin - 1)
        assert region.args["y"] < ctx.margin
        assert region.args["h"] > 15
        assert region.args["w"] == pytest.approx(backend.measure_text("site") + 2)

    def test_no_link_regions_when_disabled(self) -> None:
        _engine, backend = run_layout("[site](https://example.com)", draw_links=False)
        assert backend.calls_named("add_link_region") == []

    def test_backward_internal_link_resolves_in_one_pass(self) -> None:
        _engine, backend = run_layout("# Title\n\n- [Link](#title)\n")
        (region,) = backend.calls_named("add_link_region")
        assert region.args["target"] == LinkTarget(page=1)

    def test_forward_internal_link_needs_an_index(self) -> None:
        # A single pass cannot know where a later heading lands
        _engine, backend = run_layout("- [Later](#later)\n\n<!-- \\newpage -->\n## Later")
        assert backend.calls_named("add_link_region") == []

    def test_styled_text_color(self) -> None:
        _engine, backend = run_layout("<!-- \\textcolor{red}{Alert} -->")
        assert _texts_with(backend, "Alert")[0].args["color"] == (1.0, 0.0, 0.0)


@pytest.mark.unit
class TestLists:
    """List glyphs and numbering."""

    def test_bullets_indented_per_level(self) -> None:
        engine, backend = run_layout("- a\n  - b")
        ctx = engine.initial_context()
        bullets = _texts_with(backend, "•")
        assert [call.args["x"] for call in bullets] == pytest.approx([ctx.margin, ctx.margin + LIST_INDENT])

    def test_ordered_numbering_across_levels(self) -> None:
        _engine, backend = run_layout("1. a\n2. b\n   1. c\n3. d")
        glyphs = [text for text in drawn_text(backend) if text.endswith(".")]
        assert glyphs == ["1.", "2.", "1.", "3."]

    def test_ordered_numbering_seeded_from_source(self) -> None:
        _engine, backend = run_layout("5. five\n6. six")
        assert [text for text in drawn_text(backend) if text.endswith(".")] == ["5.", "6."]

    def test_long_list_spans_pages(self) -> None:
        text = "\n".join(f"- item {i}" for i in range(120))
        _engine, backend = run_layout(text)
        assert backend.page_count() >= 2
        assert len(_texts_with(backend, "•")) == 120


@pytest.mark.unit
class TestBlocks:
    """Code blocks, blockquotes and rules."""

    def test_code_block_draws_box_and_lines(self) -> None:
        _engine, backend = run_layout("```\nline one\nline two\n```")
        assert len(backend.calls_named("draw_rect")) == 1
        mono = [call for call in backend.calls_named("draw_text") if call.args["font"] == "mono"]
        assert [call.args["text"] for call in mono] == ["line one", "line two"]

    def test_long_code_line_is_cut_at_column_limit(self) -> None:
        _engine, backend = run_layout("```\n" + "x" * 250 + "\n```")
        mono = [call.args["text"] for call in backend.calls_named("draw_text") if call.args["font"] == "mono"]
        assert len(mono) > 1
        assert "".join(mono) == "x" * 250

    def test_code_block_continues_on_next_page(self) -> None:
        code = "\n".join(f"line {i}" for i in range(200))
        _engine, backend = run_layout(f"```\n{code}\n```")
        mono = [call for call in backend.calls_named("draw_text") if call.args["font"] == "mono"]
        assert len(mono) == 200
        assert backend.page_count() >= 2
        assert len(backend.calls_named("draw_rect")) == backend.page_count()

    def test_code_disabled(self) -> None:
        _engine, backend = run_layout("```\ncode\n```", PdfLayoutOptions(include_code=False))
        assert backend.calls_named("draw_text") == []

    def test_blockquote_draws_background_and_bar(self) -> None:
        _engine, backend = run_layout("> Wise words")
        assert len(backend.calls_named("draw_rect")) == 2
        assert _texts_with(backend, "Wise words")[0].args["font"] == "italic"


@pytest.mark.unit
class TestTitlePage:
    """Optional title page from a leading H1."""

    def test_title_page(self) -> None:
        engine, backend = run_layout("# Report\n\nBody", PdfLayoutOptions(include_title_page=True))
        title = [call for call in _texts_with(backend, "Report") if call.args["size"] == TITLE_FONT_SIZE]
        assert title[0].page == 1
        assert any(text.startswith("Generated on ") for text in drawn_text(backend))
        assert engine.link_index.resolve("#report") == 2
        assert backend.page_count() == 2

    def test_no_title_page_without_leading_h1(self) -> None:
        _engine, backend = run_layout("## Section\n\nBody", PdfLayoutOptions(include_title_page=True))
        assert backend.page_count() == 1


@pytest.mark.unit
class TestErrorBoundary:
    """Per-element failures become placeholders."""

    def test_missing_image_becomes_placeholder(self, temp_dir: Path) -> None:
        options = PdfLayoutOptions(base_path=str(temp_dir))
        engine, backend = run_layout("![Broken](missing.png)\n\nAfter", options)
        texts = drawn_text(backend)
        assert "[Image - Broken could not be rendered]" in texts
        assert "After" in texts
        assert engine.placeholders == 1

    def test_unexpected_error_becomes_placeholder(self, monkeypatch) -> None:
        def explode(engine, ctx, rule):
            raise RuntimeError("bug")

        monkeypatch.setattr("markpage.layout.engine.place_rule", explode)
        engine, backend = run_layout("---\n\nStill here")
        texts = drawn_text(backend)
        assert texts == ["[Rule could not be rendered]", "Still", "here"]
        assert engine.placeholders == 1

    def test_backend_write_error_aborts(self) -> None:
        options = PdfLayoutOptions()
        width, height = options.page_size_points
        with pytest.raises(BackendWriteError):
            run_layout("Text\n\n---", options, backend=FailingBackend(width, height))


@pytest.mark.unit
class TestDescribeElement:
    """Labels used in progress details and placeholders."""

    @pytest.mark.parametrize(
        "element,label",
        [
            (Header(1, "Intro", "intro"), "Header - Intro"),
            (Image("a.png", "Chart"), "Image - Chart"),
            (Image("a.png"), "Image - a.png"),
            (ListBlock("unordered", ()), "List"),
            (Rule(), "Rule"),
        ],
    )
    def test_labels(self, element, label: str) -> None:
        assert describe_element(element) == label
