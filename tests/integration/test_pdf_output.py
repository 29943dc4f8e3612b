#  Copyright (c) 2025 Tom Villani, Ph.D.
"""Integration tests inspecting real PDF output.

Documents are converted with the default PyMuPDF backend and the resulting
bytes are reopened with PyMuPDF to check bookmarks, link annotations, page
footers and metadata.
"""

from pathlib import Path

import fitz
import pytest
from utils import MINIMAL_PNG_DATA_URI

from markpage import MarkdownPdfConverter, PdfLayoutOptions, markdown_to_pdf

TOC_DOCUMENT = """# Handbook

- [Setup](#setup)
- [Usage](#usage)
- [Website](https://example.com/docs)

<!-- \\newpage -->

## Setup

Install the package.

<!-- \\newpage -->

## Usage

Run the command.

### Options

Details.
"""


def _open(data: bytes) -> fitz.Document:
    return fitz.open(stream=data, filetype="pdf")


@pytest.mark.integration
class TestNavigation:
    """Bookmarks and clickable links in the written PDF."""

    def test_outline_matches_headings(self) -> None:
        with _open(markdown_to_pdf(TOC_DOCUMENT)) as doc:
            assert doc.get_toc() == [[1, "Handbook", 1], [2, "Setup", 2], [2, "Usage", 3], [3, "Options", 3]]

    def test_internal_links_jump_to_heading_pages(self) -> None:
        with _open(markdown_to_pdf(TOC_DOCUMENT)) as doc:
            links = doc[0].get_links()
            internal = [link["page"] for link in links if link["kind"] == fitz.LINK_GOTO]
            # Zero-based page indices
            assert internal == [1, 2]

    def test_external_link_keeps_url(self) -> None:
        with _open(markdown_to_pdf(TOC_DOCUMENT)) as doc:
            uris = [link["uri"] for link in doc[0].get_links() if link["kind"] == fitz.LINK_URI]
            assert uris == ["https://example.com/docs"]

    def test_link_regions_lie_on_the_page(self) -> None:
        with _open(markdown_to_pdf(TOC_DOCUMENT)) as doc:
            page = doc[0]
            for link in page.get_links():
                assert page.rect.contains(link["from"])

    def test_unresolved_anchor_has_no_link(self) -> None:
        with _open(markdown_to_pdf("# Only\n\n- [Missing](#nowhere)\n")) as doc:
            assert doc[0].get_links() == []


@pytest.mark.integration
class TestPages:
    """Page count, size and footers."""

    def test_page_count_follows_page_breaks(self) -> None:
        with _open(markdown_to_pdf(TOC_DOCUMENT)) as doc:
            assert doc.page_count == 3

    def test_footers(self) -> None:
        with _open(markdown_to_pdf(TOC_DOCUMENT)) as doc:
            for index, page in enumerate(doc, start=1):
                assert f"Page {index} of 3" in page.get_text()

    def test_footers_disabled(self) -> None:
        with _open(markdown_to_pdf(TOC_DOCUMENT, include_page_numbers=False)) as doc:
            assert "Page 1 of 3" not in doc[0].get_text()

    def test_letter_landscape_size(self) -> None:
        data = markdown_to_pdf("Hello", paper_size="letter", orientation="landscape")
        with _open(data) as doc:
            assert doc[0].rect.width == pytest.approx(792, abs=0.5)
            assert doc[0].rect.height == pytest.approx(612, abs=0.5)

    def test_long_document_paginates(self) -> None:
        text = "\n\n".join(f"Paragraph {n} with enough words to fill a line or two of body text." for n in range(200))
        with _open(markdown_to_pdf(text)) as doc:
            assert doc.page_count > 3
            assert "Paragraph 0" in doc[0].get_text()
            assert "Paragraph 199" in doc[-1].get_text()

    def test_title_page_shifts_content(self) -> None:
        data = markdown_to_pdf("# Annual Report\n\nBody.\n", include_title_page=True)
        with _open(data) as doc:
            assert doc.page_count == 2
            cover = doc[0].get_text()
            assert "Annual Report" in cover
            assert "Generated on" in cover
            assert "Body." in doc[1].get_text()
            assert doc.get_toc() == [[1, "Annual Report", 2]]


@pytest.mark.integration
class TestContent:
    """Text, images and metadata."""

    def test_text_is_extractable(self) -> None:
        markdown = "# Title\n\nSome **bold** and `code` text.\n\n| A | B |\n|---|---|\n| 1 | 2 |\n"
        with _open(markdown_to_pdf(markdown)) as doc:
            text = doc[0].get_text()
        for word in ("Title", "bold", "code", "A", "B", "1", "2"):
            assert word in text

    def test_code_block_in_monospace(self) -> None:
        with _open(markdown_to_pdf("```\nprint('hi')\n```\n")) as doc:
            blocks = doc[0].get_text("dict")["blocks"]
        spans = [span for block in blocks for line in block.get("lines", []) for span in line["spans"]]
        fonts = {span["font"] for span in spans if "print" in span["text"]}
        assert fonts
        assert all("Cour" in font for font in fonts)

    def test_images_embedded(self, asset_dir: Path) -> None:
        markdown = f"![Pixel](pixel.png)\n\n![Inline]({MINIMAL_PNG_DATA_URI})\n"
        with _open(markdown_to_pdf(markdown, base_path=str(asset_dir))) as doc:
            assert len(doc[0].get_images()) >= 1

    def test_svg_placed(self, asset_dir: Path) -> None:
        data = markdown_to_pdf("![Diagram](diagram.svg)\n", base_path=str(asset_dir))
        with _open(data) as doc:
            page = doc[0]
            assert page.get_images() or page.get_drawings()

    def test_missing_image_placeholder(self, temp_dir: Path) -> None:
        data = markdown_to_pdf("![Chart](absent.png)\n\nAfter.\n", base_path=str(temp_dir))
        with _open(data) as doc:
            text = doc[0].get_text()
        assert "could not be rendered" in text
        assert "After." in text

    def test_metadata(self) -> None:
        options = PdfLayoutOptions(author="Ada Lovelace", subject="Engines")
        with _open(markdown_to_pdf("# Notes on the Engine\n", options=options)) as doc:
            assert doc.metadata["title"] == "Notes on the Engine"
            assert doc.metadata["author"] == "Ada Lovelace"
            assert doc.metadata["subject"] == "Engines"
            assert doc.metadata["creator"] == "markpage"

    def test_converter_summary_matches_output(self) -> None:
        converter = MarkdownPdfConverter()
        data = converter.convert(TOC_DOCUMENT)
        with _open(data) as doc:
            assert converter.summary.page_count == doc.page_count


@pytest.mark.integration
class TestReportLabBackend:
    """The optional ReportLab backend produces equivalent navigation."""

    def test_outline_and_links(self) -> None:
        pytest.importorskip("reportlab")
        data = markdown_to_pdf(TOC_DOCUMENT, backend="reportlab")
        with _open(data) as doc:
            assert doc.page_count == 3
            assert [entry[1:] for entry in doc.get_toc()] == [
                ["Handbook", 1],
                ["Setup", 2],
                ["Usage", 3],
                ["Options", 3],
            ]
            assert "Page 2 of 3" in doc[1].get_text()

    def test_headings_sharing_a_page_keep_their_titles(self) -> None:
        pytest.importorskip("reportlab")
        markdown = "- [B](#beta)\n\n# Alpha\n\n<!-- \\newpage -->\n\n## Beta\n\n### Gamma\n\n# Delta\n"
        with _open(markdown_to_pdf(markdown, backend="reportlab")) as doc:
            assert doc.get_toc() == [[1, "Alpha", 1], [2, "Beta", 2], [3, "Gamma", 2], [1, "Delta", 2]]
            (link,) = [link for link in doc[0].get_links() if link["kind"] == fitz.LINK_GOTO]
            assert link["page"] == 1
