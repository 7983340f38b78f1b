"""Tests for document loading: MIME dispatch, extractors, RTF, cleanup and OCR fallback.

Tests all components:
- clean_text normalization
- strip_rtf
- DocumentFormat MIME resolution
- DocumentLoader native extraction and OCR fallback
"""

import io
from unittest.mock import MagicMock

import pandas as pd
import pymupdf
import pytest
from docx import Document as DocxDocument
from pptx import Presentation
from pptx.util import Inches

from knowbase.core.exceptions import (
    DocumentParsingError,
    EmptyDocumentError,
    UnsupportedFormatError,
)
from knowbase.core.ingestion.loaders import (
    DocumentFormat,
    DocumentLoader,
    clean_text,
    strip_rtf,
)


@pytest.fixture
def ocr_engine() -> MagicMock:
    engine = MagicMock()
    engine.recognize.return_value = "Scanned refund policy"
    return engine


# ============================================================================
# Text Cleaning Tests
# ============================================================================


class TestCleanText:
    """Test normalization of extracted text."""

    def test_removes_control_characters(self) -> None:
        """Should drop NUL, unit separator and DEL."""
        assert clean_text("Hello\u0000World\u001FTest\u007F") == "HelloWorldTest"

    def test_keeps_newlines_and_collapses_spaces(self) -> None:
        assert clean_text("a   b\t\tc \n  d") == "a b c\nd"

    def test_collapses_blank_line_runs(self) -> None:
        assert clean_text("first\r\n\r\n\r\n\nsecond") == "first\n\nsecond"

    def test_empty_input(self) -> None:
        assert clean_text("") == ""
        assert clean_text(" \t\n ") == ""


# ============================================================================
# RTF Tests
# ============================================================================


class TestStripRtf:
    """Test plain-text extraction from RTF."""

    def test_skips_font_table(self) -> None:
        """Should keep body text and drop the font table destination."""
        rtf = r"{\rtf1\ansi\deff0 {\fonttbl {\f0 Times New Roman;}} This is text with font info.}"

        assert strip_rtf(rtf) == "This is text with font info."

    def test_header_only_document_is_empty(self) -> None:
        assert strip_rtf(r"{\rtf1\ansi\deff0}") == ""

    def test_formatting_only_document_is_empty(self) -> None:
        assert strip_rtf(r"{\rtf1\ansi\deff0 \b\i\cf1}") == ""

    def test_paragraphs_become_newlines(self) -> None:
        rtf = r"{\rtf1\ansi First line\par Second\tab line}"

        assert strip_rtf(rtf) == "First line\nSecond line"

    def test_ignorable_destination_skipped(self) -> None:
        rtf = r"{\rtf1{\*\generator Riched20;}Visible}"

        assert strip_rtf(rtf) == "Visible"

    def test_unicode_escape_drops_fallback(self) -> None:
        """Should decode \\uN and skip its one-character fallback."""
        rtf = r"{\rtf1\ansi caf\u233?}"

        assert strip_rtf(rtf) == "café"

    def test_hex_escapes_removed(self) -> None:
        rtf = r"{\rtf1\ansi na\'efve}"

        assert strip_rtf(rtf) == "nave"

    def test_escaped_braces_kept(self) -> None:
        assert strip_rtf(r"{\rtf1 a \{b\} c}") == "a {b} c"


# ============================================================================
# Format Resolution Tests
# ============================================================================


class TestDocumentFormat:
    """Test MIME type resolution."""

    @pytest.mark.parametrize(
        "mime_type,expected",
        [
            ("text/plain", DocumentFormat.TEXT),
            ("text/markdown; charset=utf-8", DocumentFormat.TEXT),
            ("TEXT/CSV", DocumentFormat.CSV),
            ("application/pdf", DocumentFormat.PDF),
            ("application/rtf", DocumentFormat.RTF),
            ("image/png", DocumentFormat.IMAGE),
            (
                "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
                DocumentFormat.DOCX,
            ),
        ],
    )
    def test_resolves_known_types(self, mime_type: str, expected: DocumentFormat) -> None:
        assert DocumentFormat.from_mime_type(mime_type) is expected

    def test_unknown_type_rejected(self) -> None:
        with pytest.raises(UnsupportedFormatError) as exc_info:
            DocumentFormat.from_mime_type("application/unknown")

        assert exc_info.value.message == "Unsupported file type: application/unknown"

    def test_ocr_fallback_formats(self) -> None:
        assert DocumentFormat.PDF.has_ocr_fallback
        assert DocumentFormat.XLSX.has_ocr_fallback
        assert not DocumentFormat.TEXT.has_ocr_fallback
        assert not DocumentFormat.IMAGE.has_ocr_fallback


# ============================================================================
# Document Loader Tests
# ============================================================================


class TestDocumentLoaderNative:
    """Test native extraction per format."""

    def test_plain_text_strips_bom_and_cleans(self) -> None:
        loader = DocumentLoader()

        text = loader.load("\ufeffRefunds\t\ttake  5 days.\r\n".encode("utf-8"), "text/plain")

        assert text == "Refunds take 5 days."

    def test_csv_rows(self) -> None:
        loader = DocumentLoader()
        blob = b"name,role\nAlice,admin\nBob,user\n"

        text = loader.load(blob, "text/csv")

        assert text == "name: Alice\nrole: admin\n\nname: Bob\nrole: user"

    def test_rtf(self) -> None:
        loader = DocumentLoader()
        blob = rb"{\rtf1\ansi{\fonttbl{\f0 Arial;}}\f0 Refund policy\par Five days.}"

        assert loader.load(blob, "text/rtf") == "Refund policy\nFive days."

    def test_docx_paragraphs_and_tables_in_order(self) -> None:
        document = DocxDocument()
        document.add_paragraph("Refund policy")
        table = document.add_table(rows=1, cols=2)
        table.cell(0, 0).text = "Plan"
        table.cell(0, 1).text = "Days"
        document.add_paragraph("Contact support")
        buffer = io.BytesIO()
        document.save(buffer)

        text = DocumentLoader().load(
            buffer.getvalue(),
            "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
        )

        assert text == "Refund policy\nPlan | Days\nContact support"

    def test_pptx_reading_order(self) -> None:
        presentation = Presentation()
        slide = presentation.slides.add_slide(presentation.slide_layouts[6])
        lower = slide.shapes.add_textbox(Inches(1), Inches(4), Inches(4), Inches(1))
        lower.text_frame.text = "Second"
        upper = slide.shapes.add_textbox(Inches(1), Inches(1), Inches(4), Inches(1))
        upper.text_frame.text = "First"
        buffer = io.BytesIO()
        presentation.save(buffer)

        text = DocumentLoader().load(
            buffer.getvalue(),
            "application/vnd.openxmlformats-officedocument.presentationml.presentation",
        )

        assert text == "First\nSecond"

    def test_xlsx_sheet_blocks(self) -> None:
        buffer = io.BytesIO()
        frame = pd.DataFrame({"Question": ["What is X?"], "Answer": ["Y"]})
        frame.to_excel(buffer, sheet_name="FAQ", index=False, engine="openpyxl")

        text = DocumentLoader().load(
            buffer.getvalue(),
            "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        )

        assert text.startswith("Sheet: FAQ\n")
        assert "What is X?" in text

    def test_unsupported_type(self) -> None:
        with pytest.raises(UnsupportedFormatError, match="Unsupported file type: application/unknown"):
            DocumentLoader().load(b"data", "application/unknown")

    def test_empty_text_file(self) -> None:
        with pytest.raises(EmptyDocumentError):
            DocumentLoader().load(b"  \n\t ", "text/plain")

    def test_malformed_docx(self) -> None:
        with pytest.raises(DocumentParsingError) as exc_info:
            DocumentLoader().load(
                b"not a zip archive",
                "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
            )

        assert exc_info.value.retryable is False

    @pytest.mark.asyncio
    async def test_aload_runs_in_thread(self) -> None:
        text = await DocumentLoader().aload(b"Hello", "text/markdown")

        assert text == "Hello"


class TestDocumentLoaderOcr:
    """Test the OCR fallback."""

    @staticmethod
    def _blank_pdf(pages: int = 1) -> bytes:
        document = pymupdf.open()
        for _ in range(pages):
            document.new_page()
        blob = document.tobytes()
        document.close()
        return blob

    def test_scanned_pdf_falls_back_once(self, ocr_engine: MagicMock) -> None:
        """Should render each page and call the engine once per document."""
        loader = DocumentLoader(ocr_engine=ocr_engine, pdf_render_dpi=50)

        text = loader.load(self._blank_pdf(pages=2), "application/pdf")

        assert text == "Scanned refund policy"
        ocr_engine.recognize.assert_called_once()
        images = ocr_engine.recognize.call_args.args[0]
        assert len(images) == 2
        assert all(image.startswith(b"\x89PNG") for image in images)

    def test_scanned_pdf_without_engine_is_empty(self) -> None:
        with pytest.raises(EmptyDocumentError):
            DocumentLoader().load(self._blank_pdf(), "application/pdf")

    def test_image_goes_straight_to_ocr(self, ocr_engine: MagicMock) -> None:
        loader = DocumentLoader(ocr_engine=ocr_engine)

        text = loader.load(b"\x89PNG fake image", "image/png")

        assert text == "Scanned refund policy"
        ocr_engine.recognize.assert_called_once_with([b"\x89PNG fake image"])

    def test_text_file_never_uses_ocr(self, ocr_engine: MagicMock) -> None:
        loader = DocumentLoader(ocr_engine=ocr_engine)

        with pytest.raises(EmptyDocumentError):
            loader.load(b"", "text/plain")

        ocr_engine.recognize.assert_not_called()

    def test_ocr_returning_nothing(self, ocr_engine: MagicMock) -> None:
        ocr_engine.recognize.return_value = "   "
        loader = DocumentLoader(ocr_engine=ocr_engine, pdf_render_dpi=50)

        with pytest.raises(EmptyDocumentError):
            loader.load(self._blank_pdf(), "application/pdf")
