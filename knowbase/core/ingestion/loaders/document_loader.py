"""
Document loader: raw file bytes to clean text.

Dispatches on the declared MIME type to one native extractor, normalizes
its output and falls back to OCR once when a PDF or Office document has no
native text.

Dependencies: loaders.extractors, loaders.ocr
System role: File extraction stage of the ingestion pipeline
"""

import asyncio
import logging

from knowbase.core.exceptions import (
    DocumentParsingError,
    EmptyDocumentError,
    SourceProcessingError,
)

from .extractors import (
    extract_csv,
    extract_docx,
    extract_pdf,
    extract_plain_text,
    extract_pptx,
    extract_rtf,
    extract_xlsx,
)
from .formats import DocumentFormat
from .ocr import OcrEngine, office_media_images, render_pdf_pages
from .text_cleaning import clean_text

logger = logging.getLogger(__name__)


class DocumentLoader:
    """Extract normalized text from stored files."""

    def __init__(self, ocr_engine: OcrEngine | None = None, pdf_render_dpi: int = 200) -> None:
        """
        Initialize loader.

        Args:
            ocr_engine: Engine for scanned documents and images (None disables OCR)
            pdf_render_dpi: Resolution used when rendering PDF pages for OCR
        """
        self._ocr_engine = ocr_engine
        self._pdf_render_dpi = pdf_render_dpi

    def load(self, blob: bytes, mime_type: str) -> str:
        """
        Extract text from a file.

        Args:
            blob: Raw file bytes
            mime_type: Declared MIME type

        Returns:
            str: Cleaned, non-empty text

        Raises:
            UnsupportedFormatError: No extractor for the MIME type
            DocumentParsingError: Extractor failed on malformed content
            EmptyDocumentError: No text after extraction and OCR fallback
        """
        document_format = DocumentFormat.from_mime_type(mime_type)

        try:
            text = clean_text(self._extract(document_format, blob))
            if not text and document_format.has_ocr_fallback:
                logger.info(
                    f"{__name__}:load - No native text, falling back to OCR",
                    extra={"format": document_format.value, "size": len(blob)},
                )
                text = clean_text(self._ocr(document_format, blob))
        except SourceProcessingError:
            raise
        except Exception as e:
            raise DocumentParsingError(
                f"Failed to parse {document_format.value} document: {e}",
                file_type=mime_type,
            ) from e

        if not text:
            raise EmptyDocumentError(
                "Document contains no extractable text",
                details={"mime_type": mime_type},
            )
        return text

    async def aload(self, blob: bytes, mime_type: str) -> str:
        """Run ``load`` in a worker thread; parsers are blocking."""
        return await asyncio.to_thread(self.load, blob, mime_type)

    def _extract(self, document_format: DocumentFormat, blob: bytes) -> str:
        match document_format:
            case DocumentFormat.TEXT:
                return extract_plain_text(blob)
            case DocumentFormat.CSV:
                return extract_csv(blob)
            case DocumentFormat.PPTX:
                return extract_pptx(blob)
            case DocumentFormat.DOCX:
                return extract_docx(blob)
            case DocumentFormat.XLSX:
                return extract_xlsx(blob)
            case DocumentFormat.PDF:
                return extract_pdf(blob)
            case DocumentFormat.RTF:
                return extract_rtf(blob)
            case DocumentFormat.IMAGE:
                return self._ocr(document_format, blob)

    def _ocr(self, document_format: DocumentFormat, blob: bytes) -> str:
        if self._ocr_engine is None:
            logger.warning(
                f"{__name__}:_ocr - No OCR engine configured",
                extra={"format": document_format.value},
            )
            return ""

        if document_format is DocumentFormat.IMAGE:
            images = [blob]
        elif document_format is DocumentFormat.PDF:
            images = render_pdf_pages(blob, dpi=self._pdf_render_dpi)
        else:
            images = office_media_images(blob)

        if not images:
            return ""
        return self._ocr_engine.recognize(images)
