"""
Closed set of document formats accepted by the loader.

Dependencies: None
System role: MIME type to extractor dispatch key
"""

import enum

from knowbase.core.exceptions import UnsupportedFormatError


class DocumentFormat(str, enum.Enum):
    """Formats with a dedicated extractor."""

    TEXT = "text"
    CSV = "csv"
    PPTX = "pptx"
    DOCX = "docx"
    XLSX = "xlsx"
    PDF = "pdf"
    RTF = "rtf"
    IMAGE = "image"

    @classmethod
    def from_mime_type(cls, mime_type: str) -> "DocumentFormat":
        """
        Resolve a declared MIME type to a format.

        Parameters such as ``; charset=utf-8`` are ignored.

        Args:
            mime_type: Declared MIME type of the stored file

        Returns:
            DocumentFormat: Matching format

        Raises:
            UnsupportedFormatError: No extractor handles the MIME type
        """
        normalized = mime_type.split(";", 1)[0].strip().lower()
        try:
            return _MIME_TYPES[normalized]
        except KeyError:
            raise UnsupportedFormatError(mime_type) from None

    @property
    def is_office(self) -> bool:
        return self in (DocumentFormat.PPTX, DocumentFormat.DOCX, DocumentFormat.XLSX)

    @property
    def has_ocr_fallback(self) -> bool:
        """Whether empty native extraction is retried through OCR."""
        return self is DocumentFormat.PDF or self.is_office


_MIME_TYPES: dict[str, DocumentFormat] = {
    "text/plain": DocumentFormat.TEXT,
    "text/markdown": DocumentFormat.TEXT,
    "text/x-markdown": DocumentFormat.TEXT,
    "application/json": DocumentFormat.TEXT,
    "text/csv": DocumentFormat.CSV,
    "application/vnd.openxmlformats-officedocument.presentationml.presentation": DocumentFormat.PPTX,
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document": DocumentFormat.DOCX,
    "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet": DocumentFormat.XLSX,
    "application/pdf": DocumentFormat.PDF,
    "application/rtf": DocumentFormat.RTF,
    "text/rtf": DocumentFormat.RTF,
    "image/png": DocumentFormat.IMAGE,
    "image/jpeg": DocumentFormat.IMAGE,
    "image/tiff": DocumentFormat.IMAGE,
    "image/webp": DocumentFormat.IMAGE,
    "image/bmp": DocumentFormat.IMAGE,
}
