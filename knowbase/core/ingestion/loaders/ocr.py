"""
OCR support for scanned documents and images.

The loader calls an OcrEngine once per document with every page image it
could gather: the image itself, the rendered pages of a PDF, or the media
embedded in an Office (OOXML) package.

Dependencies: pytesseract, Pillow, PyMuPDF
System role: Fallback text extraction when native parsing yields nothing
"""

import io
import logging
import zipfile
from collections.abc import Sequence
from typing import Protocol

import pymupdf
import pytesseract
from PIL import Image

logger = logging.getLogger(__name__)

_OFFICE_MEDIA_PREFIXES = ("ppt/media/", "word/media/", "xl/media/")
_OCR_IMAGE_SUFFIXES = (".png", ".jpg", ".jpeg", ".tif", ".tiff", ".bmp", ".gif")


class OcrEngine(Protocol):
    """Recognizes text in a set of page images."""

    def recognize(self, images: Sequence[bytes]) -> str: ...


class TesseractOcrEngine:
    """OcrEngine backed by the Tesseract binary through pytesseract."""

    def __init__(self, language: str = "eng") -> None:
        self._language = language

    def recognize(self, images: Sequence[bytes]) -> str:
        """
        Run Tesseract over each image and join the page texts.

        Args:
            images: Encoded images (PNG, JPEG, TIFF, ...)

        Returns:
            str: Recognized text, pages separated by blank lines
        """
        pages = []
        for image_bytes in images:
            with Image.open(io.BytesIO(image_bytes)) as image:
                text = pytesseract.image_to_string(image.convert("RGB"), lang=self._language)
            if text.strip():
                pages.append(text)

        logger.info(
            f"{__name__}:recognize - OCR complete",
            extra={"images": len(images), "pages_with_text": len(pages)},
        )
        return "\n\n".join(pages)


def render_pdf_pages(blob: bytes, dpi: int = 200) -> list[bytes]:
    """Render every PDF page to PNG."""
    with pymupdf.open(stream=blob, filetype="pdf") as document:
        return [page.get_pixmap(dpi=dpi).tobytes("png") for page in document]


def office_media_images(blob: bytes) -> list[bytes]:
    """Read embedded images from a pptx/docx/xlsx package in archive order."""
    with zipfile.ZipFile(io.BytesIO(blob)) as package:
        return [
            package.read(name)
            for name in package.namelist()
            if name.startswith(_OFFICE_MEDIA_PREFIXES) and name.lower().endswith(_OCR_IMAGE_SUFFIXES)
        ]
