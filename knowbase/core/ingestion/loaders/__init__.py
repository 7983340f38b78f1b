"""
Document loader package.

Exports: DocumentLoader, DocumentFormat, OCR engines, clean_text, strip_rtf
"""

from .document_loader import DocumentLoader
from .formats import DocumentFormat
from .ocr import OcrEngine, TesseractOcrEngine
from .rtf import strip_rtf
from .text_cleaning import clean_text

__all__ = [
    "DocumentLoader",
    "DocumentFormat",
    "OcrEngine",
    "TesseractOcrEngine",
    "strip_rtf",
    "clean_text",
]
