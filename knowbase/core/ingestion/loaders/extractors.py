"""
Native text extractors, one per document format.

Each extractor takes the raw bytes of a stored file and returns its text.
They are blocking and are run in a worker thread by the loader.

Dependencies: langchain_community.document_loaders, python-pptx, python-docx,
pandas (openpyxl engine)
System role: Format-specific parsing for the document loader
"""

import io
import tempfile
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

import pandas as pd
from docx import Document as DocxDocument
from docx.table import Table
from langchain_community.document_loaders import CSVLoader, PyPDFLoader
from pptx import Presentation
from pptx.enum.shapes import MSO_SHAPE_TYPE

from .rtf import strip_rtf


@contextmanager
def _spooled_file(blob: bytes, suffix: str) -> Iterator[str]:
    """Write bytes to a temporary file for loaders that only accept paths."""
    with tempfile.TemporaryDirectory(prefix="knowbase_") as temp_dir:
        path = Path(temp_dir) / f"source{suffix}"
        path.write_bytes(blob)
        yield str(path)


def _decode(blob: bytes) -> str:
    return blob.decode("utf-8-sig", errors="replace")


def extract_plain_text(blob: bytes) -> str:
    return _decode(blob)


def extract_rtf(blob: bytes) -> str:
    return strip_rtf(_decode(blob))


def extract_csv(blob: bytes) -> str:
    """Render each CSV row as ``column: value`` lines."""
    with _spooled_file(blob, ".csv") as path:
        documents = CSVLoader(file_path=path, encoding="utf-8-sig").load()
    return "\n\n".join(doc.page_content for doc in documents)


def extract_pdf(blob: bytes) -> str:
    with _spooled_file(blob, ".pdf") as path:
        documents = PyPDFLoader(path).load()
    return "\n\n".join(doc.page_content for doc in documents)


def _shape_texts(shapes) -> list[str]:
    texts = []
    # Reading order: top to bottom, then left to right
    ordered = sorted(shapes, key=lambda s: (s.top or 0, s.left or 0))
    for shape in ordered:
        if shape.shape_type == MSO_SHAPE_TYPE.GROUP:
            texts.extend(_shape_texts(shape.shapes))
        elif shape.has_text_frame:
            if shape.text_frame.text.strip():
                texts.append(shape.text_frame.text)
        elif getattr(shape, "has_table", False):
            for row in shape.table.rows:
                texts.append(" | ".join(cell.text for cell in row.cells))
    return texts


def extract_pptx(blob: bytes) -> str:
    presentation = Presentation(io.BytesIO(blob))
    slides = []
    for slide in presentation.slides:
        texts = _shape_texts(slide.shapes)
        if texts:
            slides.append("\n".join(texts))
    return "\n\n".join(slides)


def extract_docx(blob: bytes) -> str:
    """Paragraphs and tables in document order; table rows joined with pipes."""
    document = DocxDocument(io.BytesIO(blob))
    blocks = []
    for block in document.iter_inner_content():
        if isinstance(block, Table):
            for row in block.rows:
                blocks.append(" | ".join(cell.text for cell in row.cells))
        elif block.text.strip():
            blocks.append(block.text)
    return "\n".join(blocks)


def extract_xlsx(blob: bytes) -> str:
    """One block per non-empty sheet, headed by the sheet name."""
    workbook = pd.ExcelFile(io.BytesIO(blob), engine="openpyxl")
    sheets = []
    for sheet_name in workbook.sheet_names:
        frame = workbook.parse(sheet_name).dropna(how="all")
        if frame.empty:
            continue
        body = frame.fillna("").to_string(index=False)
        sheets.append(f"Sheet: {sheet_name}\n{body}")
    return "\n\n".join(sheets)
