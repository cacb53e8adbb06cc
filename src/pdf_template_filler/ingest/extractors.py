# SPDX-License-Identifier: Apache-2.0
"""Raw text extraction from source documents.

Supported formats:
- Plain text (UTF-8, BOM tolerated)
- DOCX, read with python-docx
- PDF, read as a positional text layer with pypdfium2
"""

from __future__ import annotations

import logging
import zipfile
from enum import Enum
from io import BytesIO
from pathlib import Path
from typing import Union

import docx  # type: ignore[import-untyped]
import pypdfium2 as pdfium  # type: ignore[import-untyped]
from docx.opc.exceptions import PackageNotFoundError  # type: ignore[import-untyped]

from pdf_template_filler.core.models import PageText
from pdf_template_filler.core.template import extract_page_runs
from pdf_template_filler.errors import IngestionError, UnsupportedFormat

logger = logging.getLogger(__name__)


class SourceFormat(str, Enum):
    """Source document formats."""

    TXT = "txt"
    DOCX = "docx"
    PDF = "pdf"

    @classmethod
    def parse(cls, value: Union[str, SourceFormat]) -> SourceFormat:
        """Parse a format name, file suffix, or MIME type.

        Raises:
            UnsupportedFormat: If the value names no supported format.
        """
        if isinstance(value, SourceFormat):
            return value
        key = value.strip().lower().lstrip(".")
        aliases = {
            "text": cls.TXT,
            "text/plain": cls.TXT,
            "application/pdf": cls.PDF,
            "application/vnd.openxmlformats-officedocument.wordprocessingml.document": cls.DOCX,
        }
        if key in aliases:
            return aliases[key]
        try:
            return cls(key)
        except ValueError:
            raise UnsupportedFormat(value) from None

    @classmethod
    def from_path(cls, path: Union[Path, str]) -> SourceFormat:
        """Detect the format from a file suffix."""
        return cls.parse(Path(path).suffix or str(path))


def extract_txt(data: bytes) -> str:
    """Decode a plain text document."""
    return data.decode("utf-8-sig", errors="replace")


def extract_docx(data: bytes) -> str:
    """Extract raw text from a DOCX document.

    Paragraphs are separated by a blank line; line breaks inside a
    paragraph are kept as single newlines.

    Raises:
        IngestionError: If the bytes are not a readable DOCX package.
    """
    try:
        document = docx.Document(BytesIO(data))
    except (PackageNotFoundError, zipfile.BadZipFile, KeyError, ValueError) as e:
        raise IngestionError(
            f"Could not read DOCX document: {e}", source_format="docx", cause=e
        ) from e

    paragraphs = [p.text.replace("\x00", "") for p in document.paragraphs]
    return "\n\n".join(paragraphs)


def extract_pdf_pages(data: bytes) -> list[PageText]:
    """Read the positional text layer of every PDF page.

    Raises:
        IngestionError: If the bytes are not a readable PDF.
    """
    try:
        pdf = pdfium.PdfDocument(data)
    except pdfium.PdfiumError as e:
        raise IngestionError(
            f"Could not read PDF document: {e}", source_format="pdf", cause=e
        ) from e

    try:
        pages: list[PageText] = []
        for i in range(len(pdf)):
            page = pdf[i]
            pages.append(PageText(height=page.get_height(), runs=extract_page_runs(page)))
        logger.debug("Read text layer of %d PDF pages", len(pages))
        return pages
    finally:
        pdf.close()
