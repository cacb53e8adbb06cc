# SPDX-License-Identifier: Apache-2.0
"""Template PDF access using pypdfium2.

A :class:`Template` holds the immutable bytes of a template PDF. Every
consumer opens its own document from those bytes, so pages cloned for one
generation request never touch a shared cached template.
"""

from __future__ import annotations

import ctypes
import logging
from pathlib import Path
from typing import Optional, Union

import pypdfium2 as pdfium  # type: ignore[import-untyped]

from pdf_template_filler.errors import InvalidTemplate

from .helpers import from_widestring
from .models import PageGeometry, TextRun

logger = logging.getLogger(__name__)

# PDFium object type constant for text
FPDF_PAGEOBJ_TEXT = 1


def _text_object_text(obj: pdfium.PdfObject, textpage: pdfium.PdfTextPage) -> str:
    """Get text belonging to a single text object."""
    length = pdfium.raw.FPDFTextObj_GetText(obj.raw, textpage.raw, None, 0)
    if length == 0:
        return ""
    buffer = (ctypes.c_ushort * length)()
    pdfium.raw.FPDFTextObj_GetText(obj.raw, textpage.raw, buffer, length)
    return from_widestring(buffer, length)


class Template:
    """Template document supplying background pages.

    Example:
        >>> template = Template.from_path("letterhead.pdf")
        >>> template.page_count
        1
        >>> template.page_geometry(0)
        PageGeometry(width=612.0, height=792.0)
    """

    def __init__(self, pdf_bytes: bytes, template_id: Optional[str] = None) -> None:
        """Initialize Template.

        Args:
            pdf_bytes: Raw template PDF bytes.
            template_id: Identity used to select a margin profile.

        Raises:
            InvalidTemplate: If the bytes are not a readable PDF or it has
                no pages.
        """
        self._bytes = bytes(pdf_bytes)
        self.template_id = template_id

        pdf = self.open()
        try:
            self._geometry = [
                PageGeometry(width=pdf[i].get_width(), height=pdf[i].get_height())
                for i in range(len(pdf))
            ]
        finally:
            pdf.close()

        if not self._geometry:
            raise InvalidTemplate("Template has no pages", template_id=template_id)

    @classmethod
    def from_path(
        cls, path: Union[Path, str], template_id: Optional[str] = None
    ) -> Template:
        """Load a template from a file; the id defaults to the file stem."""
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Template file not found: {path}")
        return cls(path.read_bytes(), template_id=template_id or path.stem)

    @property
    def pdf_bytes(self) -> bytes:
        """Raw template bytes."""
        return self._bytes

    @property
    def page_count(self) -> int:
        """Number of pages in the template."""
        return len(self._geometry)

    def page_geometry(self, page_index: int) -> PageGeometry:
        """Get the size of a template page."""
        return self._geometry[page_index]

    def open(self) -> pdfium.PdfDocument:
        """Open a fresh pypdfium2 document over the template bytes.

        Raises:
            InvalidTemplate: If PDFium cannot load the bytes.
        """
        try:
            return pdfium.PdfDocument(self._bytes)
        except pdfium.PdfiumError as e:
            raise InvalidTemplate(
                f"Template is not a readable PDF: {e}",
                cause=e,
                template_id=self.template_id,
            ) from e


def extract_page_runs(page: pdfium.PdfPage) -> list[TextRun]:
    """Extract positioned text runs from one page.

    Each text object becomes a run anchored at its origin (the translation
    part of its matrix, i.e. the baseline start).

    Args:
        page: pypdfium2 page object

    Returns:
        Runs in content-stream order
    """
    runs: list[TextRun] = []
    textpage = page.get_textpage()
    try:
        for obj in page.get_objects(filter=[FPDF_PAGEOBJ_TEXT]):
            text = _text_object_text(obj, textpage)
            if not text.strip():
                continue
            matrix = obj.get_matrix()
            runs.append(TextRun(x=matrix.e, y=matrix.f, text=text))
    finally:
        textpage.close()
    return runs
