# SPDX-License-Identifier: Apache-2.0
"""Shared fixtures: templates and source documents built in memory."""

from __future__ import annotations

import ctypes
from io import BytesIO
from typing import Callable, Sequence

import pikepdf
import pypdfium2 as pdfium
import pytest

from pdf_template_filler.core.helpers import to_widestring
from pdf_template_filler.core.template import Template

LETTER = (612.0, 792.0)


def fake_measure(text: str, font_id: str, size: float) -> float:
    """Monospace metrics: every character is half an em wide."""
    return len(text) * size * 0.5


def blank_pdf(page_count: int = 1, size: tuple[float, float] = LETTER) -> bytes:
    """Build a PDF of empty pages."""
    pdf = pdfium.PdfDocument.new()
    try:
        for _ in range(page_count):
            pdf.new_page(*size)
        buffer = BytesIO()
        pdf.save(buffer)
        return buffer.getvalue()
    finally:
        pdf.close()


def form_pdf(
    fields: Sequence[tuple[str, Sequence[float]]],
    register_fields: bool = True,
    size: tuple[float, float] = LETTER,
) -> bytes:
    """Build a one-page PDF with text fields.

    Args:
        fields: (name, [x1, y1, x2, y2]) per field.
        register_fields: Whether to list the fields in an AcroForm. When
            False the widgets only exist as page annotations.
    """
    pdf = pikepdf.new()
    pdf.add_blank_page(page_size=size)
    page = pdf.pages[0]

    widgets = []
    for name, rect in fields:
        widget = pdf.make_indirect(
            pikepdf.Dictionary(
                Type=pikepdf.Name.Annot,
                Subtype=pikepdf.Name.Widget,
                FT=pikepdf.Name.Tx,
                T=pikepdf.String(name),
                Rect=pikepdf.Array([float(v) for v in rect]),
                P=page.obj,
            )
        )
        widgets.append(widget)

    page.obj.Annots = pikepdf.Array(widgets)
    if register_fields:
        pdf.Root.AcroForm = pikepdf.Dictionary(Fields=pikepdf.Array(widgets))

    buffer = BytesIO()
    pdf.save(buffer)
    return buffer.getvalue()


def text_pdf(
    pages: Sequence[Sequence[tuple[float, float, str]]],
    size: tuple[float, float] = LETTER,
) -> bytes:
    """Build a PDF with a positional text layer.

    Args:
        pages: Per page, (x, y, text) for each text object.
    """
    pdf = pdfium.PdfDocument.new()
    try:
        font = pdfium.raw.FPDFText_LoadStandardFont(pdf.raw, b"Helvetica")
        for runs in pages:
            page = pdf.new_page(*size)
            for x, y, text in runs:
                obj = pdfium.raw.FPDFPageObj_CreateTextObj(pdf.raw, font, ctypes.c_float(11.0))
                pdfium.raw.FPDFText_SetText(obj, to_widestring(text))
                pdfium.raw.FPDFPageObj_Transform(
                    obj,
                    ctypes.c_double(1.0),
                    ctypes.c_double(0.0),
                    ctypes.c_double(0.0),
                    ctypes.c_double(1.0),
                    ctypes.c_double(x),
                    ctypes.c_double(y),
                )
                pdfium.raw.FPDFPage_InsertObject(page.raw, obj)
            page.gen_content()
        buffer = BytesIO()
        pdf.save(buffer)
        return buffer.getvalue()
    finally:
        pdf.close()


def page_text(pdf_bytes: bytes, page_index: int) -> str:
    """Extract all text of one page of a PDF."""
    pdf = pdfium.PdfDocument(pdf_bytes)
    try:
        textpage = pdf[page_index].get_textpage()
        try:
            return textpage.get_text_range()
        finally:
            textpage.close()
    finally:
        pdf.close()


def pdf_page_count(pdf_bytes: bytes) -> int:
    pdf = pdfium.PdfDocument(pdf_bytes)
    try:
        return len(pdf)
    finally:
        pdf.close()


@pytest.fixture
def measure() -> Callable[[str, str, float], float]:
    """Deterministic width function."""
    return fake_measure


@pytest.fixture
def blank_template() -> Template:
    """Single-page Letter template without zones."""
    return Template(blank_pdf(), template_id="blank")


@pytest.fixture
def zone_template() -> Template:
    """Template declaring "Text Title" and "Text Body" fields."""
    return Template(
        form_pdf(
            [
                ("Text Title", [72, 680, 540, 720]),
                ("Text Body", [72, 100, 540, 660]),
            ]
        ),
        template_id="zoned",
    )
