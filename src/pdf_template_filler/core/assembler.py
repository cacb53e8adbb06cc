# SPDX-License-Identifier: Apache-2.0
"""Output assembly using pypdfium2 and pikepdf.

The assembler serializes a :class:`RenderPlan` on top of a template:
the template pages are copied as-is, clones of the template's first page
are appended for overflow, and every placed line becomes a text object.
No layout decisions are made here.
"""

from __future__ import annotations

import ctypes
import logging
from io import BytesIO
from typing import Any

import pikepdf  # type: ignore[import-untyped]
import pypdfium2 as pdfium  # type: ignore[import-untyped]

from pdf_template_filler.config import LayoutConfig
from pdf_template_filler.errors import GenerationError, InvalidTemplate

from .helpers import to_widestring
from .models import PlacedText, RenderPlan, Zone
from .template import Template

logger = logging.getLogger(__name__)

# Path fill mode (FPDF_FILLMODE_WINDING)
FPDF_FILLMODE_WINDING = 2


def strip_form_fields(pdf_bytes: bytes) -> bytes:
    """Remove the AcroForm and all widget annotations from a PDF.

    Declared zones are form fields; left in place, their (empty) widgets
    would be drawn over the placed text by most viewers.

    Args:
        pdf_bytes: PDF bytes.

    Returns:
        PDF bytes without form fields.

    Raises:
        InvalidTemplate: If pikepdf cannot read the bytes.
    """
    try:
        pdf = pikepdf.open(BytesIO(pdf_bytes))
    except pikepdf.PdfError as e:
        raise InvalidTemplate(f"Template is not a readable PDF: {e}", cause=e) from e

    try:
        changed = False
        if "/AcroForm" in pdf.Root:
            del pdf.Root.AcroForm
            changed = True

        for page in pdf.pages:
            annots = page.obj.get("/Annots")
            if annots is None:
                continue
            kept = [a for a in annots if a.get("/Subtype") != pikepdf.Name.Widget]
            if len(kept) == len(annots):
                continue
            changed = True
            if kept:
                page.obj.Annots = pikepdf.Array(kept)
            else:
                del page.obj.Annots

        if not changed:
            return pdf_bytes

        output = BytesIO()
        pdf.save(output, deterministic_id=True)
        return output.getvalue()
    finally:
        pdf.close()


class OutputAssembler:
    """Serialize a render plan into PDF bytes.

    Example:
        >>> assembler = OutputAssembler()
        >>> pdf_bytes = assembler.assemble(template, plan)
    """

    def __init__(self, config: LayoutConfig | None = None) -> None:
        """Initialize OutputAssembler.

        Args:
            config: Layout configuration (fonts used for placed text).
        """
        self._config = config or LayoutConfig()

    def assemble(self, template: Template, plan: RenderPlan) -> bytes:
        """Build the output document.

        Args:
            template: Template supplying background pages.
            plan: Render plan from the flow engine.

        Returns:
            Output PDF bytes.

        Raises:
            InvalidTemplate: If the template cannot be read.
            GenerationError: If PDFium rejects a font or text object.
        """
        source = pdfium.PdfDocument(strip_form_fields(template.pdf_bytes))
        try:
            output = pdfium.PdfDocument.new()
            try:
                pdf_bytes = self._render(source, output, plan)
            finally:
                output.close()
        finally:
            source.close()

        logger.info(
            "Assembled %d pages (%d cloned), %d bytes",
            plan.total_pages,
            plan.clone_count,
            len(pdf_bytes),
        )
        return pdf_bytes

    def _render(
        self, source: pdfium.PdfDocument, output: pdfium.PdfDocument, plan: RenderPlan
    ) -> bytes:
        output.import_pages(source)
        for _ in range(plan.clone_count):
            # Always clone from the pristine source, never from rendered output
            output.import_pages(source, [0])

        if len(output) != plan.total_pages:
            raise GenerationError(
                f"Plan expects {plan.total_pages} pages, assembled {len(output)}",
                stage="assemble",
            )

        fonts = {
            False: self._load_font(output, self._config.body_font),
            True: self._load_font(output, self._config.title_font),
        }

        for render in plan.pages:
            page = output[render.page_index]
            for mask in render.masks:
                self._draw_mask(page, mask)
            for placed in render.text_runs:
                self._draw_text(output, page, fonts[placed.bold], placed)
            page.gen_content()

        buffer = BytesIO()
        output.save(buffer)
        return buffer.getvalue()

    @staticmethod
    def _load_font(pdf: pdfium.PdfDocument, font_name: str) -> Any:
        handle = pdfium.raw.FPDFText_LoadStandardFont(pdf.raw, font_name.encode("utf-8"))
        if not handle:
            raise GenerationError(
                f"Could not load standard font '{font_name}'", stage="assemble"
            )
        return handle

    @staticmethod
    def _draw_mask(page: pdfium.PdfPage, zone: Zone) -> None:
        rect = pdfium.raw.FPDFPageObj_CreateNewRect(
            ctypes.c_float(zone.x),
            ctypes.c_float(zone.y),
            ctypes.c_float(zone.width),
            ctypes.c_float(zone.height),
        )
        pdfium.raw.FPDFPageObj_SetFillColor(rect, 255, 255, 255, 255)
        # Draw mode: fill only
        pdfium.raw.FPDFPath_SetDrawMode(rect, FPDF_FILLMODE_WINDING, ctypes.c_int(0))
        pdfium.raw.FPDFPage_InsertObject(page.raw, rect)

    @staticmethod
    def _draw_text(
        pdf: pdfium.PdfDocument,
        page: pdfium.PdfPage,
        font_handle: Any,
        placed: PlacedText,
    ) -> None:
        text_obj = pdfium.raw.FPDFPageObj_CreateTextObj(
            pdf.raw, font_handle, ctypes.c_float(placed.font_size)
        )
        if not text_obj:
            raise GenerationError("Could not create text object", stage="assemble")

        if not pdfium.raw.FPDFText_SetText(text_obj, to_widestring(placed.text)):
            raise GenerationError(
                f"Could not set text {placed.text[:40]!r}", stage="assemble"
            )

        level = round(255 * placed.gray)
        pdfium.raw.FPDFPageObj_SetFillColor(text_obj, level, level, level, 255)
        pdfium.raw.FPDFPageObj_Transform(
            text_obj,
            ctypes.c_double(1.0),
            ctypes.c_double(0.0),
            ctypes.c_double(0.0),
            ctypes.c_double(1.0),
            ctypes.c_double(placed.x),
            ctypes.c_double(placed.y),
        )
        pdfium.raw.FPDFPage_InsertObject(page.raw, text_obj)
