# SPDX-License-Identifier: Apache-2.0
"""Document generation pipeline.

Stages run strictly in sequence: zones -> flow -> assemble, with optional
protection afterwards. Each call works on its own copy of the template
pages, so concurrent calls share no mutable state.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field, replace
from typing import Any, Optional, Union

import pikepdf  # type: ignore[import-untyped]
import pypdfium2 as pdfium  # type: ignore[import-untyped]

from pdf_template_filler.config import AppConfig
from pdf_template_filler.core.assembler import OutputAssembler
from pdf_template_filler.core.flow import FlowEngine
from pdf_template_filler.core.models import RenderPlan
from pdf_template_filler.core.template import Template
from pdf_template_filler.core.text_layout import MeasureFn, PdfiumFontMetrics
from pdf_template_filler.core.zones import ZoneResolution, ZoneResolver
from pdf_template_filler.errors import GenerationError
from pdf_template_filler.pipeline.progress import STAGES, GenerationStage, ProgressCallback
from pdf_template_filler.protection import ProtectionClient

logger = logging.getLogger(__name__)


@dataclass
class GenerateOptions:
    """Per-request generation options."""

    # Overrides the template's own id for margin profile lookup
    template_id: Optional[str] = None
    # Overrides LayoutConfig.max_pages
    max_pages: Optional[int] = None
    # Field used for the title instead of the keyword match
    title_zone: Optional[str] = None
    # Field used for the body; "" selects the generic margin-derived area
    body_zone: Optional[str] = None


@dataclass
class GenerationResult:
    """Generation pipeline result."""

    pdf_bytes: bytes
    plan: RenderPlan
    zones: ZoneResolution
    stats: dict[str, Any] = field(default_factory=dict)
    protected: bool = False

    @property
    def page_count(self) -> int:
        return self.plan.total_pages


def suggested_filename(title: str, limit: int = 50) -> str:
    """Build a download file name from a title."""
    stem = re.sub(r"\s+", "_", title.strip().lower())[:limit]
    stem = re.sub(r"[^\w\-.]", "", stem)
    return f"{stem or 'document'}.pdf"


class DocumentGenerator:
    """Generate documents from a title, a body and a template."""

    def __init__(
        self,
        config: AppConfig | None = None,
        measure: MeasureFn | None = None,
        resolver: ZoneResolver | None = None,
        progress_callback: ProgressCallback | None = None,
    ) -> None:
        """Initialize DocumentGenerator.

        Args:
            config: Layout, margin and ingestion configuration.
            measure: Glyph width function. Defaults to PDFium standard-font
                metrics, created per call.
            resolver: Zone resolver (default sources when None).
            progress_callback: Called once per stage.
        """
        self._config = config or AppConfig()
        self._measure = measure
        self._resolver = resolver or ZoneResolver()
        self._progress_callback = progress_callback

    def _notify(self, stage: GenerationStage, message: str = "") -> None:
        if self._progress_callback is not None:
            self._progress_callback(stage, STAGES.index(stage), len(STAGES), message)

    def generate(
        self,
        title: str,
        body: str,
        template: Template,
        options: GenerateOptions | None = None,
    ) -> GenerationResult:
        """Generate a document.

        Args:
            title: Document title.
            body: Body text.
            template: Template to render on.
            options: Per-request options.

        Returns:
            GenerationResult with PDF bytes and the render plan.

        Raises:
            InvalidTemplate: If the template is unusable.
            DegenerateZone: If a zone has no usable area.
            PageLimitExceeded: If the body needs too many pages.
            GenerationError: If PDF assembly fails.
        """
        options = options or GenerateOptions()
        layout = self._config.layout
        if options.max_pages is not None:
            layout = replace(layout, max_pages=options.max_pages)
        template_id = options.template_id or template.template_id

        self._notify("zones", "Resolving zones")
        zones = self._resolver.resolve(template)
        if options.title_zone is not None or options.body_zone is not None:
            zones = zones.with_overrides(options.title_zone, options.body_zone)
            logger.info(
                "Zone override: title=%s, body=%s",
                zones.title_zone.name if zones.title_zone else None,
                zones.body_zone.name if zones.body_zone else None,
            )

        self._notify("flow", "Laying out text")
        pages = [template.page_geometry(i) for i in range(template.page_count)]
        if self._measure is not None:
            flow = FlowEngine(self._measure, layout, self._config.margins).layout(
                title, body, zones, pages, template_id
            )
        else:
            with PdfiumFontMetrics() as metrics:
                flow = FlowEngine(metrics.width, layout, self._config.margins).layout(
                    title, body, zones, pages, template_id
                )

        self._notify("assemble", "Writing PDF")
        try:
            pdf_bytes = OutputAssembler(layout).assemble(template, flow.plan)
        except (pdfium.PdfiumError, pikepdf.PdfError) as exc:
            raise GenerationError(
                "PDF assembly failed", stage="assemble", cause=exc
            ) from exc

        stats = {
            **flow.stats,
            "zone_layout": flow.plan.zone_layout,
            "zone_source": zones.source,
            "template_pages": template.page_count,
        }
        return GenerationResult(pdf_bytes=pdf_bytes, plan=flow.plan, zones=zones, stats=stats)

    async def generate_protected(
        self,
        title: str,
        body: str,
        template: Template,
        client: ProtectionClient,
        options: GenerateOptions | None = None,
    ) -> GenerationResult:
        """Generate a document and pass it through the protection service.

        Raises:
            ExternalServiceFailure: If the protection service fails.
        """
        result = self.generate(title, body, template, options)
        protected = await client.protect(result.pdf_bytes, suggested_filename(title))
        return replace(result, pdf_bytes=protected, protected=True)


def generate(
    title: str,
    body: str,
    template: Union[Template, bytes],
    options: GenerateOptions | None = None,
    config: AppConfig | None = None,
) -> bytes:
    """Convenience function returning only the document bytes."""
    if isinstance(template, bytes):
        template = Template(template)
    return DocumentGenerator(config).generate(title, body, template, options).pdf_bytes
