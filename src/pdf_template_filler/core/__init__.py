# SPDX-License-Identifier: Apache-2.0
"""Core template, zone, flow, and assembly modules."""

from .assembler import OutputAssembler, strip_form_fields
from .flow import FlowCursor, FlowEngine, FlowResult, PageFrame, split_blocks
from .models import (
    IngestedDocument,
    PageGeometry,
    PageRender,
    PageText,
    PlacedText,
    RenderPlan,
    TextRun,
    Zone,
)
from .template import Template
from .text_layout import PdfiumFontMetrics, sanitize_text, wrap_words
from .zones import (
    FormFieldZoneSource,
    WidgetAnnotationZoneSource,
    ZoneResolution,
    ZoneResolver,
    ZoneSource,
)

__all__ = [
    "FlowCursor",
    "FlowEngine",
    "FlowResult",
    "FormFieldZoneSource",
    "IngestedDocument",
    "OutputAssembler",
    "PageFrame",
    "PageGeometry",
    "PageRender",
    "PageText",
    "PdfiumFontMetrics",
    "PlacedText",
    "RenderPlan",
    "Template",
    "TextRun",
    "WidgetAnnotationZoneSource",
    "Zone",
    "ZoneResolution",
    "ZoneResolver",
    "ZoneSource",
    "sanitize_text",
    "split_blocks",
    "strip_form_fields",
    "wrap_words",
]
