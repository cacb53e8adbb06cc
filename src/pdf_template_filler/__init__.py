# SPDX-License-Identifier: Apache-2.0
"""Flow arbitrary-length text onto PDF page templates.

Usage:
    from pdf_template_filler import Template, generate, ingest

    doc = ingest(Path("article.docx").read_bytes(), "docx")
    template = Template.from_path("letterhead.pdf")
    pdf_bytes = generate(doc.title, doc.body, template)
"""

from pdf_template_filler.config import AppConfig, load_config
from pdf_template_filler.core.models import IngestedDocument, RenderPlan, Zone
from pdf_template_filler.core.template import Template
from pdf_template_filler.ingest import TextIngestor, ingest
from pdf_template_filler.pipeline import (
    DocumentGenerator,
    GenerateOptions,
    GenerationError,
    GenerationResult,
    generate,
)

__version__ = "0.1.0"

__all__ = [
    "AppConfig",
    "DocumentGenerator",
    "GenerateOptions",
    "GenerationError",
    "GenerationResult",
    "IngestedDocument",
    "RenderPlan",
    "Template",
    "TextIngestor",
    "Zone",
    "generate",
    "ingest",
    "load_config",
]
