# SPDX-License-Identifier: Apache-2.0
"""Document generation pipeline package."""

from pdf_template_filler.errors import (
    DegenerateZone,
    ExternalServiceFailure,
    GenerationError,
    IngestionError,
    InvalidTemplate,
    PageLimitExceeded,
    UnsupportedFormat,
)

from .generator import (
    DocumentGenerator,
    GenerateOptions,
    GenerationResult,
    generate,
    suggested_filename,
)
from .progress import STAGES, ProgressCallback, log_progress

__all__ = [
    "DegenerateZone",
    "DocumentGenerator",
    "ExternalServiceFailure",
    "GenerateOptions",
    "GenerationError",
    "GenerationResult",
    "IngestionError",
    "InvalidTemplate",
    "PageLimitExceeded",
    "ProgressCallback",
    "STAGES",
    "UnsupportedFormat",
    "generate",
    "log_progress",
    "suggested_filename",
]
