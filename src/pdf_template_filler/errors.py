# SPDX-License-Identifier: Apache-2.0
"""Error definitions for document generation and ingestion."""

from __future__ import annotations

from typing import Any, Optional


class GenerationError(Exception):
    """Base exception for generation errors.

    Attributes:
        stage: Pipeline stage that failed ("zones", "flow", "assemble", ...)
        cause: Underlying exception, if any
        context: Extra fields for user-facing messages
    """

    def __init__(
        self,
        message: str,
        stage: str,
        cause: Exception | None = None,
        **context: Any,
    ) -> None:
        super().__init__(message)
        self.stage = stage
        self.cause = cause
        self.context = context


class InvalidTemplate(GenerationError):
    """Template has no pages or cannot be read."""

    def __init__(
        self,
        message: str,
        cause: Exception | None = None,
        template_id: Optional[str] = None,
    ) -> None:
        super().__init__(message, stage="template", cause=cause, template_id=template_id)
        self.template_id = template_id


class DegenerateZone(GenerationError):
    """A resolved zone has a non-positive width or height."""

    def __init__(self, page_index: int, zone_name: str) -> None:
        super().__init__(
            f"Zone '{zone_name}' on page {page_index} has no usable area",
            stage="flow",
            page_index=page_index,
            zone_name=zone_name,
        )
        self.page_index = page_index
        self.zone_name = zone_name


class PageLimitExceeded(GenerationError):
    """Body text needs more pages than the configured maximum."""

    def __init__(self, limit: int) -> None:
        super().__init__(
            f"Document would exceed the maximum of {limit} pages",
            stage="flow",
            limit=limit,
        )
        self.limit = limit


class ExternalServiceFailure(GenerationError):
    """The rights-protection service failed."""

    def __init__(
        self,
        message: str,
        cause: Exception | None = None,
        status: Optional[int] = None,
    ) -> None:
        super().__init__(message, stage="protect", cause=cause, status=status)
        self.status = status


class IngestionError(GenerationError):
    """Text extraction from a source document failed."""

    def __init__(
        self,
        message: str,
        source_format: str,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            message, stage="ingest", cause=cause, source_format=source_format
        )
        self.source_format = source_format


class UnsupportedFormat(IngestionError):
    """Source document format is not supported."""

    def __init__(self, source_format: str) -> None:
        super().__init__(
            f"Unsupported source format: {source_format!r}",
            source_format=source_format,
        )


class NoUsableTitle(Exception):
    """No line of the source text qualifies as a title.

    Raised and recovered inside ingestion; never reaches callers.
    """
