# SPDX-License-Identifier: Apache-2.0
"""Text ingestion facade."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Sequence, Union

from pdf_template_filler.config import IngestConfig
from pdf_template_filler.core.models import IngestedDocument, PageText

from .cleaning import (
    clean_raw_text,
    join_pages,
    page_lines,
    remove_boilerplate,
    split_title_body,
)
from .extractors import SourceFormat, extract_docx, extract_pdf_pages, extract_txt

logger = logging.getLogger(__name__)


class TextIngestor:
    """Turn source documents into a title and a body.

    Example:
        >>> ingestor = TextIngestor()
        >>> doc = ingestor.ingest(Path("notes.docx").read_bytes(), "docx")
        >>> doc.title
        'Quarterly notes'
    """

    def __init__(self, config: IngestConfig | None = None) -> None:
        """Initialize TextIngestor.

        Args:
            config: Stopwords, footer patterns, bands and thresholds.
        """
        self._config = config or IngestConfig()

    @property
    def config(self) -> IngestConfig:
        return self._config

    def extract_text(self, data: bytes, source_format: Union[str, SourceFormat]) -> str:
        """Extract cleaned raw text without splitting off a title.

        Raises:
            UnsupportedFormat: If the format is not supported.
            IngestionError: If the document cannot be read.
        """
        fmt = SourceFormat.parse(source_format)
        if fmt == SourceFormat.PDF:
            return self.text_from_pages(extract_pdf_pages(data))
        if fmt == SourceFormat.DOCX:
            return clean_raw_text(extract_docx(data))
        return clean_raw_text(extract_txt(data))

    def text_from_pages(self, pages: Sequence[PageText]) -> str:
        """Build text from positional page layers, removing boilerplate."""
        cfg = self._config
        lines = [page_lines(page, cfg) for page in pages]
        lines = remove_boilerplate(lines, cfg.boilerplate_ratio, cfg.boilerplate_min_pages)
        return join_pages(lines, dehyphenate=cfg.dehyphenate)

    def ingest(
        self, data: bytes, source_format: Union[str, SourceFormat]
    ) -> IngestedDocument:
        """Extract a title and body from source bytes.

        Args:
            data: Source document bytes.
            source_format: "txt", "docx" or "pdf" (suffixes and MIME types
                are accepted too).

        Returns:
            IngestedDocument.

        Raises:
            UnsupportedFormat: If the format is not supported.
            IngestionError: If the document cannot be read.
        """
        text = self.extract_text(data, source_format)
        document = split_title_body(text, self._config)
        logger.info(
            "Ingested %s source: title=%r, body=%d chars",
            SourceFormat.parse(source_format).value,
            document.title,
            len(document.body),
        )
        return document

    def ingest_pages(self, pages: Sequence[PageText]) -> IngestedDocument:
        """Extract a title and body from positional page layers."""
        return split_title_body(self.text_from_pages(pages), self._config)

    def ingest_path(self, path: Union[Path, str]) -> IngestedDocument:
        """Ingest a file, detecting the format from its suffix."""
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Source file not found: {path}")
        return self.ingest(path.read_bytes(), SourceFormat.from_path(path))


def ingest(
    data: bytes,
    source_format: Union[str, SourceFormat],
    config: IngestConfig | None = None,
) -> IngestedDocument:
    """Convenience function to ingest a source document."""
    return TextIngestor(config).ingest(data, source_format)
