# SPDX-License-Identifier: Apache-2.0
"""Source document ingestion package."""

from .cleaning import group_rows, remove_boilerplate, split_title_body
from .extractors import SourceFormat
from .ingestor import TextIngestor, ingest

__all__ = [
    "SourceFormat",
    "TextIngestor",
    "group_rows",
    "ingest",
    "remove_boilerplate",
    "split_title_body",
]
