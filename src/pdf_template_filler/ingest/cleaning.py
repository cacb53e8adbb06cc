# SPDX-License-Identifier: Apache-2.0
"""Text cleaning for ingested documents.

Pure functions: row grouping of positional text, header/footer filtering,
cross-page boilerplate removal, and the title/body split. All behavior is
driven by an :class:`IngestConfig` passed in by the caller.
"""

from __future__ import annotations

import logging
import math
import re
from typing import Iterable, Sequence

from pdf_template_filler.config import IngestConfig
from pdf_template_filler.core.models import IngestedDocument, PageText, TextRun
from pdf_template_filler.errors import NoUsableTitle

logger = logging.getLogger(__name__)

_WHITESPACE = re.compile(r"\s+")
_TRAILING_SPACE = re.compile(r"[ \t]+\n")
_BLANK_RUNS = re.compile(r"\n{3,}")
# Hyphen at line end followed by a lowercase continuation
_HYPHEN_BREAK = re.compile(r"-\n(?=[a-záéíóúñü])")


def compile_patterns(patterns: Iterable[str]) -> list[re.Pattern[str]]:
    """Compile footer patterns case-insensitively."""
    return [re.compile(p, re.IGNORECASE) for p in patterns]


def is_stopword_line(line: str, stopwords: Iterable[str]) -> bool:
    """Check whether a line equals a stopword, ignoring case and outer whitespace."""
    key = line.strip().lower()
    return any(key == w.strip().lower() for w in stopwords)


def is_footer_line(line: str, patterns: Sequence[re.Pattern[str]]) -> bool:
    """Check whether a line looks like a page number or copyright notice."""
    return any(p.search(line) for p in patterns)


def group_rows(
    runs: Sequence[TextRun],
    page_height: float,
    header_band: float,
    footer_band: float,
) -> list[str]:
    """Group positional runs into text rows, top to bottom.

    Runs whose rounded baseline matches form one row; runs inside a row
    are joined left to right. Runs inside the header band (measured from
    the page top) or the footer band (from the page bottom) are dropped.

    Args:
        runs: Positioned runs of one page.
        page_height: Page height in points.
        header_band: Height of the header band.
        footer_band: Height of the footer band.

    Returns:
        Row strings ordered from top to bottom.
    """
    header_cut = page_height - header_band
    rows: dict[int, list[tuple[float, str]]] = {}

    for run in runs:
        text = _WHITESPACE.sub(" ", run.text).strip()
        if not text:
            continue
        if run.y >= header_cut or run.y <= footer_band:
            continue
        rows.setdefault(round(run.y), []).append((run.x, text))

    lines: list[str] = []
    for key in sorted(rows, reverse=True):
        chunks = sorted(rows[key], key=lambda c: c[0])
        line = " ".join(text for _, text in chunks).strip()
        if line:
            lines.append(line)
    return lines


def page_lines(page: PageText, config: IngestConfig) -> list[str]:
    """Rows of one page with footer-like and stopword lines removed."""
    patterns = compile_patterns(config.footer_patterns)
    return [
        line
        for line in group_rows(page.runs, page.height, config.header_band, config.footer_band)
        if not is_footer_line(line, patterns)
        and not is_stopword_line(line, config.stopwords)
    ]


def boilerplate_threshold(page_count: int, ratio: float, min_pages: int = 2) -> int:
    """Number of pages a line must appear on to count as boilerplate."""
    return max(min_pages, math.ceil(page_count * ratio))


def remove_boilerplate(
    pages: Sequence[Sequence[str]],
    ratio: float = 0.4,
    min_pages: int = 2,
) -> list[list[str]]:
    """Drop lines that repeat across many pages.

    Each page counts a line (lowercased, trimmed) at most once. A line found
    on at least ``max(min_pages, ceil(ratio * page_count))`` pages is
    template furniture and is removed from every page.

    Args:
        pages: Lines of each page.
        ratio: Fraction of pages that marks a line as boilerplate.
        min_pages: Lower bound on the page count threshold.

    Returns:
        Lines of each page with boilerplate removed.
    """
    frequency: dict[str, int] = {}
    for lines in pages:
        for key in {line.strip().lower() for line in lines}:
            frequency[key] = frequency.get(key, 0) + 1

    threshold = boilerplate_threshold(len(pages), ratio, min_pages)
    repeated = {key for key, count in frequency.items() if count >= threshold}
    if repeated:
        logger.debug(
            "Removing %d boilerplate lines (threshold %d of %d pages)",
            len(repeated),
            threshold,
            len(pages),
        )

    return [
        [line for line in lines if line.strip().lower() not in repeated]
        for lines in pages
    ]


def collapse_blank_runs(text: str) -> str:
    """Collapse runs of blank lines to a single blank line."""
    return _BLANK_RUNS.sub("\n\n", text)


def join_pages(pages: Sequence[Sequence[str]], dehyphenate: bool = True) -> str:
    """Join page lines into one text, pages separated by a blank line."""
    parts: list[str] = []
    for lines in pages:
        parts.extend(lines)
        parts.append("")
    text = "\n".join(parts)
    if dehyphenate:
        text = _HYPHEN_BREAK.sub("", text)
    return collapse_blank_runs(text).strip()


def clean_raw_text(raw: str) -> str:
    """Normalize line endings, trailing spaces and blank-line runs."""
    text = raw.replace("\r\n", "\n").replace("\r", "\n").replace("\x00", "")
    text = _TRAILING_SPACE.sub("\n", text)
    return collapse_blank_runs(text).strip()


def find_title(lines: Sequence[str], config: IngestConfig) -> int:
    """Index of the first line that qualifies as a title.

    A title line is non-empty, has a length within the configured bounds,
    is not a stopword and does not look like a footer.

    Raises:
        NoUsableTitle: If no line qualifies.
    """
    patterns = compile_patterns(config.footer_patterns)
    for index, line in enumerate(lines):
        candidate = line.strip()
        if not candidate:
            continue
        if not config.title_min_length <= len(candidate) <= config.title_max_length:
            continue
        if is_stopword_line(candidate, config.stopwords):
            continue
        if is_footer_line(candidate, patterns):
            continue
        return index
    raise NoUsableTitle("No line qualifies as a title")


def truncate_title(title: str, limit: int) -> str:
    """Truncate a title to limit characters, adding an ellipsis."""
    if len(title) > limit:
        return title[:limit] + "…"
    return title


def split_title_body(raw: str, config: IngestConfig | None = None) -> IngestedDocument:
    """Split cleaned text into a title and a body.

    The first qualifying line becomes the title. Lines after it, in their
    original order and with their line breaks, become the body. If no line
    qualifies, the default title is used and the whole text is the body.

    Args:
        raw: Extracted text.
        config: Ingestion settings.

    Returns:
        IngestedDocument with title and body.
    """
    config = config or IngestConfig()
    cleaned = clean_raw_text(raw)
    lines = cleaned.split("\n")

    try:
        index = find_title(lines, config)
    except NoUsableTitle:
        logger.warning("No usable title found; using %r", config.default_title)
        return IngestedDocument(
            title=config.default_title, body=cleaned, title_found=False
        )

    title = truncate_title(lines[index].strip(), config.title_truncate)
    body = collapse_blank_runs("\n".join(lines[index + 1 :])).strip()
    return IngestedDocument(title=title, body=body)
