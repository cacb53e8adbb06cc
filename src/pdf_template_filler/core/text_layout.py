# SPDX-License-Identifier: Apache-2.0
"""Text measurement and greedy word wrapping.

This module provides:
- Glyph width measurement with PDFium standard-font metrics
- Text sanitising for the standard PDF fonts (WinAnsi repertoire)
- The greedy word wrap shared by title and body layout
"""

from __future__ import annotations

import ctypes
import re
from typing import Any, Callable, Optional

import pypdfium2 as pdfium  # type: ignore[import-untyped]

# width(text, font_id, size_pt) -> width in points
MeasureFn = Callable[[str, str, float], float]

# Unicode characters not covered by the standard fonts, mapped to ASCII
UNICODE_TO_ASCII_MAP: dict[int, str] = {
    0x2013: "-",  # EN DASH
    0x2014: "--",  # EM DASH
    0x2212: "-",  # MINUS SIGN
    0x2018: "'",  # LEFT SINGLE QUOTATION
    0x2019: "'",  # RIGHT SINGLE QUOTATION
    0x201C: '"',  # LEFT DOUBLE QUOTATION
    0x201D: '"',  # RIGHT DOUBLE QUOTATION
    0x2026: "...",  # HORIZONTAL ELLIPSIS
    0x2022: "*",  # BULLET
    0x2217: "*",  # ASTERISK OPERATOR
    0x2032: "'",  # PRIME
    0x2033: '"',  # DOUBLE PRIME
    0x2264: "<=",  # LESS-THAN OR EQUAL TO
    0x2265: ">=",  # GREATER-THAN OR EQUAL TO
    0x2260: "!=",  # NOT EQUAL TO
    0x20AC: "EUR",  # EURO SIGN
    0x00A0: " ",  # NO-BREAK SPACE
}

_UNSUPPORTED_CHARS = re.compile(r"[^\t\n\r\x20-\x7E\xA1-\xFF]")


def sanitize_text(text: str) -> str:
    """Make text drawable with the standard PDF fonts.

    Known typographic characters become ASCII equivalents; everything else
    outside Latin-1 becomes "?". Line breaks are left untouched.
    """
    mapped = "".join(UNICODE_TO_ASCII_MAP.get(ord(c), c) for c in text)
    return _UNSUPPORTED_CHARS.sub("?", mapped)


def wrap_words(text: str, max_width: float, measure: Callable[[str], float]) -> list[str]:
    """Greedily wrap text into lines no wider than max_width.

    A word is appended to the current line while the measured width of the
    candidate line fits. Words are never split: a single word wider than
    max_width is emitted alone on its own line.

    Args:
        text: Text to wrap (any whitespace separates words).
        max_width: Usable line width in points.
        measure: Width of a string at the caller's font and size.

    Returns:
        Wrapped lines.
    """
    lines: list[str] = []
    current = ""

    for word in text.split():
        candidate = f"{current} {word}" if current else word
        if measure(candidate) <= max_width:
            current = candidate
        elif current:
            lines.append(current)
            current = word
        else:
            current = word

    if current:
        lines.append(current)
    return lines


class PdfiumFontMetrics:
    """Glyph width measurement for standard PDF fonts using PDFium.

    Fonts are loaded into a private scratch document and cached by name.
    Instances are not shared between generation requests.

    Example:
        >>> with PdfiumFontMetrics() as metrics:
        ...     metrics.width("Hello", "Helvetica", 11.0)
    """

    def __init__(self) -> None:
        self._pdf: Optional[pdfium.PdfDocument] = pdfium.PdfDocument.new()
        self._fonts: dict[str, Any] = {}
        self._cache: dict[tuple[str, str, float], float] = {}

    def __enter__(self) -> PdfiumFontMetrics:
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()

    def close(self) -> None:
        """Release the scratch document."""
        self._fonts.clear()
        self._cache.clear()
        if self._pdf is not None:
            self._pdf.close()
            self._pdf = None

    def _font_handle(self, font_id: str) -> Any:
        if font_id in self._fonts:
            return self._fonts[font_id]
        if self._pdf is None:
            raise RuntimeError("Font metrics are closed")
        handle = pdfium.raw.FPDFText_LoadStandardFont(
            self._pdf.raw, font_id.encode("utf-8")
        )
        if not handle:
            raise ValueError(f"Unknown standard font: {font_id}")
        self._fonts[font_id] = handle
        return handle

    def width(self, text: str, font_id: str, size: float) -> float:
        """Calculate the width of text using font metrics.

        Args:
            text: Text to measure.
            font_id: Standard font name (e.g. "Helvetica-Bold").
            size: Font size in points.

        Returns:
            Total advance width in points.
        """
        if not text:
            return 0.0

        total_width = 0.0
        for char in text:
            total_width += self._glyph_width(char, font_id, size)
        return total_width

    def _glyph_width(self, char: str, font_id: str, size: float) -> float:
        key = (char, font_id, size)
        cached = self._cache.get(key)
        if cached is not None:
            return cached

        width_out = ctypes.c_float()
        result = pdfium.raw.FPDFFont_GetGlyphWidth(
            self._font_handle(font_id),
            ord(char),
            ctypes.c_float(size),
            ctypes.byref(width_out),
        )
        glyph_width = width_out.value if result else 0.0
        self._cache[key] = glyph_width
        return glyph_width

    __call__ = width
