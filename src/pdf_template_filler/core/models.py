# SPDX-License-Identifier: Apache-2.0
"""Data models for template-anchored text flow.

This module defines the intermediate data passed between zone resolution,
ingestion, pagination, and output assembly. All coordinates are PDF page
coordinates (origin at bottom-left, units in points).
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Optional

SCHEMA_VERSION = "1.0.0"


@dataclass
class Zone:
    """Rectangle on a page where text may be placed.

    Attributes:
        x: Left X coordinate
        y: Bottom Y coordinate
        width: Width of the zone
        height: Height of the zone
        name: Optional zone name (form field name for declared zones)
    """

    x: float
    y: float
    width: float
    height: float
    name: Optional[str] = None

    @classmethod
    def from_corners(
        cls,
        x1: float,
        y1: float,
        x2: float,
        y2: float,
        name: Optional[str] = None,
    ) -> Zone:
        """Create a zone from two corners given in any order."""
        return cls(
            x=min(x1, x2),
            y=min(y1, y2),
            width=abs(x2 - x1),
            height=abs(y2 - y1),
            name=name,
        )

    @property
    def top(self) -> float:
        """Top Y coordinate."""
        return self.y + self.height

    @property
    def right(self) -> float:
        """Right X coordinate."""
        return self.x + self.width

    def is_degenerate(self) -> bool:
        """Check whether the zone has a non-positive dimension."""
        return self.width <= 0 or self.height <= 0

    def clip(self, page_width: float, page_height: float) -> Zone:
        """Return this zone clipped to the page bounds."""
        x0 = min(max(self.x, 0.0), page_width)
        y0 = min(max(self.y, 0.0), page_height)
        x1 = min(max(self.right, 0.0), page_width)
        y1 = min(max(self.top, 0.0), page_height)
        return Zone(x=x0, y=y0, width=x1 - x0, height=y1 - y0, name=self.name)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        result: dict[str, Any] = {
            "x": self.x,
            "y": self.y,
            "width": self.width,
            "height": self.height,
        }
        if self.name is not None:
            result["name"] = self.name
        return result

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Zone:
        """Create from dictionary."""
        return cls(
            x=float(data["x"]),
            y=float(data["y"]),
            width=float(data["width"]),
            height=float(data["height"]),
            name=data.get("name"),
        )


@dataclass
class PageGeometry:
    """Size of a template page in points."""

    width: float
    height: float


@dataclass
class TextRun:
    """A positioned piece of text read from a page's text layer.

    Attributes:
        x: Left X coordinate of the run
        y: Baseline Y coordinate of the run
        text: Text content
    """

    x: float
    y: float
    text: str


@dataclass
class PageText:
    """Positional text layer of one source page."""

    height: float
    runs: list[TextRun] = field(default_factory=list)


@dataclass
class PlacedText:
    """A single line of text placed on an output page."""

    text: str
    x: float
    y: float
    font_size: float
    bold: bool = False
    gray: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "text": self.text,
            "x": self.x,
            "y": self.y,
            "font_size": self.font_size,
            "bold": self.bold,
            "gray": self.gray,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> PlacedText:
        """Create from dictionary."""
        return cls(
            text=data["text"],
            x=float(data["x"]),
            y=float(data["y"]),
            font_size=float(data["font_size"]),
            bold=bool(data.get("bold", False)),
            gray=float(data.get("gray", 0.0)),
        )


@dataclass
class PageRender:
    """Placement of text on one output page.

    Attributes:
        page_index: Output page index (0-indexed)
        zone: Body zone active on this page (None for stamp-only pages)
        text_runs: Lines placed on the page, in emission order
        masks: Rectangles painted white before text is placed
        is_clone: Whether the page is a clone of the template's first page
    """

    page_index: int
    zone: Optional[Zone] = None
    text_runs: list[PlacedText] = field(default_factory=list)
    masks: list[Zone] = field(default_factory=list)
    is_clone: bool = False

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "page_index": self.page_index,
            "zone": self.zone.to_dict() if self.zone is not None else None,
            "text_runs": [run.to_dict() for run in self.text_runs],
            "masks": [mask.to_dict() for mask in self.masks],
            "is_clone": self.is_clone,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> PageRender:
        """Create from dictionary."""
        return cls(
            page_index=int(data["page_index"]),
            zone=Zone.from_dict(data["zone"]) if data.get("zone") else None,
            text_runs=[PlacedText.from_dict(r) for r in data.get("text_runs", [])],
            masks=[Zone.from_dict(m) for m in data.get("masks", [])],
            is_clone=bool(data.get("is_clone", False)),
        )


@dataclass
class RenderPlan:
    """Page-by-page placement of text prior to serialization.

    Pages are ordered by output page index. Template pages that receive no
    text have no entry.

    Attributes:
        pages: Page renders ordered by page_index
        template_page_count: Number of pages in the template
        total_pages: Total pages in the output document
        zone_layout: Whether declared zones drove the layout
    """

    pages: list[PageRender]
    template_page_count: int
    total_pages: int
    zone_layout: bool = False
    version: str = SCHEMA_VERSION

    @property
    def clone_count(self) -> int:
        """Number of cloned pages appended after the template pages."""
        return self.total_pages - self.template_page_count

    def page(self, page_index: int) -> Optional[PageRender]:
        """Return the render for an output page, if any."""
        for page in self.pages:
            if page.page_index == page_index:
                return page
        return None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "version": self.version,
            "template_page_count": self.template_page_count,
            "total_pages": self.total_pages,
            "zone_layout": self.zone_layout,
            "pages": [page.to_dict() for page in self.pages],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> RenderPlan:
        """Create from dictionary."""
        return cls(
            pages=[PageRender.from_dict(p) for p in data.get("pages", [])],
            template_page_count=int(data["template_page_count"]),
            total_pages=int(data["total_pages"]),
            zone_layout=bool(data.get("zone_layout", False)),
            version=data.get("version", SCHEMA_VERSION),
        )

    def to_json(self, indent: int = 2) -> str:
        """Serialize to JSON string."""
        return json.dumps(self.to_dict(), indent=indent, ensure_ascii=False)


@dataclass
class IngestedDocument:
    """Title and body extracted from a source document.

    The body keeps single newlines as intentional line breaks and uses
    blank lines as block separators.
    """

    title: str
    body: str
    title_found: bool = True

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {"title": self.title, "body": self.body}
