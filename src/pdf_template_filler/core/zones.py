# SPDX-License-Identifier: Apache-2.0
"""Placement zone discovery.

Templates may declare where the title and body go through named form
fields. Zones are discovered by a chain of :class:`ZoneSource`
implementations tried in order; the first source that yields any zone wins.

Sources:
- :class:`FormFieldZoneSource` walks the AcroForm field tree.
- :class:`WidgetAnnotationZoneSource` scans page annotations for widgets,
  which also finds fields that were never registered in the AcroForm.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from io import BytesIO
from typing import Iterator, Optional, Protocol, Sequence, runtime_checkable

import pikepdf  # type: ignore[import-untyped]

from pdf_template_filler.errors import InvalidTemplate

from .models import Zone
from .template import Template

logger = logging.getLogger(__name__)

TITLE_KEYWORD = "title"
BODY_KEYWORD = "body"

# Guard against cyclic /Kids or /Parent chains in malformed files
MAX_FIELD_DEPTH = 32


@dataclass
class DeclaredZone:
    """A named rectangle found in the template, before clipping."""

    name: str
    page_index: int
    rect: tuple[float, float, float, float]


@runtime_checkable
class ZoneSource(Protocol):
    """Capability for discovering named zones in a template PDF."""

    @property
    def name(self) -> str:
        """Source name used in log messages."""
        ...

    def find_zones(self, pdf: pikepdf.Pdf) -> list[DeclaredZone]:
        """Return all named zones the source can see."""
        ...


def _page_index_map(pdf: pikepdf.Pdf) -> dict[tuple[int, int], int]:
    return {page.obj.objgen: i for i, page in enumerate(pdf.pages)}


def _read_rect(obj: pikepdf.Object) -> Optional[tuple[float, float, float, float]]:
    rect = obj.get("/Rect")
    if rect is None or len(rect) != 4:
        return None
    x1, y1, x2, y2 = (float(v) for v in rect)
    return (x1, y1, x2, y2)


def _field_name(obj: pikepdf.Object) -> Optional[str]:
    """Fully qualified field name, joining /T along the /Parent chain."""
    parts: list[str] = []
    current: Optional[pikepdf.Object] = obj
    depth = 0
    while current is not None and depth < MAX_FIELD_DEPTH:
        title = current.get("/T")
        if title is not None:
            parts.append(str(title))
        current = current.get("/Parent")
        depth += 1
    if not parts:
        return None
    return ".".join(reversed(parts))


class FormFieldZoneSource:
    """Zones from the document's AcroForm field tree.

    A field's zone is the rectangle of its first widget.
    """

    @property
    def name(self) -> str:
        return "acroform"

    def find_zones(self, pdf: pikepdf.Pdf) -> list[DeclaredZone]:
        acroform = pdf.Root.get("/AcroForm")
        if acroform is None:
            return []

        pages = _page_index_map(pdf)
        zones: list[DeclaredZone] = []
        for top_field in acroform.get("/Fields", []):
            zones.extend(self._walk(top_field, pages, depth=0))
        return zones

    def _walk(
        self,
        node: pikepdf.Object,
        pages: dict[tuple[int, int], int],
        depth: int,
    ) -> Iterator[DeclaredZone]:
        if depth > MAX_FIELD_DEPTH:
            return
        kids = node.get("/Kids")
        named_kids = [k for k in kids if k.get("/T") is not None] if kids else []

        if kids and named_kids:
            for kid in named_kids:
                yield from self._walk(kid, pages, depth + 1)
            return

        # Terminal field: either a merged field/widget or a field whose
        # kids are bare widgets
        widget = node if node.get("/Rect") is not None else (kids[0] if kids else None)
        if widget is None:
            return
        rect = _read_rect(widget)
        name = _field_name(node)
        if rect is None or name is None:
            return
        page_ref = widget.get("/P")
        page_index = pages.get(page_ref.objgen, 0) if page_ref is not None else 0
        yield DeclaredZone(name=name, page_index=page_index, rect=rect)


class WidgetAnnotationZoneSource:
    """Zones from widget annotations attached directly to pages."""

    @property
    def name(self) -> str:
        return "widgets"

    def find_zones(self, pdf: pikepdf.Pdf) -> list[DeclaredZone]:
        zones: list[DeclaredZone] = []
        seen: set[str] = set()
        for page_index, page in enumerate(pdf.pages):
            for annot in page.obj.get("/Annots", []):
                if annot.get("/Subtype") != pikepdf.Name.Widget:
                    continue
                name = _field_name(annot)
                rect = _read_rect(annot)
                if name is None or rect is None or name in seen:
                    continue
                seen.add(name)
                zones.append(DeclaredZone(name=name, page_index=page_index, rect=rect))
        return zones


DEFAULT_ZONE_SOURCES: tuple[ZoneSource, ...] = (
    FormFieldZoneSource(),
    WidgetAnnotationZoneSource(),
)


@dataclass
class ZoneResolution:
    """Result of zone resolution for one template.

    Attributes:
        zones: All discovered zones, clipped to their page
        title_zone: Zone used for the title, if declared
        body_zone: Zone used for the body, if declared
        source: Name of the source that produced the zones
    """

    zones: list[Zone] = field(default_factory=list)
    title_zone: Optional[Zone] = None
    body_zone: Optional[Zone] = None
    source: Optional[str] = None

    @property
    def has_title_zone(self) -> bool:
        return self.title_zone is not None

    @property
    def has_body_zone(self) -> bool:
        return self.body_zone is not None

    @property
    def uses_zones(self) -> bool:
        """Whether declared zones drive the layout."""
        return self.has_title_zone or self.has_body_zone

    def zone_rect(self, name: str) -> Zone:
        """Get a zone by role ("title"/"body") or by exact field name.

        Raises:
            KeyError: If no such zone exists.
        """
        key = name.lower()
        if key == TITLE_KEYWORD and self.title_zone is not None:
            return self.title_zone
        if key == BODY_KEYWORD and self.body_zone is not None:
            return self.body_zone
        for zone in self.zones:
            if zone.name is not None and zone.name.lower() == key:
                return zone
        raise KeyError(name)

    def with_overrides(
        self,
        title_zone: Optional[str] = None,
        body_zone: Optional[str] = None,
    ) -> ZoneResolution:
        """Pick the title and body zones by field name.

        Args:
            title_zone: Field to use for the title. None keeps the keyword
                match.
            body_zone: Field to use for the body. None keeps the keyword
                match; an empty string selects the generic margin-derived
                area. Naming the title field selects the generic area too.

        Returns:
            A new ZoneResolution sharing this one's zones.

        Raises:
            InvalidTemplate: If a named field does not exist.
        """
        title = self.title_zone
        body = self.body_zone
        if title_zone is not None:
            title = self._named(title_zone)
        if body_zone is not None:
            body = self._named(body_zone) if body_zone else None
        if body is not None and title is not None and body.name == title.name:
            body = None
        return ZoneResolution(
            zones=list(self.zones), title_zone=title, body_zone=body, source=self.source
        )

    def _named(self, name: str) -> Zone:
        for zone in self.zones:
            if zone.name == name:
                return zone
        known = ", ".join(z.name for z in self.zones if z.name) or "none"
        raise InvalidTemplate(f"Template has no field named '{name}' (fields: {known})")


class ZoneResolver:
    """Find the title and body zones of a template."""

    def __init__(self, sources: Sequence[ZoneSource] = DEFAULT_ZONE_SOURCES) -> None:
        """Initialize ZoneResolver.

        Args:
            sources: Zone sources, tried in order.
        """
        self._sources = tuple(sources)

    def resolve(self, template: Template) -> ZoneResolution:
        """Resolve title and body zones.

        Zone names are matched case-insensitively by substring against
        "title" and "body". Zones matching neither keyword are ignored.

        Args:
            template: Template to analyze.

        Returns:
            ZoneResolution (both flags False when no zones exist).

        Raises:
            InvalidTemplate: If the template has no pages or cannot be read.
        """
        if template.page_count == 0:
            raise InvalidTemplate(
                "Template has no pages", template_id=template.template_id
            )

        try:
            pdf = pikepdf.open(BytesIO(template.pdf_bytes))
        except pikepdf.PdfError as e:
            raise InvalidTemplate(
                f"Template is not a readable PDF: {e}",
                cause=e,
                template_id=template.template_id,
            ) from e

        try:
            declared, source_name = self._discover(pdf)
        finally:
            pdf.close()

        zones = [self._to_zone(template, d) for d in declared]
        resolution = ZoneResolution(zones=zones, source=source_name)

        for zone in zones:
            lowered = (zone.name or "").lower()
            if resolution.title_zone is None and TITLE_KEYWORD in lowered:
                resolution.title_zone = zone
            elif resolution.body_zone is None and BODY_KEYWORD in lowered:
                resolution.body_zone = zone

        logger.info(
            "Resolved zones for %s: %d declared (source=%s), title=%s, body=%s",
            template.template_id or "template",
            len(zones),
            source_name,
            resolution.title_zone.name if resolution.title_zone else None,
            resolution.body_zone.name if resolution.body_zone else None,
        )
        return resolution

    def _discover(self, pdf: pikepdf.Pdf) -> tuple[list[DeclaredZone], Optional[str]]:
        for source in self._sources:
            try:
                found = source.find_zones(pdf)
            except (pikepdf.PdfError, AttributeError, TypeError, ValueError) as e:
                logger.warning("Could not read zones with %s: %s", source.name, e)
                continue
            if found:
                return found, source.name
        return [], None

    @staticmethod
    def _to_zone(template: Template, declared: DeclaredZone) -> Zone:
        page_index = min(declared.page_index, template.page_count - 1)
        geometry = template.page_geometry(page_index)
        zone = Zone.from_corners(*declared.rect, name=declared.name)
        return zone.clip(geometry.width, geometry.height)
