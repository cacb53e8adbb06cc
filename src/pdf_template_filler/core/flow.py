# SPDX-License-Identifier: Apache-2.0
"""Template-anchored text flow and pagination.

The flow engine turns a title and a body into a :class:`RenderPlan`:

1. The title is wrapped into the title rectangle on page 0, capped at the
   number of lines the rectangle holds.
2. The body is split into blocks (blank-line separated) and logical lines
   (single-newline separated). Each logical line is wrapped on its own.
3. A cursor walks down the active body zone. When the next line would fall
   below the zone, a clone of the template's first page is appended and the
   cursor restarts at the top of that page's zone.

No drawing happens here; the plan is serialized by the output assembler.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field, replace
from typing import Optional, Sequence

from pdf_template_filler.config import LayoutConfig, MarginProfile, ProfileTable
from pdf_template_filler.errors import DegenerateZone, InvalidTemplate, PageLimitExceeded

from .models import PageGeometry, PageRender, PlacedText, RenderPlan, Zone
from .text_layout import MeasureFn, sanitize_text, wrap_words
from .zones import ZoneResolution

logger = logging.getLogger(__name__)

_LINE_ENDINGS = re.compile(r"\r\n|\r|\u2028|\u2029")
_BLOCK_SEPARATOR = re.compile(r"\n{2,}")


def normalize_body(text: str) -> str:
    """Convert every line-ending variant to a single newline."""
    return _LINE_ENDINGS.sub("\n", text)


def split_blocks(body: str) -> list[list[str]]:
    """Split body text into blocks of logical lines.

    Blocks are separated by runs of two or more newlines. Blocks holding
    only whitespace are dropped. Trailing whitespace of a block is removed;
    whitespace-only lines inside a block are kept (they become spacers).
    """
    blocks: list[list[str]] = []
    for block in _BLOCK_SEPARATOR.split(normalize_body(body)):
        block = block.rstrip()
        if block.strip():
            blocks.append(block.split("\n"))
    return blocks


@dataclass(frozen=True)
class FlowCursor:
    """Current write position during pagination.

    Attributes:
        page_index: Output page being written
        zone: Active body zone on that page
        y: Baseline of the next line
    """

    page_index: int
    zone: Zone
    y: float


@dataclass
class PageFrame:
    """Rectangles used on page 0 and on cloned pages."""

    title: Zone
    body_first: Zone
    body_flow: Zone
    zone_layout: bool
    profile: MarginProfile


@dataclass
class FlowResult:
    """Render plan plus counters describing the flow."""

    plan: RenderPlan
    title_lines: int = 0
    body_lines: int = 0
    spacer_lines: int = 0
    stats: dict[str, int] = field(default_factory=dict)


class FlowEngine:
    """Lay out title and body text across template pages.

    Example:
        >>> engine = FlowEngine(metrics.width)
        >>> result = engine.layout("Title", "Body text", resolution, pages)
        >>> result.plan.total_pages
        1
    """

    def __init__(
        self,
        measure: MeasureFn,
        config: LayoutConfig | None = None,
        profiles: ProfileTable | None = None,
    ) -> None:
        """Initialize FlowEngine.

        Args:
            measure: ``width(text, font_id, size)`` in points.
            config: Fonts, sizes and limits.
            profiles: Margin profiles for templates without zones.
        """
        self._measure = measure
        self._config = config or LayoutConfig()
        self._profiles = profiles or ProfileTable()

    def page_frame(
        self,
        resolution: ZoneResolution,
        page: PageGeometry,
        template_id: Optional[str] = None,
    ) -> PageFrame:
        """Compute title and body rectangles for a template's first page.

        Declared zones are used as-is. Missing zones are derived from the
        template's margin profile. When a body zone is declared, pages after
        the first use it enlarged upward by the title height, since the
        title is not repeated.

        Derived rectangles are clipped to the page.

        Raises:
            DegenerateZone: If the derived first body rectangle cannot hold
                a single line.
        """
        cfg = self._config
        zone_layout = resolution.uses_zones
        profile = self._profiles.resolve(template_id, zone_layout)
        mx = profile.margin_x
        usable_width = page.width - mx * 2

        title = resolution.title_zone or Zone(
            x=mx,
            y=page.height - profile.top_margin_first,
            width=usable_width,
            height=profile.title_height,
            name="title",
        ).clip(page.width, page.height)

        if resolution.body_zone is not None:
            body_first = resolution.body_zone
            body_flow = Zone(
                x=body_first.x,
                y=body_first.y,
                width=body_first.width,
                height=body_first.height + title.height + profile.title_zone_gap,
                name=body_first.name,
            ).clip(page.width, page.height)
        else:
            body_first = Zone(
                x=mx,
                y=profile.bottom_margin,
                width=usable_width,
                height=max(
                    title.y - profile.title_gap - profile.bottom_margin,
                    cfg.body_line_height * 4,
                ),
                name="body",
            ).clip(page.width, page.height)
            if body_first.height < self.line_clearance():
                raise DegenerateZone(0, "body")
            body_flow = Zone(
                x=mx,
                y=profile.bottom_margin,
                width=usable_width,
                height=page.height - profile.bottom_margin - profile.top_band_flow,
                name="body",
            ).clip(page.width, page.height)

        return PageFrame(
            title=title,
            body_first=body_first,
            body_flow=body_flow,
            zone_layout=zone_layout,
            profile=profile,
        )

    def layout(
        self,
        title: str,
        body: str,
        resolution: ZoneResolution,
        pages: Sequence[PageGeometry],
        template_id: Optional[str] = None,
    ) -> FlowResult:
        """Compute the render plan for a title and body.

        Args:
            title: Document title (placed on page 0 only).
            body: Body text; single newlines are line breaks and blank
                lines separate blocks.
            resolution: Zones found in the template.
            pages: Geometry of every template page.
            template_id: Template identity for margin profile lookup.

        Returns:
            FlowResult with the plan and line counters.

        Raises:
            InvalidTemplate: If no page geometry is given.
            DegenerateZone: If a rectangle has no usable area.
            PageLimitExceeded: If the body needs more than max_pages pages.
        """
        if not pages:
            raise InvalidTemplate("Template has no pages", template_id=template_id)

        frame = self.page_frame(resolution, pages[0], template_id)
        run = _FlowRun(self, frame, template_page_count=len(pages))

        run.place_title(title)
        run.place_body(body)

        plan = run.finish(pages)
        logger.info(
            "Laid out %d title lines and %d body lines on %d pages (%d cloned)",
            run.title_lines,
            run.body_lines,
            plan.total_pages,
            plan.clone_count,
        )
        return FlowResult(
            plan=plan,
            title_lines=run.title_lines,
            body_lines=run.body_lines,
            spacer_lines=run.spacer_lines,
            stats={
                "pages": plan.total_pages,
                "cloned_pages": plan.clone_count,
                "title_lines": run.title_lines,
                "body_lines": run.body_lines,
                "spacer_lines": run.spacer_lines,
            },
        )

    def line_clearance(self) -> float:
        """Smallest body zone height that holds one line."""
        return (self._config.padding + self._config.body_font_size) * 2

    def wrap(self, text: str, max_width: float, font_id: str, size: float) -> list[str]:
        """Wrap text with this engine's measurement function."""
        return wrap_words(text, max_width, lambda s: self._measure(s, font_id, size))


class _FlowRun:
    """Mutable state of a single layout call."""

    def __init__(self, engine: FlowEngine, frame: PageFrame, template_page_count: int) -> None:
        self._engine = engine
        self._cfg = engine._config
        self._frame = frame
        self._template_page_count = template_page_count
        self._renders: dict[int, PageRender] = {}
        self._clone_count = 0

        self.title_lines = 0
        self.body_lines = 0
        self.spacer_lines = 0

        first = self._checked(frame.body_first, 0, "body")
        self._cursor = self._cursor_at_top(0, first)
        page0 = self._render_for(0, first)
        if not frame.zone_layout and self._cfg.blank_title_area:
            page0.masks.append(frame.title)

    # -- cursor -----------------------------------------------------------

    def _checked(self, zone: Zone, page_index: int, role: str) -> Zone:
        if zone.is_degenerate():
            raise DegenerateZone(page_index, zone.name or role)
        return zone

    def _cursor_at_top(self, page_index: int, zone: Zone) -> FlowCursor:
        y = zone.y + zone.height - self._cfg.padding - self._cfg.body_font_size
        return FlowCursor(page_index=page_index, zone=zone, y=y)

    def _too_low(self, cursor: FlowCursor) -> bool:
        return cursor.y < cursor.zone.y + self._cfg.padding + self._cfg.body_font_size

    def _advance(self, cursor: FlowCursor) -> FlowCursor:
        return replace(cursor, y=cursor.y - self._cfg.body_line_height)

    def _ensure_room(self) -> None:
        """Start a cloned page if the next line would fall below the zone."""
        if self._too_low(self._cursor):
            self._cursor = self._new_page()

    def _new_page(self) -> FlowCursor:
        total = self._template_page_count + self._clone_count + 1
        if total > self._cfg.max_pages:
            raise PageLimitExceeded(self._cfg.max_pages)

        page_index = self._template_page_count + self._clone_count
        self._clone_count += 1
        zone = self._checked(self._frame.body_flow, page_index, "body")
        render = self._render_for(page_index, zone)
        render.is_clone = True
        logger.debug("Body overflow: cloned template page as page %d", page_index)
        return self._cursor_at_top(page_index, zone)

    def _render_for(self, page_index: int, zone: Optional[Zone]) -> PageRender:
        render = self._renders.get(page_index)
        if render is None:
            render = PageRender(page_index=page_index, zone=zone)
            self._renders[page_index] = render
        return render

    # -- emission ---------------------------------------------------------

    def _emit_body_line(self, text: str) -> None:
        self._ensure_room()
        cursor = self._cursor
        self._renders[cursor.page_index].text_runs.append(
            PlacedText(
                text=text,
                x=cursor.zone.x + self._cfg.padding,
                y=cursor.y,
                font_size=self._cfg.body_font_size,
            )
        )
        self.body_lines += 1
        self._cursor = self._advance(cursor)

    def _emit_spacer(self) -> None:
        self._ensure_room()
        self.spacer_lines += 1
        self._cursor = self._advance(self._cursor)

    def place_title(self, title: str) -> None:
        cfg = self._cfg
        zone = self._checked(self._frame.title, 0, "title")
        text = sanitize_text(title).strip() or cfg.default_title
        max_lines = max(1, int(zone.height // cfg.title_line_height))
        lines = self._engine.wrap(
            text, zone.width - cfg.padding * 2, cfg.title_font, cfg.title_font_size
        )[:max_lines]

        page0 = self._renders[0]
        y = zone.y + zone.height - cfg.padding - cfg.title_font_size
        for line in lines:
            page0.text_runs.append(
                PlacedText(
                    text=line,
                    x=zone.x + cfg.padding,
                    y=y,
                    font_size=cfg.title_font_size,
                    bold=True,
                )
            )
            y -= cfg.title_line_height
        self.title_lines = len(lines)

    def place_body(self, body: str) -> None:
        cfg = self._cfg
        blocks = split_blocks(body)

        for block_index, logical_lines in enumerate(blocks):
            for logical in map(sanitize_text, logical_lines):
                if not logical.strip():
                    self._emit_spacer()
                    continue

                max_width = self._cursor.zone.width - cfg.padding * 2
                for line in self._engine.wrap(
                    logical, max_width, cfg.body_font, cfg.body_font_size
                ):
                    self._emit_body_line(line)

            if block_index < len(blocks) - 1:
                self._emit_spacer()

    # -- stamps -----------------------------------------------------------

    def finish(self, pages: Sequence[PageGeometry]) -> RenderPlan:
        cfg = self._cfg
        total = self._template_page_count + self._clone_count

        if total > 1:
            stamp_y = (
                cfg.stamp_y_zone_layout
                if self._frame.zone_layout
                else cfg.stamp_y_heuristic_layout
            )
            for page_index in range(total):
                # Clones share the first page's geometry
                geometry = pages[page_index] if page_index < len(pages) else pages[0]
                render = self._render_for(page_index, None)
                render.text_runs.append(
                    PlacedText(
                        text=cfg.stamp_format.format(page=page_index + 1, total=total),
                        x=geometry.width - cfg.stamp_right_offset,
                        y=stamp_y,
                        font_size=cfg.stamp_font_size,
                        gray=cfg.stamp_gray,
                    )
                )

        return RenderPlan(
            pages=[self._renders[i] for i in sorted(self._renders)],
            template_page_count=self._template_page_count,
            total_pages=total,
            zone_layout=self._frame.zone_layout,
        )
