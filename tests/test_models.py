# SPDX-License-Identifier: Apache-2.0
"""Tests for data models."""

from __future__ import annotations

import json

from pdf_template_filler.core.models import (
    IngestedDocument,
    PageRender,
    PlacedText,
    RenderPlan,
    Zone,
)


class TestZone:
    """Tests for Zone dataclass."""

    def test_from_corners_normalizes_order(self) -> None:
        """Corners given in any order should produce the same zone."""
        zone = Zone.from_corners(540, 720, 72, 680, name="Text Title")
        assert zone.x == 72
        assert zone.y == 680
        assert zone.width == 468
        assert zone.height == 40
        assert zone.name == "Text Title"

    def test_top_and_right(self) -> None:
        zone = Zone(x=10, y=20, width=100, height=50)
        assert zone.right == 110
        assert zone.top == 70

    def test_is_degenerate(self) -> None:
        """Zero or negative dimensions are degenerate."""
        assert Zone(0, 0, 0, 10).is_degenerate()
        assert Zone(0, 0, 10, -1).is_degenerate()
        assert not Zone(0, 0, 10, 10).is_degenerate()

    def test_clip_to_page(self) -> None:
        """Zones extending past the page are cut at the page edge."""
        zone = Zone(x=500, y=700, width=200, height=200, name="body")
        clipped = zone.clip(612, 792)
        assert clipped.x == 500
        assert clipped.y == 700
        assert clipped.width == 112
        assert clipped.height == 92
        assert clipped.name == "body"

    def test_clip_outside_page_is_degenerate(self) -> None:
        zone = Zone(x=700, y=10, width=50, height=50)
        assert zone.clip(612, 792).is_degenerate()

    def test_dict_round_trip(self) -> None:
        zone = Zone(x=1.5, y=2.5, width=3, height=4, name="z")
        assert Zone.from_dict(zone.to_dict()) == zone

    def test_to_dict_without_name(self) -> None:
        assert "name" not in Zone(0, 0, 1, 1).to_dict()


class TestRenderPlan:
    """Tests for RenderPlan dataclass."""

    def _plan(self) -> RenderPlan:
        return RenderPlan(
            pages=[
                PageRender(
                    page_index=0,
                    zone=Zone(48, 96, 516, 600, name="body"),
                    text_runs=[PlacedText("Title", 53, 725, 14, bold=True)],
                    masks=[Zone(48, 712, 516, 32)],
                ),
                PageRender(
                    page_index=1,
                    zone=Zone(48, 96, 516, 616, name="body"),
                    text_runs=[PlacedText("page 2 of 2", 492, 72, 9, gray=0.35)],
                    is_clone=True,
                ),
            ],
            template_page_count=1,
            total_pages=2,
        )

    def test_clone_count(self) -> None:
        assert self._plan().clone_count == 1

    def test_page_lookup(self) -> None:
        plan = self._plan()
        page = plan.page(1)
        assert page is not None
        assert page.is_clone is True
        assert plan.page(5) is None

    def test_to_json(self) -> None:
        """JSON output should contain every page and run."""
        data = json.loads(self._plan().to_json())
        assert data["total_pages"] == 2
        assert data["pages"][0]["text_runs"][0]["bold"] is True
        assert data["pages"][0]["masks"][0]["width"] == 516
        assert data["pages"][1]["is_clone"] is True

    def test_from_dict(self) -> None:
        plan = self._plan()
        restored = RenderPlan.from_dict(plan.to_dict())
        assert restored == plan

    def test_page_without_zone(self) -> None:
        """Stamp-only pages serialize a null zone."""
        render = PageRender(page_index=2)
        data = render.to_dict()
        assert data["zone"] is None
        assert PageRender.from_dict(data).zone is None


class TestIngestedDocument:
    """Tests for IngestedDocument dataclass."""

    def test_defaults(self) -> None:
        doc = IngestedDocument(title="T", body="B")
        assert doc.title_found is True
        assert doc.to_dict() == {"title": "T", "body": "B"}
