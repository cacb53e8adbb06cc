# SPDX-License-Identifier: Apache-2.0
"""Tests for zone resolution."""

from __future__ import annotations

from io import BytesIO

import pikepdf
import pytest

from pdf_template_filler.core.models import Zone
from pdf_template_filler.core.template import Template
from pdf_template_filler.core.zones import (
    FormFieldZoneSource,
    WidgetAnnotationZoneSource,
    ZoneResolution,
    ZoneResolver,
)
from pdf_template_filler.errors import InvalidTemplate

from conftest import blank_pdf, form_pdf


class TestZoneResolver:
    """Tests for ZoneResolver.resolve."""

    def test_title_and_body_fields(self, zone_template: Template) -> None:
        """Fields named "Text Title" and "Text Body" become the zones."""
        resolution = ZoneResolver().resolve(zone_template)

        assert resolution.has_title_zone is True
        assert resolution.has_body_zone is True
        assert resolution.uses_zones is True
        assert resolution.source == "acroform"
        assert resolution.title_zone == Zone(72, 680, 468, 40, name="Text Title")
        assert resolution.body_zone == Zone(72, 100, 468, 560, name="Text Body")

    def test_no_zones(self, blank_template: Template) -> None:
        resolution = ZoneResolver().resolve(blank_template)
        assert resolution.has_title_zone is False
        assert resolution.has_body_zone is False
        assert resolution.uses_zones is False
        assert resolution.source is None
        assert resolution.zones == []

    def test_case_insensitive_substring(self) -> None:
        template = Template(
            form_pdf([("main_BODY_area", [50, 50, 300, 300]), ("DocTitle", [50, 400, 300, 450])])
        )
        resolution = ZoneResolver().resolve(template)
        assert resolution.title_zone is not None
        assert resolution.title_zone.name == "DocTitle"
        assert resolution.body_zone is not None
        assert resolution.body_zone.name == "main_BODY_area"

    def test_unrelated_names_ignored(self) -> None:
        """Zones matching neither keyword are not used for layout."""
        template = Template(form_pdf([("signature", [50, 50, 200, 100])]))
        resolution = ZoneResolver().resolve(template)
        assert len(resolution.zones) == 1
        assert resolution.uses_zones is False

    def test_only_body_zone(self) -> None:
        template = Template(form_pdf([("Text Body", [72, 100, 540, 600])]))
        resolution = ZoneResolver().resolve(template)
        assert resolution.has_title_zone is False
        assert resolution.has_body_zone is True
        assert resolution.uses_zones is True

    def test_reversed_corners_normalized(self) -> None:
        template = Template(form_pdf([("Text Body", [540, 660, 72, 100])]))
        resolution = ZoneResolver().resolve(template)
        assert resolution.body_zone == Zone(72, 100, 468, 560, name="Text Body")

    def test_zone_clipped_to_page(self) -> None:
        template = Template(form_pdf([("Text Body", [500, 700, 800, 900])]))
        body = ZoneResolver().resolve(template).body_zone
        assert body is not None
        assert body.right == 612
        assert body.top == 792

    def test_widget_fallback(self) -> None:
        """Widgets missing from the AcroForm are still found on the page."""
        template = Template(
            form_pdf([("Text Title", [72, 680, 540, 720])], register_fields=False)
        )
        resolution = ZoneResolver().resolve(template)
        assert resolution.source == "widgets"
        assert resolution.has_title_zone is True

    def test_custom_sources(self, zone_template: Template) -> None:
        resolution = ZoneResolver(sources=[WidgetAnnotationZoneSource()]).resolve(zone_template)
        assert resolution.source == "widgets"
        assert resolution.has_body_zone is True

    def test_failing_source_skipped(self, zone_template: Template) -> None:
        """A source that cannot read the file is skipped with a warning."""

        class BrokenSource:
            name = "broken"

            def find_zones(self, pdf: pikepdf.Pdf) -> list:
                raise ValueError("malformed")

        resolver = ZoneResolver(sources=[BrokenSource(), FormFieldZoneSource()])
        resolution = resolver.resolve(zone_template)
        assert resolution.source == "acroform"


class TestFormFieldZoneSource:
    """Tests for the AcroForm walker."""

    def test_hierarchical_names(self) -> None:
        """Nested fields are named by their dotted path."""
        pdf = pikepdf.new()
        pdf.add_blank_page(page_size=(612, 792))
        page = pdf.pages[0]
        parent = pdf.make_indirect(pikepdf.Dictionary(T=pikepdf.String("Text")))
        kid = pdf.make_indirect(
            pikepdf.Dictionary(
                Type=pikepdf.Name.Annot,
                Subtype=pikepdf.Name.Widget,
                FT=pikepdf.Name.Tx,
                T=pikepdf.String("Body"),
                Parent=parent,
                Rect=pikepdf.Array([72, 100, 540, 600]),
                P=page.obj,
            )
        )
        parent.Kids = pikepdf.Array([kid])
        page.obj.Annots = pikepdf.Array([kid])
        pdf.Root.AcroForm = pikepdf.Dictionary(Fields=pikepdf.Array([parent]))

        zones = FormFieldZoneSource().find_zones(pdf)
        assert [z.name for z in zones] == ["Text.Body"]
        assert zones[0].page_index == 0
        assert zones[0].rect == (72.0, 100.0, 540.0, 600.0)

    def test_no_acroform(self) -> None:
        pdf = pikepdf.open(BytesIO(blank_pdf()))
        assert FormFieldZoneSource().find_zones(pdf) == []


class TestZoneResolution:
    """Tests for ZoneResolution lookups and overrides."""

    def test_zone_rect_by_role_and_name(self, zone_template: Template) -> None:
        resolution = ZoneResolver().resolve(zone_template)
        assert resolution.zone_rect("title") == resolution.title_zone
        assert resolution.zone_rect("BODY") == resolution.body_zone
        assert resolution.zone_rect("text title") == resolution.title_zone

    def test_zone_rect_missing(self) -> None:
        with pytest.raises(KeyError):
            ZoneResolution().zone_rect("title")

    def test_overrides_swap_fields(self, zone_template: Template) -> None:
        resolution = ZoneResolver().resolve(zone_template)
        swapped = resolution.with_overrides(title_zone="Text Body", body_zone="Text Title")
        assert swapped.title_zone is not None
        assert swapped.title_zone.name == "Text Body"
        assert swapped.body_zone is not None
        assert swapped.body_zone.name == "Text Title"
        # The original resolution is left alone
        assert resolution.title_zone.name == "Text Title"

    def test_empty_body_override_selects_generic_area(self, zone_template: Template) -> None:
        resolution = ZoneResolver().resolve(zone_template)
        generic = resolution.with_overrides(body_zone="")
        assert generic.body_zone is None
        assert generic.title_zone == resolution.title_zone
        assert generic.uses_zones is True

    def test_body_matching_title_falls_back_to_generic(self, zone_template: Template) -> None:
        resolution = ZoneResolver().resolve(zone_template)
        overridden = resolution.with_overrides(title_zone="Text Body")
        assert overridden.title_zone.name == "Text Body"
        assert overridden.body_zone is None

    def test_unknown_override(self, zone_template: Template) -> None:
        resolution = ZoneResolver().resolve(zone_template)
        with pytest.raises(InvalidTemplate, match="Nope"):
            resolution.with_overrides(title_zone="Nope")


class TestInvalidTemplate:
    """Tests for unreadable templates."""

    def test_garbage_bytes(self) -> None:
        with pytest.raises(InvalidTemplate):
            Template(b"this is not a pdf")

    def test_from_path_uses_stem(self, tmp_path) -> None:
        path = tmp_path / "plantilla3.pdf"
        path.write_bytes(blank_pdf())
        template = Template.from_path(path)
        assert template.template_id == "plantilla3"
        assert template.page_count == 1
        assert template.page_geometry(0).width == 612
