# SPDX-License-Identifier: Apache-2.0
"""Configuration for layout, margin profiles, and ingestion.

All settings are plain dataclasses with defaults. A JSON file with the
sections ``layout``, ``margins`` and ``ingest`` can override any subset of
them through :func:`load_config`.
"""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass, field, fields
from enum import Enum
from pathlib import Path
from typing import Any, Optional, Union

from pdf_template_filler.errors import InvalidTemplate


@dataclass
class LayoutConfig:
    """Fonts, sizes, and spacing used by the flow engine."""

    padding: float = 5.0

    title_font: str = "Helvetica-Bold"
    title_font_size: float = 14.0
    title_line_height: float = 16.0

    body_font: str = "Helvetica"
    body_font_size: float = 11.0
    body_line_height: float = 14.0

    default_title: str = "Untitled"

    # Page stamp ("page i of N"), only drawn when the output has 2+ pages
    stamp_format: str = "page {page} of {total}"
    stamp_font_size: float = 9.0
    stamp_right_offset: float = 120.0
    stamp_gray: float = 0.35
    stamp_y_zone_layout: float = 44.0
    stamp_y_heuristic_layout: float = 72.0

    # Paint the heuristic title area white to hide demo text in the template
    blank_title_area: bool = True

    max_pages: int = 500


@dataclass
class MarginProfile:
    """Heuristic margins used where a template declares no zone.

    Attributes:
        margin_x: Left and right margin
        bottom_margin: Bottom margin of every body rectangle
        top_margin_first: Distance from page top to the title baseline area
        top_band_flow: Top margin of body rectangles on pages after the first
        title_height: Height of the heuristic title rectangle
        title_gap: Gap between the title rectangle and the first body rectangle
        title_zone_gap: Extra height merged into a declared body zone on
            pages after the first, on top of the title rectangle height
    """

    margin_x: float = 48.0
    bottom_margin: float = 96.0
    top_margin_first: float = 80.0
    top_band_flow: float = 80.0
    title_height: float = 32.0
    title_gap: float = 16.0
    title_zone_gap: float = 8.0

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> MarginProfile:
        """Create from dictionary, ignoring unknown keys."""
        known = {f.name for f in fields(cls)}
        return cls(**{k: float(v) for k, v in data.items() if k in known})


def _zone_layout_profile() -> MarginProfile:
    return MarginProfile(
        margin_x=72.0,
        bottom_margin=72.0,
        top_margin_first=140.0,
        top_band_flow=72.0,
    )


class UnknownTemplatePolicy(str, Enum):
    """What to do with a template id that has no profile entry."""

    DEFAULT = "default"
    STRICT = "strict"


@dataclass
class ProfileTable:
    """Declarative ``template id -> margin profile`` table.

    Template ids are matched case-insensitively. Templates that declare
    zones use ``zone_layout`` unless an override exists for their id.
    """

    overrides: dict[str, MarginProfile] = field(default_factory=dict)
    default: MarginProfile = field(default_factory=MarginProfile)
    zone_layout: MarginProfile = field(default_factory=_zone_layout_profile)
    unknown_template_policy: UnknownTemplatePolicy = UnknownTemplatePolicy.DEFAULT

    def resolve(self, template_id: Optional[str], zone_layout: bool) -> MarginProfile:
        """Return the margin profile for a template.

        Args:
            template_id: Template identity, or None for anonymous templates.
            zone_layout: Whether the template declares title/body zones.

        Returns:
            The matching profile.

        Raises:
            InvalidTemplate: If the policy is strict and the id is unknown.
        """
        if template_id:
            key = template_id.lower()
            for name, profile in self.overrides.items():
                if name.lower() == key:
                    return profile
            if self.unknown_template_policy == UnknownTemplatePolicy.STRICT:
                raise InvalidTemplate(
                    f"No margin profile for template '{template_id}'",
                    template_id=template_id,
                )
        return self.zone_layout if zone_layout else self.default

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ProfileTable:
        """Create from dictionary."""
        table = cls()
        if "default" in data:
            table.default = MarginProfile.from_dict(data["default"])
        if "zone_layout" in data:
            table.zone_layout = MarginProfile.from_dict(data["zone_layout"])
        table.overrides = {
            name: MarginProfile.from_dict(profile)
            for name, profile in data.get("templates", {}).items()
        }
        if "unknown_template_policy" in data:
            table.unknown_template_policy = UnknownTemplatePolicy(
                data["unknown_template_policy"]
            )
        return table


DEFAULT_STOPWORDS: tuple[str, ...] = (
    "tm",
    "text title",
    "text body",
)

DEFAULT_FOOTER_PATTERNS: tuple[str, ...] = (
    r"p(?:á|a)gina\s*\d+\s*(?:de)?\s*\d+",
    r"page\s*\d+\s*(?:of)?\s*\d+",
    r"copyright",
)


@dataclass
class IngestConfig:
    """Settings for text extraction and title/body splitting."""

    stopwords: tuple[str, ...] = DEFAULT_STOPWORDS
    footer_patterns: tuple[str, ...] = DEFAULT_FOOTER_PATTERNS

    # Bands measured from the page top/bottom; text inside is dropped
    header_band: float = 140.0
    footer_band: float = 90.0

    boilerplate_ratio: float = 0.4
    boilerplate_min_pages: int = 2

    title_min_length: int = 3
    title_max_length: int = 180
    title_truncate: int = 140
    default_title: str = "Untitled"

    dehyphenate: bool = True


@dataclass
class AppConfig:
    """Complete configuration bundle."""

    layout: LayoutConfig = field(default_factory=LayoutConfig)
    margins: ProfileTable = field(default_factory=ProfileTable)
    ingest: IngestConfig = field(default_factory=IngestConfig)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "layout": asdict(self.layout),
            "margins": {
                "default": asdict(self.margins.default),
                "zone_layout": asdict(self.margins.zone_layout),
                "templates": {
                    name: asdict(p) for name, p in self.margins.overrides.items()
                },
                "unknown_template_policy": self.margins.unknown_template_policy.value,
            },
            "ingest": {
                **asdict(self.ingest),
                "stopwords": list(self.ingest.stopwords),
                "footer_patterns": list(self.ingest.footer_patterns),
            },
        }


def _merge_dataclass(cls: type, data: dict[str, Any]) -> Any:
    known = {f.name for f in fields(cls)}
    values = {k: v for k, v in data.items() if k in known}
    for key in ("stopwords", "footer_patterns"):
        if key in values:
            values[key] = tuple(values[key])
    return cls(**values)


def config_from_dict(data: dict[str, Any]) -> AppConfig:
    """Build an AppConfig from a (possibly partial) dictionary."""
    return AppConfig(
        layout=_merge_dataclass(LayoutConfig, data.get("layout", {})),
        margins=ProfileTable.from_dict(data.get("margins", {})),
        ingest=_merge_dataclass(IngestConfig, data.get("ingest", {})),
    )


def load_config(path: Union[Path, str, None] = None) -> AppConfig:
    """Load configuration from a JSON file.

    Args:
        path: JSON file path. None returns the defaults.

    Returns:
        Loaded configuration.

    Raises:
        FileNotFoundError: If the file does not exist.
        ValueError: If the file is not valid JSON.
    """
    if path is None:
        return AppConfig()

    config_path = Path(path)
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    try:
        data = json.loads(config_path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid config file {config_path}: {e}") from e

    return config_from_dict(data)
