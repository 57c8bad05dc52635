"""
Configuration for the die-line engine.

All archetype geometry constants live in GeometryConstants so the panel
layout (used for the 3D preview) and the path builder (used for the 2D
drawing) always read the same numbers. Drawing styles and the print profile
are separate immutable objects handed to the serializer.

Values can be overridden from a JSON file:

    {
        "geometry": {"glue_tab_width": 12.0},
        "style": {"safety_margin": 4.0},
        "print_profile": {"max_ink_coverage": 300.0}
    }
"""

import dataclasses
import json
import logging
import os
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple

from .errors import CartonIQError

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = 'CARTONIQ_CONFIG'


@dataclass(frozen=True)
class GeometryConstants:
    """Archetype constants, all lengths in millimeters."""

    glue_tab_width: float = 15.0
    tab_taper_fraction: float = 0.3        # of glue tab width, removed at each end
    tuck_height_fraction: float = 0.7      # of glue tab width
    glue_tab_height_factor: float = 0.15   # proportional tab mode: factor of height
    glue_tab_min: float = 7.0
    glue_tab_max: float = 15.0
    ear_size_fraction: float = 0.7         # of tray wall height
    lid_clearance: float = 2.0             # per side
    lid_height_fraction: float = 0.4       # of base height
    lid_height_max: float = 25.0
    default_bleed: float = 3.0
    default_board_thickness: float = 1.5
    creasing_blade_width: float = 0.7
    waste_factor: float = 1.2


@dataclass(frozen=True)
class DrawingStyle:
    """Stroke styles and mark geometry used by the SVG serializer."""

    cut_stroke: str = '#000000'
    cut_width: float = 0.5
    mountain_stroke: str = '#FF0000'
    mountain_dash: str = '8,3'
    valley_stroke: str = '#CC0000'
    valley_dash: str = '3,3'
    fold_width: float = 0.3
    bleed_stroke: str = '#FF6B6B'
    bleed_width: float = 0.4
    bleed_dash: str = '4,2'
    trim_stroke: str = '#000000'
    trim_width: float = 0.25
    trim_dash: str = '8,4'
    safety_stroke: str = '#4CAF50'
    safety_width: float = 0.3
    safety_dash: str = '6,3'
    mark_stroke: str = '#000000'
    mark_width: float = 0.25
    text_color: str = '#666666'
    font_family: str = 'Arial, sans-serif'
    font_size: float = 3.0
    safety_margin: float = 3.0
    page_padding: float = 15.0
    footer_height: float = 16.0
    corner_marker_size: float = 5.0
    crop_mark_length: float = 10.0
    crop_mark_gap: float = 2.0
    registration_radius: float = 2.5
    registration_offset: float = 4.0
    color_bar_width: float = 8.0
    color_bar_height: float = 5.0
    color_bar_gap: float = 2.0
    color_bar_start: float = 20.0
    color_bar_offset: float = 10.0     # below the bleed box
    swatch_size: float = 15.0
    foil_stroke: str = '#D4A945'
    background_opacity: float = 0.15

    def die_only(self) -> 'DrawingStyle':
        """Variant used for die-cutting tool drawings: valley folds in blue."""
        return dataclasses.replace(self, valley_stroke='#0000FF')


@dataclass(frozen=True)
class PrintProfile:
    """Declared output condition written into drawing metadata."""

    name: str = 'FOGRA39'
    icc_profile: str = 'ISOcoated_v2_300_eci.icc'
    rendering_intent: str = 'Perceptual'
    iso_standard: str = 'ISO 12647-2:2013'
    pdf_standard: str = 'PDF/X-1a:2001'
    max_ink_coverage: float = 330.0
    warn_ink_coverage: float = 300.0
    min_ink_coverage: float = 10.0


@dataclass(frozen=True)
class Settings:
    geometry: GeometryConstants = field(default_factory=GeometryConstants)
    style: DrawingStyle = field(default_factory=DrawingStyle)
    print_profile: PrintProfile = field(default_factory=PrintProfile)


DEFAULT_SETTINGS = Settings()

_SECTIONS: Tuple[str, ...] = ('geometry', 'style', 'print_profile')


def _apply_overrides(current: Any, overrides: Dict[str, Any], section: str) -> Any:
    known = {f.name for f in dataclasses.fields(current)}
    unknown = sorted(set(overrides) - known)
    if unknown:
        raise CartonIQError(f"Unknown {section} setting(s): {', '.join(unknown)}")
    return dataclasses.replace(current, **overrides)


def settings_from_dict(data: Dict[str, Any], base: Settings = DEFAULT_SETTINGS) -> Settings:
    """
    Build Settings from a plain dictionary of per-section overrides.

    Args:
        data: Mapping with optional 'geometry', 'style' and 'print_profile' keys
        base: Settings the overrides are applied to

    Returns:
        New Settings instance

    Raises:
        CartonIQError: On unknown sections or unknown keys
    """
    unknown_sections = sorted(set(data) - set(_SECTIONS))
    if unknown_sections:
        raise CartonIQError(f"Unknown settings section(s): {', '.join(unknown_sections)}")

    values = {}
    for name in _SECTIONS:
        current = getattr(base, name)
        overrides = data.get(name) or {}
        values[name] = _apply_overrides(current, overrides, name) if overrides else current
    return Settings(**values)


def load_settings(path: Optional[str] = None) -> Settings:
    """
    Load settings from a JSON file.

    When path is None the CARTONIQ_CONFIG environment variable is consulted;
    without either, the defaults are returned.
    """
    path = path or os.environ.get(CONFIG_ENV_VAR)
    if not path:
        return DEFAULT_SETTINGS

    with open(path, 'r', encoding='utf-8') as f:
        try:
            data = json.load(f)
        except json.JSONDecodeError as exc:
            raise CartonIQError(f"Invalid settings file {path}: {exc}") from exc

    if not isinstance(data, dict):
        raise CartonIQError(f"Settings file {path} must contain a JSON object")

    logger.debug("Loaded settings overrides from %s", path)
    return settings_from_dict(data)
