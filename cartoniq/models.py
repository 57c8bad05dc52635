"""
Value types shared by the layout calculator, path builder and serializer.

All lengths are millimeters. Coordinates are pattern-local with the origin at
the top-left of the bleed box and y growing downward, as in SVG.
"""

import math
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Tuple, Union

from .errors import InvalidDimensions, UnsupportedArchetype

# Type aliases
Point = Tuple[float, float]
CutPath = List[Point]


class Archetype(str, Enum):
    GIFT = 'gift'
    TRUFFLE = 'truffle'
    BAR = 'bar'
    SLEEVE = 'sleeve'
    TRAY_BASE = 'tray-base'
    TRAY_LID = 'tray-lid'
    SEASONAL = 'seasonal'


class FoldPolarity(str, Enum):
    MOUNTAIN = 'mountain'
    VALLEY = 'valley'


class Edge(str, Enum):
    """Side of a panel rectangle, in pattern coordinates."""
    TOP = 'top'
    RIGHT = 'right'
    BOTTOM = 'bottom'
    LEFT = 'left'


class LidStyle(str, Enum):
    TELESCOPIC = 'telescopic'
    HINGED = 'hinged'


def parse_archetype(value: Union[str, Archetype]) -> Archetype:
    """
    Resolve an archetype name.

    Args:
        value: Archetype member or its name ('gift', 'tray-base', 'TRAY_BASE', ...)

    Returns:
        Archetype member

    Raises:
        UnsupportedArchetype: If the name is not in the enumeration
    """
    if isinstance(value, Archetype):
        return value
    if not isinstance(value, str):
        raise UnsupportedArchetype(f"Unsupported archetype: {value!r}")
    key = value.strip().lower().replace('_', '-')
    try:
        return Archetype(key)
    except ValueError:
        raise UnsupportedArchetype(
            f"Unsupported archetype: {value!r} "
            f"(expected one of {', '.join(a.value for a in Archetype)})"
        ) from None


def check_positive(name: str, value: float) -> float:
    """Return value as float, raising InvalidDimensions unless finite and > 0."""
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise InvalidDimensions(f"{name} must be a number, got {value!r}") from None
    if not math.isfinite(number) or number <= 0:
        raise InvalidDimensions(f"{name} must be a positive finite number, got {value!r}")
    return number


@dataclass(frozen=True)
class BoxDimensions:
    """Box length, width and height in millimeters."""

    length: float
    width: float
    height: float

    def __post_init__(self):
        for name in ('length', 'width', 'height'):
            object.__setattr__(self, name, check_positive(name, getattr(self, name)))

    def as_tuple(self) -> Tuple[float, float, float]:
        return (self.length, self.width, self.height)

    def label(self) -> str:
        return f"{self.length:g}×{self.width:g}×{self.height:g}"


@dataclass(frozen=True)
class FoldLine:
    id: str
    start: Point
    end: Point
    polarity: FoldPolarity

    @property
    def is_vertical(self) -> bool:
        return self.start[0] == self.end[0]


@dataclass(frozen=True)
class PaletteColor:
    name: str
    hex: str
    role: str = 'accent'   # primary, accent, neutral or foil


@dataclass(frozen=True)
class LogoPlacement:
    width: float
    height: float
    x: Optional[float] = None   # center; defaults to the middle of the sheet
    y: Optional[float] = None


@dataclass(frozen=True)
class FoilArea:
    x: float
    y: float
    width: float
    height: float
    foil_color: str = 'gold'


@dataclass(frozen=True)
class VisualDesign:
    """Optional artwork overlay for full-mode drawings."""

    palette: Tuple[PaletteColor, ...] = ()
    logo: Optional[LogoPlacement] = None
    foil_areas: Tuple[FoilArea, ...] = ()

    @property
    def primary_color(self) -> Optional[PaletteColor]:
        for color in self.palette:
            if color.role == 'primary':
                return color
        return None


@dataclass(frozen=True)
class GenerationOptions:
    """
    Per-call generation options.

    None for bleed or board_thickness means the value from the constants
    table. lid_dimensions and lid_height only affect two-piece generation.
    """

    bleed: Optional[float] = None
    include_bleed_lines: bool = True
    include_glue_tabs: bool = True
    board_thickness: Optional[float] = None
    glue_tab_width: Optional[float] = None
    proportional_glue_tab: bool = False
    lid_dimensions: Optional[BoxDimensions] = None
    lid_height: Optional[float] = None
    lid_style: LidStyle = LidStyle.TELESCOPIC
    visual_design: Optional[VisualDesign] = None
    title: Optional[str] = None
