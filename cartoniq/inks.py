"""
Color and ink model.

Converts screen colors (hex / RGB) to process CMYK percentages and checks
total ink coverage against the press limit. Everything here is a pure
function; nothing raises for high coverage, it is reported instead.
"""

import logging
import math
import re
from dataclasses import dataclass, field
from typing import List, Tuple

from .errors import InvalidColorFormat

logger = logging.getLogger(__name__)

_HEX_RE = re.compile(r'^#?([0-9a-fA-F]{6})$')

DEFAULT_MAX_COVERAGE = 330.0
WARN_COVERAGE = 300.0
LOW_COVERAGE = 10.0


@dataclass(frozen=True)
class RGB:
    r: int
    g: int
    b: int


@dataclass(frozen=True)
class CMYK:
    """Ink percentages, 0-100 each."""
    c: float
    m: float
    y: float
    k: float

    def as_tuple(self) -> Tuple[float, float, float, float]:
        return (self.c, self.m, self.y, self.k)


RICH_BLACK = CMYK(60.0, 40.0, 40.0, 100.0)
PURE_BLACK = CMYK(0.0, 0.0, 0.0, 100.0)


@dataclass
class ColorCheck:
    is_valid: bool
    cmyk: CMYK
    warnings: List[str] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)


def _percent(fraction: float) -> float:
    # Half-up rounding to one decimal place
    return math.floor(fraction * 1000 + 0.5) / 10


def hex_to_rgb(hex_color: str) -> RGB:
    """
    Parse a 6-digit hex color, with or without a leading '#'.

    Raises:
        InvalidColorFormat: If the string is not exactly six hex digits

    Example:
        >>> hex_to_rgb('#8B7355')
        RGB(r=139, g=115, b=85)
    """
    if not isinstance(hex_color, str):
        raise InvalidColorFormat(f"Color must be a hex string, got {hex_color!r}")
    match = _HEX_RE.match(hex_color.strip())
    if not match:
        raise InvalidColorFormat(f"Invalid hex color: {hex_color!r}")
    digits = match.group(1)
    return RGB(int(digits[0:2], 16), int(digits[2:4], 16), int(digits[4:6], 16))


def rgb_to_cmyk(rgb: RGB) -> CMYK:
    """
    Standard subtractive RGB to CMYK conversion.

    Pure black returns (0, 0, 0, 100) instead of dividing by zero.
    """
    for channel in (rgb.r, rgb.g, rgb.b):
        if not 0 <= channel <= 255:
            raise InvalidColorFormat(f"RGB channel out of range 0-255: {channel}")

    r, g, b = rgb.r / 255, rgb.g / 255, rgb.b / 255
    k = 1 - max(r, g, b)
    if k == 1:
        return PURE_BLACK

    c = (1 - r - k) / (1 - k)
    m = (1 - g - k) / (1 - k)
    y = (1 - b - k) / (1 - k)
    return CMYK(_percent(c), _percent(m), _percent(y), _percent(k))


def hex_to_cmyk(hex_color: str) -> CMYK:
    return rgb_to_cmyk(hex_to_rgb(hex_color))


def cmyk_to_hex(cmyk: CMYK) -> str:
    """Approximate screen color of a CMYK value (used for on-screen swatches)."""
    k = cmyk.k / 100
    channels = [round(255 * (1 - v / 100) * (1 - k)) for v in (cmyk.c, cmyk.m, cmyk.y)]
    return '#' + ''.join(f'{v:02X}' for v in channels)


def ink_coverage(cmyk: CMYK) -> float:
    """Total area coverage: the sum of the four channel percentages."""
    return cmyk.c + cmyk.m + cmyk.y + cmyk.k


def is_print_safe(cmyk: CMYK, max_coverage: float = DEFAULT_MAX_COVERAGE) -> bool:
    return ink_coverage(cmyk) <= max_coverage


def format_cmyk(cmyk: CMYK) -> str:
    """Format as 'cmyk(C%, M%, Y%, K%)'."""
    return f"cmyk({cmyk.c:g}%, {cmyk.m:g}%, {cmyk.y:g}%, {cmyk.k:g}%)"


def cmyk_comment(hex_color: str, name: str = '',
                 max_coverage: float = DEFAULT_MAX_COVERAGE) -> str:
    """Human-readable one-line color note used inside drawing comments."""
    cmyk = hex_to_cmyk(hex_color)
    coverage = ink_coverage(cmyk)
    label = f"Color ({name})" if name else "Color"
    text = (f"{label}: {hex_color.upper()} = CMYK "
            f"{cmyk.c:g}/{cmyk.m:g}/{cmyk.y:g}/{cmyk.k:g} | Coverage: {coverage:g}%")
    if coverage > max_coverage:
        text += " ⚠ HIGH INK COVERAGE"
    return text


def validate_color_for_print(hex_color: str,
                             max_coverage: float = DEFAULT_MAX_COVERAGE,
                             warn_coverage: float = WARN_COVERAGE,
                             low_coverage: float = LOW_COVERAGE) -> ColorCheck:
    """
    Check a color against the press ink limits.

    Coverage above max_coverage is reported as an error, above warn_coverage
    as a warning and below low_coverage as a hint that the color may print
    too light. Only a malformed hex string raises.

    Returns:
        ColorCheck with the converted CMYK value
    """
    cmyk = hex_to_cmyk(hex_color)
    coverage = ink_coverage(cmyk)
    check = ColorCheck(is_valid=True, cmyk=cmyk)

    if coverage > max_coverage:
        check.errors.append(
            f"Ink coverage {coverage:g}% exceeds the {max_coverage:g}% limit "
            f"for {hex_color.upper()}; use {format_cmyk(RICH_BLACK)} for deep blacks"
        )
        check.is_valid = False
    elif coverage > warn_coverage:
        check.warnings.append(
            f"Ink coverage {coverage:g}% for {hex_color.upper()} is close to the "
            f"{max_coverage:g}% limit"
        )

    if coverage < low_coverage:
        check.warnings.append(
            f"Very light color {hex_color.upper()} ({coverage:g}% coverage) may not print visibly"
        )

    if not check.is_valid:
        logger.warning("Color %s fails print check: %s", hex_color, '; '.join(check.errors))
    return check
