"""
CartonIQ: parametric die-line generation for chocolate packaging.

Computes flat cut paths and typed fold lines for folding cartons and
two-piece tray/lid boxes, serializes them to layered SVG, previews them
flat or folded, and estimates production cost.
"""

from .config import DEFAULT_SETTINGS, Settings, load_settings
from .costing import calculate_cost, quote_scenarios
from .dieline import (DieLineResult, TwoPieceResult, generate_dieline, generate_many,
                      generate_two_piece, get_dieline_data)
from .drawing import DrawingMode, build_drawing
from .errors import (CartonIQError, InvalidColorFormat, InvalidCostInput, InvalidDimensions,
                     LayoutOverflow, UnsupportedArchetype)
from .inks import hex_to_cmyk, ink_coverage, is_print_safe, validate_color_for_print
from .models import Archetype, BoxDimensions, FoldLine, FoldPolarity, GenerationOptions
from .panels import build_layout
from .svg_export import export_to_svg, export_two_piece, to_svg

__version__ = '0.1.0'
