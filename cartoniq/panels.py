"""
Panel Layout Calculator

Turns a box archetype and its dimensions into a tree of named flat panels.
The tree is the single geometric description of a box: the path builder in
dieline.py walks it to produce the 2D cut path and fold lines, and the 3D
fold emitter in preview.py rotates the same panels about the same hinges.

Every panel except the root is attached to its parent along one shared edge
(its fold edge). That shared edge is the hinge: a crease in 2D and the
rotation axis in 3D.
"""

import logging
import math
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from .config import GeometryConstants
from .errors import InvalidDimensions, LayoutOverflow
from .models import (Archetype, BoxDimensions, Edge, FoldPolarity, GenerationOptions,
                     Point, check_positive, parse_archetype)

logger = logging.getLogger(__name__)

_OPPOSITE = {
    Edge.TOP: Edge.BOTTOM,
    Edge.BOTTOM: Edge.TOP,
    Edge.LEFT: Edge.RIGHT,
    Edge.RIGHT: Edge.LEFT,
}


class Panel:
    """A named flat rectangle of the pattern, positioned by its top-left corner."""

    def __init__(self, id: str, kind: str, x: float, y: float, width: float, height: float,
                 parent_id: Optional[str] = None, fold_edge: Optional[Edge] = None,
                 fold_polarity: Optional[FoldPolarity] = None,
                 max_fold_angle: float = 0.0, fold_id: Optional[str] = None):
        """
        Args:
            id: Panel identifier (e.g., 'front', 'left-glue-tab')
            kind: Panel role (front, side, top-flap, tuck, glue-tab, wall, base, face)
            x: X-coordinate of the top-left corner
            y: Y-coordinate of the top-left corner
            width: Horizontal extent
            height: Vertical extent
            parent_id: Panel this one is hinged to, None for the root
            fold_edge: Side of this panel shared with the parent
            fold_polarity: Crease direction of the hinge
            max_fold_angle: Fold angle in degrees when the box is fully closed
            fold_id: Identifier given to the hinge's fold line
        """
        self.id = id
        self.kind = kind
        self.x = x
        self.y = y
        self.width = width
        self.height = height
        self.parent_id = parent_id
        self.fold_edge = fold_edge
        self.fold_polarity = fold_polarity
        self.max_fold_angle = max_fold_angle
        self.fold_id = fold_id

    @property
    def area(self) -> float:
        return self.width * self.height

    def get_corners(self) -> List[Point]:
        """Return the four corners clockwise from the top-left."""
        return [
            (self.x, self.y),
            (self.x + self.width, self.y),
            (self.x + self.width, self.y + self.height),
            (self.x, self.y + self.height),
        ]

    def edge_segment(self, edge: Edge) -> Tuple[Point, Point]:
        """Endpoints of one side, ordered left-to-right or top-to-bottom."""
        x0, y0 = self.x, self.y
        x1, y1 = self.x + self.width, self.y + self.height
        if edge == Edge.TOP:
            return (x0, y0), (x1, y0)
        if edge == Edge.BOTTOM:
            return (x0, y1), (x1, y1)
        if edge == Edge.LEFT:
            return (x0, y0), (x0, y1)
        return (x1, y0), (x1, y1)

    def __repr__(self) -> str:
        return (f"Panel('{self.id}', kind={self.kind}, x={self.x}, y={self.y}, "
                f"w={self.width}, h={self.height}, parent={self.parent_id})")


@dataclass(frozen=True)
class LayoutConstants:
    """Scalar values derived once per layout and shared by 2D and 3D renderers."""

    glue_tab_width: float       # 0 when glue tabs are left off
    tab_taper: float            # inset at each end of tapered tabs and tucks
    tuck_height: float
    ear_size: float             # 0 for archetypes without ear locks
    board_thickness: float
    crease_channel_width: float


class PanelLayout:
    """
    Panel tree for one flat pattern.

    Holds the panels in insertion order (root first), the flat sheet size
    including bleed, and the scalar constants the path builder needs.
    """

    def __init__(self, archetype: Archetype, dimensions: BoxDimensions, bleed: float,
                 flat_width: float, flat_height: float, constants: LayoutConstants):
        self.archetype = archetype
        self.dimensions = dimensions
        self.bleed = bleed
        self.flat_width = flat_width
        self.flat_height = flat_height
        self.constants = constants
        self.panels: List[Panel] = []
        self._by_id: Dict[str, Panel] = {}

    def add_panel(self, panel: Panel) -> Panel:
        """Add a panel; every panel after the root must name an existing parent."""
        if panel.id in self._by_id:
            raise ValueError(f"Duplicate panel id: {panel.id}")
        if self.panels and panel.parent_id not in self._by_id:
            raise ValueError(f"Panel {panel.id} has unknown parent {panel.parent_id!r}")
        self.panels.append(panel)
        self._by_id[panel.id] = panel
        return panel

    def attach(self, id: str, kind: str, parent_id: str, side: Edge, depth: float,
               polarity: FoldPolarity, fold_id: str, max_fold_angle: float = 90.0) -> Panel:
        """
        Add a panel hinged to the given side of its parent.

        The new panel spans the full length of the parent's side and extends
        depth millimeters outward from it.
        """
        parent = self.get(parent_id)
        if side == Edge.TOP:
            x, y, w, h = parent.x, parent.y - depth, parent.width, depth
        elif side == Edge.BOTTOM:
            x, y, w, h = parent.x, parent.y + parent.height, parent.width, depth
        elif side == Edge.LEFT:
            x, y, w, h = parent.x - depth, parent.y, depth, parent.height
        else:
            x, y, w, h = parent.x + parent.width, parent.y, depth, parent.height

        return self.add_panel(Panel(
            id, kind, x, y, w, h,
            parent_id=parent_id,
            fold_edge=_OPPOSITE[side],
            fold_polarity=polarity,
            max_fold_angle=max_fold_angle,
            fold_id=fold_id,
        ))

    @property
    def root(self) -> Panel:
        return self.panels[0]

    def get(self, panel_id: str) -> Panel:
        try:
            return self._by_id[panel_id]
        except KeyError:
            raise KeyError(f"No panel named {panel_id!r}") from None

    def hinge(self, panel_id: str) -> Tuple[Point, Point]:
        """Shared edge between a panel and its parent (the fold / rotation axis)."""
        panel = self.get(panel_id)
        if panel.parent_id is None:
            raise ValueError(f"Root panel {panel_id!r} has no hinge")
        return panel.edge_segment(panel.fold_edge)

    def hinged_panels(self) -> List[Panel]:
        return [p for p in self.panels if p.parent_id is not None]

    def surface_area(self) -> float:
        """Board area covered by panels, in mm²."""
        return sum(p.area for p in self.panels)

    def get_bounding_box(self) -> Tuple[float, float, float, float]:
        """
        Calculate the bounding box of all panels.

        Returns:
            Tuple of (min_x, min_y, max_x, max_y)
        """
        if not self.panels:
            return (0, 0, 0, 0)
        xs = [c[0] for p in self.panels for c in p.get_corners()]
        ys = [c[1] for p in self.panels for c in p.get_corners()]
        return (min(xs), min(ys), max(xs), max(ys))

    def __repr__(self) -> str:
        return (f"PanelLayout({self.archetype.value}, {self.dimensions.label()}, "
                f"panels={len(self.panels)}, flat={self.flat_width:g}x{self.flat_height:g})")


def crease_channel_width(board_thickness: float, blade_width: float = 0.7) -> float:
    """
    Width of the creasing channel for a board, used for labeling only.
    """
    return board_thickness * 1.5 + blade_width


def calculate_glue_tab_width(height: float, options: GenerationOptions,
                             geometry: GeometryConstants) -> float:
    """
    Glue tab width: explicit option, the fixed default, or proportional to height.

    The proportional rule is 15% of height clamped to [glue_tab_min, glue_tab_max].
    """
    if options.glue_tab_width is not None:
        return check_positive('glue_tab_width', options.glue_tab_width)
    if options.proportional_glue_tab:
        raw = height * geometry.glue_tab_height_factor
        return min(max(raw, geometry.glue_tab_min), geometry.glue_tab_max)
    return geometry.glue_tab_width


def resolve_bleed(options: GenerationOptions, geometry: GeometryConstants) -> float:
    bleed = geometry.default_bleed if options.bleed is None else options.bleed
    try:
        bleed = float(bleed)
    except (TypeError, ValueError):
        raise InvalidDimensions(f"bleed must be a number, got {bleed!r}") from None
    if not math.isfinite(bleed) or bleed < 0:
        raise InvalidDimensions(f"bleed must be zero or a positive finite number, got {bleed!r}")
    return bleed


def lid_dimensions_for(base: BoxDimensions, options: Optional[GenerationOptions] = None,
                       geometry: GeometryConstants = GeometryConstants()) -> BoxDimensions:
    """
    Lid size for a two-piece set.

    Explicit lid dimensions win. Otherwise the footprint grows by the lid
    clearance on every side and the wall height is a fraction of the base
    height, capped.

    Example:
        >>> lid_dimensions_for(BoxDimensions(200, 160, 50))
        BoxDimensions(length=204.0, width=164.0, height=20.0)
    """
    options = options or GenerationOptions()
    if options.lid_dimensions is not None:
        return options.lid_dimensions

    clearance = 2 * geometry.lid_clearance
    if options.lid_height is not None:
        lid_height = check_positive('lid_height', options.lid_height)
    else:
        lid_height = min(base.height * geometry.lid_height_fraction, geometry.lid_height_max)
    return BoxDimensions(base.length + clearance, base.width + clearance, lid_height)


def _check_span(what: str, required: float, available: float, strict: bool = False):
    fits = required < available if strict else required <= available
    if not fits:
        raise LayoutOverflow(
            f"{what} needs {required:g} mm but only {available:g} mm is available"
        )


# ========== ARCHETYPE LAYOUTS ==========

def _gift_layout(dims: BoxDimensions, bleed: float, options: GenerationOptions,
                 geometry: GeometryConstants) -> PanelLayout:
    """
    Reverse-tuck gift box on a notched cross.

    Layout (flat view):

                      [Top tuck]
                      [Top flap]
        [Tab][Left side][Front][Right side][Tab]
                      [Bottom flap]
                      [Bottom tuck]

    There is no back panel: folded, the tree is an open five-sided box,
    and the second length of flat_width is left blank on the sheet.
    """
    l, w, h = dims.as_tuple()
    nominal_tab = calculate_glue_tab_width(h, options, geometry)
    tab = nominal_tab if options.include_glue_tabs else 0.0
    taper = nominal_tab * geometry.tab_taper_fraction
    tuck = nominal_tab * geometry.tuck_height_fraction

    _check_span("Tuck flap taper", 2 * taper, l, strict=True)
    _check_span("Tuck flap depth", tuck, h)
    if tab:
        _check_span("Glue tab taper", 2 * taper, w, strict=True)

    thickness = _board_thickness(options, geometry)
    constants = LayoutConstants(
        glue_tab_width=tab,
        tab_taper=taper,
        tuck_height=tuck,
        ear_size=0.0,
        board_thickness=thickness,
        crease_channel_width=crease_channel_width(thickness, geometry.creasing_blade_width),
    )
    layout = PanelLayout(
        Archetype.GIFT, dims, bleed,
        flat_width=2 * h + 2 * l + 2 * tab + 2 * bleed,
        flat_height=2 * tuck + 2 * h + w + 2 * bleed,
        constants=constants,
    )

    layout.add_panel(Panel('front', 'front', bleed + tab + h, bleed + tuck + h, l, w))
    layout.attach('left-side', 'side', 'front', Edge.LEFT, h, FoldPolarity.MOUNTAIN, 'fold-v2')
    layout.attach('right-side', 'side', 'front', Edge.RIGHT, h, FoldPolarity.MOUNTAIN, 'fold-v3')
    layout.attach('top', 'top-flap', 'front', Edge.TOP, h, FoldPolarity.VALLEY, 'fold-h2')
    layout.attach('bottom', 'bottom-flap', 'front', Edge.BOTTOM, h, FoldPolarity.VALLEY, 'fold-h3')
    layout.attach('top-tuck', 'tuck', 'top', Edge.TOP, tuck, FoldPolarity.MOUNTAIN, 'fold-h1')
    layout.attach('bottom-tuck', 'tuck', 'bottom', Edge.BOTTOM, tuck, FoldPolarity.MOUNTAIN, 'fold-h4')
    if tab:
        layout.attach('left-glue-tab', 'glue-tab', 'left-side', Edge.LEFT, tab,
                      FoldPolarity.VALLEY, 'fold-v1')
        layout.attach('right-glue-tab', 'glue-tab', 'right-side', Edge.RIGHT, tab,
                      FoldPolarity.VALLEY, 'fold-v4')
    return layout


def _tray_layout(archetype: Archetype, dims: BoxDimensions, bleed: float,
                 options: GenerationOptions, geometry: GeometryConstants,
                 with_ears: bool, fold_prefix: str) -> PanelLayout:
    """Base rectangle with four walls unfolded outward."""
    l, w, h = dims.as_tuple()
    ear = h * geometry.ear_size_fraction if with_ears else 0.0
    if with_ears:
        _check_span("Corner ear", ear, h)
        _check_span("Pair of corner ears", 2 * ear, min(l, w))

    thickness = _board_thickness(options, geometry)
    constants = LayoutConstants(
        glue_tab_width=0.0,
        tab_taper=0.0,
        tuck_height=0.0,
        ear_size=ear,
        board_thickness=thickness,
        crease_channel_width=crease_channel_width(thickness, geometry.creasing_blade_width),
    )
    layout = PanelLayout(
        archetype, dims, bleed,
        flat_width=l + 2 * h + 2 * bleed,
        flat_height=w + 2 * h + 2 * bleed,
        constants=constants,
    )

    layout.add_panel(Panel('base', 'base', bleed + h, bleed + h, l, w))
    for side in (Edge.TOP, Edge.RIGHT, Edge.BOTTOM, Edge.LEFT):
        layout.attach(f'{side.value}-wall', 'wall', 'base', side, h,
                      FoldPolarity.VALLEY, f'{fold_prefix}-{side.value}')
    return layout


def _sleeve_layout(dims: BoxDimensions, bleed: float, options: GenerationOptions,
                   geometry: GeometryConstants) -> PanelLayout:
    """Four faces in a strip: width, height, width, height."""
    l, w, h = dims.as_tuple()
    thickness = _board_thickness(options, geometry)
    constants = LayoutConstants(
        glue_tab_width=0.0,
        tab_taper=0.0,
        tuck_height=0.0,
        ear_size=0.0,
        board_thickness=thickness,
        crease_channel_width=crease_channel_width(thickness, geometry.creasing_blade_width),
    )
    layout = PanelLayout(
        Archetype.SLEEVE, dims, bleed,
        flat_width=2 * w + 2 * h + 2 * bleed,
        flat_height=l + 2 * bleed,
        constants=constants,
    )

    layout.add_panel(Panel('front', 'face', bleed, bleed, w, l))
    layout.attach('right-side', 'face', 'front', Edge.RIGHT, h, FoldPolarity.VALLEY, 'sleeve-fold-1')
    layout.attach('back', 'face', 'right-side', Edge.RIGHT, w, FoldPolarity.VALLEY, 'sleeve-fold-2')
    layout.attach('left-side', 'face', 'back', Edge.RIGHT, h, FoldPolarity.VALLEY, 'sleeve-fold-3')
    return layout


def _board_thickness(options: GenerationOptions, geometry: GeometryConstants) -> float:
    if options.board_thickness is None:
        return geometry.default_board_thickness
    return check_positive('board_thickness', options.board_thickness)


def build_layout(archetype, dimensions: BoxDimensions,
                 options: Optional[GenerationOptions] = None,
                 geometry: GeometryConstants = GeometryConstants()) -> PanelLayout:
    """
    Compute the panel tree for an archetype.

    Args:
        archetype: Archetype member or name
        dimensions: Box dimensions in mm (for 'tray-lid', the lid's own size)
        options: Generation options (bleed, glue tabs, board thickness)
        geometry: Constants table

    Returns:
        PanelLayout with the root panel first

    Raises:
        UnsupportedArchetype: Unknown archetype name
        InvalidDimensions: Non-positive or non-finite sizes
        LayoutOverflow: A tab, tuck or ear does not fit its parent edge
    """
    archetype = parse_archetype(archetype)
    if not isinstance(dimensions, BoxDimensions):
        dimensions = BoxDimensions(*dimensions)
    options = options or GenerationOptions()
    bleed = resolve_bleed(options, geometry)

    if archetype in (Archetype.GIFT, Archetype.SEASONAL):
        layout = _gift_layout(dimensions, bleed, options, geometry)
    elif archetype == Archetype.TRAY_BASE:
        layout = _tray_layout(archetype, dimensions, bleed, options, geometry,
                              with_ears=True, fold_prefix='tray-fold')
    elif archetype == Archetype.TRAY_LID:
        layout = _tray_layout(archetype, dimensions, bleed, options, geometry,
                              with_ears=False, fold_prefix='lid-fold')
    elif archetype == Archetype.TRUFFLE:
        layout = _tray_layout(archetype, dimensions, bleed, options, geometry,
                              with_ears=False, fold_prefix='tray-fold')
    else:
        layout = _sleeve_layout(dimensions, bleed, options, geometry)

    # Aliases keep the archetype that was asked for
    layout.archetype = archetype
    logger.debug("Built %r", layout)
    return layout
