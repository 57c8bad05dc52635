"""
Carton Dieline Generator Module

This module builds die-lines for chocolate boxes: the closed outer cut path
of each physical piece and the typed fold lines (mountain/valley), walked
from the panel tree computed in panels.py. Supported archetypes are the
reverse-tuck gift box, tray base with corner ear locks, telescopic lid,
truffle tray and bar sleeve, plus two-piece tray/lid sets.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, replace
from typing import Any, Dict, Iterable, List, Optional, Tuple

from .config import DEFAULT_SETTINGS, Settings
from .errors import LayoutOverflow
from .inks import validate_color_for_print
from .models import (Archetype, BoxDimensions, CutPath, FoldLine, GenerationOptions, Point,
                     parse_archetype)
from .panels import PanelLayout, build_layout, lid_dimensions_for
from .utils import EPSILON, bounding_box, is_closed, point_on_polyline, point_on_segment, polygon_area

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Advisory:
    """Non-fatal finding attached to a result."""
    severity: str  # error|warn|info
    code: str
    message: str


class DieLineResult:
    """
    Die-line for one archetype and set of dimensions.

    Holds one closed cut path per physical piece, the fold lines in reading
    order (vertical folds left to right, then horizontal folds top to
    bottom), the flat sheet size including bleed and the panel tree the
    geometry was walked from.
    """

    def __init__(self, layout: PanelLayout, options: GenerationOptions):
        self.layout = layout
        self.options = options
        self.archetype: Archetype = layout.archetype
        self.dimensions: BoxDimensions = layout.dimensions
        self.bleed = layout.bleed
        self.cut_paths: List[CutPath] = []
        self.fold_lines: List[FoldLine] = []
        self.warnings: List[Advisory] = []

    def add_cut_path(self, points: Iterable[Point]):
        """Add a piece outline; the first point is repeated at the end to close it."""
        path = [(float(x), float(y)) for x, y in points]
        if path and path[0] != path[-1]:
            path.append(path[0])
        self.cut_paths.append(path)

    def add_fold_line(self, fold: FoldLine):
        self.fold_lines.append(fold)

    @property
    def cut_path(self) -> CutPath:
        return self.cut_paths[0]

    @property
    def flat_width(self) -> float:
        return self.layout.flat_width

    @property
    def flat_height(self) -> float:
        return self.layout.flat_height

    @property
    def flat_dimensions(self) -> Dict[str, float]:
        return {'width': self.flat_width, 'height': self.flat_height}

    @property
    def flat_area_mm2(self) -> float:
        return self.flat_width * self.flat_height

    @property
    def cut_area_mm2(self) -> float:
        """Area enclosed by the cut paths (the board actually used)."""
        return sum(polygon_area(path) for path in self.cut_paths)

    @property
    def crease_channel_width(self) -> float:
        return self.layout.constants.crease_channel_width

    @property
    def title(self) -> str:
        if self.options.title:
            return self.options.title
        return f"{self.archetype.value.title()} Box Die-Line ({self.dimensions.label()} mm)"

    def is_closed(self) -> bool:
        return bool(self.cut_paths) and all(is_closed(p) for p in self.cut_paths)

    def get_bounding_box(self) -> Tuple[float, float, float, float]:
        """
        Calculate the bounding box of every cut and fold coordinate.

        Returns:
            Tuple of (min_x, min_y, max_x, max_y)
        """
        points = [pt for path in self.cut_paths for pt in path]
        for fold in self.fold_lines:
            points.extend([fold.start, fold.end])
        return bounding_box(points)

    def get_dieline_data(self) -> Dict[str, Any]:
        return get_dieline_data(self)

    def __repr__(self) -> str:
        return (f"DieLineResult({self.archetype.value}, {self.dimensions.label()}, "
                f"flat={self.flat_width:g}x{self.flat_height:g}, folds={len(self.fold_lines)})")


@dataclass
class TwoPieceResult:
    base: DieLineResult
    lid: DieLineResult
    lid_dimensions: BoxDimensions

    @property
    def total_flat_area_mm2(self) -> float:
        return self.base.flat_area_mm2 + self.lid.flat_area_mm2


# ========== CUT PATHS ==========

def _gift_cut_path(layout: PanelLayout) -> CutPath:
    """
    Walk the notched cross clockwise: top tuck, right side and its glue tab,
    bottom flap and tuck, left side and its glue tab, back to the start.
    """
    front = layout.get('front')
    top_tuck = layout.get('top-tuck')
    bottom_tuck = layout.get('bottom-tuck')
    left, right = layout.get('left-side'), layout.get('right-side')
    tab = layout.constants.glue_tab_width
    taper = layout.constants.tab_taper

    cx0, cx1 = front.x, front.x + front.width
    y0 = top_tuck.y
    y1, y2 = front.y, front.y + front.height
    y3 = bottom_tuck.y
    y4 = bottom_tuck.y + bottom_tuck.height
    sx0, sx1 = left.x, right.x + right.width
    tuck_base = top_tuck.y + top_tuck.height

    path = [
        (cx0 + taper, y0),
        (cx1 - taper, y0),
        (cx1, tuck_base),
        (cx1, y1),
        (sx1, y1),
    ]
    if tab:
        path += [(sx1 + tab, y1 + taper), (sx1 + tab, y2 - taper)]
    path += [
        (sx1, y2),
        (cx1, y2),
        (cx1, y3),
        (cx1 - taper, y4),
        (cx0 + taper, y4),
        (cx0, y3),
        (cx0, y2),
        (sx0, y2),
    ]
    if tab:
        path += [(sx0 - tab, y2 - taper), (sx0 - tab, y1 + taper)]
    path += [
        (sx0, y1),
        (cx0, y1),
        (cx0, tuck_base),
        (cx0 + taper, y0),
    ]
    return path


def _tray_cut_path(layout: PanelLayout) -> CutPath:
    """
    Four walls around the base. With a non-zero ear size each corner of the
    cross is closed by a diagonal ear (two vertices instead of the notch
    corner); without ears the notch is a plain right angle.
    """
    base = layout.get('base')
    h = layout.get('top-wall').height
    ear = layout.constants.ear_size

    bx0, bx1 = base.x, base.x + base.width
    by0, by1 = base.y, base.y + base.height
    ox0, ox1 = bx0 - h, bx1 + h
    oy0, oy1 = by0 - h, by1 + h

    if ear:
        top_right = [(bx1, by0 - ear), (bx1 + ear, by0)]
        bottom_right = [(bx1 + ear, by1), (bx1, by1 + ear)]
        bottom_left = [(bx0, by1 + ear), (bx0 - ear, by1)]
        top_left = [(bx0 - ear, by0), (bx0, by0 - ear)]
    else:
        top_right = [(bx1, by0)]
        bottom_right = [(bx1, by1)]
        bottom_left = [(bx0, by1)]
        top_left = [(bx0, by0)]

    return ([(bx0, oy0), (bx1, oy0)] + top_right
            + [(ox1, by0), (ox1, by1)] + bottom_right
            + [(bx1, oy1), (bx0, oy1)] + bottom_left
            + [(ox0, by1), (ox0, by0)] + top_left
            + [(bx0, oy0)])


def _sleeve_cut_path(layout: PanelLayout) -> CutPath:
    x0, y0, x1, y1 = layout.get_bounding_box()
    return [(x0, y0), (x1, y0), (x1, y1), (x0, y1), (x0, y0)]


_CUT_PATH_BUILDERS = {
    Archetype.GIFT: _gift_cut_path,
    Archetype.SEASONAL: _gift_cut_path,
    Archetype.TRAY_BASE: _tray_cut_path,
    Archetype.TRAY_LID: _tray_cut_path,
    Archetype.TRUFFLE: _tray_cut_path,
    Archetype.BAR: _sleeve_cut_path,
    Archetype.SLEEVE: _sleeve_cut_path,
}


# ========== FOLD LINES ==========

def fold_lines_from_layout(layout: PanelLayout) -> List[FoldLine]:
    """
    One fold line per hinge of the panel tree, vertical folds first (by x),
    then horizontal folds (by y).
    """
    folds = []
    for panel in layout.hinged_panels():
        start, end = layout.hinge(panel.id)
        folds.append(FoldLine(panel.fold_id, start, end, panel.fold_polarity))

    def reading_order(fold: FoldLine):
        if fold.is_vertical:
            return (0, fold.start[0], fold.start[1])
        return (1, fold.start[1], fold.start[0])

    return sorted(folds, key=reading_order)


# ========== VALIDATION ==========

def validate_result(result: DieLineResult, tol: Optional[float] = None):
    """
    Check closure, bounds and fold anchoring of a generated die-line.

    The default tolerance scales with the flat sheet size.

    Raises:
        LayoutOverflow: If a piece is open, a coordinate leaves the flat
            sheet, or a fold endpoint floats in free space
    """
    if tol is None:
        tol = EPSILON * max(1.0, result.flat_width, result.flat_height)

    if not result.is_closed():
        raise LayoutOverflow(f"{result.archetype.value}: cut path is not closed")

    min_x, min_y, max_x, max_y = result.get_bounding_box()
    if min_x < -tol or min_y < -tol or max_x > result.flat_width + tol or max_y > result.flat_height + tol:
        raise LayoutOverflow(
            f"{result.archetype.value}: geometry ({min_x:g}, {min_y:g})-({max_x:g}, {max_y:g}) "
            f"exceeds the flat sheet {result.flat_width:g}x{result.flat_height:g}"
        )

    for fold in result.fold_lines:
        for point in (fold.start, fold.end):
            on_cut = any(point_on_polyline(point, path, tol) for path in result.cut_paths)
            on_fold = any(point_on_segment(point, other.start, other.end, tol)
                          for other in result.fold_lines if other is not fold)
            if not (on_cut or on_fold):
                raise LayoutOverflow(f"Fold {fold.id} endpoint {point} is not anchored")


# ========== GENERATION ==========

def _design_advisories(options: GenerationOptions, settings: Settings) -> List[Advisory]:
    design = options.visual_design
    if design is None:
        return []

    profile = settings.print_profile
    advisories = []
    for color in design.palette:
        check = validate_color_for_print(color.hex, profile.max_ink_coverage,
                                         profile.warn_ink_coverage, profile.min_ink_coverage)
        advisories.extend(Advisory('error', 'ink-coverage', msg) for msg in check.errors)
        advisories.extend(Advisory('warn', 'ink-coverage', msg) for msg in check.warnings)
    return advisories


def generate_dieline(archetype, dimensions, options: Optional[GenerationOptions] = None,
                     settings: Settings = DEFAULT_SETTINGS) -> DieLineResult:
    """
    Generate the die-line for one archetype.

    Args:
        archetype: Archetype member or name ('gift', 'tray-base', 'sleeve', ...)
        dimensions: BoxDimensions or (length, width, height) in mm
        options: Generation options
        settings: Constants table, styles and print profile

    Returns:
        DieLineResult with cut path(s), fold lines and flat size

    Raises:
        UnsupportedArchetype, InvalidDimensions, LayoutOverflow,
        InvalidColorFormat (malformed palette color)

    Example:
        >>> result = generate_dieline('gift', (120, 120, 40))
        >>> result.flat_dimensions
        {'width': 356.0, 'height': 227.0}
        >>> len(result.fold_lines)
        8
    """
    archetype = parse_archetype(archetype)
    options = options or GenerationOptions()
    layout = build_layout(archetype, dimensions, options, settings.geometry)

    result = DieLineResult(layout, options)
    result.add_cut_path(_CUT_PATH_BUILDERS[archetype](layout))
    for fold in fold_lines_from_layout(layout):
        result.add_fold_line(fold)
    validate_result(result)

    result.warnings.extend(_design_advisories(options, settings))
    for advisory in result.warnings:
        logger.warning("%s [%s]: %s", result.archetype.value, advisory.code, advisory.message)

    logger.debug("Generated %r", result)
    return result


def generate_two_piece(dimensions, options: Optional[GenerationOptions] = None,
                       settings: Settings = DEFAULT_SETTINGS) -> TwoPieceResult:
    """
    Generate a tray base and its telescopic lid.

    The lid is sized from the base (clearance on each side, wall height a
    capped fraction of the base height) unless options carry explicit lid
    dimensions or a lid height. The two pieces share no geometry.
    """
    options = options or GenerationOptions()
    if not isinstance(dimensions, BoxDimensions):
        dimensions = BoxDimensions(*dimensions)

    lid_dims = lid_dimensions_for(dimensions, options, settings.geometry)
    base_options, lid_options = options, options
    if options.title:
        base_options = replace(options, title=f"{options.title} base")
        lid_options = replace(options, title=f"{options.title} lid")
    base = generate_dieline(Archetype.TRAY_BASE, dimensions, base_options, settings)
    lid = generate_dieline(Archetype.TRAY_LID, lid_dims, lid_options, settings)

    result = TwoPieceResult(base=base, lid=lid, lid_dimensions=lid_dims)
    logger.info("Two-piece set %s + lid %s (%s), total flat area %.0f mm²",
                dimensions.label(), lid_dims.label(), options.lid_style.value,
                result.total_flat_area_mm2)
    return result


def generate_many(requests: Iterable[Tuple[Any, Any]],
                  options: Optional[GenerationOptions] = None,
                  settings: Settings = DEFAULT_SETTINGS,
                  max_workers: Optional[int] = None) -> List[DieLineResult]:
    """
    Generate several die-lines concurrently.

    Args:
        requests: Iterable of (archetype, dimensions) pairs
        options: Options shared by every request
        max_workers: Thread pool size (executor default when None)

    Returns:
        Results in the same order as the requests. The first failing
        request's error is raised.
    """
    requests = list(requests)
    with ThreadPoolExecutor(max_workers=max_workers) as executor:
        futures = [executor.submit(generate_dieline, archetype, dims, options, settings)
                   for archetype, dims in requests]
        return [future.result() for future in futures]


def get_dieline_data(result: DieLineResult) -> Dict[str, Any]:
    """
    Convert a die-line to a dictionary structure for serialization.

    Args:
        result: DieLineResult object

    Returns:
        Dictionary containing all die-line data (JSON compatible)
    """
    layout = result.layout
    return {
        'archetype': result.archetype.value,
        'dimensions': {
            'length': result.dimensions.length,
            'width': result.dimensions.width,
            'height': result.dimensions.height,
        },
        'bleed': result.bleed,
        'flat_dimensions': result.flat_dimensions,
        'cut_paths': [[list(pt) for pt in path] for path in result.cut_paths],
        'fold_lines': [
            {
                'id': fold.id,
                'start': {'x': fold.start[0], 'y': fold.start[1]},
                'end': {'x': fold.end[0], 'y': fold.end[1]},
                'polarity': fold.polarity.value,
            }
            for fold in result.fold_lines
        ],
        'panels': [
            {
                'id': panel.id,
                'kind': panel.kind,
                'x': panel.x,
                'y': panel.y,
                'width': panel.width,
                'height': panel.height,
                'parent': panel.parent_id,
                'fold_edge': panel.fold_edge.value if panel.fold_edge else None,
                'max_fold_angle': panel.max_fold_angle,
            }
            for panel in layout.panels
        ],
        'constants': {
            'glue_tab_width': layout.constants.glue_tab_width,
            'tab_taper': layout.constants.tab_taper,
            'tuck_height': layout.constants.tuck_height,
            'ear_size': layout.constants.ear_size,
            'board_thickness': layout.constants.board_thickness,
            'crease_channel_width': layout.constants.crease_channel_width,
        },
        'cut_area_mm2': result.cut_area_mm2,
        'panel_area_mm2': layout.surface_area(),
        'bounding_box': result.get_bounding_box(),
        'warnings': [
            {'severity': a.severity, 'code': a.code, 'message': a.message}
            for a in result.warnings
        ],
    }


# ========== USAGE EXAMPLE ==========
if __name__ == '__main__':
    logging.basicConfig(level=logging.INFO)

    print("=" * 60)
    print("CHOCOLATE BOX DIE-LINE GENERATOR")
    print("=" * 60)

    for name, dims in [('gift', (120, 120, 40)), ('tray-base', (80, 80, 35)), ('bar', (160, 80, 10))]:
        dieline = generate_dieline(name, dims)
        print(f"{name:10s} -> flat {dieline.flat_width:.1f} x {dieline.flat_height:.1f} mm, "
              f"{len(dieline.fold_lines)} folds, {len(dieline.cut_path) - 1} cut vertices")
        for fold in dieline.fold_lines:
            print(f"    {fold.id:16s} {fold.polarity.value:8s} {fold.start} -> {fold.end}")
