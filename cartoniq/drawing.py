"""
Drawing primitives and layer construction.

build_drawing() turns a DieLineResult into a Drawing: a tree of typed
primitives (paths, lines, rects, circles, text, comments) grouped into named
layers. No markup is produced here; svg_export.render_svg() serializes the
tree, so geometry can be tested without parsing SVG.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple, Union

from .config import DEFAULT_SETTINGS, DrawingStyle, Settings
from .dieline import DieLineResult
from .inks import CMYK, cmyk_comment, cmyk_to_hex, format_cmyk, hex_to_cmyk, ink_coverage
from .models import Point, VisualDesign

logger = logging.getLogger(__name__)


class DrawingMode(str, Enum):
    FULL = 'full'
    DIE_ONLY = 'die-only'


@dataclass(frozen=True)
class PathShape:
    points: Tuple[Point, ...]
    closed: bool = True
    css_class: Optional[str] = None
    id: Optional[str] = None


@dataclass(frozen=True)
class LineShape:
    x1: float
    y1: float
    x2: float
    y2: float
    css_class: Optional[str] = None
    id: Optional[str] = None
    attrs: Tuple[Tuple[str, str], ...] = ()


@dataclass(frozen=True)
class RectShape:
    x: float
    y: float
    width: float
    height: float
    css_class: Optional[str] = None
    id: Optional[str] = None
    attrs: Tuple[Tuple[str, str], ...] = ()


@dataclass(frozen=True)
class CircleShape:
    cx: float
    cy: float
    r: float
    css_class: Optional[str] = None


@dataclass(frozen=True)
class TextShape:
    x: float
    y: float
    text: str
    css_class: Optional[str] = None
    attrs: Tuple[Tuple[str, str], ...] = ()


@dataclass(frozen=True)
class CommentNode:
    text: str


@dataclass
class Group:
    id: str
    children: List['Node'] = field(default_factory=list)
    attrs: Tuple[Tuple[str, str], ...] = ()

    def add(self, *nodes: 'Node') -> 'Group':
        self.children.extend(nodes)
        return self

    def find(self, group_id: str) -> Optional['Group']:
        """Depth-first search for a nested group by id (including self)."""
        if self.id == group_id:
            return self
        for child in self.children:
            if isinstance(child, Group):
                found = child.find(group_id)
                if found is not None:
                    return found
        return None


Node = Union[PathShape, LineShape, RectShape, CircleShape, TextShape, CommentNode, Group]


@dataclass
class Drawing:
    """A complete page: size, header comments, metadata and layers."""

    width: float                     # bleed box, mm
    height: float
    view_box: Tuple[float, float, float, float]
    mode: DrawingMode
    style: DrawingStyle
    comments: List[str] = field(default_factory=list)
    metadata: Dict[str, Any] = field(default_factory=dict)
    layers: List[Group] = field(default_factory=list)

    def layer(self, layer_id: str) -> Optional[Group]:
        for group in self.layers:
            found = group.find(layer_id)
            if found is not None:
                return found
        return None

    @property
    def layer_ids(self) -> List[str]:
        return [group.id for group in self.layers]


@dataclass(frozen=True)
class Zones:
    """Bleed, trim and safety rectangles as (x, y, width, height)."""
    bleed: Tuple[float, float, float, float]
    trim: Tuple[float, float, float, float]
    safety: Tuple[float, float, float, float]


def compute_zones(flat_width: float, flat_height: float, bleed: float,
                  safety_margin: float) -> Zones:
    """
    Nested production zones: the bleed box is the whole sheet, the trim box
    is inset by the bleed, the safety zone by a further safety margin.
    """
    trim_w = max(flat_width - 2 * bleed, 0.0)
    trim_h = max(flat_height - 2 * bleed, 0.0)
    inset = bleed + safety_margin
    return Zones(
        bleed=(0.0, 0.0, flat_width, flat_height),
        trim=(bleed, bleed, trim_w, trim_h),
        safety=(inset, inset, max(flat_width - 2 * inset, 0.0), max(flat_height - 2 * inset, 0.0)),
    )


# CMYK control strip: solid then 50% tints
COLOR_BAR_PATCHES: Tuple[Tuple[str, CMYK], ...] = (
    ('C100', CMYK(100, 0, 0, 0)),
    ('M100', CMYK(0, 100, 0, 0)),
    ('Y100', CMYK(0, 0, 100, 0)),
    ('K100', CMYK(0, 0, 0, 100)),
    ('C50', CMYK(50, 0, 0, 0)),
    ('M50', CMYK(0, 50, 0, 0)),
    ('Y50', CMYK(0, 0, 50, 0)),
    ('K50', CMYK(0, 0, 0, 50)),
)


# ========== LAYERS ==========

def _cut_layer(result: DieLineResult) -> Group:
    group = Group('cut-layer')
    for index, path in enumerate(result.cut_paths):
        path_id = 'cut-path' if index == 0 else f'cut-path-{index + 1}'
        group.add(PathShape(tuple(path), closed=True, css_class='cut-line', id=path_id))
    return group


def _fold_layer(result: DieLineResult) -> Group:
    group = Group('fold-layer')
    for fold in result.fold_lines:
        group.add(LineShape(
            fold.start[0], fold.start[1], fold.end[0], fold.end[1],
            css_class=f'fold-line-{fold.polarity.value}',
            id=fold.id,
            attrs=(('data-fold-type', fold.polarity.value),),
        ))
    return group


def _corner_markers(rect: Tuple[float, float, float, float], size: float) -> List[LineShape]:
    x, y, w, h = rect
    lines = []
    for cx, cy, dx, dy in ((x, y, 1, 1), (x + w, y, -1, 1), (x + w, y + h, -1, -1), (x, y + h, 1, -1)):
        lines.append(LineShape(cx, cy, cx + dx * size, cy, css_class='corner-marker'))
        lines.append(LineShape(cx, cy, cx, cy + dy * size, css_class='corner-marker'))
    return lines


def _production_zones(result: DieLineResult, zones: Zones, style: DrawingStyle) -> Group:
    group = Group('production-zones')
    bleed = result.bleed

    if result.options.include_bleed_lines and bleed > 0:
        group.add(RectShape(*zones.bleed, css_class='bleed-line', id='bleed-box'))
        group.add(TextShape(zones.bleed[0] + 1, zones.bleed[1] + 2.5,
                            f'BLEED {bleed:g}mm', css_class='zone-label'))

    group.add(RectShape(*zones.trim, css_class='trim-line', id='trim-box'))
    group.add(RectShape(*zones.safety, css_class='safety-zone', id='safety-zone'))
    group.add(TextShape(zones.safety[0] + 1, zones.safety[1] + 3,
                        f'SAFE AREA {style.safety_margin:g}mm', css_class='zone-label'))
    group.add(*_corner_markers(zones.safety, style.corner_marker_size))
    return group


def _crop_marks(zones: Zones, style: DrawingStyle) -> Group:
    """Two short lines per trim corner, starting a small gap outside it."""
    group = Group('crop-marks')
    x, y, w, h = zones.trim
    gap, length = style.crop_mark_gap, style.crop_mark_length
    for cx, cy, dx, dy in ((x, y, -1, -1), (x + w, y, 1, -1), (x + w, y + h, 1, 1), (x, y + h, -1, 1)):
        group.add(LineShape(cx + dx * gap, cy, cx + dx * (gap + length), cy, css_class='mark-line'))
        group.add(LineShape(cx, cy + dy * gap, cx, cy + dy * (gap + length), css_class='mark-line'))
    return group


def _registration_marks(zones: Zones, style: DrawingStyle) -> Group:
    """Circle-and-crosshair targets centered on the four edge midpoints, outside the bleed."""
    group = Group('registration-marks')
    width, height = zones.bleed[2], zones.bleed[3]
    off = style.registration_offset
    r = style.registration_radius
    arm = r + 2
    centers = (
        (width / 2, -off),
        (width + off, height / 2),
        (width / 2, height + off),
        (-off, height / 2),
    )
    for cx, cy in centers:
        group.add(
            CircleShape(cx, cy, r, css_class='mark-line'),
            LineShape(cx - arm, cy, cx + arm, cy, css_class='mark-line'),
            LineShape(cx, cy - arm, cx, cy + arm, css_class='mark-line'),
        )
    return group


def _color_bars(zones: Zones, style: DrawingStyle) -> Group:
    group = Group('color-bars')
    x = zones.trim[0] + style.color_bar_start
    y = zones.bleed[3] + style.color_bar_offset
    for index, (label, cmyk) in enumerate(COLOR_BAR_PATCHES):
        if index == 4:
            x += style.color_bar_gap * 2.5   # separate the tints from the solids
        group.add(
            RectShape(x, y, style.color_bar_width, style.color_bar_height,
                      css_class='color-patch', id=f'bar-{label.lower()}',
                      attrs=(('fill', cmyk_to_hex(cmyk)), ('data-cmyk', format_cmyk(cmyk)))),
            TextShape(x + style.color_bar_width / 2, y + style.color_bar_height + 2.5,
                      label, css_class='bar-label'),
        )
        x += style.color_bar_width + style.color_bar_gap
    return group


def _visual_design_layers(design: VisualDesign, zones: Zones, style: DrawingStyle,
                          max_coverage: float) -> List[Node]:
    nodes: List[Node] = []
    tx, ty, tw, th = zones.trim

    primary = design.primary_color
    if primary is not None:
        cmyk = hex_to_cmyk(primary.hex)
        nodes.append(CommentNode(cmyk_comment(primary.hex, f'{primary.name} - Primary', max_coverage)))
        nodes.append(CommentNode(f'CMYK: {format_cmyk(cmyk)} | Ink Coverage: {ink_coverage(cmyk):g}%'))
        nodes.append(Group('background-layer',
                           attrs=(('opacity', f'{style.background_opacity:g}'),)).add(
            RectShape(tx, ty, tw, th, id='background',
                      attrs=(('fill', primary.hex.upper()), ('data-cmyk', format_cmyk(cmyk))))
        ))

    if design.logo is not None:
        logo = design.logo
        lx = logo.x if logo.x is not None else zones.bleed[2] / 2
        ly = logo.y if logo.y is not None else zones.bleed[3] / 2
        nodes.append(Group('logo-layer').add(
            RectShape(lx - logo.width / 2, ly - logo.height / 2, logo.width, logo.height,
                      css_class='logo-box', id='logo-placeholder'),
            TextShape(lx, ly, 'LOGO', css_class='logo-label'),
        ))

    if design.foil_areas:
        foil_group = Group('foil-layer')
        for index, foil in enumerate(design.foil_areas):
            foil_group.add(
                RectShape(foil.x, foil.y, foil.width, foil.height,
                          css_class='foil-area', id=f'foil-area-{index}'),
                TextShape(foil.x + foil.width / 2, foil.y + foil.height / 2,
                          f'{foil.foil_color.upper()} FOIL', css_class='foil-label'),
            )
        nodes.append(foil_group)

    if design.palette:
        size = style.swatch_size
        step = size + 3
        x0 = max(zones.safety[0], zones.safety[0] + zones.safety[2] - len(design.palette) * step)
        y0 = zones.safety[1] + 8
        for color in design.palette:
            nodes.append(CommentNode(cmyk_comment(color.hex, color.name, max_coverage)))
        palette = Group('color-palette').add(
            TextShape(x0, y0 - 3, 'Color palette (CMYK):', css_class='palette-title'))
        for index, color in enumerate(design.palette):
            cmyk = hex_to_cmyk(color.hex)
            x = x0 + index * step
            palette.add(
                RectShape(x, y0, size, size, css_class='swatch', id=f'swatch-{index}',
                          attrs=(('fill', color.hex.upper()), ('data-cmyk', format_cmyk(cmyk)))),
                TextShape(x + size / 2, y0 + size + 4, color.name, css_class='swatch-label'),
                TextShape(x + size / 2, y0 + size + 8, f'C{cmyk.c:g} M{cmyk.m:g}', css_class='swatch-cmyk'),
                TextShape(x + size / 2, y0 + size + 11, f'Y{cmyk.y:g} K{cmyk.k:g}', css_class='swatch-cmyk'),
            )
        nodes.append(palette)

    return nodes


def _footer(result: DieLineResult, style: DrawingStyle, top: float) -> Tuple[Group, Group]:
    dims = result.dimensions
    dimensions = Group('dimensions').add(
        TextShape(0, top, f'Flat Size: {result.flat_width:g} × {result.flat_height:g} mm',
                  css_class='dimension-text'),
        TextShape(0, top + 4.5,
                  f'Box: {dims.label()} mm (L×W×H) | {result.archetype.value} | '
                  f'crease channel {result.crease_channel_width:g} mm',
                  css_class='dimension-text'),
    )

    legend = Group('legend')
    y = top + 10
    entries = (('cut-line', 'Cut'), ('fold-line-mountain', 'Mountain fold'),
               ('fold-line-valley', 'Valley fold'))
    for index, (css_class, label) in enumerate(entries):
        x = index * 32
        legend.add(
            LineShape(x, y, x + 8, y, css_class=css_class),
            TextShape(x + 10, y + 1, label, css_class='legend-text'),
        )
    return dimensions, legend


# ========== DRAWING ==========

def build_drawing(result: DieLineResult, mode: DrawingMode = DrawingMode.FULL,
                  settings: Settings = DEFAULT_SETTINGS,
                  generated_at: Optional[datetime] = None) -> Drawing:
    """
    Lay out every layer of the printed sheet for a die-line.

    Args:
        result: Generated die-line
        mode: FULL for the print proof, DIE_ONLY for die-cutting tool makers
            (cut, fold and dimension layers only, no ink information)
        settings: Styles and print profile
        generated_at: Timestamp written into the header (now, UTC, when None)

    Returns:
        Drawing ready for render_svg()
    """
    mode = DrawingMode(mode)
    style = settings.style if mode == DrawingMode.FULL else settings.style.die_only()
    profile = settings.print_profile
    generated_at = generated_at or datetime.now(timezone.utc)
    full = mode == DrawingMode.FULL

    width, height = result.flat_width, result.flat_height
    zones = compute_zones(width, height, result.bleed, style.safety_margin)

    pad = style.page_padding
    footer_top = height + (style.color_bar_offset + style.color_bar_height + 8 if full else 8)
    view_width = max(width, 100.0) + 2 * pad
    view_height = pad + footer_top + style.footer_height
    drawing = Drawing(width, height, (-pad, -pad, view_width, view_height), mode, style)

    trim, safety = zones.trim, zones.safety
    drawing.comments = [
        result.title,
        f'Generated: {generated_at.isoformat()}',
        'Unit: millimeters (mm)',
        f'Archetype: {result.archetype.value} | Box: {result.dimensions.label()} mm',
    ]
    if full:
        drawing.comments += [
            f'Color profile: {profile.name} ({profile.icc_profile}), {profile.iso_standard}',
            f'Total ink coverage limit: {profile.max_ink_coverage:g}%',
            f'Output target: {profile.pdf_standard}',
        ]
    else:
        drawing.comments.append('Die-cutting drawing: cut and crease geometry only')
    drawing.comments += [
        f'TrimBox (finished size): {trim[2]:g}mm × {trim[3]:g}mm',
        f'BleedBox (with bleed): {width:g}mm × {height:g}mm',
        f'MediaBox (full page): {view_width:g}mm × {view_height:g}mm',
        f'Bleed: {result.bleed:g}mm on all sides',
        f'Safety zone: {style.safety_margin:g}mm inside trim',
        f'Crease channel: {result.crease_channel_width:g}mm',
    ]

    drawing.metadata = {
        'title': result.title,
        'creator': 'CartonIQ die-line engine',
        'date': generated_at.isoformat(),
        'type': 'Technical Drawing / Die-Line' if full else 'Die-Cutting Drawing',
        'subject': 'packaging, die-line, chocolate box',
        'archetype': result.archetype.value,
        'trim': (trim[2], trim[3]),
        'bleed': (width, height, result.bleed),
        'safety': style.safety_margin,
        'safety_box': (safety[2], safety[3]),
        'folds': len(result.fold_lines),
    }
    if full:
        drawing.metadata['color_profile'] = {
            'name': profile.name,
            'icc_profile': profile.icc_profile,
            'rendering_intent': profile.rendering_intent,
        }
        drawing.metadata['compliance'] = {
            'standard': profile.pdf_standard,
            'iso': profile.iso_standard,
            'output_intent': profile.name,
        }

    if full:
        drawing.layers.append(_production_zones(result, zones, style))
    drawing.layers.append(_cut_layer(result))
    drawing.layers.append(_fold_layer(result))

    if full and result.options.visual_design is not None:
        artwork = Group('artwork').add(*_visual_design_layers(
            result.options.visual_design, zones, style, profile.max_ink_coverage))
        drawing.layers.append(artwork)

    if full:
        drawing.layers.append(Group('print-marks').add(
            _crop_marks(zones, style),
            _registration_marks(zones, style),
            _color_bars(zones, style),
        ))

    dimensions, legend = _footer(result, style, footer_top)
    drawing.layers += [dimensions, legend]

    logger.debug("Built %s drawing with layers %s", mode.value, drawing.layer_ids)
    return drawing
