"""
SVG serializer for die-line drawings.

render_svg() writes a Drawing (see drawing.py) as a self-contained SVG
document in millimeters: header comments, Dublin Core and print-spec
metadata, a CSS style block generated from the DrawingStyle, then every
layer in order.
"""

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional
from xml.sax.saxutils import escape, quoteattr

from .config import DEFAULT_SETTINGS, DrawingStyle, Settings
from .dieline import DieLineResult, TwoPieceResult
from .drawing import (CircleShape, CommentNode, Drawing, DrawingMode, Group, LineShape, Node,
                      PathShape, RectShape, TextShape, build_drawing)
from .models import Point
from .utils import fmt

logger = logging.getLogger(__name__)

SVG_NS = 'http://www.w3.org/2000/svg'
DC_NS = 'http://purl.org/dc/elements/1.1/'
RDF_NS = 'http://www.w3.org/1999/02/22-rdf-syntax-ns#'
PRINT_SPEC_NS = 'urn:cartoniq:print-spec'


def polyline_to_path(points: List[Point], close: bool = True) -> str:
    """Path data ('M x y L x y ... Z') for a polyline; a repeated closing point is dropped."""
    if not points:
        return ''
    if close and len(points) > 1 and tuple(points[0]) == tuple(points[-1]):
        points = points[:-1]
    d = [f'M {fmt(points[0][0])} {fmt(points[0][1])}']
    for x, y in points[1:]:
        d.append(f'L {fmt(x)} {fmt(y)}')
    if close:
        d.append('Z')
    return ' '.join(d)


def _comment(text: str) -> str:
    # '--' is not allowed inside XML comments
    while '--' in text:
        text = text.replace('--', '-')
    return f'<!-- {text} -->'


def _attrs(pairs) -> str:
    return ''.join(f' {name}={quoteattr(str(value))}' for name, value in pairs)


def _common(css_class: Optional[str], id: Optional[str] = None, extra=()) -> str:
    pairs = []
    if id:
        pairs.append(('id', id))
    if css_class:
        pairs.append(('class', css_class))
    pairs.extend(extra)
    return _attrs(pairs)


def _stylesheet(style: DrawingStyle, mode: DrawingMode) -> List[str]:
    """CSS rules for the classes used by the layers of the given mode."""
    def rule(selector: str, **props) -> str:
        body = ' '.join(f"{name.replace('_', '-')}: {value};" for name, value in props.items())
        return f'      {selector} {{ {body} }}'

    text = {'font_family': style.font_family, 'fill': style.text_color}
    rules = [
        rule('.cut-line', stroke=style.cut_stroke, stroke_width=fmt(style.cut_width), fill='none'),
        rule('.fold-line-mountain', stroke=style.mountain_stroke, stroke_width=fmt(style.fold_width),
             stroke_dasharray=style.mountain_dash, fill='none'),
        rule('.fold-line-valley', stroke=style.valley_stroke, stroke_width=fmt(style.fold_width),
             stroke_dasharray=style.valley_dash, fill='none'),
        rule('.dimension-text', font_size=f'{fmt(style.font_size)}px', **text),
        rule('.legend-text', font_size='2.5px', **text),
    ]
    if mode == DrawingMode.DIE_ONLY:
        return rules

    return rules + [
        rule('.bleed-line', stroke=style.bleed_stroke, stroke_width=fmt(style.bleed_width),
             stroke_dasharray=style.bleed_dash, fill='none'),
        rule('.trim-line', stroke=style.trim_stroke, stroke_width=fmt(style.trim_width),
             stroke_dasharray=style.trim_dash, fill='none'),
        rule('.safety-zone', stroke=style.safety_stroke, stroke_width=fmt(style.safety_width),
             stroke_dasharray=style.safety_dash, fill='none'),
        rule('.corner-marker', stroke=style.safety_stroke, stroke_width=fmt(style.safety_width), fill='none'),
        rule('.mark-line', stroke=style.mark_stroke, stroke_width=fmt(style.mark_width), fill='none'),
        rule('.logo-box', stroke='#999999', stroke_width='0.2', stroke_dasharray='2,1', fill='none'),
        rule('.foil-area', stroke=style.foil_stroke, stroke_width='0.3', stroke_dasharray='3,1', fill='none'),
        rule('.swatch', stroke='#333333', stroke_width='0.2'),
        rule('.zone-label', font_size='2.5px', **text),
        rule('.bar-label', font_size='2px', text_anchor='middle', **text),
        rule('.logo-label', font_size='4px', text_anchor='middle', dominant_baseline='middle',
             font_family=style.font_family, fill='#999999'),
        rule('.foil-label', font_size='3px', text_anchor='middle',
             font_family=style.font_family, fill=style.foil_stroke),
        rule('.palette-title', font_size='3px', font_weight='bold', font_family=style.font_family,
             fill='#333333'),
        rule('.swatch-label', font_size='2.5px', text_anchor='middle', **text),
        rule('.swatch-cmyk', font_size='1.8px', text_anchor='middle',
             font_family=style.font_family, fill='#999999'),
    ]


def _metadata(meta: Dict[str, Any], indent: str) -> List[str]:
    trim_w, trim_h = meta['trim']
    bleed_w, bleed_h, margin = meta['bleed']
    lines = [
        f'{indent}<metadata>',
        f'{indent}  <rdf:RDF xmlns:rdf="{RDF_NS}" xmlns:dc="{DC_NS}">',
        f'{indent}    <rdf:Description>',
        f'{indent}      <dc:title>{escape(meta["title"])}</dc:title>',
        f'{indent}      <dc:creator>{escape(meta["creator"])}</dc:creator>',
        f'{indent}      <dc:date>{escape(meta["date"])}</dc:date>',
        f'{indent}      <dc:format>image/svg+xml</dc:format>',
        f'{indent}      <dc:type>{escape(meta["type"])}</dc:type>',
        f'{indent}      <dc:subject>{escape(meta["subject"])}</dc:subject>',
        f'{indent}    </rdf:Description>',
        f'{indent}  </rdf:RDF>',
        f'{indent}  <print-spec xmlns="{PRINT_SPEC_NS}" archetype={quoteattr(meta["archetype"])}>',
    ]
    profile = meta.get('color_profile')
    if profile:
        lines += [
            f'{indent}    <color-profile>',
            f'{indent}      <name>{escape(profile["name"])}</name>',
            f'{indent}      <icc-profile>{escape(profile["icc_profile"])}</icc-profile>',
            f'{indent}      <rendering-intent>{escape(profile["rendering_intent"])}</rendering-intent>',
            f'{indent}    </color-profile>',
        ]
    lines += [
        f'{indent}    <dimensions unit="mm">',
        f'{indent}      <trim width="{fmt(trim_w)}" height="{fmt(trim_h)}" />',
        f'{indent}      <bleed width="{fmt(bleed_w)}" height="{fmt(bleed_h)}" margin="{fmt(margin)}" />',
        f'{indent}      <safety margin="{fmt(meta["safety"])}" />',
        f'{indent}    </dimensions>',
        f'{indent}    <folds count="{meta["folds"]}" />',
    ]
    compliance = meta.get('compliance')
    if compliance:
        lines += [
            f'{indent}    <compliance>',
            f'{indent}      <standard>{escape(compliance["standard"])}</standard>',
            f'{indent}      <iso>{escape(compliance["iso"])}</iso>',
            f'{indent}      <output-intent>{escape(compliance["output_intent"])}</output-intent>',
            f'{indent}    </compliance>',
        ]
    lines += [f'{indent}  </print-spec>', f'{indent}</metadata>']
    return lines


def _render_node(node: Node, indent: str, out: List[str]):
    if isinstance(node, Group):
        out.append(f'{indent}<g{_attrs([("id", node.id)] + list(node.attrs))}>')
        for child in node.children:
            _render_node(child, indent + '  ', out)
        out.append(f'{indent}</g>')
    elif isinstance(node, PathShape):
        d = polyline_to_path(list(node.points), close=node.closed)
        out.append(f'{indent}<path{_common(node.css_class, node.id)} d="{d}" />')
    elif isinstance(node, LineShape):
        out.append(f'{indent}<line{_common(node.css_class, node.id, node.attrs)} '
                   f'x1="{fmt(node.x1)}" y1="{fmt(node.y1)}" x2="{fmt(node.x2)}" y2="{fmt(node.y2)}" />')
    elif isinstance(node, RectShape):
        out.append(f'{indent}<rect{_common(node.css_class, node.id, node.attrs)} '
                   f'x="{fmt(node.x)}" y="{fmt(node.y)}" '
                   f'width="{fmt(node.width)}" height="{fmt(node.height)}" />')
    elif isinstance(node, CircleShape):
        out.append(f'{indent}<circle{_common(node.css_class)} '
                   f'cx="{fmt(node.cx)}" cy="{fmt(node.cy)}" r="{fmt(node.r)}" />')
    elif isinstance(node, TextShape):
        out.append(f'{indent}<text{_common(node.css_class, extra=node.attrs)} '
                   f'x="{fmt(node.x)}" y="{fmt(node.y)}">{escape(node.text)}</text>')
    elif isinstance(node, CommentNode):
        out.append(indent + _comment(node.text))
    else:
        raise TypeError(f"Cannot serialize {type(node).__name__}")


def render_svg(drawing: Drawing) -> str:
    """
    Serialize a Drawing to SVG text.

    Args:
        drawing: Output of build_drawing()

    Returns:
        SVG document as a string (UTF-8, millimeter units)
    """
    vx, vy, vw, vh = drawing.view_box
    svg_lines = [
        '<?xml version="1.0" encoding="UTF-8"?>',
        f'<svg xmlns="{SVG_NS}" xmlns:dc="{DC_NS}" '
        f'width="{fmt(vw)}mm" height="{fmt(vh)}mm" '
        f'viewBox="{fmt(vx)} {fmt(vy)} {fmt(vw)} {fmt(vh)}" '
        f'data-mode="{drawing.mode.value}">',
    ]
    svg_lines += ['  ' + _comment(text) for text in drawing.comments]
    svg_lines += _metadata(drawing.metadata, '  ')
    svg_lines += ['  <defs>', '    <style type="text/css">']
    svg_lines += _stylesheet(drawing.style, drawing.mode)
    svg_lines += ['    </style>', '  </defs>']

    for layer in drawing.layers:
        _render_node(layer, '  ', svg_lines)

    svg_lines.append('</svg>')
    return '\n'.join(svg_lines) + '\n'


def to_svg(result: DieLineResult, mode: DrawingMode = DrawingMode.FULL,
           settings: Settings = DEFAULT_SETTINGS,
           generated_at: Optional[datetime] = None) -> str:
    """Build and serialize the drawing for a die-line in one step."""
    return render_svg(build_drawing(result, mode, settings, generated_at))


def export_to_svg(result: DieLineResult, filename: str = 'carton_dieline.svg',
                  mode: DrawingMode = DrawingMode.FULL,
                  settings: Settings = DEFAULT_SETTINGS,
                  generated_at: Optional[datetime] = None) -> str:
    """
    Export a die-line to an SVG file.

    Args:
        result: DieLineResult to export
        filename: Output filename (default: 'carton_dieline.svg')
        mode: DrawingMode.FULL or DrawingMode.DIE_ONLY

    Returns:
        Path to the created SVG file
    """
    svg_content = to_svg(result, mode, settings, generated_at)
    with open(filename, 'w', encoding='utf-8') as f:
        f.write(svg_content)
    logger.info("Exported %s die-line (%s) to %s", result.archetype.value, DrawingMode(mode).value, filename)
    return filename


def export_two_piece(two_piece: TwoPieceResult, mode: DrawingMode = DrawingMode.FULL,
                     settings: Settings = DEFAULT_SETTINGS,
                     generated_at: Optional[datetime] = None) -> Dict[str, Any]:
    """
    Serialize both pieces of a tray/lid set.

    Returns:
        {'base': DieLineResult, 'lid': DieLineResult,
         'combined': {'base_document': str, 'lid_document': str,
                      'total_flat_area_mm2': float}}
    """
    return {
        'base': two_piece.base,
        'lid': two_piece.lid,
        'combined': {
            'base_document': to_svg(two_piece.base, mode, settings, generated_at),
            'lid_document': to_svg(two_piece.lid, mode, settings, generated_at),
            'total_flat_area_mm2': two_piece.total_flat_area_mm2,
        },
    }
