import xml.etree.ElementTree as ET

import pytest

from cartoniq.dieline import generate_dieline, generate_two_piece
from cartoniq.drawing import (CircleShape, DrawingMode, Group, PathShape, build_drawing,
                              compute_zones)
from cartoniq.models import (FoilArea, GenerationOptions, LogoPlacement, PaletteColor,
                             VisualDesign)
from cartoniq.svg_export import (SVG_NS, export_to_svg, export_two_piece, polyline_to_path,
                                 render_svg, to_svg)

NS = {"svg": SVG_NS}

DESIGN = VisualDesign(
    palette=(PaletteColor("Cocoa", "#8B7355", role="primary"), PaletteColor("Cream", "#F5E6C8")),
    logo=LogoPlacement(40, 20),
    foil_areas=(FoilArea(100, 80, 30, 10),),
)


def _parse(svg):
    return ET.fromstring(svg.encode("utf-8"))


def _group_ids(root):
    return [g.get("id") for g in root.iter(f"{{{SVG_NS}}}g")]


def test_polyline_to_path():
    assert polyline_to_path([(0, 0), (10, 0), (10, 5), (0, 0)]) == "M 0 0 L 10 0 L 10 5 Z"
    assert polyline_to_path([(0, 0), (1.25, 2)], close=False) == "M 0 0 L 1.25 2"
    assert polyline_to_path([]) == ""


def test_compute_zones():
    zones = compute_zones(100, 80, 3, 3)
    assert zones.bleed == (0, 0, 100, 80)
    assert zones.trim == (3, 3, 94, 74)
    assert zones.safety == (6, 6, 88, 68)


def test_full_layer_order(fixed_time):
    drawing = build_drawing(generate_dieline("gift", (120, 120, 40)), generated_at=fixed_time)
    assert drawing.layer_ids == [
        "production-zones", "cut-layer", "fold-layer", "print-marks", "dimensions", "legend",
    ]
    marks = drawing.layer("print-marks")
    assert [g.id for g in marks.children] == ["crop-marks", "registration-marks", "color-bars"]


def test_die_only_layer_order(fixed_time):
    result = generate_dieline("gift", (120, 120, 40), GenerationOptions(visual_design=DESIGN))
    drawing = build_drawing(result, DrawingMode.DIE_ONLY, generated_at=fixed_time)
    assert drawing.layer_ids == ["cut-layer", "fold-layer", "dimensions", "legend"]
    assert "color_profile" not in drawing.metadata


def test_artwork_layers_in_full_mode(fixed_time):
    result = generate_dieline("gift", (120, 120, 40), GenerationOptions(visual_design=DESIGN))
    drawing = build_drawing(result, generated_at=fixed_time)
    assert drawing.layer_ids.index("artwork") == drawing.layer_ids.index("fold-layer") + 1
    for layer_id in ("background-layer", "logo-layer", "foil-layer", "color-palette"):
        assert drawing.layer(layer_id) is not None


def test_registration_marks_at_edge_midpoints(fixed_time):
    result = generate_dieline("tray-base", (80, 80, 35))
    drawing = build_drawing(result, generated_at=fixed_time)
    circles = [n for n in drawing.layer("registration-marks").children if isinstance(n, CircleShape)]
    W, H = result.flat_width, result.flat_height
    off = drawing.style.registration_offset
    assert {(c.cx, c.cy) for c in circles} == {
        (W / 2, -off), (W + off, H / 2), (W / 2, H + off), (-off, H / 2),
    }


def test_color_bars_below_bleed_box(fixed_time):
    result = generate_dieline("gift", (120, 120, 40))
    drawing = build_drawing(result, generated_at=fixed_time)
    bars = drawing.layer("color-bars")
    patch_ys = {n.y for n in bars.children if getattr(n, "css_class", None) == "color-patch"}
    assert patch_ys == {result.flat_height + drawing.style.color_bar_offset}
    vx, vy, vw, vh = drawing.view_box
    assert vy + vh > result.flat_height + drawing.style.color_bar_offset + drawing.style.color_bar_height


def test_cut_layer_holds_cut_path(fixed_time):
    result = generate_dieline("truffle", (80, 60, 20))
    cut = build_drawing(result, generated_at=fixed_time).layer("cut-layer")
    assert isinstance(cut, Group)
    assert [n.id for n in cut.children if isinstance(n, PathShape)] == ["cut-path"]


@pytest.mark.parametrize("archetype", ["gift", "truffle", "tray-base", "tray-lid", "sleeve", "bar", "seasonal"])
def test_svg_is_valid_xml(archetype, fixed_time):
    result = generate_dieline(archetype, (120, 100, 30), GenerationOptions(visual_design=DESIGN))
    for mode in DrawingMode:
        root = _parse(to_svg(result, mode, generated_at=fixed_time))
        assert root.tag == f"{{{SVG_NS}}}svg"
        assert root.get("data-mode") == mode.value


def test_full_svg_contents(fixed_time):
    result = generate_dieline("gift", (120, 120, 40), GenerationOptions(visual_design=DESIGN))
    svg = to_svg(result, generated_at=fixed_time)
    root = _parse(svg)
    ids = _group_ids(root)
    for layer_id in ("production-zones", "cut-layer", "fold-layer", "crop-marks",
                     "registration-marks", "color-bars", "dimensions", "legend"):
        assert layer_id in ids
    assert "FOGRA39" in svg
    assert "cmyk(" in svg
    folds = root.findall(".//svg:g[@id='fold-layer']/svg:line", NS)
    assert len(folds) == 8
    assert {f.get("data-fold-type") for f in folds} == {"mountain", "valley"}
    assert root.find(".//svg:path[@id='cut-path']", NS).get("d").endswith("Z")


def test_die_only_strips_ink_information(fixed_time):
    result = generate_dieline("gift", (120, 120, 40), GenerationOptions(visual_design=DESIGN))
    svg = to_svg(result, DrawingMode.DIE_ONLY, generated_at=fixed_time)
    lowered = svg.lower()
    assert "cmyk" not in lowered
    assert "fogra" not in lowered
    assert "color-bars" not in svg
    assert "#8b7355" not in lowered
    ids = _group_ids(_parse(svg))
    assert ids == ["cut-layer", "fold-layer", "dimensions", "legend"]
    # Valley folds are blue on tool drawings
    assert "#0000FF" in svg


def test_svg_output_is_deterministic(fixed_time):
    result = generate_dieline("tray-base", (80, 80, 35))
    assert to_svg(result, generated_at=fixed_time) == to_svg(result, generated_at=fixed_time)
    assert fixed_time.isoformat() in to_svg(result, generated_at=fixed_time)


def test_no_bleed_lines_option(fixed_time):
    result = generate_dieline("truffle", (80, 60, 20), GenerationOptions(include_bleed_lines=False))
    drawing = build_drawing(result, generated_at=fixed_time)
    zone_ids = [getattr(n, "id", None) for n in drawing.layer("production-zones").children]
    assert "bleed-box" not in zone_ids
    assert "trim-box" in zone_ids


def test_export_to_svg_writes_file(tmp_path, fixed_time):
    result = generate_dieline("gift", (120, 120, 40))
    out = tmp_path / "gift.svg"
    assert export_to_svg(result, str(out), generated_at=fixed_time) == str(out)
    ET.parse(str(out))
    assert out.read_text(encoding="utf-8") == render_svg(build_drawing(result, generated_at=fixed_time))


def test_export_two_piece(fixed_time):
    pieces = generate_two_piece((200, 160, 50), GenerationOptions(title="Pralines"))
    exported = export_two_piece(pieces, generated_at=fixed_time)
    assert exported["base"] is pieces.base
    assert exported["lid"] is pieces.lid
    combined = exported["combined"]
    assert "Pralines base" in combined["base_document"]
    assert "Pralines lid" in combined["lid_document"]
    assert combined["total_flat_area_mm2"] == pytest.approx(pieces.total_flat_area_mm2)
    _parse(combined["base_document"])
    _parse(combined["lid_document"])
