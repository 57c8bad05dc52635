import pytest

from cartoniq.config import GeometryConstants
from cartoniq.errors import InvalidDimensions, LayoutOverflow, UnsupportedArchetype
from cartoniq.models import Archetype, BoxDimensions, Edge, FoldPolarity, GenerationOptions
from cartoniq.panels import (Panel, PanelLayout, build_layout, calculate_glue_tab_width,
                             crease_channel_width, lid_dimensions_for, resolve_bleed)
from cartoniq.utils import point_on_segment

GEOMETRY = GeometryConstants()


def _parent_edges(layout, panel):
    parent = layout.get(panel.parent_id)
    return [parent.edge_segment(edge) for edge in Edge]


def test_gift_panel_tree():
    layout = build_layout("gift", BoxDimensions(120, 120, 40))
    assert layout.root.id == "front"
    assert {p.id for p in layout.panels} == {
        "front", "left-side", "right-side", "top", "bottom",
        "top-tuck", "bottom-tuck", "left-glue-tab", "right-glue-tab",
    }
    assert layout.get("top-tuck").parent_id == "top"
    assert layout.get("left-glue-tab").parent_id == "left-side"
    assert layout.constants.tuck_height == pytest.approx(10.5)
    assert layout.constants.tab_taper == pytest.approx(4.5)


def test_every_hinge_is_a_parent_edge():
    for archetype in Archetype:
        layout = build_layout(archetype, BoxDimensions(120, 100, 30))
        for panel in layout.hinged_panels():
            start, end = layout.hinge(panel.id)
            assert any(
                point_on_segment(start, a, b, 1e-9) and point_on_segment(end, a, b, 1e-9)
                for a, b in _parent_edges(layout, panel)
            ), (archetype, panel.id)


def test_root_has_no_hinge():
    layout = build_layout("sleeve", (160, 80, 10))
    with pytest.raises(ValueError):
        layout.hinge("front")


def test_attach_positions_child_outside_parent():
    layout = PanelLayout(Archetype.TRUFFLE, BoxDimensions(10, 10, 5), 0, 20, 20, None)
    layout.add_panel(Panel("base", "base", 5, 5, 10, 10))
    wall = layout.attach("top-wall", "wall", "base", Edge.TOP, 5, FoldPolarity.VALLEY, "f")
    assert (wall.x, wall.y, wall.width, wall.height) == (5, 0, 10, 5)
    assert wall.fold_edge == Edge.BOTTOM
    assert layout.hinge("top-wall") == ((5, 5), (15, 5))


def test_duplicate_and_orphan_panels_rejected():
    layout = PanelLayout(Archetype.TRUFFLE, BoxDimensions(10, 10, 5), 0, 20, 20, None)
    layout.add_panel(Panel("base", "base", 0, 0, 10, 10))
    with pytest.raises(ValueError):
        layout.add_panel(Panel("base", "base", 0, 0, 10, 10))
    with pytest.raises(ValueError):
        layout.add_panel(Panel("x", "wall", 0, 0, 1, 1, parent_id="missing"))


def test_surface_area_sums_panels():
    layout = build_layout("truffle", (100, 80, 20))
    assert layout.surface_area() == pytest.approx(100 * 80 + 2 * 100 * 20 + 2 * 80 * 20)


def test_glue_tab_width_modes():
    assert calculate_glue_tab_width(40, GenerationOptions(), GEOMETRY) == 15.0
    assert calculate_glue_tab_width(40, GenerationOptions(glue_tab_width=12), GEOMETRY) == 12.0
    proportional = GenerationOptions(proportional_glue_tab=True)
    assert calculate_glue_tab_width(20, proportional, GEOMETRY) == 7.0
    assert calculate_glue_tab_width(80, proportional, GEOMETRY) == pytest.approx(12.0)
    assert calculate_glue_tab_width(200, proportional, GEOMETRY) == 15.0


def test_crease_channel_width():
    assert crease_channel_width(1.5) == pytest.approx(2.95)
    assert crease_channel_width(1.0, blade_width=0.5) == pytest.approx(2.0)


def test_resolve_bleed():
    assert resolve_bleed(GenerationOptions(), GEOMETRY) == 3.0
    assert resolve_bleed(GenerationOptions(bleed=0), GEOMETRY) == 0.0
    for bad in (-1, float("nan"), float("inf")):
        with pytest.raises(InvalidDimensions):
            resolve_bleed(GenerationOptions(bleed=bad), GEOMETRY)


def test_lid_dimensions():
    base = BoxDimensions(200, 160, 50)
    assert lid_dimensions_for(base) == BoxDimensions(204, 164, 20)
    # Height capped for deep bases
    assert lid_dimensions_for(BoxDimensions(200, 160, 100)).height == 25.0
    assert lid_dimensions_for(base, GenerationOptions(lid_height=30)).height == 30.0
    explicit = BoxDimensions(210, 170, 40)
    assert lid_dimensions_for(base, GenerationOptions(lid_dimensions=explicit)) == explicit


@pytest.mark.parametrize("dims", [(0, 10, 10), (10, -1, 10), (10, 10, float("nan")), ("a", 1, 1)])
def test_invalid_dimensions(dims):
    with pytest.raises(InvalidDimensions):
        build_layout("gift", dims)


def test_unknown_archetype():
    with pytest.raises(UnsupportedArchetype):
        build_layout("hexagon", (10, 10, 10))


def test_archetype_aliases_keep_requested_name():
    assert build_layout("TRAY_BASE", (80, 80, 35)).archetype == Archetype.TRAY_BASE
    assert build_layout("bar", (160, 80, 10)).archetype == Archetype.BAR
    assert build_layout("seasonal", (120, 120, 40)).archetype == Archetype.SEASONAL


def test_gift_overflow_cases():
    # Length too short for both tuck tapers
    with pytest.raises(LayoutOverflow):
        build_layout("gift", (9, 50, 40))
    # Tuck deeper than the top flap
    with pytest.raises(LayoutOverflow):
        build_layout("gift", (100, 100, 10))
    # Width too short for the tapered glue tab, unless tabs are off
    with pytest.raises(LayoutOverflow):
        build_layout("gift", (100, 9, 40))
    build_layout("gift", (100, 9, 40), GenerationOptions(include_glue_tabs=False))


def test_tray_ear_overflow():
    with pytest.raises(LayoutOverflow):
        build_layout("tray-base", (50, 50, 40))
    # Lids and truffle trays have no ears
    build_layout("tray-lid", (50, 50, 40))
    build_layout("truffle", (50, 50, 40))


def test_board_thickness_option():
    layout = build_layout("gift", (120, 120, 40), GenerationOptions(board_thickness=2.0))
    assert layout.constants.board_thickness == 2.0
    assert layout.constants.crease_channel_width == pytest.approx(3.7)
    with pytest.raises(InvalidDimensions):
        build_layout("gift", (120, 120, 40), GenerationOptions(board_thickness=0))


def test_gift_has_no_back_panel():
    layout = build_layout("gift", (120, 120, 40))
    assert "back" not in [p.id for p in layout.panels]
    min_x, _, max_x, _ = layout.get_bounding_box()
    # panels end one box length short of the sheet edge
    assert layout.flat_width - layout.bleed - max_x == pytest.approx(120)
    assert min_x == pytest.approx(layout.bleed)
