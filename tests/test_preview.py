import matplotlib.pyplot as plt
import numpy as np
import pytest

from cartoniq.dieline import generate_dieline
from cartoniq.models import Archetype
from cartoniq.panels import build_layout
from cartoniq.preview import (ease_in_out_quad, fold_angle, folded_corners, panel_transforms,
                              plot_dieline, plot_folded_box)


def test_easing_endpoints():
    assert ease_in_out_quad(0.0) == 0.0
    assert ease_in_out_quad(0.5) == 0.5
    assert ease_in_out_quad(1.0) == 1.0
    assert ease_in_out_quad(0.25) == pytest.approx(0.125)


def test_fold_angle():
    layout = build_layout("tray-base", (80, 80, 35))
    wall = layout.get("top-wall")
    assert fold_angle(layout.root, 1.0) == 0.0
    assert fold_angle(wall, 0.0) == 0.0
    assert fold_angle(wall, 0.5) == pytest.approx(45.0)
    assert fold_angle(wall, 1.0) == pytest.approx(90.0)
    # Progress is clamped
    assert fold_angle(wall, 2.0) == pytest.approx(90.0)


@pytest.mark.parametrize("archetype", [a.value for a in Archetype])
def test_unfolded_corners_match_flat_pattern(archetype):
    layout = build_layout(archetype, (120, 100, 30))
    corners = folded_corners(layout, 0.0)
    assert set(corners) == {p.id for p in layout.panels}
    for panel in layout.panels:
        flat = np.array(panel.get_corners(), dtype=float)
        assert corners[panel.id].shape == (4, 3)
        assert np.allclose(corners[panel.id][:, :2], flat)
        assert np.allclose(corners[panel.id][:, 2], 0.0)


def test_folded_tray_walls_stand_up():
    layout = build_layout("truffle", (80, 60, 35))
    base = layout.get("base")
    corners = folded_corners(layout, 1.0)
    right = corners["right-wall"]
    assert np.allclose(right[:, 0], base.x + base.width)
    assert np.allclose(sorted(set(np.round(right[:, 2], 9))), [0.0, 35.0])
    top = corners["top-wall"]
    assert np.allclose(top[:, 1], base.y)
    assert np.all(top[:, 2] >= -1e-9)


def test_transforms_compose_down_the_tree():
    layout = build_layout("gift", (120, 120, 40))
    transforms = panel_transforms(layout, 1.0)
    assert np.allclose(transforms["front"], np.eye(4))
    # A tuck follows its flap: the flap's hinge edge stays put under both transforms
    (x0, y0), (x1, y1) = layout.hinge("top-tuck")
    hinge = np.array([[x0, y0, 0, 1], [x1, y1, 0, 1]], dtype=float)
    assert np.allclose(hinge @ transforms["top-tuck"].T, hinge @ transforms["top"].T)


def test_plot_dieline(tmp_path):
    out = tmp_path / "gift.png"
    fig = plot_dieline(generate_dieline("gift", (120, 120, 40)), save_path=str(out))
    assert out.exists() and out.stat().st_size > 0
    plt.close(fig)


def test_plot_folded_box(tmp_path):
    out = tmp_path / "tray.png"
    fig = plot_folded_box(build_layout("tray-base", (80, 80, 35)), 0.6, save_path=str(out))
    assert out.exists()
    plt.close(fig)
