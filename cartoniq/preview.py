"""
Preview renderers.

Two views of the same panel tree: a flat matplotlib plot of the die-line
(cut path, creases, trim box, dimension arrows) and a 3D fold emitter that
rotates every panel about its hinge by an eased fraction of its maximum
fold angle.
"""

import logging
import math
from typing import Dict, List, Optional

import matplotlib.pyplot as plt
import numpy as np
from matplotlib import patches
from matplotlib.lines import Line2D
from mpl_toolkits.mplot3d.art3d import Poly3DCollection

from .dieline import DieLineResult
from .models import Edge, FoldPolarity
from .panels import Panel, PanelLayout
from .utils import as_points, rotation_about_axis

logger = logging.getLogger(__name__)

# In-plane direction pointing from the hinge into the child panel
_INTO_CHILD = {
    Edge.LEFT: (1.0, 0.0),
    Edge.RIGHT: (-1.0, 0.0),
    Edge.TOP: (0.0, 1.0),
    Edge.BOTTOM: (0.0, -1.0),
}

_FOLD_STYLES = {
    FoldPolarity.MOUNTAIN: dict(color='red', linestyle='--', linewidth=1.5, dashes=(8, 3)),
    FoldPolarity.VALLEY: dict(color='red', linestyle='--', linewidth=1.5, dashes=(3, 3)),
}


def ease_in_out_quad(t: float) -> float:
    if t < 0.5:
        return 2 * t * t
    return 1 - (-2 * t + 2) ** 2 / 2


# ========== FLAT PLOT ==========

def plot_dieline(result: DieLineResult, show: bool = False,
                 save_path: Optional[str] = None) -> plt.Figure:
    """
    Draw a die-line with matplotlib.

    Args:
        result: Generated die-line
        show: Open an interactive window
        save_path: Write the figure to this path when given

    Returns:
        matplotlib.pyplot.Figure object containing the die-line
    """
    W, H, bleed = result.flat_width, result.flat_height, result.bleed
    fig, ax = plt.subplots(1, 1, figsize=(12, max(4.0, 12 * H / W)))
    ax.set_facecolor('white')

    # Trim box (the finished sheet edge, bleed excluded)
    trim = patches.Rectangle((bleed, bleed), W - 2 * bleed, H - 2 * bleed,
                             fill=False, edgecolor='gray', linewidth=0.8, linestyle=':')
    ax.add_patch(trim)

    for path in result.cut_paths:
        pts = as_points(path)
        ax.plot(pts[:, 0], pts[:, 1], color='blue', linewidth=2.0, solid_capstyle='butt')

    for fold in result.fold_lines:
        ax.plot([fold.start[0], fold.end[0]], [fold.start[1], fold.end[1]],
                solid_capstyle='butt', **_FOLD_STYLES[fold.polarity])

    # Flat size dimension arrows
    dim_offset = 6
    ax.annotate('', xy=(W, H + dim_offset), xytext=(0, H + dim_offset),
                arrowprops=dict(arrowstyle='<->', color='blue', lw=1.0))
    ax.text(W / 2, H + dim_offset + 2, f'{W:.1f} mm', ha='center', va='top',
            fontsize=9, color='blue')
    ax.annotate('', xy=(W + dim_offset, H), xytext=(W + dim_offset, 0),
                arrowprops=dict(arrowstyle='<->', color='blue', lw=1.0))
    ax.text(W + dim_offset + 2, H / 2, f'{H:.1f} mm', ha='left', va='center',
            fontsize=9, color='blue', rotation=90)

    legend_items = [
        Line2D([0], [0], color='blue', linewidth=2.0, label='Cut'),
        Line2D([0], [0], label='Mountain fold', **_FOLD_STYLES[FoldPolarity.MOUNTAIN]),
        Line2D([0], [0], label='Valley fold', **_FOLD_STYLES[FoldPolarity.VALLEY]),
        Line2D([0], [0], color='gray', linestyle=':', linewidth=0.8, label='Trim'),
    ]
    ax.legend(handles=legend_items, loc='upper left', bbox_to_anchor=(1.02, 1.0), fontsize=9)

    margin = 12
    ax.set_xlim(-margin, W + margin + dim_offset)
    # Pattern coordinates grow downward
    ax.set_ylim(H + margin + dim_offset, -margin)
    ax.set_aspect('equal')
    ax.grid(False)
    ax.axis('off')
    ax.set_title(result.title, fontsize=12, fontweight='bold')

    fig.tight_layout()

    if save_path:
        fig.savefig(save_path, dpi=150, bbox_inches='tight')
        logger.info("Die-line preview saved to %s", save_path)

    if show:
        plt.show()

    return fig


# ========== 3D FOLD EMITTER ==========

def fold_angle(panel: Panel, progress: float) -> float:
    """
    Fold angle in degrees for a panel at an animation progress of 0..1.

    Progress is clamped and eased in and out; the root panel never folds.
    """
    if panel.parent_id is None:
        return 0.0
    t = min(max(float(progress), 0.0), 1.0)
    return ease_in_out_quad(t) * panel.max_fold_angle


def _hinge_rotation(layout: PanelLayout, panel: Panel, angle_deg: float) -> np.ndarray:
    (x0, y0), (x1, y1) = layout.hinge(panel.id)
    nx, ny = _INTO_CHILD[panel.fold_edge]
    # Axis chosen so the panel lifts toward +z: axis = into_child x z
    direction = (ny, -nx, 0.0)
    origin = ((x0 + x1) / 2, (y0 + y1) / 2, 0.0)
    return rotation_about_axis(origin, direction, math.radians(angle_deg))


def panel_transforms(layout: PanelLayout, progress: float) -> Dict[str, np.ndarray]:
    """
    4x4 homogeneous transforms mapping each panel's flat coordinates (z = 0)
    to its folded position, composed from the root down the hinge chain.
    """
    transforms: Dict[str, np.ndarray] = {}
    # Parents are always added before their children
    for panel in layout.panels:
        if panel.parent_id is None:
            transforms[panel.id] = np.eye(4)
            continue
        local = _hinge_rotation(layout, panel, fold_angle(panel, progress))
        transforms[panel.id] = transforms[panel.parent_id] @ local
    return transforms


def folded_corners(layout: PanelLayout, progress: float) -> Dict[str, np.ndarray]:
    """Corner positions of every panel as a (4, 3) array, keyed by panel id."""
    corners = {}
    for panel_id, matrix in panel_transforms(layout, progress).items():
        flat = as_points(layout.get(panel_id).get_corners())
        homogeneous = np.column_stack([flat, np.zeros(len(flat)), np.ones(len(flat))])
        corners[panel_id] = (homogeneous @ matrix.T)[:, :3]
    return corners


def plot_folded_box(layout: PanelLayout, progress: float = 1.0,
                    save_path: Optional[str] = None, show: bool = False) -> plt.Figure:
    """Draw the panels of a layout folded to the given progress."""
    corners = folded_corners(layout, progress)
    polygons: List[np.ndarray] = list(corners.values())

    fig = plt.figure(figsize=(8, 8))
    ax = fig.add_subplot(111, projection='3d')
    faces = ['#8B7355' if layout.get(pid).parent_id is None else '#D2B48C' for pid in corners]
    ax.add_collection3d(Poly3DCollection(polygons, facecolors=faces, edgecolors='black',
                                         linewidths=0.8, alpha=0.85))

    stacked = np.vstack(polygons)
    lo, hi = stacked.min(axis=0), stacked.max(axis=0)
    span = float((hi - lo).max()) or 1.0
    center = (lo + hi) / 2
    for setter, c in zip((ax.set_xlim, ax.set_ylim, ax.set_zlim), center):
        setter(c - span / 2, c + span / 2)
    ax.set_xlabel('x (mm)')
    ax.set_ylabel('y (mm)')
    ax.set_zlabel('z (mm)')
    ax.set_title(f"{layout.archetype.value} {layout.dimensions.label()} mm, "
                 f"fold {min(max(progress, 0.0), 1.0):.0%}")

    if save_path:
        fig.savefig(save_path, dpi=150, bbox_inches='tight')
        logger.info("Folded preview saved to %s", save_path)

    if show:
        plt.show()

    return fig
