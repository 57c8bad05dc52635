import numpy as np
from typing import Iterable, List, Sequence, Tuple

# Type aliases
Point = Tuple[float, float]
BBox = Tuple[float, float, float, float]  # (min_x, min_y, max_x, max_y)

EPSILON = 1e-9


def as_points(points: Iterable[Sequence[float]]) -> np.ndarray:
    """Return points as an (N, 2) float array."""
    return np.asarray(list(points), dtype=float).reshape(-1, 2)


def bounding_box(points: Iterable[Sequence[float]]) -> BBox:
    """
    Axis-aligned bounding box of a point set.

    Returns (0, 0, 0, 0) for an empty set.
    """
    pts = as_points(points)
    if len(pts) == 0:
        return (0.0, 0.0, 0.0, 0.0)
    min_x, min_y = pts.min(axis=0)
    max_x, max_y = pts.max(axis=0)
    return (float(min_x), float(min_y), float(max_x), float(max_y))


def is_closed(path: Sequence[Point]) -> bool:
    """True when the polyline has at least a triangle and ends where it starts."""
    return len(path) >= 4 and tuple(path[0]) == tuple(path[-1])


def polygon_area(path: Sequence[Point]) -> float:
    """
    Unsigned area of a closed polyline (shoelace formula).
    """
    pts = as_points(path)
    if len(pts) < 3:
        return 0.0
    x, y = pts[:, 0], pts[:, 1]
    return float(abs(np.dot(x, np.roll(y, -1)) - np.dot(y, np.roll(x, -1))) / 2.0)


def point_on_segment(p: Point, a: Point, b: Point, tol: float = EPSILON) -> bool:
    """
    Check whether p lies on the segment a-b, within tol.
    """
    p, a, b = np.asarray(p, float), np.asarray(a, float), np.asarray(b, float)
    ab = b - a
    length_sq = float(np.dot(ab, ab))
    if length_sq == 0.0:
        return bool(np.linalg.norm(p - a) <= tol)
    t = float(np.dot(p - a, ab)) / length_sq
    if t < -tol or t > 1 + tol:
        return False
    closest = a + min(max(t, 0.0), 1.0) * ab
    return bool(np.linalg.norm(p - closest) <= tol)


def point_on_polyline(p: Point, path: Sequence[Point], tol: float = EPSILON) -> bool:
    return any(point_on_segment(p, path[i], path[i + 1], tol) for i in range(len(path) - 1))


def unique_vertices(path: Sequence[Point]) -> List[Point]:
    """Vertices of a closed path without the repeated closing point."""
    if is_closed(path):
        return list(path[:-1])
    return list(path)


def rotation_about_axis(origin: Sequence[float], direction: Sequence[float],
                        angle_rad: float) -> np.ndarray:
    """
    4x4 homogeneous transform rotating by angle_rad about the line through
    origin along direction (right-hand rule).
    """
    d = np.asarray(direction, dtype=float)
    d = d / np.linalg.norm(d)
    x, y, z = d
    c, s = np.cos(angle_rad), np.sin(angle_rad)
    # Rodrigues rotation
    k = np.array([[0, -z, y], [z, 0, -x], [-y, x, 0]])
    r = np.eye(3) + s * k + (1 - c) * (k @ k)

    o = np.asarray(origin, dtype=float)
    m = np.eye(4)
    m[:3, :3] = r
    m[:3, 3] = o - r @ o
    return m


def fmt(value: float) -> str:
    """Compact number formatting for markup: up to 3 decimals, no trailing zeros."""
    text = f"{float(value):.3f}".rstrip('0').rstrip('.')
    return '0' if text in ('-0', '') else text
