"""Geometry Bounded Context - Domain Services (Geometry Kernel).

Pure functions over Point and Polygon value objects. No state, no I/O and
no exceptions for malformed geometry: degenerate input yields the documented
neutral answer (False, 0.0, math.inf or None).
"""

from __future__ import annotations

import math
from collections.abc import Iterable

import numpy as np
from numpy.typing import NDArray

from domain.geometry.value_objects import AxisClearances, EdgeInfo, Point, Polygon

# ---------------------------------------------------------------------------
# Numeric Constants
# ---------------------------------------------------------------------------
AREA_EPSILON = 1e-9  # |signed area| below this is treated as degenerate
NORMAL_EPSILON = 1e-6  # closest point this close to p has no usable direction


# ---------------------------------------------------------------------------
# Containment
# ---------------------------------------------------------------------------
def point_in_polygon(p: Point, polygon: Polygon) -> bool:
    """Even-odd ray casting test.

    Points exactly on an edge follow the half-open crossing rule, so of two
    polygons sharing an edge exactly one contains the point.
    Degenerate polygons (< 3 vertices) contain nothing.
    """
    verts = polygon.vertices
    n = len(verts)
    if n < 3:
        return False
    inside = False
    px, py = p.x, p.y
    j = n - 1
    for i in range(n):
        xi, yi = verts[i].x, verts[i].y
        xj, yj = verts[j].x, verts[j].y
        if (yi > py) != (yj > py):
            x_cross = (xj - xi) * (py - yi) / (yj - yi) + xi
            if px < x_cross:
                inside = not inside
        j = i
    return inside


def points_in_polygon(
    xs: NDArray[np.float64], ys: NDArray[np.float64], polygon: Polygon
) -> NDArray[np.bool_]:
    """Vectorised even-odd test; same crossing rule as point_in_polygon."""
    inside = np.zeros(xs.shape, dtype=bool)
    verts = polygon.vertices
    n = len(verts)
    if n < 3:
        return inside
    j = n - 1
    for i in range(n):
        xi, yi = verts[i].x, verts[i].y
        xj, yj = verts[j].x, verts[j].y
        crosses = (yi > ys) != (yj > ys)
        if yj != yi:
            # Horizontal edges never cross; skipping them avoids 0/0 warnings
            x_cross = (xj - xi) * (ys - yi) / (yj - yi) + xi
            inside ^= crosses & (xs < x_cross)
        j = i
    return inside


def inside_any(p: Point, polygons: Iterable[Polygon]) -> bool:
    """True if p is inside any non-degenerate polygon."""
    return any(len(poly) >= 3 and point_in_polygon(p, poly) for poly in polygons)


# ---------------------------------------------------------------------------
# Distances
# ---------------------------------------------------------------------------
def _project_onto_segment(p: Point, a: Point, b: Point) -> tuple[float, float]:
    abx = b.x - a.x
    aby = b.y - a.y
    ab_len_sq = abx * abx + aby * aby
    if ab_len_sq == 0:
        return (a.x, a.y)
    t = ((p.x - a.x) * abx + (p.y - a.y) * aby) / ab_len_sq
    t = max(0.0, min(1.0, t))
    return (a.x + abx * t, a.y + aby * t)


def distance_point_to_segment(p: Point, a: Point, b: Point) -> float:
    """Distance from p to segment ab, clamped to the endpoints."""
    qx, qy = _project_onto_segment(p, a, b)
    return math.hypot(p.x - qx, p.y - qy)


def min_distance_to_polygon_edges(p: Point, polygon: Polygon) -> float:
    """Minimum distance from p to any edge; math.inf below 2 vertices."""
    if len(polygon) < 2:
        return math.inf
    return min(distance_point_to_segment(p, a, b) for a, b in polygon.edges())


def min_distance_to_polygons(p: Point, polygons: Iterable[Polygon]) -> float:
    best = math.inf
    for poly in polygons:
        d = min_distance_to_polygon_edges(p, poly)
        if d < best:
            best = d
    return best


# ---------------------------------------------------------------------------
# Area / Centroid
# ---------------------------------------------------------------------------
def polygon_signed_area(polygon: Polygon) -> float:
    """Shoelace signed area; positive for counter-clockwise rings."""
    verts = polygon.vertices
    n = len(verts)
    if n < 3:
        return 0.0
    total = 0.0
    for i in range(n):
        a = verts[i]
        b = verts[(i + 1) % n]
        total += a.x * b.y - b.x * a.y
    return total / 2.0


def polygon_area(polygon: Polygon) -> float:
    """Shoelace area, always non-negative."""
    return abs(polygon_signed_area(polygon))


def polygon_centroid(polygon: Polygon) -> Point:
    """Area-weighted centroid.

    Falls back to the arithmetic mean of the vertices when the signed area is
    numerically zero (collinear or otherwise degenerate ring).

    Raises:
        ValueError: If the polygon has no vertices at all.
    """
    verts = polygon.vertices
    n = len(verts)
    if n == 0:
        raise ValueError("Centroid of an empty polygon is undefined")
    cx = 0.0
    cy = 0.0
    signed = 0.0
    for i in range(n):
        a = verts[i]
        b = verts[(i + 1) % n]
        cross = a.x * b.y - b.x * a.y
        signed += cross
        cx += (a.x + b.x) * cross
        cy += (a.y + b.y) * cross
    signed *= 0.5
    if abs(signed) < AREA_EPSILON:
        return Point(
            x=sum(v.x for v in verts) / n,
            y=sum(v.y for v in verts) / n,
        )
    return Point(x=cx / (6.0 * signed), y=cy / (6.0 * signed))


# ---------------------------------------------------------------------------
# Nearest edge / normals
# ---------------------------------------------------------------------------
def nearest_edge_info(p: Point, polygon: Polygon) -> EdgeInfo | None:
    """Closest edge point and the outward normal there.

    The normal points out of the polygon interior: for an interior point it
    runs from p toward the closest edge point, for an exterior point from the
    edge point toward p. When p lies on the boundary (distance ~ 0) the
    direction falls back to centroid -> p.

    Returns:
        EdgeInfo, or None if the polygon has fewer than 2 vertices.
    """
    if len(polygon) < 2:
        return None
    best_d = math.inf
    best_q = (p.x, p.y)
    for a, b in polygon.edges():
        qx, qy = _project_onto_segment(p, a, b)
        d = math.hypot(p.x - qx, p.y - qy)
        if d < best_d:
            best_d = d
            best_q = (qx, qy)

    if best_d > NORMAL_EPSILON:
        nx = (p.x - best_q[0]) / best_d
        ny = (p.y - best_q[1]) / best_d
        if point_in_polygon(p, polygon):
            nx, ny = -nx, -ny
    else:
        centroid = polygon_centroid(polygon)
        nx = p.x - centroid.x
        ny = p.y - centroid.y
        length = math.hypot(nx, ny)
        if length < NORMAL_EPSILON:
            nx, ny, length = 1.0, 0.0, 1.0
        nx /= length
        ny /= length

    return EdgeInfo(
        distance=best_d,
        closest=Point(x=best_q[0], y=best_q[1]),
        outward_normal=(nx, ny),
    )


def nearest_edge_info_in_polygons(
    p: Point, polygons: Iterable[Polygon]
) -> tuple[EdgeInfo, Polygon] | None:
    """Closest edge over several polygons, with the polygon it belongs to."""
    best: tuple[EdgeInfo, Polygon] | None = None
    for poly in polygons:
        info = nearest_edge_info(p, poly)
        if info is None:
            continue
        if best is None or info.distance < best[0].distance:
            best = (info, poly)
    return best


# ---------------------------------------------------------------------------
# Axis clearances
# ---------------------------------------------------------------------------
def compute_axis_clearances(p: Point, polygon: Polygon) -> AxisClearances:
    """Ray-scan from p along +X, -X, +Y and -Y to the polygon boundary.

    Horizontal edges are skipped for the X scans and vertical edges for the Y
    scans; a shared vertex would otherwise be counted by both neighbours.
    A direction without any crossing reports math.inf.
    """
    pos_x = neg_x = pos_y = neg_y = math.inf
    if len(polygon) < 2:
        return AxisClearances()
    px, py = p.x, p.y
    for a, b in polygon.edges():
        if a.y != b.y and min(a.y, b.y) <= py <= max(a.y, b.y):
            ix = a.x + (b.x - a.x) * (py - a.y) / (b.y - a.y)
            if ix >= px:
                pos_x = min(pos_x, ix - px)
            if ix <= px:
                neg_x = min(neg_x, px - ix)
        if a.x != b.x and min(a.x, b.x) <= px <= max(a.x, b.x):
            iy = a.y + (b.y - a.y) * (px - a.x) / (b.x - a.x)
            if iy >= py:
                pos_y = min(pos_y, iy - py)
            if iy <= py:
                neg_y = min(neg_y, py - iy)
    return AxisClearances(pos_x=pos_x, neg_x=neg_x, pos_y=pos_y, neg_y=neg_y)


