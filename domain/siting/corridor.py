"""Siting Bounded Context - Corridor Classifier.

A point is in a corridor when the walls on both sides of one axis are closer
than the wall buffer and the passage is narrower than the corridor width. In
such a passage the wall buffer cannot be honoured, so placements are centred
instead.
"""

from __future__ import annotations

import math

from domain.geometry.services import compute_axis_clearances
from domain.geometry.value_objects import AxisClearances, Point, Polygon
from domain.siting.value_objects import CorridorAxis, CorridorInfo, PlacementConfig

CENTER_SHIFT_EPSILON = 0.5  # shifts below this are not worth a move


def _narrow(pos: float, neg: float, buffer: float, max_width: float) -> bool:
    if not (math.isfinite(pos) and math.isfinite(neg)):
        return False
    if pos <= 0 or neg <= 0:
        return False
    return pos < buffer and neg < buffer and pos + neg <= max_width


def classify_corridor(
    p: Point, polygon: Polygon, radius: float, config: PlacementConfig
) -> CorridorInfo:
    """Classify p as a horizontal or vertical corridor point, or neither.

    The horizontal axis (walls left and right) is checked first, so a point
    in a narrow square cell is reported as HORIZONTAL.
    """
    clearances = compute_axis_clearances(p, polygon)
    buffer = config.wall_buffer(radius)
    max_width = config.corridor_max_width(radius)

    axis: CorridorAxis | None = None
    if _narrow(clearances.pos_x, clearances.neg_x, buffer, max_width):
        axis = CorridorAxis.HORIZONTAL
    elif _narrow(clearances.pos_y, clearances.neg_y, buffer, max_width):
        axis = CorridorAxis.VERTICAL
    return CorridorInfo(is_corridor=axis is not None, axis=axis, clearances=clearances)


def _half_asymmetry(c: AxisClearances, axis: CorridorAxis) -> float:
    if axis == CorridorAxis.HORIZONTAL:
        return (c.pos_x - c.neg_x) / 2.0
    return (c.pos_y - c.neg_y) / 2.0


def center_in_corridor(
    p: Point, info: CorridorInfo, *, epsilon: float = CENTER_SHIFT_EPSILON
) -> Point:
    """Move p to the corridor centreline along the corridor's axis.

    Returns p unchanged when it is not a corridor point or the shift is
    below epsilon.
    """
    if not info.is_corridor or info.axis is None:
        return p
    shift = _half_asymmetry(info.clearances, info.axis)
    if abs(shift) <= epsilon:
        return p
    if info.axis == CorridorAxis.HORIZONTAL:
        return p.moved(shift, 0.0)
    return p.moved(0.0, shift)
