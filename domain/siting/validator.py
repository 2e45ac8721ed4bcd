"""Siting Bounded Context - Placement Validator / Relaxer.

Decides whether a point is a legal placement and, when it is not, nudges it
to a nearby legal one.

A legal placement lies inside the boundary, outside every exclusion, at least
the exclusion buffer away from every exclusion edge and at least the wall
buffer away from the boundary. The wall rule is waived for corridor points;
the exclusion rule never is.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Sequence

from domain.geometry.services import (
    inside_any,
    min_distance_to_polygon_edges,
    min_distance_to_polygons,
    nearest_edge_info,
    nearest_edge_info_in_polygons,
    point_in_polygon,
    polygon_centroid,
)
from domain.geometry.value_objects import Point, Polygon
from domain.siting.corridor import CENTER_SHIFT_EPSILON, center_in_corridor, classify_corridor
from domain.siting.value_objects import PlacementConfig

logger = logging.getLogger(__name__)

INSIDE_EXCLUSION_MARGIN = 1.25  # exit distance = depth + buffer * margin
NEAR_EXCLUSION_MARGIN = 0.25
WALL_PUSH_MARGIN = 0.05  # extra inward push, as a fraction of radius
NO_MOVE_PULL = 0.35  # fraction of the way to the centroid when stuck
_MIN_STEP = 1e-9


def active_exclusions(exclusions: Sequence[Polygon]) -> list[Polygon]:
    """Exclusions that can enclose anything (>= 3 vertices)."""
    return [ex for ex in exclusions if len(ex) >= 3]


def _center_epsilon(radius: float) -> float:
    return min(CENTER_SHIFT_EPSILON, radius * 0.05)


def is_placement_allowed(
    p: Point,
    boundary: Polygon,
    exclusions: Sequence[Polygon],
    radius: float,
    config: PlacementConfig,
) -> bool:
    if not point_in_polygon(p, boundary):
        return False
    exclusions = active_exclusions(exclusions)
    if inside_any(p, exclusions):
        return False
    if min_distance_to_polygons(p, exclusions) < config.exclusion_buffer(radius):
        return False
    if min_distance_to_polygon_edges(p, boundary) < config.wall_buffer(radius):
        return classify_corridor(p, boundary, radius, config).is_corridor
    return True


def _relax_step(
    p: Point,
    boundary: Polygon,
    exclusions: list[Polygon],
    radius: float,
    config: PlacementConfig,
    centroid: Point,
) -> Point | None:
    """One relaxation move, or None when p is already allowed."""
    if not point_in_polygon(p, boundary):
        return p.toward(centroid, 0.5)

    ex_buffer = config.exclusion_buffer(radius)
    for ex in exclusions:
        if point_in_polygon(p, ex):
            edge = nearest_edge_info(p, ex)
            if edge is not None:
                step = edge.distance + max(ex_buffer * INSIDE_EXCLUSION_MARGIN, radius * WALL_PUSH_MARGIN)
                nx, ny = edge.outward_normal
                return p.moved(nx * step, ny * step)

    hit = nearest_edge_info_in_polygons(p, exclusions)
    if hit is not None and hit[0].distance < ex_buffer:
        edge = hit[0]
        step = (ex_buffer - edge.distance) + ex_buffer * NEAR_EXCLUSION_MARGIN
        nx, ny = edge.outward_normal
        return p.moved(nx * step, ny * step)

    corridor = classify_corridor(p, boundary, radius, config)
    if corridor.is_corridor:
        centred = center_in_corridor(p, corridor, epsilon=_center_epsilon(radius))
        if centred is not p:
            return centred
    else:
        wall = nearest_edge_info(p, boundary)
        wall_buffer = config.wall_buffer(radius)
        if wall is not None and wall.distance < wall_buffer:
            step = (wall_buffer - wall.distance) + radius * WALL_PUSH_MARGIN
            nx, ny = wall.outward_normal
            return p.moved(-nx * step, -ny * step)

    if is_placement_allowed(p, boundary, exclusions, radius, config):
        return None
    return p.toward(centroid, NO_MOVE_PULL)


def _radial_search(
    start: Point,
    centroid: Point,
    boundary: Polygon,
    exclusions: list[Polygon],
    radius: float,
    config: PlacementConfig,
) -> Point | None:
    dx = centroid.x - start.x
    dy = centroid.y - start.y
    length = math.hypot(dx, dy)
    if length < _MIN_STEP:
        dx, dy, length = 1.0, 0.0, 1.0
    dx /= length
    dy /= length

    step = max(radius * config.radial_step_factor, _MIN_STEP)
    max_distance = radius * max(config.radial_max_factor, 1.0)
    n_steps = int(math.floor(max_distance / step + 1e-9))
    for i in range(1, n_steps + 1):
        probe = start.moved(dx * step * i, dy * step * i)
        if is_placement_allowed(probe, boundary, exclusions, radius, config):
            return probe
    return None


def find_nearest_allowed_placement(
    p: Point,
    boundary: Polygon,
    exclusions: Sequence[Polygon],
    radius: float,
    config: PlacementConfig,
) -> Point | None:
    """Relax p to a nearby allowed placement.

    Runs up to config.max_relax_iterations relaxation moves, then probes
    along the line toward the boundary centroid in steps of
    radial_step_factor * radius.

    Returns:
        An allowed Point, or None if neither phase found one. Degenerate
        boundaries always yield None.
    """
    if boundary.is_degenerate:
        return None
    exclusions = active_exclusions(exclusions)
    # Clear of every wall: no corridor centring can apply
    if is_placement_allowed(p, boundary, exclusions, radius, config) and (
        min_distance_to_polygon_edges(p, boundary) >= config.wall_buffer(radius)
    ):
        return p
    centroid = polygon_centroid(boundary)

    candidate = p
    for _ in range(config.max_relax_iterations):
        moved = _relax_step(candidate, boundary, exclusions, radius, config, centroid)
        if moved is None:
            return candidate
        candidate = moved

    if is_placement_allowed(candidate, boundary, exclusions, radius, config):
        return candidate
    found = _radial_search(candidate, centroid, boundary, exclusions, radius, config)
    if found is None:
        logger.debug("No allowed placement near (%.3f, %.3f)", p.x, p.y)
        return None

    # Radial probes land anywhere across a corridor; settle on its centreline
    corridor = classify_corridor(found, boundary, radius, config)
    centred = center_in_corridor(found, corridor, epsilon=_center_epsilon(radius))
    if centred is not found and is_placement_allowed(
        centred, boundary, exclusions, radius, config
    ):
        return centred
    return found
