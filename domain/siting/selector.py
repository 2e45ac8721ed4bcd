"""Siting Bounded Context - Greedy / Adaptive Selector.

Chooses placement centres from a candidate set so that their disks cover the
sample grid. Two strategies share the candidate bookkeeping:

- adaptive: score = gain - edge penalty - overlap penalty, with stagnation
  detection and periodic re-seeding at the centroids of uncovered clusters.
- grid_seed: a fixed seed lattice, plain maximum-gain greedy, and a minimum
  centre spacing enforced before each acceptance.

Both are deterministic: candidate order is lattice order and ties go to the
lowest candidate index.
"""

from __future__ import annotations

import logging
import math
import time
from collections.abc import Iterable, Sequence

import numpy as np
from numpy.typing import NDArray
from pydantic import BaseModel, ConfigDict, Field

from domain.coverage.services import (
    SampleIndex,
    bounded_spacing,
    cluster_points,
    lattice_points,
    theoretical_minimum,
)
from domain.coverage.value_objects import Lattice
from domain.geometry.services import (
    inside_any,
    min_distance_to_polygon_edges,
    point_in_polygon,
    polygon_centroid,
)
from domain.geometry.value_objects import Point, Polygon
from domain.siting.spacing import (
    filter_by_spacing,
    is_spacing_allowed,
    min_center_spacing,
    spacing_threshold,
)
from domain.siting.validator import active_exclusions, find_nearest_allowed_placement
from domain.siting.value_objects import PlacementConfig, StopReason

logger = logging.getLogger(__name__)

OVERLAP_REACH_FACTOR = 0.8  # overlap penalty applies to centres closer than 0.8 r
NEIGHBOUR_REACH_FACTOR = 2.0  # disks further apart than 2 r share no samples
DEDUPE_QUANTUM_FACTOR = 1e-3


class Selection(BaseModel):
    """Chosen centres plus the loop counters that produced them."""

    positions: tuple[Point, ...]
    stop_reason: StopReason
    hard_cap: int = Field(ge=0)
    candidate_count: int = Field(default=0, ge=0)
    iterations: int = Field(default=0, ge=0)
    stagnation_events: int = Field(default=0, ge=0)
    reseed_events: int = Field(default=0, ge=0)
    seeds_added: int = Field(default=0, ge=0)
    unplaceable_seeds: int = Field(default=0, ge=0)
    spacing_rejections: int = Field(default=0, ge=0)
    pruned: int = Field(default=0, ge=0)

    model_config = ConfigDict(frozen=True)


class _Deadline:
    def __init__(self, budget_s: float | None) -> None:
        self._end = None if budget_s is None else time.monotonic() + budget_s

    def expired(self) -> bool:
        return self._end is not None and time.monotonic() >= self._end


# ---------------------------------------------------------------------------
# Caps
# ---------------------------------------------------------------------------
def dynamic_placement_cap(area: float, radius: float, config: PlacementConfig) -> int:
    """ceil(theoretical_min * safety_factor), at least 1, at most max_placements."""
    base = theoretical_minimum(area, radius, config.packing_efficiency)
    dynamic = max(1, int(math.ceil(base * config.safety_factor)))
    return min(dynamic, config.max_placements)


def _cap_reason(cap: int, config: PlacementConfig) -> StopReason:
    return StopReason.HARD_CAP if cap >= config.max_placements else StopReason.DYNAMIC_CAP


# ---------------------------------------------------------------------------
# Candidates
# ---------------------------------------------------------------------------
class _Candidates:
    """Relaxed, de-duplicated candidate centres with cached disk members."""

    def __init__(self, samples: NDArray[np.float64], radius: float) -> None:
        self.radius = radius
        self.index = SampleIndex(samples, cell=radius)
        self.points: list[Point] = []
        self.members: list[NDArray[np.intp]] = []
        self._keys: set[tuple[int, int]] = set()
        self._quantum = radius * DEDUPE_QUANTUM_FACTOR

    def __len__(self) -> int:
        return len(self.points)

    def add(self, p: Point) -> bool:
        key = (round(p.x / self._quantum), round(p.y / self._quantum))
        if key in self._keys:
            return False
        self._keys.add(key)
        self.points.append(p)
        self.members.append(self.index.within(p.x, p.y, self.radius))
        return True

    def xy(self) -> NDArray[np.float64]:
        if not self.points:
            return np.empty((0, 2), dtype=np.float64)
        return np.array([p.as_tuple() for p in self.points], dtype=np.float64)


def relax_candidates(
    raw: Iterable[Point],
    region: Polygon,
    exclusions: Sequence[Polygon],
    radius: float,
    config: PlacementConfig,
    pool: _Candidates,
    deadline: _Deadline | None = None,
) -> int:
    """Relax raw points into pool; returns how many could not be placed.

    Raw points outside the region or inside an exclusion are skipped, not
    counted as unplaceable. Stops early once deadline has expired.
    """
    unplaceable = 0
    for p in raw:
        if deadline is not None and deadline.expired():
            logger.debug("Time budget spent after %d candidates", len(pool))
            break
        if not point_in_polygon(p, region) or inside_any(p, exclusions):
            continue
        relaxed = find_nearest_allowed_placement(p, region, exclusions, radius, config)
        if relaxed is None:
            unplaceable += 1
            continue
        pool.add(relaxed)
    return unplaceable


def _lattice(region: Polygon, spacing: float, lattice: Lattice, max_points: int) -> list[Point]:
    bounds = region.bounds()
    pts = lattice_points(bounds, bounded_spacing(bounds, spacing, max_points, lattice), lattice)
    return [Point(x=float(x), y=float(y)) for x, y in pts]


# ---------------------------------------------------------------------------
# Redundancy pruning
# ---------------------------------------------------------------------------
def prune_redundant(
    samples: NDArray[np.float64],
    positions: Sequence[Point],
    radius: float,
    tolerance_count: float,
) -> list[Point]:
    """Drop placements whose removal keeps uncovered samples within tolerance.

    Placements are considered in ascending order of the samples only they
    cover (stable for ties), so the least useful disks go first.
    """
    if not positions:
        return []
    index = SampleIndex(samples, cell=radius)
    members = [index.within(p.x, p.y, radius) for p in positions]
    counts = np.zeros(samples.shape[0], dtype=np.int64)
    for m in members:
        counts[m] += 1
    uncovered = int(np.count_nonzero(counts == 0))

    unique = np.array([np.count_nonzero(counts[m] == 1) for m in members])
    removed: set[int] = set()
    for k in np.argsort(unique, kind="stable"):
        m = members[k]
        lost = int(np.count_nonzero(counts[m] == 1))
        if uncovered + lost <= tolerance_count:
            counts[m] -= 1
            uncovered += lost
            removed.add(int(k))
    return [p for k, p in enumerate(positions) if k not in removed]


# ---------------------------------------------------------------------------
# Strategy A: adaptive
# ---------------------------------------------------------------------------
def adaptive_select(
    samples: NDArray[np.float64],
    region: Polygon,
    exclusions: Sequence[Polygon],
    radius: float,
    config: PlacementConfig,
    *,
    area: float,
) -> Selection:
    """Tolerance-driven greedy with stagnation detection and gap re-seeding.

    Args:
        samples: (n, 2) coverage samples of the region
        region: Boundary polygon
        exclusions: Keep-out polygons
        radius: Coverage radius (plan units)
        config: Placement configuration
        area: Sampled area, used for the dynamic cap

    Returns:
        Selection with the committed centres in placement order.
    """
    exclusions = active_exclusions(exclusions)
    total = int(samples.shape[0])
    tolerance = config.tolerance_count(total)
    cap = dynamic_placement_cap(area, radius, config)
    deadline = _Deadline(config.time_budget_s)

    pool = _Candidates(samples, radius)
    # One slot is kept for the region centroid
    raw = _lattice(
        region,
        radius * config.candidate_spacing_factor,
        config.lattice,
        max(1, config.max_candidates - 1),
    )
    raw.append(polygon_centroid(region))
    unplaceable = relax_candidates(raw, region, exclusions, radius, config, pool, deadline)
    candidate_count = len(pool)
    logger.debug(
        "Adaptive: %d candidates (%d unplaceable), cap %d, %d samples",
        candidate_count,
        unplaceable,
        cap,
        total,
    )

    uncovered = np.ones(total, dtype=bool)
    n_uncovered = total
    xy = pool.xy()
    alive = np.ones(len(pool), dtype=bool)
    gains = np.array([m.size for m in pool.members], dtype=np.float64)
    edge_penalty = np.array(
        [
            config.edge_penalty_weight * radius / (min_distance_to_polygon_edges(p, region) + 1.0)
            for p in pool.points
        ],
        dtype=np.float64,
    )
    overlap = np.zeros(len(pool), dtype=np.float64)

    placed: list[Point] = []
    iterations = stagnation = stagnation_events = 0
    reseed_events = seeds_added = 0
    stop = StopReason.EMPTY if total == 0 else StopReason.CANDIDATES_EXHAUSTED

    while total > 0:
        if n_uncovered <= tolerance:
            stop = StopReason.CONVERGED
            break
        if len(placed) >= cap:
            stop = _cap_reason(cap, config)
            break
        if iterations >= config.max_iterations:
            stop = StopReason.ITERATION_BUDGET
            break
        if deadline.expired():
            stop = StopReason.TIME_BUDGET
            break
        if not alive.any():
            stop = StopReason.CANDIDATES_EXHAUSTED
            break

        iterations += 1
        # Zero-gain candidates never outrank a useful one, however penalised
        score = np.where(
            gains >= 1,
            gains - edge_penalty - config.overlap_penalty_weight * overlap,
            -np.inf,
        )
        alive_idx = np.flatnonzero(alive)
        best = int(alive_idx[np.argmax(score[alive_idx])])
        alive[best] = False

        if gains[best] < 1:
            stagnation += 1
            stagnation_events += 1
            if stagnation >= config.stagnation_limit:
                stop = StopReason.STAGNATION
                break
            continue
        stagnation = 0

        chosen = pool.points[best]
        placed.append(chosen)
        m = pool.members[best]
        newly = m[uncovered[m]]
        uncovered[newly] = False
        n_uncovered -= int(newly.size)

        d = np.hypot(xy[:, 0] - chosen.x, xy[:, 1] - chosen.y)
        overlap += np.maximum(0.0, OVERLAP_REACH_FACTOR * radius - d)
        for j in np.flatnonzero(alive & (d <= NEIGHBOUR_REACH_FACTOR * radius)):
            gains[j] = np.count_nonzero(uncovered[pool.members[j]])

        if (
            config.reseed_count > 0
            and len(placed) % config.reseed_interval == 0
            and n_uncovered > tolerance
        ):
            reseed_events += 1
            before = len(pool)
            unplaceable += _reseed(
                samples, uncovered, region, exclusions, radius, config, pool, deadline
            )
            added = len(pool) - before
            if added:
                seeds_added += added
                new_xy = pool.xy()[before:]
                xy = np.vstack((xy, new_xy))
                alive = np.concatenate((alive, np.ones(added, dtype=bool)))
                gains = np.concatenate(
                    (
                        gains,
                        np.array(
                            [np.count_nonzero(uncovered[m]) for m in pool.members[before:]],
                            dtype=np.float64,
                        ),
                    )
                )
                edge_penalty = np.concatenate(
                    (
                        edge_penalty,
                        np.array(
                            [
                                config.edge_penalty_weight
                                * radius
                                / (min_distance_to_polygon_edges(p, region) + 1.0)
                                for p in pool.points[before:]
                            ],
                            dtype=np.float64,
                        ),
                    )
                )
                overlap = np.concatenate((overlap, _overlap_of(new_xy, placed, radius)))
            logger.debug(
                "Reseed after %d placements: %d seeds added, %d uncovered",
                len(placed),
                added,
                n_uncovered,
            )

    pruned = 0
    if config.prune_redundant and stop == StopReason.CONVERGED:
        kept = prune_redundant(samples, placed, radius, tolerance)
        pruned = len(placed) - len(kept)
        placed = kept

    if config.post_filter_spacing:
        min_spacing = min_center_spacing(radius, config.spacing_factor)
        placed = filter_by_spacing(placed, spacing_threshold(radius, min_spacing))

    return Selection(
        positions=tuple(placed),
        stop_reason=stop,
        hard_cap=cap,
        candidate_count=candidate_count,
        iterations=iterations,
        stagnation_events=stagnation_events,
        reseed_events=reseed_events,
        seeds_added=seeds_added,
        unplaceable_seeds=unplaceable,
        pruned=pruned,
    )


def _overlap_of(
    xy: NDArray[np.float64], placed: Sequence[Point], radius: float
) -> NDArray[np.float64]:
    out = np.zeros(xy.shape[0], dtype=np.float64)
    for p in placed:
        d = np.hypot(xy[:, 0] - p.x, xy[:, 1] - p.y)
        out += np.maximum(0.0, OVERLAP_REACH_FACTOR * radius - d)
    return out


def _reseed(
    samples: NDArray[np.float64],
    uncovered: NDArray[np.bool_],
    region: Polygon,
    exclusions: Sequence[Polygon],
    radius: float,
    config: PlacementConfig,
    pool: _Candidates,
    deadline: _Deadline,
) -> int:
    """Seed relaxed centroids of the largest uncovered clusters.

    Returns the number of centroids that could not be placed. Nothing is
    seeded once deadline has expired.
    """
    if deadline.expired():
        return 0
    remaining = samples[uncovered]
    clusters = cluster_points(remaining, radius * config.cluster_radius_factor)
    # sorted() is stable: equal-sized clusters keep their index order
    largest = sorted(clusters, key=lambda c: -c.size)[: config.reseed_count]
    unplaceable = 0
    for cluster in largest:
        if deadline.expired():
            break
        cx, cy = remaining[cluster].mean(axis=0)
        relaxed = find_nearest_allowed_placement(
            Point(x=float(cx), y=float(cy)), region, exclusions, radius, config
        )
        if relaxed is None:
            unplaceable += 1
            continue
        pool.add(relaxed)
    return unplaceable


# ---------------------------------------------------------------------------
# Strategy B: grid seed
# ---------------------------------------------------------------------------
def grid_seed_select(
    samples: NDArray[np.float64],
    region: Polygon,
    exclusions: Sequence[Polygon],
    radius: float,
    config: PlacementConfig,
    *,
    area: float,
) -> Selection:
    """Relaxed seed lattice, maximum-gain greedy under the spacing rule."""
    exclusions = active_exclusions(exclusions)
    total = int(samples.shape[0])
    tolerance = config.tolerance_count(total)
    cap = dynamic_placement_cap(area, radius, config)
    deadline = _Deadline(config.time_budget_s)
    min_spacing = min_center_spacing(radius, config.spacing_factor)
    threshold = spacing_threshold(radius, min_spacing)

    pool = _Candidates(samples, radius)
    raw = _lattice(region, min_spacing, config.seed_lattice, config.max_candidates)
    unplaceable = relax_candidates(raw, region, exclusions, radius, config, pool, deadline)
    logger.debug(
        "Grid seed: %d seeds at spacing %.3f (%d unplaceable), cap %d",
        len(pool),
        min_spacing,
        unplaceable,
        cap,
    )

    uncovered = np.ones(total, dtype=bool)
    n_uncovered = total
    xy = pool.xy()
    alive = np.ones(len(pool), dtype=bool)
    gains = np.array([m.size for m in pool.members], dtype=np.float64)

    placed: list[Point] = []
    iterations = rejections = 0
    stop = StopReason.EMPTY if total == 0 else StopReason.CANDIDATES_EXHAUSTED

    while total > 0:
        if n_uncovered <= tolerance:
            stop = StopReason.CONVERGED
            break
        if len(placed) >= cap:
            stop = _cap_reason(cap, config)
            break
        if iterations >= config.max_iterations:
            stop = StopReason.ITERATION_BUDGET
            break
        if deadline.expired():
            stop = StopReason.TIME_BUDGET
            break
        if not alive.any():
            stop = StopReason.CANDIDATES_EXHAUSTED
            break

        iterations += 1
        best = int(np.argmax(np.where(alive, gains, -1.0)))
        if gains[best] < 1:
            stop = StopReason.CANDIDATES_EXHAUSTED
            break
        alive[best] = False

        seed = pool.points[best]
        if not is_spacing_allowed(seed, placed, threshold):
            rejections += 1
            continue

        placed.append(seed)
        m = pool.members[best]
        newly = m[uncovered[m]]
        uncovered[newly] = False
        n_uncovered -= int(newly.size)

        d = np.hypot(xy[:, 0] - seed.x, xy[:, 1] - seed.y)
        for j in np.flatnonzero(alive & (d <= NEIGHBOUR_REACH_FACTOR * radius)):
            gains[j] = np.count_nonzero(uncovered[pool.members[j]])

    return Selection(
        positions=tuple(placed),
        stop_reason=stop,
        hard_cap=cap,
        candidate_count=len(pool),
        iterations=iterations,
        unplaceable_seeds=unplaceable,
        spacing_rejections=rejections,
    )
