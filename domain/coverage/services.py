"""Coverage Bounded Context - Domain Services (Coverage Sampler).

Discretises a region into interior sample points and measures how many of
them a set of coverage disks reaches. Samples are the ground truth for
"percent covered"; no exact disk/polygon integration is attempted.

Pure domain logic, numpy-vectorised where the sample count makes it matter.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Iterable, Sequence

import numpy as np
from numpy.typing import NDArray

from domain.coverage.value_objects import Lattice, SampleGrid
from domain.geometry.services import points_in_polygon
from domain.geometry.value_objects import Bounds, Point, Polygon

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------
GRID_CELL_FACTOR = 1.0 / 3.0  # square lattice: cell = radius / 3
HEX_CELL_FACTOR = 0.5  # staggered lattice packs better: cell = radius / 2
DEFAULT_MIN_CELL_SIZE = 1e-3
DEFAULT_MAX_SAMPLES = 60_000
ROW_FACTOR_HEX = math.sqrt(3.0) / 2.0
_LATTICE_EPS = 1e-9


# ---------------------------------------------------------------------------
# Lattices
# ---------------------------------------------------------------------------
def _row_step(spacing: float, lattice: Lattice) -> float:
    return spacing * ROW_FACTOR_HEX if lattice == Lattice.HEX else spacing


def _axis_values(start: float, stop: float, step: float) -> NDArray[np.float64]:
    if start > stop + _LATTICE_EPS:
        return np.empty(0, dtype=np.float64)
    count = int(math.floor((stop - start) / step + _LATTICE_EPS)) + 1
    return start + step * np.arange(count, dtype=np.float64)


def lattice_points(
    bounds: Bounds,
    spacing: float,
    lattice: Lattice = Lattice.GRID,
    *,
    offset: float = 0.5,
) -> NDArray[np.float64]:
    """Lattice points covering a bounding box, as an (n, 2) array.

    The first row and column sit `offset * step` inside the box (0.5 gives
    cell centres). HEX rows are spaced spacing * sqrt(3) / 2 apart and every
    odd row is shifted right by half a cell.

    Raises:
        ValueError: If spacing is not positive.
    """
    if not spacing > 0:
        raise ValueError(f"spacing must be positive, got {spacing}")
    row_step = _row_step(spacing, lattice)
    ys = _axis_values(bounds.min_y + row_step * offset, bounds.max_y, row_step)
    rows: list[NDArray[np.float64]] = []
    for row, y in enumerate(ys):
        shift = spacing * 0.5 if lattice == Lattice.HEX and row % 2 == 1 else 0.0
        xs = _axis_values(bounds.min_x + spacing * offset + shift, bounds.max_x, spacing)
        if xs.size:
            rows.append(np.column_stack((xs, np.full(xs.shape, y))))
    if not rows:
        return np.empty((0, 2), dtype=np.float64)
    return np.vstack(rows)


def bounded_spacing(
    bounds: Bounds,
    spacing: float,
    max_points: int,
    lattice: Lattice = Lattice.GRID,
) -> float:
    """Lattice spacing over bounds, widened until at most max_points fit.

    Returns spacing unchanged when the estimated lattice is small enough.
    """
    row_factor = ROW_FACTOR_HEX if lattice == Lattice.HEX else 1.0

    def estimate(step: float) -> int:
        cols = math.floor(bounds.width / step) + 1
        rows = math.floor(bounds.height / (step * row_factor)) + 1
        return cols * rows

    grown = spacing
    estimated = estimate(grown)
    while estimated > max_points:
        # Area-proportional widening; thin boxes scale linearly and need more passes
        grown *= math.sqrt(estimated / max_points) * 1.05
        estimated = estimate(grown)
    if grown != spacing:
        logger.debug(
            "Lattice spacing widened from %.4f to %.4f (%d lattice points > %d)",
            spacing,
            grown,
            estimate(spacing),
            max_points,
        )
    return grown


def derive_cell_size(
    radius: float,
    lattice: Lattice = Lattice.GRID,
    bounds: Bounds | None = None,
    *,
    min_cell_size: float = DEFAULT_MIN_CELL_SIZE,
    max_samples: int = DEFAULT_MAX_SAMPLES,
) -> float:
    """Sample cell size for a coverage radius.

    radius / 3 on a square lattice, radius / 2 on a staggered one, never below
    min_cell_size. When bounds are given the cell is widened until the lattice
    over the bounding box stays within max_samples points.
    """
    factor = HEX_CELL_FACTOR if lattice == Lattice.HEX else GRID_CELL_FACTOR
    cell = max(radius * factor, min_cell_size)
    if bounds is None:
        return cell
    return bounded_spacing(bounds, cell, max_samples, lattice)


# ---------------------------------------------------------------------------
# Sampler
# ---------------------------------------------------------------------------
def build_grid(
    region: Polygon,
    exclusions: Iterable[Polygon],
    cell_size: float,
    lattice: Lattice = Lattice.GRID,
) -> NDArray[np.float64]:
    """Cell centres inside region and outside every exclusion.

    Exclusions with fewer than 3 vertices are ignored. Returns an (n, 2)
    array, empty for degenerate regions.
    """
    if region.is_degenerate:
        return np.empty((0, 2), dtype=np.float64)
    pts = lattice_points(region.bounds(), cell_size, lattice)
    if pts.size == 0:
        return pts
    xs = pts[:, 0]
    ys = pts[:, 1]
    keep = points_in_polygon(xs, ys, region)
    for ex in exclusions:
        if len(ex) >= 3:
            keep &= ~points_in_polygon(xs, ys, ex)
    return pts[keep]


def build_sample_grid(
    region: Polygon,
    exclusions: Sequence[Polygon],
    radius: float,
    *,
    lattice: Lattice = Lattice.GRID,
    min_cell_size: float = DEFAULT_MIN_CELL_SIZE,
    max_samples: int = DEFAULT_MAX_SAMPLES,
) -> SampleGrid:
    """Derive the cell size from the radius and build the SampleGrid."""
    bounds = None if region.is_degenerate else region.bounds()
    cell = derive_cell_size(
        radius,
        lattice,
        bounds,
        min_cell_size=min_cell_size,
        max_samples=max_samples,
    )
    points = build_grid(region, exclusions, cell, lattice)
    logger.debug("Sample grid: %d samples at cell %.4f (%s)", len(points), cell, lattice.value)
    return SampleGrid(points=points, cell_size=cell, lattice=lattice)


# ---------------------------------------------------------------------------
# Coverage measurement
# ---------------------------------------------------------------------------
def _positions_array(positions: Iterable[Point]) -> NDArray[np.float64]:
    coords = [p.as_tuple() for p in positions]
    if not coords:
        return np.empty((0, 2), dtype=np.float64)
    return np.array(coords, dtype=np.float64)


def covered_mask(
    samples: NDArray[np.float64], positions: Iterable[Point], radius: float
) -> NDArray[np.bool_]:
    """Boolean mask of samples within radius (inclusive) of any position."""
    mask = np.zeros(samples.shape[0], dtype=bool)
    r2 = radius * radius
    for cx, cy in _positions_array(positions):
        dx = samples[:, 0] - cx
        dy = samples[:, 1] - cy
        mask |= dx * dx + dy * dy <= r2
    return mask


def measure_coverage(
    samples: NDArray[np.float64], positions: Iterable[Point], radius: float
) -> tuple[float, int]:
    """Return (coverage percent, uncovered sample count).

    An empty sample set reports 0 % with nothing uncovered.
    """
    total = int(samples.shape[0])
    if total == 0:
        return (0.0, 0)
    uncovered = total - int(np.count_nonzero(covered_mask(samples, positions, radius)))
    return ((total - uncovered) / total * 100.0, uncovered)


def theoretical_minimum(area: float, radius: float, packing_efficiency: float) -> float:
    """Disk count a perfect packing at the given efficiency would need."""
    if area <= 0 or radius <= 0 or packing_efficiency <= 0:
        return 0.0
    return area / (math.pi * radius * radius * packing_efficiency)


# ---------------------------------------------------------------------------
# Spatial index over samples
# ---------------------------------------------------------------------------
class SampleIndex:
    """Bucket grid over sample points for fixed-radius neighbour queries.

    Buckets are `cell` wide; a query of radius <= cell only needs the 3x3
    block of buckets around the query point. Results are sorted indices, so
    iteration order never depends on dict layout.
    """

    def __init__(self, points: NDArray[np.float64], cell: float) -> None:
        if not cell > 0:
            raise ValueError(f"cell must be positive, got {cell}")
        self.points = points
        self.cell = cell
        self._buckets: dict[tuple[int, int], NDArray[np.intp]] = {}
        if points.shape[0] == 0:
            return
        keys = np.floor(points / cell).astype(np.int64)
        order = np.lexsort((keys[:, 1], keys[:, 0]))
        sorted_keys = keys[order]
        boundaries = np.flatnonzero(np.any(np.diff(sorted_keys, axis=0) != 0, axis=1)) + 1
        for chunk in np.split(order, boundaries):
            kx, ky = keys[chunk[0]]
            self._buckets[(int(kx), int(ky))] = np.sort(chunk)

    def within(self, x: float, y: float, radius: float) -> NDArray[np.intp]:
        """Indices of points within radius (inclusive) of (x, y)."""
        reach = max(1, int(math.ceil(radius / self.cell)))
        kx = int(math.floor(x / self.cell))
        ky = int(math.floor(y / self.cell))
        parts = [
            self._buckets[key]
            for key in (
                (kx + i, ky + j)
                for i in range(-reach, reach + 1)
                for j in range(-reach, reach + 1)
            )
            if key in self._buckets
        ]
        if not parts:
            return np.empty(0, dtype=np.intp)
        idx = np.concatenate(parts)
        d = self.points[idx] - (x, y)
        hit = idx[np.einsum("ij,ij->i", d, d) <= radius * radius]
        return np.sort(hit)


def cluster_points(
    points: NDArray[np.float64], link_radius: float
) -> list[NDArray[np.intp]]:
    """Single-linkage connectivity clusters.

    Two points are connected when they are within link_radius of each other;
    a cluster is a connected component. Points are first bucketed into cells
    of link_radius / sqrt(2), so every point in a cell is linked to every
    other one, and the connectivity search runs over occupied cells.

    Clusters are returned in order of their lowest point index, each as a
    sorted index array.
    """
    n = int(points.shape[0])
    if n == 0:
        return []
    if not link_radius > 0:
        raise ValueError(f"link_radius must be positive, got {link_radius}")
    cell = link_radius / math.sqrt(2.0)
    keys = np.floor(points / cell).astype(np.int64)
    cells: dict[tuple[int, int], list[int]] = {}
    for i, (kx, ky) in enumerate(keys.tolist()):
        cells.setdefault((kx, ky), []).append(i)
    members = {key: np.array(idx, dtype=np.intp) for key, idx in cells.items()}

    r2 = link_radius * link_radius
    reach = 2  # a link of length link_radius spans at most 2 cells per axis
    seen: set[tuple[int, int]] = set()
    clusters: list[NDArray[np.intp]] = []
    # dict preserves insertion order: cells are visited by lowest point index
    for start in cells:
        if start in seen:
            continue
        seen.add(start)
        stack = [start]
        component: list[NDArray[np.intp]] = []
        while stack:
            key = stack.pop()
            component.append(members[key])
            here = points[members[key]]
            for dx in range(-reach, reach + 1):
                for dy in range(-reach, reach + 1):
                    other = (key[0] + dx, key[1] + dy)
                    if other in seen or other not in members:
                        continue
                    there = points[members[other]]
                    diff = here[:, None, :] - there[None, :, :]
                    if np.min(np.einsum("ijk,ijk->ij", diff, diff)) <= r2:
                        seen.add(other)
                        stack.append(other)
        clusters.append(np.sort(np.concatenate(component)))
    return clusters
