"""Geometry Bounded Context - Value Objects.

Immutable planar primitives used by every other context. Coordinates are
unit-agnostic (pixels or meters); callers convert before handing geometry
to the domain.

All validation occurs at construction time via Pydantic.
"""

from __future__ import annotations

import math
from collections.abc import Iterable, Mapping, Sequence
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator


# ---------------------------------------------------------------------------
# Point
# ---------------------------------------------------------------------------
class Point(BaseModel):
    """Plane coordinate (Value Object).

    Invariants:
        x and y are finite floats.

    Pydantic frozen models compare by value, so Point(x=1, y=2) == Point(x=1, y=2).
    """

    x: float = Field(allow_inf_nan=False)
    y: float = Field(allow_inf_nan=False)

    model_config = ConfigDict(frozen=True)

    @classmethod
    def coerce(cls, value: Any) -> "Point":
        """Build a Point from a Point, an (x, y) pair or an {"x", "y"} mapping."""
        if isinstance(value, Point):
            return value
        if isinstance(value, Mapping):
            return cls(x=value["x"], y=value["y"])
        x, y = value
        return cls(x=x, y=y)

    def distance_to(self, other: "Point") -> float:
        return math.hypot(self.x - other.x, self.y - other.y)

    def moved(self, dx: float, dy: float) -> "Point":
        """Return a new Point offset by (dx, dy)."""
        return Point(x=self.x + dx, y=self.y + dy)

    def toward(self, target: "Point", fraction: float) -> "Point":
        """Return the point `fraction` of the way from self to target."""
        return Point(
            x=self.x + (target.x - self.x) * fraction,
            y=self.y + (target.y - self.y) * fraction,
        )

    def as_tuple(self) -> tuple[float, float]:
        return (self.x, self.y)


# ---------------------------------------------------------------------------
# Bounds
# ---------------------------------------------------------------------------
class Bounds(BaseModel):
    """Axis-aligned bounding box (Value Object).

    Degenerate boxes (zero width or height) are allowed - a collinear
    polygon still has bounds.
    """

    min_x: float
    min_y: float
    max_x: float
    max_y: float

    model_config = ConfigDict(frozen=True)

    @model_validator(mode="after")
    def validate_ordering(self) -> "Bounds":
        if self.min_x > self.max_x:
            raise ValueError(
                f"Invalid x ordering: min_x={self.min_x} > max_x={self.max_x}"
            )
        if self.min_y > self.max_y:
            raise ValueError(
                f"Invalid y ordering: min_y={self.min_y} > max_y={self.max_y}"
            )
        return self

    @property
    def width(self) -> float:
        return self.max_x - self.min_x

    @property
    def height(self) -> float:
        return self.max_y - self.min_y


# ---------------------------------------------------------------------------
# Polygon
# ---------------------------------------------------------------------------
class Polygon(BaseModel):
    """Ordered, implicitly closed ring of vertices (Value Object).

    The last vertex connects back to the first; do not repeat the first
    vertex at the end. No convexity is required. Self-intersecting rings
    produce undefined area and containment results.

    Fewer than 3 vertices is representable on purpose: the kernel answers
    for degenerate input (containment False, area 0) instead of refusing it.
    """

    vertices: tuple[Point, ...]

    model_config = ConfigDict(frozen=True)

    @classmethod
    def of(cls, points: Iterable[Any]) -> "Polygon":
        """Build a Polygon from Points, (x, y) pairs or {"x", "y"} mappings."""
        return cls(vertices=tuple(Point.coerce(p) for p in points))

    @classmethod
    def coerce(cls, value: Any) -> "Polygon":
        if isinstance(value, Polygon):
            return value
        return cls.of(value)

    def __len__(self) -> int:
        return len(self.vertices)

    @property
    def is_degenerate(self) -> bool:
        """True when the ring cannot enclose an area (< 3 vertices)."""
        return len(self.vertices) < 3

    def edges(self) -> list[tuple[Point, Point]]:
        """Return (start, end) pairs, including the closing edge."""
        n = len(self.vertices)
        if n < 2:
            return []
        return [(self.vertices[i], self.vertices[(i + 1) % n]) for i in range(n)]

    def bounds(self) -> Bounds:
        if not self.vertices:
            raise ValueError("Empty polygon has no bounds")
        xs = [p.x for p in self.vertices]
        ys = [p.y for p in self.vertices]
        return Bounds(min_x=min(xs), min_y=min(ys), max_x=max(xs), max_y=max(ys))

    def rotated(self, k: int) -> "Polygon":
        """Same ring, traversal starting at vertex k."""
        if not self.vertices:
            return self
        k %= len(self.vertices)
        return Polygon(vertices=self.vertices[k:] + self.vertices[:k])

    def reversed(self) -> "Polygon":
        """Same ring, opposite traversal direction."""
        return Polygon(vertices=tuple(reversed(self.vertices)))

    def coords(self) -> list[tuple[float, float]]:
        return [p.as_tuple() for p in self.vertices]


def as_polygons(values: Sequence[Any] | None) -> tuple[Polygon, ...]:
    """Coerce a sequence of polygon-like values into Polygons."""
    if not values:
        return ()
    return tuple(Polygon.coerce(v) for v in values)


# ---------------------------------------------------------------------------
# Kernel results
# ---------------------------------------------------------------------------
class EdgeInfo(BaseModel):
    """Closest-edge query result (Value Object).

    outward_normal is a unit vector pointing out of the polygon interior at
    the closest edge point.
    """

    distance: float = Field(ge=0)
    closest: Point
    outward_normal: tuple[float, float]

    model_config = ConfigDict(frozen=True)


class AxisClearances(BaseModel):
    """Distances to the first boundary crossing along +X, -X, +Y, -Y.

    A direction with no crossing is reported as math.inf.
    """

    pos_x: float = math.inf
    neg_x: float = math.inf
    pos_y: float = math.inf
    neg_y: float = math.inf

    model_config = ConfigDict(frozen=True)

    def width_x(self) -> float:
        return self.pos_x + self.neg_x

    def width_y(self) -> float:
        return self.pos_y + self.neg_y
