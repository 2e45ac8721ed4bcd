"""JSON adapter for FloorPlanRepository.

Loads coverage areas and exclusion zones drawn over a floor plan from a JSON
document and returns a domain FloorPlan Value Object.

Document shape::

    {
      "name": "Level 2",
      "meters_per_unit": 0.05,
      "areas": [[[0, 0], [400, 0], [400, 300], [0, 300]]],
      "exclusions": [[{"x": 100, "y": 100}, {"x": 140, "y": 100}, ...]]
    }

Points may be [x, y] pairs or {"x": ..., "y": ...} objects. "name" defaults
to the file stem, "exclusions" and "meters_per_unit" are optional.

Lifecycle:
1) Check existence, extension, symlink, emptiness and size budget
2) Read UTF-8 text
3) Parse and validate with the pydantic document model
4) Convert to domain Polygons and return FloorPlan
"""

from __future__ import annotations

import logging
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from domain.geometry.value_objects import Point, Polygon
from domain.siting.errors import FloorPlanTooLargeError, InvalidFloorPlanError
from domain.siting.value_objects import FloorPlan

# Module-level logger (reused across all calls)
logger = logging.getLogger(__name__)

DEFAULT_MAX_BYTES = 16 * 1024 * 1024

PointLike = Point | tuple[float, float]


class _FloorPlanDocument(BaseModel):
    """On-disk representation; converted to FloorPlan after validation."""

    name: str | None = None
    meters_per_unit: float | None = Field(default=None, gt=0, allow_inf_nan=False)
    areas: list[list[PointLike]]
    exclusions: list[list[PointLike]] = []

    model_config = ConfigDict(extra="ignore")

    def to_floor_plan(self, default_name: str) -> FloorPlan:
        return FloorPlan(
            name=self.name if self.name is not None else default_name,
            areas=tuple(Polygon.of(ring) for ring in self.areas),
            exclusions=tuple(Polygon.of(ring) for ring in self.exclusions),
            meters_per_unit=self.meters_per_unit,
        )


class JsonFloorPlanAdapter:
    """Infrastructure adapter for loading floor plans from JSON files.

    Parameters
    ----------
    max_bytes: int | None
        Optional size budget for the document. Larger files raise
        FloorPlanTooLargeError before being read.
    """

    def __init__(self, max_bytes: int | None = DEFAULT_MAX_BYTES) -> None:
        self.max_bytes = max_bytes

    def load_floor_plan(self, file_path: Path | str) -> FloorPlan:
        """Load a floor plan document and return a FloorPlan.

        Raises:
            FileNotFoundError: If the file does not exist
            InvalidFloorPlanError: Wrong extension, symlink, empty file,
                malformed JSON or a document failing validation
            FloorPlanTooLargeError: If the file exceeds max_bytes
        """
        path = Path(file_path)

        # Missing files surface as FileNotFoundError, not a domain error
        if not path.exists():
            raise FileNotFoundError(str(path))

        if path.suffix.lower() != ".json":
            raise InvalidFloorPlanError(f"Unsupported file extension: {path.suffix}")

        try:
            if path.is_symlink():
                raise InvalidFloorPlanError("Symlinks are not permitted")
            st = path.stat()
            if st.st_size == 0:
                raise InvalidFloorPlanError("Empty file")
            if self.max_bytes is not None and st.st_size > self.max_bytes:
                raise FloorPlanTooLargeError(
                    f"File size {st.st_size}B exceeds budget {self.max_bytes}B"
                )
        except OSError as e:
            # Log only filename, errno and strerror; never the absolute path
            logger.error(
                "Failed to stat %s (errno=%s, strerror=%s)",
                path.name,
                getattr(e, "errno", "unknown"),
                getattr(e, "strerror", "unknown"),
            )
            raise

        try:
            raw = path.read_text(encoding="utf-8")
        except PermissionError as e:
            # Re-raise with filename only to avoid leaking full path in logs
            raise PermissionError(path.name) from e
        except UnicodeDecodeError as e:
            raise InvalidFloorPlanError("File is not UTF-8 text") from e

        try:
            document = _FloorPlanDocument.model_validate_json(raw)
            plan = document.to_floor_plan(default_name=path.stem)
        except ValidationError as e:
            raise InvalidFloorPlanError(
                f"Invalid floor plan document ({e.error_count()} errors): {e}"
            ) from e

        for i, area in enumerate(plan.areas):
            if area.is_degenerate:
                logger.warning(
                    "Floor plan %s: area %d has %d vertices (needs 3)",
                    path.name,
                    i,
                    len(area),
                )
        if plan.meters_per_unit is None:
            logger.info("Floor plan %s: no scale, radii must be in plan units", path.name)
        logger.debug(
            "Floor plan %s: loaded %d areas, %d exclusions",
            path.name,
            len(plan.areas),
            len(plan.exclusions),
        )
        return plan
