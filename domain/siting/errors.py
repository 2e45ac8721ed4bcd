"""Siting Bounded Context - Error Hierarchy.

Custom exceptions for placement operations.

Malformed geometry never raises: degenerate or fully excluded regions,
unplaceable seeds and exhausted budgets are reported on the PlacementTrace
as PlacementIssue values. Only caller misuse (bad configuration) and
unreadable floor-plan documents are exceptions.
"""

from __future__ import annotations


class SitingError(Exception):
    """Base error for siting operations."""


class InvalidConfigError(SitingError, ValueError):
    """Placement configuration or radius is unusable.

    Raised at the API boundary before any computation begins.
    """


# ---------------------------------------------------------------------------
# Floor plan documents
# ---------------------------------------------------------------------------
class FloorPlanError(SitingError):
    """Base error for floor-plan loading."""


class InvalidFloorPlanError(FloorPlanError):
    """Document is not a valid floor plan, wrong format, or corrupted."""


class FloorPlanTooLargeError(FloorPlanError):
    """Document is larger than the configured size budget."""

    pass
