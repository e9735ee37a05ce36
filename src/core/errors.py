"""Error hierarchy for garden planning operations."""

from __future__ import annotations


class GardenPlannerError(Exception):
    """Base class for all garden planner errors."""


class GardenNotFound(GardenPlannerError, LookupError):
    """Raised when an operation targets a garden id that does not exist."""

    def __init__(self, garden_id: str) -> None:
        super().__init__(f"Garden with ID {garden_id} not found")
        self.garden_id = garden_id


class InvalidScaleReference(GardenPlannerError, ValueError):
    """Raised when calibration inputs are non-positive or non-finite."""


class StorageFailure(GardenPlannerError):
    """Raised when the durable storage adapter fails to read or write."""


class DanglingPlantReference(GardenPlannerError, LookupError):
    """Raised when a ``plantId`` has no matching catalog entry.

    Consumers iterating a whole garden should skip the offending position
    rather than abort; see ``src.utils.garden_io.resolve_placed_plants``.
    """

    def __init__(self, plant_id: str) -> None:
        super().__init__(f"Plant with ID {plant_id} not found in catalog")
        self.plant_id = plant_id


class CalibrationRequired(GardenPlannerError):
    """Raised when placing plants on a garden that has no scale reference."""

    def __init__(self, garden_id: str) -> None:
        super().__init__(f"Garden {garden_id} must be calibrated before placing plants")
        self.garden_id = garden_id
