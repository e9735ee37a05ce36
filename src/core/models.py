"""Garden record entities and their durable dictionary shapes.

Every entity is a frozen dataclass. Mutations produce new instances through
``dataclasses.replace`` so a garden handed out by the store can never drift
from what was persisted.

Durable records keep the camelCase field names of the stored JSON
(``plantId``, ``zIndex``, ``scaleReference`` ...); ``to_dict`` and
``from_dict`` are the only places that know about that spelling.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping

from shapely.geometry import Polygon


class ViewTime(str, Enum):
    """Growth-stage tag selecting which catalog dimensions are displayed."""

    CURRENT = "current"
    YEAR3 = "year3"
    YEAR5 = "year5"
    MATURE = "mature"


class SunExposure(str, Enum):
    """Light level of a garden zone or plant preference."""

    FULL_SUN = "full-sun"
    PARTIAL_SUN = "partial-sun"
    SHADE = "shade"


@dataclass(frozen=True)
class GardenDimensions:
    """Real-world extent of the photographed area.

    Parameters
    ----------
    width : float
        Width in feet.
    height : float
        Height in feet.
    """

    width: float
    height: float

    def to_dict(self) -> dict[str, float]:
        return {"width": self.width, "height": self.height}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> GardenDimensions:
        return cls(width=float(data["width"]), height=float(data["height"]))


@dataclass(frozen=True)
class ScaleReference:
    """Calibration result for one garden photo.

    Parameters
    ----------
    pixel_width : float
        Measured width of the reference object on the image, in pixels.
    real_width : float
        Known width of the reference object, in inches.
    pixels_per_inch : float
        ``pixel_width / real_width``. Built by
        ``src.utils.scale.calibration.calibrate``, never edited by hand.
    """

    pixel_width: float
    real_width: float
    pixels_per_inch: float

    def to_dict(self) -> dict[str, float]:
        return {
            "pixelWidth": self.pixel_width,
            "realWidth": self.real_width,
            "pixelsPerInch": self.pixels_per_inch,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> ScaleReference:
        pixel_width = float(data["pixelWidth"])
        real_width = float(data["realWidth"])
        pixels_per_inch = data.get("pixelsPerInch")
        if pixels_per_inch is None:
            pixels_per_inch = pixel_width / real_width
        return cls(
            pixel_width=pixel_width,
            real_width=real_width,
            pixels_per_inch=float(pixels_per_inch),
        )


@dataclass(frozen=True)
class PlacementDraft:
    """A plant placement that has not been assigned an id or zIndex yet.

    Coordinates follow ``PlantPosition``.
    """

    plant_id: str
    x: float
    y: float
    width: float
    height: float
    rotation: float = 0.0
    scale: float = 1.0


@dataclass(frozen=True)
class PlantPosition:
    """One placed instance of a catalog plant.

    Parameters
    ----------
    id : str
        Unique instance id.
    plant_id : str
        Catalog entry id.
    x, y : float
        Item centre as percentage of canvas width / height, ``[0, 100]``.
    width, height : float
        Item extent as percentage of canvas width / height, derived once at
        placement time.
    rotation : float
        Degrees in ``[0, 359]``.
    scale : float
        User fine-adjustment multiplier in ``[0.5, 1.5]``.
    z_index : int
        Draw and hit-test order, increasing over the garden lifetime.
    """

    id: str
    plant_id: str
    x: float
    y: float
    width: float
    height: float
    rotation: float = 0.0
    scale: float = 1.0
    z_index: int = 1

    @classmethod
    def from_draft(cls, draft: PlacementDraft, position_id: str, z_index: int) -> PlantPosition:
        return cls(
            id=position_id,
            plant_id=draft.plant_id,
            x=draft.x,
            y=draft.y,
            width=draft.width,
            height=draft.height,
            rotation=draft.rotation,
            scale=draft.scale,
            z_index=z_index,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "plantId": self.plant_id,
            "x": self.x,
            "y": self.y,
            "width": self.width,
            "height": self.height,
            "rotation": self.rotation,
            "scale": self.scale,
            "zIndex": self.z_index,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> PlantPosition:
        return cls(
            id=str(data["id"]),
            plant_id=str(data["plantId"]),
            x=float(data["x"]),
            y=float(data["y"]),
            width=float(data["width"]),
            height=float(data["height"]),
            rotation=float(data.get("rotation", 0.0)),
            scale=float(data.get("scale", 1.0)),
            z_index=int(data.get("zIndex", 1)),
        )


@dataclass(frozen=True)
class GardenZone:
    """Named polygonal region of the garden photo.

    Parameters
    ----------
    id : str
        Zone id.
    name : str
        Display name.
    sun_exposure : SunExposure
        Light level inside the zone.
    points : tuple[tuple[float, float], ...]
        Polygon vertices in percentage coordinates.
    soil_type : str | None
        Free-form soil description.

    Raises
    ------
    ValueError
        Raised when ``points`` does not describe a valid polygon.
    """

    id: str
    name: str
    sun_exposure: SunExposure
    points: tuple[tuple[float, float], ...]
    soil_type: str | None = None

    def __post_init__(self) -> None:
        if len(self.points) < 3:
            raise ValueError("zone polygon needs at least 3 points")
        polygon = Polygon(self.points)
        if polygon.is_empty or not polygon.is_valid:
            raise ValueError(f"zone {self.id} polygon is invalid")

    @property
    def polygon(self) -> Polygon:
        """Zone outline in percentage coordinates."""
        return Polygon(self.points)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "sunExposure": self.sun_exposure.value,
            "area": {"points": [{"x": x, "y": y} for x, y in self.points]},
        }
        if self.soil_type is not None:
            data["soilType"] = self.soil_type
        return data

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> GardenZone:
        points = tuple(
            (float(point["x"]), float(point["y"])) for point in data["area"]["points"]
        )
        return cls(
            id=str(data["id"]),
            name=str(data["name"]),
            sun_exposure=SunExposure(data["sunExposure"]),
            points=points,
            soil_type=data.get("soilType"),
        )


@dataclass(frozen=True)
class Garden:
    """One user project: a photo, its calibration and the placed plants."""

    id: str
    name: str
    created_at: str
    updated_at: str
    image_ref: str
    dimensions: GardenDimensions
    plants: tuple[PlantPosition, ...] = field(default_factory=tuple)
    scale_reference: ScaleReference | None = None
    view_time: ViewTime = ViewTime.CURRENT
    zones: tuple[GardenZone, ...] | None = None

    @property
    def is_calibrated(self) -> bool:
        """Whether the garden accepts placements."""
        return self.scale_reference is not None

    def find_position(self, position_id: str) -> PlantPosition | None:
        for position in self.plants:
            if position.id == position_id:
                return position
        return None

    def next_z_index(self) -> int:
        """Return the zIndex for the next added plant (max + 1, or 1)."""
        if not self.plants:
            return 1
        return max(position.z_index for position in self.plants) + 1

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
            "imageRef": self.image_ref,
            "dimensions": self.dimensions.to_dict(),
            "plants": [position.to_dict() for position in self.plants],
            "viewTime": self.view_time.value,
        }
        if self.scale_reference is not None:
            data["scaleReference"] = self.scale_reference.to_dict()
        if self.zones is not None:
            data["zones"] = [zone.to_dict() for zone in self.zones]
        return data

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Garden:
        scale_data = data.get("scaleReference")
        zones_data = data.get("zones")
        return cls(
            id=str(data["id"]),
            name=str(data["name"]),
            created_at=str(data["createdAt"]),
            updated_at=str(data["updatedAt"]),
            image_ref=str(data.get("imageRef", "")),
            dimensions=GardenDimensions.from_dict(data["dimensions"]),
            plants=tuple(PlantPosition.from_dict(item) for item in data.get("plants", [])),
            scale_reference=(
                ScaleReference.from_dict(scale_data) if scale_data is not None else None
            ),
            view_time=ViewTime(data.get("viewTime", ViewTime.CURRENT.value)),
            zones=(
                tuple(GardenZone.from_dict(item) for item in zones_data)
                if zones_data is not None
                else None
            ),
        )
