"""Pure state transitions for the garden collection.

``reduce(state, action)`` is the only function that derives a new garden
collection from an old one. ``GardenStore`` feeds it an action, persists the
resulting state and then keeps that same state object as its read cache.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Union

from src.core.errors import GardenNotFound
from src.core.models import (
    Garden,
    GardenDimensions,
    GardenZone,
    PlacementDraft,
    PlantPosition,
    ScaleReference,
    ViewTime,
)


@dataclass(frozen=True)
class GardenState:
    """Snapshot of every garden plus the current-garden pointer."""

    gardens: tuple[Garden, ...] = ()
    current_garden_id: str | None = None

    @property
    def current_garden(self) -> Garden | None:
        if self.current_garden_id is None:
            return None
        return self.find(self.current_garden_id)

    def find(self, garden_id: str) -> Garden | None:
        for garden in self.gardens:
            if garden.id == garden_id:
                return garden
        return None

    def require(self, garden_id: str) -> Garden:
        garden = self.find(garden_id)
        if garden is None:
            raise GardenNotFound(garden_id)
        return garden


@dataclass(frozen=True)
class LoadGardens:
    gardens: tuple[Garden, ...]
    current_garden_id: str | None


@dataclass(frozen=True)
class CreateGarden:
    garden: Garden


@dataclass(frozen=True)
class SaveGarden:
    """Full-record upsert by id."""

    garden: Garden
    timestamp: str


@dataclass(frozen=True)
class DeleteGarden:
    garden_id: str


@dataclass(frozen=True)
class SetCurrentGarden:
    garden_id: str | None


@dataclass(frozen=True)
class AddPlant:
    garden_id: str
    position_id: str
    draft: PlacementDraft
    timestamp: str


@dataclass(frozen=True)
class UpsertPlant:
    garden_id: str
    position: PlantPosition
    timestamp: str


@dataclass(frozen=True)
class RemovePlant:
    garden_id: str
    position_id: str
    timestamp: str


@dataclass(frozen=True)
class SetScaleReference:
    garden_id: str
    scale_reference: ScaleReference
    timestamp: str


@dataclass(frozen=True)
class SetViewTime:
    garden_id: str
    view_time: ViewTime
    timestamp: str


@dataclass(frozen=True)
class SetDimensions:
    garden_id: str
    dimensions: GardenDimensions
    timestamp: str


@dataclass(frozen=True)
class SetZones:
    garden_id: str
    zones: tuple[GardenZone, ...] | None
    timestamp: str


GardenAction = Union[
    LoadGardens,
    CreateGarden,
    SaveGarden,
    DeleteGarden,
    SetCurrentGarden,
    AddPlant,
    UpsertPlant,
    RemovePlant,
    SetScaleReference,
    SetViewTime,
    SetDimensions,
    SetZones,
]


def _replace_garden(state: GardenState, garden: Garden) -> GardenState:
    gardens = tuple(garden if item.id == garden.id else item for item in state.gardens)
    return replace(state, gardens=gardens)


def _apply_to_garden(state: GardenState, action: GardenAction) -> Garden:
    """Return the updated record for a single-garden mutation."""
    garden = state.require(action.garden_id)
    if isinstance(action, AddPlant):
        position = PlantPosition.from_draft(
            action.draft, action.position_id, garden.next_z_index()
        )
        return replace(garden, plants=garden.plants + (position,), updated_at=action.timestamp)
    if isinstance(action, UpsertPlant):
        if garden.find_position(action.position.id) is None:
            plants = garden.plants + (action.position,)
        else:
            plants = tuple(
                action.position if item.id == action.position.id else item
                for item in garden.plants
            )
        return replace(garden, plants=plants, updated_at=action.timestamp)
    if isinstance(action, RemovePlant):
        plants = tuple(item for item in garden.plants if item.id != action.position_id)
        return replace(garden, plants=plants, updated_at=action.timestamp)
    if isinstance(action, SetScaleReference):
        return replace(
            garden, scale_reference=action.scale_reference, updated_at=action.timestamp
        )
    if isinstance(action, SetViewTime):
        return replace(garden, view_time=action.view_time, updated_at=action.timestamp)
    if isinstance(action, SetDimensions):
        return replace(garden, dimensions=action.dimensions, updated_at=action.timestamp)
    if isinstance(action, SetZones):
        return replace(garden, zones=action.zones, updated_at=action.timestamp)
    raise TypeError(f"unsupported garden action: {type(action).__name__}")


def reduce(state: GardenState, action: GardenAction) -> GardenState:
    """Apply one action and return the new state.

    Parameters
    ----------
    state : GardenState
        Current snapshot; never modified.
    action : GardenAction
        Action to apply.

    Returns
    -------
    GardenState
        New snapshot.

    Raises
    ------
    GardenNotFound
        Raised when a single-garden action targets an unknown id.
    """
    if isinstance(action, LoadGardens):
        return GardenState(gardens=action.gardens, current_garden_id=action.current_garden_id)
    if isinstance(action, CreateGarden):
        return GardenState(
            gardens=state.gardens + (action.garden,),
            current_garden_id=action.garden.id,
        )
    if isinstance(action, SaveGarden):
        garden = replace(action.garden, updated_at=action.timestamp)
        if state.find(garden.id) is None:
            return replace(state, gardens=state.gardens + (garden,))
        return _replace_garden(state, garden)
    if isinstance(action, DeleteGarden):
        gardens = tuple(item for item in state.gardens if item.id != action.garden_id)
        current_id = state.current_garden_id
        if current_id == action.garden_id:
            current_id = None
        return GardenState(gardens=gardens, current_garden_id=current_id)
    if isinstance(action, SetCurrentGarden):
        return replace(state, current_garden_id=action.garden_id)
    return _replace_garden(state, _apply_to_garden(state, action))
