"""Garden placement state store.

``GardenStore`` owns the garden collection and the current-garden pointer.
It is constructed once and handed to every consumer; nothing else writes the
durable records.

Each mutation follows the same path: derive the new state with
``reduce``, write it through the storage adapter, then keep that state as
the in-process read cache. A failed write raises ``StorageFailure``, leaves
the cache untouched and undoes the writes already made for that change.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Any, Callable, Iterable, Mapping

from loguru import logger

from src.core.models import (
    Garden,
    GardenDimensions,
    GardenZone,
    PlacementDraft,
    PlantPosition,
    ScaleReference,
    ViewTime,
)
from src.core.reducer import (
    AddPlant,
    CreateGarden,
    DeleteGarden,
    GardenAction,
    GardenState,
    LoadGardens,
    RemovePlant,
    SaveGarden,
    SetCurrentGarden,
    SetDimensions,
    SetScaleReference,
    SetViewTime,
    SetZones,
    UpsertPlant,
    reduce,
)
from src.core.errors import StorageFailure
from src.core.storage import GardenStorage
from src.utils.scale.calibration import calibrate


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _new_id() -> str:
    return str(uuid.uuid4())


def _coerce_dimensions(dimensions: GardenDimensions | Mapping[str, Any]) -> GardenDimensions:
    if not isinstance(dimensions, GardenDimensions):
        dimensions = GardenDimensions.from_dict(dimensions)
    if dimensions.width <= 0 or dimensions.height <= 0:
        raise ValueError("garden dimensions must be > 0 feet")
    return dimensions


class GardenStore:
    """Repository of gardens backed by a durable storage adapter.

    Parameters
    ----------
    storage : GardenStorage
        Durable adapter. Its failures propagate as ``StorageFailure``.
    clock : Callable[[], datetime], optional
        Returns the current aware datetime; used for ``createdAt`` and
        ``updatedAt``.
    id_factory : Callable[[], str], optional
        Returns fresh unique ids for gardens and plant positions.

    Examples
    --------
    >>> store = GardenStore(InMemoryStorage())
    >>> garden = store.create_garden("Backyard", "img://1", {"width": 10, "height": 8})
    >>> store.current_garden.id == garden.id
    True
    """

    def __init__(
        self,
        storage: GardenStorage,
        clock: Callable[[], datetime] | None = None,
        id_factory: Callable[[], str] | None = None,
    ) -> None:
        self._storage = storage
        self._clock = clock or _utc_now
        self._id_factory = id_factory or _new_id
        self._state = GardenState()
        self.reload()

    # -- reads ---------------------------------------------------------------

    @property
    def state(self) -> GardenState:
        return self._state

    @property
    def current_garden(self) -> Garden | None:
        return self._state.current_garden

    def reload(self) -> None:
        """Replace the read cache with what the storage adapter holds.

        Raises
        ------
        StorageFailure
            Raised when storage cannot be read or holds malformed records.
        """
        records = self._storage.read_gardens()
        try:
            gardens = tuple(Garden.from_dict(record) for record in records)
        except (AttributeError, KeyError, TypeError, ValueError) as exc:
            message = f"Stored garden record is malformed: {exc!r}"
            logger.error(message)
            raise StorageFailure(message) from exc
        current_id = self._storage.read_current_garden_id()
        self._state = reduce(self._state, LoadGardens(gardens, current_id))
        logger.debug(f"Loaded {len(gardens)} gardens (current={current_id})")

    def get_all_gardens(self) -> list[Garden]:
        return list(self._state.gardens)

    def find_garden(self, garden_id: str) -> Garden | None:
        return self._state.find(garden_id)

    def load_garden(self, garden_id: str) -> Garden:
        """Return one garden.

        Raises
        ------
        GardenNotFound
            Raised when no garden has ``garden_id``.
        """
        return self._state.require(garden_id)

    def get_image(self, garden_id: str) -> str | None:
        """Return the stored image handle for a garden."""
        self._state.require(garden_id)
        return self._storage.read_image(garden_id)

    # -- garden lifecycle ----------------------------------------------------

    def create_garden(
        self,
        name: str,
        image_ref: str,
        dimensions: GardenDimensions | Mapping[str, Any],
    ) -> Garden:
        """Create an empty, uncalibrated garden and make it current."""
        timestamp = self._timestamp()
        garden = Garden(
            id=self._id_factory(),
            name=name,
            created_at=timestamp,
            updated_at=timestamp,
            image_ref=image_ref,
            dimensions=_coerce_dimensions(dimensions),
        )
        self._commit(CreateGarden(garden), write_pointer=True, image=(garden.id, image_ref))
        logger.info(f"Created garden {garden.id} ({name!r})")
        return garden

    def save_garden(self, garden: Garden) -> Garden:
        """Upsert a full garden record by id and bump ``updatedAt``."""
        state = self._commit(SaveGarden(garden, self._timestamp()))
        return state.require(garden.id)

    def delete_garden(self, garden_id: str) -> None:
        """Remove a garden and its image; clear the pointer if it was current."""
        self._state.require(garden_id)
        was_current = self._state.current_garden_id == garden_id
        self._commit(DeleteGarden(garden_id), write_pointer=was_current)
        self._storage.delete_image(garden_id)
        logger.info(f"Deleted garden {garden_id}")

    def set_current_garden(self, garden_id: str | None) -> Garden | None:
        """Point the current-garden record at ``garden_id`` (or clear it)."""
        if garden_id is not None:
            self._state.require(garden_id)
        state = self._commit(
            SetCurrentGarden(garden_id), write_gardens=False, write_pointer=True
        )
        return state.current_garden

    # -- garden mutations ----------------------------------------------------

    def add_plant_to_garden(self, garden_id: str, draft: PlacementDraft) -> PlantPosition:
        """Append a new placement with a fresh id and the next zIndex."""
        position_id = self._id_factory()
        state = self._commit(AddPlant(garden_id, position_id, draft, self._timestamp()))
        position = state.require(garden_id).find_position(position_id)
        logger.debug(
            f"Garden {garden_id}: added plant {draft.plant_id} as {position_id} "
            f"(zIndex={position.z_index})"
        )
        return position

    def update_plant_position(self, garden_id: str, position: PlantPosition) -> None:
        """Replace a placement by id, appending it when the id is unknown."""
        if self._state.require(garden_id).find_position(position.id) is None:
            logger.warning(
                f"Garden {garden_id}: position {position.id} not found, inserting it"
            )
        self._commit(UpsertPlant(garden_id, position, self._timestamp()))

    def remove_plant_from_garden(self, garden_id: str, position_id: str) -> None:
        """Remove a placement by id; unknown ids are ignored."""
        if self._state.require(garden_id).find_position(position_id) is None:
            logger.debug(f"Garden {garden_id}: position {position_id} already absent")
            return
        self._commit(RemovePlant(garden_id, position_id, self._timestamp()))
        logger.debug(f"Garden {garden_id}: removed position {position_id}")

    def set_scale_reference(
        self,
        garden_id: str,
        pixel_width: float,
        real_width: float,
    ) -> ScaleReference:
        """Calibrate and replace the garden's scale reference."""
        self._state.require(garden_id)
        reference = calibrate(pixel_width, real_width)
        self._commit(SetScaleReference(garden_id, reference, self._timestamp()))
        logger.debug(
            f"Garden {garden_id}: calibrated at {reference.pixels_per_inch:.4f} px/inch"
        )
        return reference

    def set_view_time(self, garden_id: str, view_time: ViewTime | str) -> None:
        self._commit(SetViewTime(garden_id, ViewTime(view_time), self._timestamp()))

    def update_dimensions(
        self,
        garden_id: str,
        dimensions: GardenDimensions | Mapping[str, Any],
    ) -> None:
        self._commit(
            SetDimensions(garden_id, _coerce_dimensions(dimensions), self._timestamp())
        )

    def set_zones(self, garden_id: str, zones: Iterable[GardenZone] | None) -> None:
        zone_tuple = None if zones is None else tuple(zones)
        self._commit(SetZones(garden_id, zone_tuple, self._timestamp()))

    # -- internals -----------------------------------------------------------

    def _timestamp(self) -> str:
        return self._clock().isoformat()

    def _commit(
        self,
        action: GardenAction,
        write_gardens: bool = True,
        write_pointer: bool = False,
        image: tuple[str, str] | None = None,
    ) -> GardenState:
        """Derive, persist, then mirror the new state.

        The collection is written first, then the optional image blob, then
        the pointer. When a later write fails the earlier ones are rolled
        back so storage keeps matching the cache.
        """
        new_state = reduce(self._state, action)
        if write_gardens:
            self._storage.write_gardens(_records(new_state))
        image_written = False
        try:
            if image is not None:
                self._storage.write_image(*image)
                image_written = True
            if write_pointer:
                self._storage.write_current_garden_id(new_state.current_garden_id)
        except StorageFailure:
            if image_written:
                self._rollback(lambda: self._storage.delete_image(image[0]))
            if write_gardens:
                self._rollback(lambda: self._storage.write_gardens(_records(self._state)))
            raise
        self._state = new_state
        return new_state

    def _rollback(self, step: Callable[[], None]) -> None:
        try:
            step()
        except StorageFailure as exc:
            logger.error(f"Rollback after failed write did not complete: {exc}")


def _records(state: GardenState) -> list[dict[str, Any]]:
    return [garden.to_dict() for garden in state.gardens]
