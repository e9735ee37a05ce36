"""Tests for the garden placement state store."""

import itertools
import json
from dataclasses import replace
from datetime import datetime, timedelta, timezone

import pytest

from src.core.errors import GardenNotFound, InvalidScaleReference, StorageFailure
from src.core.models import (
    GardenDimensions,
    GardenZone,
    PlacementDraft,
    PlantPosition,
    SunExposure,
    ViewTime,
)
from src.core.storage import InMemoryStorage, JsonFileStorage
from src.core.store import GardenStore


class _Clock:
    """Clock advancing one second per call."""

    def __init__(self) -> None:
        self._now = datetime(2024, 5, 1, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        self._now += timedelta(seconds=1)
        return self._now


def _build_store(storage=None) -> GardenStore:
    """Build a store with deterministic ids and timestamps."""
    counter = itertools.count(1)
    return GardenStore(
        storage or InMemoryStorage(),
        clock=_Clock(),
        id_factory=lambda: f"id-{next(counter)}",
    )


def _draft(plant_id: str = "lavender", x: float = 50.0, y: float = 50.0) -> PlacementDraft:
    return PlacementDraft(plant_id=plant_id, x=x, y=y, width=5.0, height=6.0)


def test_create_and_load_garden_round_trip() -> None:
    """A new garden is empty, uncalibrated and current."""
    store = _build_store()
    garden = store.create_garden("G", "img://g", {"width": 10, "height": 8})

    loaded = store.load_garden(garden.id)
    assert loaded.name == "G"
    assert loaded.dimensions == GardenDimensions(width=10, height=8)
    assert loaded.plants == ()
    assert loaded.scale_reference is None
    assert loaded.view_time is ViewTime.CURRENT
    assert loaded.created_at == loaded.updated_at
    assert store.current_garden.id == garden.id
    assert store.get_image(garden.id) == "img://g"


@pytest.mark.parametrize("dimensions", [{"width": 0, "height": 8}, {"width": 10, "height": -1}])
def test_create_garden_rejects_non_positive_dimensions(dimensions) -> None:
    with pytest.raises(ValueError):
        _build_store().create_garden("G", "img", dimensions)


def test_adding_plants_assigns_distinct_ids_and_increasing_z_index() -> None:
    """N adds give N distinct ids and zIndex 1..N."""
    store = _build_store()
    garden = store.create_garden("G", "img", GardenDimensions(10, 8))
    positions = [store.add_plant_to_garden(garden.id, _draft()) for _ in range(5)]

    assert len({position.id for position in positions}) == 5
    assert [position.z_index for position in positions] == [1, 2, 3, 4, 5]
    assert len(store.load_garden(garden.id).plants) == 5


def test_mutation_bumps_updated_at() -> None:
    store = _build_store()
    garden = store.create_garden("G", "img", GardenDimensions(10, 8))
    store.add_plant_to_garden(garden.id, _draft())
    updated = store.load_garden(garden.id)
    assert updated.updated_at > garden.updated_at
    assert updated.created_at == garden.created_at


def test_update_plant_position_replaces_existing() -> None:
    """Known ids are replaced and the count stays the same."""
    store = _build_store()
    garden = store.create_garden("G", "img", GardenDimensions(10, 8))
    position = store.add_plant_to_garden(garden.id, _draft())
    moved = PlantPosition(
        id=position.id, plant_id="lavender", x=12.0, y=88.0,
        width=5.0, height=6.0, z_index=position.z_index,
    )
    store.update_plant_position(garden.id, moved)

    plants = store.load_garden(garden.id).plants
    assert plants == (moved,)


def test_update_plant_position_with_unknown_id_inserts() -> None:
    """Upserting an unknown id grows the plant list by one."""
    store = _build_store()
    garden = store.create_garden("G", "img", GardenDimensions(10, 8))
    store.add_plant_to_garden(garden.id, _draft())
    ghost = PlantPosition(id="ghost", plant_id="boxwood", x=1, y=2, width=3, height=4)
    store.update_plant_position(garden.id, ghost)

    plants = store.load_garden(garden.id).plants
    assert len(plants) == 2
    assert plants[-1] == ghost


def test_remove_missing_plant_is_a_no_op() -> None:
    """Removing an unknown position leaves the garden untouched."""
    store = _build_store()
    garden = store.create_garden("G", "img", GardenDimensions(10, 8))
    store.add_plant_to_garden(garden.id, _draft())
    before = store.load_garden(garden.id)

    store.remove_plant_from_garden(garden.id, "nope")
    assert store.load_garden(garden.id) == before


def test_remove_plant() -> None:
    store = _build_store()
    garden = store.create_garden("G", "img", GardenDimensions(10, 8))
    first = store.add_plant_to_garden(garden.id, _draft())
    second = store.add_plant_to_garden(garden.id, _draft("boxwood"))
    store.remove_plant_from_garden(garden.id, first.id)
    assert store.load_garden(garden.id).plants == (second,)


@pytest.mark.parametrize(
    "operation",
    [
        lambda store: store.load_garden("missing"),
        lambda store: store.add_plant_to_garden("missing", _draft()),
        lambda store: store.update_plant_position(
            "missing", PlantPosition(id="p", plant_id="x", x=1, y=1, width=1, height=1)
        ),
        lambda store: store.remove_plant_from_garden("missing", "p"),
        lambda store: store.set_scale_reference("missing", 100, 36),
        lambda store: store.delete_garden("missing"),
        lambda store: store.set_current_garden("missing"),
        lambda store: store.set_view_time("missing", ViewTime.MATURE),
    ],
)
def test_unknown_garden_raises_garden_not_found(operation) -> None:
    store = _build_store()
    with pytest.raises(GardenNotFound) as exc_info:
        operation(store)
    assert exc_info.value.garden_id == "missing"
    assert "missing" in str(exc_info.value)


def test_set_scale_reference_replaces_previous() -> None:
    """Calibrating twice keeps only the latest reference."""
    store = _build_store()
    garden = store.create_garden("G", "img", GardenDimensions(10, 8))
    store.set_scale_reference(garden.id, 100, 36)
    reference = store.set_scale_reference(garden.id, 300, 12)

    assert reference.pixels_per_inch == 25.0
    assert store.load_garden(garden.id).scale_reference == reference
    assert store.load_garden(garden.id).is_calibrated


def test_set_scale_reference_rejects_invalid_values() -> None:
    """Invalid calibration leaves the garden unchanged."""
    store = _build_store()
    garden = store.create_garden("G", "img", GardenDimensions(10, 8))
    with pytest.raises(InvalidScaleReference):
        store.set_scale_reference(garden.id, 100, 0)
    assert store.load_garden(garden.id).scale_reference is None


def test_delete_current_garden_clears_pointer_and_image() -> None:
    storage = InMemoryStorage()
    store = _build_store(storage)
    first = store.create_garden("A", "img-a", GardenDimensions(10, 8))
    second = store.create_garden("B", "img-b", GardenDimensions(10, 8))

    store.delete_garden(second.id)
    assert store.current_garden is None
    assert storage.read_current_garden_id() is None
    assert storage.read_image(second.id) is None
    assert [garden.id for garden in store.get_all_gardens()] == [first.id]


def test_set_view_time_and_dimensions() -> None:
    store = _build_store()
    garden = store.create_garden("G", "img", GardenDimensions(10, 8))
    store.set_view_time(garden.id, "mature")
    store.update_dimensions(garden.id, {"width": 20, "height": 15})

    updated = store.load_garden(garden.id)
    assert updated.view_time is ViewTime.MATURE
    assert updated.dimensions == GardenDimensions(20, 15)


def test_storage_failure_leaves_cache_unchanged(monkeypatch) -> None:
    """A failed write raises and the read cache keeps the old state."""
    storage = InMemoryStorage()
    store = _build_store(storage)
    garden = store.create_garden("G", "img", GardenDimensions(10, 8))
    before = store.state

    def _fail(records):
        raise StorageFailure("disk full")

    monkeypatch.setattr(storage, "write_gardens", _fail)
    with pytest.raises(StorageFailure):
        store.add_plant_to_garden(garden.id, _draft())

    assert store.state is before
    assert store.load_garden(garden.id).plants == ()


def test_json_storage_state_survives_reload(tmp_path) -> None:
    """A second store over the same directory sees the same gardens."""
    store = _build_store(JsonFileStorage(tmp_path))
    garden = store.create_garden("G", "img://g", GardenDimensions(10, 8))
    store.set_scale_reference(garden.id, 100, 36)
    position = store.add_plant_to_garden(garden.id, _draft(x=12.5, y=87.5))

    reopened = GardenStore(JsonFileStorage(tmp_path))
    loaded = reopened.load_garden(garden.id)
    assert reopened.current_garden.id == garden.id
    assert loaded.plants == (position,)
    assert loaded.scale_reference.pixels_per_inch == pytest.approx(100 / 36)
    assert reopened.get_image(garden.id) == "img://g"
    assert loaded == store.load_garden(garden.id)


def test_save_garden_upserts_record() -> None:
    store = _build_store()
    garden = store.create_garden("G", "img", GardenDimensions(10, 8))
    saved = store.save_garden(replace(garden, name="Renamed"))
    assert saved.name == "Renamed"
    assert saved.updated_at > garden.updated_at
    assert len(store.get_all_gardens()) == 1


def test_set_zones_and_clear() -> None:
    store = _build_store()
    garden = store.create_garden("G", "img", GardenDimensions(10, 8))
    zone = GardenZone(
        id="z1",
        name="Bed",
        sun_exposure=SunExposure.SHADE,
        points=((0.0, 0.0), (40.0, 0.0), (40.0, 40.0)),
    )
    store.set_zones(garden.id, [zone])
    assert store.load_garden(garden.id).zones == (zone,)

    store.set_zones(garden.id, None)
    assert store.load_garden(garden.id).zones is None


def _fail_write(*args):
    raise StorageFailure("disk full")


def test_failed_delete_keeps_garden_and_image(monkeypatch) -> None:
    """A rejected collection write must not remove the image."""
    storage = InMemoryStorage()
    store = _build_store(storage)
    garden = store.create_garden("G", "img://g", GardenDimensions(10, 8))

    monkeypatch.setattr(storage, "write_gardens", _fail_write)
    with pytest.raises(StorageFailure):
        store.delete_garden(garden.id)

    assert store.load_garden(garden.id) == garden
    assert storage.read_image(garden.id) == "img://g"
    assert storage.read_current_garden_id() == garden.id


def test_failed_create_leaves_no_orphan_image(monkeypatch) -> None:
    """A rejected collection write stores neither garden nor image."""
    storage = InMemoryStorage()
    store = GardenStore(storage, id_factory=lambda: "g1")

    monkeypatch.setattr(storage, "write_gardens", _fail_write)
    with pytest.raises(StorageFailure):
        store.create_garden("G", "img://g", GardenDimensions(10, 8))

    assert storage.read_image("g1") is None
    assert store.get_all_gardens() == []
    assert store.current_garden is None


def test_failed_pointer_write_rolls_back_create(monkeypatch) -> None:
    """Storage and cache still agree when the pointer write fails."""
    storage = InMemoryStorage()
    store = _build_store(storage)
    first = store.create_garden("A", "img-a", GardenDimensions(10, 8))

    monkeypatch.setattr(storage, "write_current_garden_id", _fail_write)
    with pytest.raises(StorageFailure):
        store.create_garden("B", "img-b", GardenDimensions(10, 8))

    assert [record["id"] for record in storage.read_gardens()] == [first.id]
    assert [garden.id for garden in store.get_all_gardens()] == [first.id]
    assert storage.read_image("id-2") is None
    assert storage.read_image(first.id) == "img-a"
    assert storage.read_current_garden_id() == first.id
    assert store.current_garden.id == first.id


@pytest.mark.parametrize(
    "records",
    [
        [{"id": "x"}],
        ["not a record"],
        [{
            "id": "x", "name": "G", "createdAt": "t", "updatedAt": "t",
            "dimensions": {"width": 10, "height": 8}, "viewTime": "decade",
        }],
    ],
)
def test_malformed_stored_garden_raises_storage_failure(tmp_path, records) -> None:
    """Records missing fields or with bad values surface as StorageFailure."""
    (tmp_path / "gardens.json").write_text(json.dumps(records), encoding="utf-8")
    with pytest.raises(StorageFailure):
        GardenStore(JsonFileStorage(tmp_path))
