"""Tests for garden layout export helpers."""

from __future__ import annotations

import json

import pytest

from src.core.catalog import PlantCatalog
from src.core.models import (
    Garden,
    GardenDimensions,
    GardenZone,
    PlantPosition,
    SunExposure,
    ViewTime,
)
from src.utils.garden_io import (
    PLANT_COLUMNS,
    plants_to_dataframe,
    plants_to_geodataframe,
    resolve_placed_plants,
    save_layout_geojson,
    zones_to_geodataframe,
)


def _build_garden(view_time: ViewTime = ViewTime.CURRENT) -> Garden:
    """Build a garden with two valid placements, one dangling, one zone."""
    return Garden(
        id="g1",
        name="Backyard",
        created_at="t0",
        updated_at="t0",
        image_ref="img",
        dimensions=GardenDimensions(width=10.0, height=8.0),
        plants=(
            PlantPosition(id="p2", plant_id="boxwood", x=50, y=50, width=5, height=5, z_index=2),
            PlantPosition(id="p1", plant_id="lavender", x=20, y=25, width=2, height=2,
                          scale=1.5, z_index=1),
            PlantPosition(id="p3", plant_id="retired-plant", x=1, y=1, width=1, height=1,
                          z_index=3),
        ),
        view_time=view_time,
        zones=(
            GardenZone(
                id="z1",
                name="Bed",
                sun_exposure=SunExposure.FULL_SUN,
                points=((0.0, 0.0), (50.0, 0.0), (50.0, 50.0), (0.0, 50.0)),
            ),
        ),
    )


def test_resolve_placed_plants_skips_dangling_ids() -> None:
    """Unknown plantIds are skipped and the rest is yielded in zIndex order."""
    pairs = list(resolve_placed_plants(_build_garden(), PlantCatalog.bundled()))
    assert [position.id for position, _ in pairs] == ["p1", "p2"]
    assert [plant.id for _, plant in pairs] == ["lavender", "boxwood"]


def test_plants_to_dataframe_converts_to_feet() -> None:
    df = plants_to_dataframe(_build_garden(), PlantCatalog.bundled())
    assert list(df.columns) == PLANT_COLUMNS
    assert len(df) == 2
    lavender = df.set_index("position_id").loc["p1"]
    assert lavender["x_ft"] == pytest.approx(2.0)
    assert lavender["y_ft"] == pytest.approx(2.0)
    assert lavender["width_in"] == pytest.approx(12.0)


def test_plants_to_dataframe_uses_view_time() -> None:
    df = plants_to_dataframe(_build_garden(ViewTime.MATURE), PlantCatalog.bundled())
    assert df.set_index("position_id").loc["p1", "width_in"] == pytest.approx(36.0)


def test_plants_to_dataframe_empty_garden() -> None:
    garden = Garden(
        id="g2", name="G", created_at="t", updated_at="t", image_ref="",
        dimensions=GardenDimensions(10, 8),
    )
    df = plants_to_dataframe(garden, PlantCatalog.bundled())
    assert df.empty
    assert list(df.columns) == PLANT_COLUMNS


def test_geodataframes_in_feet() -> None:
    garden = _build_garden()
    plants_gdf = plants_to_geodataframe(garden, PlantCatalog.bundled())
    assert plants_gdf.geometry.iloc[0].x == pytest.approx(2.0)

    zones_gdf = zones_to_geodataframe(garden)
    assert zones_gdf["zone_id"].tolist() == ["z1"]
    assert zones_gdf.geometry.iloc[0].bounds == pytest.approx((0.0, 0.0, 5.0, 4.0))


def test_save_layout_geojson(tmp_path) -> None:
    out_path = save_layout_geojson(
        _build_garden(), PlantCatalog.bundled(), tmp_path / "out" / "layout.geojson"
    )
    data = json.loads(out_path.read_text(encoding="utf-8"))
    kinds = [feature["properties"]["kind"] for feature in data["features"]]
    assert kinds == ["plant", "plant", "zone"]
