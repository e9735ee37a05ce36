"""Tabular and geometric export of garden layouts.

Coordinates are converted from canvas percentages to feet with the photo's
top-left corner as origin and y pointing down, matching the image axes.
"""

from __future__ import annotations

from pathlib import Path
from typing import Iterator

import geopandas as gpd
import pandas as pd
from loguru import logger
from shapely.affinity import scale as scale_geometry
from shapely.geometry import Point

from src.core.catalog import Plant, PlantCatalog
from src.core.errors import DanglingPlantReference
from src.core.models import Garden, PlantPosition
from src.utils.scale.transform import resolve_growth_dimensions


PLANT_COLUMNS = [
    "position_id",
    "plant_id",
    "name",
    "x",
    "y",
    "x_ft",
    "y_ft",
    "width_in",
    "height_in",
    "rotation",
    "scale",
    "z_index",
]


def resolve_placed_plants(
    garden: Garden,
    catalog: PlantCatalog,
) -> Iterator[tuple[PlantPosition, Plant]]:
    """Yield placements with their catalog entries in zIndex order.

    Placements whose ``plantId`` is missing from the catalog are skipped
    with a warning; the rest of the garden is still produced.

    Parameters
    ----------
    garden : Garden
        Garden record.
    catalog : PlantCatalog
        Catalog used for lookups.

    Yields
    ------
    tuple[PlantPosition, Plant]
        Placement and its catalog plant.
    """
    for position in sorted(garden.plants, key=lambda item: item.z_index):
        try:
            plant = catalog.require_plant(position.plant_id)
        except DanglingPlantReference as exc:
            logger.warning(f"Garden {garden.id}: skipping position {position.id}: {exc}")
            continue
        yield position, plant


def plants_to_dataframe(garden: Garden, catalog: PlantCatalog) -> pd.DataFrame:
    """Convert placed plants to a table.

    Sizes come from the catalog for the garden's current ``view_time``
    and include the placement's user scale.

    Returns
    -------
    pandas.DataFrame
        One row per resolvable placement, columns ``PLANT_COLUMNS``.
    """
    rows = []
    for position, plant in resolve_placed_plants(garden, catalog):
        dimensions = resolve_growth_dimensions(plant, garden.view_time)
        rows.append(
            {
                "position_id": position.id,
                "plant_id": plant.id,
                "name": plant.name,
                "x": position.x,
                "y": position.y,
                "x_ft": position.x / 100.0 * garden.dimensions.width,
                "y_ft": position.y / 100.0 * garden.dimensions.height,
                "width_in": dimensions.width * position.scale,
                "height_in": dimensions.height * position.scale,
                "rotation": position.rotation,
                "scale": position.scale,
                "z_index": position.z_index,
            }
        )
    if not rows:
        return pd.DataFrame(columns=PLANT_COLUMNS)
    return pd.DataFrame(rows)[PLANT_COLUMNS]


def plants_to_geodataframe(garden: Garden, catalog: PlantCatalog) -> gpd.GeoDataFrame:
    """Convert placed plants to point geometries in feet."""
    plants_df = plants_to_dataframe(garden, catalog)
    geometry = [Point(x, y) for x, y in zip(plants_df["x_ft"], plants_df["y_ft"])]
    return gpd.GeoDataFrame(plants_df, geometry=geometry, crs=None)


def zones_to_geodataframe(garden: Garden) -> gpd.GeoDataFrame:
    """Convert garden zones to polygons in feet."""
    zones = garden.zones or ()
    x_factor = garden.dimensions.width / 100.0
    y_factor = garden.dimensions.height / 100.0
    return gpd.GeoDataFrame(
        {
            "zone_id": [zone.id for zone in zones],
            "name": [zone.name for zone in zones],
            "sun_exposure": [zone.sun_exposure.value for zone in zones],
            "soil_type": [zone.soil_type for zone in zones],
        },
        geometry=[
            scale_geometry(zone.polygon, xfact=x_factor, yfact=y_factor, origin=(0, 0))
            for zone in zones
        ],
        crs=None,
    )


def save_layout_geojson(
    garden: Garden,
    catalog: PlantCatalog,
    out_path: str | Path,
) -> Path:
    """Write plant points and zone polygons to one GeoJSON file.

    Parameters
    ----------
    garden : Garden
        Garden to export.
    catalog : PlantCatalog
        Catalog used for names and sizes.
    out_path : str | Path
        Target ``.geojson`` path.

    Returns
    -------
    pathlib.Path
        Written file path.
    """
    target_path = Path(out_path)
    target_path.parent.mkdir(parents=True, exist_ok=True)
    plants_gdf = plants_to_geodataframe(garden, catalog)
    plants_gdf["kind"] = "plant"
    zones_gdf = zones_to_geodataframe(garden)
    zones_gdf["kind"] = "zone"
    layout_gdf = gpd.GeoDataFrame(
        pd.concat([plants_gdf, zones_gdf], ignore_index=True),
        geometry="geometry",
        crs=None,
    )
    target_path.write_text(layout_gdf.to_json(), encoding="utf-8")
    logger.info(f"Exported garden {garden.id} layout to {target_path}")
    return target_path
