"""Read-only plant catalog lookups."""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterable, Mapping

import pandas as pd
from loguru import logger

from src.core.errors import DanglingPlantReference


BUNDLED_CATALOG_PATH = Path(__file__).resolve().parents[1] / "data" / "plants.json"


@dataclass(frozen=True)
class PlantDimensions:
    """Plant extent in inches."""

    height: float
    width: float

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> PlantDimensions:
        return cls(height=float(data["height"]), width=float(data["width"]))


@dataclass(frozen=True)
class GrowthDimensions:
    """Per-stage plant dimensions."""

    initial_year: PlantDimensions
    three_years: PlantDimensions
    five_years: PlantDimensions
    mature: PlantDimensions

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> GrowthDimensions:
        return cls(
            initial_year=PlantDimensions.from_dict(data["initialYear"]),
            three_years=PlantDimensions.from_dict(data["threeYears"]),
            five_years=PlantDimensions.from_dict(data["fiveYears"]),
            mature=PlantDimensions.from_dict(data["mature"]),
        )


@dataclass(frozen=True)
class Plant:
    """Catalog entry. Immutable from the planner's point of view."""

    id: str
    name: str
    scientific_name: str
    description: str
    category: str
    sun_exposure: str
    water_needs: str
    dimensions: GrowthDimensions
    growth_rate: str
    maintenance_difficulty: int
    tags: tuple[str, ...] = ()
    bloom_time: str | None = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Plant:
        return cls(
            id=str(data["id"]),
            name=str(data["name"]),
            scientific_name=str(data.get("scientificName", "")),
            description=str(data.get("description", "")),
            category=str(data["category"]),
            sun_exposure=str(data["sunExposure"]),
            water_needs=str(data["waterNeeds"]),
            dimensions=GrowthDimensions.from_dict(data["dimensions"]),
            growth_rate=str(data.get("growthRate", "medium")),
            maintenance_difficulty=int(data.get("maintenanceDifficulty", 1)),
            tags=tuple(data.get("tags", ())),
            bloom_time=data.get("bloomTime"),
        )


class PlantCatalog:
    """In-memory plant catalog with lookup and filter helpers.

    Examples
    --------
    >>> catalog = PlantCatalog.bundled()
    >>> catalog.get_plant_by_id("missing") is None
    True
    """

    def __init__(self, plants: Iterable[Plant]) -> None:
        self._plants: tuple[Plant, ...] = tuple(plants)
        self._by_id: dict[str, Plant] = {plant.id: plant for plant in self._plants}

    @classmethod
    def from_json(cls, file_path: str | Path) -> PlantCatalog:
        """Load catalog entries from a JSON array file.

        Parameters
        ----------
        file_path : str | Path
            Path to a JSON file holding a list of plant records.

        Returns
        -------
        PlantCatalog
            Loaded catalog.
        """
        path = Path(file_path)
        with open(path, "r", encoding="utf-8") as f:
            records = json.load(f)
        if not isinstance(records, list):
            raise ValueError(f"catalog file must contain a list: {path}")
        catalog = cls(Plant.from_dict(record) for record in records)
        logger.debug(f"Loaded {len(catalog)} plants from {path}")
        return catalog

    @classmethod
    def bundled(cls) -> PlantCatalog:
        """Load the catalog shipped with the package."""
        return cls.from_json(BUNDLED_CATALOG_PATH)

    def __len__(self) -> int:
        return len(self._plants)

    def get_all_plants(self) -> tuple[Plant, ...]:
        return self._plants

    def get_plant_by_id(self, plant_id: str) -> Plant | None:
        return self._by_id.get(plant_id)

    def require_plant(self, plant_id: str) -> Plant:
        """Return the plant or raise ``DanglingPlantReference``."""
        plant = self._by_id.get(plant_id)
        if plant is None:
            raise DanglingPlantReference(plant_id)
        return plant

    def get_categories(self) -> list[str]:
        return list(dict.fromkeys(plant.category for plant in self._plants))

    def get_tags(self) -> list[str]:
        return list(dict.fromkeys(tag for plant in self._plants for tag in plant.tags))

    def search_plants(self, query: str) -> list[Plant]:
        """Match ``query`` against name and scientific name, case-insensitive."""
        lower_query = query.lower()
        return [
            plant
            for plant in self._plants
            if lower_query in plant.name.lower()
            or lower_query in plant.scientific_name.lower()
        ]

    def filter_plants(
        self,
        category: str | None = None,
        sun_exposure: str | None = None,
        water_needs: str | None = None,
        tags: Iterable[str] | None = None,
        search: str | None = None,
    ) -> list[Plant]:
        """Return plants matching every given criterion.

        Parameters
        ----------
        category, sun_exposure, water_needs : str | None
            Exact-match filters; ``None`` disables the filter.
        tags : Iterable[str] | None
            Every tag must be present on the plant.
        search : str | None
            Substring matched against name, scientific name and description.

        Returns
        -------
        list[Plant]
            Matching plants in catalog order.
        """
        required_tags = set(tags or ())
        lower_query = search.lower() if search else None
        result = []
        for plant in self._plants:
            if category and plant.category != category:
                continue
            if sun_exposure and plant.sun_exposure != sun_exposure:
                continue
            if water_needs and plant.water_needs != water_needs:
                continue
            if required_tags and not required_tags.issubset(plant.tags):
                continue
            if lower_query and not (
                lower_query in plant.name.lower()
                or lower_query in plant.scientific_name.lower()
                or lower_query in plant.description.lower()
            ):
                continue
            result.append(plant)
        return result

    def to_dataframe(self) -> pd.DataFrame:
        """Convert catalog to a DataFrame with mature sizes.

        Returns
        -------
        pandas.DataFrame
            Columns ``id, name, category, sun_exposure, water_needs,
            mature_height_in, mature_width_in``.
        """
        columns = [
            "id",
            "name",
            "category",
            "sun_exposure",
            "water_needs",
            "mature_height_in",
            "mature_width_in",
        ]
        rows = [
            {
                "id": plant.id,
                "name": plant.name,
                "category": plant.category,
                "sun_exposure": plant.sun_exposure,
                "water_needs": plant.water_needs,
                "mature_height_in": plant.dimensions.mature.height,
                "mature_width_in": plant.dimensions.mature.width,
            }
            for plant in self._plants
        ]
        if not rows:
            return pd.DataFrame(columns=columns)
        return pd.DataFrame(rows)[columns]
