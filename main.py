#!/usr/bin/env python
"""
Garden Planner - headless garden store summary.

Main entry point: configures logging, opens the configured storage and
logs every stored garden with its calibration and plant count.

Usage
-----
    uv run python main.py [config.json]

or:
    python main.py
"""

import sys
from pathlib import Path

# Add project root to path so that `src` is importable
root_path = Path(__file__).parent
if str(root_path) not in sys.path:
    sys.path.insert(0, str(root_path))


def main() -> int:
    """
    Main entry point for Garden Planner.

    Returns
    -------
    int
        Exit code (0 for success, non-zero for error).
    """
    from loguru import logger

    from src.config import cfg, load_config
    from src.core.catalog import PlantCatalog
    from src.core.errors import GardenPlannerError
    from src.core.storage import JsonFileStorage
    from src.core.store import GardenStore
    from src.utils.garden_io import plants_to_dataframe

    config_path = sys.argv[1] if len(sys.argv) > 1 else "config.json"
    load_config(config_path)

    # Configure logging
    logger.remove()
    logger.add(
        sys.stderr,
        format="<green>{time:HH:mm:ss}</green> | "
               "<level>{level: <8}</level> | "
               "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - "
               "<level>{message}</level>",
        level=cfg.get(cfg.logLevel)
    )

    logger.info("Starting Garden Planner...")

    try:
        catalog_path = cfg.get(cfg.catalogPath)
        catalog = PlantCatalog.from_json(catalog_path) if catalog_path else PlantCatalog.bundled()
        store = GardenStore(JsonFileStorage(cfg.get(cfg.storageDir)))
    except (GardenPlannerError, OSError, ValueError) as exc:
        logger.error(f"Failed to open garden storage: {exc}")
        return 1

    current = store.current_garden
    for garden in store.get_all_gardens():
        marker = "*" if current is not None and current.id == garden.id else " "
        scale_text = (
            f"{garden.scale_reference.pixels_per_inch:.2f} px/inch"
            if garden.scale_reference is not None
            else "not calibrated"
        )
        placed = len(plants_to_dataframe(garden, catalog))
        logger.info(
            f"{marker} {garden.name} [{garden.id}] "
            f"{garden.dimensions.width:g}x{garden.dimensions.height:g} ft, "
            f"{scale_text}, {placed}/{len(garden.plants)} plants resolved, "
            f"view={garden.view_time.value}"
        )

    logger.info(f"{len(store.get_all_gardens())} gardens in {cfg.get(cfg.storageDir)}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
