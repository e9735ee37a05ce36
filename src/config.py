from pathlib import Path

from loguru import logger
from qfluentwidgets import (
    ConfigItem,
    OptionsConfigItem,
    OptionsValidator,
    QConfig,
    RangeConfigItem,
    RangeValidator,
    qconfig,
)

from src import __version__


LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR"]


class Config(QConfig):
    """
    Configuration for the garden planner.
    """

    # Log level for the stderr sink
    logLevel = OptionsConfigItem(
        "General", "LogLevel", "INFO", OptionsValidator(LOG_LEVELS)
    )

    # Directory holding gardens.json, current_garden.json and images/
    storageDir = ConfigItem("Storage", "StorageDir", "garden_data")

    # Plant catalog JSON file; empty uses the bundled catalog
    catalogPath = ConfigItem("Catalog", "CatalogPath", "")

    # Minimum delay between persisted intermediate drag positions.
    # 0 persists only the final position on release.
    dragPersistIntervalMs = RangeConfigItem(
        "Session", "DragPersistIntervalMs", 0, RangeValidator(0, 5000)
    )


VERSION = __version__

cfg = Config()


def load_config(file_path: str | Path = "config.json") -> Config:
    """
    Load configuration values from a JSON file into ``cfg``.

    Missing files and missing keys keep their defaults.

    Parameters
    ----------
    file_path : str | Path
        Path of the configuration file.

    Returns
    -------
    Config
        The global configuration instance.
    """
    qconfig.load(str(file_path), cfg)
    logger.debug(f"Configuration loaded from {file_path}")
    return cfg
