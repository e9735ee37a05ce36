"""Pure conversions between percentage, pixel and real-world units.

Percentages are relative to the canvas extent along one axis, pixels are in
the image space the reference object was measured in, real-world sizes are
inches unless a name says feet.
"""

from __future__ import annotations

import math

import numpy as np

from src.core.catalog import Plant, PlantDimensions
from src.core.models import GardenDimensions, ViewTime


PERCENT_MIN = 0.0
PERCENT_MAX = 100.0
USER_SCALE_MIN = 0.5
USER_SCALE_MAX = 1.5
INCHES_PER_FOOT = 12.0


def inches_to_pixels(inches: float, pixels_per_inch: float, user_scale: float = 1.0) -> float:
    """Convert a real-world length to image pixels."""
    return inches * pixels_per_inch * user_scale


def pixels_to_inches(pixels: float, pixels_per_inch: float) -> float:
    """Convert image pixels to a real-world length in inches."""
    if pixels_per_inch <= 0:
        raise ValueError("pixels_per_inch must be > 0")
    return pixels / pixels_per_inch


def percent_to_pixels(percent: float, container_pixels: float) -> float:
    """Convert a canvas percentage to pixels along one axis."""
    if container_pixels <= 0:
        raise ValueError("container_pixels must be > 0")
    return percent / 100.0 * container_pixels


def pixels_to_percent(pixels: float, container_pixels: float) -> float:
    """Convert pixels to a canvas percentage along one axis."""
    if container_pixels <= 0:
        raise ValueError("container_pixels must be > 0")
    return pixels / container_pixels * 100.0


def clamp_percent(value: float) -> float:
    """Clamp one percentage coordinate into ``[0, 100]``.

    Raises
    ------
    ValueError
        Raised for NaN input.

    Examples
    --------
    >>> clamp_percent(-3.5), clamp_percent(42.0), clamp_percent(250.0)
    (0.0, 42.0, 100.0)
    """
    if math.isnan(value):
        raise ValueError("percentage coordinate is NaN")
    return float(np.clip(value, PERCENT_MIN, PERCENT_MAX))


def clamp_user_scale(scale: float) -> float:
    """Clamp the user fine-adjustment multiplier into ``[0.5, 1.5]``."""
    if math.isnan(scale):
        raise ValueError("scale is NaN")
    return float(np.clip(scale, USER_SCALE_MIN, USER_SCALE_MAX))


def normalize_rotation(degrees: float) -> int:
    """Wrap a rotation into whole degrees ``[0, 359]``.

    Examples
    --------
    >>> normalize_rotation(-90), normalize_rotation(360), normalize_rotation(725.4)
    (270, 0, 5)
    """
    return int(round(degrees)) % 360


def resolve_growth_dimensions(plant: Plant, view_time: ViewTime | str) -> PlantDimensions:
    """Select a plant's dimensions for one growth stage.

    Parameters
    ----------
    plant : Plant
        Catalog entry; it is never modified.
    view_time : ViewTime | str
        Growth-stage tag. Unknown tags fall back to the initial-year size.

    Returns
    -------
    PlantDimensions
        Height and width in inches.
    """
    try:
        tag = ViewTime(view_time)
    except ValueError:
        return plant.dimensions.initial_year
    if tag is ViewTime.YEAR3:
        return plant.dimensions.three_years
    if tag is ViewTime.YEAR5:
        return plant.dimensions.five_years
    if tag is ViewTime.MATURE:
        return plant.dimensions.mature
    return plant.dimensions.initial_year


def feet_to_inches(feet: float) -> float:
    return feet * INCHES_PER_FOOT


def inches_to_feet(inches: float) -> float:
    return inches / INCHES_PER_FOOT


def dimensions_to_percentage(
    dimensions: PlantDimensions,
    garden_dimensions: GardenDimensions,
) -> tuple[float, float]:
    """Express a plant size as percentage of the garden extent.

    Returns
    -------
    tuple[float, float]
        ``(width_percent, height_percent)``.
    """
    width_percent = inches_to_feet(dimensions.width) / garden_dimensions.width * 100.0
    height_percent = inches_to_feet(dimensions.height) / garden_dimensions.height * 100.0
    return width_percent, height_percent


def percentage_to_dimensions(
    width_percent: float,
    height_percent: float,
    garden_dimensions: GardenDimensions,
) -> PlantDimensions:
    """Inverse of ``dimensions_to_percentage``."""
    width_feet = width_percent / 100.0 * garden_dimensions.width
    height_feet = height_percent / 100.0 * garden_dimensions.height
    return PlantDimensions(
        height=feet_to_inches(height_feet),
        width=feet_to_inches(width_feet),
    )


def maintain_aspect_ratio(
    original_width: float,
    original_height: float,
    new_width: float | None = None,
    new_height: float | None = None,
) -> tuple[float, float]:
    """Resize keeping the original aspect ratio when only one side is given."""
    aspect_ratio = original_width / original_height
    if new_width and not new_height:
        return new_width, new_width / aspect_ratio
    if new_height and not new_width:
        return new_height * aspect_ratio, new_height
    if new_width and new_height:
        return new_width, new_height
    return original_width, original_height


def _format_feet_inches(inches: float) -> str:
    feet = int(inches // INCHES_PER_FOOT)
    rest = int(round(inches % INCHES_PER_FOOT))
    if rest == INCHES_PER_FOOT:
        feet, rest = feet + 1, 0
    if feet == 0:
        return f'{rest}"'
    if rest == 0:
        return f"{feet}'"
    return f"{feet}' {rest}\""


def format_plant_dimensions(height: float, width: float) -> str:
    """Format inches as ``4' 2" H x 1' W``."""
    return f"{_format_feet_inches(height)} H x {_format_feet_inches(width)} W"
