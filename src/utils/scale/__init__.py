"""Scale calibration and coordinate transform helpers."""

from src.utils.scale.calibration import calibrate
from src.utils.scale.transform import (
    clamp_percent,
    clamp_user_scale,
    dimensions_to_percentage,
    format_plant_dimensions,
    inches_to_pixels,
    normalize_rotation,
    percent_to_pixels,
    percentage_to_dimensions,
    pixels_to_inches,
    pixels_to_percent,
    resolve_growth_dimensions,
)

__all__ = [
    "calibrate",
    "clamp_percent",
    "clamp_user_scale",
    "dimensions_to_percentage",
    "format_plant_dimensions",
    "inches_to_pixels",
    "normalize_rotation",
    "percent_to_pixels",
    "percentage_to_dimensions",
    "pixels_to_inches",
    "pixels_to_percent",
    "resolve_growth_dimensions",
]
