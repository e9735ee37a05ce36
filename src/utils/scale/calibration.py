"""Reference-object scale calibration."""

from __future__ import annotations

import math

from src.core.errors import InvalidScaleReference
from src.core.models import ScaleReference


def _validate_positive(name: str, value: float) -> float:
    try:
        number = float(value)
    except (TypeError, ValueError) as exc:
        raise InvalidScaleReference(f"{name} must be a number, got {value!r}") from exc
    if not math.isfinite(number) or number <= 0:
        raise InvalidScaleReference(f"{name} must be a finite number > 0, got {value!r}")
    return number


def calibrate(pixel_width: float, real_width: float) -> ScaleReference:
    """Derive pixels-per-inch from a reference object.

    Parameters
    ----------
    pixel_width : float
        Measured width of the reference object on the image, in pixels.
    real_width : float
        Known real-world width of the reference object, in inches.

    Returns
    -------
    ScaleReference
        Reference with ``pixels_per_inch = pixel_width / real_width``.

    Raises
    ------
    InvalidScaleReference
        Raised when either input is non-positive or non-finite.

    Examples
    --------
    >>> calibrate(100.0, 36.0).pixels_per_inch
    2.7777777777777777
    """
    pixel_value = _validate_positive("pixel_width", pixel_width)
    real_value = _validate_positive("real_width", real_width)
    return ScaleReference(
        pixel_width=pixel_value,
        real_width=real_value,
        pixels_per_inch=pixel_value / real_value,
    )
