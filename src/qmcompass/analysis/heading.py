"""
Azimuth, bearing sector and compass-rose helpers.

Azimuths are floats in ``[0, 360)`` measured from the sensor X axis toward Y.
The circle is split into sixteen 22.5° sectors centred on the rose points, so
sector 0 (north) spans ``[348.75, 11.25)``.
"""

from __future__ import annotations

import math
import operator

from ..core.errors import InvalidArgument, InvalidConfiguration
from ..core.models import round_half_away

SECTOR_WIDTH = 22.5

COMPASS_ROSE: tuple[str, ...] = (
    "  N",
    "NNE",
    " NE",
    "ENE",
    "  E",
    "ESE",
    " SE",
    "SSE",
    "  S",
    "SSW",
    " SW",
    "WSW",
    "  W",
    "WNW",
    " NW",
    "NNW",
)


def normalize_degrees(angle: float) -> float:
    """Wrap ``angle`` into ``[0, 360)``."""
    if not math.isfinite(angle):
        raise InvalidArgument(f"angle must be finite, got {angle!r}")
    wrapped = angle % 360.0
    # -1e-15 % 360.0 rounds to 360.0
    if wrapped >= 360.0:
        wrapped = 0.0
    return wrapped


def declination_from_dms(degrees: float, minutes: float = 0.0) -> float:
    """
    Combine declination degrees and arc-minutes as ``degrees + minutes / 60``.

    The minutes are always added, so -19° 43' must be passed as
    ``(-19, -43)`` to get -19.72°.
    """
    try:
        value = float(degrees) + float(minutes) / 60
    except (TypeError, ValueError) as exc:
        raise InvalidConfiguration(f"declination must be numeric: {exc}") from exc
    if not math.isfinite(value):
        raise InvalidConfiguration(f"declination must be finite, got {value!r}")
    return value


def azimuth(x: float, y: float, declination_degrees: float = 0.0) -> float:
    heading = math.degrees(math.atan2(y, x)) + declination_degrees
    return normalize_degrees(heading)


def display_azimuth(azimuth_degrees: float) -> int:
    """Whole degrees for display (truncated, like the legacy integer API)."""
    return int(normalize_degrees(azimuth_degrees))


def bearing_sector(azimuth_degrees: float) -> int:
    """
    Return the 16-point sector index (0..15) for an azimuth.

    A boundary exactly between two sectors resolves away from north:
    ``11.25`` gives 1 (NNE) and ``348.75`` gives 15 (NNW).
    """
    angle = normalize_degrees(azimuth_degrees)
    # Signed angle in (-180, 180] so ties round away from north.
    if angle > 180.0:
        angle -= 360.0
    return round_half_away(angle / SECTOR_WIDTH) % len(COMPASS_ROSE)


def direction_name(sector: int) -> str:
    try:
        index = operator.index(sector)
    except TypeError as exc:
        raise InvalidArgument(f"sector must be an integer, got {sector!r}") from exc
    if not 0 <= index < len(COMPASS_ROSE):
        raise InvalidArgument(f"sector must be in 0..15, got {sector!r}")
    return COMPASS_ROSE[index]


def direction_for_azimuth(azimuth_degrees: float) -> str:
    return direction_name(bearing_sector(azimuth_degrees))
