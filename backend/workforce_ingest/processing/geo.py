"""Geolocation parsing for "latitude,longitude" cells."""

from __future__ import annotations

import math
from typing import NamedTuple


class GeoPoint(NamedTuple):
    latitude: float
    longitude: float


GEO_FORMAT_MESSAGE = 'Invalid Geolocation format. Expected "latitude,longitude".'
GEO_RANGE_MESSAGE = "Invalid Geolocation values."


def parse_geolocation(value: str) -> GeoPoint:
    """
    Parse "<lat>,<lon>" into a GeoPoint.

    Both halves must be finite floats, latitude within [-90, 90] and
    longitude within [-180, 180].  Out-of-range values are rejected,
    never clamped.

    Raises:
        ValueError: with a user-facing message.
    """
    parts = [part.strip() for part in str(value).strip().split(",")]
    if len(parts) != 2:
        raise ValueError(GEO_FORMAT_MESSAGE)

    try:
        latitude, longitude = float(parts[0]), float(parts[1])
    except ValueError:
        raise ValueError(GEO_FORMAT_MESSAGE) from None

    if not (math.isfinite(latitude) and math.isfinite(longitude)):
        raise ValueError(GEO_FORMAT_MESSAGE)

    if not (-90 <= latitude <= 90 and -180 <= longitude <= 180):
        raise ValueError(GEO_RANGE_MESSAGE)

    return GeoPoint(latitude, longitude)
