"""
Great-circle geometry helpers.

Distances are in metres on a sphere of the map provider's earth radius, so
results line up with distances the provider reports for the same points.
"""

import math
import re
from typing import Optional, Union

from tripsync.client.state.types import LatLng

# Radius used by the provider's spherical geometry library (metres)
EARTH_RADIUS_M = 6378137.0

CURRENT_LOCATION = "Current Location"

_COORDINATE_RE = re.compile(r"^\s*(-?\d{1,3}(?:\.\d+)?)\s*,\s*(-?\d{1,3}(?:\.\d+)?)\s*$")


def haversine_distance(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    """
    Calculate the great-circle distance between two points on Earth.

    Args:
        lat1, lng1: First point coordinates (degrees)
        lat2, lng2: Second point coordinates (degrees)

    Returns:
        Distance in metres
    """
    lat1_rad = math.radians(lat1)
    lat2_rad = math.radians(lat2)

    dlat = lat2_rad - lat1_rad
    dlng = math.radians(lng2 - lng1)

    a = math.sin(dlat / 2) ** 2 + math.cos(lat1_rad) * math.cos(lat2_rad) * math.sin(dlng / 2) ** 2
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))

    return EARTH_RADIUS_M * c


def spherical_distance(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    """
    Great-circle distance via the central angle between the two points.

    Same formulation as the provider's computeDistanceBetween (arcsine of
    the half-chord). Agrees with haversine_distance to float tolerance.
    """
    lat1_rad = math.radians(lat1)
    lat2_rad = math.radians(lat2)
    dlng = math.radians(lng1 - lng2)

    angle = 2 * math.asin(math.sqrt(
        math.sin((lat1_rad - lat2_rad) / 2) ** 2
        + math.cos(lat1_rad) * math.cos(lat2_rad) * math.sin(dlng / 2) ** 2
    ))
    return EARTH_RADIUS_M * angle


def calculate_distance(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    """Distance in metres between two coordinates."""
    return haversine_distance(lat1, lng1, lat2, lng2)


def format_distance(meters: float) -> str:
    """Render a distance the way turn-by-turn labels show it."""
    if meters < 1000:
        return f"{round(meters)} m"
    return f"{meters / 1000:.1f} km"


def parse_route_location(value: Optional[str]) -> Union[LatLng, str, None]:
    """
    Turn a route endpoint string into something directions can use.

    "18.75, 73.40" becomes a LatLng; any other text (including the
    "Current Location" marker) is returned unchanged; empty input is None.
    """
    if not value:
        return None
    if value == CURRENT_LOCATION:
        return value

    match = _COORDINATE_RE.match(value)
    if match:
        lat, lng = float(match.group(1)), float(match.group(2))
        if -90 <= lat <= 90 and -180 <= lng <= 180:
            return LatLng(lat=lat, lng=lng)
    return value
