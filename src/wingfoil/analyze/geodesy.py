# wingfoil/analyze/geodesy.py
"""
Great-circle helpers: distance, initial bearing, bearing difference.

Pure functions; coordinates are not range-checked.
"""

import math

from haversine import haversine, Unit

EARTH_RADIUS_M = 6_371_000.0


def distance(p1, p2) -> float:
    """Haversine distance in meters between two points with .lat/.lon."""
    rad = haversine(
        (p1.lat, p1.lon), (p2.lat, p2.lon),
        unit=Unit.RADIANS, check=False,
    )
    return rad * EARTH_RADIUS_M


def bearing(p1, p2) -> float:
    """Initial compass bearing from p1 towards p2, degrees in [0, 360)."""
    lat1 = math.radians(p1.lat)
    lat2 = math.radians(p2.lat)
    dlon = math.radians(p2.lon - p1.lon)

    y = math.sin(dlon) * math.cos(lat2)
    x = math.cos(lat1) * math.sin(lat2) - math.sin(lat1) * math.cos(lat2) * math.cos(dlon)

    deg = math.degrees(math.atan2(y, x)) % 360.0
    # -tiny % 360 rounds to 360.0
    return 0.0 if deg >= 360.0 else deg


def angular_difference(a: float, b: float) -> float:
    """Smallest absolute difference between two bearings, in [0, 180]."""
    diff = abs(a - b) % 360.0
    return 360.0 - diff if diff > 180.0 else diff
