# blousecraft/marketplace/geo.py
"""Great-circle distance, in Python and as a SQL expression.

Both use the haversine form on a sphere of radius 6371 km. It is the same
distance as the spherical law of cosines but stays exact at zero, so a
radius of 0 still matches a coincident point.
"""

from __future__ import annotations

import math
from typing import Any, Optional, Tuple

from sqlalchemy import func

from ..errors import InvalidArgument

EARTH_RADIUS_KM = 6371.0


def validate_point(lat: Optional[float], lng: Optional[float]) -> Tuple[float, float]:
    if lat is None or lng is None:
        raise InvalidArgument("Latitude and longitude are required")
    lat, lng = float(lat), float(lng)
    if math.isnan(lat) or not -90.0 <= lat <= 90.0:
        raise InvalidArgument("Latitude must be between -90 and 90")
    if math.isnan(lng) or not -180.0 <= lng <= 180.0:
        raise InvalidArgument("Longitude must be between -180 and 180")
    return lat, lng


def validate_radius(radius_km: Optional[float]) -> float:
    if radius_km is None:
        raise InvalidArgument("Radius is required")
    radius_km = float(radius_km)
    if math.isnan(radius_km) or radius_km < 0:
        raise InvalidArgument("Radius must be a non-negative number of kilometers")
    return radius_km


def great_circle_km(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    p1, p2 = math.radians(lat1), math.radians(lat2)
    dlat = p2 - p1
    dlng = math.radians(lng2) - math.radians(lng1)
    h = math.sin(dlat / 2) ** 2 + math.cos(p1) * math.cos(p2) * math.sin(dlng / 2) ** 2
    return 2 * EARTH_RADIUS_KM * math.asin(min(1.0, math.sqrt(h)))


def great_circle_sql(lat: float, lng: float, lat_col: Any, lng_col: Any):
    """Distance in km from a fixed point to a (lat, lng) column pair."""
    half_dlat = (func.radians(lat_col) - func.radians(lat)) * 0.5
    half_dlng = (func.radians(lng_col) - func.radians(lng)) * 0.5
    sin_lat = func.sin(half_dlat)
    sin_lng = func.sin(half_dlng)
    h = sin_lat * sin_lat + func.cos(func.radians(lat)) * func.cos(func.radians(lat_col)) * sin_lng * sin_lng
    return 2 * EARTH_RADIUS_KM * func.asin(func.least(1.0, func.sqrt(h)))
