from __future__ import annotations
import math
from typing import Optional

from .models import Coordinates

EARTH_RADIUS_M = 6371000.0

def haversine_m(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    dphi = math.radians(lat2 - lat1)
    dl = math.radians(lon2 - lon1)
    a = math.sin(dphi/2)**2 + math.cos(phi1)*math.cos(phi2)*math.sin(dl/2)**2
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1-a))
    return EARTH_RADIUS_M * c

def distance_m(a: Optional[Coordinates], b: Optional[Coordinates]) -> Optional[float]:
    if a is None or b is None:
        return None
    return haversine_m(a.lat, a.lng, b.lat, b.lng)

def offset_coordinates(origin: Coordinates, north_m: float, east_m: float) -> Coordinates:
    # Small-distance approximation: 1 deg lat ~ 111 km, 1 deg lon ~ 111 km * cos(lat)
    dlat = north_m / 111000.0
    dlng = east_m / (111000.0 * max(0.2, math.cos(math.radians(origin.lat))))
    return Coordinates(lat=origin.lat + dlat, lng=origin.lng + dlng)
