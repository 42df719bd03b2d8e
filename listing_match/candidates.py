from __future__ import annotations
from typing import Iterable, List, Optional, Tuple

from .models import AddressRecord, Coordinates
from .utils import haversine_m


def candidates_in_radius(center: Optional[Coordinates],
                         radius: float,
                         catalog: Iterable[AddressRecord]) -> List[AddressRecord]:
    """Records within `radius` metres of `center`, catalog order preserved.
    Records without coordinates never qualify."""
    return [rec for rec, _ in candidates_with_distance(center, radius, catalog)]


def candidates_with_distance(center: Optional[Coordinates],
                             radius: float,
                             catalog: Iterable[AddressRecord]) -> List[Tuple[AddressRecord, float]]:
    if center is None:
        return []
    out: List[Tuple[AddressRecord, float]] = []
    for rec in catalog:
        c = rec.coordinates
        if c is None:
            continue
        d = haversine_m(center.lat, center.lng, c.lat, c.lng)
        if d <= radius:
            out.append((rec, d))
    return out
