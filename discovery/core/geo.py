"""
core/geo.py – Great-circle distance and bounding boxes.
Pure functions, no I/O.
"""
import math
from dataclasses import dataclass
from typing import Optional

EARTH_RADIUS_KM = 6371.0
KM_PER_DEGREE = 111.32


@dataclass(frozen=True)
class BoundingBox:
    """
    Lat/lng rectangle. Longitudes are normalised to [-180, 180); a box that
    crosses the antimeridian has min_lng > max_lng.
    """
    min_lat: float
    max_lat: float
    min_lng: float
    max_lng: float

    @property
    def wraps(self) -> bool:
        return self.min_lng > self.max_lng

    def lng_ranges(self) -> list[tuple[float, float]]:
        """One (lo, hi) longitude range, or two when the box crosses ±180°."""
        if self.wraps:
            return [(self.min_lng, 180.0), (-180.0, self.max_lng)]
        return [(self.min_lng, self.max_lng)]

    def contains(self, lat: Optional[float], lng: Optional[float]) -> bool:
        if lat is None or lng is None:
            return False
        if not self.min_lat <= lat <= self.max_lat:
            return False
        return any(lo <= lng <= hi for lo, hi in self.lng_ranges())


def _missing(value: Optional[float]) -> bool:
    return value is None or (isinstance(value, float) and math.isnan(value))


def _wrap_lng(lng: float) -> float:
    return (lng + 180.0) % 360.0 - 180.0


def distance_km(
    lat1: Optional[float],
    lon1: Optional[float],
    lat2: Optional[float],
    lon2: Optional[float],
    precision: Optional[int] = 2,
) -> Optional[float]:
    """
    Haversine distance in km. None if any coordinate is missing or NaN.
    `precision` = decimals to round to; None leaves the value unrounded.
    """
    if any(_missing(v) for v in (lat1, lon1, lat2, lon2)):
        return None

    d_lat = math.radians(lat2 - lat1)
    d_lon = math.radians(lon2 - lon1)
    a = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(lat1)) * math.cos(math.radians(lat2)) * math.sin(d_lon / 2) ** 2
    )
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    distance = EARTH_RADIUS_KM * c
    return distance if precision is None else round(distance, precision)


def bounding_box(lat: float, lng: float, radius_km: float) -> BoundingBox:
    """Coarse lat/lng box around a point. Callers must still check distance_km."""
    deg_lng_km = abs(math.cos(math.radians(lat)) * KM_PER_DEGREE) or KM_PER_DEGREE
    lat_delta = radius_km / KM_PER_DEGREE
    lng_delta = radius_km / deg_lng_km
    min_lat = max(-90.0, lat - lat_delta)
    max_lat = min(90.0, lat + lat_delta)
    if lng_delta >= 180.0:
        return BoundingBox(min_lat=min_lat, max_lat=max_lat, min_lng=-180.0, max_lng=180.0)
    return BoundingBox(
        min_lat=min_lat,
        max_lat=max_lat,
        min_lng=_wrap_lng(lng - lng_delta),
        max_lng=_wrap_lng(lng + lng_delta),
    )


# ── Display helpers (saved places) ────────────────────────────────────────────

def format_distance(km: Optional[float]) -> Optional[str]:
    """'450 m' under 1 km, '4.8 km' under 10 km, '25 km' beyond."""
    if _missing(km):
        return None
    if km < 1:
        return f"{round(km * 1000)} m"
    if km < 10:
        v = round(km * 10) / 10
        return f"{v:.0f} km" if v % 1 == 0 else f"{v:.1f} km"
    return f"{round(km)} km"


def round_distance(km: Optional[float]) -> Optional[float]:
    if _missing(km):
        return None
    if km < 1:
        return round(km, 3)
    if km < 10:
        return round(km, 1)
    return float(round(km))
