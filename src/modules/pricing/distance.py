"""Great-circle distance and service-area checks.

Inputs are decimal degrees from the device location API.  Callers only
compute a distance once all four coordinates are present.
"""

from __future__ import annotations

from dataclasses import dataclass
from math import atan2, cos, radians, sin, sqrt
from typing import Optional, Sequence

EARTH_RADIUS_KM = 6371


def haversine_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Distance in kilometres between two latitude/longitude pairs."""
    d_lat = radians(lat2 - lat1)
    d_lon = radians(lon2 - lon1)
    a = (
        sin(d_lat / 2) ** 2
        + cos(radians(lat1)) * cos(radians(lat2)) * sin(d_lon / 2) ** 2
    )
    c = 2 * atan2(sqrt(a), sqrt(1 - a))
    return EARTH_RADIUS_KM * c


def has_coordinates(*values: Optional[float]) -> bool:
    return all(value is not None for value in values)


# ---------------------------------------------------------------------------
# Service zones
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ServiceZone:
    name: str
    region: str
    min_lat: float
    max_lat: float
    min_lon: float
    max_lon: float

    def contains(self, latitude: float, longitude: float) -> bool:
        return (
            self.min_lat <= latitude <= self.max_lat
            and self.min_lon <= longitude <= self.max_lon
        )


@dataclass(frozen=True)
class ZoneCheck:
    allowed: bool
    zone: Optional[str] = None
    message: Optional[str] = None


SERVICE_ZONES: Sequence[ServiceZone] = (
    ServiceZone("Georgetown", "Region 4", 6.78, 6.85, -58.20, -58.12),
    ServiceZone("East Bank Demerara", "Region 4", 6.70, 6.85, -58.25, -58.15),
    ServiceZone("East Coast Demerara", "Region 4", 6.75, 6.90, -58.10, -57.95),
)

OUT_OF_AREA_MESSAGE = (
    "Sorry, we currently do not service Region 3.\n\n"
    "Available areas:\n"
    "• Georgetown\n"
    "• East Bank Demerara\n"
    "• East Coast Demerara"
)


def check_service_area(
    latitude: float,
    longitude: float,
    zones: Sequence[ServiceZone] = SERVICE_ZONES,
) -> ZoneCheck:
    """First zone whose bounding box holds the point wins."""
    for zone in zones:
        if zone.contains(latitude, longitude):
            return ZoneCheck(allowed=True, zone=zone.name)
    return ZoneCheck(allowed=False, message=OUT_OF_AREA_MESSAGE)
