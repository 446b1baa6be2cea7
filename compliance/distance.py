"""Great-circle distance and EU261 distance bands for airport pairs.

Bands follow the regulation's thresholds: up to 1500 km is short haul, up to
3500 km is medium haul, anything longer is long haul.
"""

from __future__ import annotations

import logging
import math
from functools import lru_cache
from typing import Optional, Tuple

from compliance.airports import get_airport
from compliance.errors import UnknownAirportError
from models.schemas import DistanceBand

logger = logging.getLogger(__name__)

EARTH_RADIUS_KM = 6371.0
SHORT_HAUL_MAX_KM = 1500
MEDIUM_HAUL_MAX_KM = 3500
FALLBACK_BAND = DistanceBand.MEDIUM


def haversine_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    d_lat = math.radians(lat2 - lat1)
    d_lon = math.radians(lon2 - lon1)
    a = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(lat1)) * math.cos(math.radians(lat2)) * math.sin(d_lon / 2) ** 2
    )
    return EARTH_RADIUS_KM * 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))


def band_for_distance(distance_km: float) -> DistanceBand:
    if distance_km <= SHORT_HAUL_MAX_KM:
        return DistanceBand.SHORT
    if distance_km <= MEDIUM_HAUL_MAX_KM:
        return DistanceBand.MEDIUM
    return DistanceBand.LONG


class DistanceResolver:
    def distance_km(self, origin: str, destination: str) -> float:
        return _distance_km(origin.strip().upper(), destination.strip().upper())

    def resolve(self, origin: str, destination: str) -> DistanceBand:
        """Band for the pair; raises UnknownAirportError for codes missing from the table."""
        return band_for_distance(self.distance_km(origin, destination))

    def resolve_or_fallback(self, origin: str, destination: str) -> Tuple[DistanceBand, Optional[str]]:
        """Resolve the band, degrading to medium haul with a caveat when an airport is unknown.

        Several rules need *some* band to produce a result, so an unknown
        airport never stops the evaluation.
        """
        try:
            return self.resolve(origin, destination), None
        except UnknownAirportError as exc:
            logger.warning("distance_band_fallback", extra={"airport": exc.code, "band": FALLBACK_BAND.value})
            caveat = (
                f"Airport {exc.code} is not in the reference table; distance assumed to be "
                f"{FALLBACK_BAND.value} haul (1500-3500 km)."
            )
            return FALLBACK_BAND, caveat

    def country_of(self, code: str) -> Optional[str]:
        airport = get_airport(code)
        return airport.country if airport else None

    def same_country(self, origin: str, destination: str) -> Optional[bool]:
        origin_country = self.country_of(origin)
        destination_country = self.country_of(destination)
        if origin_country is None or destination_country is None:
            return None
        return origin_country == destination_country


@lru_cache(maxsize=2048)
def _distance_km(origin: str, destination: str) -> float:
    start = get_airport(origin)
    if start is None:
        raise UnknownAirportError(origin)
    end = get_airport(destination)
    if end is None:
        raise UnknownAirportError(destination)
    if start.code == end.code:
        return 0.0
    return haversine_km(start.latitude, start.longitude, end.latitude, end.longitude)
