"""
Geospatial helpers: coordinates and great-circle distance
"""

import math
from dataclasses import dataclass

EARTH_RADIUS_KM = 6371.0
KM_TO_MILES = 0.621371


@dataclass(frozen=True)
class Coordinates:
    lat: float
    lng: float

    def __post_init__(self):
        if not -90 <= self.lat <= 90:
            raise ValueError(f"Invalid latitude: {self.lat}. Must be between -90 and 90.")
        if not -180 <= self.lng <= 180:
            raise ValueError(f"Invalid longitude: {self.lng}. Must be between -180 and 180.")

    def to_dict(self) -> dict:
        return {"lat": self.lat, "lng": self.lng}


def haversine_km(point1: Coordinates, point2: Coordinates) -> float:
    """Great-circle distance between two coordinates, in kilometres"""
    d_lat = math.radians(point2.lat - point1.lat)
    d_lng = math.radians(point2.lng - point1.lng)

    a = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(point1.lat))
        * math.cos(math.radians(point2.lat))
        * math.sin(d_lng / 2) ** 2
    )
    return EARTH_RADIUS_KM * 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))


def distance_miles(point1: Coordinates, point2: Coordinates) -> float:
    return haversine_km(point1, point2) * KM_TO_MILES
