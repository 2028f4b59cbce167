"""
Best-fit day analysis

Recommends which weekday(s) a new or relocating customer should be routed on,
based on how close already-scheduled stops are on each day.

The analyzer itself is pure: it takes an already-geocoded coordinate and an
in-memory snapshot of stops. BestFitService wires in geocoding and the
database snapshot, and degrades to "no recommendation" when geocoding fails.
"""

import logging
from dataclasses import dataclass, field
from typing import Iterable, Optional

from sqlalchemy.orm import Session

from ..config import BEST_FIT_RECOMMENDATIONS, NEARBY_RADIUS_MILES
from ..domain.scheduling.recurrence import DAY_NAMES
from ..domain.scheduling.repository import ScheduleRuleRepository
from ..shared.exceptions import UpstreamUnavailableError
from ..utils.geo import Coordinates, distance_miles
from .geocoding_service import Geocoder

logger = logging.getLogger(__name__)

# Average distance reported for days without nearby stops, sorts them last
NO_NEARBY_DISTANCE = 999.0


@dataclass(frozen=True)
class RouteStop:
    coordinates: Coordinates
    weekday: int  # 0=Sunday


@dataclass(frozen=True)
class NearbyStop:
    lat: float
    lng: float
    distance_miles: float
    weekday: int


@dataclass
class DayFit:
    weekday: int
    day_name: str
    average_distance: float
    nearby_count: int
    nearby_stops: list[NearbyStop] = field(default_factory=list)


@dataclass
class BestFitResult:
    available: bool
    coordinates: Optional[Coordinates] = None
    suggestions: list[DayFit] = field(default_factory=list)
    recommended_days: list[int] = field(default_factory=list)
    reason: Optional[str] = None


class BestFitDayAnalyzer:
    """Scores the seven weekdays by proximity of existing stops to a candidate"""

    def __init__(self, radius_miles: float = NEARBY_RADIUS_MILES):
        self.radius_miles = radius_miles

    def analyze(self, candidate: Coordinates, stops: Iterable[RouteStop]) -> list[DayFit]:
        """
        Rank weekdays for a candidate coordinate.

        Days with nearby stops come first, closest average distance first.
        Days with none follow in weekday order.
        """
        distances: dict[int, list[float]] = {day: [] for day in range(7)}
        nearby: dict[int, list[NearbyStop]] = {day: [] for day in range(7)}

        for stop in stops:
            miles = distance_miles(candidate, stop.coordinates)
            if miles <= self.radius_miles:
                distances[stop.weekday].append(miles)
                nearby[stop.weekday].append(
                    NearbyStop(
                        lat=stop.coordinates.lat,
                        lng=stop.coordinates.lng,
                        distance_miles=round(miles, 1),
                        weekday=stop.weekday,
                    )
                )

        results = []
        for day in range(7):
            day_distances = distances[day]
            average = (
                sum(day_distances) / len(day_distances) if day_distances else NO_NEARBY_DISTANCE
            )
            results.append(
                DayFit(
                    weekday=day,
                    day_name=DAY_NAMES[day],
                    average_distance=average,
                    nearby_count=len(day_distances),
                    nearby_stops=sorted(nearby[day], key=lambda s: s.distance_miles),
                )
            )

        return sorted(
            results, key=lambda r: (r.nearby_count == 0, r.average_distance, r.weekday)
        )

    @staticmethod
    def recommend_days(ranked: list[DayFit], limit: int = BEST_FIT_RECOMMENDATIONS) -> list[int]:
        """Top ranked weekdays that have nearby stops, never padded with distant days"""
        return [fit.weekday for fit in ranked if fit.nearby_count > 0][:limit]


def stops_from_rows(rows: Iterable[tuple]) -> list[RouteStop]:
    """Flatten (lat, lng, by_day) rows: one stop per scheduled weekday"""
    stops = []
    for lat, lng, by_day in rows:
        coords = Coordinates(lat=float(lat), lng=float(lng))
        for day in by_day or []:
            stops.append(RouteStop(coordinates=coords, weekday=day))
    return stops


class BestFitService:
    """Geocodes an address and ranks weekdays against the current route snapshot"""

    def __init__(self, db: Session, geocoder: Geocoder, analyzer: Optional[BestFitDayAnalyzer] = None):
        self.db = db
        self.geocoder = geocoder
        self.analyzer = analyzer or BestFitDayAnalyzer()

    def current_stops(self, exclude_customer_id: Optional[int] = None) -> list[RouteStop]:
        rows = ScheduleRuleRepository.list_route_stops(self.db, exclude_customer_id)
        return stops_from_rows(rows)

    async def find_best_fit(
        self,
        address: str,
        exclude_customer_id: Optional[int] = None,
        limit: int = BEST_FIT_RECOMMENDATIONS,
    ) -> BestFitResult:
        try:
            coords = await self.geocoder.geocode(address)
        except UpstreamUnavailableError as e:
            logger.warning(f"⚠️ Best-fit unavailable, geocoding failed: {e.message}")
            return BestFitResult(available=False, reason=e.message)

        if coords is None:
            logger.info("Best-fit unavailable, address could not be geocoded")
            return BestFitResult(available=False, reason="Could not geocode address")

        ranked = self.analyzer.analyze(coords, self.current_stops(exclude_customer_id))
        return BestFitResult(
            available=True,
            coordinates=coords,
            suggestions=ranked,
            recommended_days=self.analyzer.recommend_days(ranked, limit),
        )
