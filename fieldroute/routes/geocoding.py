"""Geocoding and best-fit day routes.

/geocoding/geocode resolves an address and surfaces provider failures.
/geocoding/best-fit never fails on provider trouble: it answers with
available=false so the operator can pick days by hand.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.orm import Session

from ..database import get_db
from ..services.best_fit import BestFitService
from ..services.geocoding_service import Geocoder, get_geocoder
from ..shared.exceptions import NotFoundError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/geocoding", tags=["Geocoding"])


class AddressRequest(BaseModel):
    address: str


class BestFitRequest(BaseModel):
    address: str
    customerId: Optional[int] = None
    limit: int = 3


class CoordinatesResponse(BaseModel):
    lat: float
    lng: float


class NearbyCustomerResponse(BaseModel):
    lat: float
    lng: float
    distanceMiles: float
    dayOfWeek: int


class DayDistanceResponse(BaseModel):
    dayOfWeek: int
    dayName: str
    averageDistance: float
    nearbyCount: int
    nearbyCustomers: list[NearbyCustomerResponse]


class BestFitResponse(BaseModel):
    available: bool
    coordinates: Optional[CoordinatesResponse] = None
    suggestions: list[DayDistanceResponse]
    recommendedDays: list[int]
    reason: Optional[str] = None


@router.post("/geocode", response_model=CoordinatesResponse)
async def geocode(data: AddressRequest, geocoder: Geocoder = Depends(get_geocoder)):
    coords = await geocoder.geocode(data.address)
    if coords is None:
        raise NotFoundError("Address", data.address)
    return CoordinatesResponse(lat=coords.lat, lng=coords.lng)


@router.post("/best-fit", response_model=BestFitResponse)
async def find_best_fit(
    data: BestFitRequest,
    db: Session = Depends(get_db),
    geocoder: Geocoder = Depends(get_geocoder),
):
    """Rank weekdays for a new address by proximity to already-routed customers"""
    result = await BestFitService(db, geocoder).find_best_fit(
        data.address, exclude_customer_id=data.customerId, limit=max(1, min(data.limit, 7))
    )

    return BestFitResponse(
        available=result.available,
        coordinates=(
            CoordinatesResponse(lat=result.coordinates.lat, lng=result.coordinates.lng)
            if result.coordinates
            else None
        ),
        suggestions=[
            DayDistanceResponse(
                dayOfWeek=fit.weekday,
                dayName=fit.day_name,
                averageDistance=round(fit.average_distance, 2),
                nearbyCount=fit.nearby_count,
                nearbyCustomers=[
                    NearbyCustomerResponse(
                        lat=stop.lat,
                        lng=stop.lng,
                        distanceMiles=stop.distance_miles,
                        dayOfWeek=stop.weekday,
                    )
                    for stop in fit.nearby_stops
                ],
            )
            for fit in result.suggestions
        ],
        recommendedDays=result.recommended_days,
        reason=result.reason,
    )
