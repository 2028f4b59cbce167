"""
Geocoding Service

Resolves free-text addresses to coordinates through the Google Geocoding API.
Every lookup is bounded by GEOCODING_TIMEOUT_SECONDS; failures surface as
UpstreamUnavailableError so callers can degrade instead of hanging.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Optional

import httpx

from ..cache import Cache, cache
from ..config import (
    GEOCODING_CACHE_SECONDS,
    GEOCODING_TIMEOUT_SECONDS,
    GOOGLE_GEOCODING_URL,
    GOOGLE_MAPS_API_KEY,
)
from ..shared.exceptions import UpstreamUnavailableError, ValidationError
from ..utils.geo import Coordinates

logger = logging.getLogger(__name__)


class Geocoder(ABC):
    """Address → coordinates. Returns None when the address has no match."""

    @abstractmethod
    async def geocode(self, address: str) -> Optional[Coordinates]:
        ...


class GoogleGeocoder(Geocoder):
    """Google Geocoding API client with Redis caching"""

    def __init__(
        self,
        api_key: Optional[str] = GOOGLE_MAPS_API_KEY,
        base_url: str = GOOGLE_GEOCODING_URL,
        timeout: float = GEOCODING_TIMEOUT_SECONDS,
        client: Optional[httpx.AsyncClient] = None,
        result_cache: Cache = cache,
    ):
        self.api_key = api_key
        self.base_url = base_url
        self.timeout = timeout
        self.client = client
        self.cache = result_cache

    async def geocode(self, address: str) -> Optional[Coordinates]:
        address = (address or "").strip()
        if not address:
            raise ValidationError("Address is required", field="address")

        if not self.api_key:
            logger.warning("GOOGLE_MAPS_API_KEY not configured")
            raise UpstreamUnavailableError("Geocoding provider is not configured")

        cache_key = f"geo:google:{address.lower()}"
        cached = self.cache.get(cache_key)
        if cached:
            return Coordinates(lat=cached["lat"], lng=cached["lng"])

        try:
            coords = await asyncio.wait_for(self._request(address), timeout=self.timeout)
        except asyncio.TimeoutError as e:
            logger.warning(f"⏱️ Geocoding timed out after {self.timeout}s")
            raise UpstreamUnavailableError("Geocoding provider timed out") from e
        except httpx.HTTPError as e:
            logger.warning(f"Geocoding request failed: {e}")
            raise UpstreamUnavailableError("Geocoding provider error") from e
        except (ValueError, KeyError, TypeError, IndexError, AttributeError) as e:
            # Malformed provider payload
            logger.warning(f"Geocoding response could not be parsed: {e!r}")
            raise UpstreamUnavailableError("Geocoding provider returned an invalid response") from e

        if coords is not None:
            self.cache.set(cache_key, coords.to_dict(), GEOCODING_CACHE_SECONDS)
        return coords

    async def _request(self, address: str) -> Optional[Coordinates]:
        params = {"address": address, "key": self.api_key}

        if self.client is not None:
            resp = await self.client.get(self.base_url, params=params)
        else:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                resp = await client.get(self.base_url, params=params)

        if resp.status_code >= 400:
            logger.warning(f"Google geocoding error {resp.status_code}: {resp.text[:200]}")
            raise UpstreamUnavailableError("Geocoding provider error")

        data = resp.json()
        status = data.get("status")
        results = data.get("results") or []

        if status == "ZERO_RESULTS" or (status == "OK" and not results):
            return None
        if status != "OK":
            logger.warning(f"Google geocoding status {status}: {data.get('error_message', '')}")
            raise UpstreamUnavailableError(f"Geocoding provider returned {status}")

        location = results[0]["geometry"]["location"]
        return Coordinates(lat=float(location["lat"]), lng=float(location["lng"]))


def get_geocoder() -> Geocoder:
    """Dependency injection for the geocoder"""
    return GoogleGeocoder()
