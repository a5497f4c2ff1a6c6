"""Address geocoding and great-circle distance."""

import math
from typing import Optional

import httpx

from app.config import settings
from app.core.exceptions import GeocodingError
from app.modules.geo.schemas import Coordinates
import logging

logger = logging.getLogger(__name__)

EARTH_RADIUS_KM = 6371.0


def haversine_distance_km(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    """Great-circle distance in km. Non-finite input yields NaN."""
    if not all(math.isfinite(v) for v in (lat1, lng1, lat2, lng2)):
        return math.nan
    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lng2 - lng1)
    a = math.sin(d_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    # rounding can push a a hair past 1 for antipodal points
    if a > 1.0:
        a = 1.0
    return EARTH_RADIUS_KM * 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))


class GeoLocator:
    """Resolves free-text addresses through the Google Geocoding API."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        client: Optional[httpx.Client] = None,
        url: Optional[str] = None,
    ):
        self.api_key = api_key if api_key is not None else settings.google_maps_api_key
        self.url = url or settings.geocoding_url
        self.client = client or httpx.Client(timeout=settings.geocoding_timeout)

    def geocode(self, address_text: str) -> Coordinates:
        """Coordinates of the best match for the address. Raises GeocodingError otherwise."""
        address_text = (address_text or "").strip()
        if not address_text:
            raise GeocodingError("Address is empty")

        try:
            response = self.client.get(
                self.url,
                params={"address": address_text, "key": self.api_key},
            )
        except httpx.HTTPError as e:
            logger.warning(f"Geocoding request failed for {address_text!r}: {str(e)}")
            raise GeocodingError(f"Geocoding service unavailable: {str(e)}")

        if response.status_code != 200:
            logger.warning(f"Geocoding returned HTTP {response.status_code} for {address_text!r}")
            raise GeocodingError(f"Geocoding service returned HTTP {response.status_code}")

        try:
            payload = response.json()
        except ValueError:
            raise GeocodingError("Geocoding service returned an invalid response")

        if not isinstance(payload, dict):
            logger.warning(f"Geocoding returned a non-object body for {address_text!r}")
            raise GeocodingError("Geocoding service returned an invalid response")

        status = payload.get("status")
        results = payload.get("results") or []
        if status not in (None, "OK") or not results:
            logger.info(f"No geocoding match for {address_text!r} (status={status})")
            raise GeocodingError(f"No location found for address: {address_text}")

        try:
            location = results[0]["geometry"]["location"]
            return Coordinates(lat=float(location["lat"]), lng=float(location["lng"]))
        except (KeyError, TypeError, ValueError):
            raise GeocodingError("Geocoding service returned an invalid response")

    def close(self):
        self.client.close()
