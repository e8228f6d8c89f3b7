# src/core/geo/service.py
"""
Reverse geocoding over the Google Geocoding API.
Best-effort enrichment: every failure degrades to ``None``.
"""

from __future__ import annotations

from typing import Optional

import httpx

from src.common.logger import log_debug, log_warning


class GeoService:
    """Coordinates -> human-readable address."""

    GEOCODING_URL = "https://maps.googleapis.com/maps/api/geocode/json"

    def __init__(
        self,
        api_key: str | None = None,
        language: str = "en",
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """
        Args:
            api_key: Google Maps API key (taken from settings when None)
            language: Response language
            client: Shared HTTP client (a private one is created when None)
        """
        if api_key is None:
            from src.config import settings
            api_key = settings.google_maps.GOOGLE_MAPS_API_KEY
            language = settings.google_maps.GEOCODING_LANGUAGE

        self._api_key = api_key
        self._language = language
        self._client = client or httpx.AsyncClient(timeout=10.0)

    async def close(self) -> None:
        await self._client.aclose()

    async def reverse_geocode(
        self,
        latitude: float | None,
        longitude: float | None,
    ) -> Optional[str]:
        """
        Reverse geocoding: coordinates -> formatted address.

        Args:
            latitude: Latitude
            longitude: Longitude

        Returns:
            First formatted address, or None (no key, no coordinates, no
            result, or any transport error)
        """
        if latitude is None or longitude is None:
            return None

        if not self._api_key:
            await log_debug("Google Maps API key is not configured, address skipped")
            return None

        try:
            response = await self._client.get(
                self.GEOCODING_URL,
                params={
                    "latlng": f"{latitude},{longitude}",
                    "key": self._api_key,
                    "language": self._language,
                },
            )
            data = response.json()

            if data.get("status") != "OK" or not data.get("results"):
                return None

            return data["results"][0].get("formatted_address")
        except Exception as e:
            await log_warning(f"Reverse geocoding failed for ({latitude}, {longitude}): {e}")
            return None
