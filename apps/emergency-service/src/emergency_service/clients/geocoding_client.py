from __future__ import annotations

from collections.abc import Callable
from typing import Any

import httpx

from emergency_service.errors import GeocodingError

GOOGLE_GEOCODE_URL = "https://maps.googleapis.com/maps/api/geocode/json"


class GoogleGeocodingClient:
    def __init__(
        self,
        api_key: str | None,
        timeout_seconds: float = 5.0,
        base_url: str = GOOGLE_GEOCODE_URL,
        client_factory: Callable[[], httpx.AsyncClient] | None = None,
    ) -> None:
        self._api_key = api_key
        self._timeout_seconds = timeout_seconds
        self._base_url = base_url
        self._client_factory = client_factory

    @property
    def enabled(self) -> bool:
        return bool(self._api_key)

    async def reverse_geocode(self, latitude: float, longitude: float) -> str:
        """Return the first formatted address for the coordinates.

        Raises ``GeocodingError`` for transport failures, non-2xx replies and
        payloads without an ``OK`` status and at least one result.
        """
        if not self.enabled:
            raise GeocodingError("geocoding api key is not configured")

        params = {"latlng": f"{latitude},{longitude}", "key": self._api_key}
        try:
            factory = self._client_factory or (lambda: httpx.AsyncClient(timeout=self._timeout_seconds))
            async with factory() as client:
                response = await client.get(self._base_url, params=params)
                response.raise_for_status()
        except httpx.TimeoutException as exc:
            raise GeocodingError("geocoding request timed out") from exc
        except httpx.HTTPStatusError as exc:
            raise GeocodingError(f"geocoding provider returned {exc.response.status_code}") from exc
        except httpx.HTTPError as exc:
            raise GeocodingError("geocoding request failed") from exc

        try:
            payload: Any = response.json()
        except ValueError as exc:
            raise GeocodingError("geocoding response is not json") from exc
        if not isinstance(payload, dict):
            raise GeocodingError("geocoding response is not an object")

        status = payload.get("status")
        results = payload.get("results")
        if status != "OK":
            raise GeocodingError(f"geocoding status {status!r}")
        if not isinstance(results, list) or not results:
            raise GeocodingError("geocoding returned no results")

        first = results[0]
        address = first.get("formatted_address") if isinstance(first, dict) else None
        if not isinstance(address, str) or not address.strip():
            raise GeocodingError("geocoding result has no formatted_address")
        return address
