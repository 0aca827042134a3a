from __future__ import annotations

import logging
from typing import Protocol

from emergency_service.models import AddressResolution, Degraded, Resolved

logger = logging.getLogger(__name__)


class ReverseGeocoder(Protocol):
    async def reverse_geocode(self, latitude: float, longitude: float) -> str: ...


class AddressResolver:
    """Best-effort coordinates to display address lookup.

    ``resolve`` never raises for provider failures; it returns ``Degraded`` and
    the notification falls back to "Unknown location".
    """

    def __init__(self, geocoder: ReverseGeocoder) -> None:
        self._geocoder = geocoder

    async def resolve(self, latitude: float, longitude: float) -> AddressResolution:
        try:
            address = await self._geocoder.reverse_geocode(latitude, longitude)
        except Exception as exc:
            logger.warning(
                "address_resolution_degraded",
                extra={"component": "address_resolver", "reason": str(exc)},
            )
            return Degraded(reason=str(exc) or type(exc).__name__)
        return Resolved(address=address)
