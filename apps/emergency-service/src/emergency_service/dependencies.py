from __future__ import annotations

from dataclasses import dataclass

from fastapi import Request

from emergency_service.clients.geocoding_client import GoogleGeocodingClient
from emergency_service.clients.messaging_client import TwilioMessagingClient
from emergency_service.config import EmergencySettings
from emergency_service.observability import MetricsCollector
from emergency_service.services.address_resolver import AddressResolver
from emergency_service.services.intake import EmergencyIntakeService
from emergency_service.services.notifier import Notifier
from emergency_service.store import EmergencyRequestStore


@dataclass
class ServiceContainer:
    """Process-wide collaborators shared by every request."""

    store: EmergencyRequestStore
    messaging_client: TwilioMessagingClient
    intake: EmergencyIntakeService

    async def start(self) -> None:
        await self.store.ensure_ready()

    async def close(self) -> None:
        try:
            await self.messaging_client.close()
        finally:
            await self.store.close()


def build_container(settings: EmergencySettings, metrics: MetricsCollector | None = None) -> ServiceContainer:
    store = EmergencyRequestStore(database_url=settings.DATABASE_URL)
    geocoder = GoogleGeocodingClient(
        api_key=settings.GOOGLE_MAPS_API_KEY,
        timeout_seconds=settings.GEOCODING_TIMEOUT_SECONDS,
    )
    messaging_client = TwilioMessagingClient(
        account_sid=settings.TWILIO_ACCOUNT_SID,
        auth_token=settings.TWILIO_AUTH_TOKEN,
        timeout_seconds=settings.MESSAGING_TIMEOUT_SECONDS,
    )
    intake = EmergencyIntakeService(
        store=store,
        resolver=AddressResolver(geocoder),
        notifier=Notifier(
            messaging_client,
            sender=settings.NOTIFICATION_SENDER,
            recipient=settings.NOTIFICATION_RECIPIENT,
        ),
        metrics=metrics,
    )
    return ServiceContainer(store=store, messaging_client=messaging_client, intake=intake)


def get_intake_service(request: Request) -> EmergencyIntakeService:
    return request.app.state.container.intake


def get_request_store(request: Request) -> EmergencyRequestStore:
    return request.app.state.container.store
