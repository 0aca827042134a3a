from __future__ import annotations

from typing import Any

import pytest

from emergency_service.config import EmergencySettings
from emergency_service.dependencies import ServiceContainer
from emergency_service.errors import GeocodingError, MessagingError, PersistenceFailure
from emergency_service.observability import InMemoryMetricsCollector
from emergency_service.services.address_resolver import AddressResolver
from emergency_service.services.intake import EmergencyIntakeService
from emergency_service.services.notifier import Notifier
from emergency_service.store import EmergencyRequestStore

RECIPIENT = "whatsapp:+15550009999"
SENDER = "whatsapp:+14155238886"


class FakeGeocoder:
    def __init__(self, address: str | None = "1600 Amphitheatre Pkwy, Mountain View, CA") -> None:
        self.address = address
        self.calls: list[tuple[float, float]] = []

    async def reverse_geocode(self, latitude: float, longitude: float) -> str:
        self.calls.append((latitude, longitude))
        if self.address is None:
            raise GeocodingError("geocoding status 'ZERO_RESULTS'")
        return self.address


class FakeMessagingClient:
    def __init__(self, fail: bool = False) -> None:
        self.fail = fail
        self.sent: list[dict[str, str]] = []

    async def send(self, *, sender: str, recipient: str, body: str) -> str:
        if self.fail:
            raise MessagingError("messaging provider rejected the message")
        self.sent.append({"sender": sender, "recipient": recipient, "body": body})
        return f"SM{len(self.sent):032d}"

    async def close(self) -> None:
        return None


class FailingStore(EmergencyRequestStore):
    def __init__(self) -> None:
        super().__init__(database_url=None)
        self.attempts = 0

    async def insert(self, request):
        self.attempts += 1
        raise PersistenceFailure("insert failed: OperationalError")

    async def ping(self) -> None:
        raise ConnectionError("database unreachable")


def _build_container(
    store: EmergencyRequestStore,
    geocoder: FakeGeocoder,
    messaging: FakeMessagingClient,
    metrics: InMemoryMetricsCollector,
) -> ServiceContainer:
    intake = EmergencyIntakeService(
        store=store,
        resolver=AddressResolver(geocoder),
        notifier=Notifier(messaging, sender=SENDER, recipient=RECIPIENT),
        metrics=metrics,
    )
    return ServiceContainer(store=store, messaging_client=messaging, intake=intake)  # type: ignore[arg-type]


@pytest.fixture
def settings() -> EmergencySettings:
    return EmergencySettings(
        DATABASE_URL=None,
        NOTIFICATION_RECIPIENT=RECIPIENT,
        NOTIFICATION_SENDER=SENDER,
        CORS_ORIGINS="*",
    )


@pytest.fixture
def valid_payload() -> dict[str, Any]:
    return {
        "name": "Jane Doe",
        "phone": "+15550001",
        "issue": "flat tire",
        "vehicle": "Toyota Corolla",
        "latitude": 37.422,
        "longitude": -122.084,
    }


@pytest.fixture
def store() -> EmergencyRequestStore:
    return EmergencyRequestStore(database_url=None)


@pytest.fixture
def failing_store() -> FailingStore:
    return FailingStore()


@pytest.fixture
def geocoder() -> FakeGeocoder:
    return FakeGeocoder()


@pytest.fixture
def messaging() -> FakeMessagingClient:
    return FakeMessagingClient()


@pytest.fixture
def metrics() -> InMemoryMetricsCollector:
    return InMemoryMetricsCollector()


@pytest.fixture
def make_container(geocoder, messaging, metrics):
    def _make(store: EmergencyRequestStore) -> ServiceContainer:
        return _build_container(store, geocoder, messaging, metrics)

    return _make
