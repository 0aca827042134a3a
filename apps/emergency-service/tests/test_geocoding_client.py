from __future__ import annotations

import httpx
import pytest

from emergency_service.clients.geocoding_client import GoogleGeocodingClient
from emergency_service.errors import GeocodingError
from emergency_service.models import UNKNOWN_LOCATION, Degraded, Resolved
from emergency_service.services.address_resolver import AddressResolver


def build_client(handler, api_key: str | None = "test-key") -> GoogleGeocodingClient:
    transport = httpx.MockTransport(handler)
    return GoogleGeocodingClient(
        api_key=api_key,
        timeout_seconds=5.0,
        base_url="https://geocode.example.com/json",
        client_factory=lambda: httpx.AsyncClient(transport=transport, timeout=5.0),
    )


@pytest.mark.asyncio
async def test_reverse_geocode_returns_first_formatted_address() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.params["latlng"] == "37.422,-122.084"
        assert request.url.params["key"] == "test-key"
        return httpx.Response(
            status_code=200,
            json={
                "status": "OK",
                "results": [
                    {"formatted_address": "1600 Amphitheatre Pkwy, Mountain View, CA"},
                    {"formatted_address": "Mountain View, CA"},
                ],
            },
        )

    address = await build_client(handler).reverse_geocode(37.422, -122.084)

    assert address == "1600 Amphitheatre Pkwy, Mountain View, CA"


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "response",
    [
        httpx.Response(200, json={"status": "ZERO_RESULTS", "results": []}),
        httpx.Response(200, json={"status": "OK", "results": []}),
        httpx.Response(200, json={"status": "REQUEST_DENIED", "error_message": "bad key"}),
        httpx.Response(200, json={"status": "OK", "results": [{"place_id": "x"}]}),
        httpx.Response(200, json=["not", "an", "object"]),
        httpx.Response(200, text="<html>oops</html>"),
        httpx.Response(503, json={"status": "UNKNOWN_ERROR"}),
    ],
)
async def test_reverse_geocode_rejects_unusable_responses(response: httpx.Response) -> None:
    client = build_client(lambda _: response)
    with pytest.raises(GeocodingError):
        await client.reverse_geocode(1.0, 2.0)


@pytest.mark.asyncio
async def test_reverse_geocode_maps_transport_errors() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectTimeout("timed out", request=request)

    with pytest.raises(GeocodingError):
        await build_client(handler).reverse_geocode(1.0, 2.0)


@pytest.mark.asyncio
async def test_reverse_geocode_without_api_key_does_not_call_provider() -> None:
    calls: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(200, json={"status": "OK", "results": []})

    with pytest.raises(GeocodingError):
        await build_client(handler, api_key=None).reverse_geocode(1.0, 2.0)
    assert calls == []


@pytest.mark.asyncio
async def test_resolver_wraps_success_as_resolved() -> None:
    client = build_client(
        lambda _: httpx.Response(200, json={"status": "OK", "results": [{"formatted_address": "Main St 1"}]})
    )
    resolution = await AddressResolver(client).resolve(1.0, 2.0)

    assert resolution == Resolved(address="Main St 1")
    assert resolution.display_address == "Main St 1"


@pytest.mark.asyncio
async def test_resolver_degrades_on_provider_failure() -> None:
    client = build_client(lambda _: httpx.Response(500))
    resolution = await AddressResolver(client).resolve(1.0, 2.0)

    assert isinstance(resolution, Degraded)
    assert resolution.display_address == UNKNOWN_LOCATION == "Unknown location"


@pytest.mark.asyncio
async def test_resolver_degrades_on_unexpected_exception() -> None:
    class BrokenGeocoder:
        async def reverse_geocode(self, latitude: float, longitude: float) -> str:
            raise KeyError("results")

    resolution = await AddressResolver(BrokenGeocoder()).resolve(1.0, 2.0)

    assert isinstance(resolution, Degraded)
    assert resolution.display_address == "Unknown location"
