"""Tests for the routing/weather HTTP client."""

from datetime import date

import httpx
import pytest

from studentplanner.config import get_settings
from studentplanner.errors import ExternalServiceError
from studentplanner.schemas import Location
from studentplanner.travel.provider import RoutingProvider

ORIGIN = Location(name="five-ways", coordinates={"latitude": 52.4751, "longitude": -1.9180})
DESTINATION = Location(name="university", coordinates={"latitude": 52.4508, "longitude": -1.9305})


def _provider(handler) -> RoutingProvider:
    return RoutingProvider(
        base_url="https://routing.test/v1/",
        api_key="secret",
        timeout=1.0,
        max_retries=2,
        backoff=0,
        transport=httpx.MockTransport(handler),
    )


class TestGetRoute:
    """Tests for RoutingProvider.get_route."""

    @pytest.mark.asyncio
    async def test_success(self):
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(
                200, json={"distance_m": 2850, "duration_min": 11.5, "elevation_m": 32}
            )

        provider = _provider(handler)
        route = await provider.get_route(ORIGIN, DESTINATION, "bike")
        await provider.close()

        assert (route.distance_m, route.duration_min, route.elevation_m) == (2850, 11.5, 32)
        [request] = seen
        assert request.url.path == "/v1/route"
        assert request.url.params["mode"] == "bike"
        assert request.url.params["to_lat"] == "52.4508"
        assert request.headers["Authorization"] == "Bearer secret"

    @pytest.mark.asyncio
    async def test_http_error_not_retried(self):
        calls = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            return httpx.Response(503, text="maintenance")

        provider = _provider(handler)
        with pytest.raises(ExternalServiceError) as exc_info:
            await provider.get_route(ORIGIN, DESTINATION, "walk")
        await provider.close()

        assert exc_info.value.status_code == 503
        assert len(calls) == 1

    @pytest.mark.asyncio
    async def test_network_errors_retried_then_raised(self):
        calls = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            raise httpx.ConnectError("connection refused", request=request)

        provider = _provider(handler)
        with pytest.raises(ExternalServiceError):
            await provider.get_route(ORIGIN, DESTINATION, "walk")
        await provider.close()

        assert len(calls) == 3

    @pytest.mark.asyncio
    async def test_recovers_after_transient_error(self):
        calls = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            if len(calls) == 1:
                raise httpx.ReadTimeout("slow", request=request)
            return httpx.Response(200, json={"distance_m": 100, "duration_min": 2})

        provider = _provider(handler)
        route = await provider.get_route(ORIGIN, DESTINATION, "walk")
        await provider.close()

        assert route.elevation_m == 0
        assert len(calls) == 2

    @pytest.mark.asyncio
    async def test_malformed_body(self):
        provider = _provider(lambda request: httpx.Response(200, json={"distance": 1}))
        with pytest.raises(ExternalServiceError):
            await provider.get_route(ORIGIN, DESTINATION, "walk")
        await provider.close()

    @pytest.mark.asyncio
    async def test_needs_coordinates(self):
        provider = _provider(lambda request: pytest.fail("no request expected"))
        with pytest.raises(ExternalServiceError):
            await provider.get_route(Location(name="home"), DESTINATION, "walk")

    @pytest.mark.asyncio
    async def test_unconfigured(self, monkeypatch):
        monkeypatch.setenv("ROUTING_BASE_URL", "")
        get_settings.cache_clear()
        try:
            provider = RoutingProvider(base_url="")
            with pytest.raises(ExternalServiceError):
                await provider.get_route(ORIGIN, DESTINATION, "walk")
        finally:
            get_settings.cache_clear()


class TestGetForecast:
    """Tests for RoutingProvider.get_forecast."""

    @pytest.mark.asyncio
    async def test_success(self):
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.path == "/v1/forecast"
            assert request.url.params["date"] == "2024-01-15"
            return httpx.Response(
                200,
                json={
                    "condition": "rainy",
                    "temperature_c": 7,
                    "wind_speed_mph": 14,
                    "precipitation_mm": 3.5,
                },
            )

        provider = _provider(handler)
        forecast = await provider.get_forecast(ORIGIN, date(2024, 1, 15))
        await provider.close()

        assert forecast.condition == "rainy"
        assert forecast.precipitation_mm == 3.5

    @pytest.mark.asyncio
    async def test_unknown_condition_rejected(self):
        provider = _provider(lambda request: httpx.Response(200, json={"condition": "hail"}))
        with pytest.raises(ExternalServiceError):
            await provider.get_forecast(ORIGIN, date(2024, 1, 15))
        await provider.close()
