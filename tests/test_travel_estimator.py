"""Tests for travel estimates, caching and provider fallback."""

from datetime import date, datetime
from unittest.mock import AsyncMock

import pytest

from studentplanner.errors import ExternalServiceError
from studentplanner.schemas import Location, TravelConditions, WeatherForecast
from studentplanner.travel.cache import InMemoryTTLCache
from studentplanner.travel.estimator import FALLBACK_FORECAST, TravelEstimator, haversine_km
from studentplanner.travel.provider import ProviderRoute

UNIVERSITY = Location(
    name="university", coordinates={"latitude": 52.4508, "longitude": -1.9305}
)
NEARBY = Location(name="corner-shop", coordinates={"latitude": 52.4760, "longitude": -1.9170})

RAIN = WeatherForecast(condition="rainy", temperature_c=9, wind_speed_mph=10, precipitation_mm=4)
SUNNY = WeatherForecast(condition="sunny", temperature_c=18)


@pytest.fixture
def provider():
    provider = AsyncMock()
    provider.get_route.return_value = ProviderRoute(distance_m=2900, duration_min=34, elevation_m=30)
    provider.get_forecast.return_value = RAIN
    return provider


@pytest.fixture
def estimator(clock, provider):
    return TravelEstimator(
        cache=InMemoryTTLCache(clock=clock),
        provider=provider,
        cache_ttl=600,
        today=lambda: date(2024, 1, 15),
    )


@pytest.fixture
def static_estimator():
    return TravelEstimator(cache=InMemoryTTLCache())


class TestHaversine:
    """Tests for great-circle distance."""

    def test_distance(self, home):
        assert haversine_km(home, UNIVERSITY) == pytest.approx(2.83, abs=0.05)

    def test_missing_coordinates(self, home):
        assert haversine_km(home, Location(name="somewhere")) is None


class TestStaticModel:
    """Routes estimated without a provider."""

    @pytest.mark.asyncio
    async def test_rain_slows_walking(self, static_estimator, home):
        dry = await static_estimator.get_route(home, UNIVERSITY, "walk")
        wet = await static_estimator.get_route(
            home, UNIVERSITY, "walk", TravelConditions(weather=RAIN)
        )

        assert wet.duration_min > dry.duration_min
        assert wet.distance_m == dry.distance_m
        assert wet.weather_suitability < dry.weather_suitability

    @pytest.mark.asyncio
    async def test_rain_does_not_slow_train(self, static_estimator, home):
        dry = await static_estimator.get_route(home, UNIVERSITY, "train")
        wet = await static_estimator.get_route(
            home, UNIVERSITY, "train", TravelConditions(weather=RAIN)
        )
        assert wet.duration_min == dry.duration_min

    @pytest.mark.asyncio
    async def test_low_energy_and_rush_hour(self, static_estimator, home):
        base = await static_estimator.get_route(home, UNIVERSITY, "bike")
        tired = await static_estimator.get_route(
            home,
            UNIVERSITY,
            "bike",
            TravelConditions(energy=0.2, departure=datetime(2024, 1, 15, 8, 15)),
        )
        assert tired.duration_min > base.duration_min

    def test_walk_speed(self, static_estimator, home):
        route = static_estimator.static_route(home, UNIVERSITY, "walk")
        distance_km = haversine_km(home, UNIVERSITY)
        assert route.duration_min == pytest.approx(distance_km / 5 * 60)
        assert route.cost == 0

    @pytest.mark.parametrize(
        "distance_km,fare",
        [(3.0, 2.05), (10.0, 3.40), (20.0, 5.20)],
    )
    def test_train_fare_bands(self, static_estimator, distance_km, fare):
        assert static_estimator._fare("train", distance_km) == fare

    def test_missing_coordinates_fall_back_to_fixed_distance(self, static_estimator):
        route = static_estimator.static_route(Location(name="a"), Location(name="b"), "walk")
        assert route.distance_m == pytest.approx(3000)

    def test_weather_suitability(self):
        sunny = WeatherForecast(condition="sunny", temperature_c=18)
        snowy = WeatherForecast(condition="snowy", temperature_c=-1)

        assert TravelEstimator.weather_suitability(sunny, "bike") == 1.0
        assert TravelEstimator.weather_suitability(snowy, "bike") == 0.1
        assert TravelEstimator.weather_suitability(RAIN, "walk") == 0.3
        assert TravelEstimator.weather_suitability(snowy, "train") == 0.9


class TestBestRoute:
    """Tests for mode selection."""

    @pytest.mark.asyncio
    async def test_long_trips_never_walk(self, static_estimator, home):
        route = await static_estimator.best_route(home, UNIVERSITY)
        assert route.mode in ("bike", "train")

    @pytest.mark.asyncio
    async def test_picks_highest_score(self, static_estimator, home):
        conditions = TravelConditions()
        best = await static_estimator.best_route(home, NEARBY, conditions)

        scores = {}
        for mode in ("walk", "bike", "train"):
            route = await static_estimator.get_route(home, NEARBY, mode, conditions)
            scores[mode] = static_estimator.route_score(route, conditions)
        assert static_estimator.route_score(best, conditions) == max(scores.values())


class TestProviderAndCache:
    """Provider results are cached and failures fall back to the static model."""

    @pytest.mark.asyncio
    async def test_cached_within_ttl(self, estimator, provider, home):
        first = await estimator.get_route(home, UNIVERSITY, "bike")
        second = await estimator.get_route(home, UNIVERSITY, "bike")

        assert first == second
        assert provider.get_route.await_count == 1
        assert first.distance_m == 2900

    @pytest.mark.asyncio
    async def test_conditions_applied_after_cache(self, estimator, provider, home):
        dry = await estimator.get_route(home, UNIVERSITY, "walk", TravelConditions(weather=SUNNY))
        wet = await estimator.get_route(home, UNIVERSITY, "walk", TravelConditions(weather=RAIN))

        assert provider.get_route.await_count == 1
        assert wet.duration_min > dry.duration_min

    @pytest.mark.asyncio
    async def test_refetched_after_ttl(self, estimator, provider, clock, home):
        await estimator.get_route(home, UNIVERSITY, "bike")
        clock.advance(601)
        await estimator.get_route(home, UNIVERSITY, "bike")

        assert provider.get_route.await_count == 2

    @pytest.mark.asyncio
    async def test_provider_failure_uses_static_model(self, estimator, provider, clock, home):
        provider.get_route.side_effect = ExternalServiceError("routing down", status_code=503)

        route = await estimator.get_route(home, UNIVERSITY, "walk")
        expected = estimator.apply_adjustments(
            estimator.static_route(home, UNIVERSITY, "walk"), TravelConditions(weather=RAIN)
        )
        assert route == expected

        # Fallbacks are cached briefly so the provider is retried soon
        clock.advance(TravelEstimator.FALLBACK_TTL + 1)
        await estimator.get_route(home, UNIVERSITY, "walk")
        assert provider.get_route.await_count == 2

    @pytest.mark.asyncio
    async def test_forecast_cached(self, estimator, provider, home):
        day = date(2024, 1, 15)
        assert await estimator.get_forecast(home, day) == RAIN
        assert await estimator.get_forecast(home, day) == RAIN
        assert provider.get_forecast.await_count == 1

    @pytest.mark.asyncio
    async def test_forecast_failure_uses_default(self, estimator, provider, home):
        provider.get_forecast.side_effect = ExternalServiceError("weather down")
        assert await estimator.get_forecast(home, date(2024, 1, 15)) == FALLBACK_FORECAST

    @pytest.mark.asyncio
    async def test_no_provider_forecast(self, static_estimator, home):
        assert await static_estimator.get_forecast(home, date(2024, 1, 15)) == FALLBACK_FORECAST


class TestForecastResolution:
    """Routes without explicit weather use the forecast for the origin."""

    @pytest.mark.asyncio
    async def test_forecast_applied_when_weather_missing(self, estimator, provider, home):
        forecast = await estimator.get_route(home, UNIVERSITY, "walk")
        explicit = await estimator.get_route(
            home, UNIVERSITY, "walk", TravelConditions(weather=RAIN)
        )

        assert forecast == explicit
        provider.get_forecast.assert_awaited_once_with(home, date(2024, 1, 15))

    @pytest.mark.asyncio
    async def test_departure_day_selects_forecast(self, estimator, provider, home):
        departure = datetime(2024, 1, 18, 12, 0)
        await estimator.get_route(home, UNIVERSITY, "bike", TravelConditions(departure=departure))

        provider.get_forecast.assert_awaited_once_with(home, date(2024, 1, 18))

    @pytest.mark.asyncio
    async def test_explicit_weather_skips_forecast(self, estimator, provider, home):
        await estimator.get_route(home, UNIVERSITY, "walk", TravelConditions(weather=SUNNY))
        provider.get_forecast.assert_not_awaited()

    def test_zero_ttl_is_kept(self):
        assert TravelEstimator(cache=InMemoryTTLCache(), cache_ttl=0).cache_ttl == 0


class TestAlternatives:
    """All eligible modes ranked by score."""

    @pytest.mark.asyncio
    async def test_ranked_best_first(self, static_estimator, home):
        conditions = TravelConditions()
        routes = await static_estimator.alternatives(home, NEARBY, conditions)

        assert sorted(route.mode for route in routes) == ["bike", "train", "walk"]
        scores = [static_estimator.route_score(route, conditions) for route in routes]
        assert scores == sorted(scores, reverse=True)
        assert await static_estimator.best_route(home, NEARBY, conditions) == routes[0]

    @pytest.mark.asyncio
    async def test_long_trips_exclude_walking(self, static_estimator, home):
        routes = await static_estimator.alternatives(home, UNIVERSITY)
        assert [route.mode for route in routes if route.mode == "walk"] == []
        assert len(routes) == 2
