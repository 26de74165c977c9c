"""Travel time and cost estimates for short local journeys."""

import math
from collections.abc import Callable
from dataclasses import dataclass
from datetime import date, time

from studentplanner.config import get_settings
from studentplanner.errors import ExternalServiceError
from studentplanner.logging_config import get_logger
from studentplanner.schemas import (
    Location,
    RouteEstimate,
    TravelConditions,
    TravelMode,
    WeatherForecast,
)
from studentplanner.travel.cache import Cache, InMemoryTTLCache
from studentplanner.travel.provider import RoutingProvider

logger = get_logger(__name__)

EARTH_RADIUS_KM = 6371.0

# Approximate ground elevation (m) of known neighbourhoods
KNOWN_ELEVATIONS: dict[str, float] = {
    "five-ways": 150.0,
    "university": 120.0,
    "selly-oak": 110.0,
    "city-centre": 140.0,
}
DEFAULT_ELEVATION = 130.0

FALLBACK_FORECAST = WeatherForecast(
    condition="cloudy",
    temperature_c=12.0,
    wind_speed_mph=8.0,
    precipitation_mm=0.0,
)

RUSH_HOURS = ((time(7, 0), time(9, 30)), (time(16, 0), time(18, 30)))


def haversine_km(origin: Location, destination: Location) -> float | None:
    """Great-circle distance, or None when either end has no coordinates."""
    if origin.coordinates is None or destination.coordinates is None:
        return None

    lat1 = math.radians(origin.coordinates.latitude)
    lat2 = math.radians(destination.coordinates.latitude)
    d_lat = lat2 - lat1
    d_lon = math.radians(destination.coordinates.longitude - origin.coordinates.longitude)

    a = math.sin(d_lat / 2) ** 2 + math.cos(lat1) * math.cos(lat2) * math.sin(d_lon / 2) ** 2
    return EARTH_RADIUS_KM * 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))


def elevation_change(origin: Location, destination: Location) -> float:
    start = KNOWN_ELEVATIONS.get(origin.name.lower(), DEFAULT_ELEVATION)
    end = KNOWN_ELEVATIONS.get(destination.name.lower(), DEFAULT_ELEVATION)
    return abs(end - start)


@dataclass(frozen=True)
class BaseRoute:
    """Route before any condition adjustment. This is what gets cached."""

    mode: TravelMode
    distance_m: float
    duration_min: float
    elevation_m: float
    cost: float


class TravelEstimator:
    """
    Estimates walk, bike and train journeys.

    Base routes come from the external provider when one is configured and
    from a static haversine/elevation model otherwise, or whenever the
    provider fails. Base routes and forecasts are cached; condition
    adjustments are applied on every call.
    """

    WALK_SPEED_KMH = 5.0
    BIKE_SPEED_KMH = 15.0
    TRAIN_SPEED_KMH = 40.0
    BIKE_PARKING_MIN = 5.0
    BIKE_MIN_PER_ELEVATION_M = 0.5
    STATION_WALK_MIN = 5.0
    FALLBACK_DISTANCE_KM = 3.0

    # (max distance km, fare GBP); longer trips pay TRAIN_MAX_FARE
    TRAIN_FARE_BANDS = ((5.0, 2.05), (15.0, 3.40))
    TRAIN_MAX_FARE = 5.20

    SAFETY_RATINGS: dict[str, int] = {"walk": 4, "bike": 4, "train": 5}

    RAIN_MULTIPLIER = 1.3
    RAIN_PRECIPITATION_MM = 2.0
    WIND_MULTIPLIER = 1.2
    WIND_THRESHOLD_MPH = 20.0
    COLD_MULTIPLIER = 1.1
    COLD_THRESHOLD_C = 3.0
    LOW_ENERGY_MULTIPLIER = 1.4
    MEDIUM_ENERGY_MULTIPLIER = 1.2
    RUSH_HOUR_MULTIPLIER = 1.15
    EQUIPMENT_MULTIPLIER = 1.1

    WALK_MAX_KM = 1.5
    FALLBACK_TTL = 300.0

    def __init__(
        self,
        cache: Cache | None = None,
        provider: RoutingProvider | None = None,
        cache_ttl: float | None = None,
        today: Callable[[], date] = date.today,
    ):
        settings = get_settings()
        self.cache_ttl = cache_ttl if cache_ttl is not None else settings.cache_ttl_seconds
        self.cache = cache if cache is not None else InMemoryTTLCache(
            default_ttl=self.cache_ttl, max_entries=settings.cache_max_entries
        )
        self.provider = provider
        self._today = today

    # =========================================================================
    # Public API
    # =========================================================================

    async def get_route(
        self,
        origin: Location,
        destination: Location,
        mode: TravelMode,
        conditions: TravelConditions | None = None,
    ) -> RouteEstimate:
        """
        Route estimate for one mode, adjusted for ``conditions``.

        Without weather in ``conditions``, the forecast at the origin for the
        departure day (today if unset) is used.
        """
        conditions = await self._with_forecast(origin, conditions)
        base = await self._base_route(origin, destination, mode)
        return self.apply_adjustments(base, conditions)

    async def get_forecast(self, location: Location, day: date) -> WeatherForecast:
        key = ("forecast", location.cache_key, day.isoformat())
        cached = self.cache.get(key)
        if cached is not None:
            return cached

        forecast = FALLBACK_FORECAST
        ttl = self.cache_ttl
        if self.provider is not None:
            try:
                forecast = await self.provider.get_forecast(location, day)
            except ExternalServiceError as e:
                logger.warning(f"Forecast unavailable for {location.name}, using default: {e.message}")
                ttl = self.FALLBACK_TTL

        self.cache.set(key, forecast, ttl=ttl)
        return forecast

    async def best_route(
        self,
        origin: Location,
        destination: Location,
        conditions: TravelConditions | None = None,
    ) -> RouteEstimate:
        """Highest-scoring mode for the journey."""
        best = (await self.alternatives(origin, destination, conditions))[0]
        logger.debug(f"Best route {origin.name} -> {destination.name}: {best.mode}")
        return best

    async def alternatives(
        self,
        origin: Location,
        destination: Location,
        conditions: TravelConditions | None = None,
    ) -> list[RouteEstimate]:
        """
        Every eligible mode for the journey, best score first.

        Walking is only considered for journeys under WALK_MAX_KM. Equal
        scores keep the order walk, bike, train.
        """
        conditions = await self._with_forecast(origin, conditions)
        distance_km = haversine_km(origin, destination)
        if distance_km is None:
            distance_km = self.FALLBACK_DISTANCE_KM

        modes: list[TravelMode] = ["bike", "train"]
        if distance_km < self.WALK_MAX_KM:
            modes.insert(0, "walk")

        routes = [await self.get_route(origin, destination, mode, conditions) for mode in modes]
        return sorted(routes, key=lambda route: -self.route_score(route, conditions))

    # =========================================================================
    # Adjustments and scoring
    # =========================================================================

    def apply_adjustments(self, base: BaseRoute, conditions: TravelConditions) -> RouteEstimate:
        """Apply each condition multiplier at most once and round the result."""
        weather = conditions.weather or FALLBACK_FORECAST
        multiplier = 1.0

        if base.mode in ("walk", "bike"):
            if weather.condition == "rainy" or weather.precipitation_mm > self.RAIN_PRECIPITATION_MM:
                multiplier *= self.RAIN_MULTIPLIER
            if weather.wind_speed_mph > self.WIND_THRESHOLD_MPH:
                multiplier *= self.WIND_MULTIPLIER
            if weather.temperature_c < self.COLD_THRESHOLD_C:
                multiplier *= self.COLD_MULTIPLIER

        if conditions.energy < 0.3:
            multiplier *= self.LOW_ENERGY_MULTIPLIER
        elif conditions.energy <= 0.6:
            multiplier *= self.MEDIUM_ENERGY_MULTIPLIER

        if conditions.departure is not None and self._is_rush_hour(conditions.departure.time()):
            multiplier *= self.RUSH_HOUR_MULTIPLIER

        if conditions.carrying_equipment:
            multiplier *= self.EQUIPMENT_MULTIPLIER

        return RouteEstimate(
            mode=base.mode,
            distance_m=round(base.distance_m, 1),
            duration_min=round(base.duration_min * multiplier),
            elevation_m=base.elevation_m,
            difficulty=self._difficulty(base.elevation_m),
            weather_suitability=self.weather_suitability(weather, base.mode),
            safety_rating=self.SAFETY_RATINGS[base.mode],
            cost=base.cost,
        )

    @staticmethod
    def weather_suitability(weather: WeatherForecast, mode: TravelMode) -> float:
        condition = weather.condition
        temperature = weather.temperature_c

        if mode == "train":
            return 0.9
        if mode == "bike":
            if condition == "sunny" and 5 < temperature < 25:
                return 1.0
            if condition == "cloudy" and temperature > 0:
                return 0.8
            if condition == "rainy" or weather.precipitation_mm > 5:
                return 0.2
            if condition == "snowy":
                return 0.1
            return 0.6
        if condition == "sunny" and temperature > 10:
            return 0.9
        if condition == "cloudy" and temperature > 5:
            return 0.7
        if condition == "rainy":
            return 0.3
        if condition == "snowy":
            return 0.2
        return 0.6

    @staticmethod
    def energy_required(route: RouteEstimate) -> float:
        """Effort on a 1-5 scale."""
        km = route.distance_m / 1000
        if route.mode == "train":
            return 1.0
        if route.mode == "bike":
            effort = km * 0.5 + route.elevation_m * 0.02
        else:
            effort = km * 0.8
        return min(5.0, max(1.0, effort))

    def route_score(self, route: RouteEstimate, conditions: TravelConditions) -> float:
        score = 100.0
        score -= route.duration_min * 0.5
        score -= route.cost * 10
        score += route.weather_suitability * 20
        if conditions.energy < 0.4 and self.energy_required(route) > 3:
            score -= 30
        return max(0.0, score)

    # =========================================================================
    # Base routes
    # =========================================================================

    async def _with_forecast(
        self, origin: Location, conditions: TravelConditions | None
    ) -> TravelConditions:
        conditions = conditions or TravelConditions()
        if conditions.weather is not None:
            return conditions
        day = conditions.departure.date() if conditions.departure else self._today()
        weather = await self.get_forecast(origin, day)
        return conditions.model_copy(update={"weather": weather})

    async def _base_route(self, origin: Location, destination: Location, mode: TravelMode) -> BaseRoute:
        key = ("route", origin.cache_key, destination.cache_key, mode)
        cached = self.cache.get(key)
        if cached is not None:
            return cached

        ttl = self.cache_ttl
        base: BaseRoute | None = None
        if self.provider is not None:
            try:
                fetched = await self.provider.get_route(origin, destination, mode)
                base = BaseRoute(
                    mode=mode,
                    distance_m=fetched.distance_m,
                    duration_min=fetched.duration_min,
                    elevation_m=fetched.elevation_m,
                    cost=self._fare(mode, fetched.distance_m / 1000),
                )
            except ExternalServiceError as e:
                logger.warning(
                    f"Routing provider failed for {origin.name} -> {destination.name} ({mode}), "
                    f"using static estimate: {e.message}"
                )
                ttl = self.FALLBACK_TTL

        if base is None:
            base = self.static_route(origin, destination, mode)

        self.cache.set(key, base, ttl=ttl)
        return base

    def static_route(self, origin: Location, destination: Location, mode: TravelMode) -> BaseRoute:
        """Haversine distance with fixed speeds and overheads per mode."""
        distance_km = haversine_km(origin, destination)
        if distance_km is None:
            logger.warning(
                f"Missing coordinates for {origin.name} -> {destination.name}, "
                f"assuming {self.FALLBACK_DISTANCE_KM} km"
            )
            distance_km = self.FALLBACK_DISTANCE_KM

        elevation = elevation_change(origin, destination)

        if mode == "walk":
            duration = distance_km / self.WALK_SPEED_KMH * 60
        elif mode == "bike":
            duration = (
                distance_km / self.BIKE_SPEED_KMH * 60
                + elevation * self.BIKE_MIN_PER_ELEVATION_M
                + self.BIKE_PARKING_MIN
            )
        else:
            duration = distance_km / self.TRAIN_SPEED_KMH * 60 + 2 * self.STATION_WALK_MIN
            elevation = 0.0

        return BaseRoute(
            mode=mode,
            distance_m=distance_km * 1000,
            duration_min=duration,
            elevation_m=elevation,
            cost=self._fare(mode, distance_km),
        )

    def _fare(self, mode: TravelMode, distance_km: float) -> float:
        if mode != "train":
            return 0.0
        for max_km, fare in self.TRAIN_FARE_BANDS:
            if distance_km <= max_km:
                return fare
        return self.TRAIN_MAX_FARE

    @staticmethod
    def _difficulty(elevation_m: float) -> str:
        if elevation_m > 30:
            return "hard"
        if elevation_m > 15:
            return "moderate"
        return "easy"

    @staticmethod
    def _is_rush_hour(moment: time) -> bool:
        return any(start <= moment <= end for start, end in RUSH_HOURS)
