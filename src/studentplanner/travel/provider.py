"""HTTP client for the external routing and weather provider."""

import asyncio
from dataclasses import dataclass
from datetime import date
from typing import Any

import httpx
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from studentplanner.config import get_settings
from studentplanner.errors import ExternalServiceError
from studentplanner.logging_config import get_logger
from studentplanner.schemas import Location, TravelMode, WeatherForecast

logger = get_logger(__name__)


@dataclass
class ProviderRoute:
    """Base journey figures returned by the provider."""

    distance_m: float
    duration_min: float
    elevation_m: float = 0.0

    @classmethod
    def from_api_response(cls, data: dict[str, Any]) -> "ProviderRoute":
        try:
            return cls(
                distance_m=float(data["distance_m"]),
                duration_min=float(data["duration_min"]),
                elevation_m=float(data.get("elevation_m") or 0.0),
            )
        except (KeyError, TypeError, ValueError) as e:
            raise ExternalServiceError(f"Malformed route response: {e}", response=data) from e


class RoutingProvider:
    """
    Client for a JSON routing/weather API.

    Endpoints:
        GET {base_url}/route     from_lat, from_lon, to_lat, to_lon, mode
        GET {base_url}/forecast  location, lat, lon, date

    Every failure (timeout, network, HTTP status, malformed body) surfaces
    as ExternalServiceError.
    """

    BACKOFF_MAX = 4

    def __init__(
        self,
        base_url: str | None = None,
        api_key: str | None = None,
        timeout: float | None = None,
        max_retries: int | None = None,
        backoff: float = 0.5,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        settings = get_settings()
        self.base_url = (base_url or settings.routing_base_url).rstrip("/")
        self.api_key = api_key if api_key is not None else settings.routing_api_key
        self.timeout = timeout or settings.external_timeout
        self.max_retries = max_retries if max_retries is not None else settings.external_max_retries
        self.backoff = backoff
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    @property
    def name(self) -> str:
        return "routing"

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None or self._client.is_closed:
            headers = {
                "Accept": "application/json",
                "User-Agent": "StudentPlanner/1.0",
            }
            if self.api_key:
                headers["Authorization"] = f"Bearer {self.api_key}"
            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(self.timeout),
                headers=headers,
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    async def _request(self, endpoint: str, params: dict[str, Any]) -> dict[str, Any]:
        """GET with retries on timeouts and network errors, bounded overall."""
        if not self.base_url:
            raise ExternalServiceError("No routing provider configured")

        url = f"{self.base_url}/{endpoint}"
        client = await self._get_client()

        @retry(
            retry=retry_if_exception_type((httpx.TimeoutException, httpx.NetworkError)),
            stop=stop_after_attempt(self.max_retries + 1),
            wait=wait_exponential(multiplier=self.backoff, max=self.BACKOFF_MAX),
            reraise=True,
        )
        async def _do_request() -> httpx.Response:
            return await client.get(url, params=params)

        # Overall deadline covers every retry
        deadline = self.timeout * (self.max_retries + 1)
        try:
            response = await asyncio.wait_for(_do_request(), timeout=deadline)
        except (asyncio.TimeoutError, httpx.TimeoutException) as e:
            logger.warning(f"Routing provider timed out: {url}")
            raise ExternalServiceError(f"Request to {endpoint} timed out") from e
        except httpx.HTTPError as e:
            logger.warning(f"Routing provider unreachable: {url}: {e}")
            raise ExternalServiceError(f"Request to {endpoint} failed: {e}") from e

        if response.status_code >= 400:
            error_detail = response.text[:500] if response.text else "No details"
            logger.warning(f"Routing provider error {response.status_code} for {url}: {error_detail}")
            raise ExternalServiceError(
                f"Provider request failed with status {response.status_code}",
                status_code=response.status_code,
                response=error_detail,
            )

        try:
            data = response.json()
        except ValueError as e:
            raise ExternalServiceError("Provider returned invalid JSON", response=response.text[:500]) from e

        if not isinstance(data, dict):
            raise ExternalServiceError("Provider returned an unexpected payload", response=data)
        return data

    async def get_route(self, origin: Location, destination: Location, mode: TravelMode) -> ProviderRoute:
        """Base route figures for one mode, before condition adjustments."""
        if origin.coordinates is None or destination.coordinates is None:
            raise ExternalServiceError("Provider routing needs coordinates for both endpoints")

        logger.debug(f"Fetching {mode} route {origin.name} -> {destination.name}")
        data = await self._request(
            "route",
            {
                "from_lat": origin.coordinates.latitude,
                "from_lon": origin.coordinates.longitude,
                "to_lat": destination.coordinates.latitude,
                "to_lon": destination.coordinates.longitude,
                "mode": mode,
            },
        )
        return ProviderRoute.from_api_response(data)

    async def get_forecast(self, location: Location, day: date) -> WeatherForecast:
        params: dict[str, Any] = {"location": location.name, "date": day.isoformat()}
        if location.coordinates is not None:
            params["lat"] = location.coordinates.latitude
            params["lon"] = location.coordinates.longitude

        logger.debug(f"Fetching forecast for {location.name} on {day}")
        data = await self._request("forecast", params)
        try:
            return WeatherForecast.model_validate(data)
        except ValueError as e:
            raise ExternalServiceError(f"Malformed forecast response: {e}", response=data) from e
