"""API routes for travel estimates."""

from datetime import date

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from studentplanner.dependencies import get_travel_estimator
from studentplanner.schemas import (
    Location,
    RouteEstimate,
    TravelConditions,
    TravelMode,
    WeatherForecast,
)
from studentplanner.travel.estimator import TravelEstimator

router = APIRouter(prefix="/api/v1/travel", tags=["travel"])


class RouteRequest(BaseModel):
    """Journey to estimate. Without a mode, the best-scoring mode is returned."""

    origin: Location
    destination: Location
    mode: TravelMode | None = None
    conditions: TravelConditions = Field(default_factory=TravelConditions)


class ForecastRequest(BaseModel):
    location: Location
    day: date


@router.post("/route", response_model=RouteEstimate)
async def estimate_route(
    request: RouteRequest,
    travel: TravelEstimator = Depends(get_travel_estimator),
) -> RouteEstimate:
    if request.mode is None:
        return await travel.best_route(request.origin, request.destination, request.conditions)
    return await travel.get_route(
        request.origin, request.destination, request.mode, request.conditions
    )


@router.post("/alternatives", response_model=list[RouteEstimate])
async def list_alternatives(
    request: RouteRequest,
    travel: TravelEstimator = Depends(get_travel_estimator),
) -> list[RouteEstimate]:
    """Every eligible mode for the journey, best first. The request mode is ignored."""
    return await travel.alternatives(request.origin, request.destination, request.conditions)


@router.post("/forecast", response_model=WeatherForecast)
async def get_forecast(
    request: ForecastRequest,
    travel: TravelEstimator = Depends(get_travel_estimator),
) -> WeatherForecast:
    return await travel.get_forecast(request.location, request.day)
