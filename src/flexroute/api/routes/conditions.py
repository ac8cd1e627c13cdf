"""Route summary, live traffic and weather endpoints."""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends

from ...schemas.conditions import LocationReport, RouteSummaryModel, TrafficInfoModel, WeatherInfoModel
from ...services.ai.base import AIProvider
from ...services.errors import FlexRouteError
from ...services.location import resolve_fix, weather_policy
from ...services.outputs.route_formatter import summary_to_model, traffic_to_model
from ...services.route.session import RouteSession
from ..dependencies import get_ai_provider, get_session
from ..errors import to_http_exception

router = APIRouter(prefix="/conditions", tags=["conditions"])


@router.get("/summary", response_model=Optional[RouteSummaryModel])
def route_summary(session: RouteSession = Depends(get_session)) -> Optional[RouteSummaryModel]:
    """Latest summary; refreshed in the background whenever the route changes."""
    return summary_to_model(session.summary)


@router.get("/traffic", response_model=Optional[TrafficInfoModel])
def live_traffic(session: RouteSession = Depends(get_session)) -> Optional[TrafficInfoModel]:
    return traffic_to_model(session.traffic)


@router.post("/weather", response_model=WeatherInfoModel)
def current_weather(
    payload: LocationReport,
    provider: AIProvider = Depends(get_ai_provider),
) -> WeatherInfoModel:
    try:
        point = resolve_fix(payload, weather_policy())
        weather = provider.current_weather(point)
    except FlexRouteError as exc:
        raise to_http_exception(exc) from exc
    return WeatherInfoModel(temperature=weather.temperature, condition=weather.condition, icon=weather.icon)
