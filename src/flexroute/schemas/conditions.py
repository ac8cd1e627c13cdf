"""Summary, traffic, weather and location schemas."""

from __future__ import annotations

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

from ..models.domain import TrafficStatus, WeatherIcon


class RouteSummaryModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    total_stops: int
    total_distance: str
    total_time: str
    route_block_code: Optional[str] = None


class TrafficInfoModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    status: TrafficStatus
    summary: str
    last_updated: datetime


class WeatherInfoModel(BaseModel):
    temperature: str
    condition: str
    icon: WeatherIcon = WeatherIcon.UNKNOWN


class LocationReport(BaseModel):
    """A GPS fix, or the reason the device could not produce one."""

    lat: Optional[float] = Field(default=None, ge=-90.0, le=90.0)
    lon: Optional[float] = Field(default=None, ge=-180.0, le=180.0)
    captured_at: Optional[datetime] = None
    error: Optional[Literal["permission_denied", "position_unavailable", "timeout"]] = None

    @model_validator(mode="after")
    def _require_fix_or_error(self) -> "LocationReport":
        if self.error is None and (self.lat is None or self.lon is None):
            raise ValueError("Provide both lat and lon, or an error code.")
        return self
