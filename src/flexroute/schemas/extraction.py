"""Shapes of the JSON documents returned by the AI provider."""

from __future__ import annotations

import re
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from ..models.domain import PackageType, Stop, StopKind, StopStatus, StopType, TrafficStatus, WeatherIcon

_TIME_OF_DAY = re.compile(r"^(\d{1,2}):(\d{2})$")


def _coerce_enum(enum_cls: Any, value: Any, default: Any) -> Any:
    if isinstance(value, enum_cls):
        return value
    text = str(value or "").strip()
    for member in enum_cls:
        if member.value.lower() == text.lower():
            return member
    return default


class ExtractedStopModel(BaseModel):
    """A stop as read from a screenshot or echoed back by the optimizer."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    original_stop_number: int = Field(..., ge=0)
    street: str
    city: str = ""
    state: str = ""
    zip_code: str = Field(default="", alias="zip")
    label: str = ""
    package_type: PackageType = PackageType.UNKNOWN
    tba: str = ""
    package_label: str = ""
    stop_type: StopType = StopType.UNKNOWN
    is_priority: Optional[bool] = None
    delivery_window_end: Optional[str] = None

    @field_validator("city", "state", "zip_code", "label", "tba", "package_label", mode="before")
    @classmethod
    def _none_to_empty(cls, value: Any) -> Any:
        return "" if value is None else value

    @field_validator("package_type", mode="before")
    @classmethod
    def _parse_package_type(cls, value: Any) -> PackageType:
        return _coerce_enum(PackageType, value, PackageType.UNKNOWN)

    @field_validator("stop_type", mode="before")
    @classmethod
    def _parse_stop_type(cls, value: Any) -> StopType:
        return _coerce_enum(StopType, value, StopType.UNKNOWN)

    @field_validator("delivery_window_end", mode="before")
    @classmethod
    def _normalize_window(cls, value: Any) -> Optional[str]:
        if value is None:
            return None
        match = _TIME_OF_DAY.match(str(value).strip())
        if not match:
            return None
        hours, minutes = int(match.group(1)), int(match.group(2))
        if hours > 23 or minutes > 59:
            return None
        return f"{hours:02d}:{minutes:02d}"

    def to_stop(self) -> Stop:
        return Stop(
            original_stop_number=self.original_stop_number,
            street=self.street.strip(),
            city=self.city.strip(),
            state=self.state.strip(),
            zip_code=self.zip_code.strip(),
            label=self.label,
            package_type=self.package_type,
            stop_type=self.stop_type,
            tba=self.tba.strip(),
            package_label=self.package_label.strip(),
            delivery_window_end=self.delivery_window_end,
            is_priority=self.is_priority,
            kind=StopKind.DELIVERY,
            status=StopStatus.PENDING,
        )


class ExtractionResponseModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    stops: List[ExtractedStopModel]
    route_block_code: Optional[str] = None


class RouteEstimateModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    total_distance: str
    total_time: str


class TrafficResponseModel(BaseModel):
    status: TrafficStatus = TrafficStatus.UNKNOWN
    summary: str = ""

    @field_validator("status", mode="before")
    @classmethod
    def _parse_status(cls, value: Any) -> TrafficStatus:
        return _coerce_enum(TrafficStatus, value, TrafficStatus.UNKNOWN)


class WeatherResponseModel(BaseModel):
    temperature: str
    condition: str
    icon: WeatherIcon = WeatherIcon.UNKNOWN

    @field_validator("icon", mode="before")
    @classmethod
    def _parse_icon(cls, value: Any) -> WeatherIcon:
        return _coerce_enum(WeatherIcon, value, WeatherIcon.UNKNOWN)
