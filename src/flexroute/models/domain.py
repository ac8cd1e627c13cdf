"""Domain models for delivery stops, routes and live conditions."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional, Union

LOCATION_STOP_NUMBER = 0


class PackageType(str, Enum):
    BOX = "Box"
    ENVELOPE = "Envelope"
    PLASTIC_BAG = "Plastic Bag"
    CUSTOM_SIZED = "Custom Sized"
    UNKNOWN = "Unknown"


class StopType(str, Enum):
    HOUSE = "House"
    APARTMENT = "Apartment"
    BUSINESS = "Business"
    LOCKER = "Locker"
    UNKNOWN = "Unknown"


class StopKind(str, Enum):
    DELIVERY = "delivery"
    LOCATION = "location"


class StopStatus(str, Enum):
    PENDING = "pending"
    DELIVERED = "delivered"
    ATTEMPTED = "attempted"
    SKIPPED = "skipped"


class TrafficStatus(str, Enum):
    LIGHT = "Light"
    MODERATE = "Moderate"
    HEAVY = "Heavy"
    UNKNOWN = "Unknown"


class WeatherIcon(str, Enum):
    SUNNY = "SUNNY"
    CLOUDY = "CLOUDY"
    RAINY = "RAINY"
    SNOWY = "SNOWY"
    THUNDERSTORM = "THUNDERSTORM"
    WINDY = "WINDY"
    PARTLY_CLOUDY = "PARTLY_CLOUDY"
    UNKNOWN = "UNKNOWN"


@dataclass(frozen=True, slots=True)
class GeoPoint:
    lat: float
    lon: float


@dataclass(frozen=True, slots=True)
class Stop:
    """A single delivery address, or the synthetic start-of-route location."""

    original_stop_number: int
    street: str
    city: str = ""
    state: str = ""
    zip_code: str = ""
    label: str = ""
    package_type: PackageType = PackageType.UNKNOWN
    stop_type: StopType = StopType.UNKNOWN
    tba: str = ""
    package_label: str = ""
    delivery_window_end: Optional[str] = None
    is_priority: Optional[bool] = None
    kind: StopKind = StopKind.DELIVERY
    status: Optional[StopStatus] = StopStatus.PENDING
    completed_at: Optional[datetime] = None
    is_current_stop: bool = False
    latitude: Optional[float] = None
    longitude: Optional[float] = None

    @property
    def is_delivery(self) -> bool:
        return self.kind is StopKind.DELIVERY

    @property
    def is_pending(self) -> bool:
        return self.status is None or self.status is StopStatus.PENDING

    @property
    def address(self) -> str:
        return f"{self.street}, {self.city}, {self.state} {self.zip_code}".strip()


@dataclass(frozen=True, slots=True)
class Route:
    """Ordered stops: an optional location stop followed by the delivery sequence."""

    stops: tuple[Stop, ...] = ()

    @property
    def location(self) -> Stop | None:
        if self.stops and not self.stops[0].is_delivery:
            return self.stops[0]
        return None

    @property
    def deliveries(self) -> tuple[Stop, ...]:
        return tuple(stop for stop in self.stops if stop.is_delivery)

    @property
    def current_stop(self) -> Stop | None:
        return next((stop for stop in self.stops if stop.is_current_stop), None)

    def find(self, stop_id: int) -> Stop | None:
        return next(
            (stop for stop in self.stops if stop.is_delivery and stop.original_stop_number == stop_id),
            None,
        )

    def __len__(self) -> int:
        return len(self.stops)


@dataclass(frozen=True, slots=True)
class RouteSummary:
    total_stops: int
    total_distance: str
    total_time: str
    route_block_code: Optional[str] = None


@dataclass(frozen=True, slots=True)
class TrafficInfo:
    status: TrafficStatus
    summary: str
    last_updated: datetime


@dataclass(frozen=True, slots=True)
class WeatherInfo:
    temperature: str
    condition: str
    icon: WeatherIcon = WeatherIcon.UNKNOWN


# Closed set of per-field stop edits.


@dataclass(frozen=True, slots=True)
class SetLabel:
    value: str


@dataclass(frozen=True, slots=True)
class SetPackageType:
    value: PackageType


@dataclass(frozen=True, slots=True)
class SetPackageLabel:
    value: str


@dataclass(frozen=True, slots=True)
class SetTba:
    value: str


@dataclass(frozen=True, slots=True)
class SetStopType:
    value: StopType


@dataclass(frozen=True, slots=True)
class SetDeliveryWindowEnd:
    value: Optional[str]


@dataclass(frozen=True, slots=True)
class SetPriority:
    value: Optional[bool]


StopEdit = Union[
    SetLabel,
    SetPackageType,
    SetPackageLabel,
    SetTba,
    SetStopType,
    SetDeliveryWindowEnd,
    SetPriority,
]
