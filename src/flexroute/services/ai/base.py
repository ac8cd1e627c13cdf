"""Base classes for AI provider implementations."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Sequence

from ...models.domain import GeoPoint, Stop, TrafficStatus, WeatherInfo
from ..ingestion.models import ExtractionResult


@dataclass(frozen=True, slots=True)
class RouteEstimate:
    total_distance: str
    total_time: str


@dataclass(frozen=True, slots=True)
class TrafficReport:
    status: TrafficStatus
    summary: str


class AIProvider(ABC):
    """Contract for the hosted model that performs every inference the service needs."""

    name: str = "provider"

    @abstractmethod
    def extract_stops(self, image: bytes, mime_type: str) -> ExtractionResult:
        """Read the delivery stops and route block code from one screenshot."""
        raise NotImplementedError

    @abstractmethod
    def optimize_order(
        self,
        stops: Sequence[Stop],
        start_location: GeoPoint | None = None,
        avoid_left_turns: bool = False,
    ) -> list[Stop]:
        """Return the same stops in a more efficient visiting order."""
        raise NotImplementedError

    @abstractmethod
    def route_summary(self, stops: Sequence[Stop]) -> RouteEstimate:
        raise NotImplementedError

    @abstractmethod
    def live_traffic(self, stops: Sequence[Stop]) -> TrafficReport:
        raise NotImplementedError

    @abstractmethod
    def current_weather(self, point: GeoPoint) -> WeatherInfo:
        raise NotImplementedError
