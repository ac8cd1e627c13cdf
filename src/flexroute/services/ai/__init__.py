"""AI provider clients."""

from .base import AIProvider, RouteEstimate, TrafficReport
from .dispatcher import get_provider

__all__ = ["AIProvider", "RouteEstimate", "TrafficReport", "get_provider"]
