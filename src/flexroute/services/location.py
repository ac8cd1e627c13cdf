"""Freshness rules for device-reported GPS fixes.

The device acquires the fix; the service only decides whether a reported fix
is acceptable for a given use. Route start needs a fresh fix (no cached
positions), weather tolerates a fix up to an hour old.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone

from ..config import settings
from ..models.domain import GeoPoint
from ..schemas.conditions import LocationReport
from .errors import LocationFailure

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class FixPolicy:
    purpose: str
    timeout_seconds: float
    max_age_seconds: float

    @property
    def acceptable_age_seconds(self) -> float:
        return self.max_age_seconds + self.timeout_seconds


def route_start_policy() -> FixPolicy:
    return FixPolicy(
        purpose="route",
        timeout_seconds=settings.route_start_fix_timeout_seconds,
        max_age_seconds=settings.route_start_fix_max_age_seconds,
    )


def weather_policy() -> FixPolicy:
    return FixPolicy(
        purpose="weather",
        timeout_seconds=settings.weather_fix_timeout_seconds,
        max_age_seconds=settings.weather_fix_max_age_seconds,
    )


def _failure(policy: FixPolicy, code: str) -> LocationFailure:
    prefix = "Could not get your location for weather. " if policy.purpose == "weather" else "Could not get your location. "
    if code == "permission_denied":
        suffix = "Please grant location permission and try again."
    else:
        suffix = "Please check your device's location settings."
    return LocationFailure(code, prefix + suffix)


def resolve_fix(report: LocationReport | None, policy: FixPolicy, now: datetime | None = None) -> GeoPoint:
    """Return the reported position, or raise ``LocationFailure`` if it is missing, failed or stale."""
    if report is None:
        raise _failure(policy, "position_unavailable")
    if report.error is not None:
        logger.warning(f"Device reported location error for {policy.purpose}: {report.error}")
        raise _failure(policy, report.error)
    if report.lat is None or report.lon is None:
        raise _failure(policy, "position_unavailable")

    if report.captured_at is not None:
        captured_at = report.captured_at
        if captured_at.tzinfo is None:
            captured_at = captured_at.replace(tzinfo=timezone.utc)
        age = ((now or datetime.now(timezone.utc)) - captured_at).total_seconds()
        if age > policy.acceptable_age_seconds:
            logger.warning(
                f"Rejecting {policy.purpose} fix aged {age:.0f}s (limit {policy.acceptable_age_seconds:.0f}s)"
            )
            raise _failure(policy, "timeout")
    return GeoPoint(lat=report.lat, lon=report.lon)
