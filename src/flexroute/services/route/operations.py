"""Invariant-preserving operations over a route.

Every function takes a route and returns a route; the input is never
modified. Unknown stop ids and out-of-range indices leave the route as it
was.
"""

from __future__ import annotations

import logging
from collections import Counter
from dataclasses import replace
from datetime import datetime, timezone
from enum import Enum
from typing import Iterable, Sequence

from ...models.domain import (
    LOCATION_STOP_NUMBER,
    GeoPoint,
    PackageType,
    Route,
    SetDeliveryWindowEnd,
    SetLabel,
    SetPackageLabel,
    SetPackageType,
    SetPriority,
    SetStopType,
    SetTba,
    Stop,
    StopEdit,
    StopKind,
    StopStatus,
    StopType,
)
from ..errors import OptimizationFailure

logger = logging.getLogger(__name__)


class MoveDirection(str, Enum):
    UP = "up"
    DOWN = "down"


def recompute_current_stop(stops: Iterable[Stop]) -> tuple[Stop, ...]:
    """Flag the first pending delivery stop as current and clear the flag everywhere else."""
    found = False
    result: list[Stop] = []
    for stop in stops:
        is_current = not found and stop.is_delivery and stop.is_pending
        found = found or is_current
        result.append(stop if stop.is_current_stop == is_current else replace(stop, is_current_stop=is_current))
    return tuple(result)


def _assemble(location: Stop | None, deliveries: Iterable[Stop]) -> Route:
    head = (location,) if location is not None else ()
    return Route(stops=recompute_current_stop((*head, *deliveries)))


def build_location_stop(point: GeoPoint) -> Stop:
    return Stop(
        original_stop_number=LOCATION_STOP_NUMBER,
        street="Your Current Location",
        city="Start of route",
        package_type=PackageType.UNKNOWN,
        stop_type=StopType.UNKNOWN,
        kind=StopKind.LOCATION,
        status=StopStatus.DELIVERED,
        latitude=point.lat,
        longitude=point.lon,
    )


def set_route(stops: Sequence[Stop] | None) -> Route | None:
    """Replace the route wholesale; ``None`` clears it.

    The first location stop is moved to the head and any others dropped.
    Repeated delivery stop numbers keep their first occurrence, and deliveries
    using the reserved location number are dropped.
    """
    if stops is None:
        return None

    location: Stop | None = None
    deliveries: list[Stop] = []
    seen: set[int] = set()
    for stop in stops:
        if not stop.is_delivery:
            if location is None:
                location = stop
            else:
                logger.warning("Dropping extra location stop; a route holds at most one")
            continue
        if stop.original_stop_number <= LOCATION_STOP_NUMBER:
            logger.warning(f"Dropping delivery stop with reserved number #{stop.original_stop_number}")
            continue
        if stop.original_stop_number in seen:
            logger.warning(f"Dropping repeated stop #{stop.original_stop_number} while setting route")
            continue
        seen.add(stop.original_stop_number)
        deliveries.append(stop)
    return _assemble(location, deliveries)


def _apply_edit(stop: Stop, edit: StopEdit) -> Stop:
    match edit:
        case SetLabel(value=value):
            return replace(stop, label=value)
        case SetPackageType(value=value):
            return replace(stop, package_type=value)
        case SetPackageLabel(value=value):
            return replace(stop, package_label=value)
        case SetTba(value=value):
            return replace(stop, tba=value)
        case SetStopType(value=value):
            return replace(stop, stop_type=value)
        case SetDeliveryWindowEnd(value=value):
            return replace(stop, delivery_window_end=value)
        case SetPriority(value=value):
            return replace(stop, is_priority=value)
        case _:
            raise TypeError(f"Unsupported stop edit: {edit!r}")


def _replace_delivery(route: Route, stop_id: int, updated: Stop) -> tuple[Stop, ...]:
    return tuple(
        updated if stop.is_delivery and stop.original_stop_number == stop_id else stop for stop in route.stops
    )


def update_stop(route: Route, stop_id: int, edit: StopEdit) -> Route:
    """Apply one field edit to a delivery stop. Order and the current-stop flag are untouched."""
    target = route.find(stop_id)
    if target is None:
        return route
    return Route(stops=_replace_delivery(route, stop_id, _apply_edit(target, edit)))


def set_status(route: Route, stop_id: int, status: StopStatus, at: datetime | None = None) -> Route:
    """Move a delivery stop to ``status``.

    Leaving pending stamps ``completed_at``; returning to pending clears it.
    """
    target = route.find(stop_id)
    if target is None:
        return route
    if status is StopStatus.PENDING:
        updated = replace(target, status=status, completed_at=None)
    else:
        updated = replace(target, status=status, completed_at=at or datetime.now(timezone.utc))
    return Route(stops=recompute_current_stop(_replace_delivery(route, stop_id, updated)))


def reorder(route: Route, from_index: int, to_index: int) -> Route:
    """Move the delivery at ``from_index`` to ``to_index``; indices skip the location stop."""
    deliveries = list(route.deliveries)
    count = len(deliveries)
    if not (0 <= from_index < count and 0 <= to_index < count) or from_index == to_index:
        return route
    moved = deliveries.pop(from_index)
    deliveries.insert(to_index, moved)
    return _assemble(route.location, deliveries)


def move(route: Route, stop_id: int, direction: MoveDirection) -> Route:
    deliveries = route.deliveries
    index = next(
        (position for position, stop in enumerate(deliveries) if stop.original_stop_number == stop_id),
        None,
    )
    if index is None:
        return route
    target = index - 1 if direction is MoveDirection.UP else index + 1
    return reorder(route, index, target)


def delete_stop(route: Route, stop_id: int) -> Route:
    if route.find(stop_id) is None:
        return route
    remaining = [stop for stop in route.deliveries if stop.original_stop_number != stop_id]
    return _assemble(route.location, remaining)


def reset_to_original_order(route: Route) -> Route:
    ordered = sorted(route.deliveries, key=lambda stop: stop.original_stop_number)
    return _assemble(route.location, ordered)


def validate_permutation(current: Sequence[Stop], proposed: Sequence[Stop]) -> None:
    """Raise ``OptimizationFailure`` unless ``proposed`` holds exactly the delivery ids of ``current``."""
    expected = Counter(stop.original_stop_number for stop in current if stop.is_delivery)
    received = Counter(stop.original_stop_number for stop in proposed)
    if expected == received:
        return

    missing = sorted((expected - received).elements())
    unexpected = sorted((received - expected).elements())
    details = []
    if missing:
        details.append(f"missing stops {missing}")
    if unexpected:
        details.append(f"unexpected or repeated stops {unexpected}")
    raise OptimizationFailure(
        "The optimized route did not match your stops (" + "; ".join(details) + "). Your route was left unchanged."
    )


def apply_optimized_order(
    route: Route,
    ordered: Sequence[Stop],
    start_location: GeoPoint | None = None,
) -> Route:
    """Reorder deliveries to follow ``ordered``.

    Only the order is taken from ``ordered``; the stops already in the route
    keep their fields. Ids not in the route are ignored and route stops that
    ``ordered`` omits are appended in their previous order. A start location
    becomes a fresh location stop at the head; without one the previous
    location stop is dropped.
    """
    by_id = {stop.original_stop_number: stop for stop in route.deliveries}
    sequence: list[Stop] = []
    for stop in ordered:
        held = by_id.pop(stop.original_stop_number, None)
        if held is not None:
            sequence.append(held)
    if by_id:
        logger.warning(f"Optimized order omitted stops {sorted(by_id)}; keeping them at the end")
        sequence.extend(stop for stop in route.deliveries if stop.original_stop_number in by_id)

    location = build_location_stop(start_location) if start_location is not None else None
    return _assemble(location, sequence)
