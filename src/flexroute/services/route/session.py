"""Authoritative route state for one courier session."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, replace
from datetime import datetime
from typing import Callable, Sequence

from ...models.domain import GeoPoint, Route, RouteSummary, Stop, StopEdit, StopStatus, TrafficInfo
from . import operations
from .operations import MoveDirection

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class RouteChanged:
    route: Route | None
    generation: int
    revision: int


RouteListener = Callable[[RouteChanged], None]


class RouteSession:
    """Owns the route, its summary and traffic, and serializes every mutation.

    ``generation`` changes when the route is replaced or cleared; ``revision``
    changes on every mutation. Late responses carrying an older token are
    discarded.
    """

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._route: Route | None = None
        self._summary: RouteSummary | None = None
        self._traffic: TrafficInfo | None = None
        self._generation = 0
        self._revision = 0
        self._listeners: list[RouteListener] = []

    @property
    def route(self) -> Route | None:
        return self._route

    @property
    def summary(self) -> RouteSummary | None:
        return self._summary

    @property
    def traffic(self) -> TrafficInfo | None:
        return self._traffic

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def revision(self) -> int:
        return self._revision

    def snapshot(self) -> tuple[Route | None, int, int]:
        """Route, generation and revision read together."""
        with self._lock:
            return self._route, self._generation, self._revision

    def subscribe(self, listener: RouteListener) -> Callable[[], None]:
        with self._lock:
            self._listeners.append(listener)

        def unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe

    def _notify(self, event: RouteChanged) -> None:
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception:
                logger.exception("Route listener failed")

    def _commit(self, route: Route | None, *, new_generation: bool = False) -> RouteChanged:
        self._route = route
        self._revision += 1
        if new_generation:
            self._generation += 1
        return RouteChanged(route=route, generation=self._generation, revision=self._revision)

    def _mutate(self, operation: Callable[[Route], Route]) -> Route | None:
        with self._lock:
            if self._route is None:
                return None
            updated = operation(self._route)
            if updated is self._route:
                return self._route
            event = self._commit(updated)
        self._notify(event)
        return updated

    def set_route(self, stops: Sequence[Stop] | None, summary: RouteSummary | None = None) -> Route | None:
        """Replace the route (new upload, load, shared link) or clear it with ``None``."""
        with self._lock:
            route = operations.set_route(stops)
            self._summary = summary
            self._traffic = None
            event = self._commit(route, new_generation=True)
        logger.info(f"Route replaced ({len(route) if route else 0} stops, generation {event.generation})")
        self._notify(event)
        return route

    def clear(self) -> None:
        self.set_route(None)

    def update_stop(self, stop_id: int, edit: StopEdit) -> Route | None:
        return self._mutate(lambda route: operations.update_stop(route, stop_id, edit))

    def set_status(self, stop_id: int, status: StopStatus, at: datetime | None = None) -> Route | None:
        return self._mutate(lambda route: operations.set_status(route, stop_id, status, at))

    def reorder(self, from_index: int, to_index: int) -> Route | None:
        return self._mutate(lambda route: operations.reorder(route, from_index, to_index))

    def move(self, stop_id: int, direction: MoveDirection) -> Route | None:
        return self._mutate(lambda route: operations.move(route, stop_id, direction))

    def delete_stop(self, stop_id: int) -> Route | None:
        return self._mutate(lambda route: operations.delete_stop(route, stop_id))

    def reset_to_original_order(self) -> Route | None:
        return self._mutate(operations.reset_to_original_order)

    def apply_optimized_order(
        self,
        ordered: Sequence[Stop],
        start_location: GeoPoint | None = None,
        *,
        generation: int | None = None,
    ) -> bool:
        """Apply an optimized order unless the route was replaced since ``generation``."""
        with self._lock:
            if self._route is None or (generation is not None and generation != self._generation):
                logger.info(f"Discarding optimized order for stale route generation {generation}")
                return False
            updated = operations.apply_optimized_order(self._route, ordered, start_location)
            event = self._commit(updated)
        self._notify(event)
        return True

    def update_summary(self, summary: RouteSummary | None, revision: int | None = None) -> bool:
        with self._lock:
            if revision is not None and revision != self._revision:
                logger.debug(f"Discarding summary for stale revision {revision} (current {self._revision})")
                return False
            if summary is not None and not summary.route_block_code and self._summary is not None:
                summary = replace(summary, route_block_code=self._summary.route_block_code)
            self._summary = summary
            return True

    def update_traffic(self, traffic: TrafficInfo | None, generation: int | None = None) -> bool:
        with self._lock:
            if generation is not None and generation != self._generation:
                logger.debug(f"Discarding traffic for stale generation {generation}")
                return False
            self._traffic = traffic
            return True
