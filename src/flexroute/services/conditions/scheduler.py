"""Background refresh of the route summary and live traffic.

The route session only announces changes; this scheduler decides when to
call the AI provider. A summary refresh runs once per route change and
live traffic is polled on a fixed interval while the route has deliveries.
"""

from __future__ import annotations

import logging
import threading
from datetime import datetime, timezone
from typing import Callable

from apscheduler.jobstores.base import JobLookupError
from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger

from ...models.domain import RouteSummary, TrafficInfo, TrafficStatus
from ..ai.base import AIProvider
from ..errors import FlexRouteError
from ..route.session import RouteChanged, RouteSession

logger = logging.getLogger(__name__)

SUMMARY_JOB_ID = "route-summary"
TRAFFIC_JOB_ID = "live-traffic"
PLACEHOLDER = "N/A"
TRAFFIC_FALLBACK_SUMMARY = "Could not fetch live traffic data."

ProviderFactory = Callable[[], AIProvider]


class ConditionsScheduler:
    def __init__(
        self,
        session: RouteSession,
        provider_factory: ProviderFactory,
        scheduler: BackgroundScheduler | None = None,
        traffic_interval_seconds: int = 60,
    ) -> None:
        self.session = session
        self.provider_factory = provider_factory
        self.scheduler = scheduler or BackgroundScheduler(daemon=True)
        self.traffic_interval_seconds = traffic_interval_seconds
        self._unsubscribe: Callable[[], None] | None = None
        self._lock = threading.Lock()
        self._latest_revision = 0

    def start(self) -> None:
        if self._unsubscribe is None:
            self._unsubscribe = self.session.subscribe(self.on_route_changed)
        if not self.scheduler.running:
            self.scheduler.start()
            logger.info("Conditions scheduler started")

    def shutdown(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        if self.scheduler.running:
            try:
                self.scheduler.shutdown(wait=False)
                logger.info("Conditions scheduler shut down")
            except Exception as e:
                logger.error(f"Error shutting down conditions scheduler: {e}")

    def _remove_job(self, job_id: str) -> None:
        try:
            self.scheduler.remove_job(job_id)
        except JobLookupError:
            pass

    def on_route_changed(self, event: RouteChanged) -> None:
        """Reschedule refreshes for ``event``; events older than one already handled are ignored."""
        with self._lock:
            if event.revision < self._latest_revision:
                logger.debug(
                    f"Ignoring out-of-order route change (revision {event.revision}, latest {self._latest_revision})"
                )
                return
            self._latest_revision = event.revision
            self._schedule_for(event)

    def _schedule_for(self, event: RouteChanged) -> None:
        route = event.route
        if route is None:
            self._remove_job(TRAFFIC_JOB_ID)
            self._remove_job(SUMMARY_JOB_ID)
            self.session.update_summary(None, revision=event.revision)
            self.session.update_traffic(None, generation=event.generation)
            return

        if not route.deliveries:
            self._remove_job(TRAFFIC_JOB_ID)
            self._remove_job(SUMMARY_JOB_ID)
            self.session.update_summary(
                RouteSummary(total_stops=0, total_distance=PLACEHOLDER, total_time=PLACEHOLDER),
                revision=event.revision,
            )
            self.session.update_traffic(None, generation=event.generation)
            return

        self.scheduler.add_job(
            self.refresh_summary,
            args=[event.revision],
            id=SUMMARY_JOB_ID,
            name="Route summary refresh",
            replace_existing=True,
        )
        self.scheduler.add_job(
            self.refresh_traffic,
            trigger=IntervalTrigger(seconds=self.traffic_interval_seconds),
            id=TRAFFIC_JOB_ID,
            name="Live traffic refresh",
            replace_existing=True,
            max_instances=1,
            coalesce=True,
            next_run_time=datetime.now(timezone.utc),
        )

    def refresh_summary(self, revision: int) -> RouteSummary | None:
        """Fetch a summary for the route as of ``revision``; a newer route makes the result stale."""
        route, _, current_revision = self.session.snapshot()
        if route is None or current_revision != revision:
            return None
        deliveries = route.deliveries
        try:
            estimate = self.provider_factory().route_summary(deliveries)
            summary = RouteSummary(
                total_stops=len(deliveries),
                total_distance=estimate.total_distance,
                total_time=estimate.total_time,
            )
        except FlexRouteError as exc:
            logger.warning(f"Failed to fetch route summary: {exc.message}")
            summary = RouteSummary(total_stops=len(deliveries), total_distance=PLACEHOLDER, total_time=PLACEHOLDER)
        self.session.update_summary(summary, revision=revision)
        return self.session.summary

    def refresh_traffic(self) -> TrafficInfo | None:
        """Poll live traffic for the current route. Stops polling once the route has no deliveries."""
        route, generation, _ = self.session.snapshot()
        deliveries = route.deliveries if route is not None else ()
        if not deliveries:
            self._remove_job(TRAFFIC_JOB_ID)
            return None
        try:
            report = self.provider_factory().live_traffic(deliveries)
            info = TrafficInfo(status=report.status, summary=report.summary, last_updated=datetime.now(timezone.utc))
        except FlexRouteError as exc:
            logger.warning(f"Failed to fetch live traffic: {exc.message}")
            info = TrafficInfo(
                status=TrafficStatus.UNKNOWN,
                summary=TRAFFIC_FALLBACK_SUMMARY,
                last_updated=datetime.now(timezone.utc),
            )
        self.session.update_traffic(info, generation=generation)
        return info
