"""Route workflows: screenshot ingestion and AI optimization."""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Sequence

from ...config import settings
from ...models.domain import GeoPoint, Route, RouteSummary
from ..ai.base import AIProvider
from ..errors import ExtractionFailure, FlexRouteError
from ..ingestion.merger import merge_extractions
from ..ingestion.models import ExtractionResult
from ..usage import UsageTracker
from .operations import validate_permutation
from .session import RouteSession

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class Screenshot:
    content: bytes
    mime_type: str
    filename: str | None = None


def extract_batch(
    provider: AIProvider,
    screenshots: Sequence[Screenshot],
    max_workers: int | None = None,
) -> list[ExtractionResult]:
    """Extract every screenshot concurrently; results come back in dispatch order.

    One failed extraction fails the whole batch.
    """
    if not screenshots:
        raise ExtractionFailure("Please upload one or more screenshots first.")

    workers = max(1, min(max_workers or settings.extraction_max_workers, len(screenshots)))
    logger.info(f"Extracting stops from {len(screenshots)} screenshot(s) with {workers} worker(s)")
    with ThreadPoolExecutor(max_workers=workers) as executor:
        futures = [executor.submit(provider.extract_stops, shot.content, shot.mime_type) for shot in screenshots]
        results: list[ExtractionResult] = []
        try:
            for index, future in enumerate(futures):
                result = future.result()
                logger.debug(f"Screenshot {index + 1}: {len(result.stops)} stop(s)")
                results.append(result)
        except FlexRouteError as exc:
            for pending in futures:
                pending.cancel()
            if isinstance(exc, ExtractionFailure):
                raise
            raise ExtractionFailure(exc.message) from exc
        except Exception as exc:
            for pending in futures:
                pending.cancel()
            logger.exception(f"Unexpected error extracting screenshots: {exc}")
            raise ExtractionFailure(
                "An unknown error occurred while processing the screenshots. Please try again."
            ) from exc
    return results


def process_screenshots(
    session: RouteSession,
    provider: AIProvider,
    screenshots: Sequence[Screenshot],
    usage: UsageTracker | None = None,
    max_workers: int | None = None,
) -> Route | None:
    """Turn a batch of screenshots into the session's new route.

    The previous route is cleared first; on failure no partial route is set.
    """
    if usage is not None:
        usage.ensure_can_process()

    session.clear()
    results = extract_batch(provider, screenshots, max_workers=max_workers)
    ingestion = merge_extractions(results)

    summary = RouteSummary(
        total_stops=len(ingestion.stops),
        total_distance="...",
        total_time="...",
        route_block_code=ingestion.route_block_code,
    )
    route = session.set_route(ingestion.stops, summary=summary)
    if usage is not None:
        usage.record_route()
    return route


def optimize_route(
    session: RouteSession,
    provider: AIProvider,
    start_location: GeoPoint | None = None,
    avoid_left_turns: bool = False,
) -> Route | None:
    """Ask the provider for a better order and apply it if it is a true permutation.

    A response for a route that has since been replaced is dropped.
    """
    route, generation, _ = session.snapshot()
    deliveries = route.deliveries if route is not None else ()
    if not deliveries:
        return route

    ordered = provider.optimize_order(deliveries, start_location, avoid_left_turns)
    validate_permutation(deliveries, ordered)
    if not session.apply_optimized_order(ordered, start_location, generation=generation):
        logger.info("Route changed while optimizing; optimized order discarded")
    return session.route
