"""Combine per-screenshot extraction results into one ordered delivery list."""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Iterable, Sequence

from ...models.domain import LOCATION_STOP_NUMBER, Stop, StopKind, StopStatus
from ..errors import ExtractionFailure
from .models import ExtractionResult, IngestionResult

logger = logging.getLogger(__name__)

NO_STOPS_MESSAGE = "Could not extract any addresses from the images. Please try other screenshots."


def _first_block_code(results: Iterable[ExtractionResult]) -> str | None:
    for result in results:
        code = (result.route_block_code or "").strip()
        if code:
            return code
    return None


def _as_pending_delivery(stop: Stop) -> Stop:
    return replace(
        stop,
        kind=StopKind.DELIVERY,
        status=StopStatus.PENDING,
        completed_at=None,
        is_current_stop=False,
    )


def dedupe_stops(stops: Iterable[Stop]) -> tuple[list[Stop], int]:
    """Keep the first stop seen for each stop number. Returns the kept stops and the drop count.

    Numbers at or below the reserved location stop number are dropped too.
    """
    seen: dict[int, Stop] = {}
    dropped = 0
    for stop in stops:
        if stop.original_stop_number <= LOCATION_STOP_NUMBER:
            dropped += 1
            logger.debug(f"Dropping extracted stop with reserved number #{stop.original_stop_number}")
            continue
        if stop.original_stop_number in seen:
            dropped += 1
            logger.debug(f"Dropping duplicate extraction for stop #{stop.original_stop_number}")
            continue
        seen[stop.original_stop_number] = stop
    return list(seen.values()), dropped


def merge_extractions(results: Sequence[ExtractionResult]) -> IngestionResult:
    """Flatten, deduplicate (first occurrence wins) and sort extracted stops by stop number.

    ``results`` must be in dispatch order. The returned stops are pending
    deliveries with no current-stop flag; the caller recomputes it when the
    route is assembled.
    """
    flattened = (stop for result in results for stop in result.stops)
    kept, dropped = dedupe_stops(flattened)
    if not kept:
        raise ExtractionFailure(NO_STOPS_MESSAGE)

    ordered = sorted((_as_pending_delivery(stop) for stop in kept), key=lambda stop: stop.original_stop_number)
    block_code = _first_block_code(results)
    logger.info(
        f"Merged {len(ordered)} stops from {len(results)} screenshot(s) "
        f"({dropped} duplicate(s) dropped, block code: {block_code or 'none'})"
    )
    return IngestionResult(
        stops=ordered,
        route_block_code=block_code,
        screenshot_count=len(results),
        duplicates_dropped=dropped,
    )
