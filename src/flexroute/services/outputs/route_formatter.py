"""Serializers for routes: wire/storage JSON and CSV export."""

from __future__ import annotations

import csv
import io
from typing import Any, Iterable, Sequence

from ...models.domain import Route, RouteSummary, Stop, TrafficInfo
from ...schemas.conditions import RouteSummaryModel, TrafficInfoModel
from ...schemas.route import RouteResponse, StopModel


def stop_to_model(stop: Stop) -> StopModel:
    return StopModel(
        original_stop_number=stop.original_stop_number,
        street=stop.street,
        city=stop.city,
        state=stop.state,
        zip_code=stop.zip_code,
        label=stop.label,
        package_type=stop.package_type,
        tba=stop.tba,
        package_label=stop.package_label,
        kind=stop.kind,
        delivery_window_end=stop.delivery_window_end,
        stop_type=stop.stop_type,
        is_priority=stop.is_priority,
        status=stop.status,
        completed_at=stop.completed_at,
        is_current_stop=stop.is_current_stop,
        latitude=stop.latitude,
        longitude=stop.longitude,
    )


def model_to_stop(model: StopModel) -> Stop:
    return Stop(
        original_stop_number=model.original_stop_number,
        street=model.street,
        city=model.city,
        state=model.state,
        zip_code=model.zip_code,
        label=model.label,
        package_type=model.package_type,
        stop_type=model.stop_type,
        tba=model.tba,
        package_label=model.package_label,
        delivery_window_end=model.delivery_window_end,
        is_priority=model.is_priority,
        kind=model.kind,
        status=model.status,
        completed_at=model.completed_at,
        is_current_stop=model.is_current_stop,
        latitude=model.latitude,
        longitude=model.longitude,
    )


def stops_to_json(stops: Iterable[Stop]) -> list[dict[str, Any]]:
    """Camel-case stop dicts; absent optional fields are omitted."""
    return [stop_to_model(stop).model_dump(mode="json", by_alias=True, exclude_none=True) for stop in stops]


def stops_from_json(data: Sequence[Any]) -> list[Stop]:
    """Validate camel-case stop dicts. Raises ``pydantic.ValidationError`` on malformed items."""
    return [model_to_stop(StopModel.model_validate(item)) for item in data]


def summary_to_model(summary: RouteSummary | None) -> RouteSummaryModel | None:
    if summary is None:
        return None
    return RouteSummaryModel(
        total_stops=summary.total_stops,
        total_distance=summary.total_distance,
        total_time=summary.total_time,
        route_block_code=summary.route_block_code,
    )


def traffic_to_model(traffic: TrafficInfo | None) -> TrafficInfoModel | None:
    if traffic is None:
        return None
    return TrafficInfoModel(status=traffic.status, summary=traffic.summary, last_updated=traffic.last_updated)


def route_to_response(
    route: Route | None,
    *,
    generation: int,
    revision: int,
    summary: RouteSummary | None = None,
    traffic: TrafficInfo | None = None,
) -> RouteResponse:
    stops = route.stops if route is not None else ()
    current = route.current_stop if route is not None else None
    return RouteResponse(
        stops=[stop_to_model(stop) for stop in stops],
        generation=generation,
        revision=revision,
        current_stop_number=current.original_stop_number if current else None,
        summary=summary_to_model(summary),
        traffic=traffic_to_model(traffic),
    )


def route_to_csv(route: Route) -> str:
    buffer = io.StringIO()
    fieldnames = [
        "sequence",
        "original_stop_number",
        "street",
        "city",
        "state",
        "zip",
        "stop_type",
        "package_type",
        "package_label",
        "tba",
        "delivery_window_end",
        "is_priority",
        "status",
        "completed_at",
        "label",
    ]
    writer = csv.DictWriter(buffer, fieldnames=fieldnames)
    writer.writeheader()
    for sequence, stop in enumerate(route.deliveries, start=1):
        writer.writerow(
            {
                "sequence": sequence,
                "original_stop_number": stop.original_stop_number,
                "street": stop.street,
                "city": stop.city,
                "state": stop.state,
                "zip": stop.zip_code,
                "stop_type": stop.stop_type.value,
                "package_type": stop.package_type.value,
                "package_label": stop.package_label,
                "tba": stop.tba,
                "delivery_window_end": stop.delivery_window_end or "",
                "is_priority": "" if stop.is_priority is None else stop.is_priority,
                "status": stop.status.value if stop.status else "",
                "completed_at": stop.completed_at.isoformat() if stop.completed_at else "",
                "label": stop.label,
            }
        )
    return buffer.getvalue()
