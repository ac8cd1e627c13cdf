"""Route endpoints: ingestion, editing, optimization and navigation links."""

from __future__ import annotations

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, File, HTTPException, Query, Response, UploadFile, status

from ...config import settings
from ...schemas.route import (
    MapLinkModel,
    MoveRequest,
    OptimizeRequest,
    ReorderRequest,
    RouteLinksResponse,
    RouteResponse,
    StatusUpdateRequest,
    StopEditRequest,
)
from ...services.ai.base import AIProvider
from ...services.errors import FlexRouteError
from ...services.location import resolve_fix, route_start_policy
from ...services.navigation.links import generate_apple_maps_link, generate_google_maps_links
from ...services.outputs.route_formatter import route_to_csv, route_to_response
from ...services.route.service import Screenshot, optimize_route, process_screenshots
from ...services.route.session import RouteSession
from ...services.usage import UsageTracker
from ..dependencies import get_ai_provider, get_session, get_usage
from ..errors import to_http_exception

router = APIRouter(prefix="/route", tags=["route"])

ACCEPTED_IMAGE_TYPES = {"image/png", "image/jpeg", "image/webp"}


def build_route_response(session: RouteSession) -> RouteResponse:
    route, generation, revision = session.snapshot()
    return route_to_response(
        route,
        generation=generation,
        revision=revision,
        summary=session.summary,
        traffic=session.traffic,
    )


def _require_stop(session: RouteSession, stop_id: int) -> None:
    route = session.route
    if route is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="No active route.")
    if route.find(stop_id) is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Stop #{stop_id} not found in route.")


def _require_route(session: RouteSession) -> None:
    if session.route is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="No active route.")


@router.post("/screenshots", response_model=RouteResponse, status_code=status.HTTP_200_OK)
def upload_screenshots(
    files: List[UploadFile] = File(..., description="Screenshots of the stop list, in any order."),
    session: RouteSession = Depends(get_session),
    provider: AIProvider = Depends(get_ai_provider),
    usage: UsageTracker = Depends(get_usage),
) -> RouteResponse:
    screenshots = []
    for upload in files:
        mime_type = upload.content_type or "application/octet-stream"
        if mime_type not in ACCEPTED_IMAGE_TYPES:
            raise HTTPException(
                status_code=status.HTTP_415_UNSUPPORTED_MEDIA_TYPE,
                detail=f"Unsupported file type '{mime_type}' for {upload.filename}. Use PNG, JPEG or WebP.",
            )
        screenshots.append(Screenshot(content=upload.file.read(), mime_type=mime_type, filename=upload.filename))

    try:
        process_screenshots(session, provider, screenshots, usage=usage)
    except FlexRouteError as exc:
        raise to_http_exception(exc) from exc
    except Exception as exc:
        logging.exception(f"Error processing screenshots: {exc}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="An unknown error occurred. Please try again.",
        ) from exc
    return build_route_response(session)


@router.get("", response_model=RouteResponse)
def get_route(session: RouteSession = Depends(get_session)) -> RouteResponse:
    return build_route_response(session)


@router.delete("", response_model=RouteResponse)
def start_over(session: RouteSession = Depends(get_session)) -> RouteResponse:
    """Discard the current route."""
    session.clear()
    return build_route_response(session)


@router.patch("/stops/{stop_id}", response_model=RouteResponse)
def edit_stop(stop_id: int, payload: StopEditRequest, session: RouteSession = Depends(get_session)) -> RouteResponse:
    _require_stop(session, stop_id)
    session.update_stop(stop_id, payload.to_edit())
    return build_route_response(session)


@router.post("/stops/{stop_id}/status", response_model=RouteResponse)
def update_status(
    stop_id: int,
    payload: StatusUpdateRequest,
    session: RouteSession = Depends(get_session),
) -> RouteResponse:
    _require_stop(session, stop_id)
    session.set_status(stop_id, payload.status, at=payload.completed_at)
    return build_route_response(session)


@router.post("/stops/{stop_id}/move", response_model=RouteResponse)
def move_stop(stop_id: int, payload: MoveRequest, session: RouteSession = Depends(get_session)) -> RouteResponse:
    _require_stop(session, stop_id)
    session.move(stop_id, payload.direction)
    return build_route_response(session)


@router.delete("/stops/{stop_id}", response_model=RouteResponse)
def delete_stop(stop_id: int, session: RouteSession = Depends(get_session)) -> RouteResponse:
    _require_stop(session, stop_id)
    session.delete_stop(stop_id)
    return build_route_response(session)


@router.post("/reorder", response_model=RouteResponse)
def reorder_stops(payload: ReorderRequest, session: RouteSession = Depends(get_session)) -> RouteResponse:
    _require_route(session)
    session.reorder(payload.from_index, payload.to_index)
    return build_route_response(session)


@router.post("/reset-order", response_model=RouteResponse)
def reset_order(session: RouteSession = Depends(get_session)) -> RouteResponse:
    _require_route(session)
    session.reset_to_original_order()
    return build_route_response(session)


@router.post("/optimize", response_model=RouteResponse)
def optimize(
    payload: OptimizeRequest,
    session: RouteSession = Depends(get_session),
    provider: AIProvider = Depends(get_ai_provider),
) -> RouteResponse:
    _require_route(session)
    try:
        start_location = resolve_fix(payload.location, route_start_policy()) if payload.use_location else None
        optimize_route(session, provider, start_location=start_location, avoid_left_turns=payload.avoid_left_turns)
    except FlexRouteError as exc:
        raise to_http_exception(exc) from exc
    except Exception as exc:
        logging.exception(f"Error optimizing route: {exc}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="An unknown error occurred during optimization.",
        ) from exc
    return build_route_response(session)


@router.get("/links", response_model=RouteLinksResponse)
def navigation_links(
    limit: Optional[int] = Query(default=None, ge=2, description="Override the configured waypoint limit."),
    session: RouteSession = Depends(get_session),
) -> RouteLinksResponse:
    route = session.route
    stops = route.stops if route is not None else ()
    google = generate_google_maps_links(stops, limit or settings.maps_waypoint_limit)
    apple = generate_apple_maps_link(stops)
    return RouteLinksResponse(
        google=[MapLinkModel(label=link.label, url=link.url) for link in google],
        apple=MapLinkModel(label=apple.label, url=apple.url) if apple else None,
    )


@router.get("/export.csv")
def export_csv(session: RouteSession = Depends(get_session)) -> Response:
    _require_route(session)
    return Response(
        content=route_to_csv(session.route),
        media_type="text/csv",
        headers={"Content-Disposition": 'attachment; filename="route.csv"'},
    )
