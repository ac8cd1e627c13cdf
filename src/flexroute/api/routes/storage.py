"""Saved route and share-link endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status

from ...persistence.filesystem import RouteStore
from ...schemas.route import RouteResponse, SavedRouteStatus, ShareTokenModel
from ...services.errors import FlexRouteError
from ...services.outputs.share import decode_share_token, encode_share_token
from ...services.route.session import RouteSession
from ..dependencies import get_route_store, get_session
from ..errors import to_http_exception
from .route import build_route_response

router = APIRouter(prefix="/route", tags=["storage"])


@router.get("/saved", response_model=SavedRouteStatus)
def saved_route_status(store: RouteStore = Depends(get_route_store)) -> SavedRouteStatus:
    return SavedRouteStatus(has_saved_route=store.exists())


@router.post("/save", response_model=SavedRouteStatus)
def save_route(
    session: RouteSession = Depends(get_session),
    store: RouteStore = Depends(get_route_store),
) -> SavedRouteStatus:
    route = session.route
    if route is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="No active route to save.")
    try:
        store.save(route)
    except FlexRouteError as exc:
        raise to_http_exception(exc) from exc
    return SavedRouteStatus(has_saved_route=True)


@router.post("/load", response_model=RouteResponse)
def load_route(
    session: RouteSession = Depends(get_session),
    store: RouteStore = Depends(get_route_store),
) -> RouteResponse:
    try:
        route = store.load()
    except FlexRouteError as exc:
        raise to_http_exception(exc) from exc
    if route is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="No saved route.")
    session.set_route(route.stops)
    return build_route_response(session)


@router.delete("/saved", response_model=SavedRouteStatus)
def clear_saved_route(store: RouteStore = Depends(get_route_store)) -> SavedRouteStatus:
    try:
        store.clear()
    except FlexRouteError as exc:
        raise to_http_exception(exc) from exc
    return SavedRouteStatus(has_saved_route=False)


@router.post("/share", response_model=ShareTokenModel)
def share_route(session: RouteSession = Depends(get_session)) -> ShareTokenModel:
    route = session.route
    if route is None or not route.stops:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="No active route to share.")
    return ShareTokenModel(token=encode_share_token(route))


@router.post("/shared", response_model=RouteResponse)
def open_shared_route(payload: ShareTokenModel, session: RouteSession = Depends(get_session)) -> RouteResponse:
    try:
        stops = decode_share_token(payload.token)
    except FlexRouteError as exc:
        raise to_http_exception(exc) from exc
    session.set_route(stops)
    return build_route_response(session)
