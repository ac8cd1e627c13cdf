"""Request-scoped access to the per-app state objects."""

from __future__ import annotations

import logging

from fastapi import HTTPException, Request, status

from ..persistence.filesystem import RouteStore
from ..services.ai.base import AIProvider
from ..services.ai.dispatcher import get_provider
from ..services.errors import ProviderConfigurationError
from ..services.route.session import RouteSession
from ..services.usage import UsageTracker


def get_session(request: Request) -> RouteSession:
    return request.app.state.session


def get_route_store(request: Request) -> RouteStore:
    return request.app.state.route_store


def get_usage(request: Request) -> UsageTracker:
    return request.app.state.usage


def resolve_provider(app) -> AIProvider:
    """Build the configured provider once per app and reuse it."""
    provider = getattr(app.state, "ai_provider", None)
    if provider is None:
        provider = get_provider()
        app.state.ai_provider = provider
    return provider


def get_ai_provider(request: Request) -> AIProvider:
    try:
        return resolve_provider(request.app)
    except ProviderConfigurationError as exc:
        logging.error(f"AI provider unavailable: {exc.message}")
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=exc.message) from exc
