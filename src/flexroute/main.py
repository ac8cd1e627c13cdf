"""FastAPI application entry point."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .api.dependencies import resolve_provider
from .api.routes import conditions, health, route, storage, usage
from .config import settings
from .persistence.filesystem import FileStorage, RouteStore
from .services.conditions.scheduler import ConditionsScheduler
from .services.route.session import RouteSession
from .services.usage import UsageTracker


def create_app(data_root: Path | None = None, start_scheduler: bool = True) -> FastAPI:
    logging.basicConfig(level=settings.log_level.upper(), format="%(asctime)s %(levelname)s %(name)s %(message)s")

    session = RouteSession()
    file_storage = FileStorage(root=data_root)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if start_scheduler:
            app.state.conditions.start()
        try:
            yield
        finally:
            app.state.conditions.shutdown()

    app = FastAPI(title=settings.app_name, root_path="", lifespan=lifespan)
    app.state.session = session
    app.state.route_store = RouteStore(file_storage)
    app.state.usage = UsageTracker(file_storage, free_limit=settings.free_tier_route_limit)
    app.state.ai_provider = None
    app.state.conditions = ConditionsScheduler(
        session,
        provider_factory=lambda: resolve_provider(app),
        traffic_interval_seconds=settings.traffic_refresh_seconds,
    )

    if settings.frontend_allowed_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=list(settings.frontend_allowed_origins),
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    @app.get("/")
    def root():
        return {
            "service": settings.app_name,
            "status": "running",
            "api_prefix": settings.api_prefix,
            "health": f"{settings.api_prefix}/health",
            "docs": "/docs",
        }

    app.include_router(health.router, prefix=settings.api_prefix)
    app.include_router(route.router, prefix=settings.api_prefix)
    app.include_router(storage.router, prefix=settings.api_prefix)
    app.include_router(conditions.router, prefix=settings.api_prefix)
    app.include_router(usage.router, prefix=settings.api_prefix)
    return app


app = create_app()
