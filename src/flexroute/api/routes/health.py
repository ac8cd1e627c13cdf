"""Health endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Request, status

from ...config import settings

router = APIRouter(tags=["health"])


@router.get("/health", status_code=status.HTTP_200_OK)
def health_root() -> dict:
    """Simple health check endpoint that doesn't require any dependencies."""
    return {"status": "ok"}


@router.get("/health/ai", status_code=status.HTTP_200_OK)
def health_ai(request: Request) -> dict:
    """Report whether the AI provider is configured; does not call the provider."""
    from ..dependencies import resolve_provider

    try:
        provider = resolve_provider(request.app)
        return {"service": settings.ai_provider, "configured": True, "provider": provider.name}
    except Exception as e:
        return {"service": settings.ai_provider, "configured": False, "error": str(e)}
