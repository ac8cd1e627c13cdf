"""Subscription tier and route quota endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from ...schemas.usage import TierUpdateRequest, UsageModel
from ...services.errors import FlexRouteError
from ...services.usage import UsageTracker
from ..dependencies import get_usage
from ..errors import to_http_exception

router = APIRouter(prefix="/usage", tags=["usage"])


@router.get("", response_model=UsageModel)
def usage_status(usage: UsageTracker = Depends(get_usage)) -> UsageModel:
    return usage.snapshot()


@router.put("/tier", response_model=UsageModel)
def update_tier(payload: TierUpdateRequest, usage: UsageTracker = Depends(get_usage)) -> UsageModel:
    try:
        usage.set_tier(payload.tier)
    except FlexRouteError as exc:
        raise to_http_exception(exc) from exc
    return usage.snapshot()
