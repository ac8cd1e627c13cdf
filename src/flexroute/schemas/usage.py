"""Usage quota schemas."""

from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel

Tier = Literal["Free", "Pro"]


class UsageModel(BaseModel):
    tier: Tier
    month: str
    route_count: int
    route_limit: Optional[int] = None
    remaining: Optional[int] = None


class TierUpdateRequest(BaseModel):
    tier: Tier
