"""Ingestion domain models."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional

from ...models.domain import Stop


@dataclass(slots=True)
class ExtractionResult:
    stops: List[Stop] = field(default_factory=list)
    route_block_code: Optional[str] = None


@dataclass(slots=True)
class IngestionResult:
    stops: List[Stop]
    route_block_code: Optional[str]
    screenshot_count: int
    duplicates_dropped: int
