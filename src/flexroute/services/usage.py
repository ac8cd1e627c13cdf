"""Free/Pro tier route quota."""

from __future__ import annotations

import logging
import threading
from datetime import datetime, timezone
from typing import Callable

from ..persistence.filesystem import FileStorage
from ..schemas.usage import Tier, UsageModel
from .errors import PersistenceFailure, UsageLimitExceeded

logger = logging.getLogger(__name__)

USAGE_FILENAME = "usage.json"


def _month_key(moment: datetime) -> str:
    return moment.strftime("%Y-%m")


class UsageTracker:
    """Counts processed routes per calendar month; the Free tier is capped at ``free_limit``."""

    def __init__(
        self,
        storage: FileStorage,
        free_limit: int = 5,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.storage = storage
        self.free_limit = free_limit
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self._path = storage.path(USAGE_FILENAME)
        self._lock = threading.Lock()
        self._tier: Tier = "Free"
        self._month = _month_key(self._clock())
        self._count = 0
        self._load()

    def _load(self) -> None:
        if not self._path.exists():
            return
        try:
            data = self.storage.read_json(self._path)
            self._tier = "Pro" if data.get("tier") == "Pro" else "Free"
            self._month = str(data.get("month") or self._month)
            self._count = int(data.get("route_count", 0))
        except (OSError, ValueError, AttributeError) as exc:
            logger.warning(f"Ignoring unreadable usage data at {self._path}: {exc}")

    def _persist(self) -> None:
        try:
            self.storage.write_json(self._path, {"tier": self._tier, "month": self._month, "route_count": self._count})
        except OSError as exc:
            raise PersistenceFailure("Could not save usage data.") from exc

    def _roll_month(self) -> None:
        current = _month_key(self._clock())
        if current != self._month:
            self._month = current
            self._count = 0

    @property
    def tier(self) -> Tier:
        return self._tier

    def snapshot(self) -> UsageModel:
        with self._lock:
            self._roll_month()
            if self._tier == "Pro":
                return UsageModel(tier=self._tier, month=self._month, route_count=self._count)
            return UsageModel(
                tier=self._tier,
                month=self._month,
                route_count=self._count,
                route_limit=self.free_limit,
                remaining=max(self.free_limit - self._count, 0),
            )

    def ensure_can_process(self) -> None:
        with self._lock:
            self._roll_month()
            if self._tier == "Free" and self._count >= self.free_limit:
                raise UsageLimitExceeded(
                    f"You've reached your free limit of {self.free_limit} routes per month. Please upgrade to Pro."
                )

    def record_route(self) -> None:
        with self._lock:
            if self._tier != "Free":
                return
            self._roll_month()
            self._count += 1
            self._persist()

    def set_tier(self, tier: Tier) -> None:
        with self._lock:
            self._tier = tier
            self._persist()
        logger.info(f"Subscription tier set to {tier}")
