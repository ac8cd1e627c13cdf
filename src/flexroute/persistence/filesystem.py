"""File-based persistence for the saved route snapshot and usage counters."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from ..config import settings
from ..models.domain import Route
from ..services.errors import PersistenceFailure
from ..services.outputs.route_formatter import stops_from_json, stops_to_json
from ..services.route import operations

logger = logging.getLogger(__name__)

SAVED_ROUTE_FILENAME = "saved_route.json"


class FileStorage:
    """Thin wrapper around the data root for reading and writing JSON documents."""

    def __init__(self, root: Path | None = None) -> None:
        self.root = (root or settings.data_root).resolve()

    def path(self, name: str) -> Path:
        return self.root / name

    def write_json(self, path: Path, data: Any, *, indent: int = 2) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        with path.open("w", encoding="utf-8") as handle:
            json.dump(data, handle, ensure_ascii=False, indent=indent)

    def read_json(self, path: Path) -> Any:
        with path.open("r", encoding="utf-8") as handle:
            return json.load(handle)

    def remove(self, path: Path) -> None:
        path.unlink(missing_ok=True)


class RouteStore:
    """Saves, loads and clears the single saved route snapshot."""

    def __init__(self, storage: FileStorage, filename: str = SAVED_ROUTE_FILENAME) -> None:
        self.storage = storage
        self.snapshot_path = storage.path(filename)

    def exists(self) -> bool:
        return self.snapshot_path.exists()

    def save(self, route: Route) -> None:
        try:
            self.storage.write_json(self.snapshot_path, stops_to_json(route.stops))
        except (OSError, TypeError, ValueError) as exc:
            logger.error(f"Failed to save route to {self.snapshot_path}: {exc}")
            raise PersistenceFailure("Could not save the route. The storage might be full.") from exc
        logger.info(f"Saved route with {len(route)} stops to {self.snapshot_path}")

    def load(self) -> Route | None:
        """Return the saved route, or ``None`` when nothing is saved.

        A corrupt snapshot is removed before ``PersistenceFailure`` is raised.
        """
        if not self.exists():
            return None
        try:
            data = self.storage.read_json(self.snapshot_path)
            if not isinstance(data, list):
                raise ValueError("Saved data is not a valid route.")
            route = operations.set_route(stops_from_json(data))
        except (OSError, ValueError, ValidationError) as exc:
            logger.error(f"Failed to parse saved route at {self.snapshot_path}: {exc}")
            self.clear()
            raise PersistenceFailure("Could not load saved route. The data might be corrupted.") from exc
        return route

    def clear(self) -> None:
        try:
            self.storage.remove(self.snapshot_path)
        except OSError as exc:
            raise PersistenceFailure("Could not clear the saved route.") from exc
