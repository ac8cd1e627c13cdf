"""Shareable route tokens."""

from __future__ import annotations

import base64
import binascii
import json
import logging

from pydantic import ValidationError

from ...models.domain import Route, Stop
from ..errors import SharedRouteError
from .route_formatter import stops_from_json, stops_to_json

logger = logging.getLogger(__name__)

INVALID_SHARE_MESSAGE = "Could not load shared route. The link may be corrupted or expired."


def encode_share_token(route: Route) -> str:
    payload = json.dumps(stops_to_json(route.stops), ensure_ascii=False, separators=(",", ":"))
    return base64.urlsafe_b64encode(payload.encode("utf-8")).decode("ascii").rstrip("=")


def decode_share_token(token: str) -> list[Stop]:
    padded = token.strip() + "=" * (-len(token.strip()) % 4)
    try:
        data = json.loads(base64.urlsafe_b64decode(padded.encode("ascii")).decode("utf-8"))
        if not isinstance(data, list) or not data:
            raise ValueError("Shared route payload is not a non-empty list of stops.")
        return stops_from_json(data)
    except (binascii.Error, UnicodeError, ValueError, ValidationError) as exc:
        logger.warning(f"Failed to decode shared route: {exc}")
        raise SharedRouteError(INVALID_SHARE_MESSAGE) from exc
