"""Navigation links for the delivery portion of a route."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence
from urllib.parse import quote

from ...models.domain import Stop

GOOGLE_MAPS_SEARCH_URL = "https://www.google.com/maps/search/"
GOOGLE_MAPS_DIRECTIONS_URL = "https://www.google.com/maps/dir/"
APPLE_MAPS_URL = "https://maps.apple.com/"


@dataclass(frozen=True, slots=True)
class MapLink:
    label: str
    url: str


def _encode_address(stop: Stop) -> str:
    return quote(stop.address, safe="")


def _chunk_url(chunk: Sequence[Stop]) -> str:
    encoded = [_encode_address(stop) for stop in chunk]
    if len(encoded) == 1:
        return f"{GOOGLE_MAPS_SEARCH_URL}?api=1&query={encoded[0]}"
    params = [("api", "1"), ("origin", encoded[0]), ("destination", encoded[-1])]
    if len(encoded) > 2:
        params.append(("waypoints", "|".join(encoded[1:-1])))
    return GOOGLE_MAPS_DIRECTIONS_URL + "?" + "&".join(f"{key}={value}" for key, value in params)


def generate_google_maps_links(stops: Sequence[Stop], waypoint_limit: int) -> list[MapLink]:
    """Build Google Maps links in route order, splitting into chunks of at most ``waypoint_limit`` stops."""
    if waypoint_limit < 1:
        raise ValueError("Waypoint limit must be at least 1.")

    deliveries = [stop for stop in stops if stop.is_delivery]
    if not deliveries:
        return []
    if len(deliveries) <= waypoint_limit:
        return [MapLink(label="Open in Google Maps", url=_chunk_url(deliveries))]

    links: list[MapLink] = []
    for start in range(0, len(deliveries), waypoint_limit):
        chunk = deliveries[start : start + waypoint_limit]
        label = f"Open Route (Stops {start + 1} - {start + len(chunk)})"
        links.append(MapLink(label=label, url=_chunk_url(chunk)))
    return links


def generate_apple_maps_link(stops: Sequence[Stop]) -> MapLink | None:
    first = next((stop for stop in stops if stop.is_delivery), None)
    if first is None:
        return None
    return MapLink(label="Open in Apple Maps", url=f"{APPLE_MAPS_URL}?daddr={_encode_address(first)}")
