"""Route output helpers."""

from .route_formatter import route_to_csv, route_to_response, stops_from_json, stops_to_json
from .share import decode_share_token, encode_share_token

__all__ = [
    "route_to_csv",
    "route_to_response",
    "stops_from_json",
    "stops_to_json",
    "encode_share_token",
    "decode_share_token",
]
