"""Gemini implementation of the AI provider."""

from __future__ import annotations

import json
import logging
from typing import Any, Callable, Sequence, TypeVar

import httpx
from google import genai
from google.genai import errors as genai_errors
from google.genai import types
from pydantic import TypeAdapter

from ...models.domain import GeoPoint, Stop, TrafficStatus, WeatherInfo
from ...schemas.extraction import (
    ExtractedStopModel,
    ExtractionResponseModel,
    RouteEstimateModel,
    TrafficResponseModel,
    WeatherResponseModel,
)
from ..errors import (
    ExtractionFailure,
    FlexRouteError,
    OptimizationFailure,
    SummaryFailure,
    TrafficFailure,
    WeatherFailure,
)
from ..ingestion.models import ExtractionResult
from ..outputs.route_formatter import stops_to_json
from .base import AIProvider, RouteEstimate, TrafficReport

logger = logging.getLogger(__name__)

T = TypeVar("T")

PACKAGE_TYPES = ["Box", "Envelope", "Plastic Bag", "Custom Sized", "Unknown"]
STOP_TYPES = ["House", "Apartment", "Business", "Locker", "Unknown"]
TRAFFIC_STATUSES = ["Light", "Moderate", "Heavy", "Unknown"]
WEATHER_ICONS = ["SUNNY", "CLOUDY", "RAINY", "SNOWY", "THUNDERSTORM", "WINDY", "PARTLY_CLOUDY", "UNKNOWN"]

PROVIDER_ERRORS = (genai_errors.APIError, httpx.HTTPError, ValueError)

STOP_PROPERTIES: dict[str, Any] = {
    "originalStopNumber": {"type": "INTEGER"},
    "street": {"type": "STRING"},
    "city": {"type": "STRING"},
    "state": {"type": "STRING"},
    "zip": {"type": "STRING"},
    "label": {"type": "STRING", "description": "Any notes or labels. Defaults to empty string."},
    "packageType": {"type": "STRING", "enum": PACKAGE_TYPES},
    "tba": {"type": "STRING"},
    "packageLabel": {"type": "STRING"},
    "stopType": {"type": "STRING", "enum": STOP_TYPES},
    "isPriority": {"type": "BOOLEAN"},
    "deliveryWindowEnd": {"type": "STRING"},
}
STOP_REQUIRED = [
    "originalStopNumber",
    "street",
    "city",
    "state",
    "zip",
    "packageType",
    "tba",
    "packageLabel",
    "stopType",
    "label",
]

EXTRACTION_SCHEMA: dict[str, Any] = {
    "type": "OBJECT",
    "properties": {
        "routeBlockCode": {
            "type": "STRING",
            "description": "The route block code, e.g., VCN3 - 4:00 PM - 4.5 hrs",
        },
        "stops": {
            "type": "ARRAY",
            "items": {"type": "OBJECT", "properties": STOP_PROPERTIES, "required": STOP_REQUIRED},
        },
    },
    "required": ["stops"],
}

OPTIMIZED_STOPS_SCHEMA: dict[str, Any] = {
    "type": "ARRAY",
    "items": {"type": "OBJECT", "properties": STOP_PROPERTIES, "required": STOP_REQUIRED},
}

SUMMARY_SCHEMA: dict[str, Any] = {
    "type": "OBJECT",
    "properties": {"totalDistance": {"type": "STRING"}, "totalTime": {"type": "STRING"}},
    "required": ["totalDistance", "totalTime"],
}

TRAFFIC_SCHEMA: dict[str, Any] = {
    "type": "OBJECT",
    "properties": {
        "status": {"type": "STRING", "enum": TRAFFIC_STATUSES},
        "summary": {"type": "STRING"},
    },
    "required": ["status", "summary"],
}

WEATHER_SCHEMA: dict[str, Any] = {
    "type": "OBJECT",
    "properties": {
        "temperature": {"type": "STRING"},
        "condition": {"type": "STRING"},
        "icon": {"type": "STRING", "enum": WEATHER_ICONS},
    },
    "required": ["temperature", "condition", "icon"],
}

EXTRACTION_PROMPT = """Analyze this delivery route screenshot. Extract all delivery stops. For each stop, provide:
- originalStopNumber (integer)
- street (string)
- city (string)
- state (string)
- zip (string)
- tba (string)
- packageLabel (string, e.g., "A.1Z")
- packageType (enum: "Box", "Envelope", "Plastic Bag", "Custom Sized", "Unknown")
- stopType (enum: "House", "Apartment", "Business", "Locker", "Unknown")
- isPriority (boolean, true if a priority stop)
- deliveryWindowEnd (string, in "HH:mm" format if present)

Also, find the Route Block Code (e.g., "VCN3 - 4:00 PM - 4.5 hrs").
Set 'label' for each stop to an empty string by default.
Output ONLY a valid JSON object matching the provided schema."""

_optimized_stops = TypeAdapter(list[ExtractedStopModel])


def describe_provider_error(error: BaseException, context: str) -> str:
    """Translate a provider failure into a message the courier can act on."""
    if isinstance(error, ValueError):
        return (
            f"The AI returned an invalid response while {context}. "
            "The screenshot might be blurry or the AI model produced malformed JSON."
        )

    details = str(error).lower()
    if "api key not valid" in details or "api_key_invalid" in details:
        return "Your API key is invalid or expired. Please check the FLEXROUTE_GEMINI_API_KEY setting."
    if "permission denied" in details or "permission_denied" in details:
        return "The API key is missing permissions. Please check your Google Cloud project settings."
    if "quota" in details or "resource_exhausted" in details:
        return "You have exceeded your API quota for the day. Please check your usage limits or try again later."
    if isinstance(error, httpx.HTTPError) or "network" in details or "dns" in details or "fetch failed" in details:
        return "Could not connect to the AI service. Please check your internet connection."
    if "blocked due to safety" in details:
        return "The request was blocked due to safety settings. Try a different request."
    return f"An unexpected error occurred while {context}. The AI service may be temporarily unavailable."


class GeminiProvider(AIProvider):
    name = "gemini"

    def __init__(self, model: str, api_key: str | None = None, client: Any | None = None) -> None:
        self.model = model
        self._client = client if client is not None else genai.Client(api_key=api_key)

    def _generate_json(self, contents: Any, schema: dict[str, Any]) -> str:
        response = self._client.models.generate_content(
            model=self.model,
            contents=contents,
            config=types.GenerateContentConfig(
                response_mime_type="application/json",
                response_schema=schema,
            ),
        )
        text = (response.text or "").strip()
        if not text:
            raise ValueError("Empty response from model.")
        return text

    def _call(
        self,
        context: str,
        failure: type[FlexRouteError],
        request: Callable[[], T],
    ) -> T:
        try:
            return request()
        except PROVIDER_ERRORS as exc:
            logger.error(f"Gemini error ({context}): {exc}")
            raise failure(describe_provider_error(exc, context)) from exc

    def extract_stops(self, image: bytes, mime_type: str) -> ExtractionResult:
        def request() -> ExtractionResult:
            text = self._generate_json(
                [types.Part.from_bytes(data=image, mime_type=mime_type), EXTRACTION_PROMPT],
                EXTRACTION_SCHEMA,
            )
            parsed = ExtractionResponseModel.model_validate_json(text)
            return ExtractionResult(
                stops=[stop.to_stop() for stop in parsed.stops],
                route_block_code=(parsed.route_block_code or "").strip() or None,
            )

        return self._call("processing the route screenshot", ExtractionFailure, request)

    def optimize_order(
        self,
        stops: Sequence[Stop],
        start_location: GeoPoint | None = None,
        avoid_left_turns: bool = False,
    ) -> list[Stop]:
        lines = [
            "Optimize the following list of delivery stops for a delivery driver to find the most "
            "efficient route that minimizes travel time and distance.",
        ]
        if start_location is not None:
            lines.append(
                f"The route must start from the current location: latitude {start_location.lat}, "
                f"longitude {start_location.lon}."
            )
        if avoid_left_turns:
            lines.append(
                "The driver prefers to avoid left turns where possible. Please factor this into the optimization."
            )
        lines.extend(
            [
                "The output must be the full list of stops, reordered for optimal efficiency.",
                "Each stop object in the output must be identical in structure to the input objects. "
                "Do not add, remove, or alter any fields.",
                "Input Stops:",
                json.dumps(stops_to_json(stops), indent=2),
                "Return ONLY the reordered list of stops as a valid JSON array.",
            ]
        )
        prompt = "\n".join(lines)

        def request() -> list[Stop]:
            text = self._generate_json(prompt, OPTIMIZED_STOPS_SCHEMA)
            return [stop.to_stop() for stop in _optimized_stops.validate_json(text)]

        return self._call("optimizing the route order", OptimizationFailure, request)

    def route_summary(self, stops: Sequence[Stop]) -> RouteEstimate:
        if not stops:
            return RouteEstimate(total_distance="0 miles", total_time="0 minutes")
        addresses = ", ".join(f'"{stop.street}, {stop.city}"' for stop in stops)
        prompt = (
            f"Calculate the estimated total driving distance (in miles) and time for a route with these stops: "
            f"{addresses}.\n"
            'Provide the total distance and total time in a human-readable format (e.g., "35.5 miles", '
            '"1 hour 25 minutes").\n'
            'Return a JSON object with keys "totalDistance" and "totalTime".'
        )

        def request() -> RouteEstimate:
            parsed = RouteEstimateModel.model_validate_json(self._generate_json(prompt, SUMMARY_SCHEMA))
            return RouteEstimate(total_distance=parsed.total_distance, total_time=parsed.total_time)

        return self._call("calculating the route summary", SummaryFailure, request)

    def live_traffic(self, stops: Sequence[Stop]) -> TrafficReport:
        if not stops:
            return TrafficReport(status=TrafficStatus.UNKNOWN, summary="No route to analyze.")
        waypoints = " through ".join(f'"{stop.city}, {stop.state}"' for stop in stops)
        prompt = (
            f"Provide a traffic summary for a route in the area of {waypoints}. "
            'Give a status ("Light", "Moderate", "Heavy", or "Unknown") and a brief summary. '
            "Respond in JSON format."
        )

        def request() -> TrafficReport:
            parsed = TrafficResponseModel.model_validate_json(self._generate_json(prompt, TRAFFIC_SCHEMA))
            return TrafficReport(status=parsed.status, summary=parsed.summary)

        return self._call("fetching live traffic", TrafficFailure, request)

    def current_weather(self, point: GeoPoint) -> WeatherInfo:
        prompt = (
            f"What is the current weather at latitude {point.lat} and longitude {point.lon}? "
            'Provide the temperature (in Fahrenheit, e.g., "72°F"), a brief condition description '
            '(e.g., "Clear", "Partly Cloudy"), and an icon identifier. The icon identifier must be one of '
            f"the following strings: {', '.join(repr(icon) for icon in WEATHER_ICONS)}. "
            'Respond in JSON format with keys "temperature", "condition", and "icon".'
        )

        def request() -> WeatherInfo:
            parsed = WeatherResponseModel.model_validate_json(self._generate_json(prompt, WEATHER_SCHEMA))
            return WeatherInfo(temperature=parsed.temperature, condition=parsed.condition, icon=parsed.icon)

        return self._call("fetching the current weather", WeatherFailure, request)
