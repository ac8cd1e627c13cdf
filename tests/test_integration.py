import base64
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from flexroute.api.dependencies import get_ai_provider
from flexroute.main import create_app
from flexroute.models.domain import Stop, TrafficStatus, WeatherInfo, WeatherIcon
from flexroute.services.ai.base import AIProvider, RouteEstimate, TrafficReport
from flexroute.services.errors import ExtractionFailure, ProviderConfigurationError
from flexroute.services.ingestion.models import ExtractionResult


def _stop(number: int, street: str) -> Stop:
    return Stop(original_stop_number=number, street=street, city="Madison", state="WI", zip_code="53703")


class DummyProvider(AIProvider):
    name = "dummy"

    def __init__(self) -> None:
        self.extractions = {
            b"shot-a": ExtractionResult(
                stops=[_stop(3, "A St"), _stop(1, "B St"), _stop(5, "X Ave")],
                route_block_code="VCN3 - 4:00 PM - 4.5 hrs",
            ),
            b"shot-b": ExtractionResult(stops=[_stop(5, "Y Ave"), _stop(2, "C St")]),
        }
        self.optimized_reversed = True

    def extract_stops(self, image, mime_type):
        if image not in self.extractions:
            raise ExtractionFailure("The AI returned an invalid response while processing the route screenshot.")
        return self.extractions[image]

    def optimize_order(self, stops, start_location=None, avoid_left_turns=False):
        return list(reversed(stops)) if self.optimized_reversed else list(stops)[:-1]

    def route_summary(self, stops):
        return RouteEstimate(total_distance="9 miles", total_time="40 minutes")

    def live_traffic(self, stops):
        return TrafficReport(status=TrafficStatus.MODERATE, summary="Some slowdowns.")

    def current_weather(self, point):
        return WeatherInfo(temperature="55°F", condition="Cloudy", icon=WeatherIcon.CLOUDY)


@pytest.fixture
def provider() -> DummyProvider:
    return DummyProvider()


@pytest.fixture
def api_client(tmp_path: Path, provider: DummyProvider) -> TestClient:
    app = create_app(data_root=tmp_path, start_scheduler=False)
    app.dependency_overrides[get_ai_provider] = lambda: provider
    return TestClient(app)


def _upload(client: TestClient, *shots: bytes):
    files = [("files", (f"{shot.decode()}.png", shot, "image/png")) for shot in shots]
    return client.post("/api/route/screenshots", files=files)


def _numbers(payload: dict) -> list[int]:
    return [stop["originalStopNumber"] for stop in payload["stops"] if stop["type"] == "delivery"]


def test_health(api_client: TestClient):
    response = api_client.get("/api/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_upload_merges_screenshots(api_client: TestClient):
    response = _upload(api_client, b"shot-a", b"shot-b")

    assert response.status_code == 200
    payload = response.json()
    assert _numbers(payload) == [1, 2, 3, 5]
    assert payload["currentStopNumber"] == 1
    assert payload["generation"] == 2
    assert payload["summary"]["routeBlockCode"] == "VCN3 - 4:00 PM - 4.5 hrs"
    stop_five = next(stop for stop in payload["stops"] if stop["originalStopNumber"] == 5)
    assert stop_five["street"] == "X Ave"
    assert stop_five["zip"] == "53703"
    assert stop_five["status"] == "pending"


def test_upload_rejects_non_images(api_client: TestClient):
    response = api_client.post("/api/route/screenshots", files=[("files", ("notes.txt", b"hi", "text/plain"))])

    assert response.status_code == 415


def test_failed_extraction_returns_422_and_clears_route(api_client: TestClient):
    _upload(api_client, b"shot-a")

    response = _upload(api_client, b"shot-a", b"garbage")

    assert response.status_code == 422
    assert "invalid response" in response.json()["detail"]
    assert api_client.get("/api/route").json()["stops"] == []


def test_edit_status_and_ordering_flow(api_client: TestClient):
    _upload(api_client, b"shot-a", b"shot-b")

    edited = api_client.patch("/api/route/stops/2", json={"field": "label", "value": "Side door"})
    assert edited.status_code == 200
    assert next(s for s in edited.json()["stops"] if s["originalStopNumber"] == 2)["label"] == "Side door"

    delivered = api_client.post("/api/route/stops/1/status", json={"status": "delivered"})
    assert delivered.json()["currentStopNumber"] == 2
    assert next(s for s in delivered.json()["stops"] if s["originalStopNumber"] == 1)["completedAt"]

    moved = api_client.post("/api/route/stops/5/move", json={"direction": "up"})
    assert _numbers(moved.json()) == [1, 2, 5, 3]

    reordered = api_client.post("/api/route/reorder", json={"from_index": 3, "to_index": 0})
    assert _numbers(reordered.json()) == [3, 1, 2, 5]
    assert reordered.json()["currentStopNumber"] == 3

    deleted = api_client.delete("/api/route/stops/3")
    assert _numbers(deleted.json()) == [1, 2, 5]
    assert deleted.json()["currentStopNumber"] == 2

    reset = api_client.post("/api/route/reset-order")
    assert _numbers(reset.json()) == [1, 2, 5]


def test_invalid_edit_is_rejected(api_client: TestClient):
    _upload(api_client, b"shot-a")

    response = api_client.patch("/api/route/stops/1", json={"field": "deliveryWindowEnd", "value": "25:99"})

    assert response.status_code == 422


def test_unknown_stop_returns_404(api_client: TestClient):
    _upload(api_client, b"shot-a")

    response = api_client.post("/api/route/stops/99/status", json={"status": "skipped"})

    assert response.status_code == 404


def test_optimize_with_location(api_client: TestClient):
    _upload(api_client, b"shot-a")

    response = api_client.post(
        "/api/route/optimize",
        json={"use_location": True, "location": {"lat": 43.07, "lon": -89.4}, "avoid_left_turns": True},
    )

    assert response.status_code == 200
    payload = response.json()
    assert payload["stops"][0]["type"] == "location"
    assert payload["stops"][0]["street"] == "Your Current Location"
    assert _numbers(payload) == [5, 3, 1]
    assert payload["currentStopNumber"] == 5


def test_optimize_location_permission_denied(api_client: TestClient):
    _upload(api_client, b"shot-a")

    response = api_client.post(
        "/api/route/optimize",
        json={"use_location": True, "location": {"error": "permission_denied"}},
    )

    assert response.status_code == 403
    assert "grant location permission" in response.json()["detail"]


def test_optimize_mismatch_leaves_route_unchanged(api_client: TestClient, provider: DummyProvider):
    _upload(api_client, b"shot-a")
    provider.optimized_reversed = False

    response = api_client.post("/api/route/optimize", json={})

    assert response.status_code == 502
    assert _numbers(api_client.get("/api/route").json()) == [1, 3, 5]


def test_navigation_links(api_client: TestClient):
    _upload(api_client, b"shot-a", b"shot-b")

    response = api_client.get("/api/route/links", params={"limit": 2})

    assert response.status_code == 200
    payload = response.json()
    assert [link["label"] for link in payload["google"]] == [
        "Open Route (Stops 1 - 2)",
        "Open Route (Stops 3 - 4)",
    ]
    assert payload["apple"]["url"].startswith("https://maps.apple.com/?daddr=B%20St")


def test_csv_export(api_client: TestClient):
    _upload(api_client, b"shot-a")

    response = api_client.get("/api/route/export.csv")

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/csv")
    assert response.text.splitlines()[0].startswith("sequence,original_stop_number,street")


def test_save_and_load_round_trip(api_client: TestClient, tmp_path: Path):
    _upload(api_client, b"shot-a")
    api_client.post("/api/route/stops/3/status", json={"status": "attempted"})

    assert api_client.post("/api/route/save").json() == {"has_saved_route": True}
    assert (tmp_path / "saved_route.json").exists()
    api_client.delete("/api/route")

    loaded = api_client.post("/api/route/load")

    assert loaded.status_code == 200
    assert _numbers(loaded.json()) == [1, 3, 5]
    assert next(s for s in loaded.json()["stops"] if s["originalStopNumber"] == 3)["status"] == "attempted"

    api_client.delete("/api/route/saved")
    assert api_client.get("/api/route/saved").json() == {"has_saved_route": False}
    assert api_client.post("/api/route/load").status_code == 404


def test_corrupt_saved_route_is_cleared(api_client: TestClient, tmp_path: Path):
    (tmp_path / "saved_route.json").write_text("{broken", encoding="utf-8")

    response = api_client.post("/api/route/load")

    assert response.status_code == 500
    assert "corrupted" in response.json()["detail"]
    assert not (tmp_path / "saved_route.json").exists()


def test_share_link_round_trip(api_client: TestClient):
    _upload(api_client, b"shot-b")
    token = api_client.post("/api/route/share").json()["token"]
    api_client.delete("/api/route")

    opened = api_client.post("/api/route/shared", json={"token": token})

    assert opened.status_code == 200
    assert _numbers(opened.json()) == [2, 5]


def test_invalid_share_token(api_client: TestClient):
    token = base64.urlsafe_b64encode(b"not json").decode("ascii")

    response = api_client.post("/api/route/shared", json={"token": token})

    assert response.status_code == 400


def test_free_tier_limit(tmp_path: Path, provider: DummyProvider, monkeypatch: pytest.MonkeyPatch):
    from flexroute.config import settings

    monkeypatch.setattr(settings, "free_tier_route_limit", 1)
    app = create_app(data_root=tmp_path, start_scheduler=False)
    app.dependency_overrides[get_ai_provider] = lambda: provider
    client = TestClient(app)

    assert _upload(client, b"shot-a").status_code == 200
    assert client.get("/api/usage").json()["remaining"] == 0
    assert _upload(client, b"shot-a").status_code == 402

    client.put("/api/usage/tier", json={"tier": "Pro"})
    assert _upload(client, b"shot-a").status_code == 200


def test_weather_endpoint(api_client: TestClient):
    response = api_client.post("/api/conditions/weather", json={"lat": 43.07, "lon": -89.4})

    assert response.status_code == 200
    assert response.json() == {"temperature": "55°F", "condition": "Cloudy", "icon": "CLOUDY"}


def test_conditions_without_route(api_client: TestClient):
    assert api_client.get("/api/conditions/summary").json() is None
    assert api_client.get("/api/conditions/traffic").json() is None


def test_missing_provider_configuration_returns_503(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    from flexroute.api import dependencies

    def missing_provider():
        raise ProviderConfigurationError("API key is missing.")

    monkeypatch.setattr(dependencies, "get_provider", missing_provider)
    client = TestClient(create_app(data_root=tmp_path, start_scheduler=False))

    response = _upload(client, b"shot-a")

    assert response.status_code == 503
    assert client.get("/api/health/ai").json()["configured"] is False


def test_saved_empty_route_loads_as_empty(api_client: TestClient):
    _upload(api_client, b"shot-b")
    api_client.delete("/api/route/stops/2")
    api_client.delete("/api/route/stops/5")

    assert api_client.post("/api/route/save").json() == {"has_saved_route": True}
    loaded = api_client.post("/api/route/load")

    assert loaded.status_code == 200
    assert loaded.json()["stops"] == []
    assert api_client.get("/api/route/saved").json() == {"has_saved_route": True}
