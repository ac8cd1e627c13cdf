import json
from datetime import datetime, timezone
from pathlib import Path

import pytest

from flexroute.models.domain import GeoPoint, PackageType, Route, Stop, StopStatus, StopType
from flexroute.persistence.filesystem import FileStorage, RouteStore
from flexroute.services.errors import PersistenceFailure
from flexroute.services.route import operations


def _route():
    stops = [
        operations.build_location_stop(GeoPoint(lat=47.61, lon=-122.33)),
        Stop(
            original_stop_number=1,
            street="500 Pike St",
            city="Seattle",
            state="WA",
            zip_code="98101",
            label="Buzz 402",
            package_type=PackageType.PLASTIC_BAG,
            stop_type=StopType.APARTMENT,
            tba="TBA123456789",
            package_label="A.1Z",
            delivery_window_end="16:00",
            is_priority=True,
            status=StopStatus.DELIVERED,
            completed_at=datetime(2024, 6, 1, 18, 5, tzinfo=timezone.utc),
        ),
        Stop(original_stop_number=2, street="1 Union St", city="Seattle", state="WA", zip_code="98101"),
    ]
    return operations.set_route(stops)


def test_file_storage_writes_json(tmp_path: Path) -> None:
    storage = FileStorage(root=tmp_path)
    path = storage.path("nested/summary.json")

    storage.write_json(path, {"hello": "world"})

    assert path.read_text(encoding="utf-8") == '{\n  "hello": "world"\n}'
    assert storage.read_json(path) == {"hello": "world"}


def test_route_store_round_trips_every_field(tmp_path: Path) -> None:
    store = RouteStore(FileStorage(root=tmp_path))
    route = _route()

    store.save(route)
    loaded = store.load()

    assert store.exists()
    assert loaded == route


def test_saved_snapshot_uses_camel_case_keys(tmp_path: Path) -> None:
    store = RouteStore(FileStorage(root=tmp_path))
    store.save(_route())

    data = json.loads(store.snapshot_path.read_text(encoding="utf-8"))

    assert data[0]["type"] == "location"
    assert data[1]["originalStopNumber"] == 1
    assert data[1]["zip"] == "98101"
    assert data[1]["packageType"] == "Plastic Bag"
    assert data[1]["isCurrentStop"] is False
    assert "latitude" not in data[1]


def test_load_without_snapshot_returns_none(tmp_path: Path) -> None:
    store = RouteStore(FileStorage(root=tmp_path))

    assert store.load() is None


def test_empty_route_round_trips(tmp_path: Path) -> None:
    store = RouteStore(FileStorage(root=tmp_path))
    store.save(Route())

    assert store.load() == Route(stops=())
    assert store.exists()


@pytest.mark.parametrize("content", ["{not json", '{"stops": []}', '[{"street": "missing number"}]'])
def test_corrupt_snapshot_is_cleared(tmp_path: Path, content: str) -> None:
    store = RouteStore(FileStorage(root=tmp_path))
    store.snapshot_path.parent.mkdir(parents=True, exist_ok=True)
    store.snapshot_path.write_text(content, encoding="utf-8")

    with pytest.raises(PersistenceFailure) as excinfo:
        store.load()

    assert "corrupted" in excinfo.value.message
    assert not store.exists()


def test_clear_removes_snapshot(tmp_path: Path) -> None:
    store = RouteStore(FileStorage(root=tmp_path))
    store.save(_route())

    store.clear()
    store.clear()

    assert not store.exists()
