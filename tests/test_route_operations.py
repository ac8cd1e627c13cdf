from collections import Counter
from datetime import datetime, timezone

import pytest

from flexroute.models.domain import (
    GeoPoint,
    PackageType,
    Route,
    SetDeliveryWindowEnd,
    SetLabel,
    SetPackageType,
    SetPriority,
    Stop,
    StopKind,
    StopStatus,
)
from flexroute.services.errors import OptimizationFailure
from flexroute.services.route import operations
from flexroute.services.route.operations import MoveDirection


def _stop(number: int, status: StopStatus = StopStatus.PENDING, **overrides) -> Stop:
    return Stop(
        original_stop_number=number,
        street=f"{number} Pine St",
        city="Portland",
        state="OR",
        zip_code="97201",
        status=status,
        **overrides,
    )


def _route(*numbers: int) -> Route:
    return operations.set_route([_stop(number) for number in numbers])


def _location() -> Stop:
    return operations.build_location_stop(GeoPoint(lat=45.52, lon=-122.68))


def _ids(route: Route) -> list[int]:
    return [stop.original_stop_number for stop in route.deliveries]


def _current_ids(route: Route) -> list[int]:
    return [stop.original_stop_number for stop in route.stops if stop.is_current_stop]


def _assert_current_stop_invariant(route: Route) -> None:
    expected = next((stop for stop in route.stops if stop.is_delivery and stop.is_pending), None)
    flagged = [stop for stop in route.stops if stop.is_current_stop]
    if expected is None:
        assert flagged == []
    else:
        assert flagged == [expected]


def test_set_route_none_clears():
    assert operations.set_route(None) is None


def test_set_route_flags_first_pending_delivery():
    route = operations.set_route([_stop(1, StopStatus.DELIVERED), _stop(2), _stop(3)])

    assert _current_ids(route) == [2]


def test_set_route_moves_location_to_head_and_drops_extra_locations():
    stops = [_stop(1), _location(), _stop(2), _location()]

    route = operations.set_route(stops)

    assert route.stops[0].kind is StopKind.LOCATION
    assert len([stop for stop in route.stops if not stop.is_delivery]) == 1
    assert _ids(route) == [1, 2]


def test_set_route_keeps_first_of_repeated_stop_numbers():
    route = operations.set_route([_stop(1, label="first"), _stop(1, label="second"), _stop(2)])

    assert _ids(route) == [1, 2]
    assert route.find(1).label == "first"


def test_location_stop_is_never_current():
    route = operations.set_route([_location(), _stop(1)])

    assert route.location.status is StopStatus.DELIVERED
    assert route.location.is_current_stop is False
    assert _current_ids(route) == [1]


def test_update_stop_changes_one_field_only():
    route = _route(1, 2, 3)

    updated = operations.update_stop(route, 2, SetLabel("Gate code 1234"))

    assert updated.find(2).label == "Gate code 1234"
    assert _ids(updated) == [1, 2, 3]
    assert _current_ids(updated) == [1]
    assert route.find(2).label == ""


def test_update_stop_edit_variants():
    route = _route(1)

    route = operations.update_stop(route, 1, SetPackageType(PackageType.ENVELOPE))
    route = operations.update_stop(route, 1, SetDeliveryWindowEnd("14:30"))
    route = operations.update_stop(route, 1, SetPriority(True))

    stop = route.find(1)
    assert stop.package_type is PackageType.ENVELOPE
    assert stop.delivery_window_end == "14:30"
    assert stop.is_priority is True


def test_update_unknown_stop_is_a_no_op():
    route = _route(1, 2)

    assert operations.update_stop(route, 99, SetLabel("x")) is route


def test_mark_current_delivered_moves_current_flag():
    route = _route(1, 2)
    moment = datetime(2024, 5, 1, 15, 30, tzinfo=timezone.utc)

    updated = operations.set_status(route, 1, StopStatus.DELIVERED, at=moment)

    first = updated.find(1)
    assert first.status is StopStatus.DELIVERED
    assert first.is_current_stop is False
    assert first.completed_at == moment
    assert _current_ids(updated) == [2]


def test_set_status_defaults_completion_time_to_now():
    updated = operations.set_status(_route(1), 1, StopStatus.SKIPPED)

    assert updated.find(1).completed_at is not None
    assert _current_ids(updated) == []


def test_returning_to_pending_clears_completion_time():
    route = operations.set_status(_route(1, 2), 1, StopStatus.ATTEMPTED)

    reverted = operations.set_status(route, 1, StopStatus.PENDING)

    assert reverted.find(1).status is StopStatus.PENDING
    assert reverted.find(1).completed_at is None
    assert _current_ids(reverted) == [1]


def test_set_status_unknown_stop_is_a_no_op():
    route = _route(1)

    assert operations.set_status(route, 42, StopStatus.DELIVERED) is route


def test_delete_current_stop_promotes_next():
    updated = operations.delete_stop(_route(1, 2), 1)

    assert _ids(updated) == [2]
    assert _current_ids(updated) == [2]


def test_delete_never_removes_location_stop():
    route = operations.set_route([_location(), _stop(1)])

    updated = operations.delete_stop(route, 0)

    assert updated is route
    assert updated.location is not None


def test_reorder_changes_current_stop():
    route = _route(1, 2, 3)

    updated = operations.reorder(route, 2, 0)

    assert _ids(updated) == [3, 1, 2]
    assert _current_ids(updated) == [3]


@pytest.mark.parametrize("from_index,to_index", [(-1, 0), (0, 3), (5, 1), (1, 1)])
def test_reorder_out_of_range_is_a_no_op(from_index, to_index):
    route = _route(1, 2, 3)

    assert operations.reorder(route, from_index, to_index) is route


def test_reorder_indices_skip_location_stop():
    route = operations.set_route([_location(), _stop(1), _stop(2), _stop(3)])

    updated = operations.reorder(route, 0, 2)

    assert updated.stops[0].kind is StopKind.LOCATION
    assert _ids(updated) == [2, 3, 1]


def test_move_up_and_down():
    route = _route(1, 2, 3)

    assert _ids(operations.move(route, 2, MoveDirection.UP)) == [2, 1, 3]
    assert _ids(operations.move(route, 2, MoveDirection.DOWN)) == [1, 3, 2]


def test_move_at_boundary_or_unknown_is_a_no_op():
    route = _route(1, 2, 3)

    assert operations.move(route, 1, MoveDirection.UP) is route
    assert operations.move(route, 3, MoveDirection.DOWN) is route
    assert operations.move(route, 9, MoveDirection.UP) is route


def test_reset_to_original_order_keeps_edits_and_statuses():
    route = _route(1, 2, 3)
    route = operations.reorder(route, 0, 2)
    route = operations.update_stop(route, 3, SetLabel("Back door"))
    route = operations.set_status(route, 2, StopStatus.DELIVERED)

    reset = operations.reset_to_original_order(route)

    assert _ids(reset) == [1, 2, 3]
    assert reset.find(3).label == "Back door"
    assert reset.find(2).status is StopStatus.DELIVERED
    assert _current_ids(reset) == [1]


def test_apply_optimized_order_with_start_location():
    route = _route(1, 2, 3)
    route = operations.update_stop(route, 2, SetLabel("Leave at desk"))
    ordered = [_stop(3), _stop(1), _stop(2)]

    updated = operations.apply_optimized_order(route, ordered, GeoPoint(lat=45.5, lon=-122.6))

    head = updated.stops[0]
    assert head.kind is StopKind.LOCATION
    assert head.street == "Your Current Location"
    assert head.city == "Start of route"
    assert (head.latitude, head.longitude) == (45.5, -122.6)
    assert _ids(updated) == [3, 1, 2]
    assert updated.find(2).label == "Leave at desk"
    assert _current_ids(updated) == [3]


def test_apply_optimized_order_without_location_drops_previous_location():
    route = operations.set_route([_location(), _stop(1), _stop(2)])

    updated = operations.apply_optimized_order(route, [_stop(2), _stop(1)])

    assert updated.location is None
    assert _ids(updated) == [2, 1]


def test_apply_optimized_order_ignores_unknown_and_appends_omitted():
    route = _route(1, 2, 3, 4)

    updated = operations.apply_optimized_order(route, [_stop(4), _stop(77), _stop(2)])

    assert _ids(updated) == [4, 2, 1, 3]


def test_validate_permutation_accepts_same_ids():
    current = [_stop(1), _stop(2), _stop(3)]

    operations.validate_permutation(current, [_stop(3), _stop(1), _stop(2)])


@pytest.mark.parametrize(
    "proposed",
    [
        [1, 2],
        [1, 2, 3, 4],
        [1, 2, 2],
    ],
)
def test_validate_permutation_rejects_mismatch(proposed):
    current = [_stop(1), _stop(2), _stop(3)]

    with pytest.raises(OptimizationFailure) as excinfo:
        operations.validate_permutation(current, [_stop(number) for number in proposed])

    assert "left unchanged" in excinfo.value.message


def test_validate_permutation_ignores_location_stop_in_current():
    current = [_location(), _stop(1), _stop(2)]

    operations.validate_permutation(current, [_stop(2), _stop(1)])


def test_invariants_hold_across_mutation_sequence():
    route = operations.set_route([_location()] + [_stop(number) for number in range(1, 7)])
    initial = Counter(_ids(route))
    steps = [
        lambda r: operations.reorder(r, 5, 0),
        lambda r: operations.set_status(r, 6, StopStatus.DELIVERED),
        lambda r: operations.move(r, 3, MoveDirection.UP),
        lambda r: operations.set_status(r, 1, StopStatus.SKIPPED),
        lambda r: operations.reset_to_original_order(r),
        lambda r: operations.apply_optimized_order(r, [_stop(n) for n in (5, 4, 3, 2, 1, 6)], GeoPoint(1.0, 2.0)),
        lambda r: operations.reorder(r, 0, 4),
    ]

    for step in steps:
        route = step(route)
        assert route.stops[0].kind is StopKind.LOCATION
        assert Counter(_ids(route)) == initial
        _assert_current_stop_invariant(route)

    route = operations.delete_stop(route, 4)
    assert Counter(_ids(route)) == initial - Counter([4])
    _assert_current_stop_invariant(route)


def test_set_route_drops_delivery_using_location_number():
    route = operations.set_route([_location(), _stop(0), _stop(1)])

    assert [stop.original_stop_number for stop in route.stops] == [0, 1]
    assert route.stops[0].kind is StopKind.LOCATION
    assert _ids(route) == [1]
