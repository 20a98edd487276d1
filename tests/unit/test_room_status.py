from __future__ import annotations

from datetime import date

import pytest


def test_empty_room_is_available_and_not_kept_open(make_room) -> None:
    from services.engine.app.room_status import recompute_room_status

    room = make_room(status="reserved", keep_open=True, assigned_guest_ids=["stale"])
    out = recompute_room_status(room, [])

    assert out.status == "available"
    assert out.keep_open is False
    assert out.assigned_guest_ids == []


def test_recompute_is_idempotent(make_room, make_guest) -> None:
    from services.engine.app.room_status import recompute_room_status

    room = make_room(capacity=3)
    guests = [make_guest(status="checked-in"), make_guest(status="booked", keep_open=True)]

    first = recompute_room_status(room, guests)
    status, keep_open = first.status, first.keep_open
    second = recompute_room_status(room, guests)

    assert (second.status, second.keep_open) == (status, keep_open)


def test_only_guests_of_this_room_count(make_room, make_guest) -> None:
    from services.engine.app.room_status import recompute_room_status

    room = make_room(room_id="r1")
    guests = [make_guest(room_id="r2", status="checked-in"), make_guest(room_id="r1", status="booked")]
    out = recompute_room_status(room, guests)

    assert out.status == "reserved"
    assert out.assigned_guest_ids == [guests[1].id]


@pytest.mark.parametrize("capacity", [1, 2, 4])
def test_all_checked_out_is_cleaning_regardless_of_capacity(make_room, make_guest, capacity: int) -> None:
    from services.engine.app.room_status import recompute_room_status

    room = make_room(capacity=capacity)
    guests = [make_guest(status="checked-out", keep_open=True), make_guest(status="checked-out")]

    assert recompute_room_status(room, guests).status == "cleaning"


def test_full_room_all_checked_in_is_occupied(make_room, make_guest) -> None:
    from services.engine.app.room_status import recompute_room_status

    room = make_room(capacity=2)
    guests = [make_guest(status="checked-in", keep_open=True), make_guest(status="checked-in", keep_open=True)]
    out = recompute_room_status(room, guests)

    assert out.status == "occupied"
    assert out.keep_open is True


def test_checked_in_with_spare_capacity_and_keep_open_is_partially_occupied(make_room, make_guest) -> None:
    from services.engine.app.room_status import recompute_room_status

    room = make_room(capacity=3)
    guests = [make_guest(status="checked-in", keep_open=True)]

    assert recompute_room_status(room, guests).status == "partially-occupied"


def test_checked_in_without_keep_open_locks_room(make_room, make_guest) -> None:
    from services.engine.app.room_status import recompute_room_status

    room = make_room(capacity=3)
    guests = [make_guest(status="checked-in", keep_open=True), make_guest(status="checked-in", keep_open=False)]
    out = recompute_room_status(room, guests)

    assert out.status == "occupied"
    assert out.keep_open is False


def test_checked_in_and_booked_is_partially_occupied(make_room, make_guest) -> None:
    from services.engine.app.room_status import recompute_room_status

    room = make_room(capacity=2)
    guests = [make_guest(status="checked-in"), make_guest(status="booked")]

    assert recompute_room_status(room, guests).status == "partially-occupied"


def test_single_booked_keep_open_guest_is_partially_reserved(make_room, make_guest) -> None:
    from services.engine.app.room_status import recompute_room_status

    room = make_room(capacity=2)
    out = recompute_room_status(room, [make_guest(status="booked", keep_open=True)])

    assert out.status == "partially-reserved"
    assert out.keep_open is True


def test_booked_full_room_is_reserved_even_with_keep_open(make_room, make_guest) -> None:
    from services.engine.app.room_status import recompute_room_status

    room = make_room(capacity=1)
    out = recompute_room_status(room, [make_guest(status="booked", keep_open=True)])

    assert out.status == "reserved"


def test_checked_out_and_booked_is_partially_deoccupied(make_room, make_guest) -> None:
    from services.engine.app.room_status import recompute_room_status

    room = make_room(capacity=2)
    guests = [make_guest(status="checked-out"), make_guest(status="booked")]

    assert recompute_room_status(room, guests).status == "partially-deoccupied"


def test_keep_open_requires_every_guest(make_room, make_guest) -> None:
    from services.engine.app.room_status import recompute_room_status

    room = make_room(capacity=4)
    guests = [make_guest(keep_open=True), make_guest(keep_open=True), make_guest(keep_open=False)]

    assert recompute_room_status(room, guests).keep_open is False
    guests[2].keep_open = True
    assert recompute_room_status(room, guests).keep_open is True


def test_operational_lock_overrides_guest_rules(make_room, make_guest) -> None:
    from services.engine.app.room_status import recompute_room_status
    from services.engine.app.schemas import Maintenance

    lock = Maintenance(start=date(2024, 3, 1), end=date(2024, 3, 3), reason="HVAC repair")
    room = make_room(keep_open=True, operational_lock=lock)
    guests = [make_guest(status="checked-in")]
    out = recompute_room_status(room, guests)

    assert out.status == "maintenance"
    # Lock leaves keep_open as stored but still resyncs the guest cache.
    assert out.keep_open is True
    assert out.assigned_guest_ids == [guests[0].id]


def test_compute_room_status_does_not_touch_room(make_room, make_guest) -> None:
    from services.engine.app.room_status import compute_room_status

    room = make_room()
    result = compute_room_status(room, [make_guest(status="checked-in")])

    assert result.status == "occupied"
    assert room.status == "available"
    assert room.assigned_guest_ids == []


def test_status_statistics_counts_every_status(make_room) -> None:
    from services.engine.app.room_status import status_statistics
    from services.engine.app.schemas import ROOM_STATUSES

    rooms = [make_room("a"), make_room("b", status="cleaning"), make_room("c", status="cleaning")]
    stats = status_statistics(rooms)

    assert set(stats) == set(ROOM_STATUSES) | {"total"}
    assert stats["cleaning"] == 2
    assert stats["available"] == 1
    assert stats["total"] == 3


def test_operational_issues_only_while_lock_covers_day(make_room) -> None:
    from services.engine.app.room_status import operational_issues
    from services.engine.app.schemas import Blocked

    room = make_room(operational_lock=Blocked(reason="VIP hold", since=date(2024, 5, 1), until=date(2024, 5, 4)))

    assert operational_issues(room, date(2024, 5, 3)) == ["Blocked: VIP hold", "Until: 2024-05-04"]
    assert operational_issues(room, date(2024, 5, 4)) == []
    assert operational_issues(make_room(), date(2024, 5, 3)) == []


def test_sort_rooms_by_status_priority_is_stable(make_room) -> None:
    from services.engine.app.room_status import sort_rooms_by_status_priority

    rooms = [
        make_room("a"),
        make_room("b", status="blocked"),
        make_room("c", status="occupied"),
        make_room("d", status="out-of-order"),
        make_room("e", status="maintenance"),
        make_room("f", status="cleaning"),
    ]

    assert [r.id for r in sort_rooms_by_status_priority(rooms)] == ["d", "b", "e", "c", "f", "a"]


def test_room_needs_attention(make_room, make_guest, fixed_now) -> None:
    from services.engine.app.room_status import room_needs_attention
    from services.engine.app.schemas import Maintenance

    overdue = make_guest(status="checked-in", reservation_start=date(2024, 6, 25), reservation_end=date(2024, 6, 30))
    staying = make_guest(status="checked-in", reservation_start=date(2024, 6, 28), reservation_end=date(2024, 7, 3))
    # Due out today: midnight of the end date has already passed.
    due_today = make_guest(status="checked-in", reservation_start=date(2024, 6, 28), reservation_end=date(2024, 7, 1))

    assert room_needs_attention(make_room(status="out-of-order"), now=fixed_now) is True
    assert room_needs_attention(make_room(status="occupied"), [overdue], now=fixed_now) is True
    assert room_needs_attention(make_room(status="occupied"), [due_today], now=fixed_now) is True
    assert room_needs_attention(make_room(status="occupied"), [staying], now=fixed_now) is False
    assert room_needs_attention(make_room(status="partially-occupied"), [overdue], now=fixed_now) is False
    assert room_needs_attention(make_room(status="cleaning"), now=fixed_now) is False

    # A lock that covers today flags the room even before its status is recomputed.
    painting = Maintenance(start=date(2024, 6, 30), end=date(2024, 7, 2), reason="Paint")
    assert room_needs_attention(make_room(operational_lock=painting), now=fixed_now) is True


def test_recommended_room_action(make_room, make_guest, fixed_now) -> None:
    from services.engine.app.room_status import recommended_room_action

    overdue = make_guest(status="checked-in", reservation_start=date(2024, 6, 25), reservation_end=date(2024, 6, 30))

    cleaning = recommended_room_action(make_room(status="cleaning"), now=fixed_now)
    assert (cleaning.action, cleaning.urgency) == ("mark-clean", "medium")
    assert recommended_room_action(make_room(status="maintenance"), now=fixed_now).action == "complete-maintenance"
    assert recommended_room_action(make_room(status="out-of-order"), now=fixed_now).action == "repair-room"
    assert recommended_room_action(make_room(status="blocked"), now=fixed_now).urgency == "medium"

    contact = recommended_room_action(make_room(status="occupied"), [overdue], now=fixed_now)
    assert contact.model_dump() == {
        "action": "contact-guest",
        "description": "Contact guest about overdue checkout",
        "urgency": "high",
    }
    assert recommended_room_action(make_room(status="occupied"), [], now=fixed_now) is None
    assert recommended_room_action(make_room(status="available"), now=fixed_now) is None
