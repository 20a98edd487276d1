from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta

from services.engine.app.availability import check_availability
from services.engine.app.pricing import price_room
from services.engine.app.room_status import compute_room_status, guests_for_room
from services.engine.app.schemas import DateRange, Guest, Reservation, Room, RoomType


@dataclass
class EvalResult:
    name: str
    passed: bool
    failures: list[str]


def check_recompute_idempotent(room: Room, guests: list[Guest]) -> list[str]:
    first = compute_room_status(room, guests)
    replay = room.model_copy(
        update={"status": first.status, "keep_open": first.keep_open, "assigned_guest_ids": first.assigned_guest_ids}
    )
    second = compute_room_status(replay, guests)
    if (first.status, first.keep_open) != (second.status, second.keep_open):
        return [f"recompute_not_idempotent room={room.id} first={first.status} second={second.status}"]
    return []


def check_empty_room(room: Room, guests: list[Guest]) -> list[str]:
    if room.operational_lock is not None or guests_for_room(room, guests):
        return []
    result = compute_room_status(room, guests)
    if result.status != "available" or result.keep_open:
        return [f"empty_room_expected=available actual={result.status} keep_open={result.keep_open} room={room.id}"]
    return []


def check_keep_open(room: Room, guests: list[Guest]) -> list[str]:
    if room.operational_lock is not None:
        return []
    live = guests_for_room(room, guests)
    want = bool(live) and all(g.keep_open for g in live)
    got = compute_room_status(room, guests).keep_open
    if got != want:
        return [f"keep_open_expected={want} actual={got} room={room.id}"]
    return []


def check_all_checked_out_cleaning(room: Room, guests: list[Guest]) -> list[str]:
    live = guests_for_room(room, guests)
    if room.operational_lock is not None or not live or any(g.status != "checked-out" for g in live):
        return []
    status = compute_room_status(room, guests).status
    if status != "cleaning":
        return [f"checked_out_expected=cleaning actual={status} room={room.id}"]
    return []


def check_full_checked_in_occupied(room: Room, guests: list[Guest]) -> list[str]:
    live = guests_for_room(room, guests)
    if room.operational_lock is not None or len(live) != room.capacity:
        return []
    if any(g.status != "checked-in" for g in live):
        return []
    status = compute_room_status(room, guests).status
    if status != "occupied":
        return [f"full_checked_in_expected=occupied actual={status} room={room.id}"]
    return []


def check_same_day_turnover(room: Room, reservation: Reservation, guests: list[Guest]) -> list[str]:
    """A stay starting on the reservation's check-out day must not conflict with it."""
    if room.id not in reservation.room_ids or reservation.status != "active" or room.operational_lock is not None:
        return []
    follow_on = DateRange(start=reservation.check_out_date, end=reservation.check_out_date + timedelta(days=3))
    result = check_availability(room, follow_on, [reservation], [])
    if reservation.check_out_date in result.unavailable_dates:
        return [f"same_day_turnover_conflict reservation={reservation.id}"]
    return []


def check_pricing_pure(room: Room, room_type: RoomType, date_range: DateRange, now: datetime) -> list[str]:
    a = price_room(room, room_type, date_range, now=now)
    b = price_room(room, room_type, date_range, now=now)
    if a != b:
        return [f"pricing_not_pure room={room.id}"]
    return []


def check_room_invariants(room: Room, guests: list[Guest]) -> list[str]:
    failures: list[str] = []
    failures += check_recompute_idempotent(room, guests)
    failures += check_empty_room(room, guests)
    failures += check_keep_open(room, guests)
    failures += check_all_checked_out_cleaning(room, guests)
    failures += check_full_checked_in_occupied(room, guests)
    return failures
