from __future__ import annotations

from collections.abc import Iterable, Sequence
from datetime import date, datetime

from services.engine.app.helpers import as_date, each_night, overlaps
from services.engine.app.locks import describe_lock, lock_overlaps
from services.engine.app.logging import component_logger
from services.engine.app.pricing import nightly_rate, price_room
from services.engine.app.recommend import score_room
from services.engine.app.room_status import guests_for_room
from services.engine.app.schemas import (
    AvailabilityQuery,
    AvailabilityResult,
    AvailableRoom,
    DateRange,
    Guest,
    Reservation,
    Room,
    RoomType,
)


logger = component_logger("availability")

OCCUPIED_BY_GUESTS = "Currently occupied by guests"


def _conflict_nights(start: date, end: date, date_range: DateRange) -> list[date]:
    """Nights of `[start, end)` that fall inside the requested stay."""
    lo = max(start, date_range.start)
    hi = min(end, date_range.end)
    if hi <= lo:
        return []
    return each_night(lo, hi)


def _reservation_reason(reservation: Reservation, guests_by_id: dict[str, Guest]) -> str:
    for gid in reservation.guest_ids:
        g = guests_by_id.get(gid)
        if g is not None and g.name:
            return f"Reserved by {g.name} ({reservation.id})"
    return f"Reserved ({reservation.id})"


def find_conflicting_reservations(
    room: Room, date_range: DateRange, reservations: Iterable[Reservation]
) -> list[Reservation]:
    return [
        r
        for r in reservations
        if r.status == "active"
        and room.id in r.room_ids
        and overlaps(r.check_in_date, r.check_out_date, date_range.start, date_range.end)
    ]


def check_availability(
    room: Room,
    date_range: DateRange,
    reservations: Iterable[Reservation],
    guests: Iterable[Guest],
) -> AvailabilityResult:
    """
    Decide whether `room` is free for every night of `date_range`.

    Conflicts use half-open windows, so a departure on day N never blocks an arrival on day N.
    An operational lock overlapping the stay blocks every night and short-circuits the rest.
    """
    lock = room.operational_lock
    if lock is not None and lock_overlaps(lock, date_range):
        result = AvailabilityResult(
            room_id=room.id,
            is_available=False,
            unavailable_dates=each_night(date_range.start, date_range.end),
            reasons=describe_lock(lock)[:1],
        )
        logger.debug("availability_checked", room_id=room.id, available=False, locked=True)
        return result

    guests = list(guests)
    guests_by_id = {g.id: g for g in guests}
    unavailable: set[date] = set()
    reasons: list[str] = []

    for r in find_conflicting_reservations(room, date_range, reservations):
        nights = _conflict_nights(r.check_in_date, r.check_out_date, date_range)
        if nights:
            unavailable.update(nights)
            reasons.append(_reservation_reason(r, guests_by_id))

    occupied: list[date] = []
    for g in guests_for_room(room, guests):
        if g.status != "checked-in" or g.check_in is None:
            continue
        occupied += _conflict_nights(as_date(g.check_in), g.reservation_end, date_range)
    if occupied:
        unavailable.update(occupied)
        reasons.append(OCCUPIED_BY_GUESTS)

    result = AvailabilityResult(
        room_id=room.id,
        is_available=not unavailable,
        unavailable_dates=sorted(unavailable),
        reasons=list(dict.fromkeys(reasons)),
    )
    logger.debug(
        "availability_checked",
        room_id=room.id,
        available=result.is_available,
        conflicting_nights=len(result.unavailable_dates),
    )
    return result


def search_rooms(
    query: AvailabilityQuery,
    rooms: Sequence[Room],
    room_types: Sequence[RoomType],
    reservations: Sequence[Reservation],
    guests: Sequence[Guest],
    *,
    now: datetime | None = None,
) -> list[AvailableRoom]:
    """
    Availability, per-room price and recommendation score for every room of a hotel.

    Rooms without a matching room type are left out. Available rooms come first, then the
    higher score; otherwise the input order is kept.
    """
    types_by_id = {rt.id: rt for rt in room_types}
    date_range = query.date_range
    prefs = query.preferences
    out: list[AvailableRoom] = []

    for room in rooms:
        if room.hotel_id != query.hotel_id:
            continue
        room_type = types_by_id.get(room.room_type_id)
        if room_type is None:
            logger.debug("room_skipped_missing_type", room_id=room.id, room_type_id=room.room_type_id)
            continue
        if prefs and prefs.max_price is not None and nightly_rate(room, room_type) > prefs.max_price:
            continue

        availability = check_availability(room, date_range, reservations, guests)
        out.append(
            AvailableRoom(
                room=room,
                room_type=room_type,
                is_available=availability.is_available,
                unavailable_dates=availability.unavailable_dates,
                reasons_unavailable=availability.reasons,
                pricing=price_room(room, room_type, date_range, now=now),
                recommendation_score=score_room(room, room_type, query.total_guests, prefs),
            )
        )

    out.sort(key=lambda a: (not a.is_available, -a.recommendation_score))
    logger.info(
        "rooms_searched",
        hotel_id=query.hotel_id,
        rooms=len(out),
        available=sum(1 for a in out if a.is_available),
    )
    return out
