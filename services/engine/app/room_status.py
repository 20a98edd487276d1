"""
Occupancy status rules.

A room's status is derived from the lifecycle states of the guests assigned to it. The rule
table is priority ordered; the first matching row wins:

    all checked-out                           -> cleaning
    some checked-out, some booked/checked-in  -> partially-deoccupied
    some checked-out, nobody else             -> deoccupied
    all checked-in                            -> occupied | partially-occupied
    checked-in + booked                       -> partially-occupied
    all booked                                -> reserved | partially-reserved
    otherwise                                 -> available

A full room, or any guest who did not ask to keep the room open, locks it into the
non-partial variant. An operational lock overrides the table entirely.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from datetime import date, datetime, time

from services.engine.app.helpers import resolve_now, within_inclusive
from services.engine.app.locks import describe_lock, lock_covers, lock_status
from services.engine.app.logging import component_logger
from services.engine.app.schemas import (
    CLOSED_RESERVATION_STATUSES,
    ROOM_STATUSES,
    ActivityVerdict,
    Guest,
    Reservation,
    ReservationStatus,
    Room,
    RoomAction,
    RoomStatus,
    RoomStatusResult,
    StatusSnapshot,
)


logger = component_logger("room_status")

# Reservations that occupied (or will occupy) their dates, as seen by the calendar view.
_CALENDAR_RESERVATION_STATUSES = frozenset({"active", "completed"})

_INACTIVE_ROOM_STATUSES = frozenset({"cleaning", "deoccupied", "partially-deoccupied", "maintenance"})

# Higher sorts first on the front-desk board.
STATUS_PRIORITY: dict[str, int] = {
    "out-of-order": 11,
    "maintenance": 10,
    "blocked": 10,
    "partially-deoccupied": 9,
    "occupied": 8,
    "partially-occupied": 7,
    "reserved": 6,
    "partially-reserved": 5,
    "deoccupied": 4,
    "cleaning": 3,
    "available": 1,
}

_URGENT_STATUSES = frozenset({"maintenance", "out-of-order", "blocked"})

_STATUS_ACTIONS: dict[str, RoomAction] = {
    "cleaning": RoomAction(action="mark-clean", description="Mark room as clean when ready", urgency="medium"),
    "maintenance": RoomAction(
        action="complete-maintenance", description="Complete scheduled maintenance", urgency="high"
    ),
    "out-of-order": RoomAction(
        action="repair-room", description="Repair and restore room to service", urgency="high"
    ),
    "blocked": RoomAction(
        action="review-block", description="Review reason for block and unblock if appropriate", urgency="medium"
    ),
}


@dataclass(frozen=True)
class _Partition:
    booked: tuple[Guest, ...]
    checked_in: tuple[Guest, ...]
    checked_out: tuple[Guest, ...]

    @classmethod
    def of(cls, guests: Sequence[Guest]) -> _Partition:
        return cls(
            booked=tuple(g for g in guests if g.status == "booked"),
            checked_in=tuple(g for g in guests if g.status == "checked-in"),
            checked_out=tuple(g for g in guests if g.status == "checked-out"),
        )


def derive_status(guests: Sequence[Guest], capacity: int) -> tuple[RoomStatus, bool]:
    """Apply the status rule table to a guest set. Returns `(status, keep_open)`."""
    if not guests:
        return "available", False

    keep_open = all(g.keep_open for g in guests)
    p = _Partition.of(guests)
    total = len(guests)
    full = total >= capacity

    if len(p.checked_out) == total:
        return "cleaning", keep_open
    if p.checked_out and (p.checked_in or p.booked):
        return "partially-deoccupied", keep_open
    if p.checked_out:
        return "deoccupied", keep_open
    if len(p.checked_in) == total:
        if full or any(not g.keep_open for g in p.checked_in):
            return "occupied", keep_open
        return "partially-occupied", keep_open
    if p.checked_in and p.booked:
        return "partially-occupied", keep_open
    if len(p.booked) == total:
        if full or any(not g.keep_open for g in p.booked):
            return "reserved", keep_open
        return "partially-reserved", keep_open
    return "available", keep_open


def guests_for_room(room: Room, guests: Iterable[Guest]) -> list[Guest]:
    return [g for g in guests if g.room_id == room.id]


def compute_room_status(room: Room, guests: Iterable[Guest]) -> RoomStatusResult:
    """Pure form of `recompute_room_status`: nothing on `room` is touched."""
    live = guests_for_room(room, guests)
    assigned = [g.id for g in live]
    if room.operational_lock is not None:
        return RoomStatusResult(
            status=lock_status(room.operational_lock),
            keep_open=room.keep_open,
            assigned_guest_ids=assigned,
        )
    status, keep_open = derive_status(live, room.capacity)
    return RoomStatusResult(status=status, keep_open=keep_open, assigned_guest_ids=assigned)


def recompute_room_status(room: Room, guests: Iterable[Guest]) -> Room:
    """
    Resynchronize a room's derived fields from the live guest query and return it.

    `guests` may be the whole guest list; only guests whose `room_id` references this room
    count. The caller must serialize writes per room and call this after every guest or
    room mutation that can change the outcome.
    """
    result = compute_room_status(room, guests)
    previous = room.status
    room.assigned_guest_ids = result.assigned_guest_ids
    room.status = result.status
    room.keep_open = result.keep_open

    if previous != result.status:
        logger.info(
            "room_status_recomputed",
            room_id=room.id,
            previous=previous,
            status=result.status,
            keep_open=result.keep_open,
            guests=len(result.assigned_guest_ids),
            locked=room.operational_lock is not None,
        )
    else:
        logger.debug("room_status_unchanged", room_id=room.id, status=result.status)
    return room


def status_for_date(
    room: Room,
    day: date,
    reservations: Iterable[Reservation],
    guests: Iterable[Guest],
) -> StatusSnapshot:
    """
    The status the room shows on `day`, computed from reservation and guest windows.

    Windows are inclusive on both ends here: a guest is still on the room's calendar on their
    checkout day. (Availability uses half-open windows instead; see availability.py.)
    """
    reservations_on_date = [
        r
        for r in reservations
        if room.id in r.room_ids
        and r.status in _CALENDAR_RESERVATION_STATUSES
        and within_inclusive(r.check_in_date, r.check_out_date, day)
    ]
    reserved_guest_ids = {gid for r in reservations_on_date for gid in r.guest_ids}

    on_date: dict[str, Guest] = {}
    for g in guests_for_room(room, guests):
        if within_inclusive(g.reservation_start, g.reservation_end, day) or g.id in reserved_guest_ids:
            on_date.setdefault(g.id, g)
    guests_on_date = list(on_date.values())

    lock = room.operational_lock
    if lock is not None and lock_covers(lock, day):
        status: RoomStatus = lock_status(lock)
        keep_open = False
    else:
        status, keep_open = derive_status(guests_on_date, room.capacity)

    return StatusSnapshot(
        room_id=room.id,
        day=day,
        status=status,
        keep_open=keep_open,
        guests_on_date=[g.id for g in guests_on_date],
        reservations_on_date=[r.id for r in reservations_on_date],
    )


def derive_reservation_status(reservation: Reservation, guests: Iterable[Guest]) -> ReservationStatus:
    """`completed` once every guest has checked out; closed reservations never reopen."""
    if reservation.status in CLOSED_RESERVATION_STATUSES:
        return reservation.status
    members = [g for g in guests if g.id in set(reservation.guest_ids)]
    if not members:
        return reservation.status
    if all(g.status == "checked-out" for g in members):
        return "completed"
    return "active"


def is_reservation_active(room: Room, guests: Iterable[Guest]) -> ActivityVerdict:
    live = guests_for_room(room, guests)
    if not live:
        return ActivityVerdict(is_active=False, reason="No guests assigned")
    if all(g.status == "checked-out" for g in live):
        return ActivityVerdict(is_active=False, reason="All guests have checked out")
    if room.status in _INACTIVE_ROOM_STATUSES:
        if room.status == "maintenance":
            return ActivityVerdict(is_active=False, reason="Room is under maintenance")
        return ActivityVerdict(is_active=False, reason=f"Room is {room.status.replace('-', ' ')}")
    if any(g.status == "checked-out" for g in live):
        return ActivityVerdict(is_active=True, reason="Some guests remain (partially deoccupied)")
    return ActivityVerdict(is_active=True, reason="Guests are booked or checked in")


def status_statistics(rooms: Iterable[Room]) -> dict[str, int]:
    stats = {s: 0 for s in ROOM_STATUSES}
    total = 0
    for room in rooms:
        stats[room.status] += 1
        total += 1
    stats["total"] = total
    return stats


def operational_issues(room: Room, on: date) -> list[str]:
    lock = room.operational_lock
    if lock is None or not lock_covers(lock, on):
        return []
    return describe_lock(lock)


def sort_rooms_by_status_priority(rooms: Iterable[Room]) -> list[Room]:
    """Most urgent status first; rooms sharing a priority keep their input order."""
    return sorted(rooms, key=lambda r: -STATUS_PRIORITY[r.status])


def overdue_guests(room: Room, guests: Iterable[Guest], *, now: datetime | None = None) -> list[Guest]:
    """Checked-in guests whose stay ended before `now` (the end date counts from midnight)."""
    now = resolve_now(now)
    return [
        g
        for g in guests_for_room(room, guests)
        if g.status == "checked-in" and datetime.combine(g.reservation_end, time(), tzinfo=now.tzinfo) < now
    ]


def room_needs_attention(room: Room, guests: Iterable[Guest] = (), *, now: datetime | None = None) -> bool:
    now = resolve_now(now)
    if room.status in _URGENT_STATUSES:
        return True
    if room.status == "occupied" and overdue_guests(room, guests, now=now):
        return True
    return bool(operational_issues(room, now.date()))


def recommended_room_action(
    room: Room, guests: Iterable[Guest] = (), *, now: datetime | None = None
) -> RoomAction | None:
    """Next front-desk step for a room, or None when nothing is pending."""
    action = _STATUS_ACTIONS.get(room.status)
    if action is not None:
        return action.model_copy()
    if room.status == "occupied" and overdue_guests(room, guests, now=now):
        return RoomAction(action="contact-guest", description="Contact guest about overdue checkout", urgency="high")
    return None
