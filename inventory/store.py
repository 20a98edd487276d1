from __future__ import annotations

import threading
from collections.abc import Iterable, Iterator
from contextlib import ExitStack, contextmanager
from datetime import date, datetime

from services.engine.app.availability import check_availability, search_rooms
from services.engine.app.helpers import resolve_now
from services.engine.app.logging import component_logger
from services.engine.app.pricing import calculate_pricing
from services.engine.app.room_status import derive_reservation_status, recompute_room_status, status_for_date
from services.engine.app.schemas import (
    CLOSED_RESERVATION_STATUSES,
    AvailabilityQuery,
    AvailabilityResult,
    AvailableRoom,
    DateRange,
    Guest,
    OperationalLock,
    Reservation,
    ReservationPricing,
    ReservationStatus,
    Room,
    RoomType,
    StatusSnapshot,
)


logger = component_logger("inventory")


class InventoryError(RuntimeError):
    pass


class UnknownEntityError(InventoryError, LookupError):
    def __init__(self, kind: str, entity_id: str) -> None:
        super().__init__(f"unknown {kind}: {entity_id}")
        self.kind = kind
        self.entity_id = entity_id


class InventoryStore:
    """
    Rooms, room types, guests and reservations keyed by id.

    Every write takes the owning room's lock, applies the change, then recomputes that room's
    status from the live guest list so the engine always sees a consistent snapshot.
    """

    def __init__(
        self,
        *,
        room_types: Iterable[RoomType] = (),
        rooms: Iterable[Room] = (),
        guests: Iterable[Guest] = (),
        reservations: Iterable[Reservation] = (),
    ) -> None:
        self._room_types: dict[str, RoomType] = {}
        self._rooms: dict[str, Room] = {}
        self._guests: dict[str, Guest] = {}
        self._reservations: dict[str, Reservation] = {}
        self._locks: dict[str, threading.RLock] = {}
        self._locks_guard = threading.Lock()

        for rt in room_types:
            self.add_room_type(rt)
        for room in rooms:
            self.add_room(room)
        for g in guests:
            self.add_guest(g)
        for r in reservations:
            self.add_reservation(r)

    # --- locking ---

    def _lock_for(self, room_id: str) -> threading.RLock:
        with self._locks_guard:
            lock = self._locks.get(room_id)
            if lock is None:
                lock = self._locks[room_id] = threading.RLock()
            return lock

    @contextmanager
    def _room_locks(self, *room_ids: str) -> Iterator[None]:
        # Sorted acquisition keeps two-room writes (moves) deadlock free.
        with ExitStack() as stack:
            for room_id in sorted(set(room_ids)):
                stack.enter_context(self._lock_for(room_id))
            yield

    @contextmanager
    def _guest_locks(self, guest_id: str, *room_ids: str) -> Iterator[Guest]:
        """
        Hold the lock of the guest's owning room (plus `room_ids`) and yield the guest.

        The owner is re-read once the locks are held; if a concurrent move got there first the
        locks are released and taken again for the new owner.
        """
        while True:
            g = self.guest(guest_id)
            owner = g.room_id
            with self._room_locks(owner, *room_ids):
                if self._guests.get(guest_id) is g and g.room_id == owner:
                    yield g
                    return

    # --- reads ---

    def room_type(self, room_type_id: str) -> RoomType:
        try:
            return self._room_types[room_type_id]
        except KeyError:
            raise UnknownEntityError("room_type", room_type_id) from None

    def room(self, room_id: str) -> Room:
        try:
            return self._rooms[room_id]
        except KeyError:
            raise UnknownEntityError("room", room_id) from None

    def guest(self, guest_id: str) -> Guest:
        try:
            return self._guests[guest_id]
        except KeyError:
            raise UnknownEntityError("guest", guest_id) from None

    def reservation(self, reservation_id: str) -> Reservation:
        try:
            return self._reservations[reservation_id]
        except KeyError:
            raise UnknownEntityError("reservation", reservation_id) from None

    def room_types(self) -> list[RoomType]:
        return list(self._room_types.values())

    def rooms(self, hotel_id: str | None = None) -> list[Room]:
        return [r for r in self._rooms.values() if hotel_id is None or r.hotel_id == hotel_id]

    def guests(self) -> list[Guest]:
        return list(self._guests.values())

    def reservations(self) -> list[Reservation]:
        return list(self._reservations.values())

    def guests_in(self, room_id: str) -> list[Guest]:
        return [g for g in self._guests.values() if g.room_id == room_id]

    # --- writes ---

    def _recompute(self, room_id: str) -> Room:
        room = self._rooms[room_id]
        return recompute_room_status(room, self.guests_in(room_id))

    def add_room_type(self, room_type: RoomType) -> RoomType:
        self._room_types[room_type.id] = room_type
        return room_type

    def add_room(self, room: Room) -> Room:
        with self._room_locks(room.id):
            self._rooms[room.id] = room
            return self._recompute(room.id)

    def add_guest(self, guest: Guest) -> Guest:
        if guest.room_id not in self._rooms:
            raise InventoryError(f"guest {guest.id} references unknown room {guest.room_id}")
        with self._room_locks(guest.room_id):
            self._guests[guest.id] = guest
            self._recompute(guest.room_id)
        return guest

    def move_guest(self, guest_id: str, room_id: str) -> Guest:
        self.room(room_id)
        with self._guest_locks(guest_id, room_id) as g:
            previous = g.room_id
            g.room_id = room_id
            self._recompute(previous)
            self._recompute(room_id)
        logger.info("guest_moved", guest_id=guest_id, from_room=previous, to_room=room_id)
        return g

    def check_in(self, guest_id: str, *, at: datetime | None = None) -> Guest:
        with self._guest_locks(guest_id) as g:
            g.status = "checked-in"
            g.check_in = resolve_now(at)
            self._recompute(g.room_id)
        return g

    def check_out(self, guest_id: str, *, at: datetime | None = None) -> Guest:
        with self._guest_locks(guest_id) as g:
            g.status = "checked-out"
            g.check_out = resolve_now(at)
            self._recompute(g.room_id)
        self._refresh_reservations_of(guest_id)
        return g

    def set_keep_open(self, guest_id: str, keep_open: bool) -> Guest:
        with self._guest_locks(guest_id) as g:
            g.keep_open = keep_open
            self._recompute(g.room_id)
        return g

    def remove_guest(self, guest_id: str) -> None:
        with self._guest_locks(guest_id) as g:
            del self._guests[guest_id]
            self._recompute(g.room_id)

    def set_lock(self, room_id: str, lock: OperationalLock | None) -> Room:
        room = self.room(room_id)
        with self._room_locks(room_id):
            room.operational_lock = lock
            return self._recompute(room_id)

    def clear_lock(self, room_id: str) -> Room:
        return self.set_lock(room_id, None)

    def add_reservation(self, reservation: Reservation) -> Reservation:
        missing = [rid for rid in reservation.room_ids if rid not in self._rooms]
        if missing:
            raise InventoryError(f"reservation {reservation.id} references unknown rooms {missing}")
        self._reservations[reservation.id] = reservation
        reservation.status = derive_reservation_status(reservation, self.guests())
        return reservation

    def _refresh_reservations_of(self, guest_id: str) -> None:
        guests = self.guests()
        for r in self._reservations.values():
            if guest_id not in r.guest_ids:
                continue
            status = derive_reservation_status(r, guests)
            if status != r.status:
                logger.info("reservation_status_changed", reservation_id=r.id, previous=r.status, status=status)
                r.status = status

    def close_reservation(self, reservation_id: str, status: ReservationStatus) -> Reservation:
        """
        Finish a reservation and release its rooms.

        The reservation's guests are removed from their rooms and every affected room is
        recomputed, so a room left in `cleaning` goes back to `available`.
        """
        if status not in CLOSED_RESERVATION_STATUSES and status != "completed":
            raise InventoryError(f"cannot close reservation {reservation_id} as {status!r}")
        r = self.reservation(reservation_id)
        while True:
            room_ids = set(r.room_ids) | {self._guests[gid].room_id for gid in r.guest_ids if gid in self._guests}
            with self._room_locks(*room_ids):
                released = [self._guests[gid] for gid in r.guest_ids if gid in self._guests]
                # A guest moved out of the locked set meanwhile; lock again.
                if any(g.room_id not in room_ids for g in released):
                    continue
                for g in released:
                    del self._guests[g.id]
                r.status = status
                for room_id in sorted(room_ids):
                    self._recompute(room_id)
            break

        logger.info(
            "reservation_closed",
            reservation_id=reservation_id,
            status=status,
            guests_released=len(released),
            rooms=sorted(room_ids),
        )
        return r

    # --- engine views ---

    def status_on(self, room_id: str, day: date) -> StatusSnapshot:
        return status_for_date(self.room(room_id), day, self.reservations(), self.guests_in(room_id))

    def availability(self, room_id: str, date_range: DateRange) -> AvailabilityResult:
        return check_availability(self.room(room_id), date_range, self.reservations(), self.guests())

    def search(self, query: AvailabilityQuery, *, now: datetime | None = None) -> list[AvailableRoom]:
        return search_rooms(
            query,
            self.rooms(query.hotel_id),
            self.room_types(),
            self.reservations(),
            self.guests(),
            now=now,
        )

    def price(
        self, room_ids: Iterable[str], date_range: DateRange, *, now: datetime | None = None
    ) -> ReservationPricing:
        return calculate_pricing([self.room(rid) for rid in room_ids], self.room_types(), date_range, now=now)
