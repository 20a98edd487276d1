from __future__ import annotations

import argparse
import hashlib
import json
import random
from dataclasses import dataclass
from datetime import UTC, date, datetime, time, timedelta

from inventory.store import InventoryStore
from services.engine.app.logging import configure_logging
from services.engine.app.room_status import status_statistics
from services.engine.app.schemas import (
    Blocked,
    Guest,
    GuestStatus,
    Maintenance,
    OutOfOrder,
    Reservation,
    Room,
    RoomType,
)
from services.engine.app.settings import SETTINGS


def _det_id(prefix: str, *parts: object) -> str:
    h = hashlib.sha256("||".join(str(p) for p in parts).encode("utf-8")).hexdigest()
    return f"{prefix}_{h[:12]}"


@dataclass(frozen=True)
class RoomTypeSpec:
    name: str
    base_rate: float
    capacity: int
    # Relative share of the room count.
    weight: float


ROOM_TYPE_SPECS: list[RoomTypeSpec] = [
    RoomTypeSpec(name="Standard", base_rate=89.0, capacity=2, weight=0.45),
    RoomTypeSpec(name="Deluxe", base_rate=149.0, capacity=2, weight=0.3),
    RoomTypeSpec(name="Family Suite", base_rate=219.0, capacity=4, weight=0.18),
    RoomTypeSpec(name="Penthouse", base_rate=349.0, capacity=4, weight=0.07),
]

AMENITIES = ["wifi", "minibar", "balcony", "ocean_view", "bathtub", "kitchenette", "workspace", "coffee_machine"]
GUEST_NAMES = ["Ana", "Ben", "Chloe", "Dev", "Elif", "Farid", "Grace", "Hiro", "Ines", "Jonah", "Kai", "Lena"]
LOCK_REASONS = ["HVAC repair", "Plumbing", "Renovation", "VIP hold", "Water damage"]
FLOORS = 8


def _room_types(hotel_id: str) -> list[RoomType]:
    return [
        RoomType(
            id=_det_id("rt", hotel_id, spec.name),
            name=spec.name,
            base_rate=spec.base_rate,
            capacity=spec.capacity,
        )
        for spec in ROOM_TYPE_SPECS
    ]


def _lock(rng: random.Random, today: date) -> Maintenance | Blocked | OutOfOrder:
    reason = rng.choice(LOCK_REASONS)
    kind = rng.choice(["maintenance", "blocked", "out-of-order"])
    if kind == "maintenance":
        start = today + timedelta(days=rng.randint(-2, 10))
        return Maintenance(
            start=start,
            end=start + timedelta(days=rng.randint(0, 4)),
            reason=reason,
            priority=rng.choice(["low", "medium", "high", "urgent"]),
        )
    if kind == "blocked":
        return Blocked(reason=reason, since=today, until=today + timedelta(days=rng.randint(1, 14)), blocked_by="ops")
    return OutOfOrder(reason=reason, estimated_repair=today + timedelta(days=rng.randint(1, 30)))


def generate(
    seed_value: int,
    rooms_n: int,
    *,
    hotel_id: str = "h_demo",
    today: date | None = None,
    occupancy: float = 0.6,
    lock_rate: float = 0.05,
) -> InventoryStore:
    """
    Deterministic inventory for one hotel: the same arguments always produce the same store.

    About `occupancy` of the rooms get one reservation around `today`, with guests in lifecycle
    states consistent with the dates (past arrivals are checked in, past departures checked out).
    """
    rng = random.Random(seed_value)
    today = today or date(2026, 1, 1)

    room_types = _room_types(hotel_id)
    weights = [spec.weight for spec in ROOM_TYPE_SPECS]
    store = InventoryStore(room_types=room_types)

    per_floor = max(1, -(-rooms_n // FLOORS))
    for i in range(rooms_n):
        rt = rng.choices(room_types, weights=weights, k=1)[0]
        floor = 1 + i // per_floor
        number = f"{floor}{i % per_floor + 1:02d}"
        # Roughly one room in five carries a negotiated rate instead of the type's base rate.
        rate = round(rt.base_rate * rng.uniform(0.85, 1.2), 2) if rng.random() < 0.2 else None
        room = Room(
            id=_det_id("room", hotel_id, number),
            hotel_id=hotel_id,
            number=number,
            capacity=rt.capacity,
            room_type_id=rt.id,
            rate=rate,
            amenities=sorted(rng.sample(AMENITIES, k=rng.randint(1, 4))),
            operational_lock=_lock(rng, today) if rng.random() < lock_rate else None,
        )
        store.add_room(room)

    for room in store.rooms():
        if room.operational_lock is not None or rng.random() >= occupancy:
            continue
        start = today + timedelta(days=rng.randint(-5, 20))
        end = start + timedelta(days=rng.randint(1, 7))
        party = rng.randint(1, room.capacity)
        keep_open = party < room.capacity and rng.random() < 0.3

        guest_ids: list[str] = []
        for n in range(party):
            gid = _det_id("g", room.id, start.isoformat(), n)
            status: GuestStatus = "booked"
            check_in = check_out = None
            if end <= today:
                status = "checked-out"
                check_in = datetime.combine(start, time(15), tzinfo=UTC)
                check_out = datetime.combine(end, time(11), tzinfo=UTC)
            elif start <= today:
                status = "checked-in"
                check_in = datetime.combine(start, time(15), tzinfo=UTC)
            store.add_guest(
                Guest(
                    id=gid,
                    room_id=room.id,
                    name=rng.choice(GUEST_NAMES),
                    status=status,
                    keep_open=keep_open,
                    reservation_start=start,
                    reservation_end=end,
                    check_in=check_in,
                    check_out=check_out,
                )
            )
            guest_ids.append(gid)

        store.add_reservation(
            Reservation(
                id=_det_id("res", room.id, start.isoformat()),
                room_ids=[room.id],
                guest_ids=guest_ids,
                check_in_date=start,
                check_out_date=end,
            )
        )

    return store


def main() -> None:
    parser = argparse.ArgumentParser()
    parser.add_argument("--seed", type=int, default=1337)
    parser.add_argument("--rooms", type=int, default=40)
    parser.add_argument("--hotel-id", default="h_demo")
    parser.add_argument("--today", default=None, help="Reference date (YYYY-MM-DD) for reservation windows.")
    parser.add_argument("--occupancy", type=float, default=0.6)
    args = parser.parse_args()

    configure_logging(SETTINGS.log_level, render_json=False)
    today = date.fromisoformat(args.today) if args.today else None
    store = generate(args.seed, args.rooms, hotel_id=args.hotel_id, today=today, occupancy=args.occupancy)
    out = {
        "hotel_id": args.hotel_id,
        "room_types": len(store.room_types()),
        "rooms": len(store.rooms()),
        "guests": len(store.guests()),
        "reservations": len(store.reservations()),
        "statuses": status_statistics(store.rooms()),
    }
    print(json.dumps(out, indent=2))


if __name__ == "__main__":
    main()
