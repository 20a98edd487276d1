from __future__ import annotations

import sys
from datetime import UTC, date, datetime
from pathlib import Path

import pytest


# Ensure the monorepo root is importable (so `import services.*` works in tests).
REPO_ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(REPO_ROOT))


@pytest.fixture()
def fixed_now() -> datetime:
    # Four days before the July 2024 test stays: no early-booking tier applies.
    return datetime(2024, 7, 1, 9, 0, tzinfo=UTC)


@pytest.fixture()
def make_room():
    from services.engine.app.schemas import Room

    def _make(room_id: str = "r1", capacity: int = 2, **kw):
        kw.setdefault("hotel_id", "h1")
        kw.setdefault("number", "101")
        kw.setdefault("room_type_id", "rt-std")
        return Room(id=room_id, capacity=capacity, **kw)

    return _make


@pytest.fixture()
def make_guest():
    from services.engine.app.schemas import Guest

    counter = {"n": 0}

    def _make(room_id: str = "r1", status: str = "booked", keep_open: bool = False, **kw):
        counter["n"] += 1
        kw.setdefault("id", f"g{counter['n']}")
        kw.setdefault("reservation_start", date(2024, 3, 10))
        kw.setdefault("reservation_end", date(2024, 3, 15))
        return Guest(room_id=room_id, status=status, keep_open=keep_open, **kw)

    return _make


@pytest.fixture()
def room_types():
    from services.engine.app.schemas import RoomType

    return [
        RoomType(id="rt-std", name="Standard", base_rate=90.0, capacity=2),
        RoomType(id="rt-dlx", name="Deluxe", base_rate=150.0, capacity=2),
        RoomType(id="rt-fam", name="Family Suite", base_rate=220.0, capacity=4),
    ]
