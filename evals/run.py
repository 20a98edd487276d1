from __future__ import annotations

import argparse
import json
from datetime import UTC, date, datetime, timedelta
from pathlib import Path
from typing import Any

from pydantic import TypeAdapter

from evals.metrics import EvalResult, check_pricing_pure, check_room_invariants, check_same_day_turnover
from inventory.seed import generate
from services.engine.app.logging import configure_logging
from services.engine.app.operations import calculate_pricing, check_availability, status_for_date
from services.engine.app.room_status import compute_room_status
from services.engine.app.schemas import DateRange, Guest, Reservation, Room, RoomType
from services.engine.app.settings import SETTINGS


_ROOMS = TypeAdapter(list[Room])
_GUESTS = TypeAdapter(list[Guest])
_RESERVATIONS = TypeAdapter(list[Reservation])
_ROOM_TYPES = TypeAdapter(list[RoomType])

# Fixed clock for seeded pricing checks.
SEEDED_NOW = datetime(2026, 1, 1, 12, 0, tzinfo=UTC)


def _load_json(path: str) -> Any:
    return json.loads(Path(path).read_text(encoding="utf-8"))


def _compare(prefix: str, expect: dict[str, Any], got: dict[str, Any]) -> list[str]:
    failures: list[str] = []
    for key, want in expect.items():
        actual = got.get(key)
        if isinstance(want, float) or isinstance(actual, float):
            if actual is None or abs(float(actual) - float(want)) > 0.005:
                failures.append(f"{prefix}_{key}_expected={want} actual={actual}")
        elif actual != want:
            failures.append(f"{prefix}_{key}_expected={want} actual={actual}")
    return failures


def _status_case(s: dict[str, Any]) -> list[str]:
    room = Room.model_validate(s["room"])
    guests = _GUESTS.validate_python(s.get("guests") or [])
    result = compute_room_status(room, guests)
    failures = _compare("status", s.get("expect") or {}, result.model_dump(mode="json"))
    return failures + check_room_invariants(room, guests)


def _date_status_case(s: dict[str, Any]) -> list[str]:
    room = Room.model_validate(s["room"])
    snap = status_for_date(
        room,
        date.fromisoformat(s["day"]),
        _RESERVATIONS.validate_python(s.get("reservations") or []),
        _GUESTS.validate_python(s.get("guests") or []),
    )
    return _compare("date_status", s.get("expect") or {}, snap.model_dump(mode="json"))


def _availability_case(s: dict[str, Any]) -> list[str]:
    room = Room.model_validate(s["room"])
    reservations = _RESERVATIONS.validate_python(s.get("reservations") or [])
    guests = _GUESTS.validate_python(s.get("guests") or [])
    result = check_availability(room, DateRange.model_validate(s["range"]), reservations, guests)
    failures = _compare("availability", s.get("expect") or {}, result.model_dump(mode="json"))
    for r in reservations:
        failures += check_same_day_turnover(room, r, guests)
    return failures


def _pricing_case(s: dict[str, Any]) -> list[str]:
    rooms = _ROOMS.validate_python(s["rooms"])
    room_types = _ROOM_TYPES.validate_python(s["room_types"])
    date_range = DateRange.model_validate(s["range"])
    now = datetime.fromisoformat(s["now"])
    pricing = calculate_pricing(rooms, room_types, date_range, now=now)
    got = pricing.model_dump(mode="json")
    got["adjustment_kinds"] = [a["kind"] for b in got["breakdown"] for a in b["adjustments"]]
    failures = _compare("pricing", s.get("expect") or {}, got)
    types_by_id = {rt.id: rt for rt in room_types}
    for room in rooms:
        if room.room_type_id in types_by_id:
            failures += check_pricing_pure(room, types_by_id[room.room_type_id], date_range, now)
    return failures


CASE_RUNNERS = {
    "room_status": _status_case,
    "date_status": _date_status_case,
    "availability": _availability_case,
    "pricing": _pricing_case,
}


def run_scenario(s: dict[str, Any]) -> EvalResult:
    runner = CASE_RUNNERS.get(s.get("kind", ""))
    if runner is None:
        failures = [f"unknown_scenario_kind={s.get('kind')}"]
    else:
        failures = runner(s)
    return EvalResult(name=s["name"], passed=not failures, failures=failures)


def run_seeded(seed_value: int, rooms_n: int) -> EvalResult:
    """Check the status and pricing invariants over every room of a generated inventory."""
    store = generate(seed_value, rooms_n, today=SEEDED_NOW.date())
    guests = store.guests()
    failures: list[str] = []
    for room in store.rooms():
        failures += check_room_invariants(room, guests)
        stay = DateRange(start=SEEDED_NOW.date(), end=SEEDED_NOW.date() + timedelta(days=3))
        failures += check_pricing_pure(room, store.room_type(room.room_type_id), stay, SEEDED_NOW)
    for r in store.reservations():
        for room_id in r.room_ids:
            failures += check_same_day_turnover(store.room(room_id), r, guests)
    return EvalResult(name=f"seeded_{seed_value}_{rooms_n}", passed=not failures, failures=failures)


def run_all(scenarios: list[dict[str, Any]], seeded: list[int], rooms_n: int) -> dict[str, Any]:
    results = [run_scenario(s) for s in scenarios] + [run_seeded(sv, rooms_n) for sv in seeded]
    passed = sum(1 for r in results if r.passed)
    return {
        "total": len(results),
        "passed": passed,
        "results": [{"name": r.name, "passed": r.passed, "failures": r.failures} for r in results],
    }


def main() -> int:
    p = argparse.ArgumentParser()
    p.add_argument("--scenarios", default=None, help="JSON list of scenarios.")
    p.add_argument("--seeded", type=int, action="append", default=[], help="Seed for a generated inventory.")
    p.add_argument("--rooms", type=int, default=40)
    p.add_argument("--out", default=None)
    args = p.parse_args()

    configure_logging(SETTINGS.log_level, render_json=False)
    scenarios = list(_load_json(args.scenarios)) if args.scenarios else []
    out = run_all(scenarios, args.seeded, args.rooms)

    if args.out:
        Path(args.out).write_text(json.dumps(out, indent=2), encoding="utf-8")
    print(json.dumps(out, indent=2))
    return 0 if out["passed"] == out["total"] else 1


if __name__ == "__main__":
    raise SystemExit(main())
