from __future__ import annotations

import re
from datetime import UTC, date, datetime, timedelta
from decimal import ROUND_HALF_UP, Decimal


_LEADING_DIGIT_RE = re.compile(r"^(\d)")
_CENT = Decimal("0.01")


def _now() -> datetime:
    return datetime.now(tz=UTC)


def resolve_now(now: datetime | None) -> datetime:
    return now if now is not None else _now()


def money(x: float) -> float:
    # Half-cents round away from zero, so discounts and surcharges round alike.
    return float(Decimal(repr(x)).quantize(_CENT, ROUND_HALF_UP))


def as_date(v: date | datetime) -> date:
    # datetime is a subclass of date, so check it first.
    if isinstance(v, datetime):
        return v.date()
    return v


def each_night(start: date, end: date) -> list[date]:
    """Calendar nights of a half-open stay `[start, end)`."""
    return [start + timedelta(days=i) for i in range((end - start).days)]


def within_inclusive(start: date, end: date, day: date) -> bool:
    return start <= day <= end


def overlaps(a_start: date, a_end: date, b_start: date, b_end: date) -> bool:
    """
    Half-open interval overlap.

    A stay ending on day N does not overlap a stay starting on day N (same-day turnover).
    """
    return a_start < b_end and a_end > b_start


def floor_from_room_number(number: str) -> int:
    m = _LEADING_DIGIT_RE.match(number.strip())
    return int(m.group(1)) if m else 1


def plural(n: int, word: str) -> str:
    return f"{n} {word}" if n == 1 else f"{n} {word}s"
