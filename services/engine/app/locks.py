from __future__ import annotations

from datetime import date, timedelta

from services.engine.app.helpers import overlaps
from services.engine.app.schemas import Blocked, DateRange, Maintenance, OperationalLock, OutOfOrder, RoomStatus


def lock_status(lock: OperationalLock) -> RoomStatus:
    if isinstance(lock, Maintenance):
        return "maintenance"
    if isinstance(lock, Blocked):
        return "blocked"
    return "out-of-order"


def lock_covers(lock: OperationalLock, day: date) -> bool:
    """
    Whether the lock takes the room out of service on `day`.

    Maintenance windows are inclusive on both ends; a block lasts from `since` until
    (not including) `until`; out-of-order has no window.
    """
    if isinstance(lock, Maintenance):
        return lock.start <= day <= lock.end
    if isinstance(lock, Blocked):
        if lock.since is not None and day < lock.since:
            return False
        return lock.until is None or day < lock.until
    return True


def lock_overlaps(lock: OperationalLock, date_range: DateRange) -> bool:
    if isinstance(lock, Maintenance):
        # The maintenance window's last day is still out of service.
        return overlaps(lock.start, lock.end + timedelta(days=1), date_range.start, date_range.end)
    if isinstance(lock, Blocked):
        starts_before_range_ends = lock.since is None or lock.since < date_range.end
        ends_after_range_starts = lock.until is None or lock.until > date_range.start
        return starts_before_range_ends and ends_after_range_starts
    return True


def describe_lock(lock: OperationalLock) -> list[str]:
    if isinstance(lock, Maintenance):
        return [f"Scheduled maintenance: {lock.reason}", f"Priority: {lock.priority}"]
    if isinstance(lock, Blocked):
        lines = [f"Blocked: {lock.reason}"]
        if lock.until is not None:
            lines.append(f"Until: {lock.until.isoformat()}")
        return lines
    assert isinstance(lock, OutOfOrder)
    lines = [f"Out of order: {lock.reason}"]
    if lock.estimated_repair is not None:
        lines.append(f"Estimated repair: {lock.estimated_repair.isoformat()}")
    return lines
