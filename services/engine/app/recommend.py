from __future__ import annotations

from collections.abc import Sequence

from services.engine.app.helpers import floor_from_room_number, money
from services.engine.app.logging import component_logger
from services.engine.app.pricing import nightly_rate
from services.engine.app.schemas import AssignmentPlan, AvailableRoom, Room, RoomAssignment, RoomPreferences, RoomType
from services.engine.app.settings import SETTINGS


logger = component_logger("recommend")

BASE_SCORE = 50
BUDGET_RATE = 100.0
PREMIUM_RATE = 200.0


def _capacity_points(capacity: int, guest_count: int) -> int:
    if capacity < guest_count:
        return -40
    utilization = guest_count / capacity
    if utilization >= 0.8:
        return 30
    if utilization >= 0.5:
        return 20
    return 10


def _floor_matches(room: Room, preference: str | None) -> bool:
    if preference not in ("low", "high"):
        return False
    floor = floor_from_room_number(room.number)
    if preference == "low":
        return floor <= SETTINGS.low_floor_max
    return floor >= SETTINGS.high_floor_min


def score_room(
    room: Room,
    room_type: RoomType,
    guest_count: int,
    preferences: RoomPreferences | None = None,
) -> int:
    """
    Ranking score in [0, 100] for placing `guest_count` guests in `room`.

    Only used to order candidates; it has no meaning across different queries.
    """
    score = BASE_SCORE + _capacity_points(room.capacity, guest_count)

    rate = nightly_rate(room, room_type)
    if rate <= BUDGET_RATE:
        score += 10
    elif rate >= PREMIUM_RATE:
        score += 5

    if preferences is not None:
        if room_type.id in preferences.room_type_ids:
            score += 15
        score += 2 * sum(1 for a in room.amenities if a in preferences.amenities)
        if _floor_matches(room, preferences.floor_preference):
            score += 5

    return max(0, min(100, score))


def _assignment(candidate: AvailableRoom, guests: int) -> RoomAssignment:
    return RoomAssignment(
        room_id=candidate.room.id,
        room_number=candidate.room.number,
        guests=guests,
        capacity_utilization=round(guests / candidate.room.capacity, 4),
        preference_match=candidate.recommendation_score / 100,
    )


def _single_room_plan(ranked: list[AvailableRoom], total_guests: int) -> AssignmentPlan | None:
    best = next((c for c in ranked if c.room.capacity >= total_guests), None)
    if best is None:
        return None
    return AssignmentPlan(
        rooms=[_assignment(best, total_guests)],
        total_price=best.pricing.final_amount,
        match_score=float(best.recommendation_score),
        guests_accommodated=total_guests,
        rationale=f"Single {best.room_type.name} room accommodates all {total_guests} guests",
    )


def _two_room_plan(ranked: list[AvailableRoom], total_guests: int) -> AssignmentPlan | None:
    doubles = [c for c in ranked if c.room.capacity >= 2][:2]
    if len(doubles) < 2:
        return None
    first, second = doubles
    in_first = min(first.room.capacity, (total_guests + 1) // 2)
    in_second = min(second.room.capacity, total_guests - in_first)
    return AssignmentPlan(
        rooms=[_assignment(first, in_first), _assignment(second, in_second)],
        total_price=money(first.pricing.final_amount + second.pricing.final_amount),
        match_score=(first.recommendation_score + second.recommendation_score) / 2,
        guests_accommodated=in_first + in_second,
        rationale=f"Two rooms ({first.room_type.name}, {second.room_type.name}) for {total_guests} guests",
    )


def suggest_assignments(
    available_rooms: Sequence[AvailableRoom],
    total_guests: int,
    preferences: RoomPreferences | None = None,
) -> list[AssignmentPlan]:
    """
    Candidate ways to house a party, best match first.

    Unavailable rooms are ignored. When `preferences` is given the rooms are rescored against
    it; otherwise the score already on each `AvailableRoom` is used.
    """
    candidates = [c for c in available_rooms if c.is_available]
    if preferences is not None:
        candidates = [
            c.model_copy(
                update={"recommendation_score": score_room(c.room, c.room_type, total_guests, preferences)}
            )
            for c in candidates
        ]
    # sorted() is stable, so ties keep the caller's order.
    ranked = sorted(candidates, key=lambda c: -c.recommendation_score)

    plans: list[AssignmentPlan] = []
    single = _single_room_plan(ranked, total_guests)
    if single is not None:
        plans.append(single)
    if total_guests > 2:
        split = _two_room_plan(ranked, total_guests)
        if split is not None:
            plans.append(split)

    plans.sort(key=lambda p: -p.match_score)
    logger.info(
        "assignments_suggested",
        total_guests=total_guests,
        candidates=len(ranked),
        plans=len(plans),
        best_score=plans[0].match_score if plans else None,
    )
    return plans
