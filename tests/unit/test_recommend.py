from __future__ import annotations

from datetime import date


def _available(room, room_type, score: int, final_amount: float, is_available: bool = True):
    from services.engine.app.schemas import AvailableRoom, PricingBreakdown

    pricing = PricingBreakdown(
        room_id=room.id,
        room_number=room.number,
        room_type=room_type.name,
        description=f"{room_type.name} - 2 nights",
        nightly_rate=final_amount / 2,
        nights=2,
        base_amount=final_amount,
        adjustments=[],
        final_amount=final_amount,
    )
    return AvailableRoom(
        room=room,
        room_type=room_type,
        is_available=is_available,
        unavailable_dates=[] if is_available else [date(2024, 7, 5)],
        reasons_unavailable=[] if is_available else ["Reserved (res1)"],
        pricing=pricing,
        recommendation_score=score,
    )


def test_score_capacity_tiers(make_room, room_types) -> None:
    from services.engine.app.recommend import score_room

    std = room_types[0]
    # Budget rate (+10) in every case.
    assert score_room(make_room(capacity=2), std, 2) == 90
    assert score_room(make_room(capacity=4), std, 2) == 80
    assert score_room(make_room(capacity=4), std, 1) == 70
    assert score_room(make_room(capacity=2), std, 3) == 20


def test_score_preferences(make_room, room_types) -> None:
    from services.engine.app.recommend import score_room
    from services.engine.app.schemas import RoomPreferences

    dlx = room_types[1]
    room = make_room(room_type_id="rt-dlx", number="205", amenities=["wifi", "balcony", "minibar"])
    prefs = RoomPreferences(room_type_ids=["rt-dlx"], amenities=["wifi", "balcony"])

    # 50 + 30 (full) + 15 (type) + 4 (two amenities)
    assert score_room(room, dlx, 2, prefs) == 99


def test_score_is_capped_at_100(make_room, room_types) -> None:
    from services.engine.app.recommend import score_room
    from services.engine.app.schemas import RoomPreferences

    std = room_types[0]
    prefs = RoomPreferences(room_type_ids=["rt-std"], amenities=["wifi", "balcony"], floor_preference="high")
    room = make_room(number="701", amenities=["wifi", "balcony"])

    assert score_room(room, std, 2, prefs) == 100
    assert score_room(make_room(capacity=1, rate=150.0), std, 20) == 10


def test_floor_preference(make_room, room_types) -> None:
    from services.engine.app.recommend import score_room
    from services.engine.app.schemas import RoomPreferences

    dlx = room_types[1]
    high = RoomPreferences(floor_preference="high")

    assert score_room(make_room(number="501", room_type_id="rt-dlx"), dlx, 2, high) == 85
    assert score_room(make_room(number="401", room_type_id="rt-dlx"), dlx, 2, high) == 80
    # Room numbers without a leading digit count as floor 1.
    low = RoomPreferences(floor_preference="low")
    assert score_room(make_room(number="A1", room_type_id="rt-dlx"), dlx, 2, low) == 85


def test_single_room_plan_picks_best_fitting_room(make_room, room_types) -> None:
    from services.engine.app.recommend import suggest_assignments

    std, _, fam = room_types
    candidates = [
        _available(make_room("r1", capacity=2), std, 90, 200.0),
        _available(make_room("r2", capacity=4, room_type_id="rt-fam"), fam, 75, 480.0),
    ]
    plans = suggest_assignments(candidates, 2)

    assert len(plans) == 1
    (plan,) = plans
    assert [a.room_id for a in plan.rooms] == ["r1"]
    assert plan.rooms[0].capacity_utilization == 1.0
    assert plan.rooms[0].preference_match == 0.9
    assert plan.total_price == 200.0
    assert plan.match_score == 90.0
    assert plan.rationale == "Single Standard room accommodates all 2 guests"


def test_large_party_gets_single_and_split_plans(make_room, room_types) -> None:
    from services.engine.app.recommend import suggest_assignments

    std, dlx, fam = room_types
    candidates = [
        _available(make_room("r0", capacity=2), std, 95, 150.0, is_available=False),
        _available(make_room("r1", capacity=2), std, 60, 200.0),
        _available(make_room("r2", capacity=4, room_type_id="rt-fam"), fam, 70, 480.0),
        _available(make_room("r3", capacity=2, room_type_id="rt-dlx"), dlx, 60, 300.0),
    ]
    plans = suggest_assignments(candidates, 4)

    assert [p.match_score for p in plans] == [70.0, 65.0]
    single, split = plans
    assert [a.room_id for a in single.rooms] == ["r2"]

    # Ranked list is r2, r1, r3 (stable on the tie); the split takes the first two.
    assert [a.room_id for a in split.rooms] == ["r2", "r1"]
    assert [a.guests for a in split.rooms] == [2, 2]
    assert split.guests_accommodated == 4
    assert split.total_price == 680.0


def test_no_split_plan_for_two_guests_or_fewer(make_room, room_types) -> None:
    from services.engine.app.recommend import suggest_assignments

    std = room_types[0]
    candidates = [_available(make_room("r1"), std, 80, 200.0), _available(make_room("r2"), std, 80, 200.0)]

    assert len(suggest_assignments(candidates, 2)) == 1
    assert suggest_assignments([], 3) == []


def test_preferences_rescore_candidates(make_room, room_types) -> None:
    from services.engine.app.recommend import suggest_assignments
    from services.engine.app.schemas import RoomPreferences

    std, dlx, _ = room_types
    candidates = [
        _available(make_room("r1"), std, 90, 200.0),
        _available(make_room("r2", room_type_id="rt-dlx"), dlx, 80, 300.0),
    ]
    plans = suggest_assignments(candidates, 2, RoomPreferences(room_type_ids=["rt-dlx"]))

    # Deluxe: 50 + 30 + 15 = 95 beats Standard: 50 + 30 + 10 = 90.
    assert plans[0].rooms[0].room_id == "r2"
    assert plans[0].match_score == 95.0
