"""
Stay pricing.

Every adjustment is computed against the room's base amount (nightly rate x nights); they are
never compounded on each other. Taxes and reservation fees are applied once, on the sum of the
per-room final amounts.
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime

from services.engine.app.helpers import each_night, floor_from_room_number, money, plural, resolve_now
from services.engine.app.logging import component_logger
from services.engine.app.schemas import (
    Adjustment,
    DateRange,
    PricingBreakdown,
    ReservationPricing,
    Room,
    RoomType,
    UpgradeOption,
)
from services.engine.app.settings import SETTINGS


logger = component_logger("pricing")

WEEKEND_SURCHARGE_PCT = 25
# date.weekday(): Friday=4, Saturday=5
WEEKEND_NIGHTS = frozenset({4, 5})

# (months, percentage, description); first match on the check-in month wins.
SEASONS: tuple[tuple[frozenset[int], int, str], ...] = (
    (frozenset({6, 7, 8}), 20, "Peak summer season (20% surcharge)"),
    (frozenset({12}), 25, "Holiday season (25% surcharge)"),
    (frozenset({5, 9}), 10, "High season (10% surcharge)"),
    (frozenset({1, 2, 3}), -15, "Off-season discount (15%)"),
    (frozenset({4, 10, 11}), -5, "Shoulder season discount (5%)"),
)

# (minimum nights, percentage, description), longest first.
LENGTH_OF_STAY_TIERS: tuple[tuple[int, int, str], ...] = (
    (14, -20, "Extended stay discount - 14+ nights (20%)"),
    (7, -15, "Weekly stay discount - 7+ nights (15%)"),
    (4, -8, "Multi-night discount - 4+ nights (8%)"),
    (3, -5, "Multi-night discount - 3+ nights (5%)"),
)

# (minimum days ahead, percentage, description), earliest first.
EARLY_BOOKING_TIERS: tuple[tuple[int, int, str], ...] = (
    (60, -10, "Early booking discount - 60+ days (10%)"),
    (30, -7, "Early booking discount - 30+ days (7%)"),
    (14, -5, "Early booking discount - 14+ days (5%)"),
)

TAX_RATES: tuple[tuple[str, int], ...] = (
    ("City tax", 3),
    ("State tax", 8),
    ("Tourism tax", 2),
)

MAX_UPGRADE_INCREASE = 0.5


def nightly_rate(room: Room, room_type: RoomType | None) -> float:
    if room.rate is not None:
        return room.rate
    if room_type is not None:
        return room_type.base_rate
    return SETTINGS.default_nightly_rate


def weekend_surcharge(date_range: DateRange, rate: float) -> Adjustment | None:
    weekend = [d for d in each_night(date_range.start, date_range.end) if d.weekday() in WEEKEND_NIGHTS]
    if not weekend:
        return None
    return Adjustment(
        kind="weekend",
        description=f"Weekend surcharge ({plural(len(weekend), 'night')} at {WEEKEND_SURCHARGE_PCT}%)",
        amount=money(len(weekend) * rate * WEEKEND_SURCHARGE_PCT / 100),
        percentage=WEEKEND_SURCHARGE_PCT,
    )


def seasonal_adjustment(date_range: DateRange, base_amount: float) -> Adjustment | None:
    month = date_range.start.month
    for months, pct, description in SEASONS:
        if month in months:
            return Adjustment(
                kind="seasonal", description=description, amount=money(base_amount * pct / 100), percentage=pct
            )
    return None


def length_of_stay_discount(nights: int, base_amount: float) -> Adjustment | None:
    for min_nights, pct, description in LENGTH_OF_STAY_TIERS:
        if nights >= min_nights:
            return Adjustment(
                kind="length-of-stay",
                description=description,
                amount=money(base_amount * pct / 100),
                percentage=pct,
            )
    return None


def early_booking_discount(
    date_range: DateRange, base_amount: float, *, now: datetime | None = None
) -> Adjustment | None:
    days_ahead = (date_range.start - resolve_now(now).date()).days
    for min_days, pct, description in EARLY_BOOKING_TIERS:
        if days_ahead >= min_days:
            return Adjustment(
                kind="early-booking",
                description=description,
                amount=money(base_amount * pct / 100),
                percentage=pct,
            )
    return None


def price_room(
    room: Room, room_type: RoomType, date_range: DateRange, *, now: datetime | None = None
) -> PricingBreakdown:
    """Per-room breakdown. `now` only feeds the early-booking discount."""
    rate = nightly_rate(room, room_type)
    nights = date_range.nights
    base_amount = money(rate * nights)

    candidates = (
        weekend_surcharge(date_range, rate),
        seasonal_adjustment(date_range, base_amount),
        length_of_stay_discount(nights, base_amount),
        early_booking_discount(date_range, base_amount, now=now),
    )
    adjustments = [a for a in candidates if a is not None and a.amount != 0]
    final_amount = max(0.0, money(base_amount + sum(a.amount for a in adjustments)))

    return PricingBreakdown(
        room_id=room.id,
        room_number=room.number,
        room_type=room_type.name,
        description=f"{room_type.name} - {plural(nights, 'night')}",
        nightly_rate=rate,
        nights=nights,
        base_amount=base_amount,
        adjustments=adjustments,
        final_amount=final_amount,
    )


def tax_lines(subtotal: float) -> list[Adjustment]:
    return [
        Adjustment(kind="tax", description=f"{name} ({pct}%)", amount=money(subtotal * pct / 100), percentage=pct)
        for name, pct in TAX_RATES
    ]


def fee_lines(subtotal: float, nights: int) -> list[Adjustment]:
    service_pct = SETTINGS.service_fee_rate * 100
    return [
        Adjustment(
            kind="fee",
            description=f"Resort fee ({plural(nights, 'night')})",
            amount=money(nights * SETTINGS.resort_fee_per_night),
        ),
        Adjustment(
            kind="fee",
            description=f"Service fee ({service_pct:g}%)",
            amount=money(subtotal * SETTINGS.service_fee_rate),
            percentage=service_pct,
        ),
        Adjustment(kind="fee", description="Cleaning fee", amount=money(SETTINGS.cleaning_fee)),
    ]


def calculate_pricing(
    rooms: Sequence[Room],
    room_types: Sequence[RoomType],
    date_range: DateRange,
    *,
    now: datetime | None = None,
) -> ReservationPricing:
    """
    Price a whole reservation.

    Rooms without a matching room type are left out of the breakdown. Fees are charged once for
    the reservation, with the resort fee following the reservation's nights.
    """
    types_by_id = {rt.id: rt for rt in room_types}
    breakdown: list[PricingBreakdown] = []
    for room in rooms:
        room_type = types_by_id.get(room.room_type_id)
        if room_type is None:
            logger.debug("room_skipped_missing_type", room_id=room.id, room_type_id=room.room_type_id)
            continue
        breakdown.append(price_room(room, room_type, date_range, now=now))

    base_total = money(sum(b.base_amount for b in breakdown))
    adjustments_total = money(sum(a.amount for b in breakdown for a in b.adjustments))
    subtotal = money(sum(b.final_amount for b in breakdown))

    tax_items = tax_lines(subtotal)
    taxes = money(sum(t.amount for t in tax_items))
    fee_items = fee_lines(subtotal, date_range.nights)
    fees = money(sum(f.amount for f in fee_items))
    total = money(subtotal + taxes + fees)

    logger.info(
        "pricing_calculated",
        rooms=len(breakdown),
        nights=date_range.nights,
        subtotal=subtotal,
        taxes=taxes,
        fees=fees,
        total=total,
    )
    return ReservationPricing(
        breakdown=breakdown,
        base_total=base_total,
        adjustments_total=adjustments_total,
        subtotal=subtotal,
        tax_lines=tax_items,
        taxes=taxes,
        fee_lines=fee_items,
        fees=fees,
        total=total,
        currency=SETTINGS.currency,
    )


def upgrade_benefits(current: Room, current_type: RoomType, upgrade: Room, upgrade_type: RoomType) -> list[str]:
    benefits: list[str] = []
    if upgrade.capacity > current.capacity:
        benefits.append(f"Accommodates {upgrade.capacity} guests (vs {current.capacity})")
    if upgrade_type.name != current_type.name:
        benefits.append(f"Upgrade to {upgrade_type.name}")
    extra = [a for a in upgrade.amenities if a not in set(current.amenities)]
    if extra:
        benefits.append(f"Additional amenities: {', '.join(extra[:3])}")
    current_floor = floor_from_room_number(current.number)
    upgrade_floor = floor_from_room_number(upgrade.number)
    if upgrade_floor > current_floor and upgrade_floor >= SETTINGS.high_floor_min:
        benefits.append(f"Higher floor with better views (Floor {upgrade_floor})")
    return benefits


def upgrade_recommendations(
    selected_rooms: Sequence[Room],
    candidate_rooms: Sequence[Room],
    room_types: Sequence[RoomType],
    date_range: DateRange,
    *,
    now: datetime | None = None,
) -> list[UpgradeOption]:
    """
    Cheapest-first upgrade offers for the rooms a party already picked.

    A candidate must cost more per night than the current room and must not be selected already.
    It is offered when it brings at least one benefit and adds at most half the current price.
    """
    types_by_id = {rt.id: rt for rt in room_types}
    selected_ids = {r.id for r in selected_rooms}
    options: list[UpgradeOption] = []

    for current in selected_rooms:
        current_type = types_by_id.get(current.room_type_id)
        if current_type is None:
            continue
        current_rate = nightly_rate(current, current_type)
        candidates = [
            r
            for r in candidate_rooms
            if r.id not in selected_ids
            and r.room_type_id in types_by_id
            and nightly_rate(r, types_by_id[r.room_type_id]) > current_rate
        ]
        current_final = price_room(current, current_type, date_range, now=now).final_amount

        for upgrade in candidates[: SETTINGS.max_upgrade_options_per_room]:
            upgrade_type = types_by_id[upgrade.room_type_id]
            extra_cost = money(price_room(upgrade, upgrade_type, date_range, now=now).final_amount - current_final)
            benefits = upgrade_benefits(current, current_type, upgrade, upgrade_type)
            if benefits and extra_cost <= current_final * MAX_UPGRADE_INCREASE:
                options.append(
                    UpgradeOption(
                        room_id=current.id,
                        upgrade_room_id=upgrade.id,
                        additional_cost=extra_cost,
                        benefits=benefits,
                    )
                )

    options.sort(key=lambda o: o.additional_cost)
    logger.debug("upgrades_recommended", selected=len(selected_rooms), options=len(options))
    return options
