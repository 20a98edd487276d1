from __future__ import annotations

from datetime import date, datetime
from typing import Annotated, Literal, get_args

from pydantic import BaseModel, ConfigDict, Field, model_validator


class StrictModel(BaseModel):
    model_config = ConfigDict(extra="forbid")


RoomStatus = Literal[
    "available",
    "reserved",
    "partially-reserved",
    "occupied",
    "partially-occupied",
    "cleaning",
    "deoccupied",
    "partially-deoccupied",
    "maintenance",
    "blocked",
    "out-of-order",
]
ROOM_STATUSES: tuple[str, ...] = get_args(RoomStatus)

GuestStatus = Literal["booked", "checked-in", "checked-out"]
ReservationStatus = Literal["active", "cancelled", "completed", "no-show", "terminated"]
CLOSED_RESERVATION_STATUSES = frozenset({"cancelled", "no-show", "terminated"})

AdjustmentKind = Literal["weekend", "seasonal", "length-of-stay", "early-booking", "tax", "fee"]
FloorPreference = Literal["low", "high", "any"]


class DateRange(StrictModel):
    start: date
    # Exclusive: the check-out day is not a night of the stay.
    end: date

    @model_validator(mode="after")
    def _dates(self):
        if self.end <= self.start:
            raise ValueError("end must be after start")
        return self

    @property
    def nights(self) -> int:
        return (self.end - self.start).days


class Maintenance(StrictModel):
    kind: Literal["maintenance"] = "maintenance"
    start: date
    end: date
    reason: str
    priority: Literal["low", "medium", "high", "urgent"] = "medium"

    @model_validator(mode="after")
    def _window(self):
        if self.end < self.start:
            raise ValueError("maintenance end must not precede start")
        return self


class Blocked(StrictModel):
    kind: Literal["blocked"] = "blocked"
    reason: str
    since: date | None = None
    until: date | None = None
    blocked_by: str | None = None


class OutOfOrder(StrictModel):
    kind: Literal["out-of-order"] = "out-of-order"
    reason: str
    estimated_repair: date | None = None


OperationalLock = Annotated[Maintenance | Blocked | OutOfOrder, Field(discriminator="kind")]


class RoomType(StrictModel):
    id: str
    name: str
    base_rate: float = Field(ge=0)
    capacity: Annotated[int, Field(ge=1)] = 2


class Room(StrictModel):
    id: str
    hotel_id: str
    number: str
    capacity: Annotated[int, Field(ge=1)]
    room_type_id: str
    # Per-room override of the room type's base rate.
    rate: float | None = Field(default=None, ge=0)
    amenities: list[str] = Field(default_factory=list)
    status: RoomStatus = "available"
    keep_open: bool = False
    # Derived cache; recompute_room_status rewrites it from the live guest query.
    assigned_guest_ids: list[str] = Field(default_factory=list)
    operational_lock: OperationalLock | None = None


class Guest(StrictModel):
    id: str
    room_id: str
    name: str = ""
    status: GuestStatus = "booked"
    keep_open: bool = False
    reservation_start: date
    reservation_end: date
    check_in: datetime | None = None
    check_out: datetime | None = None

    @model_validator(mode="after")
    def _dates(self):
        if self.reservation_end < self.reservation_start:
            raise ValueError("reservation_end must not precede reservation_start")
        return self


class Reservation(StrictModel):
    id: str
    room_ids: list[str]
    guest_ids: list[str] = Field(default_factory=list)
    check_in_date: date
    check_out_date: date
    status: ReservationStatus = "active"

    @model_validator(mode="after")
    def _dates(self):
        if self.check_out_date <= self.check_in_date:
            raise ValueError("check_out_date must be after check_in_date")
        return self


# --- results ---


class RoomStatusResult(StrictModel):
    status: RoomStatus
    keep_open: bool
    assigned_guest_ids: list[str]


class StatusSnapshot(StrictModel):
    room_id: str
    day: date
    status: RoomStatus
    keep_open: bool
    guests_on_date: list[str]
    reservations_on_date: list[str]


class ActivityVerdict(StrictModel):
    is_active: bool
    reason: str


class RoomAction(StrictModel):
    action: str
    description: str
    urgency: Literal["low", "medium", "high"]


class AvailabilityResult(StrictModel):
    room_id: str
    is_available: bool
    unavailable_dates: list[date]
    reasons: list[str]


class Adjustment(StrictModel):
    kind: AdjustmentKind
    description: str
    amount: float
    percentage: float | None = None


class PricingBreakdown(StrictModel):
    room_id: str
    room_number: str
    room_type: str
    description: str
    nightly_rate: float
    nights: int
    base_amount: float
    adjustments: list[Adjustment]
    final_amount: float


class ReservationPricing(StrictModel):
    breakdown: list[PricingBreakdown]
    base_total: float
    adjustments_total: float
    subtotal: float
    tax_lines: list[Adjustment]
    taxes: float
    fee_lines: list[Adjustment]
    fees: float
    total: float
    currency: str


class UpgradeOption(StrictModel):
    room_id: str
    upgrade_room_id: str
    additional_cost: float
    benefits: list[str]


class RoomPreferences(StrictModel):
    room_type_ids: list[str] = Field(default_factory=list)
    amenities: list[str] = Field(default_factory=list)
    floor_preference: FloorPreference | None = None
    max_price: float | None = Field(default=None, gt=0)


class AvailabilityQuery(StrictModel):
    hotel_id: str
    check_in_date: date
    check_out_date: date
    total_guests: Annotated[int, Field(ge=1)]
    preferences: RoomPreferences | None = None

    @model_validator(mode="after")
    def _dates(self):
        if self.check_out_date <= self.check_in_date:
            raise ValueError("check_out_date must be after check_in_date")
        return self

    @property
    def date_range(self) -> DateRange:
        return DateRange(start=self.check_in_date, end=self.check_out_date)


class AvailableRoom(StrictModel):
    room: Room
    room_type: RoomType
    is_available: bool
    unavailable_dates: list[date]
    reasons_unavailable: list[str]
    pricing: PricingBreakdown
    recommendation_score: int


class RoomAssignment(StrictModel):
    room_id: str
    room_number: str
    guests: int
    capacity_utilization: float
    preference_match: float


class AssignmentPlan(StrictModel):
    rooms: list[RoomAssignment]
    total_price: float
    match_score: float
    guests_accommodated: int
    rationale: str
