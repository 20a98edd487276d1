"""
Operations exposed to booking wizards, check-in/out handlers and reporting views.

Callers own persistence and must serialize writes per room before calling
`recompute_room_status`; see `inventory.store.InventoryStore` for a caller that does.
"""

from __future__ import annotations

from services.engine.app.availability import check_availability, search_rooms
from services.engine.app.pricing import calculate_pricing, price_room, upgrade_recommendations
from services.engine.app.recommend import score_room, suggest_assignments
from services.engine.app.room_status import (
    derive_reservation_status,
    is_reservation_active,
    operational_issues,
    recommended_room_action,
    recompute_room_status,
    room_needs_attention,
    sort_rooms_by_status_priority,
    status_for_date,
    status_statistics,
)


__all__ = [
    "calculate_pricing",
    "check_availability",
    "derive_reservation_status",
    "is_reservation_active",
    "operational_issues",
    "price_room",
    "recommended_room_action",
    "recompute_room_status",
    "room_needs_attention",
    "score_room",
    "search_rooms",
    "sort_rooms_by_status_priority",
    "status_for_date",
    "status_statistics",
    "suggest_assignments",
    "upgrade_recommendations",
]
