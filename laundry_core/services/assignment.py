# laundry_core/services/assignment.py
from __future__ import annotations

from typing import Optional

from laundry_core.models import StaffProfile


def assign_repartidor(hotel) -> Optional[object]:
    """
    Pick an active repartidor for a hotel: same zone first, else the first
    active repartidor, else None.
    """
    candidates = (
        StaffProfile.objects.select_related("user")
        .filter(role="REPARTIDOR", is_active=True, user__is_active=True)
        .order_by("id")
    )
    same_zone = candidates.filter(zone=getattr(hotel, "zone", "")).first()
    chosen = same_zone or candidates.first()
    return chosen.user if chosen else None
