# laundry_core/services/labels.py
from __future__ import annotations

import logging
from typing import Dict, List, Optional, Set

from django.conf import settings
from django.db import transaction
from django.db.models import Max
from django.utils import timezone

from laundry_core.models import BagLabel, Hotel

logger = logging.getLogger(__name__)


LABEL_STATUS_TRANSITIONS: Dict[str, Set[str]] = {
    "AVAILABLE": {"ASSIGNED", "IN_USE", "DAMAGED", "LOST"},
    "ASSIGNED": {"IN_USE", "AVAILABLE", "DAMAGED", "LOST"},
    "IN_USE": {"DELIVERED", "DAMAGED", "LOST"},
    "DELIVERED": {"AVAILABLE"},
    "LOST": {"AVAILABLE"},
    "DAMAGED": set(),
}


def validate_label_transition(current: str, target: str) -> None:
    cur = (current or "").strip().upper()
    tgt = (target or "").strip().upper()
    if tgt not in LABEL_STATUS_TRANSITIONS:
        raise ValueError(f"Unknown label status: {tgt}")
    if cur == tgt:
        return
    if tgt not in LABEL_STATUS_TRANSITIONS.get(cur, set()):
        raise ValueError(f"Invalid label transition: {cur} -> {tgt}")


def max_batch_size() -> int:
    return int(getattr(settings, "LAUNDRY_MAX_LABEL_BATCH", 20))


def build_label_number(prefix: str, day, sequence: int) -> str:
    return f"{prefix}-{day:%Y%m%d}-{sequence:03d}"


def _next_sequence(hotel: Hotel) -> int:
    last = BagLabel.objects.filter(hotel=hotel).aggregate(m=Max("sequence"))["m"]
    return (last or 0) + 1


def create_label_batch(
    *,
    hotel: Hotel,
    quantity: int,
    user=None,
    service=None,
    prefix: Optional[str] = None,
    generated_at: str = "HOTEL",
) -> List[BagLabel]:
    """
    Generate `quantity` consecutive labels for a hotel.

    Sequence numbers continue from the hotel's last label. Labels tied to
    a service start as ASSIGNED, otherwise AVAILABLE.
    """
    limit = max_batch_size()
    if quantity < 1 or quantity > limit:
        raise ValueError(f"quantity must be between 1 and {limit}.")
    if service is not None and service.hotel_id != hotel.pk:
        raise ValueError("Service does not belong to this hotel.")

    label_prefix = (prefix or hotel.effective_label_prefix()).strip().upper()
    day = timezone.localdate()

    with transaction.atomic():
        # Serialize sequence allocation per hotel
        Hotel.objects.select_for_update().filter(pk=hotel.pk).first()

        seq = _next_sequence(hotel)
        created: List[BagLabel] = []
        for _ in range(quantity):
            number = build_label_number(label_prefix, day, seq)
            while BagLabel.objects.filter(label_number=number).exists():
                seq += 1
                number = build_label_number(label_prefix, day, seq)

            created.append(
                BagLabel.objects.create(
                    hotel=hotel,
                    service=service,
                    label_number=number,
                    sequence=seq,
                    status="ASSIGNED" if service is not None else "AVAILABLE",
                    generated_at=generated_at,
                    registered_by=user if getattr(user, "is_authenticated", False) else None,
                )
            )
            seq += 1

    logger.info("Generated %s label(s) for hotel %s", len(created), hotel.pk)
    return created


def change_label_status(label: BagLabel, target: str) -> BagLabel:
    validate_label_transition(label.status, target)
    label.status = target.strip().upper()
    if label.status == "AVAILABLE":
        label.service = None
        label.bag_number = None
    label.save(update_fields=["status", "service", "bag_number", "updated_at"])
    return label
