# laundry_core/workflows/sla_scanner.py
from __future__ import annotations

import logging

from django.db import transaction
from django.utils import timezone

from laundry_core.models import (
    Delivery,
    Service,
    ServiceAlert,
    ServiceTransition,
)
from laundry_core.workflows import is_terminal
from laundry_core.workflows.sla import compute_sla_level, get_sla

logger = logging.getLogger(__name__)


# ------------------------------------------------------------
# Workflow kind -> model resolution
# ------------------------------------------------------------
KIND_MODEL = {
    "service": Service,
    "delivery": Delivery,
}

TERMINAL_STATES = {
    kind: [s for s in ("COMPLETED", "CANCELLED") if is_terminal(kind, s)]
    for kind in KIND_MODEL
}


def status_window_start(kind: str, obj):
    """
    When `obj` entered its current status.
    ServiceTransition is the source of truth; objects that never moved
    fall back to their creation time.
    """
    t = (
        ServiceTransition.objects.filter(
            kind=kind,
            object_id=obj.pk,
            to_status=obj.status,
        )
        .order_by("-created_at", "-id")
        .first()
    )
    return t.created_at if t else obj.created_at


def _hotel_id(kind: str, obj):
    if kind == "delivery":
        return obj.service.hotel_id
    return obj.hotel_id


def check_overdue_services(*, now=None) -> int:
    """
    Scan active services and deliveries and raise SLA alerts where
    thresholds are exceeded.

    Returns:
        int: number of newly created alerts
    """
    now = now or timezone.now()
    created_count = 0

    for kind, model in KIND_MODEL.items():
        qs = model.objects.exclude(status__in=TERMINAL_STATES[kind])
        if kind == "delivery":
            qs = qs.select_related("service")

        for obj in qs.iterator():
            status = (obj.status or "").strip().upper()
            sla = get_sla(kind, status)
            if not sla:
                continue

            started_at = status_window_start(kind, obj)
            elapsed = now - started_at
            level = compute_sla_level(kind, status, elapsed)
            if level is None:
                continue

            limit = sla["breach_after"] if level == "BREACHED" else sla["warn_after"]
            severity = sla.get("severity", "warning") if level == "BREACHED" else "warning"

            # One alert per level for the same stay in a state
            with transaction.atomic():
                alert, created = ServiceAlert.objects.get_or_create(
                    kind=kind,
                    object_id=obj.pk,
                    state=status,
                    level=level,
                    window_started_at=started_at,
                    defaults={
                        "severity": severity,
                        "hotel_id": _hotel_id(kind, obj),
                        "message": (
                            f"{kind.capitalize()} {obj.pk} has been {status} "
                            f"for more than {limit}"
                        ),
                        "meta": {
                            "started_at": started_at.isoformat(),
                            "deadline": (started_at + limit).isoformat(),
                            "now": now.isoformat(),
                        },
                    },
                )

            if created:
                created_count += 1
                logger.warning("SLA %s: %s", level, alert.message)

    return created_count
