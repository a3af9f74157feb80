# laundry_core/workflows/executor.py

from __future__ import annotations

import logging

from django.db import transaction
from django.utils import timezone

from rest_framework.exceptions import PermissionDenied, ValidationError

from laundry_core.models import BagLabel, ServiceAlert, ServiceTransition
from laundry_core.permissions import assert_zone_access, resolve_role
from laundry_core.workflows import (
    STATUS_TIMESTAMP_FIELDS,
    allowed_next_states,
    normalize_kind,
    normalize_state,
    required_roles,
    validate_transition,
)
from laundry_core.workflows.requirements import missing_requirements

logger = logging.getLogger(__name__)


def hotel_for(instance):
    if hasattr(instance, "service_id") and not hasattr(instance, "hotel_id"):
        return instance.service.hotel
    return instance.hotel


def _resolve_open_sla_alerts(*, kind: str, object_id: int, state: str) -> int:
    kind = normalize_kind(kind)
    state = normalize_state(state)
    if not kind or not state:
        return 0

    now = timezone.now()

    qs = ServiceAlert.objects.filter(
        kind=kind,
        object_id=object_id,
        state=state,
        resolved_at__isnull=True,
    )

    updated = 0
    for alert in qs.iterator():
        alert.resolved_at = now
        if alert.triggered_at:
            delta = now - alert.triggered_at
            alert.duration_seconds = max(0, int(delta.total_seconds()))
        else:
            alert.duration_seconds = 0
        alert.save(update_fields=["resolved_at", "duration_seconds"])
        updated += 1

    return updated


def _build_updates(*, instance, kind: str, current: str, target: str, comment: str, now) -> dict:
    updates = {"status": target, "updated_at": now}

    stamp = STATUS_TIMESTAMP_FIELDS.get(kind, {}).get(target)
    if stamp:
        updates[stamp] = now

    if kind == "service":
        if target == "COMPLETED" and instance.final_price is None:
            updates["final_price"] = instance.estimated_price

        note = (comment or "").strip()
        if note:
            line = f"[{timezone.localtime(now):%Y-%m-%d %H:%M}] {current} -> {target}: {note}"
            existing = (instance.internal_notes or "").rstrip()
            updates["internal_notes"] = f"{existing}\n{line}" if existing else line

    return updates


def _apply_side_effects(*, instance, kind: str, target: str) -> None:
    # Delivered bags release their labels
    if kind == "delivery" and target == "COMPLETED":
        BagLabel.objects.filter(
            service_id=instance.service_id,
            bag_number__in=list(instance.bags or []),
            status__in=["ASSIGNED", "IN_USE"],
        ).update(status="DELIVERED", updated_at=timezone.now())


def execute_transition(*, instance, kind: str, new_status: str, user, comment: str = ""):
    """
    Authoritative status change for services and delivery sub-services.

    Order of checks: terminal lock, legality, role and zone, status
    requirements. The status update, timeline row and SLA alert
    resolution are committed together.
    """
    kind = normalize_kind(kind)
    current = normalize_state(getattr(instance, "status", None) or "")
    target = normalize_state(new_status)

    # 1) Terminal state lock
    if not allowed_next_states(kind, current):
        raise ValidationError(
            {"status": f"{kind.capitalize()} is in terminal state '{current}' and cannot be modified."}
        )

    # 2) Validate transition legality (must be field-shaped)
    try:
        validate_transition(kind=kind, old=current, new=target)
    except ValueError as e:
        raise ValidationError({"status": str(e)})

    # 3) Role enforcement (zone-scoped for repartidores)
    role = resolve_role(user)
    required = set(required_roles(kind, current, target))
    if role not in required:
        raise PermissionDenied(
            "You do not have the required role to transition "
            f"{kind} from {current} to {target}."
        )
    hotel = hotel_for(instance)
    assert_zone_access(user, hotel)

    # 4) Status requirements
    missing = missing_requirements(kind, instance, target)
    if missing:
        raise ValidationError(
            {"status": f"Missing required information for {target}: {', '.join(missing)}"}
        )

    # 5) Apply transition + timeline atomically
    now = timezone.now()
    updates = _build_updates(
        instance=instance, kind=kind, current=current, target=target, comment=comment, now=now
    )

    with transaction.atomic():
        instance.__class__.objects.filter(pk=instance.pk).update(**updates)

        record = ServiceTransition.objects.create(
            kind=kind,
            object_id=instance.pk,
            from_status=current,
            to_status=target,
            performed_by=user if getattr(user, "is_authenticated", False) else None,
            role=role,
            comment=comment or "",
            hotel=hotel,
        )

        _resolve_open_sla_alerts(kind=kind, object_id=instance.pk, state=current)
        _apply_side_effects(instance=instance, kind=kind, target=target)

    instance.refresh_from_db()

    logger.info(
        "%s %s: %s -> %s by %s (%s)",
        kind,
        instance.pk,
        current,
        target,
        getattr(user, "username", "system"),
        role,
    )
    return record
