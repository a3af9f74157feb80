# laundry_core/services/workflow_service.py
from __future__ import annotations

import logging
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Optional

from django.conf import settings
from django.db import transaction
from django.utils import timezone

from rest_framework.exceptions import ValidationError

from laundry_core.models import BagLabel, Delivery, Hotel, Service
from laundry_core.permissions import assert_zone_access, require_role, resolve_role, resolve_zone
from laundry_core.pricing import estimate_price
from laundry_core.services.labels import create_label_batch
from laundry_core.workflows import DELIVERY_DECISION_STATES
from laundry_core.workflows.bag_accounting import (
    bag_numbers,
    delivery_percentage,
    plan_release,
    remaining_bags,
)
from laundry_core.workflows.executor import execute_transition
from laundry_core.workflows.requirements import (
    delivered_bags,
    labeled_bags,
    released_bags,
)

logger = logging.getLogger(__name__)

PICKUP_STATES = {"PENDING_PICKUP", "ASSIGNED_TO_ROUTE"}


def _require_status(service: Service, allowed: Iterable[str], action: str) -> None:
    if service.status not in set(allowed):
        raise ValidationError(
            {"status": f"Cannot {action} a service in status {service.status}."}
        )


# ===============================================================
# Pickup
# ===============================================================

def register_pickup(
    *,
    service: Service,
    user,
    weight: Decimal,
    bag_count: int,
    collector_name: str,
    signature: str,
    observations: Optional[str] = None,
) -> Service:
    """
    Record the pickup at the hotel and move the service to PICKED_UP.

    Estimated price is weight x hotel price per kg. The hotel's clean bag
    inventory is reduced by the bags picked up, never below zero.
    """
    _require_status(service, PICKUP_STATES, "register pickup for")
    assert_zone_access(user, service.hotel)

    with transaction.atomic():
        hotel = Hotel.objects.select_for_update().get(pk=service.hotel_id)
        per_kg = hotel.price_per_kg
        if per_kg is None:
            per_kg = getattr(settings, "LAUNDRY_DEFAULT_PRICE_PER_KG", Decimal("5.00"))

        try:
            estimated = estimate_price(weight, per_kg)
        except ValueError as e:
            raise ValidationError({"weight": str(e)})

        if hotel.bag_inventory < bag_count:
            logger.warning(
                "Hotel %s bag inventory (%s) lower than bags picked up (%s); clamping to 0",
                hotel.pk,
                hotel.bag_inventory,
                bag_count,
            )
        hotel.bag_inventory = max(0, hotel.bag_inventory - bag_count)
        hotel.save(update_fields=["bag_inventory", "updated_at"])

        service.weight = weight
        service.bag_count = bag_count
        service.collector_name = collector_name
        service.pickup_signature = signature
        service.estimated_price = estimated
        if observations is not None:
            service.observations = observations
        if service.repartidor_id is None and resolve_role(user) == "REPARTIDOR":
            service.repartidor = user
        service.save(
            update_fields=[
                "weight",
                "bag_count",
                "collector_name",
                "pickup_signature",
                "estimated_price",
                "observations",
                "repartidor",
                "updated_at",
            ]
        )

        execute_transition(
            instance=service,
            kind="service",
            new_status="PICKED_UP",
            user=user,
            comment=f"Pickup: {bag_count} bag(s), {weight} kg",
        )

    return service


# ===============================================================
# Labeling
# ===============================================================

def label_service(
    *,
    service: Service,
    user,
    label_numbers: Optional[List[str]] = None,
) -> List[BagLabel]:
    """
    Put one IN_USE label on every bag of a picked-up service, then move it
    to LABELED.

    Explicit label numbers are matched to bags in order and must be unused
    labels of the same hotel. Bags without a label get a new one.
    """
    _require_status(service, {"PICKED_UP"}, "label")
    if not service.bag_count:
        raise ValidationError({"bag_count": "Service has no bags to label."})

    numbers = [str(n).strip() for n in (label_numbers or []) if str(n).strip()]
    if len(numbers) > service.bag_count:
        raise ValidationError(
            {"label_numbers": f"Service has {service.bag_count} bag(s); got {len(numbers)} labels."}
        )
    if len(set(numbers)) != len(numbers):
        raise ValidationError({"label_numbers": "Label numbers must be unique."})

    with transaction.atomic():
        existing = {
            lbl.bag_number: lbl
            for lbl in BagLabel.objects.select_for_update().filter(
                service=service, bag_number__isnull=False
            ).exclude(status__in=["DAMAGED", "LOST"])
        }

        supplied = iter(numbers)
        result: List[BagLabel] = []
        for bag in bag_numbers(service.bag_count):
            label = existing.get(bag)
            if label is None:
                number = next(supplied, None)
                if number is not None:
                    label = _claim_label(service, number)
                else:
                    label = create_label_batch(
                        hotel=service.hotel,
                        quantity=1,
                        user=user,
                        service=service,
                        generated_at="LAVANDERIA",
                    )[0]
            label.service = service
            label.bag_number = bag
            label.status = "IN_USE"
            label.save(update_fields=["service", "bag_number", "status", "updated_at"])
            result.append(label)

        execute_transition(
            instance=service,
            kind="service",
            new_status="LABELED",
            user=user,
            comment=f"{len(result)} bag label(s) applied",
        )

    return result


def _claim_label(service: Service, number: str) -> BagLabel:
    label = BagLabel.objects.select_for_update().filter(label_number=number).first()
    if label is None:
        raise ValidationError({"label_numbers": f"Label {number} does not exist."})
    if label.hotel_id != service.hotel_id:
        raise ValidationError({"label_numbers": f"Label {number} belongs to another hotel."})
    if label.status not in {"AVAILABLE", "ASSIGNED"}:
        raise ValidationError({"label_numbers": f"Label {number} is {label.status}."})
    if label.service_id not in (None, service.pk):
        raise ValidationError({"label_numbers": f"Label {number} is assigned to another service."})
    return label


# ===============================================================
# Delivery decision (partial / complete)
# ===============================================================

def decide_delivery(
    *,
    service: Service,
    user,
    bags: Optional[Iterable] = None,
    count: Optional[int] = None,
    complete: bool = False,
    observations: str = "",
) -> Delivery:
    """
    Release bags of an in-process service into a new delivery sub-service.

    The service moves to COMPLETED once no bag remains, otherwise to
    PARTIAL_DELIVERY. A further partial release while already in
    PARTIAL_DELIVERY keeps the status.
    """
    require_role(user, {"ADMIN"}, "Only administrators can decide deliveries.")
    _require_status(service, DELIVERY_DECISION_STATES, "release bags for")

    with transaction.atomic():
        locked = Service.objects.select_for_update().get(pk=service.pk)
        already = released_bags(locked)

        try:
            plan = plan_release(
                locked.bag_count,
                already,
                bags=bags,
                count=count,
                complete=complete,
            )
        except ValueError as e:
            raise ValidationError({"bags": str(e)})

        delivery = Delivery.objects.create(
            service=locked,
            bags=plan.bags,
            repartidor=locked.repartidor,
            observations=observations or "",
            created_by=user if getattr(user, "is_authenticated", False) else None,
        )

        Service.objects.filter(pk=locked.pk).update(
            partial_delivery_percentage=plan.percentage,
            updated_at=timezone.now(),
        )
        locked.refresh_from_db()

        target = "COMPLETED" if plan.is_complete else "PARTIAL_DELIVERY"
        if locked.status != target:
            execute_transition(
                instance=locked,
                kind="service",
                new_status=target,
                user=user,
                comment=(
                    f"Delivery {delivery.pk}: bags {', '.join(str(b) for b in plan.bags)} "
                    f"({plan.percentage}% released)"
                ),
            )

    service.refresh_from_db()
    logger.info(
        "Service %s released bags %s (remaining %s)",
        service.pk,
        plan.bags,
        plan.remaining,
    )
    return delivery


# ===============================================================
# Delivery sub-service lifecycle
# ===============================================================

def _check_assignee(delivery: Delivery, repartidor) -> None:
    if resolve_role(repartidor) != "REPARTIDOR":
        raise ValidationError({"repartidor": "Deliveries can only be assigned to an active repartidor."})
    hotel = delivery.service.hotel
    if resolve_zone(repartidor) != hotel.zone:
        raise ValidationError(
            {"repartidor": f"Repartidor does not cover zone {hotel.zone} of hotel {hotel.name}."}
        )


def assign_delivery(*, delivery: Delivery, user, repartidor=None) -> Delivery:
    role = resolve_role(user)
    if repartidor is None and role == "REPARTIDOR":
        repartidor = user
    elif repartidor is not None and role in {"ADMIN", "REPARTIDOR"}:
        # Callers without a workflow role are refused by the executor
        _check_assignee(delivery, repartidor)

    with transaction.atomic():
        if repartidor is not None:
            Delivery.objects.filter(pk=delivery.pk).update(repartidor=repartidor)
            delivery.repartidor = repartidor

        execute_transition(
            instance=delivery,
            kind="delivery",
            new_status="ASSIGNED_TO_ROUTE",
            user=user,
        )
    return delivery


def complete_delivery(
    *,
    delivery: Delivery,
    user,
    receiver_name: str,
    signature: str,
    receiver_document: str = "",
    observations: str = "",
) -> Delivery:
    """
    Hand the bags to the hotel. Labels of the delivered bags become DELIVERED.
    """
    with transaction.atomic():
        delivery.receiver_name = receiver_name
        delivery.receiver_document = receiver_document or ""
        delivery.signature = signature
        if observations:
            delivery.observations = observations
        delivery.save(
            update_fields=[
                "receiver_name",
                "receiver_document",
                "signature",
                "observations",
                "updated_at",
            ]
        )

        execute_transition(
            instance=delivery,
            kind="delivery",
            new_status="COMPLETED",
            user=user,
        )

    return delivery


# ===============================================================
# Read models
# ===============================================================

def bag_summary(service: Service) -> Dict[str, Any]:
    released = released_bags(service)
    delivered = delivered_bags(service)
    return {
        "service": service.pk,
        "status": service.status,
        "bag_count": service.bag_count,
        "bags": bag_numbers(service.bag_count),
        "labeled": sorted(labeled_bags(service)),
        "released": sorted(released),
        "delivered": sorted(delivered),
        "remaining": remaining_bags(service.bag_count, released),
        "released_percentage": delivery_percentage(len(released), service.bag_count),
        "delivered_percentage": delivery_percentage(len(delivered), service.bag_count),
        "deliveries": [
            {
                "id": d.pk,
                "status": d.status,
                "bags": list(d.bags or []),
                "repartidor": d.repartidor_id,
                "delivered_at": d.delivered_at,
            }
            for d in service.deliveries.order_by("created_at", "id")
        ],
    }


def adjust_inventory(*, hotel: Hotel, bag_inventory: Optional[int] = None, delta: Optional[int] = None) -> Hotel:
    """
    Set (absolute) or shift (delta) a hotel's clean bag inventory.
    """
    with transaction.atomic():
        locked = Hotel.objects.select_for_update().get(pk=hotel.pk)
        if bag_inventory is not None:
            new_value = int(bag_inventory)
        elif delta is not None:
            new_value = locked.bag_inventory + int(delta)
        else:
            raise ValidationError({"bag_inventory": "Provide bag_inventory or delta."})

        if new_value < 0:
            raise ValidationError({"bag_inventory": "Inventory cannot be negative."})

        Hotel.objects.filter(pk=locked.pk).update(bag_inventory=new_value, updated_at=timezone.now())

    hotel.refresh_from_db()
    return hotel


__all__ = [
    "register_pickup",
    "label_service",
    "decide_delivery",
    "assign_delivery",
    "complete_delivery",
    "bag_summary",
    "adjust_inventory",
]
