# laundry_core/workflows/requirements.py
from __future__ import annotations

from typing import List, Set

from laundry_core.workflows import normalize_kind, normalize_state
from laundry_core.workflows.bag_accounting import bag_numbers, released_union, remaining_bags


def released_bags(service) -> Set[int]:
    """Bags already handed to any delivery sub-service of `service`."""
    return released_union(service.deliveries.values_list("bags", flat=True))


def delivered_bags(service) -> Set[int]:
    """Bags whose delivery sub-service has been completed."""
    return released_union(
        service.deliveries.filter(status="COMPLETED").values_list("bags", flat=True)
    )


def labeled_bags(service) -> Set[int]:
    return set(
        service.bag_labels.exclude(status__in=["DAMAGED", "LOST"])
        .exclude(bag_number__isnull=True)
        .values_list("bag_number", flat=True)
    )


def _service_missing(service, target: str) -> List[str]:
    missing: List[str] = []

    if target == "PICKED_UP":
        if not service.weight or service.weight <= 0:
            missing.append("weight")
        if not service.bag_count:
            missing.append("bag_count")
        if not (service.collector_name or "").strip():
            missing.append("collector_name")
        if not (service.pickup_signature or "").strip():
            missing.append("pickup_signature")

    elif target == "LABELED":
        unlabeled = set(bag_numbers(service.bag_count)) - labeled_bags(service)
        if not service.bag_count or unlabeled:
            missing.append("bag_labels")

    elif target == "PARTIAL_DELIVERY":
        released = released_bags(service)
        if not released:
            missing.append("released_bags")
        if not remaining_bags(service.bag_count, released):
            missing.append("remaining_bags")

    elif target == "COMPLETED":
        if not service.bag_count or remaining_bags(service.bag_count, released_bags(service)):
            missing.append("all_bags_released")

    return missing


def _delivery_missing(delivery, target: str) -> List[str]:
    missing: List[str] = []
    if target == "COMPLETED":
        if not (delivery.receiver_name or "").strip():
            missing.append("receiver_name")
        if not (delivery.signature or "").strip():
            missing.append("signature")
    return missing


def missing_requirements(kind: str, instance, target: str) -> List[str]:
    """
    Names of the requirements `instance` does not meet for entering `target`.
    Empty list means the transition may proceed.
    """
    k = normalize_kind(kind)
    tgt = normalize_state(target)
    if k == "service":
        return _service_missing(instance, tgt)
    if k == "delivery":
        return _delivery_missing(instance, tgt)
    return []
