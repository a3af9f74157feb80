# laundry_core/workflows/bag_accounting.py

"""
Bag-level accounting for partial deliveries.

Bags of a service are numbered 1..bag_count. Each delivery sub-service
releases a set of those numbers; a bag may belong to at most one delivery.

PURE LOGIC: no Django imports. Errors are raised as ValueError and
translated to API errors by the callers.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, List, Optional, Set


@dataclass(frozen=True)
class ReleasePlan:
    bags: List[int]
    released: List[int]
    remaining: List[int]
    percentage: int
    is_complete: bool = field(default=False)


def bag_numbers(bag_count: int) -> List[int]:
    return list(range(1, max(int(bag_count or 0), 0) + 1))


def _as_bag_number(value) -> int:
    if isinstance(value, bool):
        raise ValueError(f"Invalid bag number: {value!r}")
    if isinstance(value, int):
        return value
    raw = str(value).strip()
    if not raw.isdigit():
        raise ValueError(f"Invalid bag number: {value!r}")
    return int(raw)


def normalize_bags(bags: Iterable, bag_count: int) -> List[int]:
    """
    Sorted, de-duplicated bag numbers. Rejects anything outside 1..bag_count.
    """
    out: Set[int] = set()
    for raw in bags or []:
        n = _as_bag_number(raw)
        if n < 1 or n > bag_count:
            raise ValueError(f"Bag {n} is out of range (1..{bag_count}).")
        out.add(n)
    return sorted(out)


def released_union(groups: Iterable[Iterable]) -> Set[int]:
    out: Set[int] = set()
    for group in groups:
        for raw in group or []:
            out.add(_as_bag_number(raw))
    return out


def remaining_bags(bag_count: int, released: Iterable[int]) -> List[int]:
    taken = set(released or [])
    return [n for n in bag_numbers(bag_count) if n not in taken]


def delivery_percentage(count: int, bag_count: int) -> int:
    """
    Whole-number percentage, halves rounded up (2 of 3 bags -> 67).
    """
    if not bag_count or bag_count <= 0:
        return 0
    pct = (Decimal(count) * 100 / Decimal(bag_count)).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    return int(pct)


def default_partial_count(bag_count: int) -> int:
    return math.ceil(max(bag_count, 0) / 2)


def select_first_remaining(bag_count: int, released: Iterable[int], count: int) -> List[int]:
    remaining = remaining_bags(bag_count, released)
    if count < 1:
        raise ValueError("At least one bag must be selected.")
    if count > len(remaining):
        raise ValueError(
            f"Only {len(remaining)} bag(s) remain; cannot release {count}."
        )
    return remaining[:count]


def plan_release(
    bag_count: int,
    released: Iterable[int],
    bags: Optional[Iterable] = None,
    count: Optional[int] = None,
    complete: bool = False,
) -> ReleasePlan:
    """
    Decide which bags a new delivery sub-service carries.

    Exactly one selector is used, in order: complete (all remaining),
    explicit bag numbers, or the first `count` remaining bags.
    """
    if not bag_count or bag_count <= 0:
        raise ValueError("Service has no bags registered.")

    already = set(released or [])
    open_bags = remaining_bags(bag_count, already)
    if not open_bags:
        raise ValueError("All bags have already been released for delivery.")

    if complete:
        selection = open_bags
    elif bags is not None:
        selection = normalize_bags(bags, bag_count)
        clash = sorted(already.intersection(selection))
        if clash:
            raise ValueError(
                "Bag(s) already released in another delivery: "
                + ", ".join(str(n) for n in clash)
            )
    elif count is not None:
        selection = select_first_remaining(bag_count, already, int(count))
    else:
        raise ValueError("Provide bags, count or complete.")

    if not selection:
        raise ValueError("At least one bag must be selected.")

    new_released = sorted(already.union(selection))
    left = remaining_bags(bag_count, new_released)

    return ReleasePlan(
        bags=list(selection),
        released=new_released,
        remaining=left,
        percentage=delivery_percentage(len(new_released), bag_count),
        is_complete=not left,
    )


__all__ = [
    "ReleasePlan",
    "bag_numbers",
    "normalize_bags",
    "released_union",
    "remaining_bags",
    "delivery_percentage",
    "default_partial_count",
    "select_first_remaining",
    "plan_release",
]
