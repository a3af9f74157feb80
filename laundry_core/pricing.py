# laundry_core/pricing.py
from __future__ import annotations

import re
import unicodedata
from dataclasses import dataclass, field
from decimal import Decimal, ROUND_HALF_UP, InvalidOperation
from typing import Dict, Optional

CENTS = Decimal("0.01")

DEFAULT_PRICE_PER_KG = Decimal("5.00")
URGENT_SURCHARGE = Decimal("1.5")
STAINS_SURCHARGE = Decimal("1.2")


@dataclass(frozen=True)
class PriceQuote:
    weight: Decimal
    price_per_kg: Decimal
    base: Decimal
    total: Decimal
    breakdown: Dict[str, str] = field(default_factory=dict)


def money(value) -> Decimal:
    return Decimal(value).quantize(CENTS, rounding=ROUND_HALF_UP)


def _decimal(value, name: str) -> Decimal:
    try:
        return Decimal(str(value))
    except (InvalidOperation, TypeError, ValueError):
        raise ValueError(f"{name} must be a number.")


def estimate_price(weight, price_per_kg) -> Decimal:
    """Pickup estimate: weight x hotel price per kg."""
    w = _decimal(weight, "weight")
    p = _decimal(price_per_kg, "price_per_kg")
    if w <= 0:
        raise ValueError("weight must be greater than zero.")
    if p < 0:
        raise ValueError("price_per_kg cannot be negative.")
    return money(w * p)


def quote_price(
    weight,
    price_per_kg=None,
    is_urgent: bool = False,
    has_stains: bool = False,
    urgent_factor: Optional[Decimal] = None,
    stains_factor: Optional[Decimal] = None,
) -> PriceQuote:
    """
    Price quote with optional surcharges applied on top of the base price.
    """
    per_kg = _decimal(price_per_kg if price_per_kg not in (None, "") else DEFAULT_PRICE_PER_KG, "price_per_kg")
    base = estimate_price(weight, per_kg)

    total = base
    breakdown = {"base": str(base)}
    if is_urgent:
        factor = urgent_factor or URGENT_SURCHARGE
        total = total * factor
        breakdown["urgent_factor"] = str(factor)
    if has_stains:
        factor = stains_factor or STAINS_SURCHARGE
        total = total * factor
        breakdown["stains_factor"] = str(factor)

    return PriceQuote(
        weight=_decimal(weight, "weight"),
        price_per_kg=per_kg,
        base=base,
        total=money(total),
        breakdown=breakdown,
    )


# ===============================================================
# Priority inference from pickup observations
# ===============================================================

URGENT_KEYWORDS = (
    "urgente", "evento", "prisa", "importante", "vip", "emergencia", "asap",
    "inmediato", "ya", "hoy", "rapido", "express", "boda", "matrimonio",
    "conferencia", "reunion", "viaje", "checkout", "check-out", "salida",
    "vuelo", "aeropuerto",
)

DELICATE_KEYWORDS = (
    "delicada", "especial", "cuidado", "fragil", "costosa", "exclusiva",
    "premium", "fina", "seda", "cashmere", "lana",
)


def _fold(text: str) -> str:
    # "rápido" and "rapido" match the same keyword
    decomposed = unicodedata.normalize("NFKD", text or "")
    return "".join(c for c in decomposed if not unicodedata.combining(c)).lower()


def _mentions(text: str, keywords) -> bool:
    for kw in keywords:
        if re.search(rf"(?<![\w-]){re.escape(kw)}(?![\w-])", text):
            return True
    return False


def infer_priority(observations: str) -> str:
    """
    ALTA for urgent wording, MEDIA for delicate garments, NORMAL otherwise.
    """
    text = _fold(observations)
    if not text.strip():
        return "NORMAL"
    if _mentions(text, URGENT_KEYWORDS):
        return "ALTA"
    if _mentions(text, DELICATE_KEYWORDS):
        return "MEDIA"
    return "NORMAL"
