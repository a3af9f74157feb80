# laundry_core/tests/test_pricing.py
from decimal import Decimal

import pytest

from laundry_core.pricing import estimate_price, infer_priority, quote_price
from laundry_core.services.billing import split_tax


def test_estimate_is_weight_times_price():
    assert estimate_price("3.5", "6.00") == Decimal("21.00")
    assert estimate_price(Decimal("2.333"), Decimal("5")) == Decimal("11.67")


def test_estimate_rejects_bad_input():
    with pytest.raises(ValueError):
        estimate_price(0, 5)
    with pytest.raises(ValueError):
        estimate_price("abc", 5)
    with pytest.raises(ValueError):
        estimate_price(1, -1)


def test_quote_with_surcharges():
    quote = quote_price(Decimal("2"), Decimal("5.00"))
    assert quote.base == Decimal("10.00")
    assert quote.total == Decimal("10.00")

    urgent = quote_price(Decimal("2"), Decimal("5.00"), is_urgent=True)
    assert urgent.total == Decimal("15.00")
    assert urgent.breakdown["urgent_factor"] == "1.5"

    both = quote_price(Decimal("2"), Decimal("5.00"), is_urgent=True, has_stains=True)
    assert both.total == Decimal("18.00")


def test_quote_defaults_price_per_kg():
    assert quote_price(1).price_per_kg == Decimal("5.00")


@pytest.mark.parametrize(
    "text,expected",
    [
        ("Urgente, el huésped viaja mañana", "ALTA"),
        ("Necesita entrega RÁPIDO", "ALTA"),
        ("ropa de seda, delicada", "MEDIA"),
        ("camisas y pantalones", "NORMAL"),
        ("", "NORMAL"),
        # whole words only: "ya" inside "playa" is not urgent
        ("toallas de playa", "NORMAL"),
    ],
)
def test_infer_priority(text, expected):
    assert infer_priority(text) == expected


def test_split_tax_is_tax_inclusive():
    subtotal, tax = split_tax(Decimal("118.00"), "PAYMENT", rate=Decimal("0.18"))
    assert subtotal == Decimal("100.00")
    assert tax == Decimal("18.00")

    subtotal, tax = split_tax(Decimal("50.00"), "EXPENSE")
    assert subtotal == Decimal("50.00")
    assert tax == Decimal("0.00")
