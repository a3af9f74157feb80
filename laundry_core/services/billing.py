# laundry_core/services/billing.py
from __future__ import annotations

import logging
from decimal import Decimal
from typing import Any, Dict, Optional, Tuple

from django.conf import settings
from django.db import transaction
from django.db.models import F, Sum
from django.utils import timezone

from laundry_core.models import Guest, Hotel, Service, Transaction
from laundry_core.pricing import money

logger = logging.getLogger(__name__)

ZERO = Decimal("0.00")

# Effect of each transaction type on the hotel balance
BALANCE_DIRECTION: Dict[str, int] = {
    "PAYMENT": -1,
    "REFUND": 1,
    "EXPENSE": -1,
}


def tax_rate() -> Decimal:
    return Decimal(str(getattr(settings, "LAUNDRY_TAX_RATE", "0.18")))


def split_tax(amount: Decimal, tx_type: str, rate: Optional[Decimal] = None) -> Tuple[Decimal, Decimal]:
    """
    (subtotal, tax) for a tax-inclusive amount. Expenses carry no tax.
    """
    amount = money(amount)
    if tx_type == "EXPENSE":
        return amount, ZERO
    r = tax_rate() if rate is None else Decimal(str(rate))
    subtotal = money(amount / (1 + r))
    return subtotal, money(amount - subtotal)


def record_transaction(
    *,
    hotel: Hotel,
    tx_type: str,
    amount: Decimal,
    user=None,
    service: Optional[Service] = None,
    payment_method: str = "CASH",
    notes: str = "",
    receipt_number: str = "",
) -> Transaction:
    """
    Create a completed transaction and move the hotel balance with it.
    """
    if tx_type not in BALANCE_DIRECTION:
        raise ValueError(f"Unknown transaction type: {tx_type}")
    amount = money(amount)
    if amount <= 0:
        raise ValueError("amount must be greater than zero.")
    if service is not None and service.hotel_id != hotel.pk:
        raise ValueError("Service does not belong to this hotel.")

    subtotal, tax = split_tax(amount, tx_type)

    with transaction.atomic():
        tx = Transaction.objects.create(
            type=tx_type,
            amount=amount,
            subtotal=subtotal,
            tax=tax,
            hotel=hotel,
            service=service,
            payment_method=payment_method,
            notes=notes or "",
            receipt_number=receipt_number or "",
            status="COMPLETED",
            created_by=user if getattr(user, "is_authenticated", False) else None,
        )
        Hotel.objects.filter(pk=hotel.pk).update(
            balance=F("balance") + BALANCE_DIRECTION[tx_type] * amount,
            updated_at=timezone.now(),
        )

    logger.info("Transaction %s: %s %s for hotel %s", tx.pk, tx_type, amount, hotel.pk)
    return tx


def transaction_totals(qs) -> Dict[str, Any]:
    # Clear ordering so GROUP BY is on type only
    rows = qs.order_by().filter(status="COMPLETED").values("type").annotate(total=Sum("amount"))
    sums = {row["type"]: row["total"] or ZERO for row in rows}
    payments = money(sums.get("PAYMENT", ZERO))
    refunds = money(sums.get("REFUND", ZERO))
    expenses = money(sums.get("EXPENSE", ZERO))
    return {
        "payments": payments,
        "refunds": refunds,
        "expenses": expenses,
        "net": money(payments - refunds),
        "count": qs.count(),
    }


def guest_checkout_report(guest: Guest) -> Dict[str, Any]:
    """
    Charges for a guest's non-cancelled services against what was paid.

    Sets the guest's check-out date to today when it is missing.
    """
    services = list(guest.services.exclude(status="CANCELLED").order_by("created_at", "id"))

    lines = []
    charges = ZERO
    for svc in services:
        price = svc.final_price if svc.final_price is not None else (svc.estimated_price or ZERO)
        charges += price
        lines.append(
            {
                "id": svc.pk,
                "status": svc.status,
                "bag_count": svc.bag_count,
                "weight": str(svc.weight) if svc.weight is not None else None,
                "amount": str(money(price)),
                "created_at": svc.created_at,
            }
        )

    totals = transaction_totals(Transaction.objects.filter(service__guest=guest))
    balance = money(charges - totals["payments"] + totals["refunds"])

    if guest.check_out_date is None:
        guest.check_out_date = timezone.localdate()
        guest.save(update_fields=["check_out_date", "updated_at"])

    return {
        "guest": {
            "id": guest.pk,
            "name": guest.name,
            "room_number": guest.room_number,
            "hotel": guest.hotel_id,
            "check_in_date": guest.check_in_date,
            "check_out_date": guest.check_out_date,
        },
        "services": lines,
        "pending_services": [ln["id"] for ln in lines if ln["status"] != "COMPLETED"],
        "charges": str(money(charges)),
        "payments": str(totals["payments"]),
        "refunds": str(totals["refunds"]),
        "balance": str(balance),
    }
