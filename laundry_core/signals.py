# laundry_core/signals.py
from __future__ import annotations

import logging
from threading import local

from django.conf import settings
from django.core.mail import send_mail
from django.db.models.signals import post_save
from django.dispatch import receiver

from laundry_core.models import AuditLog, ServiceTransition, Transaction

logger = logging.getLogger(__name__)

# ===============================================================
# Thread-local user storage
# ===============================================================
_state = local()


def set_current_user(user):
    _state.user = user


def get_current_user():
    return getattr(_state, "user", None)


def _safe_username(user) -> str:
    if not user:
        return "system"
    try:
        return user.get_username()
    except Exception:
        return getattr(user, "username", "user")


# ===============================================================
# Ledger audit
# ===============================================================
@receiver(post_save, sender=Transaction)
def audit_transaction(sender, instance: Transaction, created: bool, **kwargs):
    if not created:
        return

    user = instance.created_by or get_current_user()
    AuditLog.objects.create(
        user=user if user and user.is_authenticated else None,
        hotel_id=instance.hotel_id,
        action=f"TRANSACTION {instance.type} {instance.amount}",
        details={
            "transaction_id": instance.pk,
            "type": instance.type,
            "amount": str(instance.amount),
            "service_id": instance.service_id,
            "payment_method": instance.payment_method,
        },
    )


# ===============================================================
# Workflow transitions
# ===============================================================
@receiver(post_save, sender=ServiceTransition)
def audit_service_transition(sender, instance: ServiceTransition, created: bool, **kwargs):
    """
    Side effects of a status change:
    - audit log entry
    - optional email notification
    """
    if not created:
        return

    AuditLog.objects.create(
        user=instance.performed_by,
        hotel=instance.hotel,
        action=(
            f"WORKFLOW {instance.kind.upper()} {instance.object_id}: "
            f"{instance.from_status} -> {instance.to_status}"
        ),
        details={
            "kind": instance.kind,
            "object_id": instance.object_id,
            "from": instance.from_status,
            "to": instance.to_status,
            "role": instance.role,
        },
    )

    if not getattr(settings, "WORKFLOW_EMAIL_NOTIFICATIONS", False):
        return

    recipients = getattr(settings, "WORKFLOW_NOTIFY_EMAILS", None)
    if not recipients:
        return

    subject = (
        f"[Fumy Laundry] {instance.kind.upper()} {instance.object_id} "
        f"{instance.from_status} -> {instance.to_status}"
    )

    body = "\n".join(
        [
            "Status change recorded.",
            "",
            f"Kind: {instance.kind}",
            f"Object ID: {instance.object_id}",
            f"Hotel: {instance.hotel}",
            f"From: {instance.from_status}",
            f"To: {instance.to_status}",
            f"By: {_safe_username(instance.performed_by)}",
            f"At: {instance.created_at}",
        ]
    )

    try:
        send_mail(
            subject=subject,
            message=body,
            from_email=getattr(settings, "DEFAULT_FROM_EMAIL", None),
            recipient_list=list(recipients),
            fail_silently=False,
        )
    except Exception:
        logger.exception("Status change email failed for %s", instance)
