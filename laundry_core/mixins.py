# laundry_core/mixins.py
from __future__ import annotations

import logging

from django.core.exceptions import FieldDoesNotExist
from django.db.models import QuerySet
from rest_framework.exceptions import ValidationError

from .permissions import resolve_role, resolve_zone

logger = logging.getLogger(__name__)


# ===============================================================
# Utilities
# ===============================================================

def _model_has_field(model_cls, field_name: str) -> bool:
    try:
        model_cls._meta.get_field(field_name)
        return True
    except FieldDoesNotExist:
        return False


def _deny_if_payload_has(request, fields: list[str], message: str):
    """
    Reject requests that attempt to mutate server-controlled fields.
    Makes violations noisy and testable.
    """
    incoming = getattr(request, "data", {}) or {}
    present = [f for f in fields if f in incoming]
    if present:
        raise ValidationError({f: message for f in present})


def _hotel_of(instance):
    if instance is None:
        return None
    if _model_has_field(instance.__class__, "hotel"):
        return getattr(instance, "hotel_id", None)
    if instance.__class__.__name__ == "Hotel":
        return instance.pk
    return None


# ===============================================================
# Zone-scoped queryset mixin (READ)
# ===============================================================

class ZoneScopedQuerysetMixin:
    """
    Repartidores only see objects of hotels in their zone.

    zone_lookup is the ORM path from the view's model to Hotel.zone.
    """

    zone_lookup = "hotel__zone"

    def get_scoped_queryset(self, base_qs: QuerySet) -> QuerySet:
        user = getattr(self.request, "user", None)
        if not user or not user.is_authenticated:
            return base_qs.none()

        if resolve_role(user) != "REPARTIDOR":
            return base_qs

        zone = resolve_zone(user)
        if not zone:
            return base_qs.none()

        return base_qs.filter(**{self.zone_lookup: zone})


# ===============================================================
# Audit logging
# ===============================================================

class AuditLogMixin:
    """
    Emits CREATE / UPDATE / DELETE audit records.
    Never breaks the request if logging fails.
    """

    def _log(self, user, action, details=None, hotel_id=None):
        try:
            from .models import AuditLog

            AuditLog.objects.create(
                user=user if user and user.is_authenticated else None,
                action=action,
                details=details or {},
                hotel_id=hotel_id,
            )
        except Exception:
            logger.exception("Audit log write failed for %s", action)

    def perform_create(self, serializer):
        instance = serializer.save()
        self._log(
            self.request.user,
            f"CREATE {instance.__class__.__name__}",
            {"id": instance.pk},
            _hotel_of(instance),
        )
        return instance

    def perform_update(self, serializer):
        instance = serializer.save()
        self._log(
            self.request.user,
            f"UPDATE {instance.__class__.__name__}",
            {"id": instance.pk, "fields": sorted(serializer.validated_data.keys())},
            _hotel_of(instance),
        )
        return instance

    def perform_destroy(self, instance):
        obj_id = instance.pk
        hotel_id = _hotel_of(instance)
        name = instance.__class__.__name__
        super().perform_destroy(instance)
        self._log(
            self.request.user,
            f"DELETE {name}",
            {"id": obj_id},
            None if name == "Hotel" else hotel_id,
        )
