# laundry_core/views_workflow_api.py

from __future__ import annotations

from typing import Dict, Type

from django.shortcuts import get_object_or_404

from rest_framework.views import APIView
from rest_framework.response import Response
from rest_framework.permissions import AllowAny
from rest_framework.exceptions import ValidationError, NotAuthenticated

from laundry_core.models import Delivery, Service, ServiceTransition
from laundry_core.permissions import assert_zone_access, resolve_role
from laundry_core.serializers import ServiceTransitionSerializer
from laundry_core.workflows import allowed_transitions
from laundry_core.workflows.executor import execute_transition, hotel_for


# =============================================================
# Workflow model registry
# =============================================================

KIND_MODEL_MAP: Dict[str, Type] = {
    "service": Service,
    "delivery": Delivery,
}


# =============================================================
# Helpers
# =============================================================

def _normalize_kind(kind: str) -> str:
    kind = (kind or "").strip().lower()
    if kind not in KIND_MODEL_MAP:
        raise ValidationError(
            {"kind": "Invalid workflow kind. Use 'service' or 'delivery'."}
        )
    return kind


def _require_auth(user) -> None:
    """
    Raise DRF's 401/403 instead of a login redirect for anonymous callers.
    """
    if not user or not getattr(user, "is_authenticated", False):
        raise NotAuthenticated("Authentication credentials were not provided.")


def _get_instance(kind: str, pk: int, user):
    """
    Load the object and refuse (403) repartidores outside its hotel zone.
    """
    model = KIND_MODEL_MAP[kind]
    instance = get_object_or_404(model, pk=pk)
    assert_zone_access(user, hotel_for(instance))
    return instance


# =============================================================
# API: Allowed transitions
# =============================================================

class WorkflowAllowedView(APIView):
    """
    GET /api/workflows/<kind>/<pk>/allowed/

    Current state plus the next states the caller's role may move to.
    """
    permission_classes = [AllowAny]

    def get(self, request, kind: str, pk: int):
        _require_auth(request.user)
        kind = _normalize_kind(kind)
        instance = _get_instance(kind, pk, request.user)

        current = getattr(instance, "status", None)
        role = resolve_role(request.user)

        return Response(
            {
                "kind": kind,
                "object_id": instance.pk,
                "current": current,
                "allowed": allowed_transitions(kind, current, role),
                "role": role,
            }
        )


# =============================================================
# API: Execute workflow transition (AUTHORITATIVE)
# =============================================================

class WorkflowTransitionView(APIView):
    """
    POST /api/workflows/<kind>/<pk>/transition/

    Body:
        { "to_status": "IN_PROCESS", "comment": "..." }
        or
        { "status": "IN_PROCESS" }

    The only API entry point that moves a status directly. Pickup,
    labeling and delivery decisions have their own endpoints because
    they record data along with the move.
    """
    permission_classes = [AllowAny]

    def post(self, request, kind: str, pk: int):
        _require_auth(request.user)

        kind = _normalize_kind(kind)
        instance = _get_instance(kind, pk, request.user)

        payload = request.data or {}
        to_status = payload.get("to_status") or payload.get("status")

        if not to_status:
            raise ValidationError({"to_status": "This field is required."})

        record = execute_transition(
            instance=instance,
            kind=kind,
            new_status=str(to_status),
            user=request.user,
            comment=str(payload.get("comment") or ""),
        )

        instance.refresh_from_db()

        return Response(
            {
                "kind": kind,
                "object_id": instance.pk,
                "from": record.from_status,
                "current": instance.status,
            }
        )


# =============================================================
# API: Status timeline
# =============================================================

class WorkflowTimelineView(APIView):
    """
    GET /api/workflows/<kind>/<pk>/timeline/
    """
    permission_classes = [AllowAny]

    def get(self, request, kind: str, pk: int):
        _require_auth(request.user)
        kind = _normalize_kind(kind)
        instance = _get_instance(kind, pk, request.user)

        events = (
            ServiceTransition.objects
            .filter(kind=kind, object_id=instance.pk)
            .select_related("performed_by")
            .order_by("created_at", "id")
        )

        return Response(
            {
                "kind": kind,
                "object_id": instance.pk,
                "current": instance.status,
                "timeline": ServiceTransitionSerializer(events, many=True).data,
            }
        )
