# laundry_core/views.py
from __future__ import annotations

import logging
from decimal import Decimal

from django.conf import settings
from django.db.models import Case, IntegerField, ProtectedError, Q, Value, When
from django.shortcuts import get_object_or_404

from drf_spectacular.utils import extend_schema
from rest_framework import mixins, status, viewsets
from rest_framework.decorators import action
from rest_framework.exceptions import ValidationError
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from .filters import (
    BagLabelFilter,
    DeliveryFilter,
    GuestFilter,
    HotelFilter,
    ServiceAlertFilter,
    ServiceFilter,
    StaffProfileFilter,
    TransactionFilter,
)
from .mixins import AuditLogMixin, ZoneScopedQuerysetMixin, _deny_if_payload_has
from .models import (
    ZONES,
    AuditLog,
    BagLabel,
    Delivery,
    Guest,
    Hotel,
    Service,
    ServiceAlert,
    StaffProfile,
    Transaction,
)
from .permissions import RoleWritePermission, assert_zone_access, require_role, resolve_role
from .pricing import infer_priority, quote_price
from .serializers import (
    AuditLogSerializer,
    BagLabelBatchSerializer,
    BagLabelSerializer,
    DeliveryAssignSerializer,
    DeliveryCompleteSerializer,
    DeliveryDecisionSerializer,
    DeliverySerializer,
    GuestSerializer,
    HotelSerializer,
    InventorySerializer,
    LabelServiceSerializer,
    PickupSerializer,
    PriceQuoteRequestSerializer,
    ServiceAlertSerializer,
    ServiceSerializer,
    StaffProfileSerializer,
    StaffStatusSerializer,
    TransactionSerializer,
)
from .services import billing
from .services.assignment import assign_repartidor
from .services.labels import change_label_status, create_label_batch
from .services.workflow_service import (
    adjust_inventory,
    assign_delivery,
    bag_summary,
    complete_delivery,
    decide_delivery,
    label_service,
    register_pickup,
)
from .workflows import ACTIVE_SERVICE_STATES

logger = logging.getLogger(__name__)

STAFF_ROLES = {"ADMIN", "REPARTIDOR"}

PRIORITY_RANK = Case(
    When(priority="ALTA", then=Value(0)),
    When(priority="MEDIA", then=Value(1)),
    default=Value(2),
    output_field=IntegerField(),
)


def _ordered_services(qs):
    return qs.annotate(priority_rank=PRIORITY_RANK).order_by("priority_rank", "-created_at", "-id")


# ===============================================================
# Health
# ===============================================================
class HealthCheckView(APIView):
    permission_classes = [AllowAny]

    @extend_schema(tags=["System"])
    def get(self, request):
        return Response({"status": "ok", "service": "fumy-laundry"})


# ===============================================================
# Hotels
# ===============================================================
class HotelViewSet(ZoneScopedQuerysetMixin, AuditLogMixin, viewsets.ModelViewSet):
    queryset = Hotel.objects.all()
    serializer_class = HotelSerializer
    permission_classes = [IsAuthenticated, RoleWritePermission]
    filterset_class = HotelFilter
    write_roles = {"ADMIN"}
    zone_lookup = "zone"

    def get_queryset(self):
        return self.get_scoped_queryset(super().get_queryset()).order_by("name", "id")

    def perform_update(self, serializer):
        _deny_if_payload_has(self.request, ["balance"], "Balance is driven by transactions.")
        super().perform_update(serializer)

    def perform_destroy(self, instance):
        try:
            super().perform_destroy(instance)
        except ProtectedError:
            raise ValidationError(
                {"detail": "Hotel has related records; deactivate it instead of deleting."}
            )

    @action(detail=True, methods=["put", "patch"], url_path="inventory")
    def inventory(self, request, pk=None):
        hotel = self.get_object()
        ser = InventorySerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        hotel = adjust_inventory(
            hotel=hotel,
            bag_inventory=ser.validated_data.get("bag_inventory"),
            delta=ser.validated_data.get("delta"),
        )
        return Response(HotelSerializer(hotel).data)

    @action(detail=True, methods=["get"], url_path="services")
    def services(self, request, pk=None):
        hotel = self.get_object()
        qs = _ordered_services(hotel.services.select_related("hotel").prefetch_related("deliveries"))
        page = self.paginate_queryset(qs)
        data = ServiceSerializer(page if page is not None else qs, many=True).data
        if page is not None:
            return self.get_paginated_response(data)
        return Response(data)

    @action(detail=False, methods=["get"], url_path=r"by-zone/(?P<zone>[A-Za-z]+)")
    def by_zone(self, request, zone=None):
        code = (zone or "").strip().upper()
        if code not in {z for z, _ in ZONES}:
            raise ValidationError({"zone": f"Unknown zone: {zone}"})
        qs = self.get_queryset().filter(zone=code, is_active=True)
        return Response(HotelSerializer(qs, many=True).data)


# ===============================================================
# Guests
# ===============================================================
class GuestViewSet(ZoneScopedQuerysetMixin, AuditLogMixin, viewsets.ModelViewSet):
    queryset = Guest.objects.select_related("hotel").all()
    serializer_class = GuestSerializer
    permission_classes = [IsAuthenticated, RoleWritePermission]
    filterset_class = GuestFilter
    write_roles = STAFF_ROLES

    def get_queryset(self):
        qs = self.get_scoped_queryset(super().get_queryset())
        if self.action == "list" and "is_active" not in self.request.query_params:
            qs = qs.filter(is_active=True)
        return qs.order_by("-created_at", "-id")

    def perform_create(self, serializer):
        assert_zone_access(self.request.user, serializer.validated_data["hotel"])
        super().perform_create(serializer)

    def perform_update(self, serializer):
        _deny_if_payload_has(self.request, ["hotel"], "Guest hotel cannot be changed.")
        super().perform_update(serializer)

    def perform_destroy(self, instance):
        """Soft delete, refused while the guest has laundry in progress."""
        if instance.services.filter(status__in=ACTIVE_SERVICE_STATES).exists():
            raise ValidationError(
                {"detail": "Guest has active services and cannot be removed."}
            )
        instance.is_active = False
        instance.save(update_fields=["is_active", "updated_at"])
        self._log(
            self.request.user,
            "DEACTIVATE Guest",
            {"id": instance.pk},
            instance.hotel_id,
        )

    @action(detail=False, methods=["get"], url_path="search")
    def search(self, request):
        term = (request.query_params.get("q") or "").strip()
        if len(term) < 2:
            raise ValidationError({"q": "Search term must have at least 2 characters."})
        qs = self.get_scoped_queryset(Guest.objects.select_related("hotel")).filter(
            Q(name__icontains=term)
            | Q(email__icontains=term)
            | Q(phone__icontains=term)
            | Q(identification_number__icontains=term)
            | Q(room_number__icontains=term),
            is_active=True,
        )
        hotel_id = request.query_params.get("hotel")
        if hotel_id:
            qs = qs.filter(hotel_id=hotel_id)
        return Response(GuestSerializer(qs.order_by("name")[:50], many=True).data)

    @action(detail=False, methods=["get"], url_path=r"by-hotel/(?P<hotel_id>\d+)")
    def by_hotel(self, request, hotel_id=None):
        qs = self.get_queryset().filter(hotel_id=hotel_id, is_active=True)
        return Response(GuestSerializer(qs, many=True).data)

    @action(detail=True, methods=["get"], url_path="services")
    def services(self, request, pk=None):
        guest = self.get_object()
        qs = _ordered_services(guest.services.select_related("hotel").prefetch_related("deliveries"))
        return Response(ServiceSerializer(qs, many=True).data)

    @action(detail=True, methods=["get"], url_path="checkout-report")
    def checkout_report(self, request, pk=None):
        guest = self.get_object()
        return Response(billing.guest_checkout_report(guest))


# ===============================================================
# Services (status changes go through the workflow engine)
# ===============================================================
class ServiceViewSet(ZoneScopedQuerysetMixin, AuditLogMixin, viewsets.ModelViewSet):
    queryset = Service.objects.select_related("hotel", "guest", "repartidor").prefetch_related("deliveries")
    serializer_class = ServiceSerializer
    permission_classes = [IsAuthenticated, RoleWritePermission]
    filterset_class = ServiceFilter
    write_roles = STAFF_ROLES

    def get_queryset(self):
        return _ordered_services(self.get_scoped_queryset(super().get_queryset()))

    def perform_create(self, serializer):
        user = self.request.user
        vd = serializer.validated_data
        hotel = vd["hotel"]
        assert_zone_access(user, hotel)

        extra = {"created_by": user}
        if not vd.get("priority"):
            extra["priority"] = infer_priority(vd.get("observations", ""))
        if vd.get("repartidor") is None:
            if resolve_role(user) == "REPARTIDOR":
                extra["repartidor"] = user
            else:
                extra["repartidor"] = assign_repartidor(hotel)

        instance = serializer.save(**extra)
        self._log(user, "CREATE Service", {"id": instance.pk, "priority": instance.priority}, hotel.pk)

    def perform_update(self, serializer):
        _deny_if_payload_has(
            self.request,
            ["status", "hotel", "estimated_price", "final_price", "partial_delivery_percentage", "created_by"],
            "This field is server-controlled.",
        )
        assert_zone_access(self.request.user, serializer.instance.hotel)
        super().perform_update(serializer)

    def perform_destroy(self, instance):
        require_role(self.request.user, {"ADMIN"}, "Only administrators can delete services.")
        if instance.status != "PENDING_PICKUP":
            raise ValidationError(
                {"status": "Only services pending pickup can be deleted; cancel it instead."}
            )
        try:
            super().perform_destroy(instance)
        except ProtectedError:
            raise ValidationError({"detail": "Service has transactions and cannot be deleted."})

    @action(detail=False, methods=["get"], url_path="pending")
    def pending(self, request):
        qs = self.filter_queryset(self.get_queryset()).filter(status__in=ACTIVE_SERVICE_STATES)
        grouped = {}
        for svc in qs:
            grouped.setdefault(svc.status, []).append(svc)
        return Response(
            {
                "total": sum(len(v) for v in grouped.values()),
                "by_status": {
                    st: {"count": len(items), "results": ServiceSerializer(items, many=True).data}
                    for st, items in grouped.items()
                },
            }
        )

    @extend_schema(request=PriceQuoteRequestSerializer)
    @action(detail=False, methods=["post"], url_path="calculate-price")
    def calculate_price(self, request):
        ser = PriceQuoteRequestSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        vd = ser.validated_data

        per_kg = vd.get("price_per_kg")
        if per_kg is None and vd.get("hotel") is not None:
            per_kg = vd["hotel"].price_per_kg
        if per_kg is None:
            per_kg = settings.LAUNDRY_DEFAULT_PRICE_PER_KG

        quote = quote_price(
            vd["weight"],
            per_kg,
            is_urgent=vd["is_urgent"],
            has_stains=vd["has_stains"],
            urgent_factor=settings.LAUNDRY_URGENT_SURCHARGE,
            stains_factor=settings.LAUNDRY_STAINS_SURCHARGE,
        )
        return Response(
            {
                "weight": str(quote.weight),
                "price_per_kg": str(quote.price_per_kg),
                "base": str(quote.base),
                "total": str(quote.total),
                "breakdown": quote.breakdown,
            }
        )

    @extend_schema(request=PickupSerializer)
    @action(detail=True, methods=["post"], url_path="pickup")
    def pickup(self, request, pk=None):
        service = self.get_object()
        ser = PickupSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        vd = ser.validated_data
        register_pickup(
            service=service,
            user=request.user,
            weight=vd["weight"],
            bag_count=vd["bag_count"],
            collector_name=vd["collector_name"],
            signature=vd["signature"],
            observations=vd.get("observations"),
        )
        service = self.get_object()
        return Response(ServiceSerializer(service).data)

    @extend_schema(request=LabelServiceSerializer)
    @action(detail=True, methods=["post"], url_path="label")
    def label(self, request, pk=None):
        service = self.get_object()
        ser = LabelServiceSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        labels = label_service(
            service=service,
            user=request.user,
            label_numbers=ser.validated_data.get("label_numbers"),
        )
        service = self.get_object()
        return Response(
            {
                "service": ServiceSerializer(service).data,
                "labels": BagLabelSerializer(labels, many=True).data,
            }
        )

    @extend_schema(request=DeliveryDecisionSerializer)
    @action(detail=True, methods=["post"], url_path="delivery-decision")
    def delivery_decision(self, request, pk=None):
        service = self.get_object()
        ser = DeliveryDecisionSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        vd = ser.validated_data
        delivery = decide_delivery(
            service=service,
            user=request.user,
            bags=vd.get("bags"),
            count=vd.get("count"),
            complete=vd.get("complete", False),
            observations=vd.get("observations", ""),
        )
        service = self.get_object()
        return Response(
            {
                "service": ServiceSerializer(service).data,
                "delivery": DeliverySerializer(delivery).data,
                "bags": bag_summary(service),
            },
            status=status.HTTP_201_CREATED,
        )

    @action(detail=True, methods=["get"], url_path="bags")
    def bags(self, request, pk=None):
        return Response(bag_summary(self.get_object()))


# ===============================================================
# Delivery sub-services
# ===============================================================
class DeliveryViewSet(ZoneScopedQuerysetMixin, viewsets.ReadOnlyModelViewSet):
    queryset = Delivery.objects.select_related("service", "service__hotel", "repartidor").all()
    serializer_class = DeliverySerializer
    permission_classes = [IsAuthenticated]
    filterset_class = DeliveryFilter
    zone_lookup = "service__hotel__zone"

    def get_queryset(self):
        return self.get_scoped_queryset(super().get_queryset()).order_by("-created_at", "-id")

    @extend_schema(request=DeliveryAssignSerializer)
    @action(detail=True, methods=["post"], url_path="assign")
    def assign(self, request, pk=None):
        delivery = self.get_object()
        ser = DeliveryAssignSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        assign_delivery(
            delivery=delivery,
            user=request.user,
            repartidor=ser.validated_data.get("repartidor"),
        )
        delivery.refresh_from_db()
        return Response(DeliverySerializer(delivery).data)

    @extend_schema(request=DeliveryCompleteSerializer)
    @action(detail=True, methods=["post"], url_path="complete")
    def complete(self, request, pk=None):
        delivery = self.get_object()
        ser = DeliveryCompleteSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        complete_delivery(delivery=delivery, user=request.user, **ser.validated_data)
        delivery.refresh_from_db()
        return Response(DeliverySerializer(delivery).data)


# ===============================================================
# Bag labels
# ===============================================================
class BagLabelViewSet(
    ZoneScopedQuerysetMixin,
    AuditLogMixin,
    mixins.ListModelMixin,
    mixins.RetrieveModelMixin,
    mixins.UpdateModelMixin,
    viewsets.GenericViewSet,
):
    queryset = BagLabel.objects.select_related("hotel", "service").all()
    serializer_class = BagLabelSerializer
    permission_classes = [IsAuthenticated, RoleWritePermission]
    filterset_class = BagLabelFilter
    write_roles = STAFF_ROLES

    def get_queryset(self):
        return self.get_scoped_queryset(super().get_queryset())

    @extend_schema(request=BagLabelBatchSerializer, responses=BagLabelSerializer(many=True))
    def create(self, request, *args, **kwargs):
        ser = BagLabelBatchSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        vd = ser.validated_data
        assert_zone_access(request.user, vd["hotel"])
        try:
            labels = create_label_batch(
                hotel=vd["hotel"],
                quantity=vd["quantity"],
                user=request.user,
                service=vd.get("service"),
                prefix=vd.get("label_prefix") or None,
                generated_at=vd["generated_at"],
            )
        except ValueError as e:
            raise ValidationError({"detail": str(e)})

        self._log(
            request.user,
            "CREATE BagLabel batch",
            {"count": len(labels), "labels": [lbl.label_number for lbl in labels]},
            vd["hotel"].pk,
        )
        return Response(BagLabelSerializer(labels, many=True).data, status=status.HTTP_201_CREATED)

    def perform_update(self, serializer):
        label = serializer.instance
        target = serializer.validated_data.pop("status", None)
        super().perform_update(serializer)
        if target and target != label.status:
            change_label_status(label, target)

    @action(detail=False, methods=["get"], url_path="available")
    def available(self, request):
        qs = self.filter_queryset(self.get_queryset()).filter(status="AVAILABLE")
        return Response(BagLabelSerializer(qs, many=True).data)

    @action(detail=False, methods=["get"], url_path=r"by-hotel/(?P<hotel_id>\d+)")
    def by_hotel(self, request, hotel_id=None):
        qs = self.get_queryset().filter(hotel_id=hotel_id)
        return Response(BagLabelSerializer(qs, many=True).data)


# ===============================================================
# Transactions (immutable ledger)
# ===============================================================
class TransactionViewSet(
    ZoneScopedQuerysetMixin,
    mixins.CreateModelMixin,
    mixins.ListModelMixin,
    mixins.RetrieveModelMixin,
    viewsets.GenericViewSet,
):
    queryset = Transaction.objects.select_related("hotel", "service").all()
    serializer_class = TransactionSerializer
    permission_classes = [IsAuthenticated, RoleWritePermission]
    filterset_class = TransactionFilter
    write_roles = {"ADMIN"}

    def get_queryset(self):
        return self.get_scoped_queryset(super().get_queryset()).order_by("-created_at", "-id")

    def perform_create(self, serializer):
        vd = serializer.validated_data
        try:
            tx = billing.record_transaction(
                hotel=vd["hotel"],
                tx_type=vd["type"],
                amount=vd["amount"],
                user=self.request.user,
                service=vd.get("service"),
                payment_method=vd.get("payment_method", "CASH"),
                notes=vd.get("notes", ""),
                receipt_number=vd.get("receipt_number", ""),
            )
        except ValueError as e:
            raise ValidationError({"detail": str(e)})
        serializer.instance = tx

    def _totals_response(self, qs):
        return Response(
            {
                "totals": {
                    k: str(v) if isinstance(v, Decimal) else v
                    for k, v in billing.transaction_totals(qs).items()
                },
                "results": TransactionSerializer(qs, many=True).data,
            }
        )

    @action(detail=False, methods=["get"], url_path=r"by-service/(?P<service_id>\d+)")
    def by_service(self, request, service_id=None):
        service = get_object_or_404(Service, pk=service_id)
        return self._totals_response(self.get_queryset().filter(service=service))

    @action(detail=False, methods=["get"], url_path=r"by-hotel/(?P<hotel_id>\d+)")
    def by_hotel(self, request, hotel_id=None):
        hotel = get_object_or_404(Hotel, pk=hotel_id)
        return self._totals_response(self.get_queryset().filter(hotel=hotel))


# ===============================================================
# Staff accounts
# ===============================================================
class StaffProfileViewSet(
    ZoneScopedQuerysetMixin,
    AuditLogMixin,
    mixins.CreateModelMixin,
    mixins.ListModelMixin,
    mixins.RetrieveModelMixin,
    mixins.UpdateModelMixin,
    viewsets.GenericViewSet,
):
    """
    Administrators register and manage staff. Accounts are deactivated,
    never deleted, so their audit trail stays intact.
    """

    queryset = StaffProfile.objects.select_related("user").all()
    serializer_class = StaffProfileSerializer
    permission_classes = [IsAuthenticated, RoleWritePermission]
    filterset_class = StaffProfileFilter
    write_roles = {"ADMIN"}
    zone_lookup = "zone"

    def get_queryset(self):
        qs = super().get_queryset().order_by("user__username", "id")
        if self.action == "repartidores":
            return self.get_scoped_queryset(qs)
        require_role(self.request.user, {"ADMIN"}, "Only administrators can manage staff.")
        return qs

    @extend_schema(request=StaffStatusSerializer)
    @action(detail=True, methods=["post"], url_path="status")
    def set_status(self, request, pk=None):
        profile = self.get_object()
        ser = StaffStatusSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        active = ser.validated_data["is_active"]

        if profile.user_id == request.user.pk and not active:
            raise ValidationError({"is_active": "You cannot deactivate your own account."})

        profile.is_active = active
        profile.save(update_fields=["is_active", "updated_at"])
        profile.user.is_active = active
        profile.user.save(update_fields=["is_active"])

        self._log(
            request.user,
            f"{'ACTIVATE' if active else 'DEACTIVATE'} StaffProfile",
            {"id": profile.pk, "username": profile.user.username},
        )
        return Response(StaffProfileSerializer(profile).data)

    @action(detail=False, methods=["get"], url_path="repartidores")
    def repartidores(self, request):
        require_role(request.user, STAFF_ROLES, "Only staff can list repartidores.")
        qs = self.get_queryset().filter(role="REPARTIDOR", is_active=True, user__is_active=True)

        zone = (request.query_params.get("zone") or "").strip().upper()
        if zone:
            if zone not in {z for z, _ in ZONES}:
                raise ValidationError({"zone": f"Unknown zone: {zone}"})
            qs = qs.filter(zone=zone)
        return Response(StaffProfileSerializer(qs, many=True).data)


# ===============================================================
# SLA alerts and audit logs (READ-ONLY)
# ===============================================================
class ServiceAlertViewSet(ZoneScopedQuerysetMixin, viewsets.ReadOnlyModelViewSet):
    queryset = ServiceAlert.objects.select_related("hotel").all()
    serializer_class = ServiceAlertSerializer
    permission_classes = [IsAuthenticated]
    filterset_class = ServiceAlertFilter

    def get_queryset(self):
        return self.get_scoped_queryset(super().get_queryset()).order_by("-triggered_at", "-id")


class AuditLogViewSet(viewsets.ReadOnlyModelViewSet):
    queryset = AuditLog.objects.select_related("user", "hotel").all()
    serializer_class = AuditLogSerializer
    permission_classes = [IsAuthenticated]

    def get_queryset(self):
        require_role(self.request.user, {"ADMIN"}, "Only administrators can read audit logs.")
        return super().get_queryset().order_by("-created_at", "-id")
