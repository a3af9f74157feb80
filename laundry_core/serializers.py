from __future__ import annotations

from decimal import Decimal
from typing import Any, Dict, List

from django.contrib.auth import get_user_model
from django.db import transaction
from rest_framework import serializers

from .models import (
    AuditLog,
    BagLabel,
    Delivery,
    Guest,
    Hotel,
    Service,
    ServiceAlert,
    ServiceTransition,
    StaffProfile,
    Transaction,
)
from .services.labels import max_batch_size, validate_label_transition
from .workflows import allowed_next_states
from .workflows.bag_accounting import released_union, remaining_bags

User = get_user_model()


# ===============================================================
# Helpers
# ===============================================================

class ImmutableFieldsMixin:
    """
    Blocks updates to selected fields if they appear in incoming validated data.
    """
    immutable_fields: tuple[str, ...] = ()

    def validate(self, attrs: Dict[str, Any]) -> Dict[str, Any]:
        if self.instance is not None and self.immutable_fields:
            for field in self.immutable_fields:
                if field in attrs:
                    raise serializers.ValidationError(
                        {field: "This field is immutable."}
                    )
        return super().validate(attrs)


class UserSlimSerializer(serializers.ModelSerializer):
    class Meta:
        model = User
        fields = ("id", "username", "email")
        read_only_fields = fields


# ===============================================================
# Hotel
# ===============================================================

class HotelSerializer(serializers.ModelSerializer):
    active_services = serializers.SerializerMethodField()

    class Meta:
        model = Hotel
        fields = (
            "id",
            "name",
            "address",
            "zone",
            "contact_person",
            "phone",
            "email",
            "bag_inventory",
            "price_per_kg",
            "label_prefix",
            "balance",
            "is_active",
            "active_services",
            "created_at",
            "updated_at",
        )
        read_only_fields = ("id", "balance", "active_services", "created_at", "updated_at")

    def get_active_services(self, obj) -> int:
        return obj.services.exclude(status__in=["COMPLETED", "CANCELLED"]).count()


class InventorySerializer(serializers.Serializer):
    bag_inventory = serializers.IntegerField(required=False, min_value=0)
    delta = serializers.IntegerField(required=False)

    def validate(self, attrs):
        if "bag_inventory" not in attrs and "delta" not in attrs:
            raise serializers.ValidationError("Provide bag_inventory or delta.")
        return attrs


# ===============================================================
# Guest
# ===============================================================

class GuestSerializer(ImmutableFieldsMixin, serializers.ModelSerializer):
    hotel_name = serializers.CharField(source="hotel.name", read_only=True)

    immutable_fields = ("hotel",)

    class Meta:
        model = Guest
        fields = (
            "id",
            "hotel",
            "hotel_name",
            "name",
            "email",
            "phone",
            "identification_type",
            "identification_number",
            "nationality",
            "room_number",
            "check_in_date",
            "check_out_date",
            "notes",
            "is_active",
            "created_at",
            "updated_at",
        )
        read_only_fields = ("id", "hotel_name", "is_active", "created_at", "updated_at")

    def validate_name(self, value: str) -> str:
        value = (value or "").strip()
        if len(value) < 3 or len(value) > 100:
            raise serializers.ValidationError("Name must be between 3 and 100 characters.")
        return value

    def validate(self, attrs):
        attrs = super().validate(attrs)
        inst = self.instance

        check_in = attrs.get("check_in_date", getattr(inst, "check_in_date", None))
        check_out = attrs.get("check_out_date", getattr(inst, "check_out_date", None))
        if check_in and check_out and check_out <= check_in:
            raise serializers.ValidationError(
                {"check_out_date": "Check-out date must be after check-in date."}
            )

        hotel = attrs.get("hotel", getattr(inst, "hotel", None))
        room = attrs.get("room_number", getattr(inst, "room_number", None))
        if hotel is not None and room:
            clash = Guest.objects.filter(hotel=hotel, room_number=room, is_active=True)
            if inst is not None:
                clash = clash.exclude(pk=inst.pk)
            if clash.exists():
                raise serializers.ValidationError(
                    {"room_number": "An active guest is already registered in this room."}
                )
        return attrs


# ===============================================================
# Service
# ===============================================================

class ServiceSerializer(ImmutableFieldsMixin, serializers.ModelSerializer):
    hotel_name = serializers.CharField(source="hotel.name", read_only=True)
    hotel_zone = serializers.CharField(source="hotel.zone", read_only=True)
    repartidor_detail = UserSlimSerializer(source="repartidor", read_only=True)

    priority = serializers.ChoiceField(choices=Service.PRIORITIES, required=False)
    guest_name = serializers.CharField(max_length=100, required=False)
    room_number = serializers.CharField(max_length=20, required=False)

    allowed_next_states = serializers.SerializerMethodField()
    remaining_bags = serializers.SerializerMethodField()

    immutable_fields = ("hotel",)

    class Meta:
        model = Service
        fields = (
            "id",
            "hotel",
            "hotel_name",
            "hotel_zone",
            "guest",
            "guest_name",
            "room_number",
            "priority",
            "status",
            "allowed_next_states",
            "bag_count",
            "weight",
            "observations",
            "special_instructions",
            "collector_name",
            "repartidor",
            "repartidor_detail",
            "estimated_pickup_date",
            "estimated_delivery_date",
            "estimated_price",
            "final_price",
            "partial_delivery_percentage",
            "remaining_bags",
            "internal_notes",
            "pickup_date",
            "labeled_date",
            "processing_date",
            "partial_delivery_date",
            "delivery_date",
            "cancelled_at",
            "created_by",
            "created_at",
            "updated_at",
        )
        read_only_fields = (
            "id",
            "status",
            "bag_count",
            "weight",
            "collector_name",
            "estimated_price",
            "final_price",
            "partial_delivery_percentage",
            "internal_notes",
            "pickup_date",
            "labeled_date",
            "processing_date",
            "partial_delivery_date",
            "delivery_date",
            "cancelled_at",
            "created_by",
            "created_at",
            "updated_at",
        )

    def get_allowed_next_states(self, obj) -> List[str]:
        return allowed_next_states("service", obj.status)

    def get_remaining_bags(self, obj) -> List[int]:
        if not obj.bag_count:
            return []
        # Reads prefetched deliveries on list endpoints
        released = released_union(d.bags for d in obj.deliveries.all())
        return remaining_bags(obj.bag_count, released)

    def validate(self, attrs):
        attrs = super().validate(attrs)
        inst = self.instance

        hotel = attrs.get("hotel", getattr(inst, "hotel", None))
        guest = attrs.get("guest", getattr(inst, "guest", None))

        if guest is not None:
            if hotel is not None and guest.hotel_id != hotel.pk:
                raise serializers.ValidationError({"guest": "Guest must belong to the service hotel."})
            attrs.setdefault("guest_name", guest.name)
            attrs.setdefault("room_number", guest.room_number)

        if inst is None:
            if not attrs.get("guest_name"):
                raise serializers.ValidationError({"guest_name": "This field is required."})
            if not attrs.get("room_number"):
                raise serializers.ValidationError({"room_number": "This field is required."})
            if hotel is not None and not hotel.is_active:
                raise serializers.ValidationError({"hotel": "Hotel is inactive."})
        return attrs


class PickupSerializer(serializers.Serializer):
    weight = serializers.DecimalField(max_digits=8, decimal_places=2, min_value=Decimal("0.01"))
    bag_count = serializers.IntegerField(min_value=1)
    collector_name = serializers.CharField(max_length=255)
    signature = serializers.CharField()
    observations = serializers.CharField(required=False, allow_blank=True)


class LabelServiceSerializer(serializers.Serializer):
    label_numbers = serializers.ListField(
        child=serializers.CharField(max_length=64),
        required=False,
        allow_empty=True,
    )


class DeliveryDecisionSerializer(serializers.Serializer):
    complete = serializers.BooleanField(required=False, default=False)
    bags = serializers.ListField(child=serializers.IntegerField(min_value=1), required=False)
    count = serializers.IntegerField(required=False, min_value=1)
    observations = serializers.CharField(required=False, allow_blank=True, default="")

    def validate(self, attrs):
        chosen = [k for k in ("bags", "count") if k in attrs]
        if attrs.get("complete"):
            if chosen:
                raise serializers.ValidationError("Use either complete or bags/count, not both.")
        elif not chosen:
            raise serializers.ValidationError("Provide complete, bags or count.")
        elif len(chosen) > 1:
            raise serializers.ValidationError("Use either bags or count, not both.")
        return attrs


class PriceQuoteRequestSerializer(serializers.Serializer):
    weight = serializers.DecimalField(max_digits=8, decimal_places=2, min_value=Decimal("0.01"))
    hotel = serializers.PrimaryKeyRelatedField(queryset=Hotel.objects.all(), required=False)
    price_per_kg = serializers.DecimalField(max_digits=8, decimal_places=2, required=False, min_value=Decimal("0"))
    is_urgent = serializers.BooleanField(required=False, default=False)
    has_stains = serializers.BooleanField(required=False, default=False)


# ===============================================================
# Delivery sub-service
# ===============================================================

class DeliverySerializer(serializers.ModelSerializer):
    hotel = serializers.IntegerField(source="service.hotel_id", read_only=True)
    allowed_next_states = serializers.SerializerMethodField()
    repartidor_detail = UserSlimSerializer(source="repartidor", read_only=True)

    class Meta:
        model = Delivery
        fields = (
            "id",
            "service",
            "hotel",
            "bags",
            "status",
            "allowed_next_states",
            "repartidor",
            "repartidor_detail",
            "receiver_name",
            "receiver_document",
            "observations",
            "assigned_at",
            "delivered_at",
            "created_by",
            "created_at",
            "updated_at",
        )
        read_only_fields = fields

    def get_allowed_next_states(self, obj) -> List[str]:
        return allowed_next_states("delivery", obj.status)


class DeliveryAssignSerializer(serializers.Serializer):
    repartidor = serializers.PrimaryKeyRelatedField(
        queryset=User.objects.filter(is_active=True),
        required=False,
        allow_null=True,
    )


class DeliveryCompleteSerializer(serializers.Serializer):
    receiver_name = serializers.CharField(max_length=255)
    receiver_document = serializers.CharField(max_length=50, required=False, allow_blank=True, default="")
    signature = serializers.CharField()
    observations = serializers.CharField(required=False, allow_blank=True, default="")


# ===============================================================
# Bag labels
# ===============================================================

class BagLabelSerializer(serializers.ModelSerializer):
    hotel_name = serializers.CharField(source="hotel.name", read_only=True)

    class Meta:
        model = BagLabel
        fields = (
            "id",
            "hotel",
            "hotel_name",
            "service",
            "label_number",
            "sequence",
            "bag_number",
            "status",
            "generated_at",
            "registered_by",
            "notes",
            "created_at",
            "updated_at",
        )
        read_only_fields = (
            "id",
            "hotel",
            "hotel_name",
            "label_number",
            "sequence",
            "generated_at",
            "registered_by",
            "created_at",
            "updated_at",
        )

    def validate(self, attrs):
        inst = self.instance
        if inst is None:
            return attrs

        target = attrs.get("status")
        if target is not None:
            try:
                validate_label_transition(inst.status, target)
            except ValueError as e:
                raise serializers.ValidationError({"status": str(e)})

        service = attrs.get("service")
        if service is not None and service.hotel_id != inst.hotel_id:
            raise serializers.ValidationError(
                {"service": "Service does not belong to the label's hotel."}
            )

        bag_number = attrs.get("bag_number")
        svc = service or inst.service
        if bag_number is not None and svc is not None and bag_number > svc.bag_count:
            raise serializers.ValidationError(
                {"bag_number": f"Service has only {svc.bag_count} bag(s)."}
            )
        return attrs


class BagLabelBatchSerializer(serializers.Serializer):
    hotel = serializers.PrimaryKeyRelatedField(queryset=Hotel.objects.all())
    service = serializers.PrimaryKeyRelatedField(queryset=Service.objects.all(), required=False, allow_null=True)
    quantity = serializers.IntegerField(min_value=1, default=1)
    label_prefix = serializers.CharField(max_length=10, required=False, allow_blank=True)
    generated_at = serializers.ChoiceField(choices=BagLabel.GENERATED_AT, default="HOTEL")

    def validate_quantity(self, value: int) -> int:
        limit = max_batch_size()
        if value > limit:
            raise serializers.ValidationError(f"Ensure this value is less than or equal to {limit}.")
        return value

    def validate(self, attrs):
        service = attrs.get("service")
        if service is not None and service.hotel_id != attrs["hotel"].pk:
            raise serializers.ValidationError({"service": "Service does not belong to this hotel."})
        return attrs


# ===============================================================
# Staff (user accounts with role and zone)
# ===============================================================

class StaffProfileSerializer(serializers.ModelSerializer):
    """
    Staff account: the auth user plus its laundry role and zone.

    Activation is not editable here; use the status action.
    """
    user_id = serializers.IntegerField(source="user.id", read_only=True)
    username = serializers.CharField(source="user.username", max_length=150)
    email = serializers.EmailField(source="user.email", required=False, allow_blank=True)
    first_name = serializers.CharField(source="user.first_name", required=False, allow_blank=True, max_length=150)
    last_name = serializers.CharField(source="user.last_name", required=False, allow_blank=True, max_length=150)
    password = serializers.CharField(write_only=True, required=False, min_length=8, style={"input_type": "password"})

    class Meta:
        model = StaffProfile
        fields = (
            "id",
            "user_id",
            "username",
            "email",
            "first_name",
            "last_name",
            "password",
            "role",
            "zone",
            "phone",
            "is_active",
            "created_at",
            "updated_at",
        )
        read_only_fields = ("id", "user_id", "is_active", "created_at", "updated_at")

    def validate(self, attrs):
        inst = self.instance
        user_data = attrs.get("user", {})
        username = user_data.get("username")

        if inst is None:
            if not attrs.get("password"):
                raise serializers.ValidationError({"password": "This field is required."})
            if User.objects.filter(username__iexact=username).exists():
                raise serializers.ValidationError({"username": "A user with this username already exists."})
        elif username is not None and username != inst.user.username:
            raise serializers.ValidationError({"username": "This field is immutable."})

        role = attrs.get("role", getattr(inst, "role", "REPARTIDOR"))
        zone = attrs.get("zone", getattr(inst, "zone", ""))
        if role == "REPARTIDOR" and not zone:
            raise serializers.ValidationError({"zone": "Repartidores need an assigned zone."})
        return attrs

    def create(self, validated_data):
        user_data = validated_data.pop("user")
        password = validated_data.pop("password")
        with transaction.atomic():
            user = User.objects.create_user(password=password, **user_data)
            return StaffProfile.objects.create(user=user, **validated_data)

    def update(self, instance, validated_data):
        user_data = validated_data.pop("user", {})
        password = validated_data.pop("password", None)
        user = instance.user
        with transaction.atomic():
            for field, value in user_data.items():
                setattr(user, field, value)
            if password:
                user.set_password(password)
            user.save()
            return super().update(instance, validated_data)


class StaffStatusSerializer(serializers.Serializer):
    is_active = serializers.BooleanField()


# ===============================================================
# Transactions
# ===============================================================

class TransactionSerializer(serializers.ModelSerializer):
    hotel_name = serializers.CharField(source="hotel.name", read_only=True)
    amount = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=Decimal("0.01"))

    class Meta:
        model = Transaction
        fields = (
            "id",
            "type",
            "amount",
            "subtotal",
            "tax",
            "hotel",
            "hotel_name",
            "service",
            "payment_method",
            "receipt_number",
            "notes",
            "status",
            "created_by",
            "created_at",
        )
        read_only_fields = ("id", "subtotal", "tax", "hotel_name", "status", "created_by", "created_at")

    def validate(self, attrs):
        service = attrs.get("service")
        if service is not None and service.hotel_id != attrs["hotel"].pk:
            raise serializers.ValidationError({"service": "Service does not belong to this hotel."})
        return attrs


# ===============================================================
# Workflow / audit
# ===============================================================

class ServiceTransitionSerializer(serializers.ModelSerializer):
    performed_by = serializers.CharField(source="performed_by.username", read_only=True, default=None)

    class Meta:
        model = ServiceTransition
        fields = (
            "id",
            "kind",
            "object_id",
            "from_status",
            "to_status",
            "performed_by",
            "role",
            "comment",
            "created_at",
        )
        read_only_fields = fields


class ServiceAlertSerializer(serializers.ModelSerializer):
    is_open = serializers.BooleanField(read_only=True)

    class Meta:
        model = ServiceAlert
        fields = (
            "id",
            "kind",
            "object_id",
            "state",
            "level",
            "severity",
            "message",
            "meta",
            "hotel",
            "window_started_at",
            "triggered_at",
            "resolved_at",
            "duration_seconds",
            "is_open",
        )
        read_only_fields = fields


class AuditLogSerializer(serializers.ModelSerializer):
    user = UserSlimSerializer(read_only=True)

    class Meta:
        model = AuditLog
        fields = ("id", "user", "hotel", "action", "details", "created_at")
        read_only_fields = fields
