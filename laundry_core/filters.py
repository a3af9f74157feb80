# laundry_core/filters.py
import django_filters as df

from .models import BagLabel, Delivery, Guest, Hotel, Service, ServiceAlert, StaffProfile, Transaction


class HotelFilter(df.FilterSet):
    name = df.CharFilter(field_name="name", lookup_expr="icontains")

    class Meta:
        model = Hotel
        fields = ["name", "zone", "is_active"]


class GuestFilter(df.FilterSet):
    hotel = df.NumberFilter(field_name="hotel_id")
    name = df.CharFilter(field_name="name", lookup_expr="icontains")
    check_in_date = df.DateFromToRangeFilter()

    class Meta:
        model = Guest
        fields = ["hotel", "name", "room_number", "is_active", "check_in_date"]


class ServiceFilter(df.FilterSet):
    hotel = df.NumberFilter(field_name="hotel_id")
    guest = df.NumberFilter(field_name="guest_id")
    zone = df.CharFilter(field_name="hotel__zone", lookup_expr="iexact")
    status = df.CharFilter(field_name="status", lookup_expr="iexact")
    created_at = df.DateFromToRangeFilter()

    class Meta:
        model = Service
        fields = ["hotel", "guest", "zone", "status", "priority", "repartidor", "created_at"]


class DeliveryFilter(df.FilterSet):
    service = df.NumberFilter(field_name="service_id")
    hotel = df.NumberFilter(field_name="service__hotel_id")

    class Meta:
        model = Delivery
        fields = ["service", "hotel", "status", "repartidor"]


class BagLabelFilter(df.FilterSet):
    hotel = df.NumberFilter(field_name="hotel_id")
    service = df.NumberFilter(field_name="service_id")
    label_number = df.CharFilter(field_name="label_number", lookup_expr="icontains")

    class Meta:
        model = BagLabel
        fields = ["hotel", "service", "status", "label_number", "generated_at"]


class TransactionFilter(df.FilterSet):
    hotel = df.NumberFilter(field_name="hotel_id")
    service = df.NumberFilter(field_name="service_id")
    created_at = df.DateFromToRangeFilter()

    class Meta:
        model = Transaction
        fields = ["type", "status", "hotel", "service", "payment_method", "created_at"]


class ServiceAlertFilter(df.FilterSet):
    open = df.BooleanFilter(field_name="resolved_at", lookup_expr="isnull")

    class Meta:
        model = ServiceAlert
        fields = ["kind", "object_id", "state", "level", "severity", "hotel", "open"]


class StaffProfileFilter(df.FilterSet):
    role = df.CharFilter(field_name="role", lookup_expr="iexact")
    zone = df.CharFilter(field_name="zone", lookup_expr="iexact")
    username = df.CharFilter(field_name="user__username", lookup_expr="icontains")

    class Meta:
        model = StaffProfile
        fields = ["role", "zone", "is_active", "username"]
