# laundry_core/admin.py

from django.contrib import admin

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


# =============================================================
# Status timeline (READ-ONLY AUDIT LOG)
# =============================================================

@admin.register(ServiceTransition)
class ServiceTransitionAdmin(admin.ModelAdmin):
    list_display = (
        "kind",
        "object_id",
        "from_status",
        "to_status",
        "performed_by",
        "role",
        "hotel",
        "created_at",
    )
    list_filter = ("kind", "from_status", "to_status", "hotel")
    search_fields = ("object_id", "performed_by__username")
    ordering = ("-created_at",)

    readonly_fields = [f.name for f in ServiceTransition._meta.fields]

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(ServiceAlert)
class ServiceAlertAdmin(admin.ModelAdmin):
    list_display = (
        "kind",
        "object_id",
        "state",
        "level",
        "severity",
        "hotel",
        "triggered_at",
        "resolved_at",
    )
    list_filter = ("kind", "state", "level", "severity")
    readonly_fields = [f.name for f in ServiceAlert._meta.fields]

    def has_add_permission(self, request):
        return False


# =============================================================
# Domain objects
# =============================================================

@admin.register(Hotel)
class HotelAdmin(admin.ModelAdmin):
    list_display = ("name", "zone", "bag_inventory", "price_per_kg", "balance", "is_active")
    list_filter = ("zone", "is_active")
    search_fields = ("name", "contact_person", "email")
    readonly_fields = ("balance",)


@admin.register(StaffProfile)
class StaffProfileAdmin(admin.ModelAdmin):
    list_display = ("user", "role", "zone", "is_active")
    list_filter = ("role", "zone", "is_active")


@admin.register(Guest)
class GuestAdmin(admin.ModelAdmin):
    list_display = ("name", "hotel", "room_number", "check_in_date", "check_out_date", "is_active")
    list_filter = ("hotel", "is_active")
    search_fields = ("name", "email", "phone", "identification_number", "room_number")


class DeliveryInline(admin.TabularInline):
    model = Delivery
    extra = 0
    fields = ("bags", "status", "repartidor", "receiver_name", "delivered_at")
    readonly_fields = fields
    can_delete = False


@admin.register(Service)
class ServiceAdmin(admin.ModelAdmin):
    list_display = (
        "id",
        "hotel",
        "guest_name",
        "room_number",
        "priority",
        "status",
        "bag_count",
        "partial_delivery_percentage",
        "created_at",
    )
    list_filter = ("status", "priority", "hotel__zone", "hotel")
    search_fields = ("guest_name", "room_number", "hotel__name")
    readonly_fields = ("status", "partial_delivery_percentage", "estimated_price", "final_price")
    inlines = [DeliveryInline]


@admin.register(BagLabel)
class BagLabelAdmin(admin.ModelAdmin):
    list_display = ("label_number", "hotel", "service", "bag_number", "status", "generated_at")
    list_filter = ("status", "generated_at", "hotel")
    search_fields = ("label_number",)


@admin.register(Transaction)
class TransactionAdmin(admin.ModelAdmin):
    list_display = ("id", "type", "amount", "subtotal", "tax", "hotel", "service", "payment_method", "created_at")
    list_filter = ("type", "payment_method", "status", "hotel")
    readonly_fields = [f.name for f in Transaction._meta.fields]

    def has_change_permission(self, request, obj=None):
        return False


@admin.register(AuditLog)
class AuditLogAdmin(admin.ModelAdmin):
    list_display = ("action", "user", "hotel", "created_at")
    search_fields = ("action", "user__username")
    readonly_fields = [f.name for f in AuditLog._meta.fields]
