# laundry_core/models/core.py

from decimal import Decimal

from django.conf import settings
from django.core.exceptions import ValidationError
from django.core.validators import MinValueValidator
from django.db import models

from laundry_core.workflows.guards import WorkflowWriteGuardMixin


ZONES = [
    ("NORTE", "Norte"),
    ("SUR", "Sur"),
    ("CENTRO", "Centro"),
    ("ESTE", "Este"),
    ("OESTE", "Oeste"),
]


# ============================================================
# Base
# ============================================================
class TimeStampedModel(models.Model):
    created_at = models.DateTimeField(auto_now_add=True, db_index=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        abstract = True


# ============================================================
# Hotel
# ============================================================
class Hotel(TimeStampedModel):
    name = models.CharField(max_length=255, unique=True)
    address = models.CharField(max_length=255, blank=True)
    zone = models.CharField(max_length=20, choices=ZONES, db_index=True)
    contact_person = models.CharField(max_length=255, blank=True)
    phone = models.CharField(max_length=50, blank=True)
    email = models.EmailField(blank=True)

    # Clean laundry bags held at the hotel
    bag_inventory = models.PositiveIntegerField(default=0)
    price_per_kg = models.DecimalField(
        max_digits=8,
        decimal_places=2,
        default=Decimal("5.00"),
        validators=[MinValueValidator(Decimal("0"))],
    )
    label_prefix = models.CharField(max_length=10, blank=True)
    balance = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    is_active = models.BooleanField(default=True)

    class Meta:
        ordering = ["name", "id"]

    def effective_label_prefix(self) -> str:
        return (self.label_prefix or self.name[:3]).strip().upper()

    def __str__(self):
        return self.name


# ============================================================
# Staff
# ============================================================
class StaffProfile(TimeStampedModel):
    ROLES = [
        ("ADMIN", "Administrador"),
        ("REPARTIDOR", "Repartidor"),
    ]

    user = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="staff_profile",
    )
    role = models.CharField(max_length=20, choices=ROLES, default="REPARTIDOR")
    zone = models.CharField(max_length=20, choices=ZONES, blank=True)
    phone = models.CharField(max_length=50, blank=True)
    is_active = models.BooleanField(default=True)

    def __str__(self):
        return f"{self.user.get_username()} ({self.role})"


# ============================================================
# Guest
# ============================================================
class Guest(TimeStampedModel):
    IDENTIFICATION_TYPES = [
        ("DNI", "DNI"),
        ("PASSPORT", "Passport"),
        ("FOREIGN_ID", "Carné de extranjería"),
        ("OTHER", "Other"),
    ]

    hotel = models.ForeignKey(
        Hotel,
        on_delete=models.PROTECT,
        related_name="guests",
    )
    name = models.CharField(max_length=100)
    email = models.EmailField(blank=True)
    phone = models.CharField(max_length=50, blank=True)
    identification_type = models.CharField(
        max_length=20, choices=IDENTIFICATION_TYPES, default="DNI"
    )
    identification_number = models.CharField(max_length=50, blank=True)
    nationality = models.CharField(max_length=100, blank=True)
    room_number = models.CharField(max_length=20)
    check_in_date = models.DateField(null=True, blank=True)
    check_out_date = models.DateField(null=True, blank=True)
    notes = models.TextField(blank=True)
    is_active = models.BooleanField(default=True, db_index=True)

    class Meta:
        ordering = ["-created_at", "-id"]

    def clean(self):
        if self.check_in_date and self.check_out_date:
            if self.check_out_date <= self.check_in_date:
                raise ValidationError("Check-out date must be after check-in date.")

    def __str__(self):
        return f"{self.name} ({self.room_number})"


# ============================================================
# Service (pickup service, workflow kind "service")
# ============================================================
class Service(WorkflowWriteGuardMixin, TimeStampedModel):
    WORKFLOW_FIELD = "status"

    PRIORITIES = [
        ("ALTA", "Alta"),
        ("MEDIA", "Media"),
        ("NORMAL", "Normal"),
    ]

    hotel = models.ForeignKey(
        Hotel,
        on_delete=models.PROTECT,
        related_name="services",
    )
    guest = models.ForeignKey(
        Guest,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="services",
    )
    guest_name = models.CharField(max_length=100)
    room_number = models.CharField(max_length=20)
    priority = models.CharField(max_length=10, choices=PRIORITIES, default="NORMAL", db_index=True)

    status = models.CharField(
        max_length=30,
        default="PENDING_PICKUP",
        editable=False,
        db_index=True,
    )

    bag_count = models.PositiveIntegerField(default=0)
    weight = models.DecimalField(max_digits=8, decimal_places=2, null=True, blank=True)
    observations = models.TextField(blank=True)
    special_instructions = models.TextField(blank=True)
    collector_name = models.CharField(max_length=255, blank=True)
    pickup_signature = models.TextField(blank=True)

    repartidor = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="assigned_services",
    )

    estimated_pickup_date = models.DateTimeField(null=True, blank=True)
    estimated_delivery_date = models.DateTimeField(null=True, blank=True)
    estimated_price = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)
    final_price = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)
    partial_delivery_percentage = models.PositiveSmallIntegerField(default=0)
    internal_notes = models.TextField(blank=True)

    pickup_date = models.DateTimeField(null=True, blank=True)
    labeled_date = models.DateTimeField(null=True, blank=True)
    processing_date = models.DateTimeField(null=True, blank=True)
    partial_delivery_date = models.DateTimeField(null=True, blank=True)
    delivery_date = models.DateTimeField(null=True, blank=True)
    cancelled_at = models.DateTimeField(null=True, blank=True)

    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="services_created",
    )

    class Meta:
        ordering = ["-created_at", "-id"]

    def clean(self):
        if self.guest_id and self.guest.hotel_id != self.hotel_id:
            raise ValidationError("Guest must belong to the service hotel.")

    def __str__(self):
        return f"Service {self.pk} - {self.hotel} room {self.room_number}"


# ============================================================
# Delivery (delivery sub-service, workflow kind "delivery")
# ============================================================
class Delivery(WorkflowWriteGuardMixin, TimeStampedModel):
    WORKFLOW_FIELD = "status"

    service = models.ForeignKey(
        Service,
        on_delete=models.CASCADE,
        related_name="deliveries",
    )
    # Bag numbers (1..service.bag_count) carried by this delivery
    bags = models.JSONField(default=list)

    status = models.CharField(
        max_length=30,
        default="READY_FOR_DELIVERY",
        editable=False,
        db_index=True,
    )

    repartidor = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="assigned_deliveries",
    )
    receiver_name = models.CharField(max_length=255, blank=True)
    receiver_document = models.CharField(max_length=50, blank=True)
    signature = models.TextField(blank=True)
    observations = models.TextField(blank=True)

    assigned_at = models.DateTimeField(null=True, blank=True)
    delivered_at = models.DateTimeField(null=True, blank=True)

    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="deliveries_created",
    )

    class Meta:
        ordering = ["created_at", "id"]

    @property
    def hotel(self):
        return self.service.hotel

    def __str__(self):
        return f"Delivery {self.pk} of service {self.service_id} bags={self.bags}"


# ============================================================
# Bag labels
# ============================================================
class BagLabel(TimeStampedModel):
    STATUSES = [
        ("AVAILABLE", "Available"),
        ("ASSIGNED", "Assigned"),
        ("IN_USE", "In use"),
        ("DELIVERED", "Delivered"),
        ("DAMAGED", "Damaged"),
        ("LOST", "Lost"),
    ]
    GENERATED_AT = [
        ("HOTEL", "Hotel"),
        ("LAVANDERIA", "Lavandería"),
    ]

    hotel = models.ForeignKey(
        Hotel,
        on_delete=models.PROTECT,
        related_name="bag_labels",
    )
    service = models.ForeignKey(
        Service,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="bag_labels",
    )
    label_number = models.CharField(max_length=64, unique=True)
    sequence = models.PositiveIntegerField()
    bag_number = models.PositiveIntegerField(null=True, blank=True)
    status = models.CharField(max_length=20, choices=STATUSES, default="AVAILABLE", db_index=True)
    generated_at = models.CharField(max_length=20, choices=GENERATED_AT, default="HOTEL")
    registered_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="bag_labels_registered",
    )
    notes = models.TextField(blank=True)

    class Meta:
        ordering = ["hotel_id", "sequence", "id"]

    def __str__(self):
        return self.label_number


# ============================================================
# Transactions (immutable ledger rows)
# ============================================================
class Transaction(TimeStampedModel):
    TYPES = [
        ("PAYMENT", "Payment"),
        ("REFUND", "Refund"),
        ("EXPENSE", "Expense"),
    ]
    PAYMENT_METHODS = [
        ("CASH", "Cash"),
        ("CARD", "Card"),
        ("TRANSFER", "Bank transfer"),
        ("YAPE", "Yape"),
        ("OTHER", "Other"),
    ]
    STATUSES = [
        ("COMPLETED", "Completed"),
        ("CANCELLED", "Cancelled"),
    ]

    type = models.CharField(max_length=20, choices=TYPES, db_index=True)
    amount = models.DecimalField(max_digits=12, decimal_places=2)
    subtotal = models.DecimalField(max_digits=12, decimal_places=2)
    tax = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    hotel = models.ForeignKey(
        Hotel,
        on_delete=models.PROTECT,
        related_name="transactions",
    )
    service = models.ForeignKey(
        Service,
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="transactions",
    )
    payment_method = models.CharField(max_length=20, choices=PAYMENT_METHODS, default="CASH")
    receipt_number = models.CharField(max_length=64, blank=True)
    notes = models.TextField(blank=True)
    status = models.CharField(max_length=20, choices=STATUSES, default="COMPLETED")
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="transactions_created",
    )

    class Meta:
        ordering = ["-created_at", "-id"]

    def __str__(self):
        return f"{self.type} {self.amount} ({self.hotel})"


# ============================================================
# Audit Log
# ============================================================
class AuditLog(TimeStampedModel):
    hotel = models.ForeignKey(
        Hotel,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="audit_logs",
    )
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
    )
    action = models.CharField(max_length=255)
    details = models.JSONField(default=dict, blank=True)

    class Meta:
        ordering = ["-created_at", "-id"]

    def __str__(self):
        return self.action
