# laundry_core/models/workflow.py

from django.conf import settings
from django.db import models


class ServiceTransition(models.Model):
    """
    Immutable timeline row for every status change of a service or delivery.
    """

    KIND_CHOICES = (
        ("service", "Service"),
        ("delivery", "Delivery"),
    )

    kind = models.CharField(max_length=32, choices=KIND_CHOICES)
    object_id = models.PositiveIntegerField()
    from_status = models.CharField(max_length=50)
    to_status = models.CharField(max_length=50)

    performed_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="service_transitions",
    )
    role = models.CharField(max_length=32, blank=True)
    comment = models.TextField(blank=True)

    hotel = models.ForeignKey(
        "laundry_core.Hotel",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="service_transitions",
    )

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["created_at", "id"]
        indexes = [
            models.Index(fields=["kind", "object_id"], name="laundry_cor_kind_3f1c2a_idx"),
        ]

    def __str__(self):
        return (
            f"{self.kind}:{self.object_id} "
            f"{self.from_status} -> {self.to_status}"
        )


class ServiceAlert(models.Model):
    LEVELS = (
        ("WARNING", "Warning"),
        ("BREACHED", "Breached"),
    )

    kind = models.CharField(max_length=32)
    object_id = models.PositiveIntegerField()
    state = models.CharField(max_length=32)
    level = models.CharField(max_length=16, choices=LEVELS, default="BREACHED")
    severity = models.CharField(max_length=16, default="warning")

    # When the object entered `state`; one alert per level per stay in a state
    window_started_at = models.DateTimeField()

    message = models.CharField(max_length=255, blank=True)
    meta = models.JSONField(default=dict, blank=True)

    hotel = models.ForeignKey(
        "laundry_core.Hotel",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="alerts",
    )

    triggered_at = models.DateTimeField(auto_now_add=True)
    resolved_at = models.DateTimeField(null=True, blank=True)
    duration_seconds = models.PositiveIntegerField(null=True, blank=True)

    class Meta:
        unique_together = ("kind", "object_id", "state", "level", "window_started_at")
        ordering = ("-triggered_at", "-id")

    @property
    def is_open(self) -> bool:
        return self.resolved_at is None

    def __str__(self):
        return f"{self.kind}:{self.object_id} {self.state} SLA {self.level}"
