# laundry_core/urls.py

from django.urls import path, include
from rest_framework.routers import DefaultRouter

# -------------------------------------------------
# Core API ViewSets
# -------------------------------------------------
from .views import (
    HealthCheckView,
    HotelViewSet,
    GuestViewSet,
    ServiceViewSet,
    DeliveryViewSet,
    BagLabelViewSet,
    TransactionViewSet,
    ServiceAlertViewSet,
    StaffProfileViewSet,
    AuditLogViewSet,
)

# -------------------------------------------------
# Workflow definitions (static metadata)
# -------------------------------------------------
from .views_workflows import (
    WorkflowDefinitionView,
    WorkflowNextStatesView,
)

# -------------------------------------------------
# Role-aware workflow APIs
# -------------------------------------------------
from .views_workflow_api import (
    WorkflowAllowedView,
    WorkflowTransitionView,
    WorkflowTimelineView,
)

# -------------------------------------------------
# Identity
# -------------------------------------------------
from .views_identity import WhoAmIView


app_name = "laundry_core"

# -------------------------------------------------
# Router (CRUD APIs)
# -------------------------------------------------
router = DefaultRouter()
router.register(r"hotels", HotelViewSet, basename="hotel")
router.register(r"guests", GuestViewSet, basename="guest")
router.register(r"services", ServiceViewSet, basename="service")
router.register(r"deliveries", DeliveryViewSet, basename="delivery")
router.register(r"bag-labels", BagLabelViewSet, basename="baglabel")
router.register(r"transactions", TransactionViewSet, basename="transaction")
router.register(r"alerts", ServiceAlertViewSet, basename="alert")
router.register(r"staff", StaffProfileViewSet, basename="staff")
router.register(r"audit-logs", AuditLogViewSet, basename="auditlog")


urlpatterns = [
    # ============================================================
    # Core CRUD API
    # ============================================================
    path("", include(router.urls)),

    # ============================================================
    # System
    # ============================================================
    path("health/", HealthCheckView.as_view(), name="health_check"),

    # ============================================================
    # Identity
    # ============================================================
    path("whoami/", WhoAmIView.as_view(), name="whoami"),

    # ============================================================
    # Workflow definitions
    # ============================================================
    path("workflows/<str:kind>/", WorkflowDefinitionView.as_view(), name="workflow-definition"),
    path("workflows/<str:kind>/next/", WorkflowNextStatesView.as_view(), name="workflow-next-states"),

    # ============================================================
    # Role-aware workflow APIs (single object)
    # ============================================================
    path("workflows/<str:kind>/<int:pk>/allowed/", WorkflowAllowedView.as_view(), name="workflow-allowed"),
    path("workflows/<str:kind>/<int:pk>/transition/", WorkflowTransitionView.as_view(), name="workflow-transition"),
    path("workflows/<str:kind>/<int:pk>/timeline/", WorkflowTimelineView.as_view(), name="workflow-timeline"),
]
