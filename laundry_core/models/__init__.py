from .core import (  # noqa: F401
    ZONES,
    TimeStampedModel,
    Hotel,
    StaffProfile,
    Guest,
    Service,
    Delivery,
    BagLabel,
    Transaction,
    AuditLog,
)
from .workflow import ServiceTransition, ServiceAlert  # noqa: F401
