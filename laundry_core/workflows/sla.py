# laundry_core/workflows/sla.py
from __future__ import annotations

from datetime import timedelta
from typing import Optional, Dict, Any

"""
Authoritative SLA definitions and helpers.

This module is PURE LOGIC + DATA.
- No Django imports
- Safe to import at startup
- Must align with the workflow tables in laundry_core.workflows
"""

# ===============================================================
# SLA DEFINITIONS
# ===============================================================
# Semantics:
# - warn_after   : time in state after which the object is OVERDUE_WARNING
# - breach_after : time in state after which the SLA is BREACHED
# - severity     : weight attached to a breach alert
#
# If a state is absent or value is None, no SLA applies
# ===============================================================

SLA_DEFINITIONS: Dict[str, Dict[str, Optional[Dict[str, Any]]]] = {

    # -----------------------------------------------------------
    # SERVICE WORKFLOW SLA
    # -----------------------------------------------------------
    "service": {
        "PENDING_PICKUP": {
            "warn_after": timedelta(hours=12),
            "breach_after": timedelta(hours=24),
            "severity": "warning",
        },
        "ASSIGNED_TO_ROUTE": {
            "warn_after": timedelta(hours=4),
            "breach_after": timedelta(hours=8),
            "severity": "warning",
        },
        "PICKED_UP": {
            "warn_after": timedelta(hours=6),
            "breach_after": timedelta(hours=12),
            "severity": "warning",
        },
        "LABELED": {
            "warn_after": timedelta(hours=12),
            "breach_after": timedelta(hours=24),
            "severity": "warning",
        },
        "IN_PROCESS": {
            "warn_after": timedelta(hours=36),
            "breach_after": timedelta(hours=48),
            "severity": "critical",
        },
        "PARTIAL_DELIVERY": {
            "warn_after": timedelta(hours=24),
            "breach_after": timedelta(hours=48),
            "severity": "critical",
        },

        # Terminal states
        "COMPLETED": None,
        "CANCELLED": None,
    },

    # -----------------------------------------------------------
    # DELIVERY SUB-SERVICE SLA
    # -----------------------------------------------------------
    "delivery": {
        "READY_FOR_DELIVERY": {
            "warn_after": timedelta(hours=12),
            "breach_after": timedelta(hours=24),
            "severity": "warning",
        },
        "ASSIGNED_TO_ROUTE": {
            "warn_after": timedelta(hours=4),
            "breach_after": timedelta(hours=8),
            "severity": "critical",
        },
        "COMPLETED": None,
    },
}


# ===============================================================
# PUBLIC API
# ===============================================================

def get_sla(kind: str, state: str) -> Optional[Dict[str, Any]]:
    """
    Return SLA definition for a workflow kind + state, or None.
    """
    if not kind or not state:
        return None

    kind = kind.strip().lower()
    state = state.strip().upper()

    return SLA_DEFINITIONS.get(kind, {}).get(state)


def compute_sla_level(kind: str, state: str, elapsed: timedelta) -> Optional[str]:
    """
    Classify time spent in a state.

    Returns "BREACHED", "WARNING" or None (within SLA / no SLA).
    """
    sla = get_sla(kind, state)
    if not sla:
        return None
    if elapsed >= sla["breach_after"]:
        return "BREACHED"
    if elapsed >= sla["warn_after"]:
        return "WARNING"
    return None
