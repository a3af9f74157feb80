# laundry_core/workflows/__init__.py
from __future__ import annotations

from typing import Any, Dict, List, Optional, Set


# ===============================================================
# Canonical workflow definitions
# ===============================================================

SERVICE_STATES: Set[str] = {
    "PENDING_PICKUP",
    "ASSIGNED_TO_ROUTE",
    "PICKED_UP",
    "LABELED",
    "IN_PROCESS",
    "PARTIAL_DELIVERY",
    "COMPLETED",
    "CANCELLED",
}

# VALID_STATUS_TRANSITIONS for the pickup service.
# Route unassignment is the only backward move.
SERVICE_TRANSITIONS: Dict[str, Set[str]] = {
    "PENDING_PICKUP": {"ASSIGNED_TO_ROUTE", "PICKED_UP", "CANCELLED"},
    "ASSIGNED_TO_ROUTE": {"PICKED_UP", "PENDING_PICKUP", "CANCELLED"},
    "PICKED_UP": {"LABELED", "CANCELLED"},
    "LABELED": {"IN_PROCESS"},
    "IN_PROCESS": {"PARTIAL_DELIVERY", "COMPLETED"},
    "PARTIAL_DELIVERY": {"COMPLETED"},
    "COMPLETED": set(),
    "CANCELLED": set(),
}

DELIVERY_STATES: Set[str] = {
    "READY_FOR_DELIVERY",
    "ASSIGNED_TO_ROUTE",
    "COMPLETED",
}

DELIVERY_TRANSITIONS: Dict[str, Set[str]] = {
    "READY_FOR_DELIVERY": {"ASSIGNED_TO_ROUTE"},
    "ASSIGNED_TO_ROUTE": {"COMPLETED", "READY_FOR_DELIVERY"},
    "COMPLETED": set(),
}

# States in which the delivery decision (release of bags) can be taken
DELIVERY_DECISION_STATES: Set[str] = {"IN_PROCESS", "PARTIAL_DELIVERY"}

# Services in these states still hold bags for the hotel
ACTIVE_SERVICE_STATES: Set[str] = SERVICE_STATES - {"COMPLETED", "CANCELLED"}

# Fields each target status needs before the transition is applied.
# Evaluated by laundry_core.workflows.requirements.
STATUS_REQUIREMENTS: Dict[str, Dict[str, List[str]]] = {
    "service": {
        "PICKED_UP": ["weight", "bag_count", "collector_name", "pickup_signature"],
        "LABELED": ["bag_labels"],
        "PARTIAL_DELIVERY": ["released_bags", "remaining_bags"],
        "COMPLETED": ["all_bags_released"],
    },
    "delivery": {
        "COMPLETED": ["receiver_name", "signature"],
    },
}

# Timestamp column stamped when an object enters a status
STATUS_TIMESTAMP_FIELDS: Dict[str, Dict[str, str]] = {
    "service": {
        "PICKED_UP": "pickup_date",
        "LABELED": "labeled_date",
        "IN_PROCESS": "processing_date",
        "PARTIAL_DELIVERY": "partial_delivery_date",
        "COMPLETED": "delivery_date",
        "CANCELLED": "cancelled_at",
    },
    "delivery": {
        "ASSIGNED_TO_ROUTE": "assigned_at",
        "COMPLETED": "delivered_at",
    },
}


# ===============================================================
# Legacy spellings, role normalization and permission rules
# ===============================================================

STATE_ALIASES: Dict[str, str] = {
    "PENDIENTE_RECOJO": "PENDING_PICKUP",
    "PENDING": "PENDING_PICKUP",
    "ASIGNADO_RUTA": "ASSIGNED_TO_ROUTE",
    "EN_RUTA": "ASSIGNED_TO_ROUTE",
    "RECOGIDO": "PICKED_UP",
    "ROTULADO": "LABELED",
    "EN_PROCESO": "IN_PROCESS",
    "PROCESSING": "IN_PROCESS",
    "ENTREGA_PARCIAL": "PARTIAL_DELIVERY",
    "LISTO_ENTREGA": "READY_FOR_DELIVERY",
    "COMPLETADO": "COMPLETED",
    "ENTREGADO": "COMPLETED",
    "DELIVERED": "COMPLETED",
    "CANCELADO": "CANCELLED",
}

ROLE_ALIASES: Dict[str, str] = {
    "ADMIN": "ADMIN",
    "ADMINISTRADOR": "ADMIN",
    "SUPERUSER": "ADMIN",
    "SYSTEM_ADMIN": "ADMIN",
    "REPARTIDOR": "REPARTIDOR",
    "DRIVER": "REPARTIDOR",
    "COURIER": "REPARTIDOR",
    "READONLY": "READONLY",
    "VIEWER": "READONLY",
}

KNOWN_ROLES: List[str] = ["REPARTIDOR", "ADMIN"]

# Pickup-side moves a repartidor performs on the route
_REPARTIDOR_SERVICE_MOVES: Set[tuple] = {
    ("PENDING_PICKUP", "ASSIGNED_TO_ROUTE"),
    ("PENDING_PICKUP", "PICKED_UP"),
    ("ASSIGNED_TO_ROUTE", "PICKED_UP"),
    ("PICKED_UP", "LABELED"),
}


def normalize_state(value: str) -> str:
    raw = str(value or "").strip().upper().replace("-", "_").replace(" ", "_")
    return STATE_ALIASES.get(raw, raw)


def normalize_kind(value: str) -> str:
    return str(value or "").strip().lower()


def normalize_role(value: str) -> str:
    raw = str(value or "").strip().upper()
    return ROLE_ALIASES.get(raw, "READONLY")


def _transitions_for_kind(kind: str) -> Dict[str, Set[str]]:
    k = normalize_kind(kind)
    if k == "service":
        return SERVICE_TRANSITIONS
    if k == "delivery":
        return DELIVERY_TRANSITIONS
    return {}


def _states_for_kind(kind: str) -> Set[str]:
    k = normalize_kind(kind)
    if k == "service":
        return SERVICE_STATES
    if k == "delivery":
        return DELIVERY_STATES
    return set()


def _role_allows(kind: str, current: str, target: str, role: str) -> bool:
    """
    Centralized role gating. Keep policy decisions here only.
    """
    k = normalize_kind(kind)
    cur = normalize_state(current)
    tgt = normalize_state(target)
    r = normalize_role(role)

    if r == "ADMIN":
        return True

    if r == "REPARTIDOR":
        if k == "service":
            return (cur, tgt) in _REPARTIDOR_SERVICE_MOVES
        if k == "delivery":
            return True
        return False

    return False


# ===============================================================
# Public workflow API
# ===============================================================

def validate_transition(
    kind: str,
    current: Optional[str] = None,
    target: Optional[str] = None,
    old: Optional[str] = None,
    new: Optional[str] = None,
) -> None:
    """
    Raises ValueError if the transition is invalid for the canonical workflow.

    Supports both parameter styles:
      validate_transition(kind, current, target)
      validate_transition(kind=..., old=..., new=...)
    """
    k = normalize_kind(kind)

    cur = normalize_state((current if current is not None else old) or "")
    tgt = normalize_state((target if target is not None else new) or "")

    states = _states_for_kind(k)
    trans = _transitions_for_kind(k)

    if not states or not trans:
        raise ValueError(f"Unknown workflow kind: {kind}")

    if cur not in states:
        raise ValueError(f"Unknown {k} state: {cur}")

    if tgt not in states:
        raise ValueError(f"Unknown {k} state: {tgt}")

    if tgt not in trans.get(cur, set()):
        raise ValueError(f"Invalid {k} transition: {cur} -> {tgt}")


def validate_transition_with_role(
    kind: str,
    current: Optional[str] = None,
    target: Optional[str] = None,
    role: str = "READONLY",
    old: Optional[str] = None,
    new: Optional[str] = None,
) -> None:
    """
    Raises ValueError if the transition is invalid OR not permitted for the role.
    """
    validate_transition(kind=kind, current=current, target=target, old=old, new=new)

    cur = normalize_state((current if current is not None else old) or "")
    tgt = normalize_state((target if target is not None else new) or "")

    if not _role_allows(kind, cur, tgt, role):
        r = normalize_role(role)
        raise ValueError(f"Role {r} cannot perform {normalize_kind(kind)} transition: {cur} -> {tgt}")


def allowed_next_states(kind: str, current: str) -> List[str]:
    """
    Canonical next states only, independent of role.
    """
    trans = _transitions_for_kind(kind)
    if not trans:
        return []
    return sorted(trans.get(normalize_state(current), set()))


def is_terminal(kind: str, state: str) -> bool:
    st = normalize_state(state)
    return st in _states_for_kind(kind) and not allowed_next_states(kind, st)


def allowed_transitions(
    kind: str,
    current: Optional[str] = None,
    role: Optional[str] = None,
) -> Any:
    """
    1) Full map (introspection / UI):
         allowed_transitions("service") -> Dict[str, List[str]]

    2) Role-aware list for one state:
         allowed_transitions("service", "PICKED_UP", "REPARTIDOR") -> List[str]
    """
    k = normalize_kind(kind)

    if current is None and role is None:
        trans = _transitions_for_kind(k)
        return {state: sorted(nxt) for state, nxt in trans.items()}

    cur = normalize_state(current or "")
    nxt = allowed_next_states(k, cur)
    if role is None:
        return nxt

    return sorted(tgt for tgt in nxt if _role_allows(k, cur, tgt, role))


def workflow_definition(kind: Optional[str] = None) -> Dict[str, Any]:
    """
    Stable JSON-serializable definition for UI.
    """
    def _one(k: str) -> Dict[str, Any]:
        kk = normalize_kind(k)
        states = _states_for_kind(kk)
        if not states:
            raise ValueError(f"Unsupported workflow kind: {k}")
        return {
            "kind": kk,
            "states": sorted(states),
            "transitions": allowed_transitions(kk),
            "terminal": sorted(s for s in states if is_terminal(kk, s)),
            "requirements": STATUS_REQUIREMENTS.get(kk, {}),
        }

    if kind is None:
        return {
            "service": _one("service"),
            "delivery": _one("delivery"),
        }
    return _one(kind)


def required_roles(kind: str, current: str, target: str) -> List[str]:
    """
    Returns roles that can perform current -> target for the canonical workflow.
    """
    validate_transition(kind=kind, current=current, target=target)

    return [r for r in KNOWN_ROLES if _role_allows(kind, current, target, r)]


__all__ = [
    "SERVICE_STATES",
    "SERVICE_TRANSITIONS",
    "DELIVERY_STATES",
    "DELIVERY_TRANSITIONS",
    "DELIVERY_DECISION_STATES",
    "ACTIVE_SERVICE_STATES",
    "STATUS_REQUIREMENTS",
    "STATUS_TIMESTAMP_FIELDS",
    "normalize_state",
    "normalize_kind",
    "normalize_role",
    "validate_transition",
    "validate_transition_with_role",
    "allowed_next_states",
    "allowed_transitions",
    "is_terminal",
    "workflow_definition",
    "required_roles",
]
