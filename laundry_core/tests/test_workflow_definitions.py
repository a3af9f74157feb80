# laundry_core/tests/test_workflow_definitions.py
from __future__ import annotations

from datetime import timedelta

import pytest

from laundry_core.workflows import (
    SERVICE_TRANSITIONS,
    allowed_next_states,
    allowed_transitions,
    is_terminal,
    normalize_role,
    normalize_state,
    required_roles,
    validate_transition,
    validate_transition_with_role,
    workflow_definition,
)
from laundry_core.workflows.sla import compute_sla_level, get_sla


def test_service_happy_path_is_allowed():
    path = ["PENDING_PICKUP", "ASSIGNED_TO_ROUTE", "PICKED_UP", "LABELED", "IN_PROCESS", "PARTIAL_DELIVERY", "COMPLETED"]
    for cur, nxt in zip(path, path[1:]):
        validate_transition("service", cur, nxt)


@pytest.mark.parametrize(
    "cur,nxt",
    [
        ("PENDING_PICKUP", "COMPLETED"),
        ("PICKED_UP", "IN_PROCESS"),
        ("LABELED", "CANCELLED"),
        ("IN_PROCESS", "PICKED_UP"),
        ("PARTIAL_DELIVERY", "IN_PROCESS"),
    ],
)
def test_service_skips_and_backward_moves_rejected(cur, nxt):
    with pytest.raises(ValueError, match="Invalid service transition"):
        validate_transition("service", cur, nxt)


def test_route_unassign_is_the_only_backward_move():
    backward = []
    order = list(SERVICE_TRANSITIONS.keys())
    for cur, targets in SERVICE_TRANSITIONS.items():
        for tgt in targets:
            if tgt in order and order.index(tgt) < order.index(cur):
                backward.append((cur, tgt))
    assert backward == [("ASSIGNED_TO_ROUTE", "PENDING_PICKUP")]


def test_terminal_states_have_no_exits():
    assert allowed_next_states("service", "COMPLETED") == []
    assert allowed_next_states("service", "CANCELLED") == []
    assert allowed_next_states("delivery", "COMPLETED") == []
    assert is_terminal("service", "COMPLETED") is True
    assert is_terminal("service", "IN_PROCESS") is False


def test_unknown_kind_and_state():
    with pytest.raises(ValueError, match="Unknown workflow kind"):
        validate_transition("invoice", "A", "B")
    with pytest.raises(ValueError, match="Unknown service state"):
        validate_transition("service", "WASHING", "COMPLETED")


def test_legacy_spanish_states_are_normalized():
    assert normalize_state("pendiente_recojo") == "PENDING_PICKUP"
    assert normalize_state("en proceso") == "IN_PROCESS"
    assert normalize_state("ENTREGADO") == "COMPLETED"
    validate_transition("service", "rotulado", "en_proceso")


def test_unknown_roles_are_readonly():
    assert normalize_role("driver") == "REPARTIDOR"
    assert normalize_role("janitor") == "READONLY"
    assert normalize_role("") == "READONLY"


def test_role_aware_transitions():
    assert allowed_transitions("service", "PENDING_PICKUP", "REPARTIDOR") == ["ASSIGNED_TO_ROUTE", "PICKED_UP"]
    assert allowed_transitions("service", "IN_PROCESS", "REPARTIDOR") == []
    assert allowed_transitions("service", "IN_PROCESS", "ADMIN") == ["COMPLETED", "PARTIAL_DELIVERY"]
    assert allowed_transitions("service", "PENDING_PICKUP", "READONLY") == []
    assert allowed_transitions("delivery", "READY_FOR_DELIVERY", "REPARTIDOR") == ["ASSIGNED_TO_ROUTE"]

    with pytest.raises(ValueError, match="Role REPARTIDOR"):
        validate_transition_with_role("service", "PICKED_UP", "CANCELLED", role="REPARTIDOR")


def test_required_roles():
    assert required_roles("service", "PICKED_UP", "LABELED") == ["REPARTIDOR", "ADMIN"]
    assert required_roles("service", "LABELED", "IN_PROCESS") == ["ADMIN"]


def test_full_map_and_definition():
    full = allowed_transitions("service")
    assert full["LABELED"] == ["IN_PROCESS"]

    definition = workflow_definition("service")
    assert definition["kind"] == "service"
    assert "PARTIAL_DELIVERY" in definition["states"]
    assert definition["terminal"] == ["CANCELLED", "COMPLETED"]
    assert definition["requirements"]["PICKED_UP"] == ["weight", "bag_count", "collector_name", "pickup_signature"]

    both = workflow_definition()
    assert set(both.keys()) == {"service", "delivery"}

    with pytest.raises(ValueError):
        workflow_definition("invoice")


def test_sla_levels():
    assert get_sla("SERVICE", "in_process") is not None
    assert get_sla("service", "COMPLETED") is None
    assert get_sla("invoice", "IN_PROCESS") is None

    assert compute_sla_level("service", "PICKED_UP", timedelta(hours=1)) is None
    assert compute_sla_level("service", "PICKED_UP", timedelta(hours=6)) == "WARNING"
    assert compute_sla_level("service", "PICKED_UP", timedelta(hours=13)) == "BREACHED"
    assert compute_sla_level("service", "COMPLETED", timedelta(days=30)) is None
