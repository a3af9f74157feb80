# laundry_core/tests/test_sla_scanner.py
from __future__ import annotations

from datetime import timedelta
from io import StringIO

import pytest
from django.core.management import call_command
from django.utils import timezone

from laundry_core.models import Service, ServiceAlert, ServiceTransition
from laundry_core.tasks import scan_overdue_services
from laundry_core.workflows.sla_scanner import check_overdue_services, status_window_start


def _age(svc, hours):
    Service.objects.filter(pk=svc.pk).update(created_at=timezone.now() - timedelta(hours=hours))
    svc.refresh_from_db()
    return svc


@pytest.mark.django_db
def test_no_alert_within_sla(service_factory):
    _age(service_factory(), hours=1)
    assert check_overdue_services() == 0
    assert not ServiceAlert.objects.exists()


@pytest.mark.django_db
def test_warning_then_breach(service_factory, hotel):
    svc = _age(service_factory(), hours=13)

    assert check_overdue_services() == 1
    alert = ServiceAlert.objects.get()
    assert alert.level == "WARNING"
    assert alert.state == "PENDING_PICKUP"
    assert alert.hotel_id == hotel.pk
    assert alert.is_open

    # Same window, same level: idempotent
    assert check_overdue_services() == 0

    later = timezone.now() + timedelta(hours=12)
    assert check_overdue_services(now=later) == 1
    assert set(ServiceAlert.objects.filter(object_id=svc.pk).values_list("level", flat=True)) == {"WARNING", "BREACHED"}


@pytest.mark.django_db
def test_terminal_services_are_ignored(service_factory):
    _age(service_factory(status="COMPLETED"), hours=200)
    _age(service_factory(status="CANCELLED"), hours=200)
    assert check_overdue_services() == 0


@pytest.mark.django_db
def test_window_starts_at_last_transition(service_factory):
    svc = _age(service_factory(status="IN_PROCESS"), hours=100)
    entered = timezone.now() - timedelta(hours=2)
    t = ServiceTransition.objects.create(
        kind="service", object_id=svc.pk, from_status="LABELED", to_status="IN_PROCESS"
    )
    ServiceTransition.objects.filter(pk=t.pk).update(created_at=entered)

    assert status_window_start("service", svc) == entered
    assert check_overdue_services() == 0


@pytest.mark.django_db
def test_command_and_task(service_factory):
    _age(service_factory(status="PICKED_UP"), hours=7)

    out = StringIO()
    call_command("check_overdue_services", stdout=out)
    assert "1 new SLA alert" in out.getvalue()

    assert scan_overdue_services.delay().get() == 0


@pytest.mark.django_db
def test_alerts_api_filters_open(api_client, user_admin, service_factory):
    _age(service_factory(), hours=30)
    check_overdue_services()
    assert api_client.login(username="admin", password="pass123") is True

    resp = api_client.get("/api/alerts/", {"open": "true"})
    assert resp.status_code == 200
    assert resp.json()["count"] == 1
    assert resp.json()["results"][0]["level"] == "BREACHED"
    assert resp.json()["results"][0]["severity"] == "warning"
