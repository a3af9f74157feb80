# laundry_core/tests/test_staff.py
import pytest
from django.contrib.auth import authenticate

from laundry_core.models import AuditLog, StaffProfile
from laundry_core.permissions import resolve_role


def _register(client, **overrides):
    payload = {
        "username": "carla",
        "password": "s3cure-pass",
        "email": "carla@fumy.local",
        "first_name": "Carla",
        "last_name": "Ramos",
        "role": "REPARTIDOR",
        "zone": "SUR",
        "phone": "999111222",
    }
    payload.update(overrides)
    return client.post("/api/staff/", payload, format="json")


@pytest.mark.django_db
def test_admin_registers_repartidor(api_client, user_admin):
    assert api_client.login(username="admin", password="pass123") is True

    resp = _register(api_client)
    assert resp.status_code == 201, resp.content
    data = resp.json()
    assert data["username"] == "carla"
    assert data["role"] == "REPARTIDOR"
    assert data["zone"] == "SUR"
    assert data["is_active"] is True
    assert "password" not in data

    user = authenticate(username="carla", password="s3cure-pass")
    assert user is not None
    assert resolve_role(user) == "REPARTIDOR"
    assert AuditLog.objects.filter(action="CREATE StaffProfile").exists()


@pytest.mark.django_db
def test_registration_validation(api_client, user_admin, user_repartidor):
    assert api_client.login(username="admin", password="pass123") is True

    resp = _register(api_client, zone="")
    assert resp.status_code == 400
    assert "zone" in resp.json()

    resp = _register(api_client, username="DRIVER")
    assert resp.status_code == 400
    assert "username" in resp.json()

    resp = _register(api_client, password="")
    assert resp.status_code == 400
    assert "password" in resp.json()

    # Administrators do not need a zone
    resp = _register(api_client, username="jefa", role="ADMIN", zone="")
    assert resp.status_code == 201, resp.content


@pytest.mark.django_db
def test_staff_management_is_admin_only(api_client, user_repartidor, user_viewer):
    assert api_client.login(username="driver", password="pass123") is True
    assert api_client.get("/api/staff/").status_code == 403
    assert _register(api_client).status_code == 403
    api_client.logout()

    assert api_client.login(username="viewer", password="pass123") is True
    assert api_client.get("/api/staff/").status_code == 403


@pytest.mark.django_db
def test_list_filters(api_client, user_admin, user_repartidor, user_repartidor_norte):
    assert api_client.login(username="admin", password="pass123") is True

    resp = api_client.get("/api/staff/", {"role": "repartidor"})
    assert resp.json()["count"] == 2

    resp = api_client.get("/api/staff/", {"role": "REPARTIDOR", "zone": "norte"})
    assert [row["username"] for row in resp.json()["results"]] == ["driver-norte"]


@pytest.mark.django_db
def test_update_profile_and_password(api_client, user_admin, user_repartidor):
    profile = user_repartidor.staff_profile
    assert api_client.login(username="admin", password="pass123") is True

    resp = api_client.patch(
        f"/api/staff/{profile.pk}/",
        {"zone": "ESTE", "phone": "988777666", "password": "new-pass-123"},
        format="json",
    )
    assert resp.status_code == 200, resp.content
    assert resp.json()["zone"] == "ESTE"
    assert authenticate(username="driver", password="new-pass-123") is not None

    resp = api_client.patch(f"/api/staff/{profile.pk}/", {"username": "other"}, format="json")
    assert resp.status_code == 400


@pytest.mark.django_db
def test_status_action_deactivates_and_reactivates(api_client, user_admin, user_repartidor):
    profile = user_repartidor.staff_profile
    assert api_client.login(username="admin", password="pass123") is True

    resp = api_client.post(f"/api/staff/{profile.pk}/status/", {"is_active": False}, format="json")
    assert resp.status_code == 200, resp.content
    assert resp.json()["is_active"] is False

    user_repartidor.refresh_from_db()
    assert user_repartidor.is_active is False
    assert resolve_role(user_repartidor) == "READONLY"
    assert AuditLog.objects.filter(action="DEACTIVATE StaffProfile").exists()

    resp = api_client.post(f"/api/staff/{profile.pk}/status/", {"is_active": True}, format="json")
    assert resp.json()["is_active"] is True
    assert StaffProfile.objects.get(pk=profile.pk).is_active is True


@pytest.mark.django_db
def test_admin_cannot_deactivate_self(api_client, user_admin):
    assert api_client.login(username="admin", password="pass123") is True

    resp = api_client.post(
        f"/api/staff/{user_admin.staff_profile.pk}/status/",
        {"is_active": False},
        format="json",
    )
    assert resp.status_code == 400
    assert "is_active" in resp.json()


@pytest.mark.django_db
def test_repartidores_by_zone(api_client, user_admin, user_repartidor, user_repartidor_norte, user_viewer):
    assert api_client.login(username="admin", password="pass123") is True
    resp = api_client.get("/api/staff/repartidores/", {"zone": "centro"})
    assert resp.status_code == 200
    assert [row["username"] for row in resp.json()] == ["driver"]

    resp = api_client.get("/api/staff/repartidores/")
    assert {row["username"] for row in resp.json()} == {"driver", "driver-norte"}

    assert api_client.get("/api/staff/repartidores/", {"zone": "marte"}).status_code == 400
    api_client.logout()

    # Repartidores only see colleagues of their own zone
    assert api_client.login(username="driver-norte", password="pass123") is True
    resp = api_client.get("/api/staff/repartidores/")
    assert [row["username"] for row in resp.json()] == ["driver-norte"]
    api_client.logout()

    assert api_client.login(username="viewer", password="pass123") is True
    assert api_client.get("/api/staff/repartidores/").status_code == 403
