# laundry_core/tests/test_hotels_and_guests.py
from decimal import Decimal

import pytest

from laundry_core.models import Guest, Hotel, Service


# ------------------------------------------------------------
# Hotels
# ------------------------------------------------------------

@pytest.mark.django_db
def test_admin_creates_hotel(api_client, user_admin):
    assert api_client.login(username="admin", password="pass123") is True

    resp = api_client.post(
        "/api/hotels/",
        {"name": "Hotel Barranco", "zone": "SUR", "bag_inventory": 15, "price_per_kg": "5.50"},
        format="json",
    )
    assert resp.status_code == 201, resp.content
    assert resp.json()["balance"] == "0.00"
    assert resp.json()["active_services"] == 0


@pytest.mark.django_db
def test_repartidor_cannot_write_hotels(api_client, user_repartidor, hotel):
    assert api_client.login(username="driver", password="pass123") is True

    resp = api_client.patch(f"/api/hotels/{hotel.pk}/", {"phone": "999"}, format="json")
    assert resp.status_code == 403


@pytest.mark.django_db
def test_hotels_are_zone_scoped_for_repartidores(api_client, user_repartidor, hotel, hotel_norte):
    assert api_client.login(username="driver", password="pass123") is True

    resp = api_client.get("/api/hotels/")
    assert resp.status_code == 200
    assert [h["id"] for h in resp.json()["results"]] == [hotel.pk]

    assert api_client.get(f"/api/hotels/{hotel_norte.pk}/").status_code == 404


@pytest.mark.django_db
def test_balance_is_not_writable(api_client, user_admin, hotel):
    assert api_client.login(username="admin", password="pass123") is True

    resp = api_client.patch(f"/api/hotels/{hotel.pk}/", {"balance": "100.00"}, format="json")
    assert resp.status_code == 400
    hotel.refresh_from_db()
    assert hotel.balance == Decimal("0.00")


@pytest.mark.django_db
def test_inventory_set_and_adjust(api_client, user_admin, hotel):
    assert api_client.login(username="admin", password="pass123") is True

    resp = api_client.put(f"/api/hotels/{hotel.pk}/inventory/", {"bag_inventory": 30}, format="json")
    assert resp.status_code == 200
    assert resp.json()["bag_inventory"] == 30

    resp = api_client.patch(f"/api/hotels/{hotel.pk}/inventory/", {"delta": -5}, format="json")
    assert resp.json()["bag_inventory"] == 25

    resp = api_client.patch(f"/api/hotels/{hotel.pk}/inventory/", {"delta": -50}, format="json")
    assert resp.status_code == 400
    hotel.refresh_from_db()
    assert hotel.bag_inventory == 25

    resp = api_client.put(f"/api/hotels/{hotel.pk}/inventory/", {}, format="json")
    assert resp.status_code == 400


@pytest.mark.django_db
def test_by_zone(api_client, user_admin, hotel, hotel_norte):
    assert api_client.login(username="admin", password="pass123") is True

    resp = api_client.get("/api/hotels/by-zone/norte/")
    assert resp.status_code == 200
    assert [h["id"] for h in resp.json()] == [hotel_norte.pk]

    assert api_client.get("/api/hotels/by-zone/marte/").status_code == 400


@pytest.mark.django_db
def test_hotel_with_services_cannot_be_deleted(api_client, user_admin, hotel, service_factory):
    service_factory()
    assert api_client.login(username="admin", password="pass123") is True

    resp = api_client.delete(f"/api/hotels/{hotel.pk}/")
    assert resp.status_code == 400
    assert Hotel.objects.filter(pk=hotel.pk).exists()


@pytest.mark.django_db
def test_hotel_services_sorted_by_priority(api_client, user_admin, hotel, service_factory):
    normal = service_factory(priority="NORMAL")
    high = service_factory(priority="ALTA")
    medium = service_factory(priority="MEDIA")
    assert api_client.login(username="admin", password="pass123") is True

    resp = api_client.get(f"/api/hotels/{hotel.pk}/services/")
    assert resp.status_code == 200
    assert [s["id"] for s in resp.json()["results"]] == [high.pk, medium.pk, normal.pk]


# ------------------------------------------------------------
# Guests
# ------------------------------------------------------------

@pytest.mark.django_db
def test_repartidor_registers_guest(api_client, user_repartidor, hotel):
    assert api_client.login(username="driver", password="pass123") is True

    resp = api_client.post(
        "/api/guests/",
        {"hotel": hotel.pk, "name": "Carlos Mendoza", "room_number": "512", "check_in_date": "2026-03-01", "check_out_date": "2026-03-05"},
        format="json",
    )
    assert resp.status_code == 201, resp.content
    assert resp.json()["hotel_name"] == hotel.name


@pytest.mark.django_db
def test_guest_validation(api_client, user_admin, hotel, guest):
    assert api_client.login(username="admin", password="pass123") is True

    resp = api_client.post("/api/guests/", {"hotel": hotel.pk, "name": "Al", "room_number": "600"}, format="json")
    assert resp.status_code == 400
    assert "name" in resp.json()

    resp = api_client.post(
        "/api/guests/",
        {"hotel": hotel.pk, "name": "Lucia Rojas", "room_number": "601", "check_in_date": "2026-03-05", "check_out_date": "2026-03-05"},
        format="json",
    )
    assert resp.status_code == 400
    assert "check_out_date" in resp.json()

    # Room 101 is taken by the active fixture guest
    resp = api_client.post("/api/guests/", {"hotel": hotel.pk, "name": "Lucia Rojas", "room_number": "101"}, format="json")
    assert resp.status_code == 400
    assert "room_number" in resp.json()


@pytest.mark.django_db
def test_guest_hotel_is_immutable(api_client, user_admin, guest, hotel_norte):
    assert api_client.login(username="admin", password="pass123") is True

    resp = api_client.patch(f"/api/guests/{guest.pk}/", {"hotel": hotel_norte.pk}, format="json")
    assert resp.status_code == 400
    guest.refresh_from_db()
    assert guest.hotel_id != hotel_norte.pk


@pytest.mark.django_db
def test_guest_soft_delete(api_client, user_admin, guest, service_factory):
    svc = service_factory(guest=guest)
    assert api_client.login(username="admin", password="pass123") is True

    resp = api_client.delete(f"/api/guests/{guest.pk}/")
    assert resp.status_code == 400

    Service.objects.filter(pk=svc.pk).update(status="COMPLETED")
    resp = api_client.delete(f"/api/guests/{guest.pk}/")
    assert resp.status_code == 204

    guest.refresh_from_db()
    assert guest.is_active is False
    assert api_client.get("/api/guests/").json()["count"] == 0


@pytest.mark.django_db
def test_guest_search(api_client, user_viewer, guest):
    assert api_client.login(username="viewer", password="pass123") is True

    assert api_client.get("/api/guests/search/", {"q": "a"}).status_code == 400

    resp = api_client.get("/api/guests/search/", {"q": "torres"})
    assert resp.status_code == 200
    assert [g["id"] for g in resp.json()] == [guest.pk]

    resp = api_client.get("/api/guests/search/", {"q": "445566"})
    assert [g["id"] for g in resp.json()] == [guest.pk]


@pytest.mark.django_db
def test_service_create_defaults_from_guest(api_client, user_admin, user_repartidor, hotel, guest):
    assert api_client.login(username="admin", password="pass123") is True

    resp = api_client.post(
        "/api/services/",
        {"hotel": hotel.pk, "guest": guest.pk, "observations": "Urgente: boda el sábado"},
        format="json",
    )
    assert resp.status_code == 201, resp.content
    data = resp.json()
    assert data["guest_name"] == guest.name
    assert data["room_number"] == "101"
    assert data["priority"] == "ALTA"
    assert data["status"] == "PENDING_PICKUP"
    # Same-zone repartidor picked automatically
    assert data["repartidor"] == user_repartidor.pk


@pytest.mark.django_db
def test_service_guest_must_belong_to_hotel(api_client, user_admin, hotel_norte, guest):
    assert api_client.login(username="admin", password="pass123") is True

    resp = api_client.post("/api/services/", {"hotel": hotel_norte.pk, "guest": guest.pk}, format="json")
    assert resp.status_code == 400
    assert "guest" in resp.json()


@pytest.mark.django_db
def test_checkout_report(api_client, user_admin, hotel, guest, service_factory):
    service_factory(guest=guest, status="COMPLETED", final_price=Decimal("30.00"))
    service_factory(guest=guest, status="IN_PROCESS", estimated_price=Decimal("12.50"))
    service_factory(guest=guest, status="CANCELLED", estimated_price=Decimal("99.00"))
    assert api_client.login(username="admin", password="pass123") is True

    paid = Service.objects.get(guest=guest, status="COMPLETED")
    api_client.post(
        "/api/transactions/",
        {"type": "PAYMENT", "amount": "30.00", "hotel": hotel.pk, "service": paid.pk},
        format="json",
    )

    resp = api_client.get(f"/api/guests/{guest.pk}/checkout-report/")
    assert resp.status_code == 200, resp.content
    report = resp.json()
    assert report["charges"] == "42.50"
    assert report["payments"] == "30.00"
    assert report["balance"] == "12.50"
    assert len(report["services"]) == 2
    assert len(report["pending_services"]) == 1

    guest.refresh_from_db()
    assert guest.check_out_date is not None


@pytest.mark.django_db
def test_guests_by_hotel(api_client, user_admin, hotel, guest):
    Guest.objects.create(hotel=hotel, name="Inactive Guest", room_number="999", is_active=False)
    assert api_client.login(username="admin", password="pass123") is True

    resp = api_client.get(f"/api/guests/by-hotel/{hotel.pk}/")
    assert resp.status_code == 200
    assert [g["id"] for g in resp.json()] == [guest.pk]
