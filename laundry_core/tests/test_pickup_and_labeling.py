# laundry_core/tests/test_pickup_and_labeling.py
from decimal import Decimal

import pytest

from laundry_core.models import BagLabel, Hotel, Service


def _pickup(client, svc, **overrides):
    payload = {
        "weight": "3.50",
        "bag_count": 3,
        "collector_name": "Luis Quispe",
        "signature": "data:image/png;base64,AAAA",
    }
    payload.update(overrides)
    return client.post(f"/api/services/{svc.pk}/pickup/", payload, format="json")


@pytest.mark.django_db
def test_pickup_records_data_and_moves_to_picked_up(api_client, user_repartidor, service_factory, hotel):
    svc = service_factory()
    assert api_client.login(username="driver", password="pass123") is True

    resp = _pickup(api_client, svc)
    assert resp.status_code == 200, resp.content

    data = resp.json()
    assert data["status"] == "PICKED_UP"
    assert data["bag_count"] == 3
    assert Decimal(data["estimated_price"]) == Decimal("21.00")
    assert data["remaining_bags"] == [1, 2, 3]
    assert data["allowed_next_states"] == ["CANCELLED", "LABELED"]

    svc.refresh_from_db()
    assert svc.pickup_date is not None
    assert svc.repartidor == user_repartidor
    assert svc.pickup_signature.startswith("data:image")

    hotel.refresh_from_db()
    assert hotel.bag_inventory == 17


@pytest.mark.django_db
def test_pickup_clamps_inventory_at_zero(api_client, user_admin, service_factory, hotel):
    svc = service_factory()
    assert api_client.login(username="admin", password="pass123") is True

    resp = _pickup(api_client, svc, bag_count=25)
    assert resp.status_code == 200
    hotel.refresh_from_db()
    assert hotel.bag_inventory == 0


@pytest.mark.django_db
def test_pickup_validation(api_client, user_admin, service_factory):
    svc = service_factory()
    assert api_client.login(username="admin", password="pass123") is True

    resp = _pickup(api_client, svc, weight="0")
    assert resp.status_code == 400
    assert "weight" in resp.json()

    resp = _pickup(api_client, svc, bag_count=0)
    assert resp.status_code == 400
    assert "bag_count" in resp.json()

    svc.refresh_from_db()
    assert svc.status == "PENDING_PICKUP"


@pytest.mark.django_db
def test_pickup_twice_rejected(api_client, user_admin, service_factory):
    svc = service_factory(status="PICKED_UP", bag_count=2, weight=Decimal("1.00"))
    assert api_client.login(username="admin", password="pass123") is True

    resp = _pickup(api_client, svc)
    assert resp.status_code == 400
    assert "status" in resp.json()


@pytest.mark.django_db
def test_pickup_out_of_zone_not_visible(api_client, user_repartidor_norte, service_factory):
    svc = service_factory()
    assert api_client.login(username="driver-norte", password="pass123") is True

    resp = _pickup(api_client, svc)
    assert resp.status_code == 404


@pytest.mark.django_db
def test_readonly_cannot_pickup(api_client, user_viewer, service_factory):
    svc = service_factory()
    assert api_client.login(username="viewer", password="pass123") is True

    resp = _pickup(api_client, svc)
    assert resp.status_code == 403


@pytest.mark.django_db
def test_label_generates_missing_labels(api_client, user_repartidor, service_factory):
    svc = service_factory(status="PICKED_UP", bag_count=3, weight=Decimal("2.00"))
    assert api_client.login(username="driver", password="pass123") is True

    resp = api_client.post(f"/api/services/{svc.pk}/label/", {}, format="json")
    assert resp.status_code == 200, resp.content

    data = resp.json()
    assert data["service"]["status"] == "LABELED"
    assert [lbl["bag_number"] for lbl in data["labels"]] == [1, 2, 3]
    assert all(lbl["status"] == "IN_USE" for lbl in data["labels"])
    assert all(lbl["label_number"].startswith("MIR-") for lbl in data["labels"])

    labels = BagLabel.objects.filter(service=svc)
    assert labels.count() == 3
    assert set(labels.values_list("generated_at", flat=True)) == {"LAVANDERIA"}

    svc.refresh_from_db()
    assert svc.labeled_date is not None


@pytest.mark.django_db
def test_label_claims_hotel_labels(api_client, user_admin, service_factory, hotel):
    svc = service_factory(status="PICKED_UP", bag_count=3, weight=Decimal("2.00"))
    assert api_client.login(username="admin", password="pass123") is True

    resp = api_client.post("/api/bag-labels/", {"hotel": hotel.pk, "quantity": 2}, format="json")
    assert resp.status_code == 201
    numbers = [lbl["label_number"] for lbl in resp.json()]

    resp = api_client.post(f"/api/services/{svc.pk}/label/", {"label_numbers": numbers}, format="json")
    assert resp.status_code == 200, resp.content

    by_bag = {lbl["bag_number"]: lbl["label_number"] for lbl in resp.json()["labels"]}
    assert by_bag[1] == numbers[0]
    assert by_bag[2] == numbers[1]
    assert by_bag[3] not in numbers


@pytest.mark.django_db
def test_label_rejects_foreign_or_used_labels(api_client, user_admin, service_factory, hotel_norte):
    svc = service_factory(status="PICKED_UP", bag_count=2, weight=Decimal("2.00"))
    foreign = BagLabel.objects.create(hotel=hotel_norte, label_number="OLI-X-001", sequence=1)
    assert api_client.login(username="admin", password="pass123") is True

    resp = api_client.post(f"/api/services/{svc.pk}/label/", {"label_numbers": [foreign.label_number]}, format="json")
    assert resp.status_code == 400
    assert "another hotel" in str(resp.json()["label_numbers"])

    resp = api_client.post(f"/api/services/{svc.pk}/label/", {"label_numbers": ["A", "B", "C"]}, format="json")
    assert resp.status_code == 400

    svc.refresh_from_db()
    assert svc.status == "PICKED_UP"
    assert not BagLabel.objects.filter(service=svc).exists()


@pytest.mark.django_db
def test_label_only_after_pickup(api_client, user_admin, service_factory):
    svc = service_factory()
    assert api_client.login(username="admin", password="pass123") is True

    resp = api_client.post(f"/api/services/{svc.pk}/label/", {}, format="json")
    assert resp.status_code == 400
    assert "status" in resp.json()


@pytest.mark.django_db
def test_calculate_price_requires_staff_role(api_client, user_viewer, hotel):
    assert api_client.login(username="viewer", password="pass123") is True

    resp = api_client.post(
        "/api/services/calculate-price/",
        {"weight": "2.00", "hotel": hotel.pk, "is_urgent": True},
        format="json",
    )
    assert resp.status_code == 403


@pytest.mark.django_db
def test_calculate_price_for_staff(api_client, user_admin, hotel):
    assert api_client.login(username="admin", password="pass123") is True

    resp = api_client.post(
        "/api/services/calculate-price/",
        {"weight": "2.00", "hotel": hotel.pk, "is_urgent": True, "has_stains": True},
        format="json",
    )
    assert resp.status_code == 200
    data = resp.json()
    assert data["price_per_kg"] == "6.00"
    assert data["base"] == "12.00"
    assert data["total"] == "21.60"

    resp = api_client.post("/api/services/calculate-price/", {"weight": "1.00"}, format="json")
    assert resp.json()["total"] == "5.00"


@pytest.mark.django_db
def test_inactive_hotel_rejects_new_services(api_client, user_admin, hotel):
    Hotel.objects.filter(pk=hotel.pk).update(is_active=False)
    assert api_client.login(username="admin", password="pass123") is True

    resp = api_client.post(
        "/api/services/",
        {"hotel": hotel.pk, "guest_name": "Juan Perez", "room_number": "305"},
        format="json",
    )
    assert resp.status_code == 400
    assert "hotel" in resp.json()
    assert not Service.objects.exists()


@pytest.mark.django_db
def test_zero_price_hotel_is_not_replaced_by_default(api_client, user_admin, service_factory):
    free = Hotel.objects.create(name="Hotel Cortesía", zone="CENTRO", price_per_kg=Decimal("0.00"))
    svc = service_factory(for_hotel=free)
    assert api_client.login(username="admin", password="pass123") is True

    quote = api_client.post(
        "/api/services/calculate-price/",
        {"weight": "2.00", "hotel": free.pk},
        format="json",
    )
    assert quote.status_code == 200, quote.content
    assert quote.json()["total"] == "0.00"

    resp = _pickup(api_client, svc, weight="2.00", bag_count=1)
    assert resp.status_code == 200, resp.content
    assert Decimal(resp.json()["estimated_price"]) == Decimal("0.00")
