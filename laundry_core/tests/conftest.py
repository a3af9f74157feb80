# laundry_core/tests/conftest.py

from __future__ import annotations

import uuid
from decimal import Decimal
from typing import Any, Callable, Optional

import pytest
from django.contrib.auth import authenticate, get_user_model
from rest_framework.test import APIClient

from laundry_core.models import Guest, Hotel, Service, StaffProfile


def _rand(prefix: str) -> str:
    return f"{prefix}-{uuid.uuid4().hex[:8]}"


@pytest.fixture(autouse=True)
def _disable_security_redirects(settings):
    # Prevent SecurityMiddleware from forcing https://testserver/...
    settings.SECURE_SSL_REDIRECT = False
    settings.SESSION_COOKIE_SECURE = False
    settings.CSRF_COOKIE_SECURE = False
    settings.SECURE_HSTS_SECONDS = 0


class AuthAPIClient(APIClient):
    """
    Test client that uses force_authenticate for predictable DRF auth.
    """

    _user = None

    def login(self, username: str, password: str, **kwargs) -> bool:  # type: ignore[override]
        user = authenticate(username=username, password=password)
        if not user:
            return False
        self.force_authenticate(user=user)
        self._user = user
        return True

    def logout(self) -> None:  # type: ignore[override]
        # force_authenticate(user=None) would call logout() again
        super().logout()
        self.handler._force_user = None
        self.handler._force_token = None
        self._user = None


@pytest.fixture
def api_client() -> AuthAPIClient:
    return AuthAPIClient()


def _staff_user(username: str, role: Optional[str], zone: str = ""):
    User = get_user_model()
    user, _ = User.objects.get_or_create(username=username)
    user.set_password("pass123")
    user.save(update_fields=["password"])
    if role:
        StaffProfile.objects.update_or_create(
            user=user,
            defaults={"role": role, "zone": zone, "is_active": True},
        )
    return user


@pytest.fixture
def user_admin(db):
    return _staff_user("admin", "ADMIN")


@pytest.fixture
def user_repartidor(db):
    return _staff_user("driver", "REPARTIDOR", zone="CENTRO")


@pytest.fixture
def user_repartidor_norte(db):
    return _staff_user("driver-norte", "REPARTIDOR", zone="NORTE")


@pytest.fixture
def user_viewer(db):
    # Authenticated, no staff profile -> READONLY
    return _staff_user("viewer", None)


@pytest.fixture
def hotel(db) -> Hotel:
    return Hotel.objects.create(
        name="Hotel Miraflores",
        address="Av. Larco 123",
        zone="CENTRO",
        contact_person="Rosa",
        bag_inventory=20,
        price_per_kg=Decimal("6.00"),
        label_prefix="MIR",
    )


@pytest.fixture
def hotel_norte(db) -> Hotel:
    return Hotel.objects.create(name="Hotel Los Olivos", zone="NORTE", bag_inventory=10)


@pytest.fixture
def guest(db, hotel) -> Guest:
    return Guest.objects.create(
        hotel=hotel,
        name="Ana Torres",
        room_number="101",
        identification_type="DNI",
        identification_number="44556677",
    )


@pytest.fixture
def service_factory(db, hotel) -> Callable[..., Service]:
    """
    Services are created directly in the requested status; later moves
    must go through the workflow engine.
    """

    def _factory(*, status: str = "PENDING_PICKUP", for_hotel: Optional[Hotel] = None, **extra: Any) -> Service:
        kwargs = {
            "hotel": for_hotel or hotel,
            "guest_name": extra.pop("guest_name", _rand("Guest")),
            "room_number": extra.pop("room_number", "201"),
            "status": status,
        }
        kwargs.update(extra)
        return Service.objects.create(**kwargs)

    return _factory


@pytest.fixture
def in_process_service(service_factory) -> Service:
    return service_factory(
        status="IN_PROCESS",
        bag_count=4,
        weight=Decimal("8.00"),
        estimated_price=Decimal("48.00"),
        collector_name="Luis",
        pickup_signature="sig",
    )
