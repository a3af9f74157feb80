# laundry_core/permissions.py
from __future__ import annotations

from typing import Iterable, Optional

from rest_framework.permissions import BasePermission, SAFE_METHODS
from rest_framework.exceptions import PermissionDenied

from .workflows import normalize_role


# ------------------------------------------------------------------
# Role resolution
# ------------------------------------------------------------------
def _profile(user):
    if not user or not getattr(user, "is_authenticated", False):
        return None
    try:
        return user.staff_profile
    except Exception:
        # RelatedObjectDoesNotExist for users without a profile
        return None


def resolve_role(user) -> str:
    """
    Normalized role for a user.

    Superusers are always ADMIN. Users without an active staff profile
    are READONLY.
    """
    if not user or not getattr(user, "is_authenticated", False):
        return "READONLY"
    if getattr(user, "is_superuser", False):
        return "ADMIN"

    profile = _profile(user)
    if profile is None or not profile.is_active:
        return "READONLY"
    return normalize_role(profile.role)


def resolve_zone(user) -> Optional[str]:
    profile = _profile(user)
    if profile is None:
        return None
    return profile.zone or None


def require_role(user, roles: Iterable[str], message: Optional[str] = None) -> str:
    role = resolve_role(user)
    if role not in {normalize_role(r) for r in roles}:
        raise PermissionDenied(message or "Your role does not allow this operation.")
    return role


def assert_zone_access(user, hotel) -> None:
    """
    Repartidores only operate on hotels of their own zone.
    """
    if resolve_role(user) != "REPARTIDOR":
        return
    zone = resolve_zone(user)
    if not zone or zone != getattr(hotel, "zone", None):
        raise PermissionDenied("This hotel is outside your assigned zone.")


# ------------------------------------------------------------------
# Permission class
# ------------------------------------------------------------------
class RoleWritePermission(BasePermission):
    """
    Read: any authenticated user
    Write: role listed in view.write_roles (defaults to ADMIN only)
    """

    message = "Write access denied for your role."

    def has_permission(self, request, view):
        user = getattr(request, "user", None)
        if not user or not user.is_authenticated:
            return False

        if request.method in SAFE_METHODS:
            return True

        allowed = getattr(view, "write_roles", None) or {"ADMIN"}
        return resolve_role(user) in allowed
