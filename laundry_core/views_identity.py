# laundry_core/views_identity.py
from __future__ import annotations

from rest_framework.views import APIView
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from .permissions import resolve_role, resolve_zone


class WhoAmIView(APIView):
    """
    Returns the authenticated user with the role and zone the API applies.
    """
    permission_classes = [IsAuthenticated]

    def get(self, request):
        user = request.user
        return Response(
            {
                "id": user.id,
                "username": user.username,
                "is_superuser": bool(getattr(user, "is_superuser", False)),
                "role": resolve_role(user),
                "zone": resolve_zone(user),
            }
        )
