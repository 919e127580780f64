"""Views for authentication flows (token pair, refresh, current principal)."""

from __future__ import annotations

from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from shared.application.authorization import AuthorizationPolicy

from .services import principal_from_user


class MeView(APIView):
    """Return the principal the booking services will see for this caller."""

    permission_classes = [IsAuthenticated]

    def get(self, request):  # type: ignore
        principal = principal_from_user(request.user)
        policy = AuthorizationPolicy.from_settings()
        return Response(
            {
                "uid": principal.uid,
                "email": principal.email,
                "display_name": principal.display_name,
                "is_privileged": policy.is_privileged(principal),
            }
        )
