"""API views for the cubicle inventory."""

from __future__ import annotations

from rest_framework import viewsets  # type: ignore
from rest_framework.decorators import action  # type: ignore
from rest_framework.response import Response  # type: ignore

from apps.users.services import principal_from_user

from .serializers import CubicleSerializer, CubicleStatusSerializer
from .services import ResourceRegistry


class CubicleViewSet(viewsets.ReadOnlyModelViewSet):
    """Read access to the grid plus the maintenance status switch."""

    serializer_class = CubicleSerializer
    filterset_fields = ["section", "operational_status"]

    def get_registry(self) -> ResourceRegistry:
        return ResourceRegistry()

    def get_queryset(self):  # type: ignore
        return self.get_registry().list()

    def get_object(self):  # type: ignore
        return self.get_registry().get(self.kwargs["pk"])

    @action(detail=True, methods=["post"])
    def status(self, request, pk=None):  # type: ignore
        serializer = CubicleStatusSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        cubicle = self.get_registry().set_operational_status(
            pk,
            serializer.validated_data["status"],
            principal_from_user(request.user),
        )
        return Response(CubicleSerializer(cubicle).data)

    @action(detail=False, methods=["get"])
    def layout(self, request):  # type: ignore
        layout = self.get_registry().grid_layout()
        return Response(
            {section: CubicleSerializer(cubicles, many=True).data for section, cubicles in layout.items()}
        )

    @action(detail=False, methods=["get"])
    def statistics(self, request):  # type: ignore
        return Response(self.get_registry().statistics())
