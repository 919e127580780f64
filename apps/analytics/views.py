"""API views for utilization analytics."""

from __future__ import annotations

from rest_framework import status, viewsets  # type: ignore
from rest_framework.decorators import action  # type: ignore
from rest_framework.response import Response  # type: ignore
from rest_framework.views import APIView  # type: ignore

from apps.users.services import principal_from_user

from .serializers import (
    GenerateReportSerializer,
    ReportListQuerySerializer,
    ReportListSerializer,
    ReportSerializer,
)
from .services import ReportService


class ReportViewSet(viewsets.GenericViewSet):
    """Stored utilization reports; generation and deletion are privileged."""

    serializer_class = ReportSerializer

    def get_service(self) -> ReportService:
        return ReportService()

    def get_queryset(self):  # type: ignore
        return self.get_service().list_reports()

    def list(self, request):  # type: ignore
        query = ReportListQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)
        queryset = self.get_service().list_reports(**query.validated_data)
        page = self.paginate_queryset(queryset)
        if page is not None:
            return self.get_paginated_response(ReportListSerializer(page, many=True).data)
        return Response(ReportListSerializer(queryset, many=True).data)

    def retrieve(self, request, pk=None):  # type: ignore
        return Response(ReportSerializer(self.get_service().get(pk)).data)

    def destroy(self, request, pk=None):  # type: ignore
        self.get_service().delete(pk, principal_from_user(request.user))
        return Response(status=status.HTTP_204_NO_CONTENT)

    @action(detail=False, methods=["post"])
    def generate(self, request):  # type: ignore
        serializer = GenerateReportSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        result = self.get_service().generate_report(
            data["start_date"],
            data["end_date"],
            actor=principal_from_user(request.user),
            source=data["source"],
        )
        return Response(
            {
                "created": result.created,
                "changed": result.changed,
                "report": ReportSerializer(result.report).data,
            },
            status=status.HTTP_201_CREATED if result.created else status.HTTP_200_OK,
        )


class DateStatisticsView(APIView):
    """Cubicle, section and user statistics for a single date."""

    def get(self, request, day, format=None):  # type: ignore
        return Response(ReportService().date_statistics(day))
