"""API views for the reservation domain."""

from __future__ import annotations

from rest_framework import status, viewsets  # type: ignore
from rest_framework.decorators import action  # type: ignore
from rest_framework.response import Response  # type: ignore

from apps.users.services import principal_from_user

from .filters import ReservationFilterSet
from .serializers import (
    CancelSerializer,
    GridDateListQuerySerializer,
    GridDateSerializer,
    OpenGridSerializer,
    ReservationCreateSerializer,
    ReservationSerializer,
)
from .services import GridDateIndex, ReservationLedger


class ReservationViewSet(viewsets.GenericViewSet):
    """Booking, lifecycle transitions and the per-date grid view."""

    serializer_class = ReservationSerializer
    filterset_class = ReservationFilterSet

    def get_ledger(self) -> ReservationLedger:
        return ReservationLedger()

    def get_principal(self):
        return principal_from_user(self.request.user)

    def get_queryset(self):  # type: ignore
        return self.get_ledger().list_visible_to(self.get_principal())

    def get_serializer_class(self):  # type: ignore
        if self.action == "create":
            return ReservationCreateSerializer
        return ReservationSerializer

    def _reservation_response(self, reservation, status_code=status.HTTP_200_OK) -> Response:
        return Response(ReservationSerializer(reservation).data, status=status_code)

    def list(self, request):  # type: ignore
        queryset = self.filter_queryset(self.get_queryset())
        page = self.paginate_queryset(queryset)
        if page is not None:
            return self.get_paginated_response(ReservationSerializer(page, many=True).data)
        return Response(ReservationSerializer(queryset, many=True).data)

    def retrieve(self, request, pk=None):  # type: ignore
        ledger = self.get_ledger()
        reservation = ledger.get(pk)
        ledger.policy.require_manage(self.get_principal(), reservation.user_uid, "view this reservation")
        return self._reservation_response(reservation)

    def create(self, request):  # type: ignore
        serializer = ReservationCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        reservation = self.get_ledger().book(
            data["cubicle"],
            data["date"],
            self.get_principal(),
            planned_duration_hours=data.get("planned_duration_hours"),
            notes=data["notes"],
            tags=data["tags"],
        )
        return self._reservation_response(reservation, status.HTTP_201_CREATED)

    def destroy(self, request, pk=None):  # type: ignore
        self.get_ledger().release(pk, self.get_principal())
        return Response(status=status.HTTP_204_NO_CONTENT)

    @action(detail=True, methods=["post"], url_path="check-in")
    def check_in(self, request, pk=None):  # type: ignore
        return self._reservation_response(self.get_ledger().check_in(pk, self.get_principal()))

    @action(detail=True, methods=["post"], url_path="check-out")
    def check_out(self, request, pk=None):  # type: ignore
        return self._reservation_response(self.get_ledger().check_out(pk, self.get_principal()))

    @action(detail=True, methods=["post"])
    def cancel(self, request, pk=None):  # type: ignore
        serializer = CancelSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        reservation = self.get_ledger().cancel(
            pk, self.get_principal(), reason=serializer.validated_data["reason"]
        )
        return self._reservation_response(reservation)

    @action(detail=True, methods=["post"], url_path="no-show")
    def no_show(self, request, pk=None):  # type: ignore
        return self._reservation_response(self.get_ledger().mark_no_show(pk, self.get_principal()))

    @action(
        detail=False,
        methods=["get"],
        url_path=r"date/(?P<day>\d{4}-\d{2}-\d{2})",
        url_name="by-date",
    )
    def by_date(self, request, day=None):  # type: ignore
        return Response(self.get_ledger().query_by_date(day))


class GridDateViewSet(viewsets.GenericViewSet):
    """Dates with booking activity, opening new grids and cleanup of empty ones."""

    serializer_class = GridDateSerializer
    pagination_class = None

    def get_index(self) -> GridDateIndex:
        return GridDateIndex()

    def list(self, request):  # type: ignore
        query = GridDateListQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)
        grid_dates = self.get_index().list_active(query.validated_data.get("limit"))
        return Response(GridDateSerializer(grid_dates, many=True).data)

    def create(self, request):  # type: ignore
        serializer = OpenGridSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        grid_date = self.get_index().open_grid(serializer.validated_data["date"])
        return Response(GridDateSerializer(grid_date).data, status=status.HTTP_201_CREATED)

    @action(detail=False, methods=["post"])
    def cleanup(self, request):  # type: ignore
        cleaned = self.get_index().cleanup_empty(actor=principal_from_user(request.user))
        return Response(
            {
                "message": f"Cleaned up {len(cleaned)} empty grids",
                "cleaned_dates": [day.isoformat() for day in cleaned],
            }
        )
