"""URL routing for the reservation domain."""

from __future__ import annotations

from django.urls import include, path  # type: ignore
from rest_framework.routers import DefaultRouter  # type: ignore

from .views import GridDateViewSet, ReservationViewSet

router = DefaultRouter()
router.register(r"reservations", ReservationViewSet, basename="reservation")
router.register(r"grid-dates", GridDateViewSet, basename="grid-date")

urlpatterns = [
    path("", include(router.urls)),
]
