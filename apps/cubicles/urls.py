"""URL routing for the cubicle inventory."""

from __future__ import annotations

from django.urls import include, path  # type: ignore
from rest_framework.routers import DefaultRouter  # type: ignore

from .views import CubicleViewSet

router = DefaultRouter()
router.register(r"", CubicleViewSet, basename="cubicle")

urlpatterns = [
    path("", include(router.urls)),
]
