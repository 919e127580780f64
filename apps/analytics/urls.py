"""URL routing for analytics endpoints."""

from django.urls import include, path, re_path  # type: ignore
from rest_framework.routers import DefaultRouter  # type: ignore

from .views import DateStatisticsView, ReportViewSet

router = DefaultRouter()
router.register(r"reports", ReportViewSet, basename="report")

urlpatterns = [
    # Do not prefix with 'analytics/' here; the namespace is defined in config.urls
    re_path(
        r"^date-statistics/(?P<day>\d{4}-\d{2}-\d{2})/$",
        DateStatisticsView.as_view(),
        name="date-statistics",
    ),
    path("", include(router.urls)),
]
