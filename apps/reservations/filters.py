"""FilterSet definitions for reservation listings."""

from __future__ import annotations

import django_filters  # type: ignore

from .models import Reservation


class ReservationFilterSet(django_filters.FilterSet):
    date_from = django_filters.DateFilter(field_name="date", lookup_expr="gte")
    date_to = django_filters.DateFilter(field_name="date", lookup_expr="lte")
    status = django_filters.ChoiceFilter(choices=Reservation.Status.choices)
    section = django_filters.CharFilter(field_name="cubicle__section", lookup_expr="iexact")

    class Meta:
        model = Reservation
        fields = ["cubicle", "date", "status"]
