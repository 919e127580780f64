"""Tests for the scheduled reservation sweeps."""

from __future__ import annotations

from datetime import timedelta

import pytest
from django.utils import timezone

from apps.reservations.models import GridDate, Reservation
from apps.reservations.tasks import cleanup_empty_grid_dates, expire_overdue_reservations


@pytest.mark.django_db
def test_expire_overdue_task(cubicles) -> None:
    today = timezone.localdate()
    Reservation.objects.create(
        cubicle=cubicles[0],
        date=today - timedelta(days=5),
        user_uid="101",
        user_email="alice@example.com",
    )

    assert expire_overdue_reservations.delay(24).get() == {"expired": 1}
    assert expire_overdue_reservations() == {"expired": 0}
    assert Reservation.objects.get().status == Reservation.Status.EXPIRED


@pytest.mark.django_db
def test_cleanup_task() -> None:
    GridDate.objects.create(date=timezone.localdate(), total_reservations=0, is_active=True)
    assert cleanup_empty_grid_dates() == {"cleaned": 1}
    assert not GridDate.objects.get().is_active
