"""Service tests for the per-date grid index."""

from __future__ import annotations

from datetime import timedelta
from unittest import mock

import pytest

from apps.reservations.models import GridDate, Reservation
from shared.domain.exceptions import ForbiddenError, ValidationError

from .clock import NOW, TODAY


def make_reservation(cubicle, day, status=Reservation.Status.ACTIVE, uid="101"):
    return Reservation.objects.create(
        cubicle=cubicle,
        date=day,
        status=status,
        user_uid=uid,
        user_email=f"user{uid}@example.com",
    )


@pytest.mark.django_db
def test_find_or_create_starts_empty(grid_index) -> None:
    grid_date = grid_index.find_or_create(TODAY)
    assert grid_date.total_reservations == 0
    assert grid_index.find_or_create(TODAY).pk == grid_date.pk
    assert GridDate.objects.count() == 1


@pytest.mark.django_db
def test_refresh_count_excludes_cancelled(grid_index, cubicles) -> None:
    make_reservation(cubicles[0], TODAY)
    make_reservation(cubicles[1], TODAY, status=Reservation.Status.CANCELLED)
    make_reservation(cubicles[2], TODAY, status=Reservation.Status.EXPIRED)

    grid_date = grid_index.refresh_count(TODAY)
    assert grid_date.total_reservations == 2
    assert grid_date.is_active


@pytest.mark.django_db
def test_cleanup_empty_deactivates_only_empty_grids(grid_index, cubicles) -> None:
    empty = GridDate.objects.create(date=TODAY, total_reservations=0, is_active=True)
    busy_day = TODAY + timedelta(days=1)
    make_reservation(cubicles[0], busy_day)
    busy = grid_index.refresh_count(busy_day)

    cleaned = grid_index.cleanup_empty()

    assert cleaned == [TODAY]
    empty.refresh_from_db()
    busy.refresh_from_db()
    assert not empty.is_active
    assert busy.is_active
    assert busy.total_reservations == 1


@pytest.mark.django_db
def test_cleanup_rechecks_live_count(grid_index, cubicles) -> None:
    # counter is stale: a booking landed after the last refresh
    stale = GridDate.objects.create(date=TODAY, total_reservations=0, is_active=True)
    make_reservation(cubicles[0], TODAY)

    assert grid_index.cleanup_empty() == []
    stale.refresh_from_db()
    assert stale.is_active
    assert stale.total_reservations == 1


@pytest.mark.django_db
def test_cleanup_is_idempotent(grid_index) -> None:
    GridDate.objects.create(date=TODAY, total_reservations=0, is_active=True)
    assert grid_index.cleanup_empty() == [TODAY]
    assert grid_index.cleanup_empty() == []


@pytest.mark.django_db
def test_cleanup_continues_after_a_failing_grid(grid_index) -> None:
    later = TODAY + timedelta(days=1)
    GridDate.objects.create(date=TODAY, total_reservations=0, is_active=True)
    GridDate.objects.create(date=later, total_reservations=0, is_active=True)
    live_count = grid_index.live_count

    def count(day):
        if day == TODAY:
            raise RuntimeError("count failed")
        return live_count(day)

    with mock.patch.object(grid_index, "live_count", side_effect=count):
        assert grid_index.cleanup_empty() == [later]

    assert GridDate.objects.get(date=TODAY).is_active
    assert not GridDate.objects.get(date=later).is_active


@pytest.mark.django_db
def test_cleanup_by_member_is_forbidden(grid_index, alice, admin) -> None:
    GridDate.objects.create(date=TODAY, total_reservations=0, is_active=True)
    with pytest.raises(ForbiddenError):
        grid_index.cleanup_empty(actor=alice)
    assert grid_index.cleanup_empty(actor=admin) == [TODAY]


@pytest.mark.django_db
def test_list_active_most_recent_first(grid_index) -> None:
    for offset in range(5):
        GridDate.objects.create(date=TODAY + timedelta(days=offset), total_reservations=1)
    GridDate.objects.create(date=TODAY + timedelta(days=10), is_active=False)

    dates = [grid_date.date for grid_date in grid_index.list_active(limit=3)]
    assert dates == [TODAY + timedelta(days=4), TODAY + timedelta(days=3), TODAY + timedelta(days=2)]


@pytest.mark.django_db
def test_open_grid(grid_index) -> None:
    day = TODAY + timedelta(days=7)
    grid_date = grid_index.open_grid(day, now=NOW)
    assert grid_date.date == day
    assert grid_date.is_active

    with pytest.raises(ValidationError):
        grid_index.open_grid(day, now=NOW)
    with pytest.raises(ValidationError):
        grid_index.open_grid(TODAY - timedelta(days=1), now=NOW)
