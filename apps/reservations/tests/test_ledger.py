"""Service tests for the reservation ledger."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone as dt_timezone
from decimal import Decimal
from unittest import mock

import pytest

from apps.reservations.domain.events import ReservationCancelled, ReservationCreated, ReservationExpired
from apps.reservations.models import GridDate, Reservation
from shared.application.message_bus import message_bus
from shared.domain.exceptions import (
    ConflictError,
    ForbiddenError,
    InvalidTransitionError,
    NotFoundError,
    StaleReservationError,
    ValidationError,
)

from .clock import NOW, TODAY

S = Reservation.Status


def at(day, hour, minute=0):
    return datetime(day.year, day.month, day.day, hour, minute, tzinfo=dt_timezone.utc)


# ===== Booking =====

@pytest.mark.django_db
def test_book_creates_active_reservation_with_snapshot(ledger, cubicles, alice) -> None:
    reservation = ledger.book(cubicles[0].pk, TODAY, alice, notes="window seat", tags=["focus"], now=NOW)

    assert reservation.status == S.ACTIVE
    assert reservation.version == 1
    assert reservation.user.email == "alice@example.com"
    assert reservation.user_display_name == "Alice"
    assert reservation.tags == ["focus"]
    grid_date = GridDate.objects.get(date=TODAY)
    assert grid_date.total_reservations == 1
    assert grid_date.is_active


@pytest.mark.django_db
def test_book_accepts_iso_string(ledger, cubicles, alice) -> None:
    reservation = ledger.book(cubicles[0].pk, "2025-06-20", alice, now=NOW)
    assert reservation.date.isoformat() == "2025-06-20"


@pytest.mark.django_db
def test_second_booking_conflicts_and_first_is_unchanged(ledger, cubicles, alice, bob) -> None:
    first = ledger.book(cubicles[0].pk, TODAY, alice, now=NOW)

    with pytest.raises(ConflictError) as excinfo:
        ledger.book(cubicles[0].pk, TODAY, bob, now=NOW)

    assert excinfo.value.holder_email == "alice@example.com"
    assert excinfo.value.to_dict()["holder_email"] == "alice@example.com"
    assert Reservation.objects.filter(cubicle=cubicles[0], date=TODAY).count() == 1
    reloaded = ledger.get(first.pk)
    assert reloaded.status == S.ACTIVE
    assert reloaded.user_uid == alice.uid


@pytest.mark.django_db
def test_same_cubicle_other_date_is_free(ledger, cubicles, alice, bob) -> None:
    ledger.book(cubicles[0].pk, TODAY, alice, now=NOW)
    other = ledger.book(cubicles[0].pk, TODAY + timedelta(days=1), bob, now=NOW)
    assert other.user_email == "bob@example.com"


@pytest.mark.django_db
def test_book_unknown_cubicle(ledger, cubicles, alice) -> None:
    with pytest.raises(NotFoundError):
        ledger.book(9999, TODAY, alice, now=NOW)


@pytest.mark.django_db
def test_book_out_of_service_cubicle(ledger, cubicles, alice) -> None:
    cubicles[0].operational_status = "error"
    cubicles[0].save()
    with pytest.raises(ValidationError) as excinfo:
        ledger.book(cubicles[0].pk, TODAY, alice, now=NOW)
    assert excinfo.value.field == "cubicle"


@pytest.mark.django_db
@pytest.mark.parametrize(
    "day,now",
    [
        (TODAY - timedelta(days=120), NOW),
        (TODAY + timedelta(days=200), NOW),
        (TODAY, at(TODAY, 22, 30)),
    ],
)
def test_book_outside_window(ledger, cubicles, alice, day, now) -> None:
    with pytest.raises(ValidationError) as excinfo:
        ledger.book(cubicles[0].pk, day, alice, now=now)
    assert excinfo.value.field == "date"


@pytest.mark.django_db
def test_book_invalid_date_string(ledger, cubicles, alice) -> None:
    with pytest.raises(ValidationError):
        ledger.book(cubicles[0].pk, "16/06/2025", alice, now=NOW)


@pytest.mark.django_db
def test_same_day_booking_before_cutoff(ledger, cubicles, alice) -> None:
    reservation = ledger.book(cubicles[0].pk, TODAY, alice, now=at(TODAY, 21, 59))
    assert reservation.date == TODAY


@pytest.mark.django_db
def test_planned_duration_is_bounded(ledger, cubicles, alice) -> None:
    with pytest.raises(ValidationError) as excinfo:
        ledger.book(cubicles[0].pk, TODAY, alice, planned_duration_hours=30, now=NOW)
    assert excinfo.value.field == "planned_duration_hours"


@pytest.mark.django_db
def test_created_event_published_after_commit(
    ledger, cubicles, alice, django_capture_on_commit_callbacks
) -> None:
    received = []
    handler = received.append
    message_bus.register_event_handler(ReservationCreated, handler)
    try:
        with django_capture_on_commit_callbacks(execute=True):
            reservation = ledger.book(cubicles[0].pk, TODAY, alice, now=NOW)
    finally:
        message_bus.unregister_event_handler(ReservationCreated, handler)

    assert len(received) == 1
    assert received[0].aggregate_id == reservation.pk
    assert received[0].cubicle_serial == "A1"
    assert received[0].to_dict()["user"]["email"] == "alice@example.com"


# ===== Lifecycle =====

@pytest.mark.django_db
def test_check_out_before_check_in_is_rejected(ledger, cubicles, alice) -> None:
    reservation = ledger.book(cubicles[0].pk, TODAY, alice, now=NOW)

    with pytest.raises(InvalidTransitionError):
        ledger.check_out(reservation.pk, alice, at=at(TODAY, 12))

    reloaded = ledger.get(reservation.pk)
    assert reloaded.status == S.ACTIVE
    assert reloaded.version == 1


@pytest.mark.django_db
def test_check_in_and_out_records_duration(ledger, cubicles, alice) -> None:
    reservation = ledger.book(cubicles[0].pk, TODAY, alice, now=NOW)

    checked_in = ledger.check_in(reservation.pk, alice, at=at(TODAY, 9))
    assert checked_in.status == S.CHECKED_IN
    assert checked_in.version == 2

    checked_out = ledger.check_out(reservation.pk, alice, at=at(TODAY, 17, 30))
    assert checked_out.status == S.CHECKED_OUT
    assert checked_out.actual_duration_hours == Decimal("8.50")
    assert checked_out.version == 3


@pytest.mark.django_db
def test_overnight_check_out_is_capped(ledger, cubicles, alice) -> None:
    reservation = ledger.book(cubicles[0].pk, TODAY, alice, now=NOW)
    ledger.check_in(reservation.pk, alice, at=at(TODAY, 8))

    checked_out = ledger.check_out(reservation.pk, alice, at=at(TODAY + timedelta(days=1), 12))
    assert checked_out.actual_duration_hours == Decimal("24.00")


@pytest.mark.django_db
def test_check_in_outside_business_hours(ledger, cubicles, alice) -> None:
    reservation = ledger.book(cubicles[0].pk, TODAY, alice, now=NOW)
    with pytest.raises(ValidationError):
        ledger.check_in(reservation.pk, alice, at=at(TODAY, 5, 30))
    with pytest.raises(ValidationError):
        ledger.check_in(reservation.pk, alice, at=at(TODAY, 22))


@pytest.mark.django_db
def test_same_day_check_out_outside_business_hours(ledger, cubicles, alice) -> None:
    reservation = ledger.book(cubicles[0].pk, TODAY, alice, now=NOW)
    ledger.check_in(reservation.pk, alice, at=at(TODAY, 9))

    with pytest.raises(ValidationError) as excinfo:
        ledger.check_out(reservation.pk, alice, at=at(TODAY, 22, 30))

    assert excinfo.value.field == "time"
    reloaded = ledger.get(reservation.pk)
    assert reloaded.status == S.CHECKED_IN
    assert reloaded.checked_out_at is None


@pytest.mark.django_db
def test_check_in_on_other_day_is_rejected(ledger, cubicles, alice) -> None:
    reservation = ledger.book(cubicles[0].pk, TODAY + timedelta(days=2), alice, now=NOW)
    with pytest.raises(ValidationError):
        ledger.check_in(reservation.pk, alice, at=at(TODAY, 10))


@pytest.mark.django_db
def test_check_in_by_stranger_is_forbidden(ledger, cubicles, alice, bob) -> None:
    reservation = ledger.book(cubicles[0].pk, TODAY, alice, now=NOW)
    with pytest.raises(ForbiddenError):
        ledger.check_in(reservation.pk, bob, at=at(TODAY, 10))


@pytest.mark.django_db
def test_cancel_by_non_owner_is_forbidden(ledger, cubicles, alice, bob) -> None:
    reservation = ledger.book(cubicles[0].pk, TODAY, alice, now=NOW)
    with pytest.raises(ForbiddenError):
        ledger.cancel(reservation.pk, bob)
    assert ledger.get(reservation.pk).status == S.ACTIVE


@pytest.mark.django_db
def test_cancel_frees_slot_and_keeps_row(ledger, cubicles, alice, bob, django_capture_on_commit_callbacks) -> None:
    reservation = ledger.book(cubicles[0].pk, TODAY, alice, now=NOW)

    received = []
    message_bus.register_event_handler(ReservationCancelled, received.append)
    try:
        with django_capture_on_commit_callbacks(execute=True):
            cancelled = ledger.cancel(reservation.pk, alice, reason="plans changed")
    finally:
        message_bus.unregister_event_handler(ReservationCancelled, received.append)

    assert cancelled.status == S.CANCELLED
    assert cancelled.cancelled_at is not None
    assert cancelled.cancellation_reason == "plans changed"
    assert received[0].cancelled_by == "alice@example.com"
    assert GridDate.objects.get(date=TODAY).total_reservations == 0

    rebooked = ledger.book(cubicles[0].pk, TODAY, bob, now=NOW)
    assert rebooked.user_email == "bob@example.com"
    live = Reservation.objects.filter(cubicle=cubicles[0], date=TODAY).exclude(status=S.CANCELLED)
    assert live.count() == 1
    assert Reservation.objects.filter(cubicle=cubicles[0], date=TODAY).count() == 2


@pytest.mark.django_db
def test_admin_may_cancel_any_reservation(ledger, cubicles, alice, admin) -> None:
    reservation = ledger.book(cubicles[0].pk, TODAY, alice, now=NOW)
    assert ledger.cancel(reservation.pk, admin).status == S.CANCELLED


@pytest.mark.django_db
def test_checked_out_reservation_cannot_be_cancelled(ledger, cubicles, alice) -> None:
    reservation = ledger.book(cubicles[0].pk, TODAY, alice, now=NOW)
    ledger.check_in(reservation.pk, alice, at=at(TODAY, 9))
    ledger.check_out(reservation.pk, alice, at=at(TODAY, 10))
    with pytest.raises(InvalidTransitionError):
        ledger.cancel(reservation.pk, alice)


@pytest.mark.django_db
def test_stale_version_is_rejected(ledger, cubicles, alice) -> None:
    reservation = ledger.book(cubicles[0].pk, TODAY, alice, now=NOW)
    stale = ledger.get(reservation.pk)
    ledger.check_in(reservation.pk, alice, at=at(TODAY, 9))

    with pytest.raises(StaleReservationError):
        ledger._transition(stale, S.CANCELLED)
    assert ledger.get(reservation.pk).status == S.CHECKED_IN


@pytest.mark.django_db
def test_mark_no_show_requires_privilege(ledger, cubicles, alice, admin) -> None:
    reservation = ledger.book(cubicles[0].pk, TODAY, alice, now=NOW)
    with pytest.raises(ForbiddenError):
        ledger.mark_no_show(reservation.pk, alice, now=NOW)
    assert ledger.mark_no_show(reservation.pk, admin, now=NOW).status == S.NO_SHOW


@pytest.mark.django_db
def test_mark_no_show_rejects_future_dates(ledger, cubicles, alice, admin) -> None:
    reservation = ledger.book(cubicles[0].pk, TODAY + timedelta(days=3), alice, now=NOW)
    with pytest.raises(ValidationError):
        ledger.mark_no_show(reservation.pk, admin, now=NOW)


# ===== Release =====

@pytest.mark.django_db
def test_release_removes_record(ledger, cubicles, alice, bob) -> None:
    reservation = ledger.book(cubicles[0].pk, TODAY, alice, now=NOW)

    with pytest.raises(ForbiddenError):
        ledger.release(reservation.pk, bob)

    ledger.release(reservation.pk, alice)
    assert not Reservation.objects.filter(pk=reservation.pk).exists()
    grid_date = GridDate.objects.get(date=TODAY)
    assert grid_date.total_reservations == 0
    assert not grid_date.is_active

    with pytest.raises(NotFoundError):
        ledger.release(reservation.pk, alice)


# ===== Expiry sweep =====

@pytest.mark.django_db
def test_expire_overdue_is_idempotent(ledger, cubicles, alice) -> None:
    two_days_ago = ledger.book(cubicles[0].pk, TODAY - timedelta(days=2), alice, now=NOW)
    yesterday = ledger.book(cubicles[1].pk, TODAY - timedelta(days=1), alice, now=NOW)
    today = ledger.book(cubicles[2].pk, TODAY, alice, now=NOW)

    assert ledger.expire_overdue(24, now=NOW) == 2
    assert ledger.expire_overdue(24, now=NOW) == 0

    assert ledger.get(two_days_ago.pk).status == S.EXPIRED
    assert ledger.get(yesterday.pk).status == S.EXPIRED
    assert ledger.get(today.pk).status == S.ACTIVE


@pytest.mark.django_db
def test_expire_overdue_skips_checked_in(ledger, cubicles, alice) -> None:
    day = TODAY - timedelta(days=3)
    reservation = ledger.book(cubicles[0].pk, day, alice, now=NOW)
    ledger.check_in(reservation.pk, alice, at=at(day, 9))

    assert ledger.expire_overdue(24, now=NOW) == 0
    assert ledger.get(reservation.pk).status == S.CHECKED_IN


@pytest.mark.django_db
def test_expire_overdue_continues_after_a_failing_record(ledger, cubicles, alice) -> None:
    failing = ledger.book(cubicles[0].pk, TODAY - timedelta(days=3), alice, now=NOW)
    other = ledger.book(cubicles[1].pk, TODAY - timedelta(days=2), alice, now=NOW)

    def expired_event(**kwargs):
        if kwargs["aggregate_id"] == failing.pk:
            raise RuntimeError("event recording failed")
        return ReservationExpired(**kwargs)

    with mock.patch("apps.reservations.services.ledger.ReservationExpired", side_effect=expired_event):
        assert ledger.expire_overdue(24, now=NOW) == 1

    assert ledger.get(failing.pk).status == S.ACTIVE
    assert ledger.get(other.pk).status == S.EXPIRED
    # the rolled back record is picked up by the next run
    assert ledger.expire_overdue(24, now=NOW) == 1
    assert ledger.get(failing.pk).status == S.EXPIRED


@pytest.mark.django_db
def test_expired_reservation_can_be_cancelled(ledger, cubicles, alice) -> None:
    reservation = ledger.book(cubicles[0].pk, TODAY - timedelta(days=2), alice, now=NOW)
    ledger.expire_overdue(24, now=NOW)
    assert ledger.cancel(reservation.pk, alice).status == S.CANCELLED


# ===== Date grid =====

@pytest.mark.django_db
def test_query_by_date(ledger, cubicles, alice) -> None:
    cubicles[2].operational_status = "error"
    cubicles[2].save()
    ledger.book(cubicles[0].pk, TODAY, alice, now=NOW)
    GridDate.objects.all().delete()

    grid = ledger.query_by_date(TODAY.isoformat())

    statuses = {entry["serial"]: entry["status"] for entry in grid["cubicles"]}
    assert statuses == {"A1": "reserved", "A2": "available", "B1": "error"}
    reserved = next(entry for entry in grid["cubicles"] if entry["serial"] == "A1")
    assert reserved["reservation"]["user"]["email"] == "alice@example.com"
    assert grid["summary"] == {"total": 3, "available": 1, "reserved": 1, "error": 1}
    assert GridDate.objects.filter(date=TODAY).exists()


@pytest.mark.django_db
def test_query_by_date_ignores_cancelled(ledger, cubicles, alice) -> None:
    reservation = ledger.book(cubicles[0].pk, TODAY, alice, now=NOW)
    ledger.cancel(reservation.pk, alice)

    grid = ledger.query_by_date(TODAY)
    assert grid["summary"]["reserved"] == 0
    assert grid["total_reservations"] == 0


@pytest.mark.django_db
def test_list_visible_to(ledger, cubicles, alice, bob, admin) -> None:
    ledger.book(cubicles[0].pk, TODAY, alice, now=NOW)
    ledger.book(cubicles[1].pk, TODAY, bob, now=NOW)

    assert [r.user_email for r in ledger.list_visible_to(alice)] == ["alice@example.com"]
    assert ledger.list_visible_to(admin).count() == 2
