"""Per-date grid index: which dates carry bookings, and cleanup of empty ones."""

from __future__ import annotations

import logging
from datetime import date, datetime

from django.db import IntegrityError, transaction  # type: ignore
from django.utils import timezone  # type: ignore

from shared.application.authorization import AuthorizationPolicy
from shared.domain.exceptions import ValidationError
from shared.domain.value_objects import Principal

from ..domain.lifecycle import ReservationStatus
from ..models import GridDate, Reservation
from .windows import booking_setting

logger = logging.getLogger(__name__)


class GridDateIndex:
    def __init__(self, policy: AuthorizationPolicy | None = None):
        self.policy = policy or AuthorizationPolicy.from_settings()

    def live_count(self, day: date) -> int:
        return Reservation.objects.filter(date=day).exclude(status=ReservationStatus.CANCELLED).count()

    def find_or_create(self, day: date) -> GridDate:
        try:
            with transaction.atomic():
                grid_date, _ = GridDate.objects.get_or_create(date=day)
        except IntegrityError:
            # created concurrently between the lookup and the insert
            grid_date = GridDate.objects.get(date=day)
        return grid_date

    def refresh_count(self, day: date) -> GridDate:
        count = self.live_count(day)
        grid_date = self.find_or_create(day)
        GridDate.objects.filter(pk=grid_date.pk).update(
            total_reservations=count,
            is_active=count > 0,
            last_activity=timezone.now(),
        )
        grid_date.refresh_from_db()
        logger.debug(f"Grid {day.isoformat()} now has {count} reservations")
        return grid_date

    def list_active(self, limit: int | None = None):
        limit = limit or booking_setting("GRID_DATES_DEFAULT_LIMIT")
        return GridDate.objects.filter(is_active=True).order_by("-date")[:limit]

    def open_grid(self, day: date, now: datetime | None = None) -> GridDate:
        """Start tracking an empty grid for a date that is today or later."""
        today = timezone.localtime(now or timezone.now()).date()
        if day < today:
            raise ValidationError("Cannot open grids for past dates", field="date")
        if GridDate.objects.filter(date=day).exists():
            raise ValidationError(f"Grid already exists for {day.isoformat()}", field="date")
        grid_date = self.find_or_create(day)
        logger.info(f"Opened grid for {day.isoformat()}")
        return grid_date

    def cleanup_empty(self, actor: Principal | None = None) -> list[date]:
        """
        Deactivate grid dates that have no live reservations left.

        Each candidate is re-counted against the ledger before it is
        deactivated, so a booking that landed after the listing survives.
        Called without an actor by the scheduled sweep; an explicit actor
        must be privileged.
        """
        if actor is not None:
            self.policy.require_privileged(actor, "clean up empty grids")

        cleaned: list[date] = []
        candidates = GridDate.objects.filter(total_reservations=0, is_active=True)
        for grid_date in candidates:
            try:
                if self.live_count(grid_date.date):
                    self.refresh_count(grid_date.date)
                    continue
                updated = GridDate.objects.filter(pk=grid_date.pk, is_active=True).update(
                    is_active=False,
                    last_activity=timezone.now(),
                )
                if updated:
                    cleaned.append(grid_date.date)
            except Exception as e:
                logger.error(f"Failed to clean up grid {grid_date.date}: {e}", exc_info=True)

        logger.info(f"Cleaned up {len(cleaned)} empty grids")
        return cleaned
