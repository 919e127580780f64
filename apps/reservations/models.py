"""Reservation ledger models."""

from __future__ import annotations

from django.db import models  # type: ignore
from django.db.models import Q  # type: ignore
from django.utils import timezone  # type: ignore
from django.utils.translation import gettext_lazy as _  # type: ignore

from shared.domain.value_objects import UserSnapshot

from .domain.lifecycle import ReservationStatus


class Reservation(models.Model):
    """One cubicle booked by one user for one calendar day."""

    Status = ReservationStatus

    cubicle = models.ForeignKey(
        "cubicles.Cubicle",
        on_delete=models.PROTECT,
        related_name="reservations",
    )
    # Snapshot of the booking user taken at booking time, never re-resolved
    user_uid = models.CharField(max_length=64, db_index=True)
    user_email = models.EmailField()
    user_display_name = models.CharField(max_length=150, blank=True)
    date = models.DateField()
    status = models.CharField(
        max_length=16,
        choices=Status.choices,
        default=Status.ACTIVE,
    )
    version = models.PositiveIntegerField(
        default=1,
        help_text=_("Incremented on every lifecycle write; writes compare-and-swap on it."),
    )
    reserved_at = models.DateTimeField(default=timezone.now)
    checked_in_at = models.DateTimeField(null=True, blank=True)
    checked_out_at = models.DateTimeField(null=True, blank=True)
    cancelled_at = models.DateTimeField(null=True, blank=True)
    cancellation_reason = models.CharField(max_length=255, blank=True)
    planned_duration_hours = models.DecimalField(
        max_digits=4, decimal_places=2, null=True, blank=True
    )
    actual_duration_hours = models.DecimalField(
        max_digits=4, decimal_places=2, null=True, blank=True
    )
    notes = models.TextField(blank=True)
    tags = models.JSONField(default=list, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _("Reservation")
        verbose_name_plural = _("Reservations")
        ordering = ["-date", "-reserved_at"]
        constraints = [
            models.UniqueConstraint(
                fields=["cubicle", "date"],
                condition=~Q(status="cancelled"),
                name="reservation_one_live_per_cubicle_date",
            ),
        ]
        indexes = [
            models.Index(fields=["date", "status"], name="reservation_date_status_idx"),
            models.Index(fields=["user_uid", "date"], name="reservation_user_date_idx"),
        ]

    def __str__(self) -> str:
        return f"{self.cubicle_id} on {self.date} for {self.user_email} ({self.status})"

    @property
    def user(self) -> UserSnapshot:
        return UserSnapshot(
            uid=self.user_uid,
            email=self.user_email,
            display_name=self.user_display_name,
        )


class GridDate(models.Model):
    """Per-date activity record used to enumerate and clean up booking grids."""

    date = models.DateField(unique=True)
    total_reservations = models.PositiveIntegerField(default=0)
    is_active = models.BooleanField(default=True)
    last_activity = models.DateTimeField(default=timezone.now)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        verbose_name = _("Grid date")
        verbose_name_plural = _("Grid dates")
        ordering = ["-date"]
        indexes = [
            models.Index(fields=["is_active", "date"], name="griddate_active_date_idx"),
        ]

    def __str__(self) -> str:
        return f"{self.date.isoformat()} ({self.total_reservations})"
