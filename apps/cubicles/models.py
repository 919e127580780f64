"""Cubicle inventory models."""

from __future__ import annotations

from django.db import models  # type: ignore
from django.utils.translation import gettext_lazy as _  # type: ignore


class Cubicle(models.Model):
    """A single bookable workspace on the office grid."""

    class OperationalStatus(models.TextChoices):
        AVAILABLE = "available", _("Available")
        RESERVED = "reserved", _("Reserved")
        ERROR = "error", _("Out of service")

    section = models.CharField(max_length=1, db_index=True)
    row = models.PositiveSmallIntegerField()
    col = models.PositiveSmallIntegerField()
    serial = models.CharField(
        max_length=16,
        unique=True,
        help_text=_("Section letter plus ordinal within the section, e.g. A7."),
    )
    name = models.CharField(max_length=100, blank=True)
    description = models.CharField(max_length=255, blank=True)
    operational_status = models.CharField(
        max_length=16,
        choices=OperationalStatus.choices,
        default=OperationalStatus.AVAILABLE,
        help_text=_("Global maintenance flag, independent of date-scoped reservations."),
    )
    created_by = models.CharField(max_length=254, blank=True)
    last_modified_by = models.CharField(max_length=254, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _("Cubicle")
        verbose_name_plural = _("Cubicles")
        ordering = ["section", "row", "col"]
        constraints = [
            models.UniqueConstraint(
                fields=["section", "row", "col"],
                name="cubicle_unique_grid_position",
            ),
        ]
        indexes = [
            models.Index(fields=["operational_status"], name="cubicle_status_idx"),
        ]

    def __str__(self) -> str:
        return self.serial

    @property
    def is_out_of_service(self) -> bool:
        return self.operational_status == self.OperationalStatus.ERROR
