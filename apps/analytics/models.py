"""Persisted utilization reports."""

from __future__ import annotations

from django.db import models  # type: ignore
from django.utils import timezone  # type: ignore
from django.utils.translation import gettext_lazy as _  # type: ignore


class UtilizationReport(models.Model):
    """Point-in-time utilization snapshot for an inclusive date range."""

    class GenerationSource(models.TextChoices):
        MANUAL = "manual", _("Manual")
        SCHEDULED = "scheduled", _("Scheduled")
        API = "api", _("API")
        ADMIN = "admin", _("Admin")
        SYSTEM = "system", _("System")

    start_date = models.DateField()
    end_date = models.DateField()
    summary = models.JSONField(default=dict)
    daily = models.JSONField(default=list)
    sections = models.JSONField(default=list)
    users = models.JSONField(default=list)
    advanced = models.JSONField(default=dict)
    version = models.PositiveIntegerField(default=1)
    generation_source = models.CharField(
        max_length=16,
        choices=GenerationSource.choices,
        default=GenerationSource.MANUAL,
    )
    generated_by = models.CharField(max_length=254, blank=True)
    process_time_ms = models.PositiveIntegerField(default=0)
    generated_at = models.DateTimeField(default=timezone.now)
    expires_at = models.DateTimeField(db_index=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _("Utilization report")
        verbose_name_plural = _("Utilization reports")
        ordering = ["-generated_at"]
        constraints = [
            models.UniqueConstraint(fields=["start_date", "end_date"], name="report_unique_period"),
        ]

    def __str__(self) -> str:
        return f"Utilization {self.start_date} - {self.end_date} (v{self.version})"
