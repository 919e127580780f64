"""Admin registration for utilization reports."""

from __future__ import annotations

from django.contrib import admin

from .models import UtilizationReport


@admin.register(UtilizationReport)
class UtilizationReportAdmin(admin.ModelAdmin):
    list_display = ("start_date", "end_date", "version", "generation_source", "generated_by", "generated_at", "expires_at")
    list_filter = ("generation_source",)
    date_hierarchy = "generated_at"
    readonly_fields = (
        "summary",
        "daily",
        "sections",
        "users",
        "advanced",
        "version",
        "process_time_ms",
        "generated_at",
        "created_at",
        "updated_at",
    )
