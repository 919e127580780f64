"""Admin registration for reservations and grid dates."""

from __future__ import annotations

from django.contrib import admin

from .models import GridDate, Reservation


@admin.register(Reservation)
class ReservationAdmin(admin.ModelAdmin):
    list_display = (
        "id",
        "cubicle",
        "date",
        "user_email",
        "status",
        "version",
        "reserved_at",
        "checked_in_at",
        "checked_out_at",
    )
    list_filter = ("status", "date", "cubicle__section")
    search_fields = ("user_email", "user_display_name", "cubicle__serial")
    readonly_fields = (
        "user_uid",
        "user_email",
        "user_display_name",
        "version",
        "reserved_at",
        "checked_in_at",
        "checked_out_at",
        "cancelled_at",
        "actual_duration_hours",
        "created_at",
        "updated_at",
    )


@admin.register(GridDate)
class GridDateAdmin(admin.ModelAdmin):
    list_display = ("date", "total_reservations", "is_active", "last_activity")
    list_filter = ("is_active",)
    readonly_fields = ("created_at", "last_activity")
