"""Admin registration for cubicles."""

from __future__ import annotations

from django.contrib import admin

from .models import Cubicle


@admin.register(Cubicle)
class CubicleAdmin(admin.ModelAdmin):
    list_display = ("serial", "section", "row", "col", "operational_status", "last_modified_by", "updated_at")
    list_filter = ("section", "operational_status")
    search_fields = ("serial", "name", "description")
    ordering = ("section", "row", "col")
    readonly_fields = ("created_by", "last_modified_by", "created_at", "updated_at")
