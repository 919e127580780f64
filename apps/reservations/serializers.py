"""Serializers for the reservation API."""

from __future__ import annotations

from rest_framework import serializers  # type: ignore

from .models import GridDate, Reservation


class ReservationSerializer(serializers.ModelSerializer):
    cubicle_serial = serializers.CharField(source="cubicle.serial", read_only=True)
    user = serializers.SerializerMethodField()

    class Meta:
        model = Reservation
        fields = [
            "id",
            "cubicle",
            "cubicle_serial",
            "date",
            "status",
            "version",
            "user",
            "reserved_at",
            "checked_in_at",
            "checked_out_at",
            "cancelled_at",
            "cancellation_reason",
            "planned_duration_hours",
            "actual_duration_hours",
            "notes",
            "tags",
        ]
        read_only_fields = fields

    def get_user(self, obj: Reservation) -> dict:
        snapshot = obj.user
        return {"uid": snapshot.uid, "email": snapshot.email, "display_name": snapshot.display_name}


class ReservationCreateSerializer(serializers.Serializer):
    """Booking request: one cubicle for one date."""

    cubicle = serializers.IntegerField(min_value=1)
    date = serializers.DateField()
    planned_duration_hours = serializers.DecimalField(
        max_digits=4, decimal_places=2, required=False, allow_null=True
    )
    notes = serializers.CharField(required=False, allow_blank=True, default="")
    tags = serializers.ListField(
        child=serializers.CharField(max_length=50), required=False, default=list
    )


class CancelSerializer(serializers.Serializer):
    reason = serializers.CharField(required=False, allow_blank=True, default="", max_length=255)


class GridDateSerializer(serializers.ModelSerializer):
    class Meta:
        model = GridDate
        fields = ["id", "date", "total_reservations", "is_active", "last_activity", "created_at"]
        read_only_fields = fields


class GridDateListQuerySerializer(serializers.Serializer):
    limit = serializers.IntegerField(min_value=1, max_value=366, required=False)


class OpenGridSerializer(serializers.Serializer):
    date = serializers.DateField()
