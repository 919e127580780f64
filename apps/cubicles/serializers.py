"""Serializers for the cubicle API."""

from __future__ import annotations

from rest_framework import serializers  # type: ignore

from .models import Cubicle


class CubicleSerializer(serializers.ModelSerializer):
    class Meta:
        model = Cubicle
        fields = [
            "id",
            "serial",
            "section",
            "row",
            "col",
            "name",
            "description",
            "operational_status",
            "created_by",
            "last_modified_by",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class CubicleStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=Cubicle.OperationalStatus.choices)
