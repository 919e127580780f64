"""Serializers for the analytics API."""

from __future__ import annotations

from rest_framework import serializers  # type: ignore

from .models import UtilizationReport


class ReportListSerializer(serializers.ModelSerializer):
    class Meta:
        model = UtilizationReport
        fields = [
            "id",
            "start_date",
            "end_date",
            "summary",
            "version",
            "generation_source",
            "generated_by",
            "generated_at",
            "expires_at",
        ]
        read_only_fields = fields


class ReportSerializer(serializers.ModelSerializer):
    class Meta:
        model = UtilizationReport
        fields = [
            "id",
            "start_date",
            "end_date",
            "summary",
            "daily",
            "sections",
            "users",
            "advanced",
            "version",
            "generation_source",
            "generated_by",
            "process_time_ms",
            "generated_at",
            "expires_at",
        ]
        read_only_fields = fields


class GenerateReportSerializer(serializers.Serializer):
    start_date = serializers.DateField()
    end_date = serializers.DateField()
    source = serializers.ChoiceField(
        choices=[
            UtilizationReport.GenerationSource.MANUAL,
            UtilizationReport.GenerationSource.API,
            UtilizationReport.GenerationSource.ADMIN,
        ],
        default=UtilizationReport.GenerationSource.API,
    )

    def validate(self, attrs):
        if attrs["start_date"] > attrs["end_date"]:
            raise serializers.ValidationError({"start_date": "Must not be after end_date."})
        return attrs


class ReportListQuerySerializer(serializers.Serializer):
    generated_from = serializers.DateField(required=False)
    generated_to = serializers.DateField(required=False)
