"""
Analytics services.

``UtilizationAggregator`` loads cubicles and reservations for a period and
hands them to the pure functions in ``aggregation``. ``ReportService``
persists the result as a ``UtilizationReport`` and owns the listing,
retention and per-date statistics.
"""

from __future__ import annotations

import json
import logging
import time
from dataclasses import dataclass
from datetime import date, datetime, timedelta

from django.conf import settings  # type: ignore
from django.core.serializers.json import DjangoJSONEncoder  # type: ignore
from django.db import IntegrityError, transaction  # type: ignore
from django.db.models import F  # type: ignore
from django.utils import timezone  # type: ignore

from apps.cubicles.services import ResourceRegistry, grid_settings
from apps.reservations.domain.lifecycle import LIVE_STATUSES
from apps.reservations.models import Reservation
from apps.reservations.services import ReservationLedger
from apps.reservations.services.windows import coerce_date
from shared.application.authorization import AuthorizationPolicy
from shared.domain.exceptions import NotFoundError, ValidationError
from shared.domain.value_objects import DateRange, Principal

from .aggregation import (
    REPORT_BLOCKS,
    CubicleRow,
    ReservationRow,
    build_report,
    changed_blocks,
    changed_summary_fields,
    percent,
    round_half_up,
)
from .models import UtilizationReport

logger = logging.getLogger(__name__)

DEFAULTS = {
    "REPORT_RETENTION_DAYS": 180,
    "MAX_REPORT_RANGE_DAYS": 366,
}

MAX_TOP_USERS = 10


def analytics_setting(name: str) -> int:
    return int(getattr(settings, "CUBICLE_BOOKING", {}).get(name, DEFAULTS[name]))


def validate_range(start, end) -> DateRange:
    start = coerce_date(start, field="start_date")
    end = coerce_date(end, field="end_date")
    if start > end:
        raise ValidationError("start_date must not be after end_date", field="start_date")

    period = DateRange(start, end)
    limit = analytics_setting("MAX_REPORT_RANGE_DAYS")
    if len(period) > limit:
        raise ValidationError(f"Report range cannot exceed {limit} days", field="end_date")
    return period


def previous_period(period: DateRange) -> DateRange:
    """The period of equal length ending the day before ``period`` starts."""
    end = period.start_date - timedelta(days=1)
    return DateRange(end - timedelta(days=len(period) - 1), end)


class UtilizationAggregator:
    """Compute utilization report blocks for a date range."""

    def __init__(self, registry: ResourceRegistry | None = None):
        self.registry = registry or ResourceRegistry()

    def load_cubicles(self) -> list[CubicleRow]:
        return [
            CubicleRow(serial=cubicle.serial, section=cubicle.section, in_error=cubicle.is_out_of_service)
            for cubicle in self.registry.list().order_by("section", "row", "col")
        ]

    def load_reservations(self, period: DateRange) -> list[ReservationRow]:
        queryset = (
            Reservation.objects.filter(
                date__gte=period.start_date,
                date__lte=period.end_date,
                status__in=LIVE_STATUSES,
            )
            .select_related("cubicle")
            .order_by("date", "reserved_at", "pk")
        )
        return [
            ReservationRow(
                date=reservation.date,
                serial=reservation.cubicle.serial,
                section=reservation.cubicle.section,
                user_email=reservation.user_email,
                user_display_name=reservation.user_display_name,
                duration_hours=(
                    float(reservation.actual_duration_hours)
                    if reservation.actual_duration_hours is not None
                    else None
                ),
            )
            for reservation in queryset
        ]

    def generate(self, period: DateRange, previous_summary: dict | None = None) -> dict:
        cubicles = self.load_cubicles()
        sections = list(grid_settings()["sections"])
        for cubicle in cubicles:
            if cubicle.section not in sections:
                sections.append(cubicle.section)

        return build_report(
            period,
            sections,
            cubicles,
            self.load_reservations(period),
            previous_summary=previous_summary,
        )


@dataclass
class GenerationResult:
    report: UtilizationReport
    created: bool
    changed: bool


class ReportService:
    """Generate, store and expire utilization reports."""

    def __init__(
        self,
        aggregator: UtilizationAggregator | None = None,
        ledger: ReservationLedger | None = None,
        policy: AuthorizationPolicy | None = None,
    ):
        self.policy = policy or AuthorizationPolicy.from_settings()
        self.aggregator = aggregator or UtilizationAggregator(ResourceRegistry(policy=self.policy))
        self.ledger = ledger or ReservationLedger(registry=self.aggregator.registry, policy=self.policy)

    # ===== Generation =====

    def generate_report(
        self,
        start,
        end,
        actor: Principal | None = None,
        source: str = UtilizationReport.GenerationSource.MANUAL,
        now: datetime | None = None,
    ) -> GenerationResult:
        """
        Build the report for ``[start, end]`` and persist it.

        A stored report for the same period is only overwritten, with its
        version bumped, when any of its blocks differs from the fresh result.
        ``actor`` is required except for scheduled and system runs.
        """
        if actor is not None:
            self.policy.require_privileged(actor, "generate utilization reports")
        elif source not in (UtilizationReport.GenerationSource.SCHEDULED, UtilizationReport.GenerationSource.SYSTEM):
            raise ValidationError("An actor is required to generate a report", field="actor")

        period = validate_range(start, end)
        now = now or timezone.now()
        generated_by = actor.email if actor else source

        previous = (
            UtilizationReport.objects.filter(
                start_date=previous_period(period).start_date,
                end_date=previous_period(period).end_date,
            )
            .values_list("summary", flat=True)
            .first()
        )

        started = time.monotonic()
        blocks = self.aggregator.generate(period, previous_summary=previous)
        process_time_ms = int((time.monotonic() - started) * 1000)

        expires_at = now + timedelta(days=analytics_setting("REPORT_RETENTION_DAYS"))
        fields = {
            **blocks,
            "generation_source": source,
            "generated_by": generated_by,
            "process_time_ms": process_time_ms,
            "generated_at": now,
            "expires_at": expires_at,
        }

        existing = UtilizationReport.objects.filter(
            start_date=period.start_date, end_date=period.end_date
        ).first()

        if existing is None:
            try:
                with transaction.atomic():
                    report = UtilizationReport.objects.create(
                        start_date=period.start_date, end_date=period.end_date, **fields
                    )
            except IntegrityError:
                # A concurrent generation stored the same period first
                existing = UtilizationReport.objects.get(
                    start_date=period.start_date, end_date=period.end_date
                )
            else:
                logger.info(
                    f"Generated utilization report {period} by {generated_by} "
                    f"({blocks['summary']['totalReservations']} reservations, {process_time_ms} ms)"
                )
                return GenerationResult(report=report, created=True, changed=True)

        fresh = json.loads(json.dumps(blocks, cls=DjangoJSONEncoder))
        differing = changed_blocks(
            {block: getattr(existing, block) for block in REPORT_BLOCKS}, fresh
        )
        if not differing:
            logger.debug(f"Utilization report {period} unchanged, keeping version {existing.version}")
            return GenerationResult(report=existing, created=False, changed=False)

        existing_summary = existing.summary
        updated = UtilizationReport.objects.filter(pk=existing.pk, version=existing.version).update(
            version=F("version") + 1,
            updated_at=timezone.now(),
            **fields,
        )
        existing.refresh_from_db()
        if not updated:
            logger.warning(
                f"Utilization report {period} was regenerated concurrently, keeping version {existing.version}"
            )
            return GenerationResult(report=existing, created=False, changed=False)

        reasons = changed_summary_fields(existing_summary, blocks["summary"]) or differing
        logger.info(
            f"Regenerated utilization report {period} as version {existing.version} by {generated_by} "
            f"(changed: {', '.join(reasons)})"
        )
        return GenerationResult(report=existing, created=False, changed=True)

    # ===== Queries =====

    def list_reports(self, generated_from: date | None = None, generated_to: date | None = None):
        queryset = UtilizationReport.objects.order_by("-generated_at")
        if generated_from:
            queryset = queryset.filter(generated_at__date__gte=generated_from)
        if generated_to:
            queryset = queryset.filter(generated_at__date__lte=generated_to)
        return queryset

    def get(self, report_id) -> UtilizationReport:
        try:
            return UtilizationReport.objects.get(pk=report_id)
        except (UtilizationReport.DoesNotExist, ValueError, TypeError):
            raise NotFoundError(f"Report {report_id} not found")

    def delete(self, report_id, actor: Principal) -> None:
        self.policy.require_privileged(actor, "delete utilization reports")
        report = self.get(report_id)
        report.delete()
        logger.info(f"Deleted utilization report {report.start_date} - {report.end_date} by {actor.email}")

    def purge_expired(self, now: datetime | None = None) -> int:
        deleted, _ = UtilizationReport.objects.filter(expires_at__lte=now or timezone.now()).delete()
        if deleted:
            logger.info(f"Purged {deleted} expired utilization reports")
        return deleted

    def date_statistics(self, day) -> dict:
        """
        Single-day statistics built on the per-date grid.

        Users are identified by the local part of their email only.
        """
        grid = self.ledger.query_by_date(day)
        cubicles = grid["cubicles"]
        summary = grid["summary"]
        total = summary["total"]

        general = {
            **summary,
            "percentReserved": percent(summary["reserved"], total),
            "percentAvailable": percent(summary["available"], total) if total else 100,
            "percentError": percent(summary["error"], total),
        }

        sections = []
        section_names = list(grid_settings()["sections"])
        for cubicle in cubicles:
            if cubicle["section"] not in section_names:
                section_names.append(cubicle["section"])
        for section in section_names:
            in_section = [c for c in cubicles if c["section"] == section]
            reserved = sum(1 for c in in_section if c["status"] == "reserved")
            sections.append({
                "section": section,
                "total": len(in_section),
                "reserved": reserved,
                "available": len(in_section) - reserved,
                "percentReserved": percent(reserved, len(in_section)),
            })

        counts: dict[str, int] = {}
        for cubicle in cubicles:
            if cubicle["status"] == "reserved":
                email = cubicle["reservation"]["user"]["email"]
                counts[email] = counts.get(email, 0) + 1
        users = sorted(
            (
                {
                    "user": email.split("@")[0],
                    "reserved": reserved,
                    "percent": percent(reserved, summary["reserved"]),
                }
                for email, reserved in counts.items()
            ),
            key=lambda entry: -entry["reserved"],
        )[:MAX_TOP_USERS]

        return {
            "date": grid["date"],
            "general": general,
            "sections": sections,
            "users": users,
            "averagePerUser": round_half_up(summary["reserved"] / len(counts), 1) if counts else 0,
        }
