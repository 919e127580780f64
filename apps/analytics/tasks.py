"""Celery tasks for utilization reports."""

from __future__ import annotations

import logging
from datetime import timedelta

from celery import shared_task  # type: ignore
from django.utils import timezone  # type: ignore

from .models import UtilizationReport
from .services import ReportService

logger = logging.getLogger(__name__)


# ============================================================================
# PERIODIC TASKS (scheduled by Celery Beat)
# ============================================================================

@shared_task(name="analytics.generate_daily_report")
def generate_daily_report() -> dict:
    """
    Store the utilization report for yesterday.

    Runs nightly via Celery Beat.

    Returns:
        dict: {"date": ISO date, "version": stored version, "changed": bool}
    """
    yesterday = timezone.localdate() - timedelta(days=1)
    result = ReportService().generate_report(
        yesterday,
        yesterday,
        source=UtilizationReport.GenerationSource.SCHEDULED,
    )
    return {
        "date": yesterday.isoformat(),
        "version": result.report.version,
        "changed": result.changed,
    }


@shared_task(name="analytics.purge_expired_reports")
def purge_expired_reports() -> dict[str, int]:
    """
    Delete reports past their retention window.

    Runs daily via Celery Beat.

    Returns:
        dict: {"purged": number of reports deleted}
    """
    return {"purged": ReportService().purge_expired()}
