"""Celery tasks for the reservation domain."""

from __future__ import annotations

import logging

from celery import shared_task  # type: ignore

from .services import GridDateIndex, ReservationLedger

logger = logging.getLogger(__name__)


# ============================================================================
# PERIODIC TASKS (scheduled by Celery Beat)
# ============================================================================

@shared_task(name="reservations.expire_overdue")
def expire_overdue_reservations(grace_period_hours: int | None = None) -> dict[str, int]:
    """
    Move ACTIVE reservations past their grace period to EXPIRED.

    Runs hourly via Celery Beat.

    Returns:
        dict: {"expired": number of reservations expired}
    """
    expired = ReservationLedger().expire_overdue(grace_period_hours)
    return {"expired": expired}


@shared_task(name="reservations.cleanup_empty_grid_dates")
def cleanup_empty_grid_dates() -> dict[str, int]:
    """
    Deactivate grid dates without live reservations.

    Runs daily via Celery Beat.

    Returns:
        dict: {"cleaned": number of grid dates deactivated}
    """
    cleaned = GridDateIndex().cleanup_empty()
    if cleaned:
        logger.info(f"Deactivated grids: {', '.join(day.isoformat() for day in cleaned)}")
    return {"cleaned": len(cleaned)}
