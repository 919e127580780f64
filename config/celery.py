import os

from celery import Celery
from celery.schedules import crontab  # type: ignore

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings.dev")

app = Celery("cubicle_booking")

app.config_from_object("django.conf:settings", namespace="CELERY")
app.autodiscover_tasks()


# ============================================================================
# CELERY BEAT SCHEDULE (Periodic Tasks)
# ============================================================================

app.conf.beat_schedule = {
    # Overdue active reservations -> expired, hourly
    "expire-overdue-reservations": {
        "task": "reservations.expire_overdue",
        "schedule": crontab(minute=5),
        "options": {"expires": 3000},
    },
    # Deactivate grid dates with no bookings, daily
    "cleanup-empty-grid-dates": {
        "task": "reservations.cleanup_empty_grid_dates",
        "schedule": crontab(minute=30, hour=1),
    },
    # Utilization report for the previous day
    "generate-daily-utilization-report": {
        "task": "analytics.generate_daily_report",
        "schedule": crontab(minute=0, hour=2),
    },
    # Drop reports past their retention window
    "purge-expired-reports": {
        "task": "analytics.purge_expired_reports",
        "schedule": crontab(minute=30, hour=3),
    },
}
