"""Time-window rules for booking and for check-in/check-out."""

from __future__ import annotations

import calendar
from datetime import date, datetime, timedelta

from django.conf import settings  # type: ignore
from django.utils import timezone  # type: ignore
from django.utils.dateparse import parse_date  # type: ignore

from shared.domain.exceptions import ValidationError

DEFAULTS = {
    "MAX_PAST_MONTHS": 3,
    "MAX_ADVANCE_DAYS": 183,
    "SAME_DAY_CUTOFF_HOUR": 22,
    "BUSINESS_HOURS": (6, 22),
    "MAX_SESSION_HOURS": 24,
    "EXPIRY_GRACE_HOURS": 24,
    "GRID_DATES_DEFAULT_LIMIT": 30,
}


def booking_setting(name: str):
    return getattr(settings, "CUBICLE_BOOKING", {}).get(name, DEFAULTS[name])


def coerce_date(value, field: str = "date") -> date:
    """Accept a date or an ISO ``YYYY-MM-DD`` string; datetimes are truncated to their day."""
    if isinstance(value, datetime):
        return timezone.localtime(value).date() if timezone.is_aware(value) else value.date()
    if isinstance(value, date):
        return value
    parsed = None
    if isinstance(value, str):
        try:
            parsed = parse_date(value.strip())
        except ValueError:
            parsed = None
    if parsed is None:
        raise ValidationError(f"Invalid date '{value}', expected YYYY-MM-DD", field=field)
    return parsed


def months_before(day: date, months: int) -> date:
    month_index = day.year * 12 + (day.month - 1) - months
    year, month = divmod(month_index, 12)
    month += 1
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, min(day.day, last_day))


def validate_booking_date(day: date, now: datetime | None = None) -> None:
    now = timezone.localtime(now or timezone.now())
    today = now.date()

    earliest = months_before(today, booking_setting("MAX_PAST_MONTHS"))
    if day < earliest:
        raise ValidationError(
            f"Cannot book more than {booking_setting('MAX_PAST_MONTHS')} months in the past",
            field="date",
        )

    latest = today + timedelta(days=booking_setting("MAX_ADVANCE_DAYS"))
    if day > latest:
        raise ValidationError(f"Cannot book beyond {latest.isoformat()}", field="date")

    cutoff = booking_setting("SAME_DAY_CUTOFF_HOUR")
    if day == today and now.hour >= cutoff:
        raise ValidationError(f"Same-day bookings close at {cutoff:02d}:00", field="date")


def validate_event_time(day: date, at: datetime, event: str) -> None:
    """Same-day check-in and check-out must fall inside business hours."""
    local = timezone.localtime(at)
    if local.date() != day:
        return
    opens, closes = booking_setting("BUSINESS_HOURS")
    if not opens <= local.hour < closes:
        raise ValidationError(
            f"{event} is only possible between {opens:02d}:00 and {closes:02d}:00",
            field="time",
        )


def overdue_cutoff(grace_hours: int, now: datetime | None = None) -> date:
    """Latest reservation date whose midnight lies more than ``grace_hours`` before ``now``."""
    threshold = timezone.localtime(now or timezone.now()) - timedelta(hours=grace_hours)
    return (threshold - timedelta(microseconds=1)).date()
