"""
Utilization aggregation.

Pure functions that turn cubicle and reservation rows into the report
blocks (summary, daily series, sections, users, advanced). They take
plain rows so they can be exercised without a database; the
``UtilizationAggregator`` in ``services`` loads the rows.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, Sequence

from shared.domain.value_objects import DateRange

SEQUENCE_CODE = re.compile(r"^([A-Z])(\d+)$")

DEFAULT_SESSION_HOURS = 8

# (hour, multiplier of the average utilization)
PEAK_HOUR_MULTIPLIERS = ((9, 0.8), (10, 1.2), (14, 1.1), (15, 0.9))

# Percentage points within which two periods count as "stable"
TREND_TOLERANCE = 2

REPORT_BLOCKS = ("summary", "daily", "sections", "users", "advanced")

# Headline figures named in the log when a stored report is replaced
CHANGE_DETECTION_FIELDS = ("totalReservations", "uniqueUsers", "avgUtilization", "errorIncidents")


@dataclass(frozen=True)
class CubicleRow:
    serial: str
    section: str
    in_error: bool = False


@dataclass(frozen=True)
class ReservationRow:
    date: date
    serial: str
    section: str
    user_email: str
    user_display_name: str = ""
    duration_hours: float | None = None


def round_half_up(value, places: int = 0):
    quantum = Decimal(1).scaleb(-places)
    rounded = Decimal(str(value)).quantize(quantum, rounding=ROUND_HALF_UP)
    return int(rounded) if places == 0 else float(rounded)


def percent(part: int, whole: int) -> int:
    return round_half_up(part / whole * 100) if whole else 0


# ===== Sequence compression =====

def is_sequential(first: str, second: str) -> bool:
    """``A1``/``A2`` are sequential; different sections or gaps are not."""
    first_match = SEQUENCE_CODE.match(first)
    second_match = SEQUENCE_CODE.match(second)
    if not first_match or not second_match:
        return False
    return (
        first_match.group(1) == second_match.group(1)
        and abs(int(first_match.group(2)) - int(second_match.group(2))) == 1
    )


def compress_codes(codes: Iterable[str]) -> list[str]:
    """Collapse one day's codes into ranges: A1, A2, A3, B5 -> A1-A3, B5."""
    ordered = sorted(codes)
    if not ordered:
        return []

    runs: list[str] = []
    start = end = ordered[0]
    for code in ordered[1:]:
        if is_sequential(end, code):
            end = code
            continue
        runs.append(start if start == end else f"{start}-{end}")
        start = end = code
    runs.append(start if start == end else f"{start}-{end}")
    return runs


def compress_cubicle_sequence(bookings: Iterable[tuple[date, str]]) -> str:
    """
    Compress a user's (date, code) bookings for display.

    Codes are grouped per date and compressed within the date; the groups
    are then joined in ascending date order.
    """
    by_date: dict[date, list[str]] = {}
    for day, code in bookings:
        if code:
            by_date.setdefault(day, []).append(code)

    parts: list[str] = []
    for day in sorted(by_date):
        parts.extend(compress_codes(by_date[day]))
    return ", ".join(parts)


# ===== Report blocks =====

def daily_breakdown(
    period: DateRange,
    cubicles: Sequence[CubicleRow],
    reservations: Sequence[ReservationRow],
) -> list[dict]:
    total = len(cubicles)
    errors = sum(1 for cubicle in cubicles if cubicle.in_error)

    by_day: dict[date, list[ReservationRow]] = {}
    for reservation in reservations:
        by_day.setdefault(reservation.date, []).append(reservation)

    daily = []
    for day in period.days():
        day_reservations = by_day.get(day, [])
        reserved = len(day_reservations)
        daily.append({
            "date": day.isoformat(),
            "dayOfWeek": day.strftime("%A"),
            "reserved": reserved,
            "available": total - reserved,
            "error": errors,
            "utilizationPercent": percent(reserved, total),
            "reservations": reserved,
            "activeUsers": len({r.user_email for r in day_reservations if r.user_email}),
        })
    return daily


def summarize(
    daily: Sequence[dict],
    cubicles: Sequence[CubicleRow],
    reservations: Sequence[ReservationRow],
) -> dict:
    percents = [day["utilizationPercent"] for day in daily]
    avg = round_half_up(sum(percents) / len(percents)) if percents else 0
    peak = max(percents, default=0)
    lowest = min(percents, default=0)
    return {
        "totalCubicles": len(cubicles),
        "avgUtilization": avg,
        "peakUtilization": max(peak, avg),
        "lowestUtilization": min(lowest, avg),
        "totalReservations": len(reservations),
        "uniqueUsers": len({r.user_email for r in reservations if r.user_email}),
        "errorIncidents": sum(1 for cubicle in cubicles if cubicle.in_error),
    }


def section_breakdown(
    sections: Sequence[str],
    period: DateRange,
    cubicles: Sequence[CubicleRow],
    reservations: Sequence[ReservationRow],
) -> list[dict]:
    days = len(period)
    breakdown = []
    for section in sections:
        section_cubicles = [c for c in cubicles if c.section == section]
        section_reservations = [r for r in reservations if r.section == section]
        section_total = len(section_cubicles)

        per_day: dict[date, int] = {}
        for reservation in section_reservations:
            per_day[reservation.date] = per_day.get(reservation.date, 0) + 1

        breakdown.append({
            "section": section,
            "totalCubicles": section_total,
            "avgUtilization": percent(len(section_reservations), section_total * days),
            "peakUtilization": max(
                (percent(count, section_total) for count in per_day.values()), default=0
            ),
            "totalReservations": len(section_reservations),
            "errorIncidents": sum(1 for c in section_cubicles if c.in_error),
        })
    return breakdown


def user_activity(reservations: Sequence[ReservationRow]) -> list[dict]:
    """
    Per-user activity, busiest users first.

    ``favoriteSection`` is the section booked most often; on a tie the
    section seen first in the reservation order wins.
    """
    users: dict[str, dict] = {}
    for reservation in reservations:
        if not reservation.user_email:
            continue
        entry = users.setdefault(reservation.user_email, {
            "display_name": reservation.user_display_name,
            "rows": [],
            "sections": {},
        })
        entry["rows"].append(reservation)
        entry["sections"][reservation.section] = entry["sections"].get(reservation.section, 0) + 1

    activity = []
    for email, entry in users.items():
        rows = entry["rows"]
        days_active = len({row.date for row in rows})

        favorite, best = "", 0
        for section, count in entry["sections"].items():
            if count > best:
                favorite, best = section, count

        activity.append({
            "email": email,
            "displayName": entry["display_name"],
            "totalReservations": len(rows),
            "daysActive": days_active,
            "favoriteSection": favorite,
            "avgDailyReservations": round_half_up(len(rows) / days_active, 2) if days_active else 0,
            "cubicleSequence": compress_cubicle_sequence((row.date, row.serial) for row in rows),
        })

    return sorted(activity, key=lambda user: -user["totalReservations"])


def advanced_analytics(
    summary: dict,
    reservations: Sequence[ReservationRow],
    previous_summary: dict | None = None,
) -> dict:
    """
    Heuristic analytics derived from the average utilization.

    Peak hours are fixed multipliers of the average, not measured hourly
    data. Trend fields compare against ``previous_summary`` when given and
    are placeholders otherwise.
    """
    avg = summary["avgUtilization"]

    peak_hours = [
        {"hour": hour, "utilizationPercent": min(round_half_up(avg * multiplier), 100)}
        for hour, multiplier in PEAK_HOUR_MULTIPLIERS
    ]

    if previous_summary is not None:
        change = avg - previous_summary.get("avgUtilization", 0)
        if change > TREND_TOLERANCE:
            trend = "increasing"
        elif change < -TREND_TOLERANCE:
            trend = "decreasing"
        else:
            trend = "stable"
        predicted = max(0, min(100, avg + change))
    else:
        change, trend, predicted = 0, "stable", avg

    durations = [r.duration_hours for r in reservations if r.duration_hours is not None]
    total_reservations = summary["totalReservations"]

    return {
        "heuristic": True,
        "peakHours": peak_hours,
        "trendAnalysis": {
            "weekOverWeekChange": change,
            "utilizationTrend": trend,
            "predictedNextWeek": predicted,
        },
        "efficiency": {
            "spaceTurnover": (
                round_half_up(summary["totalCubicles"] / total_reservations, 2) if total_reservations else 0
            ),
            "averageSessionDuration": (
                round_half_up(sum(durations) / len(durations), 2) if durations else DEFAULT_SESSION_HOURS
            ),
            "utilizationEfficiency": avg,
        },
    }


def build_report(
    period: DateRange,
    sections: Sequence[str],
    cubicles: Sequence[CubicleRow],
    reservations: Sequence[ReservationRow],
    previous_summary: dict | None = None,
) -> dict:
    daily = daily_breakdown(period, cubicles, reservations)
    summary = summarize(daily, cubicles, reservations)
    return {
        "summary": summary,
        "daily": daily,
        "sections": section_breakdown(sections, period, cubicles, reservations),
        "users": user_activity(reservations),
        "advanced": advanced_analytics(summary, reservations, previous_summary),
    }


def changed_blocks(existing: dict, fresh: dict) -> list[str]:
    """Names of the report blocks whose content differs between two reports."""
    return [block for block in REPORT_BLOCKS if existing.get(block) != fresh.get(block)]


def changed_summary_fields(existing_summary: dict, fresh_summary: dict) -> list[str]:
    return [
        field for field in CHANGE_DETECTION_FIELDS
        if existing_summary.get(field) != fresh_summary.get(field)
    ]
