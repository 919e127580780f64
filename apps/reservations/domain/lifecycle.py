"""
Reservation Lifecycle

Single transition table consulted by every mutating ledger operation.

State transitions:
- ACTIVE -> CHECKED_IN | CANCELLED | NO_SHOW | EXPIRED
- CHECKED_IN -> CHECKED_OUT | CANCELLED
- EXPIRED -> CANCELLED
- CHECKED_OUT, CANCELLED, NO_SHOW are terminal
"""

from django.db import models  # type: ignore
from django.utils.translation import gettext_lazy as _  # type: ignore

from shared.domain.exceptions import InvalidTransitionError


class ReservationStatus(models.TextChoices):
    ACTIVE = "active", _("Active")
    CHECKED_IN = "checked_in", _("Checked in")
    CHECKED_OUT = "checked_out", _("Checked out")
    CANCELLED = "cancelled", _("Cancelled")
    NO_SHOW = "no_show", _("No-show")
    EXPIRED = "expired", _("Expired")


TRANSITIONS: dict[str, frozenset[str]] = {
    ReservationStatus.ACTIVE: frozenset({
        ReservationStatus.CHECKED_IN,
        ReservationStatus.CANCELLED,
        ReservationStatus.NO_SHOW,
        ReservationStatus.EXPIRED,
    }),
    ReservationStatus.CHECKED_IN: frozenset({
        ReservationStatus.CHECKED_OUT,
        ReservationStatus.CANCELLED,
    }),
    ReservationStatus.CHECKED_OUT: frozenset(),
    ReservationStatus.CANCELLED: frozenset(),
    ReservationStatus.NO_SHOW: frozenset(),
    ReservationStatus.EXPIRED: frozenset({ReservationStatus.CANCELLED}),
}

TERMINAL_STATUSES = frozenset(status for status, targets in TRANSITIONS.items() if not targets)

# Statuses that hold the (cubicle, date) slot
LIVE_STATUSES = frozenset(ReservationStatus.values) - {ReservationStatus.CANCELLED}


def can_transition(current: str, target: str) -> bool:
    return target in TRANSITIONS.get(current, frozenset())


def ensure_transition(current: str, target: str) -> None:
    if not can_transition(current, target):
        raise InvalidTransitionError(current, target)
