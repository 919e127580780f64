"""
Reservation Domain Events

Published on the message bus after the ledger transaction commits.
Notification channels register handlers for them there.
"""

from dataclasses import dataclass
from datetime import date, datetime

from shared.domain.base import DomainEvent
from shared.domain.value_objects import UserSnapshot


@dataclass(kw_only=True)
class ReservationCreated(DomainEvent):
    """
    Event: A cubicle was booked for a date

    Triggers:
    - Booking confirmation to the user
    """
    cubicle_id: int
    cubicle_serial: str
    date: date
    user: UserSnapshot


@dataclass(kw_only=True)
class ReservationCheckedIn(DomainEvent):
    """Event: ACTIVE -> CHECKED_IN"""
    cubicle_id: int
    date: date
    user_uid: str
    checked_in_at: datetime


@dataclass(kw_only=True)
class ReservationCheckedOut(DomainEvent):
    """Event: CHECKED_IN -> CHECKED_OUT"""
    cubicle_id: int
    date: date
    user_uid: str
    checked_out_at: datetime
    duration_hours: float


@dataclass(kw_only=True)
class ReservationCancelled(DomainEvent):
    """
    Event: Reservation cancelled by its owner or an administrator

    The slot is free again for that date.
    """
    cubicle_id: int
    date: date
    user: UserSnapshot
    cancelled_by: str
    reason: str = ''


@dataclass(kw_only=True)
class ReservationReleased(DomainEvent):
    """Event: Reservation record removed so the cubicle is bookable again"""
    cubicle_id: int
    date: date
    user: UserSnapshot
    released_by: str


@dataclass(kw_only=True)
class ReservationExpired(DomainEvent):
    """Event: ACTIVE reservation passed its grace period unused"""
    cubicle_id: int
    date: date
    user_uid: str


@dataclass(kw_only=True)
class ReservationMarkedNoShow(DomainEvent):
    """Event: ACTIVE -> NO_SHOW, recorded by an administrator"""
    cubicle_id: int
    date: date
    user_uid: str
    marked_by: str
