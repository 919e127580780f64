"""
Common Value Objects

Value objects used across multiple domains:
- Principal: The authenticated caller attached to every mutating call
- UserSnapshot: Booking user identity frozen at write time
- DateRange: Inclusive range of calendar days used by reports
"""

from dataclasses import dataclass
from datetime import date, timedelta
from typing import Iterator

from shared.domain.base import ValueObject


@dataclass(frozen=True)
class Principal(ValueObject):
    """
    Principal value object

    Opaque identity handed over by the authentication layer.
    Services never look the user up again; they only see this.
    """
    uid: str
    email: str
    display_name: str = ''
    is_privileged: bool = False

    def __post_init__(self):
        if not self.uid:
            raise ValueError("Principal uid is required")

    def snapshot(self) -> 'UserSnapshot':
        """Freeze the identity for embedding into a reservation"""
        return UserSnapshot(uid=self.uid, email=self.email, display_name=self.display_name)


@dataclass(frozen=True)
class UserSnapshot(ValueObject):
    """
    User snapshot value object

    Copy of the booking user taken when the reservation was written.
    It is deliberately not a live reference: historical reports keep the
    identity the user had at booking time.
    """
    uid: str
    email: str
    display_name: str = ''

    def __str__(self):
        return self.display_name or self.email


@dataclass(frozen=True)
class DateRange(ValueObject):
    """
    Date range value object

    Represents the days from start_date to end_date, both inclusive.
    Used for report periods.
    """
    start_date: date
    end_date: date

    def __post_init__(self):
        if self.start_date > self.end_date:
            raise ValueError(f"Start date ({self.start_date}) must not be after end date ({self.end_date})")

    def days(self) -> Iterator[date]:
        """Iterate over every calendar day in the range"""
        current = self.start_date
        while current <= self.end_date:
            yield current
            current += timedelta(days=1)

    def __len__(self) -> int:
        """Number of calendar days in the range"""
        return (self.end_date - self.start_date).days + 1

    def __str__(self):
        return f"{self.start_date.isoformat()} - {self.end_date.isoformat()}"

    def __repr__(self):
        return f"DateRange({self.start_date}, {self.end_date})"
