from __future__ import annotations

import pytest

from apps.analytics.services import ReportService
from apps.cubicles.models import Cubicle
from apps.reservations.models import Reservation
from shared.application.authorization import AuthorizationPolicy
from shared.domain.value_objects import Principal

from .clock import DAY


@pytest.fixture
def admin() -> Principal:
    return Principal(uid="1", email="admin@example.com", is_privileged=True)

@pytest.fixture
def member() -> Principal:
    return Principal(uid="101", email="alice@example.com", display_name="Alice")

@pytest.fixture
def office(db) -> list[Cubicle]:
    """Ten cubicles: six in section A, four in section B."""
    cubicles = [
        Cubicle.objects.create(section="A", row=1, col=col, serial=f"A{col}") for col in range(1, 7)
    ]
    cubicles += [
        Cubicle.objects.create(section="B", row=4, col=col, serial=f"B{col}") for col in range(1, 5)
    ]
    return cubicles

@pytest.fixture
def reserve():
    def _reserve(cubicle, day=DAY, email="alice@example.com", **extra):
        return Reservation.objects.create(
            cubicle=cubicle,
            date=day,
            user_uid=email.split("@")[0],
            user_email=email,
            **extra,
        )

    return _reserve

@pytest.fixture
def service() -> ReportService:
    return ReportService(policy=AuthorizationPolicy())
