from __future__ import annotations

import pytest

from apps.cubicles.models import Cubicle
from apps.reservations.services import GridDateIndex, ReservationLedger
from shared.application.authorization import AuthorizationPolicy
from shared.domain.value_objects import Principal

@pytest.fixture
def alice() -> Principal:
    return Principal(uid="101", email="alice@example.com", display_name="Alice")


@pytest.fixture
def bob() -> Principal:
    return Principal(uid="102", email="bob@example.com", display_name="Bob")


@pytest.fixture
def admin() -> Principal:
    return Principal(uid="1", email="admin@example.com", is_privileged=True)


@pytest.fixture
def cubicles(db) -> list[Cubicle]:
    return [
        Cubicle.objects.create(section="A", row=1, col=1, serial="A1"),
        Cubicle.objects.create(section="A", row=1, col=2, serial="A2"),
        Cubicle.objects.create(section="B", row=4, col=1, serial="B1"),
    ]


@pytest.fixture
def ledger() -> ReservationLedger:
    return ReservationLedger(policy=AuthorizationPolicy())


@pytest.fixture
def grid_index() -> GridDateIndex:
    return GridDateIndex(policy=AuthorizationPolicy())
