"""Tests for the reservation transition table."""

from __future__ import annotations

import pytest

from apps.reservations.domain.lifecycle import (
    LIVE_STATUSES,
    TERMINAL_STATUSES,
    ReservationStatus,
    can_transition,
    ensure_transition,
)
from shared.domain.exceptions import InvalidTransitionError

S = ReservationStatus


@pytest.mark.parametrize(
    "current,target",
    [
        (S.ACTIVE, S.CHECKED_IN),
        (S.ACTIVE, S.CANCELLED),
        (S.ACTIVE, S.NO_SHOW),
        (S.ACTIVE, S.EXPIRED),
        (S.CHECKED_IN, S.CHECKED_OUT),
        (S.CHECKED_IN, S.CANCELLED),
        (S.EXPIRED, S.CANCELLED),
    ],
)
def test_allowed_transitions(current, target) -> None:
    assert can_transition(current, target)
    ensure_transition(current, target)


@pytest.mark.parametrize(
    "current,target",
    [
        (S.ACTIVE, S.CHECKED_OUT),
        (S.CHECKED_IN, S.ACTIVE),
        (S.CHECKED_IN, S.NO_SHOW),
        (S.EXPIRED, S.CHECKED_IN),
        (S.CHECKED_OUT, S.CANCELLED),
        (S.NO_SHOW, S.ACTIVE),
        (S.CANCELLED, S.ACTIVE),
    ],
)
def test_rejected_transitions(current, target) -> None:
    assert not can_transition(current, target)
    with pytest.raises(InvalidTransitionError) as excinfo:
        ensure_transition(current, target)
    assert excinfo.value.current == current
    assert excinfo.value.target == target


def test_terminal_and_live_statuses() -> None:
    assert TERMINAL_STATUSES == {S.CHECKED_OUT, S.CANCELLED, S.NO_SHOW}
    assert S.CANCELLED not in LIVE_STATUSES
    assert S.EXPIRED in LIVE_STATUSES


def test_plain_strings_are_accepted() -> None:
    assert can_transition("active", "checked_in")
    assert not can_transition("unknown", "active")
