"""Bridge from authenticated Django users to domain principals."""

from __future__ import annotations

from shared.domain.value_objects import Principal


def principal_from_user(user) -> Principal:
    """Build the Principal the booking services expect from ``request.user``."""
    return Principal(
        uid=str(user.pk),
        email=user.email,
        display_name=user.display_name,
        is_privileged=user.is_admin(),
    )
