"""
Authorization Policy

Answers "may this principal do that" for the booking services. The
policy is handed to each service at construction; services never read
the privileged allow-list from settings themselves.
"""

from typing import Iterable

from django.conf import settings

from shared.domain.exceptions import ForbiddenError
from shared.domain.value_objects import Principal


class AuthorizationPolicy:
    """
    Privilege decisions for principals

    A principal is privileged when the identity layer flagged it so, or
    when its uid is on the configured allow-list.
    """

    def __init__(self, privileged_uids: Iterable[str] = ()):
        self._privileged_uids = frozenset(str(uid) for uid in privileged_uids)

    @classmethod
    def from_settings(cls) -> 'AuthorizationPolicy':
        config = getattr(settings, 'CUBICLE_BOOKING', {})
        return cls(config.get('PRIVILEGED_UIDS', ()))

    def is_privileged(self, principal: Principal) -> bool:
        return principal.is_privileged or principal.uid in self._privileged_uids

    def can_manage(self, principal: Principal, owner_uid: str) -> bool:
        """Owners manage their own records; privileged principals manage any"""
        return principal.uid == str(owner_uid) or self.is_privileged(principal)

    def require_privileged(self, principal: Principal, action: str):
        if not self.is_privileged(principal):
            raise ForbiddenError(f"Only administrators may {action}")

    def require_manage(self, principal: Principal, owner_uid: str, action: str):
        if not self.can_manage(principal, owner_uid):
            raise ForbiddenError(f"Only the reservation owner or an administrator may {action}")
