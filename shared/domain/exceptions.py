"""
Domain Errors

Every service raises one of these; the API layer maps them to HTTP
responses in shared.api.exceptions.
"""


class DomainError(Exception):
    """Base class for expected, caller-facing failures"""

    code = 'domain_error'

    def __init__(self, message: str, **extra):
        super().__init__(message)
        self.message = message
        self.extra = extra

    def to_dict(self) -> dict:
        return {'detail': self.message, 'code': self.code, **self.extra}


class ValidationError(DomainError):
    """Malformed or out-of-window input; names the offending field"""

    code = 'validation_error'

    def __init__(self, message: str, field: str | None = None, **extra):
        if field:
            extra['field'] = field
        super().__init__(message, **extra)
        self.field = field


class NotFoundError(DomainError):
    """Unknown cubicle, reservation or report"""

    code = 'not_found'


class ConflictError(DomainError):
    """
    The (cubicle, date) slot is already held.

    Carries only the holder's email, never more of their identity.
    """

    code = 'conflict'

    def __init__(self, message: str, holder_email: str | None = None, **extra):
        if holder_email:
            extra['holder_email'] = holder_email
        super().__init__(message, **extra)
        self.holder_email = holder_email


class StaleReservationError(ConflictError):
    """A concurrent write changed the reservation first"""

    code = 'stale_reservation'


class ForbiddenError(DomainError):
    """Caller lacks ownership or privilege for the operation"""

    code = 'forbidden'


class InvalidTransitionError(DomainError):
    """Lifecycle rule violation"""

    code = 'invalid_transition'

    def __init__(self, current: str, target: str, message: str | None = None):
        super().__init__(
            message or f"Cannot move reservation from '{current}' to '{target}'",
            current=current,
            target=target,
        )
        self.current = current
        self.target = target
