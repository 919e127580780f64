"""
Centralized mapping of domain errors to HTTP responses.

Views stay thin: services raise shared.domain.exceptions errors and this
handler turns them into responses. New error types only need a row in
DOMAIN_ERROR_STATUS.
"""
from __future__ import annotations

import logging

from rest_framework import status  # type: ignore
from rest_framework.response import Response  # type: ignore
from rest_framework.views import exception_handler  # type: ignore

from shared.domain.exceptions import (
    ConflictError,
    DomainError,
    ForbiddenError,
    InvalidTransitionError,
    NotFoundError,
    ValidationError,
)

logger = logging.getLogger(__name__)

# (error class, status code). First match wins, so subclasses go first.
DOMAIN_ERROR_STATUS: list[tuple[type[DomainError], int]] = [
    (ValidationError, status.HTTP_400_BAD_REQUEST),
    (ForbiddenError, status.HTTP_403_FORBIDDEN),
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (ConflictError, status.HTTP_409_CONFLICT),
    (InvalidTransitionError, status.HTTP_409_CONFLICT),
]


def domain_error_status(exc: DomainError) -> int:
    for error_cls, status_code in DOMAIN_ERROR_STATUS:
        if isinstance(exc, error_cls):
            return status_code
    return status.HTTP_400_BAD_REQUEST


def domain_exception_handler(exc, context):
    """DRF EXCEPTION_HANDLER: domain errors first, then DRF's default."""
    if isinstance(exc, DomainError):
        status_code = domain_error_status(exc)
        view = context.get("view")
        logger.warning(
            f"{exc.__class__.__name__} in {view.__class__.__name__ if view else 'unknown view'}: {exc.message}"
        )
        return Response(exc.to_dict(), status=status_code)
    return exception_handler(exc, context)
