"""
Reservation Ledger

Booking creation, lifecycle transitions, release and the expiry sweep.

The (cubicle, date) uniqueness constraint on Reservation is the only
guard against double booking: a constraint violation on insert, not a
pre-check, is what reports a conflict. Every lifecycle write is a
compare-and-swap on ``Reservation.version``.
"""

from __future__ import annotations

import logging
from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal

from django.db import IntegrityError, transaction  # type: ignore
from django.db.models import F  # type: ignore
from django.utils import timezone  # type: ignore

from apps.cubicles.services import ResourceRegistry
from shared.application.authorization import AuthorizationPolicy
from shared.application.uow import DjangoUnitOfWork
from shared.domain.exceptions import (
    ConflictError,
    NotFoundError,
    StaleReservationError,
    ValidationError,
)
from shared.domain.value_objects import Principal

from ..domain.events import (
    ReservationCancelled,
    ReservationCheckedIn,
    ReservationCheckedOut,
    ReservationCreated,
    ReservationExpired,
    ReservationMarkedNoShow,
    ReservationReleased,
)
from ..domain.lifecycle import LIVE_STATUSES, ReservationStatus, ensure_transition
from ..models import Reservation
from .grid_index import GridDateIndex
from .windows import (
    booking_setting,
    coerce_date,
    overdue_cutoff,
    validate_booking_date,
    validate_event_time,
)

logger = logging.getLogger(__name__)

TWO_PLACES = Decimal("0.01")


class ReservationLedger:
    def __init__(
        self,
        registry: ResourceRegistry | None = None,
        grid_index: GridDateIndex | None = None,
        policy: AuthorizationPolicy | None = None,
    ):
        self.policy = policy or AuthorizationPolicy.from_settings()
        self.registry = registry or ResourceRegistry(policy=self.policy)
        self.grid_index = grid_index or GridDateIndex(policy=self.policy)

    # ===== Queries =====

    def get(self, reservation_id) -> Reservation:
        try:
            return Reservation.objects.select_related("cubicle").get(pk=reservation_id)
        except (Reservation.DoesNotExist, ValueError, TypeError):
            raise NotFoundError(f"Reservation {reservation_id} not found")

    def list_for_user(self, principal: Principal):
        return Reservation.objects.select_related("cubicle").filter(user_uid=principal.uid)

    def list_visible_to(self, principal: Principal):
        """Own reservations, or every reservation for privileged principals."""
        if self.policy.is_privileged(principal):
            return Reservation.objects.select_related("cubicle").all()
        return self.list_for_user(principal)

    def holder_email(self, cubicle_id, day: date) -> str | None:
        return (
            Reservation.objects.filter(cubicle_id=cubicle_id, date=day, status__in=LIVE_STATUSES)
            .values_list("user_email", flat=True)
            .first()
        )

    def query_by_date(self, day) -> dict:
        """
        Every cubicle with its status for one date.

        A cubicle globally flagged ``error`` reports ``error``; otherwise it
        is ``reserved`` when a live reservation holds it, else ``available``.
        """
        day = coerce_date(day)
        reservations = {
            reservation.cubicle_id: reservation
            for reservation in Reservation.objects.filter(date=day, status__in=LIVE_STATUSES)
        }

        cubicles = []
        summary = {"total": 0, "available": 0, "reserved": 0, "error": 0}
        for cubicle in self.registry.list():
            reservation = reservations.get(cubicle.pk)
            if cubicle.is_out_of_service:
                status = "error"
            elif reservation is not None:
                status = "reserved"
            else:
                status = "available"
            summary["total"] += 1
            summary[status] += 1
            cubicles.append({
                "id": cubicle.pk,
                "serial": cubicle.serial,
                "section": cubicle.section,
                "row": cubicle.row,
                "col": cubicle.col,
                "name": cubicle.name,
                "status": status,
                "reservation": {
                    "id": reservation.pk,
                    "status": reservation.status,
                    "user": {
                        "uid": reservation.user_uid,
                        "email": reservation.user_email,
                        "display_name": reservation.user_display_name,
                    },
                } if reservation is not None else None,
            })

        if reservations:
            self.grid_index.find_or_create(day)

        return {
            "date": day.isoformat(),
            "cubicles": cubicles,
            "summary": summary,
            "total_reservations": len(reservations),
        }

    # ===== Booking =====

    def book(
        self,
        cubicle_id,
        day,
        principal: Principal,
        *,
        planned_duration_hours=None,
        notes: str = "",
        tags: list | None = None,
        now: datetime | None = None,
    ) -> Reservation:
        day = coerce_date(day)
        cubicle = self.registry.get(cubicle_id)
        if cubicle.is_out_of_service:
            raise ValidationError(f"Cubicle {cubicle.serial} is out of service", field="cubicle")
        validate_booking_date(day, now)

        if planned_duration_hours is not None:
            planned_duration_hours = Decimal(str(planned_duration_hours))
            if not 0 < planned_duration_hours <= booking_setting("MAX_SESSION_HOURS"):
                raise ValidationError(
                    f"Planned duration must be between 0 and {booking_setting('MAX_SESSION_HOURS')} hours",
                    field="planned_duration_hours",
                )

        user = principal.snapshot()
        try:
            with DjangoUnitOfWork() as uow:
                reservation = Reservation.objects.create(
                    cubicle=cubicle,
                    date=day,
                    user_uid=user.uid,
                    user_email=user.email,
                    user_display_name=user.display_name,
                    reserved_at=now or timezone.now(),
                    planned_duration_hours=planned_duration_hours,
                    notes=notes,
                    tags=list(tags or []),
                )
                uow.record(ReservationCreated(
                    aggregate_id=reservation.pk,
                    cubicle_id=cubicle.pk,
                    cubicle_serial=cubicle.serial,
                    date=day,
                    user=user,
                ))
        except IntegrityError:
            holder = self.holder_email(cubicle.pk, day)
            logger.warning(
                f"Booking conflict: {cubicle.serial} on {day.isoformat()} requested by {user.email}, held by {holder}"
            )
            raise ConflictError(
                f"Cubicle {cubicle.serial} is already reserved for {day.isoformat()}",
                holder_email=holder,
            ) from None

        self.grid_index.refresh_count(day)
        logger.info(f"Reservation {reservation.pk} created: {cubicle.serial} on {day.isoformat()} for {user.email}")
        return reservation

    # ===== Lifecycle =====

    def check_in(self, reservation_id, actor: Principal, at: datetime | None = None) -> Reservation:
        at = at or timezone.now()
        reservation = self.get(reservation_id)
        self.policy.require_manage(actor, reservation.user_uid, "check in")
        ensure_transition(reservation.status, ReservationStatus.CHECKED_IN)
        if timezone.localtime(at).date() != reservation.date:
            raise ValidationError("Check-in is only possible on the reservation date", field="time")
        validate_event_time(reservation.date, at, "Check-in")

        with DjangoUnitOfWork() as uow:
            reservation = self._transition(reservation, ReservationStatus.CHECKED_IN, checked_in_at=at)
            uow.record(ReservationCheckedIn(
                aggregate_id=reservation.pk,
                cubicle_id=reservation.cubicle_id,
                date=reservation.date,
                user_uid=reservation.user_uid,
                checked_in_at=at,
            ))

        logger.info(f"Reservation {reservation.pk} checked in by {actor.email}")
        return reservation

    def check_out(self, reservation_id, actor: Principal, at: datetime | None = None) -> Reservation:
        at = at or timezone.now()
        reservation = self.get(reservation_id)
        self.policy.require_manage(actor, reservation.user_uid, "check out")
        ensure_transition(reservation.status, ReservationStatus.CHECKED_OUT)
        if at < reservation.checked_in_at:
            raise ValidationError("Check-out cannot precede check-in", field="time")
        validate_event_time(reservation.date, at, "Check-out")

        elapsed_hours = Decimal((at - reservation.checked_in_at).total_seconds()) / Decimal(3600)
        duration = min(elapsed_hours, Decimal(booking_setting("MAX_SESSION_HOURS")))
        duration = duration.quantize(TWO_PLACES, rounding=ROUND_HALF_UP)

        with DjangoUnitOfWork() as uow:
            reservation = self._transition(
                reservation,
                ReservationStatus.CHECKED_OUT,
                checked_out_at=at,
                actual_duration_hours=duration,
            )
            uow.record(ReservationCheckedOut(
                aggregate_id=reservation.pk,
                cubicle_id=reservation.cubicle_id,
                date=reservation.date,
                user_uid=reservation.user_uid,
                checked_out_at=at,
                duration_hours=float(duration),
            ))

        logger.info(f"Reservation {reservation.pk} checked out after {duration}h")
        return reservation

    def cancel(self, reservation_id, actor: Principal, reason: str = "") -> Reservation:
        reservation = self.get(reservation_id)
        self.policy.require_manage(actor, reservation.user_uid, "cancel this reservation")
        ensure_transition(reservation.status, ReservationStatus.CANCELLED)

        cancelled_at = timezone.now()
        with DjangoUnitOfWork() as uow:
            reservation = self._transition(
                reservation,
                ReservationStatus.CANCELLED,
                cancelled_at=cancelled_at,
                cancellation_reason=(reason or "")[:255],
            )
            uow.record(ReservationCancelled(
                aggregate_id=reservation.pk,
                cubicle_id=reservation.cubicle_id,
                date=reservation.date,
                user=reservation.user,
                cancelled_by=actor.email,
                reason=reservation.cancellation_reason,
            ))

        self.grid_index.refresh_count(reservation.date)
        logger.info(f"Reservation {reservation.pk} cancelled by {actor.email}")
        return reservation

    def mark_no_show(self, reservation_id, actor: Principal, now: datetime | None = None) -> Reservation:
        reservation = self.get(reservation_id)
        self.policy.require_privileged(actor, "mark no-shows")
        ensure_transition(reservation.status, ReservationStatus.NO_SHOW)
        today = timezone.localtime(now or timezone.now()).date()
        if reservation.date > today:
            raise ValidationError("Cannot mark a future reservation as a no-show", field="date")

        with DjangoUnitOfWork() as uow:
            reservation = self._transition(reservation, ReservationStatus.NO_SHOW)
            uow.record(ReservationMarkedNoShow(
                aggregate_id=reservation.pk,
                cubicle_id=reservation.cubicle_id,
                date=reservation.date,
                user_uid=reservation.user_uid,
                marked_by=actor.email,
            ))

        logger.info(f"Reservation {reservation.pk} marked as no-show by {actor.email}")
        return reservation

    def release(self, reservation_id, actor: Principal) -> None:
        """Delete the reservation so the cubicle is immediately bookable again for that date."""
        reservation = self.get(reservation_id)
        self.policy.require_manage(actor, reservation.user_uid, "release this reservation")

        with DjangoUnitOfWork() as uow:
            deleted, _ = Reservation.objects.filter(
                pk=reservation.pk, version=reservation.version
            ).delete()
            if not deleted:
                self._stale(reservation)
            uow.record(ReservationReleased(
                aggregate_id=reservation.pk,
                cubicle_id=reservation.cubicle_id,
                date=reservation.date,
                user=reservation.user,
                released_by=actor.email,
            ))

        self.grid_index.refresh_count(reservation.date)
        logger.info(f"Reservation {reservation.pk} released by {actor.email}")

    # ===== Sweeps =====

    def expire_overdue(self, grace_period_hours: int | None = None, now: datetime | None = None) -> int:
        """
        Move ACTIVE reservations more than ``grace_period_hours`` past their
        date to EXPIRED. Re-queries on every run and only matches rows that
        are still ACTIVE, so repeated or concurrent runs are harmless.
        """
        if grace_period_hours is None:
            grace_period_hours = booking_setting("EXPIRY_GRACE_HOURS")
        cutoff = overdue_cutoff(grace_period_hours, now)

        overdue = Reservation.objects.filter(
            status=ReservationStatus.ACTIVE, date__lte=cutoff
        ).values_list("pk", "version", "cubicle_id", "date", "user_uid")

        expired = 0
        for pk, version, cubicle_id, day, user_uid in overdue:
            try:
                with DjangoUnitOfWork() as uow:
                    updated = Reservation.objects.filter(
                        pk=pk, version=version, status=ReservationStatus.ACTIVE
                    ).update(
                        status=ReservationStatus.EXPIRED,
                        version=F("version") + 1,
                        updated_at=timezone.now(),
                    )
                    if updated:
                        uow.record(ReservationExpired(
                            aggregate_id=pk,
                            cubicle_id=cubicle_id,
                            date=day,
                            user_uid=user_uid,
                        ))
                expired += updated
            except Exception as e:
                logger.error(f"Failed to expire reservation {pk}: {e}", exc_info=True)

        logger.info(f"Expired {expired} overdue reservations (cutoff {cutoff.isoformat()})")
        return expired

    # ===== Internals =====

    def _transition(self, reservation: Reservation, target: str, **changes) -> Reservation:
        """Compare-and-swap write of a lifecycle transition."""
        updated = Reservation.objects.filter(
            pk=reservation.pk,
            version=reservation.version,
            status=reservation.status,
        ).update(
            status=target,
            version=F("version") + 1,
            updated_at=timezone.now(),
            **changes,
        )
        if not updated:
            self._stale(reservation)
        reservation.refresh_from_db()
        return reservation

    def _stale(self, reservation: Reservation):
        logger.warning(f"Stale write on reservation {reservation.pk} (version {reservation.version})")
        raise StaleReservationError(
            f"Reservation {reservation.pk} was modified concurrently, reload and retry",
            current_version=reservation.version,
        )
