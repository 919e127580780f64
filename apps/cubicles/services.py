"""Domain services for the cubicle inventory."""

from __future__ import annotations

import logging
from collections import OrderedDict

from django.conf import settings  # type: ignore
from django.db import transaction  # type: ignore
from django.db.models import Count  # type: ignore

from shared.application.authorization import AuthorizationPolicy
from shared.domain.exceptions import ForbiddenError, NotFoundError, ValidationError
from shared.domain.value_objects import Principal

from .models import Cubicle

logger = logging.getLogger(__name__)

Status = Cubicle.OperationalStatus


def grid_settings() -> dict:
    config = getattr(settings, "CUBICLE_BOOKING", {})
    return {
        "sections": tuple(config.get("SECTIONS", ("A", "B", "C"))),
        "rows": int(config.get("GRID_ROWS", 9)),
        "cols": int(config.get("GRID_COLS", 6)),
    }


def section_for_row(row: int, sections: tuple[str, ...], rows: int) -> str:
    """Sections split the grid rows into equal horizontal bands."""
    rows_per_section = max(rows // len(sections), 1)
    index = min((row - 1) // rows_per_section, len(sections) - 1)
    return sections[index]


def serial_for_position(section: str, row: int, col: int, sections: tuple[str, ...], rows: int, cols: int) -> str:
    rows_per_section = max(rows // len(sections), 1)
    first_row = sections.index(section) * rows_per_section + 1
    return f"{section}{(row - first_row) * cols + col}"


class ResourceRegistry:
    """List, look up and administer cubicles."""

    def __init__(self, policy: AuthorizationPolicy | None = None):
        self.policy = policy or AuthorizationPolicy.from_settings()

    def list(self, section: str | None = None, status: str | None = None):
        queryset = Cubicle.objects.all()
        if section:
            queryset = queryset.filter(section=section.upper())
        if status:
            queryset = queryset.filter(operational_status=status)
        return queryset

    def get(self, cubicle_id) -> Cubicle:
        try:
            return Cubicle.objects.get(pk=cubicle_id)
        except (Cubicle.DoesNotExist, ValueError, TypeError):
            raise NotFoundError(f"Cubicle {cubicle_id} not found")

    def set_operational_status(self, cubicle_id, status: str, actor: Principal) -> Cubicle:
        """
        Change the global maintenance flag of a cubicle.

        Setting the same status is a no-op. Moving into or out of ``error``
        is reserved to privileged principals.
        """
        if status not in Status.values:
            raise ValidationError(
                f"Unknown status '{status}'. Expected one of: {', '.join(Status.values)}",
                field="status",
            )

        with transaction.atomic():
            cubicle = self.get(cubicle_id)
            current = cubicle.operational_status
            if current == status:
                return cubicle

            touches_error = Status.ERROR in (current, status)
            if touches_error and not self.policy.is_privileged(actor):
                logger.warning(
                    f"{actor.email} tried to move cubicle {cubicle.serial} from {current} to {status}"
                )
                raise ForbiddenError("Only administrators may set or clear the error status")

            Cubicle.objects.filter(pk=cubicle.pk).update(
                operational_status=status,
                last_modified_by=actor.email,
            )
            cubicle.refresh_from_db()

        logger.info(f"Cubicle {cubicle.serial} status {current} -> {status} by {actor.email}")
        return cubicle

    def grid_layout(self) -> "OrderedDict[str, list[Cubicle]]":
        """Cubicles grouped by section, each group ordered by row then column."""
        layout: OrderedDict[str, list[Cubicle]] = OrderedDict()
        for cubicle in Cubicle.objects.order_by("section", "row", "col"):
            layout.setdefault(cubicle.section, []).append(cubicle)
        return layout

    def statistics(self) -> dict:
        by_status = {value: 0 for value in Status.values}
        for row in Cubicle.objects.values("operational_status").annotate(total=Count("id")):
            by_status[row["operational_status"]] = row["total"]

        by_section: dict[str, dict] = {}
        rows = (
            Cubicle.objects.values("section", "operational_status")
            .annotate(total=Count("id"))
            .order_by("section")
        )
        for row in rows:
            entry = by_section.setdefault(
                row["section"], {"total": 0, **{value: 0 for value in Status.values}}
            )
            entry[row["operational_status"]] += row["total"]
            entry["total"] += row["total"]

        return {
            "total": sum(by_status.values()),
            "by_status": by_status,
            "by_section": by_section,
        }

    def seed_grid(self, actor: Principal | None = None) -> int:
        """Create any missing cubicles of the configured grid; returns how many were created."""
        layout = grid_settings()
        sections, rows, cols = layout["sections"], layout["rows"], layout["cols"]
        author = actor.email if actor else "system"

        existing = set(Cubicle.objects.values_list("section", "row", "col"))
        to_create = []
        for row in range(1, rows + 1):
            section = section_for_row(row, sections, rows)
            for col in range(1, cols + 1):
                if (section, row, col) in existing:
                    continue
                serial = serial_for_position(section, row, col, sections, rows, cols)
                to_create.append(
                    Cubicle(
                        section=section,
                        row=row,
                        col=col,
                        serial=serial,
                        name=f"Cubicle {serial}",
                        created_by=author,
                        last_modified_by=author,
                    )
                )

        # concurrent seeders may race on the same positions
        Cubicle.objects.bulk_create(to_create, ignore_conflicts=True)
        logger.info(f"Seeded {len(to_create)} cubicles ({len(sections)} sections, {rows}x{cols} grid)")
        return len(to_create)
