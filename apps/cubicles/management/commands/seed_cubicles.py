from __future__ import annotations

from django.core.management.base import BaseCommand  # type: ignore

from apps.cubicles.models import Cubicle
from apps.cubicles.services import ResourceRegistry


class Command(BaseCommand):
    help = "Creates any missing cubicles of the configured office grid"

    def handle(self, *args, **options):  # type: ignore
        created = ResourceRegistry().seed_grid()
        self.stdout.write(
            self.style.SUCCESS(f"Created {created} cubicles, {Cubicle.objects.count()} in total")
        )
