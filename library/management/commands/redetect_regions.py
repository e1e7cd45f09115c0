from django.core.management.base import BaseCommand

from library.corrections import redetect_regions


class Command(BaseCommand):
    help = "Re-run region detection for every ROM in the catalog"

    def handle(self, *args, **options):
        counts = redetect_regions()
        self.stdout.write(
            self.style.SUCCESS(
                f"Regions updated: {counts['updated']}, "
                f"unchanged: {counts['unchanged']}"
            )
        )
