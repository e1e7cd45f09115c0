from django.core.management.base import BaseCommand

from library.corrections import recompute_container_digests


class Command(BaseCommand):
    help = "Recompute the on-disk CRC32 of archived ROMs"

    def handle(self, *args, **options):
        counts = recompute_container_digests()
        self.stdout.write(
            self.style.SUCCESS(
                f"Updated: {counts['updated']}, unchanged: {counts['unchanged']}, "
                f"missing: {counts['missing']}, failed: {counts['failed']}"
            )
        )
