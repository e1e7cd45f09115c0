from django.conf import settings
from django.core.management.base import BaseCommand

from library.corrections import reidentify
from library.lookup import HashDatabase


class Command(BaseCommand):
    help = "Look up unverified ROMs in the hash database again"

    def handle(self, *args, **options):
        with HashDatabase(settings.ROM_HASH_DATABASE_PATH) as hash_db:
            counts = reidentify(hash_db)
        self.stdout.write(
            self.style.SUCCESS(
                f"Verified: {counts['verified']}, unmatched: {counts['unmatched']}"
            )
        )
