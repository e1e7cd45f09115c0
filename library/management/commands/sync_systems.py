from django.core.management.base import BaseCommand

from library.system_loader import sync_systems


class Command(BaseCommand):
    help = "Sync system definitions from config file to database"

    def handle(self, *args, **options):
        count = sync_systems()
        self.stdout.write(self.style.SUCCESS(f"Synced {count} systems"))
