from django.core.management.base import BaseCommand

from devices.profile_loader import sync_profiles


class Command(BaseCommand):
    help = "Sync built-in device profiles from config files to database"

    def handle(self, *args, **options):
        count = sync_profiles()
        self.stdout.write(self.style.SUCCESS(f"Synced {count} device profiles"))
