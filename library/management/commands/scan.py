"""Management command to scan directories for ROMs."""

from django.conf import settings
from django.core.management.base import BaseCommand

from library.lookup import HashDatabase
from library.scanner import get_library_root, scan_directory


class Command(BaseCommand):
    help = "Scan a directory for ROM files and add them to the library"

    def add_arguments(self, parser):
        parser.add_argument(
            "path",
            type=str,
            nargs="?",
            help="Path to the ROM directory to scan (defaults to ROM_LIBRARY_ROOT)",
        )
        parser.add_argument(
            "--no-identify",
            action="store_true",
            help="Skip hash database identification",
        )

    def handle(self, *args, **options):
        path = options["path"] or get_library_root()

        self.stdout.write(f"Scanning: {path}")
        self.stdout.write("")

        if options["no_identify"]:
            result = scan_directory(path)
        else:
            with HashDatabase(settings.ROM_HASH_DATABASE_PATH) as hash_db:
                result = scan_directory(path, lookup=hash_db)

        self.stdout.write(self.style.SUCCESS(f"Added: {result.added}"))
        self.stdout.write(f"Skipped: {len(result.skipped)}")

        if result.errors:
            self.stdout.write("")
            self.stdout.write(self.style.WARNING(f"Errors: {len(result.errors)}"))
            for error in result.errors[:10]:  # Show first 10 errors
                self.stdout.write(f"  - {error}")
            if len(result.errors) > 10:
                self.stdout.write(f"  ... and {len(result.errors) - 10} more")

        self.stdout.write("")
        self.stdout.write("Done!")
