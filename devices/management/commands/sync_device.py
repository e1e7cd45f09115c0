"""Management command to copy tagged ROMs onto a mounted device."""

from django.core.management.base import BaseCommand, CommandError

from devices.models import Device
from devices.sync import SyncEngine, SyncError, SyncFailed, SyncOptions


class Command(BaseCommand):
    help = "Copy ROMs (optionally filtered by tag) to a mounted device"

    def add_arguments(self, parser):
        parser.add_argument("device", type=str, help="Device slug")
        parser.add_argument(
            "--tag",
            action="append",
            dest="tags",
            default=[],
            help="Only sync ROMs with this tag (repeatable)",
        )
        parser.add_argument(
            "--clean",
            action="store_true",
            help="Delete the device ROM folder before copying",
        )
        parser.add_argument(
            "--verify",
            action="store_true",
            help="Verify each copy against the catalogued CRC32",
        )

    def handle(self, *args, **options):
        try:
            device = Device.objects.get(slug=options["device"])
        except Device.DoesNotExist:
            raise CommandError(f"Device '{options['device']}' not found") from None

        engine = SyncEngine()
        sync_options = SyncOptions(
            clean_destination=options["clean"], verify_files=options["verify"]
        )

        self.stdout.write(f"Syncing to {device.name} ({device.mount_path})")
        failed = None
        try:
            status = engine.start(options["tags"], device.pk, sync_options)
        except SyncFailed as e:
            status = e.status
            failed = e
        except SyncError as e:
            raise CommandError(str(e)) from e

        self.stdout.write(self.style.SUCCESS(f"Copied: {status.files_copied}"))
        self.stdout.write(f"Skipped: {len(status.files_skipped)}")
        for skipped in status.files_skipped[:10]:
            self.stdout.write(f"  - {skipped.file_name}: {skipped.reason}")
        if len(status.files_skipped) > 10:
            self.stdout.write(f"  ... and {len(status.files_skipped) - 10} more")

        if status.files_failed:
            self.stdout.write(self.style.WARNING(f"Failed: {len(status.files_failed)}"))
            for failure in status.files_failed:
                self.stdout.write(f"  - {failure.file_name}: {failure.error}")

        if failed:
            raise CommandError(str(failed))
