"""Worker command with orphaned job cleanup."""

import logging

from django.core.management import call_command
from django.core.management.base import BaseCommand
from django.db import OperationalError, ProgrammingError
from django.utils import timezone

from devices.models import SyncJob
from library.models import ScanJob
from library.queues import ALL_QUEUES

logger = logging.getLogger(__name__)

CRASH_MESSAGE = "Worker crashed during execution"


class Command(BaseCommand):
    help = "Start Procrastinate worker with orphaned job cleanup"

    def add_arguments(self, parser):
        parser.add_argument("--concurrency", type=int, default=1)
        parser.add_argument("--queues", type=str, default=",".join(ALL_QUEUES))
        parser.add_argument("--name", type=str, default="")

    def handle(self, *args, **options):
        cleaned = self.cleanup_orphaned_jobs()
        if cleaned:
            logger.info(
                "Marked %d orphaned job(s) as FAILED from previous worker crash",
                cleaned,
            )

        worker_args = ["worker"]
        if options["concurrency"]:
            worker_args.extend(["--concurrency", str(options["concurrency"])])
        if options["queues"]:
            worker_args.extend(["--queues", options["queues"]])
        if options["name"]:
            worker_args.extend(["--name", options["name"]])

        call_command("procrastinate", *worker_args)

    def cleanup_orphaned_jobs(self) -> int:
        """Mark all RUNNING jobs as FAILED - they're orphaned from a crash."""
        now = timezone.now()
        cleaned = 0

        try:
            count = ScanJob.objects.filter(status=ScanJob.STATUS_RUNNING).update(
                status=ScanJob.STATUS_FAILED,
                errors=[{"file": "", "reason": CRASH_MESSAGE}],
                completed_at=now,
            )
            cleaned += count

            count = SyncJob.objects.filter(status=SyncJob.STATUS_RUNNING).update(
                status=SyncJob.STATUS_FAILED,
                error=CRASH_MESSAGE,
                completed_at=now,
            )
            cleaned += count
        except (OperationalError, ProgrammingError):
            # Tables don't exist yet (migrations not run)
            logger.debug("Skipping orphan cleanup - tables not yet created")

        return cleaned
