"""Background tasks using Procrastinate task queue."""

import logging

from django.conf import settings
from django.utils import timezone
from procrastinate import job_context
from procrastinate.contrib.django import app
from procrastinate.exceptions import JobAborted

from .lookup import HashDatabase
from .models import ScanJob
from .queues import QUEUE_BACKGROUND
from .scanner import scan_directory

logger = logging.getLogger(__name__)


def queue_scan(path: str) -> ScanJob:
    """Create a ScanJob and defer the scan task for it."""
    scan_job = ScanJob.objects.create(path=path, task_id="pending")
    job_id = run_scan.defer(scan_job_id=scan_job.pk)
    scan_job.task_id = str(job_id)
    scan_job.save(update_fields=["task_id"])
    logger.info("Queued scan of %s (job %s)", path, scan_job.pk)
    return scan_job


@app.task(queue=QUEUE_BACKGROUND, pass_context=True)
def run_scan(context: job_context.JobContext, scan_job_id: int) -> dict:
    """Background task to scan a ROM directory."""
    scan_job = ScanJob.objects.get(pk=scan_job_id)
    scan_job.status = ScanJob.STATUS_RUNNING
    scan_job.save()

    def update_progress(data: dict) -> None:
        ScanJob.objects.filter(pk=scan_job_id).update(
            files_processed=data["files_processed"],
            current_file=data.get("current_file", "")[:500],
        )

    try:
        # The scan owns the hash database for its whole run
        with HashDatabase(settings.ROM_HASH_DATABASE_PATH) as hash_db:
            result = scan_directory(
                scan_job.path,
                lookup=hash_db,
                progress_callback=update_progress,
                should_abort=context.should_abort,
            )

        scan_job.refresh_from_db()
        scan_job.files_processed = result.processed
        scan_job.added = result.added
        scan_job.skipped = len(result.skipped)
        scan_job.errors = [e.as_dict() for e in result.errors]
        scan_job.completed_at = timezone.now()

        if result.cancelled:
            scan_job.status = ScanJob.STATUS_CANCELLED
            scan_job.save()
            raise JobAborted()

        scan_job.status = ScanJob.STATUS_COMPLETED
        scan_job.save()
        return result.as_dict()
    except JobAborted:
        raise
    except Exception as e:
        scan_job.status = ScanJob.STATUS_FAILED
        scan_job.errors = [{"file": scan_job.path, "reason": str(e)}]
        scan_job.completed_at = timezone.now()
        scan_job.save()
        raise
