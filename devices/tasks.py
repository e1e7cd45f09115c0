"""Background sync task using Procrastinate task queue."""

import logging

from django.utils import timezone
from procrastinate import job_context
from procrastinate.contrib.django import app
from procrastinate.exceptions import JobAborted

from library.queues import QUEUE_USER_ACTIONS

from .models import SyncJob
from .sync import SyncEngine, SyncFailed, SyncOptions, SyncStatus

logger = logging.getLogger(__name__)


def queue_sync(
    device_id: int,
    tag_ids: list[str],
    clean_destination: bool = False,
    verify_files: bool = False,
) -> SyncJob:
    """Create a SyncJob and defer the sync task for it."""
    sync_job = SyncJob.objects.create(
        device_id=device_id,
        task_id="pending",
        tag_ids=tag_ids,
        clean_destination=clean_destination,
        verify_files=verify_files,
    )
    job_id = run_sync.defer(sync_job_id=sync_job.pk)
    sync_job.task_id = str(job_id)
    sync_job.save(update_fields=["task_id"])
    logger.info("Queued sync to device %s (job %s)", device_id, sync_job.pk)
    return sync_job


def _status_fields(status: SyncStatus) -> dict:
    data = status.as_dict()
    return {
        "phase": status.phase,
        "current_file": (status.current_file or "")[:255],
        "files_total": status.total_files,
        "files_processed": status.files_processed,
        "files_copied": status.files_copied,
        "progress_percent": status.progress_percent,
        "files_skipped": data["files_skipped"],
        "files_failed": data["files_failed"],
    }


@app.task(queue=QUEUE_USER_ACTIONS, pass_context=True)
def run_sync(context: job_context.JobContext, sync_job_id: int) -> dict:
    """Background task to copy tagged ROMs to a device."""
    sync_job = SyncJob.objects.get(pk=sync_job_id)
    sync_job.status = SyncJob.STATUS_RUNNING
    sync_job.save()

    engine = SyncEngine()

    def update_progress(status: SyncStatus) -> None:
        if context.should_abort():
            engine.cancel()
        SyncJob.objects.filter(pk=sync_job_id).update(**_status_fields(status))

    engine.subscribe(update_progress)
    options = SyncOptions(
        clean_destination=sync_job.clean_destination,
        verify_files=sync_job.verify_files,
    )

    try:
        status = engine.start(sync_job.tag_ids, sync_job.device_id, options)
    except SyncFailed as e:
        _finish(sync_job_id, SyncJob.STATUS_FAILED, e.status, str(e))
        raise
    except Exception as e:
        _finish(sync_job_id, SyncJob.STATUS_FAILED, engine.status, str(e))
        raise

    if status.cancelled:
        _finish(sync_job_id, SyncJob.STATUS_CANCELLED, status)
        raise JobAborted()

    _finish(sync_job_id, SyncJob.STATUS_COMPLETED, status)
    return status.as_dict()


def _finish(
    sync_job_id: int, job_status: str, status: SyncStatus, error: str = ""
) -> None:
    SyncJob.objects.filter(pk=sync_job_id).update(
        status=job_status,
        error=error,
        completed_at=timezone.now(),
        **_status_fields(status),
    )
