"""Tests for the background sync task and the sync_device command."""

from io import StringIO
from unittest.mock import patch

import pytest
from django.core.management import call_command
from django.core.management.base import CommandError
from procrastinate.exceptions import JobAborted

from devices.models import SyncJob
from devices.sync import SyncError, SyncFailed
from devices.tasks import queue_sync, run_sync

from .conftest import create_mock_context

pytestmark = pytest.mark.django_db


@pytest.fixture
def sync_job(device):
    return SyncJob.objects.create(device=device, task_id="1", tag_ids=["favorites"])


class TestRunSync:
    def test_completes(self, sync_job, favorites, mount):
        result = run_sync(create_mock_context(), sync_job.pk)

        sync_job.refresh_from_db()
        assert sync_job.status == SyncJob.STATUS_COMPLETED
        assert sync_job.phase == "done"
        assert sync_job.files_total == 3
        assert sync_job.files_copied == 3
        assert sync_job.progress_percent == 100
        assert sync_job.completed_at is not None
        assert result["files_copied"] == 3
        assert (mount / "Roms" / "GBA" / "Golden Sun (USA).gba").exists()

    def test_skips_recorded(self, sync_job, favorites):
        run_sync(create_mock_context(), sync_job.pk)
        second = SyncJob.objects.create(
            device=sync_job.device, task_id="2", tag_ids=["favorites"]
        )

        run_sync(create_mock_context(), second.pk)

        second.refresh_from_db()
        assert second.status == SyncJob.STATUS_COMPLETED
        assert len(second.files_skipped) == 3
        assert second.files_skipped[0]["reason"] == "file_exists"

    def test_failed_files_fail_the_job(self, sync_job, favorites):
        favorites[0].file_crc32 = "deadbeef"
        favorites[0].save()
        sync_job.verify_files = True
        sync_job.save()

        with pytest.raises(SyncFailed):
            run_sync(create_mock_context(), sync_job.pk)

        sync_job.refresh_from_db()
        assert sync_job.status == SyncJob.STATUS_FAILED
        assert sync_job.files_copied == 2
        assert "checksum mismatch" in sync_job.files_failed[0]["error"]
        assert "1 of 3 file(s) failed" in sync_job.error

    def test_session_error(self, sync_job, tmp_path):
        device = sync_job.device
        device.mount_path = str(tmp_path / "unplugged")
        device.save()

        with pytest.raises(SyncError):
            run_sync(create_mock_context(), sync_job.pk)

        sync_job.refresh_from_db()
        assert sync_job.status == SyncJob.STATUS_FAILED
        assert sync_job.phase == "error"
        assert "not accessible" in sync_job.error

    def test_abort(self, sync_job, favorites):
        with pytest.raises(JobAborted):
            run_sync(create_mock_context(should_abort=True), sync_job.pk)

        sync_job.refresh_from_db()
        assert sync_job.status == SyncJob.STATUS_CANCELLED
        assert sync_job.files_copied == 0


class TestQueueSync:
    def test_defers_task(self, device):
        with patch("devices.tasks.run_sync.defer", return_value=7) as mock_defer:
            job = queue_sync(device.pk, ["favorites"], verify_files=True)

        mock_defer.assert_called_once_with(sync_job_id=job.pk)
        job.refresh_from_db()
        assert job.task_id == "7"
        assert job.tag_ids == ["favorites"]
        assert job.verify_files


class TestSyncDeviceCommand:
    def test_syncs_tagged_roms(self, device, favorites, mount):
        out = StringIO()

        call_command("sync_device", device.slug, "--tag", "favorites", stdout=out)

        assert "Copied: 3" in out.getvalue()
        assert (mount / "Roms" / "FC" / "Zelda (Europe).nes").exists()

    def test_unknown_device(self, db):
        with pytest.raises(CommandError, match="not found"):
            call_command("sync_device", "nope", stdout=StringIO())

    def test_failures_raise(self, device, favorites):
        favorites[0].file_crc32 = "deadbeef"
        favorites[0].save()
        out = StringIO()

        with pytest.raises(CommandError, match="failed to sync"):
            call_command(
                "sync_device", device.slug, "--tag", "favorites", "--verify", stdout=out
            )

        assert "Failed: 1" in out.getvalue()
