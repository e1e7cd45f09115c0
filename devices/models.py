"""Device profile, device and sync job models."""

from __future__ import annotations

import posixpath
from pathlib import Path

from django.db import models
from django.db.models.functions import Lower


class DeviceProfile(models.Model):
    """Folder layout of a device firmware (Onion OS, muOS, ...)."""

    name = models.CharField(max_length=100)
    description = models.TextField(blank=True)
    is_builtin = models.BooleanField(
        default=False, help_text="True for repo-shipped profiles"
    )
    version = models.PositiveIntegerField(default=1)

    rom_base_path = models.CharField(
        max_length=255, help_text="ROM root relative to the mount, e.g. '/Roms/'"
    )
    bios_base_path = models.CharField(max_length=255, blank=True)
    artwork_config = models.JSONField(
        default=dict,
        blank=True,
        help_text="Artwork rules: {pathPattern, maxWidth, maxHeight}",
    )
    system_mappings = models.JSONField(
        default=dict,
        help_text="Per-system layout: {system_slug: {folderName, supportedFormats}}",
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["name"]
        constraints = [
            models.UniqueConstraint(Lower("name"), name="unique_profile_name_ci"),
        ]

    def __str__(self) -> str:
        return self.name

    def get_mapping(self, system_slug: str) -> dict | None:
        """Mapping for a system, or None if the device has no folder for it."""
        return self.system_mappings.get(system_slug)

    def supports_format(self, system_slug: str, filename: str) -> bool:
        """Check if the device accepts this file's extension for a system.

        Args:
            system_slug: System slug (e.g., "gba")
            filename: File as it will be copied (archive or raw ROM)

        Returns:
            True if the extension is listed in the mapping's supportedFormats
        """
        mapping = self.get_mapping(system_slug)
        if not mapping:
            return False
        ext = Path(filename).suffix.lower()
        return ext in {f.lower() for f in mapping.get("supportedFormats", [])}

    def artwork_dir(self, system_slug: str) -> str | None:
        """Artwork folder for a system, from the pathPattern artwork rule."""
        pattern = (self.artwork_config or {}).get("pathPattern")
        mapping = self.get_mapping(system_slug)
        if not pattern or not mapping:
            return None
        path = pattern.format(
            romBasePath=self.rom_base_path.rstrip("/"),
            folderName=mapping["folderName"],
        )
        return posixpath.normpath(path)


class Device(models.Model):
    """A handheld or SD card mounted on this machine."""

    name = models.CharField(max_length=100)
    slug = models.SlugField(unique=True)
    profile = models.ForeignKey(
        DeviceProfile, on_delete=models.PROTECT, related_name="devices"
    )
    mount_path = models.CharField(
        max_length=500, help_text="Where the device storage is mounted"
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["name"]

    def __str__(self) -> str:
        return self.name

    def rom_root(self) -> Path:
        """Absolute ROM root on the mounted device.

        Profile paths are relative to the mount even when written with a
        leading slash ("/Roms/").
        """
        return Path(self.mount_path) / self.profile.rom_base_path.strip("/")

    def system_folder(self, system_slug: str) -> Path | None:
        """
        Get the folder ROMs for a system are copied to.

        Args:
            system_slug: System slug (e.g., "gba")

        Returns:
            Absolute folder path, or None if the profile has no mapping
        """
        mapping = self.profile.get_mapping(system_slug)
        if not mapping:
            return None
        return self.rom_root() / mapping["folderName"]

    def is_mounted(self) -> bool:
        return Path(self.mount_path).is_dir()


class SyncJob(models.Model):
    """Tracks background sync jobs."""

    STATUS_PENDING = "pending"
    STATUS_RUNNING = "running"
    STATUS_COMPLETED = "completed"
    STATUS_FAILED = "failed"
    STATUS_CANCELLED = "cancelled"

    STATUS_CHOICES = [
        (STATUS_PENDING, "Pending"),
        (STATUS_RUNNING, "Running"),
        (STATUS_COMPLETED, "Completed"),
        (STATUS_FAILED, "Failed"),
        (STATUS_CANCELLED, "Cancelled"),
    ]

    device = models.ForeignKey(
        Device, on_delete=models.CASCADE, related_name="sync_jobs"
    )
    task_id = models.CharField(max_length=64, unique=True)
    status = models.CharField(
        max_length=20, choices=STATUS_CHOICES, default=STATUS_PENDING
    )

    # Options
    tag_ids = models.JSONField(default=list)
    clean_destination = models.BooleanField(default=False)
    verify_files = models.BooleanField(default=False)

    # Progress (mirrors the engine's SyncStatus)
    phase = models.CharField(max_length=20, default="idle")
    current_file = models.CharField(max_length=255, blank=True, default="")
    files_total = models.IntegerField(default=0)
    files_processed = models.IntegerField(default=0)
    files_copied = models.IntegerField(default=0)
    progress_percent = models.IntegerField(default=0)
    files_skipped = models.JSONField(default=list)  # [{rom_id, file_name, reason}]
    files_failed = models.JSONField(default=list)  # [{rom_id, file_name, error}]
    error = models.TextField(blank=True)

    started_at = models.DateTimeField(auto_now_add=True)
    completed_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        ordering = ["-started_at", "-pk"]

    def __str__(self) -> str:
        return f"Sync to {self.device} ({self.status})"
