from django.db import models

from .parser import REGION_UNKNOWN


class System(models.Model):
    """Static reference data for gaming systems. Seeded from systems.json."""

    name = models.CharField(max_length=100)  # "Game Boy Advance"
    slug = models.SlugField(unique=True)  # "gba"
    extensions = models.JSONField()  # [".gba"]
    exclusive_extensions = models.JSONField(
        default=list
    )  # [".gba"] - unique to this system
    folder_names = models.JSONField()  # ["GBA", "gba", "Game Boy Advance"]
    ra_console_id = models.PositiveIntegerField(
        null=True, blank=True
    )  # RetroAchievements console ID, None if not hashable

    class Meta:
        ordering = ["name"]

    def __str__(self) -> str:
        return self.name


class ROM(models.Model):
    """A catalogued ROM file. One record per unique ROM payload."""

    system = models.ForeignKey(System, on_delete=models.PROTECT, related_name="roms")

    display_name = models.CharField(max_length=255)
    region = models.CharField(max_length=50, default=REGION_UNKNOWN)

    # File info
    file_path = models.CharField(max_length=1000)  # Absolute path on disk
    file_name = models.CharField(max_length=255)  # Just the filename
    rom_file_name = models.CharField(
        max_length=255
    )  # Logical ROM name, differs from file_name inside archives
    file_size = models.BigIntegerField()  # Size of the file on disk

    # Hashes
    md5 = models.CharField(max_length=32, unique=True)  # ROM payload digest
    file_crc32 = models.CharField(max_length=8)  # On-disk file digest, for sync
    ra_md5 = models.CharField(
        max_length=32, null=True, blank=True, db_index=True
    )  # RetroAchievements identification hash

    verified = models.BooleanField(default=False)  # ra_md5 matched the hash database

    # User data
    tags = models.JSONField(default=list, blank=True)  # ["favorites", "rpg"]
    favorite = models.BooleanField(default=False)
    notes = models.TextField(blank=True, default="")

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["display_name"]
        indexes = [models.Index(fields=["system"], name="rom_system_idx")]

    def __str__(self) -> str:
        return self.display_name

    @property
    def is_archived(self) -> bool:
        """Check if the stored file is an archive holding the ROM."""
        return self.file_name != self.rom_file_name

    def has_any_tag(self, tag_ids: list[str]) -> bool:
        return any(tag in self.tags for tag in tag_ids)


class ScanJob(models.Model):
    """Tracks background scan jobs."""

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

    path = models.CharField(max_length=500)
    task_id = models.CharField(max_length=64, unique=True)
    status = models.CharField(
        max_length=20, choices=STATUS_CHOICES, default=STATUS_PENDING
    )

    # Progress tracking (updated during scan)
    files_processed = models.IntegerField(default=0)
    current_file = models.CharField(max_length=500, blank=True, default="")

    # Results (populated on completion)
    added = models.IntegerField(default=0)
    skipped = models.IntegerField(default=0)
    errors = models.JSONField(default=list)  # [{"file": ..., "reason": ...}]

    started_at = models.DateTimeField(auto_now_add=True)
    completed_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        ordering = ["-started_at", "-pk"]

    def __str__(self) -> str:
        return f"Scan {self.path} ({self.status})"
