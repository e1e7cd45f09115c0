import django.db.models.deletion
import django.db.models.functions.text
from django.db import migrations, models


class Migration(migrations.Migration):
    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="DeviceProfile",
            fields=[
                (
                    "id",
                    models.BigAutoField(
                        auto_created=True,
                        primary_key=True,
                        serialize=False,
                        verbose_name="ID",
                    ),
                ),
                ("name", models.CharField(max_length=100)),
                ("description", models.TextField(blank=True)),
                (
                    "is_builtin",
                    models.BooleanField(
                        default=False, help_text="True for repo-shipped profiles"
                    ),
                ),
                ("version", models.PositiveIntegerField(default=1)),
                (
                    "rom_base_path",
                    models.CharField(
                        help_text="ROM root relative to the mount, e.g. '/Roms/'",
                        max_length=255,
                    ),
                ),
                ("bios_base_path", models.CharField(blank=True, max_length=255)),
                (
                    "artwork_config",
                    models.JSONField(
                        blank=True,
                        default=dict,
                        help_text="Artwork rules: {pathPattern, maxWidth, maxHeight}",
                    ),
                ),
                (
                    "system_mappings",
                    models.JSONField(
                        default=dict,
                        help_text=(
                            "Per-system layout: "
                            "{system_slug: {folderName, supportedFormats}}"
                        ),
                    ),
                ),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "ordering": ["name"],
                "constraints": [
                    models.UniqueConstraint(
                        django.db.models.functions.text.Lower("name"),
                        name="unique_profile_name_ci",
                    )
                ],
            },
        ),
        migrations.CreateModel(
            name="Device",
            fields=[
                (
                    "id",
                    models.BigAutoField(
                        auto_created=True,
                        primary_key=True,
                        serialize=False,
                        verbose_name="ID",
                    ),
                ),
                ("name", models.CharField(max_length=100)),
                ("slug", models.SlugField(unique=True)),
                (
                    "mount_path",
                    models.CharField(
                        help_text="Where the device storage is mounted", max_length=500
                    ),
                ),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "profile",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="devices",
                        to="devices.deviceprofile",
                    ),
                ),
            ],
            options={
                "ordering": ["name"],
            },
        ),
        migrations.CreateModel(
            name="SyncJob",
            fields=[
                (
                    "id",
                    models.BigAutoField(
                        auto_created=True,
                        primary_key=True,
                        serialize=False,
                        verbose_name="ID",
                    ),
                ),
                ("task_id", models.CharField(max_length=64, unique=True)),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("pending", "Pending"),
                            ("running", "Running"),
                            ("completed", "Completed"),
                            ("failed", "Failed"),
                            ("cancelled", "Cancelled"),
                        ],
                        default="pending",
                        max_length=20,
                    ),
                ),
                ("tag_ids", models.JSONField(default=list)),
                ("clean_destination", models.BooleanField(default=False)),
                ("verify_files", models.BooleanField(default=False)),
                ("phase", models.CharField(default="idle", max_length=20)),
                (
                    "current_file",
                    models.CharField(blank=True, default="", max_length=255),
                ),
                ("files_total", models.IntegerField(default=0)),
                ("files_processed", models.IntegerField(default=0)),
                ("files_copied", models.IntegerField(default=0)),
                ("progress_percent", models.IntegerField(default=0)),
                ("files_skipped", models.JSONField(default=list)),
                ("files_failed", models.JSONField(default=list)),
                ("error", models.TextField(blank=True)),
                ("started_at", models.DateTimeField(auto_now_add=True)),
                ("completed_at", models.DateTimeField(blank=True, null=True)),
                (
                    "device",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="sync_jobs",
                        to="devices.device",
                    ),
                ),
            ],
            options={
                "ordering": ["-started_at", "-pk"],
            },
        ),
    ]
