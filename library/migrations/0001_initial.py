import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):
    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="System",
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
                ("extensions", models.JSONField()),
                ("exclusive_extensions", models.JSONField(default=list)),
                ("folder_names", models.JSONField()),
                (
                    "ra_console_id",
                    models.PositiveIntegerField(blank=True, null=True),
                ),
            ],
            options={
                "ordering": ["name"],
            },
        ),
        migrations.CreateModel(
            name="ScanJob",
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
                ("path", models.CharField(max_length=500)),
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
                ("files_processed", models.IntegerField(default=0)),
                (
                    "current_file",
                    models.CharField(blank=True, default="", max_length=500),
                ),
                ("added", models.IntegerField(default=0)),
                ("skipped", models.IntegerField(default=0)),
                ("errors", models.JSONField(default=list)),
                ("started_at", models.DateTimeField(auto_now_add=True)),
                ("completed_at", models.DateTimeField(blank=True, null=True)),
            ],
            options={
                "ordering": ["-started_at", "-pk"],
            },
        ),
        migrations.CreateModel(
            name="ROM",
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
                ("display_name", models.CharField(max_length=255)),
                ("region", models.CharField(default="Unknown", max_length=50)),
                ("file_path", models.CharField(max_length=1000)),
                ("file_name", models.CharField(max_length=255)),
                ("rom_file_name", models.CharField(max_length=255)),
                ("file_size", models.BigIntegerField()),
                ("md5", models.CharField(max_length=32, unique=True)),
                ("file_crc32", models.CharField(max_length=8)),
                (
                    "ra_md5",
                    models.CharField(
                        blank=True, db_index=True, max_length=32, null=True
                    ),
                ),
                ("verified", models.BooleanField(default=False)),
                ("tags", models.JSONField(blank=True, default=list)),
                ("favorite", models.BooleanField(default=False)),
                ("notes", models.TextField(blank=True, default="")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "system",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="roms",
                        to="library.system",
                    ),
                ),
            ],
            options={
                "ordering": ["display_name"],
                "indexes": [models.Index(fields=["system"], name="rom_system_idx")],
            },
        ),
    ]
