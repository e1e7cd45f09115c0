from django.contrib import admin

from .models import ROM, ScanJob, System


@admin.register(System)
class SystemAdmin(admin.ModelAdmin):
    list_display = ["name", "slug", "ra_console_id", "rom_count"]
    search_fields = ["name", "slug"]

    def rom_count(self, obj):
        return obj.roms.count()


@admin.register(ROM)
class ROMAdmin(admin.ModelAdmin):
    list_display = [
        "display_name",
        "system",
        "region",
        "verified",
        "favorite",
        "file_name",
        "file_size",
    ]
    list_filter = ["system", "region", "verified", "favorite"]
    search_fields = ["display_name", "file_name", "md5", "ra_md5"]
    readonly_fields = ["md5", "file_crc32", "ra_md5", "created_at", "updated_at"]


@admin.register(ScanJob)
class ScanJobAdmin(admin.ModelAdmin):
    list_display = [
        "path",
        "status",
        "files_processed",
        "added",
        "skipped",
        "started_at",
    ]
    list_filter = ["status"]
    readonly_fields = ["started_at", "completed_at"]
