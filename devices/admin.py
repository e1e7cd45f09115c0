"""Admin registration for devices app."""

from django.contrib import admin

from .models import Device, DeviceProfile, SyncJob


@admin.register(DeviceProfile)
class DeviceProfileAdmin(admin.ModelAdmin):
    """Admin for DeviceProfile model."""

    list_display = ["name", "rom_base_path", "is_builtin", "system_count", "version"]
    search_fields = ["name", "description"]
    list_filter = ["is_builtin"]
    readonly_fields = ["created_at", "updated_at"]

    def system_count(self, obj):
        return len(obj.system_mappings or {})


@admin.register(Device)
class DeviceAdmin(admin.ModelAdmin):
    """Admin for Device model."""

    list_display = ["name", "slug", "profile", "mount_path", "created_at"]
    search_fields = ["name", "slug", "mount_path"]
    prepopulated_fields = {"slug": ["name"]}
    list_filter = ["profile"]


@admin.register(SyncJob)
class SyncJobAdmin(admin.ModelAdmin):
    list_display = [
        "device",
        "status",
        "phase",
        "files_processed",
        "files_total",
        "files_copied",
        "started_at",
    ]
    list_filter = ["status", "device"]
    readonly_fields = ["started_at", "completed_at"]
