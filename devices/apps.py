from django.apps import AppConfig


class DevicesConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "devices"

    def ready(self):
        # Only sync in main process, not in migrations or management commands
        import sys

        if "runserver" in sys.argv or "worker" in sys.argv:
            from .profile_loader import sync_profiles

            sync_profiles()
