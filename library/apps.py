from django.apps import AppConfig


class LibraryConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "library"

    def ready(self):
        # Only sync in main process, not in migrations or management commands
        import sys

        if "runserver" in sys.argv or "worker" in sys.argv:
            from .models import System

            # Only sync on fresh DB (no systems exist)
            if not System.objects.exists():
                from .system_loader import sync_systems

                sync_systems()
