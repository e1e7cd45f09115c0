from django.core.management.base import BaseCommand
from django.template.defaultfilters import filesizeformat

from library.catalog import library_stats


class Command(BaseCommand):
    help = "Print catalog statistics"

    def handle(self, *args, **options):
        stats = library_stats()
        self.stdout.write(
            f"ROMs: {stats['total']} ({filesizeformat(stats['total_size'])}), "
            f"verified: {stats['verified']}, favorites: {stats['favorites']}"
        )
        for system in stats["systems"]:
            self.stdout.write(
                f"  {system['name']}: {system['count']} "
                f"({filesizeformat(system['size'])})"
            )
        for region, count in stats["regions"].items():
            self.stdout.write(f"  {region}: {count}")
