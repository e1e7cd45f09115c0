"""Build the local hash database from the RetroAchievements API."""

import json
from pathlib import Path

from django.conf import settings
from django.core.management.base import BaseCommand, CommandError

from library.lookup.hashdb import build_database_document
from library.lookup.retroachievements import (
    RetroAchievementsError,
    credentials_available,
    fetch_game_list,
)
from library.system_loader import get_systems_config


class Command(BaseCommand):
    help = "Download game hashes from RetroAchievements into the hash database"

    def add_arguments(self, parser):
        parser.add_argument(
            "--output",
            type=str,
            default="",
            help="Output file (defaults to ROM_HASH_DATABASE_PATH)",
        )
        parser.add_argument(
            "--console",
            type=int,
            action="append",
            dest="consoles",
            help="Console ID to fetch (repeatable, defaults to all known systems)",
        )

    def handle(self, *args, **options):
        if not credentials_available():
            raise CommandError(
                "Set RETROACHIEVEMENTS_USERNAME and RETROACHIEVEMENTS_API_KEY first"
            )

        consoles = options["consoles"] or sorted(
            {s["ra_console_id"] for s in get_systems_config() if s.get("ra_console_id")}
        )
        output = Path(options["output"] or settings.ROM_HASH_DATABASE_PATH)

        game_lists = []
        for console_id in consoles:
            self.stdout.write(f"Fetching console {console_id}...")
            try:
                game_lists.append(fetch_game_list(console_id))
            except RetroAchievementsError as e:
                raise CommandError(str(e)) from e

        document = build_database_document(game_lists)
        output.parent.mkdir(parents=True, exist_ok=True)
        with open(output, "w") as f:
            json.dump(document, f)

        self.stdout.write(
            self.style.SUCCESS(
                f"Wrote {len(document['hashMap'])} hashes for "
                f"{len(document['games'])} games to {output}"
            )
        )
