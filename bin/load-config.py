"""Apply a configuration seed (tiers, rate, season and scoring tables, seasons) to a database.

Usage: uv run python bin/load-config.py [seed.yaml]

Without an argument the packaged default seed is applied. Tables whose
content is unchanged are left alone, so running it twice is harmless.
"""

import asyncio
import sys
from pathlib import Path

# Add backend to path for imports
sys.path.insert(0, str(Path(__file__).resolve().parent.parent / "backend"))

from ranking.config.loader import apply_seed, load_seed
from ranking.errors import ConfigurationError
from ranking.server.settings import RankingServerSettings
from shared.db import Database, SqliteConfigRepository


async def main() -> None:
    if len(sys.argv) > 2:
        print(f"Usage: {sys.argv[0]} [seed.yaml]")
        sys.exit(1)

    settings = RankingServerSettings()
    seed_path = Path(sys.argv[1]) if len(sys.argv) == 2 else settings.config_seed_path

    try:
        seed = load_seed(seed_path)
    except ConfigurationError as e:
        print(f"Error: {e}")
        sys.exit(1)

    db = Database(settings.database_path)
    db.connect()
    try:
        changed = await apply_seed(seed, SqliteConfigRepository(db))
    finally:
        db.close()

    for mode, kinds in changed.items():
        print(f"{mode}: {', '.join(kinds) if kinds else 'unchanged'}")
    print(f"Seasons: {len(seed.seasons)}")


if __name__ == "__main__":
    asyncio.run(main())
