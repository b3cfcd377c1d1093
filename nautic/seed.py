"""Create the database schema and load the coastal spots.

    python -m nautic.seed            # uses NAUTIC_DATABASE_URL
    python -m nautic.seed --url postgresql://nautic:***@db/nautic
"""

import argparse
from typing import Optional, Sequence

from nautic.config import settings
from nautic.data_sources.postgres_source import PostgresSpotRepository
from nautic.spots import COASTAL_SPOTS
from utils.logging_utils import get_tagged_logger, mask_db_url, setup_logging

logger = get_tagged_logger(__name__, tag="seed")


def seed(database_url: str) -> int:
    """Create missing tables and insert missing spots; return how many were added."""
    repository = PostgresSpotRepository.from_url(database_url, timezone=settings.timezone)
    logger.info("Seeding database", extra={"db_url": mask_db_url(database_url)})
    repository.create_schema()
    return repository.seed_spots(COASTAL_SPOTS)


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Create tables and seed the Nautic spot list.")
    parser.add_argument("--url", default=settings.database_url, help="database URL (default: NAUTIC_DATABASE_URL)")
    args = parser.parse_args(argv)

    setup_logging(level=settings.log_level, job_name="nautic_seed")
    inserted = seed(args.url)
    logger.info(f"Inserted {inserted} spot(s)")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
