"""
Apply SQL migrations from the top-level migrations/ directory.

Each file is applied once, in filename order, inside its own transaction,
and recorded in schema_migrations.

Usage:
    python -m app.db.migrate
"""

import asyncio
from pathlib import Path

from app.config import settings
from app.db.helpers import execute_query, execute_transaction, fetch_all
from app.db.pool import db_pool
from app.infrastructure.observability.logging import get_logger, setup_logging

logger = get_logger(__name__)

MIGRATIONS_DIR = Path(__file__).resolve().parents[2] / "migrations"

_CREATE_MIGRATIONS_TABLE = """
CREATE TABLE IF NOT EXISTS schema_migrations (
    version VARCHAR(255) PRIMARY KEY,
    applied_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
)
"""


def discover_migrations(directory: Path = MIGRATIONS_DIR) -> list[tuple[str, Path]]:
    """Return (version, path) pairs sorted by filename."""
    return [(path.stem, path) for path in sorted(directory.glob("*.sql"))]


async def pending_migrations(directory: Path = MIGRATIONS_DIR) -> list[tuple[str, Path]]:
    await execute_query(_CREATE_MIGRATIONS_TABLE)
    rows = await fetch_all("SELECT version FROM schema_migrations")
    applied = {row["version"] for row in rows}
    return [
        (version, path)
        for version, path in discover_migrations(directory)
        if version not in applied
    ]


async def apply_migrations(directory: Path = MIGRATIONS_DIR) -> list[str]:
    """Apply every pending migration and return the applied versions."""
    applied = []
    for version, path in await pending_migrations(directory):
        logger.info("Applying migration", version=version)
        await execute_transaction(
            [
                # script is sent without parameters so it may hold several statements
                (path.read_text(encoding="utf-8"), None),
                ("INSERT INTO schema_migrations (version) VALUES (%s)", (version,)),
            ]
        )
        applied.append(version)

    logger.info("Migrations complete", applied=applied, count=len(applied))
    return applied


async def run_migrations() -> None:
    """Open the pool, apply pending migrations, close the pool."""
    await db_pool.initialize()
    try:
        await apply_migrations()
    finally:
        await db_pool.close()


def main() -> None:
    """CLI entrypoint."""
    setup_logging(log_level=settings.LOG_LEVEL)
    asyncio.run(run_migrations())


if __name__ == "__main__":
    main()
