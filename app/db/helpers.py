"""
Query helpers used by the repositories.

Every psycopg failure is re-raised as DatabaseError so callers never handle
driver exceptions directly.
"""

import asyncio
import functools
from contextlib import asynccontextmanager
from typing import Any

import psycopg
from psycopg import errors as pg_errors

from app.db.pool import get_db_connection, get_db_transaction
from app.infrastructure.observability.logging import get_logger

logger = get_logger(__name__)


class DatabaseError(Exception):
    """Custom exception for database operations."""

    def __init__(self, message: str, operation: str = "unknown", recoverable: bool = True):
        super().__init__(message)
        self.operation = operation
        self.recoverable = recoverable


class DuplicateKeyError(DatabaseError):
    """A unique constraint rejected the write."""

    def __init__(self, message: str, operation: str = "unknown", constraint: str | None = None):
        super().__init__(message, operation=operation, recoverable=False)
        self.constraint = constraint


class ForeignKeyError(DatabaseError):
    """A foreign key constraint rejected the write (referenced row missing)."""

    def __init__(self, message: str, operation: str = "unknown", constraint: str | None = None):
        super().__init__(message, operation=operation, recoverable=False)
        self.constraint = constraint


def _wrap_error(e: psycopg.Error, operation: str) -> DatabaseError:
    """Translate a psycopg error into the DatabaseError hierarchy."""
    constraint = getattr(getattr(e, "diag", None), "constraint_name", None)
    if isinstance(e, pg_errors.UniqueViolation):
        return DuplicateKeyError(f"Duplicate key: {e}", operation=operation, constraint=constraint)
    if isinstance(e, pg_errors.ForeignKeyViolation):
        return ForeignKeyError(
            f"Foreign key violation: {e}", operation=operation, constraint=constraint
        )
    return DatabaseError(
        f"Query failed: {e}",
        operation=operation,
        recoverable=isinstance(e, psycopg.OperationalError),
    )


@asynccontextmanager
async def _borrow(connection: psycopg.AsyncConnection | None):
    """Use the caller's connection when given, otherwise borrow one from the pool."""
    if connection is not None:
        yield connection
        return
    async with get_db_connection() as conn:
        yield conn


async def fetch_one(
    query: str, params: tuple = (), *, connection: psycopg.AsyncConnection | None = None
) -> dict[str, Any] | None:
    """
    Run ``query`` and return the first row as a dict, or None.

    Raises:
        DatabaseError: any psycopg failure, with unique and foreign key
            violations surfaced as DuplicateKeyError / ForeignKeyError
    """
    try:
        async with _borrow(connection) as conn:
            async with conn.cursor() as cur:
                await cur.execute(query, params)
                return await cur.fetchone()
    except psycopg.Error as e:
        logger.error("Database fetch_one error", query=query[:100], error=str(e))
        raise _wrap_error(e, "fetch_one") from e


async def fetch_all(
    query: str, params: tuple = (), *, connection: psycopg.AsyncConnection | None = None
) -> list[dict[str, Any]]:
    try:
        async with _borrow(connection) as conn:
            async with conn.cursor() as cur:
                await cur.execute(query, params)
                return await cur.fetchall()
    except psycopg.Error as e:
        logger.error("Database fetch_all error", query=query[:100], error=str(e))
        raise _wrap_error(e, "fetch_all") from e


async def execute_query(
    query: str, params: tuple = (), *, connection: psycopg.AsyncConnection | None = None
) -> int:
    """Run a statement and return the affected row count."""
    try:
        async with _borrow(connection) as conn:
            cursor = await conn.execute(query, params)
            return cursor.rowcount
    except psycopg.Error as e:
        logger.error("Database execute error", query=query[:100], error=str(e))
        raise _wrap_error(e, "execute") from e


async def execute_transaction(queries_and_params: list[tuple]) -> bool:
    """
    Execute multiple queries in a single transaction.

    Example:
        await execute_transaction([
            ("INSERT INTO schema_migrations (version) VALUES (%s)", ("001",)),
            (migration_sql, ()),
        ])
    """
    try:
        async with get_db_transaction() as conn:
            for query, params in queries_and_params:
                await conn.execute(query, params)

        logger.debug("Transaction completed successfully", query_count=len(queries_and_params))
        return True

    except psycopg.Error as e:
        logger.error("Transaction failed", query_count=len(queries_and_params), error=str(e))
        raise _wrap_error(e, "transaction") from e


def with_db_retry(max_retries: int = 3, base_delay: float = 0.1):
    """
    Retry a read-only database operation on temporary (operational) failures.

    Not applied to the login callback writes, which fail fast.

    Args:
        max_retries: Maximum number of retry attempts
        base_delay: Base delay between retries (exponential backoff)
    """

    def decorator(func):
        @functools.wraps(func)
        async def wrapper(*args, **kwargs):
            for attempt in range(max_retries + 1):
                try:
                    return await func(*args, **kwargs)
                except DatabaseError as e:
                    if not e.recoverable or attempt >= max_retries:
                        raise
                    delay = base_delay * (2**attempt)
                    logger.warning(
                        "Database operation failed, retrying",
                        operation=func.__name__,
                        attempt=attempt + 1,
                        max_retries=max_retries,
                        delay=delay,
                        error=str(e),
                    )
                    await asyncio.sleep(delay)

        return wrapper

    return decorator
