"""
Expired Discord token sweep.

Deletes token rows whose expiry has passed, on a fixed interval
(TOKEN_CLEANUP_INTERVAL_MINUTES). Run it with:

    python -m app.jobs.worker token_cleanup
"""

import asyncio
from datetime import UTC, datetime

from app.config import settings
from app.db.helpers import DatabaseError
from app.db.pool import db_pool
from app.infrastructure.observability.logging import get_logger
from app.repositories.token_repository import TokenRepository
from app.services.token_service import TokenService

logger = get_logger(__name__)

# Delay before the next attempt after the scheduler loop itself errored
ERROR_BACKOFF_SECONDS = 60


class CleanupMetrics:
    """Metrics for one cleanup run."""

    def __init__(self):
        self.reset()

    def reset(self):
        self.start_time = datetime.now(UTC)
        self.tokens_deleted = 0
        self.total_duration_seconds = 0.0
        self.error: str | None = None

    def finalize(self):
        self.total_duration_seconds = (datetime.now(UTC) - self.start_time).total_seconds()

    def to_dict(self) -> dict:
        metrics = {
            "job_run": "token_cleanup",
            "start_time": self.start_time.isoformat(),
            "total_duration_seconds": round(self.total_duration_seconds, 2),
            "tokens_deleted": self.tokens_deleted,
        }
        if self.error:
            metrics["job_error"] = self.error
        return metrics


class TokenCleanupJob:
    def __init__(self, token_service: TokenService):
        self.token_service = token_service
        self.is_running = False
        self.last_run_time: datetime | None = None
        self.metrics = CleanupMetrics()

    async def run_once(self) -> dict:
        """
        Run a single sweep.

        Returns:
            Dict: run metrics; ``job_error`` is set when the sweep failed
        """
        if self.is_running:
            logger.warning("Token cleanup already running, skipping this iteration")
            return {"skipped": True, "reason": "already_running"}

        self.is_running = True
        self.metrics.reset()
        try:
            self.metrics.tokens_deleted = await self.token_service.cleanup()
            self.last_run_time = datetime.now(UTC)
        except DatabaseError as e:
            logger.error(
                "Token cleanup failed",
                operation=e.operation,
                error=str(e),
                error_type=type(e).__name__,
            )
            self.metrics.error = str(e)
        finally:
            self.is_running = False
            self.metrics.finalize()

        metrics = self.metrics.to_dict()
        logger.info("Token cleanup run finished", **metrics)
        return metrics


async def start_token_cleanup_scheduler(interval_minutes: int | None = None) -> None:
    """Open the database pool and sweep expired tokens until cancelled."""
    interval_seconds = (interval_minutes or settings.TOKEN_CLEANUP_INTERVAL_MINUTES) * 60
    job = TokenCleanupJob(TokenService(TokenRepository()))

    logger.info("Starting token cleanup scheduler", interval_seconds=interval_seconds)

    await db_pool.initialize()
    try:
        while True:
            try:
                await job.run_once()
                await asyncio.sleep(interval_seconds)
            except asyncio.CancelledError:
                logger.info("Token cleanup scheduler stopped")
                raise
            except Exception as e:
                logger.error(
                    "Error in token cleanup scheduler",
                    error=str(e),
                    error_type=type(e).__name__,
                )
                await asyncio.sleep(ERROR_BACKOFF_SECONDS)
    finally:
        await db_pool.close()
