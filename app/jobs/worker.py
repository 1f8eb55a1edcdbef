"""
Entry point for the out-of-process jobs: the expired-token sweeper and the
schema migrator.

    worker token_cleanup
    WORKER_JOB=migrate worker
"""

import asyncio
import os
import sys
from collections.abc import Awaitable, Callable

from app.config import settings
from app.db.migrate import run_migrations
from app.infrastructure.observability.logging import get_logger, setup_logging
from app.jobs.token_cleanup_job import start_token_cleanup_scheduler

logger = get_logger(__name__)

DEFAULT_JOB = "token_cleanup"

JOB_REGISTRY: dict[str, Callable[[], Awaitable[None]]] = {
    "token_cleanup": start_token_cleanup_scheduler,
    "migrate": run_migrations,
}


def _normalize(name: str) -> str:
    return name.strip().lower()


def _resolve_job_name(argv: list[str] | None = None) -> str:
    """First positional argument wins, then WORKER_JOB, then the token sweeper."""
    args = sys.argv[1:] if argv is None else argv
    if args:
        return _normalize(args[0])
    return _normalize(os.getenv("WORKER_JOB", DEFAULT_JOB))


async def run_worker(job_name: str | None = None) -> None:
    name = _normalize(job_name) if job_name else _resolve_job_name()
    job = JOB_REGISTRY.get(name)
    if job is None:
        known = ", ".join(sorted(JOB_REGISTRY))
        raise ValueError(f"Unknown worker job '{name}' (known jobs: {known})")

    logger.info("Worker job starting", job=name)
    await job()


def main() -> None:
    setup_logging(log_level=settings.LOG_LEVEL)
    asyncio.run(run_worker())


if __name__ == "__main__":
    main()
