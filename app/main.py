"""
FastAPI application: Discord login callback, token store and the
users / organizations API.
"""

import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request

from app.config import ConfigurationError, settings
from app.db.pool import db_pool
from app.dependencies import build_services
from app.infrastructure.observability.logging import get_logger, log_request, setup_logging
from app.middleware import CORSMiddleware, RequestContextMiddleware, register_error_handlers
from app.routes import auth, discord_tokens, health, orgs, users

# Setup logging before creating the app
setup_logging(log_level=settings.LOG_LEVEL)
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Build config and services once, open the database pool, close it on shutdown."""
    logger.info("Application starting", environment=settings.ENVIRONMENT, debug=settings.DEBUG)

    problems = settings.config_errors()
    if problems:
        logger.error("Invalid configuration", errors=problems)
        raise ConfigurationError(problems)

    oauth_config = settings.discord_oauth_config()

    await db_pool.initialize()
    app.state.services = build_services(oauth_config)

    logger.info(
        "All services initialized successfully",
        frontend_url=oauth_config.frontend_url,
        redirect_uri=oauth_config.redirect_uri,
    )

    yield

    logger.info("Application shutting down")
    try:
        await db_pool.close()
    except Exception as e:
        logger.error("Error closing database pool", error=str(e))


app = FastAPI(
    title="Discord Org Hub",
    description="Discord OAuth login, users and organizations API",
    version="0.1.0",
    debug=settings.DEBUG,
    lifespan=lifespan,
)

register_error_handlers(app)

app.add_middleware(RequestContextMiddleware)
app.add_middleware(CORSMiddleware, allowed_origins=settings.allowed_origins())

app.include_router(health.router)
app.include_router(auth.router)
app.include_router(discord_tokens.router)
app.include_router(users.router)
app.include_router(orgs.router)
app.include_router(orgs.members_router)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    """Log HTTP requests with timing."""
    start_time = time.time()
    response = await call_next(request)
    log_request(
        method=request.method,
        path=request.url.path,
        status_code=response.status_code,
        duration_ms=round((time.time() - start_time) * 1000, 2),
    )
    return response


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host=settings.HOST, port=settings.PORT)
