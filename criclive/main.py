"""
CricLive - FastAPI Application

Caching proxy that serves live cricket scores, scorecards and match info
scraped from Cricbuzz.
"""

import logging
import time
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from . import __version__, config
from .api.routes import router
from .clients.cricbuzz import CricbuzzClient
from .services.cache import CacheService
from .services.match_service import MatchService
from .services.refresh import RefreshStrategy, build_strategy

logging.basicConfig(
    level=config.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)


def create_app(
    cache: Optional[CacheService] = None,
    client: Optional[CricbuzzClient] = None,
    strategy: Optional[RefreshStrategy] = None,
    start_strategy: bool = True,
) -> FastAPI:
    """
    Build the FastAPI app.

    Args:
        cache: Cache store, defaults to the strategy's or a new one
        client: Cricbuzz client used when no strategy is given
        strategy: Refresh strategy, defaults to one built for REFRESH_MODE
        start_strategy: Warm the cache and start polling on startup
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Startup and shutdown events."""
        active_strategy = strategy
        if active_strategy is None:
            active_strategy = build_strategy(
                config.REFRESH_MODE,
                cache or CacheService(),
                client or CricbuzzClient(),
            )
        active_cache = cache or active_strategy.cache

        app.state.cache = active_cache
        app.state.strategy = active_strategy
        app.state.match_service = MatchService(active_cache, active_strategy)
        app.state.started_at = time.monotonic()

        if start_strategy:
            logger.info("Warming cache...")
            await active_strategy.start()
        logger.info(f"CricLive ready (mode: {active_strategy.mode})")

        yield

        logger.info("Shutting down...")
        await active_strategy.stop()

    app = FastAPI(
        title="CricLive",
        description="Cached live cricket scores, scorecards and match info",
        version=__version__,
        lifespan=lifespan,
    )

    # Add CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.CORS_ORIGINS,
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        started = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - started) * 1000
        source = "cache" if response.headers.get("X-Cache-Hit") == "true" else "fresh"
        logger.info(
            f"{request.method} {request.url.path} {response.status_code} "
            f"{elapsed_ms:.0f}ms ({source})"
        )
        return response

    @app.get("/")
    async def root():
        """Service name, version and where to find the docs."""
        return {
            "name": "CricLive",
            "version": __version__,
            "docs": "/docs",
            "endpoints": [
                "/api/matches",
                "/api/matches/live",
                "/api/match/{id}/score",
                "/api/match/{id}/scorecard",
                "/api/match/{id}/info",
                "/api/health",
            ],
        }

    app.include_router(router)
    return app


app = create_app()


# Run with: uvicorn criclive.main:app --reload
if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host=config.HOST, port=config.PORT)
