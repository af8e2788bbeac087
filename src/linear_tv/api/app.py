"""FastAPI application with lifespan management."""

import asyncio
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from datetime import UTC, datetime

import httpx
import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import OperationalError, SQLAlchemyError

from linear_tv.api.middleware import RequestLoggingMiddleware
from linear_tv.api.routes.auth import router as auth_router
from linear_tv.api.routes.feed import router as feed_router
from linear_tv.api.routes.subscriptions import router as subscriptions_router
from linear_tv.api.routes.timeline import router as timeline_router
from linear_tv.config import settings
from linear_tv.logging_config import configure_logging
from linear_tv.storage.database import async_session, engine
from linear_tv.youtube.client import YouTubeClient
from linear_tv.youtube.oauth import OAuthClient

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None]:
    """Manage application startup and shutdown.

    Startup:
        - Configure logging.
        - Open the YouTube client and the OAuth HTTP client.
    Shutdown:
        - Close both HTTP clients.
        - Dispose database engine (close connection pool).
    """
    configure_logging(
        environment=str(settings.environment),
        log_level=settings.log_level,
    )

    youtube = YouTubeClient(
        settings.youtube_api_base_url,
        timeout=settings.youtube_request_timeout,
    )
    async with (
        youtube,
        httpx.AsyncClient(timeout=settings.youtube_request_timeout) as oauth_http,
    ):
        app.state.youtube_client = youtube
        app.state.oauth_client = OAuthClient.from_settings(settings, oauth_http)

        logger.info("app_started", environment=str(settings.environment))
        yield

    await engine.dispose()
    logger.info("app_stopped")


app = FastAPI(
    title="Linear TV",
    description="Subscribed YouTube channels played back as a continuous channel",
    version="0.1.0",
    lifespan=lifespan,
    debug=settings.is_dev,
)

app.add_middleware(RequestLoggingMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_allowed_origins,
    allow_credentials=settings.cors_allow_credentials,
    allow_methods=settings.cors_allowed_methods,
    allow_headers=settings.cors_allowed_headers,
)


HEALTH_CHECK_TIMEOUT = 5.0


@app.get("/health")
async def health() -> JSONResponse:
    """Deep health check, verifies DB connectivity."""
    checks: dict[str, str] = {}
    overall = "ok"

    try:
        async with async_session() as session:
            await asyncio.wait_for(
                session.execute(text("SELECT 1")),
                timeout=HEALTH_CHECK_TIMEOUT,
            )
        checks["db"] = "ok"
    except (TimeoutError, OperationalError, SQLAlchemyError) as e:
        logger.warning("health_check_db_error", error=type(e).__name__)
        checks["db"] = f"error: {type(e).__name__}"
        overall = "degraded"
    except Exception as e:
        logger.error("health_check_db_unexpected", error=str(e), exc_info=True)
        checks["db"] = f"error: {type(e).__name__}"
        overall = "degraded"

    status_code = 200 if overall == "ok" else 503
    return JSONResponse(
        status_code=status_code,
        content={
            "status": overall,
            "checks": checks,
            "timestamp": datetime.now(UTC).isoformat(timespec="seconds"),
        },
    )


@app.exception_handler(Exception)
async def unhandled_exception_handler(
    request: Request,
    exc: Exception,
) -> JSONResponse:
    """Catch-all handler for unhandled exceptions."""
    logger.error("unhandled_exception", exc_info=exc, path=request.url.path)
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal server error"},
    )


app.include_router(timeline_router, prefix="/api")
app.include_router(feed_router, prefix="/api")
app.include_router(subscriptions_router, prefix="/api")
app.include_router(auth_router, prefix="/api")
