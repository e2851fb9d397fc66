import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware

from activitycard.api.routes.cards import card_validation_error
from activitycard.api.routes.cards import router
from activitycard.core.cache import Cache
from activitycard.core.cache import InMemoryTTLCache
from activitycard.core.middleware import BadgeRateLimitMiddleware
from activitycard.core.observability import configure_logging
from activitycard.core.observability import init_sentry
from activitycard.services.languages_service import LanguagesService
from activitycard.services.stats_service import StatsService
from activitycard.services.streak_service import StreakService
from activitycard.settings import Settings


logger = logging.getLogger(__name__)


def create_app(
    settings: Settings | None = None,
    cache: Cache | None = None,
    http_client: httpx.AsyncClient | None = None,
) -> FastAPI:
    """Build the FastAPI application with its services wired onto `app.state`."""

    app_settings = settings or Settings()
    configure_logging(app_settings)
    init_sentry(app_settings)

    owns_client = http_client is None
    client = http_client or httpx.AsyncClient(timeout=app_settings.github_timeout_seconds)
    app_cache = cache if cache is not None else InMemoryTTLCache()

    @asynccontextmanager
    async def lifespan(_: FastAPI) -> AsyncIterator[None]:
        if not app_settings.github_token:
            logger.warning("GITHUB_TOKEN is not set, GitHub requests are unauthenticated")
        yield
        if owns_client:
            await client.aclose()

    app = FastAPI(title="Activity Card", lifespan=lifespan)
    app.state.settings = app_settings
    app.state.streak_service = StreakService(client, app_cache, app_settings)
    app.state.stats_service = StatsService(client, app_cache, app_settings)
    app.state.languages_service = LanguagesService(client, app_cache, app_settings)

    app.add_middleware(
        BadgeRateLimitMiddleware,
        requests_per_window=app_settings.rate_limit_per_minute,
        window_seconds=app_settings.rate_limit_window_seconds,
    )
    if app_settings.cors_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=app_settings.cors_origins,
            allow_methods=["GET"],
            allow_credentials=True,
        )

    app.add_exception_handler(RequestValidationError, card_validation_error)
    app.include_router(router)
    return app


app = create_app()
