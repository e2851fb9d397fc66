import logging
from typing import Annotated

from fastapi import APIRouter
from fastapi import Depends
from fastapi import Query
from fastapi import Request
from fastapi.exception_handlers import request_validation_exception_handler
from fastapi.exceptions import RequestValidationError
from fastapi.responses import Response

from activitycard.api.schemas.card_config import LanguagesCardConfig
from activitycard.api.schemas.card_config import StatsCardConfig
from activitycard.api.schemas.card_config import StreakCardConfig
from activitycard.services.errors import ActivityCardError
from activitycard.services.errors import MissingParameterError
from activitycard.services.errors import UserNotFoundError
from activitycard.services.languages_service import LanguagesService
from activitycard.services.stats_service import StatsService
from activitycard.services.streak_service import StreakService
from activitycard.svg.cards import render_error_card
from activitycard.svg.cards import render_languages_card
from activitycard.svg.cards import render_stats_card
from activitycard.svg.cards import render_streak_card


logger = logging.getLogger(__name__)

router = APIRouter()

SVG_MEDIA_TYPE = "image/svg+xml"
CARD_CACHE_CONTROL = "public, max-age=300, stale-while-revalidate=43200"
STREAK_CACHE_CONTROL = "public, max-age=300, stale-while-revalidate=3600"
NO_CACHE_CONTROL = "no-cache, no-store, must-revalidate"
ERROR_CARD_HEIGHTS = {"/api/streak": 195, "/api/card": 120, "/api/languages": 230}


def get_streak_service(request: Request) -> StreakService:
    return request.app.state.streak_service


def get_stats_service(request: Request) -> StatsService:
    return request.app.state.stats_service


def get_languages_service(request: Request) -> LanguagesService:
    return request.app.state.languages_service


def svg_response(svg: str, cache_control: str, status_code: int = 200) -> Response:
    return Response(
        content=svg,
        media_type=SVG_MEDIA_TYPE,
        status_code=status_code,
        headers={"Cache-Control": cache_control},
    )


def error_response(exc: ActivityCardError, width: int, height: int = 195) -> Response:
    """Render a domain error as an SVG card with the matching status code."""

    if isinstance(exc, (MissingParameterError, UserNotFoundError)):
        status_code = 404
        message = str(exc) or "GitHub user not found"
    else:
        status_code = 500
        message = "Failed to fetch GitHub data. Please try again later."
        logger.warning("Card request failed: %s", exc)

    return svg_response(
        render_error_card(message, width=width, height=height),
        cache_control=NO_CACHE_CONTROL,
        status_code=status_code,
    )


async def card_validation_error(request: Request, exc: RequestValidationError) -> Response:
    """Answer invalid card options with an SVG error card instead of JSON."""

    height = ERROR_CARD_HEIGHTS.get(request.url.path)
    if height is None:
        return await request_validation_exception_handler(request, exc)

    fields = sorted(
        {str(error["loc"][-1]) for error in exc.errors() if error.get("loc")}
    )
    message = f"Invalid value for {', '.join(fields)}" if fields else "Invalid request"
    width = 854 if request.query_params.get("width") == "wide" else 495
    return svg_response(
        render_error_card(message, width=width, height=height),
        cache_control=NO_CACHE_CONTROL,
        status_code=400,
    )


@router.get("/")
async def root() -> dict[str, str]:
    """Return a basic service greeting."""

    return {"message": "Activity card API is running"}


@router.get("/health/live")
def health_live() -> dict[str, str]:
    """Return liveness probe response for health checks."""

    return {"status": "ok"}


@router.get("/api/streak")
async def get_streak_card(
    config: Annotated[StreakCardConfig, Query()],
    service: StreakService = Depends(get_streak_service),
) -> Response:
    """Return the contribution streak card for a GitHub user."""

    try:
        report = await service.get_streak_report(
            config.username or "", refresh=config.refresh
        )
    except ActivityCardError as exc:
        return error_response(exc, width=config.pixel_width)

    svg = render_streak_card(report.stats, report.contributions, config)
    return svg_response(svg, cache_control=STREAK_CACHE_CONTROL)


@router.get("/api/card")
async def get_stats_card(
    config: Annotated[StatsCardConfig, Query()],
    service: StatsService = Depends(get_stats_service),
) -> Response:
    """Return the profile stats card for a GitHub user."""

    try:
        stats = await service.get_user_stats(
            config.username or "", refresh=config.refresh
        )
    except ActivityCardError as exc:
        return error_response(exc, width=config.pixel_width, height=120)

    return svg_response(render_stats_card(stats, config), cache_control=CARD_CACHE_CONTROL)


@router.get("/api/languages")
async def get_languages_card(
    config: Annotated[LanguagesCardConfig, Query()],
    service: LanguagesService = Depends(get_languages_service),
) -> Response:
    """Return the top languages card for a GitHub user."""

    try:
        languages = await service.get_top_languages(
            config.username or "", refresh=config.refresh, limit=config.limit
        )
    except ActivityCardError as exc:
        return error_response(exc, width=config.pixel_width, height=230)

    svg = render_languages_card(languages, config)
    return svg_response(svg, cache_control=STREAK_CACHE_CONTROL)
