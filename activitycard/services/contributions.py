import asyncio
import logging
import random
from collections.abc import Iterable
from datetime import UTC
from datetime import date
from datetime import datetime
from datetime import timedelta

import httpx

from activitycard.api.schemas.streak import ContributionDay
from activitycard.api.schemas.streak import ContributionSeries
from activitycard.clients.github_client import GitHubUserMissingError
from activitycard.clients.github_client import fetch_contribution_days
from activitycard.services.errors import UpstreamUnavailableError
from activitycard.services.errors import UserNotFoundError


logger = logging.getLogger(__name__)


def year_windows(start_year: int, now: datetime) -> list[tuple[datetime, datetime]]:
    """Split `[Jan 1 of start_year, now]` into one window per calendar year.

    The current year's window ends at `now` so no future dates are requested.
    """

    windows: list[tuple[datetime, datetime]] = []
    for year in range(start_year, now.year + 1):
        window_start = datetime(year, 1, 1, tzinfo=UTC)
        window_end = datetime(year, 12, 31, 23, 59, 59, tzinfo=UTC)
        windows.append((window_start, min(window_end, now)))
    return windows


def parse_contribution_days(raw_days: Iterable[dict[str, str | int]]) -> list[ContributionDay]:
    days: list[ContributionDay] = []
    for item in raw_days:
        raw_date = item.get("date")
        raw_count = item.get("count")
        if not isinstance(raw_date, str) or not isinstance(raw_count, int):
            raise ValueError("contribution day is malformed")
        days.append(ContributionDay(date=date.fromisoformat(raw_date), count=raw_count))
    return days


def merge_contribution_days(
    per_year_days: Iterable[Iterable[ContributionDay]],
) -> ContributionSeries:
    """Merge per-year day lists into one date-ascending series.

    A date reported by more than one list keeps the record seen last; counts
    are never summed across lists.
    """

    by_date: dict[date, ContributionDay] = {}
    for days in per_year_days:
        for day in days:
            by_date[day.date] = day
    return tuple(by_date[day] for day in sorted(by_date))


async def fetch_contributions(
    client: httpx.AsyncClient,
    username: str,
    token: str,
    graphql_url: str,
    start_year: int,
    now: datetime | None = None,
) -> ContributionSeries:
    """Fetch every year of a user's contribution calendar concurrently.

    Raises:
        UserNotFoundError: If any year reports that the user does not exist.
        UpstreamUnavailableError: If any year fails for another reason.
    """

    if now is None:
        now = datetime.now(UTC)

    windows = year_windows(start_year, now)
    logger.debug(
        "Fetching %d contribution windows for %s", len(windows), username
    )

    results = await asyncio.gather(
        *(
            fetch_contribution_days(
                client,
                username=username,
                token=token,
                graphql_url=graphql_url,
                from_datetime=window_start,
                to_datetime=window_end,
            )
            for window_start, window_end in windows
        ),
        return_exceptions=True,
    )

    failures = [result for result in results if isinstance(result, BaseException)]
    for failure in failures:
        if isinstance(failure, GitHubUserMissingError):
            raise UserNotFoundError(f"GitHub user {username!r} not found") from failure
    for failure in failures:
        if not isinstance(failure, Exception):
            raise failure
        logger.warning(
            "Contribution fetch for %s failed: %s", username, failure.__class__.__name__
        )
        raise UpstreamUnavailableError("GitHub contribution request failed") from failure

    try:
        per_year_days = [parse_contribution_days(days) for days in results]
    except ValueError as exc:
        raise UpstreamUnavailableError("GitHub contribution data is invalid") from exc

    series = merge_contribution_days(per_year_days)
    logger.debug("Fetched %d contribution days for %s", len(series), username)
    return series


def generate_placeholder_contributions(
    today: date, days: int = 366, rng: random.Random | None = None
) -> ContributionSeries:
    """Build a synthetic series ending today, used only when explicitly enabled."""

    rng = rng or random.Random()
    series: list[ContributionDay] = []
    for offset in range(days - 1, -1, -1):
        count = rng.randint(0, 9) if rng.random() > 0.3 else 0
        series.append(ContributionDay(date=today - timedelta(days=offset), count=count))
    return tuple(series)
