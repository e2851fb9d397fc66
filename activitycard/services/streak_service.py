import logging
import random
from datetime import UTC
from datetime import date
from datetime import datetime
from datetime import timedelta

import httpx

from activitycard.api.schemas.streak import ContributionSeries
from activitycard.api.schemas.streak import StreakReport
from activitycard.api.schemas.streak import StreakStats
from activitycard.core.cache import Cache
from activitycard.services.contributions import fetch_contributions
from activitycard.services.contributions import generate_placeholder_contributions
from activitycard.services.errors import MissingParameterError
from activitycard.services.errors import UpstreamUnavailableError
from activitycard.settings import Settings


logger = logging.getLogger(__name__)

ONE_DAY = timedelta(days=1)


def streak_stats_cache_key(username: str) -> str:
    return f"streak_stats_{username}"


def contributions_cache_key(username: str) -> str:
    return f"contributions_{username}"


def calculate_streak_stats(
    username: str, series: ContributionSeries, today: date | None = None
) -> StreakStats:
    """Derive totals and streak windows from a date-ascending series.

    Current streak: anchored at today when today has contributions, else at
    yesterday, then extended backwards while each earlier day has a non-zero
    count. Days missing from the series count as zero.

    Longest streak: a zero-count record ends the running streak only when it
    directly follows the previous record's date. A date missing from the
    series does not end it, so a run continues across a gap in the data.
    """

    if not series:
        return StreakStats(username=username)

    if today is None:
        today = datetime.now(UTC).date()

    counts_by_date = {day.date: day.count for day in series}
    total_contributions = sum(day.count for day in series)

    current_streak = 0
    current_streak_start: date | None = None
    current_streak_end: date | None = None

    anchor: date | None = None
    if counts_by_date.get(today, 0) > 0:
        anchor = today
    elif counts_by_date.get(today - ONE_DAY, 0) > 0:
        anchor = today - ONE_DAY

    if anchor is not None:
        current_streak_end = anchor
        cursor = anchor
        while counts_by_date.get(cursor, 0) > 0:
            current_streak += 1
            current_streak_start = cursor
            cursor -= ONE_DAY

    longest_streak = 0
    longest_streak_start: date | None = None
    longest_streak_end: date | None = None
    running_streak = 0
    running_streak_start: date | None = None
    previous_day: date | None = None

    for day in series:
        if day.count > 0:
            if running_streak == 0:
                running_streak_start = day.date
            running_streak += 1
            if running_streak > longest_streak:
                longest_streak = running_streak
                longest_streak_start = running_streak_start
                longest_streak_end = day.date
        elif previous_day is not None and day.date - previous_day == ONE_DAY:
            running_streak = 0
        previous_day = day.date

    return StreakStats(
        username=username,
        current_streak=current_streak,
        longest_streak=longest_streak,
        total_contributions=total_contributions,
        first_contribution=series[0].date,
        current_streak_start=current_streak_start,
        current_streak_end=current_streak_end,
        longest_streak_start=longest_streak_start,
        longest_streak_end=longest_streak_end,
    )


class StreakService:
    """Fetches contribution history and turns it into cached streak stats."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        cache: Cache,
        settings: Settings,
        rng: random.Random | None = None,
    ) -> None:
        self.client = client
        self.cache = cache
        self.settings = settings
        self._rng = rng

    async def get_contributions(
        self, username: str, refresh: bool = False
    ) -> ContributionSeries:
        """Return the normalized series, from cache unless `refresh` is set."""

        if not refresh:
            cached = self._cached_contributions(username)
            if cached is not None:
                return cached
        return await self._fetch_contributions(username)

    def _cached_contributions(self, username: str) -> ContributionSeries | None:
        cache_key = contributions_cache_key(username)
        cached = self.cache.get(cache_key)
        if cached is not None:
            logger.debug("Cache hit for %s", cache_key)
        return cached

    async def _fetch_contributions(self, username: str) -> ContributionSeries:
        series = await fetch_contributions(
            self.client,
            username=username,
            token=self.settings.github_token,
            graphql_url=self.settings.github_graphql_url,
            start_year=self.settings.contributions_start_year,
        )
        self.cache.set(
            contributions_cache_key(username), series, self.settings.cache_ttl_ms
        )
        return series

    async def get_streak_report(
        self, username: str, refresh: bool = False, today: date | None = None
    ) -> StreakReport:
        """Return streak stats together with the series they came from.

        Raises:
            MissingParameterError: If `username` is empty.
            UserNotFoundError: If GitHub has no such user.
            UpstreamUnavailableError: If GitHub fails and placeholder data
                is disabled.
        """

        username = username.strip() if username else ""
        if not username:
            raise MissingParameterError("username is required")

        stats_key = streak_stats_cache_key(username)
        contributions = None if refresh else self._cached_contributions(username)
        if contributions is not None:
            # Cached stats are only reused next to the series they came from.
            cached_stats = self.cache.get(stats_key)
            if cached_stats is not None:
                logger.debug("Cache hit for %s", stats_key)
                return StreakReport(stats=cached_stats, contributions=contributions)
        else:
            try:
                contributions = await self._fetch_contributions(username)
            except UpstreamUnavailableError:
                if not self.settings.placeholder_contributions:
                    raise
                logger.warning(
                    "Serving placeholder contributions for %s, GitHub is unavailable",
                    username,
                )
                placeholder = generate_placeholder_contributions(
                    today or datetime.now(UTC).date(), rng=self._rng
                )
                return StreakReport(
                    stats=calculate_streak_stats(username, placeholder, today=today),
                    contributions=placeholder,
                    is_placeholder=True,
                )

        stats = calculate_streak_stats(username, contributions, today=today)
        self.cache.set(stats_key, stats, self.settings.cache_ttl_ms)
        return StreakReport(stats=stats, contributions=contributions)

    async def get_streak_stats(self, username: str, refresh: bool = False) -> StreakStats:
        report = await self.get_streak_report(username, refresh=refresh)
        return report.stats
