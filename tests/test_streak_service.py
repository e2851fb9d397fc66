import asyncio
import random
from datetime import UTC
from datetime import date
from datetime import datetime
from datetime import timedelta

import httpx
import pytest

from activitycard.api.schemas.streak import ContributionDay
from activitycard.core.cache import InMemoryTTLCache
from activitycard.services.errors import MissingParameterError
from activitycard.services.errors import UpstreamUnavailableError
from activitycard.services.errors import UserNotFoundError
from activitycard.services.streak_service import StreakService
from activitycard.settings import Settings


TODAY = datetime.now(UTC).date()


class DictCache:
    """Cache double without expiry so tests can drop single keys."""

    def __init__(self) -> None:
        self.entries: dict[str, object] = {}

    def get(self, key: str):
        return self.entries.get(key)

    def set(self, key: str, value, ttl_ms: int) -> None:
        self.entries[key] = value


def calendar_response(days: list[tuple[date, int]]) -> httpx.Response:
    return httpx.Response(
        200,
        json={
            "data": {
                "user": {
                    "contributionsCollection": {
                        "contributionCalendar": {
                            "weeks": [
                                {
                                    "contributionDays": [
                                        {"date": day.isoformat(), "contributionCount": count}
                                        for day, count in days
                                    ]
                                }
                            ]
                        }
                    }
                }
            }
        },
    )


def make_settings(**overrides) -> Settings:
    values = {
        "github_token": "test-token",
        "github_graphql_url": "https://api.github.test/graphql",
        "contributions_start_year": TODAY.year,
    }
    values.update(overrides)
    return Settings(**values)


def run_report(
    handler,
    username: str,
    cache=None,
    settings: Settings | None = None,
    rng: random.Random | None = None,
    **kwargs,
):
    async def run():
        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            service = StreakService(
                client,
                InMemoryTTLCache() if cache is None else cache,
                settings or make_settings(),
                rng=rng,
            )
            return await service.get_streak_report(username, **kwargs)

    return asyncio.run(run())


def test_report_computes_streaks_from_fetched_calendar() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return calendar_response(
            [(TODAY - timedelta(days=1), 2), (TODAY, 3)]
        )

    report = run_report(handler, "octocat", today=TODAY)

    assert report.is_placeholder is False
    assert report.stats.total_contributions == 5
    assert report.stats.current_streak == 2
    assert report.stats.current_streak_end == TODAY
    assert len(report.contributions) == 2


def test_report_is_served_from_cache_until_refresh() -> None:
    calls = 0

    def handler(request: httpx.Request) -> httpx.Response:
        nonlocal calls
        calls += 1
        return calendar_response([(TODAY, calls)])

    cache = InMemoryTTLCache()

    first = run_report(handler, "octocat", cache=cache, today=TODAY)
    second = run_report(handler, "octocat", cache=cache, today=TODAY)
    refreshed = run_report(handler, "octocat", cache=cache, refresh=True, today=TODAY)

    assert calls == 2
    assert first.stats.total_contributions == 1
    assert second.stats == first.stats
    assert refreshed.stats.total_contributions == 2
    assert cache.get("streak_stats_octocat") == refreshed.stats
    assert cache.get("contributions_octocat") == refreshed.contributions


def test_stats_are_recomputed_when_only_contributions_expired() -> None:
    count = 1

    def handler(request: httpx.Request) -> httpx.Response:
        return calendar_response([(TODAY, count)])

    cache = DictCache()
    run_report(handler, "octocat", cache=cache, today=TODAY)

    del cache.entries["contributions_octocat"]
    count = 5
    report = run_report(handler, "octocat", cache=cache, today=TODAY)

    assert report.stats.total_contributions == 5
    assert report.stats.total_contributions == sum(
        day.count for day in report.contributions
    )
    assert cache.get("streak_stats_octocat") == report.stats


def test_stats_are_rebuilt_from_cached_contributions_without_refetch() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise AssertionError("no request expected")

    cache = DictCache()
    cache.set(
        "contributions_octocat", (ContributionDay(date=TODAY, count=4),), 300_000
    )

    report = run_report(handler, "octocat", cache=cache, today=TODAY)

    assert report.stats.total_contributions == 4
    assert report.stats.current_streak == 1
    assert cache.get("streak_stats_octocat") == report.stats


def test_missing_username_fails_before_any_request() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise AssertionError("no request expected")

    with pytest.raises(MissingParameterError):
        run_report(handler, "  ")


def test_upstream_failure_propagates_when_placeholder_disabled() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(503)

    with pytest.raises(UpstreamUnavailableError):
        run_report(handler, "octocat")


def test_upstream_failure_serves_placeholder_when_enabled() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(503)

    cache = InMemoryTTLCache()
    report = run_report(
        handler,
        "octocat",
        cache=cache,
        settings=make_settings(placeholder_contributions=True),
        rng=random.Random(42),
        today=TODAY,
    )

    assert report.is_placeholder is True
    assert len(report.contributions) == 366
    assert report.contributions[-1].date == TODAY
    assert report.stats.total_contributions == sum(
        day.count for day in report.contributions
    )
    assert cache.get("streak_stats_octocat") is None
    assert cache.get("contributions_octocat") is None


def test_user_not_found_never_falls_back_to_placeholder() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"data": {"user": None}})

    with pytest.raises(UserNotFoundError):
        run_report(
            handler,
            "ghost-user",
            settings=make_settings(placeholder_contributions=True),
        )


def test_new_account_without_contributions_is_not_an_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return calendar_response([])

    report = run_report(handler, "newcomer")

    assert report.contributions == ()
    assert report.stats.total_contributions == 0
    assert report.stats.first_contribution is None
