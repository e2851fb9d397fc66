from datetime import date
from datetime import timedelta

from activitycard.api.schemas.streak import ContributionDay
from activitycard.services.contributions import merge_contribution_days
from activitycard.services.streak_service import calculate_streak_stats


def series_of(*items: tuple[str, int]) -> tuple[ContributionDay, ...]:
    return tuple(
        ContributionDay(date=date.fromisoformat(raw_date), count=count)
        for raw_date, count in items
    )


def test_empty_series_yields_zero_stats() -> None:
    stats = calculate_streak_stats("octocat", (), today=date(2024, 6, 1))

    assert stats.username == "octocat"
    assert stats.current_streak == 0
    assert stats.longest_streak == 0
    assert stats.total_contributions == 0
    assert stats.first_contribution is None
    assert stats.current_streak_start is None
    assert stats.current_streak_end is None
    assert stats.longest_streak_start is None
    assert stats.longest_streak_end is None


def test_total_contributions_independent_of_input_order() -> None:
    days = list(
        series_of(("2024-03-02", 4), ("2024-03-01", 1), ("2024-03-04", 0), ("2024-03-03", 7))
    )

    forward = calculate_streak_stats(
        "octocat", merge_contribution_days([days]), today=date(2024, 3, 4)
    )
    backward = calculate_streak_stats(
        "octocat", merge_contribution_days([list(reversed(days))]), today=date(2024, 3, 4)
    )

    assert forward.total_contributions == 12
    assert backward == forward


def test_current_streak_runs_back_from_today() -> None:
    today = date(2024, 6, 10)
    start = today - timedelta(days=4)
    days = [ContributionDay(date=start - timedelta(days=1), count=0)]
    days += [
        ContributionDay(date=start + timedelta(days=offset), count=offset + 1)
        for offset in range(5)
    ]

    stats = calculate_streak_stats("octocat", tuple(days), today=today)

    assert stats.current_streak == 5
    assert stats.current_streak_start == start
    assert stats.current_streak_end == today


def test_current_streak_anchors_at_yesterday_when_today_is_empty() -> None:
    series = series_of(
        ("2024-06-07", 2), ("2024-06-08", 1), ("2024-06-09", 3), ("2024-06-10", 0)
    )

    stats = calculate_streak_stats("octocat", series, today=date(2024, 6, 10))

    assert stats.current_streak == 3
    assert stats.current_streak_start == date(2024, 6, 7)
    assert stats.current_streak_end == date(2024, 6, 9)


def test_current_streak_is_zero_when_today_and_yesterday_are_empty() -> None:
    series = series_of(("2024-06-07", 2), ("2024-06-08", 0), ("2024-06-09", 0))

    stats = calculate_streak_stats("octocat", series, today=date(2024, 6, 10))

    assert stats.current_streak == 0
    assert stats.current_streak_start is None
    assert stats.current_streak_end is None
    assert stats.longest_streak == 1


def test_current_streak_stops_at_missing_day() -> None:
    series = series_of(("2024-06-07", 2), ("2024-06-09", 1), ("2024-06-10", 1))

    stats = calculate_streak_stats("octocat", series, today=date(2024, 6, 10))

    assert stats.current_streak == 2
    assert stats.current_streak_start == date(2024, 6, 9)


def test_isolated_day_today_is_whole_current_and_longest_streak() -> None:
    series = series_of(("2024-06-09", 0), ("2024-06-10", 4), ("2024-06-11", 0))

    stats = calculate_streak_stats("octocat", series, today=date(2024, 6, 10))

    assert stats.current_streak == 1
    assert stats.current_streak_start == date(2024, 6, 10)
    assert stats.current_streak_end == date(2024, 6, 10)
    assert stats.longest_streak == 1
    assert stats.longest_streak_start == date(2024, 6, 10)
    assert stats.longest_streak_end == date(2024, 6, 10)


def test_longest_streak_resets_on_adjacent_zero_day() -> None:
    series = series_of(
        ("2024-01-01", 5), ("2024-01-02", 3), ("2024-01-03", 0), ("2024-01-05", 2)
    )

    stats = calculate_streak_stats("octocat", series, today=date(2024, 1, 5))

    assert stats.longest_streak == 2
    assert stats.longest_streak_start == date(2024, 1, 1)
    assert stats.longest_streak_end == date(2024, 1, 2)
    assert stats.current_streak == 1
    assert stats.total_contributions == 10
    assert stats.first_contribution == date(2024, 1, 1)


def test_longest_streak_chains_across_missing_days() -> None:
    """A gap in the series does not end the running streak.

    Only a zero-count record directly after the previous record resets it,
    so Jan 1, Jan 2 and Jan 4 count as one streak of three days.
    """

    series = series_of(("2024-01-01", 1), ("2024-01-02", 1), ("2024-01-04", 1))

    stats = calculate_streak_stats("octocat", series, today=date(2024, 2, 1))

    assert stats.longest_streak == 3
    assert stats.longest_streak_start == date(2024, 1, 1)
    assert stats.longest_streak_end == date(2024, 1, 4)


def test_zero_day_after_gap_does_not_reset_longest_streak() -> None:
    series = series_of(("2024-01-01", 1), ("2024-01-03", 0), ("2024-01-04", 1))

    stats = calculate_streak_stats("octocat", series, today=date(2024, 2, 1))

    assert stats.longest_streak == 2
    assert stats.longest_streak_start == date(2024, 1, 1)
    assert stats.longest_streak_end == date(2024, 1, 4)


def test_longest_streak_tie_keeps_earliest_run() -> None:
    series = series_of(
        ("2024-01-01", 1),
        ("2024-01-02", 1),
        ("2024-01-03", 0),
        ("2024-01-04", 1),
        ("2024-01-05", 1),
    )

    stats = calculate_streak_stats("octocat", series, today=date(2024, 2, 1))

    assert stats.longest_streak == 2
    assert stats.longest_streak_start == date(2024, 1, 1)
    assert stats.longest_streak_end == date(2024, 1, 2)


def test_series_of_zero_days_has_first_contribution_but_no_streaks() -> None:
    series = series_of(("2024-01-01", 0), ("2024-01-02", 0))

    stats = calculate_streak_stats("octocat", series, today=date(2024, 1, 2))

    assert stats.total_contributions == 0
    assert stats.longest_streak == 0
    assert stats.longest_streak_start is None
    assert stats.first_contribution == date(2024, 1, 1)
