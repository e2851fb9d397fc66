import math
from datetime import UTC
from datetime import date
from datetime import datetime
from datetime import timedelta

import svgwrite

from activitycard.api.schemas.card_config import CardConfig
from activitycard.api.schemas.card_config import LanguagesCardConfig
from activitycard.api.schemas.card_config import StatsCardConfig
from activitycard.api.schemas.card_config import StreakCardConfig
from activitycard.api.schemas.stats import TopLanguages
from activitycard.api.schemas.stats import UserStats
from activitycard.api.schemas.streak import ContributionSeries
from activitycard.api.schemas.streak import StreakStats
from activitycard.svg.themes import Theme
from activitycard.svg.themes import get_theme


FONT = "'Segoe UI', Ubuntu, Sans-Serif"

FIRE_PATH = (
    "M8.5 14.5A2.5 2.5 0 0 0 11 12c0-1.38-.5-2-1-3-1.072-2.143-.224-4.054 2-6 "
    ".5 2.5 2 4.9 4 6.5 2 1.6 3 3.5 3 5.5a7 7 0 1 1-14 0c0-1.153.433-2.294 "
    "1-3a2.5 2.5 0 0 0 2.5 2.5z"
)

# Opacity of a graph cell for each contribution level.
LEVEL_OPACITY = (0.08, 0.3, 0.5, 0.75, 1.0)

STAT_ROWS = (
    ("stars", "Total Stars Earned", "total_stars"),
    ("commits", "Total Commits", "total_commits"),
    ("prs", "Total PRs", "total_prs"),
    ("issues", "Total Issues", "total_issues"),
    ("contribs", "Contributed to", "contributed_to"),
)


def contribution_level(count: int) -> int:
    """Map daily contribution count to a graph level in range 0..4."""

    if count <= 0:
        return 0
    if count <= 2:
        return 1
    if count <= 5:
        return 2
    if count <= 9:
        return 3
    return 4


def format_number(value: int) -> str:
    return f"{value:,}"


def format_date(value: date | None) -> str:
    if value is None:
        return ""
    return f"{value.strftime('%b')} {value.day}, {value.year}"


def format_date_range(start: date | None, end: date | None) -> str:
    if start is None or end is None:
        return "No streak"
    if start == end:
        return format_date(start)
    return f"{format_date(start)} - {format_date(end)}"


def build_graph_weeks(
    contributions: ContributionSeries, end_day: date, days: int
) -> list[list[tuple[date, int]]]:
    """Lay out the last `days` days as Sunday-first week columns.

    Days missing from the series are drawn with a zero count.
    """

    counts_by_date = {day.date: day.count for day in contributions}
    start_day = end_day - timedelta(days=days - 1)

    weeks: list[list[tuple[date, int]]] = []
    current_day = start_day
    while current_day <= end_day:
        weekday = (current_day.weekday() + 1) % 7
        if not weeks or weekday == 0:
            weeks.append([])
        weeks[-1].append((current_day, counts_by_date.get(current_day, 0)))
        current_day += timedelta(days=1)
    return weeks


def _new_drawing(width: int, height: int, css: str) -> svgwrite.Drawing:
    dwg = svgwrite.Drawing(
        size=(f"{width}px", f"{height}px"),
        viewBox=f"0 0 {width} {height}",
        debug=False,
    )
    dwg.defs.add(dwg.style(css))
    return dwg


def _add_background(
    dwg: svgwrite.Drawing, width: int, height: int, theme: Theme, config: CardConfig
) -> None:
    dwg.add(
        dwg.rect(
            insert=(0.5, 0.5),
            size=(width - 1, height - 1),
            rx=4.5,
            fill=f"#{theme.bg_color}",
            stroke=f"#{theme.border_color}",
            stroke_opacity=0 if config.hide_border else 1,
        )
    )


def _add_contribution_graph(
    dwg: svgwrite.Drawing,
    contributions: ContributionSeries,
    theme: Theme,
    top: int,
    width: int,
    end_day: date,
    years: int,
) -> None:
    weeks = build_graph_weeks(contributions, end_day, years * 365)
    gap = 2
    cell = max(1.0, min(10.0, (width - 50) / max(1, len(weeks)) - gap))
    step = cell + gap
    left = (width - len(weeks) * step + gap) / 2

    graph = dwg.g(transform=f"translate({left:.1f}, {top})")
    for column, week in enumerate(weeks):
        for day, count in week:
            row = (day.weekday() + 1) % 7
            square = dwg.rect(
                insert=(round(column * step, 2), round(row * step, 2)),
                size=(round(cell, 2), round(cell, 2)),
                rx=2,
                fill=f"#{theme.ring_color}",
                fill_opacity=LEVEL_OPACITY[contribution_level(count)],
            )
            square.set_desc(title=f"{day.isoformat()}: {count} contributions")
            graph.add(square)
    dwg.add(graph)


def render_streak_card(
    stats: StreakStats,
    contributions: ContributionSeries,
    config: StreakCardConfig,
    today: date | None = None,
) -> str:
    """Render the streak card: three stat rings above a contribution graph."""

    theme = get_theme(config.theme, config.color_overrides())
    today = today or datetime.now(UTC).date()
    width = config.pixel_width
    title_offset = 0 if config.hide_title else 30
    graph_height = 7 * 12
    height = 175 + title_offset + graph_height + 20

    css = f"""
    .header {{ font: 600 18px {FONT}; fill: #{theme.title_color}; }}
    .stat-value {{ font: 700 20px {FONT}; fill: #{theme.curr_streak_color}; }}
    .longest-value {{ font: 700 20px {FONT}; fill: #{theme.longest_streak_color}; }}
    .stat-label {{ font: 600 12px {FONT}; fill: #{theme.text_color}; }}
    .date-text {{ font: 400 9px {FONT}; fill: #{theme.text_color}; opacity: 0.7; }}
    """
    dwg = _new_drawing(width, height, css)
    _add_background(dwg, width, height, theme, config)

    if not config.hide_title:
        title = dwg.g(transform="translate(25, 30)")
        title.add(
            dwg.text(f"{stats.username}'s GitHub Streak", insert=(0, 0), class_="header")
        )
        dwg.add(title)

    spread = 155 if width < 600 else 260
    rings = dwg.g(transform=f"translate({width / 2}, {65 + title_offset})")

    total = dwg.g(transform=f"translate({-spread}, 0)")
    total.add(dwg.circle(center=(0, 0), r=40, fill=f"#{theme.ring_color}", opacity=0.2))
    total.add(
        dwg.text(
            format_number(stats.total_contributions),
            insert=(0, 5),
            text_anchor="middle",
            class_="stat-value",
        )
    )
    total.add(dwg.text("Total Contributions", insert=(0, 55), text_anchor="middle", class_="stat-label"))
    first = format_date(stats.first_contribution)
    total.add(
        dwg.text(
            f"{first} - Present" if first else "No contributions",
            insert=(0, 68),
            text_anchor="middle",
            class_="date-text",
        )
    )
    rings.add(total)

    current = dwg.g()
    current.add(dwg.circle(center=(0, 0), r=50, fill=f"#{theme.fire_color}", opacity=0.2))
    current.add(
        dwg.path(
            d=FIRE_PATH,
            transform="translate(-12, -38)",
            fill=f"#{theme.fire_color}",
            stroke=f"#{theme.fire_color}",
            stroke_width=2,
            stroke_linejoin="round",
        )
    )
    current.add(
        dwg.text(str(stats.current_streak), insert=(0, 15), text_anchor="middle", class_="stat-value")
    )
    current.add(dwg.text("Current Streak", insert=(0, 68), text_anchor="middle", class_="stat-label"))
    current.add(
        dwg.text(
            format_date_range(stats.current_streak_start, stats.current_streak_end),
            insert=(0, 81),
            text_anchor="middle",
            class_="date-text",
        )
    )
    rings.add(current)

    longest = dwg.g(transform=f"translate({spread}, 0)")
    longest.add(
        dwg.circle(center=(0, 0), r=40, fill=f"#{theme.longest_streak_color}", opacity=0.2)
    )
    longest.add(
        dwg.text(str(stats.longest_streak), insert=(0, 5), text_anchor="middle", class_="longest-value")
    )
    longest.add(dwg.text("Longest Streak", insert=(0, 55), text_anchor="middle", class_="stat-label"))
    longest.add(
        dwg.text(
            format_date_range(stats.longest_streak_start, stats.longest_streak_end),
            insert=(0, 68),
            text_anchor="middle",
            class_="date-text",
        )
    )
    rings.add(longest)
    dwg.add(rings)

    _add_contribution_graph(
        dwg,
        contributions,
        theme,
        top=175 + title_offset,
        width=width,
        end_day=today,
        years=config.date_range_years,
    )
    return dwg.tostring()


def render_stats_card(stats: UserStats, config: StatsCardConfig) -> str:
    """Render the stats card with one row per visible total and a rank ring."""

    theme = get_theme(config.theme, config.color_overrides())
    width = config.pixel_width
    rows = [row for row in STAT_ROWS if row[0] not in config.hidden_stats]
    title_offset = 0 if config.hide_title else 30
    height = max(120 if config.hide_rank else 150, 45 + title_offset + len(rows) * 25)

    css = f"""
    .header {{ font: 600 18px {FONT}; fill: #{theme.title_color}; }}
    .stat-label {{ font: 400 13px {FONT}; fill: #{theme.text_color}; }}
    .stat-value {{ font: 700 14px {FONT}; fill: #{theme.title_color}; }}
    .rank-text {{ font: 800 24px {FONT}; fill: #{theme.text_color}; }}
    """
    dwg = _new_drawing(width, height, css)
    _add_background(dwg, width, height, theme, config)

    if not config.hide_title:
        title = dwg.g(transform="translate(25, 30)")
        title.add(
            dwg.text(
                config.custom_title or f"{stats.name}'s GitHub Stats",
                insert=(0, 0),
                class_="header",
            )
        )
        dwg.add(title)

    body = dwg.g(transform=f"translate(25, {30 + title_offset})")
    label_x = 25 if config.show_icons else 0
    for index, (_, label, attribute) in enumerate(rows):
        row = dwg.g(transform=f"translate(0, {index * 25})")
        if config.show_icons:
            row.add(dwg.circle(center=(8, -4), r=6, fill=f"#{theme.icon_color}"))
        row.add(dwg.text(f"{label}:", insert=(label_x, 0), class_="stat-label"))
        row.add(
            dwg.text(
                format_number(getattr(stats, attribute)),
                insert=(label_x + 170, 0),
                class_="stat-value",
            )
        )
        body.add(row)
    dwg.add(body)

    if not config.hide_rank:
        rank = dwg.g(transform=f"translate({width - 85}, {height / 2 + 5})")
        rank.add(
            dwg.circle(
                center=(0, 0),
                r=40,
                fill="none",
                stroke=f"#{theme.title_color}",
                stroke_width=6,
                stroke_opacity=0.8,
            )
        )
        rank.add(dwg.text(stats.rank, insert=(0, 8), text_anchor="middle", class_="rank-text"))
        dwg.add(rank)

    return dwg.tostring()


def render_languages_card(languages: TopLanguages, config: LanguagesCardConfig) -> str:
    """Render a stacked percentage bar with a two-column legend."""

    theme = get_theme(config.theme, config.color_overrides())
    width = config.pixel_width
    title_offset = 0 if config.hide_title else 30
    legend_rows = math.ceil(len(languages.languages) / 2)
    height = 70 + title_offset + legend_rows * 22

    css = f"""
    .header {{ font: 600 18px {FONT}; fill: #{theme.title_color}; }}
    .lang-name {{ font: 400 11px {FONT}; fill: #{theme.text_color}; }}
    """
    dwg = _new_drawing(width, height, css)
    _add_background(dwg, width, height, theme, config)

    if not config.hide_title:
        title = dwg.g(transform="translate(25, 30)")
        title.add(
            dwg.text(config.custom_title or "Most Used Languages", insert=(0, 0), class_="header")
        )
        dwg.add(title)

    bar_width = width - 50
    body = dwg.g(transform=f"translate(25, {25 + title_offset})")
    if not languages.languages:
        body.add(dwg.text("No languages found", insert=(0, 12), class_="lang-name"))
        dwg.add(body)
        return dwg.tostring()

    shown_total = sum(language.percentage for language in languages.languages)
    offset = 0.0
    for language in languages.languages:
        segment = bar_width * language.percentage / shown_total
        body.add(
            dwg.rect(
                insert=(round(offset, 2), 0),
                size=(round(segment, 2), 8),
                fill=language.color,
            )
        )
        offset += segment

    column_width = bar_width / 2
    for index, language in enumerate(languages.languages):
        x = (index % 2) * column_width
        y = 30 + (index // 2) * 22
        body.add(dwg.circle(center=(x + 5, y - 4), r=5, fill=language.color))
        body.add(
            dwg.text(
                f"{language.name} {language.percentage:.2f}%",
                insert=(x + 15, y),
                class_="lang-name",
            )
        )
    dwg.add(body)
    return dwg.tostring()


def render_error_card(message: str, width: int = 495, height: int = 195) -> str:
    css = f"""
    .error-title {{ font: 700 18px {FONT}; fill: #e74c3c; }}
    .error-msg {{ font: 400 14px {FONT}; fill: #7f8c8d; }}
    """
    dwg = _new_drawing(width, height, css)
    dwg.add(
        dwg.rect(
            insert=(0.5, 0.5),
            size=(width - 1, height - 1),
            rx=4.5,
            fill="#fffbfb",
            stroke="#e4e2e2",
        )
    )
    body = dwg.g(transform=f"translate({width / 2}, {height / 2 - 10})")
    body.add(dwg.text("Error", insert=(0, 0), text_anchor="middle", class_="error-title"))
    body.add(dwg.text(message, insert=(0, 25), text_anchor="middle", class_="error-msg"))
    dwg.add(body)
    return dwg.tostring()
