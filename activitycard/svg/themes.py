import re
from dataclasses import dataclass
from dataclasses import fields
from dataclasses import replace


HEX_COLOR = re.compile(r"^(?:[0-9a-fA-F]{3}|[0-9a-fA-F]{6}|[0-9a-fA-F]{8})$")


@dataclass(frozen=True)
class Theme:
    """Card palette; colors are hex values without the leading `#`."""

    bg_color: str
    title_color: str
    text_color: str
    icon_color: str
    border_color: str
    ring_color: str
    fire_color: str
    curr_streak_color: str
    longest_streak_color: str


THEMES: dict[str, Theme] = {
    "default": Theme(
        bg_color="fffefe",
        title_color="2f80ed",
        text_color="434d58",
        icon_color="4c71f2",
        border_color="e4e2e2",
        ring_color="2f80ed",
        fire_color="fb8c00",
        curr_streak_color="fb8c00",
        longest_streak_color="2f80ed",
    ),
    "dark": Theme(
        bg_color="151515",
        title_color="ffffff",
        text_color="9f9f9f",
        icon_color="79ff97",
        border_color="e4e2e2",
        ring_color="79ff97",
        fire_color="ff9a00",
        curr_streak_color="ff9a00",
        longest_streak_color="79ff97",
    ),
    "radical": Theme(
        bg_color="141321",
        title_color="fe428e",
        text_color="a9fef7",
        icon_color="f8d847",
        border_color="fe428e",
        ring_color="fe428e",
        fire_color="f8d847",
        curr_streak_color="f8d847",
        longest_streak_color="fe428e",
    ),
    "tokyonight": Theme(
        bg_color="1a1b27",
        title_color="70a5fd",
        text_color="38bdae",
        icon_color="bf91f3",
        border_color="70a5fd",
        ring_color="70a5fd",
        fire_color="bf91f3",
        curr_streak_color="bf91f3",
        longest_streak_color="38bdae",
    ),
    "gruvbox": Theme(
        bg_color="282828",
        title_color="fabd2f",
        text_color="8ec07c",
        icon_color="fe8019",
        border_color="fabd2f",
        ring_color="fabd2f",
        fire_color="fe8019",
        curr_streak_color="fe8019",
        longest_streak_color="8ec07c",
    ),
    "dracula": Theme(
        bg_color="282a36",
        title_color="ff6e96",
        text_color="f8f8f2",
        icon_color="79dafa",
        border_color="6272a4",
        ring_color="ff6e96",
        fire_color="ffb86c",
        curr_streak_color="ffb86c",
        longest_streak_color="79dafa",
    ),
}


def get_theme(name: str | None, overrides: dict[str, str | None] | None = None) -> Theme:
    """Resolve a named theme and apply valid hex color overrides.

    Unknown theme names fall back to `default`; invalid colors are ignored.
    """

    theme = THEMES.get((name or "default").lower(), THEMES["default"])
    if not overrides:
        return theme

    known = {field.name for field in fields(Theme)}
    changes: dict[str, str] = {}
    for key, value in overrides.items():
        if key not in known or not value:
            continue
        color = value.lstrip("#")
        if HEX_COLOR.match(color):
            changes[key] = color
    return replace(theme, **changes)
