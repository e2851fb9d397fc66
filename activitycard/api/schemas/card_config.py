from typing import Literal

from pydantic import BaseModel
from pydantic import Field


class CardConfig(BaseModel):
    """Query parameters shared by every card."""

    username: str | None = None
    refresh: bool = False
    theme: str = "default"
    hide_border: bool = False
    hide_title: bool = False
    width: Literal["normal", "wide"] = "normal"
    bg_color: str | None = None
    title_color: str | None = None
    text_color: str | None = None
    border_color: str | None = None

    @property
    def pixel_width(self) -> int:
        return 854 if self.width == "wide" else 495

    def color_overrides(self) -> dict[str, str | None]:
        return self.model_dump(include=self._color_fields())

    @classmethod
    def _color_fields(cls) -> set[str]:
        return {name for name in cls.model_fields if name.endswith("_color")}


class StreakCardConfig(CardConfig):
    ring_color: str | None = None
    fire_color: str | None = None
    curr_streak_color: str | None = None
    longest_streak_color: str | None = None
    date_range_years: int = Field(default=1, ge=1, le=10)


class StatsCardConfig(CardConfig):
    hide: str = ""
    hide_rank: bool = False
    show_icons: bool = True
    custom_title: str | None = None
    icon_color: str | None = None

    @property
    def hidden_stats(self) -> set[str]:
        return {item.strip() for item in self.hide.split(",") if item.strip()}


class LanguagesCardConfig(CardConfig):
    limit: int = Field(default=6, ge=1, le=20)
    custom_title: str | None = None
