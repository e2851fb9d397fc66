from datetime import date

from pydantic import BaseModel
from pydantic import ConfigDict
from pydantic import Field


class ContributionDay(BaseModel):
    """Contribution count attributed to a user on one calendar day."""

    model_config = ConfigDict(frozen=True)

    date: date
    count: int = Field(ge=0)


ContributionSeries = tuple[ContributionDay, ...]


class StreakStats(BaseModel):
    """Streak summary for a user; empty dates are `None`."""

    model_config = ConfigDict(frozen=True)

    username: str
    current_streak: int = 0
    longest_streak: int = 0
    total_contributions: int = 0
    first_contribution: date | None = None
    current_streak_start: date | None = None
    current_streak_end: date | None = None
    longest_streak_start: date | None = None
    longest_streak_end: date | None = None


class StreakReport(BaseModel):
    """Streak summary plus the series it was computed from."""

    model_config = ConfigDict(frozen=True)

    stats: StreakStats
    contributions: ContributionSeries = ()
    is_placeholder: bool = False
