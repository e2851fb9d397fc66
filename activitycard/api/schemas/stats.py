from pydantic import BaseModel


class UserStats(BaseModel):
    """Aggregated profile numbers shown on the stats card."""

    username: str
    name: str
    total_stars: int
    total_commits: int
    total_prs: int
    total_issues: int
    contributed_to: int
    rank: str


class LanguageStat(BaseModel):
    name: str
    bytes: int
    percentage: float
    color: str


class TopLanguages(BaseModel):
    """Languages ordered by byte count, largest first."""

    username: str
    languages: list[LanguageStat]
