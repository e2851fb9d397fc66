import asyncio
import logging

import httpx

from activitycard.api.schemas.stats import UserStats
from activitycard.clients.github_client import fetch_search_total_count
from activitycard.clients.github_client import fetch_user
from activitycard.clients.github_client import fetch_user_repos
from activitycard.core.cache import Cache
from activitycard.services.errors import MissingParameterError
from activitycard.services.errors import UpstreamUnavailableError
from activitycard.services.errors import UserNotFoundError
from activitycard.settings import Settings


logger = logging.getLogger(__name__)


def calculate_rank(stars: int, commits: int, prs: int, issues: int) -> str:
    """Map weighted activity totals to a rank tier."""

    score = stars * 2 + commits * 0.5 + prs * 3 + issues * 1

    if score >= 1000:
        return "S"
    if score >= 500:
        return "A+"
    if score >= 200:
        return "A"
    if score >= 100:
        return "B+"
    if score >= 50:
        return "B"
    return "C"


class StatsService:
    """Aggregates profile, repository and search totals for the stats card."""

    def __init__(self, client: httpx.AsyncClient, cache: Cache, settings: Settings) -> None:
        self.client = client
        self.cache = cache
        self.settings = settings

    async def get_user_stats(self, username: str, refresh: bool = False) -> UserStats:
        username = username.strip() if username else ""
        if not username:
            raise MissingParameterError("username is required")

        cache_key = f"user_stats_{username}"
        if not refresh:
            cached = self.cache.get(cache_key)
            if cached is not None:
                return cached

        token = self.settings.github_token
        api_url = self.settings.github_api_url

        try:
            user = await fetch_user(self.client, username, token, api_url)
            repos = await fetch_user_repos(self.client, username, token, api_url)
        except httpx.HTTPStatusError as exc:
            if exc.response.status_code == 404:
                raise UserNotFoundError(f"GitHub user {username!r} not found") from exc
            raise UpstreamUnavailableError("GitHub API request failed") from exc
        except (httpx.HTTPError, ValueError) as exc:
            raise UpstreamUnavailableError("GitHub API request failed") from exc

        total_commits, total_prs, total_issues = await asyncio.gather(
            self._search_total("commits", f"author:{username}"),
            self._search_total("issues", f"author:{username} type:pr"),
            self._search_total("issues", f"author:{username} type:issue"),
        )
        total_stars = sum(
            repo.get("stargazers_count") or 0
            for repo in repos
            if isinstance(repo.get("stargazers_count", 0), int)
        )

        login = user["login"]
        stats = UserStats(
            username=login,
            name=user.get("name") or login,
            total_stars=total_stars,
            total_commits=total_commits,
            total_prs=total_prs,
            total_issues=total_issues,
            contributed_to=len(repos),
            rank=calculate_rank(total_stars, total_commits, total_prs, total_issues),
        )

        self.cache.set(cache_key, stats, self.settings.cache_ttl_ms)
        return stats

    async def _search_total(self, endpoint: str, query: str) -> int:
        # Search is rate limited separately; a failed count shows as zero.
        try:
            return await fetch_search_total_count(
                self.client,
                endpoint,
                query,
                token=self.settings.github_token,
                api_url=self.settings.github_api_url,
            )
        except (httpx.HTTPError, ValueError) as exc:
            logger.warning("GitHub search %r failed: %s", query, exc.__class__.__name__)
            return 0
