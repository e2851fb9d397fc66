import logging

import httpx

from activitycard.api.schemas.stats import LanguageStat
from activitycard.api.schemas.stats import TopLanguages
from activitycard.clients.github_client import fetch_repo_languages
from activitycard.clients.github_client import fetch_user_repos
from activitycard.core.cache import Cache
from activitycard.services.errors import MissingParameterError
from activitycard.services.errors import UpstreamUnavailableError
from activitycard.services.errors import UserNotFoundError
from activitycard.settings import Settings


logger = logging.getLogger(__name__)

DEFAULT_LANGUAGE_COLOR = "#858585"

# Colors from github/linguist.
LANGUAGE_COLORS: dict[str, str] = {
    "JavaScript": "#f1e05a",
    "TypeScript": "#2b7489",
    "Python": "#3572A5",
    "Java": "#b07219",
    "C++": "#f34b7d",
    "C#": "#178600",
    "PHP": "#4F5D95",
    "Ruby": "#701516",
    "Go": "#00ADD8",
    "Rust": "#dea584",
    "Swift": "#ffac45",
    "Kotlin": "#F18E33",
    "Dart": "#00B4AB",
    "HTML": "#e34c26",
    "CSS": "#563d7c",
    "Shell": "#89e051",
    "Vue": "#41b883",
    "C": "#555555",
    "Objective-C": "#438eff",
    "Scala": "#c22d40",
}


def build_language_stats(language_bytes: dict[str, int], limit: int) -> list[LanguageStat]:
    """Turn summed byte counts into the `limit` largest languages."""

    total_bytes = sum(language_bytes.values())
    if total_bytes <= 0:
        return []

    ranked = sorted(language_bytes.items(), key=lambda item: item[1], reverse=True)
    return [
        LanguageStat(
            name=name,
            bytes=size,
            percentage=size / total_bytes * 100,
            color=LANGUAGE_COLORS.get(name, DEFAULT_LANGUAGE_COLOR),
        )
        for name, size in ranked[: max(0, limit)]
    ]


class LanguagesService:
    def __init__(self, client: httpx.AsyncClient, cache: Cache, settings: Settings) -> None:
        self.client = client
        self.cache = cache
        self.settings = settings

    async def get_top_languages(
        self, username: str, refresh: bool = False, limit: int = 6
    ) -> TopLanguages:
        """Sum language bytes over a user's own (non-fork) repositories."""

        username = username.strip() if username else ""
        if not username:
            raise MissingParameterError("username is required")

        cache_key = f"top_languages_{username}"
        if not refresh:
            cached = self.cache.get(cache_key)
            if cached is not None:
                return TopLanguages(
                    username=cached.username, languages=cached.languages[:limit]
                )

        token = self.settings.github_token
        api_url = self.settings.github_api_url

        try:
            repos = await fetch_user_repos(self.client, username, token, api_url)
        except httpx.HTTPStatusError as exc:
            if exc.response.status_code == 404:
                raise UserNotFoundError(f"GitHub user {username!r} not found") from exc
            raise UpstreamUnavailableError("GitHub API request failed") from exc
        except (httpx.HTTPError, ValueError) as exc:
            raise UpstreamUnavailableError("GitHub API request failed") from exc

        language_bytes: dict[str, int] = {}
        for repo in repos:
            repo_name = repo.get("name")
            if repo.get("fork") or not isinstance(repo_name, str):
                continue
            try:
                languages = await fetch_repo_languages(
                    self.client, username, repo_name, token, api_url
                )
            except (httpx.HTTPError, ValueError) as exc:
                logger.warning(
                    "Skipping languages of %s/%s: %s",
                    username,
                    repo_name,
                    exc.__class__.__name__,
                )
                continue
            for name, size in languages.items():
                language_bytes[name] = language_bytes.get(name, 0) + size

        # Cache the full ranking so any `limit` can be served from it.
        result = TopLanguages(
            username=username,
            languages=build_language_stats(language_bytes, len(language_bytes)),
        )
        self.cache.set(cache_key, result, self.settings.cache_ttl_ms)
        return TopLanguages(username=username, languages=result.languages[:limit])
