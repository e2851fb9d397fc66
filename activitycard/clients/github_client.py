from collections.abc import Mapping
from datetime import datetime
from typing import Any

import httpx


USER_AGENT = "activitycard"

CONTRIBUTION_CALENDAR_QUERY = """
query($username: String!, $from: DateTime!, $to: DateTime!) {
  user(login: $username) {
    contributionsCollection(from: $from, to: $to) {
      contributionCalendar {
        weeks {
          contributionDays {
            date
            contributionCount
          }
        }
      }
    }
  }
}
"""


class GitHubUserMissingError(LookupError):
    """Raised when GitHub answers a user query without a user record."""


def build_headers(token: str, accept: str = "application/vnd.github+json") -> dict[str, str]:
    headers = {"Accept": accept, "User-Agent": USER_AGENT}
    # Unauthenticated calls still work, with GitHub's lower rate limits.
    if token:
        headers["Authorization"] = f"Bearer {token}"
    return headers


def format_github_datetime(value: datetime) -> str:
    return value.strftime("%Y-%m-%dT%H:%M:%SZ")


async def fetch_contribution_days(
    client: httpx.AsyncClient,
    username: str,
    token: str,
    graphql_url: str,
    from_datetime: datetime,
    to_datetime: datetime,
) -> list[dict[str, str | int]]:
    """Fetch the contribution calendar of one window, flattened to days.

    Raises:
        GitHubUserMissingError: If the response carries no user record.
        httpx.HTTPError: On transport failures or non-2xx responses.
        ValueError: If the payload does not have the calendar shape.
    """

    variables = {
        "username": username,
        "from": format_github_datetime(from_datetime),
        "to": format_github_datetime(to_datetime),
    }
    headers = build_headers(token, accept="application/json")

    response = await client.post(
        graphql_url,
        json={"query": CONTRIBUTION_CALENDAR_QUERY, "variables": variables},
        headers=headers,
    )
    response.raise_for_status()

    payload = response.json()
    if not isinstance(payload, Mapping):
        raise ValueError("GitHub GraphQL response is invalid")

    data = payload.get("data")
    # GitHub reports an unknown login as `user: null` plus a NOT_FOUND error.
    if isinstance(data, Mapping) and "user" in data and data["user"] is None:
        raise GitHubUserMissingError(username)

    if payload.get("errors"):
        raise ValueError("GitHub GraphQL returned errors")

    if not isinstance(data, Mapping):
        raise ValueError("GitHub GraphQL data is missing")

    user = data.get("user")
    if not isinstance(user, Mapping):
        raise ValueError("GitHub user record is missing")

    collection = user.get("contributionsCollection")
    if not isinstance(collection, Mapping):
        raise ValueError("GitHub contributionsCollection is missing")

    calendar = collection.get("contributionCalendar")
    if not isinstance(calendar, Mapping):
        raise ValueError("GitHub contributionCalendar is missing")

    weeks = calendar.get("weeks")
    if not isinstance(weeks, list):
        raise ValueError("GitHub contribution weeks are missing")

    days: list[dict[str, str | int]] = []
    for week in weeks:
        if not isinstance(week, Mapping):
            continue
        contribution_days = week.get("contributionDays")
        if not isinstance(contribution_days, list):
            continue
        for item in contribution_days:
            if not isinstance(item, Mapping):
                continue
            raw_date = item.get("date")
            raw_count = item.get("contributionCount")
            if isinstance(raw_date, str) and isinstance(raw_count, int):
                days.append({"date": raw_date, "count": raw_count})

    return days


async def fetch_user(
    client: httpx.AsyncClient, username: str, token: str, api_url: str
) -> dict[str, Any]:
    """Fetch public profile data for a user from GitHub REST API."""

    response = await client.get(
        f"{api_url}/users/{username}", headers=build_headers(token)
    )
    response.raise_for_status()

    payload: Any = response.json()
    if not isinstance(payload, Mapping):
        raise ValueError("GitHub user response is invalid")

    raw_login = payload.get("login")
    if not isinstance(raw_login, str) or not raw_login:
        raise ValueError("GitHub user response is missing required fields")

    return dict(payload)


async def fetch_user_repos(
    client: httpx.AsyncClient, username: str, token: str, api_url: str
) -> list[dict[str, Any]]:
    """Fetch up to 100 most recently updated repositories owned by a user."""

    response = await client.get(
        f"{api_url}/users/{username}/repos",
        params={"per_page": 100, "sort": "updated"},
        headers=build_headers(token),
    )
    response.raise_for_status()

    payload: Any = response.json()
    if not isinstance(payload, list):
        raise ValueError("GitHub repositories response is invalid")

    return [repo for repo in payload if isinstance(repo, Mapping)]


async def fetch_search_total_count(
    client: httpx.AsyncClient,
    endpoint: str,
    query: str,
    token: str,
    api_url: str,
) -> int:
    """Return `total_count` of a search query without downloading results."""

    accept = (
        "application/vnd.github.cloak-preview"
        if endpoint == "commits"
        else "application/vnd.github+json"
    )
    response = await client.get(
        f"{api_url}/search/{endpoint}",
        params={"q": query, "per_page": 1},
        headers=build_headers(token, accept=accept),
    )
    response.raise_for_status()

    payload: Any = response.json()
    if not isinstance(payload, Mapping):
        raise ValueError("GitHub search response is invalid")

    total_count = payload.get("total_count")
    return total_count if isinstance(total_count, int) else 0


async def fetch_repo_languages(
    client: httpx.AsyncClient,
    owner: str,
    repo: str,
    token: str,
    api_url: str,
) -> dict[str, int]:
    """Fetch the per-language byte counts of one repository."""

    response = await client.get(
        f"{api_url}/repos/{owner}/{repo}/languages", headers=build_headers(token)
    )
    response.raise_for_status()

    payload: Any = response.json()
    if not isinstance(payload, Mapping):
        raise ValueError("GitHub languages response is invalid")

    return {
        name: size
        for name, size in payload.items()
        if isinstance(name, str) and isinstance(size, int)
    }
