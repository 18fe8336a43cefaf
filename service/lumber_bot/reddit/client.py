"""
Reddit listings client.

Only the "top" listing endpoint is implemented. No retries here: failures
propagate to the dispatcher as FetchError.
"""

from dataclasses import dataclass

import httpx

from lumber_bot.errors import AuthError, FetchError
from .token import TokenKeeper

OAUTH_BASE_URL = "https://oauth.reddit.com"


@dataclass(frozen=True)
class Candidate:
    """One post that can be sent as a reply."""

    subreddit: str
    title: str
    url: str


class RedditClient:
    """Fetches listings on behalf of the script app owned by TokenKeeper."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        tokens: TokenKeeper,
        user_agent: str,
        base_url: str = OAUTH_BASE_URL,
    ):
        self.client = client
        self.tokens = tokens
        self.user_agent = user_agent
        self.base_url = base_url.rstrip("/")

    async def top_listings(self, subreddit: str, window: str = "week", limit: int = 5) -> list[Candidate]:
        """
        Fetch the top posts of a subreddit.

        Args:
            subreddit: Subreddit name without the r/ prefix
            window: Ranking horizon (hour, day, week, month, year, all)
            limit: Maximum number of candidates returned

        Returns:
            Up to `limit` candidates, in listing order

        Raises:
            FetchError: transport failure, bad status or undecodable body
        """
        try:
            credential = self.tokens.credential
        except AuthError as e:
            raise FetchError(str(e)) from e

        try:
            response = await self.client.get(
                f"{self.base_url}/r/{subreddit}/top",
                params={"t": window, "limit": limit},
                headers={
                    "Authorization": credential.authorization,
                    "User-Agent": self.user_agent,
                },
            )
        except httpx.HTTPError as e:
            raise FetchError(f"Could not fetch r/{subreddit}: {e}") from e

        if response.is_error:
            raise FetchError(f"Fetching r/{subreddit} returned HTTP {response.status_code}")

        try:
            payload = response.json()
        except ValueError as e:
            raise FetchError(f"Could not decode listing for r/{subreddit}: {e}") from e

        return parse_listing(payload, subreddit)[:limit]


def parse_listing(payload: dict, subreddit: str = "") -> list[Candidate]:
    """Turn a Listing JSON document into candidates."""
    try:
        children = payload["data"]["children"]
        candidates = []
        for child in children:
            data = child["data"]
            if not isinstance(data, dict):
                raise TypeError(f"listing item data is {type(data).__name__}")
            candidates.append(Candidate(
                subreddit=data.get("subreddit") or subreddit,
                title=data["title"],
                url=data["url"],
            ))
    except (KeyError, TypeError, AttributeError) as e:
        raise FetchError(f"Unexpected listing shape for r/{subreddit}: {e!r}") from e
    return candidates
