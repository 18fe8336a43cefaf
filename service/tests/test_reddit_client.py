"""
Tests for the Reddit listings client.
"""

import httpx
import pytest

from lumber_bot.errors import FetchError, TransportError
from lumber_bot.reddit.client import Candidate, RedditClient, parse_listing
from lumber_bot.reddit.token import TokenKeeper
from conftest import USER_AGENT, listing_payload, mock_http


def make_client(handler, token_source) -> RedditClient:
    return RedditClient(mock_http(handler), token_source, USER_AGENT)


class TestTopListings:
    """GET /r/{subreddit}/top"""

    async def test_request_shape(self, token_source):
        seen = []

        def handler(request):
            seen.append(request)
            return httpx.Response(200, json=listing_payload(("earthporn", "T1", "u1")))

        client = make_client(handler, token_source)
        await client.top_listings("earthporn", "week", 5)

        request = seen[0]
        assert request.url.host == "oauth.reddit.com"
        assert request.url.path == "/r/earthporn/top"
        assert request.url.params["t"] == "week"
        assert request.url.params["limit"] == "5"
        assert request.headers["Authorization"] == "bearer tok-1"
        assert request.headers["User-Agent"] == USER_AGENT

    async def test_candidates(self, token_source):
        payload = listing_payload(("earthporn", "T1", "u1"), ("EarthPorn", "T2", "u2"))
        client = make_client(lambda request: httpx.Response(200, json=payload), token_source)

        candidates = await client.top_listings("earthporn")

        assert candidates == [
            Candidate(subreddit="earthporn", title="T1", url="u1"),
            Candidate(subreddit="EarthPorn", title="T2", url="u2"),
        ]

    async def test_limit_bounds_result(self, token_source):
        posts = [("earthporn", f"T{i}", f"u{i}") for i in range(10)]
        client = make_client(lambda request: httpx.Response(200, json=listing_payload(*posts)), token_source)
        assert len(await client.top_listings("earthporn", limit=3)) == 3

    async def test_uses_current_credential_each_call(self, token_source, credential):
        seen = []

        def handler(request):
            seen.append(request.headers["Authorization"])
            return httpx.Response(200, json=listing_payload())

        client = make_client(handler, token_source)
        await client.top_listings("a")
        token_source.credential = type(credential)(access_token="tok-2", token_type="bearer", expires_in=3600)
        await client.top_listings("a")

        assert seen == ["bearer tok-1", "bearer tok-2"]

    async def test_transport_failure(self, token_source):
        def handler(request):
            raise httpx.ReadTimeout("timed out")

        client = make_client(handler, token_source)
        with pytest.raises(FetchError):
            await client.top_listings("earthporn")

    async def test_fetch_error_is_transport_error(self, token_source):
        client = make_client(lambda request: httpx.Response(503), token_source)
        with pytest.raises(TransportError):
            await client.top_listings("earthporn")

    async def test_bad_json(self, token_source):
        client = make_client(lambda request: httpx.Response(200, text="not json"), token_source)
        with pytest.raises(FetchError):
            await client.top_listings("earthporn")

    async def test_unexpected_shape(self, token_source):
        client = make_client(lambda request: httpx.Response(200, json={"data": {}}), token_source)
        with pytest.raises(FetchError):
            await client.top_listings("earthporn")

    async def test_null_item_data(self, token_source):
        payload = {"data": {"children": [{"kind": "t3", "data": None}]}}
        client = make_client(lambda request: httpx.Response(200, json=payload), token_source)
        with pytest.raises(FetchError):
            await client.top_listings("earthporn")

    async def test_no_token_yet(self):
        keeper = TokenKeeper(
            mock_http(lambda request: httpx.Response(500)),
            "u", "p", "id", "secret", USER_AGENT,
        )
        client = RedditClient(mock_http(lambda request: httpx.Response(200)), keeper, USER_AGENT)
        with pytest.raises(FetchError):
            await client.top_listings("earthporn")


class TestParseListing:
    def test_empty_listing(self):
        assert parse_listing(listing_payload()) == []

    def test_missing_subreddit_falls_back(self):
        payload = {"data": {"children": [{"data": {"title": "T", "url": "u"}}]}}
        assert parse_listing(payload, "earthporn") == [Candidate("earthporn", "T", "u")]

    def test_missing_title(self):
        payload = {"data": {"children": [{"data": {"url": "u"}}]}}
        with pytest.raises(FetchError):
            parse_listing(payload, "earthporn")

    @pytest.mark.parametrize("child", [{"data": None}, {"data": "removed"}, None])
    def test_malformed_item(self, child):
        payload = {"data": {"children": [{"data": {"title": "T", "url": "u"}}, child]}}
        with pytest.raises(FetchError):
            parse_listing(payload, "earthporn")
