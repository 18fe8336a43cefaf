"""
Shared fixtures: fake upstream HTTP and sample payloads.
"""

from types import SimpleNamespace
from typing import Callable

import httpx
import pytest

from lumber_bot.reddit.token import Credential
from lumber_bot.telegram_bot.models import InboundEvent

USER_AGENT = "TestBot/1.0"
BOT_TOKEN = "123456:ABC-test-token"


def mock_http(handler: Callable[[httpx.Request], httpx.Response]) -> httpx.AsyncClient:
    """AsyncClient whose every request is answered by `handler`."""
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


def listing_payload(*posts: tuple[str, str, str]) -> dict:
    """Reddit Listing document from (subreddit, title, url) tuples."""
    return {
        "kind": "Listing",
        "data": {
            "after": None,
            "children": [
                {"kind": "t3", "data": {"subreddit": sub, "title": title, "url": url, "ups": 1000}}
                for sub, title, url in posts
            ],
        },
    }


def update_payload(update_id: int, text: str = "/get", chat_id: int = 42, message_id: int = 7) -> dict:
    """Telegram Update as sent by getUpdates or a webhook push."""
    return {
        "update_id": update_id,
        "message": {
            "message_id": message_id,
            "date": 1700000000,
            "from": {"id": 1, "is_bot": False, "first_name": "Ann"},
            "chat": {"id": chat_id, "type": "group", "title": "Photos"},
            "text": text,
        },
    }


def make_event(event_id: int = 1, text: str = "/get", chat_id: int = 42, reply_target_id: int = 7) -> InboundEvent:
    return InboundEvent(event_id=event_id, chat_id=chat_id, reply_target_id=reply_target_id, text=text)


@pytest.fixture
def credential() -> Credential:
    return Credential(access_token="tok-1", token_type="bearer", expires_in=3600, scope="*")


@pytest.fixture
def token_source(credential):
    """Stand-in for TokenKeeper that only exposes the current credential."""
    return SimpleNamespace(credential=credential)
