"""
Subreddit routing: which subreddits a chat draws from.

Chats listed under `custom` in the subreddit config get their own list,
everyone else gets `default`. The table is built once at startup and never
changes, so it is shared between tasks without locking.
"""

import random
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping, Optional

from lumber_bot.config import SubredditSettings
from lumber_bot.errors import ConfigError


@dataclass(frozen=True)
class RoutingTable:
    default: tuple[str, ...]
    overrides: Mapping[int, tuple[str, ...]] = field(default_factory=dict)

    def __post_init__(self):
        if not self.default:
            raise ConfigError("Default subreddit list is empty")
        for chat_id, names in self.overrides.items():
            if not names:
                raise ConfigError(f"Subreddit list for chat {chat_id} is empty")
        object.__setattr__(self, "overrides", MappingProxyType(dict(self.overrides)))

    @classmethod
    def from_settings(cls, settings: SubredditSettings) -> "RoutingTable":
        overrides: dict[int, tuple[str, ...]] = {}
        # Later entries win when a chat appears twice
        for custom in settings.custom:
            for chat_id in custom.chats:
                overrides[chat_id] = tuple(custom.subreddits)
        return cls(default=tuple(settings.default), overrides=overrides)

    def subreddits_for(self, chat_id: int) -> tuple[str, ...]:
        return self.overrides.get(chat_id, self.default)


class SubredditRouter:
    """Picks a random subreddit for a chat. Pure apart from the RNG."""

    def __init__(self, table: RoutingTable, rng: Optional[random.Random] = None):
        self.table = table
        self._rng = rng or random.Random()

    def pick(self, chat_id: int) -> str:
        return self._rng.choice(self.table.subreddits_for(chat_id))
