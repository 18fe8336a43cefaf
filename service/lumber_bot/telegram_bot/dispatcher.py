"""
Update dispatcher - turns a /get command into a Reddit post reply.

Flow for one event:
1. Ignore anything that is not a recognised command
2. Pick a subreddit for the chat
3. Fetch the top listings of the past week
4. Pick one post at random and reply to the originating message

Each event is handled at most once: nothing is retried, and a failure in
step 3 or 4 means the user simply gets no reply.
"""

import logging
import random
from typing import Iterable, Optional

from lumber_bot.config import BOT_USERNAME
from lumber_bot.errors import DispatchError, TransportError
from lumber_bot.reddit.client import Candidate, RedditClient
from lumber_bot.reddit.subreddits import SubredditRouter
from .models import InboundEvent
from .telegram_api import TelegramClient

logger = logging.getLogger(__name__)

COMMAND = "/get"


def command_aliases(bot_username: str) -> frozenset[str]:
    """Bare command plus the @mention form used in group chats."""
    return frozenset({COMMAND, f"{COMMAND}@{bot_username}"})


def format_reply(candidate: Candidate) -> str:
    return f"/r/{candidate.subreddit}: {candidate.title} {candidate.url}"


class Dispatcher:
    def __init__(
        self,
        router: SubredditRouter,
        reddit: RedditClient,
        telegram: TelegramClient,
        commands: Optional[Iterable[str]] = None,
        window: str = "week",
        limit: int = 5,
        rng: Optional[random.Random] = None,
    ):
        self.router = router
        self.reddit = reddit
        self.telegram = telegram
        self.commands = frozenset(commands) if commands is not None else command_aliases(BOT_USERNAME)
        self.window = window
        self.limit = limit
        self._rng = rng or random.Random()

    def is_command(self, text: str) -> bool:
        """Only the first word counts and it must match exactly."""
        return text.split(" ")[0] in self.commands

    async def handle(self, event: InboundEvent) -> None:
        """
        Handle one inbound event.

        Raises:
            DispatchError: listing fetch or reply failed
        """
        if not self.is_command(event.text):
            return

        subreddit = self.router.pick(event.chat_id)
        logger.info(f"Picked subreddit {subreddit} for chat {event.chat_id}")

        try:
            candidates = await self.reddit.top_listings(subreddit, self.window, self.limit)
        except TransportError as e:
            raise DispatchError(f"Could not fetch listings for r/{subreddit}: {e}") from e

        logger.info(f"Received {len(candidates)} results for subreddit {subreddit}")
        if not candidates:
            raise DispatchError(f"No listings for r/{subreddit}")

        candidate = self._rng.choice(candidates)
        message = format_reply(candidate)

        logger.info(
            f"Replying to message {event.reply_target_id} in chat {event.chat_id} with: {message}"
        )
        try:
            await self.telegram.send_message(event.chat_id, message, event.reply_target_id)
        except TransportError as e:
            logger.warning(
                f"Could not respond to chat:{event.chat_id} message:{event.reply_target_id}: {e}"
            )
            raise DispatchError(f"Could not send reply to chat {event.chat_id}: {e}") from e
