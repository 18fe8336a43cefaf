"""
Lumber Bot - relays top Reddit posts into Telegram chats.

Send /get in a chat and the bot replies with a random, highly upvoted
post from the past week of one of the configured subreddits.
"""

__version__ = "0.9.0"
