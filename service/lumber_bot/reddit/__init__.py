"""
Reddit side of the bridge: token keeping, listings, subreddit routing.
"""

from .client import Candidate, RedditClient
from .subreddits import RoutingTable, SubredditRouter
from .token import Credential, TokenKeeper

__all__ = [
    "Candidate",
    "Credential",
    "RedditClient",
    "RoutingTable",
    "SubredditRouter",
    "TokenKeeper",
]
