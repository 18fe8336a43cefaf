"""
Error taxonomy for the bot.

Fatal at startup: ConfigError, AuthError on the first token exchange,
TransportError/RemoteRejection while registering the webhook.
Everything else is contained at the boundary where it happens and logged.
"""

from typing import Optional


class LumberBotError(Exception):
    """Base class for all bot errors."""


class ConfigError(LumberBotError):
    """Missing or invalid configuration."""


class AuthError(LumberBotError):
    """Reddit password-grant token exchange failed."""


class TransportError(LumberBotError):
    """Network or protocol failure talking to an upstream service."""


class RemoteRejection(TransportError):
    """Upstream answered, but reported the request as failed."""

    def __init__(self, description: str, error_code: Optional[int] = None):
        self.description = description
        self.error_code = error_code
        if error_code is not None:
            super().__init__(f"{description} (error_code={error_code})")
        else:
            super().__init__(description)


class FetchError(TransportError):
    """Listing could not be fetched or decoded."""


class DecodeError(LumberBotError):
    """Inbound update body is not a valid Telegram update."""


class DispatchError(LumberBotError):
    """Handling a single inbound event failed."""
