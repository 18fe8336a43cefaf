"""
Configuration for Lumber Bot.

Two YAML files are required at startup:
- server configuration: Reddit script-app credentials, Telegram bot token,
  optional public endpoint + certificate for webhook mode
- subreddit configuration: default subreddit list and per-chat overrides

Environment variables prefixed LUMBER_BOT_ fill in anything the server
file leaves out (handy for keeping secrets out of the YAML).
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional, Union

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from lumber_bot.errors import ConfigError

USER_AGENT = "KungFuKennyBot/0.9 20170501"
BOT_USERNAME = "kungfu_kenny_bot"

# Keys used by older serverconf.yaml files
LEGACY_KEYS = {
    "clientid": "client_id",
    "clientsecret": "client_secret",
    "bottoken": "bot_token",
    "servercert": "server_cert",
}


class ServerSettings(BaseSettings):
    # Reddit script app
    username: str
    password: str
    client_id: str
    client_secret: str

    # Telegram
    bot_token: str
    bot_username: str = BOT_USERNAME

    # Webhook mode (both required, otherwise the bot polls)
    remote: Optional[str] = None
    server_cert: Optional[str] = None
    host: str = "0.0.0.0"
    port: int = 5000

    # Behaviour
    user_agent: str = USER_AGENT
    listing_window: str = "week"
    listing_limit: int = Field(default=5, ge=1, le=100)
    token_refresh_minutes: float = Field(default=45, gt=0)
    poll_timeout: int = Field(default=20, ge=0)
    poll_pause: float = Field(default=0.25, ge=0)
    max_concurrent_dispatches: int = Field(default=32, ge=1)

    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        env_prefix="LUMBER_BOT_",
        extra="ignore",
    )

    @field_validator("username", "password", "client_id", "client_secret", "bot_token")
    @classmethod
    def not_blank(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("must not be empty")
        return v.strip()

    @field_validator("remote", "server_cert", mode="before")
    @classmethod
    def blank_to_none(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v


class CustomSubreddits(BaseModel):
    """Subreddit list shared by a group of chats."""

    chats: list[int]
    subreddits: list[str]

    @field_validator("subreddits")
    @classmethod
    def clean_subreddits(cls, v: list[str]) -> list[str]:
        return _clean_names(v)


class SubredditSettings(BaseModel):
    default: list[str]
    custom: list[CustomSubreddits] = Field(default_factory=list)

    @field_validator("default")
    @classmethod
    def clean_default(cls, v: list[str]) -> list[str]:
        return _clean_names(v)

    @field_validator("custom", mode="before")
    @classmethod
    def none_to_empty(cls, v):
        return [] if v is None else v


def _clean_names(names: list[str]) -> list[str]:
    """Strip whitespace and r/ prefixes; reject empty lists."""
    cleaned = []
    for name in names:
        name = str(name).strip()
        for prefix in ("/r/", "r/"):
            if name.lower().startswith(prefix):
                name = name[len(prefix):]
        name = name.strip("/")
        if name:
            cleaned.append(name)
    if not cleaned:
        raise ValueError("subreddit list must not be empty")
    return cleaned


def _read_yaml(path: Union[str, Path]) -> dict[str, Any]:
    path = Path(path).expanduser().resolve()
    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Could not read file {path}: {e}") from e

    try:
        data = yaml.safe_load(raw)
    except yaml.YAMLError as e:
        raise ConfigError(f"Could not parse yaml {path}: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"Expected a mapping at the top of {path}")
    return data


def load_server_settings(path: Union[str, Path]) -> ServerSettings:
    """
    Load server configuration from YAML.

    Args:
        path: Path to serverconf.yaml

    Returns:
        Validated ServerSettings

    Raises:
        ConfigError: file missing, unparsable or invalid
    """
    data = _read_yaml(path)
    # Blank values are left to the environment
    data = {
        LEGACY_KEYS.get(key, key): value
        for key, value in data.items()
        if value is not None and value != ""
    }
    try:
        return ServerSettings(**data)
    except ValidationError as e:
        raise ConfigError(f"Invalid server configuration {path}: {e}") from e


def load_subreddit_settings(path: Union[str, Path]) -> SubredditSettings:
    """Load default and per-chat subreddit lists from YAML."""
    data = _read_yaml(path)
    try:
        return SubredditSettings.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Invalid subreddit configuration {path}: {e}") from e


# =============================================================================
# STARTUP MODE: decided once, never changes at runtime
# =============================================================================

@dataclass(frozen=True)
class PollingMode:
    timeout: int
    pause: float
    max_concurrency: int


@dataclass(frozen=True)
class WebhookMode:
    url: str
    route: str
    certificate_path: Path
    host: str
    port: int


def resolve_mode(settings: ServerSettings) -> Union[PollingMode, WebhookMode]:
    """Pick webhook mode when a public endpoint and certificate are configured."""
    if settings.remote and settings.server_cert:
        remote = settings.remote.strip().rstrip("/")
        for scheme in ("https://", "http://"):
            if remote.startswith(scheme):
                remote = remote[len(scheme):]
        return WebhookMode(
            url=f"https://{remote}/{settings.bot_token}",
            route=f"/{settings.bot_token}",
            certificate_path=Path(settings.server_cert).expanduser().resolve(),
            host=settings.host,
            port=settings.port,
        )
    return PollingMode(
        timeout=settings.poll_timeout,
        pause=settings.poll_pause,
        max_concurrency=settings.max_concurrent_dispatches,
    )
