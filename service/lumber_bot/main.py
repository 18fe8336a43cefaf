"""
Process entry point.

    lumber-bot -serverconf etc/serverconf.yaml -subredditconf etc/subreddits.yaml

Startup order:
1. Load both configuration files (fatal if either is missing or invalid)
2. Acquire the first Reddit token (fatal on failure)
3. Webhook mode: register the webhook (fatal on failure), then serve HTTP
   Polling mode: long-poll getUpdates until stopped
"""

import argparse
import asyncio
import signal
from typing import Optional, Union

import httpx
import uvicorn

from lumber_bot.config import (
    PollingMode,
    ServerSettings,
    SubredditSettings,
    WebhookMode,
    load_server_settings,
    load_subreddit_settings,
    resolve_mode,
)
from lumber_bot.errors import AuthError, ConfigError, TransportError
from lumber_bot.logging_config import bot_logger as logger
from lumber_bot.logging_config import setup_logging
from lumber_bot.reddit.client import RedditClient
from lumber_bot.reddit.subreddits import RoutingTable, SubredditRouter
from lumber_bot.reddit.token import TokenKeeper
from lumber_bot.telegram_bot.dispatcher import Dispatcher, command_aliases
from lumber_bot.telegram_bot.polling import PollingLoop
from lumber_bot.telegram_bot.telegram_api import TelegramClient
from lumber_bot.telegram_bot.webhook import create_webhook_app


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="lumber-bot",
        description="Serve random top Reddit posts to Telegram chats on /get",
    )
    parser.add_argument(
        "-serverconf", "--serverconf",
        dest="serverconf", default="",
        help="path to server configuration",
    )
    parser.add_argument(
        "-subredditconf", "--subredditconf",
        dest="subredditconf", default="",
        help="path to subreddit configuration",
    )
    return parser.parse_args(argv)


def load_config(args: argparse.Namespace) -> tuple[ServerSettings, SubredditSettings]:
    if not args.serverconf:
        raise ConfigError("Server configuration needs to be supplied")
    if not args.subredditconf:
        raise ConfigError("Subreddit configuration needs to be supplied")

    settings = load_server_settings(args.serverconf)
    subreddits = load_subreddit_settings(args.subredditconf)
    return settings, subreddits


def build_dispatcher(
    settings: ServerSettings,
    subreddits: SubredditSettings,
    reddit: RedditClient,
    telegram: TelegramClient,
) -> Dispatcher:
    router = SubredditRouter(RoutingTable.from_settings(subreddits))
    return Dispatcher(
        router=router,
        reddit=reddit,
        telegram=telegram,
        commands=command_aliases(settings.bot_username),
        window=settings.listing_window,
        limit=settings.listing_limit,
    )


async def run_webhook(mode: WebhookMode, telegram: TelegramClient, dispatcher: Dispatcher) -> None:
    logger.info(f"Registering webhook for {mode.url} using {mode.certificate_path}")
    # No fallback to polling: failure here ends the process
    await telegram.set_webhook(mode.url, mode.certificate_path)
    logger.info("Registered webhook")

    app = create_webhook_app(dispatcher, mode.route)
    server = uvicorn.Server(uvicorn.Config(
        app,
        host=mode.host,
        port=mode.port,
        access_log=False,
        log_level="warning",
    ))
    logger.info(f"Listening on {mode.host}:{mode.port}...")
    await server.serve()


async def run_polling(mode: PollingMode, telegram: TelegramClient, dispatcher: Dispatcher) -> None:
    poller = PollingLoop(
        telegram,
        dispatcher,
        timeout=mode.timeout,
        pause=mode.pause,
        max_concurrency=mode.max_concurrency,
    )

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, poller.stop)
        except (NotImplementedError, RuntimeError):
            # Not supported on Windows event loops
            pass

    try:
        await poller.run()
    finally:
        await poller.drain()


async def serve(settings: ServerSettings, subreddits: SubredditSettings) -> None:
    """Run the bot until stopped. Fatal startup errors propagate."""
    mode: Union[PollingMode, WebhookMode] = resolve_mode(settings)

    async with httpx.AsyncClient(
        timeout=30.0,
        limits=httpx.Limits(max_keepalive_connections=10, keepalive_expiry=5.0),
    ) as reddit_http, httpx.AsyncClient(
        timeout=30.0,
        limits=httpx.Limits(max_keepalive_connections=10, keepalive_expiry=30.0),
    ) as telegram_http:
        tokens = TokenKeeper(
            reddit_http,
            username=settings.username,
            password=settings.password,
            client_id=settings.client_id,
            client_secret=settings.client_secret,
            user_agent=settings.user_agent,
            refresh_interval=settings.token_refresh_minutes * 60,
        )
        await tokens.start()

        try:
            reddit = RedditClient(reddit_http, tokens, settings.user_agent)
            telegram = TelegramClient(telegram_http, settings.bot_token, settings.user_agent)
            dispatcher = build_dispatcher(settings, subreddits, reddit, telegram)

            if isinstance(mode, WebhookMode):
                await run_webhook(mode, telegram, dispatcher)
            else:
                await run_polling(mode, telegram, dispatcher)
        finally:
            await tokens.stop()


def main(argv: Optional[list[str]] = None) -> int:
    args = parse_args(argv)

    try:
        settings, subreddits = load_config(args)
    except ConfigError as e:
        logger.critical(f"Could not read config: {e}")
        return 1

    setup_logging(
        settings.log_level,
        secrets=[settings.bot_token, settings.password, settings.client_secret],
    )

    try:
        asyncio.run(serve(settings, subreddits))
    except ConfigError as e:
        logger.critical(f"Invalid configuration: {e}")
        return 1
    except AuthError as e:
        logger.critical(f"Could not initialize reddit client: {e}")
        return 1
    except TransportError as e:
        logger.critical(f"Could not register webhook: {e}")
        return 1
    except KeyboardInterrupt:
        logger.info("Shutting down...")

    return 0


def run() -> None:
    raise SystemExit(main())


if __name__ == "__main__":
    run()
