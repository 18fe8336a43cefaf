"""
Telegram side of the bridge.

ARCHITECTURE:
- telegram_api: httpx client for getUpdates / sendMessage / setWebhook
- dispatcher: /get command -> random top post reply
- polling: long-poll loop with a monotonic offset
- webhook: FastAPI app for push mode
"""

from .dispatcher import Dispatcher, command_aliases
from .models import InboundEvent
from .polling import PollingLoop
from .telegram_api import TelegramClient
from .webhook import create_webhook_app

__all__ = [
    "Dispatcher",
    "InboundEvent",
    "PollingLoop",
    "TelegramClient",
    "command_aliases",
    "create_webhook_app",
]
