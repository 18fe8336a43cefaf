"""
Long-polling ingest loop.

Used when no public endpoint is configured. The loop never exits on a
failed fetch: it logs, pauses and asks again with the same offset.

CURSOR:
=======
`offset` starts at 0 and only ever moves forward, to one past the highest
update_id of a successfully retrieved batch. Telegram then drops
everything below it, so a batch is never delivered twice.

DISPATCH:
=========
Each event is handled in its own task. The number of in-flight dispatches
is capped by a semaphore acquired before the task is created, so a slow
Reddit stalls polling instead of piling up tasks. Replies can go out in a
different order than the events arrived.
"""

import asyncio
import logging

from lumber_bot.errors import DispatchError, TransportError
from .dispatcher import Dispatcher
from .models import InboundEvent
from .telegram_api import TelegramClient

logger = logging.getLogger(__name__)


class PollingLoop:
    def __init__(
        self,
        telegram: TelegramClient,
        dispatcher: Dispatcher,
        timeout: int = 20,
        pause: float = 0.25,
        max_concurrency: int = 32,
    ):
        self.telegram = telegram
        self.dispatcher = dispatcher
        self.timeout = timeout
        self.pause = pause
        self.offset = 0

        self._stop = asyncio.Event()
        self._slots = asyncio.Semaphore(max_concurrency)
        self._tasks: set[asyncio.Task] = set()

    @property
    def in_flight(self) -> int:
        return len(self._tasks)

    def stop(self) -> None:
        """Ask the loop to finish after the current iteration."""
        self._stop.set()

    @property
    def stopped(self) -> bool:
        return self._stop.is_set()

    async def run(self) -> None:
        logger.info("Polling for updates...")
        while not self._stop.is_set():
            await self.poll_once()
            await self._sleep(self.pause)
        logger.info(f"Polling stopped at offset {self.offset}")

    async def poll_once(self) -> int:
        """
        One poll cycle: fetch a batch and dispatch it.

        Returns:
            Number of events received (0 on failure)
        """
        try:
            events = await self.telegram.get_updates(self.offset, self.timeout)
        except TransportError as e:
            logger.warning(f"Received error fetching updates: {e}")
            return 0

        logger.debug(f"Received {len(events)} updates")

        for event in events:
            await self._spawn(event)
            self.offset = max(self.offset, event.event_id + 1)

        return len(events)

    async def drain(self) -> None:
        """Wait for in-flight dispatches to finish."""
        if self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)

    async def _spawn(self, event: InboundEvent) -> None:
        await self._slots.acquire()
        task = asyncio.create_task(self._dispatch(event), name=f"dispatch-{event.event_id}")
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _dispatch(self, event: InboundEvent) -> None:
        try:
            await self.dispatcher.handle(event)
        except DispatchError as e:
            logger.error(f"Error handling update {event.event_id}: {e}")
        except Exception as e:
            logger.error(f"Failed to process update {event.event_id}: {e}", exc_info=True)
        finally:
            self._slots.release()

    async def _sleep(self, seconds: float) -> None:
        try:
            await asyncio.wait_for(self._stop.wait(), timeout=seconds)
        except asyncio.TimeoutError:
            pass

