"""Bot runner: receives Telegram updates and dispatches them to the orchestrator."""

import asyncio
from typing import Any, Dict, Optional, Set

from loguru import logger

from smart_apply.config.trace_context import trace_context
from smart_apply.core.errors import TransportError
from smart_apply.core.model.chat_event import ChatEvent
from smart_apply.core.orchestrator import BOT_COMMANDS, ConversationOrchestrator
from smart_apply.core.providers.telegram_transport import TelegramTransport, parse_update

BOT_DESCRIPTION = (
    "🤖 Smart Apply Bot - Find your dream job based on your CV!\n\n"
    "Upload your CV, get AI-powered job title suggestions and fresh job listings."
)


class UserLocks:
    """One asyncio.Lock per user, dropped again once nobody holds or awaits it."""

    def __init__(self):
        self._locks: Dict[int, asyncio.Lock] = {}
        self._waiters: Dict[int, int] = {}

    async def run(self, user_id: int, coro_factory):
        lock = self._locks.setdefault(user_id, asyncio.Lock())
        self._waiters[user_id] = self._waiters.get(user_id, 0) + 1
        try:
            async with lock:
                return await coro_factory()
        finally:
            self._waiters[user_id] -= 1
            if self._waiters[user_id] == 0:
                del self._waiters[user_id]
                del self._locks[user_id]

    def __len__(self) -> int:
        return len(self._locks)


class SmartApplyBot:
    """Long-polls (or is fed webhook updates) and runs one task per event.

    Events for different users interleave; events for the same user are
    handled strictly one after another.
    """

    def __init__(
        self,
        transport: TelegramTransport,
        orchestrator: ConversationOrchestrator,
        polling_timeout: int = 10,
    ):
        self.transport = transport
        self.orchestrator = orchestrator
        self._polling_timeout = polling_timeout
        self._locks = UserLocks()
        self._tasks: Set[asyncio.Task] = set()
        self._stopping = asyncio.Event()
        self._offset: Optional[int] = None

    async def setup(self) -> None:
        """Publish the command menu and bot description."""
        await self.transport.set_commands(BOT_COMMANDS)
        await self.transport.set_description(BOT_DESCRIPTION)
        logger.info("Bot commands registered", commands=len(BOT_COMMANDS))

    # --- Dispatch ---

    def submit_update(self, update: Dict[str, Any]) -> Optional[asyncio.Task]:
        """Schedule handling of one raw Telegram update.

        Returns:
            The scheduled task, or None if the update carries no chat event.
        """
        parsed = parse_update(update)
        if parsed is None:
            logger.debug("Skipping unsupported update", update_id=update.get("update_id"))
            return None

        user_id, event = parsed
        task = asyncio.create_task(self._dispatch(user_id, event, update.get("update_id")))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def _dispatch(self, user_id: int, event: ChatEvent, update_id: Optional[int]) -> None:
        with trace_context(), logger.contextualize(user_id=user_id, update_id=update_id):
            try:
                await self._locks.run(
                    user_id, lambda: self.orchestrator.handle_event(user_id, event)
                )
            except Exception:
                # One failed event must not take the bot down
                logger.exception("Unhandled error while handling event", kind=event.kind)

    async def aclose(self) -> None:
        """Close the HTTP clients and remove temporary downloads."""
        await self.orchestrator.fanout.aclose()
        await self.transport.aclose()
        self.orchestrator.cleanup()

    async def drain(self) -> None:
        """Wait for every in-flight event to finish."""
        if self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    # --- Polling ---

    def stop(self) -> None:
        self._stopping.set()

    async def poll_once(self) -> int:
        """Fetch one batch of updates and schedule them. Returns the batch size."""
        updates = await self.transport.get_updates(
            offset=self._offset, timeout=self._polling_timeout
        )
        for update in updates:
            self._offset = update["update_id"] + 1
            try:
                self.submit_update(update)
            except Exception:
                logger.exception("Skipping malformed update", update_id=update["update_id"])
        return len(updates)

    async def run_polling(self, retry_delay: float = 5.0) -> None:
        """Poll until stop() is called, then wait for in-flight events."""
        await self.transport.delete_webhook()
        logger.info("🤖 Telegram bot is polling for messages...")

        while not self._stopping.is_set():
            poll = asyncio.ensure_future(self.poll_once())
            stop = asyncio.ensure_future(self._stopping.wait())
            done, _ = await asyncio.wait({poll, stop}, return_when=asyncio.FIRST_COMPLETED)

            if poll not in done:
                poll.cancel()
                await asyncio.gather(poll, return_exceptions=True)
                break
            stop.cancel()
            await asyncio.gather(stop, return_exceptions=True)

            error = poll.exception()
            if isinstance(error, TransportError):
                logger.warning("Polling failed, retrying", error=str(error), delay=retry_delay)
                try:
                    await asyncio.wait_for(self._stopping.wait(), timeout=retry_delay)
                except asyncio.TimeoutError:
                    pass
            elif error is not None:
                raise error

        logger.info("Polling stopped, waiting for in-flight events", pending=len(self._tasks))
        await self.drain()
