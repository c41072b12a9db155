"""
Polling fallback for inbound messages.

When the realtime channel is unavailable, periodically fetches the newest
page of every known conversation and hands messages not seen before to the
session.
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, Iterable, Optional, Set

from pydantic import ValidationError

from ..models import Conversation, Message
from .exceptions import SiliconFriendsError

logger = logging.getLogger(__name__)


class MessagePoller:
    """Periodic message fetcher.

    The first round only records the ids already present in the
    conversations known at that time, so history that existed before the
    poller started is never replayed. Conversations that show up in later
    rounds are new, and all their messages are delivered.
    """

    def __init__(
        self,
        api: Any,
        conversations: Callable[[], Iterable[Conversation]],
        on_message: Callable[[Conversation, Message], Any],
        interval: float = 5.0,
        refresh: Optional[Callable[[], Awaitable[Any]]] = None,
    ):
        """Initialize the poller.

        Args:
            api: ApiClient used for get_messages.
            conversations: Returns the conversations to poll each round.
            on_message: Awaitable callback for every unseen message.
            interval: Seconds between rounds.
            refresh: Optional coroutine function run at the start of each
                round to pick up conversations created since the last one.
        """
        self.api = api
        self._conversations = conversations
        self._on_message = on_message
        self._refresh = refresh
        self.interval = interval

        self._seen: Dict[str, Set[str]] = {}
        self._baseline: Optional[Set[str]] = None
        self._running = False
        self._task: Optional[asyncio.Task] = None

    @property
    def is_running(self) -> bool:
        return self._running

    async def start(self) -> None:
        if self._running:
            logger.warning("Message poller already running")
            return

        self._running = True
        self._task = asyncio.create_task(self._poll_loop())
        logger.info(f"Message poller started: interval={self.interval}s")

    async def stop(self) -> None:
        if not self._running:
            return

        self._running = False

        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None

        logger.info("Message poller stopped")

    async def poll_once(self) -> int:
        """Run one polling round.

        A conversation whose fetch fails is skipped for this round; the
        others are still polled.

        Returns:
            Number of new messages handed to the callback.
        """
        if self._refresh is not None:
            try:
                await self._refresh()
            except (SiliconFriendsError, ValidationError) as e:
                logger.warning(f"Conversation refresh failed: {e}")

        conversations = list(self._conversations())
        if self._baseline is None:
            self._baseline = {c.id for c in conversations}

        delivered = 0
        for conversation in conversations:
            try:
                page = await self.api.get_messages(conversation.id)
            except (SiliconFriendsError, ValidationError) as e:
                logger.warning(f"Polling {conversation.id} failed: {e}")
                continue

            seen = self._seen.get(conversation.id)
            if seen is None:
                if conversation.id in self._baseline:
                    self._seen[conversation.id] = {m.id for m in page.messages}
                    continue
                seen = self._seen[conversation.id] = set()
                logger.info(f"Polling new conversation {conversation.id}")

            fresh = [m for m in page.messages if m.id not in seen]
            fresh.sort(key=lambda m: m.created_at)
            for message in fresh:
                seen.add(message.id)
                result = self._on_message(conversation, message)
                if asyncio.iscoroutine(result):
                    await result
                delivered += 1
        return delivered

    async def _poll_loop(self) -> None:
        while self._running:
            try:
                count = await self.poll_once()
                if count:
                    logger.debug(f"Polling round delivered {count} message(s)")
            except asyncio.CancelledError:
                raise
            except Exception as e:
                logger.warning(f"Polling round failed: {e}")

            try:
                await asyncio.sleep(self.interval)
            except asyncio.CancelledError:
                break
