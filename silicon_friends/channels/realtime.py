"""
Realtime channel for the Silicon Friends push server.

Socket.IO client that authenticates with the session token, delivers
pushed events (new messages, typing, friend presence) to subscribers and
sends fire-and-forget signals (messages, read receipts, typing).
"""

import asyncio
import logging
from typing import Any, Callable, Dict, List, Optional, Type

import socketio
from socketio import exceptions as sio_exceptions
from pydantic import ValidationError

from ..core.exceptions import ConnectFailure
from ..models import FriendPresence, MessagePayload, TypingEvent
from ..models.base import WireModel
from ..utils.events import EventEmitter
from .events import InboundEvents, OutboundEvents

logger = logging.getLogger(__name__)

# Payload model for each inbound event class
PAYLOAD_MODELS: Dict[str, Type[WireModel]] = {
    InboundEvents.MESSAGE: MessagePayload,
    InboundEvents.TYPING: TypingEvent,
    InboundEvents.FRIEND_ONLINE: FriendPresence,
    InboundEvents.FRIEND_OFFLINE: FriendPresence,
}


class RealtimeChannel:
    """Socket.IO push channel.

    Features:
    - Bounded initial connection attempts with a fixed delay
    - Library-managed reconnection after an established connection drops
    - Multiple subscribers per inbound event class
    """

    def __init__(
        self,
        url: str,
        max_attempts: int = 5,
        retry_delay: float = 1.0,
        connect_timeout: float = 10.0,
    ):
        """Initialize the channel.

        Args:
            url: Push server URL.
            max_attempts: Connection attempts before giving up, also used as
                the reconnection cap after a drop.
            retry_delay: Fixed delay between attempts in seconds.
            connect_timeout: Seconds to wait for the namespace handshake.
        """
        self.url = url
        self.max_attempts = max_attempts
        self.retry_delay = retry_delay
        self.connect_timeout = connect_timeout

        self._sio: Optional[socketio.AsyncClient] = None
        self._subscribers = EventEmitter()

    def _create_client(self) -> socketio.AsyncClient:
        return socketio.AsyncClient(
            reconnection=True,
            reconnection_attempts=self.max_attempts,
            reconnection_delay=self.retry_delay,
            reconnection_delay_max=self.retry_delay,
            randomization_factor=0,
            logger=False,
            engineio_logger=False,
        )

    def _setup_handlers(self, sio: socketio.AsyncClient) -> None:
        """Register lifecycle and inbound event handlers on a client."""

        @sio.event
        async def connect():
            logger.info(f"Realtime channel connected to {self.url}")

        @sio.event
        async def connect_error(data):
            logger.warning(f"Realtime channel connection error: {data}")

        @sio.event
        async def disconnect(*args):
            reason = args[0] if args else "unknown"
            logger.info(f"Realtime channel disconnected: {reason}")

        for event in PAYLOAD_MODELS:
            sio.on(event, self._make_socket_handler(event))

    def _make_socket_handler(self, event: str) -> Callable:
        async def handler(data: Any = None):
            try:
                await self.dispatch(event, data)
            except Exception as e:
                logger.error(f"Handler for {event} failed: {e}", exc_info=True)
        return handler

    async def connect(self, token: str) -> None:
        """Connect to the push server.

        Args:
            token: Session token sent in the handshake.

        Raises:
            ConnectFailure: if every attempt failed.
        """
        if self.is_connected():
            logger.info("Realtime channel already connected")
            return

        sio = self._create_client()
        self._setup_handlers(sio)
        self._sio = sio

        last_error: Optional[Exception] = None
        for attempt in range(1, self.max_attempts + 1):
            try:
                logger.info(
                    f"Connecting realtime channel: {self.url} "
                    f"(attempt {attempt}/{self.max_attempts})"
                )
                await sio.connect(
                    self.url,
                    auth={"token": token},
                    transports=["websocket"],
                    wait_timeout=self.connect_timeout,
                )
                return
            except sio_exceptions.ConnectionError as e:
                last_error = e
                logger.warning(f"Realtime connect attempt {attempt} failed: {e}")
                if attempt < self.max_attempts:
                    await asyncio.sleep(self.retry_delay)

        self._sio = None
        raise ConnectFailure(
            f"Realtime channel unreachable after {self.max_attempts} attempts: {last_error}",
            attempts=self.max_attempts,
        ) from last_error

    async def disconnect(self) -> None:
        """Tear down the connection. Safe to call when not connected."""
        sio, self._sio = self._sio, None
        if sio is None:
            return
        try:
            await sio.disconnect()
            logger.info("Realtime channel disconnected gracefully")
        except Exception as e:
            logger.warning(f"Error during realtime disconnect: {e}")

    def is_connected(self) -> bool:
        return self._sio is not None and bool(self._sio.connected)

    # Subscriptions

    def subscribe(self, event: str, handler: Callable[[Any], Any]) -> Callable[[], None]:
        """Subscribe to an inbound event class.

        Args:
            event: One of the InboundEvents names.
            handler: Sync or async callable receiving the parsed payload.

        Returns:
            Callable that removes the subscription.
        """
        if event not in PAYLOAD_MODELS:
            raise ValueError(f"Unknown realtime event: {event}")
        return self._subscribers.on(event, handler)

    def unsubscribe(self, event: str, handler: Callable[[Any], Any]) -> None:
        self._subscribers.off(event, handler)

    def on_message(self, handler: Callable[[MessagePayload], Any]) -> Callable[[], None]:
        return self.subscribe(InboundEvents.MESSAGE, handler)

    def on_typing(self, handler: Callable[[TypingEvent], Any]) -> Callable[[], None]:
        return self.subscribe(InboundEvents.TYPING, handler)

    def on_friend_online(self, handler: Callable[[FriendPresence], Any]) -> Callable[[], None]:
        return self.subscribe(InboundEvents.FRIEND_ONLINE, handler)

    def on_friend_offline(self, handler: Callable[[FriendPresence], Any]) -> Callable[[], None]:
        return self.subscribe(InboundEvents.FRIEND_OFFLINE, handler)

    async def dispatch(self, event: str, data: Any) -> int:
        """Parse a raw event payload and deliver it to subscribers.

        Used by the socket handlers, and to inject events directly.

        Returns:
            Number of subscribers that received the event (0 when the
            payload was invalid or nobody is subscribed).
        """
        model = PAYLOAD_MODELS.get(event)
        if model is None:
            logger.debug(f"Ignoring unknown realtime event: {event}")
            return 0
        if self._subscribers.listener_count(event) == 0:
            return 0
        try:
            payload = model.from_wire(data)
        except ValidationError as e:
            logger.warning(f"Dropping malformed {event} payload: {e}")
            return 0
        return await self._subscribers.emit(event, payload)

    # Outbound signals

    async def _emit(self, event: str, data: Dict[str, Any]) -> None:
        if not self.is_connected():
            logger.debug(f"Realtime channel not connected, dropping {event}")
            return
        await self._sio.emit(event, data)
        logger.debug(f"Emitted event: {event}")

    async def send_message(
        self, conversation_id: str, content: str, mentions: Optional[List[str]] = None
    ) -> None:
        """Push a message. No acknowledgment is awaited."""
        data: Dict[str, Any] = {"conversationId": conversation_id, "content": content}
        if mentions:
            data["mentions"] = mentions
        await self._emit(OutboundEvents.SEND_MESSAGE, data)

    async def mark_read(self, conversation_id: str) -> None:
        await self._emit(OutboundEvents.MARK_READ, {"conversationId": conversation_id})

    async def start_typing(self, conversation_id: str) -> None:
        await self._emit(OutboundEvents.TYPING_START, {"conversationId": conversation_id})

    async def stop_typing(self, conversation_id: str) -> None:
        await self._emit(OutboundEvents.TYPING_STOP, {"conversationId": conversation_id})
