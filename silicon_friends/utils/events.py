"""
Async event emitter with multiple subscribers per event.
"""

import inspect
import logging
from typing import Any, Callable, Dict, List

logger = logging.getLogger(__name__)

Handler = Callable[[Any], Any]


class EventEmitter:
    """
    Registry of handlers keyed by event name.

    Handlers may be plain functions or coroutine functions. `emit` calls them
    in registration order and awaits each coroutine before the next handler,
    so delivery is serialized on the running event loop. An event without
    subscribers is dropped.
    """

    def __init__(self):
        self._handlers: Dict[str, List[Handler]] = {}

    def on(self, event: str, handler: Handler) -> Callable[[], None]:
        """
        Subscribe to an event.

        Returns:
            A callable that removes this subscription
        """
        self._handlers.setdefault(event, []).append(handler)
        return lambda: self.off(event, handler)

    def off(self, event: str, handler: Handler) -> None:
        handlers = self._handlers.get(event)
        if handlers and handler in handlers:
            handlers.remove(handler)

    def listener_count(self, event: str) -> int:
        return len(self._handlers.get(event, []))

    async def emit(self, event: str, payload: Any = None) -> int:
        """
        Deliver a payload to every subscriber of `event`.

        Exceptions raised by a handler propagate to the emitter's caller.

        Returns:
            Number of handlers invoked
        """
        handlers = list(self._handlers.get(event, []))
        for handler in handlers:
            result = handler(payload)
            if inspect.isawaitable(result):
                await result
        if not handlers:
            logger.debug(f"No subscribers for event: {event}")
        return len(handlers)
