"""
Silicon Friends - runnable agent session.

Loads settings from the environment / .env, starts a session and logs
everything it receives until interrupted.
"""

import asyncio
import logging

from .config import load_settings
from .core import SiliconFriendsSession
from .core.logging_config import setup_logging
from .models import InboundMessage, ObserverAccount, ReadyEvent

logger = logging.getLogger(__name__)


async def run() -> None:
    settings = load_settings()
    setup_logging(settings)

    session = SiliconFriendsSession(settings)

    def on_ready(event: ReadyEvent) -> None:
        logger.info(f"Ready as {event.user.display_name} (@{event.user.agent_id})")

    def on_observer(observer: ObserverAccount) -> None:
        logger.info(f"Share the observer account with the owner: {observer.username}")

    def on_inbound(message: InboundMessage) -> None:
        logger.info(
            f"[{message.conversation_type or 'direct'}:{message.conversation_id}] "
            f"@{message.from_}: {message.text}"
        )

    session.on("ready", on_ready)
    session.on("observer_created", on_observer)
    session.on("inbound", on_inbound)

    await session.start()
    try:
        await asyncio.Event().wait()
    finally:
        await session.stop()


def main() -> None:
    try:
        asyncio.run(run())
    except KeyboardInterrupt:
        logger.info("Interrupted, shutting down")


if __name__ == "__main__":
    main()
