"""
Unit tests for the polling fallback.
"""

import asyncio

import pytest
from unittest.mock import AsyncMock, MagicMock

from silicon_friends.core.exceptions import RequestFailure
from silicon_friends.core.poller import MessagePoller
from silicon_friends.models import Conversation, Message, MessagePage

from conftest import make_user


def page(*ids):
    return MessagePage(messages=[
        Message(
            id=mid,
            conversation_id="c-bob",
            sender=make_user("bob"),
            content=f"message {mid}",
            created_at=f"2026-01-02T03:04:0{i}Z",
        )
        for i, mid in enumerate(ids)
    ])


CONVERSATION = Conversation(id="c-bob", type="direct", other_user=make_user("bob"))


class TestMessagePoller:
    """Tests for MessagePoller."""

    @pytest.mark.asyncio
    async def test_first_round_only_primes(self):
        api = MagicMock()
        api.get_messages = AsyncMock(return_value=page("m1", "m2"))
        on_message = AsyncMock()
        poller = MessagePoller(api, lambda: [CONVERSATION], on_message)

        delivered = await poller.poll_once()

        assert delivered == 0
        on_message.assert_not_called()
        api.get_messages.assert_awaited_once_with("c-bob")

    @pytest.mark.asyncio
    async def test_new_messages_delivered_oldest_first(self):
        api = MagicMock()
        # Server returns newest first
        api.get_messages = AsyncMock(side_effect=[
            page("m1"),
            MessagePage(messages=list(reversed(page("m1", "m2", "m3").messages))),
        ])
        on_message = AsyncMock()
        poller = MessagePoller(api, lambda: [CONVERSATION], on_message)

        await poller.poll_once()
        delivered = await poller.poll_once()

        assert delivered == 2
        ids = [call.args[1].id for call in on_message.await_args_list]
        assert ids == ["m2", "m3"]
        assert on_message.await_args_list[0].args[0] is CONVERSATION

    @pytest.mark.asyncio
    async def test_seen_messages_not_redelivered(self):
        api = MagicMock()
        api.get_messages = AsyncMock(side_effect=[page("m1"), page("m1", "m2"), page("m1", "m2")])
        on_message = MagicMock()
        poller = MessagePoller(api, lambda: [CONVERSATION], on_message)

        for _ in range(3):
            await poller.poll_once()

        assert on_message.call_count == 1

    @pytest.mark.asyncio
    async def test_loop_survives_failures_and_stops(self):
        api = MagicMock()
        api.get_messages = AsyncMock(side_effect=RequestFailure(500, "HTTP 500"))
        poller = MessagePoller(api, lambda: [CONVERSATION], AsyncMock(), interval=0.01)

        await poller.start()
        assert poller.is_running
        await asyncio.sleep(0.05)
        await poller.stop()

        assert not poller.is_running
        assert api.get_messages.await_count >= 2

    @pytest.mark.asyncio
    async def test_stop_without_start(self):
        poller = MessagePoller(MagicMock(), lambda: [], AsyncMock())
        await poller.stop()
        assert not poller.is_running

    @pytest.mark.asyncio
    async def test_failing_conversation_does_not_block_others(self):
        left_group = Conversation(id="g-left", type="group", name="Old group")

        async def get_messages(conversation_id):
            if conversation_id == "g-left":
                raise RequestFailure(403, "Not a member")
            return page("m1") if get_messages.rounds == 0 else page("m0", "m1")

        get_messages.rounds = 0
        api = MagicMock()
        api.get_messages = AsyncMock(side_effect=get_messages)
        on_message = AsyncMock()
        poller = MessagePoller(api, lambda: [left_group, CONVERSATION], on_message)

        await poller.poll_once()
        get_messages.rounds = 1
        delivered = await poller.poll_once()
        await poller.poll_once()

        assert delivered == 1
        assert [call.args[1].id for call in on_message.await_args_list] == ["m0"]
        polled = [call.args[0] for call in api.get_messages.await_args_list]
        assert polled.count("c-bob") == 3

    @pytest.mark.asyncio
    async def test_refresh_runs_each_round(self):
        api = MagicMock()
        api.get_messages = AsyncMock(return_value=page("m1"))
        refresh = AsyncMock()
        poller = MessagePoller(api, lambda: [CONVERSATION], AsyncMock(), refresh=refresh)

        await poller.poll_once()
        await poller.poll_once()

        assert refresh.await_count == 2

    @pytest.mark.asyncio
    async def test_conversation_discovered_later_is_delivered(self):
        carol = Conversation(id="c-carol", type="direct", other_user=make_user("carol"))
        known = [CONVERSATION]

        async def refresh():
            if api.get_messages.await_count and carol not in known:
                known.append(carol)

        async def get_messages(conversation_id):
            if conversation_id == "c-carol":
                return MessagePage(messages=[
                    Message(
                        id="m-carol",
                        conversation_id="c-carol",
                        sender=make_user("carol"),
                        content="hi, new here",
                        created_at="2026-01-02T03:05:00Z",
                    )
                ])
            return page("m1")

        api = MagicMock()
        api.get_messages = AsyncMock(side_effect=get_messages)
        on_message = AsyncMock()
        poller = MessagePoller(api, lambda: list(known), on_message, refresh=refresh)

        assert await poller.poll_once() == 0
        assert await poller.poll_once() == 1
        assert await poller.poll_once() == 0

        conversation, message = on_message.await_args.args
        assert conversation is carol
        assert message.id == "m-carol"

    @pytest.mark.asyncio
    async def test_refresh_failure_still_polls(self):
        api = MagicMock()
        api.get_messages = AsyncMock(side_effect=[page("m1"), page("m1", "m2")])
        refresh = AsyncMock(side_effect=RequestFailure(0, "connection refused"))
        on_message = AsyncMock()
        poller = MessagePoller(api, lambda: [CONVERSATION], on_message, refresh=refresh)

        await poller.poll_once()
        delivered = await poller.poll_once()

        assert delivered == 1
