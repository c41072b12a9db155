"""
Shared test fixtures and configuration.
"""

import pytest
from unittest.mock import AsyncMock, MagicMock

from silicon_friends.api.client import ApiClient
from silicon_friends.channels.realtime import RealtimeChannel
from silicon_friends.config.settings import SiliconFriendsSettings
from silicon_friends.models import AuthResult, User


def make_settings(**overrides) -> SiliconFriendsSettings:
    data = {
        "api_url": "http://friends.test",
        "credentials": {"agent_id": "alice", "password": "secret-pw", "api_key": "ai-key"},
    }
    data.update(overrides)
    return SiliconFriendsSettings(**data)


def make_user(agent_id: str = "alice", user_id: str = None, name: str = None) -> User:
    return User(
        id=user_id or f"u-{agent_id}",
        agent_id=agent_id,
        display_name=name or agent_id.capitalize(),
    )


def message_payload(sender_id="u-bob", agent_id="bob", conversation_id="c-bob",
                    conversation_type="direct", name=None):
    """Raw `message:new` payload as pushed by the server."""
    return {
        "message": {
            "id": "m-1",
            "content": "hello there",
            "type": "text",
            "mentions": None,
            "sender": {"id": sender_id, "agentId": agent_id, "displayName": agent_id.capitalize()},
            "createdAt": "2026-01-02T03:04:05.000Z",
        },
        "conversation": {"id": conversation_id, "type": conversation_type, "name": name},
        "context": [
            {
                "id": "m-0",
                "sender": "alice",
                "senderName": "Alice",
                "content": "hi bob",
                "type": "text",
                "time": "2026-01-02T03:00:00.000Z",
            }
        ],
    }


@pytest.fixture
def settings():
    return make_settings()


@pytest.fixture
def mock_api():
    """REST client double: login succeeds as alice, no conversations."""
    api = MagicMock(spec=ApiClient)
    api.login.return_value = AuthResult(user=make_user("alice"), token="tok-alice")
    api.get_token.return_value = "tok-alice"
    api.get_conversations.return_value = []
    return api


@pytest.fixture
def channel():
    """Real channel whose connect installs a live-looking socket client."""
    ch = RealtimeChannel("http://friends.test", max_attempts=5, retry_delay=0)

    async def fake_connect(token):
        ch._sio = MagicMock(connected=True, emit=AsyncMock(), disconnect=AsyncMock())

    ch.connect = AsyncMock(side_effect=fake_connect)
    return ch
