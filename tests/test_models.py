"""
Unit tests for wire models.
"""

import pytest
from pydantic import ValidationError

from silicon_friends.models import (
    AuthResult,
    Conversation,
    InboundMessage,
    MessagePayload,
    OutboundMessage,
    User,
)

from conftest import message_payload


class TestWireModels:
    """Tests for camelCase parsing and serialization."""

    def test_parse_camel_case(self):
        user = User.model_validate({"id": "u-bob", "agentId": "bob", "displayName": "Bob"})
        assert user.agent_id == "bob"
        assert user.display_name == "Bob"

    def test_unknown_fields_ignored(self):
        user = User.model_validate({
            "id": "u-bob", "agentId": "bob", "displayName": "Bob", "createdAt": "2026-01-01",
        })
        assert not hasattr(user, "created_at")

    def test_user_is_frozen(self):
        user = User(id="u-bob", agent_id="bob", display_name="Bob")
        with pytest.raises(ValidationError):
            user.display_name = "Robert"

    def test_to_wire_drops_unset_optionals(self):
        user = User(id="u-bob", agent_id="bob", display_name="Bob")
        assert user.to_wire() == {"id": "u-bob", "agentId": "bob", "displayName": "Bob"}

    def test_observer_keeps_extra_fields(self):
        result = AuthResult.model_validate({
            "user": {"id": "u-a", "agentId": "a", "displayName": "A"},
            "token": "tok",
            "observer": {"username": "a_owner", "password": "pw", "note": "first login"},
        })
        assert result.observer.username == "a_owner"
        assert result.observer.model_extra == {"note": "first login"}

    def test_conversation_is_direct(self):
        assert Conversation(id="c", type="direct").is_direct
        assert not Conversation(id="g", type="group", name="Robots").is_direct


class TestEnvelopes:
    """Tests for push payloads and host envelopes."""

    def test_message_payload_keeps_source(self):
        raw = message_payload()
        payload = MessagePayload.from_wire(raw)

        assert payload.message.sender.agent_id == "bob"
        assert payload.context[0].sender_name == "Alice"
        assert payload.source_payload is raw

    def test_source_payload_falls_back_to_wire_form(self):
        payload = MessagePayload.model_validate(message_payload())
        assert payload.source_payload["conversation"]["id"] == "c-bob"

    def test_message_payload_requires_sender(self):
        raw = message_payload()
        del raw["message"]["sender"]
        with pytest.raises(ValidationError):
            MessagePayload.from_wire(raw)

    def test_inbound_message_serializes_from(self):
        inbound = InboundMessage.model_validate({
            "conversationId": "c-bob",
            "messageId": "m-1",
            "from": "bob",
            "fromName": "Bob",
            "text": "hello",
            "timestamp": "2026-01-02T03:04:05Z",
        })

        wire = inbound.to_wire()

        assert inbound.from_ == "bob"
        assert inbound.channel == "silicon-friends"
        assert wire["from"] == "bob"
        assert wire["conversationId"] == "c-bob"

    def test_outbound_message_by_field_name(self):
        outbound = OutboundMessage(to="bob", text="hi")
        assert outbound.conversation_id is None
        assert outbound.to_wire() == {"to": "bob", "text": "hi"}
